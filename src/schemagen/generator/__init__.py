from .core import SchemaGenerator
from .filters import SchemaFilter, SchemaFilterContext
from .options import SchemaGeneratorOptions, all_subclasses

__all__ = [
    "SchemaFilter",
    "SchemaFilterContext",
    "SchemaGenerator",
    "SchemaGeneratorOptions",
    "all_subclasses",
]
