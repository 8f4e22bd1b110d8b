from __future__ import annotations

import inspect
from abc import ABC, abstractmethod

from schemagen.generator.filters import SchemaFilterContext
from schemagen.schema.model import Schema
from schemagen.schema.repository import type_display_name


class BuiltinFilter(ABC):
    """Base for filters that only touch repository bodies."""

    def apply(self, schema: Schema, context: SchemaFilterContext) -> None:
        if context.member is not None or context.repository.lookup(context.type) is None:
            return
        self.apply_definition(schema, context)

    @abstractmethod
    def apply_definition(self, schema: Schema, context: SchemaFilterContext) -> None:
        """Decorate a schema that is stored in the repository."""


class PythonTypeFilter(BuiltinFilter):
    def __init__(self, key: str = "x-python-type"):
        if not key.startswith("x-"):
            raise ValueError("Vendor extension keys must start with 'x-'.")
        self.key = key

    def apply_definition(self, schema: Schema, context: SchemaFilterContext) -> None:
        schema.extensions[self.key] = type_display_name(context.type)


class DocstringFilter(BuiltinFilter):
    def __init__(self, overwrite: bool = False):
        self.overwrite = overwrite

    def apply_definition(self, schema: Schema, context: SchemaFilterContext) -> None:
        if schema.description is not None and not self.overwrite:
            return
        summary = docstring_summary(context.type)
        if summary:
            schema.description = summary


def docstring_summary(type_: object) -> str | None:
    if not isinstance(type_, type):
        return None
    # only the class's own docstring; dataclass-generated signatures don't count
    doc = vars(type_).get("__doc__")
    if not isinstance(doc, str) or doc.startswith(f"{type_.__name__}("):
        return None
    cleaned = inspect.cleandoc(doc)
    paragraph = cleaned.split("\n\n", 1)[0]
    return " ".join(paragraph.split()) or None
