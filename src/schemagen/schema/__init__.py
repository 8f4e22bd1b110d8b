from .document import (
    SchemaDocumentError,
    build_document,
    build_json_schema_document,
    build_openapi_document,
    stable_json_text,
)
from .ids import default_schema_id
from .model import Discriminator, Schema, SchemaReference
from .repository import SchemaGenerationError, SchemaIdConflictError, SchemaRepository

__all__ = [
    "Discriminator",
    "Schema",
    "SchemaDocumentError",
    "SchemaGenerationError",
    "SchemaIdConflictError",
    "SchemaReference",
    "SchemaRepository",
    "build_document",
    "build_json_schema_document",
    "build_openapi_document",
    "default_schema_id",
    "stable_json_text",
]
