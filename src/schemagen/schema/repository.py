from __future__ import annotations

from typing import Any

from schemagen.schema.model import COMPONENTS_PREFIX, Schema


class SchemaGenerationError(RuntimeError):
    pass


class SchemaIdConflictError(SchemaGenerationError):
    def __init__(self, schema_id: str, existing: Any, conflicting: Any):
        super().__init__(
            f"Conflicting schema ids: {type_display_name(existing)} and "
            f"{type_display_name(conflicting)} both map to {schema_id!r}. "
            "Provide a custom schema_id_selector to disambiguate them."
        )
        self.schema_id = schema_id
        self.existing = existing
        self.conflicting = conflicting


class SchemaRepository:
    """Named schema definitions shared by one generation session.

    Identities are reserved with :meth:`register_type` before a body is
    built, so a type that reaches itself during recursion gets a reference
    to its own (still pending) entry instead of recursing forever.
    """

    def __init__(self) -> None:
        self.schemas: dict[str, Schema] = {}
        self.in_flight: set[str] = set()
        self._ids_by_type: dict[Any, str] = {}
        self._types_by_id: dict[str, Any] = {}

    def lookup(self, type_: Any) -> Schema | None:
        schema_id = self._ids_by_type.get(type_)
        if schema_id is None:
            return None
        return Schema.ref(schema_id)

    def register_type(self, type_: Any, schema_id: str) -> Schema:
        existing = self._types_by_id.get(schema_id)
        if existing is not None and existing != type_:
            raise SchemaIdConflictError(schema_id, existing, type_)
        self._types_by_id[schema_id] = type_
        self._ids_by_type[type_] = schema_id
        if schema_id not in self.schemas:
            self.in_flight.add(schema_id)
        return Schema.ref(schema_id)

    def add_definition(self, schema_id: str, schema: Schema) -> None:
        if schema.is_reference:
            raise SchemaGenerationError(f"Definition {schema_id!r} must not be a bare reference.")
        self.schemas[schema_id] = schema
        self.in_flight.discard(schema_id)

    def type_for(self, schema_id: str) -> Any:
        return self._types_by_id.get(schema_id)

    def is_in_flight(self, schema_id: str) -> bool:
        return schema_id in self.in_flight

    def __contains__(self, schema_id: object) -> bool:
        return schema_id in self.schemas

    def __len__(self) -> int:
        return len(self.schemas)

    def to_dict(self, *, ref_prefix: str = COMPONENTS_PREFIX, json_schema: bool = False) -> dict[str, Any]:
        return {
            schema_id: schema.to_dict(ref_prefix=ref_prefix, json_schema=json_schema)
            for schema_id, schema in self.schemas.items()
        }


def type_display_name(type_: Any) -> str:
    if isinstance(type_, type):
        return f"{type_.__module__}.{type_.__qualname__}"
    return repr(type_)
