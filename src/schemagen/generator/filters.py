from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Protocol

from schemagen.contracts.base import MemberDescriptor
from schemagen.schema.model import Schema
from schemagen.schema.repository import SchemaRepository

if TYPE_CHECKING:
    from schemagen.generator.core import SchemaGenerator


@dataclass
class SchemaFilterContext:
    type: Any
    generator: SchemaGenerator
    repository: SchemaRepository
    member: MemberDescriptor | None = None


class SchemaFilter(Protocol):
    def apply(self, schema: Schema, context: SchemaFilterContext) -> None: ...


def apply_filters(
    filters: Iterable[SchemaFilter],
    schema: Schema,
    context: SchemaFilterContext,
) -> None:
    for schema_filter in filters:
        schema_filter.apply(schema, context)
