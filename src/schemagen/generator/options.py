from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field


def all_subclasses(type_: Any) -> list[type]:
    if not isinstance(type_, type):
        return []
    found: list[type] = []
    pending = list(type_.__subclasses__())
    while pending:
        subtype = pending.pop(0)
        if subtype in found:
            continue
        found.append(subtype)
        pending.extend(subtype.__subclasses__())
    return found


class SchemaGeneratorOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    custom_type_mappings: dict[Any, Callable[[], Any]] = Field(default_factory=dict)
    schema_filters: list[Any] = Field(default_factory=list)
    use_inline_definitions_for_enums: bool = False
    generate_polymorphic_schemas: bool = False
    subtypes_selector: Callable[[Any], list[Any]] = all_subclasses
    discriminator_name: str = "$type"
    use_all_of_to_extend_reference_schemas: bool = False
    ignore_obsolete_properties: bool = False
    schema_id_selector: Callable[[Any], str] | None = None
