from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

COMPONENTS_PREFIX = "#/components/schemas/"
DEFS_PREFIX = "#/$defs/"


@dataclass(frozen=True)
class SchemaReference:
    id: str

    def path(self, prefix: str = COMPONENTS_PREFIX) -> str:
        return f"{prefix}{self.id}"


@dataclass
class Discriminator:
    property_name: str
    mapping: dict[str, str] = field(default_factory=dict)

    def to_dict(self, ref_prefix: str = COMPONENTS_PREFIX) -> dict[str, Any]:
        payload: dict[str, Any] = {"propertyName": self.property_name}
        if self.mapping:
            payload["mapping"] = {key: f"{ref_prefix}{value}" for key, value in self.mapping.items()}
        return payload


@dataclass
class Schema:
    """A node of a generated schema document.

    A node is either inline (structural keywords set) or a reference
    (only ``reference`` set). The one mixed form is ``all_of=[reference]``,
    which lets member-level keywords sit next to a referenced body.
    """

    type: str | None = None
    format: str | None = None
    description: str | None = None
    items: Schema | None = None
    additional_properties: Schema | None = None
    additional_properties_allowed: bool | None = None
    properties: dict[str, Schema] | None = None
    required: set[str] = field(default_factory=set)
    enum: list[Any] | None = None
    one_of: list[Schema] | None = None
    all_of: list[Schema] | None = None
    discriminator: Discriminator | None = None
    nullable: bool = False
    read_only: bool = False
    write_only: bool = False
    deprecated: bool = False
    minimum: float | int | None = None
    maximum: float | int | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    min_length: int | None = None
    max_length: int | None = None
    min_items: int | None = None
    max_items: int | None = None
    pattern: str | None = None
    default: Any = None
    unique_items: bool | None = None
    extensions: dict[str, Any] = field(default_factory=dict)
    reference: SchemaReference | None = None

    @classmethod
    def ref(cls, schema_id: str) -> Schema:
        return cls(reference=SchemaReference(schema_id))

    @property
    def is_reference(self) -> bool:
        return self.reference is not None

    def to_dict(self, *, ref_prefix: str = COMPONENTS_PREFIX, json_schema: bool = False) -> dict[str, Any]:
        if self.reference is not None:
            return {"$ref": self.reference.path(ref_prefix)}

        def render(node: Schema) -> dict[str, Any]:
            return node.to_dict(ref_prefix=ref_prefix, json_schema=json_schema)

        payload: dict[str, Any] = {}
        if self.type is not None:
            payload["type"] = self.type
        if self.format is not None:
            payload["format"] = self.format
        if self.description is not None:
            payload["description"] = self.description
        if self.all_of is not None:
            payload["allOf"] = [render(node) for node in self.all_of]
        if self.one_of is not None:
            payload["oneOf"] = [render(node) for node in self.one_of]
        if self.discriminator is not None:
            payload["discriminator"] = self.discriminator.to_dict(ref_prefix)
        if self.properties is not None:
            payload["properties"] = {name: render(node) for name, node in self.properties.items()}
        if self.required:
            payload["required"] = sorted(self.required)
        if self.additional_properties is not None:
            payload["additionalProperties"] = render(self.additional_properties)
        elif self.additional_properties_allowed is not None:
            payload["additionalProperties"] = self.additional_properties_allowed
        if self.items is not None:
            payload["items"] = render(self.items)
        if self.unique_items is not None:
            payload["uniqueItems"] = self.unique_items
        if self.enum is not None:
            payload["enum"] = list(self.enum)
        _render_bounds(self, payload, json_schema=json_schema)
        if self.pattern is not None:
            payload["pattern"] = self.pattern
        if self.default is not None:
            payload["default"] = self.default
        if self.read_only:
            payload["readOnly"] = True
        if self.write_only:
            payload["writeOnly"] = True
        if self.deprecated:
            payload["deprecated"] = True
        payload.update(self.extensions)
        if self.nullable:
            if json_schema:
                payload = _nullable_json_schema(payload)
            else:
                payload["nullable"] = True
        return payload


def _render_bounds(schema: Schema, payload: dict[str, Any], *, json_schema: bool) -> None:
    if schema.minimum is not None:
        if json_schema and schema.exclusive_minimum:
            payload["exclusiveMinimum"] = schema.minimum
        else:
            payload["minimum"] = schema.minimum
            if schema.exclusive_minimum:
                payload["exclusiveMinimum"] = True
    if schema.maximum is not None:
        if json_schema and schema.exclusive_maximum:
            payload["exclusiveMaximum"] = schema.maximum
        else:
            payload["maximum"] = schema.maximum
            if schema.exclusive_maximum:
                payload["exclusiveMaximum"] = True
    if schema.min_length is not None:
        payload["minLength"] = schema.min_length
    if schema.max_length is not None:
        payload["maxLength"] = schema.max_length
    if schema.min_items is not None:
        payload["minItems"] = schema.min_items
    if schema.max_items is not None:
        payload["maxItems"] = schema.max_items


def _nullable_json_schema(payload: dict[str, Any]) -> dict[str, Any]:
    node_type = payload.get("type")
    if isinstance(node_type, str):
        payload["type"] = [node_type, "null"]
        if "enum" in payload and None not in payload["enum"]:
            payload["enum"] = [*payload["enum"], None]
        return payload
    return {"anyOf": [payload, {"type": "null"}]}
