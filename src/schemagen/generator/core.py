from __future__ import annotations

from typing import Any, Callable, get_origin

from schemagen.contracts.annotations import NotNull, Required, RequiredPolicy, has
from schemagen.contracts.base import (
    ContractDescriptor,
    ContractKind,
    ContractResolver,
    MemberDescriptor,
)
from schemagen.contracts.default import DefaultContractResolver
from schemagen.contracts.primitives import PRIMITIVE_FORMATS
from schemagen.core import events as ev
from schemagen.generator.constraints import apply_constraints, map_constraints
from schemagen.generator.filters import SchemaFilterContext, apply_filters
from schemagen.generator.options import SchemaGeneratorOptions
from schemagen.schema.ids import default_schema_id
from schemagen.schema.model import Discriminator, Schema
from schemagen.schema.repository import SchemaRepository, type_display_name

EventSink = Callable[[ev.SchemagenEvent], None]


class SchemaGenerator:
    """Turns Python types into schema nodes backed by a shared repository.

    Enums, structured types and self-referencing containers are stored in the
    repository and returned as references; everything else is returned
    inline. ``generate`` is re-entrant: filters may call it again with the
    same repository while an outer call is still building a body.
    """

    def __init__(
        self,
        options: SchemaGeneratorOptions | None = None,
        resolver: ContractResolver | None = None,
        on_event: EventSink | None = None,
    ):
        self.options = options or SchemaGeneratorOptions()
        self.resolver = resolver or DefaultContractResolver()
        self.on_event = on_event

    def generate(
        self,
        type_: Any,
        repository: SchemaRepository,
        member: MemberDescriptor | None = None,
    ) -> Schema:
        contract = self.resolver.resolve(type_, self.options.custom_type_mappings)
        if contract.kind is ContractKind.CUSTOM:
            schema = self.options.custom_type_mappings[contract.type]()
            schema.nullable = self._is_nullable(member) if member is not None else contract.nullable
            return schema

        if contract.kind is ContractKind.OBJECT:
            schema = self._object_schema(contract, repository)
        elif contract.kind is ContractKind.ENUM and not self.options.use_inline_definitions_for_enums:
            schema = self._referenced(contract, repository, lambda: self._enum_schema(contract))
        elif contract.is_self_referencing:
            schema = self._referenced(contract, repository, lambda: self._inline_schema(contract, repository))
        else:
            schema = self._inline_schema(contract, repository)

        if member is not None:
            return self._member_schema(schema, member, contract, repository)
        if schema.is_reference:
            return schema
        schema.nullable = schema.nullable or contract.nullable
        self._filter(schema, contract.type, repository)
        return schema

    def _member_schema(
        self,
        schema: Schema,
        member: MemberDescriptor,
        contract: ContractDescriptor,
        repository: SchemaRepository,
    ) -> Schema:
        if schema.is_reference:
            if not self.options.use_all_of_to_extend_reference_schemas:
                return schema
            schema = Schema(all_of=[schema])

        schema.nullable = self._is_nullable(member)
        schema.read_only = member.readable and not member.writable
        schema.write_only = member.writable and not member.readable
        schema.deprecated = member.obsolete
        if member.description:
            schema.description = member.description
        if member.has_default:
            schema.default = member.default
        apply_constraints(schema, map_constraints(member.metadata))
        self._filter(schema, contract.type, repository, member)
        return schema

    def _inline_schema(self, contract: ContractDescriptor, repository: SchemaRepository) -> Schema:
        if contract.kind is ContractKind.PRIMITIVE:
            schema_type, schema_format = PRIMITIVE_FORMATS[contract.primitive]
            return Schema(type=schema_type, format=schema_format)
        if contract.kind is ContractKind.ENUM:
            return self._enum_schema(contract)
        if contract.kind is ContractKind.DICTIONARY:
            if contract.dictionary_keys is not None:
                return Schema(
                    type="object",
                    properties={
                        key: self.generate(contract.value_type, repository)
                        for key in contract.dictionary_keys
                    },
                )
            return Schema(
                type="object",
                additional_properties_allowed=True,
                additional_properties=self.generate(contract.value_type, repository),
            )
        if contract.kind is ContractKind.ENUMERABLE:
            return Schema(
                type="array",
                items=self.generate(contract.item_type, repository),
                unique_items=True if contract.is_set else None,
            )
        return Schema(type="object", properties={})

    def _enum_schema(self, contract: ContractDescriptor) -> Schema:
        if contract.enum_is_string:
            return Schema(type="string", enum=list(contract.enum_values))
        return Schema(type="integer", format=contract.enum_format, enum=list(contract.enum_values))

    def _object_schema(self, contract: ContractDescriptor, repository: SchemaRepository) -> Schema:
        reference = self._object_reference(contract, repository)
        subtypes = self._subtypes(contract.type)
        if not subtypes:
            return reference
        return Schema(
            one_of=[
                self._object_reference(self.resolver.resolve(subtype), repository)
                for subtype in subtypes
            ]
        )

    def _object_reference(self, contract: ContractDescriptor, repository: SchemaRepository) -> Schema:
        return self._referenced(contract, repository, lambda: self._object_body(contract, repository))

    def _object_body(self, contract: ContractDescriptor, repository: SchemaRepository) -> Schema:
        parent = self._polymorphic_parent(contract.type)
        if parent is not None:
            parent_contract = self.resolver.resolve(parent)
            inherited = {member.attribute_name for member in parent_contract.members}
            own = [member for member in contract.members if member.attribute_name not in inherited]
            return Schema(
                all_of=[
                    self._object_reference(parent_contract, repository),
                    self._properties_schema(own, contract.extension_data, repository),
                ]
            )

        body = self._properties_schema(contract.members, contract.extension_data, repository)
        subtypes = self._subtypes(contract.type)
        if subtypes:
            name = self.options.discriminator_name
            body.properties = {name: Schema(type="string"), **(body.properties or {})}
            body.required.add(name)
            subtype_ids = [self._schema_id(subtype) for subtype in subtypes]
            body.discriminator = Discriminator(
                property_name=name,
                mapping={schema_id: schema_id for schema_id in subtype_ids},
            )
        return body

    def _properties_schema(
        self,
        members: list[MemberDescriptor],
        extension: MemberDescriptor | None,
        repository: SchemaRepository,
    ) -> Schema:
        schema = Schema(type="object", properties={})
        for member in members:
            if member.ignored:
                continue
            if member.obsolete and self.options.ignore_obsolete_properties:
                continue
            schema.properties[member.name] = self.generate(member.member_type, repository, member=member)
            if self._is_required(member):
                schema.required.add(member.name)
        if extension is not None:
            extension_contract = self.resolver.resolve(extension.member_type)
            value_type = Any
            if extension_contract.kind is ContractKind.DICTIONARY:
                value_type = extension_contract.value_type
            schema.additional_properties_allowed = True
            schema.additional_properties = self.generate(value_type, repository)
        return schema

    def _referenced(
        self,
        contract: ContractDescriptor,
        repository: SchemaRepository,
        build: Callable[[], Schema],
    ) -> Schema:
        existing = repository.lookup(contract.type)
        if existing is not None:
            schema_id = existing.reference.id
            if repository.is_in_flight(schema_id):
                self._emit(ev.SelfReferenceResolved(schema_id=schema_id))
            else:
                self._emit(ev.SchemaReused(schema_id=schema_id))
            return existing

        schema_id = self._schema_id(contract.type)
        reference = repository.register_type(contract.type, schema_id)
        self._emit(ev.SchemaRegistered(schema_id=schema_id, type_name=type_display_name(contract.type)))
        body = build()
        self._filter(body, contract.type, repository)
        repository.add_definition(schema_id, body)
        return reference

    def _subtypes(self, type_: Any) -> list[Any]:
        if not self.options.generate_polymorphic_schemas:
            return []
        return [
            subtype
            for subtype in self.options.subtypes_selector(type_)
            if self.resolver.resolve(subtype).kind is ContractKind.OBJECT
        ]

    def _polymorphic_parent(self, type_: Any) -> Any:
        if not self.options.generate_polymorphic_schemas:
            return None
        cls = get_origin(type_) or type_
        if not isinstance(cls, type):
            return None
        for base in cls.__bases__:
            if base is object or self.resolver.resolve(base).kind is not ContractKind.OBJECT:
                continue
            if cls in self._subtypes(base):
                return base
        return None

    def _schema_id(self, type_: Any) -> str:
        selector = self.options.schema_id_selector or default_schema_id
        return selector(type_)

    def _is_required(self, member: MemberDescriptor) -> bool:
        if member.required_policy in (RequiredPolicy.ALWAYS, RequiredPolicy.ALLOW_NULL):
            return True
        if member.required_policy is RequiredPolicy.DISALLOW_NULL:
            return False
        return has(member.metadata, Required)

    def _is_nullable(self, member: MemberDescriptor) -> bool:
        if member.required_policy in (RequiredPolicy.ALWAYS, RequiredPolicy.DISALLOW_NULL):
            return False
        if member.required_policy is RequiredPolicy.ALLOW_NULL:
            return True
        if has(member.metadata, Required) or has(member.metadata, NotNull):
            return False
        return member.nullable

    def _filter(
        self,
        schema: Schema,
        type_: Any,
        repository: SchemaRepository,
        member: MemberDescriptor | None = None,
    ) -> None:
        if not self.options.schema_filters:
            return
        context = SchemaFilterContext(type=type_, generator=self, repository=repository, member=member)
        apply_filters(self.options.schema_filters, schema, context)

    def _emit(self, event: ev.SchemagenEvent) -> None:
        if self.on_event is not None:
            self.on_event(event)
