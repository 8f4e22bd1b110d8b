from __future__ import annotations

import collections.abc
import datetime
import decimal
import io
import typing
import uuid
from typing import Any, Optional

import pytest

from sample_types import (
    AnnotatedEnum,
    ComplexType,
    ConstructedType,
    ContainingType,
    CustomerModel,
    DataAnnotatedType,
    DataAnnotatedViaMetadataType,
    DictionaryOfSelf,
    Forest,
    GenericType,
    IndexedType,
    IntEnum,
    JsonExtensionDataAnnotatedType,
    JsonIgnoreAnnotatedType,
    JsonObjectAnnotatedType,
    JsonPropertyAnnotatedType,
    JsonRequiredAnnotatedType,
    ListOfSelf,
    LongEnum,
    Namespace1,
    Namespace2,
    Page,
    PolymorphicBase,
    PolymorphicContainer,
    PolymorphicSubType1,
    SelfReferencingType,
    StringConvertedEnum,
    SubType1,
    TypedExtensionDataType,
    TypeWithConflictingIds,
    TypeWithNullableProperties,
    TypeWithObsoleteProperty,
    TypeWithOverriddenProperty,
    TypeWithRestrictedProperties,
    WideEnum,
)
from schemagen.contracts.base import ContractResolverSettings, camel_case
from schemagen.contracts.default import DefaultContractResolver
from schemagen.contracts.primitives import BinaryContent, Float32, Int64, UInt64, Version
from schemagen.core import events as ev
from schemagen.generator.core import SchemaGenerator
from schemagen.generator.filters import SchemaFilterContext
from schemagen.generator.options import SchemaGeneratorOptions
from schemagen.schema.model import Schema
from schemagen.schema.repository import SchemaIdConflictError, SchemaRepository


def _subject(settings: ContractResolverSettings | None = None, **options: Any) -> SchemaGenerator:
    return SchemaGenerator(SchemaGeneratorOptions(**options), DefaultContractResolver(settings))


def _generate(type_: Any, **options: Any) -> tuple[Schema, SchemaRepository]:
    repository = SchemaRepository()
    schema = _subject(**options).generate(type_, repository)
    return schema, repository


def _body(type_: Any, **options: Any) -> Schema:
    reference, repository = _generate(type_, **options)
    assert reference.reference is not None
    return repository.schemas[reference.reference.id]


class VendorExtensionFilter:
    def apply(self, schema: Schema, context: SchemaFilterContext) -> None:
        schema.extensions["X-property1"] = "value"


class RecursiveCallFilter:
    def apply(self, schema: Schema, context: SchemaFilterContext) -> None:
        if context.type is ComplexType and context.member is None:
            schema.properties["self"] = context.generator.generate(ComplexType, context.repository)


@pytest.mark.parametrize("type_", [BinaryContent, io.BytesIO, io.BufferedReader, typing.BinaryIO])
def test_generate_file_schema_for_binary_types(type_: Any) -> None:
    schema, _ = _generate(type_)

    assert schema.type == "string"
    assert schema.format == "binary"


@pytest.mark.parametrize(
    ("type_", "expected_type", "expected_format"),
    [
        (bool, "boolean", None),
        (int, "integer", "int32"),
        (Int64, "integer", "int64"),
        (UInt64, "integer", "int64"),
        (float, "number", "double"),
        (Float32, "number", "float"),
        (decimal.Decimal, "number", "double"),
        (str, "string", None),
        (bytes, "string", "byte"),
        (datetime.datetime, "string", "date-time"),
        (datetime.date, "string", "date"),
        (datetime.time, "string", "time"),
        (datetime.timedelta, "string", "date-span"),
        (uuid.UUID, "string", "uuid"),
        (Version, "string", None),
        (Optional[int], "integer", "int32"),
        (int | None, "integer", "int32"),
    ],
)
def test_generate_primitive_schema(type_: Any, expected_type: str, expected_format: str | None) -> None:
    schema, repository = _generate(type_)

    assert schema.type == expected_type
    assert schema.format == expected_format
    assert len(repository) == 0


def test_generate_primitive_schema_marks_optional_as_nullable() -> None:
    schema, _ = _generate(Optional[int])
    assert schema.nullable is True

    schema, _ = _generate(int)
    assert schema.nullable is False


@pytest.mark.parametrize(
    ("type_", "expected_id", "expected_format", "expected_values"),
    [
        (IntEnum, "IntEnum", "int32", [2, 4, 8]),
        (Optional[IntEnum], "IntEnum", "int32", [2, 4, 8]),
        (LongEnum, "LongEnum", "int64", [2, 4, 8]),
        (WideEnum, "WideEnum", "int64", [1, 2**40]),
    ],
)
def test_generate_referenced_enum_schema(
    type_: Any,
    expected_id: str,
    expected_format: str,
    expected_values: list[int],
) -> None:
    reference, repository = _generate(type_)

    assert reference.reference.id == expected_id
    schema = repository.schemas[expected_id]
    assert schema.type == "integer"
    assert schema.format == expected_format
    assert schema.enum == expected_values


@pytest.mark.parametrize(
    ("type_", "expected_type", "expected_format"),
    [
        (dict[str, int], "integer", "int32"),
        (typing.Dict[str, bool], "boolean", None),
        (collections.abc.Mapping[str, str], "string", None),
    ],
)
def test_generate_dictionary_schema(type_: Any, expected_type: str, expected_format: str | None) -> None:
    schema, _ = _generate(type_)

    assert schema.type == "object"
    assert schema.additional_properties_allowed is True
    assert schema.additional_properties.type == expected_type
    assert schema.additional_properties.format == expected_format


def test_generate_object_schema_for_dictionary_with_enum_keys() -> None:
    schema, _ = _generate(dict[IntEnum, int])

    assert schema.type == "object"
    assert list(schema.properties) == ["VALUE2", "VALUE4", "VALUE8"]
    assert schema.properties["VALUE2"].type == "integer"


def test_generate_referenced_dictionary_schema_for_self_referencing_dictionary() -> None:
    reference, repository = _generate(DictionaryOfSelf)

    assert reference.reference.id == "DictionaryOfSelf"
    schema = repository.schemas["DictionaryOfSelf"]
    assert schema.type == "object"
    assert schema.additional_properties.reference.id == "DictionaryOfSelf"


def test_generate_referenced_dictionary_schema_for_nested_self_reference() -> None:
    reference, repository = _generate(Forest)

    assert reference.reference.id == "Forest"
    assert repository.to_dict() == {
        "Forest": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {"$ref": "#/components/schemas/Forest"},
            },
        }
    }


@pytest.mark.parametrize(
    ("type_", "expected_item_type", "expected_item_format"),
    [
        (list[int], "integer", "int32"),
        (typing.List[str], "string", None),
        (tuple[int, ...], "integer", "int32"),
        (collections.abc.Sequence[float], "number", "double"),
        (list[list[int]], "array", None),
    ],
)
def test_generate_array_schema(type_: Any, expected_item_type: str, expected_item_format: str | None) -> None:
    schema, _ = _generate(type_)

    assert schema.type == "array"
    assert schema.items.type == expected_item_type
    assert schema.items.format == expected_item_format
    assert schema.unique_items is None


@pytest.mark.parametrize("type_", [set[str], frozenset[int], collections.abc.Set[str]])
def test_generate_array_schema_sets_unique_items_for_sets(type_: Any) -> None:
    schema, _ = _generate(type_)

    assert schema.type == "array"
    assert schema.unique_items is True


def test_generate_referenced_array_schema_for_self_referencing_list() -> None:
    reference, repository = _generate(ListOfSelf)

    assert reference.reference.id == "ListOfSelf"
    schema = repository.schemas["ListOfSelf"]
    assert schema.type == "array"
    assert schema.items.reference.id == "ListOfSelf"


@pytest.mark.parametrize("type_", [object, Any])
def test_generate_empty_object_schema_for_untyped_values(type_: Any) -> None:
    schema, _ = _generate(type_)

    assert schema.to_dict() == {"type": "object", "properties": {}}


def test_generate_array_of_untyped_items() -> None:
    schema, _ = _generate(list[Any])

    assert schema.type == "array"
    assert schema.items.type == "object"
    assert schema.items.properties == {}


@pytest.mark.parametrize(
    ("type_", "expected_id", "expected_properties"),
    [
        (ComplexType, "ComplexType", ["property1", "property2", "property3"]),
        (GenericType[bool, int], "BoolIntGenericType", ["property1", "property2"]),
        (ContainingType.NestedType, "NestedType", ["property1"]),
        (Page[int], "IntPage", ["items", "total"]),
    ],
)
def test_generate_referenced_object_schema(type_: Any, expected_id: str, expected_properties: list[str]) -> None:
    reference, repository = _generate(type_)

    assert reference.reference.id == expected_id
    schema = repository.schemas[expected_id]
    assert schema.type == "object"
    assert list(schema.properties) == expected_properties


def test_generate_substitutes_generic_arguments() -> None:
    schema = _body(GenericType[bool, int])

    assert schema.properties["property1"].type == "boolean"
    assert schema.properties["property2"].type == "integer"


def test_generate_includes_inherited_properties() -> None:
    schema = _body(SubType1)

    assert list(schema.properties) == ["property1", "base_property"]


def test_generate_excludes_indexer_methods() -> None:
    schema = _body(IndexedType)

    assert list(schema.properties) == ["property1"]


def test_generate_sets_read_only_and_write_only_flags() -> None:
    schema = _body(TypeWithRestrictedProperties)

    assert schema.properties["read_only_property"].read_only is True
    assert schema.properties["read_only_property"].write_only is False
    assert schema.properties["read_only_property"].description == "Value computed on read."
    assert schema.properties["write_only_property"].read_only is False
    assert schema.properties["write_only_property"].write_only is True
    assert schema.properties["read_write_property"].read_only is False
    assert schema.properties["read_write_property"].write_only is False
    assert schema.properties["cached"].read_only is True
    assert schema.properties["cached"].type == "number"


def test_generate_does_not_mark_constructor_bound_property_read_only() -> None:
    schema = _body(ConstructedType)

    assert schema.properties["identifier"].read_only is False


@pytest.mark.parametrize(
    ("property_name", "expected_nullable"),
    [
        ("int_property", False),
        ("string_property", False),
        ("nullable_int_property", True),
        ("union_string_property", True),
        ("any_property", True),
    ],
)
def test_generate_sets_nullable_from_declared_type(property_name: str, expected_nullable: bool) -> None:
    schema = _body(TypeWithNullableProperties)

    assert schema.properties[property_name].nullable is expected_nullable


def test_generate_sets_validation_properties_from_annotations() -> None:
    schema = _body(DataAnnotatedType)

    assert schema.properties["int_with_range"].minimum == 1
    assert schema.properties["int_with_range"].maximum == 12
    assert schema.properties["string_with_regex"].pattern == r"^[3-6]?\d{12,15}$"
    assert schema.properties["string_with_length"].min_length == 5
    assert schema.properties["string_with_length"].max_length == 10
    assert schema.properties["array_with_min_max_length"].min_items == 1
    assert schema.properties["array_with_min_max_length"].max_items == 3
    assert schema.required == {"string_with_required"}
    assert schema.properties["string_with_required"].nullable is False
    assert schema.properties["string_with_data_type_date"].format == "date"
    assert schema.properties["string_with_data_type_date_time"].format == "date-time"
    assert schema.properties["string_with_data_type_password"].format == "password"
    assert schema.properties["string_with_default_value"].default == "foobar"


def test_generate_sets_validation_properties_from_metadata_type() -> None:
    schema = _body(DataAnnotatedViaMetadataType)

    assert schema.properties["int_with_range"].minimum == 1
    assert schema.properties["int_with_range"].maximum == 12
    assert schema.properties["string_with_regex"].pattern == r"^[3-6]?\d{12,15}$"
    assert schema.required == {"string_with_required"}


def test_generate_uses_custom_type_mappings() -> None:
    schema, repository = _generate(ComplexType, custom_type_mappings={ComplexType: lambda: Schema(type="string")})

    assert schema.type == "string"
    assert len(repository) == 0


def test_generate_applies_schema_filters_to_definitions() -> None:
    schema = _body(ComplexType, schema_filters=[VendorExtensionFilter()])

    assert schema.extensions["X-property1"] == "value"
    assert schema.to_dict()["X-property1"] == "value"


def test_generate_applies_schema_filters_to_inline_schemas() -> None:
    schema, _ = _generate(list[int], schema_filters=[VendorExtensionFilter()])

    assert schema.extensions["X-property1"] == "value"
    assert schema.items.extensions["X-property1"] == "value"


def test_generate_marks_obsolete_properties_deprecated() -> None:
    schema = _body(TypeWithObsoleteProperty)

    assert schema.properties["obsolete_property"].deprecated is True
    assert schema.properties["current_property"].deprecated is False


def test_generate_ignores_obsolete_properties_when_configured() -> None:
    schema = _body(TypeWithObsoleteProperty, ignore_obsolete_properties=True)

    assert list(schema.properties) == ["current_property"]


def test_generate_uses_schema_id_selector() -> None:
    reference, repository = _generate(
        ComplexType,
        schema_id_selector=lambda type_: f"{type_.__module__}.{type_.__qualname__}",
    )

    expected = f"{ComplexType.__module__}.ComplexType"
    assert reference.reference.id == expected
    assert expected in repository


def test_generate_polymorphic_schemas() -> None:
    schema, repository = _generate(PolymorphicBase, generate_polymorphic_schemas=True)

    assert [node.reference.id for node in schema.one_of] == ["PolymorphicSubType1", "PolymorphicSubType2"]

    base = repository.schemas["PolymorphicBase"]
    assert list(base.properties) == ["$type", "base_property"]
    assert base.required == {"$type"}
    assert base.discriminator.property_name == "$type"
    assert set(base.discriminator.mapping) == {"PolymorphicSubType1", "PolymorphicSubType2"}

    subtype = repository.schemas["PolymorphicSubType1"]
    assert len(subtype.all_of) == 2
    assert subtype.all_of[0].reference.id == "PolymorphicBase"
    assert list(subtype.all_of[1].properties) == ["property1"]


def test_generate_polymorphic_subtype_returns_its_own_reference() -> None:
    reference, repository = _generate(PolymorphicSubType1, generate_polymorphic_schemas=True)

    assert reference.reference.id == "PolymorphicSubType1"
    assert "PolymorphicBase" in repository


def test_generate_polymorphic_member_uses_one_of_and_custom_discriminator() -> None:
    schema = _body(PolymorphicContainer, generate_polymorphic_schemas=True, discriminator_name="kind")

    item = schema.properties["item"]
    assert len(item.one_of) == 2
    assert item.nullable is True

    payload = schema.to_dict()
    assert payload["properties"]["item"]["nullable"] is True


def test_generate_polymorphic_discriminator_renders_reference_mapping() -> None:
    _, repository = _generate(PolymorphicBase, generate_polymorphic_schemas=True, discriminator_name="kind")

    payload = repository.schemas["PolymorphicBase"].to_dict()
    assert payload["discriminator"] == {
        "propertyName": "kind",
        "mapping": {
            "PolymorphicSubType1": "#/components/schemas/PolymorphicSubType1",
            "PolymorphicSubType2": "#/components/schemas/PolymorphicSubType2",
        },
    }
    assert payload["required"] == ["kind"]


def test_generate_wraps_references_in_all_of_when_configured() -> None:
    schema = _body(SelfReferencingType, use_all_of_to_extend_reference_schemas=True)

    another = schema.properties["another"]
    assert len(another.all_of) == 1
    assert another.all_of[0].reference.id == "SelfReferencingType"
    assert another.nullable is True


def test_generate_keeps_bare_references_by_default() -> None:
    schema = _body(SelfReferencingType)

    assert schema.properties["another"].to_dict() == {"$ref": "#/components/schemas/SelfReferencingType"}


def test_generate_inline_enums_when_configured() -> None:
    schema, repository = _generate(IntEnum, use_inline_definitions_for_enums=True)

    assert schema.type == "integer"
    assert schema.format == "int32"
    assert schema.enum == [2, 4, 8]
    assert len(repository) == 0


def test_generate_handles_nested_types() -> None:
    schema = _body(ContainingType)

    assert schema.properties["property1"].reference.id == "NestedType"


def test_generate_handles_overridden_properties() -> None:
    schema = _body(TypeWithOverriddenProperty)

    assert list(schema.properties) == ["base_property"]
    assert schema.properties["base_property"].type == "integer"
    assert schema.properties["base_property"].nullable is True


def test_generate_handles_recursion_from_within_a_filter() -> None:
    schema = _body(ComplexType, schema_filters=[RecursiveCallFilter()])

    assert schema.properties["self"].reference.id == "ComplexType"


def test_generate_errors_on_conflicting_schema_ids() -> None:
    repository = SchemaRepository()

    with pytest.raises(SchemaIdConflictError, match="ConflictingType"):
        _subject().generate(TypeWithConflictingIds, repository)

    assert repository.type_for("ConflictingType") is Namespace1.ConflictingType
    assert list(repository.schemas["ConflictingType"].properties) == ["property1"]


def test_generate_errors_on_conflicting_schema_ids_across_calls() -> None:
    repository = SchemaRepository()
    generator = _subject()
    generator.generate(Namespace1.ConflictingType, repository)
    snapshot = repository.to_dict()

    with pytest.raises(SchemaIdConflictError) as excinfo:
        generator.generate(Namespace2.ConflictingType, repository)

    assert excinfo.value.existing is Namespace1.ConflictingType
    assert excinfo.value.conflicting is Namespace2.ConflictingType
    assert repository.type_for("ConflictingType") is Namespace1.ConflictingType
    assert repository.to_dict() == snapshot
    assert len(repository) == 1


def test_generate_is_idempotent_for_a_shared_repository() -> None:
    repository = SchemaRepository()
    generator = _subject()

    first = generator.generate(ComplexType, repository)
    snapshot = repository.to_dict()
    second = generator.generate(ComplexType, repository)

    assert first == second
    assert repository.to_dict() == snapshot
    assert len(repository) == 1


@pytest.mark.parametrize(
    ("naming", "expected"),
    [
        (None, ["VALUE2", "VALUE4", "VALUE8"]),
        (camel_case, ["value2", "value4", "value8"]),
    ],
)
def test_generate_honors_string_enum_setting(naming: Any, expected: list[str]) -> None:
    settings = ContractResolverSettings(string_enums=True, enum_naming=naming)
    repository = SchemaRepository()

    reference = _subject(settings).generate(IntEnum, repository)

    schema = repository.schemas[reference.reference.id]
    assert schema.type == "string"
    assert schema.format is None
    assert schema.enum == expected


def test_generate_honors_string_enum_decorator() -> None:
    schema = _body(StringConvertedEnum)

    assert schema.type == "string"
    assert schema.enum == ["FIRST_VALUE", "SECOND_VALUE"]


def test_generate_uses_string_values_of_str_enums() -> None:
    schema = _body(AnnotatedEnum)

    assert schema.type == "string"
    assert schema.enum == ["AE-FOO", "AE-BAR"]


def test_generate_honors_json_ignore() -> None:
    schema = _body(JsonIgnoreAnnotatedType)

    assert list(schema.properties) == ["string_without_json_ignore"]


def test_generate_honors_json_property_name() -> None:
    schema = _body(JsonPropertyAnnotatedType)

    assert list(schema.properties) == ["string-with-json-property-name", "int_with_required_default"]
    assert schema.required == set()


def test_generate_honors_json_property_required_policies() -> None:
    schema = _body(JsonRequiredAnnotatedType)

    assert schema.to_dict()["required"] == [
        "string_with_required_allow_null",
        "string_with_required_always",
    ]
    assert schema.properties["string_with_required_default"].nullable is True
    assert schema.properties["string_with_required_disallow_null"].nullable is False
    assert schema.properties["string_with_required_always"].nullable is False
    assert schema.properties["string_with_required_allow_null"].nullable is True


def test_generate_honors_json_object_item_required() -> None:
    schema = _body(JsonObjectAnnotatedType)

    assert schema.required == {"string_with_no_annotation", "string_with_required_allow_null"}
    assert schema.properties["string_with_no_annotation"].nullable is False
    assert schema.properties["string_with_required_allow_null"].nullable is True


def test_generate_maps_extension_data_to_additional_properties() -> None:
    schema = _body(JsonExtensionDataAnnotatedType)

    assert list(schema.properties) == ["property1"]
    assert schema.additional_properties.type == "object"
    assert schema.to_dict()["additionalProperties"] == {"type": "object", "properties": {}}


def test_generate_uses_extension_data_value_type() -> None:
    schema = _body(TypedExtensionDataType)

    assert schema.additional_properties.type == "integer"


def test_generate_reads_pydantic_models() -> None:
    schema = _body(CustomerModel)

    assert list(schema.properties) == ["name", "nickname", "age", "code", "emailAddress", "display_name"]
    assert schema.required == {"name"}
    assert schema.properties["name"].nullable is False
    assert schema.properties["nickname"].nullable is True
    assert schema.properties["age"].minimum == 0
    assert schema.properties["age"].maximum == 150
    assert schema.properties["code"].pattern == "^[A-Z]+$"
    assert schema.properties["code"].min_length == 2
    assert schema.properties["code"].max_length == 8
    assert schema.properties["display_name"].read_only is True


def test_generate_emits_repository_events() -> None:
    seen: list[ev.SchemagenEvent] = []
    generator = SchemaGenerator(on_event=seen.append)
    repository = SchemaRepository()

    generator.generate(SelfReferencingType, repository)
    generator.generate(SelfReferencingType, repository)

    assert [type(event) for event in seen] == [
        ev.SchemaRegistered,
        ev.SelfReferenceResolved,
        ev.SchemaReused,
    ]
    assert seen[0].schema_id == "SelfReferencingType"
    assert seen[0].level == "DEBUG"
