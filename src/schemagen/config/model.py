from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from schemagen.contracts.base import NAMING_STRATEGIES


class FilterSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: str
    with_: dict[str, Any] = Field(default_factory=dict, alias="with")


class GeneratorSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inline_enums: bool = False
    polymorphic_schemas: bool = False
    discriminator: str = "$type"
    all_of_references: bool = False
    ignore_obsolete: bool = False
    filters: list[FilterSpec] = Field(default_factory=list)

    @field_validator("filters", mode="before")
    @classmethod
    def _expand_filter_names(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [{"type": item} if isinstance(item, str) else item for item in value]


class SerializerSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    string_enums: bool = False
    enum_naming: str | None = None
    property_naming: str | None = None

    @field_validator("enum_naming", "property_naming")
    @classmethod
    def _known_naming(cls, value: str | None) -> str | None:
        if value is not None and value not in NAMING_STRATEGIES:
            known = ", ".join(sorted(NAMING_STRATEGIES))
            raise ValueError(f"Unknown naming strategy {value!r}. Expected one of: {known}")
        return value


class OutputSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format: Literal["openapi", "jsonschema"] = "openapi"
    path: str = "build/schema/{id}.json"


class GeneratorConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str = "v1"
    generator: GeneratorSection = Field(default_factory=GeneratorSection)
    serializer: SerializerSection = Field(default_factory=SerializerSection)
    output: OutputSection = Field(default_factory=OutputSection)

    @model_validator(mode="after")
    def _validate_config(self) -> "GeneratorConfig":
        if self.version != "v1":
            raise ValueError("Only version v1 is supported.")
        if not self.generator.discriminator.strip():
            raise ValueError("generator.discriminator must not be empty.")
        return self
