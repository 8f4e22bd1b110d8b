from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML

from schemagen.contracts.base import NAMING_STRATEGIES, ContractResolverSettings
from schemagen.contracts.default import DefaultContractResolver
from schemagen.generator.core import EventSink, SchemaGenerator
from schemagen.generator.options import SchemaGeneratorOptions
from schemagen.plugins.registry import load_filter

from .model import GeneratorConfig

DEFAULT_CONFIG_NAME = "schemagen.yaml"


class ConfigError(RuntimeError):
    pass


_yaml = YAML(typ="safe")


def load_config(project_dir: Path, config_path: Path | None = None) -> GeneratorConfig:
    """Read ``schemagen.yaml``; a missing default file yields the defaults."""
    explicit = config_path is not None
    config_path = config_path or Path(DEFAULT_CONFIG_NAME)
    if not config_path.is_absolute():
        config_path = project_dir / config_path
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Missing config: {config_path}")
        return GeneratorConfig()
    data = _load_yaml(config_path)
    if data is None:
        return GeneratorConfig()
    if not isinstance(data, dict):
        raise ConfigError("Config must be a YAML mapping at the top level.")
    try:
        return GeneratorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def build_generator(config: GeneratorConfig, *, on_event: EventSink | None = None) -> SchemaGenerator:
    filters = []
    for spec in config.generator.filters:
        try:
            filter_cls = load_filter(spec.type)
            filters.append(filter_cls(**spec.with_))
        except (ValueError, TypeError) as exc:
            raise ConfigError(f"Filter {spec.type!r} could not be created: {exc}") from exc

    options = SchemaGeneratorOptions(
        schema_filters=filters,
        use_inline_definitions_for_enums=config.generator.inline_enums,
        generate_polymorphic_schemas=config.generator.polymorphic_schemas,
        discriminator_name=config.generator.discriminator,
        use_all_of_to_extend_reference_schemas=config.generator.all_of_references,
        ignore_obsolete_properties=config.generator.ignore_obsolete,
    )
    settings = ContractResolverSettings(
        string_enums=config.serializer.string_enums,
        enum_naming=_naming(config.serializer.enum_naming),
        property_naming=_naming(config.serializer.property_naming),
    )
    return SchemaGenerator(options, DefaultContractResolver(settings), on_event=on_event)


def _naming(name: str | None) -> Any:
    if name is None:
        return None
    return NAMING_STRATEGIES[name]


def _load_yaml(path: Path) -> Any:
    try:
        return _yaml.load(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ConfigError(f"Failed to parse YAML: {path}") from exc
