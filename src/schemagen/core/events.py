from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class SchemagenEvent:
    ts: float = field(default_factory=time.perf_counter)
    level: str = "INFO"
    command: str = ""
    type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _serialize(asdict(self))


@dataclass(frozen=True)
class CommandStarted(SchemagenEvent):
    type: str = "CommandStarted"
    project_dir: Path | None = None
    config_path: Path | None = None
    options: dict[str, Any] | None = None


@dataclass(frozen=True)
class CommandCompleted(SchemagenEvent):
    type: str = "CommandCompleted"
    ok: bool = True
    exit_code: int = 0


@dataclass(frozen=True)
class StageStarted(SchemagenEvent):
    type: str = "StageStarted"
    stage_id: str = ""
    label: str = ""


@dataclass(frozen=True)
class StageCompleted(SchemagenEvent):
    type: str = "StageCompleted"
    stage_id: str = ""
    duration_ms: float = 0.0
    status: str = "success"


@dataclass(frozen=True)
class StageFailed(SchemagenEvent):
    type: str = "StageFailed"
    stage_id: str = ""
    duration_ms: float = 0.0
    error_code: str = ""
    message: str = ""
    hint: str | None = None


@dataclass(frozen=True)
class FilterResolved(SchemagenEvent):
    type: str = "FilterResolved"
    type_key: str = ""
    impl: str = ""


@dataclass(frozen=True)
class SchemaRegistered(SchemagenEvent):
    type: str = "SchemaRegistered"
    level: str = "DEBUG"
    schema_id: str = ""
    type_name: str = ""


@dataclass(frozen=True)
class SchemaReused(SchemagenEvent):
    type: str = "SchemaReused"
    level: str = "DEBUG"
    schema_id: str = ""


@dataclass(frozen=True)
class SelfReferenceResolved(SchemagenEvent):
    type: str = "SelfReferenceResolved"
    level: str = "DEBUG"
    schema_id: str = ""


@dataclass(frozen=True)
class DocumentBuilt(SchemagenEvent):
    type: str = "DocumentBuilt"
    root: dict[str, Any] = field(default_factory=dict)
    definitions: list[str] = field(default_factory=list)
    output_format: str = "openapi"
    document: dict[str, Any] | None = None


@dataclass(frozen=True)
class FileWritten(SchemagenEvent):
    type: str = "FileWritten"
    path: Path | None = None
    bytes: int = 0


@dataclass(frozen=True)
class PluginsDiscovered(SchemagenEvent):
    type: str = "PluginsDiscovered"
    kind: str = ""
    plugins: list[dict[str, Any]] = field(default_factory=list)


def _serialize(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return value
