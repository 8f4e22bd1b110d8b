from __future__ import annotations

import importlib
import sys
import time
from pathlib import Path
from typing import Any, Iterable

from schemagen.config.load import ConfigError, build_generator, load_config
from schemagen.config.model import GeneratorConfig
from schemagen.core import events as ev
from schemagen.schema.document import SchemaDocumentError, build_document, stable_json_text
from schemagen.schema.ids import default_schema_id
from schemagen.schema.model import Schema
from schemagen.schema.repository import SchemaGenerationError, SchemaIdConflictError, SchemaRepository


class TargetImportError(RuntimeError):
    pass


def import_target(target: str, project_dir: Path | None = None) -> Any:
    """Import ``module:Name`` (dotted attribute paths allowed after the colon)."""
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise TargetImportError(f"Target must look like 'module:Name', got {target!r}.")
    if project_dir is not None:
        project = str(project_dir)
        if project not in sys.path:
            sys.path.insert(0, project)
    importlib.invalidate_caches()
    try:
        value: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise TargetImportError(f"Cannot import module {module_name!r}: {exc}") from exc
    for part in attr_path.split("."):
        try:
            value = getattr(value, part)
        except AttributeError as exc:
            raise TargetImportError(f"{module_name!r} has no attribute {attr_path!r}.") from exc
    return value


def generate_events(
    *,
    target: str,
    project_dir: Path,
    config_path: Path | None = None,
    output_format: str | None = None,
    output_path: Path | None = None,
    write: bool = True,
) -> Iterable[ev.SchemagenEvent]:
    project_dir = project_dir.resolve()
    resolved_config = config_path or Path("schemagen.yaml")
    if not resolved_config.is_absolute():
        resolved_config = project_dir / resolved_config

    options = {
        "target": target,
        "format": output_format,
        "out": str(output_path) if output_path else None,
        "write": write,
    }
    yield ev.CommandStarted(
        command="generate",
        project_dir=project_dir,
        config_path=resolved_config,
        options=options,
    )

    yield ev.StageStarted(command="generate", stage_id="load_config", label="Load config")
    started = time.perf_counter()
    try:
        config = load_config(project_dir, config_path)
    except ConfigError as exc:
        yield _failed("load_config", started, "config_error", str(exc))
        yield ev.CommandCompleted(command="generate", ok=False, exit_code=2)
        return
    yield _completed("load_config", started)

    yield ev.StageStarted(command="generate", stage_id="import_target", label="Import target")
    started = time.perf_counter()
    try:
        target_type = import_target(target, project_dir)
    except TargetImportError as exc:
        yield _failed(
            "import_target",
            started,
            "import_error",
            str(exc),
            hint="Targets are resolved relative to --project.",
        )
        yield ev.CommandCompleted(command="generate", ok=False, exit_code=2)
        return
    yield _completed("import_target", started)

    result = _run_stage_generate(config, target_type)
    yield from result.events
    if result.failed:
        yield ev.CommandCompleted(command="generate", ok=False, exit_code=2)
        return
    root, repository = result.value

    yield ev.StageStarted(command="generate", stage_id="build_document", label="Build document")
    started = time.perf_counter()
    output_format = output_format or config.output.format
    try:
        document = build_document(
            root,
            repository,
            output_format=output_format,
            title=getattr(target_type, "__name__", None),
        )
    except SchemaDocumentError as exc:
        yield _failed("build_document", started, "document_error", str(exc))
        yield ev.CommandCompleted(command="generate", ok=False, exit_code=2)
        return
    yield ev.DocumentBuilt(
        command="generate",
        root=root.to_dict(),
        definitions=sorted(repository.schemas),
        output_format=output_format,
        document=document,
    )
    yield _completed("build_document", started)

    if not write:
        yield ev.StageCompleted(
            command="generate",
            stage_id="write_output",
            duration_ms=0.0,
            status="skipped",
        )
        yield ev.CommandCompleted(command="generate", ok=True, exit_code=0)
        return

    yield ev.StageStarted(command="generate", stage_id="write_output", label="Write output")
    started = time.perf_counter()
    destination = _resolve_output_path(project_dir, config, output_path, target_type)
    payload = stable_json_text(document).encode("utf-8")
    try:
        if destination.is_dir():
            raise OSError(f"Output path is a directory: {destination}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(payload)
    except OSError as exc:
        yield _failed("write_output", started, "write_error", f"Failed to write schema: {exc}")
        yield ev.CommandCompleted(command="generate", ok=False, exit_code=2)
        return
    yield ev.FileWritten(command="generate", path=destination, bytes=len(payload))
    yield _completed("write_output", started)
    yield ev.CommandCompleted(command="generate", ok=True, exit_code=0)


class _StageResultWithEvents:
    def __init__(self, events: list[ev.SchemagenEvent], value: Any | None = None, failed: bool = False):
        self.events = events
        self.value = value
        self.failed = failed


def _run_stage_generate(config: GeneratorConfig, target_type: Any) -> _StageResultWithEvents:
    started = time.perf_counter()
    events: list[ev.SchemagenEvent] = [
        ev.StageStarted(command="generate", stage_id="generate_schema", label="Generate schema")
    ]
    try:
        generator = build_generator(config, on_event=events.append)
    except ConfigError as exc:
        events.append(_failed("generate_schema", started, "config_error", str(exc)))
        return _StageResultWithEvents(events=events, failed=True)
    for spec, schema_filter in zip(config.generator.filters, generator.options.schema_filters):
        impl = f"{type(schema_filter).__module__}:{type(schema_filter).__qualname__}"
        events.append(ev.FilterResolved(command="generate", type_key=spec.type, impl=impl))

    repository = SchemaRepository()
    try:
        root: Schema = generator.generate(target_type, repository)
    except SchemaIdConflictError as exc:
        events.append(
            _failed(
                "generate_schema",
                started,
                "id_conflict",
                str(exc),
                hint="Rename one of the types or configure a schema id selector.",
            )
        )
        return _StageResultWithEvents(events=events, failed=True)
    except SchemaGenerationError as exc:
        events.append(_failed("generate_schema", started, "generation_error", str(exc)))
        return _StageResultWithEvents(events=events, failed=True)

    events.append(_completed("generate_schema", started))
    return _StageResultWithEvents(events=events, value=(root, repository))


def _resolve_output_path(project_dir: Path, config: GeneratorConfig, override: Path | None, target_type: Any) -> Path:
    output = override or Path(config.output.path.replace("{id}", default_schema_id(target_type)))
    if not output.is_absolute():
        output = project_dir / output
    return output


def _completed(stage_id: str, started: float) -> ev.StageCompleted:
    return ev.StageCompleted(
        command="generate",
        stage_id=stage_id,
        duration_ms=_elapsed_ms(started),
        status="success",
    )


def _failed(stage_id: str, started: float, error_code: str, message: str, hint: str | None = None) -> ev.StageFailed:
    return ev.StageFailed(
        command="generate",
        stage_id=stage_id,
        duration_ms=_elapsed_ms(started),
        error_code=error_code,
        message=message,
        hint=hint,
    )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
