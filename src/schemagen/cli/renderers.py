from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from rich import box
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from schemagen import __version__
from schemagen.core import events as ev
from schemagen.core.stages import GENERATE_STAGES

RULE_WIDTH = 64
RULE_LINE = "-" * RULE_WIDTH
STATUS_GLYPHS = {
    "pending": "⏸",
    "running": "⠋",
    "success": "✅",
    "failed": "❌",
    "skipped": "⏭",
}


def run_events(events: Iterable[ev.SchemagenEvent], renderer: "Renderer") -> int:
    exit_code = 0
    for event in events:
        renderer.handle(event)
        if isinstance(event, ev.CommandCompleted):
            exit_code = event.exit_code
    renderer.close()
    return exit_code


class Renderer:
    def handle(self, event: ev.SchemagenEvent) -> None:  # noqa: D401
        """Handle a single event."""

    def close(self) -> None:
        return None


class GenerateRichRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self.is_tty = console.is_terminal
        self.stage_status = {name: "pending" for name, _ in GENERATE_STAGES}
        self.stage_elapsed: dict[str, float] = {}
        self.definitions: list[str] = []
        self.filters: list[ev.FilterResolved] = []
        self._live: Live | None = None
        self._stage_failure: ev.StageFailed | None = None
        self._document: ev.DocumentBuilt | None = None
        self._written: ev.FileWritten | None = None

    def handle(self, event: ev.SchemagenEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            self.console.print(f"Generating schema for {_target(event)}")
            if self.is_tty:
                self._live = Live(self._render(), console=self.console, refresh_per_second=10)
                self._live.__enter__()
            return
        if isinstance(event, ev.StageStarted):
            self.stage_status[event.stage_id] = "running"
            self._refresh()
            return
        if isinstance(event, ev.StageCompleted):
            self.stage_status[event.stage_id] = event.status
            self.stage_elapsed[event.stage_id] = event.duration_ms
            self._refresh()
            return
        if isinstance(event, ev.StageFailed):
            self.stage_status[event.stage_id] = "failed"
            self.stage_elapsed[event.stage_id] = event.duration_ms
            self._stage_failure = event
            self._refresh()
            return
        if isinstance(event, ev.FilterResolved):
            self.filters.append(event)
            return
        if isinstance(event, ev.DocumentBuilt):
            self._document = event
            self.definitions = list(event.definitions)
            return
        if isinstance(event, ev.FileWritten):
            self._written = event
            return
        if isinstance(event, ev.CommandCompleted):
            self._finish(event)

    def close(self) -> None:
        if self._live:
            self._live.__exit__(None, None, None)
            self._live = None

    def _finish(self, event: ev.CommandCompleted) -> None:
        self.close()
        if not event.ok:
            if self._stage_failure:
                self.console.print(_stage_failure_panel(self._stage_failure))
            return
        if not self.is_tty:
            self.console.print(self._render())
        if self.definitions:
            self.console.print(_definitions_table(self.definitions))
        lines = [f"Format:      {self._document.output_format if self._document else ''}"]
        lines.append(f"Definitions: {len(self.definitions)}")
        if self.filters:
            lines.append(f"Filters:     {', '.join(item.type_key for item in self.filters)}")
        if self._written:
            lines.append(f"Path:        {self._written.path}")
            lines.append(f"Size:        {_format_bytes(self._written.bytes)}")
        else:
            lines.append("Path:        (not written)")
        self.console.print("[green]✅ Schema generated[/green]")
        self.console.print(Panel("\n".join(lines), title="Schema output", box=box.ROUNDED, title_align="left"))

    def _refresh(self) -> None:
        if self._live:
            self._live.update(self._render())

    def _render(self) -> Group:
        total = len(GENERATE_STAGES)
        stage_table = Table(show_header=True, box=box.MINIMAL, show_lines=False)
        stage_table.add_column("#", justify="right", style="dim")
        stage_table.add_column("Stage")
        stage_table.add_column("Status")
        stage_table.add_column("Time", justify="right")
        for index, (stage_id, label) in enumerate(GENERATE_STAGES, start=1):
            status = self.stage_status.get(stage_id, "pending")
            elapsed = self.stage_elapsed.get(stage_id)
            status_text = f"{STATUS_GLYPHS.get(status, '?')} {status}"
            duration = _format_duration(elapsed) if elapsed is not None else ""
            stage_table.add_row(f"{index}/{total}", label, status_text, duration)
        return Group(Panel(stage_table, title="Stages", box=box.ROUNDED, title_align="left"))


class GeneratePlainRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._stage_failure: ev.StageFailed | None = None
        self._document: ev.DocumentBuilt | None = None
        self._written: ev.FileWritten | None = None

    def handle(self, event: ev.SchemagenEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            self.console.print(f"Generating schema for {_target(event)}")
            return
        if isinstance(event, ev.StageStarted):
            label = _stage_label(event.stage_id, GENERATE_STAGES)
            index = _stage_index(event.stage_id, GENERATE_STAGES)
            self.console.print(_format_stage_start_line(index, label, len(GENERATE_STAGES)))
            return
        if isinstance(event, ev.StageCompleted):
            label = _stage_label(event.stage_id, GENERATE_STAGES)
            index = _stage_index(event.stage_id, GENERATE_STAGES)
            self.console.print(
                _format_stage_line(index, label, event.status, event.duration_ms, len(GENERATE_STAGES))
            )
            return
        if isinstance(event, ev.StageFailed):
            label = _stage_label(event.stage_id, GENERATE_STAGES)
            index = _stage_index(event.stage_id, GENERATE_STAGES)
            line = _format_stage_line(index, label, "failed", event.duration_ms, len(GENERATE_STAGES))
            details = []
            if event.message:
                details.append(f"FAIL: {event.message}")
            if event.hint:
                details.append(f"HINT: {event.hint}")
            if details:
                line = f"{line}\n" + "\n".join(details)
            self.console.print(line, markup=False)
            self._stage_failure = event
            return
        if isinstance(event, ev.FilterResolved):
            self.console.print(f"Filter OK: {event.type_key} ({event.impl})")
            return
        if isinstance(event, ev.DocumentBuilt):
            self._document = event
            return
        if isinstance(event, ev.FileWritten):
            self._written = event
            return
        if isinstance(event, ev.CommandCompleted):
            self._finish(event)

    def _finish(self, event: ev.CommandCompleted) -> None:
        if not event.ok:
            if self._stage_failure:
                self.console.print(f"Error: {self._stage_failure.message}", markup=False)
            return
        definitions = self._document.definitions if self._document else []
        for schema_id in definitions:
            self.console.print(f"DEFINITION {schema_id}")
        if self._written:
            self.console.print(f"SCHEMA OK {self._written.path} definitions={len(definitions)}")
        else:
            self.console.print(f"SCHEMA OK (not written) definitions={len(definitions)}")


class GenerateJsonRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._stages: dict[str, str] = {}
        self._errors: list[dict[str, Any]] = []
        self._document: dict[str, Any] | None = None
        self._path: str | None = None

    def handle(self, event: ev.SchemagenEvent) -> None:
        if isinstance(event, ev.StageCompleted):
            self._stages[event.stage_id] = event.status
            return
        if isinstance(event, ev.StageFailed):
            self._stages[event.stage_id] = "failed"
            self._errors.append(
                {"stage": event.stage_id, "code": event.error_code, "message": event.message}
            )
            return
        if isinstance(event, ev.DocumentBuilt):
            self._document = event.document
            return
        if isinstance(event, ev.FileWritten):
            self._path = str(event.path) if event.path else None
            return
        if isinstance(event, ev.CommandCompleted):
            payload = {
                "ok": event.ok,
                "stages": self._stages,
                "errors": self._errors,
                "path": self._path,
                "document": self._document,
            }
            self.console.print(
                json.dumps(payload, indent=2, sort_keys=True, default=str),
                markup=False,
                highlight=False,
                soft_wrap=True,
            )


class ListPluginsRichRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console

    def handle(self, event: ev.SchemagenEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.PluginsDiscovered):
            table = Table(title=f"{event.kind} plugins", box=box.ROUNDED, title_justify="left")
            table.add_column("TYPE", style="bold")
            table.add_column("IMPL")
            for plugin in event.plugins:
                table.add_row(plugin["type_key"], plugin["impl"])
            self.console.print(table)


class ListPluginsPlainRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console

    def handle(self, event: ev.SchemagenEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.PluginsDiscovered):
            self.console.print(f"{event.kind} plugins:")
            for plugin in event.plugins:
                self.console.print(f"- {plugin['type_key']}: {plugin['impl']}")


class ListPluginsJsonRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._plugins: dict[str, list[dict[str, str]]] = {}

    def handle(self, event: ev.SchemagenEvent) -> None:
        if isinstance(event, ev.PluginsDiscovered):
            self._plugins[event.kind] = event.plugins
        if isinstance(event, ev.CommandCompleted):
            self.console.print(
                json.dumps({"ok": event.ok, "plugins": self._plugins}, indent=2, sort_keys=True),
                markup=False,
                soft_wrap=True,
            )


def _format_duration(elapsed_ms: float) -> str:
    if elapsed_ms < 1000:
        return f"{elapsed_ms:.0f}ms"
    seconds = elapsed_ms / 1000
    if seconds < 10:
        return f"{seconds:.2f}s"
    return f"{seconds:.1f}s"


def _format_bytes(num: int) -> str:
    size = float(num)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024 or unit == "GB":
            if unit == "B":
                return f"{size:.0f} {unit}"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _print_header(console: Console, event: ev.CommandStarted) -> None:
    project = event.project_dir or Path(".")
    config = event.config_path or Path("schemagen.yaml")
    console.print(f"schemagen v{__version__} | project: {project} | config: {config}\n{RULE_LINE}")


def _target(event: ev.CommandStarted) -> str:
    if event.options and event.options.get("target"):
        return str(event.options["target"])
    return "?"


def _format_stage_line(
    index: int,
    label: str,
    status: str,
    elapsed_ms: float | None,
    total: int,
) -> str:
    glyph = STATUS_GLYPHS.get(status, "?")
    duration = f"  {_format_duration(elapsed_ms)}" if elapsed_ms is not None else ""
    padding = "." * max(2, 28 - len(label))
    return f"[{index}/{total}] {label} {padding} {glyph} {_status_word(status)}{duration}"


def _format_stage_start_line(index: int, label: str, total: int) -> str:
    padding = "." * max(2, 28 - len(label))
    return f"[{index}/{total}] {label} {padding} START"


def _stage_label(stage_id: str, mapping: list[tuple[str, str]]) -> str:
    for key, label in mapping:
        if key == stage_id:
            return label
    return stage_id


def _stage_index(stage_id: str, mapping: list[tuple[str, str]]) -> int:
    for index, (key, _label) in enumerate(mapping, start=1):
        if key == stage_id:
            return index
    return 0


def _status_word(status: str) -> str:
    return {
        "success": "OK",
        "failed": "FAIL",
        "skipped": "SKIP",
    }.get(status, status.upper())


def _definitions_table(definitions: Iterable[str]) -> Table:
    table = Table(title="Definitions", show_header=True, box=box.MINIMAL, title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="bold")
    for index, schema_id in enumerate(definitions, start=1):
        table.add_row(str(index), schema_id)
    return table


def _stage_failure_panel(event: ev.StageFailed) -> Panel:
    body = "\n".join(
        [
            f"stage: {event.stage_id}",
            f"code:  {event.error_code}",
            f"error: {event.message}",
        ]
    )
    if event.hint:
        body = "\n".join([body, f"hint:  {event.hint}"])
    return Panel(Text(body), title="Generation failed", box=box.ROUNDED, title_align="left")
