from __future__ import annotations

import typer
from rich.console import Console

from schemagen.cli.renderers import (
    ListPluginsJsonRenderer,
    ListPluginsPlainRenderer,
    ListPluginsRichRenderer,
    run_events,
)
from schemagen.core.list_plugins import list_plugins_events

console = Console()


def list_plugins(
    names: list[str] | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Only show the schema filter registered under this name. Repeatable.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
) -> None:
    """List the schema filters installed under the schemagen.filters entry point group."""
    events = list_plugins_events(names=names or ())
    if json_output:
        renderer = ListPluginsJsonRenderer(console)
    else:
        renderer = ListPluginsRichRenderer(console) if console.is_terminal else ListPluginsPlainRenderer(console)
    exit_code = run_events(events, renderer)
    raise typer.Exit(code=exit_code)
