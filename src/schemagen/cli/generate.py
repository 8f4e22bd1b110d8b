from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from schemagen.cli.renderers import (
    GenerateJsonRenderer,
    GeneratePlainRenderer,
    GenerateRichRenderer,
    run_events,
)
from schemagen.core.generate import generate_events
from schemagen.schema.document import OUTPUT_FORMATS

console = Console()


def generate(
    target: str = typer.Argument(
        ...,
        help="Type to generate a schema for, as module:Name.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to schemagen.yaml (defaults are used when it is missing).",
    ),
    project: Path = typer.Option(
        Path("."),
        "--project",
        "-p",
        help="Base directory for imports and relative paths.",
    ),
    output_format: str | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Override output.format from config (openapi or jsonschema).",
    ),
    out: Path | None = typer.Option(
        None,
        "--out",
        "-o",
        help="Override output.path from config.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Generate the document without writing it.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show stack traces for unexpected errors.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
) -> None:
    if output_format is not None and output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"Expected one of: {', '.join(OUTPUT_FORMATS)}.",
            param_hint="--format",
        )

    events = generate_events(
        target=target,
        project_dir=project,
        config_path=config,
        output_format=output_format,
        output_path=out,
        write=not dry_run,
    )
    if json_output:
        renderer = GenerateJsonRenderer(console)
    else:
        renderer = GenerateRichRenderer(console) if console.is_terminal else GeneratePlainRenderer(console)

    try:
        exit_code = run_events(events, renderer)
    except Exception as exc:  # noqa: BLE001
        renderer.close()
        if debug:
            raise
        console.print(f"[red]Unexpected error:[/red] {exc}", highlight=False)
        raise typer.Exit(code=2)
    raise typer.Exit(code=exit_code)
