import typer
import rich_click  # noqa: F401
from .generate import generate
from .list_plugins import list_plugins
from schemagen import __version__

app = typer.Typer(
    name="schemagen",
    help="Generate OpenAPI and JSON Schema definitions from Python types",
    no_args_is_help=True,
)

@app.command("version")
def version() -> None:
    """Show the schemagen version."""
    typer.echo(f"schemagen v{__version__}")

app.command()(generate)
app.command("list-plugins")(list_plugins)
