"""EntityForge CLI - Main entry point."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

import entityforge
from entityforge.cli.context import CLIContext, get_page_size

# Create main Typer app
app = typer.Typer(
    name="entityforge",
    help="EntityForge CLI - inspect and search the entities of a host application",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    app_path: Annotated[
        str | None,
        typer.Option(
            "--app",
            "-a",
            envvar="ENTITYFORGE_APP",
            help="Host application as module:attribute (EntityForge or factory)",
        ),
    ] = None,
    page_size: Annotated[
        int | None,
        typer.Option(
            "--page-size",
            envvar="ENTITYFORGE_PAGE_SIZE",
            help="Default number of records per page",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log metadata resolution and queries",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )

    ctx.obj = CLIContext(
        app_path=app_path,
        json_output=json_output,
        page_size=get_page_size(page_size),
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"EntityForge v{entityforge.__version__}")


# Register command groups
from entityforge.cli.commands import data, entities  # noqa: E402

app.add_typer(entities.app, name="entities")
app.command(name="search")(data.search_command)
app.command(name="get")(data.get_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
