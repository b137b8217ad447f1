"""Record search and retrieval commands."""

import asyncio
from typing import Annotated

import typer

from entityforge.cli.context import CLIContext
from entityforge.cli.output import OutputFormatter
from entityforge.core.types import SearchOptions


def search_command(
    ctx: typer.Context,
    entity_id: Annotated[str, typer.Argument(help="Entity id")],
    query: Annotated[str | None, typer.Argument(help="Free-text search")] = None,
    page: Annotated[int, typer.Option("--page", "-p", help="1-based page number")] = 1,
    page_size: Annotated[
        int | None, typer.Option("--page-size", "-n", help="Records per page")
    ] = None,
    fields: Annotated[
        list[str] | None,
        typer.Option("--field", "-f", help="Field to show (repeatable)"),
    ] = None,
) -> None:
    """Search records of an entity.

    Quote a word to match it exactly, e.g. '"central"'.

    Examples:
        entityforge search Address main
        entityforge search Address "sq lond" --page 2 --page-size 10
        entityforge search Address '"central"' -f id -f street --json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        forge = cli_ctx.get_forge()
        entity = forge.get_entity(entity_id)
        options = SearchOptions(
            search_string=query, page=page, page_size=page_size or cli_ctx.page_size
        )
        result = asyncio.run(forge.search_data(entity_id, options, selected_fields=fields or None))

        columns = fields or [p.name for p in entity.visible_properties]
        title = f"{entity.plural_name}: {query}" if query else entity.plural_name
        formatter.print_page(title, result, columns)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


def get_command(
    ctx: typer.Context,
    entity_id: Annotated[str, typer.Argument(help="Entity id")],
    primary_key: Annotated[str, typer.Argument(help="Primary key value")],
) -> None:
    """Show one record by primary key."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        forge = cli_ctx.get_forge()
        entity = forge.get_entity(entity_id)
        key: object = primary_key
        if entity.primary_keys and entity.primary_keys[0].python_type is int:
            key = int(primary_key)
        record = asyncio.run(forge.get_record(entity_id, key))

        columns = [p.name for p in entity.visible_properties]
        row = {name: getattr(record, name, None) for name in columns}
        formatter.print_table(f"{entity.display_name} {primary_key}", [row], columns)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
