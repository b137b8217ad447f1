"""Entity metadata commands."""

from typing import Annotated

import typer

from entityforge.cli.context import CLIContext
from entityforge.cli.output import OutputFormatter

# Create entities subcommand group
app = typer.Typer(help="Inspect registered entities")


@app.command("list")
def entities_list(
    ctx: typer.Context,
    include_hidden: Annotated[
        bool, typer.Option("--all", "-a", help="Include entities marked hidden")
    ] = False,
) -> None:
    """List registered entities."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        forge = cli_ctx.get_forge()
        entities = forge.list_entities(include_hidden=include_hidden)
        table_data = [
            {
                "Id": entity.id,
                "Name": entity.display_name,
                "Plural": entity.plural_name,
                "Group": entity.group,
                "Properties": len(entity.properties),
                "Searchable": len(entity.searchable_properties),
            }
            for entity in entities
        ]
        formatter.print_table(
            f"Entities ({len(entities)} total)",
            table_data,
            ["Id", "Name", "Plural", "Group", "Properties", "Searchable"],
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("describe")
def entities_describe(
    ctx: typer.Context,
    entity_id: Annotated[str, typer.Argument(help="Entity id")],
) -> None:
    """Show resolved metadata of an entity."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        forge = cli_ctx.get_forge()
        formatter.print_entity_metadata(forge.get_entity(entity_id))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
