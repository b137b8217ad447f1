"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from entityforge.core.types import PageResult
from entityforge.exceptions import EntityForgeError
from entityforge.metadata.models import EntityMetadata

console = Console()


def _record_to_dict(record: Any, fields: list[str]) -> dict[str, Any]:
    if isinstance(record, dict):
        return record
    return {name: getattr(record, name, None) for name in fields}


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array.

        Args:
            title: Table title
            data: List of row dictionaries
            columns: Column names to display
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[str(row.get(col, "")) for col in columns])
            console.print(table)

    def print_entity_metadata(self, entity: EntityMetadata) -> None:
        """Print entity metadata with properties and navigations.

        Args:
            entity: Resolved entity metadata
        """
        if self.json_mode:
            print(json.dumps(entity.model_dump(mode="json"), default=str, indent=2))
            return

        console.print(f"\n[bold]Entity:[/bold] {entity.id}")
        console.print(f"Display name: {entity.display_name} / {entity.plural_name}")
        if entity.description:
            console.print(f"Description: {entity.description}")
        if entity.group:
            console.print(f"Group: {entity.group}")
        console.print(f"Editable: {'yes' if entity.is_editable else 'no'}")

        if entity.properties:
            console.print(f"\n[bold]Properties ({len(entity.properties)}):[/bold]")
            table = Table(show_header=True, header_style="bold cyan")
            for col in ("Order", "Name", "Type", "Key", "Search", "Hidden", "Editable"):
                table.add_column(col)
            for prop in entity.properties:
                table.add_row(
                    str(prop.order),
                    prop.label,
                    prop.field_type.value,
                    "PK" if prop.is_primary_key else ("FK" if prop.is_foreign_key else ""),
                    prop.search_type.value if prop.is_searchable and prop.search_type else "",
                    "✓" if prop.is_hidden else "",
                    "✓" if prop.is_editable else "",
                )
            console.print(table)

        if entity.navigations:
            console.print(f"\n[bold]Navigations ({len(entity.navigations)}):[/bold]")
            table = Table(show_header=True, header_style="bold cyan")
            table.add_column("Name")
            table.add_column("Target")
            table.add_column("Collection")
            table.add_column("Included")
            for navigation in entity.navigations:
                table.add_row(
                    navigation.label,
                    getattr(navigation.target_type, "__name__", ""),
                    "✓" if navigation.is_collection else "",
                    "✓" if navigation.is_included else "",
                )
            console.print(table)

    def print_page(self, title: str, page: PageResult, fields: list[str]) -> None:
        """Print one page of search results.

        Args:
            title: Table title
            page: Page of records
            fields: Fields to show as columns
        """
        rows = [_record_to_dict(item, fields) for item in page.items]
        if self.json_mode:
            output = {
                "items": rows,
                "total_count": page.total_count,
                "page": page.page,
                "page_size": page.page_size,
                "page_count": page.page_count,
            }
            print(json.dumps(output, default=str, indent=2))
            return

        if not rows:
            console.print(f"[yellow]No records found[/yellow] ({page.total_count} total)")
            return
        self.print_table(title, rows, fields)
        console.print(
            f"\n[dim]Page {page.page} of {page.page_count}, "
            f"{page.total_count} matching record(s)[/dim]"
        )

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, EntityForgeError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, EntityForgeError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)
