"""symg languages command - list supported languages."""

import json

import click
from rich.console import Console
from rich.table import Table

from symgraph.core.languages import ALL_LANGUAGES
from symgraph.index._internal.parsing import PROFILES


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def languages_command(as_json: bool) -> None:
    """List known languages and whether they can be extracted."""
    rows = [
        {
            "name": lang.name,
            "extensions": sorted(lang.extensions),
            "supported": lang.name in PROFILES,
        }
        for lang in ALL_LANGUAGES
    ]
    if as_json:
        click.echo(json.dumps(rows))
        return

    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("language", style="cyan")
    table.add_column("extensions")
    table.add_column("status")
    for row in rows:
        table.add_row(
            row["name"],
            " ".join(row["extensions"]),
            "[green]supported[/green]" if row["supported"] else "[dim]detected only[/dim]",
        )
    Console().print(table)
