"""hunks command: show one file's hunks with old/new line numbers."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from redline_cli.diff_input import read_diff, require_file

console = Console()

_LINE_STYLE = {"add": "green", "delete": "red", "context": "dim"}
_LINE_MARKER = {"add": "+", "delete": "-", "context": " "}


@click.command("hunks")
@click.argument("diff", type=click.File("r"), default="-")
@click.option("--path", required=True, help="Path of the file to show, as it appears in the diff.")
def hunks_cmd(diff, path: str):
    """Show the hunks of one file from a unified diff (DIFF or stdin)."""
    f = require_file(read_diff(diff), path)
    if not f.hunks:
        console.print(f"[yellow]{escape(f.path)} has no hunks ({f.status}).[/yellow]")
        return

    console.print(f"[bold cyan]{escape(f.path)}[/bold cyan]  [green]+{f.additions}[/green] [red]-{f.deletions}[/red]")
    for hunk in f.hunks:
        table = Table(title=escape(hunk.header), show_header=True, header_style="bold", title_justify="left")
        table.add_column("Old", justify="right", width=6)
        table.add_column("New", justify="right", width=6)
        table.add_column("", no_wrap=True)
        for line in hunk.lines:
            style = _LINE_STYLE.get(line.type, "white")
            table.add_row(
                str(line.old_line) if line.old_line is not None else "",
                str(line.new_line) if line.new_line is not None else "",
                f"[{style}]{_LINE_MARKER.get(line.type, ' ')}{escape(line.content)}[/{style}]",
            )
        console.print(table)
