"""map command: translate a line number between the two sides of a diff."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from redline_cli.diff_input import read_diff, require_file
from redline_core.diff_parser import (
    find_hunk_for_line,
    find_hunk_for_old_line,
    get_line_side,
    new_to_old_line,
    old_to_new_line,
)

console = Console()


@click.command("map")
@click.argument("diff", type=click.File("r"), default="-")
@click.option("--path", required=True, help="Path of the file, as it appears in the diff.")
@click.option("--line", "line", type=int, required=True, help="Line number to map.")
@click.option("--old", "from_old", is_flag=True, help="Treat --line as an old-file line (default: new-file).")
def map_cmd(diff, path: str, line: int, from_old: bool):
    """Map a line of one file between its old and new numbering.

    Lines outside every hunk are unchanged regions of the file and are not
    mapped; added lines have no old counterpart and deleted lines have no
    new one.
    """
    f = require_file(read_diff(diff), path)
    name = escape(f.path)

    if from_old:
        found = find_hunk_for_old_line(f.hunks, line)
        if found is None:
            console.print(f"[yellow]Old line {line} of {name} is outside every hunk.[/yellow]")
            return
        hunk, idx = found
        counterpart = old_to_new_line(hunk, line)
        label = "new"
    else:
        found = find_hunk_for_line(f.hunks, line)
        if found is None:
            console.print(f"[yellow]New line {line} of {name} is outside every hunk.[/yellow]")
            return
        hunk, idx = found
        counterpart = new_to_old_line(hunk, line)
        label = "old"
        console.print(f"Side: [bold]{get_line_side(hunk, line)}[/bold]")

    console.print(f"Hunk {idx + 1}: [dim]{escape(hunk.header)}[/dim]")
    if counterpart is None:
        console.print(f"Line {line} has no {label} counterpart.")
    else:
        console.print(f"Line {line} -> {label} line [bold]{counterpart}[/bold]")
