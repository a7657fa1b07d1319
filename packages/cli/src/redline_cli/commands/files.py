"""files command: list the files changed by a diff."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from redline_cli.diff_input import read_diff
from redline_core.diff_parser import filter_files, get_total_stats

console = Console()

_STATUS_STYLE = {
    "added": "green",
    "modified": "yellow",
    "deleted": "red",
    "renamed": "cyan",
    "copied": "blue",
}


@click.command("files")
@click.argument("diff", type=click.File("r"), default="-")
@click.option("--all", "show_all", is_flag=True, help="Ignore the exclude patterns from the config file.")
@click.pass_context
def files_cmd(ctx, diff, show_all: bool):
    """List the files changed by a unified diff.

    DIFF is a file containing `git diff` output; omit it or pass `-` to
    read from stdin.
    """
    config = ctx.obj.get("config", {}) if ctx.obj else {}

    files = read_diff(diff)
    if not show_all:
        files = filter_files(files, config.get("exclude") or [])
    if not files:
        console.print("[yellow]No changed files found.[/yellow]")
        return

    table = Table(title="Changed files", show_header=True, header_style="bold cyan")
    table.add_column("File")
    table.add_column("Status", width=9)
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    table.add_column("Hunks", justify="right")

    for f in files:
        style = _STATUS_STYLE.get(f.status, "white")
        name = escape(f.path) if not f.old_path else f"{escape(f.old_path)} -> {escape(f.path)}"
        table.add_row(name, f"[{style}]{f.status}[/{style}]", str(f.additions), str(f.deletions), str(len(f.hunks)))

    totals = get_total_stats(files)
    table.add_section()
    table.add_row(
        f"[bold]{len(files)} file(s)[/bold]",
        "",
        str(totals["additions"]),
        str(totals["deletions"]),
        str(sum(len(f.hunks) for f in files)),
    )
    console.print(table)
