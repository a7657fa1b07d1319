"""comments command: list stored review comments in navigation order."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from redline_core.comments.models import comments_from_payload
from redline_core.comments.store import CommentStore

console = Console()

_TYPE_STYLE = {"issue": "red", "suggestion": "yellow", "praise": "green", "note": "blue"}


def _location(comment) -> str:
    if comment.end_line is not None and comment.end_line != comment.line:
        return f"{comment.file}:{comment.line}-{comment.end_line}"
    return f"{comment.file}:{comment.line}"


def _label(comment) -> str:
    if comment.kind == "local":
        kind = comment.type or "note"
        style = _TYPE_STYLE.get(kind, "white")
        return f"[{style}]{kind.upper()}[/{style}] ({comment.status})"
    if comment.kind == "review" and comment.resolved:
        return "[dim]REVIEW (resolved)[/dim]"
    return comment.kind.upper()


@click.command("comments")
@click.argument("source", type=click.File("r"))
@click.option("--file", "file_path", default=None, help="Only show comments on this path.")
@click.option("--pending", is_flag=True, help="Only show pending local comments.")
@click.option("--unresolved", is_flag=True, help="Only show unresolved review comments.")
@click.pass_context
def comments_cmd(ctx, source, file_path: str | None, pending: bool, unresolved: bool):
    """List the comments in a saved review file.

    SOURCE is a JSON file holding either a bare array of comment records
    or an object with a "comments" array.
    """
    if pending and unresolved:
        raise click.UsageError("--pending and --unresolved are mutually exclusive.")

    try:
        data = json.load(source)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON ({e})", param_hint="SOURCE")

    config = ctx.obj.get("config", {}) if ctx.obj else {}
    store = CommentStore.from_config(config)
    store.set_comments(comments_from_payload(data))

    if pending:
        selected = {id(c) for c in store.pending()}
    elif unresolved:
        selected = {id(c) for c in store.unresolved()}
    else:
        selected = {id(c) for c in store.comments}
    comments = [c for c in store.sorted_comments() if id(c) in selected and (file_path is None or c.file == file_path)]

    if not comments:
        console.print("[yellow]No comments found.[/yellow]")
    else:
        table = Table(title="Review comments", show_header=True, header_style="bold cyan")
        table.add_column("Location")
        table.add_column("Kind")
        table.add_column("Author", max_width=16)
        table.add_column("Replies", justify="right")
        table.add_column("Comment", max_width=60)
        for c in comments:
            body = c.body.replace("\n", " ")
            table.add_row(
                escape(_location(c)),
                _label(c),
                escape(c.author),
                str(store.count_replies(c.id)) if c.is_root else "",
                escape(body[:57] + "..." if len(body) > 60 else body),
            )
        console.print(table)

    stats = store.stats()
    console.print(
        f"{stats['total_comments']} comment(s) · {stats['pending_comments']} pending · "
        f"{stats['unresolved_comments']} unresolved"
    )
