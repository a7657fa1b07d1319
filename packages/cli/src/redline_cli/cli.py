"""CLI entry point for redline.

Commands:
  files     list the files changed by a unified diff
  hunks     show the hunks of one file with old/new line numbers
  map       map a line number between the old and new side of a file
  comments  list stored review comments in navigation order
"""

from __future__ import annotations

import importlib.metadata

import click

from redline_cli.commands.comments import comments_cmd
from redline_cli.commands.files import files_cmd
from redline_cli.commands.hunks import hunks_cmd
from redline_cli.commands.map import map_cmd


@click.group()
@click.version_option(
    version=importlib.metadata.version("redline"),
    prog_name="redline",
)
@click.option(
    "--config",
    "config_path",
    default=".redline.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REDLINE_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """Inspect unified diffs and the review comments anchored to them."""
    from redline_core.config import load_config

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(str(e))


main.add_command(files_cmd)
main.add_command(hunks_cmd)
main.add_command(map_cmd)
main.add_command(comments_cmd)
