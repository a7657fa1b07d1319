"""Shared helpers for commands that read a diff."""

from __future__ import annotations

from typing import IO

import click

from redline_core.diff_parser import find_file, parse
from redline_core.models import DiffFile


def read_diff(stream: IO[str]) -> list[DiffFile]:
    """Parse a diff from an open file or stdin; malformed parts are skipped, never fatal."""
    return parse(stream.read())


def require_file(files: list[DiffFile], path: str) -> DiffFile:
    f = find_file(files, path)
    if f is None:
        known = ", ".join(candidate.path for candidate in files) or "none"
        raise click.BadParameter(f"{path!r} is not in the diff (files: {known}).", param_hint="--path")
    return f
