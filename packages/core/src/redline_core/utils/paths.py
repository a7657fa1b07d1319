"""Path helpers shared by the diff engine and the comment store."""

from __future__ import annotations

import fnmatch
import posixpath
import re

_MULTI_SLASH_RE = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and drop a leading "./"."""
    path = _MULTI_SLASH_RE.sub("/", path)
    if path.startswith("./"):
        path = path[2:]
    return path


def _matches(path: str, pattern: str) -> bool:
    path = normalize_path(path)
    pattern = normalize_path(pattern)
    if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(posixpath.basename(path), pattern):
        return True
    # A bare directory name matches that directory at any depth.
    directory = pattern.rstrip("/")
    return bool(directory) and f"/{directory}/" in f"/{path}"


def is_excluded(path: str, patterns: list[str], old_path: str | None = None) -> bool:
    """Return True if a changed file matches the exclude patterns.

    Patterns are fnmatch globs on the full path ("src/generated/*.py"), on
    the basename ("*.lock") or directory names ("migrations/", "tests").
    For a rename or copy both sides must be excluded, so a file moved into
    or out of an excluded tree stays visible.
    """
    sides = [path] if not old_path else [path, old_path]
    return all(any(_matches(side, pattern) for pattern in patterns if pattern) for side in sides)
