"""Structured model of a parsed unified diff.

A diff blob becomes a list of DiffFile, each holding its Hunks, each holding
its DiffLines. Everything here is plain data: the parser builds it once and
callers only ever read it, apart from the two per-file fields the comment
store maintains (comment_count, reviewed).
"""

from __future__ import annotations

from dataclasses import dataclass, field

LINE_CONTEXT = "context"
LINE_ADD = "add"
LINE_DELETE = "delete"

STATUS_ADDED = "added"
STATUS_MODIFIED = "modified"
STATUS_DELETED = "deleted"
STATUS_RENAMED = "renamed"
STATUS_COPIED = "copied"

# GitHub's diff-comment side convention.
SIDE_LEFT = "LEFT"
SIDE_RIGHT = "RIGHT"


@dataclass
class DiffLine:
    """One row of a hunk with its prefix character stripped.

    old_line is None for added lines, new_line is None for deleted lines;
    context lines carry both.
    """

    type: str  # "context" | "add" | "delete"
    content: str
    old_line: int | None = None
    new_line: int | None = None


@dataclass
class Hunk:
    """A contiguous change region with independent old/new numbering."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    header: str = ""
    lines: list[DiffLine] = field(default_factory=list)

    @property
    def new_end(self) -> int:
        """Last new-side line covered by this hunk (new_start - 1 when empty)."""
        return self.new_start + self.new_count - 1

    @property
    def old_end(self) -> int:
        return self.old_start + self.old_count - 1

    def contains_new_line(self, line: int) -> bool:
        return self.new_start <= line <= self.new_end


@dataclass
class DiffFile:
    """One changed path in a diff.

    additions/deletions always equal the number of add/delete lines across
    the hunks; the parser computes them from the lines, never from headers.
    """

    path: str
    status: str = STATUS_MODIFIED  # "added" | "modified" | "deleted" | "renamed" | "copied"
    old_path: str | None = None
    additions: int = 0
    deletions: int = 0
    hunks: list[Hunk] = field(default_factory=list)
    comment_count: int = 0
    reviewed: bool = False
