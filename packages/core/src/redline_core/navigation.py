"""Cursor movement over comments in (file, line) order.

Every function wraps around at either end and returns ``(comment, index)``
with a 0-based index into the ordered list, or None when there is nothing
to move to. Callers pass whichever population they navigate: the store's
sorted_comments(), unresolved() or pending().
"""

from __future__ import annotations

from redline_core.comments.models import Comment


def _ordered(comments: list[Comment]) -> list[Comment]:
    return sorted((c for c in comments if c.is_positioned), key=lambda c: (c.file, c.line))


def next_comment(comments: list[Comment], current_idx: int | None = None) -> tuple[Comment, int] | None:
    if not comments:
        return None
    idx = 0 if current_idx is None else (current_idx + 1) % len(comments)
    return comments[idx], idx


def prev_comment(comments: list[Comment], current_idx: int | None = None) -> tuple[Comment, int] | None:
    if not comments:
        return None
    idx = len(comments) - 1 if current_idx is None else (current_idx - 1) % len(comments)
    return comments[idx], idx


def next_after(comments: list[Comment], file: str | None, line: int | None) -> tuple[Comment, int] | None:
    """First comment strictly after the cursor position."""
    ordered = _ordered(comments)
    if not ordered:
        return None
    cursor = (file or "", line or 0)
    for i, c in enumerate(ordered):
        if (c.file, c.line) > cursor:
            return c, i
    return ordered[0], 0


def prev_before(comments: list[Comment], file: str | None, line: int | None) -> tuple[Comment, int] | None:
    """Last comment strictly before the cursor position."""
    ordered = _ordered(comments)
    if not ordered:
        return None
    if file is None:
        return ordered[-1], len(ordered) - 1
    cursor = (file, line if line is not None else float("inf"))
    for i in range(len(ordered) - 1, -1, -1):
        c = ordered[i]
        if (c.file, c.line) < cursor:
            return c, i
    return ordered[-1], len(ordered) - 1


def next_in_file(comments: list[Comment], file: str, line: int) -> tuple[Comment, int] | None:
    return next_after([c for c in comments if c.file == file], file, line)


def prev_in_file(comments: list[Comment], file: str, line: int) -> tuple[Comment, int] | None:
    return prev_before([c for c in comments if c.file == file], file, line)
