"""Editable-document interface consumed by the anchor tracker.

Any host that can hold text and report line insertions/deletions (an
editor buffer, an LSP text document, a test double) implements
BaseDocument. The tracker depends on BaseDocument only, so hosts that
offer native content-bound marks can expose them directly while other
hosts reuse TextBuffer's edit-log implementation.

All line numbers here are 1-based.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from redline_core.utils.text import split_lines

logger = logging.getLogger(__name__)

# Past this many events every mark is brought up to date and the log is cleared.
_COMPACT_THRESHOLD = 64


class BaseDocument(ABC):
    """A mutable sequence of text lines that supports content-bound marks.

    A mark is placed on a line (optionally spanning to an end line) and
    afterwards reports where that line has moved to, without the caller
    re-scanning the document.
    """

    @abstractmethod
    def is_valid(self) -> bool:
        """Return False once the document has been closed."""

    @abstractmethod
    def line_count(self) -> int:
        """Current number of lines."""

    @abstractmethod
    def set_mark(self, line: int, end_line: int | None = None) -> int:
        """Place a mark on line (and end_line for ranges); return its id."""

    @abstractmethod
    def get_mark(self, mark_id: int) -> tuple[int, int | None] | None:
        """Return the current ``(line, end_line)`` of a mark.

        Returns None when the marked line was deleted or the mark is unknown.
        """

    @abstractmethod
    def del_mark(self, mark_id: int) -> None:
        """Remove a mark. Unknown ids are ignored."""

    def clear_marks(self) -> None:
        """Remove every mark.

        Optional. Hosts that release marks on their own may leave this as a no-op.
        """


@dataclass
class _Mark:
    line: int | None
    end_line: int | None
    applied: int  # number of log entries already folded into line/end_line


def _shift_start(line: int, position: int, delta: int) -> int | None:
    if delta > 0:
        # Insertion before `position`; a mark on that line moves down with its content.
        return line + delta if line >= position else line
    removed = -delta
    if line < position:
        return line
    if line >= position + removed:
        return line - removed
    return None


def _shift_end(line: int, position: int, delta: int) -> int:
    if delta > 0:
        return line + delta if line >= position else line
    removed = -delta
    if line < position:
        return line
    if line >= position + removed:
        return line - removed
    # The range end was deleted: shrink to the last surviving line above it.
    return position - 1


class TextBuffer(BaseDocument):
    """In-memory document whose marks are resolved from an ordered edit log.

    Every insertion or deletion appends a ``(position, delta)`` event. A
    mark remembers how many events it has already applied and, when
    queried, replays only the newer ones in order. Replaying out of order
    would give wrong positions, so the log is append-only and events are
    only discarded once every live mark has consumed them.
    """

    def __init__(self, lines: list[str] | None = None, name: str = ""):
        self.name = name
        self._lines: list[str] = list(lines or [])
        self._valid = True
        self._edits: list[tuple[int, int]] = []
        self._marks: dict[int, _Mark] = {}
        self._next_mark_id = 1

    @classmethod
    def from_text(cls, text: str, name: str = "") -> TextBuffer:
        return cls(split_lines(text), name=name)

    def __repr__(self) -> str:
        return f"TextBuffer(name={self.name!r}, lines={len(self._lines)}, marks={len(self._marks)})"

    # --- content -----------------------------------------------------------

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def get_line(self, line: int) -> str:
        return self._lines[line - 1]

    def set_line(self, line: int, text: str) -> None:
        """Replace the text of one line in place; marks are unaffected."""
        self._check_line(line, allow_end=False)
        self._lines[line - 1] = text

    def insert_lines(self, at: int, lines: list[str]) -> None:
        """Insert lines so that the first new line becomes line `at`.

        ``at == line_count() + 1`` appends.
        """
        self._check_line(at, allow_end=True)
        if not lines:
            return
        self._lines[at - 1 : at - 1] = list(lines)
        self._record(at, len(lines))

    def append_lines(self, lines: list[str]) -> None:
        self.insert_lines(len(self._lines) + 1, lines)

    def delete_lines(self, start: int, count: int = 1) -> None:
        """Delete `count` lines starting at line `start` (clipped to the end)."""
        self._check_line(start, allow_end=False)
        count = min(count, len(self._lines) - start + 1)
        if count <= 0:
            return
        del self._lines[start - 1 : start - 1 + count]
        self._record(start, -count)

    def replace_lines(self, start: int, count: int, lines: list[str]) -> None:
        """Delete `count` lines at `start` and insert `lines` in their place.

        Marks on replaced lines are orphaned, as the content they were bound
        to no longer exists.
        """
        if count > 0:
            self.delete_lines(start, count)
        self.insert_lines(start, lines)

    def close(self) -> None:
        self.clear_marks()
        self._valid = False

    # --- BaseDocument ------------------------------------------------------

    def is_valid(self) -> bool:
        return self._valid

    def line_count(self) -> int:
        return len(self._lines)

    def set_mark(self, line: int, end_line: int | None = None) -> int:
        if not self._valid:
            raise ValueError(f"Cannot place a mark on closed buffer {self.name!r}")
        self._check_line(line, allow_end=not self._lines)
        if end_line is not None and end_line < line:
            raise ValueError(f"Mark end line {end_line} is before start line {line}")
        mark_id = self._next_mark_id
        self._next_mark_id += 1
        self._marks[mark_id] = _Mark(line=line, end_line=end_line, applied=len(self._edits))
        return mark_id

    def get_mark(self, mark_id: int) -> tuple[int, int | None] | None:
        mark = self._marks.get(mark_id)
        if mark is None:
            return None
        self._resolve(mark)
        if mark.line is None:
            return None
        return mark.line, mark.end_line

    def del_mark(self, mark_id: int) -> None:
        self._marks.pop(mark_id, None)

    def clear_marks(self) -> None:
        self._marks.clear()
        self._edits.clear()

    # --- internals ---------------------------------------------------------

    def _check_line(self, line: int, allow_end: bool) -> None:
        upper = len(self._lines) + (1 if allow_end else 0)
        if not 1 <= line <= upper:
            raise IndexError(f"Line {line} out of range for buffer with {len(self._lines)} line(s)")

    def _record(self, position: int, delta: int) -> None:
        if not self._marks:
            self._edits.clear()
            return
        self._edits.append((position, delta))
        if len(self._edits) > _COMPACT_THRESHOLD:
            self._compact()

    def _resolve(self, mark: _Mark) -> None:
        for position, delta in self._edits[mark.applied :]:
            if mark.line is None:
                break
            start = _shift_start(mark.line, position, delta)
            if mark.end_line is not None:
                mark.end_line = _shift_end(mark.end_line, position, delta) if start is not None else None
            mark.line = start
        mark.applied = len(self._edits)

    def _compact(self) -> None:
        for mark in self._marks.values():
            self._resolve(mark)
            mark.applied = 0
        logger.debug("Compacted edit log of %r (%d event(s))", self, len(self._edits))
        self._edits.clear()
