"""Unified diff parsing and old/new line mapping.

The parser is deliberately liberal: it never raises on malformed input.
A hunk whose ``@@`` header cannot be parsed is dropped together with its
body lines, and the rest of the file (and the rest of the diff) is still
returned. Hunk bodies are consumed against the counts in their header, so
stray lines after a complete hunk never leak into it and the per-hunk
old/new line counts stay consistent with the header.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from redline_core.models import (
    LINE_ADD,
    LINE_CONTEXT,
    LINE_DELETE,
    SIDE_LEFT,
    SIDE_RIGHT,
    STATUS_ADDED,
    STATUS_COPIED,
    STATUS_DELETED,
    STATUS_MODIFIED,
    STATUS_RENAMED,
    DiffFile,
    DiffLine,
    Hunk,
)
from redline_core.utils.paths import is_excluded, normalize_path
from redline_core.utils.text import split_lines

logger = logging.getLogger(__name__)

_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_GIT_PATHS_RE = re.compile(r"^a/(.+?) b/(.+)$")
_QUOTED_GIT_PATHS_RE = re.compile(r'^"?a/(.+?)"? "?b/(.+?)"?$')

_DIFF_GIT_PREFIX = "diff --git "
_DEV_NULL = "/dev/null"


@dataclass
class _FileState:
    """A DiffFile under construction plus the raw a/ and b/ header paths."""

    file: DiffFile
    a_path: str | None = None
    b_path: str | None = None
    in_body: bool = False  # an @@ line (valid or not) has been seen; header lines are over


class _HunkCursor:
    """Feeds body lines into a hunk, numbering them until both sides are full."""

    def __init__(self, hunk: Hunk):
        self.hunk = hunk
        self.old_line = hunk.old_start
        self.new_line = hunk.new_start
        self.old_left = hunk.old_count
        self.new_left = hunk.new_count

    @property
    def open(self) -> bool:
        return self.old_left > 0 or self.new_left > 0

    def feed(self, line: str) -> bool:
        """Consume one body line; return False if it cannot belong to the hunk."""
        marker = line[:1]
        if marker == "+":
            if self.new_left <= 0:
                return False
            self.hunk.lines.append(DiffLine(type=LINE_ADD, content=line[1:], new_line=self.new_line))
            self.new_line += 1
            self.new_left -= 1
            return True
        if marker == "-":
            if self.old_left <= 0:
                return False
            self.hunk.lines.append(DiffLine(type=LINE_DELETE, content=line[1:], old_line=self.old_line))
            self.old_line += 1
            self.old_left -= 1
            return True

        if self.old_left <= 0 or self.new_left <= 0:
            return False
        # A blank line inside a hunk is a context line whose leading space was
        # trimmed by an editor or mail client; keep unknown lines verbatim.
        content = line[1:] if marker == " " else line
        self.hunk.lines.append(
            DiffLine(type=LINE_CONTEXT, content=content, old_line=self.old_line, new_line=self.new_line)
        )
        self.old_line += 1
        self.new_line += 1
        self.old_left -= 1
        self.new_left -= 1
        return True


def _parse_hunk_header(line: str) -> Hunk | None:
    match = _HUNK_HEADER_RE.match(line)
    if not match:
        return None
    old_start, old_count, new_start, new_count = match.groups()
    return Hunk(
        old_start=int(old_start),
        old_count=int(old_count) if old_count is not None else 1,
        new_start=int(new_start),
        new_count=int(new_count) if new_count is not None else 1,
        header=line,
    )


def _split_git_paths(rest: str) -> tuple[str | None, str | None]:
    """Split the ``a/<old> b/<new>`` part of a ``diff --git`` header.

    When both sides name the same path the header is split in the middle,
    which is the only reliable way to handle paths containing " b/" or
    spaces. Renames fall back to a non-greedy match and are corrected by
    the ``rename from``/``rename to`` lines that follow.
    """
    if len(rest) % 2 == 1:
        half = len(rest) // 2
        a_side, b_side = rest[:half], rest[half + 1 :]
        if rest[half] == " " and a_side.startswith("a/") and b_side.startswith("b/") and a_side[2:] == b_side[2:]:
            return a_side[2:], b_side[2:]

    if rest.startswith('"'):
        match = _QUOTED_GIT_PATHS_RE.match(rest)
    else:
        match = _GIT_PATHS_RE.match(rest)
    if match:
        return match.group(1), match.group(2)
    return None, None


def _header_path(value: str) -> str | None:
    """Path from a ``---``/``+++`` line value; None for /dev/null."""
    # git appends a tab after names containing spaces; GNU diff appends a timestamp.
    value = value.split("\t", 1)[0].strip('"')
    if value == _DEV_NULL:
        return None
    if value.startswith(("a/", "b/")):
        return value[2:]
    return value


def _finish(state: _FileState) -> DiffFile:
    f = state.file
    if f.status == STATUS_DELETED:
        path = state.a_path or state.b_path
    else:
        path = state.b_path or state.a_path
    if path and not f.path:
        f.path = path
    f.additions = sum(1 for h in f.hunks for ln in h.lines if ln.type == LINE_ADD)
    f.deletions = sum(1 for h in f.hunks for ln in h.lines if ln.type == LINE_DELETE)
    return f


def _apply_header_line(state: _FileState, line: str) -> None:
    """Update file metadata from an extended header line; unknown lines are ignored."""
    f = state.file
    if line.startswith("new file mode"):
        f.status = STATUS_ADDED
    elif line.startswith("deleted file mode"):
        f.status = STATUS_DELETED
    elif line.startswith("rename from "):
        f.status = STATUS_RENAMED
        f.old_path = line[len("rename from ") :]
    elif line.startswith("rename to "):
        f.status = STATUS_RENAMED
        f.path = line[len("rename to ") :]
    elif line.startswith("copy from "):
        f.status = STATUS_COPIED
        f.old_path = line[len("copy from ") :]
    elif line.startswith("copy to "):
        f.status = STATUS_COPIED
        f.path = line[len("copy to ") :]
    elif line.startswith("--- "):
        path = _header_path(line[4:])
        if path is None:
            if f.status == STATUS_MODIFIED:
                f.status = STATUS_ADDED
        elif state.a_path is None:
            state.a_path = path
    elif line.startswith("+++ "):
        path = _header_path(line[4:])
        if path is None:
            if f.status == STATUS_MODIFIED:
                f.status = STATUS_DELETED
        else:
            state.b_path = path


def _starts_plain_file(lines: list[str], i: int) -> bool:
    """True if lines[i] opens a file section of a diff without "diff --git" headers."""
    return (
        lines[i].startswith("--- ")
        and i + 2 < len(lines)
        and lines[i + 1].startswith("+++ ")
        and lines[i + 2].startswith("@@")
    )


def parse(diff_text: str | None) -> list[DiffFile]:
    """Parse unified diff text (``git diff`` or a pull-request diff) into DiffFiles.

    Empty or None input yields an empty list. Never raises.
    """
    if not diff_text:
        return []

    lines = split_lines(diff_text)
    states: list[_FileState] = []
    state: _FileState | None = None
    cursor: _HunkCursor | None = None
    # Set after a malformed hunk header: its body is swallowed up to the next hunk or file.
    skipping = False

    for i, line in enumerate(lines):
        if line.startswith("\\"):
            # "\ No newline at end of file" carries no line of its own.
            continue

        if skipping:
            if not line.startswith((_DIFF_GIT_PREFIX, "@@")) and not _starts_plain_file(lines, i):
                continue
            skipping = False

        if cursor is not None and cursor.open:
            if not line.startswith((_DIFF_GIT_PREFIX, "@@")) and cursor.feed(line):
                continue
            if not line.startswith((_DIFF_GIT_PREFIX, "@@")):
                logger.debug("Hunk %r ended early at %r", cursor.hunk.header, line)
            cursor = None

        if line.startswith(_DIFF_GIT_PREFIX):
            a_path, b_path = _split_git_paths(line[len(_DIFF_GIT_PREFIX) :])
            state = _FileState(file=DiffFile(path=""), a_path=a_path, b_path=b_path)
            states.append(state)
            cursor = None
            continue

        if line.startswith("@@"):
            if state is not None:
                state.in_body = True
            hunk = _parse_hunk_header(line)
            if hunk is None:
                logger.debug("Skipping malformed hunk header: %r", line)
                cursor = None
                skipping = True
                continue
            if state is None:
                logger.debug("Skipping hunk outside of any file: %r", line)
                cursor = None
                skipping = True
                continue
            state.file.hunks.append(hunk)
            cursor = _HunkCursor(hunk)
            continue

        if line.startswith("--- ") and (state is None or (state.in_body and _starts_plain_file(lines, i))):
            # Plain unified diff without a "diff --git" header.
            state = _FileState(file=DiffFile(path=""))
            states.append(state)

        if state is not None and not state.in_body:
            _apply_header_line(state, line)

    return [_finish(s) for s in states]


def parse_hunk(hunk_text: str | None) -> Hunk | None:
    """Parse a single hunk (header plus body), e.g. for incremental re-parsing.

    Returns None when the text does not begin with a valid ``@@ ... @@`` header.
    """
    if not hunk_text:
        return None
    lines = split_lines(hunk_text)
    hunk = _parse_hunk_header(lines[0])
    if hunk is None:
        return None

    cursor = _HunkCursor(hunk)
    for line in lines[1:]:
        if line.startswith("\\"):
            continue
        if not cursor.open or not cursor.feed(line):
            break
    return hunk


def find_hunk_for_line(hunks: list[Hunk], new_line: int) -> tuple[Hunk, int] | None:
    """Return ``(hunk, index)`` for the hunk covering new_line, or None.

    Unchanged regions between hunks are not materialised, so a line there
    has no hunk.
    """
    for i, hunk in enumerate(hunks):
        if hunk.contains_new_line(new_line):
            return hunk, i
    return None


def find_hunk_for_old_line(hunks: list[Hunk], old_line: int) -> tuple[Hunk, int] | None:
    """Old-side counterpart of find_hunk_for_line."""
    for i, hunk in enumerate(hunks):
        if hunk.old_start <= old_line <= hunk.old_end:
            return hunk, i
    return None


def new_to_old_line(hunk: Hunk, new_line: int) -> int | None:
    """Map a new-file line to its old-file line; None for added lines."""
    for diff_line in hunk.lines:
        if diff_line.new_line == new_line:
            return diff_line.old_line
    return None


def old_to_new_line(hunk: Hunk, old_line: int) -> int | None:
    """Map an old-file line to its new-file line; None for deleted lines."""
    for diff_line in hunk.lines:
        if diff_line.old_line == old_line:
            return diff_line.new_line
    return None


def get_line_side(hunk: Hunk, new_line: int) -> str:
    """Return "RIGHT" for lines reachable by new-side numbering, "LEFT" for pure deletions."""
    for diff_line in hunk.lines:
        if diff_line.new_line == new_line:
            return SIDE_RIGHT
    for diff_line in hunk.lines:
        if diff_line.type == LINE_DELETE and diff_line.old_line == new_line:
            return SIDE_LEFT
    return SIDE_RIGHT


def get_line_content(hunk: Hunk, new_line: int) -> str | None:
    """Return the new-side text of new_line, or None if the hunk does not show it."""
    for diff_line in hunk.lines:
        if diff_line.new_line == new_line:
            return diff_line.content
    return None


def get_total_stats(files: list[DiffFile]) -> dict[str, int]:
    return {
        "additions": sum(f.additions for f in files),
        "deletions": sum(f.deletions for f in files),
    }


def filter_files(files: list[DiffFile], patterns: list[str]) -> list[DiffFile]:
    """Drop files whose path matches any exclude pattern."""
    if not patterns:
        return list(files)
    return [f for f in files if not is_excluded(f.path, patterns, old_path=f.old_path)]


def find_file(files: list[DiffFile], path: str) -> DiffFile | None:
    """Find a file by its current path, falling back to its pre-rename path."""
    wanted = normalize_path(path)
    for f in files:
        if normalize_path(f.path) == wanted:
            return f
    for f in files:
        if f.old_path and normalize_path(f.old_path) == wanted:
            return f
    return None
