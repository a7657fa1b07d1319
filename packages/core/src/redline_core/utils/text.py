from __future__ import annotations

import re

# Only LF and CRLF end a line. str.splitlines() also breaks on form feeds,
# U+2028 and other separators that occur inside real source lines.
_NEWLINE_RE = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    """Split text on newlines, without an empty entry for a trailing newline."""
    lines = _NEWLINE_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines
