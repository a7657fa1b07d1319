"""Keeps comment positions attached to their code while a document is edited.

The tracker never stores numeric offsets of its own: each anchor is a mark
owned by the document (see BaseDocument), so an edit anywhere in the
document costs the tracker nothing. Queries ask the document where the
mark is now.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from redline_core.tracking.document import BaseDocument

if TYPE_CHECKING:
    from redline_core.comments.models import Comment

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Anchor:
    """Handle for one tracked line or line range.

    original_line/original_end_line are the positions the mark was placed
    on (after clamping), which is what has_moved() compares against.
    comment_id is a non-owning back-reference to the comment store.
    """

    document: BaseDocument
    mark_id: int
    original_line: int
    original_end_line: int | None = None
    comment_id: str | None = None


class AnchorTracker:
    """Registry of anchors per open document."""

    def __init__(self, clamp: bool = True):
        # With clamp=False, out-of-range lines are refused instead of moved to the nearest valid line.
        self._clamp = clamp
        self._tracked: dict[BaseDocument, list[Anchor]] = {}

    @classmethod
    def from_config(cls, config: dict) -> AnchorTracker:
        return cls(clamp=bool(config.get("clamp_anchors", True)))

    def track(
        self,
        document: BaseDocument | None,
        line: int | None,
        end_line: int | None = None,
        comment_id: str | None = None,
    ) -> Anchor | None:
        """Anchor line (and optionally end_line) in document.

        Returns None if the document is closed or line is None. Out-of-range
        lines are clamped to ``[1, line_count]`` so a comment is never lost
        to an off-by-one.
        """
        if document is None or line is None or not document.is_valid():
            return None

        upper = max(document.line_count(), 1)
        if self._clamp:
            start = min(max(line, 1), upper)
            end = min(max(end_line, start), upper) if end_line is not None else None
        else:
            if not 1 <= line <= upper or (end_line is not None and not line <= end_line <= upper):
                logger.debug("Refusing to anchor out-of-range line %s-%s in %r", line, end_line, document)
                return None
            start, end = line, end_line

        try:
            mark_id = document.set_mark(start, end)
        except (IndexError, ValueError) as e:
            logger.debug("Could not place mark at line %d in %r: %s", start, document, e)
            return None

        if comment_id is not None:
            self.untrack_comment(document, comment_id)

        anchor = Anchor(
            document=document,
            mark_id=mark_id,
            original_line=start,
            original_end_line=end,
            comment_id=comment_id,
        )
        self._tracked.setdefault(document, []).append(anchor)
        return anchor

    def track_comment(self, document: BaseDocument, comment: Comment) -> Anchor | None:
        return self.track(document, comment.line, comment.end_line, comment_id=comment.id)

    def track_all(self, document: BaseDocument, comments: list[Comment]) -> list[Anchor]:
        """Re-anchor every positioned comment, dropping whatever was tracked before."""
        self.clear(document)
        anchors = []
        for comment in comments:
            anchor = self.track_comment(document, comment)
            if anchor is not None:
                anchors.append(anchor)
        return anchors

    def current_line(self, document: BaseDocument, anchor: Anchor) -> int | None:
        """Where the anchored line is now; None once it has been deleted."""
        position = self._position(document, anchor)
        return position[0] if position else None

    def current_end_line(self, document: BaseDocument, anchor: Anchor) -> int | None:
        """Where the end of an anchored range is now; None for single-line anchors."""
        if anchor.original_end_line is None:
            return None
        position = self._position(document, anchor)
        return position[1] if position else None

    def has_moved(self, document: BaseDocument, anchor: Anchor) -> tuple[bool, int | None]:
        """Return ``(moved, delta)``; ``(False, None)`` when the anchor is orphaned."""
        current = self.current_line(document, anchor)
        if current is None:
            return False, None
        delta = current - anchor.original_line
        return delta != 0, delta

    def sync_comment_lines(self, document: BaseDocument, comments: list[Comment]) -> list[str]:
        """Write current anchor positions back into the tracked comments.

        Orphaned comments keep their last known line. Returns their ids so
        the caller can flag them for manual re-placement.
        """
        orphaned = []
        for comment in comments:
            anchor = self.anchor_for(document, comment.id)
            if anchor is None:
                continue
            line = self.current_line(document, anchor)
            if line is None:
                orphaned.append(comment.id)
                continue
            comment.line = line
            if anchor.original_end_line is not None:
                comment.end_line = self.current_end_line(document, anchor)
        return orphaned

    def anchor_for(self, document: BaseDocument, comment_id: str) -> Anchor | None:
        for anchor in self._tracked.get(document, []):
            if anchor.comment_id == comment_id:
                return anchor
        return None

    def tracked(self, document: BaseDocument) -> list[Anchor]:
        return list(self._tracked.get(document, []))

    def untrack(self, anchor: Anchor) -> None:
        anchors = self._tracked.get(anchor.document)
        if not anchors or anchor not in anchors:
            return
        anchors.remove(anchor)
        if anchor.document.is_valid():
            anchor.document.del_mark(anchor.mark_id)
        if not anchors:
            del self._tracked[anchor.document]

    def untrack_comment(self, document: BaseDocument, comment_id: str) -> None:
        anchor = self.anchor_for(document, comment_id)
        if anchor is not None:
            self.untrack(anchor)

    def clear(self, document: BaseDocument) -> None:
        """Release every anchor of a document, e.g. when it is closed."""
        if document.is_valid():
            for anchor in self._tracked.get(document, []):
                document.del_mark(anchor.mark_id)
        self._tracked.pop(document, None)

    def _position(self, document: BaseDocument, anchor: Anchor) -> tuple[int, int | None] | None:
        if not document.is_valid():
            return None
        position = document.get_mark(anchor.mark_id)
        if position is None:
            logger.debug("Anchor %s in %r is orphaned", anchor.comment_id or anchor.mark_id, document)
        return position
