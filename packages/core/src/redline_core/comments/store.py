"""The comment store: single owner of every comment in a review session.

All mutation goes through the methods below so the eligibility rules hold:

- only local comments are edited, deleted or retyped, and only while pending;
- pending -> submitted is one-way;
- only review comments can be resolved, and resolving is freely reversible;
- replying never touches the parent's status or resolution.

Precondition failures return False/None rather than raising. Callers that
need to know in advance use is_editable()/is_deletable().
"""

from __future__ import annotations

import logging
from typing import Any

from redline_core.comments.models import (
    COMMENT_TYPES,
    KIND_LOCAL,
    KIND_REVIEW,
    LOCAL_AUTHOR,
    STATUS_PENDING,
    STATUS_SUBMITTED,
    TYPE_NOTE,
    Comment,
    to_payload,
)
from redline_core.comments.threads import attach_replies, build_index, resolve_ref, root_of
from redline_core.diff_parser import find_file
from redline_core.models import DiffFile
from redline_core.utils.ids import generate_id, utc_now

logger = logging.getLogger(__name__)


def _check_type(comment_type: str) -> str:
    if comment_type not in COMMENT_TYPES:
        raise ValueError(f"Unknown comment type: {comment_type!r}. Choose one of {', '.join(COMMENT_TYPES)}.")
    return comment_type


class CommentStore:
    """Flat collection of comments plus the diff files they refer to."""

    def __init__(self, author: str = LOCAL_AUTHOR, default_type: str = TYPE_NOTE):
        self.author = author
        self.default_type = _check_type(default_type)
        self._comments: list[Comment] = []
        self._files: list[DiffFile] = []

    @classmethod
    def from_config(cls, config: dict) -> CommentStore:
        return cls(
            author=config.get("author") or LOCAL_AUTHOR,
            default_type=config.get("default_comment_type") or TYPE_NOTE,
        )

    # --- collection --------------------------------------------------------

    @property
    def comments(self) -> tuple[Comment, ...]:
        return tuple(self._comments)

    def find(self, comment_id: str) -> Comment | None:
        for comment in self._comments:
            if comment.id == comment_id:
                return comment
        return None

    def set_comments(self, comments: list[Comment]) -> None:
        """Replace the whole collection, e.g. with records from a persistence layer."""
        self._comments = list(comments)
        self._refresh()

    def merge_remote(self, comments: list[Comment]) -> None:
        """Replace every remote comment with `comments`, keeping local drafts."""
        local = [c for c in self._comments if c.kind == KIND_LOCAL]
        remote = [c for c in comments if c.kind != KIND_LOCAL]
        self._comments = local + remote
        self._refresh()

    def local_records(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self._comments if c.kind == KIND_LOCAL]

    def to_payload(self) -> dict[str, Any]:
        """Local comments wrapped with save metadata, ready for serialisation."""
        return to_payload([c for c in self._comments if c.kind == KIND_LOCAL])

    # --- mutation ----------------------------------------------------------

    def add(self, file: str, line: int, body: str, comment_type: str | None = None) -> Comment:
        comment = self._new_local(file=file, line=line, body=body, comment_type=comment_type)
        self._comments.append(comment)
        self._refresh()
        return comment

    def add_multiline(
        self,
        file: str,
        start_line: int,
        end_line: int,
        body: str,
        comment_type: str | None = None,
    ) -> Comment:
        """Add a comment spanning start_line..end_line; a reversed range is swapped."""
        if start_line > end_line:
            logger.debug("Swapping reversed range %d-%d on %s", start_line, end_line, file)
            start_line, end_line = end_line, start_line
        comment = self._new_local(file=file, line=start_line, body=body, comment_type=comment_type)
        comment.end_line = end_line
        self._comments.append(comment)
        self._refresh()
        return comment

    def edit(self, comment_id: str, body: str) -> bool:
        comment = self.find(comment_id)
        if comment is None or not comment.is_pending:
            logger.debug("Refusing to edit comment %s", comment_id)
            return False
        comment.body = body
        comment.updated_at = utc_now()
        return True

    def delete(self, comment_id: str) -> bool:
        """Delete a pending local comment together with the local replies below it.

        Refused if any reply below it is remote, since those cannot be removed here.
        """
        comment = self.find(comment_id)
        if comment is None or not comment.is_pending:
            logger.debug("Refusing to delete comment %s", comment_id)
            return False

        doomed = self._descendants(comment)
        if any(c.kind != KIND_LOCAL for c in doomed):
            logger.debug("Refusing to delete comment %s: it has remote replies", comment_id)
            return False

        doomed_ids = {id(c) for c in doomed}
        doomed_ids.add(id(comment))
        self._comments = [c for c in self._comments if id(c) not in doomed_ids]
        self._refresh()
        return True

    def reply(self, parent_id: str | int, body: str) -> Comment | None:
        """Reply at the parent's location. parent_id may be a comment id or a GitHub id."""
        parent = resolve_ref(build_index(self._comments), parent_id)
        if parent is None:
            return None
        reply = self._new_local(file=parent.file, line=parent.line, body=body, prefix="reply")
        reply.end_line = parent.end_line
        reply.in_reply_to_id = parent.id
        self._comments.append(reply)
        self._refresh()
        return reply

    def set_resolved(self, comment_id: str, resolved: bool) -> bool:
        comment = self.find(comment_id)
        if comment is None or comment.kind != KIND_REVIEW:
            return False
        comment.resolved = bool(resolved)
        return True

    def set_type(self, comment_id: str, comment_type: str) -> bool:
        comment = self.find(comment_id)
        if comment is None or comment.kind != KIND_LOCAL:
            return False
        if comment_type not in COMMENT_TYPES:
            logger.debug("Refusing unknown comment type %r for %s", comment_type, comment_id)
            return False
        comment.type = comment_type
        comment.updated_at = utc_now()
        return True

    def mark_submitted(self, comment_id: str, external_id: int) -> bool:
        """Record that a pending local comment was posted as external_id."""
        comment = self.find(comment_id)
        if comment is None or not comment.is_pending:
            return False
        comment.status = STATUS_SUBMITTED
        comment.github_id = external_id
        self._refresh()
        return True

    def is_editable(self, comment_id: str) -> bool:
        comment = self.find(comment_id)
        return comment is not None and comment.is_pending

    def is_deletable(self, comment_id: str) -> bool:
        return self.is_editable(comment_id)

    # --- queries -----------------------------------------------------------

    def comments_for_file(self, file: str) -> list[Comment]:
        return [c for c in self._comments if c.file == file]

    def unresolved(self) -> list[Comment]:
        return [c for c in self._comments if c.kind == KIND_REVIEW and c.resolved is False and c.file is not None]

    def pending(self) -> list[Comment]:
        return [c for c in self._comments if c.is_pending]

    def sorted_comments(self) -> list[Comment]:
        """Positioned comments ordered by file, then line.

        This is the one ordering every navigation and export feature uses.
        """
        positioned = [c for c in self._comments if c.is_positioned]
        return sorted(positioned, key=lambda c: (c.file, c.line))

    def at_line(self, file: str, line: int) -> list[Comment]:
        return [c for c in self._comments if c.file == file and c.covers(line)]

    def thread_root(self, comment_id: str) -> Comment | None:
        comment = self.find(comment_id)
        if comment is None:
            return None
        return root_of(build_index(self._comments), comment)

    def count_replies(self, comment_id: str) -> int:
        comment = self.find(comment_id)
        return len(comment.replies) if comment is not None else 0

    def stats(self) -> dict[str, int]:
        return {
            "total_files": len(self._files),
            "total_comments": len(self._comments),
            "pending_comments": len(self.pending()),
            "unresolved_comments": len(self.unresolved()),
            "reviewed_files": sum(1 for f in self._files if f.reviewed),
        }

    # --- files -------------------------------------------------------------

    @property
    def files(self) -> tuple[DiffFile, ...]:
        return tuple(self._files)

    def set_files(self, files: list[DiffFile]) -> None:
        self._files = list(files)
        self.update_file_comment_counts()

    def find_file(self, path: str) -> DiffFile | None:
        return find_file(self._files, path)

    def set_file_reviewed(self, path: str, reviewed: bool) -> bool:
        f = self.find_file(path)
        if f is None:
            return False
        f.reviewed = reviewed
        return True

    def toggle_file_reviewed(self, path: str) -> bool | None:
        """Flip a file's reviewed flag; returns the new value, or None if unknown."""
        f = self.find_file(path)
        if f is None:
            return None
        f.reviewed = not f.reviewed
        return f.reviewed

    def file_comment_info(self, path: str) -> tuple[int, bool]:
        """Return ``(comment count, has pending local comments)`` for a path."""
        comments = self.comments_for_file(path)
        return len(comments), any(c.is_pending for c in comments)

    def update_file_comment_counts(self) -> None:
        counts: dict[str, int] = {}
        for c in self._comments:
            if c.file is not None:
                counts[c.file] = counts.get(c.file, 0) + 1
        for f in self._files:
            f.comment_count = counts.get(f.path, 0)

    # --- internals ---------------------------------------------------------

    def _new_local(
        self,
        file: str | None,
        line: int | None,
        body: str,
        comment_type: str | None = None,
        prefix: str = "local",
    ) -> Comment:
        return Comment(
            id=generate_id(prefix),
            kind=KIND_LOCAL,
            body=body,
            author=self.author,
            created_at=utc_now(),
            file=file,
            line=line,
            type=_check_type(comment_type) if comment_type is not None else self.default_type,
            status=STATUS_PENDING,
        )

    def _descendants(self, comment: Comment) -> list[Comment]:
        found: list[Comment] = []
        seen = {id(comment)}
        frontier = [comment]
        while frontier:
            parent = frontier.pop()
            refs = {parent.id}
            if parent.github_id is not None:
                refs.add(str(parent.github_id))
            for c in self._comments:
                if id(c) not in seen and c.in_reply_to_id is not None and str(c.in_reply_to_id) in refs:
                    seen.add(id(c))
                    found.append(c)
                    frontier.append(c)
        return found

    def _refresh(self) -> None:
        attach_replies(self._comments)
        self.update_file_comment_counts()
