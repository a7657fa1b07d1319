"""Review comment model.

One Comment type covers all four populations: local drafts written in the
editor, and three kinds fetched from a pull request (inline review
comments, conversation comments and review summaries). Fields that only
make sense for one kind (type/status for local, resolved for review) are
left as None on the others.

The persistence layer only ever sees plain dicts: to_dict()/from_dict()
for single records, and to_payload()/comments_from_payload() for whole
files, which accept both the legacy bare-array shape and the newer
object-with-metadata shape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any

from redline_core.utils.ids import utc_now

logger = logging.getLogger(__name__)

KIND_LOCAL = "local"
KIND_REVIEW = "review"
KIND_CONVERSATION = "conversation"
KIND_REVIEW_SUMMARY = "review_summary"
COMMENT_KINDS = (KIND_LOCAL, KIND_REVIEW, KIND_CONVERSATION, KIND_REVIEW_SUMMARY)

TYPE_NOTE = "note"
TYPE_ISSUE = "issue"
TYPE_SUGGESTION = "suggestion"
TYPE_PRAISE = "praise"
COMMENT_TYPES = (TYPE_NOTE, TYPE_ISSUE, TYPE_SUGGESTION, TYPE_PRAISE)

STATUS_PENDING = "pending"
STATUS_SUBMITTED = "submitted"

LOCAL_AUTHOR = "you"
PAYLOAD_VERSION = 1


@dataclass
class Comment:
    id: str
    kind: str  # "local" | "review" | "conversation" | "review_summary"
    body: str
    author: str
    created_at: str  # ISO-8601 UTC
    updated_at: str | None = None
    file: str | None = None
    line: int | None = None
    end_line: int | None = None  # only for multi-line comments; line <= end_line
    type: str | None = None  # local only: "note" | "issue" | "suggestion" | "praise"
    status: str | None = None  # local only: "pending" | "submitted"
    resolved: bool | None = None  # review only
    in_reply_to_id: str | int | None = None
    github_id: int | None = None
    thread_id: int | None = None
    side: str | None = None  # "LEFT" | "RIGHT"
    commit_id: str | None = None
    review_state: str | None = None  # review_summary only: "APPROVED" | "CHANGES_REQUESTED" | "COMMENTED"
    # Derived by the store from in_reply_to_id; never persisted.
    replies: list[Comment] = field(default_factory=list, repr=False, compare=False)

    @property
    def is_local(self) -> bool:
        return self.kind == KIND_LOCAL

    @property
    def is_pending(self) -> bool:
        return self.kind == KIND_LOCAL and self.status == STATUS_PENDING

    @property
    def is_root(self) -> bool:
        return self.in_reply_to_id is None

    @property
    def is_positioned(self) -> bool:
        """True when the comment takes part in (file, line) sorting and filtering."""
        return self.file is not None and self.line is not None

    @property
    def last_line(self) -> int | None:
        return self.end_line if self.end_line is not None else self.line

    def covers(self, line: int) -> bool:
        if self.line is None:
            return False
        return self.line <= line <= self.last_line

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict record with None fields and derived replies omitted."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "replies" and getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Comment:
        """Build a Comment from a stored record, tolerating missing or unknown keys."""
        known = {f.name for f in fields(cls)} - {"replies"}
        values = {k: v for k, v in data.items() if k in known}
        values.setdefault("id", "")
        values.setdefault("kind", KIND_LOCAL)
        values["body"] = values.get("body") or ""
        values["author"] = values.get("author") or LOCAL_AUTHOR
        values["created_at"] = values.get("created_at") or ""
        for key in ("line", "end_line"):
            if values.get(key) is not None:
                values[key] = int(values[key])
        return cls(**values)


def to_payload(comments: list[Comment]) -> dict[str, Any]:
    """Serialisable payload for a persistence layer: comments plus metadata."""
    return {
        "comments": [c.to_dict() for c in comments],
        "metadata": {"saved_at": utc_now(), "version": PAYLOAD_VERSION},
    }


def comments_from_payload(data: Any) -> list[Comment]:
    """Load comments from either the legacy bare array or ``{"comments": [...]}``.

    Anything else (None, a scalar, an object without comments) yields [].
    Records that cannot be read, such as a non-numeric line, are skipped.
    """
    if isinstance(data, list):
        records = data
    elif isinstance(data, dict):
        records = data.get("comments")
        if not isinstance(records, list):
            return []
    else:
        return []
    comments = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            comments.append(Comment.from_dict(record))
        except (TypeError, ValueError) as e:
            logger.debug("Skipping unreadable comment record %r: %s", record.get("id"), e)
    return comments
