"""Thread reconstruction and mapping of pull-request comment payloads.

Threads are never stored as links between objects. A comment's replies
are recomputed from the flat list by following in_reply_to_id, which may
name either a comment id (local replies) or a GitHub id (remote replies).
Deleting a comment therefore cannot leave a dangling child pointer; a
reply whose parent has gone simply becomes the top of its own thread.
"""

from __future__ import annotations

from typing import Any

from redline_core.comments.models import (
    KIND_CONVERSATION,
    KIND_REVIEW,
    KIND_REVIEW_SUMMARY,
    Comment,
)


def build_index(comments: list[Comment]) -> dict[str, Comment]:
    """Map every comment id and GitHub id (as str) to its comment; ids win on clashes."""
    index: dict[str, Comment] = {}
    for c in comments:
        if c.github_id is not None:
            index.setdefault(str(c.github_id), c)
    for c in comments:
        index[c.id] = c
    return index


def resolve_ref(index: dict[str, Comment], ref: str | int | None) -> Comment | None:
    if ref is None:
        return None
    return index.get(str(ref))


def root_of(index: dict[str, Comment], comment: Comment) -> Comment:
    """Follow in_reply_to_id upwards as far as the parents can be found."""
    seen = {id(comment)}
    current = comment
    while current.in_reply_to_id is not None:
        parent = resolve_ref(index, current.in_reply_to_id)
        if parent is None or id(parent) in seen:
            break
        seen.add(id(parent))
        current = parent
    return current


def attach_replies(comments: list[Comment]) -> None:
    """Recompute ``replies`` on every comment in place.

    Each thread root receives all comments of its thread, oldest first
    (ties keep their order in the flat list); every other comment gets an
    empty list.
    """
    index = build_index(comments)
    for c in comments:
        c.replies = []
    for c in comments:
        if c.in_reply_to_id is None:
            continue
        root = root_of(index, c)
        if root is not c:
            root.replies.append(c)
    for c in comments:
        if c.replies:
            c.replies.sort(key=lambda r: r.created_at or "")


def group_into_threads(comments: list[Comment]) -> list[Comment]:
    """Return thread roots with replies attached, ordered by file then line."""
    attach_replies(comments)
    index = build_index(comments)
    roots = [c for c in comments if root_of(index, c) is c]
    return sorted(roots, key=lambda c: (c.file or "", c.line or 0))


# --- GitHub REST payloads ----------------------------------------------------


def _login(item: dict[str, Any]) -> str:
    user = item.get("user") or {}
    return user.get("login") or "unknown"


def from_review_comment(item: dict[str, Any]) -> Comment:
    """Map a ``GET /pulls/{n}/comments`` record to a review Comment.

    Comments on lines that are no longer in the diff only carry
    original_line; multi-line comments carry start_line as well.
    """
    line = item.get("line") or item.get("original_line")
    start_line = item.get("start_line") or item.get("original_start_line")
    end_line = None
    if start_line is not None and line is not None and start_line < line:
        line, end_line = start_line, line

    in_reply_to_id = item.get("in_reply_to_id")
    return Comment(
        id=f"gh_review_{item['id']}",
        kind=KIND_REVIEW,
        body=item.get("body") or "",
        author=_login(item),
        created_at=item.get("created_at") or "",
        updated_at=item.get("updated_at"),
        file=item.get("path"),
        line=line,
        end_line=end_line,
        side=item.get("side"),
        commit_id=item.get("commit_id"),
        thread_id=item["id"],
        in_reply_to_id=in_reply_to_id,
        github_id=item["id"],
        # REST does not report resolution; threads start unresolved until told otherwise.
        resolved=bool(item.get("resolved", False)) if in_reply_to_id is None else None,
    )


def from_issue_comment(item: dict[str, Any]) -> Comment:
    """Map a ``GET /issues/{n}/comments`` record to a file-less conversation Comment."""
    return Comment(
        id=f"gh_conv_{item['id']}",
        kind=KIND_CONVERSATION,
        body=item.get("body") or "",
        author=_login(item),
        created_at=item.get("created_at") or "",
        updated_at=item.get("updated_at"),
        github_id=item["id"],
    )


def from_review(item: dict[str, Any]) -> Comment | None:
    """Map a ``GET /pulls/{n}/reviews`` record; reviews without a body are skipped."""
    if not item.get("body"):
        return None
    return Comment(
        id=f"gh_summary_{item['id']}",
        kind=KIND_REVIEW_SUMMARY,
        body=item["body"],
        author=_login(item),
        created_at=item.get("submitted_at") or "",
        review_state=item.get("state"),
        github_id=item["id"],
    )


def comments_from_github(
    review_comments: list[dict[str, Any]] | None = None,
    issue_comments: list[dict[str, Any]] | None = None,
    reviews: list[dict[str, Any]] | None = None,
) -> list[Comment]:
    """Flatten already-fetched pull-request payloads into one comment list."""
    comments = [from_review_comment(item) for item in review_comments or []]
    comments.extend(from_issue_comment(item) for item in issue_comments or [])
    for item in reviews or []:
        summary = from_review(item)
        if summary is not None:
            comments.append(summary)
    return comments
