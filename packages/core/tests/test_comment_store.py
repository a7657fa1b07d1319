"""Tests for CommentStore mutation rules and queries."""

import pytest

from redline_core.comments.models import Comment
from redline_core.comments.store import CommentStore
from redline_core.models import DiffFile


def _remote(cid, github_id, file="a.py", line=1, in_reply_to_id=None, resolved=False):
    return Comment(
        id=cid,
        kind="review",
        body=cid,
        author="octocat",
        created_at="2024-01-01T00:00:00Z",
        file=file,
        line=line,
        github_id=github_id,
        in_reply_to_id=in_reply_to_id,
        resolved=resolved if in_reply_to_id is None else None,
    )


@pytest.fixture
def store():
    return CommentStore()


class TestAdd:
    def test_add_creates_pending_local_comment(self, store):
        c = store.add("a.ts", 5, "fix")
        assert c.kind == "local"
        assert c.status == "pending"
        assert c.type == "note"
        assert c.author == "you"
        assert c.id.startswith("local_")
        assert store.find(c.id) is c

    def test_add_uses_configured_author_and_type(self):
        store = CommentStore.from_config({"author": "sam", "default_comment_type": "issue"})
        c = store.add("a.ts", 1, "x")
        assert (c.author, c.type) == ("sam", "issue")

    def test_add_with_explicit_type(self, store):
        assert store.add("a.ts", 1, "x", comment_type="praise").type == "praise"

    def test_unknown_type_raises(self, store):
        with pytest.raises(ValueError, match="Unknown comment type"):
            store.add("a.ts", 1, "x", comment_type="rant")
        with pytest.raises(ValueError):
            CommentStore(default_type="rant")

    def test_add_multiline(self, store):
        c = store.add_multiline("a.ts", 3, 6, "block")
        assert (c.line, c.end_line) == (3, 6)

    def test_add_multiline_swaps_reversed_range(self, store):
        c = store.add_multiline("a.ts", 9, 4, "block")
        assert (c.line, c.end_line) == (4, 9)

    def test_comments_view_is_read_only(self, store):
        store.add("a.ts", 1, "x")
        assert isinstance(store.comments, tuple)


class TestSorted:
    def test_orders_by_line_within_file(self, store):
        five = store.add("a.ts", 5, "fix")
        three = store.add("a.ts", 3, "note")
        assert store.sorted_comments() == [three, five]

    def test_orders_by_file_then_line_and_keeps_ties_stable(self, store):
        b1 = store.add("b.ts", 1, "b1")
        a7 = store.add("a.ts", 7, "a7")
        first = store.add("a.ts", 2, "first")
        second = store.add("a.ts", 2, "second")
        assert store.sorted_comments() == [first, second, a7, b1]

    def test_file_less_comments_are_left_out(self, store):
        conversation = Comment(id="gh_conv_1", kind="conversation", body="hi", author="bob", created_at="")
        store.set_comments([conversation])
        assert store.sorted_comments() == []
        assert store.stats()["total_comments"] == 1


class TestEditDelete:
    def test_edit_pending_comment(self, store):
        c = store.add("a.ts", 1, "old")
        assert store.edit(c.id, "new") is True
        assert c.body == "new"
        assert c.updated_at is not None

    def test_submitted_comment_is_frozen(self, store):
        c = store.add("a.ts", 1, "x")
        assert store.mark_submitted(c.id, 1234) is True
        assert c.status == "submitted"
        assert c.github_id == 1234
        assert store.edit(c.id, "y") is False
        assert store.delete(c.id) is False
        assert store.mark_submitted(c.id, 99) is False
        assert c.github_id == 1234
        assert not store.is_editable(c.id)
        assert not store.is_deletable(c.id)

    def test_remote_comments_cannot_be_edited(self, store):
        store.set_comments([_remote("gh_review_1", 1)])
        assert store.edit("gh_review_1", "x") is False
        assert store.delete("gh_review_1") is False

    def test_unknown_id(self, store):
        assert store.edit("nope", "x") is False
        assert store.delete("nope") is False
        assert store.mark_submitted("nope", 1) is False

    def test_delete_removes_local_replies(self, store):
        parent = store.add("a.ts", 1, "x")
        child = store.reply(parent.id, "y")
        store.reply(child.id, "z")
        keep = store.add("a.ts", 2, "keep")
        assert store.delete(parent.id) is True
        assert store.comments == (keep,)

    def test_delete_refused_when_a_remote_reply_exists(self, store):
        parent = store.add("a.ts", 1, "x")
        remote_reply = _remote("gh_review_5", 5, in_reply_to_id=parent.id)
        store.set_comments([*store.comments, remote_reply])
        assert store.delete(parent.id) is False
        assert store.find(parent.id) is parent


class TestReply:
    def test_reply_threads_under_parent(self, store):
        parent = store.add("a.ts", 4, "x")
        reply = store.reply(parent.id, "ack")
        assert reply.in_reply_to_id == parent.id
        assert parent.replies == [reply]
        assert store.count_replies(parent.id) == 1
        assert reply.id.startswith("reply_")
        assert (reply.file, reply.line) == ("a.ts", 4)

    def test_reply_copies_range_and_leaves_parent_alone(self, store):
        store.set_comments([_remote("gh_review_42", 42, line=10)])
        parent = store.find("gh_review_42")
        parent.end_line = 12
        reply = store.reply("gh_review_42", "ack")
        assert (reply.line, reply.end_line) == (10, 12)
        assert parent.resolved is False
        assert parent.status is None

    def test_reply_by_github_id(self, store):
        store.set_comments([_remote("gh_review_42", 42)])
        reply = store.reply(42, "ack")
        assert reply.in_reply_to_id == "gh_review_42"
        assert store.count_replies("gh_review_42") == 1

    def test_reply_to_unknown_parent(self, store):
        assert store.reply("missing", "ack") is None
        assert store.comments == ()

    def test_nested_replies_belong_to_thread_root(self, store):
        root = store.add("a.ts", 1, "root")
        child = store.reply(root.id, "child")
        grandchild = store.reply(child.id, "grandchild")
        assert store.thread_root(grandchild.id) is root
        assert store.count_replies(root.id) == 2
        assert store.count_replies(child.id) == 0

    def test_thread_root_of_unknown_comment(self, store):
        assert store.thread_root("nope") is None


class TestResolve:
    def test_resolve_is_idempotent_and_reversible(self, store):
        store.set_comments([_remote("gh_review_1", 1)])
        assert store.set_resolved("gh_review_1", True) is True
        assert store.set_resolved("gh_review_1", True) is True
        assert store.find("gh_review_1").resolved is True
        assert store.set_resolved("gh_review_1", False) is True
        assert store.find("gh_review_1").resolved is False

    def test_only_review_comments_resolve(self, store):
        c = store.add("a.ts", 1, "x")
        assert store.set_resolved(c.id, True) is False
        assert c.resolved is None

    def test_unresolved_lists_open_review_threads(self, store):
        store.set_comments(
            [
                _remote("gh_review_1", 1),
                _remote("gh_review_2", 2, resolved=True),
                _remote("gh_review_3", 3, in_reply_to_id=1),
            ]
        )
        assert [c.id for c in store.unresolved()] == ["gh_review_1"]


class TestSetType:
    def test_set_type_on_local(self, store):
        c = store.add("a.ts", 1, "x")
        assert store.set_type(c.id, "suggestion") is True
        assert c.type == "suggestion"

    def test_set_type_on_remote_is_refused(self, store):
        store.set_comments([_remote("gh_review_1", 1)])
        assert store.set_type("gh_review_1", "issue") is False

    def test_set_type_refuses_unknown_type(self, store):
        c = store.add("a.ts", 1, "x", comment_type="issue")
        assert store.set_type(c.id, "rant") is False
        assert c.type == "issue"
        assert store.set_type("no-such-id", "rant") is False


class TestQueries:
    def test_at_line_includes_ranges(self, store):
        single = store.add("a.ts", 5, "single")
        block = store.add_multiline("a.ts", 3, 6, "block")
        store.add("b.ts", 5, "other file")
        assert store.at_line("a.ts", 5) == [single, block]
        assert store.at_line("a.ts", 3) == [block]
        assert store.at_line("a.ts", 7) == []

    def test_pending_and_comments_for_file(self, store):
        a = store.add("a.ts", 1, "a")
        b = store.add("b.ts", 1, "b")
        store.mark_submitted(b.id, 7)
        assert store.pending() == [a]
        assert store.comments_for_file("b.ts") == [b]

    def test_merge_remote_keeps_local_drafts(self, store):
        draft = store.add("a.ts", 1, "draft")
        store.set_comments([*store.comments, _remote("gh_review_1", 1)])
        store.merge_remote([_remote("gh_review_2", 2), draft])
        assert [c.id for c in store.comments] == [draft.id, "gh_review_2"]

    def test_local_records_and_payload(self, store):
        draft = store.add("a.ts", 1, "draft")
        store.set_comments([*store.comments, _remote("gh_review_1", 1)])
        assert [r["id"] for r in store.local_records()] == [draft.id]
        assert [r["id"] for r in store.to_payload()["comments"]] == [draft.id]


class TestFiles:
    def _files(self):
        return [DiffFile(path="a.ts"), DiffFile(path="b.ts", status="renamed", old_path="old_b.ts")]

    def test_comment_counts_follow_mutations(self, store):
        store.set_files(self._files())
        c = store.add("a.ts", 1, "x")
        store.add("a.ts", 2, "y")
        assert store.find_file("a.ts").comment_count == 2
        assert store.file_comment_info("a.ts") == (2, True)
        store.delete(c.id)
        assert store.find_file("a.ts").comment_count == 1
        assert store.file_comment_info("b.ts") == (0, False)

    def test_reviewed_flags(self, store):
        store.set_files(self._files())
        assert store.toggle_file_reviewed("a.ts") is True
        assert store.set_file_reviewed("old_b.ts", True) is True
        assert store.toggle_file_reviewed("missing.ts") is None
        assert store.set_file_reviewed("missing.ts", True) is False
        assert store.stats()["reviewed_files"] == 2

    def test_stats(self, store):
        store.set_files(self._files())
        store.add("a.ts", 1, "x")
        store.set_comments([*store.comments, _remote("gh_review_1", 1)])
        assert store.stats() == {
            "total_files": 2,
            "total_comments": 2,
            "pending_comments": 1,
            "unresolved_comments": 1,
            "reviewed_files": 0,
        }
