"""Tests for the CLI entry point."""

import json

from click.testing import CliRunner

from redline_cli.cli import main

DIFF = (
    "diff --git a/src/t.ts b/src/t.ts\n"
    "index 1..2 100644\n"
    "--- a/src/t.ts\n"
    "+++ b/src/t.ts\n"
    "@@ -1,3 +1,4 @@\n"
    " context1\n"
    "-deleted\n"
    "+added1\n"
    "+added2\n"
    " context2\n"
    "diff --git a/poetry.lock b/poetry.lock\n"
    "index 3..4 100644\n"
    "--- a/poetry.lock\n"
    "+++ b/poetry.lock\n"
    "@@ -1 +1 @@\n"
    "-old\n"
    "+new\n"
)


def _make_config(exclude=None, author="you"):
    return {
        "author": author,
        "default_comment_type": "note",
        "exclude": exclude or [],
        "clamp_anchors": True,
    }


def _patch_config(mocker, config=None):
    cfg = config or _make_config()
    mocker.patch("redline_core.config.load_config", return_value=cfg)
    return cfg


def _invoke(args, input=None):
    return CliRunner().invoke(main, args, input=input)


class TestConfig:
    def test_invalid_config_is_a_usage_error(self, mocker):
        mocker.patch(
            "redline_core.config.load_config",
            side_effect=ValueError("Unknown default_comment_type: 'rant'."),
        )
        result = _invoke(["files"], input=DIFF)
        assert result.exit_code == 2
        assert "default_comment_type" in result.output

    def test_config_path_passed_through(self, mocker):
        load = mocker.patch("redline_core.config.load_config", return_value=_make_config())
        _invoke(["--config", "custom.yml", "files"], input=DIFF)
        load.assert_called_once_with("custom.yml")


class TestFiles:
    def test_lists_files_from_stdin(self, mocker):
        _patch_config(mocker)
        result = _invoke(["files"], input=DIFF)
        assert result.exit_code == 0, result.output
        assert "Changed files" in result.output
        assert "src/t.ts" in result.output
        assert "poetry.lock" in result.output
        assert "2 file(s)" in result.output

    def test_exclude_patterns_hide_files(self, mocker):
        _patch_config(mocker, _make_config(exclude=["*.lock"]))
        result = _invoke(["files"], input=DIFF)
        assert result.exit_code == 0, result.output
        assert "poetry.lock" not in result.output
        assert "1 file(s)" in result.output

    def test_all_ignores_exclude_patterns(self, mocker):
        _patch_config(mocker, _make_config(exclude=["*.lock"]))
        result = _invoke(["files", "--all"], input=DIFF)
        assert "poetry.lock" in result.output

    def test_reads_diff_file(self, mocker, tmp_path):
        _patch_config(mocker)
        diff_file = tmp_path / "change.diff"
        diff_file.write_text(DIFF)
        result = _invoke(["files", str(diff_file)])
        assert result.exit_code == 0, result.output
        assert "src/t.ts" in result.output

    def test_empty_diff(self, mocker):
        _patch_config(mocker)
        result = _invoke(["files"], input="")
        assert result.exit_code == 0
        assert "No changed files found." in result.output


class TestHunks:
    def test_shows_hunk_lines(self, mocker):
        _patch_config(mocker)
        result = _invoke(["hunks", "--path", "src/t.ts"], input=DIFF)
        assert result.exit_code == 0, result.output
        assert "@@ -1,3 +1,4 @@" in result.output
        assert "+added1" in result.output
        assert "-deleted" in result.output

    def test_unknown_path(self, mocker):
        _patch_config(mocker)
        result = _invoke(["hunks", "--path", "missing.ts"], input=DIFF)
        assert result.exit_code == 2
        assert "missing.ts" in result.output


class TestMap:
    def test_new_line_with_old_counterpart(self, mocker):
        _patch_config(mocker)
        result = _invoke(["map", "--path", "src/t.ts", "--line", "4"], input=DIFF)
        assert result.exit_code == 0, result.output
        assert "Side: RIGHT" in result.output
        assert "Hunk 1" in result.output
        assert "Line 4 -> old line 3" in result.output

    def test_added_line_has_no_old_counterpart(self, mocker):
        _patch_config(mocker)
        result = _invoke(["map", "--path", "src/t.ts", "--line", "2"], input=DIFF)
        assert "Line 2 has no old counterpart." in result.output

    def test_old_line_mapping(self, mocker):
        _patch_config(mocker)
        result = _invoke(["map", "--path", "src/t.ts", "--line", "2", "--old"], input=DIFF)
        assert "Line 2 has no new counterpart." in result.output
        assert "Side:" not in result.output

    def test_line_outside_hunks(self, mocker):
        _patch_config(mocker)
        result = _invoke(["map", "--path", "src/t.ts", "--line", "40"], input=DIFF)
        assert result.exit_code == 0
        assert "New line 40 of src/t.ts is outside every hunk." in result.output


class TestComments:
    def _records(self):
        return [
            {
                "id": "local_1",
                "kind": "local",
                "body": "Add a guard",
                "author": "you",
                "created_at": "2024-01-01T00:00:00Z",
                "file": "src/t.ts",
                "line": 3,
                "type": "issue",
                "status": "pending",
            },
            {
                "id": "gh_review_9",
                "kind": "review",
                "body": "Reuse helper",
                "author": "octocat",
                "created_at": "2024-01-02T00:00:00Z",
                "file": "src/a.ts",
                "line": 1,
                "github_id": 9,
                "resolved": False,
            },
        ]

    def test_lists_comments_from_object_payload(self, mocker, tmp_path):
        _patch_config(mocker)
        source = tmp_path / "review.json"
        source.write_text(json.dumps({"comments": self._records(), "metadata": {"version": 1}}))
        result = _invoke(["comments", str(source)])
        assert result.exit_code == 0, result.output
        assert "Review comments" in result.output
        assert "src/a.ts:1" in result.output
        assert "src/t.ts:3" in result.output
        assert "2 comment(s)" in result.output
        assert "1 pending" in result.output
        assert "1 unresolved" in result.output

    def test_reads_bare_array_and_filters_pending(self, mocker, tmp_path):
        _patch_config(mocker)
        source = tmp_path / "review.json"
        source.write_text(json.dumps(self._records()))
        result = _invoke(["comments", str(source), "--pending"])
        assert result.exit_code == 0, result.output
        assert "src/t.ts:3" in result.output
        assert "src/a.ts:1" not in result.output

    def test_filter_by_file(self, mocker, tmp_path):
        _patch_config(mocker)
        source = tmp_path / "review.json"
        source.write_text(json.dumps(self._records()))
        result = _invoke(["comments", str(source), "--file", "src/nothing.ts"])
        assert "No comments found." in result.output

    def test_pending_and_unresolved_are_exclusive(self, mocker, tmp_path):
        _patch_config(mocker)
        source = tmp_path / "review.json"
        source.write_text("[]")
        result = _invoke(["comments", str(source), "--pending", "--unresolved"])
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_unreadable_record_is_skipped(self, mocker, tmp_path):
        _patch_config(mocker)
        records = self._records()
        records.append(dict(records[0], id="local_bad", line="abc"))
        source = tmp_path / "review.json"
        source.write_text(json.dumps(records))
        result = _invoke(["comments", str(source)])
        assert result.exit_code == 0, result.output
        assert "2 comment(s)" in result.output

    def test_invalid_json(self, mocker, tmp_path):
        _patch_config(mocker)
        source = tmp_path / "review.json"
        source.write_text("{not json")
        result = _invoke(["comments", str(source)])
        assert result.exit_code == 2
        assert "not valid JSON" in result.output
