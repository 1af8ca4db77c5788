"""Tests for the git history reader."""

from __future__ import annotations

import pytest

from conftest import git
from errors import ConfigurationError, GitError, RevisionNotFoundError, ToolInvocationError
from git_history import (
    GitHistoryReader,
    HistoryReader,
    get_repo,
    parse_log_output,
    temp_file_name,
)


@pytest.fixture
def reader(history_repo, temp_dir):
    repo_dir, _ = history_repo
    return GitHistoryReader.open(str(repo_dir), temp_dir / "work")


@pytest.fixture
def renamed_repo(temp_git_repo):
    """old/report.txt is edited, moved to new/report.txt, then edited again."""
    hashes = []
    (temp_git_repo / "old").mkdir()
    (temp_git_repo / "old" / "report.txt").write_text("v1 line one\nline two\nline three\n")
    git(temp_git_repo, "add", ".")
    git(temp_git_repo, "commit", "-m", "add report")
    hashes.append(git(temp_git_repo, "rev-parse", "HEAD"))

    (temp_git_repo / "new").mkdir()
    git(temp_git_repo, "mv", "old/report.txt", "new/report.txt")
    git(temp_git_repo, "commit", "-m", "move report")
    hashes.append(git(temp_git_repo, "rev-parse", "HEAD"))

    (temp_git_repo / "new" / "report.txt").write_text("v1 line one\nline two\nline three\nline four\n")
    git(temp_git_repo, "commit", "-am", "extend report")
    hashes.append(git(temp_git_repo, "rev-parse", "HEAD"))
    yield temp_git_repo, hashes


class TestHelpers:
    """Tests for module-level helpers."""

    def test_get_repo_from_subdirectory(self, history_repo):
        repo_dir, _ = history_repo
        sub = repo_dir / "sub"
        sub.mkdir()
        assert get_repo(str(sub)).working_tree_dir == str(repo_dir.resolve())

    def test_get_repo_outside_repository(self, temp_dir):
        with pytest.raises(GitError, match="Git repository not found"):
            get_repo(str(temp_dir))

    def test_temp_file_name_keeps_extension(self):
        assert temp_file_name("abc123", "reports/Q1 budget.xlsx") == "abc123_Q1_budget.xlsx"

    def test_parse_log_output(self):
        output = (
            "commit:ccc\n\nnew/report.txt\n"
            "commit:bbb\n"
            "commit:aaa\n\nold/report.txt\n"
        )
        assert parse_log_output(output, "new/report.txt") == [
            ("ccc", "new/report.txt"),
            ("bbb", "new/report.txt"),
            ("aaa", "old/report.txt"),
        ]

    def test_parse_empty_output(self):
        assert parse_log_output("", "a.txt") == []


class TestListCommits:
    """Tests for GitHistoryReader.list_commits."""

    def test_satisfies_protocol(self, reader):
        assert isinstance(reader, HistoryReader)

    def test_newest_first_touching_path_only(self, reader, history_repo):
        _, hashes = history_repo
        commits = reader.list_commits(None, None, "notes.txt")
        assert [c.hash for c in commits] == list(reversed(hashes))
        assert {c.path for c in commits} == {"notes.txt"}

    def test_inclusive_range(self, reader, history_repo):
        _, hashes = history_repo
        commits = reader.list_commits(hashes[1], hashes[3], "notes.txt")
        assert [c.hash for c in commits] == [hashes[3], hashes[2], hashes[1]]

    def test_range_from_root_commit(self, reader, history_repo):
        _, hashes = history_repo
        commits = reader.list_commits(hashes[0], None, "notes.txt")
        assert len(commits) == len(hashes)

    def test_refs_by_name(self, reader, history_repo):
        repo_dir, hashes = history_repo
        git(repo_dir, "tag", "v-start", hashes[4])
        commits = reader.list_commits("v-start", "HEAD", "notes.txt")
        assert [c.hash for c in commits] == [hashes[5], hashes[4]]

    def test_inverted_range_raises(self, reader, history_repo):
        _, hashes = history_repo
        with pytest.raises(ConfigurationError):
            reader.list_commits(hashes[4], hashes[1], "notes.txt")

    def test_unknown_ref_raises(self, reader):
        with pytest.raises(ToolInvocationError):
            reader.list_commits("no-such-branch", None, "notes.txt")

    def test_unknown_path_is_empty(self, reader):
        assert reader.list_commits(None, None, "missing.txt") == []

    def test_follow_renames(self, renamed_repo, temp_dir):
        repo_dir, hashes = renamed_repo
        reader = GitHistoryReader.open(str(repo_dir), temp_dir / "work")

        followed = reader.list_commits(None, None, "new/report.txt", follow=True)
        assert [c.hash for c in followed] == list(reversed(hashes))
        assert followed[-1].path == "old/report.txt"
        assert followed[0].path == "new/report.txt"

        unfollowed = reader.list_commits(None, None, "new/report.txt")
        assert [c.hash for c in unfollowed] == [hashes[2], hashes[1]]


class TestMaterialize:
    """Tests for GitHistoryReader.materialize."""

    def test_writes_and_removes(self, reader, history_repo):
        _, hashes = history_repo
        with reader.materialize(hashes[2], "notes.txt") as path:
            assert path.read_text() == "alpha\nbeta\nneedle\n"
            assert path.parent == reader.work_directory
        assert not path.exists()

    def test_removed_when_body_raises(self, reader, history_repo):
        _, hashes = history_repo
        with pytest.raises(RuntimeError):
            with reader.materialize(hashes[0], "notes.txt") as path:
                raise RuntimeError("matcher blew up")
        assert not path.exists()

    def test_missing_path(self, reader, history_repo):
        _, hashes = history_repo
        with pytest.raises(RevisionNotFoundError) as exc_info:
            with reader.materialize(hashes[0], "other.txt"):
                pass
        assert exc_info.value.commit_hash == hashes[0]

    def test_unknown_commit(self, reader):
        with pytest.raises(RevisionNotFoundError):
            with reader.materialize("no-such-branch", "notes.txt"):
                pass

    def test_follow_path_at_old_commit(self, renamed_repo, temp_dir):
        repo_dir, hashes = renamed_repo
        reader = GitHistoryReader.open(str(repo_dir), temp_dir / "work")
        with reader.materialize(hashes[0], "old/report.txt") as path:
            assert path.name.endswith("_report.txt")
            assert "v1" in path.read_text()


class TestRepositoryQueries:
    """Tests for refs, timestamps, HEAD checks and file location."""

    def test_resolve_ref(self, reader, history_repo):
        _, hashes = history_repo
        assert reader.resolve_ref(hashes[1][:10]) == hashes[1]
        with pytest.raises(GitError):
            reader.resolve_ref("no-such-branch")

    def test_timestamp_is_iso(self, reader, history_repo):
        _, hashes = history_repo
        stamp = reader.timestamp(hashes[0])
        assert stamp.endswith("+00:00")
        assert "T" in stamp

    def test_file_exists_at_head(self, reader):
        assert reader.file_exists_at_head("notes.txt")
        assert not reader.file_exists_at_head("missing.txt")

    def test_locate_file(self, renamed_repo, temp_dir):
        repo_dir, _ = renamed_repo
        reader = GitHistoryReader.open(str(repo_dir), temp_dir / "work")
        assert reader.locate_file("report.txt") == ["new/report.txt", "old/report.txt"]
        assert reader.locate_file("old/report.txt") == ["old/report.txt"]
        assert reader.locate_file("port.txt") == []
