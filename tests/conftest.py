"""
Shared test fixtures for git-content-search tests.
"""

from __future__ import annotations

import subprocess
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from errors import GitError, ProbeRetrievalError
from models import Commit, CommitTimeline, ProbeOutcome


def make_timeline(count: int, path: str = "data.txt") -> CommitTimeline:
    """Timeline C0..C<count-1>, oldest first."""
    return CommitTimeline(Commit(hash=f"C{i}", path=path) for i in range(count))


class RecordingProbe:
    """Probe answering from a set of present hashes, recording every call."""

    def __init__(self, present=(), failing=()):
        self.present = set(present)
        self.failing = set(failing)
        self.calls: list[str] = []

    def __call__(self, commit: Commit) -> ProbeOutcome:
        self.calls.append(commit.hash)
        if commit.hash in self.failing:
            return ProbeOutcome.failed(ProbeRetrievalError("simulated failure", commit.hash))
        return ProbeOutcome(found=commit.hash in self.present)


class FakeHistoryReader:
    """In-memory HistoryReader over commits C0..Cn (oldest first)."""

    def __init__(self, count: int, path: str = "data.txt", failing=(), at_head: bool = True,
                 broken_timestamps: bool = False):
        self.commits = [Commit(hash=f"C{i}", path=path) for i in range(count)]
        self.failing = set(failing)
        self.at_head = at_head
        self.broken_timestamps = broken_timestamps
        self.materialized: list[str] = []
        self.released: list[str] = []
        self.timestamp_calls: list[str] = []

    def list_commits(self, earliest_ref, latest_ref, path, follow=False):
        hashes = [c.hash for c in self.commits]
        low = hashes.index(earliest_ref) if earliest_ref in hashes else 0
        high = hashes.index(latest_ref) if latest_ref in hashes else len(hashes) - 1
        low, high = min(low, high), max(low, high)
        return list(reversed(self.commits[low:high + 1]))

    def resolve_ref(self, ref):
        if ref in {c.hash for c in self.commits}:
            return ref
        raise GitError(f"Could not resolve commit '{ref}'")

    @contextmanager
    def materialize(self, commit_hash, path):
        if commit_hash in self.failing:
            raise ProbeRetrievalError(f"simulated failure at {commit_hash}", commit_hash)
        self.materialized.append(commit_hash)
        try:
            yield Path(commit_hash)
        finally:
            self.released.append(commit_hash)

    def timestamp(self, commit_hash):
        self.timestamp_calls.append(commit_hash)
        if self.broken_timestamps:
            raise RuntimeError("no time for you")
        return f"2024-01-{int(commit_hash[1:]) + 1:02d}T00:00:00+00:00"

    def file_exists_at_head(self, path):
        return self.at_head


class SetMatcher:
    """ContentMatcher that treats a materialized path's name as a commit hash."""

    def __init__(self, present=()):
        self.present = set(present)

    def supports(self, file_path):
        return True

    def contains(self, file_path, query):
        return Path(file_path).name in self.present


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for file tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout.strip()


@pytest.fixture
def temp_git_repo(temp_dir):
    """Provide a temporary git repository for tests."""
    repo_dir = temp_dir / "repo"
    repo_dir.mkdir()
    git(repo_dir, "init")
    git(repo_dir, "config", "user.email", "test@test.com")
    git(repo_dir, "config", "user.name", "Test User")
    git(repo_dir, "config", "commit.gpgsign", "false")
    yield repo_dir


@pytest.fixture
def history_repo(temp_git_repo):
    """Repository where notes.txt has 6 versions; "needle" is in v2 and v3.

    An unrelated file is committed in between so not every commit touches
    notes.txt. Yields ``(repo_dir, hashes)`` with hashes of the notes.txt
    commits, oldest first.
    """
    contents = [
        "alpha\n",
        "alpha\nbeta\n",
        "alpha\nbeta\nneedle\n",
        "alpha\nneedle\ngamma\n",
        "alpha\ngamma\n",
        "alpha\ngamma\ndelta\n",
    ]
    hashes = []
    for i, content in enumerate(contents):
        (temp_git_repo / "notes.txt").write_text(content)
        git(temp_git_repo, "add", "notes.txt")
        git(temp_git_repo, "commit", "-m", f"notes v{i}")
        hashes.append(git(temp_git_repo, "rev-parse", "HEAD"))
        if i == 2:
            (temp_git_repo / "other.txt").write_text("unrelated\n")
            git(temp_git_repo, "add", "other.txt")
            git(temp_git_repo, "commit", "-m", "unrelated change")
    yield temp_git_repo, hashes
