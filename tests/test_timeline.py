"""Tests for commit timeline construction."""

from __future__ import annotations

import pytest

from conftest import FakeHistoryReader
from errors import ConfigurationError, EmptyRangeError
from models import Commit, CommitTimeline
from timeline import build_timeline


class TestCommitTimeline:
    """Tests for the CommitTimeline sequence."""

    def test_from_newest_first_reverses(self):
        commits = [Commit("c", "f"), Commit("b", "f"), Commit("a", "f")]
        timeline = CommitTimeline.from_newest_first(commits)
        assert [c.hash for c in timeline] == ["a", "b", "c"]
        assert timeline.last_index == 2
        assert timeline.index_of("b") == 1
        assert timeline.index_of("zzz") is None

    def test_from_newest_first_drops_duplicates(self):
        """Repeated hashes keep their oldest occurrence."""
        commits = [Commit("b", "new.txt"), Commit("a", "f"), Commit("b", "old.txt")]
        timeline = CommitTimeline.from_newest_first(commits)
        assert [c.hash for c in timeline] == ["b", "a"]
        assert timeline[0].path == "old.txt"

    def test_duplicate_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            CommitTimeline([Commit("a", "f"), Commit("a", "f")])

    def test_empty(self):
        timeline = CommitTimeline([])
        assert len(timeline) == 0
        assert not timeline
        assert timeline.last_index == -1


class TestBuildTimeline:
    """Tests for build_timeline."""

    def test_whole_history(self):
        timeline = build_timeline(FakeHistoryReader(4), "data.txt")
        assert [c.hash for c in timeline] == ["C0", "C1", "C2", "C3"]

    def test_inclusive_range(self):
        timeline = build_timeline(FakeHistoryReader(6), "data.txt", "C1", "C3")
        assert [c.hash for c in timeline] == ["C1", "C2", "C3"]

    def test_single_commit_range(self):
        timeline = build_timeline(FakeHistoryReader(6), "data.txt", "C2", "C2")
        assert [c.hash for c in timeline] == ["C2"]

    def test_empty_range(self):
        with pytest.raises(EmptyRangeError, match="No commits found"):
            build_timeline(FakeHistoryReader(0), "data.txt")

    def test_inverted_range(self):
        """Earliest after latest is rejected before any probe."""
        reader = FakeHistoryReader(6)
        with pytest.raises(ConfigurationError, match="more recent"):
            build_timeline(reader, "data.txt", "C4", "C1")
        assert reader.materialized == []

    def test_blank_refs_mean_unbounded(self):
        timeline = build_timeline(FakeHistoryReader(3), "data.txt", "", "")
        assert len(timeline) == 3
