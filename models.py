"""
Data model for a content search over a file's history.

A search walks a ``CommitTimeline`` (oldest first) and turns probe
outcomes into a ``SearchOutcome``: the first and last timeline indices at
which the search string was present.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Literal, overload

Phase = Literal["last_match", "linear_fallback", "first_match"]
SearchStatus = Literal["ok", "no_commits", "inverted_range", "cancelled"]


@dataclass(frozen=True)
class Commit:
    """One commit touching the tracked file.

    ``path`` is the file's path at this commit, which can differ from the
    requested path when renames are followed.
    """

    hash: str
    path: str


class CommitTimeline(Sequence[Commit]):
    """Commits touching one file, oldest to newest, without duplicates."""

    def __init__(self, commits: Iterable[Commit]):
        self._commits: tuple[Commit, ...] = tuple(commits)
        self._positions: dict[str, int] = {}
        for index, commit in enumerate(self._commits):
            if commit.hash in self._positions:
                raise ValueError(f"Duplicate commit in timeline: {commit.hash}")
            self._positions[commit.hash] = index

    @classmethod
    def from_newest_first(cls, commits: Iterable[Commit]) -> CommitTimeline:
        """Build a timeline from native ``git log`` order.

        Reverses to oldest first and drops repeated hashes, keeping the
        first occurrence in chronological order.
        """
        seen: set[str] = set()
        ordered: list[Commit] = []
        for commit in reversed(list(commits)):
            if commit.hash in seen:
                continue
            seen.add(commit.hash)
            ordered.append(commit)
        return cls(ordered)

    @overload
    def __getitem__(self, index: int) -> Commit: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Commit, ...]: ...

    def __getitem__(self, index):
        return self._commits[index]

    def __len__(self) -> int:
        return len(self._commits)

    def __iter__(self) -> Iterator[Commit]:
        return iter(self._commits)

    def __repr__(self) -> str:
        return f"CommitTimeline({len(self._commits)} commits)"

    @property
    def last_index(self) -> int:
        return len(self._commits) - 1

    def index_of(self, commit_hash: str) -> int | None:
        """Position of *commit_hash*, or None when it is not in the timeline."""
        return self._positions.get(commit_hash)


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of testing one commit. An error always means not found."""

    found: bool
    error: Exception | None = None

    @classmethod
    def failed(cls, error: Exception) -> ProbeOutcome:
        return cls(found=False, error=error)


@dataclass(frozen=True)
class ProbeEvent:
    """Structured record of one probe, handed to the audit log."""

    index: int
    commit: Commit
    outcome: ProbeOutcome
    phase: Phase

    @property
    def found(self) -> bool:
        return self.outcome.found


@dataclass(frozen=True)
class SearchOutcome:
    """First/last timeline indices where the string was seen (None if never)."""

    first_match_index: int | None = None
    last_match_index: int | None = None

    @property
    def found(self) -> bool:
        return self.first_match_index is not None


@dataclass
class SearchReport:
    """Everything a finished search hands back to its caller."""

    status: SearchStatus
    file_path: str
    query: str
    outcome: SearchOutcome = field(default_factory=SearchOutcome)
    timeline: CommitTimeline | None = None
    probes: int = 0
    summary: list[str] = field(default_factory=list)

    @property
    def commits_in_range(self) -> int:
        return len(self.timeline) if self.timeline is not None else 0

    def _commit_at(self, index: int | None) -> Commit | None:
        if index is None or self.timeline is None:
            return None
        return self.timeline[index]

    @property
    def first_appearance(self) -> Commit | None:
        return self._commit_at(self.outcome.first_match_index)

    @property
    def last_appearance(self) -> Commit | None:
        if self.outcome.first_match_index is None:
            return None
        return self._commit_at(self.outcome.last_match_index)

    @property
    def disappeared_in(self) -> Commit | None:
        last = self.outcome.last_match_index
        if self.outcome.first_match_index is None or last is None or self.timeline is None:
            return None
        if last >= self.timeline.last_index:
            return None
        return self.timeline[last + 1]
