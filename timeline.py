"""Commit timeline construction for one tracked file."""

from __future__ import annotations

from errors import ConfigurationError, EmptyRangeError, GitError
from git_history import HistoryReader
from logging_config import get_search_logger
from models import CommitTimeline

logger = get_search_logger()


def _position(reader: HistoryReader, timeline: CommitTimeline, ref: str) -> int | None:
    position = timeline.index_of(ref)
    if position is not None:
        return position
    try:
        return timeline.index_of(reader.resolve_ref(ref))
    except GitError:
        return None


def build_timeline(
    reader: HistoryReader,
    path: str,
    earliest_ref: str | None = None,
    latest_ref: str | None = None,
    follow: bool = False,
) -> CommitTimeline:
    """Resolve the commits touching *path* between two optional references.

    Args:
        reader: History source.
        path: File path relative to the repository root.
        earliest_ref: Oldest commit to include (inclusive).
        latest_ref: Newest commit to include (inclusive).
        follow: Track the file across renames.

    Returns:
        The timeline, oldest commit first.

    Raises:
        EmptyRangeError: No commit touches *path* in the range.
        ConfigurationError: *earliest_ref* sits after *latest_ref* in the timeline.
    """
    commits = reader.list_commits(earliest_ref or None, latest_ref or None, path, follow)
    timeline = CommitTimeline.from_newest_first(commits)

    if not timeline:
        raise EmptyRangeError(
            "No commits found in the specified range.",
            {"path": path, "earliest": earliest_ref, "latest": latest_ref},
        )

    if earliest_ref and latest_ref:
        earliest_at = _position(reader, timeline, earliest_ref)
        latest_at = _position(reader, timeline, latest_ref)
        if earliest_at is not None and latest_at is not None and earliest_at > latest_at:
            raise ConfigurationError(
                "The earliest commit is more recent than the latest commit.",
                {"earliest": earliest_ref, "latest": latest_ref},
            )

    logger.info(f"Timeline for {path}: {len(timeline)} commits")
    return timeline
