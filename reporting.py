"""Human-readable summary of a finished search."""

from __future__ import annotations

from models import CommitTimeline, SearchOutcome


def summarize(outcome: SearchOutcome, timeline: CommitTimeline, query: str) -> list[str]:
    """Summary lines for the audit log.

    Reports the first appearance, the last appearance and, when the last
    match is not the newest commit, the commit in which the string
    disappeared.
    """
    if outcome.first_match_index is None:
        return [f'Search string "{query}" does not appear in any of the checked commits.']

    lines = [f'Search string "{query}" first appears in commit {timeline[outcome.first_match_index].hash}.']
    last = outcome.last_match_index
    if last is not None:
        lines.append(f'Search string "{query}" last appears in commit {timeline[last].hash}.')
        if last < timeline.last_index:
            lines.append(f'Search string "{query}" disappeared in commit {timeline[last + 1].hash}.')
    return lines
