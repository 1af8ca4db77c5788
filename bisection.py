"""
Bisection search over a file's commit timeline.

Finds the first and last timeline indices at which a probe reports the
search string as present, assuming presence forms one contiguous run of
commits. The last match is searched first; its index then bounds the
first-match search from above.

The engine never touches git or the filesystem. It calls ``probe`` for a
commit, wraps the result in a ``ProbeEvent`` and hands it to ``on_probe``
(normally ``AuditLog.record_probe``), so it can be driven by a recorded
sequence of outcomes in tests.

Known limitation: when the string was added, removed and re-added (several
disjoint runs), the linear fallback only recovers a probe that lands just
outside the most recent run. Results for multi-run histories are not
guaranteed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from errors import ContentMatchError, ProbeRetrievalError, SearchCancelledError
from logging_config import get_search_logger
from models import Commit, CommitTimeline, Phase, ProbeEvent, ProbeOutcome, SearchOutcome
from progress import (
    FINISHED,
    LAST_MATCH_DONE,
    TIMELINE_RESOLVED,
    ProgressTracker,
    expected_probes,
)

if TYPE_CHECKING:
    from git_history import HistoryReader
    from matching import ContentMatcher

logger = get_search_logger()

ProbeFn = Callable[[Commit], ProbeOutcome]
ProbeObserver = Callable[[ProbeEvent], None]


class Prober:
    """Probe backed by a history reader and a content matcher.

    Materializes the commit's version of the file, tests it, and releases
    it again. Retrieval and matching failures count as "not found"; they
    are never retried.
    """

    def __init__(self, reader: HistoryReader, matcher: ContentMatcher, query: str):
        self.reader = reader
        self.matcher = matcher
        self.query = query

    def __call__(self, commit: Commit) -> ProbeOutcome:
        try:
            with self.reader.materialize(commit.hash, commit.path) as content_path:
                return ProbeOutcome(found=self.matcher.contains(content_path, self.query))
        except (ProbeRetrievalError, ContentMatchError) as exc:
            logger.warning(f"Probe failed for commit {commit.hash}: {exc}")
            return ProbeOutcome.failed(exc)


class BisectionEngine:
    """Locates the boundaries of the run of commits containing a string."""

    def __init__(
        self,
        probe: ProbeFn,
        progress: ProgressTracker | None = None,
        on_probe: ProbeObserver | None = None,
        disable_linear_search: bool = False,
        should_cancel: Callable[[], bool] | None = None,
    ):
        self.probe = probe
        self.progress = progress or ProgressTracker()
        self.on_probe = on_probe
        self.disable_linear_search = disable_linear_search
        self.should_cancel = should_cancel
        self.probe_count = 0
        # Best candidates so far, readable after a cancelled search
        self.last_match_candidate: int | None = None
        self.first_match_candidate: int | None = None

    def _check_cancelled(self) -> None:
        if self.should_cancel is not None and self.should_cancel():
            raise SearchCancelledError(
                "Search cancelled by caller", {"probes": self.probe_count}
            )

    def _probe(self, timeline: CommitTimeline, index: int, phase: Phase) -> bool:
        commit = timeline[index]
        outcome = self.probe(commit)
        self.probe_count += 1
        logger.debug(f"Probe phase={phase} index={index} commit={commit.hash} found={outcome.found}")
        if self.on_probe is not None:
            self.on_probe(ProbeEvent(index=index, commit=commit, outcome=outcome, phase=phase))
        return outcome.found

    def search(self, timeline: CommitTimeline) -> SearchOutcome:
        """Run the last-match search, then the first-match search bounded by it."""
        last_match = self.find_last_match_index(timeline, 0)
        first_match = self.find_first_match_index(timeline, last_match)
        return SearchOutcome(first_match_index=first_match, last_match_index=last_match)

    def find_last_match_index(
        self, timeline: CommitTimeline, search_start_index: int = 0
    ) -> int | None:
        """Binary search for the newest commit containing the string.

        A miss at ``mid`` may mean the run starts after ``mid`` rather than
        ending before it, so unless disabled every miss triggers a newest
        first scan of ``(mid, right]``. A hit there is adopted as the last
        match and ends the search.
        """
        left = max(0, search_start_index)
        right = timeline.last_index
        last_match: int | None = None
        self.last_match_candidate = None
        expected = expected_probes(right - left + 1)
        done = 0

        while left <= right:
            self._check_cancelled()
            mid = left + (right - left) // 2
            found = self._probe(timeline, mid, "last_match")
            done += 1
            self.progress.advance(TIMELINE_RESOLVED, LAST_MATCH_DONE, done, expected)

            if found:
                last_match = mid
                self.last_match_candidate = mid
                left = mid + 1
                continue

            if not self.disable_linear_search:
                fallback = self.linear_search(timeline, mid + 1, right, reverse=True)
                if fallback is not None:
                    last_match = fallback
                    self.last_match_candidate = fallback
                    self.progress.report(LAST_MATCH_DONE)
                    break

            right = mid - 1

        return last_match

    def find_first_match_index(
        self, timeline: CommitTimeline, upper_bound: int | None
    ) -> int | None:
        """Binary search for the oldest commit containing the string.

        ``upper_bound`` is the last match found earlier; the run cannot start
        after its own end. None searches the whole timeline.
        """
        left = 0
        if upper_bound is None or upper_bound < 0:
            right = timeline.last_index
        else:
            right = min(upper_bound, timeline.last_index)
        first_match: int | None = None
        self.first_match_candidate = None
        expected = expected_probes(right - left + 1)
        done = 0

        while left <= right:
            self._check_cancelled()
            mid = left + (right - left) // 2
            found = self._probe(timeline, mid, "first_match")
            done += 1
            self.progress.advance(LAST_MATCH_DONE, FINISHED, done, expected)

            if found:
                first_match = mid
                self.first_match_candidate = mid
                right = mid - 1
            else:
                left = mid + 1

        return first_match

    def linear_search(
        self, timeline: CommitTimeline, left: int, right: int, reverse: bool = False
    ) -> int | None:
        """Probe ``[left, right]`` one commit at a time; return the first hit."""
        if left > right:
            return None

        indices = range(right, left - 1, -1) if reverse else range(left, right + 1)
        total = len(indices)
        for done, index in enumerate(indices, start=1):
            self._check_cancelled()
            found = self._probe(timeline, index, "linear_fallback")
            self.progress.advance(TIMELINE_RESOLVED, LAST_MATCH_DONE, done, total)
            if found:
                return index

        return None
