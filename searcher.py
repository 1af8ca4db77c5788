"""
Content search orchestration.

Builds the commit timeline once, runs the bisection engine over it and
writes the summary, keeping the audit log and the progress channel in step:
progress always ends with exactly one 1.0, whichever way the search exits.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TextIO

from bisection import BisectionEngine, Prober
from config import DISABLE_LINEAR_SEARCH, default_log_directory
from errors import ConfigurationError, EmptyRangeError, SearchCancelledError
from git_history import GitHistoryReader, HistoryReader
from logging_config import BANNER, AuditLog, get_search_logger, log_timing, open_audit_log
from matching import ContentMatcher, matcher_for
from models import SearchOutcome, SearchReport
from progress import STARTED, TIMELINE_RESOLVED, ProgressSink, ProgressTracker
from reporting import summarize
from timeline import build_timeline

logger = get_search_logger()


class ContentSearcher:
    """Finds the commit range over which a string is present in a file."""

    def __init__(
        self,
        reader: HistoryReader,
        matcher: ContentMatcher,
        audit: AuditLog,
        disable_linear_search: bool = False,
    ):
        self.reader = reader
        self.matcher = matcher
        self.audit = audit
        self.disable_linear_search = disable_linear_search

    def _warn_if_missing_at_head(self, file_path: str) -> None:
        exists_at_head = getattr(self.reader, "file_exists_at_head", None)
        if exists_at_head is None or exists_at_head(file_path):
            return
        self.audit.write(f"Warning: The file '{file_path}' does not exist in the current commit.")
        self.audit.write("The search will not include commits where the file path was not found.")
        self.audit.write("Please enter a file path that exists in the latest commit for accurate results.")
        self.audit.write()

    def search_content(
        self,
        file_path: str,
        query: str,
        earliest_ref: str | None = None,
        latest_ref: str | None = None,
        follow: bool = False,
        progress: ProgressSink | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> SearchReport:
        """Search the history of *file_path* for *query*.

        Args:
            file_path: File path relative to the repository root.
            query: Literal string to look for.
            earliest_ref: Oldest commit to consider (inclusive).
            latest_ref: Newest commit to consider (inclusive).
            follow: Follow the file across renames.
            progress: One-way sink receiving fractions in [0, 1].
            should_cancel: Polled before every probe.

        Returns:
            A SearchReport. Empty and inverted ranges are reported through
            its status, not raised.
        """
        tracker = ProgressTracker(progress)
        tracker.report(STARTED)
        report = SearchReport(status="ok", file_path=file_path, query=query)

        try:
            self._warn_if_missing_at_head(file_path)

            try:
                timeline = build_timeline(self.reader, file_path, earliest_ref, latest_ref, follow)
            except EmptyRangeError as exc:
                logger.info(f"No commits for {file_path}: {exc.details}")
                self.audit.write("No commits found in the specified range.")
                report.status = "no_commits"
                return report
            except ConfigurationError as exc:
                logger.warning(f"Inverted range for {file_path}: {exc.details}")
                self.audit.write("Error: The earliest commit is more recent than the latest commit.")
                report.status = "inverted_range"
                return report

            report.timeline = timeline
            tracker.report(TIMELINE_RESOLVED)

            engine = BisectionEngine(
                Prober(self.reader, self.matcher, query),
                progress=tracker,
                on_probe=self.audit.record_probe,
                disable_linear_search=self.disable_linear_search,
                should_cancel=should_cancel,
            )

            try:
                with log_timing(f"Searching {len(timeline)} commits of {file_path}", logger):
                    last_match = engine.find_last_match_index(timeline, 0)
                    first_match = engine.find_first_match_index(timeline, last_match)
            except SearchCancelledError:
                report.status = "cancelled"
                report.outcome = SearchOutcome(
                    first_match_index=engine.first_match_candidate,
                    last_match_index=engine.last_match_candidate,
                )
                report.probes = engine.probe_count
                self.audit.write("Search cancelled.")
                return report

            report.outcome = SearchOutcome(first_match_index=first_match, last_match_index=last_match)
            report.probes = engine.probe_count
            report.summary = summarize(report.outcome, timeline, query)
            for line in report.summary:
                self.audit.write(line)
            return report
        finally:
            tracker.finish()


def run_search(
    directory: str,
    file_path: str,
    query: str,
    earliest_ref: str | None = None,
    latest_ref: str | None = None,
    follow: bool = False,
    log_directory: Path | None = None,
    disable_linear_search: bool = DISABLE_LINEAR_SEARCH,
    echo: TextIO | None = None,
    progress: ProgressSink | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> tuple[SearchReport, AuditLog, Path]:
    """Run one search against the repository containing *directory*.

    Opens the repository, appends a session to ``search_log.txt`` in
    *log_directory* (materialized files are written there too) and returns
    the report, the audit log it wrote and the log directory.

    Raises:
        GitError: *directory* is not inside a git repository.
    """
    log_dir = Path(log_directory) if log_directory else default_log_directory()
    log_dir.mkdir(parents=True, exist_ok=True)

    reader = GitHistoryReader.open(directory, log_dir)
    audit = open_audit_log(log_dir, echo=echo, timestamp_of=reader.timestamp, name=uuid.uuid4().hex[:8])
    try:
        audit.banner(
            f"GitContentSearch started at {datetime.now():%Y-%m-%d %H:%M:%S}",
            f"Working Directory (Git Repo): {reader.root}",
            f"Logs and temporary files will be created in: {log_dir}",
        )
        searcher = ContentSearcher(reader, matcher_for(file_path), audit, disable_linear_search)
        report = searcher.search_content(
            file_path,
            query,
            earliest_ref=earliest_ref,
            latest_ref=latest_ref,
            follow=follow,
            progress=progress,
            should_cancel=should_cancel,
        )
        audit.write(f"GitContentSearch completed at {datetime.now():%Y-%m-%d %H:%M:%S}")
        audit.write(BANNER)
        return report, audit, log_dir
    finally:
        audit.close()
