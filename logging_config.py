"""
Structured logging configuration for git-content-search.

Two channels live here:

- the diagnostic logger tree under ``git_content_search`` (stderr, level
  controlled by GIT_CONTENT_SEARCH_LOG_LEVEL);
- the append-only audit log, one flushed line per probe plus the run
  summary, written to ``search_log.txt`` so an interrupted search leaves a
  trail behind.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from config import AUDIT_LOG_FILENAME, LOG_LEVEL

if TYPE_CHECKING:
    from models import ProbeEvent

# Log format with timestamp, module, level, and message
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "git_content_search"

UNKNOWN_TIME = "unknown time"

BANNER = "=" * 50

# Track if logging has been initialized
_initialized = False


@contextmanager
def log_timing(operation_name: str, logger: logging.Logger):
    """Context manager to log operation timing.

    Args:
        operation_name: Name of the operation being timed.
        logger: Logger instance to use for logging.

    Example:
        with log_timing("Searching 120 commits of data.xlsx", logger):
            engine.find_last_match_index(timeline)
    """
    start = time.perf_counter()
    logger.debug(f"{operation_name} started")
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.info(f"{operation_name} completed in {elapsed:.2f}s")


def setup_logging(
    level: str = LOG_LEVEL, stream: TextIO = sys.stderr, force: bool = False
) -> logging.Logger:
    """Configure structured logging for git-content-search.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream for logs (default: stderr)
        force: Reconfigure even if logging was already set up

    Returns:
        Configured root logger for git_content_search
    """
    global _initialized

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Avoid adding duplicate handlers
    if _initialized and logger.handlers and not force:
        return logger

    level_value = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level_value)

    handler = logging.StreamHandler(stream)
    handler.setLevel(level_value)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger.handlers.clear()
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    _initialized = True
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (e.g., "server", "bisection", "git")

    Returns:
        Logger instance for the module
    """
    if not _initialized:
        setup_logging()

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class ToolLogger:
    """Context manager for logging tool invocations with timing.

    Usage:
        with ToolLogger("search_content", file_path="data.xlsx") as log:
            report = searcher.search_content(...)
            log.set_result_count(report["probes"])
    """

    def __init__(self, tool_name: str, **params):
        self.tool_name = tool_name
        self.params = params
        self.logger = get_logger("tools")
        self.start_time: datetime | None = None
        self.result_count: int | None = None
        self.error: str | None = None

    def __enter__(self) -> ToolLogger:
        self.start_time = datetime.now()
        safe_params = {k: v for k, v in self.params.items() if v is not None}
        self.logger.info(f"Tool invoked: {self.tool_name} params={safe_params}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (datetime.now() - self.start_time).total_seconds() * 1000 if self.start_time else 0

        if exc_type is not None:
            self.error = str(exc_val)
            self.logger.error(
                f"Tool failed: {self.tool_name} error={self.error} duration={duration_ms:.1f}ms"
            )
        else:
            count_str = f" count={self.result_count}" if self.result_count is not None else ""
            self.logger.info(
                f"Tool completed: {self.tool_name}{count_str} duration={duration_ms:.1f}ms"
            )

        return False  # Don't suppress exceptions

    def set_result_count(self, count: int) -> None:
        """Set the number of results returned by the tool."""
        self.result_count = count


class AuditLog:
    """Append-only record of a search: one line per probe plus the summary.

    Lines go through a dedicated logger whose handlers flush after every
    record. ``timestamp_of`` is called only when a probe line is written,
    so commit times are fetched lazily and never block the search itself.
    """

    def __init__(
        self,
        logger: logging.Logger,
        timestamp_of: Callable[[str], str] | None = None,
    ):
        self.logger = logger
        self.timestamp_of = timestamp_of
        self.lines: list[str] = []
        self._diagnostics = get_logger("audit")

    def write(self, line: str = "") -> None:
        """Append one line to the audit trail."""
        self.lines.append(line)
        self.logger.info(line)

    def banner(self, *lines: str) -> None:
        self.write(BANNER)
        for line in lines:
            self.write(line)
        self.write(BANNER)

    def commit_time(self, commit_hash: str) -> str:
        """Best-effort display time for *commit_hash*."""
        if self.timestamp_of is None:
            return UNKNOWN_TIME
        try:
            return self.timestamp_of(commit_hash)
        except Exception as exc:
            self.write(f"Error retrieving commit time for {commit_hash}: {exc}")
            return UNKNOWN_TIME

    def record_probe(self, event: ProbeEvent) -> None:
        """Write the audit line(s) for one probe event."""
        commit = event.commit
        if event.outcome.error is not None:
            message = getattr(event.outcome.error, "message", None) or str(event.outcome.error)
            self.write(f"Error retrieving file at commit {commit.hash}: {message}")
            self._diagnostics.debug(
                f"Probe error phase={event.phase} commit={commit.hash} "
                f"error_type={event.outcome.error.__class__.__name__}"
            )
        self.write(
            f"Checked commit: {commit.hash} at {self.commit_time(commit.hash)}, "
            f"found: {event.outcome.found}"
        )

    def close(self) -> None:
        """Detach and close the handlers owned by this audit log."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)


def open_audit_log(
    log_directory: Path | None,
    echo: TextIO | None = None,
    timestamp_of: Callable[[str], str] | None = None,
    name: str = "session",
) -> AuditLog:
    """Create an AuditLog appending to ``<log_directory>/search_log.txt``.

    Args:
        log_directory: Directory for the log file; None keeps lines in memory only.
        echo: Optional stream that receives every line too (stdout for the CLI).
        timestamp_of: Lazy commit-time lookup used on probe lines.
        name: Suffix for the underlying logger name.

    Returns:
        A ready AuditLog. Call ``close()`` when the search is done.
    """
    # Not registered with the logging manager: each search gets its own
    # handlers and nothing outlives close().
    logger = logging.Logger(f"{ROOT_LOGGER_NAME}.audit.{name}", logging.INFO)
    logger.propagate = False

    formatter = logging.Formatter("%(message)s")
    if log_directory is not None:
        file_handler = logging.FileHandler(
            Path(log_directory) / AUDIT_LOG_FILENAME, mode="a", encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    if echo is not None:
        echo_handler = logging.StreamHandler(echo)
        echo_handler.setFormatter(formatter)
        logger.addHandler(echo_handler)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return AuditLog(logger, timestamp_of=timestamp_of)


# Pre-configured loggers for common modules
def get_server_logger() -> logging.Logger:
    """Get logger for server module."""
    return get_logger("server")


def get_git_logger() -> logging.Logger:
    """Get logger for git history module."""
    return get_logger("git")


def get_search_logger() -> logging.Logger:
    """Get logger for the bisection search."""
    return get_logger("search")
