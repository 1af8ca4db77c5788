"""
Runtime configuration for git-content-search.

Every setting can be overridden through an environment variable; CLI flags
and tool arguments take precedence over these defaults.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Diagnostic log level (the audit log is always written)
LOG_LEVEL = os.environ.get("GIT_CONTENT_SEARCH_LOG_LEVEL", "INFO").upper()

# Where search_log.txt and materialized files are written
LOG_DIR = os.environ.get("GIT_CONTENT_SEARCH_LOG_DIR", "")

AUDIT_LOG_FILENAME = "search_log.txt"

DISABLE_LINEAR_SEARCH = os.environ.get(
    "GIT_CONTENT_SEARCH_DISABLE_LINEAR", ""
).strip().lower() in ("1", "true", "yes", "on")

# Upper bound on the search string length accepted by the tools
MAX_QUERY_LENGTH = 10_000


def default_log_directory() -> Path:
    """Return the log/temp directory, creating it if needed.

    Falls back to ``<system temp>/GitContentSearch`` when
    ``GIT_CONTENT_SEARCH_LOG_DIR`` is not set.
    """
    if LOG_DIR:
        directory = Path(LOG_DIR).expanduser()
    else:
        directory = Path(tempfile.gettempdir()) / "GitContentSearch"
    directory.mkdir(parents=True, exist_ok=True)
    return directory
