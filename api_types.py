"""
TypedDict definitions for all MCP tool API response shapes.

These types provide:
- IDE autocompletion support
- Static type checking via mypy
- Documentation of API contracts
"""

from __future__ import annotations

from typing import Literal

from typing_extensions import TypedDict

# ---------------------------------------------------------------------------
# Shared / Nested Types
# ---------------------------------------------------------------------------


class CommitRef(TypedDict):
    """A commit in the searched timeline."""

    index: int
    hash: str
    path: str


# ---------------------------------------------------------------------------
# Error Response
# ---------------------------------------------------------------------------


class ErrorResponse(TypedDict):
    """Standard error response returned by all tools on failure."""

    error: Literal[True]
    error_type: str
    message: str
    details: str | dict | None


# ---------------------------------------------------------------------------
# search_content Tool
# ---------------------------------------------------------------------------


class SearchContentResponse(TypedDict):
    """Response from the search_content tool."""

    status: Literal["ok", "no_commits", "inverted_range", "cancelled"]
    file_path: str
    search_string: str
    found: bool
    commits_in_range: int
    probes: int
    first_appearance: CommitRef | None
    last_appearance: CommitRef | None
    disappeared_in: CommitRef | None
    summary: list[str]
    log: list[str]
    log_file: str


# ---------------------------------------------------------------------------
# locate_file Tool
# ---------------------------------------------------------------------------


class LocateFileResponse(TypedDict):
    """Response from the locate_file tool."""

    status: Literal["ok"]
    file_name: str
    paths: list[str]
    count: int
