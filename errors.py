"""
Custom exception hierarchy for git-content-search.

All exceptions inherit from GitContentSearchError for easy catching.
Each exception type maps to a specific error category for
structured error responses to MCP clients and CLI messages.
"""

from __future__ import annotations


class GitContentSearchError(Exception):
    """Base exception for all git-content-search errors.

    All custom exceptions should inherit from this class.
    Provides a consistent interface for error handling.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert exception to structured error response dict."""
        return {
            "error": True,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details if self.details else None,
        }


class ValidationError(GitContentSearchError):
    """Input validation failed.

    Raised when:
    - Empty or oversized search string
    - Invalid commit reference
    - Path traversal attempt
    - File/directory not found
    """
    pass


class GitError(GitContentSearchError):
    """Git operation failed.

    Raised when:
    - Not a git repository
    - History for a path cannot be listed
    - A commit reference cannot be resolved
    """
    pass


class ToolInvocationError(GitError):
    """The git tool itself failed while running a command."""
    pass


class ConfigurationError(GitContentSearchError):
    """The requested commit range is inverted.

    The earliest commit sits later in the file's history than the
    latest commit. The search stops before any probe.
    """
    pass


class EmptyRangeError(GitContentSearchError):
    """No commits touch the file in the requested range."""
    pass


class ProbeRetrievalError(GitContentSearchError):
    """A commit's version of the file could not be materialized.

    Absorbed by the probe: the commit counts as ``found=False``.
    """

    def __init__(self, message: str, commit_hash: str, details: dict | None = None):
        self.commit_hash = commit_hash
        details = {"commit": commit_hash, **(details or {})}
        super().__init__(message, details)


class RevisionNotFoundError(ProbeRetrievalError):
    """The file path (or the commit itself) does not exist at that revision."""
    pass


class ContentMatchError(GitContentSearchError):
    """A materialized file could not be read by its content matcher."""
    pass


class SearchCancelledError(GitContentSearchError):
    """The caller cancelled a running search."""
    pass


def format_error(error: Exception) -> dict:
    """Format any exception as a structured error response.

    Args:
        error: Any exception (GitContentSearchError or built-in)

    Returns:
        Structured error dict suitable for MCP response
    """
    if isinstance(error, GitContentSearchError):
        return error.to_dict()

    error_type = error.__class__.__name__
    message = str(error) or f"An error of type {error_type} occurred"

    return {
        "error": True,
        "error_type": error_type,
        "message": message,
        "details": None,
    }
