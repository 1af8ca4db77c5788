"""
Input validation for git-content-search tools.

Provides validation functions for all tool parameters with
clear error messages and protection against common attacks.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

from config import MAX_QUERY_LENGTH
from errors import ValidationError

# Whitespace never appears in a single revision; ".." would make it a range
_INVALID_REF_CHARS = re.compile(r"\s")


def validate_directory(path: str, must_exist: bool = True) -> Path:
    """Validate that path exists and is a directory.

    Args:
        path: Directory path to validate
        must_exist: If True, directory must exist

    Returns:
        Resolved Path object

    Raises:
        ValidationError: If path is invalid or not a directory
    """
    if not path or not path.strip():
        raise ValidationError("Directory path cannot be empty")

    try:
        resolved = Path(path).expanduser().resolve()
    except Exception as e:
        raise ValidationError(f"Invalid directory path: {path}", {"exception": str(e)})

    if must_exist and not resolved.exists():
        raise ValidationError(f"Directory not found: {path}")

    if must_exist and not resolved.is_dir():
        raise ValidationError(f"Path is not a directory: {path}")

    return resolved


def validate_query(query: str, min_length: int = 1, max_length: int = MAX_QUERY_LENGTH) -> str:
    """Validate the search string.

    The string is matched literally, so surrounding whitespace is kept.

    Args:
        query: Search string to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        The unchanged search string

    Raises:
        ValidationError: If query is invalid
    """
    if query is None:
        raise ValidationError("Search string cannot be None")

    if len(query) < min_length or not query.strip():
        raise ValidationError(
            f"Search string too short (minimum {min_length} characters)",
            {"length": len(query), "minimum": min_length}
        )

    if len(query) > max_length:
        raise ValidationError(
            f"Search string too long (maximum {max_length} characters)",
            {"length": len(query), "maximum": max_length}
        )

    return query


def validate_file_path(path: str) -> str:
    """Validate a repository-relative file path.

    Args:
        path: File path relative to the repository root

    Returns:
        Normalised POSIX path

    Raises:
        ValidationError: If the path is empty, absolute or escapes the repository
    """
    if not path or not path.strip():
        raise ValidationError("File path cannot be empty")

    normalised = PurePosixPath(path.strip().replace("\\", "/"))

    if normalised.is_absolute():
        raise ValidationError(
            f"File path must be relative to the repository root: {path}",
            {"provided": path}
        )

    if ".." in normalised.parts:
        raise ValidationError(
            f"File path escapes the repository: {path}",
            {"provided": path}
        )

    return str(normalised)


def validate_ref(ref: str | None, name: str = "commit") -> str | None:
    """Validate an optional commit reference (hash, branch or tag).

    Args:
        ref: Reference to validate (None or blank means "not given")
        name: Parameter name for error messages

    Returns:
        Stripped reference or None

    Raises:
        ValidationError: If the reference could be mistaken for an option
            or is a range rather than a single revision
    """
    if ref is None or not ref.strip():
        return None

    sanitized = ref.strip()

    if sanitized.startswith("-"):
        raise ValidationError(
            f"{name} cannot start with '-'",
            {"provided": ref}
        )

    if _INVALID_REF_CHARS.search(sanitized) or ".." in sanitized:
        raise ValidationError(
            f"Invalid {name} reference: {ref}",
            {"provided": ref}
        )

    return sanitized

