"""
git-content-search MCP Server

Finds when a literal string entered or left a single file's history
without checking out every revision, exposed via the Model Context
Protocol (MCP):

    1. "When did X appear / disappear?" → search_content
    2. "Where did this file live?"      → locate_file
"""

from __future__ import annotations

import asyncio
import threading
from typing import cast

from mcp.server.fastmcp import Context, FastMCP

import api_types
import errors
import logging_config
import validation as val
from config import AUDIT_LOG_FILENAME, DISABLE_LINEAR_SEARCH
from git_history import GitHistoryReader
from models import Commit, SearchReport
from searcher import run_search

# ── Initialize logging ───────────────────────────────────────────────────
logger = logging_config.setup_logging()
tool_logger = logging_config.get_logger("tools")

# ── Initialize the FastMCP server ────────────────────────────────────────
mcp = FastMCP(
    "git-content-search",
    instructions="""
Use these tools to find WHEN a value was present in one file of a Git repository.

1. search_content(file_path, search_string, directory): binary-searches the commits
   touching file_path and reports the commit where search_string first appears, the
   commit where it last appears, and the commit where it disappeared.
   Works for text files, Excel workbooks (.xlsx/.xlsm) and Word documents (.docx).
2. locate_file(file_name, directory): lists every path a file name has had in the
   history of all branches. Use it when search_content reports no commits because
   the path is wrong or the file was moved.

The search assumes the string was present over ONE contiguous run of commits.
If it was added, removed and re-added, narrow the range with earliest_commit /
latest_commit and search each part separately.
"""
)


def _commit_ref(report: SearchReport, commit: Commit | None) -> api_types.CommitRef | None:
    if commit is None or report.timeline is None:
        return None
    index = report.timeline.index_of(commit.hash)
    return {"index": index if index is not None else -1, "hash": commit.hash, "path": commit.path}


def report_to_response(report: SearchReport, lines: list[str], log_file: str) -> api_types.SearchContentResponse:
    """Serialise a finished search for the MCP client."""
    return cast(api_types.SearchContentResponse, {
        "status": report.status,
        "file_path": report.file_path,
        "search_string": report.query,
        "found": report.outcome.found,
        "commits_in_range": report.commits_in_range,
        "probes": report.probes,
        "first_appearance": _commit_ref(report, report.first_appearance),
        "last_appearance": _commit_ref(report, report.last_appearance),
        "disappeared_in": _commit_ref(report, report.disappeared_in),
        "summary": report.summary,
        "log": lines,
        "log_file": log_file,
    })


# ── Tool 1: search_content ─────────────────────────────────────────────────
@mcp.tool()
async def search_content(
    file_path: str,
    search_string: str,
    directory: str,
    ctx: Context,
    earliest_commit: str | None = None,
    latest_commit: str | None = None,
    follow: bool = False,
    log_directory: str | None = None,
    disable_linear_search: bool = DISABLE_LINEAR_SEARCH,
) -> api_types.SearchContentResponse | api_types.ErrorResponse:
    """USE THIS TOOL to find when a string was added to or removed from a file's Git history.

    TRIGGER - Call this tool when the user asks:
    - "When was this value introduced in config.json?"
    - "Which commit removed 'ACME Corp' from the budget spreadsheet?"
    - "How long was this setting present in the generated file?"

    The tool binary-searches the commits touching file_path (oldest to newest),
    checking whether search_string occurs in the file at each probed commit. It
    checks roughly log2(N) commits instead of all N, so it works on long histories
    and on large or binary files that are hard to diff (Excel, Word).

    Do NOT use this tool for:
    - Searching commit messages or blame (use git log / git blame)
    - Strings that were added and removed several times (results cover one run)

    Args:
        file_path: Path of the file relative to the repository root.
        search_string: Literal, case-sensitive string to look for.
        directory: A directory inside the Git repository.
        earliest_commit: Oldest commit to consider (inclusive, optional).
        latest_commit: Newest commit to consider (inclusive, optional, default HEAD).
        follow: Follow the file across renames.
        log_directory: Where search_log.txt and temporary files go (default: system temp).
        disable_linear_search: Skip the linear fallback of the last-match search.

    Returns:
        Dictionary with:
        - status: "ok", "no_commits", "inverted_range" or "cancelled"
        - found: whether the string was seen at all
        - first_appearance / last_appearance / disappeared_in: {index, hash, path} or null
        - commits_in_range, probes: timeline size and number of commits checked
        - summary: human-readable result lines
        - log: every audit line written for this search
        - log_file: path of the appended search_log.txt
    """
    with logging_config.ToolLogger("search_content", file_path=file_path,
                                   earliest_commit=earliest_commit, latest_commit=latest_commit,
                                   follow=follow) as log:
        try:
            file_path = val.validate_file_path(file_path)
            search_string = val.validate_query(search_string)
            earliest_commit = val.validate_ref(earliest_commit, "earliest_commit")
            latest_commit = val.validate_ref(latest_commit, "latest_commit")
            directory_path = val.validate_directory(directory)
            log_dir = val.validate_directory(log_directory, must_exist=False) if log_directory else None

            loop = asyncio.get_running_loop()
            cancelled = threading.Event()

            def sync_progress_callback(fraction: float):
                """Forward progress from the search thread to the client."""
                asyncio.run_coroutine_threadsafe(
                    ctx.report_progress(fraction, 1.0, f"Searching {file_path} ({fraction:.0%})"),
                    loop
                )

            try:
                report, audit, used_log_dir = await asyncio.to_thread(
                    run_search,
                    str(directory_path),
                    file_path,
                    search_string,
                    earliest_ref=earliest_commit,
                    latest_ref=latest_commit,
                    follow=follow,
                    log_directory=log_dir,
                    disable_linear_search=disable_linear_search,
                    progress=sync_progress_callback,
                    should_cancel=cancelled.is_set,
                )
            except asyncio.CancelledError:
                # Stop the worker thread before its next probe
                cancelled.set()
                raise

            log.set_result_count(report.probes)
            return report_to_response(report, audit.lines, str(used_log_dir / AUDIT_LOG_FILENAME))

        except errors.GitContentSearchError as e:
            return e.to_dict()
        except Exception as e:
            return errors.format_error(e)


# ── Tool 2: locate_file ────────────────────────────────────────────────────
@mcp.tool()
def locate_file(file_name: str, directory: str) -> api_types.LocateFileResponse | api_types.ErrorResponse:
    """USE THIS TOOL to find every path a file has had across the history of all branches.

    TRIGGER - Call this tool when:
    - search_content returned status "no_commits"
    - The user knows a file name but not its directory
    - A file was moved or renamed and you need the old path

    Args:
        file_name: File name (e.g. "budget.xlsx") or trailing path fragment ("reports/budget.xlsx").
        directory: A directory inside the Git repository.

    Returns:
        Dictionary with 'paths' (sorted, unique) and 'count'.
    """
    with logging_config.ToolLogger("locate_file", file_name=file_name) as log:
        try:
            file_name = val.validate_file_path(file_name)
            directory_path = val.validate_directory(directory)
            reader = GitHistoryReader.open(str(directory_path))
            paths = reader.locate_file(file_name)
            log.set_result_count(len(paths))
            return cast(api_types.LocateFileResponse, {
                "status": "ok",
                "file_name": file_name,
                "paths": paths,
                "count": len(paths),
            })

        except errors.GitContentSearchError as e:
            return e.to_dict()
        except Exception as e:
            return errors.format_error(e)


# ── Entrypoint ────────────────────────────────────────────────────────────
def main():
    """Entry point for the MCP server when installed as a package."""
    logging_config.get_server_logger().info("Starting git-content-search MCP server")
    mcp.run()


if __name__ == "__main__":
    main()
