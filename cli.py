"""Command line interface for git-content-search."""

from __future__ import annotations

import argparse
import sys

import errors
import logging_config
import validation as val
from config import DISABLE_LINEAR_SEARCH
from git_history import GitHistoryReader
from searcher import run_search

__version__ = "0.1.0"

EXIT_OK = 0
EXIT_NO_RESULT = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="git-content-search",
        description="Find the commits in which a string first and last appears in a file's history",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search the whole history of a file
  git-content-search reports/budget.xlsx "ACME Corp"

  # Limit the range and follow renames
  git-content-search config/app.json "feature_x" --earliest-commit=v1.0 --latest-commit=HEAD --follow

  # Find every path a file has had
  git-content-search --locate-only budget.xlsx

Exit Codes:
  0 - Search completed (whether or not the string was found)
  1 - No commits in range, inverted range, or search cancelled
  2 - Invalid arguments or repository error
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    parser.add_argument(
        "file_path",
        nargs="?",
        help="File to search, relative to the repository root"
    )
    parser.add_argument(
        "search_string",
        nargs="?",
        help="Literal string to look for (case-sensitive)"
    )

    parser.add_argument(
        "--earliest-commit",
        metavar="COMMIT",
        help="Oldest commit to consider (inclusive)"
    )
    parser.add_argument(
        "--latest-commit",
        metavar="COMMIT",
        help="Newest commit to consider (inclusive, default: HEAD)"
    )
    parser.add_argument(
        "--working-directory",
        metavar="PATH",
        default=".",
        help="Directory inside the git repository (default: current directory)"
    )
    parser.add_argument(
        "--log-directory",
        metavar="PATH",
        help="Where search_log.txt and temporary files are written (default: <temp>/GitContentSearch)"
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Follow the file across renames"
    )
    parser.add_argument(
        "--disable-linear-search",
        action="store_true",
        default=DISABLE_LINEAR_SEARCH,
        help="Skip the linear fallback of the last-match search"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose diagnostic logging"
    )

    parser.add_argument(
        "--locate-only",
        metavar="FILE_NAME",
        help="List every path FILE_NAME has had in history and exit"
    )

    return parser


def locate(file_name: str, working_directory: str) -> int:
    """Print every historical path of *file_name*."""
    reader = GitHistoryReader.open(working_directory)
    paths = reader.locate_file(val.validate_file_path(file_name))
    if not paths:
        print(f"No file named '{file_name}' found in the history of any branch.")
        return EXIT_NO_RESULT
    print(f"Found {len(paths)} path(s) for '{file_name}':")
    for path in paths:
        print(f"  {path}")
    return EXIT_OK


def main(argv=None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (default: sys.argv[1:]).

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging_config.setup_logging(level="DEBUG" if args.verbose else logging_config.LOG_LEVEL, force=True)

    try:
        working_directory = str(val.validate_directory(args.working_directory))

        if args.locate_only:
            with logging_config.ToolLogger("locate_only", file_name=args.locate_only):
                return locate(args.locate_only, working_directory)

        if not args.file_path or args.search_string is None:
            parser.error("file_path and search_string are required (unless using --locate-only)")

        file_path = val.validate_file_path(args.file_path)
        search_string = val.validate_query(args.search_string)
        earliest = val.validate_ref(args.earliest_commit, "earliest_commit")
        latest = val.validate_ref(args.latest_commit, "latest_commit")
        log_directory = (
            val.validate_directory(args.log_directory, must_exist=False) if args.log_directory else None
        )

        with logging_config.ToolLogger("search", file_path=file_path, earliest=earliest,
                                       latest=latest, follow=args.follow) as log:
            report, _, _ = run_search(
                working_directory,
                file_path,
                search_string,
                earliest_ref=earliest,
                latest_ref=latest,
                follow=args.follow,
                log_directory=log_directory,
                disable_linear_search=args.disable_linear_search,
                echo=sys.stdout,
            )
            log.set_result_count(report.probes)

    except errors.GitContentSearchError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return EXIT_USAGE
    except KeyboardInterrupt:
        print("Search interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as exc:
        print(f"Error: {errors.format_error(exc)['message']}", file=sys.stderr)
        return EXIT_USAGE

    return EXIT_OK if report.status == "ok" else EXIT_NO_RESULT


if __name__ == "__main__":
    sys.exit(main())
