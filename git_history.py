"""
Git history access for git-content-search.

Wraps a local repository behind the ``HistoryReader`` protocol so the
bisection search can run against a fake in tests. The real reader goes
through the ``gitpython`` library.

Design rules
------------
- Commits are reported newest first (native ``git log`` order).
- Per-commit paths come from ``--name-only`` so rename tracking
  (``--follow``) reports the path as it was at each commit.
- Materialized files are scoped: removed when the context exits, on every
  path.
- All timestamps are ISO 8601.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

import git
from git.exc import BadName, BadObject, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from config import default_log_directory
from errors import ConfigurationError, GitError, ProbeRetrievalError, RevisionNotFoundError, ToolInvocationError
from logging_config import get_git_logger
from models import Commit

logger = get_git_logger()

COMMIT_MARKER = "commit:"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@runtime_checkable
class HistoryReader(Protocol):
    """History-reading capability consumed by the search."""

    def list_commits(
        self,
        earliest_ref: str | None,
        latest_ref: str | None,
        path: str,
        follow: bool = False,
    ) -> list[Commit]:
        """Commits touching *path* in the inclusive range, newest first."""
        ...

    def resolve_ref(self, ref: str) -> str:
        """Full commit hash for *ref*."""
        ...

    def materialize(self, commit_hash: str, path: str) -> AbstractContextManager[Path]:
        """Context manager yielding a local file holding *path* at *commit_hash*."""
        ...

    def timestamp(self, commit_hash: str) -> str:
        """Display timestamp for a commit."""
        ...


# ---------------------------------------------------------------------------
# 1. Repository resolution
# ---------------------------------------------------------------------------

def get_repo(path: str = ".") -> git.Repo:
    """Resolve the Git repository that contains *path*.

    Searches upward from *path* for a ``.git`` directory so callers can
    pass any file or subdirectory inside the repo.

    Raises:
        GitError: When no repository can be found at or above *path*.
    """
    resolved = Path(path).resolve()
    try:
        return git.Repo(str(resolved), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError) as exc:
        raise GitError(f"Git repository not found: {exc}", {"path": str(resolved)})


def temp_file_name(commit_hash: str, path: str) -> str:
    """Name of the materialized copy of *path* at *commit_hash*.

    Keeps the original file name (and so its extension) for the matcher.
    """
    name = _UNSAFE_NAME_CHARS.sub("_", PurePosixPath(path).name) or "file"
    return f"{commit_hash}_{name}"


def parse_log_output(output: str, requested_path: str) -> list[tuple[str, str]]:
    """Parse ``git log --format=commit:%H --name-only`` output.

    Returns ``(hash, path)`` pairs in log order. Commits listing no file
    (merges) keep the most recently seen path.
    """
    entries: list[tuple[str, str]] = []
    current_hash: str | None = None
    current_path: str | None = None
    last_path = requested_path

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith(COMMIT_MARKER):
            if current_hash is not None:
                entries.append((current_hash, current_path or last_path))
                last_path = current_path or last_path
            current_hash = line[len(COMMIT_MARKER):]
            current_path = None
        elif current_hash is not None and current_path is None:
            current_path = line

    if current_hash is not None:
        entries.append((current_hash, current_path or last_path))

    return entries


# ---------------------------------------------------------------------------
# 2. GitPython-backed reader
# ---------------------------------------------------------------------------

class GitHistoryReader:
    """``HistoryReader`` over a local repository.

    Args:
        repo: An open ``git.Repo``.
        work_directory: Where materialized files are written (default: the
            configured log directory).
    """

    def __init__(self, repo: git.Repo, work_directory: Path | None = None):
        self.repo = repo
        self.work_directory = Path(work_directory) if work_directory else default_log_directory()
        self.work_directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def open(cls, directory: str, work_directory: Path | None = None) -> GitHistoryReader:
        return cls(get_repo(directory), work_directory)

    @property
    def root(self) -> Path:
        return Path(self.repo.working_tree_dir or self.repo.git_dir)

    def _git(self) -> git.Git:
        # Unquoted paths in --name-only output
        return self.repo.git(c="core.quotepath=off")

    def resolve_ref(self, ref: str) -> str:
        try:
            return self.repo.commit(ref).hexsha
        except (BadName, BadObject, ValueError, GitCommandError) as exc:
            raise GitError(f"Could not resolve commit '{ref}': {exc}", {"ref": ref})

    def _is_inverted(self, earliest_ref: str, latest_ref: str) -> bool:
        try:
            earliest = self.resolve_ref(earliest_ref)
            latest = self.resolve_ref(latest_ref)
            return earliest != latest and self.repo.is_ancestor(latest, earliest)
        except (GitError, GitCommandError):
            return False

    def _revision_args(self, earliest_ref: str | None, latest_ref: str | None) -> list[str]:
        tip = latest_ref or "HEAD"
        if not earliest_ref:
            return [tip]
        if latest_ref and self._is_inverted(earliest_ref, latest_ref):
            logger.debug(f"Range {earliest_ref}..{latest_ref} is inverted")
            raise ConfigurationError(
                "The earliest commit is more recent than the latest commit.",
                {"earliest": earliest_ref, "latest": latest_ref},
            )
        # ``<ref>^@`` is every parent of <ref>; excluding them keeps <ref> itself
        # and works for root commits too.
        return [tip, "--not", f"{earliest_ref}^@"]

    def list_commits(
        self,
        earliest_ref: str | None,
        latest_ref: str | None,
        path: str,
        follow: bool = False,
    ) -> list[Commit]:
        """Return ``Commit`` objects touching *path*, most-recent-first.

        Equivalent to ``git log [--follow] <latest> --not <earliest>^@ -- <path>``.

        Raises:
            ConfigurationError: *earliest_ref* is a descendant of *latest_ref*.
            ToolInvocationError: When git rejects the command (bad reference, ...).
        """
        args = [f"--format={COMMIT_MARKER}%H", "--name-only"]
        if follow:
            args.append("--follow")
        args.extend(self._revision_args(earliest_ref, latest_ref))
        args.extend(["--", path])

        try:
            output = self._git().log(*args)
        except GitCommandError as exc:
            raise ToolInvocationError(
                f"git log failed for '{path}': {exc.stderr.strip() if exc.stderr else exc}",
                {"path": path, "earliest": earliest_ref, "latest": latest_ref},
            )

        commits = [Commit(hash=sha, path=commit_path) for sha, commit_path in parse_log_output(output, path)]
        logger.info(f"Listed {len(commits)} commits for {path} follow={follow}")
        return commits

    def _blob_at(self, commit_hash: str, path: str) -> git.Blob:
        try:
            commit = self.repo.commit(commit_hash)
        except (BadName, BadObject, ValueError, GitCommandError) as exc:
            raise RevisionNotFoundError(f"Commit {commit_hash} not found: {exc}", commit_hash)
        try:
            obj = commit.tree / path
        except KeyError:
            raise RevisionNotFoundError(
                f"Path '{path}' does not exist in commit {commit_hash}", commit_hash, {"path": path}
            )
        if obj.type != "blob":
            raise RevisionNotFoundError(
                f"Path '{path}' is not a file in commit {commit_hash}", commit_hash, {"path": path}
            )
        return obj

    @contextmanager
    def materialize(self, commit_hash: str, path: str) -> Iterator[Path]:
        """Write *path* as of *commit_hash* to the work directory.

        Yields the written file and removes it on exit, whatever happens.

        Raises:
            RevisionNotFoundError: The commit or the path does not exist.
            ProbeRetrievalError: Git or the filesystem failed while writing.
        """
        blob = self._blob_at(commit_hash, path)
        target = self.work_directory / temp_file_name(commit_hash, path)
        try:
            try:
                with open(target, "wb") as handle:
                    blob.stream_data(handle)
            except (OSError, GitCommandError) as exc:
                raise ProbeRetrievalError(
                    f"Could not write '{path}' at commit {commit_hash}: {exc}",
                    commit_hash,
                    {"path": path},
                )
            yield target
        finally:
            try:
                target.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(f"Could not delete temporary file {target}: {exc}")

    def timestamp(self, commit_hash: str) -> str:
        commit = self.repo.commit(commit_hash)
        return datetime.fromtimestamp(commit.committed_date, tz=UTC).isoformat()

    def file_exists_at_head(self, path: str) -> bool:
        """True when *path* is a file in the ``HEAD`` tree."""
        try:
            return (self.repo.head.commit.tree / path).type == "blob"
        except (KeyError, ValueError, BadName):
            return False

    def locate_file(self, file_name: str) -> list[str]:
        """Every path in the history of all refs whose name is *file_name*.

        *file_name* may also be a trailing path fragment such as
        ``reports/q1.xlsx``.
        """
        try:
            output = self._git().log("--all", "--pretty=format:", "--name-only")
        except GitCommandError as exc:
            raise ToolInvocationError(f"git log failed while locating '{file_name}': {exc}")

        wanted = file_name.strip().strip("/")
        matches: set[str] = set()
        for raw_line in output.splitlines():
            candidate = raw_line.strip()
            if not candidate:
                continue
            if candidate == wanted or candidate.endswith("/" + wanted):
                matches.add(candidate)

        logger.info(f"Located {len(matches)} paths for {file_name}")
        return sorted(matches)
