"""Minimal git wrapper for the version-bump flow.

All operations return Result types; git is driven through
``lacy.platform.process`` only.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from lacy.core.result import Err, Ok, Result
from lacy.platform.process import ProcessError
from lacy.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

__all__ = ["GitError", "GitRepository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class GitRepository:
    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    def is_clean(self) -> bool:
        """Check if the working tree is clean. False if status cannot be determined."""
        match self._run(["status", "--porcelain"]):
            case Ok(stdout):
                return stdout.strip() == ""
            case Err(_):
                return False

    def tags(self, pattern: str = "v*") -> Result[list[str], GitError]:
        result = self._run(["tag", "--list", pattern])
        match result:
            case Err(e):
                return Err(self._error("tag --list", e))
            case Ok(stdout):
                return Ok([ln.strip() for ln in stdout.splitlines() if ln.strip()])

    def commit(self, paths: list[Path], message: str) -> Result[None, GitError]:
        rel = [str(p.relative_to(self.path)) if p.is_absolute() else str(p) for p in paths]
        added = self._run(["add", "--", *rel])
        if isinstance(added, Err):
            return Err(self._error("add", added.error))
        committed = self._run(["commit", "-m", message, "--", *rel])
        if isinstance(committed, Err):
            return Err(self._error("commit", committed.error))
        return Ok(None)

    def restore(self, paths: list[Path]) -> Result[None, GitError]:
        """Reset ``paths`` in the index and working tree to HEAD."""
        rel = [str(p.relative_to(self.path)) if p.is_absolute() else str(p) for p in paths]
        result = self._run(["checkout", "HEAD", "--", *rel])
        if isinstance(result, Err):
            return Err(self._error("checkout", result.error))
        return Ok(None)

    def create_tag(self, tag: str, message: str) -> Result[None, GitError]:
        result = self._run(["tag", "-a", tag, "-m", message])
        if isinstance(result, Err):
            return Err(self._error("tag", result.error))
        return Ok(None)

    @staticmethod
    def _error(command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
            returncode=e.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(
            ["git", "-C", str(self.path), *args], cwd=self.path, timeout=_GIT_TIMEOUT_SECONDS
        )
