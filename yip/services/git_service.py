"""Dependency working copies managed through the git CLI."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..errors import GitError

logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "origin"


def _run_git(
    *args: str,
    cwd: Path | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            check=check,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found; install git and make sure it is on PATH.") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip() or "no stderr"
        raise GitError(f"git {' '.join(args)} failed (exit {exc.returncode}): {stderr}") from exc


class GitRepository:
    """A cloned dependency checkout."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f"GitRepository({str(self.path)!r})"

    @classmethod
    def open(cls, path: Path) -> "GitRepository":
        """Open the repository whose top level is exactly *path*.

        Parent directories are not searched, so a state directory that lives
        inside the project's own git repository is never mistaken for a
        dependency checkout.
        """
        if not (path / ".git").exists():
            raise GitError(f"{path} is not a git repository")
        result = _run_git("rev-parse", "--show-toplevel", cwd=path)
        toplevel = Path(result.stdout.strip()).resolve()
        if toplevel != path.resolve():
            raise GitError(f"{path} is not the top level of a git repository")
        return cls(path)

    @classmethod
    def clone(cls, path: Path, url: str) -> "GitRepository":
        logger.info("Cloning %s into %s", url, path)
        path.parent.mkdir(parents=True, exist_ok=True)
        _run_git("clone", "--origin", DEFAULT_REMOTE, url, str(path))
        return cls(path)

    def remote_url(self, remote: str = DEFAULT_REMOTE) -> str | None:
        result = _run_git("remote", "get-url", remote, cwd=self.path, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def head_commit(self) -> str | None:
        result = _run_git("rev-parse", "HEAD", cwd=self.path, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def fetch(self, remote: str = DEFAULT_REMOTE) -> None:
        logger.info("Fetching %s in %s", remote, self.path)
        _run_git("fetch", "--prune", remote, cwd=self.path)

    def _remote_head_ref(self, remote: str) -> str:
        branch = _run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=self.path).stdout.strip()
        if branch and branch != "HEAD":
            return f"{remote}/{branch}"
        return f"{remote}/HEAD"

    def update_head_to_remote(self, remote: str = DEFAULT_REMOTE) -> str | None:
        """Move the checked out branch to the fetched remote head; return the new HEAD."""
        ref = self._remote_head_ref(remote)
        _run_git("reset", "--hard", ref, cwd=self.path)
        return self.head_commit()
