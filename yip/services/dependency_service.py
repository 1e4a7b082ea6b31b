"""Logic helpers for the `yip import` and `yip update` commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..config import Config
from ..digest import DEPENDENCY_DIR_PREFIX
from ..errors import GitError
from ..state import StateDirectory
from .git_service import GitRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DependencyImport:
    name: str
    url: str
    path: Path
    cloned: bool


@dataclass(slots=True)
class DependencyUpdate:
    path: Path
    url: str | None
    previous_head: str | None
    head: str | None

    @property
    def changed(self) -> bool:
        return self.previous_head != self.head


def open_dependency(state: StateDirectory, url: str) -> tuple[GitRepository, bool]:
    """Open the cached checkout of *url*, cloning it on first use.

    Returns the repository and whether it had to be cloned.
    """

    path = state.resolve_dependency_storage_path(url)
    try:
        repo = GitRepository.open(path)
    except GitError:
        return GitRepository.clone(path, url), True
    return repo, False


def import_dependencies(
    state: StateDirectory,
    config: Config,
    names: Sequence[str],
) -> list[DependencyImport]:
    results: list[DependencyImport] = []
    seen: set[str] = set()
    for raw in names:
        name, url = config.resolve_repository(raw)
        if not name or url in seen:
            continue
        seen.add(url)
        try:
            repo, cloned = open_dependency(state, url)
        except GitError as exc:
            raise GitError(f"unable to open git repository at '{url}': {exc}") from exc
        results.append(DependencyImport(name=name, url=url, path=repo.path, cloned=cloned))
    return results


def list_dependencies(state: StateDirectory) -> list[GitRepository]:
    """Return the dependency checkouts currently cached in the state directory."""

    repos: list[GitRepository] = []
    for entry in sorted(state.path.glob(f"{DEPENDENCY_DIR_PREFIX}*")):
        if entry.is_dir() and (entry / ".git").exists():
            repos.append(GitRepository(entry))
    return repos


def update_dependencies(state: StateDirectory) -> list[DependencyUpdate]:
    """Fetch every cached dependency and check out its remote head."""

    updates: list[DependencyUpdate] = []
    for repo in list_dependencies(state):
        previous = repo.head_commit()
        repo.fetch()
        head = repo.update_head_to_remote()
        update = DependencyUpdate(
            path=repo.path,
            url=repo.remote_url(),
            previous_head=previous,
            head=head,
        )
        if update.changed:
            logger.info("Updated %s to %s", repo.path.name, head)
        updates.append(update)
    return updates
