from __future__ import annotations

from pathlib import Path

import pytest

from yip.config import Config
from yip.errors import GitError
from yip.services import dependency_service
from yip.services.git_service import GitRepository
from yip.state import StateDirectory


class FakeRepo:
    def __init__(self, path: Path, url: str = "", heads: tuple[str, str] = ("aaa", "aaa")):
        self.path = path
        self.url = url
        self.heads = list(heads)
        self.fetched = False

    def head_commit(self):
        return self.heads[0]

    def fetch(self):
        self.fetched = True

    def update_head_to_remote(self):
        self.heads.pop(0)
        return self.heads[0]

    def remote_url(self):
        return self.url


@pytest.fixture
def state(tmp_path: Path):
    with StateDirectory(tmp_path) as state_dir:
        yield state_dir


def test_open_dependency_reuses_existing_checkout(state: StateDirectory, monkeypatch) -> None:
    url = "https://example.com/lib.git"
    expected = state.resolve_dependency_storage_path(url)
    monkeypatch.setattr(GitRepository, "open", classmethod(lambda cls, path: cls(path)))

    def no_clone(cls, path, url):
        raise AssertionError("clone should not be called")

    monkeypatch.setattr(GitRepository, "clone", classmethod(no_clone))

    repo, cloned = dependency_service.open_dependency(state, url)

    assert repo.path == expected
    assert cloned is False


def test_open_dependency_clones_on_first_use(state: StateDirectory, monkeypatch) -> None:
    cloned_calls: list[tuple[Path, str]] = []

    def fail_open(cls, path):
        raise GitError(f"{path} is not a git repository")

    def fake_clone(cls, path, url):
        cloned_calls.append((path, url))
        return cls(path)

    monkeypatch.setattr(GitRepository, "open", classmethod(fail_open))
    monkeypatch.setattr(GitRepository, "clone", classmethod(fake_clone))

    repo, cloned = dependency_service.open_dependency(state, "https://example.com/lib.git")

    assert cloned is True
    assert cloned_calls == [(repo.path, "https://example.com/lib.git")]


def test_import_dependencies_resolves_aliases_and_dedups(
    state: StateDirectory, monkeypatch
) -> None:
    opened: list[str] = []

    def fake_open(state_dir, url):
        opened.append(url)
        return FakeRepo(state_dir.resolve_dependency_storage_path(url), url), len(opened) == 1

    monkeypatch.setattr(dependency_service, "open_dependency", fake_open)
    config = Config(repos={"mylib": "https://example.com/mylib.git"})

    results = dependency_service.import_dependencies(
        state,
        config,
        ["mylib", "zlib", "https://example.com/mylib.git", "  "],
    )

    assert opened == [
        "https://example.com/mylib.git",
        "https://github.com/oss-forks/zlib.git",
    ]
    assert [item.name for item in results] == ["mylib", "zlib"]
    assert [item.cloned for item in results] == [True, False]
    assert results[1].path == state.resolve_dependency_storage_path(
        "https://github.com/oss-forks/zlib.git"
    )


def test_import_dependencies_wraps_git_errors(state: StateDirectory, monkeypatch) -> None:
    def broken(state_dir, url):
        raise GitError("git clone failed (exit 128): fatal: repository not found")

    monkeypatch.setattr(dependency_service, "open_dependency", broken)

    with pytest.raises(GitError) as excinfo:
        dependency_service.import_dependencies(state, Config(), ["https://example.com/x.git"])

    message = str(excinfo.value)
    assert message.startswith("unable to open git repository at 'https://example.com/x.git'")
    assert "repository not found" in message


def test_list_dependencies_only_returns_checkouts(state: StateDirectory) -> None:
    second = state.resolve_dependency_storage_path("https://example.com/b.git")
    first = state.resolve_dependency_storage_path("https://example.com/a.git")
    (first / ".git").mkdir(parents=True)
    (second / ".git").mkdir(parents=True)
    (state.path / "git-incomplete").mkdir()
    (state.path / "generated").mkdir()

    repos = dependency_service.list_dependencies(state)

    assert [repo.path for repo in repos] == sorted([first, second])


def test_update_dependencies_reports_head_changes(state: StateDirectory, monkeypatch) -> None:
    repos = [
        FakeRepo(state.path / "git-aaaaaaaaaa", "https://example.com/a.git", ("111", "222")),
        FakeRepo(state.path / "git-bbbbbbbbbb", "https://example.com/b.git", ("333", "333")),
    ]
    monkeypatch.setattr(dependency_service, "list_dependencies", lambda state_dir: repos)

    updates = dependency_service.update_dependencies(state)

    assert all(repo.fetched for repo in repos)
    assert [(item.previous_head, item.head, item.changed) for item in updates] == [
        ("111", "222", True),
        ("333", "333", False),
    ]
    assert updates[0].url == "https://example.com/a.git"


def test_update_dependencies_with_no_checkouts(state: StateDirectory) -> None:
    assert dependency_service.update_dependencies(state) == []
