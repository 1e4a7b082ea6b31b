from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

import yip.services.git_service as git_service
from yip.errors import GitError
from yip.services.git_service import GitRepository


class FakeGit:
    """Record git invocations and answer them from a lookup table."""

    def __init__(self, responses: dict[tuple[str, ...], tuple[int, str]] | None = None):
        self.responses = responses or {}
        self.calls: list[tuple[tuple[str, ...], Path | None]] = []

    def __call__(self, cmd, cwd=None, check=False, capture_output=False, text=False):
        assert cmd[0] == "git"
        args = tuple(cmd[1:])
        self.calls.append((args, cwd))
        returncode, stdout = self.responses.get(args, (0, ""))
        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, cmd, output=stdout, stderr="fatal: nope")
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")


@pytest.fixture
def fake_git(monkeypatch) -> FakeGit:
    fake = FakeGit()
    monkeypatch.setattr(git_service.subprocess, "run", fake)
    return fake


def test_open_requires_git_directory(tmp_path: Path, fake_git: FakeGit) -> None:
    with pytest.raises(GitError, match="not a git repository"):
        GitRepository.open(tmp_path)
    assert fake_git.calls == []


def test_open_accepts_repository_top_level(tmp_path: Path, fake_git: FakeGit) -> None:
    (tmp_path / ".git").mkdir()
    fake_git.responses[("rev-parse", "--show-toplevel")] = (0, f"{tmp_path}\n")

    repo = GitRepository.open(tmp_path)

    assert repo.path == tmp_path
    assert fake_git.calls == [(("rev-parse", "--show-toplevel"), tmp_path)]


def test_open_rejects_nested_directory(tmp_path: Path, fake_git: FakeGit) -> None:
    nested = tmp_path / "nested"
    (nested / ".git").mkdir(parents=True)
    fake_git.responses[("rev-parse", "--show-toplevel")] = (0, f"{tmp_path}\n")

    with pytest.raises(GitError, match="not the top level"):
        GitRepository.open(nested)


def test_clone_creates_parent_and_runs_git(tmp_path: Path, fake_git: FakeGit) -> None:
    target = tmp_path / "cache" / "git-0123456789"

    repo = GitRepository.clone(target, "https://example.com/lib.git")

    assert repo.path == target
    assert target.parent.is_dir()
    assert fake_git.calls == [
        (("clone", "--origin", "origin", "https://example.com/lib.git", str(target)), None)
    ]


def test_failed_command_raises_git_error(tmp_path: Path, fake_git: FakeGit) -> None:
    target = tmp_path / "dep"
    fake_git.responses[("clone", "--origin", "origin", "bad-url", str(target))] = (128, "")

    with pytest.raises(GitError) as excinfo:
        GitRepository.clone(target, "bad-url")

    assert "exit 128" in str(excinfo.value)
    assert "fatal: nope" in str(excinfo.value)


def test_missing_git_executable(tmp_path: Path, monkeypatch) -> None:
    def missing(*args, **kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(git_service.subprocess, "run", missing)

    with pytest.raises(GitError, match="git executable not found"):
        GitRepository(tmp_path).fetch()


def test_remote_url_and_head_commit(tmp_path: Path, fake_git: FakeGit) -> None:
    fake_git.responses[("remote", "get-url", "origin")] = (0, "https://example.com/lib.git\n")
    fake_git.responses[("rev-parse", "HEAD")] = (0, "abc123\n")
    repo = GitRepository(tmp_path)

    assert repo.remote_url() == "https://example.com/lib.git"
    assert repo.head_commit() == "abc123"


def test_remote_url_and_head_commit_missing(tmp_path: Path, fake_git: FakeGit) -> None:
    fake_git.responses[("remote", "get-url", "origin")] = (2, "")
    fake_git.responses[("rev-parse", "HEAD")] = (128, "")
    repo = GitRepository(tmp_path)

    assert repo.remote_url() is None
    assert repo.head_commit() is None


def test_update_head_to_remote_tracks_current_branch(tmp_path: Path, fake_git: FakeGit) -> None:
    fake_git.responses[("rev-parse", "--abbrev-ref", "HEAD")] = (0, "main\n")
    fake_git.responses[("rev-parse", "HEAD")] = (0, "def456\n")
    repo = GitRepository(tmp_path)

    repo.fetch()
    head = repo.update_head_to_remote()

    assert head == "def456"
    commands = [args for args, _ in fake_git.calls]
    assert ("fetch", "--prune", "origin") in commands
    assert ("reset", "--hard", "origin/main") in commands


def test_update_head_to_remote_detached(tmp_path: Path, fake_git: FakeGit) -> None:
    fake_git.responses[("rev-parse", "--abbrev-ref", "HEAD")] = (0, "HEAD\n")
    repo = GitRepository(tmp_path)

    repo.update_head_to_remote()

    commands = [args for args, _ in fake_git.calls]
    assert ("reset", "--hard", "origin/HEAD") in commands
