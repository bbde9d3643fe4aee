"""
Shared pytest fixtures for HubKit tests.

Provides a scripted process runner for unit tests and throw-away Git
repositories (a working copy plus a bare "origin") for functional tests.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from hubkit.exceptions import ProcessFailedError
from hubkit.utils.exception_logger import ExceptionLogger


class FakeProcess:
    """Process runner returning scripted output and recording every command."""

    def __init__(
        self,
        responses: Optional[Dict[Tuple[str, ...], Tuple[str, int]]] = None,
        cwd: Optional[Path] = None,
    ):
        self.responses = dict(responses or {})
        self.calls: List[List[str]] = []
        self.cwd = cwd or Path(".")

    def run(self, cmd: Sequence[str]) -> subprocess.CompletedProcess:
        cmd = list(cmd)
        self.calls.append(cmd)
        stdout, returncode = self.responses.get(tuple(cmd), ("", 0))
        return subprocess.CompletedProcess(cmd, returncode, stdout, "")

    def must_run(self, cmd: Sequence[str]) -> subprocess.CompletedProcess:
        result = self.run(cmd)
        if result.returncode != 0:
            raise ProcessFailedError(
                result.args, result.returncode, result.stdout, result.stderr
            )
        return result

    def called(self, *prefix: str) -> List[List[str]]:
        """Return the recorded commands starting with ``prefix``."""
        return [cmd for cmd in self.calls if tuple(cmd[: len(prefix)]) == prefix]


@pytest.fixture
def fake_process(tmp_path):
    return FakeProcess(cwd=tmp_path)


@pytest.fixture(autouse=True)
def reset_exception_logger():
    ExceptionLogger._instance = None
    yield
    ExceptionLogger._instance = None


# Git fixtures

_GIT_ENV = {
    "GIT_AUTHOR_NAME": "HubKit Tester",
    "GIT_AUTHOR_EMAIL": "tester@example.com",
    "GIT_COMMITTER_NAME": "HubKit Tester",
    "GIT_COMMITTER_EMAIL": "tester@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def run_git(args: Sequence[str], cwd: Path) -> str:
    """Run a git command for test setup, failing loudly."""
    env = os.environ.copy()
    env.update(_GIT_ENV)
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, env=env, check=True
    )
    return result.stdout


def commit_file(repo: Path, name: str) -> None:
    (repo / name).write_text(f"{name}\n")
    run_git(["add", name], repo)
    run_git(["commit", "--no-gpg-sign", "-m", f"Add {name}"], repo)


class GitRepositories:
    """A local working copy with a bare remote named ``origin``."""

    def __init__(self, base: Path):
        self.local = base / "local"
        self.remote = base / "remote.git"

        self.local.mkdir()
        run_git(["init", "--quiet"], self.local)
        run_git(["symbolic-ref", "HEAD", "refs/heads/master"], self.local)
        commit_file(self.local, "foo.txt")
        commit_file(self.local, "diggy.txt")

        self.remote.mkdir()
        run_git(["init", "--quiet", "--bare"], self.remote)
        run_git(["remote", "add", "origin", str(self.remote)], self.local)
        run_git(["push", "--quiet", "origin", "master"], self.local)

    def git(self, *args: str) -> str:
        return run_git(args, self.local)

    def commit(self, name: str) -> None:
        commit_file(self.local, name)

    def given_remote_branches_exist(self, branches: Sequence[str]) -> None:
        for branch in branches:
            self.git("branch", branch)
            self.git("push", "--quiet", "origin", branch)
            self.git("branch", "-D", branch)


@pytest.fixture
def git_repos(tmp_path, monkeypatch):
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    # Keep the user's git configuration out of the tests
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for key, value in _GIT_ENV.items():
        monkeypatch.setenv(key, value)

    return GitRepositories(tmp_path)
