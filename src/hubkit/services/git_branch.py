"""
Branch operations on top of the local Git repository.

Provides the remote diff status of a branch, keeps branches in sync with
their remote counterpart and lists version (maintenance) branches in
ascending version order.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from rich.console import Console

from ..exceptions import (
    DetachedHeadError,
    HubKitError,
    SyncDiverged,
    SyncForbidden,
    WorkingTreeIsNotReady,
)
from ..helpers.version import sort_version_branches
from ..utils.git_runner import CliProcess
from ..utils.text import split_lines

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """How a local branch relates to its remote counterpart."""

    UP_TO_DATE = "up-to-date"
    NEED_PULL = "need_pull"
    NEED_PUSH = "need_push"
    DIVERGED = "diverged"


class GitBranch:
    """Branch level Git operations for a single repository."""

    def __init__(self, process: CliProcess, console: Optional[Console] = None):
        self.process = process
        self.console = console or Console(stderr=True)

    def get_remote_diff_status(
        self, remote: str, local_branch: str, remote_branch: Optional[str] = None
    ) -> SyncStatus:
        """Compare a local branch with its remote counterpart.

        A remote branch that does not exist yet needs a push.

        Args:
            remote: Name of the remote, eg. ``origin``
            local_branch: Local branch name
            remote_branch: Remote branch name (default: same as local)
        """
        remote_ref = f"refs/remotes/{remote}/{remote_branch or local_branch}"

        exists = self.process.run(["git", "rev-parse", "--verify", "--quiet", remote_ref])
        if exists.returncode != 0:
            logger.debug(f"Remote ref {remote_ref} does not exist")
            return SyncStatus.NEED_PUSH

        local_sha = self._rev_parse(local_branch)
        remote_sha = self._rev_parse(remote_ref)
        base_sha = self.process.must_run(
            ["git", "merge-base", local_branch, remote_ref]
        ).stdout.strip()

        if local_sha == remote_sha:
            return SyncStatus.UP_TO_DATE

        if local_sha == base_sha:
            return SyncStatus.NEED_PULL

        if remote_sha == base_sha:
            return SyncStatus.NEED_PUSH

        return SyncStatus.DIVERGED

    def ensure_branch_in_sync(
        self,
        remote: str,
        local_branch: str,
        remote_branch: Optional[str] = None,
        allow_push: bool = True,
        status: Optional[SyncStatus] = None,
    ) -> None:
        """Bring a local branch in sync with the remote one.

        Pulls when the remote is ahead and pushes when the local branch is
        ahead (only if ``allow_push``). When ``status`` is not given it is
        determined with ``get_remote_diff_status()``.

        The checked-out branch is updated with ``git pull --rebase``, any
        other branch is fast-forwarded without touching the working tree.

        Raises:
            SyncForbidden: Local branch is ahead while pushing is not allowed
            SyncDiverged: Local and remote histories have diverged
        """
        remote_branch = remote_branch or local_branch

        if status is None:
            status = self.get_remote_diff_status(remote, local_branch, remote_branch)

        logger.debug(f"Sync status of {remote}/{remote_branch}: {status.value}")

        if status is SyncStatus.UP_TO_DATE:
            return

        if status is SyncStatus.NEED_PULL:
            self.console.print(
                f'Your local branch "{local_branch}" is outdated, running git pull.',
                style="yellow",
            )
            if self.is_active_branch(local_branch):
                self.pull_remote(remote, remote_branch)
            else:
                self.fast_forward(remote, local_branch, remote_branch)
        elif status is SyncStatus.NEED_PUSH:
            if not allow_push:
                raise SyncForbidden(local_branch)

            self.console.print(
                f'Your local branch "{local_branch}" is ahead of "{remote}", running git push.',
                style="yellow",
            )
            if remote_branch == local_branch:
                self.push_to_remote(remote, local_branch)
            else:
                self.push_to_remote(remote, f"{local_branch}:{remote_branch}")
        else:
            raise SyncDiverged(local_branch)

    def get_version_branches(self, remote: str) -> List[str]:
        """List the version branches of a remote, lowest version first."""
        branches = split_lines(
            self.process.must_run(
                [
                    "git",
                    "for-each-ref",
                    "--format",
                    "%(refname:strip=3)",
                    f"refs/remotes/{remote}",
                ]
            ).stdout
        )

        return sort_version_branches(branches)

    def get_active_branch_name(self) -> str:
        active_branch = self.process.must_run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"]
        ).stdout.strip()

        if active_branch == "HEAD":
            raise DetachedHeadError()

        return active_branch

    def is_active_branch(self, branch: str) -> bool:
        """Whether ``branch`` is checked out, False in a detached HEAD."""
        try:
            return self.get_active_branch_name() == branch
        except DetachedHeadError:
            return False

    def get_primary_branch(self, remote: str, default: str = "master") -> str:
        """Get the default branch of a remote, falling back to ``default``."""
        result = self.process.run(
            ["git", "symbolic-ref", "--quiet", "--short", f"refs/remotes/{remote}/HEAD"]
        )
        ref = result.stdout.strip()

        if result.returncode != 0 or not ref.startswith(f"{remote}/"):
            return default

        return ref[len(remote) + 1 :]

    def branch_exists(self, branch: str) -> bool:
        branches = split_lines(
            self.process.must_run(
                ["git", "for-each-ref", "--format", "%(refname:short)", "refs/heads/"]
            ).stdout
        )

        return branch in branches

    def push_to_remote(self, remote: str, refs: Union[str, Sequence[str]]) -> None:
        """Push one or more refs (``branch`` or ``local:remote``) to a remote."""
        refs = [refs] if isinstance(refs, str) else list(refs)

        for ref in refs:
            if ref.startswith(":"):
                raise HubKitError(
                    f'Push target "{ref}" does not include the local branch-name.'
                )

        self.process.must_run(["git", "push", remote] + refs)

    def pull_remote(self, remote: str, ref: Optional[str] = None) -> None:
        """Rebase the checked-out branch onto the remote one."""
        self.guard_working_tree_ready()

        cmd = ["git", "pull", "--rebase", remote]
        if ref:
            cmd.append(ref)

        self.process.must_run(cmd)

    def fast_forward(self, remote: str, local_branch: str, remote_branch: str) -> None:
        """Fast-forward a branch that is not checked out to the remote one."""
        self.process.must_run(
            ["git", "fetch", remote, f"{remote_branch}:{local_branch}"]
        )

    def merge(self, source: str) -> None:
        """Merge ``source`` into the checked-out branch with a merge commit."""
        self.process.must_run(["git", "merge", "--no-ff", "--log", source])

    def remote_update(self, remote: str) -> None:
        self.process.must_run(["git", "fetch", remote])

    def is_working_tree_ready(self) -> bool:
        """Check there are no uncommitted changes and no rebase in progress."""
        status = self.process.must_run(
            ["git", "status", "--porcelain", "--untracked-files=no"]
        ).stdout
        if status.strip():
            return False

        git_dir = Path(
            self.process.must_run(["git", "rev-parse", "--git-dir"]).stdout.strip()
        )
        if not git_dir.is_absolute():
            git_dir = self.process.cwd / git_dir

        return not any(
            (git_dir / name).exists() for name in ("rebase-merge", "rebase-apply")
        )

    def guard_working_tree_ready(self) -> None:
        if not self.is_working_tree_ready():
            raise WorkingTreeIsNotReady()

    def checkout(self, branch: str) -> None:
        self.process.must_run(["git", "checkout", branch])

    def checkout_remote_branch(self, remote: str, branch: str) -> None:
        """Checkout a remote branch, creating the local branch when missing."""
        if self.branch_exists(branch):
            self.checkout(branch)
            return

        self.process.must_run(["git", "checkout", f"{remote}/{branch}", "-b", branch])

    def _rev_parse(self, ref: str) -> str:
        return self.process.must_run(["git", "rev-parse", ref]).stdout.strip()
