"""Merge a version branch into the next version branches."""

import logging
from typing import List, Optional, Tuple

from rich.console import Console

from ..exceptions import SyncDiverged
from .git_branch import GitBranch, SyncStatus

logger = logging.getLogger(__name__)


class BranchUpMerger:
    """Merges fixes on a maintenance branch upwards.

    A merge of ``1.0`` goes into the next version branch (``1.1``), or into
    the default branch when ``1.0`` is the newest version. With
    ``all_branches`` the merge cascades through every newer version branch
    and finally the default branch.
    """

    def __init__(
        self,
        git_branch: GitBranch,
        remote: str,
        default_branch: str,
        console: Optional[Console] = None,
    ):
        self.git = git_branch
        self.remote = remote
        self.default_branch = default_branch
        self.console = console or Console(stderr=True)

    def merge_pairs(
        self, branch: str, all_branches: bool = False
    ) -> List[Tuple[str, str]]:
        """Get the (source, destination) merges for ``branch``, in order.

        Returns an empty list when ``branch`` is not a version branch.
        """
        branches = self.git.get_version_branches(self.remote)

        if branch not in branches:
            self.console.print(
                f'Branch "{branch}" is not a supported version branch.',
                style="yellow",
                markup=False,
            )
            return []

        idx = branches.index(branch)

        if not all_branches:
            if idx + 1 < len(branches):
                return [(branch, branches[idx + 1])]
            return [(branch, self.default_branch)]

        if self.default_branch not in branches:
            branches = branches + [self.default_branch]

        return [(branches[i - 1], branches[i]) for i in range(idx + 1, len(branches))]

    def merge(self, branch: str, all_branches: bool = False) -> List[str]:
        """Merge ``branch`` upwards and push the changed branches.

        Every branch is brought in sync with the remote before merging.
        ``branch`` is checked out again when done.

        Returns:
            The branches that received a merge
        """
        pairs = self.merge_pairs(branch, all_branches)
        if not pairs:
            return []

        self.git.ensure_branch_in_sync(self.remote, branch)

        changed = []
        for source, dest in pairs:
            self.git.checkout_remote_branch(self.remote, dest)
            self.git.ensure_branch_in_sync(self.remote, dest)
            self.git.merge(source)

            self.console.print(
                f'Merged "{source}" into "{dest}"', style="cyan", markup=False
            )
            changed.append(dest)

        self.git.checkout(branch)
        self.git.push_to_remote(self.remote, changed)

        return changed

    def dry_merge(self, branch: str, all_branches: bool = False) -> List[str]:
        """Report the merges ``merge()`` would perform, changing nothing.

        Raises:
            SyncDiverged: A branch involved has diverged from the remote
        """
        pairs = self.merge_pairs(branch, all_branches)
        if not pairs:
            return []

        self._guard_not_diverged(branch)

        changed = []
        for source, dest in pairs:
            self._guard_not_diverged(dest)
            self.console.print(
                f'[DRY-RUN] Merged "{source}" into "{dest}"',
                style="cyan",
                markup=False,
            )
            changed.append(dest)

        return changed

    def _guard_not_diverged(self, branch: str) -> None:
        # Missing local branches are created from the remote one
        if not self.git.branch_exists(branch):
            return

        status = self.git.get_remote_diff_status(self.remote, branch)
        logger.debug(f"Sync status of {branch}: {status.value}")

        if status is SyncStatus.DIVERGED:
            raise SyncDiverged(branch)
