"""Unit tests for merging version branches upwards."""

import io
from unittest.mock import Mock, call

import pytest
from rich.console import Console

from hubkit.exceptions import ProcessFailedError, SyncDiverged
from hubkit.services.git_branch import GitBranch, SyncStatus
from hubkit.services.upmerge import BranchUpMerger


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def git_branch():
    git_branch = Mock(spec=GitBranch)
    git_branch.get_version_branches.return_value = ["1.0", "1.1", "2.0"]
    git_branch.branch_exists.return_value = True
    git_branch.get_remote_diff_status.return_value = SyncStatus.UP_TO_DATE
    return git_branch


@pytest.fixture
def upmerger(git_branch, output):
    return BranchUpMerger(
        git_branch, "upstream", "master", console=Console(file=output, width=200)
    )


class TestMergePairs:
    def test_merges_into_next_version(self, upmerger):
        assert upmerger.merge_pairs("1.0") == [("1.0", "1.1")]

    def test_newest_version_merges_into_default_branch(self, upmerger):
        assert upmerger.merge_pairs("2.0") == [("2.0", "master")]

    def test_all_merges_through_every_newer_version(self, upmerger):
        assert upmerger.merge_pairs("1.0", all_branches=True) == [
            ("1.0", "1.1"),
            ("1.1", "2.0"),
            ("2.0", "master"),
        ]

    def test_all_does_not_repeat_default_branch_that_is_a_version(
        self, upmerger, git_branch
    ):
        git_branch.get_version_branches.return_value = ["1.0", "2.x"]
        upmerger.default_branch = "2.x"

        assert upmerger.merge_pairs("1.0", all_branches=True) == [("1.0", "2.x")]

    def test_ignores_branch_that_is_not_a_version(self, upmerger, output):
        assert upmerger.merge_pairs("feature") == []
        assert 'Branch "feature" is not a supported version branch.' in (
            output.getvalue()
        )


class TestMerge:
    def test_merges_into_next_version_and_pushes(self, upmerger, git_branch, output):
        assert upmerger.merge("1.1") == ["2.0"]

        assert git_branch.ensure_branch_in_sync.call_args_list == [
            call("upstream", "1.1"),
            call("upstream", "2.0"),
        ]
        git_branch.checkout_remote_branch.assert_called_once_with("upstream", "2.0")
        git_branch.merge.assert_called_once_with("1.1")
        git_branch.checkout.assert_called_once_with("1.1")
        git_branch.push_to_remote.assert_called_once_with("upstream", ["2.0"])
        assert 'Merged "1.1" into "2.0"' in output.getvalue()

    def test_merges_all_branches_in_order(self, upmerger, git_branch):
        assert upmerger.merge("1.0", all_branches=True) == ["1.1", "2.0", "master"]

        assert git_branch.merge.call_args_list == [
            call("1.0"),
            call("1.1"),
            call("2.0"),
        ]
        assert git_branch.checkout_remote_branch.call_args_list == [
            call("upstream", "1.1"),
            call("upstream", "2.0"),
            call("upstream", "master"),
        ]
        git_branch.checkout.assert_called_once_with("1.0")
        git_branch.push_to_remote.assert_called_once_with(
            "upstream", ["1.1", "2.0", "master"]
        )

    def test_does_nothing_for_non_version_branch(self, upmerger, git_branch):
        assert upmerger.merge("feature") == []

        git_branch.ensure_branch_in_sync.assert_not_called()
        git_branch.merge.assert_not_called()
        git_branch.push_to_remote.assert_not_called()

    def test_stops_on_merge_conflict_without_pushing(self, upmerger, git_branch):
        git_branch.merge.side_effect = ProcessFailedError(
            ["git", "merge", "--no-ff", "--log", "1.0"], 1, "CONFLICT (content)", ""
        )

        with pytest.raises(ProcessFailedError):
            upmerger.merge("1.0", all_branches=True)

        git_branch.merge.assert_called_once_with("1.0")
        git_branch.push_to_remote.assert_not_called()


class TestDryMerge:
    def test_reports_merges_without_changing_anything(
        self, upmerger, git_branch, output
    ):
        assert upmerger.dry_merge("1.0", all_branches=True) == ["1.1", "2.0", "master"]

        git_branch.ensure_branch_in_sync.assert_not_called()
        git_branch.checkout_remote_branch.assert_not_called()
        git_branch.merge.assert_not_called()
        git_branch.push_to_remote.assert_not_called()
        assert '[DRY-RUN] Merged "1.1" into "2.0"' in output.getvalue()

    def test_fails_for_diverged_branch(self, upmerger, git_branch):
        git_branch.get_remote_diff_status.side_effect = [
            SyncStatus.NEED_PULL,
            SyncStatus.DIVERGED,
        ]

        with pytest.raises(SyncDiverged, match='branch "1.1" have differed'):
            upmerger.dry_merge("1.0")

    def test_skips_status_of_branches_missing_locally(self, upmerger, git_branch):
        git_branch.branch_exists.side_effect = lambda branch: branch == "1.0"

        assert upmerger.dry_merge("1.0") == ["1.1"]

        git_branch.get_remote_diff_status.assert_called_once_with("upstream", "1.0")
