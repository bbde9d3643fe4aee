"""Unit tests for the Git configuration store."""

import pytest

from hubkit.exceptions import HubKitError
from hubkit.services.git_config import GitConfig


@pytest.fixture
def git_config(fake_process):
    return GitConfig(fake_process)


def test_get_returns_trimmed_value(git_config, fake_process):
    fake_process.responses[
        ("git", "config", "--local", "--get", "branch.master.alias")
    ] = ("2.0-dev\n", 0)

    assert git_config.get("branch.master.alias") == "2.0-dev"


def test_get_returns_empty_string_when_unset(git_config, fake_process):
    fake_process.responses[
        ("git", "config", "--global", "--get", "user.name")
    ] = ("", 1)

    assert git_config.get("user.name", section="global") == ""


def test_get_all_values(git_config, fake_process):
    git_config.get("remote.origin.fetch", all=True)

    assert fake_process.calls == [
        ["git", "config", "--local", "--get-all", "remote.origin.fetch"]
    ]


def test_set_writes_unset_value(git_config, fake_process):
    git_config.set("branch.master.alias", "3.0-dev")

    assert fake_process.called("git", "config", "--local", "branch.master.alias") == [
        ["git", "config", "--local", "branch.master.alias", "3.0-dev"]
    ]


def test_set_refuses_to_overwrite_by_default(git_config, fake_process):
    fake_process.responses[
        ("git", "config", "--local", "--get", "branch.master.alias")
    ] = ("2.0-dev\n", 0)

    with pytest.raises(HubKitError, match="because the value is already set"):
        git_config.set("branch.master.alias", "3.0-dev")


def test_set_overwrites_when_asked(git_config, fake_process):
    fake_process.responses[
        ("git", "config", "--local", "--get", "branch.master.alias")
    ] = ("2.0-dev\n", 0)

    git_config.set("branch.master.alias", "3.0-dev", overwrite=True)

    assert ["git", "config", "--local", "branch.master.alias", "3.0-dev"] in (
        fake_process.calls
    )
