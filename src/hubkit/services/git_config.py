"""Reading and writing Git configuration values."""

import logging

from ..exceptions import HubKitError
from ..utils.git_runner import CliProcess

logger = logging.getLogger(__name__)


class GitConfig:
    """Git configuration store backed by ``git config``."""

    def __init__(self, process: CliProcess):
        self.process = process

    def get(self, key: str, section: str = "local", all: bool = False) -> str:
        """Get a configuration value, or an empty string when it is not set.

        Args:
            key: Configuration key, eg. ``branch.master.alias``
            section: ``local``, ``global`` or ``system``
            all: Return all values of a multi-valued key, one per line
        """
        result = self.process.run(
            ["git", "config", f"--{section}", "--get-all" if all else "--get", key]
        )

        return result.stdout.strip()

    def set(
        self, key: str, value: str, section: str = "local", overwrite: bool = False
    ) -> None:
        """Store a configuration value.

        Raises:
            HubKitError: If the key already has a value and overwrite is False
        """
        if not overwrite and self.get(key, section) != "":
            raise HubKitError(
                f'Unable to set git config "{key}" at {section}, '
                "because the value is already set."
            )

        logger.debug(f"Setting git config {key}={value} ({section})")
        self.process.must_run(["git", "config", f"--{section}", key, str(value)])
