"""
Centralized Git command runner with dubious ownership handling.

``CliProcess`` is the single place where HubKit spawns ``git``. It handles
the "dubious ownership" error that occurs when running under sudo or in
environments where the repository owner differs from the current user, and
logs every command it runs.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..exceptions import ProcessFailedError, ProcessTimeoutError

logger = logging.getLogger(__name__)


def get_git_environment(project_dir: Path) -> Dict[str, str]:
    """
    Get environment variables for git commands to handle dubious ownership.

    This is needed when running under sudo or in environments where the
    repository owner differs from the current user (e.g., Docker, CI/CD).

    Args:
        project_dir: Path to the project directory

    Returns:
        Dictionary of environment variables for git commands
    """
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith(("GIT_CONFIG_KEY_", "GIT_CONFIG_VALUE_"))
    }

    # Git only reads GIT_CONFIG_KEY_<n> for n < GIT_CONFIG_COUNT
    existing_count = os.environ.get("GIT_CONFIG_COUNT", "0")
    existing_count = int(existing_count) if existing_count.isdigit() else 0

    # Preserve the caller's entries, shifted one slot up so safe.directory
    # can take index 0
    for idx in range(existing_count):
        key = os.environ.get(f"GIT_CONFIG_KEY_{idx}")
        if key is None:
            continue
        env[f"GIT_CONFIG_KEY_{idx + 1}"] = key
        env[f"GIT_CONFIG_VALUE_{idx + 1}"] = os.environ.get(
            f"GIT_CONFIG_VALUE_{idx}", ""
        )

    env["GIT_CONFIG_KEY_0"] = "safe.directory"
    env["GIT_CONFIG_VALUE_0"] = str(project_dir.resolve())
    env["GIT_CONFIG_COUNT"] = str(existing_count + 1)

    return env


class CliProcess:
    """Runs external commands in the project directory."""

    def __init__(self, cwd: Optional[Path] = None, timeout: Optional[float] = None):
        """
        Args:
            cwd: Working directory for all commands (default: current directory)
            timeout: Optional timeout in seconds applied to every command
        """
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.timeout = timeout

    def run(self, cmd: Sequence[str]) -> subprocess.CompletedProcess:
        """
        Run a command and wait for it, regardless of the exit status.

        Args:
            cmd: Command as a list (e.g., ["git", "status"])

        Returns:
            CompletedProcess with decoded stdout and stderr

        Raises:
            ProcessTimeoutError: If the timeout is exceeded
        """
        cmd = [str(part) for part in cmd]
        logger.debug(f"Running: {' '.join(cmd)} (cwd={self.cwd})")

        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=get_git_environment(self.cwd),
            )
        except subprocess.TimeoutExpired as e:
            logger.debug(f"Command timed out after {self.timeout}s: {' '.join(cmd)}")
            raise ProcessTimeoutError(cmd, self.timeout) from e

        logger.debug(f"Exit code {result.returncode}: {' '.join(cmd)}")
        return result

    def must_run(self, cmd: Sequence[str]) -> subprocess.CompletedProcess:
        """
        Identical to ``run()`` except that a non-zero exit status raises.

        Raises:
            ProcessFailedError: If the command exits with a non-zero status
            ProcessTimeoutError: If the timeout is exceeded
        """
        result = self.run(cmd)

        if result.returncode != 0:
            logger.debug(
                f"Command failed: {' '.join(result.args)}: {result.stderr.strip()}"
            )
            raise ProcessFailedError(
                result.args, result.returncode, result.stdout, result.stderr
            )

        return result
