"""Exceptions raised by HubKit."""

from typing import Any, Dict, List, Optional


class HubKitError(Exception):
    """Base class for all HubKit failures."""

    pass


class ConfigError(HubKitError):
    """Raised when the configuration file cannot be loaded."""

    pass


class ProcessFailedError(HubKitError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(
        self,
        cmd: List[str],
        returncode: int,
        stdout: Optional[str] = "",
        stderr: Optional[str] = "",
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""

        message = f'The command "{" ".join(self.cmd)}" failed (exit code {returncode}).'
        if self.stderr.strip():
            message += f"\n\n{self.stderr.strip()}"

        super().__init__(message)

    def context(self) -> Dict[str, Any]:
        return {
            "command": " ".join(self.cmd),
            "returncode": self.returncode,
            "stdout": self.stdout,
            "stderr": self.stderr,
        }


class ProcessTimeoutError(HubKitError):
    """Raised when an external command exceeds the configured timeout."""

    def __init__(self, cmd: List[str], timeout: Optional[float]):
        self.cmd = list(cmd)
        self.timeout = timeout

        super().__init__(
            f'The command "{" ".join(self.cmd)}" timed out after {timeout} seconds.'
        )

    def context(self) -> Dict[str, Any]:
        return {"command": " ".join(self.cmd), "timeout": self.timeout}


class SyncForbidden(HubKitError):
    """Local branch is ahead of the remote but pushing is not allowed."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(
            f'Branch "{branch}" contains commits not existing in the remote version. '
            "Push is prohibited for this operation. "
            "Create a new branch and do a `git reset --hard`."
        )


class SyncDiverged(HubKitError):
    """Local and remote histories of a branch have diverged."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(
            "Cannot safely perform the operation. "
            f'Your local and remote version of branch "{branch}" have differed. '
            "Please resolve this problem manually."
        )


class InvalidAliasFormat(HubKitError, ValueError):
    """A branch alias does not follow the ``<major>.<minor>`` format."""

    MESSAGE = (
        "A branch alias consists of major and minor version "
        "without any prefix or suffix. like: 1.2"
    )

    def __init__(self, value: str = ""):
        self.value = value
        super().__init__(self.MESSAGE)


class WorkingTreeIsNotReady(HubKitError):
    def __init__(self):
        super().__init__(
            "The Git working tree has uncommitted changes, "
            "stash your changes before continuing."
        )


class DetachedHeadError(HubKitError):
    def __init__(self):
        super().__init__(
            "You are currently in a detached HEAD state, "
            "unable to get active branch-name. Please run `git checkout` first."
        )
