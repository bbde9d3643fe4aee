"""Branch alias resolution.

The branch alias (eg. ``1.0-dev``) tells which version the primary branch
will become. It is looked up, in order, in the project manifest
(``extra.branch-alias.dev-<primary>``), in the Git config key
``branch.<primary>.alias``, and finally asked from the user. An alias given
by the user is stored in Git config so the question is asked only once.
"""

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import click
from rich.console import Console

from ..exceptions import InvalidAliasFormat

logger = logging.getLogger(__name__)

ALIAS_REGEX = re.compile(r"^[vV]?(?P<major>\d+)\.(?P<minor>\d+)$")

# Manifest aliases may carry a stability flag, eg. "2.0-beta1-dev"
_MANIFEST_VERSION_REGEX = re.compile(
    r"^[vV]?(?P<major>\d+)\.(?P<minor>\d+|x)"
    r"(?:[-.]?(?:alpha|beta|rc)(?:[.-]?\d+)?)?$",
    re.IGNORECASE,
)


class AliasSource(Enum):
    """Where a branch alias was found."""

    COMPOSER_FILE = "composer-file"
    GIT_CONFIG = "git-config"
    USER_PROMPT = "user-prompt"

    def describe(self, primary_branch: str, manifest_file: str = "composer.json") -> str:
        if self is AliasSource.COMPOSER_FILE:
            return f'{manifest_file} "extra.branch-alias.dev-{primary_branch}"'

        if self is AliasSource.GIT_CONFIG:
            return f'Git config "branch.{primary_branch}.alias"'

        return f'User input (stored in Git config "branch.{primary_branch}.alias")'


class GitConfigStore(Protocol):
    def get(self, key: str, section: str = "local", all: bool = False) -> str:
        ...

    def set(
        self, key: str, value: str, section: str = "local", overwrite: bool = False
    ) -> None:
        ...


class ManifestReader(Protocol):
    def read(self, path: Path) -> Optional[Dict[str, Any]]:
        """Return the decoded manifest, or None when absent or unreadable."""
        ...


class InteractivePrompt(Protocol):
    def ask(self, question: str, validator: Callable[[str], str]) -> str:
        """Ask until ``validator`` accepts the answer, return its result."""
        ...


class JsonManifestReader:
    """Reads a JSON manifest such as ``composer.json``."""

    def read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.is_file():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable manifest {path}: {e}")
            return None

        return data if isinstance(data, dict) else None


class ConsolePrompt:
    """Terminal prompt, validation errors are shown and the question repeated."""

    def ask(self, question: str, validator: Callable[[str], str]) -> str:
        def value_proc(value: str) -> str:
            try:
                return validator(value)
            except InvalidAliasFormat as e:
                raise click.BadParameter(str(e))

        return click.prompt(question, value_proc=value_proc)


def validate_alias(value: str) -> str:
    """Validate a ``<major>.<minor>`` alias and return it as ``<major>.<minor>-dev``.

    Raises:
        InvalidAliasFormat: If the value is not a major and minor version
    """
    match = ALIAS_REGEX.match(value.strip())
    if match is None:
        raise InvalidAliasFormat(value)

    return f"{int(match.group('major'))}.{int(match.group('minor'))}-dev"


def normalize_manifest_alias(label: Any) -> Optional[str]:
    """Normalize a manifest branch alias to ``<major>.<minor>-dev``.

    Returns None when the label is not a usable alias.
    """
    if not isinstance(label, str):
        return None

    if label.endswith("-dev"):
        version = label[: -len("-dev")]
    elif label.startswith("dev-"):
        version = label[len("dev-") :]
    else:
        return None

    match = _MANIFEST_VERSION_REGEX.match(version)
    if match is None:
        return None

    # Unstable releases are known to change often so use 1.0 as destination
    if int(match.group("major")) == 0:
        return "1.0-dev"

    if match.group("minor").lower() == "x":
        return None

    return f"{int(match.group('major'))}.{int(match.group('minor'))}-dev"


def set_branch_alias(git_config: GitConfigStore, primary_branch: str, value: str) -> str:
    """Validate and store a new alias for the primary branch."""
    alias = validate_alias(value)
    git_config.set(f"branch.{primary_branch}.alias", alias, overwrite=True)

    return alias


class BranchAliasResolver:
    """Determines the development branch alias of the primary branch."""

    def __init__(
        self,
        git_config: GitConfigStore,
        prompt: Optional[InteractivePrompt] = None,
        cwd: Optional[Path] = None,
        primary_branch: str = "master",
        manifest_file: str = "composer.json",
        manifest_reader: Optional[ManifestReader] = None,
        console: Optional[Console] = None,
    ):
        self.git_config = git_config
        self.prompt = prompt or ConsolePrompt()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.primary_branch = primary_branch
        self.manifest_file = manifest_file
        self.manifest_reader = manifest_reader or JsonManifestReader()
        self.console = console or Console(stderr=True)

    @property
    def config_key(self) -> str:
        return f"branch.{self.primary_branch}.alias"

    def get_alias(self) -> Tuple[str, AliasSource]:
        """Resolve the alias, the first source providing one wins.

        Returns:
            Tuple of the alias (eg. ``1.0-dev``) and where it was found
        """
        alias = self._get_alias_by_manifest()
        if alias:
            return alias, AliasSource.COMPOSER_FILE

        alias = self.git_config.get(self.config_key)
        if alias:
            return alias, AliasSource.GIT_CONFIG

        return self._ask_new_alias(), AliasSource.USER_PROMPT

    def _get_alias_by_manifest(self) -> Optional[str]:
        manifest = self.manifest_reader.read(self.cwd / self.manifest_file)
        if manifest is None:
            return None

        try:
            label = manifest["extra"]["branch-alias"][f"dev-{self.primary_branch}"]
        except (KeyError, TypeError):
            return None

        alias = normalize_manifest_alias(label)
        if alias is None:
            logger.warning(
                f"Ignoring malformed branch-alias {label!r} in {self.manifest_file}"
            )

        return alias

    def _ask_new_alias(self) -> str:
        self.console.print(
            f'No branch-alias found for "{self.primary_branch}", please provide an alias.\n'
            f'This should be the version "{self.primary_branch}" will become.\n'
            "If the last release is 2.1 the next will be eg. 2.2 or 3.0.",
            style="cyan",
        )

        alias = self.prompt.ask("Branch alias", validate_alias)
        self.git_config.set(self.config_key, alias, overwrite=True)

        self.console.print(
            "Branch-alias is stored for future reference.\n"
            "You can change this any time using the `branch-alias` command.",
            style="cyan",
        )

        return alias
