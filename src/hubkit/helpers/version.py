"""Version-aware ordering of maintenance branches.

Maintenance branches are named after the version line they carry, eg.
``1.0``, ``v2.3`` or ``1.x`` (the open-ended line of a major version).
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

VERSION_BRANCH_REGEX = re.compile(r"^[vV]?(?P<major>\d+)\.(?P<minor>\d+|x)$")


@dataclass(frozen=True)
class VersionIdentity:
    """Semantic identity of a version branch, ``v1.0`` and ``1.0`` share one."""

    major: int
    minor: Optional[int]  # None for the ``x`` wildcard

    @property
    def is_wildcard(self) -> bool:
        return self.minor is None

    def sort_key(self) -> Tuple[int, int, int]:
        # The wildcard line ranks after every numeric minor of its major
        if self.minor is None:
            return (self.major, 1, 0)

        return (self.major, 0, self.minor)

    def __str__(self) -> str:
        return f"{self.major}.{'x' if self.minor is None else self.minor}"


def parse_version_branch(name: str) -> Optional[VersionIdentity]:
    """Return the version identity of a branch name, or None if it has none."""
    match = VERSION_BRANCH_REGEX.match(name)
    if match is None:
        return None

    minor = match.group("minor")
    return VersionIdentity(
        major=int(match.group("major")),
        minor=None if minor == "x" else int(minor),
    )


def sort_version_branches(names: Iterable[str]) -> List[str]:
    """Filter branch names to version branches and sort them ascending.

    Names that do not look like a version (``master``, ``feature-1.0``,
    ``x.1``) are dropped. Entries sharing an identity (``1.0`` and ``v1.0``)
    are all kept in their input order.

    >>> sort_version_branches(["master", "2.0", "1.x", "v1.1"])
    ['v1.1', '1.x', '2.0']
    """
    versioned = []
    for name in names:
        identity = parse_version_branch(name)
        if identity is not None:
            versioned.append((identity.sort_key(), name))

    # sorted() is stable, so equal identities keep their encounter order
    return [name for _, name in sorted(versioned, key=lambda item: item[0])]
