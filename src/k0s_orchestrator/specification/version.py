"""Runtime version parsing.

Cluster runtime versions are semantic versions with an optional leading ``v``,
an optional pre-release and an optional build suffix, e.g. ``v1.30.2+k0s.0``
or ``1.31.0-rc.1+k0s.0``.
"""

import re
from functools import total_ordering

from pydantic import BaseModel

SEMVER_PATTERN = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
class RuntimeVersion(BaseModel):
    """Parsed semantic version.

    Ordering follows semantic versioning precedence: build metadata is ignored
    and a pre-release sorts before the matching release.
    """

    model_config = {"frozen": True}

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    def __str__(self) -> str:
        text = f"v{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def _precedence_key(self) -> tuple:
        # Releases sort after any pre-release of the same core version
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, 1, ())
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part) for part in self.prerelease.split(".")
        )
        return (self.major, self.minor, self.patch, 0, identifiers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuntimeVersion):
            return NotImplemented
        return self._precedence_key() == other._precedence_key()

    def __lt__(self, other: "RuntimeVersion") -> bool:
        return self._precedence_key() < other._precedence_key()

    def __hash__(self) -> int:
        return hash(self._precedence_key())


def is_valid_version(version: str) -> bool:
    """Return True if ``version`` is a well-formed semantic version."""
    return SEMVER_PATTERN.match(version.strip()) is not None


def parse_version(version: str) -> RuntimeVersion:
    """Parse a version string into its components.

    Args:
        version: Version string to parse (e.g., "v1.30.2+k0s.0")

    Returns:
        RuntimeVersion with major, minor, patch, prerelease and build parts

    Raises:
        ValueError: If the string is not a semantic version
    """
    match = SEMVER_PATTERN.match(version.strip())
    if match is None:
        raise ValueError(f"'{version}' is not a valid semantic version")

    return RuntimeVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=match.group("prerelease"),
        build=match.group("build"),
    )
