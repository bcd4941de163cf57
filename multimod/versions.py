"""Version parsing utilities.

Module set versions use the Go module convention: a "v" prefix followed by
a full semantic version ("v1.2.3", "v0.5.0-rc.1"). Parsing is delegated to
semver after stripping the prefix.
"""

from __future__ import annotations

import semver

from .errors import InvalidVersionError


def parse_version(version_str: str) -> semver.Version:
    """Parse a "v"-prefixed version string into a semver.Version.

    Unlike plain semver, the "v" prefix is mandatory, and all three
    components must be present:
    - "v1.2.3" → Version(1, 2, 3)
    - "v1.2.3-rc.1+build.5" → Version(1, 2, 3, "rc.1", "build.5")
    - "1.2.3", "v1.2" → InvalidVersionError

    Raises:
        InvalidVersionError: If the string is not a valid version.
    """
    if not isinstance(version_str, str) or not version_str.startswith("v"):
        raise InvalidVersionError(f"invalid version string: {version_str!r}")
    try:
        return semver.Version.parse(version_str[1:])
    except ValueError as exc:
        raise InvalidVersionError(f"invalid version string: {version_str!r}") from exc


def is_valid_version(version_str: str) -> bool:
    try:
        parse_version(version_str)
    except InvalidVersionError:
        return False
    return True


def is_stable_version(version_str: str) -> bool:
    """Return True for versions with major >= 1 and no prerelease/build suffix.

    Invalid versions are never stable.

    Examples:
        "v1.0.0" → True
        "v0.9.0" → False
        "v2.0.0-rc.1" → False
    """
    try:
        v = parse_version(version_str)
    except InvalidVersionError:
        return False
    return v.major >= 1 and v.prerelease is None and v.build is None


def major_version(version_str: str) -> str:
    """Return the major component in "v<major>" form, e.g. "v1"."""
    return f"v{parse_version(version_str).major}"


def combine_tag_names_and_version(tag_names: list[str], version: str) -> list[str]:
    """Build the full Git tag for each module tag name at a version.

    The module at the repository root has an empty tag name and is tagged
    with the bare version.

    Examples:
        (["", "trace"], "v1.2.0") → ["v1.2.0", "trace/v1.2.0"]
    """
    return [f"{name}/{version}" if name else version for name in tag_names]
