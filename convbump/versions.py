"""Version parsing and pre-release arithmetic.

Thin helpers over ``semver.Version``. Pre-release identifiers are treated as
a dot-separated list where purely numeric identifiers form the "sequence"
(``rc.3`` has sequence number 3).
"""

from __future__ import annotations

import semver

from .bump import Bump
from .errors import InvalidVersion

VersionLike = str | semver.Version


def parse_version(version: VersionLike) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Raises:
        InvalidVersion: If the string is not a valid semantic version.
    """
    if isinstance(version, semver.Version):
        return version
    try:
        return semver.Version.parse(version)
    except (ValueError, TypeError) as exc:
        raise InvalidVersion(f"Invalid version {version!r}: {exc}") from exc


def is_valid_version(version: str) -> bool:
    try:
        parse_version(version)
    except InvalidVersion:
        return False
    return True


def is_pre_release(version: VersionLike) -> bool:
    """Return True if the version has a pre-release component."""
    return bool(parse_version(version).prerelease)


def strip_pre_release(version: VersionLike) -> semver.Version:
    """Drop pre-release and build metadata: ``1.3.0-rc.5`` → ``1.3.0``."""
    return parse_version(version).finalize_version()


def increment(base: VersionLike, bump: Bump) -> semver.Version:
    """Increment the stable part of ``base`` by ``bump``.

    Examples:
        increment("1.2.3", Bump.PATCH) → 1.2.4
        increment("1.2.3", Bump.MINOR) → 1.3.0
        increment("1.2.3-rc.1", Bump.MAJOR) → 2.0.0
        increment("1.2.3", Bump.NONE) → 1.2.3

    Raises:
        InvalidVersion: If ``base`` cannot be parsed.
    """
    stable = strip_pre_release(base)
    if bump is Bump.MAJOR:
        return stable.bump_major()
    if bump is Bump.MINOR:
        return stable.bump_minor()
    if bump is Bump.PATCH:
        return stable.bump_patch()
    return stable


def _identifiers(version: semver.Version) -> list[str]:
    return version.prerelease.split(".") if version.prerelease else []


def _with_identifiers(version: semver.Version, ids: list[str]) -> semver.Version:
    return version.replace(prerelease=".".join(ids) if ids else None)


def carry_pre_release(target: VersionLike, source: VersionLike) -> semver.Version:
    """Copy the pre-release component of ``source`` onto ``target``."""
    return parse_version(target).replace(prerelease=parse_version(source).prerelease)


def bump_pre_release_sequence(version: VersionLike) -> semver.Version:
    """Increment every numeric pre-release identifier.

    ``1.2.3-rc.1.beta.2`` → ``1.2.3-rc.2.beta.3``. Stable versions are
    returned unchanged.
    """
    v = parse_version(version)
    ids = [str(int(i) + 1) if i.isdigit() else i for i in _identifiers(v)]
    return _with_identifiers(v, ids)


def reset_pre_release_sequence(version: VersionLike, initial: int) -> semver.Version:
    """Replace every numeric pre-release identifier with ``initial``."""
    v = parse_version(version)
    ids = [str(initial) if i.isdigit() else i for i in _identifiers(v)]
    return _with_identifiers(v, ids)


def compare(a: VersionLike, b: VersionLike) -> int:
    """Full semver precedence comparison, returning -1, 0 or 1."""
    return parse_version(a).compare(parse_version(b))


def compare_main(a: VersionLike, b: VersionLike) -> int:
    """Compare only major.minor.patch, ignoring pre-release and build."""
    return compare(strip_pre_release(a), strip_pre_release(b))
