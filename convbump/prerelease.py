"""Pre-release state handling.

A package is either *stable* (no pre-release suffix) or *in pre-release*
(suffix present and the stable version it started from recorded as its
"origin" in the sticky state). Entering and exiting pre-release are explicit
actions; while in pre-release, bumps are computed from the origin so that
several commits of the same kind do not keep advancing the stable part.

    1.2.3  --enter rc-->  1.2.3-rc.0  --feat-->  1.3.0-rc.0  --fix-->  1.3.0-rc.1
           --exit-->  1.3.0
"""

from __future__ import annotations

import semver

from .bump import Bump
from .errors import ConvbumpError, InvalidVersion, MissingPreReleaseOrigin
from .models import StickyState, Workspace
from .versions import (
    VersionLike,
    bump_pre_release_sequence,
    carry_pre_release,
    compare,
    compare_main,
    increment,
    is_pre_release,
    parse_version,
    reset_pre_release_sequence,
    strip_pre_release,
)


class PreReleaseError(ConvbumpError):
    """A package cannot enter or exit pre-release."""


def check_pre_release_origins(workspace: Workspace, state: StickyState) -> None:
    """Ensure every pre-release package has a recorded origin.

    Raises:
        MissingPreReleaseOrigin: Listing every package without one. The
            origin cannot be guessed from the current version.
    """
    missing = [
        pkg.name
        for pkg in workspace.packages
        if pkg.is_pre_release and pkg.name not in state.pre_releases
    ]
    if missing:
        raise MissingPreReleaseOrigin(missing)


def base_version(current: VersionLike, origin: VersionLike | None) -> semver.Version:
    """Version to increment from: the origin while in pre-release."""
    if not is_pre_release(current):
        return parse_version(current)
    if origin is None:
        raise PreReleaseError(f"No origin recorded for pre-release version {current}")
    return parse_version(origin)


def next_version(
    current: VersionLike,
    bump: Bump,
    *,
    origin: VersionLike | None = None,
    initial: int = 0,
    preserve: bool = False,
) -> semver.Version:
    """Compute the version a package moves to for ``bump``.

    Args:
        current: The package's current version.
        bump: Bump to apply.
        origin: Recorded stable version for a package in pre-release.
        initial: Sequence number a pre-release restarts from when its stable
            part advances.
        preserve: Keep counting the pre-release sequence instead of
            restarting it when the stable part advances.

    Returns:
        The new version, or ``current`` itself when the computed version
        would not be greater.

    Examples:
        next_version("1.2.3", Bump.MINOR) → 1.3.0
        next_version("1.2.3-rc.0", Bump.MINOR, origin="1.2.3") → 1.3.0-rc.0
        next_version("1.3.0-rc.0", Bump.PATCH, origin="1.2.3") → 1.3.0-rc.1
    """
    current_v = parse_version(current)
    if bump is Bump.NONE:
        return current_v

    new = increment(base_version(current_v, origin), bump)

    if is_pre_release(current_v):
        new = carry_pre_release(new, current_v)
        if compare_main(current_v, new) >= 0:
            # The stable part already reflects this bump; only advance the
            # pre-release sequence.
            new = bump_pre_release_sequence(current_v)
        elif preserve:
            new = bump_pre_release_sequence(new)
        else:
            new = reset_pre_release_sequence(new, initial)

    if compare(new, current_v) <= 0:
        return current_v
    return new


def enter_pre_release(
    version: VersionLike, identifier: str, initial: int = 0
) -> tuple[semver.Version, semver.Version]:
    """Move a stable version into pre-release.

    Returns:
        ``(new_version, origin)``, e.g. ``("1.2.3-rc.0", "1.2.3")`` for
        ``"1.2.3"`` and identifier ``"rc"``.

    Raises:
        PreReleaseError: If the version is already a pre-release or the
            identifier is not a valid pre-release identifier.
    """
    origin = parse_version(version)
    if is_pre_release(origin):
        raise PreReleaseError(f"Version {origin} is already a pre-release")
    try:
        new = parse_version(f"{origin}-{identifier}.{initial}")
    except InvalidVersion as exc:
        raise PreReleaseError(f"Invalid pre-release identifier {identifier!r}") from exc
    return new, origin


def exit_pre_release(
    version: VersionLike, origin: VersionLike | None = None
) -> semver.Version:
    """Leave pre-release, keeping the stable part reached.

    If the stable part equals ``origin`` no bump happened while in
    pre-release and the package simply returns to its original version.
    Otherwise the stable part reached during pre-release becomes the new
    stable version: ``1.3.0-rc.5`` with origin ``1.2.3`` exits to ``1.3.0``.

    Raises:
        PreReleaseError: If the version is not a pre-release.
    """
    current = parse_version(version)
    if not is_pre_release(current):
        raise PreReleaseError(f"Version {current} is not a pre-release")
    stable = strip_pre_release(current)
    if origin is not None and compare(stable, origin) == 0:
        return parse_version(origin)
    return stable
