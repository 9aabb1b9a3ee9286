"""Bump propagation through the workspace dependency graph.

Bumps only ever increase and are bounded by ``Bump.MAJOR``, so repeatedly
applying the rules below reaches a fixed point even when the dependency
graph has cycles:

- Any bump of a dependency causes at least a patch bump of its dependents.
- A minor or major bump of a peer dependency causes a major bump of its
  dependents.
- Members of a linked group end up on the same major.minor, members of a
  fixed group on the same major.minor.patch. Bumps get members as close as
  one increment allows; ``Propagator.align_versions`` closes what remains
  once concrete versions are known.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import Enum

import semver
from pydantic import BaseModel

from .bump import Bump
from .errors import PropagationError
from .models import Package, Workspace
from .patterns import match_package_patterns
from .versions import (
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


class GroupKind(str, Enum):
    LINKED = "linked"
    FIXED = "fixed"


class VersionProjector:
    """Answers "what version would this package get with this bump?".

    The default projection increments the current version. The versioning
    plan supplies a projector that also accounts for pre-releases and the
    0.x major guard, so group alignment agrees with the final versions.
    """

    def base(self, package: Package) -> semver.Version:
        """Version that increments are computed from."""
        return strip_pre_release(package.version)

    def project(self, package: Package, bump: Bump) -> semver.Version:
        if bump is Bump.NONE:
            return parse_version(package.version)
        return increment(self.base(package), bump)


class Propagation(BaseModel):
    """Result of propagating bumps to a fixed point.

    Attributes:
        bumps: Final bump per package name.
        iterations: Number of passes that changed at least one bump.
    """

    bumps: dict[str, Bump]
    iterations: int


def greatest(versions: Sequence[semver.Version]) -> semver.Version | None:
    best: semver.Version | None = None
    for v in versions:
        if best is None or v.compare(best) > 0:
            best = v
    return best


def _key(version: semver.Version, kind: GroupKind) -> tuple[int, ...]:
    if kind is GroupKind.FIXED:
        return (version.major, version.minor, version.patch)
    return (version.major, version.minor)


def needed_bump(
    ceiling: semver.Version,
    projected: semver.Version,
    base: semver.Version,
    kind: GroupKind,
) -> Bump:
    """Smallest bump that lifts a group member towards ``ceiling``.

    Returns ``Bump.NONE`` when the member's projected version already
    reaches the ceiling.
    """
    if _key(projected, kind) >= _key(ceiling, kind):
        return Bump.NONE
    if ceiling.major > base.major:
        return Bump.MAJOR
    if ceiling.minor > base.minor:
        return Bump.MINOR
    if kind is GroupKind.FIXED and ceiling.patch > base.patch:
        return Bump.PATCH
    return Bump.NONE


def group_floor(ceiling: semver.Version, kind: GroupKind) -> semver.Version:
    """Lowest stable version that shares the group key with ``ceiling``."""
    if kind is GroupKind.FIXED:
        return semver.Version(ceiling.major, ceiling.minor, ceiling.patch)
    return semver.Version(ceiling.major, ceiling.minor, 0)


def lift(version: semver.Version, floor: semver.Version) -> semver.Version:
    """Raise the stable part of ``version`` to ``floor``, keeping its pre-release."""
    if compare_main(version, floor) >= 0:
        return version
    return floor.replace(prerelease=version.prerelease)


class Propagator:
    """Fixed-point bump propagation over an index arena of packages.

    Args:
        workspace: The workspace snapshot.
        linked: Linked groups, each a list of package-name patterns.
        fixed: Fixed groups, each a list of package-name patterns.
        projector: Version projection used for group alignment.
    """

    def __init__(
        self,
        workspace: Workspace,
        *,
        linked: Sequence[Sequence[str]] = (),
        fixed: Sequence[Sequence[str]] = (),
        projector: VersionProjector | None = None,
    ) -> None:
        self.packages = list(workspace.packages)
        self.projector = projector or VersionProjector()
        self.warnings: list[str] = []

        index = {pkg.name: i for i, pkg in enumerate(self.packages)}
        # (ours, theirs, is_peer) for every internal dependency edge
        self.edges: list[tuple[int, int, bool]] = [
            (i, index[dep.name], dep.is_peer)
            for i, pkg in enumerate(self.packages)
            for dep in pkg.dependencies
            if dep.name in index and dep.name != pkg.name
        ]

        self.groups: list[tuple[GroupKind, list[int]]] = []
        names = [pkg.name for pkg in self.packages]
        for kind, relations in ((GroupKind.LINKED, linked), (GroupKind.FIXED, fixed)):
            for patterns in relations:
                members = [index[n] for n in match_package_patterns(patterns, names)]
                if not members:
                    self.warnings.append(
                        f'The following patterns in the "{kind.value}" option match '
                        "no packages:\n" + "\n".join(f"  - {p}" for p in patterns)
                    )
                    continue
                self.groups.append((kind, members))

    def _cascade(self, arena: list[Bump]) -> bool:
        changed = False
        for ours, theirs, is_peer in self.edges:
            target = Bump.NONE
            if arena[theirs] >= Bump.PATCH:
                target = Bump.PATCH
            if is_peer and arena[theirs] >= Bump.MINOR:
                target = Bump.MAJOR
            if target > arena[ours]:
                arena[ours] = target
                changed = True
        return changed

    def _align(self, arena: list[Bump], kind: GroupKind, members: list[int]) -> bool:
        pkgs = self.packages
        pre = {i: is_pre_release(pkgs[i].version) for i in members}
        projected = {i: self.projector.project(pkgs[i], arena[i]) for i in members}
        stable_ceiling = greatest([projected[i] for i in members if not pre[i]])
        pre_ceiling = greatest([projected[i] for i in members if pre[i]])

        changed = False
        for i in members:
            # Stable members set the minimum for every member, pre-release
            # members only for other pre-release members.
            ceilings = [stable_ceiling, pre_ceiling] if pre[i] else [stable_ceiling]
            base = self.projector.base(pkgs[i])
            for ceiling in ceilings:
                if ceiling is None:
                    continue
                needed = needed_bump(ceiling, projected[i], base, kind)
                if needed > arena[i]:
                    arena[i] = needed
                    projected[i] = self.projector.project(pkgs[i], needed)
                    changed = True
        return changed

    def run(self, bumps: Mapping[str, Bump]) -> Propagation:
        """Propagate ``bumps`` until no rule changes any package.

        Raises:
            PropagationError: If no fixed point is reached within
                ``3 * len(packages) + 1`` passes, which would mean a rule
                lowered a bump.
        """
        arena = [bumps.get(pkg.name, Bump.NONE) for pkg in self.packages]
        # Each changing pass raises at least one package by one level.
        height = len(Bump) - 1
        limit = height * len(self.packages) + 1

        for iteration in range(limit):
            changed = self._cascade(arena)
            for kind, members in self.groups:
                if self._align(arena, kind, members):
                    changed = True
            if not changed:
                return Propagation(
                    bumps={pkg.name: arena[i] for i, pkg in enumerate(self.packages)},
                    iterations=iteration,
                )

        raise PropagationError(
            f"Bump propagation did not converge after {limit} passes"
        )

    def align_versions(
        self,
        versions: dict[str, semver.Version],
        bumps: Mapping[str, Bump] | None = None,
        *,
        initial: int = 0,
        preserve: bool = False,
    ) -> None:
        """Lift released group members onto their group's version, in place.

        Bumps alone cannot always close a gap: ``1.2.0`` and ``1.2.4`` in a
        fixed group differ by more than one patch. Members whose version
        changed are raised to the group floor; unchanged members stay. When
        ``bumps`` is given, only members with a major bump may change major.
        Versions only increase and never pass the greatest member, so the
        loop ends.

        A lifted pre-release restarts its sequence at ``initial`` from the
        suffix of the member's current version, or keeps counting from it
        when ``preserve`` is set, as ``next_version`` does.
        """
        before = dict(versions)
        changed = True
        while changed:
            changed = False
            for kind, members in self.groups:
                pkgs = [self.packages[i] for i in members]
                stable_ceiling = greatest(
                    [versions[p.name] for p in pkgs if not p.is_pre_release]
                )
                pre_ceiling = greatest(
                    [versions[p.name] for p in pkgs if p.is_pre_release]
                )
                for pkg in pkgs:
                    if compare(versions[pkg.name], pkg.version) <= 0:
                        continue
                    ceilings = [stable_ceiling]
                    if pkg.is_pre_release:
                        ceilings.append(pre_ceiling)
                    for ceiling in ceilings:
                        if ceiling is None:
                            continue
                        floor = group_floor(ceiling, kind)
                        if (
                            bumps is not None
                            and floor.major > versions[pkg.name].major
                            and bumps.get(pkg.name) is not Bump.MAJOR
                        ):
                            continue
                        lifted = lift(versions[pkg.name], floor)
                        if lifted != versions[pkg.name]:
                            versions[pkg.name] = lifted
                            changed = True

        for pkg in self.packages:
            lifted = versions[pkg.name]
            if not pkg.is_pre_release:
                continue
            if compare_main(lifted, before[pkg.name]) <= 0:
                continue
            carried = carry_pre_release(lifted, pkg.version)
            if preserve:
                versions[pkg.name] = bump_pre_release_sequence(carried)
            else:
                versions[pkg.name] = reset_pre_release_sequence(carried, initial)


def propagate(
    workspace: Workspace,
    bumps: Mapping[str, Bump],
    *,
    linked: Sequence[Sequence[str]] = (),
    fixed: Sequence[Sequence[str]] = (),
    projector: VersionProjector | None = None,
    on_warning: Callable[[str], None] | None = None,
) -> Propagation:
    """Convenience wrapper around ``Propagator``."""
    propagator = Propagator(workspace, linked=linked, fixed=fixed, projector=projector)
    if on_warning is not None:
        for warning in propagator.warnings:
            on_warning(warning)
    return propagator.run(bumps)
