"""Versioning plan: commit history + workspace → version updates.

The plan is computed in one pass without touching the filesystem:

1. Every pre-release package must have a recorded origin.
2. Each package gets the greatest bump implied by the commits affecting it,
   raised by a pending promotion.
3. Bumps are propagated through dependencies and linked/fixed groups.
4. Each bump is turned into a concrete version, honouring pre-releases and
   the 0.x major guard, and group members are lifted onto a shared version.

The caller persists the resulting manifests and ``plan.state``; nothing is
written here, so a failed validation leaves no partial changes behind.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import semver

from .attribution import CommitAttributor, invalid_commits, render_commit
from .bump import Bump, BumpTable
from .config import Options
from .errors import MajorBumpPrevented
from .graph import Propagator, VersionProjector
from .models import (
    Commit,
    Package,
    Promotion,
    StickyState,
    VersioningPlan,
    VersionUpdate,
    Workspace,
)
from .prerelease import base_version, check_pre_release_origins, next_version
from .versions import compare, parse_version


def apply_promotion(inferred: Bump, promotion: Promotion | None) -> Bump:
    """Combine an inferred bump with a pending promotion.

    The promotion wins only when it is greater, unless it is an override.
    """
    if promotion is None:
        return inferred
    if promotion.override:
        return promotion.bump
    return max(inferred, promotion.bump)


class PlanProjector(VersionProjector):
    """Projects versions exactly as the plan will compute them."""

    def __init__(
        self, options: Options, state: StickyState, promoted: Mapping[str, Bump]
    ) -> None:
        self.options = options
        self.state = state
        self.promoted = promoted

    def _origin(self, package: Package) -> str | None:
        if package.is_pre_release:
            return self.state.pre_releases.get(package.name)
        return None

    def effective_bump(self, package: Package, bump: Bump) -> Bump:
        """Apply the 0.x guard: major bumps of 0.x packages become minor.

        A major promotion or ``allow_first_major`` lifts the guard.
        """
        skip_major = (
            parse_version(package.version).major == 0
            and self.promoted.get(package.name) is not Bump.MAJOR
            and not self.options.allow_first_major
        )
        if skip_major and bump is Bump.MAJOR:
            return Bump.MINOR
        return bump

    def base(self, package: Package) -> semver.Version:
        return base_version(package.version, self._origin(package))

    def project(self, package: Package, bump: Bump) -> semver.Version:
        return next_version(
            package.version,
            self.effective_bump(package, bump),
            origin=self._origin(package),
            initial=self.options.initial_pre_release,
            preserve=self.options.preserve_pre_release,
        )


def _invalid_commit_warning(commits: Sequence[Commit]) -> str:
    lines = "\n".join(f"  - {render_commit(c)}" for c in commits)
    return (
        f"Found {len(commits)} commit(s) without a conventional commit summary:\n"
        + lines
    )


def _next_state(
    workspace: Workspace, history: Sequence[Commit], state: StickyState
) -> StickyState:
    """Sticky state after applying a plan.

    Promotions of versioned packages are consumed, records of packages that
    are no longer pre-releases are cleared, and the base moves to the newest
    commit.
    """
    new_state = state.model_copy(deep=True)
    for pkg in workspace.packages:
        new_state.promotions.pop(pkg.name, None)
        if not pkg.is_pre_release:
            new_state.pre_releases.pop(pkg.name, None)
    if history:
        new_state.base = history[0].hash
    return new_state


def create_versioning_plan(
    workspace: Workspace,
    history: Sequence[Commit],
    options: Options | None = None,
    state: StickyState | None = None,
) -> VersioningPlan:
    """Compute the version updates for a workspace.

    Args:
        workspace: Workspace snapshot. Not modified.
        history: Commits since the base, newest first.
        options: Versioning options; defaults when omitted.
        state: Sticky state (promotions, pre-release records). Not modified;
            the state to persist is returned as ``plan.state``.

    Returns:
        The plan. ``plan.updates`` follows workspace package order.

    Raises:
        MissingPreReleaseOrigin: If a pre-release package has no origin.
        PropagationError: If bump propagation does not converge.
    """
    options = options or Options()
    state = state or StickyState()

    check_pre_release_origins(workspace, state)

    warnings: list[str] = []
    invalid = invalid_commits(history)
    if invalid and not options.ignore_invalid_commit:
        warnings.append(_invalid_commit_warning(invalid))

    attributor = CommitAttributor(
        workspace,
        options.inputs,
        BumpTable(options.bumps),
        exclusive_nested_ownership=options.exclusive_nested_ownership,
    )

    bumps: dict[str, Bump] = {}
    promoted: dict[str, Bump] = {}
    for pkg in workspace.packages:
        promotion = state.promotions.get(pkg.name)
        bumps[pkg.name] = apply_promotion(attributor.infer(pkg, history), promotion)
        if promotion is not None and promotion.bump is not Bump.NONE:
            promoted[pkg.name] = promotion.bump

    for commit_type in attributor.unknown_types:
        warnings.append(
            f"Commit type '{commit_type}' is not recognized and causes no bump. "
            "Map it under [options.bumps] to change this."
        )

    projector = PlanProjector(options, state, promoted)
    propagator = Propagator(
        workspace, linked=options.linked, fixed=options.fixed, projector=projector
    )
    warnings.extend(propagator.warnings)
    propagation = propagator.run(bumps)

    effective = {
        pkg.name: projector.effective_bump(pkg, propagation.bumps[pkg.name])
        for pkg in workspace.packages
    }
    new_versions = {
        pkg.name: projector.project(pkg, propagation.bumps[pkg.name])
        for pkg in workspace.packages
    }
    propagator.align_versions(
        new_versions,
        effective,
        initial=options.initial_pre_release,
        preserve=options.preserve_pre_release,
    )

    updates: list[VersionUpdate] = []
    for pkg in workspace.packages:
        new_version = new_versions[pkg.name]
        if compare(new_version, pkg.version) > 0:
            updates.append(
                VersionUpdate(
                    name=pkg.name,
                    old_version=pkg.version,
                    new_version=str(new_version),
                    bump=effective[pkg.name],
                )
            )
        elif options.include_unchanged:
            updates.append(
                VersionUpdate(
                    name=pkg.name, old_version=pkg.version, new_version=pkg.version
                )
            )

    return VersioningPlan(
        updates=updates,
        warnings=warnings,
        promoted=promoted,
        state=_next_state(workspace, history, state),
        iterations=propagation.iterations,
    )


def validate_versions(plan: VersioningPlan, options: Options | None = None) -> None:
    """Check a plan against policy before it is applied.

    Raises:
        MajorBumpPrevented: If ``prevent_major_bump`` is set and a package
            gets a major bump it was not explicitly promoted to.
    """
    options = options or Options()
    if not options.prevent_major_bump:
        return
    offending = [
        update.name
        for update in plan.updates
        if update.bump is Bump.MAJOR
        and plan.promoted.get(update.name) is not Bump.MAJOR
    ]
    if offending:
        raise MajorBumpPrevented(offending)


def apply_updates(workspace: Workspace, updates: Sequence[VersionUpdate]) -> Workspace:
    """Return a copy of the workspace with the planned versions applied."""
    new_versions = {u.name: u.new_version for u in updates}
    return workspace.model_copy(
        update={
            "packages": [
                pkg.model_copy(
                    update={"version": new_versions.get(pkg.name, pkg.version)}
                )
                for pkg in workspace.packages
            ]
        }
    )


def render_versioning(updates: Sequence[VersionUpdate]) -> str:
    """Render updates as an aligned ``name: old → new`` table."""
    if not updates:
        return "  (no updates)"
    name_width = max(len(u.name) for u in updates) + 1
    old_width = max(len(u.old_version) for u in updates)
    return "\n".join(
        f"  {(u.name + ':').ljust(name_width)} {u.old_version.rjust(old_width)} → "
        f"{u.new_version} ({u.bump})"
        for u in updates
    )
