"""Command orchestration: load → plan → confirm → validate → write.

Each ``run_*`` function implements one CLI command. They load the config
file and discover the workspace, call into the pure versioning engine, print
progress and warnings, and persist the results unless in dry mode:

- ``run_init``: create the config file with a base commit
- ``run_status``: show packages, promotions and the next versioning
- ``run_version``: version the workspace
- ``run_promote``: record promotions for the next versioning
- ``run_pre_enter`` / ``run_pre_exit``: move packages in and out of
  pre-release
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from .bump import Bump
from .config import Config, init_config, load_config, save_state
from .deps import rewrite_pyproject, update_manifests
from .errors import ConvbumpError, GitError, WorkspaceError
from .history import get_commit_history, rev_parse
from .models import Commit, Package, Promotion, VersioningPlan, Workspace
from .patterns import match_package_patterns
from .prerelease import enter_pre_release, exit_pre_release
from .shell import step, warn
from .versioning import (
    apply_updates,
    create_versioning_plan,
    render_versioning,
    validate_versions,
)
from .versions import parse_version
from .workspace import discover_workspace


def load_project(root: Path, config_path: Path) -> tuple[Config, Workspace]:
    """Load the config file and discover the workspace it configures."""
    step("Discovering workspace packages")
    config = load_config(config_path)
    if not config.exists:
        warn(f"No {config_path.name} found; using default options.")
    workspace = discover_workspace(root, config.options)

    for pkg in workspace.packages:
        internal = [d.name for d in pkg.dependencies if workspace.get(d.name)]
        deps = f" → [{', '.join(internal)}]" if internal else ""
        print(f"  {pkg.name} {pkg.version} ({pkg.path}){deps}")
    return config, workspace


def read_history(root: Path, base: str | None) -> list[Commit]:
    """Read the commits since ``base``, newest first."""
    step("Reading commit history")
    if not base:
        warn("No base commit recorded; reading the whole history.")
    commits = get_commit_history(root, base)
    since = base[:7] if base else "the first commit"
    print(f"  {len(commits)} commit(s) since {since}")
    return commits


def select_packages(
    workspace: Workspace, patterns: Sequence[str], available: Sequence[Package]
) -> list[Package]:
    """Resolve package-name patterns against the workspace.

    ``*`` selects every available package. Other patterns may name any
    package, so callers can report why it was skipped.

    Raises:
        WorkspaceError: If nothing is selected.
    """
    if "*" in patterns:
        selected = list(available)
    else:
        names = set(match_package_patterns(patterns, workspace.names))
        selected = [pkg for pkg in workspace.packages if pkg.name in names]
    if not selected:
        raise WorkspaceError(
            "No packages match:\n" + "\n".join(f"  - {p}" for p in patterns)
        )
    return selected


def package_label(pkg: Package) -> str:
    if pkg.is_pre_release:
        return "(pre-release)"
    if parse_version(pkg.version).major == 0:
        return "(0.x)"
    return "(stable)"


def _table(rows: list[list[str]]) -> str:
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    return "\n".join(
        "  " + " ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip()
        for row in rows
    )


def _package_table(packages: list[Package]) -> str:
    return _table([[p.name, "@", p.version, package_label(p)] for p in packages])


def run_init(root: Path, config_path: Path, base: str | None = None) -> None:
    """Create the config file, recording a base commit.

    The base defaults to ``HEAD~1`` so the first versioning only considers
    the latest commit.
    """
    step(f"Creating {config_path.name}")
    resolved = rev_parse(root, base or "HEAD~1")
    if base and resolved is None:
        raise GitError(f"Unknown revision {base!r}")
    if resolved is None:
        warn("The repository has fewer than two commits; no base recorded.")

    init_config(config_path, resolved)
    suffix = f" (base {resolved[:7]})" if resolved else ""
    print(f"  ✓ Wrote {config_path.name}{suffix}")


def run_status(root: Path, config_path: Path) -> VersioningPlan:
    """Print packages, pending promotions and the next versioning."""
    config, workspace = load_project(root, config_path)
    history = read_history(root, config.state.base)
    plan = create_versioning_plan(workspace, history, config.options, config.state)

    step("Packages")
    print(_package_table(workspace.packages))

    step("Promotions")
    promotions = config.state.promotions
    if promotions:
        print(
            _table(
                [
                    [name, "@", str(p.bump) + (" (override)" if p.override else "")]
                    for name, p in promotions.items()
                ]
            )
        )
    else:
        print("  (none)")

    step("Next versioning")
    for warning in plan.warnings:
        warn(warning)
    changed = [u for u in plan.updates if u.changed]
    print(render_versioning(changed))

    if changed:
        step("After versioning")
        print(_package_table(apply_updates(workspace, changed).packages))
    return plan


def run_version(
    root: Path,
    config_path: Path,
    *,
    dry: bool = False,
    confirm: Callable[[], bool] | None = None,
) -> VersioningPlan | None:
    """Version the workspace.

    Args:
        root: Workspace root.
        config_path: Path of the config file.
        dry: Compute and validate the plan without writing anything.
        confirm: Asked after the plan is shown; returning False aborts.

    Returns:
        The applied (or, in dry mode, computed) plan. None when aborted.

    Raises:
        MajorBumpPrevented: If the plan violates ``prevent-major-bump``.
    """
    config, workspace = load_project(root, config_path)
    history = read_history(root, config.state.base)

    step("Computing next versions")
    plan = create_versioning_plan(workspace, history, config.options, config.state)
    for warning in plan.warnings:
        warn(warning)
    print(render_versioning(plan.updates))

    validate_versions(plan, config.options)

    if not dry and confirm is not None and not confirm():
        print("\nAborted.")
        return None

    if dry:
        print("\nDry run: nothing written.")
        return plan

    step("Writing manifests")
    for warning in update_manifests(workspace, plan.updates, config.options):
        warn(warning)
    save_state(config.path, plan.state)
    changed = sum(1 for u in plan.updates if u.changed)
    print(f"  {changed} package(s) versioned")
    return plan


def run_promote(
    root: Path,
    config_path: Path,
    patterns: Sequence[str],
    bump: Bump | str,
    *,
    override: bool = False,
    dry: bool = False,
) -> list[str]:
    """Record a promotion for the next versioning.

    A package that already has an equal or greater promotion is reported as
    a conflict and left as is, unless ``override``.

    Returns:
        Names of the packages whose promotion was updated.
    """
    bump = Bump.parse(bump)
    if bump is Bump.NONE:
        raise ConvbumpError("Provide a bump of patch, minor or major.")

    config, workspace = load_project(root, config_path)
    packages = select_packages(workspace, patterns, workspace.packages)
    state = config.state.model_copy(deep=True)

    step(f"Promoting to {bump}")
    updated: list[str] = []
    conflicts: list[str] = []
    for pkg in packages:
        current = state.promotions.get(pkg.name)
        if override or bump > (current.bump if current else Bump.NONE):
            state.promotions[pkg.name] = Promotion(bump=bump, override=override)
            updated.append(pkg.name)
        else:
            conflicts.append(pkg.name)

    if conflicts:
        warn(
            "The following packages already have an equal or greater promotion:\n"
            + "\n".join(f"  - {name}" for name in conflicts)
        )
    if updated:
        print("\n".join(f"  {name}: {bump}" for name in updated))
    else:
        print("  No changes")

    if not dry and updated:
        save_state(config.path, state)
    return updated


def _write_version(workspace: Workspace, pkg: Package, version: str) -> None:
    rewrite_pyproject(Path(workspace.path) / pkg.path / "pyproject.toml", version, {})


def run_pre_enter(
    root: Path,
    config_path: Path,
    patterns: Sequence[str],
    identifier: str,
    *,
    dry: bool = False,
) -> list[str]:
    """Move stable packages into pre-release, recording their origins.

    Returns:
        Names of the packages that entered pre-release.
    """
    config, workspace = load_project(root, config_path)
    available = [pkg for pkg in workspace.packages if not pkg.is_pre_release]
    packages = select_packages(workspace, patterns, available)
    state = config.state.model_copy(deep=True)

    step(f"Entering pre-release '{identifier}'")
    entered: list[str] = []
    for pkg in packages:
        if pkg.is_pre_release:
            warn(f"{pkg.name} is already in pre-release ({pkg.version}); skipped.")
            continue
        new_version, origin = enter_pre_release(
            pkg.version, identifier, config.options.initial_pre_release
        )
        state.pre_releases[pkg.name] = str(origin)
        print(f"  {pkg.name}: {pkg.version} → {new_version}")
        if not dry:
            _write_version(workspace, pkg, str(new_version))
        entered.append(pkg.name)

    if not dry and entered:
        save_state(config.path, state)
    return entered


def run_pre_exit(
    root: Path,
    config_path: Path,
    patterns: Sequence[str],
    *,
    dry: bool = False,
) -> list[str]:
    """Move packages out of pre-release, clearing their records.

    Returns:
        Names of the packages that exited pre-release.
    """
    config, workspace = load_project(root, config_path)
    available = [pkg for pkg in workspace.packages if pkg.is_pre_release]
    packages = select_packages(workspace, patterns, available)
    state = config.state.model_copy(deep=True)

    step("Exiting pre-release")
    exited: list[str] = []
    for pkg in packages:
        if not pkg.is_pre_release:
            warn(f"{pkg.name} is not in pre-release ({pkg.version}); skipped.")
            continue
        origin = state.pre_releases.pop(pkg.name, None)
        new_version = exit_pre_release(pkg.version, origin)
        print(f"  {pkg.name}: {pkg.version} → {new_version}")
        if not dry:
            _write_version(workspace, pkg, str(new_version))
        exited.append(pkg.name)

    if not dry and exited:
        save_state(config.path, state)
    return exited
