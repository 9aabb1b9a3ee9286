"""Dependency handling utilities.

Provides functions for parsing PEP 508 dependency strings and rewriting
pyproject.toml files after a versioning: the package's own version is set
and the specifiers of internal workspace dependencies follow the new
versions of their targets.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

from .config import Options
from .models import VersionUpdate, Workspace
from .toml import get_workspace_sources, load_toml, save_toml
from .versions import is_pre_release


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def _format_requirement(req: Requirement, specifier: str) -> str:
    # Sort extras alphabetically for consistent output
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}{specifier}{marker}"


def pin_dep(dep_str: str, version: str) -> str:
    """Pin a PEP 508 dependency to an exact version.

    Preserves any extras and environment marker specified in the original
    dependency string, but replaces the version specifier with an exact pin.

    Examples:
        pin_dep("requests>=2.0", "2.31.0") → "requests==2.31.0"
        pin_dep("pkg[extra1,extra2]~=1.0", "1.5.0") → "pkg[extra1,extra2]==1.5.0"
    """
    return _format_requirement(Requirement(dep_str), f"=={version}")


def _names_pre_release(version: str) -> bool:
    try:
        return Version(version).is_prerelease
    except InvalidVersion:
        return is_pre_release(version)


def rewrite_dependency(
    dep_str: str,
    version: str,
    options: Options | None = None,
) -> tuple[str, str | None]:
    """Point an internal dependency's specifier at a sibling's new version.

    Rules:
    - Unconstrained requirements and URL requirements are left alone.
    - A single-clause specifier keeps its operator: ``>=1.0.0`` → ``>=1.1.0``.
    - A specifier with several clauses is left alone unless
      ``override_complex_range``, in which case it is pinned with ``==``.
    - A pre-release sibling is pinned with ``==`` only where the specifier
      already names a pre-release, or with ``update_stable_to_pre_release``.
    - A specifier naming a pre-release of a sibling that is stable again is
      left alone, with a warning unless ``ignore_outdated_pre_release``.

    Args:
        dep_str: The PEP 508 dependency string.
        version: The sibling's new version.
        options: Rewriting options; defaults when omitted.

    Returns:
        ``(new_dep_str, warning)``. ``new_dep_str`` equals ``dep_str`` when
        nothing is rewritten.
    """
    options = options or Options()
    req = Requirement(dep_str)
    clauses = list(req.specifier)
    if req.url or not clauses:
        return dep_str, None

    simple = len(clauses) == 1
    if simple:
        try:
            Version(clauses[0].version)
        except InvalidVersion:
            # Wildcards like ==1.* are not a version we can move.
            simple = False
    names_pre_release = simple and _names_pre_release(clauses[0].version)

    if is_pre_release(version):
        if names_pre_release or options.update_stable_to_pre_release:
            return pin_dep(dep_str, version), None
        return dep_str, None

    if names_pre_release:
        warning = None
        if not options.ignore_outdated_pre_release:
            warning = (
                f'Dependency "{dep_str}" requires a pre-release, even though '
                f"the newer stable version {version} is available."
            )
        return dep_str, warning

    if not simple:
        if options.override_complex_range:
            return pin_dep(dep_str, version), None
        return dep_str, None

    return _format_requirement(req, f"{clauses[0].operator}{version}"), None


def _rewrite_dep_list(
    deps: list,
    versions: dict[str, str],
    options: Options,
    workspace_sources: set[str],
) -> tuple[bool, list[str]]:
    """Rewrite internal dependencies in a list, modifying in place.

    Returns:
        Whether anything changed, and the warnings produced.
    """
    changed = False
    warnings: list[str] = []
    for i, dep_str in enumerate(deps):
        if not isinstance(dep_str, str):
            continue
        try:
            name = dep_canonical_name(str(dep_str))
        except InvalidRequirement:
            continue
        if name not in versions:
            continue
        if options.only_workspace_protocol and name not in workspace_sources:
            continue
        new_dep, warning = rewrite_dependency(str(dep_str), versions[name], options)
        if warning:
            warnings.append(warning)
        if new_dep != str(dep_str):
            deps[i] = new_dep
            changed = True
    return changed, warnings


def rewrite_pyproject(
    pyproject_path: Path,
    new_version: str | None,
    internal_dep_versions: dict[str, str],
    options: Options | None = None,
    workspace_sources: set[str] | None = None,
) -> list[str]:
    """Update a package's version and the specifiers of its internal deps.

    Internal deps are rewritten in all locations:
    - [project].dependencies
    - [project].optional-dependencies.*
    - [dependency-groups].*

    Uses tomlkit to preserve formatting and comments. The file is only
    written when something changed.

    Args:
        pyproject_path: Path to the pyproject.toml file.
        new_version: New version string to set, or None to keep it.
        internal_dep_versions: Map of package name → new version for
            internal deps whose version changed.
        options: Rewriting options.
        workspace_sources: Names declared as uv workspace sources.

    Returns:
        Warnings to report, prefixed with the file path.
    """
    options = options or Options()
    doc = load_toml(pyproject_path)
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc["project"])
    sources = get_workspace_sources(doc) | (workspace_sources or set())

    changed = False
    if new_version is not None and str(project.get("version")) != new_version:
        project["version"] = new_version
        changed = True

    dep_lists: list[list] = []
    deps = project.get("dependencies")
    if isinstance(deps, list):
        dep_lists.append(deps)
    opt_deps = project.get("optional-dependencies")
    if isinstance(opt_deps, dict):
        dep_lists.extend(g for g in opt_deps.values() if isinstance(g, list))
    dep_groups = doc.get("dependency-groups")
    if isinstance(dep_groups, dict):
        dep_lists.extend(g for g in dep_groups.values() if isinstance(g, list))

    warnings: list[str] = []
    if internal_dep_versions:
        for dep_list in dep_lists:
            list_changed, list_warnings = _rewrite_dep_list(
                dep_list, internal_dep_versions, options, sources
            )
            changed = changed or list_changed
            warnings.extend(f"In '{pyproject_path}': {w}" for w in list_warnings)

    if changed:
        save_toml(pyproject_path, doc)
    return warnings


def update_manifests(
    workspace: Workspace,
    updates: Sequence[VersionUpdate],
    options: Options | None = None,
) -> list[str]:
    """Write a plan's updates to every package's pyproject.toml.

    Returns:
        Warnings produced while rewriting dependency specifiers.
    """
    root = Path(workspace.path)
    versions = {u.name: u.new_version for u in updates if u.changed}
    root_pyproject = root / "pyproject.toml"
    root_sources = (
        get_workspace_sources(load_toml(root_pyproject))
        if root_pyproject.exists()
        else set()
    )

    warnings: list[str] = []
    for pkg in workspace.packages:
        warnings.extend(
            rewrite_pyproject(
                root / pkg.path / "pyproject.toml",
                versions.get(pkg.name),
                {n: v for n, v in versions.items() if n != pkg.name},
                options,
                root_sources,
            )
        )
    return warnings
