"""Workspace discovery.

Reads the root pyproject.toml and builds the ``Workspace`` snapshot the
versioning engine works on. A uv workspace lists its members under
``[tool.uv.workspace].members``; a repository without that table is a
single package at the root.
"""

from __future__ import annotations

import glob
from pathlib import Path

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from .config import Options
from .errors import WorkspaceError
from .models import Dependency, Package, Workspace
from .patterns import match_package_patterns
from .toml import (
    get_all_dependency_strings,
    get_peer_dependencies,
    get_project_name,
    get_project_version,
    get_workspace_exclude_globs,
    get_workspace_member_globs,
    is_private,
    load_toml,
)


def read_pyproject(path: Path) -> tomlkit.TOMLDocument:
    try:
        return load_toml(path)
    except TOMLKitError as exc:
        raise WorkspaceError(f"Could not parse {path}: {exc}") from exc


def find_member_dirs(root: Path, root_doc: tomlkit.TOMLDocument) -> list[Path]:
    """Directories of all workspace members, in a stable order.

    The root itself is a member when it declares a ``[project]``. Member
    globs are expanded relative to the root; directories matching an
    exclude glob or lacking a pyproject.toml are skipped.
    """
    member_dirs: list[Path] = []
    if "project" in root_doc:
        member_dirs.append(root)

    excluded: set[Path] = set()
    for pattern in get_workspace_exclude_globs(root_doc):
        excluded.update(Path(m).resolve() for m in glob.glob(str(root / pattern)))

    # Expand globs to find all package directories
    for pattern in get_workspace_member_globs(root_doc):
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match).resolve()
            if p in excluded or p in member_dirs:
                continue
            if (p / "pyproject.toml").exists():
                member_dirs.append(p)
    return member_dirs


def collect_dependencies(doc: tomlkit.TOMLDocument) -> list[Dependency]:
    """Dependencies declared by a pyproject.toml, first declaration wins.

    Names listed under ``[tool.convbump].peer-dependencies`` are marked as
    peers; a peer that is not otherwise declared is added unconstrained.

    Raises:
        WorkspaceError: If a dependency string is not valid PEP 508.
    """
    peers = get_peer_dependencies(doc)
    deps: dict[str, Dependency] = {}
    for dep_str in get_all_dependency_strings(doc):
        try:
            req = Requirement(dep_str)
        except InvalidRequirement as exc:
            raise WorkspaceError(f"Invalid dependency {dep_str!r}: {exc}") from exc
        name = canonicalize_name(req.name)
        if name in deps:
            continue
        deps[name] = Dependency(
            name=name, version_range=str(req.specifier), is_peer=name in peers
        )
    for name in sorted(peers - deps.keys()):
        deps[name] = Dependency(name=name, is_peer=True)
    return list(deps.values())


def filter_packages(packages: list[Package], options: Options) -> list[Package]:
    """Apply the ``include`` / ``exclude`` package-name patterns."""
    names = [pkg.name for pkg in packages]
    keep = set(names)
    if options.include:
        keep = set(match_package_patterns(options.include, names))
    keep -= set(match_package_patterns(options.exclude, names))
    return [pkg for pkg in packages if pkg.name in keep]


def discover_workspace(root: Path, options: Options | None = None) -> Workspace:
    """Scan the workspace and discover all packages to version.

    Args:
        root: The workspace root, holding the root pyproject.toml.
        options: Discovery options (``include``, ``exclude``,
            ``include_private``).

    Returns:
        The workspace, packages in discovery order.

    Raises:
        WorkspaceError: If there is no pyproject.toml or one cannot be
            parsed, if no package is found, if a package has a version that
            is not semver, or if two packages share a name.
    """
    options = options or Options()
    root = root.resolve()
    root_pyproject = root / "pyproject.toml"
    if not root_pyproject.exists():
        raise WorkspaceError(f"No pyproject.toml found in {root}")

    member_dirs = find_member_dirs(root, read_pyproject(root_pyproject))
    if not member_dirs:
        raise WorkspaceError("No packages found matching workspace members")

    packages: list[Package] = []
    seen: dict[str, Path] = {}
    for d in member_dirs:
        doc = read_pyproject(d / "pyproject.toml")
        if is_private(doc) and not options.include_private:
            continue
        name = get_project_name(doc, d.name)
        if name in seen:
            raise WorkspaceError(
                f"Package name {name!r} is used by both {seen[name]} and {d}"
            )
        seen[name] = d
        version = get_project_version(doc)
        try:
            packages.append(
                Package(
                    name=name,
                    version=version,
                    path=d.relative_to(root).as_posix(),
                    dependencies=collect_dependencies(doc),
                )
            )
        except ValidationError as exc:
            raise WorkspaceError(
                f"{d / 'pyproject.toml'}: version {version!r} is not valid semver"
            ) from exc

    return Workspace(path=str(root), packages=filter_packages(packages, options))
