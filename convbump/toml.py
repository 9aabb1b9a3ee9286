"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying
pyproject.toml and convbump.toml files. This is important for maintaining
readable, diff-friendly files.
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from packaging.utils import canonicalize_name

PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text())


def save_toml(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to use if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def get_all_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect all dependency strings from a pyproject.toml.

    Gathers dependencies from three locations:
    - [project].dependencies (main runtime deps)
    - [project].optional-dependencies.* (extras like [dev], [test])
    - [dependency-groups].* (PEP 735 dependency groups)

    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    Include-group tables in [dependency-groups] are skipped.
    """
    project = doc.get("project", {})
    deps: list[str] = list(project.get("dependencies", []))
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(group_deps)
    for group_deps in doc.get("dependency-groups", {}).values():
        deps.extend(d for d in group_deps if isinstance(d, str))
    return [str(d) for d in deps]


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages. Returns an empty list for a single-package
    repository.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    return [str(m) for m in members or []]


def get_workspace_exclude_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract [tool.uv.workspace].exclude patterns."""
    exclude = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("exclude")
    return [str(e) for e in exclude or []]


def get_workspace_sources(doc: tomlkit.TOMLDocument) -> set[str]:
    """Names declared as ``{ workspace = true }`` in [tool.uv.sources]."""
    sources = doc.get("tool", {}).get("uv", {}).get("sources", {})
    return {
        canonicalize_name(name)
        for name, source in sources.items()
        if isinstance(source, dict) and source.get("workspace") is True
    }


def get_peer_dependencies(doc: tomlkit.TOMLDocument) -> set[str]:
    """Names listed in [tool.convbump].peer-dependencies."""
    peers = doc.get("tool", {}).get("convbump", {}).get("peer-dependencies", [])
    return {canonicalize_name(str(name)) for name in peers}


def is_private(doc: tomlkit.TOMLDocument) -> bool:
    """Whether the project carries the "Private :: Do Not Upload" classifier."""
    classifiers = doc.get("project", {}).get("classifiers", [])
    return any(str(c).strip() == PRIVATE_CLASSIFIER for c in classifiers)
