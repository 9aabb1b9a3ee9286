"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal>=0.5.0"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal~=0.1.0"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "My_Package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]
classifiers = ["Private :: Do Not Upload"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0", { include-group = "lint" }]
lint = ["ruff"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
exclude = ["packages/legacy"]

[tool.uv.sources]
pkg-a = { workspace = true }
requests = { git = "https://github.com/psf/requests" }

[tool.convbump]
peer-dependencies = ["Pkg_B"]
"""
    return tomlkit.parse(content)


def write_package(
    root: Path,
    path: str,
    name: str,
    version: str = "1.0.0",
    dependencies: list[str] | None = None,
    extra: str = "",
) -> Path:
    """Write a package's pyproject.toml under ``root / path``."""
    pkg_dir = root / path
    pkg_dir.mkdir(parents=True, exist_ok=True)
    deps = ", ".join(f'"{d}"' for d in dependencies or [])
    (pkg_dir / "pyproject.toml").write_text(
        f'[project]\nname = "{name}"\nversion = "{version}"\n'
        f"dependencies = [{deps}]\n{extra}"
    )
    return pkg_dir


@pytest.fixture
def tmp_workspace(tmp_path: Path) -> Path:
    """Create a uv workspace with three packages.

    pkg-b depends on pkg-a; pkg-c depends on pkg-b and on requests.
    """
    (tmp_path / "pyproject.toml").write_text(
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n\n'
        "[tool.uv.sources]\npkg-a = { workspace = true }\n"
    )
    write_package(tmp_path, "packages/pkg-a", "pkg-a", "1.2.3")
    write_package(tmp_path, "packages/pkg-b", "pkg-b", "1.2.3", ["pkg-a>=1.2.3"])
    write_package(
        tmp_path,
        "packages/pkg-c",
        "pkg-c",
        "0.4.0",
        ["pkg-b>=1.0.0,<2", "requests>=2.0"],
    )
    return tmp_path


@pytest.fixture
def package_writer():
    """Expose write_package to tests that build their own layout."""
    return write_package
