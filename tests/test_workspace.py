"""Tests for convbump.workspace."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from convbump.config import Options
from convbump.errors import WorkspaceError
from convbump.models import Package
from convbump.workspace import (
    collect_dependencies,
    discover_workspace,
    filter_packages,
    find_member_dirs,
)


class TestDiscoverWorkspace:
    """Tests for discover_workspace()."""

    def test_discovers_members(self, tmp_workspace: Path) -> None:
        ws = discover_workspace(tmp_workspace)
        assert ws.path == str(tmp_workspace.resolve())
        assert ws.names == ["pkg-a", "pkg-b", "pkg-c"]
        assert ws.get("pkg-a").version == "1.2.3"
        assert ws.get("pkg-c").path == "packages/pkg-c"
        assert [d.name for d in ws.get("pkg-c").dependencies] == ["pkg-b", "requests"]
        assert ws.get("pkg-b").dependencies[0].version_range == ">=1.2.3"

    def test_single_package_repository(self, tmp_path: Path, package_writer) -> None:
        package_writer(tmp_path, ".", "solo", "0.1.0")
        ws = discover_workspace(tmp_path)
        assert [(p.name, p.path) for p in ws.packages] == [("solo", ".")]

    def test_root_project_is_a_member(self, tmp_path: Path, package_writer) -> None:
        package_writer(
            tmp_path,
            ".",
            "root-app",
            extra='[tool.uv.workspace]\nmembers = ["libs/*"]\n',
        )
        package_writer(tmp_path, "libs/core", "core")
        ws = discover_workspace(tmp_path)
        assert [(p.name, p.path) for p in ws.packages] == [
            ("root-app", "."),
            ("core", "libs/core"),
        ]

    def test_exclude_globs(self, tmp_workspace: Path) -> None:
        root = tmp_workspace / "pyproject.toml"
        root.write_text(
            "[tool.uv.workspace]\n"
            'members = ["packages/*"]\n'
            'exclude = ["packages/pkg-c"]\n'
        )
        assert discover_workspace(tmp_workspace).names == ["pkg-a", "pkg-b"]

    def test_malformed_root_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.uv.workspace\nmembers = [\n")
        with pytest.raises(WorkspaceError, match="Could not parse .*pyproject.toml"):
            discover_workspace(tmp_path)

    def test_malformed_member_pyproject(self, tmp_workspace: Path) -> None:
        member = tmp_workspace / "packages/pkg-b/pyproject.toml"
        member.write_text('[project]\nname = "pkg-b"\nversion = \n')
        with pytest.raises(WorkspaceError, match="pkg-b"):
            discover_workspace(tmp_workspace)

    def test_skips_directories_without_pyproject(self, tmp_workspace: Path) -> None:
        (tmp_workspace / "packages" / "notes").mkdir()
        assert "notes" not in discover_workspace(tmp_workspace).names

    def test_names_are_canonical(self, tmp_workspace: Path, package_writer) -> None:
        package_writer(tmp_workspace, "packages/odd", "Odd_Name.Pkg")
        assert "odd-name-pkg" in discover_workspace(tmp_workspace).names

    def test_private_packages(self, tmp_workspace: Path, package_writer) -> None:
        package_writer(
            tmp_workspace,
            "packages/secret",
            "secret",
            extra='classifiers = ["Private :: Do Not Upload"]\n',
        )
        assert "secret" not in discover_workspace(tmp_workspace).names
        ws = discover_workspace(tmp_workspace, Options(include_private=True))
        assert "secret" in ws.names

    def test_include_and_exclude(self, tmp_workspace: Path) -> None:
        options = Options(include=["pkg-*"], exclude=["pkg-c"])
        assert discover_workspace(tmp_workspace, options).names == ["pkg-a", "pkg-b"]

    def test_peer_dependencies(self, tmp_workspace: Path, package_writer) -> None:
        package_writer(
            tmp_workspace,
            "packages/plugin",
            "plugin",
            dependencies=["pkg-a>=1.0"],
            extra='[tool.convbump]\npeer-dependencies = ["pkg-a", "pkg-b"]\n',
        )
        plugin = discover_workspace(tmp_workspace).get("plugin")
        deps = {d.name: d for d in plugin.dependencies}
        assert deps["pkg-a"].is_peer
        assert deps["pkg-a"].version_range == ">=1.0"
        assert deps["pkg-b"].is_peer
        assert deps["pkg-b"].version_range == ""

    def test_invalid_version(self, tmp_workspace: Path, package_writer) -> None:
        package_writer(tmp_workspace, "packages/bad", "bad", "1.0")
        with pytest.raises(WorkspaceError, match="not valid semver"):
            discover_workspace(tmp_workspace)

    def test_duplicate_names(self, tmp_workspace: Path, package_writer) -> None:
        package_writer(tmp_workspace, "packages/copy", "pkg_a")
        with pytest.raises(WorkspaceError, match="'pkg-a' is used by both"):
            discover_workspace(tmp_workspace)

    def test_missing_root_pyproject(self, tmp_path: Path) -> None:
        with pytest.raises(WorkspaceError, match="No pyproject.toml"):
            discover_workspace(tmp_path)

    def test_no_members(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.ruff]\nline-length = 88\n")
        with pytest.raises(WorkspaceError, match="No packages found"):
            discover_workspace(tmp_path)


class TestFindMemberDirs:
    def test_sorted_and_resolved(self, tmp_workspace: Path) -> None:
        doc = tomlkit.parse((tmp_workspace / "pyproject.toml").read_text())
        dirs = find_member_dirs(tmp_workspace.resolve(), doc)
        assert [d.name for d in dirs] == ["pkg-a", "pkg-b", "pkg-c"]
        assert all(d.is_absolute() for d in dirs)


class TestCollectDependencies:
    def test_all_sections(self, sample_toml_doc: tomlkit.TOMLDocument) -> None:
        deps = collect_dependencies(sample_toml_doc)
        assert [d.name for d in deps] == [
            "click",
            "pydantic",
            "pytest",
            "sphinx",
            "hypothesis",
            "ruff",
            "pkg-b",
        ]
        assert deps[-1].is_peer
        assert not any(d.is_peer for d in deps[:-1])

    def test_first_declaration_wins(self) -> None:
        doc = tomlkit.parse(
            '[project]\ndependencies = ["core>=1.0"]\n'
            '[project.optional-dependencies]\nextra = ["core>=2.0"]\n'
        )
        deps = collect_dependencies(doc)
        assert len(deps) == 1
        assert deps[0].version_range == ">=1.0"

    def test_invalid_requirement(self) -> None:
        doc = tomlkit.parse('[project]\ndependencies = ["not a requirement!"]\n')
        with pytest.raises(WorkspaceError, match="Invalid dependency"):
            collect_dependencies(doc)


class TestFilterPackages:
    def _packages(self) -> list[Package]:
        return [Package(name=n, version="1.0.0") for n in ("app", "lib-a", "lib-b")]

    def test_no_filters(self) -> None:
        assert len(filter_packages(self._packages(), Options())) == 3

    def test_include(self) -> None:
        kept = filter_packages(self._packages(), Options(include=["lib-*"]))
        assert [p.name for p in kept] == ["lib-a", "lib-b"]

    def test_exclude_wins(self) -> None:
        kept = filter_packages(
            self._packages(), Options(include=["lib-*"], exclude=["lib-b"])
        )
        assert [p.name for p in kept] == ["lib-a"]
