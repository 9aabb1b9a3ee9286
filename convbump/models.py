"""Data models for convbump.

These Pydantic models represent the in-memory snapshot the versioning engine
operates on (workspace, commit history, sticky state) and the plan it
produces.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .bump import Bump
from .versions import is_pre_release, parse_version


class Dependency(BaseModel):
    """A dependency declared by a workspace package.

    Attributes:
        name: Canonical (PEP 503) name of the dependency.
        version_range: The raw version specifier, e.g. ">=1.2.0". Empty when
            the requirement is unconstrained.
        is_peer: Whether consumers of the package are expected to provide
            this dependency themselves.
    """

    name: str
    version_range: str = ""
    is_peer: bool = False


class Package(BaseModel):
    """A single package in the workspace.

    Attributes:
        name: Canonical package name.
        version: Current version, always valid semver.
        path: Package directory relative to the workspace root, POSIX style.
            "." for a package living at the root itself.
        dependencies: Every dependency, internal or external.
    """

    name: str
    version: str
    path: str = "."
    dependencies: list[Dependency] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        parse_version(value)
        return value

    @property
    def is_pre_release(self) -> bool:
        return is_pre_release(self.version)


class Workspace(BaseModel):
    """The set of packages under versioning.

    Attributes:
        path: Absolute path of the workspace root.
        packages: Packages in discovery order. Names are unique.
    """

    path: str
    packages: list[Package] = Field(default_factory=list)

    @field_validator("packages")
    @classmethod
    def _check_unique_names(cls, packages: list[Package]) -> list[Package]:
        seen: set[str] = set()
        for pkg in packages:
            if pkg.name in seen:
                raise ValueError(f"Duplicate package name {pkg.name!r}")
            seen.add(pkg.name)
        return packages

    def get(self, name: str) -> Package | None:
        return next((pkg for pkg in self.packages if pkg.name == name), None)

    @property
    def names(self) -> list[str]:
        return [pkg.name for pkg in self.packages]


class FileChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class FileChange(BaseModel):
    """A file touched by a commit, relative to the workspace root."""

    kind: FileChangeKind = FileChangeKind.MODIFIED
    path: str


class Commit(BaseModel):
    """A commit since the recorded base.

    Attributes:
        hash: Full commit hash.
        type: Conventional-commit type, or None when the header does not
            follow the convention.
        header: First line of the commit message.
        diff: Files changed against the first parent. Empty for a root commit.
    """

    model_config = ConfigDict(frozen=True)

    hash: str
    type: str | None = None
    header: str | None = None
    diff: tuple[FileChange, ...] = ()


class Promotion(BaseModel):
    """A manually requested minimum bump, consumed by the next plan.

    Stored in config either as a plain bump name (``"minor"``) or as a table
    (``{ bump = "minor", override = true }``). With ``override`` the
    promotion replaces the inferred bump even when that is greater.
    """

    bump: Bump
    override: bool = False

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, (str, int)):
            return {"bump": data}
        return data

    @field_validator("bump", mode="before")
    @classmethod
    def _parse_bump(cls, value: Any) -> Bump:
        return Bump.parse(value)


class StickyState(BaseModel):
    """State persisted across runs in the config file.

    Attributes:
        base: Hash of the newest commit processed by the last versioning.
        promotions: Pending promotions by package name.
        pre_releases: Active pre-release records, mapping package name to the
            stable version the package had when it entered pre-release.
    """

    model_config = ConfigDict(populate_by_name=True)

    base: str | None = None
    promotions: dict[str, Promotion] = Field(default_factory=dict)
    pre_releases: dict[str, str] = Field(default_factory=dict, alias="pre-releases")

    @field_validator("pre_releases")
    @classmethod
    def _check_origins(cls, value: dict[str, str]) -> dict[str, str]:
        for origin in value.values():
            parse_version(origin)
        return value


class VersionUpdate(BaseModel):
    """A planned version change for one package."""

    name: str
    old_version: str
    new_version: str
    bump: Bump = Bump.NONE

    @property
    def changed(self) -> bool:
        return self.old_version != self.new_version


class VersioningPlan(BaseModel):
    """Result of a planning pass.

    Attributes:
        updates: Version updates in workspace order.
        warnings: Non-fatal problems found while planning, to report once.
        promoted: Promotions that were applied, by package name.
        state: The sticky state to persist if the plan is applied.
        iterations: Number of propagation passes until the fixed point.
    """

    updates: list[VersionUpdate] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    promoted: dict[str, Bump] = Field(default_factory=dict)
    state: StickyState = Field(default_factory=StickyState)
    iterations: int = 0

    def get(self, name: str) -> VersionUpdate | None:
        return next((u for u in self.updates if u.name == name), None)
