"""Configuration file handling.

convbump keeps its options and its sticky state in ``convbump.toml`` at the
workspace root::

    base = "3f2a..."            # newest commit handled by the last versioning

    [options]
    prevent-major-bump = true
    linked = [["pkg-*"]]

    [promotions]
    pkg-a = "minor"
    pkg-b = { bump = "major", override = true }

    [pre-releases]
    pkg-c = "1.2.3"             # stable version before entering pre-release

The file is read with tomlkit and validated with Pydantic. Writes only touch
the sticky-state keys, so comments and options formatting survive.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from tomlkit.exceptions import TOMLKitError

from .bump import Bump
from .errors import ConfigError
from .models import StickyState
from .toml import load_toml, save_toml

CONFIG_FILENAME = "convbump.toml"

DEFAULT_INPUTS = ["{workspace}/**/*", "{package}/**/*"]


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class Options(BaseModel):
    """Versioning options, read from the ``[options]`` table.

    Attributes:
        bumps: Extra or overriding commit type → bump mappings.
        include: Package-name patterns to version; all packages when empty.
        exclude: Package-name patterns to leave alone.
        linked: Groups of package-name patterns kept on the same major.minor.
        fixed: Groups of package-name patterns kept on the same version.
        inputs: File globs deciding which changed files count. ``!`` excludes.
        initial_pre_release: Number a pre-release sequence starts from.
        preserve_pre_release: Keep counting the pre-release sequence when
            the stable part advances (``1.0.0-rc.5`` → ``1.1.0-rc.6``).
        allow_first_major: Allow breaking changes to move 0.x packages to 1.0.0.
        prevent_major_bump: Refuse major bumps that were not promoted.
        include_private: Version packages classified as private.
        ignore_invalid_commit: Do not warn about non-conventional commits.
        include_unchanged: Report every package in the plan, changed or not.
        exclusive_nested_ownership: Attribute files under a nested package
            only to that package, not to the packages enclosing it.
        only_workspace_protocol: Only rewrite internal dependencies that are
            uv workspace sources.
        override_complex_range: Pin internal dependencies whose specifier has
            several clauses.
        update_stable_to_pre_release: Point stable specifiers at pre-release
            siblings.
        ignore_outdated_pre_release: Do not warn about specifiers naming a
            pre-release of a sibling that is stable again.
    """

    model_config = ConfigDict(
        alias_generator=_kebab, populate_by_name=True, extra="forbid"
    )

    bumps: dict[str, Bump] = Field(default_factory=dict)
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    linked: list[list[str]] = Field(default_factory=list)
    fixed: list[list[str]] = Field(default_factory=list)
    inputs: list[str] = Field(default_factory=lambda: list(DEFAULT_INPUTS))
    initial_pre_release: int = Field(default=0, ge=0)
    preserve_pre_release: bool = False
    allow_first_major: bool = False
    prevent_major_bump: bool = False
    include_private: bool = False
    ignore_invalid_commit: bool = False
    include_unchanged: bool = False
    exclusive_nested_ownership: bool = False
    only_workspace_protocol: bool = False
    override_complex_range: bool = False
    update_stable_to_pre_release: bool = False
    ignore_outdated_pre_release: bool = False

    @field_validator("bumps", mode="before")
    @classmethod
    def _parse_bumps(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: Bump.parse(v) for k, v in value.items()}
        return value


class Config(BaseModel):
    """Options and sticky state loaded from one config file."""

    path: Path
    options: Options = Field(default_factory=Options)
    state: StickyState = Field(default_factory=StickyState)
    exists: bool = False


def load_config(path: Path) -> Config:
    """Load the config file, falling back to defaults when it does not exist.

    Raises:
        ConfigError: If the file is not valid TOML or fails validation.
    """
    if not path.exists():
        return Config(path=path)

    try:
        data = load_toml(path).unwrap()
    except TOMLKitError as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc

    try:
        options = Options.model_validate(data.get("options", {}))
        state = StickyState.model_validate(
            {
                "base": data.get("base"),
                "promotions": data.get("promotions", {}),
                "pre-releases": data.get("pre-releases", {}),
            }
        )
    except (ValidationError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc

    return Config(path=path, options=options, state=state, exists=True)


def _sync_table(doc: tomlkit.TOMLDocument, key: str, values: dict[str, Any]) -> None:
    """Make ``doc[key]`` hold exactly ``values``, editing the table in place."""
    if not values:
        if key in doc:
            del doc[key]
        return
    if key not in doc:
        doc[key] = tomlkit.table()
    table = doc[key]
    for name in [name for name in table if name not in values]:
        del table[name]
    for name, value in values.items():
        table[name] = value


def _promotion_value(bump: Bump, override: bool) -> Any:
    if not override:
        return str(bump)
    value = tomlkit.inline_table()
    value.update({"bump": str(bump), "override": True})
    return value


def save_state(path: Path, state: StickyState) -> None:
    """Write the sticky state into the config file, creating it if needed."""
    doc = load_toml(path) if path.exists() else tomlkit.document()

    if state.base:
        doc["base"] = state.base
    elif "base" in doc:
        del doc["base"]

    _sync_table(
        doc,
        "promotions",
        {
            name: _promotion_value(p.bump, p.override)
            for name, p in state.promotions.items()
            if p.bump is not Bump.NONE
        },
    )
    _sync_table(doc, "pre-releases", dict(state.pre_releases))
    save_toml(path, doc)


def init_config(path: Path, base: str | None) -> None:
    """Create a fresh config file with an empty ``[options]`` table.

    Raises:
        ConfigError: If the file already exists.
    """
    if path.exists():
        raise ConfigError(f"{path.name} already exists.")
    doc = tomlkit.document()
    if base:
        doc["base"] = base
    doc["options"] = tomlkit.table()
    save_toml(path, doc)
