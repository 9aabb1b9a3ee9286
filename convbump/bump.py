"""Bump severity lattice and the conventional-commit type table."""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntEnum


class Bump(IntEnum):
    """Severity of a version increment, ordered NONE < PATCH < MINOR < MAJOR."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    @classmethod
    def parse(cls, value: str | int | Bump | None) -> Bump:
        """Parse a bump from its config spelling ("patch", "minor", ...).

        ``None`` and ``"none"`` map to ``Bump.NONE``.

        Raises:
            ValueError: If the value names no bump.
        """
        if value is None:
            return cls.NONE
        if isinstance(value, Bump):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown bump {value!r}, expected one of: none, patch, minor, major"
            ) from None


# Commit types from the Angular convention plus a few shorthand types.
DEFAULT_BUMPS: dict[str, Bump] = {
    "patch": Bump.PATCH,
    "minor": Bump.MINOR,
    "breaking": Bump.MAJOR,
    "fix": Bump.PATCH,
    "feat": Bump.MINOR,
    "docs": Bump.NONE,
    "documentation": Bump.NONE,
    "style": Bump.NONE,
    "refactor": Bump.NONE,
    "perf": Bump.PATCH,
    "performance": Bump.PATCH,
    "test": Bump.NONE,
    "build": Bump.NONE,
    "ci": Bump.NONE,
    "chore": Bump.NONE,
}


class BumpTable:
    """Maps conventional-commit types to bumps.

    Lookups distinguish a type that is known to cause no bump (``Bump.NONE``)
    from a type that is not in the table at all (``None``).
    """

    def __init__(self, overrides: Mapping[str, Bump] | None = None) -> None:
        self._table = {**DEFAULT_BUMPS, **(overrides or {})}

    def lookup(self, commit_type: str) -> Bump | None:
        return self._table.get(commit_type)

    def __contains__(self, commit_type: object) -> bool:
        return commit_type in self._table
