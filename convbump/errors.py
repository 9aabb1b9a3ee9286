"""Exceptions raised by convbump.

Library code raises these; the CLI turns them into click errors so the
process exits with a readable message instead of a traceback.
"""

from __future__ import annotations

from collections.abc import Iterable


class ConvbumpError(Exception):
    """Base class for all convbump errors."""


class InvalidVersion(ConvbumpError, ValueError):
    """A version string is not valid semver."""


class ConfigError(ConvbumpError):
    """The configuration file is missing or malformed."""


class WorkspaceError(ConvbumpError):
    """The workspace could not be discovered."""


class GitError(ConvbumpError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr


class _PackageListError(ConvbumpError):
    """An error concerning a list of packages, rendered one per line."""

    headline = ""

    def __init__(self, packages: Iterable[str]) -> None:
        self.packages = list(packages)
        lines = "\n".join(f"  - {name}" for name in self.packages)
        super().__init__(f"{self.headline}\n{lines}")


class MissingPreReleaseOrigin(_PackageListError):
    """A package is in pre-release but has no recorded original version."""

    headline = (
        "Original version is not configured for the following pre-release "
        "package(s). Add them under [pre-releases] in the config file:"
    )


class MajorBumpPrevented(_PackageListError):
    """A major bump was planned while major bumps are prevented."""

    headline = (
        "Commit history includes breaking changes, however major bumps are "
        "not allowed. You have to manually promote the packages:"
    )


class PropagationError(ConvbumpError, RuntimeError):
    """Bump propagation did not reach a fixed point."""
