"""Conventional-commit versioning for uv workspaces."""

from .bump import Bump
from .config import Options
from .errors import ConvbumpError
from .models import Commit, StickyState, VersioningPlan, Workspace
from .versioning import create_versioning_plan, validate_versions

__all__ = [
    "Bump",
    "Commit",
    "ConvbumpError",
    "Options",
    "StickyState",
    "VersioningPlan",
    "Workspace",
    "create_versioning_plan",
    "validate_versions",
]
