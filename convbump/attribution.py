"""Commit attribution: which commits bump which packages, and how much.

A commit contributes to a package when it has a recognised conventional
type and at least one of its changed files is relevant to the package and
survives the package's input filter. The package's inferred bump is the
greatest contribution.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .bump import Bump, BumpTable
from .models import Commit, Package, Workspace
from .patterns import InputFilter, contains_path, path_depth


class CommitAttributor:
    """Infers per-package bumps from commit history.

    Args:
        workspace: The workspace snapshot.
        inputs: Input glob patterns (see ``convbump.patterns.InputFilter``).
        bumps: Type → bump table.
        exclusive_nested_ownership: When True, a file under a nested package
            belongs only to the deepest package containing it. When False
            (default) enclosing packages see it too.
    """

    def __init__(
        self,
        workspace: Workspace,
        inputs: Sequence[str],
        bumps: BumpTable,
        *,
        exclusive_nested_ownership: bool = False,
    ) -> None:
        self.workspace = workspace
        self.inputs = list(inputs)
        self.bumps = bumps
        self.exclusive_nested_ownership = exclusive_nested_ownership
        # Types seen in history that the table does not know, in order seen.
        self.unknown_types: list[str] = []

    def is_relevant(self, package: Package, path: str) -> bool:
        """Return True if a changed file at ``path`` belongs to ``package``."""
        others = [p for p in self.workspace.packages if p.name != package.name]
        if contains_path(package.path, path):
            if not self.exclusive_nested_ownership:
                return True
            depth = path_depth(package.path)
            return not any(
                path_depth(other.path) > depth and contains_path(other.path, path)
                for other in others
            )
        # Files outside every package (lock files, root config) affect all.
        return not any(contains_path(other.path, path) for other in others)

    def affects(self, package: Package, commit: Commit) -> bool:
        accept = InputFilter(self.inputs, package.path)
        return any(
            self.is_relevant(package, change.path) and accept(change.path)
            for change in commit.diff
        )

    def commit_bump(self, commit: Commit) -> Bump:
        """Bump caused by a single commit's type, ignoring which files it touches."""
        if not commit.type:
            return Bump.NONE
        bump = self.bumps.lookup(commit.type)
        if bump is None:
            if commit.type not in self.unknown_types:
                self.unknown_types.append(commit.type)
            return Bump.NONE
        return bump

    def infer(self, package: Package, history: Iterable[Commit]) -> Bump:
        """Return the greatest bump over all commits affecting ``package``."""
        bump = Bump.NONE
        for commit in history:
            if not commit.type:
                continue
            contribution = self.commit_bump(commit)
            if contribution > bump and self.affects(package, commit):
                bump = contribution
        return bump


def invalid_commits(history: Iterable[Commit]) -> list[Commit]:
    """Commits whose header is not a conventional commit."""
    return [commit for commit in history if not commit.type]


def render_commit(commit: Commit) -> str:
    return f"[{commit.hash[:7]}] {commit.header or ''}".rstrip()
