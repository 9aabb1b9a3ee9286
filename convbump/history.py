"""Commit history: git log since the base, with per-commit diffs.

Commits are read newest first. Each commit's header is parsed as a
conventional commit (``type(scope)!: summary``) and its diff is taken
against the first parent, relative to the workspace root.
"""

from __future__ import annotations

import re
from pathlib import Path

from .models import Commit, FileChange, FileChangeKind
from .shell import git

HEADER_PATTERN = re.compile(r"^(\w*)(?:\((.*)\))?!?: (.*)$")

# Record separator between commits in `git log` output.
_SEPARATOR = "\x1e"
_LOG_FORMAT = f"%H%n%B{_SEPARATOR}"

_STATUS_KINDS = {
    "A": FileChangeKind.ADDED,
    "C": FileChangeKind.ADDED,
    "R": FileChangeKind.ADDED,
    "D": FileChangeKind.DELETED,
}


def parse_header(message: str) -> tuple[str | None, str | None]:
    """Split a commit message into conventional type and header line.

    Returns:
        ``(type, header)``. ``type`` is None when the header is not a
        conventional commit; ``header`` is None for an empty message.

    Examples:
        parse_header("feat(api): add x\\n\\nbody") → ("feat", "feat(api): add x")
        parse_header("Merge branch 'main'") → (None, "Merge branch 'main'")
    """
    lines = message.strip().splitlines()
    if not lines:
        return None, None
    header = lines[0].strip()
    match = HEADER_PATTERN.match(header)
    commit_type = match.group(1) if match else None
    return commit_type or None, header


def parse_name_status(output: str) -> tuple[FileChange, ...]:
    """Parse ``git diff --name-status`` output.

    Renames and copies are attributed to their new path.
    """
    changes: list[FileChange] = []
    for line in output.splitlines():
        fields = line.split("\t")
        if len(fields) < 2 or not fields[0]:
            continue
        kind = _STATUS_KINDS.get(fields[0][0], FileChangeKind.MODIFIED)
        changes.append(FileChange(kind=kind, path=fields[-1]))
    return tuple(changes)


def get_commit_diff(root: Path, commit_hash: str) -> tuple[FileChange, ...]:
    """Files changed by a commit against its first parent.

    A root commit has no parent; its diff is empty.
    """
    output = git(
        "diff",
        "--name-status",
        "--relative",
        f"{commit_hash}^",
        commit_hash,
        cwd=root,
        check=False,
    )
    return parse_name_status(output)


def parse_log(output: str) -> list[tuple[str, str]]:
    """Split ``git log`` output into ``(hash, message)`` pairs."""
    entries: list[tuple[str, str]] = []
    for chunk in output.split(_SEPARATOR):
        chunk = chunk.strip()
        if not chunk:
            continue
        commit_hash, _, message = chunk.partition("\n")
        entries.append((commit_hash.strip(), message))
    return entries


def get_commit_history(root: Path, base: str | None) -> list[Commit]:
    """Read commits after ``base`` up to HEAD, newest first.

    Args:
        root: Workspace root; paths in diffs are relative to it.
        base: Oldest excluded commit. None reads the whole history.

    Raises:
        GitError: If git fails, e.g. because ``base`` does not exist.
    """
    revision = f"{base}..HEAD" if base else "HEAD"
    output = git("log", f"--format={_LOG_FORMAT}", revision, cwd=root)

    commits: list[Commit] = []
    for commit_hash, message in parse_log(output):
        commit_type, header = parse_header(message)
        commits.append(
            Commit(
                hash=commit_hash,
                type=commit_type,
                header=header,
                diff=get_commit_diff(root, commit_hash),
            )
        )
    return commits


def rev_parse(root: Path, ref: str) -> str | None:
    """Resolve ``ref`` to a full hash, or None if it does not exist."""
    resolved = git(
        "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", cwd=root, check=False
    )
    return resolved or None
