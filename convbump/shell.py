"""Shell and git utilities.

Provides a thin wrapper around subprocess for git commands, plus output
formatting helpers used by the pipeline.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from .errors import GitError


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "log", "--format=%H").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise GitError on non-zero exit. Set to
               False for commands that may legitimately fail (e.g. diffing
               a root commit against its missing parent).

    Returns:
        Stripped stdout from the git command. Empty when the command failed
        and ``check`` is False.
    """
    try:
        result = subprocess.run(
            ["git", *args], capture_output=True, text=True, cwd=cwd, check=False
        )
    except OSError as exc:
        raise GitError(f"Could not run git: {exc}") from exc

    if result.returncode != 0:
        if check:
            raise GitError(
                f"git {' '.join(args)} failed with exit code {result.returncode}",
                stderr=result.stderr.strip(),
            )
        return ""
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of a command in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a warning to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)
