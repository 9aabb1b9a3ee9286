"""Path containment and pattern matching helpers.

Two pattern syntaxes are used:

- Package-name patterns (``include``, ``exclude``, ``linked``, ``fixed``)
  where ``*`` matches one or more characters of a name.
- File globs (``inputs``) matched with wcmatch, where ``**`` spans
  directories and braces and character classes work as in a shell.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable
from functools import lru_cache

from wcmatch import glob

GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.DOTGLOB

# Placeholders accepted in input globs. The first of each group is the
# documented spelling; the rest are aliases.
WORKSPACE_PLACEHOLDERS = ("{workspace}", "{root}", "{workspaceRoot}")
PACKAGE_PLACEHOLDERS = (
    "{package}",
    "{packageRoot}",
    "{pkg}",
    "{project}",
    "{projectRoot}",
)


def normalize_path(path: str) -> str:
    """Normalize a workspace-relative path to POSIX form without ./ prefix."""
    path = posixpath.normpath(path.replace("\\", "/"))
    return "." if path in ("", ".") else path.removeprefix("./")


def contains_path(directory: str, path: str) -> bool:
    """Return True if ``path`` lies strictly inside ``directory``.

    Both paths are relative to the workspace root. The root itself is
    written ".", and contains every relative path.

    Examples:
        contains_path("packages/a", "packages/a/src/x.py") → True
        contains_path("packages/a", "packages/ab/x.py") → False
        contains_path(".", "README.md") → True
    """
    directory = normalize_path(directory)
    path = normalize_path(path)
    if path == "." or path.startswith("../"):
        return False
    if directory == ".":
        return True
    return path.startswith(directory + "/")


def path_depth(path: str) -> int:
    path = normalize_path(path)
    return 0 if path == "." else path.count("/") + 1


@lru_cache(maxsize=None)
def package_pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a package-name pattern.

    Examples:
        "pkg-*" matches "pkg-a" but not "pkg-"
        "core" matches only "core"
    """
    return re.compile("^" + re.escape(pattern).replace(r"\*", ".+") + "$")


def match_package_patterns(patterns: Iterable[str], names: Iterable[str]) -> list[str]:
    """Return the names matched by any pattern, in ``names`` order."""
    regexes = [package_pattern_to_regex(p) for p in patterns]
    return [name for name in names if any(r.match(name) for r in regexes)]


def glob_match(path: str, pattern: str) -> bool:
    """Match a workspace-relative path against a file glob.

    Supports ``**`` across directories, braces such as ``*.{py,pyi}`` and
    character classes such as ``[st]rc``. Dotfiles match like any other
    file.
    """
    return glob.globmatch(normalize_path(path), pattern, flags=GLOB_FLAGS)


def expand_input_pattern(pattern: str, package_path: str) -> str:
    """Substitute placeholders and make the glob workspace-relative.

    The workspace root is "." so ``{workspace}/**/*`` becomes ``**/*`` and
    ``{package}/**/*`` becomes ``packages/a/**/*``.
    """
    for placeholder in WORKSPACE_PLACEHOLDERS:
        pattern = pattern.replace(placeholder, ".")
    for placeholder in PACKAGE_PLACEHOLDERS:
        pattern = pattern.replace(placeholder, package_path)
    return normalize_path(pattern)


class InputFilter:
    """Include/exclude glob filter for one package.

    Patterns starting with ``!`` exclude. A path passes when it matches at
    least one include pattern and no exclude pattern.
    """

    def __init__(self, patterns: Iterable[str], package_path: str) -> None:
        self.include: list[str] = []
        self.exclude: list[str] = []
        for pattern in patterns:
            if pattern.startswith("!"):
                self.exclude.append(expand_input_pattern(pattern[1:], package_path))
            else:
                self.include.append(expand_input_pattern(pattern, package_path))

    def __call__(self, path: str) -> bool:
        return any(glob_match(path, p) for p in self.include) and not any(
            glob_match(path, p) for p in self.exclude
        )
