"""
TagWeave Path Helpers.

Path joining, comparison and extension matching shared by the
tag processor, reference index and file watcher.
Requires Python 3.11+.
"""

import fnmatch
import os
from pathlib import Path

# Extension values that select every file
WILDCARD_EXTENSIONS = frozenset({".*", "*", "*.*"})


def resolve_relative(from_path: Path | str, relative: str) -> Path:
    """
    Resolve a path relative to the directory of another file.

    The result is absolute and normalised (``..`` collapsed) without
    following symlinks.

    Args:
        from_path: File whose directory anchors the lookup
        relative: Relative (or absolute) path to resolve

    Returns:
        Absolute, normalised path
    """
    anchor = Path(from_path).parent
    return Path(os.path.normpath(os.path.abspath(anchor / relative.strip())))


def path_key(path: Path | str) -> str:
    """Case-insensitive comparison key for a path."""
    return os.path.normcase(os.path.normpath(os.path.abspath(path))).casefold()


def same_path(first: Path | str, second: Path | str) -> bool:
    """Check whether two paths name the same file, ignoring case."""
    return path_key(first) == path_key(second)


def matches_extension(path: Path | str, extension: str) -> bool:
    """
    Check if a file name matches a monitored extension.

    Args:
        path: File path to test
        extension: Extension such as ".dnaweb", or ".*" for all files

    Returns:
        True if the file should be monitored for this extension
    """
    if extension in WILDCARD_EXTENSIONS:
        return True
    return Path(path).name.casefold().endswith(extension.casefold())


def is_ignored(path: Path | str, ignore_patterns: list[str]) -> bool:
    """Check a path against directory-name or filename-glob ignore patterns."""
    path_str = str(path)
    parts = Path(path_str).parts
    for pattern in ignore_patterns:
        if pattern in parts or fnmatch.fnmatch(Path(path_str).name, pattern):
            return True
    return False
