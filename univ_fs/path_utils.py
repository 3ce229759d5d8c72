"""Path validation and normalization utilities.

Every path handed to a backend primitive goes through ``check_path`` first,
so backends only ever see absolute, ``/``-separated paths without ``.`` or
``..`` segments, duplicate separators or a trailing separator (the root
``/`` excepted).

Key utilities:
- Illegal character detection
- Path traversal detection
- Normalization, parent and name extraction, joining
"""

from __future__ import annotations

import re
from typing import Any

from .interfaces import PathSyntaxError, SecurityError

ROOT = "/"

_ILLEGAL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f\\:*?"<>|]')


def get_path_parts(path: str) -> list[str]:
    """Split a path into its segments, resolving ``.`` and ``..``.

    Args:
        path: Absolute or relative ``/``-separated path.

    Returns:
        The list of remaining segments, root first.

    Raises:
        PathSyntaxError: If ``..`` climbs above the root.

    Example:

        >>> get_path_parts("/a//b/./c/../d/")
        ['a', 'b', 'd']

    """
    parts: list[str] = []
    for part in path.split("/"):
        if part == "..":
            if not parts:
                raise PathSyntaxError("Path escapes the root", path=path)
            parts.pop()
        elif part and part != ".":
            parts.append(part)
    return parts


def normalize_path(path: str) -> str:
    """Return the canonical absolute form of ``path``.

    Normalization is idempotent: ``normalize_path(normalize_path(p))`` equals
    ``normalize_path(p)``.

    Example:

        >>> normalize_path("./hoge//fuga/")
        '/hoge/fuga'
        >>> normalize_path("")
        '/'

    """
    return ROOT + "/".join(get_path_parts(path))


def get_parent_path(path: str) -> str:
    """Return the normalized parent of ``path``; the root is its own parent."""
    parts = get_path_parts(path)
    if len(parts) <= 1:
        return ROOT
    return ROOT + "/".join(parts[:-1])


def get_name(path: str) -> str:
    """Return the last segment of ``path``, or ``""`` for the root."""
    parts = get_path_parts(path)
    return parts[-1] if parts else ""


def join_paths(*paths: str) -> str:
    """Join and normalize path fragments."""
    parts: list[str] = []
    for path in paths:
        parts.extend(get_path_parts(path))
    return normalize_path("/".join(parts))


def is_illegal_path(path: str) -> bool:
    """Return True when ``path`` contains a character no backend may receive."""
    return _ILLEGAL_CHARS.search(path) is not None


def is_within(path: str, ancestor: str) -> bool:
    """Return True when normalized ``path`` equals or lies below ``ancestor``."""
    if ancestor == ROOT:
        return True
    return path == ancestor or path.startswith(ancestor + "/")


def check_path(path: Any, *, repository: str | None = None) -> str:
    """Validate ``path`` and return its normalized form.

    Args:
        path: Path supplied by a caller.
        repository: Repository name used for error context.

    Returns:
        The normalized path.

    Raises:
        PathSyntaxError: If the path is not a string or escapes the root.
        SecurityError: If the path contains an illegal character.

    """
    if not isinstance(path, str):
        raise PathSyntaxError(
            f"Path must be a string, not {type(path).__name__}",
            repository=repository,
        )
    if is_illegal_path(path):
        raise SecurityError(repository=repository, path=path)
    try:
        return normalize_path(path)
    except PathSyntaxError as exc:
        raise PathSyntaxError(exc.message, repository=repository, path=path) from exc
