"""Validation helpers shared by the dispatch layer, streams and the xmit engine.

The helpers work on ``Stats`` records so the same checks apply to every
backend, whether or not it types its entries explicitly.

Example:
    >>> stats = await fs.head("/docs")
    >>> validate_entry_type(stats, EntryType.DIRECTORY, "/docs")  # Raises if a file

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .interfaces import (
    EntryType,
    InvalidModificationError,
    NotFoundError,
    PathExistsError,
    TypeMismatchError,
)
from .path_utils import is_within

if TYPE_CHECKING:
    from .interfaces import Stats


def validate_entry_type(
    stats: Stats,
    expected: EntryType | None,
    path: str,
    *,
    repository: str | None = None,
) -> None:
    """Validate that ``stats`` describe an entry of the expected kind.

    Args:
        stats: Stats returned by the backend.
        expected: Requested kind, or ``None`` to accept either.
        path: Path used for error context.
        repository: Repository used for error context.

    Raises:
        TypeMismatchError: If the kinds disagree.

    """
    if expected is EntryType.FILE and not stats.is_file:
        raise TypeMismatchError.not_a_file(path, repository=repository)
    if expected is EntryType.DIRECTORY and not stats.is_directory:
        raise TypeMismatchError.not_a_directory(path, repository=repository)


def validate_create_flag(
    exists: bool,
    create: bool | None,
    path: str,
    *,
    repository: str | None = None,
) -> bool:
    """Resolve ``WriteOptions.create`` against the target's existence.

    Args:
        exists: Whether the target file exists.
        create: ``True`` to require absence, ``False`` to require presence,
            ``None`` to accept both.
        path: Path used for error context.
        repository: Repository used for error context.

    Returns:
        True when the write creates the file.

    Raises:
        PathExistsError: If ``create`` is True and the file exists.
        NotFoundError: If ``create`` is False and the file is absent.

    """
    if exists:
        if create:
            raise PathExistsError(repository=repository, path=path)
        return False
    if create is False:
        raise NotFoundError(repository=repository, path=path)
    return True


def validate_not_inside(
    source: str,
    destination: str,
    *,
    repository: str | None = None,
) -> None:
    """Validate that ``destination`` is not ``source`` or one of its descendants.

    Raises:
        InvalidModificationError: If copying would recurse into itself.

    """
    if is_within(destination, source):
        raise InvalidModificationError.cannot_transfer_into_itself(
            destination,
            repository=repository,
        )


def validate_buffer_size(buffer_size: int) -> None:
    """Validate a stream or copy buffer size.

    Raises:
        ValueError: If the size is not a positive integer.

    """
    if not isinstance(buffer_size, int) or buffer_size <= 0:
        message = f"Buffer size must be a positive integer, got {buffer_size!r}"
        raise ValueError(message)
