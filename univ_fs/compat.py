"""Exception translation between native failures and the univ_fs taxonomy.

Backend primitives raise whatever their storage raises (``OSError``
subclasses, ``KeyError``, client errors). ``normalize_error`` classifies such
a failure into exactly one taxonomy error, and ``normalized_errors`` applies
it around a primitive call. The reverse direction, ``translate_exceptions``,
turns taxonomy errors into standard ``OSError`` subclasses for code that
expects the builtin file exceptions.
"""

from __future__ import annotations

import errno
from contextlib import contextmanager
from typing import TYPE_CHECKING

from .interfaces import (
    FileSystemError,
    InvalidModificationError,
    NotFoundError,
    NotSupportedError,
    PathExistsError,
    TypeMismatchError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


def normalize_error(
    exc: BaseException,
    fallback: type[FileSystemError],
    *,
    repository: str | None = None,
    path: str | None = None,
) -> FileSystemError:
    """Classify a native failure into one taxonomy error.

    Maps:
    - FileSystemError → itself
    - FileNotFoundError, KeyError → NotFoundError
    - FileExistsError → PathExistsError
    - IsADirectoryError, NotADirectoryError → TypeMismatchError
    - OSError with ENOTEMPTY → InvalidModificationError
    - NotImplementedError → NotSupportedError
    - anything else → ``fallback``

    Args:
        exc: The native exception.
        fallback: Taxonomy class for failures with no specific mapping,
            ``NotReadableError`` on the read side and
            ``NoModificationAllowedError`` on the write side.
        repository: Repository name used for error context.
        path: Path used for error context.

    Returns:
        The taxonomy error, with the native exception kept as ``cause``.

    """
    if isinstance(exc, FileSystemError):
        return exc

    message = str(exc) or None
    if isinstance(exc, (FileNotFoundError, KeyError)):
        error_cls: type[FileSystemError] = NotFoundError
        message = None
    elif isinstance(exc, FileExistsError):
        error_cls = PathExistsError
    elif isinstance(exc, (IsADirectoryError, NotADirectoryError)):
        error_cls = TypeMismatchError
    elif isinstance(exc, OSError) and exc.errno == errno.ENOTEMPTY:
        error_cls = InvalidModificationError
    elif isinstance(exc, NotImplementedError):
        error_cls = NotSupportedError
    else:
        error_cls = fallback
    return error_cls(message, repository=repository, path=path, cause=exc)


@contextmanager
def normalized_errors(
    fallback: type[FileSystemError],
    *,
    repository: str | None = None,
    path: str | None = None,
) -> Iterator[None]:
    """Context manager normalizing every exception raised inside it.

    Example:
        ```python
        with normalized_errors(NotReadableError, repository=fs.repository, path=path):
            stats = await fs._head(path, options)
        ```

    Raises:
        FileSystemError: The normalized form of any ``Exception`` raised.

    """
    try:
        yield
    except FileSystemError:
        raise
    except Exception as exc:
        raise normalize_error(
            exc,
            fallback,
            repository=repository,
            path=path,
        ) from exc


def translate_backend_exception(exc: FileSystemError) -> OSError:
    """Convert a FileSystemError to a standard Python OSError.

    Maps:
    - NotFoundError → FileNotFoundError
    - PathExistsError → FileExistsError
    - TypeMismatchError (not a file) → IsADirectoryError
    - TypeMismatchError (not a directory) → NotADirectoryError
    - InvalidModificationError (directory not empty) → OSError(ENOTEMPTY)
    - anything else → OSError

    """
    message = str(exc)

    if isinstance(exc, NotFoundError):
        return FileNotFoundError(errno.ENOENT, message)

    if isinstance(exc, PathExistsError):
        return FileExistsError(errno.EEXIST, message)

    if isinstance(exc, TypeMismatchError):
        if exc.message == "Not a directory":
            return NotADirectoryError(errno.ENOTDIR, message)
        return IsADirectoryError(errno.EISDIR, message)

    if isinstance(exc, InvalidModificationError):
        if "not empty" in exc.message:
            return OSError(errno.ENOTEMPTY, message)
        return OSError(errno.EINVAL, message)

    if isinstance(exc, NotSupportedError):
        return OSError(errno.EOPNOTSUPP, message)

    return OSError(message)


@contextmanager
def translate_exceptions() -> Iterator[None]:
    """Context manager for exception translation.

    Catches any FileSystemError and re-raises it as the matching standard
    Python OSError.

    Example:
        ```python
        with translate_exceptions():
            await fs.read("/nonexistent.txt")  # Raises FileNotFoundError
        ```

    Raises:
        OSError: Any FileSystemError wrapped as appropriate OSError subclass.

    """
    try:
        yield
    except FileSystemError as exc:
        raise translate_backend_exception(exc) from exc
