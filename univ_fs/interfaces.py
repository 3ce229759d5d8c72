"""Core records, option sets and the error taxonomy shared by every component."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, ClassVar, Literal, TypeVar

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

DEFAULT_BUFFER_SIZE = 64 * 1024

ChecksumAlgorithm = Literal["md5", "sha256", "sha512", "blake3"]

TIME_FIELDS = ("accessed", "created", "modified", "deleted")
READ_ONLY_FIELDS = ("size", "etag")


class FileSystemError(RuntimeError):
    """Base exception for every failure surfaced by a file system."""

    name: ClassVar[str] = "FileSystemError"
    default_message: ClassVar[str] = "File system operation failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        repository: str | None = None,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialise the error with optional repository and path context."""
        message = message or self.default_message
        location = None
        if path is not None:
            location = path if repository is None else f"{repository}:{path}"
        detail = message if location is None else ": ".join((message, location))
        super().__init__(detail)
        self.message = message
        self.repository = repository
        self.path = path
        self.cause = cause


class NotFoundError(FileSystemError):
    """Raised when an expected file or directory is missing."""

    name = "NotFoundError"
    default_message = "Path not found"


class NotReadableError(FileSystemError):
    """Raised when a backend fails to read an entry or its metadata."""

    name = "NotReadableError"
    default_message = "Path is not readable"


class NoModificationAllowedError(FileSystemError):
    """Raised when a backend fails to write, delete or patch an entry."""

    name = "NoModificationAllowedError"
    default_message = "Modification is not allowed"


class InvalidModificationError(FileSystemError):
    """Raised when a mutation is structurally illegal."""

    name = "InvalidModificationError"
    default_message = "Invalid modification"

    @classmethod
    def directory_not_empty(
        cls,
        path: str,
        *,
        repository: str | None = None,
    ) -> InvalidModificationError:
        """Return an error indicating recursive deletion is required."""
        return cls(
            "Directory not empty (use recursive=True)",
            repository=repository,
            path=path,
        )

    @classmethod
    def cannot_overwrite_file_with_directory(
        cls,
        path: str,
        *,
        repository: str | None = None,
    ) -> InvalidModificationError:
        """Return an error describing a directory-onto-file copy."""
        return cls(
            "Cannot overwrite file with directory",
            repository=repository,
            path=path,
        )

    @classmethod
    def cannot_overwrite_directory_with_file(
        cls,
        path: str,
        *,
        repository: str | None = None,
    ) -> InvalidModificationError:
        """Return an error describing a file-onto-directory copy."""
        return cls(
            "Cannot overwrite directory with file",
            repository=repository,
            path=path,
        )

    @classmethod
    def cannot_transfer_into_itself(
        cls,
        path: str,
        *,
        repository: str | None = None,
    ) -> InvalidModificationError:
        """Return an error for a copy or move into the source's own subtree."""
        return cls(
            "Cannot copy or move a path into itself",
            repository=repository,
            path=path,
        )

    @classmethod
    def read_only_field(
        cls,
        field_name: str,
        path: str,
        *,
        repository: str | None = None,
    ) -> InvalidModificationError:
        """Return an error for a patch touching a derived stat."""
        return cls(
            f"Cannot change {field_name}",
            repository=repository,
            path=path,
        )


class TypeMismatchError(FileSystemError):
    """Raised when an entry is of the wrong kind for the operation."""

    name = "TypeMismatchError"
    default_message = "Entry type mismatch"

    @classmethod
    def not_a_file(
        cls,
        path: str,
        *,
        repository: str | None = None,
    ) -> TypeMismatchError:
        """Return an error stating the path is not a file."""
        return cls("Not a file", repository=repository, path=path)

    @classmethod
    def not_a_directory(
        cls,
        path: str,
        *,
        repository: str | None = None,
    ) -> TypeMismatchError:
        """Return an error stating the path is not a directory."""
        return cls("Not a directory", repository=repository, path=path)


class PathExistsError(FileSystemError):
    """Raised when attempting to create a resource that already exists."""

    name = "PathExistsError"
    default_message = "Path already exists"


class SecurityError(FileSystemError):
    """Raised when a path contains characters no backend may receive."""

    name = "SecurityError"
    default_message = "Path has an illegal character"


class PathSyntaxError(FileSystemError):
    """Raised when a path is malformed."""

    name = "SyntaxError"
    default_message = "Malformed path"


class NotSupportedError(FileSystemError):
    """Raised when the backend cannot perform the operation at all."""

    name = "NotSupportedError"
    default_message = "Operation is not supported"


class EntryType(str, Enum):
    """Kind of an entry."""

    FILE = "file"
    DIRECTORY = "directory"


class OnExists(str, Enum):
    """Policy applied when a copy or move destination already exists."""

    ERROR = "error"
    SKIP = "skip"
    OVERWRITE = "overwrite"


class OnNoParent(str, Enum):
    """Policy applied when a copy or move destination has no parent."""

    ERROR = "error"
    CREATE = "create"


class SeekOrigin(IntEnum):
    """Reference point of a stream seek, numbered like ``io.SEEK_*``."""

    BEGIN = 0
    CURRENT = 1
    END = 2


@dataclass(frozen=True)
class Stats:
    """Snapshot of metadata for an entry.

    ``size`` is set for files and ``None`` for directories; it is the only
    discriminator between the two on backends without explicit typing.
    """

    size: int | None = None
    accessed: datetime | None = None
    modified: datetime | None = None
    created: datetime | None = None
    deleted: datetime | None = None
    etag: str | None = None
    props: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_file(self) -> bool:
        """Whether the stats describe a file."""
        return self.size is not None

    @property
    def is_directory(self) -> bool:
        """Whether the stats describe a directory."""
        return self.size is None

    def get(self, key: str, default: Any = None) -> Any:
        """Return a standard field or a custom property by name."""
        if key in _STATS_FIELDS:
            value = getattr(self, key)
            return default if value is None else value
        return self.props.get(key, default)

    def as_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        result: dict[str, Any] = {"size": self.size, "etag": self.etag}
        for name in TIME_FIELDS:
            value = getattr(self, name)
            result[name] = value.isoformat() if value else None
        result.update(self.props)
        return result


_STATS_FIELDS = frozenset(f.name for f in fields(Stats)) - {"props"}

_O = TypeVar("_O")


def merge_options(options: _O | None, defaults: _O, overrides: Mapping[str, Any]) -> _O:
    """Combine default options, an explicit options object and keyword overrides.

    Args:
        options: Options supplied by the caller, replacing the defaults wholesale.
        defaults: Options configured on the file system.
        overrides: Individual fields supplied as keyword arguments; these win.

    Returns:
        A new options record.

    """
    base = defaults if options is None else options
    if not overrides:
        return base
    return replace(base, **overrides)  # type: ignore[type-var]


@dataclass(frozen=True)
class HeadOptions:
    """Options for ``head``/``stat``."""

    ignore_hook: bool = False
    type: EntryType | None = None


@dataclass(frozen=True)
class ListOptions:
    """Options for ``list``."""

    ignore_hook: bool = False


@dataclass(frozen=True)
class MkcolOptions:
    """Options for ``mkcol``.

    ``recursive`` creates missing parents; ``force`` accepts an existing
    directory instead of raising ``PathExistsError``.
    """

    recursive: bool = False
    force: bool = False
    ignore_hook: bool = False


@dataclass(frozen=True)
class DeleteOptions:
    """Options for ``delete``.

    ``force`` ignores a missing path and collects per-child failures during
    a recursive delete instead of aborting on the first one.
    """

    force: bool = False
    recursive: bool = False
    ignore_hook: bool = False


@dataclass(frozen=True)
class PatchOptions:
    """Options for ``patch``."""

    ignore_hook: bool = False
    type: EntryType | None = None


@dataclass(frozen=True)
class OpenOptions:
    """Options for opening a read stream."""

    buffer_size: int = DEFAULT_BUFFER_SIZE
    ignore_hook: bool = False


@dataclass(frozen=True)
class WriteOptions(OpenOptions):
    """Options for opening a write stream.

    ``create`` is ``None`` for "create or overwrite", ``True`` to require the
    target to be absent and ``False`` to require it to exist.
    """

    append: bool = False
    create: bool | None = None


@dataclass(frozen=True)
class CopyOptions:
    """Options for ``copy``.

    ``force`` is passed on to the ``mkcol`` of destination directories and to
    the source deletion of a move.
    """

    on_exists: OnExists = OnExists.ERROR
    on_no_parent: OnNoParent = OnNoParent.ERROR
    recursive: bool = False
    force: bool = False
    buffer_size: int = DEFAULT_BUFFER_SIZE
    ignore_hook: bool = False


@dataclass(frozen=True)
class MoveOptions(CopyOptions):
    """Options for ``move``; moves always walk the whole tree."""

    recursive: bool = True


@dataclass(frozen=True)
class XmitError:
    """A failed sub-operation of a copy or move."""

    from_path: str
    to_path: str
    error: FileSystemError

    def as_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        return {
            "from": self.from_path,
            "to": self.to_path,
            "error": self.error.name,
            "message": str(self.error),
        }
