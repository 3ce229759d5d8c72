"""Backend-independent dispatch over a small set of backend primitives.

``FileSystem`` is the abstract base every backend extends. Concrete backends
implement the underscore primitives (``_head``, ``_list``, ``_mkcol``,
``_delete``, ``_patch``, ``_open_read_stream``, ``_open_write_stream``) and the
capability queries; they may raise any native exception. The base class owns
everything else:

* path validation and normalization,
* the before/after hook pipeline,
* option defaults merged with per-call keyword overrides,
* translation of native failures into the ``FileSystemError`` taxonomy,
* the recursive delete, copy and move algorithms.

Example:

    >>> fs = MemoryFileSystem("scratch")
    >>> await fs.mkcol("/notes")
    >>> await fs.write("/notes/today.txt", "hello")
    >>> await fs.list("/notes")
    ['/notes/today.txt']

"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from .compat import normalized_errors
from .entry import Directory, File
from .hooks import Diagnostic, DiagnosticsObserver, HookPipeline, Hooks
from .interfaces import (
    READ_ONLY_FIELDS,
    TIME_FIELDS,
    CopyOptions,
    DeleteOptions,
    EntryType,
    HeadOptions,
    InvalidModificationError,
    ListOptions,
    MkcolOptions,
    MoveOptions,
    NoModificationAllowedError,
    NotFoundError,
    NotReadableError,
    NotSupportedError,
    PatchOptions,
    PathExistsError,
    Stats,
    merge_options,
)
from .path_utils import ROOT, check_path, get_parent_path, normalize_path
from .validation import validate_entry_type

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .entry import WriteSource
    from .interfaces import (
        ChecksumAlgorithm,
        FileSystemError,
        OpenOptions,
        WriteOptions,
        XmitError,
    )
    from .streams import ReadStream, WriteStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileSystemOptions:
    """Construction-time configuration shared by every backend.

    Attributes:
        hooks: Before/after callbacks applied to every primitive.
        default_delete_options: Defaults for ``delete``/``rm``.
        default_mkcol_options: Defaults for ``mkcol``/``mkdir``.
        default_copy_options: Defaults for ``copy``/``cp``.
        default_move_options: Defaults for ``move``/``mv``.
        diagnostics: Observer receiving the events the core does not raise
            (dropped patch fields, failing after-hooks).

    """

    hooks: Hooks = field(default_factory=Hooks)
    default_delete_options: DeleteOptions = field(default_factory=DeleteOptions)
    default_mkcol_options: MkcolOptions = field(default_factory=MkcolOptions)
    default_copy_options: CopyOptions = field(default_factory=CopyOptions)
    default_move_options: MoveOptions = field(default_factory=MoveOptions)
    diagnostics: Optional[DiagnosticsObserver] = None


def _is_directory_path(path: str) -> bool:
    return isinstance(path, str) and path.endswith("/")


class FileSystem(ABC):
    """Abstract file system bound to one repository."""

    def __init__(self, repository: str, options: FileSystemOptions | None = None) -> None:
        """Initialise the file system.

        Args:
            repository: Name identifying the storage in errors and URLs.
            options: Hooks, option defaults and diagnostics observer.

        """
        self._repository = repository
        self._options = options or FileSystemOptions()
        self._pipeline = HookPipeline(
            self._options.hooks,
            repository=repository,
            observer=self._options.diagnostics,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(repository={self._repository!r})"

    @property
    def repository(self) -> str:
        """Name of the storage this file system is bound to."""
        return self._repository

    @property
    def options(self) -> FileSystemOptions:
        """Construction-time configuration."""
        return self._options

    @property
    def hooks(self) -> Hooks:
        """The hook record run around every primitive."""
        return self._options.hooks

    @property
    def pipeline(self) -> HookPipeline:
        """The hook pipeline entries and streams dispatch through."""
        return self._pipeline

    @property
    def default_delete_options(self) -> DeleteOptions:
        return self._options.default_delete_options

    @property
    def default_mkcol_options(self) -> MkcolOptions:
        return self._options.default_mkcol_options

    @property
    def default_copy_options(self) -> CopyOptions:
        return self._options.default_copy_options

    @property
    def default_move_options(self) -> MoveOptions:
        return self._options.default_move_options

    # Entry handles

    def get_file(self, path: str) -> File:
        """Return a file handle; no I/O is performed.

        Raises:
            PathSyntaxError: If the path is malformed or escapes the root.
            SecurityError: If the path contains an illegal character.

        """
        return File(self, check_path(path, repository=self._repository))

    def get_directory(self, path: str) -> Directory:
        """Return a directory handle; no I/O is performed."""
        return Directory(self, check_path(path, repository=self._repository))

    async def get_entry(
        self,
        path: str,
        options: HeadOptions | None = None,
        **overrides: Any,
    ) -> File | Directory:
        """Return a handle of the kind that exists at ``path``.

        A trailing ``/`` or an explicit ``type`` decides the kind without I/O.

        Raises:
            NotFoundError: If nothing exists at an untyped path.

        """
        options = merge_options(options, HeadOptions(), overrides)
        kind = options.type
        if kind is None and _is_directory_path(path):
            kind = EntryType.DIRECTORY
        if kind is EntryType.FILE:
            return self.get_file(path)
        if kind is EntryType.DIRECTORY:
            return self.get_directory(path)
        stats = await self.head(path, options)
        return self.get_file(path) if stats.is_file else self.get_directory(path)

    # Dispatch

    async def head(self, path: str, options: HeadOptions | None = None, **overrides: Any) -> Stats:
        """Return the stats of ``path``.

        A trailing ``/`` requests a directory. On a backend without
        directories, a directory head always succeeds with empty stats.

        Raises:
            NotFoundError: If nothing exists at ``path``.
            TypeMismatchError: If the entry is not of the requested ``type``.
            NotReadableError: If the backend failed to read the metadata.

        """
        options = merge_options(options, HeadOptions(), overrides)
        checked = check_path(path, repository=self._repository)
        if options.type is None and _is_directory_path(path):
            options = replace(options, type=EntryType.DIRECTORY)
        if options.type is EntryType.DIRECTORY and not self.supports_directories():
            return Stats()

        stats = await self._pipeline.before(
            "before_head",
            checked,
            options,
            ignore=options.ignore_hook,
        )
        if stats is not None:
            validate_entry_type(stats, options.type, checked, repository=self._repository)
            return stats
        with normalized_errors(NotReadableError, repository=self._repository, path=checked):
            stats = await self._head(checked, options)
        validate_entry_type(stats, options.type, checked, repository=self._repository)
        self._pipeline.after("after_head", checked, stats, ignore=options.ignore_hook)
        return stats

    stat = head

    async def list(self, path: str, options: ListOptions | None = None, **overrides: Any) -> list[str]:
        """Return the normalized paths of the immediate children of a directory.

        Raises:
            NotFoundError: If the directory is missing.
            TypeMismatchError: If ``path`` is a file.

        """
        options = merge_options(options, ListOptions(), overrides)
        checked = check_path(path, repository=self._repository)
        children = await self._pipeline.before(
            "before_list",
            checked,
            options,
            ignore=options.ignore_hook,
        )
        if children is not None:
            return [normalize_path(child) for child in children]
        if checked != ROOT:
            await self.head(checked, type=EntryType.DIRECTORY, ignore_hook=options.ignore_hook)
        with normalized_errors(NotReadableError, repository=self._repository, path=checked):
            children = [normalize_path(child) for child in await self._list(checked, options)]
        self._pipeline.after("after_list", checked, tuple(children), ignore=options.ignore_hook)
        return children

    ls = list
    readdir = list

    async def mkcol(self, path: str, options: MkcolOptions | None = None, **overrides: Any) -> None:
        """Create a directory.

        Raises:
            NotSupportedError: If the backend has no directories.
            PathExistsError: If the directory exists and ``force`` is False.
            NotFoundError: If the parent is missing and ``recursive`` is False.
            TypeMismatchError: If a file exists at ``path`` or its parent.

        """
        options = merge_options(options, self.default_mkcol_options, overrides)
        checked = check_path(path, repository=self._repository)
        if not self.supports_directories():
            raise NotSupportedError(
                "Directories are not supported",
                repository=self._repository,
                path=checked,
            )
        try:
            await self.head(checked, type=EntryType.DIRECTORY, ignore_hook=options.ignore_hook)
        except NotFoundError:
            pass
        else:
            if options.force:
                return
            raise PathExistsError(repository=self._repository, path=checked)

        parent = get_parent_path(checked)
        try:
            await self.head(parent, type=EntryType.DIRECTORY, ignore_hook=options.ignore_hook)
        except NotFoundError:
            if not options.recursive:
                raise NotFoundError(
                    "Parent directory not found",
                    repository=self._repository,
                    path=parent,
                ) from None
            await self.mkcol(parent, replace(options, force=True))

        if await self._pipeline.before(
            "before_mkcol",
            checked,
            options,
            ignore=options.ignore_hook,
        ) is not None:
            return
        with normalized_errors(NoModificationAllowedError, repository=self._repository, path=checked):
            await self._mkcol(checked, options)
        self._pipeline.after("after_mkcol", checked, ignore=options.ignore_hook)

    mkdir = mkcol

    async def delete(
        self,
        path: str,
        options: DeleteOptions | None = None,
        **overrides: Any,
    ) -> list[FileSystemError]:
        """Delete the entry at ``path``; see ``Entry.delete``."""
        options = merge_options(options, self.default_delete_options, overrides)
        try:
            entry = await self.get_entry(path, ignore_hook=options.ignore_hook)
        except NotFoundError:
            if options.force:
                return []
            raise
        return await entry.delete(options)

    rm = delete

    async def patch(
        self,
        path: str,
        props: Stats | Mapping[str, Any],
        options: PatchOptions | None = None,
        **overrides: Any,
    ) -> None:
        """Update metadata of the entry at ``path``.

        Timestamps the backend cannot persist, values of the wrong type and
        unchanged values are dropped with a diagnostic; the remaining fields
        reach the backend in a single ``_patch`` call. Nothing reaches the
        backend when no field is left.

        Raises:
            InvalidModificationError: If ``size`` or ``etag`` is supplied.
            NotFoundError: If the entry is missing.

        """
        options = merge_options(options, PatchOptions(), overrides)
        checked = check_path(path, repository=self._repository)
        kind = options.type
        if kind is None and _is_directory_path(path):
            kind = EntryType.DIRECTORY
        values = _patch_values(props)
        for name in READ_ONLY_FIELDS:
            if values.pop(name, None) is not None:
                raise InvalidModificationError.read_only_field(
                    name,
                    checked,
                    repository=self._repository,
                )

        stats = await self.head(checked, type=kind, ignore_hook=options.ignore_hook)
        changes = self._filter_patch(checked, values, stats)
        if not changes:
            logger.debug("Nothing to patch for %s", checked)
            return

        if await self._pipeline.before(
            "before_patch",
            checked,
            changes,
            options,
            ignore=options.ignore_hook,
        ) is not None:
            return
        with normalized_errors(NoModificationAllowedError, repository=self._repository, path=checked):
            await self._patch(checked, changes, options)
        self._pipeline.after("after_patch", checked, dict(changes), ignore=options.ignore_hook)

    async def copy(
        self,
        from_path: str,
        to_path: str,
        options: CopyOptions | None = None,
        **overrides: Any,
    ) -> list[XmitError]:
        """Copy the entry at ``from_path`` to ``to_path``; see ``univ_fs.xmit``."""
        source = await self.get_entry(from_path)
        return await source.copy(to_path, options, **overrides)

    cp = copy

    async def move(
        self,
        from_path: str,
        to_path: str,
        options: MoveOptions | None = None,
        **overrides: Any,
    ) -> list[XmitError]:
        """Move the entry at ``from_path`` to ``to_path``; see ``univ_fs.xmit``."""
        source = await self.get_entry(from_path)
        return await source.move(to_path, options, **overrides)

    mv = move

    async def read(
        self,
        path: str,
        options: OpenOptions | None = None,
        *,
        binary: bool = True,
        **overrides: Any,
    ) -> bytes | str:
        """Return the content of the file at ``path``."""
        return await self.get_file(path).read(options, binary=binary, **overrides)

    async def write(
        self,
        path: str,
        data: WriteSource,
        options: WriteOptions | None = None,
        **overrides: Any,
    ) -> int:
        """Write ``data`` to the file at ``path``; see ``File.write``."""
        return await self.get_file(path).write(data, options, **overrides)

    async def hash(
        self,
        path: str,
        algorithm: ChecksumAlgorithm = "sha256",
        options: OpenOptions | None = None,
        **overrides: Any,
    ) -> str:
        """Return the hexadecimal digest of the file at ``path``."""
        return await self.get_file(path).hash(algorithm, options, **overrides)

    async def to_url(self, path: str, options: HeadOptions | None = None, **overrides: Any) -> str:
        """Return a URL addressing the entry at ``path``.

        Raises:
            NotSupportedError: If the backend has no URL form.

        """
        checked = check_path(path, repository=self._repository)
        stats = await self.head(path, options, **overrides)
        with normalized_errors(NotReadableError, repository=self._repository, path=checked):
            return await self._to_url(checked, stats.is_directory)

    async def flush_notifications(self) -> None:
        """Wait until every scheduled after-hook finished."""
        await self._pipeline.drain()

    # Internals shared with entries

    async def _dispatch_delete(self, path: str, options: DeleteOptions) -> None:
        """Remove one node through the hook pipeline."""
        if await self._pipeline.before(
            "before_delete",
            path,
            options,
            ignore=options.ignore_hook,
        ) is not None:
            return
        with normalized_errors(NoModificationAllowedError, repository=self._repository, path=path):
            await self._delete(path, options)
        self._pipeline.after("after_delete", path, ignore=options.ignore_hook)

    def _filter_patch(self, path: str, values: dict[str, Any], stats: Stats) -> dict[str, Any]:
        capabilities = {
            "accessed": self.can_patch_accessed(),
            "created": self.can_patch_created(),
            "modified": self.can_patch_modified(),
            "deleted": False,
        }
        changes: dict[str, Any] = {}
        for name, value in values.items():
            if name in TIME_FIELDS:
                if value is None:
                    continue
                if not capabilities[name]:
                    self._drop(path, name, "patch.unsupported", f"Cannot patch {name} on {type(self).__name__}")
                    continue
                if not isinstance(value, datetime):
                    self._drop(path, name, "patch.illegal_value", f"{name} must be a datetime, not {type(value).__name__}")
                    continue
                current = getattr(stats, name)
            else:
                if not self.can_patch_props():
                    self._drop(path, name, "patch.unsupported", f"Cannot store property {name} on {type(self).__name__}")
                    continue
                current = stats.props.get(name)
                if current is not None and value is not None and type(current) is not type(value):
                    self._drop(
                        path,
                        name,
                        "patch.illegal_type",
                        f"{name} must be {type(current).__name__}, not {type(value).__name__}",
                    )
                    continue
            if current == value:
                continue
            changes[name] = value
        return changes

    def _drop(self, path: str, name: str, code: str, message: str) -> None:
        self._pipeline.emit(
            Diagnostic(
                code=code,
                message=message,
                repository=self._repository,
                path=path,
                field=name,
            ),
        )

    # Capabilities

    @abstractmethod
    def supports_directories(self) -> bool:
        """Whether the backend stores explicit directories."""

    @abstractmethod
    def can_patch_accessed(self) -> bool:
        """Whether the access time can be set."""

    @abstractmethod
    def can_patch_created(self) -> bool:
        """Whether the creation time can be set."""

    @abstractmethod
    def can_patch_modified(self) -> bool:
        """Whether the modification time can be set."""

    def can_patch_props(self) -> bool:
        """Whether custom properties can be stored."""
        return True

    # Backend primitives

    @abstractmethod
    async def _head(self, path: str, options: HeadOptions) -> Stats:
        """Return the stats of ``path``; raise a not-found error when absent."""

    @abstractmethod
    async def _list(self, path: str, options: ListOptions) -> list[str]:
        """Return the paths of the immediate children of directory ``path``."""

    @abstractmethod
    async def _mkcol(self, path: str, options: MkcolOptions) -> None:
        """Create directory ``path``; its parent exists."""

    @abstractmethod
    async def _delete(self, path: str, options: DeleteOptions) -> None:
        """Remove the single node ``path``; directories are empty."""

    @abstractmethod
    async def _patch(self, path: str, props: dict[str, Any], options: PatchOptions) -> None:
        """Persist the filtered ``props`` of ``path``."""

    @abstractmethod
    async def _open_read_stream(self, path: str, options: OpenOptions) -> ReadStream:
        """Open a read stream on the existing file ``path``."""

    @abstractmethod
    async def _open_write_stream(self, path: str, options: WriteOptions) -> WriteStream:
        """Open a write stream; ``options.create`` tells whether the file is new."""

    async def _to_url(self, path: str, is_directory: bool) -> str:
        """Return the URL of ``path``."""
        raise NotSupportedError(
            f"{type(self).__name__} has no URL form",
            repository=self._repository,
            path=path,
        )


def _patch_values(props: Stats | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(props, Stats):
        values: dict[str, Any] = {name: getattr(props, name) for name in (*READ_ONLY_FIELDS, *TIME_FIELDS)}
        values.update(props.props)
        return values
    return dict(props)
