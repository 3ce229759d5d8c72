"""File and directory handles.

An entry is the identity of one normalized path within one file system. It
owns no backend state: every call re-queries the backend through the file
system it was created by (and therefore through its hooks). ``File`` and
``Directory`` form a closed variant tagged by ``Entry.type``.

Handles are created without I/O, so a handle can point at a path that does
not exist yet:

    >>> report = fs.get_file("/reports/2024.csv")
    >>> await report.write("id,total\\n")
    >>> await report.head()
    Stats(size=9, ...)

"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import TYPE_CHECKING, Any, ClassVar, Union

from . import xmit
from .compat import normalized_errors
from .interfaces import (
    DeleteOptions,
    EntryType,
    FileSystemError,
    InvalidModificationError,
    NoModificationAllowedError,
    NotFoundError,
    NotReadableError,
    OpenOptions,
    SeekOrigin,
    WriteOptions,
    merge_options,
)
from .path_utils import ROOT, get_name, get_parent_path
from .utils import aiter_chunks, get_hasher
from .validation import validate_create_flag

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Iterable, Mapping
    from typing import BinaryIO

    from .filesystem import FileSystem
    from .interfaces import (
        ChecksumAlgorithm,
        CopyOptions,
        HeadOptions,
        ListOptions,
        MkcolOptions,
        MoveOptions,
        PatchOptions,
        Stats,
        XmitError,
    )
    from .streams import ReadStream, WriteStream
    from .utils import ByteLike

    WriteSource = Union[
        ByteLike,
        BinaryIO,
        Iterable[ByteLike],
        AsyncIterable[ByteLike],
    ]

logger = logging.getLogger(__name__)


class Entry(ABC):
    """Handle on one path of a file system."""

    type: ClassVar[EntryType]

    def __init__(self, fs: FileSystem, path: str) -> None:
        """Bind the handle; ``path`` must already be normalized."""
        self._fs = fs
        self._path = path

    @property
    def fs(self) -> FileSystem:
        """The file system this entry belongs to."""
        return self._fs

    @property
    def path(self) -> str:
        """Absolute normalized path."""
        return self._path

    @property
    def name(self) -> str:
        """Last path segment; empty for the root."""
        return get_name(self._path)

    @property
    def parent(self) -> Directory:
        """Handle on the containing directory; the root is its own parent."""
        return self._fs.get_directory(get_parent_path(self._path))

    async def head(self, options: HeadOptions | None = None, **overrides: Any) -> Stats:
        """Return the entry's stats, checking that it has this entry's kind."""
        overrides["type"] = self.type
        return await self._fs.head(self._path, options, **overrides)

    stat = head

    async def exists(self) -> bool:
        """Return True when the entry exists with this entry's kind."""
        try:
            await self.head()
        except NotFoundError:
            return False
        return True

    async def patch(
        self,
        props: Stats | Mapping[str, Any],
        options: PatchOptions | None = None,
        **overrides: Any,
    ) -> None:
        """Update metadata; see ``FileSystem.patch``."""
        overrides["type"] = self.type
        await self._fs.patch(self._path, props, options, **overrides)

    async def delete(
        self,
        options: DeleteOptions | None = None,
        **overrides: Any,
    ) -> list[FileSystemError]:
        """Delete the entry.

        Returns:
            Failures collected under ``force`` during a recursive delete; an
            empty list means every node was removed.

        Raises:
            NotFoundError: If the entry is missing and ``force`` is False.
            InvalidModificationError: If a non-empty directory is deleted
                without ``recursive``.

        """
        options = merge_options(options, self._fs.default_delete_options, overrides)
        errors: list[FileSystemError] = []
        await self._delete(options, errors)
        return errors

    rm = delete
    remove = delete

    async def copy(
        self,
        to: Entry | str,
        options: CopyOptions | None = None,
        **overrides: Any,
    ) -> list[XmitError]:
        """Copy this entry to ``to``; see ``univ_fs.xmit``."""
        options = merge_options(options, self._fs.default_copy_options, overrides)
        return await xmit.copy(self, self._counterpart(to), options)  # type: ignore[arg-type]

    cp = copy

    async def move(
        self,
        to: Entry | str,
        options: MoveOptions | None = None,
        **overrides: Any,
    ) -> list[XmitError]:
        """Move this entry to ``to``; see ``univ_fs.xmit``."""
        options = merge_options(options, self._fs.default_move_options, overrides)
        return await xmit.move(self, self._counterpart(to), options)  # type: ignore[arg-type]

    mv = move

    async def to_url(self) -> str:
        """Return a URL addressing the entry, when the backend has one."""
        return await self._fs.to_url(self._path, type=self.type)

    def __str__(self) -> str:
        return f"{self._fs.repository}:{self._path}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return (
            self.type is other.type
            and self._fs is other._fs
            and self._path == other._path
        )

    def __hash__(self) -> int:
        return hash((self.type, id(self._fs), self._path))

    def _counterpart(self, to: Entry | str) -> Entry:
        fs, path = (to.fs, to.path) if isinstance(to, Entry) else (self._fs, to)
        if self.type is EntryType.FILE:
            return fs.get_file(path)
        return fs.get_directory(path)

    @abstractmethod
    async def _delete(self, options: DeleteOptions, errors: list[FileSystemError]) -> None:
        """Delete the entry, appending tolerated failures to ``errors``."""


class File(Entry):
    """Handle on a file."""

    type = EntryType.FILE

    async def open_read_stream(
        self,
        options: OpenOptions | None = None,
        **overrides: Any,
    ) -> ReadStream:
        """Open a read stream positioned at the start of the file.

        Raises:
            NotFoundError: If the file is missing.
            TypeMismatchError: If the path is a directory.

        """
        fs = self._fs
        options = merge_options(options, OpenOptions(), overrides)
        stream = await fs.pipeline.before(
            "before_get",
            self._path,
            options,
            ignore=options.ignore_hook,
        )
        if stream is not None:
            return stream
        await self.head(ignore_hook=options.ignore_hook)
        with normalized_errors(NotReadableError, repository=fs.repository, path=self._path):
            stream = await fs._open_read_stream(self._path, options)
        fs.pipeline.after("after_get", self._path, ignore=options.ignore_hook)
        return stream

    async def open_write_stream(
        self,
        options: WriteOptions | None = None,
        **overrides: Any,
    ) -> WriteStream:
        """Open a write stream, creating or overwriting the file.

        ``create=None`` creates an absent file and overwrites a present one,
        ``create=True`` requires absence, ``create=False`` requires presence.
        With ``append`` the stream starts at the end of the existing content.

        Raises:
            PathExistsError: If ``create`` is True and the file exists.
            NotFoundError: If ``create`` is False and the file is missing.
            TypeMismatchError: If the path is a directory.

        """
        fs = self._fs
        options = merge_options(options, WriteOptions(), overrides)
        try:
            await self.head(ignore_hook=options.ignore_hook)
            exists = True
        except NotFoundError:
            exists = False
        create = validate_create_flag(
            exists,
            options.create,
            self._path,
            repository=fs.repository,
        )
        options = replace(options, create=create)

        slot = "before_post" if create else "before_put"
        stream = await fs.pipeline.before(slot, self._path, options, ignore=options.ignore_hook)
        if stream is None:
            with normalized_errors(
                NoModificationAllowedError,
                repository=fs.repository,
                path=self._path,
            ):
                stream = await fs._open_write_stream(self._path, options)
        if options.append and not create:
            try:
                await stream.seek(0, SeekOrigin.END)
            except BaseException:
                await stream.close()
                raise
        return stream

    async def read(
        self,
        options: OpenOptions | None = None,
        *,
        binary: bool = True,
        **overrides: Any,
    ) -> bytes | str:
        """Return the whole content, as bytes or as UTF-8 text."""
        buffer = io.BytesIO()
        stream = await self.open_read_stream(options, **overrides)
        try:
            async for chunk in stream:
                buffer.write(chunk)
        finally:
            await stream.close()
        payload = buffer.getvalue()
        return payload if binary else payload.decode("utf-8")

    async def write(
        self,
        data: WriteSource,
        options: WriteOptions | None = None,
        **overrides: Any,
    ) -> int:
        """Write ``data`` through a write stream and return the bytes written.

        ``data`` may be bytes-like, text, a binary file object, or a sync or
        async iterable of chunks; it is written ``buffer_size`` bytes at a time.
        """
        stream = await self.open_write_stream(options, **overrides)
        total = 0
        try:
            async for chunk in aiter_chunks(data, stream.buffer_size):
                total += await stream.write(chunk)
            if not stream.changed and not stream.options.append:
                await stream.truncate(0)
        finally:
            await stream.close()
        return total

    async def hash(
        self,
        algorithm: ChecksumAlgorithm = "sha256",
        options: OpenOptions | None = None,
        **overrides: Any,
    ) -> str:
        """Return the hexadecimal digest of the content, read chunk by chunk."""
        hasher = get_hasher(algorithm)
        stream = await self.open_read_stream(options, **overrides)
        try:
            async for chunk in stream:
                hasher.update(chunk)
        finally:
            await stream.close()
        return hasher.hexdigest()

    async def _delete(self, options: DeleteOptions, errors: list[FileSystemError]) -> None:
        try:
            await self.head(ignore_hook=options.ignore_hook)
        except NotFoundError:
            if options.force:
                return
            raise
        await self._fs._dispatch_delete(self._path, options)


class Directory(Entry):
    """Handle on a directory."""

    type = EntryType.DIRECTORY

    async def list(self, options: ListOptions | None = None, **overrides: Any) -> list[str]:
        """Return the normalized paths of the immediate children."""
        return await self._fs.list(self._path, options, **overrides)

    ls = list
    readdir = list

    async def mkcol(self, options: MkcolOptions | None = None, **overrides: Any) -> None:
        """Create the directory; see ``FileSystem.mkcol``."""
        await self._fs.mkcol(self._path, options, **overrides)

    mkdir = mkcol

    async def _delete(self, options: DeleteOptions, errors: list[FileSystemError]) -> None:
        fs = self._fs
        try:
            await self.head(ignore_hook=options.ignore_hook)
        except NotFoundError:
            if options.force:
                return
            raise

        children = await self.list(ignore_hook=options.ignore_hook)
        if children and not options.recursive:
            raise InvalidModificationError.directory_not_empty(
                self._path,
                repository=fs.repository,
            )

        collected = len(errors)
        for child_path in children:
            try:
                child = await fs.get_entry(child_path, ignore_hook=options.ignore_hook)
                await child._delete(options, errors)
            except FileSystemError as exc:
                if not options.force:
                    raise
                logger.debug("Could not delete %s: %s", child_path, exc)
                errors.append(exc)

        # Entries that failed are still inside, so the directory cannot go.
        if len(errors) > collected:
            return
        if self._path == ROOT or not fs.supports_directories():
            return
        await fs._dispatch_delete(self._path, options)
