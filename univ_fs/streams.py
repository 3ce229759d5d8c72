"""Sequential, position-aware access to file content.

Backends subclass ``ReadStream`` and ``WriteStream`` and implement the
underscore primitives (``_read``, ``_write``, ``_truncate``, ``_seek``,
``_close``). The base classes track ``position``, clamp seeks into
``[0, size]``, normalize backend failures and fire the write notifications
on close.

Streams are scoped resources; use them as async context managers:

    >>> async with await fs.get_file("/log.txt").open_write_stream(append=True) as ws:
    ...     await ws.write(b"line\\n")

"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from .compat import normalized_errors
from .interfaces import (
    FileSystemError,
    NoModificationAllowedError,
    NotReadableError,
    OpenOptions,
    SeekOrigin,
    WriteOptions,
)
from .utils import coerce_to_bytes
from .validation import validate_buffer_size

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .entry import File
    from .utils import ByteLike


class Stream(ABC):
    """Common state of read and write streams."""

    failure: ClassVar[type[FileSystemError]] = NotReadableError

    def __init__(self, file: File, options: OpenOptions) -> None:
        """Bind the stream to a file handle and its open options."""
        validate_buffer_size(options.buffer_size)
        self._file = file
        self._options = options
        self._closed = False
        self.position = 0

    @property
    def file(self) -> File:
        """The file this stream reads or writes."""
        return self._file

    @property
    def options(self) -> OpenOptions:
        """Options the stream was opened with."""
        return self._options

    @property
    def buffer_size(self) -> int:
        """Default chunk size for reads and copies."""
        return self._options.buffer_size

    @property
    def closed(self) -> bool:
        """Whether ``close`` has been called."""
        return self._closed

    async def seek(self, offset: int, origin: SeekOrigin = SeekOrigin.BEGIN) -> int:
        """Move the cursor and return the new position.

        The target is clamped into ``[0, size]``.
        """
        self._check_open()
        with self._normalized():
            size = await self._size()
            if origin == SeekOrigin.BEGIN:
                start = offset
            elif origin == SeekOrigin.CURRENT:
                start = self.position + offset
            else:
                start = size + offset
            start = min(max(start, 0), size)
            await self._seek(start)
        self.position = start
        return start

    async def close(self) -> None:
        """Release backend resources; calling it again is a no-op."""
        if self._closed:
            return
        self._closed = True
        try:
            with self._normalized():
                await self._close()
        finally:
            self.position = 0

    async def __aenter__(self) -> Any:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"position={self.position}"
        return f"{type(self).__name__}({self._file}, {state})"

    async def _size(self) -> int:
        """Return the current content length; backends may answer locally."""
        stats = await self._file.head(ignore_hook=True)
        return stats.size or 0

    def _check_open(self) -> None:
        if self._closed:
            raise self.failure(
                "Stream is closed",
                repository=self._file.fs.repository,
                path=self._file.path,
            )

    def _normalized(self) -> Any:
        return normalized_errors(
            self.failure,
            repository=self._file.fs.repository,
            path=self._file.path,
        )

    @abstractmethod
    async def _seek(self, start: int) -> None:
        """Position the backend cursor at ``start``."""

    @abstractmethod
    async def _close(self) -> None:
        """Release backend resources."""


class ReadStream(Stream):
    """Read cursor over a file's content."""

    async def read(self, size: int | None = None) -> bytes:
        """Read up to ``size`` bytes (``buffer_size`` by default).

        Returns:
            The next chunk, or ``b""`` once the end of the file is reached.

        """
        self._check_open()
        with self._normalized():
            chunk = await self._read(self.buffer_size if size is None else size)
        self.position += len(chunk)
        return chunk

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read()
            if not chunk:
                break
            yield chunk

    @abstractmethod
    async def _read(self, size: int) -> bytes:
        """Return up to ``size`` bytes from the backend cursor."""


class WriteStream(Stream):
    """Write cursor over a file's content.

    ``changed`` records whether ``write`` or ``truncate`` was called; only a
    changed stream fires ``after_post`` (file created) or ``after_put`` (file
    overwritten) when it is closed.
    """

    failure = NoModificationAllowedError

    def __init__(self, file: File, options: WriteOptions) -> None:
        """Bind the stream to a file handle and its resolved write options."""
        super().__init__(file, options)
        self.changed = False

    @property
    def options(self) -> WriteOptions:
        """Options the stream was opened with, ``create`` resolved to a bool."""
        return self._options  # type: ignore[return-value]

    @property
    def created(self) -> bool:
        """Whether opening the stream created the file."""
        return bool(self.options.create)

    async def write(self, data: ByteLike) -> int:
        """Write ``data`` at the cursor and return the number of bytes written."""
        self._check_open()
        payload = coerce_to_bytes(data)
        with self._normalized():
            written = await self._write(payload)
        self.position += written
        self.changed = True
        return written

    async def truncate(self, size: int) -> None:
        """Set the content length to ``size``, pulling the cursor back if needed."""
        self._check_open()
        with self._normalized():
            await self._truncate(size)
        if size < self.position:
            self.position = size
        self.changed = True

    async def close(self) -> None:
        """Close the stream and notify ``after_post``/``after_put`` if it changed."""
        if self._closed:
            return
        await super().close()
        if not self.changed:
            return
        slot = "after_post" if self.created else "after_put"
        self._file.fs.pipeline.after(
            slot,
            self._file.path,
            ignore=self.options.ignore_hook,
        )

    @abstractmethod
    async def _write(self, payload: bytes) -> int:
        """Write ``payload`` at the backend cursor."""

    @abstractmethod
    async def _truncate(self, size: int) -> None:
        """Set the backend content length."""
