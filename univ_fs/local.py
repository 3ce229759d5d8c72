"""Local disk backend.

``LocalFileSystem`` maps normalized paths onto a root directory on the local
disk. Blocking calls run through ``asyncio.to_thread()`` so the event loop
stays responsive.

Path Validation:
    Paths reaching the backend are already normalized and cannot contain
    ``..``. ``_resolve()`` additionally follows symlinks and rejects any
    target that leaves the root, so a link pointing outside cannot be used to
    escape it.

Metadata:
    Access and modification times can be patched through ``os.utime``. The
    creation time is read from ``st_ctime`` and cannot be changed, and custom
    properties have nowhere to be stored; ``patch`` drops both with a
    diagnostic.

Example:

    >>> fs = LocalFileSystem(root=Path("/data/files"))
    >>> await fs.write("/document.txt", b"Hello, world!")
    13
    >>> await fs.to_url("/document.txt")
    'file:///data/files/document.txt'

"""

from __future__ import annotations

import asyncio
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Union

from .filesystem import FileSystem
from .interfaces import NotFoundError, SecurityError, Stats
from .path_utils import ROOT, join_paths
from .streams import ReadStream, WriteStream

if TYPE_CHECKING:
    from .entry import File
    from .filesystem import FileSystemOptions
    from .interfaces import (
        DeleteOptions,
        HeadOptions,
        ListOptions,
        MkcolOptions,
        OpenOptions,
        PatchOptions,
        WriteOptions,
    )

PathLike = Union[str, os.PathLike]


class LocalFileSystem(FileSystem):
    """File system rooted at a directory of the local disk."""

    def __init__(
        self,
        root: PathLike | None = None,
        options: FileSystemOptions | None = None,
        *,
        create_root: bool = True,
    ) -> None:
        """Initialise the file system rooted at the given directory.

        Args:
            root: Root directory (defaults to the current working directory).
            options: Hooks, option defaults and diagnostics observer.
            create_root: Create the root directory if it doesn't exist.

        Raises:
            NotFoundError: If the root is missing and ``create_root`` is False.

        """
        base = Path(root or Path.cwd()).expanduser()
        self._root = base.resolve(strict=False)
        super().__init__(str(self._root), options)
        if create_root:
            self._root.mkdir(parents=True, exist_ok=True)
        elif not self._root.is_dir():
            raise NotFoundError("Root directory not found", repository=self.repository, path=ROOT)

    @property
    def root(self) -> Path:
        """Absolute path used as the file system root."""
        return self._root

    def supports_directories(self) -> bool:
        return True

    def can_patch_accessed(self) -> bool:
        return True

    def can_patch_created(self) -> bool:
        return False

    def can_patch_modified(self) -> bool:
        return True

    def can_patch_props(self) -> bool:
        return False

    async def _head(self, path: str, options: HeadOptions) -> Stats:
        return await asyncio.to_thread(self._stat, path)

    async def _list(self, path: str, options: ListOptions) -> list[str]:
        target = self._resolve(path)
        names = await asyncio.to_thread(os.listdir, target)
        return sorted(join_paths(path, name) for name in names)

    async def _mkcol(self, path: str, options: MkcolOptions) -> None:
        await asyncio.to_thread(self._resolve(path).mkdir)

    async def _delete(self, path: str, options: DeleteOptions) -> None:
        target = self._resolve(path, follow_symlinks=False)
        if target.is_dir() and not target.is_symlink():
            await asyncio.to_thread(target.rmdir)
        else:
            await asyncio.to_thread(target.unlink)

    async def _patch(self, path: str, props: dict[str, Any], options: PatchOptions) -> None:
        await asyncio.to_thread(self._utime, path, props)

    async def _open_read_stream(self, path: str, options: OpenOptions) -> LocalReadStream:
        fh = await asyncio.to_thread(self._resolve(path).open, "rb")
        return LocalReadStream(self.get_file(path), options, fh)

    async def _open_write_stream(self, path: str, options: WriteOptions) -> LocalWriteStream:
        fh = await asyncio.to_thread(self._open_for_write, path, options.append)
        return LocalWriteStream(self.get_file(path), options, fh)

    async def _to_url(self, path: str, is_directory: bool) -> str:
        url = self._resolve(path).as_uri()
        if is_directory and not url.endswith("/"):
            url += "/"
        return url

    def _stat(self, path: str) -> Stats:
        target = self._resolve(path)
        try:
            stat_result = target.stat()
        except NotADirectoryError as exc:
            # A file sits where a directory was expected along the way.
            raise FileNotFoundError(str(target)) from exc
        is_directory = stat.S_ISDIR(stat_result.st_mode)
        modified_ns = stat_result.st_mtime_ns
        return Stats(
            size=None if is_directory else stat_result.st_size,
            accessed=_timestamp_to_datetime(stat_result.st_atime),
            modified=_timestamp_to_datetime(stat_result.st_mtime),
            created=_timestamp_to_datetime(stat_result.st_ctime),
            etag=None if is_directory else f'"{stat_result.st_size:x}-{modified_ns:x}"',
        )

    def _utime(self, path: str, props: dict[str, Any]) -> None:
        target = self._resolve(path)
        current = target.stat()
        accessed = props.get("accessed")
        modified = props.get("modified")
        atime_ns = _datetime_to_ns(accessed) if accessed else current.st_atime_ns
        mtime_ns = _datetime_to_ns(modified) if modified else current.st_mtime_ns
        os.utime(target, ns=(atime_ns, mtime_ns))

    def _open_for_write(self, path: str, append: bool) -> BinaryIO:
        target = self._resolve(path)
        if not target.exists():
            return target.open("w+b")
        if target.is_dir():
            raise IsADirectoryError(str(target))
        fh = target.open("r+b")
        if not append:
            fh.truncate(0)
        return fh

    def _resolve(self, path: str, *, follow_symlinks: bool = True) -> Path:
        """Map a normalized path onto the disk, refusing to leave the root.

        Raises:
            SecurityError: If the path resolves outside the root.

        """
        relative = path.lstrip("/")
        candidate = self._root / relative if relative else self._root
        if follow_symlinks:
            candidate = candidate.resolve(strict=False)
        else:
            candidate = candidate.parent.resolve(strict=False) / candidate.name
        try:
            candidate.relative_to(self._root)
        except ValueError as exc:
            raise SecurityError(
                "Path resolves outside the root",
                repository=self.repository,
                path=path,
            ) from exc
        return candidate


class LocalReadStream(ReadStream):
    """Read cursor over an open binary file."""

    def __init__(self, file: File, options: OpenOptions, fh: BinaryIO) -> None:
        super().__init__(file, options)
        self._fh = fh

    async def _read(self, size: int) -> bytes:
        return await asyncio.to_thread(self._fh.read, size)

    async def _seek(self, start: int) -> None:
        await asyncio.to_thread(self._fh.seek, start)

    async def _size(self) -> int:
        return await asyncio.to_thread(_file_size, self._fh)

    async def _close(self) -> None:
        await asyncio.to_thread(self._fh.close)


class LocalWriteStream(WriteStream):
    """Write cursor over an open binary file."""

    def __init__(self, file: File, options: WriteOptions, fh: BinaryIO) -> None:
        super().__init__(file, options)
        self._fh = fh

    async def _write(self, payload: bytes) -> int:
        return await asyncio.to_thread(self._fh.write, payload)

    async def _truncate(self, size: int) -> None:
        await asyncio.to_thread(_truncate_file, self._fh, size)

    async def _seek(self, start: int) -> None:
        await asyncio.to_thread(self._fh.seek, start)

    async def _size(self) -> int:
        return await asyncio.to_thread(_file_size, self._fh)

    async def _close(self) -> None:
        await asyncio.to_thread(self._fh.close)


def _file_size(fh: BinaryIO) -> int:
    fh.flush()
    return os.fstat(fh.fileno()).st_size


def _truncate_file(fh: BinaryIO, size: int) -> None:
    fh.truncate(size)
    if fh.tell() > size:
        fh.seek(size)


def _timestamp_to_datetime(timestamp: float) -> datetime:
    """Convert a POSIX timestamp to an aware datetime in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _datetime_to_ns(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1_000_000_000)
