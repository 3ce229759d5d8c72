"""In-memory backend.

``MemoryFileSystem`` keeps every node in a dictionary keyed by normalized
path. It is the reference backend for tests and for scratch storage, and it
can emulate the two backend families the core supports:

* with ``directories=True`` (the default) directories are explicit nodes and
  a file needs an existing parent directory;
* with ``directories=False`` the store is flat, like an object store:
  directories are implied by the key prefixes of the files below them.

``patchable_times`` selects the timestamps ``patch`` may change, so the
graceful degradation of the core can be exercised against any combination.

Example:

    >>> fs = MemoryFileSystem("scratch")
    >>> await fs.write("/hello.txt", b"hi")
    2
    >>> (await fs.head("/hello.txt")).size
    2

"""

from __future__ import annotations

import errno
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from .filesystem import FileSystem
from .interfaces import TIME_FIELDS, Stats
from .path_utils import ROOT, get_parent_path
from .streams import ReadStream, WriteStream

if TYPE_CHECKING:
    from collections.abc import Iterable

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


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MemoryNode:
    """One stored file or directory."""

    is_directory: bool
    content: bytearray = field(default_factory=bytearray)
    created: datetime = field(default_factory=_now)
    modified: datetime = field(default_factory=_now)
    accessed: datetime = field(default_factory=_now)
    props: dict[str, Any] = field(default_factory=dict)

    def stats(self) -> Stats:
        """Return a snapshot of the node's metadata."""
        if self.is_directory:
            size = None
            etag = None
        else:
            size = len(self.content)
            etag = f'"{size:x}-{int(self.modified.timestamp() * 1_000_000):x}"'
        return Stats(
            size=size,
            accessed=self.accessed,
            modified=self.modified,
            created=self.created,
            etag=etag,
            props=dict(self.props),
        )


class MemoryFileSystem(FileSystem):
    """File system whose nodes live in process memory."""

    def __init__(
        self,
        repository: str = "memory",
        options: FileSystemOptions | None = None,
        *,
        directories: bool = True,
        patchable_times: Iterable[str] = ("accessed", "created", "modified"),
    ) -> None:
        """Initialise an empty store.

        Args:
            repository: Name of the store.
            options: Hooks, option defaults and diagnostics observer.
            directories: False to emulate a flat object store.
            patchable_times: Timestamps ``patch`` may change.

        """
        super().__init__(repository, options)
        self._directories = directories
        self._patchable = frozenset(patchable_times)
        self._nodes: dict[str, MemoryNode] = {}
        if directories:
            self._nodes[ROOT] = MemoryNode(is_directory=True)

    @property
    def nodes(self) -> dict[str, MemoryNode]:
        """The raw node table, keyed by normalized path."""
        return self._nodes

    def supports_directories(self) -> bool:
        return self._directories

    def can_patch_accessed(self) -> bool:
        return "accessed" in self._patchable

    def can_patch_created(self) -> bool:
        return "created" in self._patchable

    def can_patch_modified(self) -> bool:
        return "modified" in self._patchable

    async def _head(self, path: str, options: HeadOptions) -> Stats:
        node = self._nodes.get(path)
        if node is not None:
            return node.stats()
        if not self._directories and (path == ROOT or self._has_descendants(path)):
            return Stats()
        raise FileNotFoundError(errno.ENOENT, "No such node", path)

    async def _list(self, path: str, options: ListOptions) -> list[str]:
        prefix = path if path == ROOT else path + "/"
        children: set[str] = set()
        for key in self._nodes:
            if key == path or not key.startswith(prefix):
                continue
            name = key[len(prefix):].split("/", 1)[0]
            children.add(prefix + name)
        return sorted(children)

    async def _mkcol(self, path: str, options: MkcolOptions) -> None:
        if path in self._nodes:
            raise FileExistsError(errno.EEXIST, "Node exists", path)
        self._check_parent(path)
        self._nodes[path] = MemoryNode(is_directory=True)

    async def _delete(self, path: str, options: DeleteOptions) -> None:
        node = self._nodes.get(path)
        if node is None:
            raise FileNotFoundError(errno.ENOENT, "No such node", path)
        if node.is_directory and self._has_descendants(path):
            raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
        del self._nodes[path]

    async def _patch(self, path: str, props: dict[str, Any], options: PatchOptions) -> None:
        node = self._nodes.get(path)
        if node is None:
            raise FileNotFoundError(errno.ENOENT, "No such node", path)
        for name, value in props.items():
            if name in TIME_FIELDS:
                setattr(node, name, value)
            elif value is None:
                node.props.pop(name, None)
            else:
                node.props[name] = value

    async def _open_read_stream(self, path: str, options: OpenOptions) -> MemoryReadStream:
        node = self._file_node(path)
        node.accessed = _now()
        return MemoryReadStream(self.get_file(path), options, node)

    async def _open_write_stream(self, path: str, options: WriteOptions) -> MemoryWriteStream:
        node = self._nodes.get(path)
        if node is None:
            self._check_parent(path)
            node = MemoryNode(is_directory=False)
            self._nodes[path] = node
        elif node.is_directory:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        elif not options.append:
            node.content.clear()
            node.modified = _now()
        return MemoryWriteStream(self.get_file(path), options, node)

    async def _to_url(self, path: str, is_directory: bool) -> str:
        suffix = "/" if is_directory and path != ROOT else ""
        return f"memory://{self.repository}{path}{suffix}"

    def _has_descendants(self, path: str) -> bool:
        prefix = path if path == ROOT else path + "/"
        return any(key != path and key.startswith(prefix) for key in self._nodes)

    def _check_parent(self, path: str) -> None:
        if not self._directories:
            return
        parent = get_parent_path(path)
        node = self._nodes.get(parent)
        if node is None:
            raise FileNotFoundError(errno.ENOENT, "No such directory", parent)
        if not node.is_directory:
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", parent)

    def _file_node(self, path: str) -> MemoryNode:
        node = self._nodes.get(path)
        if node is None:
            raise FileNotFoundError(errno.ENOENT, "No such file", path)
        if node.is_directory:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        return node


class MemoryReadStream(ReadStream):
    """Read cursor over a ``MemoryNode``."""

    def __init__(self, file: File, options: OpenOptions, node: MemoryNode) -> None:
        super().__init__(file, options)
        self._node = node
        self._cursor = 0

    async def _read(self, size: int) -> bytes:
        chunk = bytes(self._node.content[self._cursor : self._cursor + size])
        self._cursor += len(chunk)
        return chunk

    async def _seek(self, start: int) -> None:
        self._cursor = start

    async def _size(self) -> int:
        return len(self._node.content)

    async def _close(self) -> None:
        self._cursor = 0


class MemoryWriteStream(WriteStream):
    """Write cursor over a ``MemoryNode``; writes are visible immediately."""

    def __init__(self, file: File, options: WriteOptions, node: MemoryNode) -> None:
        super().__init__(file, options)
        self._node = node
        self._cursor = 0

    async def _write(self, payload: bytes) -> int:
        end = self._cursor + len(payload)
        self._node.content[self._cursor : end] = payload
        self._cursor = end
        self._node.modified = _now()
        return len(payload)

    async def _truncate(self, size: int) -> None:
        content = self._node.content
        if size < len(content):
            del content[size:]
        else:
            content.extend(bytes(size - len(content)))
        self._cursor = min(self._cursor, size)
        self._node.modified = _now()

    async def _seek(self, start: int) -> None:
        self._cursor = start

    async def _size(self) -> int:
        return len(self._node.content)

    async def _close(self) -> None:
        self._cursor = 0
