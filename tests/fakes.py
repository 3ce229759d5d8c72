"""Test doubles shared by the file system tests."""

from __future__ import annotations

import errno
from collections import Counter, defaultdict
from typing import Any

from univ_fs.hooks import Diagnostic
from univ_fs.memory import MemoryFileSystem


class SpyMemoryFileSystem(MemoryFileSystem):
    """Memory file system counting primitive calls and failing on demand.

    ``fail("_delete", "/a/b")`` makes the next and every later ``_delete`` of
    ``/a/b`` raise ``PermissionError``, which the core normalizes into its
    operation's fallback error.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialise the store with empty counters and no failures."""
        super().__init__(*args, **kwargs)
        self.calls: Counter[str] = Counter()
        self.failures: defaultdict[str, set[str]] = defaultdict(set)

    def fail(self, primitive: str, path: str) -> None:
        """Make ``primitive`` raise for ``path``."""
        self.failures[primitive].add(path)

    def _record(self, primitive: str, path: str) -> None:
        self.calls[primitive] += 1
        if path in self.failures[primitive]:
            raise PermissionError(errno.EACCES, "Injected failure", path)

    async def _head(self, path, options):
        self._record("_head", path)
        return await super()._head(path, options)

    async def _list(self, path, options):
        self._record("_list", path)
        return await super()._list(path, options)

    async def _mkcol(self, path, options):
        self._record("_mkcol", path)
        await super()._mkcol(path, options)

    async def _delete(self, path, options):
        self._record("_delete", path)
        await super()._delete(path, options)

    async def _patch(self, path, props, options):
        self._record("_patch", path)
        await super()._patch(path, props, options)

    async def _open_read_stream(self, path, options):
        self._record("_open_read_stream", path)
        return await super()._open_read_stream(path, options)

    async def _open_write_stream(self, path, options):
        self._record("_open_write_stream", path)
        return await super()._open_write_stream(path, options)


class DiagnosticsRecorder:
    """Diagnostics observer keeping every event it receives."""

    def __init__(self) -> None:
        self.events: list[Diagnostic] = []

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.events.append(diagnostic)

    @property
    def codes(self) -> list[str]:
        """Codes of the received events, in order."""
        return [event.code for event in self.events]

    @property
    def fields(self) -> list[str | None]:
        """Field names of the received events, in order."""
        return [event.field for event in self.events]


async def seed(fs: MemoryFileSystem, tree: dict[str, bytes | None]) -> None:
    """Create ``tree`` in ``fs``; ``None`` values are directories.

    Paths are created in sorted order, so parents precede their children.
    """
    for path in sorted(tree):
        content = tree[path]
        if content is None:
            await fs.mkcol(path, recursive=True, force=True, ignore_hook=True)
        else:
            if fs.supports_directories():
                await fs.mkcol(path.rsplit("/", 1)[0] or "/", recursive=True, force=True, ignore_hook=True)
            await fs.write(path, content, ignore_hook=True)
