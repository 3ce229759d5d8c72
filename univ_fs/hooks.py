"""Before/after interception of primitive operations.

A ``Hooks`` record is handed to a file system once, at construction, and
reached by every entry and stream through ``entry.fs``. Each primitive has a
``before_<op>`` and an ``after_<op>`` slot:

* ``before_<op>`` runs first. A non-``None`` return value becomes the whole
  outcome of the operation: the backend primitive is skipped and no
  ``after_<op>`` fires.
* ``after_<op>`` is a notification. It is scheduled as a detached task once
  the primitive succeeded, never influences the result, and its failures are
  logged and reported to the diagnostics observer only.

Notifications of one pipeline run one after another in the order their
primitives completed, so every ``after_<op>`` sees the state its own
primitive produced.

Example:

    >>> async def audit(path, stats):
    ...     print("head", path, stats.size)
    >>> fs = MemoryFileSystem("scratch", FileSystemOptions(hooks=Hooks(after_head=audit)))

"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, fields
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Callback = Callable[..., Any]


@dataclass(frozen=True)
class Hooks:
    """Named optional callback slots, one before/after pair per primitive.

    Callbacks may be coroutine functions or plain callables. Arguments and
    the value a before callback returns to short-circuit:

    - head: ``(path, HeadOptions)`` / ``(path, Stats)``; returns ``Stats``
    - list: ``(path, ListOptions)`` / ``(path, children)``; returns child paths
    - mkcol: ``(path, MkcolOptions)`` / ``(path)``; any non-None value
    - delete: ``(path, DeleteOptions)`` / ``(path)``; any non-None value
    - patch: ``(path, props, PatchOptions)`` / ``(path, props)``; any non-None value
    - get: ``(path, OpenOptions)`` / ``(path)``; returns a ``ReadStream``
    - post: ``(path, WriteOptions)`` / ``(path)``; returns a ``WriteStream`` (create)
    - put: ``(path, WriteOptions)`` / ``(path)``; returns a ``WriteStream`` (overwrite)
    """

    before_head: Optional[Callback] = None
    after_head: Optional[Callback] = None
    before_list: Optional[Callback] = None
    after_list: Optional[Callback] = None
    before_mkcol: Optional[Callback] = None
    after_mkcol: Optional[Callback] = None
    before_delete: Optional[Callback] = None
    after_delete: Optional[Callback] = None
    before_patch: Optional[Callback] = None
    after_patch: Optional[Callback] = None
    before_get: Optional[Callback] = None
    after_get: Optional[Callback] = None
    before_post: Optional[Callback] = None
    after_post: Optional[Callback] = None
    before_put: Optional[Callback] = None
    after_put: Optional[Callback] = None

    def registered(self) -> list[str]:
        """Return the names of the slots holding a callback."""
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]


@dataclass(frozen=True)
class Diagnostic:
    """Structured event describing something the core chose not to raise."""

    code: str
    message: str
    repository: str | None = None
    path: str | None = None
    field: str | None = None


DiagnosticsObserver = Callable[[Diagnostic], None]


async def _invoke(callback: Callback, *args: Any) -> Any:
    result = callback(*args)
    if inspect.isawaitable(result):
        return await result
    return result


class HookPipeline:
    """Runs the callbacks of one ``Hooks`` record on behalf of a file system."""

    def __init__(
        self,
        hooks: Hooks,
        *,
        repository: str,
        observer: DiagnosticsObserver | None = None,
    ) -> None:
        """Bind the hook set to a repository and a diagnostics observer."""
        self._hooks = hooks
        self._repository = repository
        self._observer = observer
        self._pending: set[asyncio.Task[None]] = set()
        self._tail: asyncio.Task[None] | None = None
        logger.debug("Hooks for %s: %s", repository, ", ".join(hooks.registered()) or "none")

    @property
    def hooks(self) -> Hooks:
        """The hook record this pipeline runs."""
        return self._hooks

    def emit(self, diagnostic: Diagnostic) -> None:
        """Send a diagnostic to the observer, if any; observer failures are logged."""
        logger.debug("%s: %s (%s)", diagnostic.code, diagnostic.message, diagnostic.path)
        if self._observer is None:
            return
        try:
            self._observer(diagnostic)
        except Exception:
            logger.warning("Diagnostics observer failed", exc_info=True)

    async def before(self, slot: str, *args: Any, ignore: bool = False) -> Any:
        """Run ``before_<op>`` and return its result, or ``None`` when unset.

        Failures of a before callback propagate: the callback owns the
        outcome of the operation it intercepts.
        """
        callback = None if ignore else getattr(self._hooks, slot)
        if callback is None:
            return None
        return await _invoke(callback, *args)

    def after(self, slot: str, *args: Any, ignore: bool = False) -> None:
        """Schedule ``after_<op>`` as a detached notification."""
        callback = None if ignore else getattr(self._hooks, slot)
        if callback is None:
            return
        previous = self._tail
        task = asyncio.get_running_loop().create_task(
            self._notify(previous, slot, callback, args),
        )
        self._tail = task
        self._pending.add(task)
        task.add_done_callback(self._forget)

    async def drain(self) -> None:
        """Wait until every scheduled notification finished."""
        while self._pending:
            await asyncio.wait(set(self._pending))

    def _forget(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if self._tail is task:
            self._tail = None

    async def _notify(
        self,
        previous: asyncio.Task[None] | None,
        slot: str,
        callback: Callback,
        args: tuple[Any, ...],
    ) -> None:
        if previous is not None:
            await asyncio.wait({previous})
        try:
            await _invoke(callback, *args)
        except Exception as exc:
            path = args[0] if args and isinstance(args[0], str) else None
            logger.warning("Hook %s failed for %s", slot, path, exc_info=True)
            self.emit(
                Diagnostic(
                    code="hook.failed",
                    message=f"{slot} raised {type(exc).__name__}: {exc}",
                    repository=self._repository,
                    path=path,
                ),
            )
