"""Copy and move of files and directory trees.

Both operations validate the root of the transfer first and raise on a
violation. Once validation passed, failures are no longer raised: every
sub-operation that fails is recorded as an ``XmitError`` and the walk goes
on with the next sibling. Source and destination may live on different file
systems; every source operation goes through the source file system and
every destination operation through the destination file system.

A move copies each node, then deletes its source. A source directory is only
deleted when its whole subtree moved without failure, and nothing that was
already transferred is rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Union

from .interfaces import (
    DeleteOptions,
    EntryType,
    FileSystemError,
    InvalidModificationError,
    NotFoundError,
    OnExists,
    OnNoParent,
    PathExistsError,
    XmitError,
)
from .path_utils import get_name, get_parent_path, join_paths
from .validation import validate_buffer_size, validate_not_inside

if TYPE_CHECKING:
    from .entry import Directory, File
    from .filesystem import FileSystem
    from .interfaces import CopyOptions, MoveOptions

    AnyEntry = Union[File, Directory]

logger = logging.getLogger(__name__)


async def copy(source: AnyEntry, destination: AnyEntry, options: CopyOptions) -> list[XmitError]:
    """Copy ``source`` to ``destination``.

    Args:
        source: File or directory to copy.
        destination: Target of the same kind; it may belong to another file system.
        options: Conflict policies, recursion and buffer size.

    Returns:
        Failures recorded after validation; empty when everything was copied.

    Raises:
        NotFoundError: If the source is missing, or the destination parent is
            missing under ``OnNoParent.ERROR``.
        PathExistsError: If the destination exists under ``OnExists.ERROR``.
        InvalidModificationError: If the destination lies inside the source,
            or a file and a directory would overwrite each other.

    """
    return await _xmit(source, destination, options, move=False)


async def move(source: AnyEntry, destination: AnyEntry, options: MoveOptions) -> list[XmitError]:
    """Move ``source`` to ``destination``; always recursive.

    Raises the same validation errors as ``copy``.
    """
    return await _xmit(source, destination, replace(options, recursive=True), move=True)


async def _xmit(
    source: AnyEntry,
    destination: AnyEntry,
    options: CopyOptions,
    *,
    move: bool,
) -> list[XmitError]:
    validate_buffer_size(options.buffer_size)
    if source.fs is destination.fs:
        validate_not_inside(
            source.path,
            destination.path,
            repository=destination.fs.repository,
        )
    await source.head(ignore_hook=options.ignore_hook)

    errors: list[XmitError] = []
    exists = await _prepare(source, destination, options)
    if exists is None:
        logger.debug("Skipped existing destination %s", destination)
        return errors
    try:
        await _transfer(source, destination, options, errors, move=move, exists=exists)
    except FileSystemError as exc:
        _record(errors, source.path, destination.path, exc)
    return errors


async def _prepare(
    source: AnyEntry,
    destination: AnyEntry,
    options: CopyOptions,
) -> bool | None:
    """Apply the conflict policies to ``destination``.

    Returns:
        True when the destination exists and is overwritten, False when it is
        created, None when it exists and is skipped.

    """
    fs = destination.fs
    try:
        stats = await fs.head(destination.path, ignore_hook=options.ignore_hook)
    except NotFoundError:
        stats = None

    if stats is not None:
        if source.type is EntryType.DIRECTORY and stats.is_file:
            raise InvalidModificationError.cannot_overwrite_file_with_directory(
                destination.path,
                repository=fs.repository,
            )
        if source.type is EntryType.FILE and stats.is_directory:
            raise InvalidModificationError.cannot_overwrite_directory_with_file(
                destination.path,
                repository=fs.repository,
            )
        if options.on_exists is OnExists.ERROR:
            raise PathExistsError(repository=fs.repository, path=destination.path)
        if options.on_exists is OnExists.SKIP:
            return None
        return True

    parent = get_parent_path(destination.path)
    if parent != destination.path:
        await _ensure_parent(fs, parent, options)
    return False


async def _ensure_parent(fs: FileSystem, parent: str, options: CopyOptions) -> None:
    try:
        await fs.head(parent, type=EntryType.DIRECTORY, ignore_hook=options.ignore_hook)
    except NotFoundError:
        if options.on_no_parent is not OnNoParent.CREATE:
            raise NotFoundError(
                "Parent directory not found",
                repository=fs.repository,
                path=parent,
            ) from None
        await fs.mkcol(parent, recursive=True, force=True, ignore_hook=options.ignore_hook)


async def _transfer(
    source: AnyEntry,
    destination: AnyEntry,
    options: CopyOptions,
    errors: list[XmitError],
    *,
    move: bool,
    exists: bool,
) -> bool:
    """Transfer one node and return True when it fully completed."""
    if source.type is EntryType.FILE:
        await _copy_file(source, destination, options, exists=exists)  # type: ignore[arg-type]
        complete = True
    else:
        complete = await _copy_directory(
            source,  # type: ignore[arg-type]
            destination,  # type: ignore[arg-type]
            options,
            errors,
            move=move,
            exists=exists,
        )
    if not (move and complete):
        return complete

    try:
        await source.delete(
            DeleteOptions(
                force=options.force,
                recursive=False,
                ignore_hook=options.ignore_hook,
            ),
        )
    except FileSystemError as exc:
        _record(errors, source.path, destination.path, exc)
        return False
    return True


async def _copy_file(source: File, destination: File, options: CopyOptions, *, exists: bool) -> None:
    reader = await source.open_read_stream(
        buffer_size=options.buffer_size,
        ignore_hook=options.ignore_hook,
    )
    try:
        writer = await destination.open_write_stream(
            buffer_size=options.buffer_size,
            ignore_hook=options.ignore_hook,
            create=not exists,
        )
        try:
            while True:
                chunk = await reader.read(options.buffer_size)
                if not chunk:
                    break
                await writer.write(chunk)
            if not writer.changed:
                await writer.truncate(0)
        finally:
            await writer.close()
    finally:
        await reader.close()


async def _copy_directory(
    source: Directory,
    destination: Directory,
    options: CopyOptions,
    errors: list[XmitError],
    *,
    move: bool,
    exists: bool,
) -> bool:
    if not exists and destination.fs.supports_directories():
        await destination.mkcol(
            force=options.force,
            recursive=False,
            ignore_hook=options.ignore_hook,
        )
    if not options.recursive:
        return True

    complete = True
    for child_path in await source.list(ignore_hook=options.ignore_hook):
        if not await _transfer_child(source.fs, child_path, destination, options, errors, move=move):
            complete = False
    return complete


async def _transfer_child(
    source_fs: FileSystem,
    child_path: str,
    destination: Directory,
    options: CopyOptions,
    errors: list[XmitError],
    *,
    move: bool,
) -> bool:
    target_path = join_paths(destination.path, get_name(child_path))
    try:
        child = await source_fs.get_entry(child_path, ignore_hook=options.ignore_hook)
        if child.type is EntryType.FILE:
            target: AnyEntry = destination.fs.get_file(target_path)
        else:
            target = destination.fs.get_directory(target_path)
        exists = await _prepare(child, target, options)
        if exists is None:
            return False
        return await _transfer(child, target, options, errors, move=move, exists=exists)
    except FileSystemError as exc:
        _record(errors, child_path, target_path, exc)
        return False


def _record(errors: list[XmitError], from_path: str, to_path: str, exc: FileSystemError) -> None:
    logger.debug("Transfer of %s to %s failed: %s", from_path, to_path, exc)
    errors.append(XmitError(from_path, to_path, exc))
