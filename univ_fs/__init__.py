"""Backend-independent virtual file system.

This package presents one asynchronous file system contract (stat, read,
write, list, mkdir, delete, copy, move, patch, hash) over arbitrarily
different storage backends, with one error taxonomy and one set of hooks.

Core Components:
    - FileSystem: Abstract dispatch layer all backends extend
    - File / Directory: Handles on one path of a file system
    - ReadStream / WriteStream: Position-aware content access
    - Hooks: Before/after interception of every primitive
    - MemoryFileSystem: In-process storage, with or without directories
    - LocalFileSystem: Local disk storage confined to a root directory

Quick Start:

    >>> from univ_fs import MemoryFileSystem
    >>> fs = MemoryFileSystem("scratch")
    >>> await fs.mkdir("/docs")
    >>> await fs.write("/docs/hello.txt", b"Hello, world!")
    13
    >>> await fs.read("/docs/hello.txt")
    b'Hello, world!'
    >>> await fs.copy("/docs", "/backup", recursive=True)
    []

Exception Handling:

    >>> from univ_fs import NotFoundError
    >>> try:
    ...     await fs.read("/nonexistent.txt")
    ... except NotFoundError:
    ...     print("File not found")

Recursive operations (``delete`` with ``force``, ``copy``, ``move``) return
the list of failures they collected instead of raising; an empty list means
complete success.

"""

from .compat import normalize_error, translate_backend_exception, translate_exceptions
from .entry import Directory, Entry, File
from .factory import (
    FileSystemFactory,
    register_filesystem_factory,
    resolve_filesystem,
)
from .filesystem import FileSystem, FileSystemOptions
from .hooks import Diagnostic, HookPipeline, Hooks
from .interfaces import (
    DEFAULT_BUFFER_SIZE,
    ChecksumAlgorithm,
    CopyOptions,
    DeleteOptions,
    EntryType,
    FileSystemError,
    HeadOptions,
    InvalidModificationError,
    ListOptions,
    MkcolOptions,
    MoveOptions,
    NoModificationAllowedError,
    NotFoundError,
    NotReadableError,
    NotSupportedError,
    OnExists,
    OnNoParent,
    OpenOptions,
    PatchOptions,
    PathExistsError,
    PathSyntaxError,
    SecurityError,
    SeekOrigin,
    Stats,
    TypeMismatchError,
    WriteOptions,
    XmitError,
)
from .local import LocalFileSystem
from .memory import MemoryFileSystem
from .streams import ReadStream, WriteStream

__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "ChecksumAlgorithm",
    "CopyOptions",
    "DeleteOptions",
    "Diagnostic",
    "Directory",
    "Entry",
    "EntryType",
    "File",
    "FileSystem",
    "FileSystemError",
    "FileSystemFactory",
    "FileSystemOptions",
    "HeadOptions",
    "HookPipeline",
    "Hooks",
    "InvalidModificationError",
    "ListOptions",
    "LocalFileSystem",
    "MemoryFileSystem",
    "MkcolOptions",
    "MoveOptions",
    "NoModificationAllowedError",
    "NotFoundError",
    "NotReadableError",
    "NotSupportedError",
    "OnExists",
    "OnNoParent",
    "OpenOptions",
    "PatchOptions",
    "PathExistsError",
    "PathSyntaxError",
    "ReadStream",
    "SecurityError",
    "SeekOrigin",
    "Stats",
    "TypeMismatchError",
    "WriteOptions",
    "WriteStream",
    "XmitError",
    "normalize_error",
    "register_filesystem_factory",
    "resolve_filesystem",
    "translate_backend_exception",
    "translate_exceptions",
]
