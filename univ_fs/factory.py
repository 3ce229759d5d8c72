"""File system factory for URI-based resolution and instantiation.

This module creates ``FileSystem`` instances from URI strings. It supports
the built-in backends and allows registration of custom factories.

Supported URI Schemes:
    - memory://name - MemoryFileSystem named ``name``
    - file:///path - LocalFileSystem rooted at ``path``

Common query parameters:
    - buffer_size: default buffer size of copy and move
    - recursive_delete: default ``recursive`` of delete (true/false)
    - force_delete: default ``force`` of delete (true/false)

Backend query parameters:
    - memory: directories (true/false)
    - file: create_root (true/false)

Example:
    >>> from univ_fs.factory import resolve_filesystem
    >>> fs = resolve_filesystem("file:///data/files?create_root=false")
    >>> scratch = resolve_filesystem("memory://scratch?directories=false")

"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import parse_qs, urlparse

from .filesystem import FileSystemOptions

if TYPE_CHECKING:
    from typing import TypeAlias

    from .filesystem import FileSystem

    # Type alias for file system factory functions
    FileSystemFactoryFunc: TypeAlias = Callable[
        [str, dict[str, Any], FileSystemOptions],
        FileSystem,
    ]

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _parse_bool(params: dict[str, str], name: str, default: bool) -> bool:
    value = params.get(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    msg = f"Invalid boolean for '{name}': '{value}'"
    raise ValueError(msg)


class FileSystemFactory:
    """Factory for creating file systems from URI strings."""

    def __init__(self) -> None:
        """Initialize the factory with built-in URI scheme handlers."""
        self._factories: dict[str, Callable[..., Any]] = {
            "memory": self._create_memory_filesystem,
            "file": self._create_local_filesystem,
        }

    @property
    def schemes(self) -> list[str]:
        """Registered URI schemes, sorted."""
        return sorted(self._factories)

    def parse_uri(self, uri: str) -> tuple[str, str, dict[str, str]]:
        """Parse a URI into scheme, path, and query parameters.

        Args:
            uri: URI string to parse

        Returns:
            Tuple of (scheme, path, params) where params is a dict of query parameters

        Raises:
            ValueError: If URI format is invalid

        """
        parsed = urlparse(uri)

        if not parsed.scheme:
            msg = f"Invalid URI: missing scheme in '{uri}'"
            raise ValueError(msg)

        if parsed.netloc:
            path = parsed.netloc + (parsed.path or "")
        else:
            path = parsed.path

        if not path:
            msg = f"Invalid URI: missing path in '{uri}'"
            raise ValueError(msg)

        params: dict[str, str] = {}
        if parsed.query:
            # Keep the first value of repeated parameters
            params = {k: v[0] for k, v in parse_qs(parsed.query).items()}

        return parsed.scheme, path, params

    def resolve(self, uri: str, options: FileSystemOptions | None = None) -> FileSystem:
        """Create a file system instance from a URI string.

        Args:
            uri: URI string specifying the file system configuration
            options: Base options (hooks, diagnostics) the URI parameters refine

        Returns:
            FileSystem instance

        Raises:
            ValueError: If the URI scheme is unsupported or a parameter is invalid
            FileSystemError: If the file system cannot be created

        """
        scheme, path, params = self.parse_uri(uri)

        if scheme not in self._factories:
            supported = ", ".join(self.schemes)
            msg = (
                f"Unsupported URI scheme: '{scheme}'. "
                f"Supported schemes: {supported}"
            )
            raise ValueError(msg)

        factory_func = self._factories[scheme]
        return factory_func(path, params, self._options_from_params(params, options))

    def register(
        self,
        scheme: str,
        factory_func: Callable[[str, dict[str, Any], FileSystemOptions], Any],
    ) -> None:
        """Register a custom file system factory for a URI scheme.

        Args:
            scheme: URI scheme to register (e.g., "s3", "webdav")
            factory_func: Callable that takes (path, params, options) and
                returns a FileSystem

        """
        if not callable(factory_func):
            msg = "factory_func must be callable"
            raise TypeError(msg)
        self._factories[scheme] = factory_func

    def _options_from_params(
        self,
        params: dict[str, str],
        options: FileSystemOptions | None,
    ) -> FileSystemOptions:
        options = options or FileSystemOptions()

        delete_options = replace(
            options.default_delete_options,
            recursive=_parse_bool(params, "recursive_delete", options.default_delete_options.recursive),
            force=_parse_bool(params, "force_delete", options.default_delete_options.force),
        )
        copy_options = options.default_copy_options
        move_options = options.default_move_options
        if "buffer_size" in params:
            try:
                buffer_size = int(params["buffer_size"])
            except ValueError as exc:
                msg = f"Invalid buffer_size: '{params['buffer_size']}'"
                raise ValueError(msg) from exc
            if buffer_size <= 0:
                msg = f"Invalid buffer_size: '{params['buffer_size']}'"
                raise ValueError(msg)
            copy_options = replace(copy_options, buffer_size=buffer_size)
            move_options = replace(move_options, buffer_size=buffer_size)

        return replace(
            options,
            default_delete_options=delete_options,
            default_copy_options=copy_options,
            default_move_options=move_options,
        )

    def _create_memory_filesystem(
        self,
        path: str,
        params: dict[str, str],
        options: FileSystemOptions,
    ) -> FileSystem:
        """Create a MemoryFileSystem named after the URI authority."""
        from .memory import MemoryFileSystem

        return MemoryFileSystem(
            path.strip("/"),
            options,
            directories=_parse_bool(params, "directories", True),
        )

    def _create_local_filesystem(
        self,
        path: str,
        params: dict[str, str],
        options: FileSystemOptions,
    ) -> FileSystem:
        """Create a LocalFileSystem rooted at the URI path."""
        from .local import LocalFileSystem

        return LocalFileSystem(
            root=path,
            options=options,
            create_root=_parse_bool(params, "create_root", True),
        )


# Global default factory instance
_default_factory = FileSystemFactory()


def resolve_filesystem(uri: str, options: FileSystemOptions | None = None) -> FileSystem:
    """Resolve a file system from a URI using the default factory.

    Example:
        >>> fs = resolve_filesystem("file:///data/files?force_delete=true")
        >>> scratch = resolve_filesystem("memory://scratch")

    """
    return _default_factory.resolve(uri, options)


def register_filesystem_factory(
    scheme: str,
    factory_func: Callable[[str, dict[str, Any], FileSystemOptions], Any],
) -> None:
    """Register a custom file system factory for a URI scheme.

    Example:
        >>> def my_s3_factory(path, params, options):
        ...     return S3FileSystem(bucket=path, options=options)
        >>> register_filesystem_factory("s3", my_s3_factory)

    """
    _default_factory.register(scheme, factory_func)
