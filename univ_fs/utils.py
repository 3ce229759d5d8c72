"""Shared utility functions for the core and backend implementations.

This module is the data conversion service of the package: it turns the
payload types callers hand to ``write`` into raw bytes, splits sources into
bounded chunks and builds hashers for content checksums.

Key utilities:
- Hasher factory for multiple algorithms
- Data type coercion (bytes, str, bytearray, memoryview, BinaryIO)
- Chunk iteration over sync and async sources

Example usage:
    >>> from univ_fs.utils import coerce_to_bytes
    >>> data = coerce_to_bytes("Hello, world!")
    >>> assert isinstance(data, bytes)
"""

from __future__ import annotations

import hashlib
import io
from typing import TYPE_CHECKING, Any, BinaryIO, Union

from .interfaces import DEFAULT_BUFFER_SIZE, ChecksumAlgorithm

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Iterable

ByteLike = Union[bytes, bytearray, memoryview, str]


def get_hasher(algorithm: ChecksumAlgorithm) -> Any:
    """Get a hasher instance for the specified algorithm.

    Args:
        algorithm: The checksum algorithm to use ('md5', 'sha256', 'sha512', 'blake3')

    Returns:
        A hasher instance with update() and hexdigest() methods

    Raises:
        ImportError: If blake3 is requested but not installed.
        ValueError: If algorithm is not supported.

    """
    if algorithm == "blake3":
        try:
            import blake3
        except ImportError as exc:
            message = "blake3 is not installed. Install it with: pip install blake3"
            raise ImportError(message) from exc
        return blake3.blake3()
    elif algorithm in ("md5", "sha256", "sha512"):
        return hashlib.new(algorithm)
    else:
        message = f"Unsupported checksum algorithm: {algorithm}"
        raise ValueError(message)


def coerce_to_bytes(data: ByteLike | BinaryIO) -> bytes:
    """Coerce supported input types to raw bytes.

    Handles bytes-like objects, strings (UTF-8 encoded), and file-like objects.

    Raises:
        TypeError: If data type is not supported.

    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")

    if hasattr(data, "read"):
        result = data.read()

        if hasattr(data, "seek"):
            try:
                data.seek(0)
            except (OSError, io.UnsupportedOperation):
                pass

        if isinstance(result, str):
            return result.encode("utf-8")
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)
        message = f"Unsupported stream payload type: {type(result).__name__}"
        raise TypeError(message)

    message = f"Unsupported data type: {type(data).__name__}"
    raise TypeError(message)


def iter_chunks(
    source: ByteLike | BinaryIO | Iterable[ByteLike],
    chunk_size: int = DEFAULT_BUFFER_SIZE,
) -> Iterable[bytes]:
    """Yield ``source`` as byte chunks of at most ``chunk_size`` bytes.

    Args:
        source: Bytes-like payload, text, file-like object or iterable of chunks.
        chunk_size: Upper bound for every yielded chunk.

    """
    if isinstance(source, (bytes, bytearray, memoryview, str)):
        payload = coerce_to_bytes(source)
        for start in range(0, len(payload), chunk_size):
            yield payload[start : start + chunk_size]
        return

    if hasattr(source, "read"):
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            yield coerce_to_bytes(chunk)
        return

    for chunk in source:
        payload = coerce_to_bytes(chunk)
        for start in range(0, len(payload), chunk_size):
            yield payload[start : start + chunk_size]


async def aiter_chunks(
    source: ByteLike | BinaryIO | Iterable[ByteLike] | AsyncIterable[ByteLike],
    chunk_size: int = DEFAULT_BUFFER_SIZE,
) -> AsyncIterator[bytes]:
    """Async variant of ``iter_chunks`` also accepting async iterables."""
    if hasattr(source, "__aiter__"):
        async for chunk in source:  # type: ignore[union-attr]
            payload = coerce_to_bytes(chunk)
            for start in range(0, len(payload), chunk_size):
                yield payload[start : start + chunk_size]
        return

    for chunk in iter_chunks(source, chunk_size):  # type: ignore[arg-type]
        yield chunk
