"""Tests for content checksums."""

from __future__ import annotations

import hashlib

import pytest

from univ_fs import MemoryFileSystem, NotFoundError


@pytest.fixture
def fs() -> MemoryFileSystem:
    """Provide an empty memory file system."""
    return MemoryFileSystem("scratch")


class TestHash:
    """Tests for FileSystem.hash and File.hash."""

    @pytest.mark.asyncio
    async def test_default_is_sha256(self, fs: MemoryFileSystem) -> None:
        await fs.write("/a.txt", b"hello")
        assert await fs.hash("/a.txt") == hashlib.sha256(b"hello").hexdigest()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("algorithm", ["md5", "sha256", "sha512"])
    async def test_algorithms(self, fs: MemoryFileSystem, algorithm: str) -> None:
        payload = b"x" * 1000
        await fs.write("/a.bin", payload)
        digest = await fs.get_file("/a.bin").hash(algorithm, buffer_size=7)
        assert digest == hashlib.new(algorithm, payload).hexdigest()

    @pytest.mark.asyncio
    async def test_stable_and_sensitive(self, fs: MemoryFileSystem) -> None:
        """Equal content hashes equal; a one-byte change alters the hash."""
        await fs.write("/a.txt", b"content")
        await fs.write("/b.txt", b"content")
        await fs.write("/c.txt", b"contenT")

        assert await fs.hash("/a.txt") == await fs.hash("/a.txt")
        assert await fs.hash("/a.txt") == await fs.hash("/b.txt")
        assert await fs.hash("/a.txt") != await fs.hash("/c.txt")

    @pytest.mark.asyncio
    async def test_blake3(self, fs: MemoryFileSystem) -> None:
        blake3 = pytest.importorskip("blake3")
        await fs.write("/a.txt", b"hello")
        assert await fs.hash("/a.txt", "blake3") == blake3.blake3(b"hello").hexdigest()

    @pytest.mark.asyncio
    async def test_unknown_algorithm(self, fs: MemoryFileSystem) -> None:
        await fs.write("/a.txt", b"hello")
        with pytest.raises(ValueError, match="Unsupported checksum algorithm"):
            await fs.hash("/a.txt", "crc32")

    @pytest.mark.asyncio
    async def test_missing_file(self, fs: MemoryFileSystem) -> None:
        with pytest.raises(NotFoundError):
            await fs.hash("/nope.txt")
