"""Tests for head, list, mkcol and entry resolution on the dispatch layer."""

from __future__ import annotations

import pytest

from tests.fakes import seed
from univ_fs import (
    Directory,
    EntryType,
    File,
    MemoryFileSystem,
    NotFoundError,
    NotSupportedError,
    PathExistsError,
    TypeMismatchError,
)


@pytest.fixture
def fs() -> MemoryFileSystem:
    """Provide an empty memory file system."""
    return MemoryFileSystem("scratch")


@pytest.fixture
def flat_fs() -> MemoryFileSystem:
    """Provide an empty memory file system without directories."""
    return MemoryFileSystem("bucket", directories=False)


class TestHead:
    """Tests for head/stat."""

    @pytest.mark.asyncio
    async def test_empty_file_has_size_zero(self, fs: MemoryFileSystem) -> None:
        """A freshly created empty file reports size 0."""
        await fs.write("/empty.txt", b"")
        stats = await fs.head("/empty.txt")
        assert stats.size == 0
        assert stats.is_file

    @pytest.mark.asyncio
    async def test_missing_path(self, fs: MemoryFileSystem) -> None:
        with pytest.raises(NotFoundError):
            await fs.head("/nope")

    @pytest.mark.asyncio
    async def test_directory_has_no_size(self, fs: MemoryFileSystem) -> None:
        await fs.mkdir("/docs")
        stats = await fs.stat("/docs")
        assert stats.size is None
        assert stats.is_directory

    @pytest.mark.asyncio
    async def test_type_mismatch(self, fs: MemoryFileSystem) -> None:
        """Requesting the wrong kind is a type mismatch."""
        await seed(fs, {"/docs": None, "/a.txt": b"a"})
        with pytest.raises(TypeMismatchError):
            await fs.head("/docs", type=EntryType.FILE)
        with pytest.raises(TypeMismatchError):
            await fs.head("/a.txt", type=EntryType.DIRECTORY)

    @pytest.mark.asyncio
    async def test_trailing_slash_requests_directory(self, fs: MemoryFileSystem) -> None:
        await fs.write("/a.txt", b"a")
        with pytest.raises(TypeMismatchError):
            await fs.head("/a.txt/")

    @pytest.mark.asyncio
    async def test_flat_directory_head_is_empty(self, flat_fs: MemoryFileSystem) -> None:
        """Without directories, any directory head succeeds with empty stats."""
        stats = await flat_fs.head("/never/created/")
        assert stats.size is None
        assert stats.modified is None

    @pytest.mark.asyncio
    async def test_etag_present_for_files(self, fs: MemoryFileSystem) -> None:
        await fs.write("/a.txt", b"abc")
        stats = await fs.head("/a.txt")
        assert stats.etag


class TestEntries:
    """Tests for handle creation."""

    def test_get_file_normalizes(self, fs: MemoryFileSystem) -> None:
        """Handles are created synchronously with a normalized path."""
        file = fs.get_file("docs//./a.txt")
        assert isinstance(file, File)
        assert file.path == "/docs/a.txt"
        assert file.name == "a.txt"
        assert file.parent == fs.get_directory("/docs")
        assert str(file) == "scratch:/docs/a.txt"

    def test_equality_depends_on_kind(self, fs: MemoryFileSystem) -> None:
        assert fs.get_file("/a") != fs.get_directory("/a")
        assert fs.get_file("/a") == fs.get_file("a")
        assert len({fs.get_file("/a"), fs.get_file("/a/")}) == 1

    @pytest.mark.asyncio
    async def test_get_entry_resolves_kind(self, fs: MemoryFileSystem) -> None:
        await seed(fs, {"/docs": None, "/docs/a.txt": b"a"})
        assert isinstance(await fs.get_entry("/docs"), Directory)
        assert isinstance(await fs.get_entry("/docs/a.txt"), File)

    @pytest.mark.asyncio
    async def test_get_entry_missing(self, fs: MemoryFileSystem) -> None:
        with pytest.raises(NotFoundError):
            await fs.get_entry("/missing")

    @pytest.mark.asyncio
    async def test_exists(self, fs: MemoryFileSystem) -> None:
        await fs.write("/a.txt", b"a")
        assert await fs.get_file("/a.txt").exists()
        assert not await fs.get_file("/b.txt").exists()


class TestList:
    """Tests for list/ls/readdir."""

    @pytest.mark.asyncio
    async def test_lists_immediate_children(self, fs: MemoryFileSystem) -> None:
        await seed(fs, {"/d": None, "/d/a.txt": b"a", "/d/sub": None, "/d/sub/b.txt": b"b"})
        assert await fs.list("/d") == ["/d/a.txt", "/d/sub"]
        assert await fs.get_directory("/d").ls() == ["/d/a.txt", "/d/sub"]

    @pytest.mark.asyncio
    async def test_list_root(self, fs: MemoryFileSystem) -> None:
        await seed(fs, {"/a.txt": b"a", "/d": None})
        assert await fs.readdir("/") == ["/a.txt", "/d"]

    @pytest.mark.asyncio
    async def test_list_file_is_type_mismatch(self, fs: MemoryFileSystem) -> None:
        await fs.write("/a.txt", b"a")
        with pytest.raises(TypeMismatchError):
            await fs.list("/a.txt")

    @pytest.mark.asyncio
    async def test_list_missing(self, fs: MemoryFileSystem) -> None:
        with pytest.raises(NotFoundError):
            await fs.list("/missing")

    @pytest.mark.asyncio
    async def test_flat_listing_derives_directories(self, flat_fs: MemoryFileSystem) -> None:
        await seed(flat_fs, {"/logs/2024/a.log": b"a", "/logs/b.log": b"b"})
        assert await flat_fs.list("/logs") == ["/logs/2024", "/logs/b.log"]


class TestMkcol:
    """Tests for mkcol/mkdir."""

    @pytest.mark.asyncio
    async def test_creates_directory(self, fs: MemoryFileSystem) -> None:
        await fs.mkcol("/docs")
        assert (await fs.head("/docs")).is_directory

    @pytest.mark.asyncio
    async def test_existing_directory(self, fs: MemoryFileSystem) -> None:
        """An existing directory is an error unless forced."""
        await fs.mkcol("/docs")
        with pytest.raises(PathExistsError):
            await fs.mkcol("/docs")
        await fs.mkcol("/docs", force=True)

    @pytest.mark.asyncio
    async def test_missing_parent(self, fs: MemoryFileSystem) -> None:
        with pytest.raises(NotFoundError):
            await fs.mkdir("/a/b/c")

    @pytest.mark.asyncio
    async def test_recursive_creates_parents(self, fs: MemoryFileSystem) -> None:
        await fs.get_directory("/a/b/c").mkcol(recursive=True)
        assert await fs.list("/a") == ["/a/b"]
        assert await fs.list("/a/b") == ["/a/b/c"]

    @pytest.mark.asyncio
    async def test_not_supported_without_directories(self, flat_fs: MemoryFileSystem) -> None:
        with pytest.raises(NotSupportedError):
            await flat_fs.mkcol("/docs")


class TestWholeFile:
    """Tests for read/write helpers and URLs."""

    @pytest.mark.asyncio
    async def test_text_round_trip(self, fs: MemoryFileSystem) -> None:
        await fs.write("/note.txt", "héllo")
        assert await fs.read("/note.txt", binary=False) == "héllo"

    @pytest.mark.asyncio
    async def test_write_from_chunks(self, fs: MemoryFileSystem) -> None:
        """Sync and async iterables of chunks are accepted."""

        async def produce():
            yield b"ab"
            yield "cd"

        await fs.write("/sync.bin", [b"ab", b"cd"])
        await fs.write("/async.bin", produce())
        assert await fs.read("/sync.bin") == b"abcd"
        assert await fs.read("/async.bin") == b"abcd"

    @pytest.mark.asyncio
    async def test_to_url(self, fs: MemoryFileSystem) -> None:
        await seed(fs, {"/docs": None, "/docs/a.txt": b"a"})
        assert await fs.to_url("/docs/a.txt") == "memory://scratch/docs/a.txt"
        assert await fs.get_directory("/docs").to_url() == "memory://scratch/docs/"
