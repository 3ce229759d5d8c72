"""Tests for the local disk file system."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tests.fakes import DiagnosticsRecorder
from univ_fs import (
    FileSystemOptions,
    InvalidModificationError,
    LocalFileSystem,
    NotFoundError,
    SecurityError,
    TypeMismatchError,
)

EPOCH_2020 = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def fs(tmp_path: Path) -> LocalFileSystem:
    """Provide a file system rooted at a temporary directory."""
    return LocalFileSystem(root=tmp_path)


class TestLocalFileSystem:
    """Tests for LocalFileSystem."""

    def test_missing_root_without_create(self, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            LocalFileSystem(root=tmp_path / "missing", create_root=False)

    def test_creates_root(self, tmp_path: Path) -> None:
        fs = LocalFileSystem(root=tmp_path / "new" / "root")
        assert fs.root.is_dir()

    @pytest.mark.asyncio
    async def test_write_lands_on_disk(self, fs: LocalFileSystem, tmp_path: Path) -> None:
        await fs.mkdir("/docs")
        assert await fs.write("/docs/a.txt", b"hello") == 5
        assert (tmp_path / "docs" / "a.txt").read_bytes() == b"hello"
        assert await fs.read("/docs/a.txt") == b"hello"
        assert (await fs.head("/docs/a.txt")).size == 5

    @pytest.mark.asyncio
    async def test_overwrite_and_append(self, fs: LocalFileSystem) -> None:
        await fs.write("/a.txt", b"long content")
        await fs.write("/a.txt", b"short")
        await fs.write("/a.txt", b"+more", append=True)
        assert await fs.read("/a.txt") == b"short+more"

    @pytest.mark.asyncio
    async def test_truncate(self, fs: LocalFileSystem) -> None:
        file = fs.get_file("/a.txt")
        async with await file.open_write_stream() as stream:
            await stream.write(b"0123456789")
            await stream.truncate(4)
            await stream.write(b"xy")
        assert await file.read() == b"0123xy"

    @pytest.mark.asyncio
    async def test_list_and_types(self, fs: LocalFileSystem, tmp_path: Path) -> None:
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "b.txt").write_bytes(b"b")
        (tmp_path / "a.txt").write_bytes(b"a")

        assert await fs.list("/") == ["/a.txt", "/d"]
        assert (await fs.head("/d")).is_directory
        with pytest.raises(TypeMismatchError):
            await fs.list("/a.txt")

    @pytest.mark.asyncio
    async def test_head_below_file_is_not_found(self, fs: LocalFileSystem) -> None:
        await fs.write("/a.txt", b"a")
        with pytest.raises(NotFoundError):
            await fs.head("/a.txt/child")

    @pytest.mark.asyncio
    async def test_recursive_delete(self, fs: LocalFileSystem, tmp_path: Path) -> None:
        (tmp_path / "d" / "sub").mkdir(parents=True)
        (tmp_path / "d" / "sub" / "b.txt").write_bytes(b"b")

        with pytest.raises(InvalidModificationError):
            await fs.delete("/d")
        assert await fs.delete("/d", recursive=True) == []
        assert not (tmp_path / "d").exists()

    @pytest.mark.asyncio
    async def test_copy_tree(self, fs: LocalFileSystem, tmp_path: Path) -> None:
        (tmp_path / "src" / "sub").mkdir(parents=True)
        (tmp_path / "src" / "a.txt").write_bytes(b"a")
        (tmp_path / "src" / "sub" / "b.txt").write_bytes(b"b")

        assert await fs.copy("/src", "/dst", recursive=True) == []
        assert (tmp_path / "dst" / "sub" / "b.txt").read_bytes() == b"b"

    @pytest.mark.asyncio
    async def test_patch_times(self, tmp_path: Path) -> None:
        """Access and modification times persist; creation time is dropped."""
        recorder = DiagnosticsRecorder()
        fs = LocalFileSystem(root=tmp_path, options=FileSystemOptions(diagnostics=recorder))
        await fs.write("/a.txt", b"a")

        await fs.patch("/a.txt", {"modified": EPOCH_2020, "created": EPOCH_2020, "owner": "x"})

        assert (await fs.head("/a.txt")).modified == EPOCH_2020
        assert os.stat(tmp_path / "a.txt").st_mtime == EPOCH_2020.timestamp()
        assert sorted(recorder.fields) == ["created", "owner"]

    @pytest.mark.asyncio
    async def test_symlink_escape(self, fs: LocalFileSystem, tmp_path: Path) -> None:
        outside = tmp_path.parent / f"{tmp_path.name}-outside"
        outside.mkdir()
        (tmp_path / "link").symlink_to(outside, target_is_directory=True)

        with pytest.raises(SecurityError):
            await fs.write("/link/evil.txt", b"x")

    @pytest.mark.asyncio
    async def test_to_url(self, fs: LocalFileSystem, tmp_path: Path) -> None:
        await fs.write("/a.txt", b"a")
        assert await fs.to_url("/a.txt") == (tmp_path / "a.txt").resolve().as_uri()
