"""Tests for the shared validation helpers."""

from __future__ import annotations

import pytest

from univ_fs.interfaces import (
    EntryType,
    InvalidModificationError,
    NotFoundError,
    PathExistsError,
    Stats,
    TypeMismatchError,
)
from univ_fs.validation import (
    validate_buffer_size,
    validate_create_flag,
    validate_entry_type,
    validate_not_inside,
)


class TestValidateEntryType:
    """Tests for validate_entry_type."""

    def test_matching_kinds(self) -> None:
        validate_entry_type(Stats(size=1), EntryType.FILE, "/a")
        validate_entry_type(Stats(), EntryType.DIRECTORY, "/d")
        validate_entry_type(Stats(), None, "/d")

    def test_mismatch(self) -> None:
        with pytest.raises(TypeMismatchError, match="Not a file"):
            validate_entry_type(Stats(), EntryType.FILE, "/d")
        with pytest.raises(TypeMismatchError, match="Not a directory"):
            validate_entry_type(Stats(size=0), EntryType.DIRECTORY, "/a")


class TestValidateCreateFlag:
    """Tests for validate_create_flag."""

    @pytest.mark.parametrize(
        ("exists", "create", "expected"),
        [(False, None, True), (True, None, False), (False, True, True), (True, False, False)],
    )
    def test_resolution(self, exists: bool, create: bool | None, expected: bool) -> None:
        assert validate_create_flag(exists, create, "/a") is expected

    def test_create_existing(self) -> None:
        with pytest.raises(PathExistsError):
            validate_create_flag(True, True, "/a")

    def test_overwrite_missing(self) -> None:
        with pytest.raises(NotFoundError):
            validate_create_flag(False, False, "/a")


class TestOtherValidators:
    """Tests for validate_not_inside and validate_buffer_size."""

    def test_not_inside(self) -> None:
        validate_not_inside("/a", "/b")
        validate_not_inside("/a", "/ab")
        with pytest.raises(InvalidModificationError):
            validate_not_inside("/a", "/a/b")

    @pytest.mark.parametrize("size", [0, -1, 1.5])
    def test_invalid_buffer_size(self, size: object) -> None:
        with pytest.raises(ValueError):
            validate_buffer_size(size)  # type: ignore[arg-type]
