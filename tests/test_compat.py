"""Tests for exception normalization and translation."""

from __future__ import annotations

import errno

import pytest

from univ_fs.compat import (
    normalize_error,
    normalized_errors,
    translate_backend_exception,
    translate_exceptions,
)
from univ_fs.interfaces import (
    FileSystemError,
    InvalidModificationError,
    NoModificationAllowedError,
    NotFoundError,
    NotReadableError,
    NotSupportedError,
    PathExistsError,
    TypeMismatchError,
)


class TestNormalizeError:
    """Test normalize_error classification."""

    @pytest.mark.parametrize(
        ("native", "expected"),
        [
            (FileNotFoundError(errno.ENOENT, "gone"), NotFoundError),
            (KeyError("/a"), NotFoundError),
            (FileExistsError(errno.EEXIST, "there"), PathExistsError),
            (IsADirectoryError(errno.EISDIR, "dir"), TypeMismatchError),
            (NotADirectoryError(errno.ENOTDIR, "file"), TypeMismatchError),
            (OSError(errno.ENOTEMPTY, "full"), InvalidModificationError),
            (NotImplementedError(), NotSupportedError),
        ],
    )
    def test_specific_mappings(self, native: Exception, expected: type) -> None:
        result = normalize_error(native, NotReadableError, repository="repo", path="/a")
        assert type(result) is expected
        assert result.cause is native
        assert result.repository == "repo"
        assert result.path == "/a"

    @pytest.mark.parametrize("fallback", [NotReadableError, NoModificationAllowedError])
    def test_fallback(self, fallback: type[FileSystemError]) -> None:
        result = normalize_error(PermissionError(errno.EACCES, "denied"), fallback)
        assert type(result) is fallback

    def test_taxonomy_error_unchanged(self) -> None:
        original = PathExistsError(path="/a")
        assert normalize_error(original, NotReadableError) is original

    def test_context_manager_chains_cause(self) -> None:
        with pytest.raises(NoModificationAllowedError) as exc_info:
            with normalized_errors(NoModificationAllowedError, repository="repo", path="/a"):
                raise RuntimeError("disk on fire")
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "repo:/a" in str(exc_info.value)


class TestTranslateBackendException:
    """Test translate_backend_exception function."""

    def test_translate_notfound_error(self) -> None:
        result = translate_backend_exception(NotFoundError(path="/missing.txt"))
        assert isinstance(result, FileNotFoundError)
        assert "missing.txt" in str(result)

    def test_translate_path_exists_error(self) -> None:
        result = translate_backend_exception(PathExistsError(path="/existing.txt"))
        assert isinstance(result, FileExistsError)

    def test_translate_type_mismatch(self) -> None:
        assert isinstance(
            translate_backend_exception(TypeMismatchError.not_a_directory("/f")),
            NotADirectoryError,
        )
        assert isinstance(
            translate_backend_exception(TypeMismatchError.not_a_file("/d")),
            IsADirectoryError,
        )

    def test_translate_directory_not_empty(self) -> None:
        result = translate_backend_exception(InvalidModificationError.directory_not_empty("/d"))
        assert result.errno == errno.ENOTEMPTY

    def test_translate_exceptions_context(self) -> None:
        with pytest.raises(FileNotFoundError):
            with translate_exceptions():
                raise NotFoundError(path="/a")
