from datetime import datetime, timezone

import pytest

from fastio import DirectoryAddress, FileAttributes, FileRecord, FIOInvalidArgumentError

_WHEN = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _record(path: str, length: int = 10) -> FileRecord:
    return FileRecord(FileAttributes.ARCHIVE, path, _WHEN, length)


# ---------------------------------------------------------------------------
# DirectoryAddress
# ---------------------------------------------------------------------------


def test_directory_trailing_separator_dropped():
    assert DirectoryAddress("C:\\data\\").path == "C:\\data"
    assert DirectoryAddress("C:\\data\\") == DirectoryAddress("C:\\data")


def test_directory_name_and_parent():
    d = DirectoryAddress("C:\\data\\sub")
    assert d.name == "sub"
    assert d.parent_path == "C:\\data"
    assert d.parent == DirectoryAddress("C:\\data")


def test_directory_parent_at_top_is_unpopulated():
    assert not DirectoryAddress("C:").parent.is_populated


def test_share_parent_stays_on_share():
    d = DirectoryAddress("\\\\server\\share\\x")
    assert d.parent == DirectoryAddress("\\\\server\\share")


def test_directory_unpopulated():
    assert not DirectoryAddress().is_populated
    assert not DirectoryAddress("").is_populated
    assert DirectoryAddress("C:\\data").is_populated


def test_directory_child():
    assert DirectoryAddress("C:\\data").child("sub") == DirectoryAddress("C:\\data\\sub")


def test_directory_descendant():
    root = DirectoryAddress("C:\\data")
    assert DirectoryAddress("C:\\data\\sub").is_descendant_of(root)
    assert DirectoryAddress("C:\\data\\sub\\deep").is_descendant_of(root)
    assert not root.is_descendant_of(root)
    assert not DirectoryAddress("C:\\database").is_descendant_of(root)
    assert not root.is_descendant_of(DirectoryAddress())


def test_directory_is_hashable_and_immutable():
    d = DirectoryAddress("C:\\data")
    assert {d, DirectoryAddress("C:\\data\\")} == {d}
    with pytest.raises(AttributeError):
        d._path = "D:\\"  # type: ignore[misc]


def test_directory_str_and_repr():
    d = DirectoryAddress("C:\\data")
    assert str(d) == "C:\\data"
    assert "C:" in repr(d)


# ---------------------------------------------------------------------------
# FileRecord
# ---------------------------------------------------------------------------


def test_file_record_fields():
    r = _record("C:\\data\\sub\\a.txt", 42)
    assert r.path == "C:\\data\\sub\\a.txt"
    assert r.name == "a.txt"
    assert r.parent_path == "C:\\data\\sub"
    assert r.parent == DirectoryAddress("C:\\data\\sub")
    assert r.length == 42
    assert r.last_write_time == _WHEN
    assert r.attributes == FileAttributes.ARCHIVE


def test_file_record_attributes_are_flags():
    r = FileRecord(int(FileAttributes.READONLY | FileAttributes.HIDDEN), "C:\\x", _WHEN, 0)
    assert FileAttributes.READONLY in r.attributes
    assert FileAttributes.HIDDEN in r.attributes


@pytest.mark.parametrize("path", ["", "   "])
def test_file_record_rejects_blank_path(path):
    with pytest.raises(FIOInvalidArgumentError):
        _record(path)


@pytest.mark.parametrize("length", [-1, 2**64])
def test_file_record_rejects_out_of_range_length(length):
    with pytest.raises(ValueError):
        _record("C:\\x", length)


def test_file_record_accepts_max_length():
    assert _record("C:\\x", 2**64 - 1).length == 2**64 - 1


def test_file_record_descendant():
    r = _record("C:\\data\\sub\\a.txt")
    assert r.is_descendant_of(DirectoryAddress("C:\\data\\sub"))
    assert r.is_descendant_of(DirectoryAddress("C:\\data"))
    assert not r.is_descendant_of(DirectoryAddress("C:\\dat"))
    assert not r.is_descendant_of(DirectoryAddress("C:\\data\\sub\\a.txt"))
    assert not r.is_descendant_of(DirectoryAddress())


def test_file_record_long_path():
    short = _record("C:\\data\\a.txt")
    assert short.long_path == short.path
    long_name = "C:\\data\\" + "n" * 300
    assert _record(long_name).long_path == "\\\\?\\" + long_name
    share = "\\\\srv\\share\\" + "n" * 300
    assert _record(share).long_path == "\\\\?\\UNC\\srv\\share\\" + "n" * 300


def test_file_record_equality_by_path():
    assert _record("C:\\x", 1) == _record("C:\\x", 2)
    assert len({_record("C:\\x"), _record("C:\\x"), _record("C:\\y")}) == 2


def test_file_record_immutable():
    r = _record("C:\\x")
    with pytest.raises(AttributeError):
        r._length = 3  # type: ignore[misc]
