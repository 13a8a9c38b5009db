from datetime import datetime, timezone

from fastio._typing import (
    FileAccess,
    FileShare,
    RawScanEntry,
    datetime_to_filetime,
    filetime_to_datetime,
)


def test_filetime_epoch():
    assert filetime_to_datetime(0, 0) == datetime(1601, 1, 1, tzinfo=timezone.utc)


def test_filetime_unix_epoch():
    # 116444736000000000 ticks between 1601-01-01 and 1970-01-01
    ticks = 116444736000000000
    assert filetime_to_datetime(ticks >> 32, ticks & 0xFFFFFFFF) == datetime(
        1970, 1, 1, tzinfo=timezone.utc
    )


def test_datetime_to_filetime_inverse():
    when = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)
    assert filetime_to_datetime(*datetime_to_filetime(when)) == when


def test_naive_datetime_taken_as_utc():
    naive = datetime(2020, 1, 1)
    assert datetime_to_filetime(naive) == datetime_to_filetime(naive.replace(tzinfo=timezone.utc))


def test_raw_entry_size_combines_halves():
    raw = RawScanEntry(0x20, "big.bin", 1, 5, 0, 0)
    assert raw.size == (1 << 32) + 5


def test_read_write_flags():
    assert FileAccess.READ_WRITE == FileAccess.READ | FileAccess.WRITE
    assert FileShare.READ_WRITE == FileShare.READ | FileShare.WRITE
