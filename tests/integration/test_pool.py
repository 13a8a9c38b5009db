import time

import pytest

from fastio import DirectoryAddress, FastFileSystem, FileRecord, FIONotFoundError, WorkerPool
from tests.helpers.asserts import assert_no_leaked_handles
from tests.helpers.trees import ROOT, build_tree, file_paths


@pytest.mark.parametrize("workers", [1, 2, 4, 10, 16])
def test_pool_finds_every_file(memory_api, workers):
    files, _ = build_tree(memory_api, ROOT, depth=3, dirs_per_level=3, files_per_dir=2)
    pool = WorkerPool(memory_api, DirectoryAddress(ROOT), workers=workers)
    assert file_paths(pool) == files
    assert pool.join(timeout=5.0)
    assert pool.is_done
    assert_no_leaked_handles(memory_api)


def test_pool_yields_directories_too(sample_api):
    entries = list(WorkerPool(sample_api, DirectoryAddress(ROOT), workers=2))
    assert sorted(e.name for e in entries if isinstance(e, DirectoryAddress)) == ["sub1", "sub2"]
    assert len([e for e in entries if isinstance(e, FileRecord)]) == 4


def test_pool_non_recursive_scans_root_only(sample_api):
    entries = list(WorkerPool(sample_api, DirectoryAddress(ROOT), recursive=False, workers=4))
    assert sorted(e.name for e in entries) == ["a.txt", "b.txt", "sub1", "sub2"]
    assert sample_api.opened_count == 1


def test_pool_empty_root(memory_api):
    memory_api.mkdir(ROOT)
    pool = WorkerPool(memory_api, DirectoryAddress(ROOT), workers=3)
    assert list(pool) == []
    assert pool.join(timeout=5.0)


def test_pool_root_error_raised_directly(memory_api):
    memory_api.mkdir("C:\\")
    pool = WorkerPool(memory_api, DirectoryAddress("C:\\missing"), workers=3)
    with pytest.raises(FIONotFoundError):
        list(pool)
    assert pool.join(timeout=5.0)


def test_pool_with_bounded_channel(memory_api):
    files, _ = build_tree(memory_api, ROOT, depth=2, dirs_per_level=4, files_per_dir=3)
    pool = WorkerPool(memory_api, DirectoryAddress(ROOT), workers=4, capacity=1)
    assert file_paths(pool) == files
    assert pool.join(timeout=5.0)


def test_pool_blocked_worker_holds_no_listing(memory_api):
    files, _ = build_tree(memory_api, ROOT, depth=1, dirs_per_level=4, files_per_dir=3)
    pool = WorkerPool(memory_api, DirectoryAddress(ROOT), workers=1, capacity=1)
    iterator = iter(pool)
    first = next(iterator)
    deadline = time.monotonic() + 5.0
    while len(pool._channel) < 1 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert len(pool._channel) == 1
    assert memory_api.open_handles == frozenset()
    assert memory_api.opened_count == memory_api.closed_count == 1
    rest = list(iterator)
    assert file_paths([first, *rest]) == files
    assert pool.join(timeout=5.0)
    assert_no_leaked_handles(memory_api)


def test_pool_workers_finish_after_consumer_stops(memory_api):
    build_tree(memory_api, ROOT, depth=2, dirs_per_level=3, files_per_dir=2)
    pool = WorkerPool(memory_api, DirectoryAddress(ROOT), workers=3)
    iterator = iter(pool)
    next(iterator)
    iterator.close()
    assert pool.join(timeout=5.0)
    assert pool.is_done
    assert_no_leaked_handles(memory_api)


def test_pool_start_twice_raises(sample_api):
    pool = WorkerPool(sample_api, DirectoryAddress(ROOT))
    pool.start()
    with pytest.raises(RuntimeError):
        pool.start()
    list(pool)
    assert pool.join(timeout=5.0)


def test_pool_rejects_zero_workers(sample_api):
    with pytest.raises(ValueError):
        WorkerPool(sample_api, DirectoryAddress(ROOT), workers=0)


def test_pool_threads_are_named(sample_api):
    pool = WorkerPool(sample_api, DirectoryAddress(ROOT), workers=2)
    pool.start()
    names = [t.name for t in pool._threads]
    list(pool)
    assert names == ["fastio-pool-0", "fastio-pool-1"]


def test_facade_per_call_workers(memory_api):
    files, _ = build_tree(memory_api, ROOT, depth=2, dirs_per_level=2, files_per_dir=1)
    fs = FastFileSystem(api=memory_api, strategy="pool", workers=8, channel_capacity=2)
    assert {f.path for f in fs.enumerate_files(ROOT, recursive=True, workers=1)} == files
