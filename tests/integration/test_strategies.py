import threading

import pytest

from fastio import DirectoryAddress, FastFileSystem, FileRecord
from fastio._fs import STRATEGIES
from tests.helpers.asserts import assert_no_leaked_handles
from tests.helpers.trees import ROOT, build_tree, paths


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_non_recursive_lists_top_level_files(sample_fs, strategy):
    files = list(sample_fs.enumerate_files(ROOT, strategy=strategy))
    assert {f.name for f in files} == {"a.txt", "b.txt"}
    assert all(isinstance(f, FileRecord) for f in files)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_recursive_lists_whole_tree(sample_fs, strategy):
    files = list(sample_fs.enumerate_files(ROOT, recursive=True, strategy=strategy))
    assert paths(files) == {
        ROOT + "\\a.txt",
        ROOT + "\\b.txt",
        ROOT + "\\sub1\\c.txt",
        ROOT + "\\sub2\\d.txt",
    }


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_recursive_is_superset_of_flat(sample_fs, strategy):
    flat = paths(sample_fs.enumerate_files(ROOT, strategy=strategy))
    deep = paths(sample_fs.enumerate_files(ROOT, recursive=True, strategy=strategy))
    assert flat < deep


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_directory_callback_once_per_directory(sample_fs, strategy):
    seen = []
    lock = threading.Lock()

    def on_directory(d):
        with lock:
            seen.append(d)

    list(sample_fs.enumerate_files(ROOT, recursive=True, strategy=strategy, on_directory=on_directory))
    assert sorted(d.name for d in seen) == ["sub1", "sub2"]


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_enumerate_directories(memory_api, strategy):
    files, dirs = build_tree(memory_api, ROOT, depth=3, dirs_per_level=2, files_per_dir=1)
    fs = FastFileSystem(api=memory_api, strategy=strategy)
    found = list(fs.enumerate_directories(ROOT, recursive=True))
    assert all(isinstance(d, DirectoryAddress) for d in found)
    assert {d.path for d in found} == dirs
    assert len(found) == len(dirs)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_strategies_agree_on_larger_tree(memory_api, strategy):
    files, _ = build_tree(memory_api, ROOT, depth=3, dirs_per_level=3, files_per_dir=2)
    fs = FastFileSystem(api=memory_api)
    found = list(fs.enumerate_files(ROOT, recursive=True, strategy=strategy, workers=4))
    assert paths(found) == files
    assert len(found) == len(files)
    assert_no_leaked_handles(memory_api)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_every_record_lies_under_root(memory_api, strategy):
    build_tree(memory_api, ROOT, depth=2, dirs_per_level=2, files_per_dir=2)
    fs = FastFileSystem(api=memory_api, strategy=strategy)
    root = DirectoryAddress(ROOT)
    for record in fs.enumerate_files(ROOT, recursive=True):
        assert record.is_descendant_of(root)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_reparse_points_not_followed(memory_api, strategy):
    memory_api.write_file(ROOT + "\\a.txt")
    memory_api.write_file("D:\\target\\hidden.txt")
    memory_api.add_reparse_point(ROOT + "\\junction", target="D:\\target")
    fs = FastFileSystem(api=memory_api, strategy=strategy)
    assert [f.name for f in fs.enumerate_files(ROOT, recursive=True)] == ["a.txt"]
    assert list(fs.enumerate_directories(ROOT, recursive=True)) == []


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_empty_directory(memory_api, strategy):
    memory_api.mkdir(ROOT)
    fs = FastFileSystem(api=memory_api, strategy=strategy)
    seen = []
    assert list(fs.enumerate_files(ROOT, recursive=True, on_directory=seen.append)) == []
    assert seen == []
    assert memory_api.opened_count == 1
    assert_no_leaked_handles(memory_api)


def test_sequential_order_is_depth_first(sample_fs):
    names = [f.name for f in sample_fs.enumerate_files(ROOT, recursive=True)]
    assert names == ["a.txt", "b.txt", "c.txt", "d.txt"]


def test_sequential_is_lazy(sample_api):
    fs = FastFileSystem(api=sample_api)
    files = fs.enumerate_files(ROOT, recursive=True)
    assert sample_api.opened_count == 0
    next(files)
    assert sample_api.opened_count == 1
    files.close()
    assert_no_leaked_handles(sample_api)


def test_trailing_separator_and_address_accepted(sample_fs):
    a = paths(sample_fs.enumerate_files(ROOT + "\\"))
    b = paths(sample_fs.enumerate_files(DirectoryAddress(ROOT)))
    assert a == b == {ROOT + "\\a.txt", ROOT + "\\b.txt"}


def test_scan_callbacks_fanout(sample_fs):
    files, dirs = [], []
    lock = threading.Lock()

    def on_file(f):
        with lock:
            files.append(f)

    def on_directory(d):
        with lock:
            dirs.append(d)

    sample_fs.scan(ROOT, on_file, recursive=True, on_directory=on_directory)
    assert len(files) == 4
    assert sorted(d.name for d in dirs) == ["sub1", "sub2"]


@pytest.mark.parametrize("strategy", ["sequential", "pool"])
def test_scan_callbacks_other_strategies(sample_fs, strategy):
    files = []
    sample_fs.scan(ROOT, files.append, recursive=True, strategy=strategy)
    assert len(files) == 4


def test_fanout_runs_on_walker_threads(sample_fs):
    threads = set()
    sample_fs.scan(ROOT, lambda f: threads.add(threading.current_thread().name), recursive=True)
    assert any(name.startswith("fastio-fanout:") for name in threads)


def test_constructor_defaults(memory_api):
    fs = FastFileSystem(api=memory_api)
    assert fs.strategy == "sequential"
    assert fs.workers == 10
    assert fs.api is memory_api


@pytest.mark.parametrize(
    "kwargs",
    [
        {"strategy": "bogus"},
        {"workers": 0},
        {"channel_capacity": -1},
    ],
)
def test_constructor_rejects_bad_config(memory_api, kwargs):
    with pytest.raises(ValueError):
        FastFileSystem(api=memory_api, **kwargs)


def test_per_call_strategy_rejected(sample_fs):
    with pytest.raises(ValueError):
        list(sample_fs.enumerate_files(ROOT, strategy="bogus"))
