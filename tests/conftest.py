import pytest

from fastio import FastFileSystem, MemoryScanAPI
from fastio._pytest_plugin import fast_fs, memory_api  # noqa: F401

from tests.helpers.trees import build_sample_tree


@pytest.fixture
def sample_api(memory_api: MemoryScanAPI) -> MemoryScanAPI:
    """ROOT with two files and two subdirectories holding one file each."""
    build_sample_tree(memory_api)
    return memory_api


@pytest.fixture
def sample_fs(sample_api: MemoryScanAPI) -> FastFileSystem:
    return FastFileSystem(api=sample_api)
