"""pytest fixture plugin.

Usage::

    # conftest.py
    pytest_plugins = ["fastio._pytest_plugin"]

This makes the ``memory_api`` and ``fast_fs`` fixtures available::

    def test_something(memory_api, fast_fs):
        memory_api.write_file("C:\\data\\a.txt", b"hello")
        assert [f.name for f in fast_fs.enumerate_files("C:\\data")] == ["a.txt"]
"""

import pytest

from ._fs import FastFileSystem
from ._memory import MemoryScanAPI


@pytest.fixture
def memory_api() -> MemoryScanAPI:
    """An empty in-memory volume, independent per test (function scope)."""
    return MemoryScanAPI()


@pytest.fixture
def fast_fs(memory_api: MemoryScanAPI) -> FastFileSystem:
    """A :class:`FastFileSystem` over ``memory_api`` with default settings."""
    return FastFileSystem(api=memory_api)
