"""Shared fixtures."""

import pytest

from helpers import fixed_clock
from newsbot.adapters.storage import SQLiteItemStore


@pytest.fixture
def store(tmp_path):
    """SQLite store in a temp dir with the clock pinned to NOW."""
    item_store = SQLiteItemStore(tmp_path / "newsbot.db", clock=fixed_clock)
    yield item_store
    item_store.close()
