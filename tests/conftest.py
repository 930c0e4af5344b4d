"""공용 픽스처."""

import pytest

from booksales.cache import MemoryCache, PersistentStore, TieredCache
from tests.helpers import FakeSource, load_fixture


@pytest.fixture
def fixture_source():
    return FakeSource({
        "yes24_2025_0801.json": load_fixture("yes24_2025_0801.json"),
        "yes24_2025_0802.json": load_fixture("yes24_2025_0802.json"),
    })


@pytest.fixture
def store(tmp_path):
    return PersistentStore(directory=tmp_path / "cache", max_bytes=1024 * 1024)


@pytest.fixture
def cache(store):
    return TieredCache(MemoryCache(max_entries=50), store)
