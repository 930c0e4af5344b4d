"""cache 모듈의 유닛 테스트."""

import json
from unittest.mock import patch

import pytest

from booksales.cache import CacheQuotaExceeded, MemoryCache, PersistentStore, TieredCache
from booksales.models import parse_snapshot
from tests.helpers import make_book


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestMemoryCache:
    """MemoryCache 의 테스트."""

    def test_evicts_oldest_inserted(self):
        cache = MemoryCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        assert "a" not in cache
        assert cache.keys() == ["b", "c"]

    def test_read_does_not_refresh(self):
        """조회해도 순서가 바뀌지 않는다 (LRU 가 아님)."""
        cache = MemoryCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.get("a") == 1
        cache.set("c", 3)

        assert cache.get("a") is None
        assert cache.get("b") == 2

    def test_overwrite_keeps_position(self):
        cache = MemoryCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)

        assert cache.keys() == ["b", "c"]

    def test_clear(self):
        cache = MemoryCache(max_entries=2)
        cache.set("a", 1)
        cache.clear()
        assert len(cache) == 0


class TestPersistentStore:
    """PersistentStore 의 테스트."""

    def test_set_and_get(self, tmp_path):
        store = PersistentStore(directory=tmp_path, clock=FakeClock())
        store.set("snapshot:yes24_2025_0801.json", {"b1": 1})

        assert store.get("snapshot:yes24_2025_0801.json") == {"b1": 1}
        files = list(tmp_path.glob("book_sales_*.json"))
        assert len(files) == 1
        envelope = json.loads(files[0].read_text(encoding="utf-8"))
        assert envelope["version"] == store.version
        assert envelope["timestamp"] == 1_000_000.0

    def test_missing(self, tmp_path):
        store = PersistentStore(directory=tmp_path)
        assert store.get("nothing") is None

    def test_expired_is_miss_and_removed(self, tmp_path):
        clock = FakeClock()
        store = PersistentStore(directory=tmp_path, ttl_seconds=48 * 3600, clock=clock)
        store.set("k", [1, 2])

        clock.now += 48 * 3600 + 1
        assert store.get("k") is None
        assert list(tmp_path.glob("book_sales_*.json")) == []

    def test_within_ttl_is_hit(self, tmp_path):
        clock = FakeClock()
        store = PersistentStore(directory=tmp_path, ttl_seconds=48 * 3600, clock=clock)
        store.set("k", [1, 2])

        clock.now += 47 * 3600
        assert store.get("k") == [1, 2]

    def test_version_mismatch_is_miss(self, tmp_path):
        old = PersistentStore(directory=tmp_path, version="v1")
        old.set("k", "old data")

        new = PersistentStore(directory=tmp_path, version="v2")
        assert new.get("k") is None

    def test_corrupt_file_is_miss(self, tmp_path):
        store = PersistentStore(directory=tmp_path)
        store.set("k", "data")
        next(tmp_path.glob("book_sales_*.json")).write_text("{not json", encoding="utf-8")

        assert store.get("k") is None

    def test_quota_exceeded(self, tmp_path):
        store = PersistentStore(directory=tmp_path, max_bytes=200)
        with pytest.raises(CacheQuotaExceeded):
            store.set("k", "x" * 500)
        assert store.get("k") is None

    def test_sweep_removes_only_stale(self, tmp_path):
        clock = FakeClock()
        store = PersistentStore(directory=tmp_path, ttl_seconds=100, clock=clock)
        store.set("old", 1)
        clock.now += 200
        store.set("fresh", 2)
        PersistentStore(directory=tmp_path, version="v0", clock=clock).set("other-version", 3)

        assert store.sweep() == 2
        assert store.get("fresh") == 2

    def test_extra_fields(self, tmp_path):
        store = PersistentStore(directory=tmp_path)
        store.set("chart", [], book_titles=["A"], days_before=30)
        envelope = store.get_entry("chart")
        assert envelope["book_titles"] == ["A"]
        assert envelope["days_before"] == 30

    def test_long_key_uses_fixed_length_filename(self, tmp_path):
        key = TieredCache.chart_key((str(9791100000000 + i) for i in range(25)), 365)
        store = PersistentStore(directory=tmp_path)
        store.set(key, [{"date": "2025-08-01"}])

        assert store.get(key) == [{"date": "2025-08-01"}]
        (path,) = tmp_path.glob("book_sales_*.json")
        assert len(path.name) == len("book_sales_") + 64 + len(".json")
        # 원래 키는 봉투 안에 남는다
        assert store.get_entry(key)["key"] == key

    def test_stat_error_is_miss(self, tmp_path):
        store = PersistentStore(directory=tmp_path)
        with patch("booksales.cache.Path.exists", side_effect=OSError(36, "File name too long")):
            assert store.get_entry("k") is None


class TestTieredCache:
    """TieredCache 의 테스트."""

    def _snapshot(self):
        return parse_snapshot({"b1": make_book("111", 1, 1000, title="A")})

    def test_snapshot_roundtrip_through_persistent(self, store):
        TieredCache(MemoryCache(), store).set_snapshot("yes24_2025_0801.json", self._snapshot())

        # 새 메모리 캐시 (프로세스 재시작) 에서도 영구 캐시로 복원된다
        fresh = TieredCache(MemoryCache(), store)
        restored = fresh.get_snapshot("yes24_2025_0801.json")
        assert restored == self._snapshot()
        assert TieredCache.snapshot_key("yes24_2025_0801.json") in fresh.memory

    def test_memory_hit_skips_persistent(self, cache):
        cache.set_snapshot("f.json", self._snapshot())
        with patch.object(cache.persistent, "get_entry") as mock_get:
            assert cache.get_snapshot("f.json") == self._snapshot()
        mock_get.assert_not_called()

    def test_miss(self, cache):
        assert cache.get_snapshot("none.json") is None
        assert cache.get_chart(["1"], 30) is None

    def test_chart_key_is_order_independent(self):
        assert TieredCache.chart_key(["2", "1"], 30) == TieredCache.chart_key(["1", "2"], 30)
        assert TieredCache.chart_key(["1", "2"], 30) != TieredCache.chart_key(["1", "2"], 60)

    def test_chart_roundtrip(self, store):
        points = [{"date": "2025-08-01", "111": 1000, "111_rank": 1}]
        TieredCache(MemoryCache(), store).set_chart([("A", "111"), ("B", "222")], 30, points)

        fresh = TieredCache(MemoryCache(), store)
        assert fresh.get_chart(["222", "111"], 30) == points
        envelope = store.get_entry(TieredCache.chart_key(["111", "222"], 30))
        assert envelope["book_titles"] == ["A", "B"]
        assert envelope["days_before"] == 30

    def test_quota_triggers_sweep_then_retry(self, tmp_path):
        clock = FakeClock()
        store = PersistentStore(directory=tmp_path, ttl_seconds=100, max_bytes=400, clock=clock)
        store.set("stale", "x" * 250)
        clock.now += 200

        cache = TieredCache(MemoryCache(), store)
        cache.set_chart([("A", "111")], 30, [{"date": "2025-08-01", "111": 1}])

        assert store.get_entry("stale") is None
        assert cache.persistent.get(TieredCache.chart_key(["111"], 30)) is not None

    def test_persistent_write_failure_is_silent(self, tmp_path):
        store = PersistentStore(directory=tmp_path, max_bytes=10)
        cache = TieredCache(MemoryCache(), store)

        cache.set_snapshot("f.json", self._snapshot())

        # 메모리에는 남고 영구 캐시는 포기
        assert cache.get_snapshot("f.json") == self._snapshot()
        assert list(tmp_path.glob("book_sales_*.json")) == []

    def test_without_persistent_tier(self):
        cache = TieredCache(MemoryCache())
        cache.set_snapshot("f.json", self._snapshot())
        assert cache.get_snapshot("f.json") == self._snapshot()

    def test_chart_hit_is_a_copy(self, store):
        points = [{"date": "2025-08-01", "111": 1000}]
        cache = TieredCache(MemoryCache(), store)
        cache.set_chart([("A", "111")], 30, points)
        points[0]["111"] = -1

        hit = cache.get_chart(["111"], 30)
        hit[0]["111"] = 0
        hit.append({"date": "2025-08-02"})

        assert cache.get_chart(["111"], 30) == [{"date": "2025-08-01", "111": 1000}]
        # 영구 캐시에서 승격된 경우도 같다
        fresh = TieredCache(MemoryCache(), store)
        fresh.get_chart(["111"], 30).clear()
        assert fresh.get_chart(["111"], 30) == [{"date": "2025-08-01", "111": 1000}]
