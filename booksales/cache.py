"""스냅샷・차트 데이터 캐시 모듈.

1단계: 프로세스 메모리 (MemoryCache)
2단계: 로컬 디스크의 JSON 파일 (PersistentStore)
두 단계 모두 놓치면 호출 측이 원본(스토리지)에서 가져온다.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from booksales import config
from booksales.models import Snapshot, parse_snapshot, snapshot_to_raw

logger = logging.getLogger(__name__)


class CacheQuotaExceeded(Exception):
    """영구 캐시 용량 초과."""


class MemoryCache:
    """최대 항목 수가 정해진 메모리 캐시.

    용량을 넘으면 가장 먼저 넣은 항목부터 버린다. 조회는 순서에 영향을 주지 않는다.
    """

    def __init__(self, max_entries: int = config.MEMORY_CACHE_MAX_ENTRIES):
        self.max_entries = max_entries
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        # 기존 키를 덮어써도 삽입 순서는 그대로
        self._data[key] = value
        while len(self._data) > self.max_entries:
            oldest = next(iter(self._data))
            del self._data[oldest]
            logger.debug("메모리 캐시에서 제거: %s", oldest)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def keys(self) -> list[str]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()


class PersistentStore:
    """디렉터리에 키마다 JSON 파일 하나를 두는 영구 캐시.

    파일명: <prefix><키의 sha256>.json (키 길이와 무관하게 고정 길이)
    파일 내용: {"key": 원래 키, "data": ..., "timestamp": epoch 초, "version": 스키마 버전, ...부가 정보}
    버전이 다르거나 TTL 이 지난 항목은 읽을 때 지우고 없는 것으로 취급한다.
    """

    def __init__(
        self,
        directory: Path = config.CACHE_DIR,
        prefix: str = config.CACHE_PREFIX,
        version: str = config.CACHE_VERSION,
        ttl_seconds: float = config.CACHE_TTL_SECONDS,
        max_bytes: int = config.CACHE_MAX_BYTES,
        clock: Callable[[], float] = time.time,
    ):
        self.directory = Path(directory)
        self.prefix = prefix
        self.version = version
        self.ttl_seconds = ttl_seconds
        self.max_bytes = max_bytes
        self.clock = clock

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{self.prefix}{digest}.json"

    def _entries(self) -> Iterable[Path]:
        if not self.directory.is_dir():
            return []
        return self.directory.glob(f"{self.prefix}*.json")

    def _is_valid(self, envelope: Any) -> bool:
        if not isinstance(envelope, dict) or "data" not in envelope:
            return False
        if envelope.get("version") != self.version:
            return False
        timestamp = envelope.get("timestamp")
        if not isinstance(timestamp, (int, float)):
            return False
        return self.clock() - timestamp <= self.ttl_seconds

    def _read(self, path: Path) -> Any | None:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None

    def get_entry(self, key: str) -> dict | None:
        """유효한 봉투(envelope) 전체를 돌려준다. 없거나 만료, 읽을 수 없으면 None."""
        path = self._path(key)
        try:
            if not path.exists():
                return None
        except OSError as e:
            logger.warning("영구 캐시 조회 실패, 미스로 취급: %s", e)
            return None
        envelope = self._read(path)
        if not self._is_valid(envelope):
            logger.info("만료되었거나 버전이 다른 캐시 삭제: %s", path.name)
            path.unlink(missing_ok=True)
            return None
        return envelope

    def get(self, key: str) -> Any | None:
        envelope = self.get_entry(key)
        return None if envelope is None else envelope["data"]

    def set(self, key: str, data: Any, **extra: Any) -> None:
        """항목을 기록한다.

        Raises:
            CacheQuotaExceeded: 기록하면 max_bytes 를 넘는 경우
            OSError: 디스크 쓰기 실패
        """
        envelope = {
            **extra,
            "key": key,
            "data": data,
            "timestamp": self.clock(),
            "version": self.version,
        }
        payload = json.dumps(envelope, ensure_ascii=False).encode("utf-8")

        path = self._path(key)
        current = path.stat().st_size if path.exists() else 0
        if self.total_bytes() - current + len(payload) > self.max_bytes:
            raise CacheQuotaExceeded(f"{key}: {len(payload)} bytes")

        self.directory.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)

    def total_bytes(self) -> int:
        return sum(p.stat().st_size for p in self._entries())

    def sweep(self) -> int:
        """만료・버전 불일치・손상된 항목을 모두 지운다.

        Returns:
            삭제한 항목 수
        """
        removed = 0
        for path in list(self._entries()):
            if not self._is_valid(self._read(path)):
                path.unlink(missing_ok=True)
                removed += 1
        if removed:
            logger.info("영구 캐시 정리: %d 건 삭제", removed)
        return removed

    def clear(self) -> None:
        for path in list(self._entries()):
            path.unlink(missing_ok=True)


class TieredCache:
    """메모리 → 영구 캐시 순으로 조회하는 2단 캐시.

    키 공간:
      snapshot:<파일명>
      chart:<정렬한 isbn 을 , 로 연결>:<기간>
    """

    def __init__(self, memory: MemoryCache, persistent: PersistentStore | None = None):
        self.memory = memory
        self.persistent = persistent

    @staticmethod
    def snapshot_key(filename: str) -> str:
        return f"snapshot:{filename}"

    @staticmethod
    def chart_key(isbns: Iterable[str], days: int) -> str:
        return f"chart:{','.join(sorted(set(isbns)))}:{days}"

    def _get(self, key: str) -> tuple[Any | None, dict | None]:
        """(메모리 값, 영구 캐시 봉투) 중 먼저 찾은 쪽을 돌려준다."""
        value = self.memory.get(key)
        if value is not None:
            return value, None
        if self.persistent is None:
            return None, None
        return None, self.persistent.get_entry(key)

    def _persist(self, key: str, data: Any, **extra: Any) -> None:
        if self.persistent is None:
            return
        try:
            self.persistent.set(key, data, **extra)
            return
        except (CacheQuotaExceeded, OSError) as e:
            logger.warning("영구 캐시 기록 실패, 정리 후 재시도: %s", e)

        self.persistent.sweep()
        try:
            self.persistent.set(key, data, **extra)
        except (CacheQuotaExceeded, OSError) as e:
            logger.debug("영구 캐시 기록 포기: %s", e)

    def cached_snapshot(self, filename: str) -> Snapshot | None:
        """메모리 단계만 조회한다."""
        return self.memory.get(self.snapshot_key(filename))

    def read_persisted_snapshot(self, filename: str) -> Snapshot | None:
        """영구 캐시만 조회한다.

        메모리 단계를 건드리지 않으므로 asyncio.to_thread 로 작업 스레드에서 호출해도 된다.
        """
        if self.persistent is None:
            return None
        envelope = self.persistent.get_entry(self.snapshot_key(filename))
        return None if envelope is None else parse_snapshot(envelope["data"])

    def remember_snapshot(self, filename: str, snapshot: Snapshot) -> None:
        self.memory.set(self.snapshot_key(filename), snapshot)

    def persist_snapshot(self, filename: str, snapshot: Snapshot) -> None:
        """영구 캐시에만 기록한다. 작업 스레드에서 호출해도 된다."""
        self._persist(self.snapshot_key(filename), snapshot_to_raw(snapshot))

    def get_snapshot(self, filename: str) -> Snapshot | None:
        snapshot = self.cached_snapshot(filename)
        if snapshot is not None:
            return snapshot
        snapshot = self.read_persisted_snapshot(filename)
        if snapshot is not None:
            self.remember_snapshot(filename, snapshot)
        return snapshot

    def set_snapshot(self, filename: str, snapshot: Snapshot) -> None:
        self.remember_snapshot(filename, snapshot)
        self.persist_snapshot(filename, snapshot)

    def get_chart(self, isbns: Iterable[str], days: int) -> list[dict] | None:
        """캐시된 차트 포인트의 사본을 돌려준다. 호출 측이 고쳐도 캐시는 그대로."""
        key = self.chart_key(isbns, days)
        value, envelope = self._get(key)
        if value is None:
            if envelope is None:
                return None
            value = envelope["data"]
            self.memory.set(key, value)
        return [dict(point) for point in value]

    def set_chart(self, books: Iterable[tuple[str, str]], days: int, points: list[dict]) -> None:
        books = list(books)
        key = self.chart_key((isbn for _, isbn in books), days)
        self.memory.set(key, [dict(point) for point in points])
        self._persist(key, points, book_titles=[title for title, _ in books], days_before=days)
