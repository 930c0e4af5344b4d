"""일별 스냅샷 로더.

조회 순서: 메모리 캐시 → 영구 캐시 → 소스(스토리지) 다운로드.
영구 캐시 읽기・쓰기와 다운로드는 asyncio.to_thread 로 이벤트 루프 밖에서 수행한다.
다운로드・파싱 실패는 로그를 남기고 빈 스냅샷을 돌려준다 (캐시하지 않음).
"""

from __future__ import annotations

import asyncio
import json
import logging

from booksales.cache import TieredCache
from booksales.models import Snapshot, parse_snapshot

logger = logging.getLogger(__name__)


class SnapshotLoader:
    """소스와 캐시를 묶어 스냅샷을 읽는다."""

    def __init__(self, source, cache: TieredCache):
        self.source = source
        self.cache = cache

    async def load(self, filename: str) -> Snapshot:
        # 메모리 캐시는 이벤트 루프 스레드에서만 고친다. 파일 입출력은 작업 스레드로.
        cached = self.cache.cached_snapshot(filename)
        if cached is not None:
            return cached
        cached = await asyncio.to_thread(self.cache.read_persisted_snapshot, filename)
        if cached is not None:
            self.cache.remember_snapshot(filename, cached)
            return cached

        try:
            body = await asyncio.to_thread(self.source.download, filename)
        except Exception as e:
            logger.error("스냅샷 다운로드 실패: %s, error=%s", filename, e)
            return {}

        try:
            raw = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
            logger.error("스냅샷 JSON 파싱 실패: %s, error=%s", filename, e)
            return {}
        if not isinstance(raw, dict):
            logger.error("스냅샷 JSON 최상위가 객체가 아님: %s", filename)
            return {}

        snapshot = parse_snapshot(raw)
        self.cache.remember_snapshot(filename, snapshot)
        await asyncio.to_thread(self.cache.persist_snapshot, filename, snapshot)
        logger.info("스냅샷 로드: %s (%d 권)", filename, len(snapshot))
        return snapshot

    async def load_many(self, filenames: list[str], batch_size: int) -> dict[str, Snapshot]:
        """여러 파일을 batch_size 개씩 동시에 읽는다. 다음 배치는 이전 배치가 끝난 뒤 시작한다."""
        batch_size = max(1, batch_size)
        results: dict[str, Snapshot] = {}
        for start in range(0, len(filenames), batch_size):
            batch = filenames[start:start + batch_size]
            snapshots = await asyncio.gather(*(self.load(name) for name in batch))
            results.update(zip(batch, snapshots))
        return results
