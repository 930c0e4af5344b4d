"""선택한 도서들의 판매지수・순위 추이 차트 데이터 조립.

처리 흐름:
  1. 파일 인덱스에서 최근 N 일 구간만 고른다
  2. 60 일을 넘는 구간은 간격을 두고 파일을 솎아낸다
  3. 배치 단위로 동시에 스냅샷을 읽는다 (캐시 경유)
  4. 각 스냅샷에서 선택한 fake_isbn 의 판매지수・순위를 뽑는다
  5. 날짜별로 합쳐 오름차순 정렬 후 캐시에 저장한다

도서는 제목이 아니라 fake_isbn 으로 날짜 간 대응시킨다 (제목 표기가 날마다 조금씩 달라짐).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import timedelta

from booksales import config
from booksales.cache import TieredCache
from booksales.loader import SnapshotLoader
from booksales.models import ChartResult, FileIndexEntry, Snapshot

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "선택한 기간에 해당하는 데이터가 없습니다."


def select_window(index: list[FileIndexEntry], days: int) -> list[FileIndexEntry]:
    """가장 최근 파일 날짜를 끝으로 하는 days 일 구간의 파일만 남긴다."""
    if not index:
        return []
    end = max(e.date for e in index)
    start = end - timedelta(days=days - 1)
    return sorted((e for e in index if start <= e.date <= end), key=lambda e: e.date)


def sampling_stride(days: int) -> int:
    for limit, stride in config.SAMPLING_STRIDES:
        if days <= limit:
            return stride
    return config.SAMPLING_STRIDE_MAX


def downsample(
    entries: list[FileIndexEntry],
    days: int,
    max_points: int = config.MAX_CHART_POINTS,
) -> list[FileIndexEntry]:
    """긴 기간의 파일 목록을 솎아낸다. 가장 최근 파일은 항상 남긴다."""
    if days <= config.DOWNSAMPLE_THRESHOLD_DAYS or not entries:
        return list(entries)

    stride = sampling_stride(days)
    sampled = entries[::-1][::stride][::-1]
    if len(sampled) <= max_points:
        return sampled
    if max_points <= 1:
        return sampled[-1:]

    # 최신 항목을 끝에 두고 균등 간격으로 max_points 개 고르기
    last = len(sampled) - 1
    picks = sorted({last - round(i * last / (max_points - 1)) for i in range(max_points)})
    return [sampled[i] for i in picks]


def batch_size_for(count: int) -> int:
    return min(config.BATCH_SIZE_MAX, max(config.BATCH_SIZE_MIN, count // 4))


def extract_points(date: str, snapshot: Snapshot, isbns: set[str]) -> dict:
    """한 날짜의 부분 포인트. 그날 없는 도서는 키 자체를 넣지 않는다."""
    point: dict = {"date": date}
    for book in snapshot.values():
        if book.fake_isbn in isbns:
            point[book.fake_isbn] = book.sales_point
            point[f"{book.fake_isbn}_rank"] = book.rank
    return point


def merge_points(partials: Iterable[dict]) -> list[dict]:
    """날짜별로 합치고 날짜 오름차순으로 정렬한다."""
    merged: dict[str, dict] = {}
    for partial in partials:
        merged.setdefault(partial["date"], {"date": partial["date"]}).update(partial)
    return [merged[d] for d in sorted(merged)]


class ChartAssembler:
    """도서 추이 차트 데이터를 만든다."""

    def __init__(self, loader: SnapshotLoader, cache: TieredCache):
        self.loader = loader
        self.cache = cache

    async def build(
        self,
        books: Sequence[tuple[str, str]],
        days: int,
        index: list[FileIndexEntry],
    ) -> ChartResult:
        """차트 데이터를 만든다.

        Args:
            books: [(title, fake_isbn), ...]
            days: config.PERIODS 중 하나
            index: file_index.load_file_index() 결과

        Returns:
            ChartResult. 기간 안에 파일이 하나도 없으면 points 가 비고 message 가 채워진다.
        """
        if days not in config.PERIODS:
            raise ValueError(f"지원하지 않는 기간: {days} (가능: {config.PERIODS})")

        isbns = {str(isbn) for _, isbn in books}
        if not isbns:
            return ChartResult(points=[], days=days, message="선택한 도서가 없습니다.")

        cached = self.cache.get_chart(isbns, days)
        if cached is not None:
            logger.info("차트 캐시 적중: %d 권, %d 일", len(isbns), days)
            return ChartResult(points=cached, days=days)

        window = select_window(index, days)
        if not window:
            logger.warning("기간 내 스냅샷 없음: %d 일", days)
            return ChartResult(points=[], days=days, message=NO_DATA_MESSAGE)

        sampled = downsample(window, days)
        if len(sampled) != len(window):
            logger.info("파일 샘플링: %d → %d 개", len(window), len(sampled))

        snapshots = await self.loader.load_many(
            [e.filename for e in sampled], batch_size_for(len(sampled))
        )

        partials = []
        for entry in sampled:
            snapshot = snapshots.get(entry.filename)
            if not snapshot:
                logger.warning("스냅샷을 읽지 못해 날짜 생략: %s", entry.filename)
                continue
            partials.append(extract_points(entry.date.isoformat(), snapshot, isbns))

        points = merge_points(partials)
        if points:
            self.cache.set_chart([(title, str(isbn)) for title, isbn in books], days, points)
        logger.info("차트 데이터: %d 권, %d 일, %d 포인트", len(isbns), days, len(points))
        return ChartResult(points=points, days=days)
