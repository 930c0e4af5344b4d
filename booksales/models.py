"""데이터 모델 정의."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookRecord:
    """일별 스냅샷의 도서 1건을 나타낸다."""

    title: str
    author: tuple[str, ...]
    publisher: str
    rank: int  # 1 = 1위
    sales_point: int  # 판매지수
    right_price: int  # 정가
    publish_date: str
    fake_isbn: str  # 날짜가 바뀌어도 같은 도서를 가리키는 식별자
    url: str = ""
    page: int = 0
    tags: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict) -> BookRecord:
        """스냅샷 JSON 의 도서 객체로부터 생성한다.

        필수 필드가 없거나 숫자 필드가 숫자가 아니면 KeyError / ValueError / TypeError.
        """
        author = raw.get("author") or []
        if isinstance(author, str):
            author = [author]
        return cls(
            title=str(raw["title"]),
            author=tuple(str(a) for a in author),
            publisher=str(raw.get("publisher") or ""),
            rank=int(raw["rank"]),
            sales_point=int(raw.get("sales_point") or 0),
            right_price=int(raw.get("right_price") or 0),
            publish_date=str(raw.get("publish_date") or ""),
            fake_isbn=str(raw["fake_isbn"]),
            url=str(raw.get("url") or ""),
            page=int(raw.get("page") or 0),
            tags=tuple(str(t) for t in raw.get("tags") or []),
        )


# book-id -> BookRecord. 로드 후에는 읽기 전용으로만 다룬다.
Snapshot = dict[str, BookRecord]


@dataclass(frozen=True)
class FileIndexEntry:
    """스토리지에 있는 일별 스냅샷 파일 1개."""

    date: date
    filename: str
    display_date: str  # 예: 2025년 8월 1일


@dataclass
class TopBook:
    title: str
    rank: int
    sales_point: int
    publisher: str


@dataclass
class DailyOverview:
    """하루치 스냅샷 개요."""

    date: str
    total_books: int
    total_sales_points: int
    average_rank: int
    top_book: TopBook | None  # 빈 스냅샷이면 None
    publisher_count: int


@dataclass
class PublisherStats:
    name: str
    book_count: int
    total_sales_points: int
    average_rank: int
    average_price: int


@dataclass
class CategoryStats:
    category: str
    book_count: int
    total_sales_points: int
    top_books: list[tuple[str, int]]  # (title, sales_point)


@dataclass
class PeriodOverview:
    """여러 날에 걸친 개요."""

    total_days: int
    total_sales_points: int
    top_publishers: list[tuple[str, int]]  # (publisher, sales_points)
    average_daily_sales: int
    publisher_count: int


@dataclass
class BookTrend:
    """같은 도서(fake_isbn)의 날짜별 추이."""

    book_id: str
    fake_isbn: str
    title: str
    dates: list[str] = field(default_factory=list)
    ranks: list[int] = field(default_factory=list)
    sales_points: list[int] = field(default_factory=list)
    prices: list[int] = field(default_factory=list)


@dataclass
class ChartResult:
    """차트 데이터 조립 결과."""

    points: list[dict]  # [{"date": "YYYY-MM-DD", isbn: sales_point, f"{isbn}_rank": rank}, ...]
    days: int
    message: str = ""  # 데이터가 없을 때 사용자에게 보여줄 문구

    @property
    def no_data(self) -> bool:
        return not self.points


def parse_snapshot(raw: Any) -> Snapshot:
    """스냅샷 JSON(dict)을 Snapshot 으로 변환한다. 형식이 잘못된 도서는 건너뛴다."""
    if not isinstance(raw, dict):
        logger.error("스냅샷 JSON 최상위가 객체가 아님: %s", type(raw).__name__)
        return {}

    snapshot: Snapshot = {}
    for book_id, item in raw.items():
        try:
            snapshot[str(book_id)] = BookRecord.from_dict(item)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("도서 레코드 건너뜀: id=%s, error=%s", book_id, e)
    return snapshot


def snapshot_to_raw(snapshot: Snapshot) -> dict:
    """parse_snapshot 의 역변환 (영구 캐시 저장용)."""
    return {
        book_id: {
            "title": book.title,
            "author": list(book.author),
            "publisher": book.publisher,
            "rank": book.rank,
            "sales_point": book.sales_point,
            "right_price": book.right_price,
            "publish_date": book.publish_date,
            "fake_isbn": book.fake_isbn,
            "url": book.url,
            "page": book.page,
            "tags": list(book.tags),
        }
        for book_id, book in snapshot.items()
    }
