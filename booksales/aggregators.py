"""스냅샷 집계 함수 모음.

모두 순수 함수이며 입력 스냅샷을 변경하지 않는다.
빈 스냅샷도 정상 입력으로 취급한다 (0 으로 채운 결과).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping

from booksales.models import (
    BookRecord,
    BookTrend,
    CategoryStats,
    DailyOverview,
    PeriodOverview,
    PublisherStats,
    Snapshot,
    TopBook,
)

UNKNOWN_CATEGORY = "Unknown"


def _mean(total: int, count: int) -> int:
    # 0.5 는 올림
    return int(total / count + 0.5) if count else 0


def daily_overview(snapshot: Snapshot, date: str) -> DailyOverview:
    """하루치 개요 (총 도서 수, 판매지수 합, 평균 순위, 판매지수 1위 도서, 출판사 수)."""
    books = list(snapshot.values())
    top_book = None
    if books:
        top = max(books, key=lambda b: b.sales_point)
        top_book = TopBook(
            title=top.title, rank=top.rank, sales_point=top.sales_point, publisher=top.publisher
        )

    return DailyOverview(
        date=date,
        total_books=len(books),
        total_sales_points=sum(b.sales_point for b in books),
        average_rank=_mean(sum(b.rank for b in books), len(books)),
        top_book=top_book,
        publisher_count=len({b.publisher for b in books}),
    )


def _rollup(books: Iterable[BookRecord]) -> list[PublisherStats]:
    groups: dict[str, list[BookRecord]] = defaultdict(list)
    for book in books:
        groups[book.publisher].append(book)

    stats = [
        PublisherStats(
            name=name,
            book_count=len(items),
            total_sales_points=sum(b.sales_point for b in items),
            average_rank=_mean(sum(b.rank for b in items), len(items)),
            average_price=_mean(sum(b.right_price for b in items), len(items)),
        )
        for name, items in groups.items()
    ]
    stats.sort(key=lambda s: s.total_sales_points, reverse=True)
    return stats


def publisher_stats(snapshot: Snapshot) -> list[PublisherStats]:
    """출판사별 도서 수・판매지수 합・평균 순위・평균 정가 (판매지수 합 내림차순)."""
    return _rollup(snapshot.values())


def period_publisher_stats(snapshots: Iterable[Snapshot]) -> list[PublisherStats]:
    """기간 전체 출판사별 집계.

    book_count 는 같은 제목을 기간 내 한 권으로 센다.
    판매지수 합은 모든 등장분을 더하고, 평균 순위・평균 정가는 등장 횟수로 나눈다.
    """
    titles: dict[str, set[str]] = defaultdict(set)
    sales: dict[str, int] = defaultdict(int)
    rank_total: dict[str, int] = defaultdict(int)
    price_total: dict[str, int] = defaultdict(int)
    appearances: dict[str, int] = defaultdict(int)
    for snapshot in snapshots:
        for book in snapshot.values():
            titles[book.publisher].add(book.title)
            sales[book.publisher] += book.sales_point
            rank_total[book.publisher] += book.rank
            price_total[book.publisher] += book.right_price
            appearances[book.publisher] += 1

    stats = [
        PublisherStats(
            name=name,
            book_count=len(titles[name]),
            total_sales_points=sales[name],
            average_rank=_mean(rank_total[name], appearances[name]),
            average_price=_mean(price_total[name], appearances[name]),
        )
        for name in titles
    ]
    stats.sort(key=lambda s: s.total_sales_points, reverse=True)
    return stats


def period_overview(snapshots: Mapping[str, Snapshot], top_n: int = 10) -> PeriodOverview:
    """날짜 -> 스냅샷 묶음의 기간 개요."""
    totals: dict[str, int] = defaultdict(int)
    total_sales = 0
    for snapshot in snapshots.values():
        for book in snapshot.values():
            totals[book.publisher] += book.sales_point
            total_sales += book.sales_point

    top = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:top_n]
    return PeriodOverview(
        total_days=len(snapshots),
        total_sales_points=total_sales,
        top_publishers=top,
        average_daily_sales=_mean(total_sales, len(snapshots)),
        publisher_count=len(totals),
    )


def category_stats(snapshot: Snapshot, top_n: int = 3) -> list[CategoryStats]:
    """첫 번째 태그를 분류로 보고 분류별 집계."""
    groups: dict[str, list[BookRecord]] = defaultdict(list)
    for book in snapshot.values():
        groups[book.tags[0] if book.tags else UNKNOWN_CATEGORY].append(book)

    stats = []
    for category, items in groups.items():
        best = sorted(items, key=lambda b: b.sales_point, reverse=True)[:top_n]
        stats.append(CategoryStats(
            category=category,
            book_count=len(items),
            total_sales_points=sum(b.sales_point for b in items),
            top_books=[(b.title, b.sales_point) for b in best],
        ))
    stats.sort(key=lambda s: s.total_sales_points, reverse=True)
    return stats


def search_books(snapshot: Snapshot, term: str) -> list[tuple[str, BookRecord]]:
    """제목・저자・출판사에 대소문자 구분 없는 부분 일치 검색."""
    term = term.strip().lower()
    if not term:
        return list(snapshot.items())
    return [
        (book_id, book)
        for book_id, book in snapshot.items()
        if term in book.title.lower()
        or any(term in a.lower() for a in book.author)
        or term in book.publisher.lower()
    ]


def filter_by_publisher(
    books: Iterable[tuple[str, BookRecord]], publisher: str
) -> list[tuple[str, BookRecord]]:
    return [(book_id, b) for book_id, b in books if b.publisher == publisher]


def filter_by_price_range(
    snapshot: Snapshot, min_price: int, max_price: int
) -> list[tuple[str, BookRecord]]:
    return [
        (book_id, b) for book_id, b in snapshot.items() if min_price <= b.right_price <= max_price
    ]


def top_books_by_sales(snapshot: Snapshot, limit: int = 10) -> list[tuple[str, BookRecord]]:
    return sorted(snapshot.items(), key=lambda kv: kv[1].sales_point, reverse=True)[:limit]


def books_by_rank_range(
    snapshot: Snapshot, min_rank: int, max_rank: int
) -> list[tuple[str, BookRecord]]:
    return sort_by_rank((book_id, b) for book_id, b in snapshot.items() if min_rank <= b.rank <= max_rank)


def sort_by_rank(books: Iterable[tuple[str, BookRecord]]) -> list[tuple[str, BookRecord]]:
    return sorted(books, key=lambda kv: kv[1].rank)


def publishers(snapshot: Snapshot) -> list[str]:
    return sorted({b.publisher for b in snapshot.values()})


def analyze_book_trends(snapshots: Mapping[str, Snapshot]) -> list[BookTrend]:
    """날짜 -> 스냅샷 묶음에서 fake_isbn 별 추이를 만든다. 이틀 이상 등장한 도서만."""
    trends: dict[str, BookTrend] = {}
    for date in sorted(snapshots):
        for book_id, book in snapshots[date].items():
            trend = trends.get(book.fake_isbn)
            if trend is None:
                trend = trends[book.fake_isbn] = BookTrend(
                    book_id=book_id, fake_isbn=book.fake_isbn, title=book.title
                )
            trend.dates.append(date)
            trend.ranks.append(book.rank)
            trend.sales_points.append(book.sales_point)
            trend.prices.append(book.right_price)
    return [t for t in trends.values() if len(t.dates) > 1]
