"""도서 판매 데이터 조회 — 메인 엔트리포인트.

사용 예:
  python -m booksales.main files
  python -m booksales.main overview --date 2025-09-04
  python -m booksales.main publishers --limit 20
  python -m booksales.main period --days 90
  python -m booksales.main search 파이썬 --publisher 골든래빗
  python -m booksales.main chart 9791191905717 9791140708116 --days 30
  python -m booksales.main upload ~/Downloads/2025/yes24_2025_*.json --skip-existing
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from booksales import aggregators, config
from booksales.cache import MemoryCache, PersistentStore, TieredCache
from booksales.chart import NO_DATA_MESSAGE, ChartAssembler, batch_size_for, select_window
from booksales.file_index import find_entry, latest_entry, load_file_index
from booksales.loader import SnapshotLoader
from booksales.models import FileIndexEntry
from booksales.storage import StorageSource, make_source

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """로깅 초기 설정."""
    config.LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = config.LOG_DIR / f"booksales_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


@dataclass
class Services:
    source: object
    cache: TieredCache
    loader: SnapshotLoader
    chart: ChartAssembler


def build_services(source=None) -> Services:
    """소스・캐시・로더・차트 조립기를 연결한다."""
    source = source or make_source()
    cache = TieredCache(MemoryCache(), PersistentStore())
    loader = SnapshotLoader(source, cache)
    return Services(source=source, cache=cache, loader=loader, chart=ChartAssembler(loader, cache))


def format_price(price: int) -> str:
    return f"{price:,}원"


def format_points(points: int) -> str:
    return f"{points:,}"


def _pick_entry(index: list[FileIndexEntry], day: date | None) -> FileIndexEntry | None:
    if day is None:
        return latest_entry(index)
    return find_entry(index, day)


async def _load_day(services: Services, day: date | None):
    index = load_file_index(services.source)
    entry = _pick_entry(index, day)
    if entry is None:
        print("데이터가 없습니다.")
        return None, {}
    return entry, await services.loader.load(entry.filename)


async def cmd_files(services: Services, args) -> int:
    index = load_file_index(services.source)
    if not index:
        print("데이터가 없습니다.")
        return 1
    for entry in index:
        print(f"{entry.date.isoformat()}  {entry.filename}  {entry.display_date}")
    return 0


async def cmd_overview(services: Services, args) -> int:
    entry, snapshot = await _load_day(services, args.date)
    if entry is None:
        return 1
    overview = aggregators.daily_overview(snapshot, entry.date.isoformat())
    print(f"[{entry.display_date}]")
    print(f"  도서 수      : {overview.total_books}")
    print(f"  판매지수 합계: {format_points(overview.total_sales_points)}")
    print(f"  평균 순위    : {overview.average_rank}")
    print(f"  출판사 수    : {overview.publisher_count}")
    if overview.top_book:
        top = overview.top_book
        print(f"  판매지수 1위 : {top.title} ({top.publisher}, {top.rank}위, {format_points(top.sales_point)})")
    return 0


async def cmd_publishers(services: Services, args) -> int:
    entry, snapshot = await _load_day(services, args.date)
    if entry is None:
        return 1
    for s in aggregators.publisher_stats(snapshot)[: args.limit]:
        print(
            f"{s.name}\t{s.book_count}권\t{format_points(s.total_sales_points)}"
            f"\t평균 {s.average_rank}위\t{format_price(s.average_price)}"
        )
    return 0


async def cmd_categories(services: Services, args) -> int:
    entry, snapshot = await _load_day(services, args.date)
    if entry is None:
        return 1
    for s in aggregators.category_stats(snapshot):
        titles = ", ".join(title for title, _ in s.top_books)
        print(f"{s.category}\t{s.book_count}권\t{format_points(s.total_sales_points)}\t{titles}")
    return 0


async def cmd_search(services: Services, args) -> int:
    entry, snapshot = await _load_day(services, args.date)
    if entry is None:
        return 1
    books = aggregators.search_books(snapshot, args.term)
    if args.publisher:
        books = aggregators.filter_by_publisher(books, args.publisher)
    for _, book in aggregators.sort_by_rank(books):
        print(
            f"{book.rank}\t{book.title}\t{', '.join(book.author)}\t{book.publisher}"
            f"\t{format_points(book.sales_point)}\t{format_price(book.right_price)}\t{book.fake_isbn}"
        )
    print(f"({len(books)}건)")
    return 0


async def cmd_chart(services: Services, args) -> int:
    index = load_file_index(services.source)
    latest = latest_entry(index)
    titles: dict[str, str] = {}
    if latest is not None:
        for book in (await services.loader.load(latest.filename)).values():
            titles[book.fake_isbn] = book.title
    books = [(titles.get(isbn, isbn), isbn) for isbn in args.isbns]

    result = await services.chart.build(books, args.days, index)
    if result.no_data:
        print(result.message or "데이터가 없습니다.")
        return 1

    header = ["date"]
    for title, isbn in books:
        header += [f"{title} 판매지수", f"{title} 순위"]
    print("\t".join(header))
    for point in result.points:
        row = [point["date"]]
        for _, isbn in books:
            row += [str(point.get(isbn, "")), str(point.get(f"{isbn}_rank", ""))]
        print("\t".join(row))
    return 0


async def cmd_period(services: Services, args) -> int:
    index = load_file_index(services.source)
    window = select_window(index, args.days)
    if not window:
        print(NO_DATA_MESSAGE)
        return 1
    loaded = await services.loader.load_many([e.filename for e in window], batch_size_for(len(window)))
    snapshots = {e.date.isoformat(): loaded[e.filename] for e in window if loaded.get(e.filename)}

    overview = aggregators.period_overview(snapshots)
    print(f"[{window[0].display_date} ~ {window[-1].display_date}]")
    print(f"  일수          : {overview.total_days}")
    print(f"  판매지수 합계 : {format_points(overview.total_sales_points)}")
    print(f"  일 평균       : {format_points(overview.average_daily_sales)}")
    print(f"  출판사 수     : {overview.publisher_count}")
    for s in aggregators.period_publisher_stats(snapshots[d] for d in sorted(snapshots))[: args.limit]:
        print(f"{s.name}\t{s.book_count}권\t{format_points(s.total_sales_points)}\t평균 {s.average_rank}위")
    return 0


async def cmd_upload(services: Services, args) -> int:
    source = services.source
    if not isinstance(source, StorageSource):
        source = StorageSource()
    summary = await asyncio.to_thread(
        source.upload_snapshots, [Path(p) for p in args.paths], args.skip_existing
    )
    for name in summary["failed"]:
        print(f"실패: {name}")
    return 1 if summary["failed"] else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="booksales", description="도서 판매 데이터 조회")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("files", help="스냅샷 파일 목록")
    p.set_defaults(func=cmd_files)

    for name, func, help_text in (
        ("overview", cmd_overview, "하루치 개요"),
        ("publishers", cmd_publishers, "출판사별 집계"),
        ("categories", cmd_categories, "분류별 집계"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--date", type=date.fromisoformat, help="YYYY-MM-DD (기본: 최신)")
        p.set_defaults(func=func)
        if name == "publishers":
            p.add_argument("--limit", type=int, default=20)

    p = sub.add_parser("search", help="제목・저자・출판사 검색")
    p.add_argument("term")
    p.add_argument("--date", type=date.fromisoformat, help="YYYY-MM-DD (기본: 최신)")
    p.add_argument("--publisher")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("period", help="기간 집계")
    p.add_argument("--days", type=int, default=30, choices=config.PERIODS)
    p.add_argument("--limit", type=int, default=20)
    p.set_defaults(func=cmd_period)

    p = sub.add_parser("chart", help="도서별 판매지수・순위 추이")
    p.add_argument("isbns", nargs="+", help="fake_isbn")
    p.add_argument("--days", type=int, default=30, choices=config.PERIODS)
    p.set_defaults(func=cmd_chart)

    p = sub.add_parser("upload", help="스냅샷 JSON 업로드")
    p.add_argument("paths", nargs="+")
    p.add_argument("--skip-existing", action="store_true")
    p.set_defaults(func=cmd_upload)

    return parser


def run(argv: list[str] | None = None) -> int:
    """메인 처리."""
    args = build_parser().parse_args(argv)
    setup_logging()
    logger.info("=== 도서 판매 데이터 조회: %s ===", args.command)
    services = build_services()
    return asyncio.run(args.func(services, args))


if __name__ == "__main__":
    sys.exit(run())
