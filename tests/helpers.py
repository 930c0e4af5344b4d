"""테스트용 헬퍼."""

import json
from datetime import date, timedelta
from pathlib import Path

from booksales.file_index import filename_for

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> bytes:
    return (FIXTURES_DIR / name).read_bytes()


def make_book(isbn, rank, sales_point, title=None, publisher="골든래빗", price=20000, tags=("IT",)):
    return {
        "title": title or f"도서 {isbn}",
        "url": "",
        "rank": rank,
        "publisher": publisher,
        "publish_date": "2024-01-01",
        "right_price": price,
        "fake_isbn": isbn,
        "page": 300,
        "sales_point": sales_point,
        "author": ["홍길동"],
        "tags": list(tags),
    }


class FakeSource:
    """메모리에 파일을 들고 있는 소스. 다운로드 횟수를 센다."""

    def __init__(self, files: dict[str, bytes] | None = None, fail: set[str] | None = None):
        self.files = files or {}
        self.fail = fail or set()
        self.download_calls: list[str] = []
        self.list_error: Exception | None = None

    def list_files(self) -> list[str]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.files)

    def download(self, filename: str) -> bytes:
        self.download_calls.append(filename)
        if filename in self.fail:
            raise ConnectionError(f"download failed: {filename}")
        return self.files[filename]


def daily_files(start: date, days: int, books_for_day) -> dict[str, bytes]:
    """start 부터 days 일치 파일을 만든다. books_for_day(i) -> {book_id: raw}."""
    files = {}
    for i in range(days):
        d = start + timedelta(days=i)
        files[filename_for(d)] = json.dumps(books_for_day(i), ensure_ascii=False).encode("utf-8")
    return files
