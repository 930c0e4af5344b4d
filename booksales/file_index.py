"""스냅샷 파일 목록 모듈.

파일명 규칙: yes24_YYYY_MMDD.json (예: yes24_2025_0904.json)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date

from booksales.models import FileIndexEntry

logger = logging.getLogger(__name__)

FILENAME_PATTERN = re.compile(r"^yes24_(\d{4})_(\d{2})(\d{2})\.json$")


def validate_filename(name: str) -> bool:
    return FILENAME_PATTERN.match(name) is not None


def display_label(d: date) -> str:
    """화면 표시용 날짜 (예: 2025년 8월 1일)."""
    return f"{d.year}년 {d.month}월 {d.day}일"


def filename_for(d: date) -> str:
    return f"yes24_{d.year:04d}_{d.month:02d}{d.day:02d}.json"


def parse_filename(name: str) -> FileIndexEntry | None:
    """파일명을 FileIndexEntry 로 변환한다.

    Returns:
        규칙에 맞지 않거나 존재하지 않는 날짜(예: 0231)면 None.
    """
    m = FILENAME_PATTERN.match(name)
    if not m:
        return None
    try:
        d = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None
    return FileIndexEntry(date=d, filename=name, display_date=display_label(d))


def build_file_index(names: Iterable[str]) -> list[FileIndexEntry]:
    """파일명 목록에서 날짜순(오름차순) 인덱스를 만든다. 규칙에 맞지 않는 파일은 건너뛴다."""
    by_date: dict[date, FileIndexEntry] = {}
    for name in names:
        entry = parse_filename(name)
        if entry is None:
            logger.warning("파일명 규칙 불일치로 건너뜀: %s", name)
            continue
        if entry.date in by_date:
            logger.warning("같은 날짜의 파일이 중복됨: %s", name)
            continue
        by_date[entry.date] = entry
    return sorted(by_date.values(), key=lambda e: e.date)


def load_file_index(source) -> list[FileIndexEntry]:
    """소스에서 파일 목록을 받아 인덱스를 만든다. 실패 시 빈 리스트."""
    try:
        names = source.list_files()
    except Exception as e:
        logger.error("스냅샷 파일 목록 조회 실패: %s", e)
        return []

    index = build_file_index(names)
    logger.info("스냅샷 파일 %d 개 (전체 %d 개 중)", len(index), len(names))
    return index


def latest_entry(index: list[FileIndexEntry]) -> FileIndexEntry | None:
    return index[-1] if index else None


def find_entry(index: list[FileIndexEntry], d: date) -> FileIndexEntry | None:
    for entry in index:
        if entry.date == d:
            return entry
    return None
