"""file_index 모듈의 유닛 테스트."""

from datetime import date

from booksales.file_index import (
    build_file_index,
    display_label,
    filename_for,
    find_entry,
    latest_entry,
    load_file_index,
    parse_filename,
    validate_filename,
)
from tests.helpers import FakeSource


class TestParseFilename:
    """parse_filename 의 테스트."""

    def test_valid(self):
        entry = parse_filename("yes24_2025_0904.json")
        assert entry.date == date(2025, 9, 4)
        assert entry.filename == "yes24_2025_0904.json"
        assert entry.display_date == "2025년 9월 4일"

    def test_wrong_prefix(self):
        assert parse_filename("aladin_2025_0904.json") is None

    def test_dashed_date(self):
        assert parse_filename("yes24_2025_09_04.json") is None

    def test_impossible_date(self):
        assert parse_filename("yes24_2025_0231.json") is None

    def test_validate(self):
        assert validate_filename("yes24_2025_0101.json")
        assert not validate_filename("yes24_2025_0101.json.bak")


class TestBuildFileIndex:
    """build_file_index 의 테스트."""

    def test_sorted_and_filtered(self):
        names = [
            "yes24_2025_0904.json",
            "readme.txt",
            "yes24_2025_0801.json",
            "yes24_2024_1231.json",
            "yes24_2025_1301.json",
        ]
        index = build_file_index(names)

        assert [e.filename for e in index] == [
            "yes24_2024_1231.json",
            "yes24_2025_0801.json",
            "yes24_2025_0904.json",
        ]
        assert all(validate_filename(e.filename) for e in index)
        assert [e.date for e in index] == sorted(e.date for e in index)

    def test_empty(self):
        assert build_file_index([]) == []

    def test_filename_roundtrip(self):
        assert filename_for(date(2025, 8, 1)) == "yes24_2025_0801.json"
        assert display_label(date(2025, 12, 25)) == "2025년 12월 25일"


class TestLoadFileIndex:
    """load_file_index 의 테스트."""

    def test_lists_source(self, fixture_source):
        index = load_file_index(fixture_source)
        assert [e.date for e in index] == [date(2025, 8, 1), date(2025, 8, 2)]
        assert latest_entry(index).filename == "yes24_2025_0802.json"
        assert find_entry(index, date(2025, 8, 1)).filename == "yes24_2025_0801.json"
        assert find_entry(index, date(2025, 8, 3)) is None

    def test_listing_failure_returns_empty(self):
        source = FakeSource()
        source.list_error = ConnectionError("storage unreachable")
        assert load_file_index(source) == []
        assert latest_entry([]) is None
