import itertools

import pytest

from printshop.domain.page_ranges import format_page_range, parse_page_range


class TestParsePageRange:
    def test_mixed_singles_and_ranges(self):
        assert parse_page_range("1-3,7", 10) == {1, 2, 3, 7}

    def test_whitespace_is_ignored(self):
        assert parse_page_range(" 1 - 2 , 5 ", 10) == {1, 2, 5}

    def test_range_is_clamped_to_document(self):
        assert parse_page_range("8-15", 10) == {8, 9, 10}
        assert parse_page_range("0-2", 10) == {1, 2}

    def test_out_of_range_single_pages_are_dropped(self):
        assert parse_page_range("0,11,4", 10) == {4}

    @pytest.mark.parametrize("spec", ["", None, "abc", "5-3", "1-2-3", "-4", "x-2", ",,"])
    def test_malformed_input_gives_empty_set(self, spec):
        assert parse_page_range(spec, 10) == set()

    def test_malformed_parts_are_skipped_not_fatal(self):
        assert parse_page_range("1,abc,3-2,5-6", 10) == {1, 5, 6}

    def test_zero_page_document(self):
        assert parse_page_range("1-3", 0) == set()

    def test_result_always_within_bounds(self):
        pages = parse_page_range("1-100,50,-1,3", 12)
        assert pages and all(1 <= page <= 12 for page in pages)


class TestFormatPageRange:
    def test_collapses_runs(self):
        assert format_page_range({1, 2, 3, 5, 7, 8}) == "1-3,5,7-8"

    def test_empty(self):
        assert format_page_range(set()) == ""

    def test_unordered_input(self):
        assert format_page_range([9, 1, 2]) == "1-2,9"

    def test_round_trip_over_every_subset(self):
        document = range(1, 9)
        for size in range(len(document) + 1):
            for pages in itertools.combinations(document, size):
                assert parse_page_range(format_page_range(pages), 8) == set(pages), pages

    def test_formatted_text_is_minimal(self):
        assert format_page_range(range(1, 9)) == "1-8"
        assert format_page_range([1, 3, 5, 7]) == "1,3,5,7"
