"""Tests for glyph merging, line grouping and column inference."""

from __future__ import annotations

from config import ExtractionConfig
from geometry import Rectangle, Ruling
from models import TextDirection, TextElement
from page_fixtures import make_line, make_word, whitespace_table_text
from text_aggregation import (
    cell_text,
    column_index,
    drop_empty_columns,
    find_column_separators,
    group_by_lines,
    group_into_bands,
    merge_close_lines,
    merge_words,
)


def test_adjacent_glyphs_form_one_chunk():
    chunks = merge_words(make_word("Revenue", 50, 100))

    assert [c.text for c in chunks] == ["Revenue"]
    assert chunks[0].rect == Rectangle(top=100, left=50, width=35, height=10)


def test_space_glyph_separates_words_in_text():
    chunks = merge_words(make_word("net income", 50, 100))

    assert [c.text for c in chunks] == ["net income"]


def test_small_gap_inserts_space():
    chunks = merge_words(make_line([("ab", 100), ("cd", 112)], 100))

    assert [c.text for c in chunks] == ["ab cd"]


def test_wide_gap_splits_chunks():
    chunks = merge_words(make_line([("Tax", 105), ("90", 180)], 100))

    assert [c.text for c in chunks] == ["Tax", "90"]


def test_vertical_ruling_blocks_merge():
    chunks = merge_words(make_word("AB", 100, 100), [Ruling(105, 90, 105, 120)])

    assert [c.text for c in chunks] == ["A", "B"]


def test_rotated_glyphs_stay_single():
    elements = [
        TextElement(
            text=ch,
            rect=Rectangle(top=100 + 5 * i, left=20, width=10, height=5),
            font_size=10.0,
            direction=TextDirection.ROTATED,
        )
        for i, ch in enumerate("ab")
    ]

    chunks = merge_words(elements)

    assert [c.text for c in chunks] == ["a", "b"]


def test_chunks_in_reading_order():
    elements = make_word("second", 50, 120) + make_word("first", 50, 100)

    assert [c.text for c in merge_words(elements)] == ["first", "second"]


def test_group_by_lines_tolerates_small_offsets():
    chunks = merge_words(make_word("left", 50, 100) + make_word("right", 200, 101.5))

    lines = group_by_lines(chunks, tolerance=2.0)

    assert len(lines) == 1
    assert lines[0].text == "left right"


def test_merge_close_lines():
    chunks = merge_words(make_word("upper", 50, 100) + make_word("lower", 50, 110.5))
    lines = group_by_lines(chunks, tolerance=0.1)

    merged = merge_close_lines(lines, tolerance=1.0)

    assert len(lines) == 2
    assert len(merged) == 1
    assert merged[0].text == "upper lower"


def test_group_into_bands_splits_on_large_gap():
    chunks = merge_words(
        make_word("one", 50, 100) + make_word("two", 50, 120) + make_word("three", 50, 300)
    )
    lines = group_by_lines(chunks)

    bands = group_into_bands(lines, gap_ratio=1.5)

    assert [len(b) for b in bands] == [2, 1]


def test_bands_follow_row_spacing_not_glyph_height():
    small = group_by_lines(merge_words(whitespace_table_text(char_width=4, size=7)))
    spaced = group_by_lines(merge_words(whitespace_table_text(tops=(100, 130, 160, 190))))

    assert [len(b) for b in group_into_bands(small, gap_ratio=1.5)] == [4]
    assert [len(b) for b in group_into_bands(spaced, gap_ratio=1.5)] == [4]


def test_blank_line_ends_band():
    tops = (100, 120, 140, 200, 220)
    chunks = merge_words([e for top in tops for e in make_word("row", 50, top)])

    bands = group_into_bands(group_by_lines(chunks), gap_ratio=1.5)

    assert [len(b) for b in bands] == [3, 2]


def test_separator_between_aligned_columns():
    lines = group_by_lines(merge_words(whitespace_table_text()))

    assert find_column_separators(lines, ExtractionConfig()) == [150.0]


def test_no_separator_without_majority():
    # Only one line of three has a gap
    elements = (
        make_line([("Revenue", 85), ("1200", 180)], 100)
        + make_word("a long sentence here", 50, 120)
        + make_word("another long sentence", 50, 140)
    )
    lines = group_by_lines(merge_words(elements))

    assert find_column_separators(lines, ExtractionConfig()) == []


def test_column_index_puts_boundary_left():
    assert column_index(149.0, [150.0]) == 0
    assert column_index(150.0, [150.0]) == 0
    assert column_index(151.0, [150.0]) == 1


def test_drop_empty_columns():
    chunks = merge_words(make_line([("a", 100), ("b", 200)], 100))

    assert drop_empty_columns([150.0, 300.0], chunks) == [150.0]
    assert drop_empty_columns([50.0, 150.0], chunks) == [150.0]


def test_cell_text_joins_lines():
    elements = make_word("Net", 60, 100) + make_word("income", 60, 112)

    assert cell_text(elements) == "Net income"
