"""Tests for the detection algorithms."""

from __future__ import annotations

import pytest

from config import ExtractionConfig
from detection import (
    DetectionMethod,
    HeuristicDetectionAlgorithm,
    SpreadsheetDetectionAlgorithm,
    get_detection_algorithm,
)
from geometry import Rectangle
from page_fixtures import grid_rulings, make_line, make_page, whitespace_table_text


@pytest.fixture
def ruled_text_page():
    """A 2x2 ruled grid whose cells also hold whitespace-aligned text."""
    text = make_line([("Alpha", 60), ("12", 160)], 104) + make_line([("Beta", 60), ("7", 160)], 124)
    return make_page(text=text, rulings=grid_rulings([100, 120, 140], [50, 150, 250]))


def test_spreadsheet_finds_ruled_grid(ruled_page, config):
    regions = SpreadsheetDetectionAlgorithm(config).detect(ruled_page)

    assert regions == [Rectangle(top=100, left=50, width=200, height=40)]


def test_spreadsheet_ignores_unruled_text(whitespace_page, config):
    assert SpreadsheetDetectionAlgorithm(config).detect(whitespace_page) == []


def test_spreadsheet_minimum_grid_size():
    page = make_page(rulings=grid_rulings([100, 140], [50, 150, 250]))

    assert SpreadsheetDetectionAlgorithm(ExtractionConfig()).detect(page) == []
    assert SpreadsheetDetectionAlgorithm(ExtractionConfig(min_grid_rows=1)).detect(page) == [
        Rectangle(top=100, left=50, width=200, height=40)
    ]


def test_spreadsheet_regions_in_reading_order(config):
    rulings = grid_rulings([400, 420, 440], [50, 150, 250]) + grid_rulings([100, 120, 140], [300, 400, 500])
    page = make_page(rulings=rulings)

    regions = SpreadsheetDetectionAlgorithm(config).detect(page)

    assert [(r.top, r.left) for r in regions] == [(100, 300), (400, 50)]


def test_spreadsheet_respects_crop(config):
    page = make_page(rulings=grid_rulings([100, 120, 140, 160], [50, 150, 250, 350]))
    crop = Rectangle(top=0, left=40, width=220, height=792)

    regions = SpreadsheetDetectionAlgorithm(config).detect(page.crop(crop))

    assert regions == [Rectangle(top=100, left=50, width=200, height=60)]
    assert all(crop.contains(r) for r in regions)


def test_heuristic_finds_whitespace_table(whitespace_page, config):
    algorithm = HeuristicDetectionAlgorithm(config)

    regions = algorithm.text_regions(whitespace_page)

    assert len(regions) == 1
    region = regions[0]
    assert (region.row_count, region.col_count) == (4, 2)
    assert region.separators == (150.0,)
    assert algorithm.detect(whitespace_page) == [region.rect]


def test_heuristic_finds_small_print_table(config):
    page = make_page(text=whitespace_table_text(char_width=4, size=7))

    regions = HeuristicDetectionAlgorithm(config).text_regions(page)

    assert len(regions) == 1
    assert (regions[0].row_count, regions[0].col_count) == (4, 2)
    assert regions[0].rect == Rectangle(top=100, left=92, width=104, height=67)


def test_heuristic_finds_widely_spaced_rows(config):
    page = make_page(text=whitespace_table_text(tops=(100, 130, 160, 190)))

    regions = HeuristicDetectionAlgorithm(config).detect(page)

    assert regions == [Rectangle(top=100, left=85, width=115, height=100)]


def test_heuristic_respects_crop(whitespace_page, config):
    # The crop cuts through the label column and the third row
    crop = Rectangle(top=90, left=95, width=200, height=55)

    regions = HeuristicDetectionAlgorithm(config).detect(whitespace_page.crop(crop))

    assert regions == [Rectangle(top=100, left=95, width=105, height=45)]
    assert all(crop.contains(r) for r in regions)


def test_heuristic_ignores_prose(prose_page, config):
    assert HeuristicDetectionAlgorithm(config).detect(prose_page) == []


def test_heuristic_on_empty_page(empty_page, config):
    assert HeuristicDetectionAlgorithm(config).detect(empty_page) == []


def test_heuristic_keeps_ruled_grid(ruled_page, config):
    assert HeuristicDetectionAlgorithm(config).detect(ruled_page) == [
        Rectangle(top=100, left=50, width=200, height=40)
    ]


def test_rulings_precedence(ruled_text_page, config):
    regions = HeuristicDetectionAlgorithm(config, precedence="rulings").detect(ruled_text_page)

    assert regions == [Rectangle(top=100, left=50, width=200, height=40)]


def test_whitespace_precedence(ruled_text_page, config):
    algorithm = HeuristicDetectionAlgorithm(config, precedence="whitespace")

    regions = algorithm.detect(ruled_text_page)

    assert regions == [Rectangle(top=104, left=60, width=110, height=30)]


def test_union_precedence(ruled_text_page, config):
    regions = HeuristicDetectionAlgorithm(config, precedence="union").detect(ruled_text_page)

    assert len(regions) == 1
    assert regions[0].contains(Rectangle(top=100, left=50, width=200, height=40))
    assert regions[0].contains(Rectangle(top=104, left=60, width=110, height=30))


def test_precedence_from_config():
    config = ExtractionConfig(region_precedence="whitespace")

    assert HeuristicDetectionAlgorithm(config).precedence == "whitespace"


def test_unknown_precedence(config):
    with pytest.raises(ValueError):
        HeuristicDetectionAlgorithm(config, precedence="text")


def test_detection_registry(config):
    assert isinstance(get_detection_algorithm("spreadsheet", config), SpreadsheetDetectionAlgorithm)
    assert isinstance(
        get_detection_algorithm(DetectionMethod.HEURISTIC, config), HeuristicDetectionAlgorithm
    )
    with pytest.raises(ValueError):
        get_detection_algorithm("lattice", config)
