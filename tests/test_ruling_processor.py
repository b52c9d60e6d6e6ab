"""Tests for ruling merging, intersections and grid tracing."""

from __future__ import annotations

import pytest

from config import ExtractionConfig
from geometry import Point, Rectangle, Ruling
from page_fixtures import grid_rulings
from ruling_processor import RulingProcessor, cluster_positions


@pytest.fixture
def processor() -> RulingProcessor:
    return RulingProcessor(ExtractionConfig())


def test_cluster_positions_chains_within_tolerance():
    assert cluster_positions([100.0, 100.5, 140.0, 100.2], tolerance=1.0) == pytest.approx(
        [100.233333, 140.0]
    )


def test_split_discards_diagonals(processor):
    horizontals, verticals = processor.split([
        Ruling(50, 100, 250, 100),
        Ruling(150, 140, 150, 90),
        Ruling(0, 0, 100, 100),
    ])

    assert horizontals == [Ruling(50, 100, 250, 100)]
    assert verticals == [Ruling(150, 90, 150, 140)]


def test_merge_joins_overlapping_colinear_segments(processor):
    merged = processor.merge([Ruling(0, 100, 50, 100), Ruling(40, 100, 120, 100)])

    assert merged == [Ruling(0, 100, 120, 100)]


def test_merge_joins_segments_within_tolerance(processor):
    merged = processor.merge([Ruling(0, 100, 50, 100), Ruling(50.5, 100, 100, 100)])

    assert merged == [Ruling(0, 100, 100, 100)]


def test_merge_keeps_distant_segments_apart(processor):
    merged = processor.merge([Ruling(0, 100, 50, 100), Ruling(60, 100, 100, 100)])

    assert merged == [Ruling(0, 100, 50, 100), Ruling(60, 100, 100, 100)]


def test_merge_snaps_nearby_positions_to_mean(processor):
    merged = processor.merge([Ruling(0, 100, 50, 100), Ruling(0, 100.5, 50, 100.5)])

    assert len(merged) == 1
    assert merged[0].y1 == pytest.approx(100.25)


def test_merge_is_idempotent(processor):
    rulings = grid_rulings([100, 120, 140], [50, 150, 250]) + [
        Ruling(50, 100.4, 300, 100.4),
        Ruling(150.3, 130, 150.3, 200),
        Ruling(400, 10, 400, 20),
    ]

    merged = processor.merge(rulings)

    assert processor.merge(merged) == merged


def test_merge_split_orders_horizontals_and_verticals(processor):
    horizontals, verticals = processor.merge_split(grid_rulings([120, 100], [150, 50]))

    assert [r.y1 for r in horizontals] == [100, 120]
    assert [r.x1 for r in verticals] == [50, 150]


def test_compute_intersections(processor):
    points = processor.compute_intersections(
        [Ruling(50, 100, 250, 100)],
        [Ruling(150, 90, 150, 200), Ruling(300, 0, 300, 200)],
    )

    assert points == {Point(150, 100)}


def test_intersection_tolerates_short_ruling(processor):
    # Vertical stops 1.5pt below the horizontal ruling
    points = processor.compute_intersections(
        [Ruling(50, 100, 250, 100)],
        [Ruling(150, 101.5, 150, 200)],
    )

    assert points == {Point(150, 100)}


def test_find_cells_of_two_by_two_grid(processor):
    horizontals, verticals = processor.merge_split(grid_rulings([100, 120, 140], [50, 150, 250]))

    cells = processor.find_cells(horizontals, verticals)

    assert cells == [
        Rectangle(top=100, left=50, width=100, height=20),
        Rectangle(top=100, left=150, width=100, height=20),
        Rectangle(top=120, left=50, width=100, height=20),
        Rectangle(top=120, left=150, width=100, height=20),
    ]


def test_grid_region_covers_all_cells(processor):
    horizontals, verticals = processor.merge_split(grid_rulings([100, 120, 140], [50, 150, 250]))

    regions = processor.find_grid_regions(horizontals, verticals)

    assert len(regions) == 1
    region = regions[0]
    assert region.rect == Rectangle(top=100, left=50, width=200, height=40)
    assert (region.row_count, region.col_count) == (2, 2)
    assert len(region.cells) == 4


def test_separate_grids_are_separate_regions(processor):
    rulings = grid_rulings([300, 320, 340], [50, 150, 250]) + grid_rulings([100, 120, 140], [50, 150, 250])
    horizontals, verticals = processor.merge_split(rulings)

    regions = processor.find_grid_regions(horizontals, verticals)

    assert [r.rect.top for r in regions] == [100, 300]


def test_corner_ticks_form_no_region(processor):
    ticks = []
    for x, y, dx, dy in [(50, 100, 10, 10), (250, 100, -10, 10), (50, 140, 10, -10), (250, 140, -10, -10)]:
        ticks.append(Ruling(x, y, x + dx, y))
        ticks.append(Ruling(x, y, x, y + dy))
    horizontals, verticals = processor.merge_split(ticks)

    assert processor.find_grid_regions(horizontals, verticals) == []


def test_lonely_rulings_form_no_region(processor):
    horizontals, verticals = processor.merge_split([
        Ruling(50, 100, 250, 100),
        Ruling(300, 200, 300, 400),
    ])

    assert processor.find_grid_regions(horizontals, verticals) == []


def test_positions_cluster_within_merge_tolerance(processor):
    assert processor.positions([Ruling(0, 100, 10, 100), Ruling(0, 100.5, 10, 100.5)]) == [100.25]
