"""Table extraction: turn a region of a page into a grid of cells."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from bisect import bisect_left
from collections import defaultdict
from enum import Enum
from typing import Dict, List, Sequence, Tuple, Type, Union

from config import DEFAULT_CONFIG, ExtractionConfig
from detection import SpreadsheetDetectionAlgorithm
from exceptions import GridInvariantError
from geometry import Rectangle
from models import Cell, Table, TextChunk, TextElement
from page import Page
from ruling_processor import RulingProcessor
from text_aggregation import (
    cell_text,
    column_index,
    drop_empty_columns,
    find_column_separators,
    group_by_lines,
    merge_close_lines,
    merge_words,
)

logger = logging.getLogger(__name__)


class ExtractionMethod(Enum):
    """Available extraction algorithms."""
    SPREADSHEET = "spreadsheet"
    BASIC = "basic"


def _degenerate(area: Rectangle) -> bool:
    return area.width <= 0 or area.height <= 0


def _build_cells(
    ys: Sequence[float],
    xs: Sequence[float],
    texts: Dict[Tuple[int, int], str],
) -> List[List[Cell]]:
    for name, bounds in (("row", ys), ("column", xs)):
        if any(b < a for a, b in zip(bounds, bounds[1:])):
            raise GridInvariantError(f"Unordered {name} boundaries: {list(bounds)}")

    rows = []
    for i in range(len(ys) - 1):
        row = []
        for j in range(len(xs) - 1):
            rect = Rectangle(
                top=ys[i],
                left=xs[j],
                width=xs[j + 1] - xs[j],
                height=ys[i + 1] - ys[i],
            )
            row.append(Cell(rect=rect, text=texts.get((i, j), "")))
        rows.append(row)
    return rows


class ExtractionAlgorithm(ABC):
    """Common interface of the extraction algorithms."""

    method: ExtractionMethod

    def __init__(self, config: ExtractionConfig = DEFAULT_CONFIG):
        self.config = config

    @abstractmethod
    def extract(self, page: Page, area: Rectangle) -> Table:
        """Extract the table inside ``area`` of ``page``."""

    @abstractmethod
    def extract_all(self, page: Page) -> List[Table]:
        """Extract every table this algorithm can find on ``page`` by itself."""

    def _empty(self, page: Page, area: Rectangle) -> Table:
        return Table.empty(area, self.method.value, page.number)


class SpreadsheetExtractionAlgorithm(ExtractionAlgorithm):
    """Split a region into cells along its ruling positions."""

    method = ExtractionMethod.SPREADSHEET

    def boundaries(self, page: Page, area: Rectangle) -> Tuple[List[float], List[float]]:
        """
        Row and column boundaries of ``area`` given by its rulings.

        Returns:
            Tuple of (y-positions of horizontal rulings, x-positions of vertical rulings)
        """
        if _degenerate(area):
            return [], []

        tolerance = self.config.intersection_tolerance
        region = page.crop(area.expand(tolerance), self.config.ruling_orientation_tolerance)
        processor = RulingProcessor(self.config)
        horizontals, verticals = processor.merge_split(region.rulings)

        ys = [
            y for y in processor.positions(horizontals)
            if area.top - tolerance <= y <= area.bottom + tolerance
        ]
        xs = [
            x for x in processor.positions(verticals)
            if area.left - tolerance <= x <= area.right + tolerance
        ]
        return ys, xs

    def extract(self, page: Page, area: Rectangle) -> Table:
        """
        Extract the ruling grid inside ``area``.

        H horizontal and V vertical ruling positions give (H-1) x (V-1) cells.
        Each glyph goes to the cell containing its center; a center on a
        shared boundary goes to the upper or left cell.
        """
        ys, xs = self.boundaries(page, area)
        if len(ys) < 2 or len(xs) < 2:
            logger.debug(f"No ruling grid in {area.to_bbox()} on page {page.number}")
            return self._empty(page, area)

        tolerance = self.config.intersection_tolerance
        region = page.crop(area.expand(tolerance), self.config.ruling_orientation_tolerance)
        _, verticals = RulingProcessor(self.config).merge_split(region.rulings)

        assigned: Dict[Tuple[int, int], List[TextElement]] = defaultdict(list)
        for element in region.text:
            center = element.rect.center
            if not (xs[0] <= center.x <= xs[-1] and ys[0] <= center.y <= ys[-1]):
                continue
            row = max(0, bisect_left(ys, center.y) - 1)
            col = max(0, bisect_left(xs, center.x) - 1)
            assigned[(row, col)].append(element)

        texts = {
            key: cell_text(elements, verticals, self.config)
            for key, elements in assigned.items()
        }
        table = Table(_build_cells(ys, xs, texts), area, self.method.value, page.number)
        logger.debug(f"Extracted {table!r}")
        return table

    def extract_all(self, page: Page) -> List[Table]:
        detector = SpreadsheetDetectionAlgorithm(self.config)
        tables = [self.extract(page, area) for area in detector.detect(page)]
        return [t for t in tables if not t.is_empty]


class BasicExtractionAlgorithm(ExtractionAlgorithm):
    """
    Split a region into rows of text lines and columns of shared whitespace.

    Rows follow the text lines of the region, after merging lines that
    nearly touch. Columns come from whitespace gaps that recur across the
    lines. Cells tile the whole region.
    """

    method = ExtractionMethod.BASIC

    def _row_boundaries(self, area: Rectangle, rects: Sequence[Rectangle]) -> List[float]:
        ys = [area.top]
        for upper, lower in zip(rects, rects[1:]):
            middle = (upper.bottom + lower.top) / 2
            ys.append(min(area.bottom, max(ys[-1], middle)))
        ys.append(area.bottom)
        return ys

    def extract(self, page: Page, area: Rectangle) -> Table:
        if _degenerate(area):
            return self._empty(page, area)

        region = page.crop(area, self.config.ruling_orientation_tolerance)
        elements = [e for e in region.text if area.contains_point(e.rect.center)]
        if not any(not e.is_whitespace for e in elements):
            logger.debug(f"No text in {area.to_bbox()} on page {page.number}")
            return self._empty(page, area)

        _, verticals = RulingProcessor(self.config).merge_split(region.rulings)
        chunks = merge_words(elements, verticals, self.config)
        lines = merge_close_lines(
            group_by_lines(chunks, self.config.line_grouping_tolerance),
            self.config.row_merge_tolerance,
        )

        separators = find_column_separators(lines, self.config, min_lines=min(2, len(lines)))
        separators = [s for s in drop_empty_columns(separators, chunks) if area.left < s < area.right]

        assigned: Dict[Tuple[int, int], List[TextChunk]] = defaultdict(list)
        for row, line in enumerate(lines):
            for chunk in line.chunks:
                assigned[(row, column_index(chunk.rect.center.x, separators))].append(chunk)

        texts = {
            key: " ".join(c.text for c in sorted(group, key=lambda c: c.rect.left))
            for key, group in assigned.items()
        }
        ys = self._row_boundaries(area, [line.rect for line in lines])
        xs = [area.left] + separators + [area.right]
        table = Table(_build_cells(ys, xs, texts), area, self.method.value, page.number)
        logger.debug(f"Extracted {table!r}")
        return table

    def extract_all(self, page: Page) -> List[Table]:
        table = self.extract(page, page.area)
        return [] if table.is_empty else [table]


EXTRACTION_ALGORITHMS: Dict[ExtractionMethod, Type[ExtractionAlgorithm]] = {
    ExtractionMethod.SPREADSHEET: SpreadsheetExtractionAlgorithm,
    ExtractionMethod.BASIC: BasicExtractionAlgorithm,
}


def get_extraction_algorithm(
    method: Union[ExtractionMethod, str],
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> ExtractionAlgorithm:
    """
    Instantiate the extraction algorithm for ``method``.

    Raises:
        ValueError: If ``method`` names no known algorithm
    """
    return EXTRACTION_ALGORITHMS[ExtractionMethod(method)](config)
