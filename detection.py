"""Table detection: propose candidate table regions on a page."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Type, Union

from config import DEFAULT_CONFIG, ExtractionConfig
from geometry import Rectangle
from models import Line
from page import Page
from region_merger import RegionMerger
from ruling_processor import GridRegion, RulingProcessor
from text_aggregation import (
    column_index,
    drop_empty_columns,
    find_column_separators,
    group_by_lines,
    group_into_bands,
    merge_words,
)

logger = logging.getLogger(__name__)


class DetectionMethod(Enum):
    """Available detection algorithms."""
    SPREADSHEET = "spreadsheet"
    HEURISTIC = "heuristic"


@dataclass(frozen=True)
class TextRegion:
    """A table region inferred from text alignment alone."""
    rect: Rectangle
    row_count: int
    col_count: int
    separators: Tuple[float, ...]


def _clip_to_page(rects: Sequence[Rectangle], page: Page) -> List[Rectangle]:
    clipped = []
    for rect in rects:
        inside = rect.intersection(page.area)
        if inside is not None and inside.area > 0:
            clipped.append(inside)
    return clipped


def _reading_order(rects: Sequence[Rectangle]) -> List[Rectangle]:
    return sorted(rects, key=lambda r: (r.top, r.left))


class DetectionAlgorithm(ABC):
    """Common interface of the detection algorithms."""

    method: DetectionMethod

    def __init__(self, config: ExtractionConfig = DEFAULT_CONFIG):
        self.config = config

    @abstractmethod
    def detect(self, page: Page) -> List[Rectangle]:
        """Return candidate table regions on ``page``, top to bottom."""


class SpreadsheetDetectionAlgorithm(DetectionAlgorithm):
    """Find tables whose cells are fully enclosed by rulings."""

    method = DetectionMethod.SPREADSHEET

    def grid_regions(self, page: Page) -> List[GridRegion]:
        """Ruling grids on ``page`` that meet the minimum grid size."""
        processor = RulingProcessor(self.config)
        horizontals, verticals = processor.merge_split(page.rulings)
        if not horizontals or not verticals:
            return []

        regions = []
        for region in processor.find_grid_regions(horizontals, verticals):
            if (
                region.row_count >= self.config.min_grid_rows
                and region.col_count >= self.config.min_grid_cols
            ):
                regions.append(region)
            else:
                logger.debug(
                    f"Skipping {region.row_count}x{region.col_count} grid at {region.rect.to_bbox()}"
                )
        return regions

    def detect(self, page: Page) -> List[Rectangle]:
        rects = _clip_to_page([r.rect for r in self.grid_regions(page)], page)
        merger = RegionMerger(overlap_threshold=self.config.region_overlap_threshold)
        candidates = _reading_order(merger.merge_overlapping(rects))
        logger.debug(f"Spreadsheet detection found {len(candidates)} region(s) on page {page.number}")
        return candidates


class HeuristicDetectionAlgorithm(DetectionAlgorithm):
    """
    Find tables from ruling grids and from whitespace-aligned text.

    Ruling grids found by the spreadsheet algorithm are strong candidates.
    Text is grouped into bands of contiguous lines; a band whose lines share
    whitespace gaps at the same horizontal positions is a weak candidate.
    Conflicts between the two kinds are settled by ``precedence``.
    """

    method = DetectionMethod.HEURISTIC

    def __init__(
        self,
        config: ExtractionConfig = DEFAULT_CONFIG,
        precedence: Optional[str] = None,
    ):
        super().__init__(config)
        self.precedence = precedence or config.region_precedence
        if self.precedence not in ("rulings", "whitespace", "union"):
            raise ValueError(f"Unsupported region precedence: {self.precedence}")

    def _band_region(self, band: List[Line]) -> Optional[TextRegion]:
        if len(band) < self.config.min_text_rows:
            return None

        separators = find_column_separators(band, self.config)
        if not separators:
            return None
        chunks = [c for line in band for c in line.chunks]
        separators = drop_empty_columns(separators, chunks)
        if len(separators) + 1 < self.config.min_text_cols:
            return None

        rows = [
            i
            for i, line in enumerate(band)
            if len({column_index(c.rect.center.x, separators) for c in line.chunks}) >= 2
        ]
        if len(rows) < self.config.min_text_rows:
            return None

        members = band[rows[0]:rows[-1] + 1]
        rect = members[0].rect
        for line in members[1:]:
            rect = rect.union(line.rect)
        return TextRegion(
            rect=rect,
            row_count=len(members),
            col_count=len(separators) + 1,
            separators=tuple(separators),
        )

    def text_regions(self, page: Page) -> List[TextRegion]:
        """Table regions inferred from whitespace alignment of the page text."""
        if not page.text:
            return []

        _, verticals = RulingProcessor(self.config).merge_split(page.rulings)
        chunks = merge_words(page.text, verticals, self.config)
        lines = group_by_lines(chunks, self.config.line_grouping_tolerance)
        regions = []
        for band in group_into_bands(lines, self.config.band_gap_ratio):
            region = self._band_region(band)
            if region is not None:
                logger.debug(
                    f"Whitespace region {region.row_count}x{region.col_count} at {region.rect.to_bbox()}"
                )
                regions.append(region)
        return regions

    def detect(self, page: Page) -> List[Rectangle]:
        merger = RegionMerger(overlap_threshold=self.config.region_overlap_threshold)
        ruled = SpreadsheetDetectionAlgorithm(self.config).detect(page)
        text = merger.merge_overlapping(
            _clip_to_page([r.rect for r in self.text_regions(page)], page)
        )

        if self.precedence == "rulings":
            candidates = merger.resolve_conflicts(ruled, text)
        elif self.precedence == "whitespace":
            candidates = merger.resolve_conflicts(text, ruled)
        else:
            candidates = merger.union_conflicts(ruled, text)

        candidates = _reading_order(candidates)
        logger.debug(
            f"Heuristic detection found {len(candidates)} region(s) on page {page.number} "
            f"({len(ruled)} ruled, {len(text)} whitespace)"
        )
        return candidates


DETECTION_ALGORITHMS: Dict[DetectionMethod, Type[DetectionAlgorithm]] = {
    DetectionMethod.SPREADSHEET: SpreadsheetDetectionAlgorithm,
    DetectionMethod.HEURISTIC: HeuristicDetectionAlgorithm,
}


def get_detection_algorithm(
    method: Union[DetectionMethod, str],
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> DetectionAlgorithm:
    """
    Instantiate the detection algorithm for ``method``.

    Raises:
        ValueError: If ``method`` names no known algorithm
    """
    return DETECTION_ALGORITHMS[DetectionMethod(method)](config)
