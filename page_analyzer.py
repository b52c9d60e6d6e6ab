"""Per-page table finding: detection fallback and extractor selection."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from config import DEFAULT_CONFIG, ExtractionConfig
from detection import (
    DetectionMethod,
    HeuristicDetectionAlgorithm,
    SpreadsheetDetectionAlgorithm,
    get_detection_algorithm,
)
from extraction import (
    ExtractionMethod,
    SpreadsheetExtractionAlgorithm,
    get_extraction_algorithm,
)
from geometry import Rectangle
from models import Table
from page import Page
from ruling_processor import RulingProcessor
from text_aggregation import group_by_lines, merge_words

logger = logging.getLogger(__name__)


def detect_tables(
    page: Page,
    config: ExtractionConfig = DEFAULT_CONFIG,
    method: Optional[Union[DetectionMethod, str]] = None,
) -> List[Rectangle]:
    """
    Propose table regions on ``page``.

    With no ``method``, spreadsheet detection runs first and heuristic
    detection only when it finds nothing.
    """
    if method is not None:
        return get_detection_algorithm(method, config).detect(page)

    candidates = SpreadsheetDetectionAlgorithm(config).detect(page)
    if candidates:
        return candidates
    logger.debug(f"No ruling grid on page {page.number}, trying heuristic detection")
    return HeuristicDetectionAlgorithm(config).detect(page)


def extract_tables(
    page: Page,
    config: ExtractionConfig = DEFAULT_CONFIG,
    detection: Optional[Union[DetectionMethod, str]] = None,
    extraction: Optional[Union[ExtractionMethod, str]] = None,
) -> List[Table]:
    """
    Detect the tables on ``page`` and extract each of them.

    With no ``extraction`` method, a region with a ruling grid is extracted
    along its rulings and any other region by whitespace analysis. Empty
    tables are dropped.

    Args:
        page: Page to analyze
        config: Thresholds
        detection: Detection method, or None for spreadsheet-then-heuristic
        extraction: Extraction method, or None to choose per region

    Returns:
        Non-empty tables in reading order
    """
    spreadsheet = SpreadsheetExtractionAlgorithm(config)
    basic = get_extraction_algorithm(ExtractionMethod.BASIC, config)
    forced = get_extraction_algorithm(extraction, config) if extraction is not None else None

    tables = []
    for area in detect_tables(page, config, detection):
        if forced is not None:
            extractor = forced
        else:
            ys, xs = spreadsheet.boundaries(page, area)
            extractor = spreadsheet if len(ys) >= 2 and len(xs) >= 2 else basic

        table = extractor.extract(page, area)
        if table.is_empty:
            logger.debug(f"Region {area.to_bbox()} on page {page.number} produced no cells")
            continue
        tables.append(table)

    logger.info(f"Page {page.number}: extracted {len(tables)} table(s)")
    return tables


def page_report(page: Page, config: ExtractionConfig = DEFAULT_CONFIG) -> Dict[str, Any]:
    """
    Summarize what the algorithms see on ``page``.

    Useful when no table is found: a page with images but no text elements
    is most likely scanned.
    """
    processor = RulingProcessor(config)
    horizontals, verticals = processor.merge_split(page.rulings)
    chunks = merge_words(page.text, verticals, config)
    lines = group_by_lines(chunks, config.line_grouping_tolerance)

    spreadsheet = SpreadsheetDetectionAlgorithm(config).detect(page)
    heuristic = HeuristicDetectionAlgorithm(config).detect(page)

    return {
        "page_number": page.number,
        "width": page.width,
        "height": page.height,
        "text_elements": len(page.text),
        "images": page.image_count,
        "horizontal_rulings": len(horizontals),
        "vertical_rulings": len(verticals),
        "intersections": len(processor.compute_intersections(horizontals, verticals)),
        "text_chunks": len(chunks),
        "lines": len(lines),
        "spreadsheet_candidates": [list(r.to_bbox()) for r in spreadsheet],
        "heuristic_candidates": [list(r.to_bbox()) for r in heuristic],
        "image_only": not page.text and page.image_count > 0,
    }
