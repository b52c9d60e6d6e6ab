"""Merge glyphs into text chunks and lines, and infer whitespace columns."""

from __future__ import annotations

import logging
from bisect import bisect_left
from statistics import median
from typing import Iterable, List, Optional, Sequence, Tuple

from config import DEFAULT_CONFIG, ExtractionConfig
from geometry import Ruling
from models import Line, TextChunk, TextDirection, TextElement

logger = logging.getLogger(__name__)


def _split_rows(elements: Sequence[TextElement], tolerance: float) -> List[List[TextElement]]:
    """Group elements whose tops lie within ``tolerance`` of the row's first element."""
    rows: List[List[TextElement]] = []
    row_top = None
    for element in sorted(elements, key=lambda e: (e.rect.top, e.rect.left)):
        if row_top is None or element.rect.top - row_top > tolerance:
            rows.append([])
            row_top = element.rect.top
        rows[-1].append(element)
    return rows


def _ruling_between(
    left: TextElement, right: TextElement, vertical_rulings: Sequence[Ruling]
) -> bool:
    middle_y = (left.rect.center.y + right.rect.center.y) / 2
    for ruling in vertical_rulings:
        if (
            left.rect.center.x < ruling.x1 < right.rect.center.x
            and ruling.y1 <= middle_y <= ruling.y2
        ):
            return True
    return False


def merge_words(
    elements: Iterable[TextElement],
    vertical_rulings: Sequence[Ruling] = (),
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> List[TextChunk]:
    """
    Merge horizontally adjacent glyphs into text chunks.

    Two consecutive glyphs on the same row are merged when the gap between
    them is at most ``word_gap_ratio`` times their font size and no vertical
    ruling separates them. Whitespace glyphs never start a chunk; they only
    put a space into the text of the chunk they fall in. Rotated glyphs are
    returned as single-glyph chunks.

    Args:
        elements: Glyphs to merge
        vertical_rulings: Normalized vertical rulings that block merging
        config: Thresholds

    Returns:
        Chunks ordered top to bottom, then left to right
    """
    horizontal = []
    chunks: List[TextChunk] = []
    for element in elements:
        if element.direction is TextDirection.ROTATED:
            if not element.is_whitespace:
                chunks.append(TextChunk(elements=(element,), text=element.text))
        else:
            horizontal.append(element)

    for row in _split_rows(horizontal, config.line_grouping_tolerance):
        row.sort(key=lambda e: e.rect.left)
        current: List[TextElement] = []
        text = ""
        pending_space = False

        for element in row:
            if element.is_whitespace:
                pending_space = bool(current)
                continue

            if current:
                previous = current[-1]
                size = max(previous.font_size, element.font_size)
                gap = element.rect.left - previous.rect.right
                if gap > config.word_gap_ratio * size or _ruling_between(
                    previous, element, vertical_rulings
                ):
                    chunks.append(TextChunk(elements=tuple(current), text=text))
                    current, text = [], ""
                elif pending_space or gap > config.space_ratio * size:
                    text += " "

            current.append(element)
            text += element.text
            pending_space = False

        if current:
            chunks.append(TextChunk(elements=tuple(current), text=text))

    chunks.sort(key=lambda c: (c.rect.top, c.rect.left))
    return chunks


def group_by_lines(
    chunks: Iterable[TextChunk], tolerance: float = DEFAULT_CONFIG.line_grouping_tolerance
) -> List[Line]:
    """Group chunks whose tops lie within ``tolerance`` into lines."""
    lines: List[Line] = []
    current: List[TextChunk] = []
    line_top = None

    for chunk in sorted(chunks, key=lambda c: (c.rect.top, c.rect.left)):
        if line_top is not None and chunk.rect.top - line_top > tolerance:
            lines.append(Line(chunks=tuple(sorted(current, key=lambda c: c.rect.left))))
            current = []
        if not current:
            line_top = chunk.rect.top
        current.append(chunk)

    if current:
        lines.append(Line(chunks=tuple(sorted(current, key=lambda c: c.rect.left))))
    return lines


def merge_close_lines(lines: Sequence[Line], tolerance: float) -> List[Line]:
    """Merge lines separated vertically by less than ``tolerance`` into one."""
    merged: List[Line] = []
    for line in sorted(lines, key=lambda ln: ln.rect.top):
        if merged and line.rect.top - merged[-1].rect.bottom < tolerance:
            chunks = merged[-1].chunks + line.chunks
            merged[-1] = Line(chunks=tuple(sorted(chunks, key=lambda c: c.rect.left)))
        else:
            merged.append(line)
    return merged


def group_into_bands(lines: Sequence[Line], gap_ratio: float) -> List[List[Line]]:
    """
    Split lines into vertically contiguous bands.

    A new band starts where the distance from one line's top to the next
    exceeds ``gap_ratio`` times the median top-to-top distance of ``lines``.
    The break follows row spacing, so small fonts and widely spaced rows
    stay in one band.
    """
    if not lines:
        return []

    ordered = sorted(lines, key=lambda ln: ln.rect.top)
    pitches = [b.rect.top - a.rect.top for a, b in zip(ordered, ordered[1:])]
    if not pitches:
        return [ordered]
    max_pitch = gap_ratio * median(pitches)

    bands: List[List[Line]] = [[ordered[0]]]
    for previous, line in zip(ordered, ordered[1:]):
        if line.rect.top - previous.rect.top > max_pitch:
            bands.append([])
        bands[-1].append(line)
    return bands


def reference_size(chunks: Sequence[TextChunk]) -> float:
    """Median font size of ``chunks``, or median chunk height when sizes are unknown."""
    sizes = [c.font_size for c in chunks if c.font_size > 0]
    if sizes:
        return median(sizes)
    heights = [c.rect.height for c in chunks]
    return median(heights) if heights else 0.0


def find_column_separators(
    lines: Sequence[Line],
    config: ExtractionConfig = DEFAULT_CONFIG,
    min_lines: int = 2,
) -> List[float]:
    """
    Infer column separator x-positions from whitespace shared across lines.

    Each gap between consecutive chunks of a line that is at least
    ``column_gap_ratio`` times the median font size is a separator candidate.
    An x-position qualifies when candidate gaps cover it in at least
    ``min_lines`` lines and in a strict majority of ``lines``. Every maximal
    qualifying run yields one separator at its middle.

    Returns:
        Separator x-positions, left to right
    """
    if not lines:
        return []

    chunks = [c for line in lines for c in line.chunks]
    min_gap = config.column_gap_ratio * reference_size(chunks)

    events: List[Tuple[float, int]] = []
    for line in lines:
        ordered = sorted(line.chunks, key=lambda c: c.rect.left)
        reach = ordered[0].rect.right
        for chunk in ordered[1:]:
            if chunk.rect.left - reach >= min_gap and chunk.rect.left > reach:
                events.append((reach, 1))
                events.append((chunk.rect.left, -1))
            reach = max(reach, chunk.rect.right)

    threshold = max(min_lines, len(lines) // 2 + 1)
    separators: List[float] = []
    depth = 0
    run_start: Optional[float] = None

    # Closing events sort before opening events at the same x
    for x, delta in sorted(events):
        depth += delta
        if depth >= threshold and run_start is None:
            run_start = x
        elif depth < threshold and run_start is not None:
            if x > run_start:
                separators.append((run_start + x) / 2)
            run_start = None

    logger.debug(f"Inferred {len(separators)} column separator(s) from {len(lines)} line(s)")
    return separators


def column_index(x: float, separators: Sequence[float]) -> int:
    """Column of a horizontal position; a position on a separator goes left."""
    return bisect_left(separators, x)


def drop_empty_columns(separators: Sequence[float], chunks: Sequence[TextChunk]) -> List[float]:
    """Remove separators that would leave a column without any chunk center."""
    result = list(separators)
    while result:
        counts = [0] * (len(result) + 1)
        for chunk in chunks:
            counts[column_index(chunk.rect.center.x, result)] += 1
        if 0 not in counts:
            break
        empty = counts.index(0)
        # Drop the separator on the empty column's right, or its left for the last column
        del result[min(empty, len(result) - 1)]
    return result


def cell_text(
    elements: Sequence[TextElement],
    vertical_rulings: Sequence[Ruling] = (),
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> str:
    """Reading-order text of a group of glyphs, words and lines joined by spaces."""
    chunks = merge_words(elements, vertical_rulings, config)
    lines = group_by_lines(chunks, config.line_grouping_tolerance)
    return " ".join(line.text for line in lines)
