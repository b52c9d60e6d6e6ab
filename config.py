"""Tunable thresholds for table detection and extraction."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

REGION_PRECEDENCE_CHOICES = ("rulings", "whitespace", "union")


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Thresholds shared by the ruling processor and the table algorithms.

    All distances are in page coordinate units (PDF points). Ratios are
    relative to the font size of the text they are applied to.

    Attributes:
        ruling_orientation_tolerance: Maximum endpoint skew for a segment to
            count as horizontal or vertical.
        ruling_merge_tolerance: Maximum distance between colinear segments
            that are joined into one ruling.
        intersection_tolerance: Slack allowed when a ruling stops short of
            the perpendicular ruling it should cross.
        thin_rect_tolerance: Filled rectangles thinner than this are read as
            a single ruling.
        min_grid_rows: Minimum rows of cells in a ruling grid.
        min_grid_cols: Minimum columns of cells in a ruling grid.
        column_gap_ratio: Minimum whitespace gap, as a multiple of the font
            size, that can separate two columns.
        word_gap_ratio: Maximum gap, as a multiple of the font size, between
            glyphs merged into one text chunk.
        space_ratio: Gap, as a multiple of the font size, above which a space
            is inserted into chunk text.
        region_overlap_threshold: Overlap ratio (intersection over the
            smaller area) at which two candidate regions are merged.
        line_grouping_tolerance: Maximum difference between chunk tops on the
            same text line.
        row_merge_tolerance: Lines separated vertically by less than this are
            merged into one table row.
        band_gap_ratio: Maximum distance between the tops of consecutive
            lines of one band, as a multiple of the median top-to-top distance.
        min_text_rows: Minimum rows of a whitespace-inferred table.
        min_text_cols: Minimum columns of a whitespace-inferred table.
        region_precedence: Which evidence wins when a ruling-backed region
            and a whitespace-inferred region overlap.
    """

    ruling_orientation_tolerance: float = 1.0
    ruling_merge_tolerance: float = 1.0
    intersection_tolerance: float = 2.0
    thin_rect_tolerance: float = 2.0
    min_grid_rows: int = 2
    min_grid_cols: int = 2
    column_gap_ratio: float = 1.0
    word_gap_ratio: float = 0.5
    space_ratio: float = 0.15
    region_overlap_threshold: float = 0.5
    line_grouping_tolerance: float = 2.0
    row_merge_tolerance: float = 1.0
    band_gap_ratio: float = 1.5
    min_text_rows: int = 2
    min_text_cols: int = 2
    region_precedence: str = "rulings"

    def __post_init__(self) -> None:
        """Validate configuration values after initialization."""
        for name in (
            "ruling_orientation_tolerance",
            "ruling_merge_tolerance",
            "intersection_tolerance",
            "thin_rect_tolerance",
            "column_gap_ratio",
            "word_gap_ratio",
            "space_ratio",
            "line_grouping_tolerance",
            "row_merge_tolerance",
            "band_gap_ratio",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

        for name in ("min_grid_rows", "min_grid_cols", "min_text_rows", "min_text_cols"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be at least 1, got {value}")

        if not 0.0 <= self.region_overlap_threshold <= 1.0:
            raise ValueError("region_overlap_threshold must be between 0.0 and 1.0")

        if self.region_precedence not in REGION_PRECEDENCE_CHOICES:
            raise ValueError(
                f"Unsupported region precedence: {self.region_precedence}"
            )

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "ExtractionConfig":
        """
        Build a config from a mapping, skipping None values.

        Raises:
            ValueError: If the mapping contains an unknown option
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration option(s): {', '.join(unknown)}")
        return cls(**{k: v for k, v in values.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_CONFIG = ExtractionConfig()
