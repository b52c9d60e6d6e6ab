"""Overlap detection and merging of candidate table regions using Shapely."""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from shapely.geometry import Polygon, box

from geometry import Rectangle

logger = logging.getLogger(__name__)


class RegionMerger:
    """Detect and merge overlapping candidate regions using Shapely."""

    def __init__(self, overlap_threshold: float = 0.5):
        """
        Initialize RegionMerger.

        Args:
            overlap_threshold: Minimum coverage ratio to consider regions as overlapping (0.0-1.0)
        """
        if not 0.0 <= overlap_threshold <= 1.0:
            raise ValueError("overlap_threshold must be between 0.0 and 1.0")

        self.overlap_threshold = overlap_threshold

    def _rect_to_polygon(self, rect: Rectangle) -> Polygon:
        """
        Convert a Rectangle to a Shapely Polygon.

        Args:
            rect: Region to convert

        Returns:
            Shapely Polygon object
        """
        return box(*rect.to_bbox())

    def calculate_coverage_ratio(self, rect1: Rectangle, rect2: Rectangle) -> float:
        """
        Calculate coverage ratio between two regions.

        Coverage ratio = intersection_area / min(area1, area2)

        Args:
            rect1: First region
            rect2: Second region

        Returns:
            Coverage ratio (0.0-1.0)
        """
        poly1 = self._rect_to_polygon(rect1)
        poly2 = self._rect_to_polygon(rect2)

        if not poly1.intersects(poly2):
            return 0.0

        min_area = min(poly1.area, poly2.area)
        if min_area < 1e-10:
            # Degenerate region: treat containment as full coverage
            return 1.0 if rect1.contains(rect2) or rect2.contains(rect1) else 0.0

        return poly1.intersection(poly2).area / min_area

    def overlaps(self, rect1: Rectangle, rect2: Rectangle) -> bool:
        """True when the coverage ratio reaches the threshold."""
        ratio = self.calculate_coverage_ratio(rect1, rect2)
        return ratio > 0.0 and ratio >= self.overlap_threshold

    def detect_overlaps(self, regions: Sequence[Rectangle]) -> List[Tuple[int, int, float]]:
        """
        Detect overlapping regions.

        Args:
            regions: Candidate regions

        Returns:
            List of tuples (index1, index2, coverage_ratio) for overlapping pairs
        """
        overlaps = []
        n = len(regions)
        for i in range(n):
            for j in range(i + 1, n):
                ratio = self.calculate_coverage_ratio(regions[i], regions[j])
                if ratio > 0.0 and ratio >= self.overlap_threshold:
                    overlaps.append((i, j, ratio))
                    logger.debug(
                        f"Overlap detected: regions {i} and {j} (coverage: {ratio:.2f})"
                    )
        return overlaps

    def merge_overlapping(self, regions: Sequence[Rectangle]) -> List[Rectangle]:
        """
        Replace every group of overlapping regions by their union.

        Merging repeats until no pair overlaps, since a union can reach
        regions neither of its parts overlapped. The result keeps the order
        of each group's first member.

        Args:
            regions: Candidate regions

        Returns:
            Merged regions
        """
        merged = list(regions)
        overlaps = self.detect_overlaps(merged)
        while overlaps:
            i, j, _ = overlaps[0]
            merged[i] = merged[i].union(merged[j])
            del merged[j]
            overlaps = self.detect_overlaps(merged)

        if len(merged) != len(regions):
            logger.info(f"Merged {len(regions)} regions into {len(merged)}")
        return merged

    def resolve_conflicts(
        self,
        preferred: Sequence[Rectangle],
        other: Sequence[Rectangle],
    ) -> List[Rectangle]:
        """
        Combine two candidate sets where ``preferred`` wins on conflict.

        Regions of ``other`` that intersect any preferred region with a
        positive area are dropped; the preferred region absorbs them.

        Args:
            preferred: Regions backed by the stronger evidence
            other: Regions backed by the weaker evidence

        Returns:
            Preferred regions followed by the surviving other regions
        """
        kept = [
            rect
            for rect in other
            if not any(rect.intersection_area(p) > 0 for p in preferred)
        ]
        dropped = len(other) - len(kept)
        if dropped:
            logger.debug(f"Absorbed {dropped} conflicting region(s)")
        return list(preferred) + kept

    def union_conflicts(
        self,
        first: Sequence[Rectangle],
        second: Sequence[Rectangle],
    ) -> List[Rectangle]:
        """Union every pair of intersecting regions across both sets."""
        combined = list(first) + list(second)
        merger = RegionMerger(overlap_threshold=0.0)
        return merger.merge_overlapping(combined)
