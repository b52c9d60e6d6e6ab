"""Ruling normalization, merging, intersection and grid tracing."""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from shapely.geometry import LineString, box
from shapely.ops import unary_union

from config import DEFAULT_CONFIG, ExtractionConfig
from geometry import Point, Rectangle, Ruling

logger = logging.getLogger(__name__)


@dataclass
class RulingGraph:
    """
    Planar graph of ruling intersections.

    Nodes are intersection points stored in a flat list and referenced by
    index. ``right`` and ``down`` link each node to the next intersection
    along the same horizontal or vertical ruling.
    """
    nodes: List[Point] = field(default_factory=list)
    index: Dict[Point, int] = field(default_factory=dict)
    right: Dict[int, int] = field(default_factory=dict)
    down: Dict[int, int] = field(default_factory=dict)
    horizontal_ids: Dict[int, Set[int]] = field(default_factory=lambda: defaultdict(set))
    vertical_ids: Dict[int, Set[int]] = field(default_factory=lambda: defaultdict(set))

    def add_node(self, point: Point) -> int:
        node = self.index.get(point)
        if node is None:
            node = len(self.nodes)
            self.nodes.append(point)
            self.index[point] = node
        return node

    def walk(self, start: int, edges: Dict[int, int]) -> Iterable[int]:
        """Yield nodes after ``start`` along ``edges``, nearest first."""
        node = edges.get(start)
        while node is not None:
            yield node
            node = edges.get(node)

    def same_horizontal(self, a: int, b: int) -> bool:
        return bool(self.horizontal_ids[a] & self.horizontal_ids[b])

    def same_vertical(self, a: int, b: int) -> bool:
        return bool(self.vertical_ids[a] & self.vertical_ids[b])


@dataclass(frozen=True)
class GridRegion:
    """A ruling-backed region and the cells found inside it."""
    rect: Rectangle
    cells: Tuple[Rectangle, ...]
    row_count: int
    col_count: int


def _mean(values: Sequence[float]) -> float:
    # Identical values keep their exact float so merging stays a fixed point
    if len(set(values)) == 1:
        return values[0]
    return sum(values) / len(values)


def cluster_positions(values: Iterable[float], tolerance: float) -> List[float]:
    """
    Collapse sorted positions that chain within ``tolerance`` to their mean.

    Returns:
        Cluster means, ascending
    """
    clusters: List[List[float]] = []
    for value in sorted(values):
        if clusters and value - clusters[-1][-1] <= tolerance:
            clusters[-1].append(value)
        else:
            clusters.append([value])
    return [_mean(c) for c in clusters]


class RulingProcessor:
    """Clean up page rulings and trace the grid they form."""

    def __init__(self, config: ExtractionConfig = DEFAULT_CONFIG):
        """
        Initialize RulingProcessor.

        Args:
            config: Tolerances for orientation, merging and intersection
        """
        self.config = config

    def normalize(self, rulings: Iterable[Ruling]) -> List[Ruling]:
        """Drop non-axis-aligned rulings and order the endpoints of the rest."""
        result = []
        discarded = 0
        for ruling in rulings:
            normalized = ruling.normalized(self.config.ruling_orientation_tolerance)
            if normalized is None:
                discarded += 1
                continue
            result.append(normalized)
        if discarded:
            logger.debug(f"Discarded {discarded} non-axis-aligned ruling(s)")
        return result

    def split(self, rulings: Iterable[Ruling]) -> Tuple[List[Ruling], List[Ruling]]:
        """Normalize and separate rulings into (horizontals, verticals)."""
        horizontals, verticals = [], []
        for ruling in self.normalize(rulings):
            (horizontals if ruling.horizontal else verticals).append(ruling)
        return horizontals, verticals

    def _merge_oriented(self, rulings: Sequence[Ruling], horizontal: bool) -> List[Ruling]:
        tolerance = self.config.ruling_merge_tolerance

        # Bucket by position, then sweep each bucket along the ruling direction
        clusters: List[List[Ruling]] = []
        for ruling in sorted(rulings, key=lambda r: r.position):
            if clusters and ruling.position - clusters[-1][-1].position <= tolerance:
                clusters[-1].append(ruling)
            else:
                clusters.append([ruling])

        merged = []
        for cluster in clusters:
            position = _mean([r.position for r in cluster])
            spans: List[List[float]] = []
            for ruling in sorted(cluster, key=lambda r: (r.start, r.end)):
                if spans and ruling.start <= spans[-1][1] + tolerance:
                    spans[-1][1] = max(spans[-1][1], ruling.end)
                else:
                    spans.append([ruling.start, ruling.end])
            for start, end in spans:
                if horizontal:
                    merged.append(Ruling(start, position, end, position))
                else:
                    merged.append(Ruling(position, start, position, end))
        return merged

    def merge(self, rulings: Iterable[Ruling]) -> List[Ruling]:
        """
        Collapse colinear overlapping or adjacent rulings.

        Rulings whose positions chain within ``ruling_merge_tolerance`` share
        one position (the mean), and segments along it that overlap or are
        separated by at most the tolerance become one ruling. Applying merge
        to its own output returns the same rulings.

        Returns:
            Horizontal rulings sorted by (y, x1), then vertical rulings sorted by (x, y1)
        """
        horizontals, verticals = self.split(rulings)
        return self._merge_oriented(horizontals, True) + self._merge_oriented(verticals, False)

    def merge_split(self, rulings: Iterable[Ruling]) -> Tuple[List[Ruling], List[Ruling]]:
        """Merge rulings and return them as (horizontals, verticals)."""
        merged = self.merge(rulings)
        return [r for r in merged if r.horizontal], [r for r in merged if not r.horizontal]

    def _crossings(
        self, horizontals: Sequence[Ruling], verticals: Sequence[Ruling]
    ) -> Iterable[Tuple[int, int, Point]]:
        tolerance = self.config.intersection_tolerance
        order = sorted(range(len(verticals)), key=lambda i: verticals[i].x1)
        xs = [verticals[i].x1 for i in order]

        for h_id, h in enumerate(horizontals):
            lo = bisect_left(xs, h.x1 - tolerance)
            hi = bisect_right(xs, h.x2 + tolerance)
            for v_id in order[lo:hi]:
                v = verticals[v_id]
                if v.y1 - tolerance <= h.y1 <= v.y2 + tolerance:
                    yield h_id, v_id, Point(v.x1, h.y1)

    def compute_intersections(
        self, horizontals: Sequence[Ruling], verticals: Sequence[Ruling]
    ) -> Set[Point]:
        """
        Find the crossing points of horizontal and vertical rulings.

        A pair crosses when their coordinate ranges overlap within
        ``intersection_tolerance``; endpoints need not touch exactly.
        """
        return {point for _, _, point in self._crossings(horizontals, verticals)}

    def build_graph(
        self, horizontals: Sequence[Ruling], verticals: Sequence[Ruling]
    ) -> RulingGraph:
        """Build the intersection graph of normalized, merged rulings."""
        graph = RulingGraph()
        along_h: Dict[int, Set[int]] = defaultdict(set)
        along_v: Dict[int, Set[int]] = defaultdict(set)

        for h_id, v_id, point in self._crossings(horizontals, verticals):
            node = graph.add_node(point)
            graph.horizontal_ids[node].add(h_id)
            graph.vertical_ids[node].add(v_id)
            along_h[h_id].add(node)
            along_v[v_id].add(node)

        for nodes in along_h.values():
            ordered = sorted(nodes, key=lambda n: graph.nodes[n].x)
            for a, b in zip(ordered, ordered[1:]):
                graph.right[a] = b
        for nodes in along_v.values():
            ordered = sorted(nodes, key=lambda n: graph.nodes[n].y)
            for a, b in zip(ordered, ordered[1:]):
                graph.down[a] = b

        logger.debug(f"Ruling graph: {len(graph.nodes)} node(s)")
        return graph

    def _find_cell(
        self, graph: RulingGraph, top_left: int
    ) -> Optional[Tuple[int, int, int, int]]:
        """Smallest cell with ``top_left`` as corner, as its four corner nodes clockwise."""
        for below in graph.walk(top_left, graph.down):
            for across in graph.walk(top_left, graph.right):
                corner = graph.index.get(
                    Point(graph.nodes[across].x, graph.nodes[below].y)
                )
                if corner is None:
                    continue
                if graph.same_vertical(across, corner) and graph.same_horizontal(below, corner):
                    return top_left, across, corner, below
        return None

    def find_cells(
        self, horizontals: Sequence[Ruling], verticals: Sequence[Ruling]
    ) -> List[Rectangle]:
        """Smallest rectangles whose four sides all run along rulings."""
        graph = self.build_graph(horizontals, verticals)
        return [rect for rect, _ in self._cells(graph)]

    def _cells(self, graph: RulingGraph) -> List[Tuple[Rectangle, Tuple[int, ...]]]:
        cells = []
        for node in sorted(range(len(graph.nodes)), key=lambda n: (graph.nodes[n].y, graph.nodes[n].x)):
            corners = self._find_cell(graph, node)
            if corners is None:
                continue
            top_left, bottom_right = graph.nodes[corners[0]], graph.nodes[corners[2]]
            rect = Rectangle(
                top=top_left.y,
                left=top_left.x,
                width=bottom_right.x - top_left.x,
                height=bottom_right.y - top_left.y,
            )
            cells.append((rect, corners))
        return cells

    def _side_backed(
        self, start: Tuple[float, float], end: Tuple[float, float], rulings: Sequence[Ruling]
    ) -> bool:
        tolerance = self.config.intersection_tolerance
        side = LineString([start, end])
        zone = box(
            min(start[0], end[0]) - tolerance,
            min(start[1], end[1]) - tolerance,
            max(start[0], end[0]) + tolerance,
            max(start[1], end[1]) + tolerance,
        )
        lines = [
            LineString([(r.x1, r.y1), (r.x2, r.y2)])
            for r in rulings
            if zone.intersects(LineString([(r.x1, r.y1), (r.x2, r.y2)]))
        ]
        if not lines:
            return False
        covered = unary_union(lines).intersection(zone).length
        return covered >= side.length - 2 * tolerance

    def _region_backed(
        self, rect: Rectangle, horizontals: Sequence[Ruling], verticals: Sequence[Ruling]
    ) -> bool:
        x0, y0, x1, y1 = rect.to_bbox()
        return (
            self._side_backed((x0, y0), (x1, y0), horizontals)
            and self._side_backed((x0, y1), (x1, y1), horizontals)
            and self._side_backed((x0, y0), (x0, y1), verticals)
            and self._side_backed((x1, y0), (x1, y1), verticals)
        )

    def find_grid_regions(
        self, horizontals: Sequence[Ruling], verticals: Sequence[Ruling]
    ) -> List[GridRegion]:
        """
        Find maximal rectangular regions enclosed by rulings.

        Cells sharing a corner belong to the same region. A region is kept
        only if each of its four bounding sides is covered by rulings, not
        merely touched at the corners. A ruling that crosses nothing yields
        no cell and therefore no region.

        Args:
            horizontals: Normalized, merged horizontal rulings
            verticals: Normalized, merged vertical rulings

        Returns:
            Regions ordered top to bottom, then left to right
        """
        graph = self.build_graph(horizontals, verticals)
        cells = self._cells(graph)
        if not cells:
            return []

        parent = list(range(len(cells)))

        def find(i: int) -> int:
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        owner: Dict[int, int] = {}
        for cell_id, (_, corners) in enumerate(cells):
            for node in corners:
                if node in owner:
                    parent[find(cell_id)] = find(owner[node])
                else:
                    owner[node] = cell_id

        components: Dict[int, List[Rectangle]] = defaultdict(list)
        for cell_id, (rect, _) in enumerate(cells):
            components[find(cell_id)].append(rect)

        tolerance = self.config.ruling_merge_tolerance
        regions = []
        for members in components.values():
            rect = members[0]
            for other in members[1:]:
                rect = rect.union(other)
            if not self._region_backed(rect, horizontals, verticals):
                logger.debug(f"Skipping region {rect.to_bbox()}: sides not backed by rulings")
                continue
            ys = cluster_positions([c.top for c in members] + [c.bottom for c in members], tolerance)
            xs = cluster_positions([c.left for c in members] + [c.right for c in members], tolerance)
            regions.append(
                GridRegion(
                    rect=rect,
                    cells=tuple(sorted(members, key=lambda c: (c.top, c.left))),
                    row_count=len(ys) - 1,
                    col_count=len(xs) - 1,
                )
            )

        regions.sort(key=lambda r: (r.rect.top, r.rect.left))
        return regions

    def positions(self, rulings: Iterable[Ruling]) -> List[float]:
        """Distinct positions of ``rulings``, clustered within the merge tolerance."""
        return cluster_positions(
            (r.position for r in rulings), self.config.ruling_merge_tolerance
        )
