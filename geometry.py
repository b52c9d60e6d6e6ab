"""Geometry primitives shared by the page model and the table algorithms.

Coordinates follow the PDF page as rendered: origin at the top-left corner,
y increasing downward.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Point:
    """A point on the page."""
    x: float
    y: float


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle given by its top-left corner and size."""
    top: float
    left: float
    width: float
    height: float

    def __post_init__(self) -> None:
        """Validate Rectangle dimensions after initialization."""
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Rectangle dimensions must be non-negative, got {self.width}x{self.height}"
            )

    @classmethod
    def from_bbox(cls, bbox: Tuple[float, float, float, float]) -> "Rectangle":
        """Build a Rectangle from an (x0, y0, x1, y1) tuple."""
        if len(bbox) != 4:
            raise ValueError(f"bbox must have 4 elements, got {len(bbox)}")
        x0, y0, x1, y1 = bbox
        return cls(
            top=min(y0, y1),
            left=min(x0, x1),
            width=abs(x1 - x0),
            height=abs(y1 - y0),
        )

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    def to_bbox(self) -> Tuple[float, float, float, float]:
        """Return the rectangle as an (x0, y0, x1, y1) tuple."""
        return (self.left, self.top, self.right, self.bottom)

    def union(self, other: "Rectangle") -> "Rectangle":
        """Smallest rectangle enclosing both rectangles."""
        left = min(self.left, other.left)
        top = min(self.top, other.top)
        return Rectangle(
            top=top,
            left=left,
            width=max(self.right, other.right) - left,
            height=max(self.bottom, other.bottom) - top,
        )

    def intersection(self, other: "Rectangle") -> Optional["Rectangle"]:
        """Overlapping rectangle, or None when the rectangles do not touch."""
        left = max(self.left, other.left)
        top = max(self.top, other.top)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right < left or bottom < top:
            return None
        return Rectangle(top=top, left=left, width=right - left, height=bottom - top)

    def intersection_area(self, other: "Rectangle") -> float:
        overlap = self.intersection(other)
        return overlap.area if overlap is not None else 0.0

    def intersects(self, other: "Rectangle") -> bool:
        """Inclusive intersection test; touching edges count."""
        return not (
            other.left > self.right
            or other.right < self.left
            or other.top > self.bottom
            or other.bottom < self.top
        )

    def contains_point(self, point: Point, tolerance: float = 0.0) -> bool:
        return (
            self.left - tolerance <= point.x <= self.right + tolerance
            and self.top - tolerance <= point.y <= self.bottom + tolerance
        )

    def contains(self, other: "Rectangle", tolerance: float = 0.0) -> bool:
        return (
            other.left >= self.left - tolerance
            and other.top >= self.top - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def expand(self, amount: float) -> "Rectangle":
        """Grow the rectangle by ``amount`` on every side."""
        return Rectangle(
            top=self.top - amount,
            left=self.left - amount,
            width=max(0.0, self.width + 2 * amount),
            height=max(0.0, self.height + 2 * amount),
        )

    def vertical_overlap(self, other: "Rectangle") -> float:
        return max(0.0, min(self.bottom, other.bottom) - max(self.top, other.top))

    def horizontal_overlap(self, other: "Rectangle") -> float:
        return max(0.0, min(self.right, other.right) - max(self.left, other.left))


@dataclass(frozen=True)
class Ruling:
    """A drawn line segment from (x1, y1) to (x2, y2)."""
    x1: float
    y1: float
    x2: float
    y2: float

    def is_horizontal(self, tolerance: float = 1.0) -> bool:
        return abs(self.y1 - self.y2) < tolerance

    def is_vertical(self, tolerance: float = 1.0) -> bool:
        return abs(self.x1 - self.x2) < tolerance

    def normalized(self, tolerance: float = 1.0) -> Optional["Ruling"]:
        """
        Return the axis-aligned form of this ruling.

        The constant coordinate is snapped to the mean of both endpoints and the
        endpoints are ordered. Returns None for diagonal segments and for
        segments shorter than ``tolerance``.
        """
        if self.is_horizontal(tolerance) and abs(self.x2 - self.x1) >= tolerance:
            y = (self.y1 + self.y2) / 2
            return Ruling(min(self.x1, self.x2), y, max(self.x1, self.x2), y)
        if self.is_vertical(tolerance) and abs(self.y2 - self.y1) >= tolerance:
            x = (self.x1 + self.x2) / 2
            return Ruling(x, min(self.y1, self.y2), x, max(self.y1, self.y2))
        return None

    @property
    def horizontal(self) -> bool:
        """True for a normalized horizontal ruling."""
        return self.y1 == self.y2 and self.x1 != self.x2

    @property
    def position(self) -> float:
        """Constant coordinate of a normalized ruling (y or x)."""
        return self.y1 if self.horizontal else self.x1

    @property
    def start(self) -> float:
        return self.x1 if self.horizontal else self.y1

    @property
    def end(self) -> float:
        return self.x2 if self.horizontal else self.y2

    @property
    def length(self) -> float:
        return ((self.x2 - self.x1) ** 2 + (self.y2 - self.y1) ** 2) ** 0.5

    @property
    def bounds(self) -> Rectangle:
        return Rectangle.from_bbox((self.x1, self.y1, self.x2, self.y2))

    def clip(self, rect: Rectangle) -> Optional["Ruling"]:
        """Clip a normalized ruling to ``rect``; None if nothing remains."""
        if self.horizontal:
            if not rect.top <= self.y1 <= rect.bottom:
                return None
            x1 = max(self.x1, rect.left)
            x2 = min(self.x2, rect.right)
            if x2 <= x1:
                return None
            return Ruling(x1, self.y1, x2, self.y2)
        if not rect.left <= self.x1 <= rect.right:
            return None
        y1 = max(self.y1, rect.top)
        y2 = min(self.y2, rect.bottom)
        if y2 <= y1:
            return None
        return Ruling(self.x1, y1, self.x2, y2)
