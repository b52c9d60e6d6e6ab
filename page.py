"""Page model: the glyphs and rulings of one PDF page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from geometry import Rectangle, Ruling
from models import TextElement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """
    Read-only view of one page as positioned text and line segments.

    ``area`` is the region of the page this view covers. It equals the full
    page for pages built by the reader and shrinks when the page is cropped;
    coordinates are never translated.
    """
    number: int
    width: float
    height: float
    text: Tuple[TextElement, ...] = ()
    rulings: Tuple[Ruling, ...] = ()
    area: Optional[Rectangle] = None
    image_count: int = 0

    def __post_init__(self) -> None:
        """Validate Page data after initialization."""
        if self.number < 1:
            raise ValueError(f"page number must be >= 1, got {self.number}")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid page dimensions: {self.width}x{self.height}")

        # Frozen dataclass: normalize fields through object.__setattr__
        object.__setattr__(self, "text", tuple(self.text))
        object.__setattr__(self, "rulings", tuple(self.rulings))
        if self.area is None:
            object.__setattr__(
                self, "area", Rectangle(top=0.0, left=0.0, width=self.width, height=self.height)
            )

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.rulings

    def _oriented_rulings(self, horizontal: bool, tolerance: float) -> List[Ruling]:
        result = []
        for ruling in self.rulings:
            normalized = ruling.normalized(tolerance)
            if normalized is not None and normalized.horizontal == horizontal:
                result.append(normalized)
        return result

    def horizontal_rulings(self, tolerance: float = 1.0) -> List[Ruling]:
        """Normalized horizontal rulings of the page."""
        return self._oriented_rulings(True, tolerance)

    def vertical_rulings(self, tolerance: float = 1.0) -> List[Ruling]:
        """Normalized vertical rulings of the page."""
        return self._oriented_rulings(False, tolerance)

    def crop(self, rect: Rectangle, tolerance: float = 1.0) -> "Page":
        """
        Return a view of the part of this page inside ``rect``.

        Text elements are kept when their bounding box intersects ``rect``.
        Rulings are kept when they intersect ``rect`` and are clipped at its
        boundary. Diagonal rulings are dropped.

        Args:
            rect: Crop region in page coordinates
            tolerance: Orientation tolerance used to normalize rulings

        Returns:
            Cropped Page sharing this page's element objects
        """
        area = self.area.intersection(rect)
        if area is None:
            logger.debug(f"Crop region {rect.to_bbox()} lies outside page {self.number}")
            return Page(
                number=self.number,
                width=self.width,
                height=self.height,
                area=Rectangle(top=rect.top, left=rect.left, width=0.0, height=0.0),
                image_count=self.image_count,
            )

        text = tuple(e for e in self.text if area.intersects(e.rect))

        rulings = []
        for ruling in self.rulings:
            normalized = ruling.normalized(tolerance)
            if normalized is None:
                continue
            clipped = normalized.clip(area)
            if clipped is not None:
                rulings.append(clipped)

        return Page(
            number=self.number,
            width=self.width,
            height=self.height,
            text=text,
            rulings=tuple(rulings),
            area=area,
            image_count=self.image_count,
        )
