"""Data models for positioned text and extracted tables."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import List, Optional, Sequence, Tuple

from exceptions import GridInvariantError
from geometry import Rectangle


class TextDirection(Enum):
    """Writing direction of a glyph."""
    HORIZONTAL = "horizontal"
    ROTATED = "rotated"


@dataclass(frozen=True)
class TextElement:
    """A single positioned glyph as read from the page."""
    text: str
    rect: Rectangle
    font_size: float
    font_name: str = ""
    direction: TextDirection = TextDirection.HORIZONTAL

    def __post_init__(self) -> None:
        """Validate TextElement data after initialization."""
        if self.font_size < 0:
            raise ValueError(f"font_size must be non-negative, got {self.font_size}")

    @property
    def is_whitespace(self) -> bool:
        return not self.text.strip()


def _enclosing(rects: Sequence[Rectangle]) -> Rectangle:
    return reduce(lambda a, b: a.union(b), rects)


@dataclass(frozen=True)
class TextChunk:
    """A run of adjacent glyphs on one text line, usually a word or phrase."""
    elements: Tuple[TextElement, ...]
    text: str

    def __post_init__(self) -> None:
        if not self.elements:
            raise ValueError("TextChunk requires at least one element")

    @property
    def rect(self) -> Rectangle:
        return _enclosing([e.rect for e in self.elements])

    @property
    def font_size(self) -> float:
        return sum(e.font_size for e in self.elements) / len(self.elements)


@dataclass(frozen=True)
class Line:
    """Text chunks sharing one vertical band, ordered left to right."""
    chunks: Tuple[TextChunk, ...]

    def __post_init__(self) -> None:
        if not self.chunks:
            raise ValueError("Line requires at least one chunk")

    @property
    def rect(self) -> Rectangle:
        return _enclosing([c.rect for c in self.chunks])

    @property
    def text(self) -> str:
        return " ".join(c.text for c in self.chunks)


@dataclass(frozen=True)
class Cell:
    """One table cell and the text that falls inside it."""
    rect: Rectangle
    text: str = ""


class Table:
    """
    Rectangular grid of cells produced by an extraction algorithm.

    The grid shape is fixed at construction; empty cells are kept with an
    empty string so every row has the same number of columns.
    """

    def __init__(
        self,
        cells: Sequence[Sequence[Cell]],
        rect: Rectangle,
        method: str,
        page_number: Optional[int] = None,
    ):
        """
        Initialize Table.

        Args:
            cells: Rows of cells, top to bottom, each row left to right
            rect: Bounding rectangle the table was extracted from
            method: Name of the extraction algorithm
            page_number: 1-indexed page the table was found on

        Raises:
            GridInvariantError: If the rows do not all have the same length
        """
        rows = tuple(tuple(row) for row in cells)
        widths = {len(row) for row in rows}
        if len(widths) > 1:
            raise GridInvariantError(
                f"Non-rectangular cell grid: row lengths {sorted(widths)}"
            )
        if rows and not rows[0]:
            raise GridInvariantError("Cell grid has rows but no columns")

        self._rows = rows
        self.rect = rect
        self.method = method
        self.page_number = page_number

    def rows(self) -> Tuple[Tuple[Cell, ...], ...]:
        return self._rows

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def col_count(self) -> int:
        return len(self._rows[0]) if self._rows else 0

    @property
    def is_empty(self) -> bool:
        return not self._rows

    def cell(self, row: int, col: int) -> Cell:
        return self._rows[row][col]

    def to_list(self) -> List[List[str]]:
        """Return the cell texts as a list of rows."""
        return [[c.text for c in row] for row in self._rows]

    @classmethod
    def empty(cls, rect: Rectangle, method: str, page_number: Optional[int] = None) -> "Table":
        return cls([], rect, method, page_number)

    def __repr__(self) -> str:
        return (
            f"Table(method={self.method!r}, page={self.page_number}, "
            f"shape={self.row_count}x{self.col_count}, rect={self.rect.to_bbox()})"
        )
