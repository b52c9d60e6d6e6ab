"""PDF file reading, validation, decryption, and page model extraction."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

import fitz  # PyMuPDF

from config import DEFAULT_CONFIG, ExtractionConfig
from exceptions import PageRangeError, PDFDecryptionError, PDFReadError, PDFValidationError
from geometry import Rectangle, Ruling
from models import TextDirection, TextElement
from page import Page

logger = logging.getLogger(__name__)


class PDFReader:
    """Handle PDF file reading, validation, decryption, and page extraction."""

    def __init__(self, pdf_path: Path, config: ExtractionConfig = DEFAULT_CONFIG):
        """
        Initialize PDFReader with PDF file path.

        Args:
            pdf_path: Path to the PDF file
            config: Thresholds used when converting drawings to rulings
        """
        self.pdf_path = Path(pdf_path)
        self.config = config
        self.pdf_document: Optional[fitz.Document] = None
        self.pdf_name = self.pdf_path.name

    def __enter__(self) -> "PDFReader":
        self.validate_path()
        self.open_pdf()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def validate_path(self) -> bool:
        """
        Validate PDF file path and existence.

        Returns:
            True if path is valid

        Raises:
            PDFValidationError: If path is invalid or file doesn't exist
        """
        if not self.pdf_path.exists():
            error_msg = f"PDF file not found: {self.pdf_path}"
            logger.error(error_msg)
            raise PDFValidationError(error_msg)

        if not self.pdf_path.is_file():
            error_msg = f"Path is not a file: {self.pdf_path}"
            logger.error(error_msg)
            raise PDFValidationError(error_msg)

        if self.pdf_path.suffix.lower() != '.pdf':
            error_msg = f"File is not a PDF: {self.pdf_path}"
            logger.error(error_msg)
            raise PDFValidationError(error_msg)

        logger.info(f"PDF path validated: {self.pdf_path}")
        return True

    def open_pdf(self) -> fitz.Document:
        """
        Open PDF file.

        Returns:
            Opened PyMuPDF Document object

        Raises:
            PDFReadError: If PDF cannot be opened
        """
        try:
            self.pdf_document = fitz.open(self.pdf_path)
            logger.info(f"PDF opened successfully: {self.pdf_path}")
            return self.pdf_document
        except Exception as e:
            error_msg = f"Failed to open PDF: {self.pdf_path}. Error: {str(e)}"
            logger.error(error_msg)
            raise PDFReadError(error_msg) from e

    def decrypt_pdf(self, password: str = None) -> bool:
        """
        Decrypt PDF if encrypted.

        Args:
            password: Optional password for encrypted PDF

        Returns:
            True if decryption successful or PDF is not encrypted

        Raises:
            PDFDecryptionError: If decryption fails
        """
        document = self._require_document()

        if not document.needs_pass:
            logger.info("PDF is not encrypted")
            return True

        try:
            result = document.authenticate(password or "")
        except Exception as e:
            error_msg = f"Failed to decrypt PDF: {str(e)}"
            logger.error(error_msg)
            raise PDFDecryptionError(error_msg) from e

        if not result:
            if password:
                error_msg = "PDF decryption failed: Invalid password"
            else:
                error_msg = "PDF is encrypted and requires a password"
            logger.error(error_msg)
            raise PDFDecryptionError(error_msg)

        logger.info("PDF decrypted successfully")
        return True

    def _require_document(self) -> fitz.Document:
        if self.pdf_document is None:
            raise PDFReadError("PDF document not opened. Call open_pdf() first.")
        return self.pdf_document

    @property
    def page_count(self) -> int:
        return len(self._require_document())

    def _check_page_number(self, page_number: int) -> None:
        total_pages = self.page_count
        if not isinstance(page_number, int) or not 1 <= page_number <= total_pages:
            error_msg = f"Page {page_number} is out of range (1-{total_pages})"
            logger.error(error_msg)
            raise PageRangeError(error_msg)

    @staticmethod
    def _valid_bbox(bbox: Sequence[float]) -> bool:
        """Check that a glyph box has finite, correctly ordered coordinates."""
        if not all(math.isfinite(coord) for coord in bbox):
            logger.warning(f"Bbox contains non-finite values: {bbox}")
            return False
        x0, y0, x1, y1 = bbox
        if x1 < x0 or y1 < y0:
            logger.warning(f"Invalid bbox dimensions: {bbox} (x1 < x0 or y1 < y0)")
            return False
        return True

    def _text_elements(self, fitz_page: fitz.Page) -> List[TextElement]:
        """Convert per-character glyphs of a page into TextElements."""
        elements = []
        raw = fitz_page.get_text("rawdict")
        for block in raw.get("blocks", []):
            if block.get("type", 0) != 0:
                continue
            for line in block.get("lines", []):
                dx, dy = line.get("dir", (1.0, 0.0))
                direction = (
                    TextDirection.HORIZONTAL
                    if abs(dy) < 1e-3 and dx > 0
                    else TextDirection.ROTATED
                )
                for span in line.get("spans", []):
                    size = float(span.get("size", 0.0))
                    font = span.get("font", "")
                    for char in span.get("chars", []):
                        bbox = tuple(char["bbox"])
                        if not self._valid_bbox(bbox):
                            continue
                        elements.append(
                            TextElement(
                                text=char.get("c", ""),
                                rect=Rectangle.from_bbox(bbox),
                                font_size=size,
                                font_name=font,
                                direction=direction,
                            )
                        )
        return elements

    def _rect_rulings(self, rect: fitz.Rect) -> List[Ruling]:
        """Rulings drawn by a rectangle: its centerline if thin, else its four edges."""
        thin = self.config.thin_rect_tolerance
        x0, y0, x1, y1 = rect.x0, rect.y0, rect.x1, rect.y1
        width, height = abs(x1 - x0), abs(y1 - y0)

        if width <= thin and height <= thin:
            return []
        if height <= thin:
            y = (y0 + y1) / 2
            return [Ruling(x0, y, x1, y)]
        if width <= thin:
            x = (x0 + x1) / 2
            return [Ruling(x, y0, x, y1)]
        return [
            Ruling(x0, y0, x1, y0),
            Ruling(x0, y1, x1, y1),
            Ruling(x0, y0, x0, y1),
            Ruling(x1, y0, x1, y1),
        ]

    def _rulings(self, fitz_page: fitz.Page) -> List[Ruling]:
        """Convert vector drawings of a page into Rulings."""
        rulings = []
        for path in fitz_page.get_drawings():
            for item in path.get("items", []):
                kind = item[0]
                if kind == "l":
                    p1, p2 = item[1], item[2]
                    if not self._valid_bbox((min(p1.x, p2.x), min(p1.y, p2.y),
                                             max(p1.x, p2.x), max(p1.y, p2.y))):
                        continue
                    rulings.append(Ruling(p1.x, p1.y, p2.x, p2.y))
                elif kind == "re":
                    rulings.extend(self._rect_rulings(item[1]))
                elif kind == "qu":
                    rulings.extend(self._rect_rulings(item[1].rect))
        return rulings

    def load_page(self, page_number: int) -> Page:
        """
        Build the page model of one page.

        Args:
            page_number: Page number (1-indexed)

        Returns:
            Page with its glyphs and rulings

        Raises:
            PageRangeError: If page_number is outside the document
            PDFReadError: If the page cannot be read
        """
        self._check_page_number(page_number)
        document = self._require_document()

        try:
            fitz_page = document[page_number - 1]
            text = self._text_elements(fitz_page)
            rulings = self._rulings(fitz_page)
            image_count = len(fitz_page.get_images())
            page = Page(
                number=page_number,
                width=fitz_page.rect.width,
                height=fitz_page.rect.height,
                text=tuple(text),
                rulings=tuple(rulings),
                image_count=image_count,
            )
        except Exception as e:
            error_msg = f"Failed to read page {page_number}: {str(e)}"
            logger.error(error_msg)
            raise PDFReadError(error_msg) from e

        if not text and image_count:
            logger.warning(
                f"Page {page_number} has no extractable text but {image_count} image(s); "
                f"it is probably scanned"
            )
        logger.debug(
            f"Loaded page {page_number}: {len(text)} text elements, {len(rulings)} rulings"
        )
        return page

    def extract_all_pages(self, page_numbers: Optional[Sequence[int]] = None) -> Iterator[Page]:
        """
        Lazily yield the page models of the document in page order.

        Args:
            page_numbers: Optional page numbers (1-indexed). If None, yields all pages.

        Raises:
            PageRangeError: If any requested page is outside the document,
                before any page is yielded
        """
        if page_numbers is None:
            numbers = list(range(1, self.page_count + 1))
        else:
            numbers = sorted(set(page_numbers))
            for number in numbers:
                self._check_page_number(number)

        logger.info(f"Extracting {len(numbers)} page(s)")
        return (self.load_page(number) for number in numbers)

    def get_pdf_metadata(self) -> Dict[str, Any]:
        """
        Get PDF metadata.

        Returns:
            Dictionary containing PDF metadata

        Raises:
            PDFReadError: If PDF is not opened
        """
        document = self._require_document()

        metadata = {
            'pdf_name': self.pdf_name,
            'total_pages': len(document),
            'is_encrypted': document.needs_pass,
            'metadata': document.metadata
        }
        return metadata

    def close(self) -> None:
        """Close the PDF document."""
        if self.pdf_document is not None:
            self.pdf_document.close()
            self.pdf_document = None
            logger.info("PDF document closed")
