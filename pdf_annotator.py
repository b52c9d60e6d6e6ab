"""Draw detected table regions and cells on a PDF using PyMuPDF annotations."""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import fitz  # PyMuPDF

from exceptions import PDFAnnotationError, PDFReadError
from models import Table

logger = logging.getLogger(__name__)

TABLE_COLOR = (1, 0, 0)
CELL_COLOR = (0, 0, 1)


class PDFTableAnnotator:
    """Outline extracted tables and their cells on the PDF pages."""

    def __init__(self, pdf_document: fitz.Document, pdf_path: Path):
        """
        Initialize PDFTableAnnotator.

        Args:
            pdf_document: PyMuPDF Document object
            pdf_path: Path to the original PDF file
        """
        if pdf_document is None:
            raise PDFReadError("PDF document cannot be None")

        self.pdf_document = pdf_document
        self.pdf_path = Path(pdf_path)
        self.output_path: Optional[Path] = None

    def annotate_page(self, page_number: int, tables: Sequence[Table]) -> None:
        """
        Annotate a single page with table outlines.

        Args:
            page_number: Page number (1-indexed)
            tables: Tables found on this page

        Raises:
            PDFAnnotationError: If annotation fails
        """
        if page_number < 1 or page_number > len(self.pdf_document):
            raise ValueError(f"Invalid page number: {page_number}")

        try:
            page = self.pdf_document[page_number - 1]
            for table in tables:
                for row in table.rows():
                    for cell in row:
                        annot = page.add_rect_annot(fitz.Rect(*cell.rect.to_bbox()))
                        annot.set_border(width=0.5)
                        annot.set_colors(stroke=CELL_COLOR)
                        annot.update()

                annot = page.add_rect_annot(fitz.Rect(*table.rect.to_bbox()))
                annot.set_border(width=1.5)
                annot.set_colors(stroke=TABLE_COLOR)
                annot.update()

            logger.debug(f"Annotated page {page_number} with {len(tables)} table(s)")

        except Exception as e:
            error_msg = f"Failed to annotate page {page_number}: {str(e)}"
            logger.error(error_msg)
            raise PDFAnnotationError(error_msg) from e

    def draw_tables(self, tables: Sequence[Table]) -> None:
        """
        Outline all tables on their pages.

        Args:
            tables: Extracted tables with page numbers

        Raises:
            PDFAnnotationError: If drawing fails
        """
        if not tables:
            logger.warning("No tables to annotate")
            return

        pages_dict: Dict[int, List[Table]] = defaultdict(list)
        for table in tables:
            if table.page_number is None:
                logger.warning(f"Skipping table without page number: {table!r}")
                continue
            pages_dict[table.page_number].append(table)

        for page_number in sorted(pages_dict):
            self.annotate_page(page_number, pages_dict[page_number])

        logger.info(f"Drew tables on {len(pages_dict)} page(s)")

    def save_pdf(self, output_path: Optional[Path] = None) -> Path:
        """
        Save the annotated PDF.

        Args:
            output_path: Optional output path. If None, creates a new file with
                        "_tables" suffix in the same directory.

        Returns:
            Path of the saved file

        Raises:
            PDFAnnotationError: If save fails
        """
        try:
            if output_path is None:
                pdf_stem = self.pdf_path.stem
                pdf_suffix = self.pdf_path.suffix
                output_path = self.pdf_path.parent / f"{pdf_stem}_tables{pdf_suffix}"

            self.pdf_document.save(output_path)
            self.output_path = Path(output_path)
            logger.info(f"PDF saved successfully: {output_path}")
            return self.output_path

        except Exception as e:
            error_msg = f"Failed to save PDF: {str(e)}"
            logger.error(error_msg)
            raise PDFAnnotationError(error_msg) from e
