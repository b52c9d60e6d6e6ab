"""Export extracted tables to JSON or CSV."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from exceptions import TableExportError
from models import Table

logger = logging.getLogger(__name__)


class TableExporter:
    """Export extracted tables to JSON or CSV files."""

    def __init__(self, pdf_path: Path):
        """
        Initialize TableExporter.

        Args:
            pdf_path: Path to the PDF file the tables came from
        """
        self.pdf_path = Path(pdf_path)
        self.pdf_name = self.pdf_path.name

    def _get_output_path(self, filename: Optional[str], extension: str) -> Path:
        """
        Get output path for an export file.

        Args:
            filename: Optional custom filename. If None, uses default naming.
            extension: File extension including the dot

        Returns:
            Path to output file
        """
        if filename is None:
            # Default: {pdfname}_tables.{ext}
            filename = f"{self.pdf_path.stem}_tables{extension}"

        if not filename.endswith(extension):
            filename = f"{filename}{extension}"

        output_path = Path(filename)
        if not output_path.is_absolute():
            output_path = self.pdf_path.parent / output_path
        return output_path

    def _format_table(self, index: int, table: Table) -> Dict[str, Any]:
        return {
            "index": index,
            "page_number": table.page_number,
            "extraction_method": table.method,
            "bbox": list(table.rect.to_bbox()),
            "row_count": table.row_count,
            "col_count": table.col_count,
            "rows": [
                [
                    {"text": cell.text, "bbox": list(cell.rect.to_bbox())}
                    for cell in row
                ]
                for row in table.rows()
            ],
        }

    def _format_data(
        self,
        tables: Sequence[Table],
        total_pages: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Format tables for JSON export.

        Args:
            tables: Extracted tables
            total_pages: Optional total page count of the document

        Returns:
            Dictionary formatted for JSON export
        """
        pages_with_tables = sorted(
            {t.page_number for t in tables if t.page_number is not None}
        )
        return {
            "pdf_name": self.pdf_name,
            "total_pages": total_pages,
            "pages_with_tables": pages_with_tables,
            "tables": [self._format_table(i, t) for i, t in enumerate(tables)],
        }

    def export_json(
        self,
        tables: Sequence[Table],
        output_filename: Optional[str] = None,
        total_pages: Optional[int] = None
    ) -> Path:
        """
        Export tables to a JSON file.

        Args:
            tables: Extracted tables
            output_filename: Optional custom output filename
            total_pages: Optional total page count from PDF

        Returns:
            Path to the exported JSON file

        Raises:
            TableExportError: If export fails
        """
        try:
            output_path = self._get_output_path(output_filename, ".json")
            data = self._format_data(tables, total_pages=total_pages)

            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            logger.info(f"JSON exported successfully: {output_path}")
            return output_path

        except Exception as e:
            error_msg = f"Failed to export JSON: {str(e)}"
            logger.error(error_msg)
            raise TableExportError(error_msg) from e

    def export_csv(
        self,
        tables: Sequence[Table],
        output_filename: Optional[str] = None
    ) -> Path:
        """
        Export tables to one CSV file, separated by a blank row.

        Args:
            tables: Extracted tables
            output_filename: Optional custom output filename

        Returns:
            Path to the exported CSV file

        Raises:
            TableExportError: If export fails
        """
        try:
            output_path = self._get_output_path(output_filename, ".csv")

            with open(output_path, 'w', encoding='utf-8', newline='') as f:
                writer = csv.writer(f)
                for i, table in enumerate(tables):
                    if i:
                        writer.writerow([])
                    writer.writerows(table.to_list())

            logger.info(f"CSV exported successfully: {output_path}")
            return output_path

        except Exception as e:
            error_msg = f"Failed to export CSV: {str(e)}"
            logger.error(error_msg)
            raise TableExportError(error_msg) from e
