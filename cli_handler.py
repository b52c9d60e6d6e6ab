"""Command-line argument parsing and validation."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from config import REGION_PRECEDENCE_CHOICES, ExtractionConfig
from detection import DetectionMethod
from extraction import ExtractionMethod

logger = logging.getLogger(__name__)

# CLI flag -> ExtractionConfig field
TUNING_OPTIONS = {
    'ruling_merge_tolerance': float,
    'intersection_tolerance': float,
    'min_grid_rows': int,
    'min_grid_cols': int,
    'column_gap_ratio': float,
    'region_overlap_threshold': float,
    'line_grouping_tolerance': float,
    'row_merge_tolerance': float,
}


class CLIHandler:
    """Handle command-line argument parsing and validation."""

    @staticmethod
    def parse_page_range(page_str: str) -> List[int]:
        """
        Parse page range string into list of page numbers.

        Supports formats:
        - "1,3,5" -> [1, 3, 5]
        - "1-5" -> [1, 2, 3, 4, 5]
        - "1,3-5,10" -> [1, 3, 4, 5, 10]

        Args:
            page_str: Comma-separated page range string (1-indexed)

        Returns:
            Sorted list of unique page numbers (1-indexed)

        Raises:
            ValueError: If page range format is invalid
        """
        if not page_str:
            return []

        pages = []
        parts = page_str.split(',')

        for part in parts:
            part = part.strip()
            if '-' in part:
                # Range format: "start-end"
                try:
                    start, end = part.split('-', 1)
                    start = int(start.strip())
                    end = int(end.strip())

                    if start < 1 or end < 1:
                        raise ValueError(f"Page numbers must be >= 1: {part}")

                    if start > end:
                        raise ValueError(f"Start page must be <= end page: {part}")

                    pages.extend(range(start, end + 1))
                except ValueError as e:
                    if "must be" in str(e):
                        raise
                    raise ValueError(f"Invalid page range format: {part}") from e
            else:
                # Single page number
                try:
                    page_num = int(part)
                    if page_num < 1:
                        raise ValueError(f"Page numbers must be >= 1: {part}")
                    pages.append(page_num)
                except ValueError as e:
                    if "must be" in str(e):
                        raise
                    raise ValueError(f"Invalid page number: {part}") from e

        # Remove duplicates and sort
        pages = sorted(set(pages))
        return pages

    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        """Build the argument parser."""
        parser = argparse.ArgumentParser(
            description="Detect and extract tables from the layout of PDF pages",
            formatter_class=argparse.RawDescriptionHelpFormatter
        )

        parser.add_argument(
            'pdf_path',
            type=str,
            help='Path to input PDF file'
        )

        parser.add_argument(
            '--pages',
            type=str,
            default=None,
            metavar='RANGE',
            help='Page range to process (1-indexed). '
                 'Examples: "1,3,5" or "1-5" or "1,3-5,10"'
        )

        parser.add_argument(
            '--detection',
            type=str,
            default=None,
            choices=[m.value for m in DetectionMethod],
            help='Detection algorithm. Default: spreadsheet, then heuristic '
                 'when no ruling grid is found'
        )

        parser.add_argument(
            '--extraction',
            type=str,
            default=None,
            choices=[m.value for m in ExtractionMethod],
            help='Extraction algorithm. Default: spreadsheet for ruled regions, '
                 'basic otherwise'
        )

        parser.add_argument(
            '--format',
            type=str,
            default='json',
            choices=['json', 'csv'],
            help='Output format (default: json)'
        )

        parser.add_argument(
            '--output',
            type=str,
            default=None,
            metavar='FILENAME',
            help='Output filename. Default: {pdfname}_tables.{json,csv} next to the PDF'
        )

        parser.add_argument(
            '--annotate',
            action='store_true',
            help='Save a copy of the PDF with detected tables and cells outlined'
        )

        parser.add_argument(
            '--report',
            action='store_true',
            help='Log per-page diagnostics (text, rulings, candidates) instead of extracting'
        )

        parser.add_argument(
            '--region-precedence',
            type=str,
            default=None,
            choices=list(REGION_PRECEDENCE_CHOICES),
            help='Evidence that wins when ruled and whitespace regions overlap '
                 '(default: rulings)'
        )

        for name, kind in TUNING_OPTIONS.items():
            parser.add_argument(
                f"--{name.replace('_', '-')}",
                type=kind,
                default=None,
                help=f"Override {name} (default: {getattr(ExtractionConfig(), name)})"
            )

        parser.add_argument(
            '--encryption-password',
            type=str,
            default=None,
            metavar='PASSWORD',
            help='Password for encrypted PDF. If provided, PDF will be decrypted using this password.'
        )

        parser.add_argument(
            '--log-level',
            type=str,
            default='INFO',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            help='Set logging level (default: INFO)'
        )

        return parser

    @staticmethod
    def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
        """
        Parse command-line arguments.

        Args:
            argv: Arguments to parse. If None, uses sys.argv.

        Returns:
            Parsed arguments namespace
        """
        return CLIHandler.build_parser().parse_args(argv)

    @staticmethod
    def build_config(args: argparse.Namespace) -> ExtractionConfig:
        """
        Build the extraction config from the tuning options.

        Raises:
            ValueError: If an option value is invalid
        """
        overrides: Dict[str, Any] = {name: getattr(args, name) for name in TUNING_OPTIONS}
        overrides['region_precedence'] = args.region_precedence
        return ExtractionConfig.from_dict(overrides)

    @staticmethod
    def validate_arguments(args: argparse.Namespace) -> bool:
        """
        Validate parsed arguments.

        Args:
            args: Parsed arguments namespace

        Returns:
            True if arguments are valid

        Raises:
            ValueError: If arguments are invalid
        """
        # Validate PDF path
        pdf_path = Path(args.pdf_path)
        if not pdf_path.exists():
            raise ValueError(f"PDF file not found: {pdf_path}")

        if not pdf_path.is_file():
            raise ValueError(f"Path is not a file: {pdf_path}")

        if pdf_path.suffix.lower() != '.pdf':
            raise ValueError(f"File is not a PDF: {pdf_path}")

        # Validate page range if provided
        if args.pages:
            try:
                CLIHandler.parse_page_range(args.pages)
            except ValueError as e:
                raise ValueError(f"Invalid page range: {e}") from e

        # Validate output filename if provided
        if args.output is not None and args.output.strip() == '':
            raise ValueError("--output filename cannot be empty")

        CLIHandler.build_config(args)
        return True
