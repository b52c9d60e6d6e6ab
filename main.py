"""Main entry point for the PDF table finder application."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from cli_handler import CLIHandler
from exceptions import PDFDecryptionError, TableFinderException
from models import Table
from page_analyzer import extract_tables, page_report
from pdf_annotator import PDFTableAnnotator
from pdf_reader import PDFReader
from table_exporter import TableExporter

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None):
    """Main entry point for the PDF table finder."""
    try:
        # Parse arguments first
        args = CLIHandler.parse_arguments(argv)

        # Configure logging with user's preferred level
        logging.basicConfig(
            level=getattr(logging, args.log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Validate arguments
        CLIHandler.validate_arguments(args)
        config = CLIHandler.build_config(args)

        pdf_path = Path(args.pdf_path)
        logger.info(f"Processing PDF: {pdf_path}")

        # Parse page range if provided
        page_range = None
        if args.pages:
            page_range = CLIHandler.parse_page_range(args.pages)
            logger.info(f"Processing pages: {page_range}")

        pdf_reader = PDFReader(pdf_path, config)
        pdf_reader.validate_path()
        pdf_reader.open_pdf()

        try:
            try:
                pdf_reader.decrypt_pdf(password=args.encryption_password)
            except PDFDecryptionError as e:
                logger.error(f"PDF decryption failed: {e}")
                if not args.encryption_password:
                    logger.error("Please provide --encryption-password if PDF is encrypted")
                sys.exit(1)

            pages = pdf_reader.extract_all_pages(page_range)

            if args.report:
                for page in pages:
                    logger.info(json.dumps(page_report(page, config)))
                return

            tables: List[Table] = []
            for page in pages:
                tables.extend(
                    extract_tables(
                        page,
                        config,
                        detection=args.detection,
                        extraction=args.extraction,
                    )
                )
            logger.info(f"Found {len(tables)} table(s)")

            exporter = TableExporter(pdf_path)
            if args.format == 'csv':
                output_path = exporter.export_csv(tables, output_filename=args.output)
            else:
                output_path = exporter.export_json(
                    tables,
                    output_filename=args.output,
                    total_pages=pdf_reader.page_count
                )
            logger.info(f"Tables exported to: {output_path}")

            if args.annotate:
                annotator = PDFTableAnnotator(pdf_reader.pdf_document, pdf_path)
                annotator.draw_tables(tables)
                annotator.save_pdf()

        finally:
            # Ensure PDF is always closed, even if errors occur
            pdf_reader.close()

        logger.info("PDF processing completed successfully")

    except TableFinderException as e:
        logger.error(f"Table Finder Error: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Validation Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
