#!/usr/bin/env python3
"""
Lab Report Extraction

Runs the extraction pipeline on one PDF and writes the consolidated report
as JSON.

Usage:
    python scripts/extract_report.py report.pdf
    python scripts/extract_report.py report.pdf --output report.json
    python scripts/extract_report.py report.pdf --debug   # per-page classification
"""

import json
import sys
import argparse
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.health_ingestion.core.pipeline import LabReportPipeline
from src.utils.exceptions import PDFExtractionError
from src.utils.file_utils import is_pdf, write_json
from src.utils.logging import setup_logging_from_settings


def main():
    parser = argparse.ArgumentParser(description="Extract a structured report from a lab PDF")
    parser.add_argument("pdf", type=str, help="Path to the PDF report")
    parser.add_argument("--output", "-o", type=str, help="Write JSON here instead of stdout")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print per-page classification and counts instead of the report"
    )
    args = parser.parse_args()

    setup_logging_from_settings()

    pipeline = LabReportPipeline()
    pdf_path = Path(args.pdf)
    if not is_pdf(pdf_path):
        print(f"ERROR: not a PDF file: {pdf_path}", file=sys.stderr)
        return 1

    try:
        if args.debug:
            pages = pipeline.text_extractor.extract_pages(pdf_path)
            output = pipeline.debug_info(pages)
        else:
            output = pipeline.process_pdf(pdf_path).to_dict()
    except PDFExtractionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.output:
        write_json(output, Path(args.output))
        print(f"Wrote {args.output}")
    else:
        print(json.dumps(output, indent=2, ensure_ascii=False))

    return 0


if __name__ == "__main__":
    sys.exit(main())
