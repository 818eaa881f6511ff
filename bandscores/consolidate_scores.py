#!/usr/bin/env python3
"""CLI entry point for consolidating competition score-sheet PDFs.

Usage:
    python consolidate_scores.py --data ./ScoreSheets/ \\
        --output consolidated_scores.json --report season_tables.md
"""

import argparse
import os
import sys

# Add parent directory to path for imports (skip when frozen by PyInstaller)
if not getattr(sys, 'frozen', False):
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bandscores.adapters.pdf_adapter import PdfAdapter
from bandscores.core.competition import (
    DEFAULT_EXPORT_NAME, consolidate, select_score_sheets, write_consolidated_json
)
from bandscores.core.output_generator import generate_scores_csv, generate_season_report


def main():
    parser = argparse.ArgumentParser(description='Consolidate competition score sheets')
    parser.add_argument('--data', nargs='+', required=True,
                        help='Score-sheet PDF file(s) or folder(s) named "YYYY-MM-DD <Competition>.pdf"')
    parser.add_argument('--output', default=DEFAULT_EXPORT_NAME,
                        help=f'JSON export path (default: {DEFAULT_EXPORT_NAME})')
    parser.add_argument('--report', default=None,
                        help='Optional markdown path for season-grouped competition tables')
    parser.add_argument('--csv', default=None,
                        help='Optional CSV path with one line per band per competition')

    args = parser.parse_args()

    pdf_files = select_score_sheets(args.data)
    if not pdf_files:
        print("No PDF files matching the expected naming pattern were selected.")
        sys.exit(1)

    competitions = consolidate(pdf_files, PdfAdapter())
    print(f"Total: {len(competitions)} competitions from {len(pdf_files)} files")

    if not competitions:
        print("No data to export.")
        sys.exit(1)

    write_consolidated_json(competitions, args.output)
    print(f"Generated {args.output}")

    if args.report:
        generate_season_report(competitions, args.report)
        print(f"Generated {args.report}")

    if args.csv:
        generate_scores_csv(competitions, args.csv)
        print(f"Generated {args.csv}")

    print("\nDone!")


if __name__ == '__main__':
    main()
