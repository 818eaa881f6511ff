"""Assemble competition records from score-sheet PDFs.

Score sheets are named "YYYY-MM-DD <Competition Name>.pdf". The date and
competition name come from the file name; the rows come from the adapter.
A batch is processed one file at a time, in the order given, and a file
that fails or yields no rows is skipped without stopping the batch.
"""

import json
import os
import re

from .errors import PdfPageError
from .models import CompetitionRecord


DEFAULT_EXPORT_NAME = 'consolidated_scores.json'

_NAME_RE = re.compile(r'(\d{4}-\d{2}-\d{2})\s+(.+)\.pdf$', re.IGNORECASE)
_SCORE_SHEET_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})\s+.+\.pdf$', re.IGNORECASE)


def parse_competition_name(file_name: str) -> tuple[str, str]:
    """Split a score-sheet file name into (date_str, comp_name).

    '2025-10-04 Region_Finals.pdf' -> ('2025-10-04', 'Region Finals')
    'NoDateHere.pdf'               -> ('', 'NoDateHere')
    """
    name = os.path.basename(file_name) or 'Unknown.pdf'
    match = _NAME_RE.search(name)
    if match:
        return match.group(1), match.group(2).replace('_', ' ')
    return '', re.sub(r'\.pdf$', '', name, flags=re.IGNORECASE)


def assemble_competition(file_name: str, rows: list):
    """Build a CompetitionRecord, or None when no rows were extracted."""
    if not rows:
        return None
    date_str, comp_name = parse_competition_name(file_name)
    return CompetitionRecord(date_str=date_str, comp_name=comp_name, rows=tuple(rows))


def is_score_sheet(file_name: str) -> bool:
    return bool(_SCORE_SHEET_RE.match(os.path.basename(file_name)))


def select_score_sheets(paths: list[str]) -> list[str]:
    """Expand directories and keep files named like score sheets.

    Directory contents are taken in sorted order; explicit files keep the
    order they were given in.
    """
    selected = []
    for path in paths:
        if os.path.isdir(path):
            candidates = [os.path.join(path, n) for n in sorted(os.listdir(path))]
        else:
            candidates = [path]
        for candidate in candidates:
            if os.path.isfile(candidate) and is_score_sheet(candidate):
                selected.append(candidate)
    return selected


def consolidate(pdf_paths: list[str], adapter) -> list[CompetitionRecord]:
    """Parse each PDF in turn and return the competitions that produced rows."""
    competitions = []
    for pdf_path in pdf_paths:
        print(f"Parsing {pdf_path}...")
        try:
            rows = adapter.parse(pdf_path)
        except PdfPageError as e:
            print(f"  -> skipped: {e}")
            continue

        record = assemble_competition(pdf_path, rows)
        if record is None:
            print("  -> skipped: no score rows found")
            continue
        print(f"  -> {len(record.rows)} rows")
        competitions.append(record)
    return competitions


def write_consolidated_json(competitions: list[CompetitionRecord], output_path: str):
    """Write the competitions as a pretty-printed JSON array."""
    if not competitions:
        raise ValueError("No data to export. Consolidate score sheets first.")
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump([c.to_dict() for c in competitions], f, indent=2, ensure_ascii=False)
