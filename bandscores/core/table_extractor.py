"""Rebuild score-sheet text from positioned fragments and pull out band rows.

Score sheets print each band on one line: the school name followed by 24
score cells. Next to many scores sits a small rank numeral, printed in a
smaller font than the scores. Those ranks are dropped by font height before
the page text is reassembled line by line.
"""

import math
import re
from collections import Counter

from .errors import RowShapeMismatch
from .models import ROW_CELL_COUNT, RowRecord, TextFragment


NUMERIC_RE = re.compile(r'^\d+(\.\d+)?$')
HEIGHT_TOLERANCE = 0.01
Y_TOLERANCE = 2

# A one-line name that starts on a non-digit (a space is allowed) and ends on
# a non-digit, non-space character, then exactly 24 numbers with no further
# number on the same line. A trailing number in the name ("Skyline HS 2")
# counts as a 25th cell, so such a line yields no row.
_NUM = r'\d+(?:\.\d{1,4})?'
ROW_RE = re.compile(
    r'([^\d\s]|[^\d\n][^\n]*?[^\d\s])'
    r'\s+'
    rf'((?:{_NUM}\s+){{{ROW_CELL_COUNT - 1}}}{_NUM})'
    r'(?![\d.])(?![ \t]+\d)'
)

FALLBACK_SCHOOL = 'Orem'
FALLBACK_RE = re.compile(r'Orem(?:\s+(?:High|City|High\s+School))?[\s\S]{0,400}', re.IGNORECASE)
NUMBER_RE = re.compile(_NUM)

# Rendered-table filter for rank/summary lines mistaken for school names
_NAME_CHARS_RE = re.compile(r'^[-.\w\s]+$', re.ASCII)


def is_numeric(text: str) -> bool:
    return bool(NUMERIC_RE.match(text))


def parse_number(token: str):
    """Parse a score cell like JSON would: '9' and '9.000' -> 9, '9.45' -> 9.45."""
    value = float(token)
    return int(value) if value.is_integer() else value


def find_rank_height(fragments: list[TextFragment]):
    """Return the font height used for rank numerals, or None.

    The two most common heights among numeric fragments are scores and
    ranks; the smaller of the two is taken as the rank height, whichever of
    them is more frequent.
    """
    counts = Counter(f'{frag.height:.2f}' for frag in fragments if is_numeric(frag.text))
    common = counts.most_common(2)
    if len(common) < 2:
        return None
    return min(float(common[0][0]), float(common[1][0]))


def drop_rank_numerals(fragments: list[TextFragment]) -> list[TextFragment]:
    rank_height = find_rank_height(fragments)
    if rank_height is None or rank_height <= 0:
        return list(fragments)
    return [
        frag for frag in fragments
        if not (is_numeric(frag.text) and abs(frag.height - rank_height) < HEIGHT_TOLERANCE)
    ]


def _line_key(y: float) -> float:
    # Round half up, so y=1.0 and y=3.0 land in the 2 and 4 buckets
    return math.floor(y / Y_TOLERANCE + 0.5) * Y_TOLERANCE


def reconstruct_page_text(fragments: list[TextFragment]) -> str:
    """Reassemble one page's text in reading order, without rank numerals.

    Fragments within the same vertical bucket form one line, read left to
    right. Lines run top to bottom (PDF y grows upward).
    """
    lines: dict[float, list[TextFragment]] = {}
    for frag in drop_rank_numerals(fragments):
        lines.setdefault(_line_key(frag.y), []).append(frag)

    out = []
    for y in sorted(lines, reverse=True):
        line = sorted(lines[y], key=lambda frag: frag.x)
        out.append(' '.join(frag.text for frag in line) + '\n')
    return ''.join(out)


def reconstruct_text(pages: list[list[TextFragment]]) -> str:
    return ''.join(reconstruct_page_text(fragments) for fragments in pages)


def extract_rows_from_text(text: str) -> list[RowRecord]:
    """Find every '<school> <24 numbers>' row in the reconstructed text.

    Extraction is permissive: names containing digits are accepted here and
    filtered out later by is_summary_row() when tables are rendered. If no
    row matches at all, fall back to the numbers following "Orem".
    """
    rows = []
    for match in ROW_RE.finditer(text):
        school = match.group(1).strip()
        cells = tuple(parse_number(tok) for tok in match.group(2).split())
        try:
            rows.append(RowRecord(school, cells))
        except RowShapeMismatch:
            continue

    if not rows:
        fallback = _fallback_row(text)
        if fallback is not None:
            rows.append(fallback)

    return rows


def _fallback_row(text: str):
    match = FALLBACK_RE.search(text)
    if not match:
        return None
    numbers = NUMBER_RE.findall(match.group(0))
    if len(numbers) < ROW_CELL_COUNT:
        return None
    return RowRecord(FALLBACK_SCHOOL, tuple(parse_number(n) for n in numbers[:ROW_CELL_COUNT]))


def extract_rows(pages: list[list[TextFragment]]) -> list[RowRecord]:
    """Extract all band rows from a document's per-page fragments."""
    return extract_rows_from_text(reconstruct_text(pages))


def is_summary_row(school: str) -> bool:
    """True if a 'school' looks like a rank or calculation line, e.g. '12 3 Rank'."""
    if len(school) <= 3 or not re.search(r'\d', school):
        return False
    if not _NAME_CHARS_RE.match(school):
        return False
    alpha = len(re.sub(r'[^a-zA-Z]', '', school))
    return alpha / len(school) <= 0.5
