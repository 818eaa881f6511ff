"""Adapter for parsing competition score-sheet PDFs."""

import fitz  # PyMuPDF

from .base import BaseAdapter
from ..core.errors import PdfPageError
from ..core.models import RowRecord, TextFragment
from ..core.table_extractor import extract_rows


class PdfAdapter(BaseAdapter):
    """Parse band rows out of a recap score-sheet PDF."""

    def parse(self, data_path: str) -> list[RowRecord]:
        """Parse a PDF and return its band rows, in page order."""
        pages = self.read_fragments(data_path)
        try:
            return extract_rows(pages)
        except ValueError as e:
            raise PdfPageError(data_path, cause=e) from e

    def read_fragments(self, data_path: str) -> list[list[TextFragment]]:
        """Return the positioned text fragments of every page."""
        try:
            doc = fitz.open(data_path)
        except Exception as e:
            raise PdfPageError(data_path, cause=e) from e

        pages = []
        try:
            for page_num in range(doc.page_count):
                try:
                    pages.append(self._page_fragments(doc[page_num]))
                except Exception as e:
                    raise PdfPageError(data_path, page_num + 1, e) from e
        finally:
            doc.close()
        return pages

    @staticmethod
    def _page_fragments(page) -> list[TextFragment]:
        """Collect one fragment per word, sized by the span it belongs to.

        MuPDF merges neighbouring cells of the same font into one span, so
        spans are split back into words on whitespace. PyMuPDF measures y
        downward from the top; fragments use PDF space (y up from the
        bottom), taken at the baseline of the word's first character.
        """
        page_height = page.rect.height
        blocks = page.get_text("rawdict")

        fragments = []
        for block in blocks["blocks"]:
            if "lines" not in block:
                continue
            for line in block["lines"]:
                for span in line["spans"]:
                    word, origin = [], None
                    for char in span["chars"] + [None]:
                        if char is not None and not char["c"].isspace():
                            if not word:
                                origin = char["origin"]
                            word.append(char["c"])
                            continue
                        if word:
                            x, y = origin
                            fragments.append(TextFragment(
                                text=''.join(word),
                                x=round(x, 2),
                                y=round(page_height - y, 2),
                                height=span["size"],
                            ))
                            word = []
        return fragments
