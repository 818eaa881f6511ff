"""Exceptions raised while reading score sources and parsing score sheets."""

from typing import Optional


class BandScoresError(Exception):
    """Base class for all band score errors."""


class SourceReadError(BandScoresError):
    """
    A JSON source could not be read from disk.

    Attributes:
        path: Path of the source file
        cause: The underlying OS or decoding error
    """

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"Could not read {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class SourceNotFound(SourceReadError):
    """The JSON source does not exist (yet)."""


class SourceParseError(BandScoresError):
    """
    A JSON source was read but is not valid JSON.

    Attributes:
        path: Path of the source file
        line: Line of the first syntax error, if known
    """

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        self.line = getattr(cause, 'lineno', None)
        message = f"Invalid JSON in {path}"
        if self.line is not None:
            message += f" (line {self.line})"
        if cause is not None:
            message += f": {getattr(cause, 'msg', cause)}"
        super().__init__(message)


class TransportError(BandScoresError):
    """The client connection failed; the session is torn down."""

    def __init__(self, cause: Optional[BaseException] = None):
        self.cause = cause
        message = "Transport error"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class PdfPageError(BandScoresError):
    """
    A score-sheet PDF could not be processed. Only that file is skipped.

    Attributes:
        pdf_path: Path of the PDF being parsed
        page_number: 1-based page number, or None when the document itself failed
    """

    def __init__(self, pdf_path: str, page_number: Optional[int] = None,
                 cause: Optional[BaseException] = None):
        self.pdf_path = pdf_path
        self.page_number = page_number
        self.cause = cause
        where = f"page {page_number} of {pdf_path}" if page_number else pdf_path
        message = f"Failed to parse {where}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class RowShapeMismatch(BandScoresError):
    """A candidate row does not carry exactly 24 cells. Callers discard the row."""

    def __init__(self, school: str, cell_count: int):
        self.school = school
        self.cell_count = cell_count
        super().__init__(f"Row '{school}' has {cell_count} cells, expected 24")
