"""Abstract base adapter for reading score sheets from various sources."""

from abc import ABC, abstractmethod


class BaseAdapter(ABC):
    @abstractmethod
    def parse(self, data_path: str) -> list:
        """Parse a score sheet and return its band rows.

        Each item is a RowRecord: school name plus exactly 24 score cells.
        Implementations raise PdfPageError (or a source-specific error) when
        the document cannot be processed at all.
        """
        pass
