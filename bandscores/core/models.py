"""Data models for the band score feed and score-sheet consolidation."""

import os
from dataclasses import dataclass, field

from .errors import RowShapeMismatch


ROW_CELL_COUNT = 24

PAYLOAD_KINDS = ('scores', 'adjudication', 'comments', 'historical_comments')


@dataclass(frozen=True)
class SourceFile:
    """One of the fixed JSON sources pushed to dashboard clients."""
    name: str                 # "Data Collection.json"
    kind: str                 # "scores", "adjudication", "comments", "historical_comments"

    def path_in(self, json_dir: str) -> str:
        return os.path.join(json_dir, self.name)


SOURCE_FILES = (
    SourceFile('Data Collection.json', 'scores'),
    SourceFile('AdjudicationSheets.json', 'adjudication'),
    SourceFile('2025_judge_comments.json', 'comments'),
    SourceFile('historical_judge_comments.json', 'historical_comments'),
)

SOURCES_BY_NAME = {source.name: source for source in SOURCE_FILES}


@dataclass
class Payload:
    """A typed message pushed to clients as {"type": kind, "data": data}."""
    kind: str
    data: object

    def to_message(self) -> dict:
        return {'type': self.kind, 'data': self.data}


@dataclass(frozen=True)
class RowRecord:
    """One band's row from a score sheet: school name plus 24 score cells."""
    school: str
    cells: tuple

    def __post_init__(self):
        if len(self.cells) != ROW_CELL_COUNT:
            raise RowShapeMismatch(self.school, len(self.cells))

    def to_dict(self) -> dict:
        return {'school': self.school, 'cells': list(self.cells)}


@dataclass(frozen=True)
class CompetitionRecord:
    """All rows extracted from one competition PDF."""
    date_str: str             # "2025-10-04", or "" when the file name has no date
    comp_name: str            # "Region Finals"
    rows: tuple = ()

    @property
    def year(self) -> str:
        return self.date_str[:4]

    def to_dict(self) -> dict:
        return {
            'dateStr': self.date_str,
            'compName': self.comp_name,
            'rows': [row.to_dict() for row in self.rows],
        }


@dataclass(frozen=True)
class TextFragment:
    """A positioned piece of page text. y is measured up from the page bottom."""
    text: str
    x: float
    y: float
    height: float


@dataclass
class ServerConfig:
    """Configuration for the live score feed server."""
    json_dir: str = 'JSON Files'
    host: str = 'localhost'
    port: int = 3000
    debounce_ms: int = 300    # watchfiles batching window
    sources: tuple = field(default=SOURCE_FILES)

    def source_paths(self) -> list[str]:
        return [source.path_in(self.json_dir) for source in self.sources]
