"""Client-side store for the payloads pushed by the score feed.

Each payload kind fills its own slot. A kind received again replaces its
previous value. Analysis waits for scores and adjudication; comments are
optional and never hold it up.
"""

import json

from .models import PAYLOAD_KINDS, ROW_CELL_COUNT


REQUIRED_KINDS = ('scores', 'adjudication')

DEFAULT_BAND_NAMES = ('Orem City', 'Orem High', 'Orem High School', 'Orem')

# Cell positions of the caption totals in a 24-cell score row
CAPTION_CELLS = {
    'Overall': 22,
    'Music': 6,
    'Visual': 13,
    'Percussion': 16,
    'Guard': 20,
}


class ClientDataStore:
    """Accumulate typed payloads and call on_ready once analysis can run."""

    def __init__(self, band_names=DEFAULT_BAND_NAMES, band_label='Orem', on_ready=None):
        self.band_names = {name.lower() for name in band_names}
        self.band_label = band_label
        self.on_ready = on_ready

        self.competitions = []
        self.score_rows = []
        self.adjudication = None
        self.comments = []
        self.historical_comments = []
        self.initialized = {kind: False for kind in PAYLOAD_KINDS}

    @property
    def ready(self) -> bool:
        return all(self.initialized[kind] for kind in REQUIRED_KINDS)

    def apply_message(self, raw) -> bool:
        """Decode a wire message and apply it. Returns False if it was ignored."""
        try:
            message = json.loads(raw)
            kind, data = message['type'], message['data']
        except (ValueError, TypeError, KeyError) as e:
            print(f"Warning: failed to process message from server: {e}")
            return False
        return self.apply(kind, data)

    def apply(self, kind: str, data) -> bool:
        if kind == 'scores':
            self.competitions = list(data)
            self.score_rows = self._band_rows(self.competitions)
        elif kind == 'adjudication':
            self.adjudication = data
        elif kind == 'comments':
            self.comments = list(data)
        elif kind == 'historical_comments':
            self.historical_comments = list(data)
        else:
            print(f"Warning: ignoring unknown payload type {kind!r}")
            return False

        self.initialized[kind] = True
        print(f"Received data for: {kind}")

        if self.ready:
            if self.on_ready is not None:
                self.on_ready(self)
        else:
            print("Waiting for required data files...")
        return True

    def _band_rows(self, competitions: list) -> list[dict]:
        """Flatten competitions into one caption row per focus-band entry."""
        rows = []
        for comp in competitions:
            for school_row in comp.get('rows', []):
                school = school_row.get('school', '').split('   ')[0].strip()
                if school.lower() not in self.band_names:
                    continue

                cells = school_row.get('cells')
                if not cells or len(cells) != ROW_CELL_COUNT:
                    got = len(cells) if cells is not None else 'none'
                    print(f"Warning: skipping row for {school} on {comp.get('dateStr')}: "
                          f"expected {ROW_CELL_COUNT} cells, got {got}")
                    continue

                row = {
                    'CompetitionDate': comp.get('dateStr', ''),
                    'CompetitionName': comp.get('compName', ''),
                    'BandName': self.band_label,
                }
                for caption, index in CAPTION_CELLS.items():
                    row[caption] = cells[index]
                rows.append(row)
        return rows
