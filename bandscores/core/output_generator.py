"""Output generator for consolidated competition tables.

Generates two output types from a list of CompetitionRecords:
  - Season report (markdown): one section per season, one table per competition
  - Scores CSV: one line per band per competition with all 24 cells
"""

import csv

from .models import ROW_CELL_COUNT
from .table_extractor import is_summary_row


def format_cell(value) -> str:
    """Whole numbers print bare, everything else with three decimals."""
    if float(value).is_integer():
        return str(int(value))
    return f'{value:.3f}'


def table_rows(competition) -> list:
    """Rows to show for a competition, without rank/summary lines."""
    return [row for row in competition.rows if not is_summary_row(row.school)]


def group_by_season(competitions: list) -> dict:
    """Group competitions by year, seasons in order of first appearance."""
    seasons = {}
    for comp in competitions:
        seasons.setdefault(comp.year, []).append(comp)
    return seasons


def render_season_report(competitions: list) -> list[str]:
    lines = []
    for year, comps in group_by_season(competitions).items():
        lines.append(f'# Season {year}\n')

        for comp in comps:
            lines.append(f'## {comp.comp_name} - {comp.date_str}\n')
            header = ['School'] + [str(i + 1) for i in range(ROW_CELL_COUNT)]
            lines.append('| ' + ' | '.join(header) + ' |')
            lines.append('|' + '---|' * len(header))
            for row in table_rows(comp):
                cells = [row.school] + [format_cell(c) for c in row.cells]
                lines.append('| ' + ' | '.join(cells) + ' |')
            lines.append('')

    return lines


def generate_season_report(competitions: list, output_path: str):
    """Write the season-grouped competition tables as markdown."""
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(render_season_report(competitions)))


def generate_scores_csv(competitions: list, output_path: str):
    """Write one CSV line per displayed band row."""
    fieldnames = ['date', 'competition', 'school'] + [f'cell_{i + 1}' for i in range(ROW_CELL_COUNT)]

    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(fieldnames)
        for comp in competitions:
            for row in table_rows(comp):
                writer.writerow([comp.date_str, comp.comp_name, row.school]
                                + [format_cell(c) for c in row.cells])
