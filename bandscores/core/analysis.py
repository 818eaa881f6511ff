"""Aggregations behind the dashboard summary: trends, captions, comments."""

import math
import re
from collections import Counter, defaultdict


META_COLUMNS = {'CompetitionDate', 'CompetitionName', 'BandName', 'Overall'}

STRENGTH_KEYWORDS = ['great', 'excellent', 'clean', 'strong', 'effective', 'good', 'solid', 'well']
WEAKNESS_KEYWORDS = ['work on', 'needs', 'issues', 'intonation', 'phasing', 'spacing',
                     'dirty', 'late', 'behind', 'out of tune']
STOP_WORDS = {'a', 'an', 'and', 'the', 'is', 'it', 'to', 'in', 'of', 'for', 'on', 'with', 'was', 'are'}


def to_number(value):
    """Return value as a float, or None if it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    try:
        num = float(str(value).strip())
    except ValueError:
        return None
    return None if math.isnan(num) or math.isinf(num) else num


def compute_trend(rows: list[dict], column: str = 'Overall') -> tuple[list, list]:
    """Average a column per competition date, dates ascending."""
    by_date = defaultdict(list)
    for row in rows:
        date_str = row.get('CompetitionDate')
        value = to_number(row.get(column))
        if not date_str or value is None:
            continue
        by_date[date_str].append(value)

    labels = sorted(by_date)
    return labels, [sum(by_date[d]) / len(by_date[d]) for d in labels]


def compute_weaknesses(rows: list[dict], n: int = 4) -> list[tuple[str, float]]:
    """The n captions with the lowest average score, weakest first."""
    sums = defaultdict(float)
    counts = defaultdict(int)
    for row in rows:
        for column, value in row.items():
            if column in META_COLUMNS:
                continue
            num = to_number(value)
            if num is None:
                continue
            sums[column] += num
            counts[column] += 1

    averages = [(column, sums[column] / counts[column]) for column in sums]
    averages.sort(key=lambda item: item[1])
    return averages[:n]


def compute_extremes(rows: list[dict]):
    """Return (highest, lowest) rows by Overall score; None when absent."""
    scored = [row for row in rows if to_number(row.get('Overall')) is not None]
    if not scored:
        return None, None
    highest = max(scored, key=lambda row: to_number(row['Overall']))
    lowest = min(scored, key=lambda row: to_number(row['Overall']))
    return highest, lowest


def generate_insights(rows: list[dict], weaknesses: list) -> list[str]:
    if len(rows) < 2:
        return ['Not enough data for trend analysis.']

    insights = []
    scores = [s for s in (to_number(row.get('Overall')) for row in rows) if s is not None]
    if len(scores) > 1:
        first = scores[:len(scores) // 2]
        second = scores[math.ceil(len(scores) / 2):]
        first_avg = sum(first) / len(first)
        second_avg = sum(second) / len(second)
        if second_avg > first_avg:
            insights.append('Overall scores show a positive trend.')
        elif second_avg < first_avg:
            insights.append('Overall scores show a slight downward trend.')
        else:
            insights.append('Overall scores have remained relatively stable.')

    if weaknesses:
        insights.append(f'Strongest caption appears to be {weaknesses[-1][0]}.')

    if len(scores) > 1:
        mean = sum(scores) / len(scores)
        std_dev = math.sqrt(sum((s - mean) ** 2 for s in scores) / len(scores))
        insights.append(f'Score standard deviation is {std_dev:.2f}.')

    return insights


def analyze_comments(comments: list[dict], top: int = 15) -> dict:
    """Sort judge comments into strengths and weaknesses and count keywords.

    Returns:
        Dict with strengths and weaknesses (de-duplicated, first-seen order)
        and keywords as (word, count) pairs, most frequent first.
    """
    strengths, weaknesses = [], []
    word_counts = Counter()

    for c in comments:
        original = c.get('comment') or ''
        text = original.lower()
        quoted = f'"{original}" (Judge: {c.get("judge")}, Caption: {c.get("caption")})'
        strengths.extend(quoted for k in STRENGTH_KEYWORDS if k in text)
        weaknesses.extend(quoted for k in WEAKNESS_KEYWORDS if k in text)

        for word in text.split():
            word = re.sub(r'[.,!?:"]', '', word)
            if word and word not in STOP_WORDS and to_number(word) is None:
                word_counts[word] += 1

    return {
        'strengths': list(dict.fromkeys(strengths)),
        'weaknesses': list(dict.fromkeys(weaknesses)),
        'keywords': word_counts.most_common(top),
    }


def summarize(store) -> list[str]:
    """Plain-text dashboard summary for a ready ClientDataStore."""
    rows = store.score_rows
    lines = [f'{len(rows)} score rows from {len(store.competitions)} competitions']

    labels, data = compute_trend(rows)
    for label, value in zip(labels, data):
        lines.append(f'  {label}: {value:.3f}')

    highest, lowest = compute_extremes(rows)
    if highest:
        lines.append(f"High: {to_number(highest['Overall']):.3f} on "
                     f"{highest['CompetitionDate']} ({highest['CompetitionName']})")
        lines.append(f"Low: {to_number(lowest['Overall']):.3f} on "
                     f"{lowest['CompetitionDate']} ({lowest['CompetitionName']})")

    weaknesses = compute_weaknesses(rows)
    lines.extend(generate_insights(rows, weaknesses))

    if store.comments:
        analysis = analyze_comments(store.comments)
        lines.append(f"Comments: {len(analysis['strengths'])} strengths, "
                     f"{len(analysis['weaknesses'])} areas to work on")
        if analysis['keywords']:
            lines.append('Keywords: ' + ', '.join(f'{w} ({n})' for w, n in analysis['keywords']))

    return lines
