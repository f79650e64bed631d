"""
CSV export of one page of multi-period results.
"""

import csv
import io
from typing import List

from tus_guide.schemas.schemas import MultiPeriodSearchResponse

BASE_HEADERS = ["Institution", "City", "Ownership Type", "Institution Kind", "Branch", "Level"]
PERIOD_HEADERS = ["Quota", "Filled", "Min Score", "Rank"]


def _cell(value) -> str:
    return "" if value is None else str(value)


def csv_headers(periods: List[str]) -> List[str]:
    headers = list(BASE_HEADERS)
    for period in periods:
        headers.extend(f"{period} {label}" for label in PERIOD_HEADERS)
    return headers


def render_csv(result: MultiPeriodSearchResponse) -> str:
    """Render rows with one column block per period; nulls become empty cells."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(csv_headers(result.periods))

    for row in result.rows:
        line = [row.name, row.city, row.ownership_type, row.institution_kind, row.branch, row.level]
        for period in result.periods:
            data = row.periods[period]
            line.extend([
                _cell(data.quota),
                _cell(data.filled),
                _cell(data.min_score),
                _cell(data.min_score_rank),
            ])
        writer.writerow(line)

    return buffer.getvalue()


def export_filename(page: int) -> str:
    return f"tus-guide-multi-period-page-{page}.csv"
