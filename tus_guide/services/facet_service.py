"""
Facet Service

Whole-dataset summary used to draw the filter panel:
- distinct values of every categorical dimension
- min/max of every numeric dimension (nulls ignored)

The data only changes on re-import, so the HTTP layer marks the response
cacheable for an hour.
"""

import logging
from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tus_guide.core.errors import FacetsUnavailableError
from tus_guide.db.database import fetch_all
from tus_guide.schemas.schemas import FacetRanges, FacetSet, NumericRange
from tus_guide.services.periods import sort_periods

logger = logging.getLogger(__name__)

# Used when a column has no non-null values at all
MIN_SCORE_FALLBACK = (0, 100)
QUOTA_FALLBACK = (0, 1000)

# (table, column) per categorical facet; names are fixed, never user input
CATEGORICAL_FACETS = {
    "city": ("hastaneler", "sehir"),
    "ownership_type": ("hastaneler", "tip"),
    "institution_kind": ("hastaneler", "kurum_tipi"),
    "branch": ("tus_puanlar", "brans"),
    "period": ("tus_puanlar", "donem"),
}


def _distinct_values(db: Session, table: str, column: str) -> List[str]:
    rows = fetch_all(db, f"""
        SELECT DISTINCT {column} AS value FROM {table}
        WHERE {column} IS NOT NULL AND {column} <> ''
        ORDER BY value
    """)
    return [r["value"] for r in rows]


def _numeric_range(db: Session, column: str, fallback: Tuple[int, int]) -> NumericRange:
    rows = fetch_all(db, f"""
        SELECT MIN({column}) AS min_value, MAX({column}) AS max_value
        FROM tus_puanlar
        WHERE {column} IS NOT NULL
    """)
    row = rows[0] if rows else {}
    low, high = row.get("min_value"), row.get("max_value")
    if low is None or high is None:
        return NumericRange(min=fallback[0], max=fallback[1])
    return NumericRange(min=low, max=high)


def compute_facets(db: Session) -> FacetSet:
    """
    Compute every facet in one pass over the dataset.

    Raises FacetsUnavailableError if any lookup fails; a partial facet set
    is never returned.
    """
    try:
        values = {
            name: _distinct_values(db, table, column)
            for name, (table, column) in CATEGORICAL_FACETS.items()
        }
        ranges = FacetRanges(
            min_score=_numeric_range(db, "taban_puan", MIN_SCORE_FALLBACK),
            quota=_numeric_range(db, "kontenjan", QUOTA_FALLBACK),
        )
    except SQLAlchemyError as exc:
        logger.exception("Facet lookup failed")
        raise FacetsUnavailableError("facets unavailable") from exc

    values["period"] = sort_periods(values["period"])

    logger.info(
        "Facets computed: %d cities, %d branches, %d periods",
        len(values["city"]), len(values["branch"]), len(values["period"]),
    )
    return FacetSet(ranges=ranges, **values)
