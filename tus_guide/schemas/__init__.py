"""
Schemas module - Request/Response schemas for API endpoints.
"""
from tus_guide.schemas.query_params import parse_search_params
from tus_guide.schemas.schemas import (
    FacetSet, MultiPeriodRow, MultiPeriodSearchResponse, PeriodData, SearchParams
)

__all__ = [
    "parse_search_params",
    "FacetSet",
    "MultiPeriodRow",
    "MultiPeriodSearchResponse",
    "PeriodData",
    "SearchParams",
]
