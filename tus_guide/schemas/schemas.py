"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Wire names are camelCase (pageSize, minScoreRank, ...); Python code uses
snake_case attribute names.
"""

import re
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# SORTING
# ============================================================

class SortField(str, Enum):
    name = "name"
    city = "city"
    ownership_type = "ownershipType"
    institution_kind = "institutionKind"
    branch = "branch"
    level = "level"


class PeriodMetric(str, Enum):
    quota = "quota"
    filled = "filled"
    min_score = "minScore"
    min_score_rank = "minScoreRank"


PERIOD_SORT_PATTERN = re.compile(
    r"^(?P<metric>quota|filled|minScore|minScoreRank)-(?P<period>\d{4}/\d)$"
)


# ============================================================
# SEARCH REQUEST
# ============================================================

class SearchParams(CamelModel):
    """Validated filter specification for the multi-period search."""

    text: Optional[str] = Field(None, max_length=200)
    city: List[str] = []
    ownership_type: List[str] = []
    institution_kind: List[str] = []
    branch: List[str] = []
    min_score_floor: Optional[float] = Field(None, ge=0, le=100, allow_inf_nan=False)
    min_score_ceiling: Optional[float] = Field(None, ge=0, le=100, allow_inf_nan=False)
    quota_floor: Optional[int] = Field(None, ge=0)
    quota_ceiling: Optional[int] = Field(None, ge=0)
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    sort_by: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "asc"

    @field_validator("text")
    @classmethod
    def blank_text_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("sort_by")
    @classmethod
    def check_sort_by(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if v in {f.value for f in SortField} or PERIOD_SORT_PATTERN.match(v):
            return v
        raise ValueError(
            "must be one of name, city, ownershipType, institutionKind, branch, level "
            "or a period column like 'minScore-2025/1'"
        )

    @model_validator(mode="after")
    def check_bounds(self):
        if (self.min_score_floor is not None and self.min_score_ceiling is not None
                and self.min_score_floor > self.min_score_ceiling):
            raise ValueError("minScoreFloor must not be greater than minScoreCeiling")
        if (self.quota_floor is not None and self.quota_ceiling is not None
                and self.quota_floor > self.quota_ceiling):
            raise ValueError("quotaFloor must not be greater than quotaCeiling")
        return self

    @property
    def has_numeric_bounds(self) -> bool:
        """Any numeric bound pins matching to the latest period."""
        return any(
            bound is not None
            for bound in (self.min_score_floor, self.min_score_ceiling,
                          self.quota_floor, self.quota_ceiling)
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ============================================================
# SEARCH RESPONSE
# ============================================================

class PeriodData(CamelModel):
    quota: Optional[int] = None
    filled: Optional[int] = None
    min_score: Optional[float] = None
    min_score_rank: Optional[int] = None


class MultiPeriodRow(CamelModel):
    id: str
    institution_code: int
    name: str
    city: str
    ownership_type: str
    institution_kind: str
    branch: str
    level: str
    level_short_name: Optional[str] = None
    periods: Dict[str, PeriodData]


class MultiPeriodSearchResponse(CamelModel):
    rows: List[MultiPeriodRow]
    periods: List[str]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================
# FACETS
# ============================================================

class NumericRange(BaseModel):
    min: Union[int, float]
    max: Union[int, float]


class FacetRanges(CamelModel):
    min_score: NumericRange
    quota: NumericRange


class FacetSet(CamelModel):
    city: List[str]
    ownership_type: List[str]
    institution_kind: List[str]
    branch: List[str]
    period: List[str]
    ranges: FacetRanges


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class HealthResponse(BaseModel):
    status: str
    database: str


class ErrorResponse(BaseModel):
    detail: str
    field: Optional[str] = None
