"""
Facet Routes

GET /facets - Distinct filter values and numeric ranges for the whole dataset
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from tus_guide.core.config import get_settings
from tus_guide.db.database import get_db
from tus_guide.schemas.schemas import ErrorResponse, FacetSet
from tus_guide.services.facet_service import compute_facets

router = APIRouter(prefix="/facets", tags=["Facets"])


@router.get(
    "",
    response_model=FacetSet,
    responses={500: {"model": ErrorResponse}},
)
def get_facets(response: Response, db: Session = Depends(get_db)):
    """Facets only change on re-import, so clients may cache them for an hour."""
    facets = compute_facets(db)
    max_age = get_settings().facets_cache_seconds
    response.headers["Cache-Control"] = f"public, max-age={max_age}, s-maxage={max_age}"
    return facets
