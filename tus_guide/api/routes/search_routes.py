"""
Search Routes

GET /search        - Multi-period comparison, paginated by program
GET /search/export - Same page as CSV

Query parameters (repeat list filters: ?city=Ankara&city=İzmir):
    q, city, ownershipType, institutionKind, branch,
    minScoreFloor, minScoreCeiling, quotaFloor, quotaCeiling,
    page, pageSize, sortBy, sortOrder
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from tus_guide.core.config import get_settings
from tus_guide.core.rate_limit import enforce_rate_limit
from tus_guide.db.database import get_db
from tus_guide.schemas.query_params import SEARCH_QUERY_PARAMETERS, parse_search_params
from tus_guide.schemas.schemas import ErrorResponse, MultiPeriodSearchResponse
from tus_guide.services.export_service import export_filename, render_csv
from tus_guide.services.search_service import search_multi_period

router = APIRouter(
    prefix="/search",
    tags=["Search"],
    dependencies=[Depends(enforce_rate_limit)],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get(
    "",
    response_model=MultiPeriodSearchResponse,
    responses=ERROR_RESPONSES,
    openapi_extra={"parameters": SEARCH_QUERY_PARAMETERS},
)
def search(request: Request, response: Response, db: Session = Depends(get_db)):
    """Search programs and compare them across the latest periods."""
    # Validation happens before the session is touched
    params = parse_search_params(request.query_params.multi_items())
    result = search_multi_period(db, params)

    max_age = get_settings().search_cache_seconds
    response.headers["Cache-Control"] = f"public, max-age={max_age}, s-maxage={max_age}"
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/export",
    responses=ERROR_RESPONSES,
    openapi_extra={"parameters": SEARCH_QUERY_PARAMETERS},
)
def export_search(request: Request, db: Session = Depends(get_db)):
    """Download the requested page of results as CSV."""
    params = parse_search_params(request.query_params.multi_items())
    result = search_multi_period(db, params)

    return Response(
        content=render_csv(result),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(params.page)}"',
            "X-Total-Count": str(result.total),
        },
    )
