"""
TUS Guide - Main Application

FastAPI backend for comparing medical residency (TUS) placement results:
- Facets for the filter panel
- Multi-period search, paginated by program
- CSV export of a result page

Run: uvicorn tus_guide.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tus_guide import __version__
from tus_guide.api.routes import api_router
from tus_guide.core.config import get_settings
from tus_guide.core.errors import DataAccessError, QueryValidationError
from tus_guide.core.logging_config import configure_logging
from tus_guide.core.rate_limit import SlidingWindowRateLimiter
from tus_guide.db.database import check_db_connection, engine
from tus_guide.db.schema import init_schema
from tus_guide.schemas.schemas import HealthResponse

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="TUS Guide",
    description="""
    Faceted search over medical residency placement statistics.

    ## Endpoints
    - **Facets**: distinct cities, ownership types, institution kinds, branches, periods and score/quota ranges
    - **Search**: programs (institution x branch x level) compared across the latest four periods
    - **Export**: the same result page as CSV
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)

if settings.rate_limit_enabled:
    app.state.rate_limiter = SlidingWindowRateLimiter(
        settings.rate_limit_requests,
        settings.rate_limit_window_seconds,
    )
else:
    app.state.rate_limiter = None
app.state.trust_forwarded_for = settings.trust_forwarded_for

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(QueryValidationError)
async def query_validation_error_handler(request: Request, exc: QueryValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "field": exc.field},
    )


@app.exception_handler(DataAccessError)
async def data_access_error_handler(request: Request, exc: DataAccessError):
    # Already logged with the query context where it was raised
    return JSONResponse(status_code=500, content={"detail": exc.public_message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create tables on first run."""
    init_schema(engine)
    logger.info("Database schema ready")


@app.get("/", tags=["Health"])
async def root():
    """Service info."""
    return {
        "service": "TUS Guide",
        "version": __version__,
        "endpoints": {
            "facets": "/api/facets",
            "search": "/api/search",
            "export": "/api/search/export",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check():
    """Database connectivity check."""
    connected = check_db_connection()
    return HealthResponse(
        status="healthy" if connected else "degraded",
        database="connected" if connected else "disconnected",
    )
