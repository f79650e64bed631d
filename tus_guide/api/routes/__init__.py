"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from tus_guide.api.routes.facet_routes import router as facet_router
from tus_guide.api.routes.search_routes import router as search_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(facet_router)
api_router.include_router(search_router)
