"""
API v1 router.

Aggregates the search, review and location endpoints.
"""

from fastapi import APIRouter

from rentals.api.v1 import locations, reviews, search

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        503: {"description": "Service Unavailable"},
    }
)

router.include_router(search.router, tags=["Search"])
router.include_router(reviews.router, tags=["Reviews"])
router.include_router(locations.router, tags=["Locations"])
