"""
API package initialization.

Contains the FastAPI router modules for Referral Compass:
- offices: office scoring, tier summary, health scores and CSV import preview
"""

from fastapi import APIRouter

from referral_compass.api.offices import router as offices_router

# Create main API router
api_router = APIRouter()

# offices router carries its own /offices prefix
api_router.include_router(offices_router, tags=["offices"])

__all__ = [
    "api_router",
    "offices_router",
]
