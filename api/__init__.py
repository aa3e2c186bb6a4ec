"""
API Module
FastAPI routers for the MedCare application
"""

from api.medicines import router as medicines_router
from api.tracker import router as tracker_router
from api.adherence import router as adherence_router
from api.reports import router as reports_router
from api.profile import router as profile_router
from api.caregiver import router as caregiver_router

from api.deps import (
    get_tracker,
    get_scheduler,
    get_optional_scheduler,
    services,
)
from config import settings


__all__ = [
    # Routers
    "medicines_router",
    "tracker_router",
    "adherence_router",
    "reports_router",
    "profile_router",
    "caregiver_router",
    # Dependencies
    "get_tracker",
    "get_scheduler",
    "get_optional_scheduler",
    "services",
]


def include_routers(app):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(medicines_router, prefix=settings.API_PREFIX)
    app.include_router(tracker_router, prefix=settings.API_PREFIX)
    app.include_router(adherence_router, prefix=settings.API_PREFIX)
    app.include_router(reports_router, prefix=settings.API_PREFIX)
    app.include_router(profile_router, prefix=settings.API_PREFIX)
    app.include_router(caregiver_router, prefix=settings.API_PREFIX)
