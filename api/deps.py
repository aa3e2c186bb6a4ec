"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from typing import Optional
from fastapi import HTTPException, Request, status

from actions.reminder_engine import ReminderScheduler
from services.tracker_service import TrackerService


def get_tracker() -> TrackerService:
    """
    Tracker dependency
    Returns the process-wide tracker singleton
    """
    from services.tracker_service import tracker_service
    return tracker_service


def get_optional_scheduler(request: Request) -> Optional[ReminderScheduler]:
    """Reminder scheduler attached at startup, if any"""
    return getattr(request.app.state, "reminder_scheduler", None)


def get_scheduler(request: Request) -> ReminderScheduler:
    """
    Reminder scheduler dependency
    Raises HTTPException when the app was started without one
    """
    scheduler = get_optional_scheduler(request)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reminder scheduler is not running",
        )
    return scheduler


class ServiceDependency:
    """
    Dependency injection for stateless services
    """

    @staticmethod
    def get_report_service():
        from services.report_service import report_service
        return report_service


# Service dependency instances
services = ServiceDependency()
