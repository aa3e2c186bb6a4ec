"""
Caregiver API Router
Endpoints for caregiver status and manual notifications
"""

from fastapi import APIRouter, Depends

from actions.reminder_engine import ReminderScheduler
from api.deps import get_tracker, get_scheduler
from api.schemas.profile import CaregiverStatusResponse, CaregiverNotifyResponse
from services.tracker_service import TrackerService


router = APIRouter(prefix="/caregiver", tags=["caregiver"])


@router.get("/status", response_model=CaregiverStatusResponse)
async def get_caregiver_status(tracker: TrackerService = Depends(get_tracker)):
    """Today's missed doses and adherence over the last week"""
    return CaregiverStatusResponse(**tracker.caregiver_status())


@router.post("/notify", response_model=CaregiverNotifyResponse)
async def notify_caregiver(scheduler: ReminderScheduler = Depends(get_scheduler)):
    """Send the caregiver an update with the current profile contacts"""
    event = await scheduler.notify_caregiver()
    return CaregiverNotifyResponse(sent=True, recipient=event.recipient, title=event.title)
