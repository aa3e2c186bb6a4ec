"""
Tracker API Router
Endpoints for the daily schedule, dashboard and intake recording
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, status, Query

from api.deps import get_tracker
from api.schemas.tracker import (
    IntakeStatusUpdate,
    IntakeResponse,
    IntakeList,
    ScheduleEntry,
    DailySchedule,
    DashboardResponse,
)
from services.tracker_service import TrackerService


router = APIRouter(prefix="/tracker", tags=["tracker"])


@router.get("/schedule", response_model=DailySchedule)
async def get_daily_schedule(
    on_date: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    tracker: TrackerService = Depends(get_tracker)
):
    """Every dose of the day with its resolved status, ordered by time"""
    now = tracker.clock()
    on_date = on_date or now.date()
    entries = tracker.daily_schedule(on_date, now)
    return DailySchedule(date=on_date, entries=[ScheduleEntry(**e) for e in entries])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(tracker: TrackerService = Depends(get_tracker)):
    """Today's counts, next upcoming doses and today's misses"""
    return DashboardResponse(**tracker.dashboard())


@router.post("/intakes", response_model=IntakeResponse, status_code=status.HTTP_200_OK)
async def update_intake_status(
    intake_data: IntakeStatusUpdate,
    tracker: TrackerService = Depends(get_tracker)
):
    """
    Record a dose status

    - **medicine_id**: Medicine the dose belongs to
    - **date**: Calendar date of the slot
    - **time**: One of the medicine's HH:MM times
    - **status**: taken, skipped or missed
    """
    intake = await tracker.update_intake_status(
        medicine_id=intake_data.medicine_id,
        on_date=intake_data.date,
        time=intake_data.time,
        status=intake_data.status
    )
    return IntakeResponse.model_validate(intake)


@router.get("/intakes", response_model=IntakeList)
async def list_intakes(
    since: Optional[date] = Query(None, description="Only intakes on or after this date"),
    tracker: TrackerService = Depends(get_tracker)
):
    intakes = tracker.list_intakes(since)
    return IntakeList(
        intakes=[IntakeResponse.model_validate(i) for i in intakes],
        total=len(intakes)
    )
