"""
Adherence API Router
Endpoints for adherence statistics
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query

from api.deps import get_tracker
from api.schemas.adherence import AdherenceReportResponse
from services.adherence_service import GroupBy
from services.tracker_service import TrackerService


router = APIRouter(prefix="/adherence", tags=["adherence"])


@router.get("/report", response_model=AdherenceReportResponse)
async def get_adherence_report(
    period: Optional[str] = Query(None, description="week, month or quarter"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    medicine_id: Optional[str] = Query(None),
    group_by: GroupBy = Query(GroupBy.DAY),
    tracker: TrackerService = Depends(get_tracker)
):
    """
    Adherence over a period

    - **period**: Named history window ending today (default week)
    - **start** / **end**: Explicit range, takes precedence over period
    - **medicine_id**: Restrict to one medicine
    - **group_by**: none, day or medicine
    """
    report = tracker.adherence_report(
        period=period,
        start=start,
        end=end,
        medicine_id=medicine_id,
        group_by=group_by
    )
    return AdherenceReportResponse(**report)
