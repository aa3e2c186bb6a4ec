"""
Reports API Router
Endpoints for exporting the intake history
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from api.deps import get_tracker, services
from services.report_service import ExportFormat
from services.tracker_service import TrackerService


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/export")
async def export_report(
    export_format: ExportFormat = Query(ExportFormat.CSV, alias="format"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    limit: Optional[int] = Query(None, ge=0, description="Most recent N records"),
    tracker: TrackerService = Depends(get_tracker)
):
    """
    Download the intake history

    - **format**: csv or json (pdf is not supported)
    - **start** / **end**: Date window
    - **limit**: Keep only the most recent N records
    """
    report_service = services.get_report_service()
    snapshot = tracker.snapshot()

    result = report_service.export(
        intakes=snapshot.intakes,
        medicines=snapshot.medicines,
        export_format=export_format,
        start=start,
        end=end,
        limit=limit
    )
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Record-Count": str(result.record_count),
        }
    )
