"""
Tracker Schemas
Pydantic models for the daily schedule, dashboard and intake endpoints
"""

import datetime as dt
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from api.schemas.adherence import AdherenceStatsResponse
from models import AdherenceStatus


# ==================== REQUEST SCHEMAS ====================

class IntakeStatusUpdate(BaseModel):
    """Record taken / skipped / missed for one scheduled slot"""
    medicine_id: str
    date: dt.date
    time: str
    status: AdherenceStatus


# ==================== RESPONSE SCHEMAS ====================

class IntakeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    medicine_id: str
    date: dt.date
    time: str
    status: AdherenceStatus
    timestamp: dt.datetime


class IntakeList(BaseModel):
    intakes: List[IntakeResponse]
    total: int


class ScheduleEntry(BaseModel):
    """One resolved obligation as shown in the daily schedule"""
    medicine_id: str
    medicine_name: str
    dosage: str
    instructions: str
    date: dt.date
    time: str
    status: AdherenceStatus
    intake_id: Optional[str] = None
    can_modify: bool


class DailySchedule(BaseModel):
    date: dt.date
    entries: List[ScheduleEntry]


class DashboardResponse(BaseModel):
    """Today's overview"""
    date: dt.date
    active_medicines: int
    stats: AdherenceStatsResponse
    level: str
    upcoming: List[ScheduleEntry]
    missed_today: List[ScheduleEntry]
