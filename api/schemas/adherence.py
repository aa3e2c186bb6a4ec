"""
Adherence Schemas
Pydantic models for adherence report responses
"""

import datetime as dt
from typing import Optional, List
from pydantic import BaseModel


class AdherenceStatsResponse(BaseModel):
    """Overall counts and rate"""
    total: int
    taken_count: int
    skipped_count: int
    missed_count: int
    pending_count: int
    adherence_rate: int


class DailyAdherenceResponse(BaseModel):
    date: dt.date
    taken: int
    total: int
    adherence_rate: int


class MedicineAdherenceResponse(BaseModel):
    medicine_id: str
    name: str
    taken: int
    total: int
    adherence_rate: int


class AdherenceReportResponse(BaseModel):
    """Adherence over a period with the requested breakdown"""
    period: str
    start: dt.date
    end: dt.date
    medicine_id: Optional[str] = None
    level: str
    overall: AdherenceStatsResponse
    daily: List[DailyAdherenceResponse] = []
    by_medicine: List[MedicineAdherenceResponse] = []
