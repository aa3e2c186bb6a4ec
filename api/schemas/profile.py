"""
Profile Schemas
Pydantic models for the patient profile and caregiver endpoints
"""

from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from api.schemas.tracker import ScheduleEntry


class ProfileUpdate(BaseModel):
    """Full profile replacement"""
    name: str = Field(default="", max_length=255)
    age: int = Field(default=0, ge=0, le=150)
    health_condition: str = ""
    emergency_contact: str = ""
    caregiver_email: Optional[str] = None
    doctor_name: str = ""
    doctor_phone: str = ""


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    age: int
    health_condition: str
    emergency_contact: str
    caregiver_email: Optional[str] = None
    doctor_name: str
    doctor_phone: str


class CaregiverStatusResponse(BaseModel):
    """Caregiver view: today's misses and weekly adherence"""
    caregiver_email: Optional[str] = None
    patient_name: str
    alerts_active: bool
    missed_today: List[ScheduleEntry]
    weekly_adherence: int
    weekly_level: str
    weekly_records: int


class CaregiverNotifyResponse(BaseModel):
    sent: bool
    recipient: str
    title: str
