"""
Models
Domain records and the SQLAlchemy document table for MedCare
"""

import re
import uuid
import datetime as dt
from enum import Enum as PyEnum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator, model_validator
from sqlalchemy import Column, String, DateTime, JSON, PrimaryKeyConstraint

from database import Base


TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def normalize_time(value: str) -> str:
    """Normalize a wall-clock time to zero-padded HH:MM.

    Raises ValueError for anything that is not a valid time of day.
    """
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return f"{hour:02d}:{minute:02d}"


def new_id() -> str:
    return uuid.uuid4().hex


# ==================== ENUMS ====================

class AdherenceStatus(str, PyEnum):
    """Status of a scheduled dose"""
    TAKEN = "taken"
    SKIPPED = "skipped"
    MISSED = "missed"
    PENDING = "pending"


# Statuses that may be stored on an Intake; pending is always derived
RECORDABLE_STATUSES = (AdherenceStatus.TAKEN, AdherenceStatus.SKIPPED, AdherenceStatus.MISSED)


# ==================== DOMAIN RECORDS ====================

class Medicine(BaseModel):
    """A prescribed medicine with its fixed daily time slots"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    dosage: str
    frequency: str = "daily"  # descriptive only, never used for scheduling
    times: Tuple[str, ...]
    instructions: str = ""
    start_date: dt.date = Field(default_factory=dt.date.today)
    end_date: Optional[dt.date] = None

    @field_validator("name", "dosage")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("times", mode="before")
    @classmethod
    def _clean_times(cls, value):
        if isinstance(value, str):
            value = [value]
        cleaned = []
        for raw in value or []:
            if raw is None or not str(raw).strip():
                continue
            slot = normalize_time(str(raw))
            if slot not in cleaned:
                cleaned.append(slot)
        if not cleaned:
            raise ValueError("at least one valid time is required")
        return tuple(cleaned)

    @field_validator("end_date", mode="before")
    @classmethod
    def _blank_end_date(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_window(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def is_active_on(self, on_date: dt.date) -> bool:
        """True when on_date falls inside the start/end validity window"""
        if self.start_date > on_date:
            return False
        return self.end_date is None or self.end_date >= on_date


class Intake(BaseModel):
    """A recorded dose status for one (medicine, date, time) slot"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    medicine_id: str
    date: dt.date
    time: str
    status: AdherenceStatus
    timestamp: dt.datetime

    @field_validator("time")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        return normalize_time(value)

    @field_validator("status")
    @classmethod
    def _recordable(cls, value: AdherenceStatus) -> AdherenceStatus:
        if value not in RECORDABLE_STATUSES:
            raise ValueError(f"status '{value.value}' cannot be recorded")
        return value

    @property
    def slot_key(self) -> Tuple[str, dt.date, str]:
        return (self.medicine_id, self.date, self.time)


class Profile(BaseModel):
    """Patient profile singleton"""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    age: int = Field(default=0, ge=0, le=150)
    health_condition: str = ""
    emergency_contact: str = ""
    caregiver_email: Optional[EmailStr] = None
    doctor_name: str = ""
    doctor_phone: str = ""

    @field_validator("caregiver_email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def has_caregiver(self) -> bool:
        return bool(self.caregiver_email)


# ==================== ORM ====================

class Document(Base):
    """JSON document keyed by (collection, document_id)"""
    __tablename__ = "documents"

    collection = Column(String(50), nullable=False)
    document_id = Column(String(100), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=dt.datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    __table_args__ = (
        PrimaryKeyConstraint("collection", "document_id"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.collection}/{self.document_id}>"
