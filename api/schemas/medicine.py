"""
Medicine Schemas
Pydantic models for medicine API requests and responses
"""

from typing import Optional, List
from datetime import date
from pydantic import BaseModel, Field, ConfigDict


# ==================== REQUEST SCHEMAS ====================

class MedicineCreate(BaseModel):
    """Schema for adding a medicine"""
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(default="daily", max_length=100)
    times: List[str] = Field(..., min_length=1, description="Daily HH:MM slots")
    instructions: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MedicineUpdate(BaseModel):
    """Partial update; omitted fields keep their current value"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[str] = Field(None, max_length=100)
    times: Optional[List[str]] = None
    instructions: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


# ==================== RESPONSE SCHEMAS ====================

class MedicineResponse(BaseModel):
    """Schema for medicine response"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    dosage: str
    frequency: str
    times: List[str]
    instructions: str
    start_date: date
    end_date: Optional[date] = None


class MedicineList(BaseModel):
    """Schema for list of medicines"""
    medicines: List[MedicineResponse]
    total: int


class MedicineDeleted(BaseModel):
    id: str
    intakes_removed: int
