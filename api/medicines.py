"""
Medicines API Router
Endpoints for medicine management
"""

from typing import Optional
from fastapi import APIRouter, Depends, status

from actions.reminder_engine import ReminderScheduler
from api.deps import get_tracker, get_optional_scheduler
from api.schemas.medicine import (
    MedicineCreate,
    MedicineUpdate,
    MedicineResponse,
    MedicineList,
    MedicineDeleted,
)
from services.tracker_service import TrackerService


router = APIRouter(prefix="/medicines", tags=["medicines"])


@router.post("/", response_model=MedicineResponse, status_code=status.HTTP_201_CREATED)
async def create_medicine(
    medicine_data: MedicineCreate,
    tracker: TrackerService = Depends(get_tracker)
):
    """
    Add a new medicine

    - **name**: Medicine name
    - **dosage**: Dosage (e.g., "500mg")
    - **times**: Daily HH:MM slots
    - **start_date** / **end_date**: Validity window (start defaults to today)
    """
    medicine = await tracker.add_medicine(medicine_data.model_dump(exclude_none=True))
    return MedicineResponse.model_validate(medicine)


@router.get("/", response_model=MedicineList)
async def list_medicines(tracker: TrackerService = Depends(get_tracker)):
    """List all medicines in insertion order"""
    medicines = tracker.list_medicines()
    return MedicineList(
        medicines=[MedicineResponse.model_validate(m) for m in medicines],
        total=len(medicines)
    )


@router.get("/{medicine_id}", response_model=MedicineResponse)
async def get_medicine(medicine_id: str, tracker: TrackerService = Depends(get_tracker)):
    return MedicineResponse.model_validate(tracker.get_medicine(medicine_id))


@router.patch("/{medicine_id}", response_model=MedicineResponse)
async def update_medicine(
    medicine_id: str,
    update_data: MedicineUpdate,
    tracker: TrackerService = Depends(get_tracker)
):
    """Update only the fields present in the request body"""
    medicine = await tracker.update_medicine(medicine_id, update_data.model_dump(exclude_unset=True))
    return MedicineResponse.model_validate(medicine)


@router.delete("/{medicine_id}", response_model=MedicineDeleted)
async def delete_medicine(
    medicine_id: str,
    tracker: TrackerService = Depends(get_tracker),
    scheduler: Optional[ReminderScheduler] = Depends(get_optional_scheduler)
):
    """Delete a medicine together with all of its intake records"""
    removed = await tracker.delete_medicine(medicine_id)
    if scheduler is not None:
        scheduler.cancel_for_medicine(medicine_id)
    return MedicineDeleted(id=medicine_id, intakes_removed=len(removed))
