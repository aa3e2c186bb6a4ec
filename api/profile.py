"""
Profile API Router
Endpoints for the patient profile
"""

from fastapi import APIRouter, Depends

from api.deps import get_tracker
from api.schemas.profile import ProfileUpdate, ProfileResponse
from services.tracker_service import TrackerService


router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(tracker: TrackerService = Depends(get_tracker)):
    return ProfileResponse.model_validate(tracker.get_profile())


@router.put("", response_model=ProfileResponse)
async def replace_profile(
    profile_data: ProfileUpdate,
    tracker: TrackerService = Depends(get_tracker)
):
    """Replace the whole profile; a blank caregiver email disables alerts"""
    profile = await tracker.set_profile(profile_data.model_dump())
    return ProfileResponse.model_validate(profile)
