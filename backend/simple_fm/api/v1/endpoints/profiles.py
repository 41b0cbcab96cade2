"""
Profile API Endpoints
"""
from fastapi import APIRouter, Depends

from simple_fm.api.deps import get_store
from simple_fm.schemas.profile import ProfileListItem, ProfileListResponse, ProfileResponse
from simple_fm.services.inventory_service import InventoryStore

router = APIRouter()


@router.get("", response_model=ProfileListResponse)
def list_profiles(store: InventoryStore = Depends(get_store)):
    """
    List profiles ordered by vendor, each with its filament count
    """
    rows = store.list_profiles_with_counts()
    return ProfileListResponse(
        total=len(rows),
        items=[
            ProfileListItem(
                **ProfileResponse.model_validate(profile).model_dump(),
                filament_count=count,
            )
            for profile, count in rows
        ],
    )


@router.get("/{profile_id}", response_model=ProfileListItem)
def get_profile(profile_id: int, store: InventoryStore = Depends(get_store)):
    """Get a specific profile by ID"""
    profile = store.get_profile(profile_id)
    return ProfileListItem(
        **ProfileResponse.model_validate(profile).model_dump(),
        filament_count=store.count_filaments(profile_id),
    )
