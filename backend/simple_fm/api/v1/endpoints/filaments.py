"""
Filament API Endpoints

Read-only JSON view of the spool inventory, for scripts and dashboards.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from simple_fm.api.deps import get_store
from simple_fm.schemas.filament import FilamentListResponse, FilamentResponse
from simple_fm.services.inventory_service import InventoryStore

router = APIRouter()


@router.get("", response_model=FilamentListResponse)
def list_filaments(
    profile: Optional[int] = Query(None, description="Only spools of this profile"),
    store: InventoryStore = Depends(get_store),
):
    """
    List filaments, newest first

    - **profile**: Filter by profile ID
    """
    rows = store.list_filaments(profile)
    return FilamentListResponse(
        total=len(rows),
        items=[FilamentResponse.model_validate(filament) for filament, _profile in rows],
    )


@router.get("/{filament_id}", response_model=FilamentResponse)
def get_filament(filament_id: int, store: InventoryStore = Depends(get_store)):
    """Get a specific filament by ID"""
    return FilamentResponse.model_validate(store.get_filament(filament_id))
