"""
API v1 Router - Simple-FM
"""
from fastapi import APIRouter
from simple_fm.api.v1.endpoints import filaments, profiles

router = APIRouter()

# Profiles
router.include_router(
    profiles.router,
    prefix="/profiles",
    tags=["profiles"]
)

# Filaments
router.include_router(
    filaments.router,
    prefix="/filaments",
    tags=["filaments"]
)
