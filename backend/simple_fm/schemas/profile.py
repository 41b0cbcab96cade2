"""
Profile Pydantic Schemas
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime


def blank_to_none(v):
    """HTML forms submit empty inputs as "", which means "not given"."""
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
    return v


class ProfileBase(BaseModel):
    """Base profile fields"""
    model_config = ConfigDict(extra="forbid")

    vendor: str = Field(..., min_length=1, max_length=100, description="Manufacturer name")
    material: str = Field(..., min_length=1, max_length=50, description="Material family, e.g. PLA")
    density: float = Field(1.24, gt=0, description="g/cm³")
    diameter: float = Field(1.75, gt=0, description="Filament diameter in mm")

    @field_validator("vendor", "material", "density", "diameter", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)


class ProfileCreate(ProfileBase):
    """Create a new profile"""
    pass


class ProfileUpdate(BaseModel):
    """Update an existing profile; only submitted fields change"""
    model_config = ConfigDict(extra="forbid")

    vendor: Optional[str] = Field(None, min_length=1, max_length=100)
    material: Optional[str] = Field(None, min_length=1, max_length=50)
    density: Optional[float] = Field(None, gt=0)
    diameter: Optional[float] = Field(None, gt=0)

    @field_validator("vendor", "material", "density", "diameter", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)


class ProfileResponse(BaseModel):
    """Profile response"""
    id: int
    vendor: str
    material: str
    density: float
    diameter: float
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileListItem(ProfileResponse):
    """Profile with the number of spools that reference it"""
    filament_count: int = 0


class ProfileListResponse(BaseModel):
    """Profile list response"""
    total: int
    items: List[ProfileListItem]
