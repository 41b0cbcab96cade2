"""
Filament Pydantic Schemas
"""
import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime

from simple_fm.schemas.profile import ProfileResponse, blank_to_none

HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

_OPTIONAL_FIELDS = (
    "name", "profile_id", "color_hex", "price_eur", "weight_g",
    "spool_weight_g", "print_temp_min", "print_temp_max",
)


def normalize_color_hex(v: Optional[str]) -> Optional[str]:
    """Accept "ff6600" or "#FF6600", store "#ff6600"."""
    if v is None:
        return None
    match = HEX_COLOR_RE.match(v)
    if not match:
        raise ValueError("must be a 6-digit hex colour like #ff6600")
    return "#" + match.group(1).lower()


class FilamentBase(BaseModel):
    """Base filament fields"""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100, description="Label on the spool")
    profile_id: int = Field(..., gt=0, description="Profile this spool belongs to")
    color_hex: Optional[str] = Field(None, description="Display colour, #rrggbb")
    price_eur: Optional[float] = Field(None, ge=0, description="Purchase price in EUR")
    weight_g: int = Field(..., ge=0, description="Gross weight, spool + material")
    spool_weight_g: int = Field(200, ge=0, description="Empty spool (tare) weight")
    print_temp_min: Optional[int] = Field(None, ge=0, le=500, description="°C")
    print_temp_max: Optional[int] = Field(None, ge=0, le=500, description="°C")

    @field_validator(*_OPTIONAL_FIELDS, mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)

    @field_validator("color_hex")
    @classmethod
    def check_color_hex(cls, v):
        return normalize_color_hex(v)


class FilamentCreate(FilamentBase):
    """Create a new filament"""
    pass


class FilamentUpdate(BaseModel):
    """Update an existing filament; only submitted fields change"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    profile_id: Optional[int] = Field(None, gt=0)
    color_hex: Optional[str] = None
    price_eur: Optional[float] = Field(None, ge=0)
    weight_g: Optional[int] = Field(None, ge=0)
    spool_weight_g: Optional[int] = Field(None, ge=0)
    print_temp_min: Optional[int] = Field(None, ge=0, le=500)
    print_temp_max: Optional[int] = Field(None, ge=0, le=500)

    @field_validator(*_OPTIONAL_FIELDS, mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)

    @field_validator("color_hex")
    @classmethod
    def check_color_hex(cls, v):
        return normalize_color_hex(v)


class UsageCreate(BaseModel):
    """Material consumed by a print"""
    grams: int = Field(..., ge=0, description="Grams of filament used")

    @field_validator("grams", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return blank_to_none(v)


class FilamentResponse(BaseModel):
    """Filament response"""
    id: int
    name: str
    profile_id: int
    color_hex: Optional[str] = None
    price_eur: Optional[float] = None
    weight_g: int
    spool_weight_g: int
    remaining_g: int
    percent_remaining: int
    print_temp_min: Optional[int] = None
    print_temp_max: Optional[int] = None
    created_at: datetime
    profile: ProfileResponse

    class Config:
        from_attributes = True


class FilamentListResponse(BaseModel):
    """Filament list response"""
    total: int
    items: List[FilamentResponse]
