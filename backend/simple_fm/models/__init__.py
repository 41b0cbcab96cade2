"""
Inventory models

- Profile: vendor/material definition shared by many spools
- Filament: a physical spool with its own weights, colour and price
"""
from simple_fm.models.profile import Profile
from simple_fm.models.filament import Filament

__all__ = ["Profile", "Filament"]
