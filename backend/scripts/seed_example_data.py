"""
Seed Example Data for Simple-FM

This script seeds the database with:
1. Common filament profiles (PLA, PETG, ASA, TPU from a few vendors)
2. A handful of example spools so the overview page is not empty

Existing profiles (same vendor + material + diameter) are reused, so running
the script twice does not duplicate them. Spools are only added when the
database has none.

Run with: python -m scripts.seed_example_data   (from the backend directory)
"""
from typing import Dict, Tuple

from sqlalchemy.orm import Session

from simple_fm.core.settings import settings
from simple_fm.db.session import Database
from simple_fm.models import Filament, Profile
from simple_fm.services.inventory_service import InventoryStore


PROFILES = [
    {"vendor": "3D Jake", "material": "PETG", "density": 1.27, "diameter": 1.75},
    {"vendor": "3D Jake", "material": "PLA", "density": 1.24, "diameter": 1.75},
    {"vendor": "Bambu Lab", "material": "PLA", "density": 1.26, "diameter": 1.75},
    {"vendor": "Extrudr", "material": "ASA", "density": 1.07, "diameter": 1.75},
    {"vendor": "Prusament", "material": "PETG", "density": 1.27, "diameter": 1.75},
    {"vendor": "Polymaker", "material": "TPU", "density": 1.22, "diameter": 1.75},
]

SPOOLS = [
    {"name": "Rolle #1", "profile": ("3D Jake", "PETG"), "color_hex": "#ff6600", "price_eur": 19.99,
     "weight_g": 1250, "spool_weight_g": 250, "print_temp_min": 230, "print_temp_max": 250},
    {"name": "Galaxy Black", "profile": ("Prusament", "PETG"), "color_hex": "#1f1f1f", "price_eur": 29.99,
     "weight_g": 1193, "spool_weight_g": 193, "print_temp_min": 240, "print_temp_max": 260},
    {"name": "Testspule", "profile": ("Bambu Lab", "PLA"), "color_hex": "#ffffff", "price_eur": 22.99,
     "weight_g": 450, "spool_weight_g": 250, "print_temp_min": 190, "print_temp_max": 230},
    {"name": "Flex Blue", "profile": ("Polymaker", "TPU"), "color_hex": "#1d4ed8", "price_eur": 34.50,
     "weight_g": 890, "spool_weight_g": 140, "print_temp_min": 210, "print_temp_max": 230},
]


def get_or_create_profile(db: Session, store: InventoryStore, data: dict) -> int:
    """Get existing profile or create if it doesn't exist"""
    profile = db.query(Profile).filter(
        Profile.vendor == data["vendor"],
        Profile.material == data["material"],
        Profile.diameter == data["diameter"],
    ).first()
    if profile:
        return profile.id
    return store.create_profile(**data)


def seed_profiles(db: Session, store: InventoryStore) -> Dict[Tuple[str, str], int]:
    print("\n📁 Ensuring profiles exist...")
    ids = {}
    for data in PROFILES:
        ids[(data["vendor"], data["material"])] = get_or_create_profile(db, store, data)
        print(f"  ✓ {data['vendor']} {data['material']}")
    return ids


def seed_spools(db: Session, store: InventoryStore, profile_ids: Dict[Tuple[str, str], int]) -> int:
    if db.query(Filament).count() > 0:
        print("\n🧵 Filaments already present, skipping example spools")
        return 0

    print("\n🧵 Adding example spools...")
    for spool in SPOOLS:
        data = dict(spool)
        profile_id = profile_ids[data.pop("profile")]
        filament_id = store.create_filament(profile_id=profile_id, **data)
        print(f"  ✓ {spool['name']} (id {filament_id})")
    return len(SPOOLS)


def main():
    database = Database(settings.database_url, echo=settings.DB_ECHO)
    database.connect(create_tables=True)
    try:
        with database.session() as db:
            store = InventoryStore(db)
            profile_ids = seed_profiles(db, store)
            created = seed_spools(db, store, profile_ids)
    finally:
        database.close()

    print(f"\n✅ Done: {len(PROFILES)} profiles, {created} new spools")


if __name__ == "__main__":
    main()
