"""
Inventory Service

Owns the Profile and Filament records: validates input, computes the stored
remaining weight, and guards profile deletion while spools still reference
the profile. Returns ORM records and plain tuples only; rendering lives in
the web and API layers.
"""
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from simple_fm.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from simple_fm.models import Filament, Profile
from simple_fm.schemas.filament import FilamentCreate, FilamentUpdate, UsageCreate
from simple_fm.schemas.profile import ProfileCreate, ProfileUpdate
from simple_fm.services.calculations import compute_percent_remaining, compute_remaining

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

__all__ = [
    "InventoryStore",
    "compute_remaining",
    "compute_percent_remaining",
]

# Columns that are NOT NULL and therefore cannot be cleared by an update
_REQUIRED_PROFILE_FIELDS = ("vendor", "material", "density", "diameter")
_REQUIRED_FILAMENT_FIELDS = ("name", "profile_id", "weight_g", "spool_weight_g")


def _validate(schema: Type[SchemaT], data: Dict[str, Any]) -> SchemaT:
    """Run pydantic validation and re-raise failures as ValidationError."""
    try:
        return schema(**data)
    except SchemaValidationError as exc:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append({"field": field, "message": error["msg"], "type": error["type"]})
        message = "; ".join(
            f"{e['field']}: {e['message']}" if e["field"] else e["message"] for e in errors
        )
        raise ValidationError(message, details={"errors": errors}) from exc


def _reject_cleared(fields: Dict[str, Any], required: Tuple[str, ...]) -> None:
    cleared = [name for name in required if name in fields and fields[name] is None]
    if cleared:
        raise ValidationError(
            f"{', '.join(cleared)}: field required",
            details={"errors": [{"field": name, "message": "Field required"} for name in cleared]},
        )


def _check_temperatures(temp_min: Optional[int], temp_max: Optional[int]) -> None:
    if temp_min is not None and temp_max is not None and temp_min > temp_max:
        raise ValidationError(
            f"print_temp_min ({temp_min}) must not exceed print_temp_max ({temp_max})",
            details={"errors": [{"field": "print_temp_min", "message": "greater than print_temp_max"}]},
        )


class InventoryStore:
    """
    Profile and Filament persistence for one unit of work

    Usage in FastAPI endpoints:
        @router.get("/")
        def index(store: InventoryStore = Depends(get_store)):
            pairs = store.list_filaments()
    """

    def __init__(self, db: Session, *, degrade_reads: bool = False):
        self.db = db
        self.degrade_reads = degrade_reads

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read_failed(self, operation: str, exc: SQLAlchemyError, fallback):
        self.db.rollback()
        if self.degrade_reads:
            logger.error(f"{operation} failed, returning empty result: {exc}", exc_info=True)
            return fallback
        raise StorageError(f"{operation} failed: {exc}") from exc

    def list_filaments(self, profile_id: Optional[int] = None) -> List[Tuple[Filament, Profile]]:
        """
        Spools with their profile, newest first

        Args:
            profile_id: Only return spools of this profile

        Returns:
            List of (Filament, Profile) pairs ordered by created_at descending
        """
        try:
            query = self.db.query(Filament, Profile).join(Profile, Filament.profile_id == Profile.id)
            if profile_id is not None:
                query = query.filter(Filament.profile_id == profile_id)
            rows = query.order_by(Filament.created_at.desc(), Filament.id.desc()).all()
        except SQLAlchemyError as exc:
            return self._read_failed("Listing filaments", exc, [])
        return [(filament, profile) for filament, profile in rows]

    def list_profiles(self) -> List[Profile]:
        """All profiles ordered by vendor name"""
        try:
            return (
                self.db.query(Profile)
                .order_by(Profile.vendor, Profile.material, Profile.id)
                .all()
            )
        except SQLAlchemyError as exc:
            return self._read_failed("Listing profiles", exc, [])

    def list_profiles_with_counts(self) -> List[Tuple[Profile, int]]:
        """All profiles with the number of spools referencing each"""
        try:
            rows = (
                self.db.query(Profile, func.count(Filament.id))
                .outerjoin(Filament, Filament.profile_id == Profile.id)
                .group_by(Profile.id)
                .order_by(Profile.vendor, Profile.material, Profile.id)
                .all()
            )
        except SQLAlchemyError as exc:
            return self._read_failed("Listing profiles", exc, [])
        return [(profile, count) for profile, count in rows]

    def get_profile(self, profile_id: int) -> Profile:
        try:
            profile = self.db.get(Profile, profile_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Loading profile {profile_id} failed: {exc}") from exc
        if profile is None:
            raise NotFoundError("profile", profile_id)
        return profile

    def get_filament(self, filament_id: int) -> Filament:
        try:
            filament = self.db.get(Filament, filament_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Loading filament {filament_id} failed: {exc}") from exc
        if filament is None:
            raise NotFoundError("filament", filament_id)
        return filament

    def count_filaments(self, profile_id: int) -> int:
        return self.db.query(Filament).filter(Filament.profile_id == profile_id).count()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"{operation} failed: {exc}", exc_info=True)
            raise StorageError(f"{operation} failed: {exc}") from exc

    def _require_profile(self, profile_id: int) -> None:
        """Referential check for filament writes"""
        if self.db.get(Profile, profile_id) is None:
            raise ValidationError(
                f"Profile {profile_id} does not exist",
                details={"errors": [{"field": "profile_id", "message": "unknown profile"}]},
            )

    def create_profile(self, vendor: Any = None, material: Any = None, **optional: Any) -> int:
        """
        Create a profile

        Args:
            vendor: Manufacturer name
            material: Material family
            density: g/cm³, defaults to 1.24 when omitted
            diameter: mm, defaults to 1.75 when omitted

        Returns:
            ID of the new profile

        Raises:
            ValidationError: Missing or non-positive field
            StorageError: Insert failed
        """
        data = _validate(ProfileCreate, {"vendor": vendor, "material": material, **optional})

        profile = Profile(**data.model_dump())
        try:
            self.db.add(profile)
            self.db.flush()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Creating profile failed: {exc}") from exc
        self._commit("Creating profile")

        logger.info(f"Created profile: {profile.vendor} {profile.material}", extra={"profile_id": profile.id})
        return profile.id

    def update_profile(self, profile_id: int, **fields: Any) -> Profile:
        """Partial update of vendor, material, density and diameter"""
        profile = self.get_profile(profile_id)
        changes = _validate(ProfileUpdate, fields).model_dump(exclude_unset=True)
        _reject_cleared(changes, _REQUIRED_PROFILE_FIELDS)

        for name, value in changes.items():
            setattr(profile, name, value)
        self._commit(f"Updating profile {profile_id}")

        logger.info(f"Updated profile: {profile.vendor} {profile.material}", extra={"profile_id": profile.id})
        return profile

    def delete_profile(self, profile_id: int) -> None:
        """
        Delete a profile that no spool references

        Raises:
            NotFoundError: Unknown profile
            ConflictError: At least one filament still uses the profile
        """
        profile = self.get_profile(profile_id)

        try:
            in_use = self.count_filaments(profile_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Checking profile {profile_id} usage failed: {exc}") from exc
        if in_use > 0:
            raise ConflictError(
                f"Cannot delete profile: profile is in use by {in_use} filament(s)",
                details={"profile_id": profile_id, "filament_count": in_use},
            )

        self.db.delete(profile)
        self._commit(f"Deleting profile {profile_id}")
        logger.info(f"Deleted profile: {profile_id}")

    def create_filament(self, name: Any = None, profile_id: Any = None, **optional: Any) -> int:
        """
        Create a filament spool

        remaining_g is derived as max(weight_g - spool_weight_g, 0).

        Args:
            name: Spool label
            profile_id: Existing profile ID
            color_hex, price_eur, weight_g, spool_weight_g,
            print_temp_min, print_temp_max: see FilamentCreate

        Returns:
            ID of the new filament

        Raises:
            ValidationError: Missing/malformed field or unknown profile
            StorageError: Insert failed
        """
        data = _validate(FilamentCreate, {"name": name, "profile_id": profile_id, **optional})
        _check_temperatures(data.print_temp_min, data.print_temp_max)

        try:
            self._require_profile(data.profile_id)
            filament = Filament(
                **data.model_dump(),
                remaining_g=compute_remaining(data.weight_g, data.spool_weight_g),
            )
            self.db.add(filament)
            self.db.flush()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Creating filament failed: {exc}") from exc
        self._commit("Creating filament")

        logger.info(
            f"Created filament: {filament.name}",
            extra={"filament_id": filament.id, "remaining_g": filament.remaining_g},
        )
        return filament.id

    def update_filament(self, filament_id: int, **fields: Any) -> Filament:
        """
        Partial update of a filament

        Changing weight_g or spool_weight_g recomputes remaining_g from the
        resulting weights; resubmitting the stored weights keeps recorded
        usage. created_at never changes.
        """
        filament = self.get_filament(filament_id)
        changes = _validate(FilamentUpdate, fields).model_dump(exclude_unset=True)
        _reject_cleared(changes, _REQUIRED_FILAMENT_FIELDS)
        _check_temperatures(
            changes.get("print_temp_min", filament.print_temp_min),
            changes.get("print_temp_max", filament.print_temp_max),
        )

        try:
            if "profile_id" in changes and changes["profile_id"] != filament.profile_id:
                self._require_profile(changes["profile_id"])
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Updating filament {filament_id} failed: {exc}") from exc

        weights_changed = any(
            name in changes and changes[name] != getattr(filament, name)
            for name in ("weight_g", "spool_weight_g")
        )
        for name, value in changes.items():
            setattr(filament, name, value)
        if weights_changed:
            filament.remaining_g = compute_remaining(filament.weight_g, filament.spool_weight_g)
        self._commit(f"Updating filament {filament_id}")

        logger.info(f"Updated filament: {filament.name}", extra={"filament_id": filament.id})
        return filament

    def record_usage(self, filament_id: int, grams: Any) -> Filament:
        """Subtract consumed material from remaining_g, stopping at zero"""
        filament = self.get_filament(filament_id)
        usage = _validate(UsageCreate, {"grams": grams})

        filament.remaining_g = max(filament.remaining_g - usage.grams, 0)
        self._commit(f"Recording usage on filament {filament_id}")

        logger.info(
            f"Recorded {usage.grams} g used on filament: {filament.name}",
            extra={"filament_id": filament.id, "remaining_g": filament.remaining_g},
        )
        return filament

    def delete_filament(self, filament_id: int) -> None:
        """Delete a filament unconditionally"""
        filament = self.get_filament(filament_id)
        self.db.delete(filament)
        self._commit(f"Deleting filament {filament_id}")
        logger.info(f"Deleted filament: {filament_id}")
