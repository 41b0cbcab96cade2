"""
Server-rendered pages

Listing, create, edit and delete forms for profiles and filament spools.
Every successful write answers 303 See Other to a listing page; invalid
input re-renders the form with status 400.
"""
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from starlette.datastructures import FormData
import logging

from simple_fm.api.deps import get_store
from simple_fm.core.settings import settings
from simple_fm.exceptions import ConflictError, ValidationError
from simple_fm.logging_config import audit_log, get_client_ip
from simple_fm.services.inventory_service import InventoryStore
from simple_fm.web.templating import templates

router = APIRouter()
logger = logging.getLogger(__name__)


_FILAMENT_FIELDS = (
    "name", "profile_id", "color_hex", "price_eur", "weight_g",
    "spool_weight_g", "print_temp_min", "print_temp_max",
)
_PROFILE_FIELDS = ("vendor", "material", "density", "diameter")


async def posted_form(request: Request) -> FormData:
    return await request.form()


def _submitted(form: FormData, names: Tuple[str, ...]) -> Dict[str, Any]:
    """
    Fields present in the posted form

    A blanked input arrives as "" and is passed on as such; the store
    treats it as cleared.
    """
    return {name: form[name] for name in names if name in form}


def _parse_profile_filter(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"profile: '{value}' is not a valid profile id")


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


# ============================================================================
# Filaments
# ============================================================================

@router.get("/", name="list_filaments")
def list_filaments(
    request: Request,
    profile: Optional[str] = None,
    store: InventoryStore = Depends(get_store),
):
    """Spool overview, optionally filtered to one profile"""
    profile_id = _parse_profile_filter(profile)
    rows = store.list_filaments(profile_id)
    profiles = store.list_profiles()

    return templates.TemplateResponse(
        request,
        "filaments/list.html",
        {
            "rows": rows,
            "profiles": profiles,
            "selected_profile": profile_id,
        },
    )


def _filament_form(
    request: Request,
    store: InventoryStore,
    *,
    values: Dict[str, Any],
    filament_id: Optional[int] = None,
    error: Optional[str] = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "filaments/form.html",
        {
            "profiles": store.list_profiles(),
            "values": values,
            "filament_id": filament_id,
            "error": error,
        },
        status_code=status_code,
    )


@router.get("/filaments/new")
def new_filament_form(
    request: Request,
    profile: Optional[str] = None,
    store: InventoryStore = Depends(get_store),
):
    values = {
        "spool_weight_g": settings.DEFAULT_SPOOL_WEIGHT_G,
        "profile_id": _parse_profile_filter(profile),
    }
    return _filament_form(request, store, values=values)


@router.post("/filaments/new")
def create_filament(
    request: Request,
    form: FormData = Depends(posted_form),
    store: InventoryStore = Depends(get_store),
):
    fields = _submitted(form, _FILAMENT_FIELDS)
    try:
        filament_id = store.create_filament(**fields)
    except ValidationError as exc:
        logger.warning(f"Rejected filament: {exc.message}")
        return _filament_form(request, store, values=fields, error=exc.message, status_code=400)

    audit_log(
        "FILAMENT_CREATED",
        resource_type="filament",
        resource_id=filament_id,
        details={"name": fields.get("name"), "profile_id": fields.get("profile_id")},
        ip_address=get_client_ip(request),
    )
    return _see_other(request.url_for("list_filaments").path)


@router.get("/filaments/{filament_id}/edit")
def edit_filament_form(
    request: Request,
    filament_id: int,
    store: InventoryStore = Depends(get_store),
):
    filament = store.get_filament(filament_id)
    values = {
        "name": filament.name,
        "profile_id": filament.profile_id,
        "color_hex": filament.color_hex,
        "price_eur": filament.price_eur,
        "weight_g": filament.weight_g,
        "spool_weight_g": filament.spool_weight_g,
        "remaining_g": filament.remaining_g,
        "print_temp_min": filament.print_temp_min,
        "print_temp_max": filament.print_temp_max,
    }
    return _filament_form(request, store, values=values, filament_id=filament_id)


@router.post("/filaments/{filament_id}/update")
def update_filament(
    request: Request,
    filament_id: int,
    form: FormData = Depends(posted_form),
    store: InventoryStore = Depends(get_store),
):
    fields = _submitted(form, _FILAMENT_FIELDS)
    # 404 before validation so an unknown id never renders a form
    store.get_filament(filament_id)
    try:
        filament = store.update_filament(filament_id, **fields)
    except ValidationError as exc:
        logger.warning(f"Rejected filament update {filament_id}: {exc.message}")
        return _filament_form(
            request, store, values=fields, filament_id=filament_id,
            error=exc.message, status_code=400,
        )

    audit_log(
        "FILAMENT_UPDATED",
        resource_type="filament",
        resource_id=filament_id,
        details={"fields": sorted(fields), "remaining_g": filament.remaining_g},
        ip_address=get_client_ip(request),
    )
    return _see_other(request.url_for("list_filaments").path)


@router.post("/filaments/{filament_id}/usage")
def record_usage(
    request: Request,
    filament_id: int,
    grams: Optional[str] = Form(None),
    store: InventoryStore = Depends(get_store),
):
    """Deduct grams consumed by a print from the spool"""
    filament = store.record_usage(filament_id, grams)

    audit_log(
        "FILAMENT_USAGE_RECORDED",
        resource_type="filament",
        resource_id=filament_id,
        details={"grams": grams, "remaining_g": filament.remaining_g},
        ip_address=get_client_ip(request),
    )
    return _see_other(request.url_for("list_filaments").path)


@router.post("/filaments/{filament_id}/delete")
def delete_filament(
    request: Request,
    filament_id: int,
    store: InventoryStore = Depends(get_store),
):
    store.delete_filament(filament_id)

    audit_log(
        "FILAMENT_DELETED",
        resource_type="filament",
        resource_id=filament_id,
        ip_address=get_client_ip(request),
    )
    return _see_other(request.url_for("list_filaments").path)


# ============================================================================
# Profiles
# ============================================================================

def _profile_list(
    request: Request,
    store: InventoryStore,
    *,
    error: Optional[str] = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "profiles/list.html",
        {"rows": store.list_profiles_with_counts(), "error": error},
        status_code=status_code,
    )


def _profile_form(
    request: Request,
    *,
    values: Dict[str, Any],
    profile_id: Optional[int] = None,
    error: Optional[str] = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "profiles/form.html",
        {"values": values, "profile_id": profile_id, "error": error},
        status_code=status_code,
    )


@router.get("/profiles", name="list_profiles")
def list_profiles(request: Request, store: InventoryStore = Depends(get_store)):
    """Profiles with the number of spools using each"""
    return _profile_list(request, store)


@router.get("/profiles/new")
def new_profile_form(request: Request):
    values = {"density": settings.DEFAULT_DENSITY, "diameter": settings.DEFAULT_DIAMETER}
    return _profile_form(request, values=values)


@router.post("/profiles/new")
def create_profile(
    request: Request,
    form: FormData = Depends(posted_form),
    store: InventoryStore = Depends(get_store),
):
    fields = _submitted(form, _PROFILE_FIELDS)
    try:
        profile_id = store.create_profile(**fields)
    except ValidationError as exc:
        logger.warning(f"Rejected profile: {exc.message}")
        return _profile_form(request, values=fields, error=exc.message, status_code=400)

    audit_log(
        "PROFILE_CREATED",
        resource_type="profile",
        resource_id=profile_id,
        details={"vendor": fields.get("vendor"), "material": fields.get("material")},
        ip_address=get_client_ip(request),
    )
    return _see_other(request.url_for("list_profiles").path)


@router.get("/profiles/{profile_id}/edit")
def edit_profile_form(
    request: Request,
    profile_id: int,
    store: InventoryStore = Depends(get_store),
):
    profile = store.get_profile(profile_id)
    values = {
        "vendor": profile.vendor,
        "material": profile.material,
        "density": profile.density,
        "diameter": profile.diameter,
    }
    return _profile_form(request, values=values, profile_id=profile_id)


@router.post("/profiles/{profile_id}/update")
def update_profile(
    request: Request,
    profile_id: int,
    form: FormData = Depends(posted_form),
    store: InventoryStore = Depends(get_store),
):
    fields = _submitted(form, _PROFILE_FIELDS)
    store.get_profile(profile_id)
    try:
        store.update_profile(profile_id, **fields)
    except ValidationError as exc:
        logger.warning(f"Rejected profile update {profile_id}: {exc.message}")
        return _profile_form(
            request, values=fields, profile_id=profile_id,
            error=exc.message, status_code=400,
        )

    audit_log(
        "PROFILE_UPDATED",
        resource_type="profile",
        resource_id=profile_id,
        details={"fields": sorted(fields)},
        ip_address=get_client_ip(request),
    )
    return _see_other(request.url_for("list_profiles").path)


@router.post("/profiles/{profile_id}/delete")
def delete_profile(
    request: Request,
    profile_id: int,
    store: InventoryStore = Depends(get_store),
):
    try:
        store.delete_profile(profile_id)
    except ConflictError as exc:
        logger.warning(f"Refused to delete profile {profile_id}: {exc.message}")
        return _profile_list(request, store, error=exc.message, status_code=400)

    audit_log(
        "PROFILE_DELETED",
        resource_type="profile",
        resource_id=profile_id,
        ip_address=get_client_ip(request),
    )
    return _see_other(request.url_for("list_profiles").path)
