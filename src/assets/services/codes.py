"""Asset code generation, uniqueness checks, QR links and registration."""

import logging
import random
from urllib.parse import quote, urlencode

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ..models import Asset, Category
from .audit import record_event

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "ASSET"
CODE_ATTEMPTS = 10

ASSET_CODE_TAKEN = "This asset code is already in use."
SERIAL_NUMBER_TAKEN = "This serial number is already registered."


def category_prefix(category) -> str:
    """Return the code prefix for a category, or ``ASSET``.

    Accepts a Category, a slug, or None.
    """
    if category is None or category == "":
        return DEFAULT_PREFIX
    if isinstance(category, Category):
        return category.code_prefix or DEFAULT_PREFIX
    prefix = (
        Category.objects.filter(slug=str(category).lower())
        .values_list("code_prefix", flat=True)
        .first()
    )
    return prefix or DEFAULT_PREFIX


def _candidate_code(prefix: str) -> str:
    number = random.randint(0, 999)
    return f"{settings.ASSET_CODE_PREFIX}-{prefix}-{number:03d}"


def is_asset_code_available(code: str, exclude_pk=None) -> bool:
    """Advisory pre-check; the unique index is authoritative."""
    code = (code or "").strip()
    if not code:
        return False
    qs = Asset.objects.filter(asset_code__iexact=code)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return not qs.exists()


def is_serial_number_available(serial: str, exclude_pk=None) -> bool:
    """Advisory pre-check. A blank serial is always available."""
    serial = (serial or "").strip()
    if not serial:
        return True
    qs = Asset.objects.filter(serial_number=serial)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return not qs.exists()


def generate_asset_code(category=None, attempts=CODE_ATTEMPTS):
    """Return an unused random code such as ``CUT-PROJ-042``, or None.

    Only ``attempts`` random draws are made. None means every draw hit
    an existing code; callers ask the user to enter one by hand.
    """
    prefix = category_prefix(category)
    for _ in range(attempts):
        code = _candidate_code(prefix)
        if is_asset_code_available(code):
            return code
    logger.warning(
        "No free asset code for prefix %s after %d attempts", prefix, attempts
    )
    return None


def build_qr_code_url(code: str) -> str:
    """URL of a rendered QR image encoding ``code``."""
    query = urlencode(
        {"size": settings.QR_CODE_SIZE, "data": code}, quote_via=quote
    )
    return f"{settings.QR_CODE_SERVICE_URL}?{query}"


def _map_integrity_error(exc: IntegrityError) -> ValidationError:
    message = str(exc).lower()
    if "serial" in message:
        return ValidationError({"serial_number": SERIAL_NUMBER_TAKEN})
    return ValidationError({"asset_code": ASSET_CODE_TAKEN})


def validate_unique_fields(asset_code, serial_number, exclude_pk=None):
    """Raise a field-keyed ValidationError for taken code or serial."""
    errors = {}
    if not is_asset_code_available(asset_code, exclude_pk=exclude_pk):
        errors["asset_code"] = ASSET_CODE_TAKEN
    if not is_serial_number_available(serial_number, exclude_pk=exclude_pk):
        errors["serial_number"] = SERIAL_NUMBER_TAKEN
    if errors:
        raise ValidationError(errors)


def register_asset(data: dict, created_by) -> Asset:
    """Create an asset from cleaned form data.

    Uniqueness is checked first for friendly errors, then enforced by the
    database: a concurrent insert that wins the race surfaces as the same
    field error.
    """
    data = dict(data)
    code = (data.pop("asset_code", "") or "").strip().upper()
    if not code:
        raise ValidationError({"asset_code": "Asset code is required."})
    validate_unique_fields(code, data.get("serial_number"))

    asset = Asset(asset_code=code, created_by=created_by, **data)
    asset.qr_code_url = build_qr_code_url(code)
    asset.full_clean(exclude=["asset_code", "serial_number"])
    try:
        with transaction.atomic():
            asset.save()
    except IntegrityError as exc:
        logger.info("Registration of %s lost a uniqueness race", code)
        raise _map_integrity_error(exc) from exc

    record_event(
        created_by,
        "asset_created",
        resource="asset",
        resource_id=asset.pk,
        details=f"Registered {asset.asset_code} ({asset.name})",
    )
    logger.info("Registered asset %s", asset.asset_code)
    return asset


def update_asset(asset: Asset, data: dict, updated_by) -> Asset:
    """Apply edited fields, keeping the code and serial unique."""
    data = dict(data)
    code = (data.pop("asset_code", asset.asset_code) or "").strip().upper()
    validate_unique_fields(
        code, data.get("serial_number"), exclude_pk=asset.pk
    )
    # A bound ModelForm may already have copied the new values onto asset
    stored_code = Asset.objects.values_list("asset_code", flat=True).get(
        pk=asset.pk
    )
    code_changed = code != stored_code
    asset.asset_code = code
    for field, value in data.items():
        setattr(asset, field, value)
    if code_changed or not asset.qr_code_url:
        asset.qr_code_url = build_qr_code_url(code)
    asset.full_clean(exclude=["asset_code", "serial_number"])
    try:
        with transaction.atomic():
            asset.save()
    except IntegrityError as exc:
        raise _map_integrity_error(exc) from exc

    record_event(
        updated_by,
        "asset_updated",
        resource="asset",
        resource_id=asset.pk,
        details=f"Updated {asset.asset_code}",
    )
    return asset
