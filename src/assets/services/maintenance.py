"""Maintenance scheduling and status transitions."""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.utils import timezone

from ..models import Asset, MaintenanceRecord
from .audit import record_event

logger = logging.getLogger(__name__)


def schedule_maintenance(asset, created_by, **fields) -> MaintenanceRecord:
    """Create a scheduled record. The asset status is left alone."""
    if asset.status == "retired":
        raise ValidationError("Retired assets cannot be scheduled.")
    record = MaintenanceRecord(asset=asset, created_by=created_by, **fields)
    record.full_clean()
    record.save()
    record_event(
        created_by,
        "maintenance_scheduled",
        resource="maintenance",
        resource_id=record.pk,
        details=(
            f"{record.get_maintenance_type_display()} for "
            f"{asset.asset_code} on {record.scheduled_date.isoformat()}"
        ),
    )
    return record


def start_maintenance(record: MaintenanceRecord, user) -> MaintenanceRecord:
    """Move a scheduled record to in progress; the asset goes offline.

    Only an available asset can be taken into maintenance, so an issued
    asset must be returned first.
    """
    with db_transaction.atomic():
        locked = MaintenanceRecord.objects.select_for_update().get(
            pk=record.pk
        )
        if locked.status != "scheduled":
            raise ValidationError("Only scheduled work can be started.")
        asset = Asset.objects.select_for_update().get(pk=locked.asset_id)
        if asset.status != "available":
            raise ValidationError(
                f"{asset.asset_code} is {asset.get_status_display().lower()}"
                f" and cannot go into maintenance."
            )
        locked.status = "in_progress"
        if locked.technician_id is None:
            locked.technician = user
        locked.save(update_fields=["status", "technician", "updated_at"])
        asset.status = "maintenance"
        asset.save(update_fields=["status", "updated_at"])

    record.refresh_from_db()
    record_event(
        user,
        "maintenance_started",
        resource="maintenance",
        resource_id=record.pk,
        details=asset.asset_code,
    )
    logger.info("Maintenance started on %s", asset.asset_code)
    return record


def complete_maintenance(
    record: MaintenanceRecord, user, cost=None, notes="", today=None
) -> MaintenanceRecord:
    """Close a record and return its asset to service."""
    today = today or timezone.localdate()
    with db_transaction.atomic():
        locked = MaintenanceRecord.objects.select_for_update().get(
            pk=record.pk
        )
        if locked.status == "completed":
            raise ValidationError("This maintenance is already completed.")
        asset = Asset.objects.select_for_update().get(pk=locked.asset_id)
        locked.status = "completed"
        locked.completed_date = today
        if cost is not None:
            locked.cost = cost
        if notes:
            locked.notes = (
                f"{locked.notes}\n{notes}".strip() if locked.notes else notes
            )
        locked.save(
            update_fields=[
                "status",
                "completed_date",
                "cost",
                "notes",
                "updated_at",
            ]
        )
        if asset.status == "maintenance":
            asset.status = "available"
            asset.save(update_fields=["status", "updated_at"])

    record.refresh_from_db()
    record_event(
        user,
        "maintenance_completed",
        resource="maintenance",
        resource_id=record.pk,
        details=asset.asset_code,
    )
    logger.info("Maintenance completed on %s", asset.asset_code)
    return record


def overdue_maintenance(today=None):
    today = today or timezone.localdate()
    return MaintenanceRecord.objects.filter(
        status__in=["scheduled", "in_progress"], scheduled_date__lt=today
    ).select_related("asset", "technician")
