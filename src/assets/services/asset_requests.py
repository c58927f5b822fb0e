"""Staff asset requests and their review."""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.utils import timezone

from ..models import AssetRequest
from .audit import record_event

logger = logging.getLogger(__name__)

REVIEW_DECISIONS = ("approved", "rejected")


def submit_request(requester, **fields) -> AssetRequest:
    request_obj = AssetRequest(requester=requester, **fields)
    request_obj.full_clean()
    request_obj.save()
    record_event(
        requester,
        "request_submitted",
        resource="asset_request",
        resource_id=request_obj.pk,
        details=f"{request_obj.category} ({request_obj.priority})",
    )
    return request_obj


def review_request(request_obj, reviewer, decision, notes=""):
    """Approve or reject a pending request."""
    if decision not in REVIEW_DECISIONS:
        raise ValidationError("Unknown decision.")
    with db_transaction.atomic():
        locked = AssetRequest.objects.select_for_update().get(
            pk=request_obj.pk
        )
        if locked.status != "pending":
            raise ValidationError(
                f"This request has already been {locked.status}."
            )
        locked.status = decision
        locked.reviewed_by = reviewer
        locked.reviewed_at = timezone.now()
        locked.review_notes = notes
        locked.save(
            update_fields=[
                "status",
                "reviewed_by",
                "reviewed_at",
                "review_notes",
                "updated_at",
            ]
        )
    request_obj.refresh_from_db()
    record_event(
        reviewer,
        f"request_{decision}",
        resource="asset_request",
        resource_id=request_obj.pk,
        details=str(request_obj),
    )
    logger.info("Request %s %s by %s", request_obj.pk, decision, reviewer)
    return request_obj


def fulfil_request(request_obj, issue):
    """Mark an approved request as fulfilled by an issue."""
    if request_obj.status != "approved":
        raise ValidationError("Only approved requests can be fulfilled.")
    request_obj.status = "fulfilled"
    request_obj.asset = issue.asset
    request_obj.save(update_fields=["status", "asset", "updated_at"])
    return request_obj
