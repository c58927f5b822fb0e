"""Issue and return workflow.

Both operations change two rows (the issue and the asset) and run in a
single transaction with the relevant row locked, so either both writes
land or neither does.
"""

import datetime
import logging
from calendar import monthrange

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.db import transaction as db_transaction
from django.db.models import Q
from django.utils import timezone

from ..models import Asset, AssetIssue
from .audit import record_event

logger = logging.getLogger(__name__)

User = get_user_model()

DEFAULT_RETURN_CONDITION = "good"


def _add_months(day: datetime.date, months: int) -> datetime.date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return day.replace(
        year=year, month=month, day=min(day.day, monthrange(year, month)[1])
    )


def return_preset_dates(today=None):
    """Quick-pick expected return dates: one week, two weeks, one month."""
    today = today or timezone.localdate()
    return [
        ("1 week", today + datetime.timedelta(days=7)),
        ("2 weeks", today + datetime.timedelta(days=14)),
        ("1 month", _add_months(today, 1)),
    ]


def is_overdue(issue: AssetIssue, today=None) -> bool:
    """True when an active issue's expected return date has passed.

    The due date itself is not overdue. Evaluated against the local date
    on every call; nothing is stored.
    """
    if issue.status != "active" or issue.expected_return_date is None:
        return False
    today = today or timezone.localdate()
    return today > issue.expected_return_date


def days_overdue(issue: AssetIssue, today=None) -> int:
    """Whole days past the expected return date, 0 when not overdue."""
    if not is_overdue(issue, today):
        return 0
    today = today or timezone.localdate()
    return (today - issue.expected_return_date).days


def issue_asset(
    asset: Asset,
    issued_to: User,
    issued_by: User,
    expected_return_date: datetime.date,
    notes: str = "",
    today=None,
) -> AssetIssue:
    """Lend an available asset. Returns the new active AssetIssue.

    Raises ValidationError if the asset is not available, the recipient
    is inactive, or the expected return date is in the past.
    """
    today = today or timezone.localdate()
    if expected_return_date is None:
        raise ValidationError(
            {"expected_return_date": "An expected return date is required."}
        )
    if expected_return_date < today:
        raise ValidationError(
            {
                "expected_return_date": "Expected return date cannot be in "
                "the past."
            }
        )
    if not issued_to.is_active:
        raise ValidationError(
            {"issued_to": "Cannot issue to an inactive user."}
        )

    try:
        with db_transaction.atomic():
            locked = Asset.objects.select_for_update().get(pk=asset.pk)
            if locked.status != "available":
                raise ValidationError(
                    f"{locked.asset_code} is not available "
                    f"(currently {locked.get_status_display().lower()})."
                )
            issue = AssetIssue.objects.create(
                asset=locked,
                issued_to=issued_to,
                issued_by=issued_by,
                expected_return_date=expected_return_date,
                notes=notes,
            )
            locked.status = "issued"
            locked.save(update_fields=["status", "updated_at"])
    except IntegrityError as exc:
        # Another request opened an issue for this asset first
        raise ValidationError(
            f"{asset.asset_code} has already been issued."
        ) from exc

    asset.status = "issued"
    record_event(
        issued_by,
        "asset_issued",
        resource="asset",
        resource_id=asset.pk,
        details=(
            f"{asset.asset_code} issued to {issued_to.email} "
            f"until {expected_return_date.isoformat()}"
        ),
    )
    logger.info(
        "Issued %s to %s until %s",
        asset.asset_code,
        issued_to.email,
        expected_return_date,
    )
    return issue


def return_asset(
    issue: AssetIssue,
    performed_by: User,
    return_condition: str = DEFAULT_RETURN_CONDITION,
    notes: str = "",
    now=None,
) -> AssetIssue:
    """Close an active issue and make the asset available again.

    The asset's condition becomes ``return_condition``. The recorded
    return time is never earlier than the issue date.
    """
    valid_conditions = dict(Asset.CONDITION_CHOICES)
    if return_condition not in valid_conditions:
        raise ValidationError(
            {"return_condition": "Select a valid condition."}
        )
    now = now or timezone.now()

    with db_transaction.atomic():
        locked = (
            AssetIssue.objects.select_for_update()
            .select_related("asset")
            .get(pk=issue.pk)
        )
        if locked.status != "active":
            raise ValidationError(
                f"{locked.asset.asset_code} has already been returned."
            )
        asset = Asset.objects.select_for_update().get(pk=locked.asset_id)

        locked.status = "returned"
        locked.actual_return_date = max(now, locked.issue_date)
        locked.return_condition = return_condition
        locked.returned_by = performed_by
        locked.return_notes = notes
        locked.save(
            update_fields=[
                "status",
                "actual_return_date",
                "return_condition",
                "returned_by",
                "return_notes",
                "updated_at",
            ]
        )
        asset.status = "available"
        asset.condition = return_condition
        asset.save(update_fields=["status", "condition", "updated_at"])

    issue.refresh_from_db()
    record_event(
        performed_by,
        "asset_returned",
        resource="asset",
        resource_id=asset.pk,
        details=f"{asset.asset_code} returned in {return_condition} condition",
    )
    logger.info(
        "Returned %s (%s) by %s",
        asset.asset_code,
        return_condition,
        performed_by.email,
    )
    return issue


def active_issues(search="", category=None, overdue=None, today=None):
    """Active issues for listing, optionally filtered.

    ``overdue`` True keeps only overdue issues, False only those still
    in time, None both.
    """
    today = today or timezone.localdate()
    qs = AssetIssue.objects.active().select_related(
        "asset",
        "asset__category",
        "issued_to",
        "issued_to__profile",
        "issued_by",
    )
    search = (search or "").strip()
    if search:
        qs = qs.filter(
            Q(asset__asset_code__icontains=search)
            | Q(asset__name__icontains=search)
            | Q(issued_to__email__icontains=search)
            | Q(issued_to__profile__full_name__icontains=search)
        )
    if category:
        qs = qs.filter(asset__category__slug=category)
    if overdue is True:
        qs = qs.filter(expected_return_date__lt=today)
    elif overdue is False:
        qs = qs.filter(expected_return_date__gte=today)
    return qs.order_by("expected_return_date")


def annotate_overdue(issues, today=None):
    """Attach ``overdue`` and ``overdue_days`` to each issue for display."""
    today = today or timezone.localdate()
    issues = list(issues)
    for issue in issues:
        issue.overdue = is_overdue(issue, today)
        issue.overdue_days = days_overdue(issue, today)
    return issues
