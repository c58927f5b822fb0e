"""Month calendar of maintenance dates and issue periods."""

import calendar
import datetime

from django.db.models import Q
from django.utils import timezone

from ..models import AssetIssue, MaintenanceRecord
from .issues import is_overdue


def month_bounds(year, month):
    first = datetime.date(year, month, 1)
    last = datetime.date(year, month, calendar.monthrange(year, month)[1])
    return first, last


def adjacent_months(year, month):
    """Return ((prev_year, prev_month), (next_year, next_month))."""
    prev = (year - 1, 12) if month == 1 else (year, month - 1)
    nxt = (year + 1, 1) if month == 12 else (year, month + 1)
    return prev, nxt


def month_events(year, month, user=None, today=None):
    """Events per day for a month.

    Returns a list of weeks; each week is seven ``{"date", "events"}``
    cells (``date`` is None outside the month). Maintenance shows on its
    scheduled date; an issue shows on every day from issue to expected
    return. ``user`` limits issues to those held by that user.
    """
    today = today or timezone.localdate()
    first, last = month_bounds(year, month)
    by_day = {first + datetime.timedelta(days=i): [] for i in range(last.day)}

    maintenance = MaintenanceRecord.objects.filter(
        scheduled_date__range=(first, last)
    ).select_related("asset")
    for record in maintenance:
        by_day[record.scheduled_date].append(
            {
                "kind": "maintenance",
                "title": (
                    f"{record.get_maintenance_type_display()}: "
                    f"{record.asset.asset_code}"
                ),
                "status": record.status,
                "overdue": record.is_overdue(today),
                "url": record.asset.get_absolute_url(),
            }
        )

    issues = AssetIssue.objects.filter(
        issue_date__date__lte=last, expected_return_date__gte=first
    ).filter(Q(status="active") | Q(actual_return_date__date__gte=first))
    if user is not None:
        issues = issues.filter(issued_to=user)
    issues = issues.select_related("asset", "issued_to")
    for issue in issues:
        start = max(timezone.localtime(issue.issue_date).date(), first)
        end = min(issue.expected_return_date, last)
        day = start
        while day <= end:
            by_day[day].append(
                {
                    "kind": "issue",
                    "title": (
                        f"{issue.asset.asset_code} with "
                        f"{issue.issued_to.get_display_name()}"
                    ),
                    "status": issue.status,
                    "overdue": is_overdue(issue, today),
                    "url": issue.asset.get_absolute_url(),
                }
            )
            day += datetime.timedelta(days=1)

    weeks = []
    for week in calendar.Calendar(firstweekday=0).monthdatescalendar(
        year, month
    ):
        weeks.append(
            [
                {
                    "date": day if day.month == month else None,
                    "events": by_day.get(day, []),
                    "is_today": day == today,
                }
                for day in week
            ]
        )
    return weeks
