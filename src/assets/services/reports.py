"""Aggregates for the reports page and dashboards."""

import datetime

from django.contrib.auth import get_user_model
from django.db.models import Count, OuterRef, Q, Subquery, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from ..models import Asset, AssetIssue, Category, Department

User = get_user_model()

REPORT_MONTHS = 6


def _month_start(day, months_back):
    month_index = day.year * 12 + day.month - 1 - months_back
    return datetime.date(month_index // 12, month_index % 12 + 1, 1)


def status_counts(queryset=None):
    """Asset counts per status, including zero counts."""
    queryset = Asset.objects.all() if queryset is None else queryset
    counts = dict(
        queryset.values_list("status").annotate(n=Count("pk")).order_by()
    )
    return {value: counts.get(value, 0) for value, _ in Asset.STATUS_CHOICES}


def monthly_issue_counts(today=None, months=REPORT_MONTHS):
    """Issues opened per month, oldest first, for the last ``months``."""
    today = today or timezone.localdate()
    start = _month_start(today, months - 1)
    rows = (
        AssetIssue.objects.filter(issue_date__date__gte=start)
        .annotate(month=TruncMonth("issue_date"))
        .values("month")
        .annotate(n=Count("pk"))
        .order_by()
    )
    by_month = {}
    for row in rows:
        month = row["month"]
        if isinstance(month, datetime.datetime):
            month = month.date()
        by_month[month] = row["n"]

    result = []
    for back in range(months - 1, -1, -1):
        month = _month_start(today, back)
        result.append(
            {
                "month": month,
                "label": month.strftime("%b %Y"),
                "count": by_month.get(month, 0),
            }
        )
    return result


def department_stats():
    # Summed in a subquery; joining profiles would repeat each price
    value = (
        Asset.objects.filter(department=OuterRef("pk"))
        .order_by()
        .values("department")
        .annotate(total=Sum("purchase_price"))
        .values("total")
    )
    return list(
        Department.objects.annotate(
            user_count=Count("profiles", distinct=True),
            asset_count=Count("assets", distinct=True),
            asset_value=Subquery(value),
        ).order_by("name")
    )


def category_distribution():
    """Asset count and share per category, largest first."""
    total = Asset.objects.count()
    rows = (
        Category.objects.annotate(
            asset_count=Count("assets"),
            issued_count=Count("assets", filter=Q(assets__status="issued")),
        )
        .filter(asset_count__gt=0)
        .order_by("-asset_count", "name")
    )
    result = []
    for category in rows:
        category.percentage = (
            round(category.asset_count * 100 / total) if total else 0
        )
        result.append(category)
    return result


def build_report(today=None):
    """Everything the reports page and exports show."""
    today = today or timezone.localdate()
    value = Asset.objects.exclude(status="retired").aggregate(
        total=Sum("purchase_price")
    )["total"]
    return {
        "generated_on": today,
        "total_assets": Asset.objects.count(),
        "total_users": User.objects.filter(is_active=True).count(),
        "active_issues": AssetIssue.objects.active().count(),
        "overdue_issues": AssetIssue.objects.overdue(today).count(),
        "asset_value": value or 0,
        "status_counts": status_counts(),
        "department_stats": department_stats(),
        "category_distribution": category_distribution(),
        "monthly_issues": monthly_issue_counts(today),
    }
