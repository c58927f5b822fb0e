"""Quick-scan lookup of an asset by its printed code."""

from django.utils import timezone

from ..models import Asset, AssetIssue
from .issues import days_overdue, is_overdue


class ScanResult:
    """An asset, its open issue if any, and the derived overdue state."""

    def __init__(self, asset, issue=None, is_overdue=False, days_overdue=0):
        self.asset = asset
        self.issue = issue
        self.is_overdue = is_overdue
        self.days_overdue = days_overdue

    def as_dict(self):
        asset = self.asset
        data = {
            "id": asset.pk,
            "asset_code": asset.asset_code,
            "name": asset.name,
            "category": asset.category.name,
            "status": asset.status,
            "condition": asset.condition,
            "location": asset.location,
            "qr_code_url": asset.qr_code_url,
            "issue": None,
        }
        if self.issue is not None:
            holder = self.issue.issued_to
            data["issue"] = {
                "id": self.issue.pk,
                "issued_to": holder.get_display_name(),
                "issued_to_email": holder.email,
                "issue_date": self.issue.issue_date.isoformat(),
                "expected_return_date": (
                    self.issue.expected_return_date.isoformat()
                ),
                "is_overdue": self.is_overdue,
                "days_overdue": self.days_overdue,
            }
        return data


def normalize_code(raw) -> str:
    return (raw or "").strip().upper()


def lookup_asset(code, today=None):
    """Find an asset and its active issue. Returns ScanResult or None."""
    code = normalize_code(code)
    if not code:
        return None
    asset = (
        Asset.objects.select_related("category", "department")
        .filter(asset_code=code)
        .first()
    )
    if asset is None:
        return None

    issue = (
        AssetIssue.objects.active()
        .select_related("issued_to", "issued_to__profile")
        .filter(asset=asset)
        .first()
    )
    if issue is None:
        return ScanResult(asset=asset, issue=None)

    today = today or timezone.localdate()
    return ScanResult(
        asset=asset,
        issue=issue,
        is_overdue=is_overdue(issue, today),
        days_overdue=days_overdue(issue, today),
    )
