"""Tests for asset views: dashboards, register, issue/return, scan."""

import datetime

import pytest

from django.urls import reverse
from django.utils import timezone

from assets.factories import (
    AssetFactory,
    AssetRequestFactory,
    MaintenanceRecordFactory,
    UserFactory,
)
from assets.models import Asset, AssetIssue, AuditLog, Category


@pytest.fixture
def due_date():
    return timezone.localdate() + datetime.timedelta(days=7)


class TestDashboard:
    def test_admin_dashboard(self, admin_client, asset):
        response = admin_client.get(reverse("assets:dashboard"))
        assert response.status_code == 200
        assert "assets/dashboard/admin.html" in [
            t.name for t in response.templates
        ]
        assert response.context["total_assets"] == 1

    def test_technician_dashboard(self, technician_client, issued_asset):
        response = technician_client.get(reverse("assets:dashboard"))
        assert "assets/dashboard/technician.html" in [
            t.name for t in response.templates
        ]
        assert response.context["active_issue_count"] == 1
        assert response.context["overdue_count"] == 0

    def test_staff_dashboard_lists_own_issues(
        self, staff_client, issued_asset
    ):
        response = staff_client.get(reverse("assets:dashboard"))
        assert "assets/dashboard/staff.html" in [
            t.name for t in response.templates
        ]
        assert [i.asset for i in response.context["my_issues"]] == [
            issued_asset
        ]
        assert "total_assets" not in response.context

    def test_navigation_follows_role(self, staff_client):
        response = staff_client.get(reverse("assets:dashboard"))
        labels = [i["label"] for i in response.context["navigation"]]
        assert "My Assets" in labels
        assert "Users" not in labels


class TestAssetRegister:
    def test_list_filters(self, staff_client, asset, issued_asset):
        response = staff_client.get(
            reverse("assets:asset_list"), {"status": "issued"}
        )
        assert list(response.context["page_obj"]) == [issued_asset]

    def test_search(self, staff_client, asset, issued_asset):
        response = staff_client.get(
            reverse("assets:asset_list"), {"q": "epson"}
        )
        assert list(response.context["page_obj"]) == [asset]

    def test_staff_cannot_register(self, staff_client):
        response = staff_client.get(reverse("assets:asset_create"))
        assert response.status_code == 302
        assert response.url == reverse("assets:dashboard")

    def test_form_prefills_generated_code(self, technician_client, category):
        response = technician_client.get(
            reverse("assets:asset_create"), {"category": "projector"}
        )
        code = response.context["form"].initial["asset_code"]
        assert code.startswith("CUT-PROJ-")

    def test_register(self, technician_client, laptop_category, department):
        response = technician_client.post(
            reverse("assets:asset_create"),
            {
                "asset_code": "cut-lap-321",
                "name": "Lenovo ThinkPad",
                "category": laptop_category.pk,
                "department": department.pk,
                "serial_number": "",
                "condition": "good",
            },
        )
        asset = Asset.objects.get(asset_code="CUT-LAP-321")
        assert response.status_code == 302
        assert response.url == asset.get_absolute_url()
        assert asset.serial_number is None
        assert asset.qr_code_url

    def test_duplicate_code_shows_field_error(
        self, technician_client, asset
    ):
        response = technician_client.post(
            reverse("assets:asset_create"),
            {
                "asset_code": "CUT-PROJ-001",
                "name": "Another projector",
                "category": asset.category.pk,
                "condition": "good",
            },
        )
        assert response.status_code == 200
        assert "asset_code" in response.context["form"].errors

    def test_edit_cannot_force_issued_status(
        self, technician_client, asset
    ):
        response = technician_client.post(
            reverse("assets:asset_edit", args=[asset.pk]),
            {
                "asset_code": asset.asset_code,
                "name": asset.name,
                "category": asset.category.pk,
                "condition": "good",
                "status": "issued",
            },
        )
        assert response.status_code == 200
        asset.refresh_from_db()
        assert asset.status == "available"

    def test_detail_shows_history(self, staff_client, issued_asset):
        response = staff_client.get(issued_asset.get_absolute_url())
        assert response.status_code == 200
        assert response.context["active_issue"] is not None
        assert response.context["can_return"]
        assert not response.context["can_manage"]


class TestGenerateCode:
    def test_by_category_id(self, technician_client, category):
        response = technician_client.get(
            reverse("assets:generate_code"), {"category_id": category.pk}
        )
        assert response.json()["code"].startswith("CUT-PROJ-")

    def test_without_category(self, technician_client):
        response = technician_client.get(reverse("assets:generate_code"))
        assert response.json()["code"].startswith("CUT-ASSET-")

    def test_exhausted(self, technician_client, asset, monkeypatch):
        monkeypatch.setattr(
            "assets.services.codes.random.randint", lambda a, b: 1
        )
        response = technician_client.get(
            reverse("assets:generate_code"), {"category": "projector"}
        )
        data = response.json()
        assert data["code"] is None
        assert "manually" in data["warning"]


class TestIssueAndReturnViews:
    def test_issue(self, technician_client, asset, staff_user, due_date):
        response = technician_client.post(
            reverse("assets:issue_create"),
            {
                "asset": asset.pk,
                "issued_to": staff_user.pk,
                "expected_return_date": due_date.isoformat(),
            },
        )
        assert response.status_code == 302
        asset.refresh_from_db()
        assert asset.status == "issued"

    def test_issue_form_offers_presets(self, technician_client):
        response = technician_client.get(reverse("assets:issue_create"))
        labels = [label for label, _ in response.context["presets"]]
        assert labels == ["1 week", "2 weeks", "1 month"]

    def test_issued_asset_not_offered(self, technician_client, issued_asset):
        response = technician_client.get(reverse("assets:issue_create"))
        offered = response.context["form"].fields["asset"].queryset
        assert issued_asset not in offered

    def test_issue_fulfils_approved_request(
        self, technician_client, asset, staff_user, category, due_date
    ):
        request_obj = AssetRequestFactory(
            requester=staff_user, category=category, status="approved"
        )
        technician_client.post(
            reverse("assets:issue_create"),
            {
                "asset": asset.pk,
                "issued_to": staff_user.pk,
                "expected_return_date": due_date.isoformat(),
                "request": request_obj.pk,
            },
        )
        request_obj.refresh_from_db()
        assert request_obj.status == "fulfilled"
        assert request_obj.asset == asset

    def test_active_issues_overdue_filter(
        self, technician_client, issued_asset, asset, staff_user
    ):
        AssetIssue.objects.create(
            asset=asset,
            issued_to=staff_user,
            expected_return_date=timezone.localdate()
            - datetime.timedelta(days=2),
        )
        response = technician_client.get(
            reverse("assets:active_issues"), {"overdue": "1"}
        )
        [row] = list(response.context["page_obj"])
        assert row.asset == asset
        assert row.overdue_days == 2
        assert response.context["overdue_count"] == 1

    def test_holder_returns_own_asset(self, staff_client, active_issue):
        response = staff_client.post(
            reverse("assets:issue_return", args=[active_issue.pk]),
            {"return_condition": "good"},
        )
        assert response.status_code == 302
        assert response.url == reverse("assets:my_assets")
        active_issue.refresh_from_db()
        assert active_issue.status == "returned"

    def test_other_staff_cannot_return(
        self, client, active_issue, password
    ):
        other = UserFactory(role="staff", password=password)
        client.force_login(other)
        response = client.post(
            reverse("assets:issue_return", args=[active_issue.pk]),
            {"return_condition": "good"},
        )
        assert response.status_code == 403
        active_issue.refresh_from_db()
        assert active_issue.status == "active"

    def test_double_return_message(self, technician_client, active_issue):
        url = reverse("assets:issue_return", args=[active_issue.pk])
        technician_client.post(url, {"return_condition": "good"})
        response = technician_client.post(
            url, {"return_condition": "good"}, follow=True
        )
        messages = [str(m) for m in response.context["messages"]]
        assert any("already been returned" in m for m in messages)

    def test_my_assets(self, staff_client, issued_asset):
        response = staff_client.get(reverse("assets:my_assets"))
        assert [i.asset for i in response.context["current_issues"]] == [
            issued_asset
        ]
        assert response.context["overdue_count"] == 0


class TestScan:
    def test_scan_page(self, technician_client):
        response = technician_client.get(reverse("assets:scan"))
        assert response.status_code == 200

    def test_scan_page_with_code(self, technician_client, issued_asset):
        response = technician_client.get(
            reverse("assets:scan"), {"code": " cut-lap-010 "}
        )
        assert response.context["code"] == "CUT-LAP-010"
        assert response.context["result"].asset == issued_asset

    def test_staff_cannot_scan(self, staff_client):
        response = staff_client.get(reverse("assets:scan_lookup"))
        assert response.status_code == 302

    def test_lookup_json(self, technician_client, issued_asset, staff_user):
        response = technician_client.get(
            reverse("assets:scan_lookup"), {"code": "cut-lap-010"}
        )
        data = response.json()
        assert data["found"] is True
        assert data["asset_code"] == "CUT-LAP-010"
        assert data["status"] == "issued"
        assert data["issue"]["issued_to_email"] == staff_user.email
        assert data["issue"]["is_overdue"] is False

    def test_lookup_not_found(self, technician_client, db):
        response = technician_client.get(
            reverse("assets:scan_lookup"), {"code": "CUT-NOPE-999"}
        )
        assert response.status_code == 404
        assert response.json()["found"] is False

    def test_lookup_htmx_fragment(self, technician_client, asset):
        response = technician_client.get(
            reverse("assets:scan_lookup"),
            {"code": "CUT-PROJ-001"},
            HTTP_HX_REQUEST="true",
        )
        assert response.status_code == 200
        assert "assets/partials/scan_result.html" in [
            t.name for t in response.templates
        ]
        assert b"Issue this asset" in response.content

    def test_lookup_htmx_not_found(self, technician_client, db):
        response = technician_client.get(
            reverse("assets:scan_lookup"),
            {"code": "CUT-NOPE-999"},
            HTTP_HX_REQUEST="true",
        )
        assert b"No asset found with code CUT-NOPE-999" in response.content

    def test_lookup_rate_limited(self, technician_client, asset):
        url = reverse("assets:scan_lookup")
        for _ in range(60):
            technician_client.get(url, {"code": "CUT-PROJ-001"})
        response = technician_client.get(url, {"code": "CUT-PROJ-001"})
        assert response.status_code == 429
        assert response["Retry-After"] == "60"

    def test_quick_return(self, technician_client, active_issue):
        response = technician_client.post(
            reverse("assets:quick_return", args=[active_issue.pk])
        )
        assert response.status_code == 302
        assert response.url.endswith("?code=CUT-LAP-010")
        active_issue.refresh_from_db()
        assert active_issue.status == "returned"
        assert active_issue.return_condition == "good"


class TestMaintenanceViews:
    def test_schedule(self, technician_client, asset, technician_user):
        response = technician_client.post(
            reverse("assets:maintenance_create"),
            {
                "asset": asset.pk,
                "maintenance_type": "preventive",
                "description": "Clean filters",
                "scheduled_date": timezone.localdate().isoformat(),
                "technician": technician_user.pk,
            },
        )
        assert response.status_code == 302
        assert asset.maintenance_records.count() == 1

    def test_start_issued_asset_shows_error(
        self, technician_client, issued_asset
    ):
        record = MaintenanceRecordFactory(asset=issued_asset)
        response = technician_client.post(
            reverse("assets:maintenance_start", args=[record.pk]),
            follow=True,
        )
        messages = [str(m) for m in response.context["messages"]]
        assert any("cannot go into maintenance" in m for m in messages)

    def test_complete(self, technician_client, asset):
        record = MaintenanceRecordFactory(asset=asset)
        technician_client.post(
            reverse("assets:maintenance_complete", args=[record.pk]),
            {"cost": "20.00", "notes": "ok"},
        )
        record.refresh_from_db()
        assert record.status == "completed"

    def test_overdue_filter(self, technician_client, asset):
        MaintenanceRecordFactory(
            asset=asset,
            scheduled_date=timezone.localdate() - datetime.timedelta(days=1),
        )
        response = technician_client.get(
            reverse("assets:maintenance_list"), {"status": "overdue"}
        )
        [record] = list(response.context["page_obj"])
        assert record.overdue


class TestCalendarView:
    def test_renders_month(self, staff_client):
        response = staff_client.get(
            reverse("assets:calendar"), {"year": "2026", "month": "12"}
        )
        assert response.status_code == 200
        assert response.context["next_year"] == 2027
        assert response.context["next_month"] == 1

    def test_bad_month_falls_back_to_current(self, staff_client):
        response = staff_client.get(
            reverse("assets:calendar"), {"year": "x", "month": "13"}
        )
        first = timezone.localdate().replace(day=1)
        assert response.context["month_start"] == first

    def test_year_beyond_calendar_range_falls_back(self, technician_client):
        response = technician_client.get(
            reverse("assets:calendar"), {"year": "9999", "month": "12"}
        )
        assert response.status_code == 200
        first = timezone.localdate().replace(day=1)
        assert response.context["month_start"] == first


class TestRequests:
    def test_staff_submits(self, staff_client, category):
        today = timezone.localdate()
        response = staff_client.post(
            reverse("assets:request_create"),
            {
                "category": category.pk,
                "purpose": "Graduation rehearsal",
                "requested_date": today.isoformat(),
                "expected_return_date": (
                    today + datetime.timedelta(days=2)
                ).isoformat(),
                "priority": "high",
            },
        )
        assert response.status_code == 302
        assert response.url == reverse("assets:request_list")

    def test_staff_sees_only_own(self, staff_client, staff_user, category):
        mine = AssetRequestFactory(requester=staff_user, category=category)
        AssetRequestFactory(category=category)
        response = staff_client.get(reverse("assets:request_list"))
        assert list(response.context["page_obj"]) == [mine]
        assert not response.context["can_review"]

    def test_technician_approves(
        self, technician_client, staff_user, category
    ):
        request_obj = AssetRequestFactory(
            requester=staff_user, category=category
        )
        technician_client.post(
            reverse("assets:request_review", args=[request_obj.pk]),
            {"decision": "approved"},
        )
        request_obj.refresh_from_db()
        assert request_obj.status == "approved"

    def test_staff_cannot_review(self, staff_client, staff_user, category):
        request_obj = AssetRequestFactory(
            requester=staff_user, category=category
        )
        staff_client.post(
            reverse("assets:request_review", args=[request_obj.pk]),
            {"decision": "approved"},
        )
        request_obj.refresh_from_db()
        assert request_obj.status == "pending"


class TestAdminPages:
    def test_reports(self, admin_client, asset):
        response = admin_client.get(reverse("assets:reports"))
        assert response.status_code == 200
        assert response.context["total_assets"] == 1

    def test_technician_cannot_see_reports(self, technician_client):
        response = technician_client.get(reverse("assets:reports"))
        assert response.status_code == 302

    def test_export_csv(self, admin_client, asset):
        response = admin_client.get(
            reverse("assets:reports_export"), {"format": "csv"}
        )
        assert response["Content-Type"].startswith("text/csv")
        assert "attachment" in response["Content-Disposition"]
        assert b"CUT-PROJ-001" in response.content
        assert AuditLog.objects.filter(action="report_exported").exists()

    def test_export_xlsx(self, admin_client, asset):
        response = admin_client.get(reverse("assets:reports_export"))
        assert response["Content-Disposition"].endswith('.xlsx"')

    def test_create_category(self, admin_client):
        response = admin_client.post(
            reverse("assets:category_create"),
            {
                "name": "Microphone",
                "slug": "microphone",
                "code_prefix": "mic",
                "is_active": "on",
            },
        )
        assert response.status_code == 302
        assert Category.objects.get(slug="microphone").code_prefix == "MIC"

    def test_toggle_category(self, admin_client, category):
        admin_client.post(
            reverse("assets:category_toggle", args=[category.pk])
        )
        category.refresh_from_db()
        assert not category.is_active

    def test_audit_log_filters(self, admin_client, staff_user):
        AuditLog.objects.create(user=staff_user, action="asset_issued")
        AuditLog.objects.create(
            user=staff_user, action="login_rejected", severity="high"
        )
        response = admin_client.get(
            reverse("assets:audit_log"), {"severity": "high"}
        )
        assert [e.action for e in response.context["page_obj"]] == [
            "login_rejected"
        ]

    def test_audit_log_ignores_bad_day_range(self, admin_client):
        response = admin_client.get(
            reverse("assets:audit_log"), {"days": "abc"}
        )
        assert response.context["current_days"] == 7

    def test_staff_browses_register_read_only(self, staff_client):
        AssetFactory()
        response = staff_client.get(reverse("assets:asset_list"))
        assert response.status_code == 200
        assert not response.context["can_manage"]
