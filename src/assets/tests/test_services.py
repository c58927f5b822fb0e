"""Tests for maintenance, requests, reports, calendar and navigation."""

import datetime
from decimal import Decimal
from io import BytesIO

import openpyxl
import pytest

from django.core.exceptions import ValidationError
from django.utils import timezone

from accounts.models import Role
from assets.factories import (
    AssetFactory,
    AssetIssueFactory,
    AssetRequestFactory,
    MaintenanceRecordFactory,
    UserFactory,
)
from assets.models import AuditLog
from assets.services import asset_requests, maintenance, navigation
from assets.services.export import (
    ASSET_HEADERS,
    export_assets_csv,
    export_report_xlsx,
)
from assets.services.permissions import (
    can_manage_assets,
    can_return_issue,
    get_user_role,
    is_admin,
)
from assets.services.reports import (
    build_report,
    category_distribution,
    department_stats,
    monthly_issue_counts,
    status_counts,
)
from assets.services.schedule import adjacent_months, month_events


class TestPermissions:
    def test_roles(self, admin_user, technician_user, staff_user):
        assert get_user_role(admin_user) == Role.ADMIN
        assert get_user_role(technician_user) == Role.TECHNICIAN
        assert get_user_role(staff_user) == Role.STAFF

    def test_superuser_is_admin(self, db):
        root = UserFactory(is_superuser=True, role="staff")
        assert is_admin(root)

    def test_missing_profile_becomes_staff(self, db):
        user = UserFactory()
        assert get_user_role(user) == Role.STAFF

    def test_managers(self, admin_user, technician_user, staff_user):
        assert can_manage_assets(admin_user)
        assert can_manage_assets(technician_user)
        assert not can_manage_assets(staff_user)

    def test_holder_may_return_own_issue(
        self, active_issue, staff_user, db
    ):
        other = UserFactory(role="staff")
        assert can_return_issue(staff_user, active_issue)
        assert not can_return_issue(other, active_issue)


class TestNavigation:
    @pytest.mark.parametrize(
        "role,template",
        [
            ("admin", "assets/dashboard/admin.html"),
            ("technician", "assets/dashboard/technician.html"),
            ("staff", "assets/dashboard/staff.html"),
        ],
    )
    def test_dashboard_template(self, role, template):
        assert navigation.dashboard_template(role) == template

    def test_every_role_has_menu(self):
        for role in Role:
            labels = [i["label"] for i in navigation.navigation_for(role)]
            assert labels[0] == "Dashboard"
            assert labels[-1] == "Calendar"

    def test_staff_menu_has_no_management_pages(self):
        urls = {i["url"] for i in navigation.navigation_for("staff")}
        assert "/reports/" not in urls
        assert "/accounts/users/" not in urls

    def test_active_item(self):
        menu = navigation.navigation_for("technician", "/scan/")
        active = [i["label"] for i in menu if i["active"]]
        assert active == ["Quick Scan"]

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            navigation.navigation_for("visitor")


class TestMaintenance:
    def test_schedule(self, asset, technician_user):
        record = maintenance.schedule_maintenance(
            asset,
            technician_user,
            maintenance_type="corrective",
            description="Replace lamp",
            scheduled_date=timezone.localdate(),
        )
        assert record.status == "scheduled"
        asset.refresh_from_db()
        assert asset.status == "available"
        assert AuditLog.objects.filter(
            action="maintenance_scheduled"
        ).exists()

    def test_retired_asset_cannot_be_scheduled(self, asset, technician_user):
        asset.status = "retired"
        asset.save()
        with pytest.raises(ValidationError):
            maintenance.schedule_maintenance(
                asset,
                technician_user,
                description="Nothing",
                scheduled_date=timezone.localdate(),
            )

    def test_start_and_complete(self, asset, technician_user):
        record = MaintenanceRecordFactory(asset=asset)
        maintenance.start_maintenance(record, technician_user)
        asset.refresh_from_db()
        assert asset.status == "maintenance"
        assert record.status == "in_progress"
        assert record.technician == technician_user

        maintenance.complete_maintenance(
            record, technician_user, cost=Decimal("45.50"), notes="Done"
        )
        asset.refresh_from_db()
        assert asset.status == "available"
        assert record.status == "completed"
        assert record.completed_date == timezone.localdate()
        assert record.cost == Decimal("45.50")

    def test_issued_asset_cannot_start(self, active_issue, technician_user):
        record = MaintenanceRecordFactory(asset=active_issue.asset)
        with pytest.raises(ValidationError):
            maintenance.start_maintenance(record, technician_user)
        record.refresh_from_db()
        assert record.status == "scheduled"

    def test_complete_twice_rejected(self, asset, technician_user):
        record = MaintenanceRecordFactory(asset=asset)
        maintenance.complete_maintenance(record, technician_user)
        with pytest.raises(ValidationError):
            maintenance.complete_maintenance(record, technician_user)

    def test_overdue_listing(self, asset):
        today = timezone.localdate()
        late = MaintenanceRecordFactory(
            asset=asset, scheduled_date=today - datetime.timedelta(days=2)
        )
        MaintenanceRecordFactory(asset=asset, scheduled_date=today)
        MaintenanceRecordFactory(
            asset=asset,
            scheduled_date=today - datetime.timedelta(days=5),
            status="completed",
        )
        assert list(maintenance.overdue_maintenance(today)) == [late]


class TestAssetRequests:
    def test_submit(self, staff_user, category):
        today = timezone.localdate()
        request_obj = asset_requests.submit_request(
            staff_user,
            category=category,
            purpose="Lecture in Hall B",
            requested_date=today,
            expected_return_date=today + datetime.timedelta(days=1),
        )
        assert request_obj.status == "pending"
        assert AuditLog.objects.filter(action="request_submitted").exists()

    def test_return_before_request_rejected(self, staff_user, category):
        today = timezone.localdate()
        with pytest.raises(ValidationError):
            asset_requests.submit_request(
                staff_user,
                category=category,
                purpose="Lecture",
                requested_date=today,
                expected_return_date=today - datetime.timedelta(days=1),
            )

    def test_review_once(self, staff_user, technician_user, category):
        request_obj = AssetRequestFactory(
            requester=staff_user, category=category
        )
        asset_requests.review_request(
            request_obj, technician_user, "approved", "Collect at 9"
        )
        assert request_obj.status == "approved"
        assert request_obj.reviewed_by == technician_user
        with pytest.raises(ValidationError):
            asset_requests.review_request(
                request_obj, technician_user, "rejected"
            )

    def test_unknown_decision(self, staff_user, technician_user, category):
        request_obj = AssetRequestFactory(
            requester=staff_user, category=category
        )
        with pytest.raises(ValidationError):
            asset_requests.review_request(
                request_obj, technician_user, "maybe"
            )

    def test_fulfil_requires_approval(self, staff_user, active_issue):
        request_obj = AssetRequestFactory(requester=staff_user)
        with pytest.raises(ValidationError):
            asset_requests.fulfil_request(request_obj, active_issue)
        request_obj.status = "approved"
        request_obj.save()
        asset_requests.fulfil_request(request_obj, active_issue)
        request_obj.refresh_from_db()
        assert request_obj.status == "fulfilled"
        assert request_obj.asset == active_issue.asset


class TestReports:
    def test_status_counts_include_zeroes(self, asset):
        assert status_counts() == {
            "available": 1,
            "issued": 0,
            "maintenance": 0,
            "retired": 0,
        }

    def test_department_value_not_multiplied_by_staff(
        self, department, category
    ):
        AssetFactory(
            department=department,
            category=category,
            purchase_price=Decimal("100.00"),
        )
        AssetFactory(
            department=department,
            category=category,
            purchase_price=Decimal("50.00"),
        )
        for _ in range(3):
            user = UserFactory(role="staff")
            user.profile.department = department
            user.profile.save()
        [stats] = [d for d in department_stats() if d.pk == department.pk]
        assert stats.asset_count == 2
        assert stats.user_count == 3
        assert stats.asset_value == Decimal("150.00")

    def test_category_distribution(self, asset, issued_asset):
        rows = category_distribution()
        assert {c.name: c.percentage for c in rows} == {
            "Laptop": 50,
            "Projector": 50,
        }
        laptop = next(c for c in rows if c.name == "Laptop")
        assert laptop.issued_count == 1

    def test_monthly_counts_cover_six_months(self, active_issue):
        today = timezone.localdate()
        months = monthly_issue_counts(today)
        assert len(months) == 6
        assert months[-1]["month"] == today.replace(day=1)
        assert months[-1]["count"] == 1
        assert sum(m["count"] for m in months) == 1

    def test_build_report_counts_overdue(self, issued_asset):
        issue = issued_asset.issues.get()
        report = build_report(
            issue.expected_return_date + datetime.timedelta(days=1)
        )
        assert report["active_issues"] == 1
        assert report["overdue_issues"] == 1


class TestExport:
    def test_csv(self, asset):
        lines = export_assets_csv().strip().splitlines()
        assert lines[0].split(",") == ASSET_HEADERS
        assert lines[1].startswith("CUT-PROJ-001,Epson Projector,Projector")

    def test_xlsx_sheets(self, asset, issued_asset):
        workbook = openpyxl.load_workbook(
            BytesIO(export_report_xlsx().getvalue())
        )
        assert workbook.sheetnames == [
            "Summary",
            "Departments",
            "Categories",
            "Assets",
        ]
        rows = workbook["Assets"].iter_rows(min_row=2, values_only=True)
        assert [row[0] for row in rows] == ["CUT-LAP-010", "CUT-PROJ-001"]


class TestCalendar:
    def test_adjacent_months_wrap(self):
        assert adjacent_months(2026, 1) == ((2025, 12), (2026, 2))
        assert adjacent_months(2026, 12) == ((2026, 11), (2027, 1))

    def _events(self, weeks, day):
        for week in weeks:
            for cell in week:
                if cell["date"] == day:
                    return cell["events"]
        return None

    def test_maintenance_on_scheduled_day(self, asset):
        day = datetime.date(2026, 5, 14)
        MaintenanceRecordFactory(asset=asset, scheduled_date=day)
        weeks = month_events(2026, 5, today=day)
        events = self._events(weeks, day)
        assert [e["kind"] for e in events] == ["maintenance"]
        assert self._events(weeks, datetime.date(2026, 5, 15)) == []

    def test_issue_spans_loan_period(self, asset, staff_user):
        issue_day = timezone.make_aware(datetime.datetime(2026, 5, 10, 9))
        AssetIssueFactory(
            asset=asset,
            issued_to=staff_user,
            issue_date=issue_day,
            expected_return_date=datetime.date(2026, 5, 12),
        )
        weeks = month_events(2026, 5, today=datetime.date(2026, 5, 1))
        for day in (10, 11, 12):
            events = self._events(weeks, datetime.date(2026, 5, day))
            assert [e["kind"] for e in events] == ["issue"]
        assert self._events(weeks, datetime.date(2026, 5, 13)) == []

    def test_user_filter(self, asset, staff_user, technician_user):
        issue_day = timezone.make_aware(datetime.datetime(2026, 5, 10, 9))
        AssetIssueFactory(
            asset=asset,
            issued_to=staff_user,
            issue_date=issue_day,
            expected_return_date=datetime.date(2026, 5, 12),
        )
        weeks = month_events(
            2026, 5, user=technician_user, today=datetime.date(2026, 5, 1)
        )
        assert self._events(weeks, datetime.date(2026, 5, 10)) == []

    def test_cells_outside_month_are_empty(self, db):
        weeks = month_events(2026, 5, today=datetime.date(2026, 5, 1))
        assert weeks[0][0]["date"] is None
        assert all(len(week) == 7 for week in weeks)
