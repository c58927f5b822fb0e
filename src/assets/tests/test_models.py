"""Tests for asset models and their database constraints."""

import datetime

import pytest

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from assets.factories import AssetFactory, AssetIssueFactory
from assets.models import (
    AssetIssue,
    AuditLog,
    Category,
    Department,
    MaintenanceRecord,
)


class TestDepartmentAndCategory:
    def test_department_code_upper_cased(self, db):
        dept = Department.objects.create(name="Engineering", code=" eng ")
        assert dept.code == "ENG"

    def test_category_prefix_upper_cased(self, db):
        cat = Category.objects.create(
            name="Scanner", slug="scanner", code_prefix="scan"
        )
        assert cat.code_prefix == "SCAN"


class TestAsset:
    def test_code_is_upper_cased_on_save(self, category):
        asset = AssetFactory(asset_code=" cut-proj-123 ", category=category)
        assert asset.asset_code == "CUT-PROJ-123"

    def test_blank_serial_stored_as_null(self, category):
        first = AssetFactory(serial_number="", category=category)
        second = AssetFactory(serial_number="   ", category=category)
        assert first.serial_number is None
        assert second.serial_number is None

    def test_duplicate_serial_rejected(self, asset):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                AssetFactory(serial_number=asset.serial_number)

    def test_duplicate_code_rejected(self, asset):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                AssetFactory(asset_code="cut-proj-001")

    def test_warranty_before_purchase_invalid(self, asset):
        asset.purchase_date = datetime.date(2025, 3, 1)
        asset.warranty_expiry = datetime.date(2024, 3, 1)
        with pytest.raises(ValidationError) as exc_info:
            asset.clean()
        assert "warranty_expiry" in exc_info.value.message_dict

    def test_active_issue_property(self, issued_asset, staff_user):
        assert issued_asset.active_issue.issued_to == staff_user

    def test_absolute_url(self, asset):
        assert asset.get_absolute_url() == f"/assets/{asset.pk}/"


class TestAssetIssue:
    def test_one_active_issue_per_asset(self, issued_asset):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                AssetIssueFactory(asset=issued_asset)

    def test_returned_issues_do_not_conflict(self, asset):
        AssetIssueFactory(asset=asset, status="returned")
        AssetIssueFactory(asset=asset, status="returned")
        AssetIssueFactory(asset=asset, status="active")
        assert asset.issues.count() == 3

    def test_overdue_queryset(self, issued_asset):
        issue = issued_asset.issues.get()
        due = issue.expected_return_date
        assert not AssetIssue.objects.overdue(due).exists()
        assert AssetIssue.objects.overdue(
            due + datetime.timedelta(days=1)
        ).exists()


class TestMaintenanceRecord:
    def test_open_work_past_schedule_is_overdue(self, asset):
        record = MaintenanceRecord(
            asset=asset,
            description="Lamp replacement",
            scheduled_date=datetime.date(2026, 1, 10),
        )
        assert record.is_overdue(today=datetime.date(2026, 1, 11))
        assert not record.is_overdue(today=datetime.date(2026, 1, 10))

    def test_completed_work_never_overdue(self, asset):
        record = MaintenanceRecord(
            asset=asset,
            description="Lamp replacement",
            scheduled_date=datetime.date(2026, 1, 10),
            status="completed",
        )
        assert not record.is_overdue(today=datetime.date(2026, 6, 1))


class TestAuditLog:
    def test_entries_cannot_be_changed(self, db):
        entry = AuditLog.objects.create(action="login")
        entry.details = "tampered"
        with pytest.raises(ValidationError):
            entry.save()

    def test_entries_cannot_be_deleted(self, db):
        entry = AuditLog.objects.create(action="login")
        with pytest.raises(ValidationError):
            entry.delete()
        assert AuditLog.objects.filter(pk=entry.pk).exists()
