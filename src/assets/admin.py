"""Admin configuration for assets app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import (
    ChoicesDropdownFilter,
    RelatedDropdownFilter,
)
from unfold.decorators import display

from django.contrib import admin
from django.db.models import Count
from django.utils.html import format_html

from .models import (
    Asset,
    AssetIssue,
    AssetRequest,
    AuditLog,
    Category,
    Department,
    MaintenanceRecord,
)
from .services.codes import build_qr_code_url
from .services.issues import is_overdue

STATUS_LABELS = {
    "available": "success",
    "issued": "warning",
    "maintenance": "info",
    "retired": "default",
}


class AssetIssueInline(TabularInline):
    model = AssetIssue
    fk_name = "asset"
    extra = 0
    can_delete = False
    fields = [
        "issued_to",
        "issue_date",
        "expected_return_date",
        "actual_return_date",
        "status",
        "return_condition",
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class MaintenanceInline(TabularInline):
    model = MaintenanceRecord
    extra = 0
    fields = [
        "maintenance_type",
        "status",
        "scheduled_date",
        "completed_date",
        "technician",
        "cost",
    ]


@admin.register(Department)
class DepartmentAdmin(ModelAdmin):
    list_display = [
        "name",
        "code",
        "display_active",
        "display_user_count",
        "display_asset_count",
    ]
    list_filter = ["is_active"]
    search_fields = ["name", "code", "description"]

    def get_queryset(self, request):
        return (
            super()
            .get_queryset(request)
            .annotate(
                user_count=Count("profiles", distinct=True),
                asset_count=Count("assets", distinct=True),
            )
        )

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.is_active

    @display(description="Users", ordering="user_count")
    def display_user_count(self, obj):
        return obj.user_count

    @display(description="Assets", ordering="asset_count")
    def display_asset_count(self, obj):
        return obj.asset_count


@admin.register(Category)
class CategoryAdmin(ModelAdmin):
    list_display = ["name", "slug", "code_prefix", "display_asset_count"]
    list_filter = ["is_active"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ["name"]}

    def get_queryset(self, request):
        return (
            super().get_queryset(request).annotate(asset_count=Count("assets"))
        )

    @display(description="Assets", ordering="asset_count")
    def display_asset_count(self, obj):
        return obj.asset_count


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "display_status",
        "category",
        "department",
        "condition",
        "updated_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("condition", ChoicesDropdownFilter),
        ("category", RelatedDropdownFilter),
        ("department", RelatedDropdownFilter),
    ]
    list_filter_submit = True
    search_fields = ["asset_code", "name", "serial_number", "brand", "model"]
    readonly_fields = [
        "qr_code_preview",
        "created_by",
        "created_at",
        "updated_at",
    ]
    autocomplete_fields = ["category", "department"]
    inlines = [AssetIssueInline, MaintenanceInline]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "asset_code",
                    "name",
                    "category",
                    "department",
                    "status",
                    "condition",
                    "location",
                    "description",
                )
            },
        ),
        (
            "Purchase",
            {
                "fields": (
                    "brand",
                    "model",
                    "serial_number",
                    "purchase_date",
                    "purchase_price",
                    "warranty_expiry",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "QR Code",
            {
                "fields": ("qr_code_url", "qr_code_preview"),
                "classes": ["tab"],
            },
        ),
        (
            "Tracking",
            {
                "fields": ("created_by", "created_at", "updated_at"),
                "classes": ["tab"],
            },
        ),
    )

    @display(description="Asset", header=True, ordering="asset_code")
    def display_header(self, obj):
        return obj.name, obj.asset_code

    @display(description="Status", label=STATUS_LABELS)
    def display_status(self, obj):
        return obj.status

    @display(description="QR")
    def qr_code_preview(self, obj):
        if not obj.asset_code:
            return "-"
        return format_html(
            '<img src="{}" alt="{}" width="120" height="120">',
            obj.qr_code_url or build_qr_code_url(obj.asset_code),
            obj.asset_code,
        )

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        if not obj.qr_code_url or "asset_code" in form.changed_data:
            obj.qr_code_url = build_qr_code_url(obj.asset_code.upper())
        super().save_model(request, obj, form, change)

    def has_delete_permission(self, request, obj=None):
        # Assets are retired, never deleted
        return False


@admin.register(AssetIssue)
class AssetIssueAdmin(ModelAdmin):
    list_display = [
        "asset",
        "issued_to",
        "issue_date",
        "expected_return_date",
        "display_status",
        "display_overdue",
    ]
    list_filter = [("status", ChoicesDropdownFilter)]
    search_fields = ["asset__asset_code", "asset__name", "issued_to__email"]
    date_hierarchy = "issue_date"
    readonly_fields = [
        "asset",
        "issued_to",
        "issued_by",
        "issue_date",
        "actual_return_date",
        "status",
        "returned_by",
        "return_condition",
    ]

    @display(
        description="Status",
        label={"active": "warning", "returned": "success"},
    )
    def display_status(self, obj):
        return obj.status

    @display(description="Overdue", boolean=True)
    def display_overdue(self, obj):
        return is_overdue(obj)

    def has_add_permission(self, request):
        # Issues go through the workflow so the asset status stays in step
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(MaintenanceRecord)
class MaintenanceRecordAdmin(ModelAdmin):
    list_display = [
        "asset",
        "maintenance_type",
        "display_status",
        "scheduled_date",
        "completed_date",
        "technician",
        "cost",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("maintenance_type", ChoicesDropdownFilter),
    ]
    search_fields = ["asset__asset_code", "description"]
    autocomplete_fields = ["asset"]

    @display(
        description="Status",
        label={
            "scheduled": "info",
            "in_progress": "warning",
            "completed": "success",
        },
    )
    def display_status(self, obj):
        return obj.status


@admin.register(AssetRequest)
class AssetRequestAdmin(ModelAdmin):
    list_display = [
        "requester",
        "category",
        "requested_date",
        "expected_return_date",
        "priority",
        "display_status",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("priority", ChoicesDropdownFilter),
        ("category", RelatedDropdownFilter),
    ]
    search_fields = ["requester__email", "purpose"]
    readonly_fields = ["reviewed_by", "reviewed_at"]

    @display(
        description="Status",
        label={
            "pending": "info",
            "approved": "success",
            "rejected": "danger",
            "fulfilled": "default",
        },
    )
    def display_status(self, obj):
        return obj.status


@admin.register(AuditLog)
class AuditLogAdmin(ModelAdmin):
    list_display = [
        "timestamp",
        "user",
        "action",
        "resource",
        "display_severity",
        "ip_address",
    ]
    list_filter = [("severity", ChoicesDropdownFilter), "action"]
    search_fields = ["action", "details", "user__email"]
    date_hierarchy = "timestamp"

    @display(
        description="Severity",
        label={
            "low": "default",
            "medium": "info",
            "high": "warning",
            "critical": "danger",
        },
    )
    def display_severity(self, obj):
        return obj.severity

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
