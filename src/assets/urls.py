"""URL configuration for assets app."""

from django.urls import path

from . import views

app_name = "assets"

urlpatterns = [
    # Dashboard
    path("", views.dashboard, name="dashboard"),
    path("my-assets/", views.my_assets, name="my_assets"),
    # Assets
    path("assets/", views.asset_list, name="asset_list"),
    path("assets/register/", views.asset_create, name="asset_create"),
    path(
        "assets/generate-code/",
        views.generate_code,
        name="generate_code",
    ),
    path("assets/<int:pk>/", views.asset_detail, name="asset_detail"),
    path("assets/<int:pk>/edit/", views.asset_edit, name="asset_edit"),
    # Issue / return
    path("issue/", views.issue_create, name="issue_create"),
    path("issue/active/", views.active_issues, name="active_issues"),
    path(
        "issue/<int:pk>/return/",
        views.issue_return,
        name="issue_return",
    ),
    # Scanning
    path("scan/", views.scan_view, name="scan"),
    path("scan/lookup/", views.scan_lookup, name="scan_lookup"),
    path(
        "scan/return/<int:pk>/",
        views.quick_return,
        name="quick_return",
    ),
    # Maintenance
    path("maintenance/", views.maintenance_list, name="maintenance_list"),
    path(
        "maintenance/schedule/",
        views.maintenance_create,
        name="maintenance_create",
    ),
    path(
        "maintenance/<int:pk>/start/",
        views.maintenance_start,
        name="maintenance_start",
    ),
    path(
        "maintenance/<int:pk>/complete/",
        views.maintenance_complete,
        name="maintenance_complete",
    ),
    # Calendar
    path("calendar/", views.calendar_view, name="calendar"),
    # Reports
    path("reports/", views.reports, name="reports"),
    path("reports/export/", views.reports_export, name="reports_export"),
    # Requests
    path("requests/", views.request_list, name="request_list"),
    path("requests/new/", views.request_create, name="request_create"),
    path(
        "requests/<int:pk>/review/",
        views.request_review,
        name="request_review",
    ),
    # Settings: categories and departments
    path("settings/", views.category_list, name="category_list"),
    path(
        "settings/categories/new/",
        views.category_create,
        name="category_create",
    ),
    path(
        "settings/categories/<int:pk>/edit/",
        views.category_edit,
        name="category_edit",
    ),
    path(
        "settings/categories/<int:pk>/toggle/",
        views.category_toggle,
        name="category_toggle",
    ),
    path(
        "settings/departments/new/",
        views.department_create,
        name="department_create",
    ),
    path(
        "settings/departments/<int:pk>/edit/",
        views.department_edit,
        name="department_edit",
    ),
    path(
        "settings/departments/<int:pk>/toggle/",
        views.department_toggle,
        name="department_toggle",
    ),
    # Audit
    path("audit/", views.audit_log, name="audit_log"),
]
