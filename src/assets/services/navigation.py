"""Role to dashboard and menu lookup.

Navigation only decides what is shown. Pages enforce access with
:func:`assets.services.permissions.role_required`.
"""

from django.urls import reverse

from accounts.models import Role

DASHBOARD_TEMPLATES = {
    Role.ADMIN: "assets/dashboard/admin.html",
    Role.TECHNICIAN: "assets/dashboard/technician.html",
    Role.STAFF: "assets/dashboard/staff.html",
}

# (label, url name, icon)
_COMMON_HEAD = [("Dashboard", "assets:dashboard", "dashboard")]
_COMMON_TAIL = [("Calendar", "assets:calendar", "calendar_month")]

NAVIGATION = {
    Role.ADMIN: [
        ("Asset Management", "assets:asset_list", "inventory_2"),
        ("Users", "accounts:user_list", "group"),
        ("Reports", "assets:reports", "bar_chart"),
        ("Settings", "assets:category_list", "settings"),
        ("Audit Log", "assets:audit_log", "history"),
    ],
    Role.TECHNICIAN: [
        ("Quick Scan", "assets:scan", "qr_code_scanner"),
        ("Issue", "assets:issue_create", "outbox"),
        ("Active Issues", "assets:active_issues", "assignment"),
        ("Maintenance", "assets:maintenance_list", "build"),
        ("Requests", "assets:request_list", "list_alt"),
    ],
    Role.STAFF: [
        ("Request Asset", "assets:request_create", "add_box"),
        ("My Assets", "assets:my_assets", "inventory"),
        ("Browse Assets", "assets:asset_list", "search"),
        ("My Requests", "assets:request_list", "list_alt"),
    ],
}

_missing = (set(Role) - set(DASHBOARD_TEMPLATES)) | (
    set(Role) - set(NAVIGATION)
)
if _missing:
    raise RuntimeError(
        f"Navigation is not defined for role(s): "
        f"{', '.join(sorted(_missing))}"
    )


def dashboard_template(role) -> str:
    return DASHBOARD_TEMPLATES[Role(role)]


def navigation_for(role, current_path=""):
    """Menu entries for a role as dicts with label, url, icon, active."""
    items = _COMMON_HEAD + NAVIGATION[Role(role)] + _COMMON_TAIL
    menu = []
    for label, url_name, icon in items:
        url = reverse(url_name)
        menu.append(
            {
                "label": label,
                "url": url,
                "icon": icon,
                "active": bool(current_path) and current_path == url,
            }
        )
    return menu
