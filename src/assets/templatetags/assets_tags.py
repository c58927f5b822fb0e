"""Template tags for the assets app."""

from django import template

register = template.Library()

STATUS_BADGES = {
    "available": "bg-green-100 text-green-800",
    "issued": "bg-amber-100 text-amber-800",
    "maintenance": "bg-blue-100 text-blue-800",
    "retired": "bg-gray-200 text-gray-700",
    "active": "bg-amber-100 text-amber-800",
    "returned": "bg-green-100 text-green-800",
    "scheduled": "bg-blue-100 text-blue-800",
    "in_progress": "bg-amber-100 text-amber-800",
    "completed": "bg-green-100 text-green-800",
    "pending": "bg-blue-100 text-blue-800",
    "approved": "bg-green-100 text-green-800",
    "rejected": "bg-red-100 text-red-800",
    "fulfilled": "bg-gray-200 text-gray-700",
}

CONDITION_BADGES = {
    "excellent": "bg-emerald-100 text-emerald-800",
    "good": "bg-green-100 text-green-800",
    "fair": "bg-yellow-100 text-yellow-800",
    "poor": "bg-orange-100 text-orange-800",
    "damaged": "bg-red-100 text-red-800",
}


@register.filter
def status_badge(value):
    """CSS classes for a status pill."""
    return STATUS_BADGES.get(value, "bg-gray-100 text-gray-700")


@register.filter
def condition_badge(value):
    return CONDITION_BADGES.get(value, "bg-gray-100 text-gray-700")


@register.filter
def humanize_status(value):
    return str(value).replace("_", " ").title()


@register.simple_tag(takes_context=True)
def query_with(context, **kwargs):
    """Current query string with some parameters replaced.

    Used by pagination links so filters survive page changes.
    """
    params = context["request"].GET.copy()
    for key, value in kwargs.items():
        if value in (None, ""):
            params.pop(key, None)
        else:
            params[key] = value
    encoded = params.urlencode()
    return f"?{encoded}" if encoded else ""
