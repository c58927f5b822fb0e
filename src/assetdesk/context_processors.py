"""Context processors for site-wide template variables."""

from django.conf import settings

from assets.services.navigation import navigation_for
from assets.services.permissions import MANAGER_ROLES, get_user_role


def site_settings(request):
    """Add site configuration to template context."""
    return {
        "SITE_NAME": settings.SITE_NAME,
        "INSTITUTION_NAME": settings.INSTITUTION_NAME,
        "INSTITUTION_SHORT_NAME": settings.INSTITUTION_SHORT_NAME,
        "INSTITUTION_EMAIL_DOMAIN": settings.INSTITUTION_EMAIL_DOMAIN,
    }


def user_role(request):
    """Expose the current user's role and navigation to templates."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return {
            "user_role": "anonymous",
            "can_manage": False,
            "navigation": [],
        }

    role = get_user_role(user)
    return {
        "user_role": role.value,
        "can_manage": role in MANAGER_ROLES,
        "navigation": navigation_for(role, request.path),
    }
