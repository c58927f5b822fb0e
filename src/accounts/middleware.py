"""Request middleware for the institution domain gate and profile injection."""

import logging

from django.contrib import messages
from django.contrib.auth import logout

from .profiles import ensure_profile, institution_domain, is_institution_email

logger = logging.getLogger(__name__)


def domain_rejection_message():
    return (
        f"Access denied. Only @{institution_domain()} accounts can "
        f"access this system."
    )


class InstitutionDomainMiddleware:
    """Sign out any authenticated session whose email is outside the domain.

    Sign-in already refuses such accounts; this catches sessions that
    predate a domain change or were created through the admin.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, "user", None)
        if (
            user is not None
            and user.is_authenticated
            and not is_institution_email(user.email)
        ):
            from assets.services.audit import record_event

            logger.warning(
                "Signing out %s: email outside institution domain",
                user.email,
            )
            record_event(
                user,
                "login_rejected",
                resource="session",
                details=f"Session revoked for {user.email}",
                severity="high",
                request=request,
            )
            logout(request)
            messages.error(request, domain_rejection_message())
        return self.get_response(request)


class ProfileMiddleware:
    """Attach ``request.profile`` (or None for anonymous users)."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            request.profile = ensure_profile(user)
        else:
            request.profile = None
        return self.get_response(request)
