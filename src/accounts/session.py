"""Session helpers: the single entry point for establishing a sign-in."""

import logging

from django.contrib.auth import login

from .middleware import domain_rejection_message
from .profiles import ensure_profile, is_institution_email

logger = logging.getLogger(__name__)

BACKEND = "accounts.backends.EmailOrUsernameBackend"


class DomainRejected(Exception):
    """The authenticated account is outside the institution domain."""

    def __init__(self, email):
        self.email = email
        super().__init__(domain_rejection_message())


def current_profile(request):
    """Return the profile of the signed-in user, or None."""
    profile = getattr(request, "profile", None)
    if profile is not None:
        return profile
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    request.profile = ensure_profile(user)
    return request.profile


def sign_in(request, user, metadata=None, method="password"):
    """Check the domain, then attach ``user`` to the session.

    The domain is checked before ``login()`` so a rejected account never
    holds a session. Raises :class:`DomainRejected` on mismatch.
    """
    from assets.services.audit import record_event

    if not is_institution_email(user.email):
        logger.warning(
            "Rejected %s sign-in for %s: outside institution domain",
            method,
            user.email,
        )
        request.session.flush()
        record_event(
            None,
            "login_rejected",
            resource="session",
            details=f"{method} sign-in refused for {user.email}",
            severity="high",
            request=request,
        )
        raise DomainRejected(user.email)

    login(request, user, backend=BACKEND)
    profile = ensure_profile(user, metadata)
    request.profile = profile
    record_event(
        user,
        "login",
        resource="session",
        details=f"{method} sign-in",
        request=request,
    )
    logger.info("%s signed in via %s", user.email, method)
    return profile
