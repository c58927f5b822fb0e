"""Profile bootstrap and institution domain checks."""

import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from .models import Profile, Role

logger = logging.getLogger(__name__)


def institution_domain() -> str:
    return settings.INSTITUTION_EMAIL_DOMAIN.lower().lstrip("@")


def is_institution_email(email: str) -> bool:
    """Return True if the email belongs to the institution's domain.

    Only an exact domain match counts; subdomains and look-alike
    suffixes (``evilcut.ac.zw``) are rejected.
    """
    if not email or "@" not in email:
        return False
    _, _, domain = email.strip().rpartition("@")
    return domain.lower() == institution_domain()


def default_full_name(user, metadata=None) -> str:
    """Full name from OAuth metadata, else the email local part."""
    metadata = metadata or {}
    name = (metadata.get("full_name") or metadata.get("name") or "").strip()
    if name:
        return name
    full = user.get_full_name() if hasattr(user, "get_full_name") else ""
    if full:
        return full
    if user.email:
        return user.email.split("@")[0]
    return "User"


def default_role() -> str:
    role = getattr(settings, "DEFAULT_PROFILE_ROLE", Role.STAFF)
    if role not in Role.values:
        logger.warning(
            "DEFAULT_PROFILE_ROLE=%r is not a valid role; using staff", role
        )
        return Role.STAFF
    return role


def ensure_profile(user, metadata=None) -> Profile:
    """Return the user's profile, creating it with the default role.

    Two concurrent first logins can both miss the profile; the loser of
    the insert race re-reads the row the winner created.
    """
    try:
        return Profile.objects.select_related("department").get(user=user)
    except Profile.DoesNotExist:
        pass

    try:
        with transaction.atomic():
            profile = Profile.objects.create(
                user=user,
                full_name=default_full_name(user, metadata),
                role=default_role(),
            )
    except IntegrityError:
        return Profile.objects.get(user=user)

    logger.info(
        "Created profile for %s with role %s", user.email, profile.role
    )
    # Keep the cached reverse relation in sync for this request
    user.profile = profile
    return profile
