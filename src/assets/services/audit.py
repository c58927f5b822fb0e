"""Audit log writer."""

import logging

from assets.models import AuditLog

logger = logging.getLogger(__name__)


def _client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


def record_event(
    user,
    action,
    resource="",
    resource_id="",
    details="",
    severity="low",
    request=None,
):
    """Append one entry to the audit log and return it.

    ``user`` may be None for events with no signed-in actor (a refused
    sign-in, for example).
    """
    if user is not None and not user.is_authenticated:
        user = None
    entry = AuditLog(
        user=user,
        action=action,
        resource=resource,
        resource_id=str(resource_id or ""),
        details=details,
        severity=severity,
    )
    if request is not None:
        entry.ip_address = _client_ip(request)
        entry.user_agent = request.META.get("HTTP_USER_AGENT", "")[:255]
    entry.save()
    if severity in ("high", "critical"):
        logger.warning("Audit %s [%s]: %s", action, severity, details)
    return entry
