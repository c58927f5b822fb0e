"""Signal handlers for the accounts app."""

import logging

from django.contrib.auth.signals import user_login_failed
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(user_login_failed)
def log_failed_login(sender, credentials, request=None, **kwargs):
    logger.info(
        "Failed sign-in for %s", credentials.get("username", "<unknown>")
    )
