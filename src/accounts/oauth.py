"""Google OAuth sign-in restricted to the institution's domain."""

import logging
import secrets
import time
from urllib.parse import urlencode

import requests

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from .profiles import institution_domain

logger = logging.getLogger(__name__)

User = get_user_model()

STATE_SESSION_KEY = "oauth_state"


class OAuthError(Exception):
    """Raised when the provider does not confirm an identity."""


def is_configured() -> bool:
    return bool(settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET)


def build_authorize_url(request, redirect_uri: str) -> str:
    """Return the provider URL to send the browser to.

    A random ``state`` is stored in the session and checked on callback.
    ``hd`` asks the provider to only offer institution accounts; it is a
    hint, the callback still checks the returned email.
    """
    state = secrets.token_urlsafe(24)
    request.session[STATE_SESSION_KEY] = state
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "hd": institution_domain(),
        "prompt": "select_account",
    }
    return f"{settings.GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"


def check_state(request, state: str) -> None:
    expected = request.session.pop(STATE_SESSION_KEY, None)
    if not expected or not state or not secrets.compare_digest(
        expected, state
    ):
        raise OAuthError("Sign-in session expired. Please try again.")


def _with_network_retry(func, *args, **kwargs):
    """Call ``func`` and retry once after a short delay on network errors."""
    try:
        return func(*args, **kwargs)
    except (requests.ConnectionError, requests.Timeout) as exc:
        logger.warning("OAuth network error, retrying once: %s", exc)
        time.sleep(settings.OAUTH_RETRY_DELAY)
        return func(*args, **kwargs)


def exchange_code(code: str, redirect_uri: str) -> str:
    """Exchange an authorization code for an access token."""
    try:
        response = _with_network_retry(
            requests.post,
            settings.GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
            timeout=settings.OAUTH_REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.error("OAuth token exchange failed: %s", exc)
        raise OAuthError("Could not reach the sign-in provider.") from exc

    if response.status_code != 200:
        logger.error(
            "OAuth token exchange rejected: %s %s",
            response.status_code,
            response.text[:200],
        )
        raise OAuthError("The sign-in provider rejected the request.")

    token = response.json().get("access_token")
    if not token:
        raise OAuthError("The sign-in provider returned no access token.")
    return token


def fetch_userinfo(access_token: str) -> dict:
    """Return the provider's user info for an access token."""
    try:
        response = _with_network_retry(
            requests.get,
            settings.GOOGLE_USERINFO_URL,
            params={"alt": "json", "access_token": access_token},
            timeout=settings.OAUTH_REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.error("OAuth userinfo request failed: %s", exc)
        raise OAuthError("Could not reach the sign-in provider.") from exc

    if response.status_code != 200:
        raise OAuthError("Invalid access token.")

    info = response.json()
    email = info.get("email")
    if not email or info.get("verified_email") not in (
        True,
        "true",
        "True",
        "1",
        1,
    ):
        raise OAuthError("Your Google email address is not verified.")
    return info


def get_or_create_user(info: dict):
    """Find the user for a verified email, creating an account on miss."""
    email = info["email"].strip().lower()
    user = User.objects.filter(email__iexact=email).first()
    if user is not None:
        return user

    username = email
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=username,
                email=email,
                first_name=info.get("given_name", "")[:150],
                last_name=info.get("family_name", "")[:150],
            )
    except IntegrityError:
        return User.objects.get(email__iexact=email)

    user.set_unusable_password()
    user.save(update_fields=["password"])
    logger.info("Created user %s from OAuth sign-in", email)
    return user
