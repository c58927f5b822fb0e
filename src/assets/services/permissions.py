"""Role checks for views and workflows."""

from functools import wraps

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect

from accounts.models import Role
from accounts.profiles import ensure_profile

User = get_user_model()

MANAGER_ROLES = (Role.ADMIN, Role.TECHNICIAN)


def get_user_role(user: User) -> Role | None:
    """Return the user's role, or None for anonymous users.

    Superusers are always admins regardless of their profile row.
    """
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return Role.ADMIN
    return Role(ensure_profile(user).role)


def is_admin(user: User) -> bool:
    return get_user_role(user) == Role.ADMIN


def can_manage_assets(user: User) -> bool:
    """Register, edit, issue and return any asset."""
    return get_user_role(user) in MANAGER_ROLES


def can_return_issue(user: User, issue) -> bool:
    """Managers return any issue; holders return their own."""
    if can_manage_assets(user):
        return True
    return user.is_authenticated and issue.issued_to_id == user.pk


def role_required(*roles):
    """Redirect to the dashboard unless the user has one of ``roles``.

    Implies ``login_required``.
    """
    allowed = tuple(Role(r) for r in roles)

    def decorator(view_func):
        @login_required
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if get_user_role(request.user) not in allowed:
                messages.error(
                    request, "You do not have permission to view that page."
                )
                return redirect("assets:dashboard")
            return view_func(request, *args, **kwargs)

        return _wrapped

    return decorator


admin_required = role_required(Role.ADMIN)
manager_required = role_required(Role.ADMIN, Role.TECHNICIAN)
