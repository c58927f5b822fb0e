"""Authentication and user management views."""

import logging

from django_ratelimit.decorators import ratelimit

from django.contrib import messages
from django.contrib.auth import logout, update_session_auth_hash
from django.contrib.auth.decorators import login_required
from django.contrib.auth.forms import AuthenticationForm, PasswordChangeForm
from django.core.paginator import Paginator
from django.db.models import Q
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from assets.models import Department
from assets.services.audit import record_event
from assets.services.permissions import admin_required

from . import oauth
from .forms import ProfileEditForm, UserProfileAdminForm
from .middleware import domain_rejection_message
from .models import Profile, Role
from .profiles import is_institution_email
from .session import DomainRejected, current_profile, sign_in

logger = logging.getLogger(__name__)


def _safe_next(request, default="assets:dashboard"):
    next_url = request.POST.get("next") or request.GET.get("next")
    if next_url and url_has_allowed_host_and_scheme(
        next_url,
        allowed_hosts={request.get_host()},
        require_https=request.is_secure(),
    ):
        return next_url
    return reverse(default)


def _login_context(form, request):
    return {
        "form": form,
        "oauth_enabled": oauth.is_configured(),
        "next": request.GET.get("next", ""),
    }


@ratelimit(key="ip", rate="5/m", method="POST", block=False)
def login_view(request):
    """Password sign-in; the domain gate runs before the session is set."""
    if request.user.is_authenticated:
        return redirect("assets:dashboard")

    if getattr(request, "limited", False):
        messages.error(
            request, "Too many login attempts. Please try again shortly."
        )
        response = render(
            request,
            "registration/login.html",
            _login_context(AuthenticationForm(), request),
            status=429,
        )
        response["Retry-After"] = "60"
        return response

    if request.method == "POST":
        form = AuthenticationForm(request, data=request.POST)
        if form.is_valid():
            try:
                sign_in(request, form.get_user(), method="password")
            except DomainRejected as exc:
                messages.error(request, str(exc))
                return render(
                    request,
                    "registration/login.html",
                    _login_context(AuthenticationForm(), request),
                )
            return redirect(_safe_next(request))
    else:
        form = AuthenticationForm()

    return render(
        request, "registration/login.html", _login_context(form, request)
    )


def logout_view(request):
    """Sign out and return to the login page."""
    if request.user.is_authenticated:
        record_event(
            request.user, "logout", resource="session", request=request
        )
    logout(request)
    messages.success(request, "You have been logged out.")
    return redirect("accounts:login")


def _oauth_redirect_uri(request):
    return request.build_absolute_uri(reverse("accounts:oauth_callback"))


def oauth_start_view(request):
    """Send the browser to the provider's consent screen."""
    if not oauth.is_configured():
        messages.error(request, "Google sign-in is not configured.")
        return redirect("accounts:login")
    return redirect(
        oauth.build_authorize_url(request, _oauth_redirect_uri(request))
    )


def oauth_callback_view(request):
    """Complete Google sign-in.

    The returned email is checked against the institution domain before
    any local account is created or a session established.
    """
    if request.GET.get("error"):
        messages.error(request, "Google sign-in was cancelled.")
        return redirect("accounts:login")

    try:
        oauth.check_state(request, request.GET.get("state", ""))
        token = oauth.exchange_code(
            request.GET.get("code", ""), _oauth_redirect_uri(request)
        )
        info = oauth.fetch_userinfo(token)
    except oauth.OAuthError as exc:
        logger.warning("OAuth sign-in failed: %s", exc)
        messages.error(request, str(exc))
        return redirect("accounts:login")

    if not is_institution_email(info["email"]):
        logger.warning(
            "Rejected OAuth sign-in for %s: outside institution domain",
            info["email"],
        )
        request.session.flush()
        record_event(
            None,
            "login_rejected",
            resource="session",
            details=f"oauth sign-in refused for {info['email']}",
            severity="high",
            request=request,
        )
        messages.error(request, domain_rejection_message())
        return redirect("accounts:login")

    user = oauth.get_or_create_user(info)
    if not user.is_active:
        messages.error(request, "Your account has been deactivated.")
        return redirect("accounts:login")

    try:
        sign_in(request, user, metadata=info, method="oauth")
    except DomainRejected as exc:
        messages.error(request, str(exc))
        return redirect("accounts:login")
    return redirect("assets:dashboard")


@login_required
def profile_view(request):
    """Display the signed-in user's profile and current holdings."""
    profile = current_profile(request)
    active_issues = (
        request.user.received_issues.filter(status="active")
        .select_related("asset", "asset__category")
        .order_by("expected_return_date")
    )
    return render(
        request,
        "accounts/profile.html",
        {
            "profile": profile,
            "active_issues": active_issues,
        },
    )


@login_required
def profile_edit_view(request):
    """Edit name, phone and department. Role is admin-managed."""
    profile = current_profile(request)
    if request.method == "POST":
        form = ProfileEditForm(request.POST, instance=profile)
        if form.is_valid():
            form.save()
            messages.success(request, "Profile updated successfully.")
            return redirect("accounts:profile")
    else:
        form = ProfileEditForm(instance=profile)
    return render(request, "accounts/profile_edit.html", {"form": form})


@login_required
def password_change_view(request):
    """Change current user's password."""
    if not request.user.has_usable_password():
        messages.info(
            request, "Your account signs in with Google; it has no password."
        )
        return redirect("accounts:profile")
    if request.method == "POST":
        form = PasswordChangeForm(request.user, request.POST)
        if form.is_valid():
            user = form.save()
            update_session_auth_hash(request, user)
            messages.success(request, "Your password has been changed.")
            return redirect("accounts:profile")
    else:
        form = PasswordChangeForm(request.user)
    return render(request, "accounts/password_change.html", {"form": form})


@admin_required
def user_list_view(request):
    """List profiles with role, department and text filters."""
    profiles = Profile.objects.select_related("user", "department")

    q = request.GET.get("q", "").strip()
    role = request.GET.get("role", "")
    department = request.GET.get("department", "")

    if q:
        profiles = profiles.filter(
            Q(full_name__icontains=q)
            | Q(user__email__icontains=q)
            | Q(user__username__icontains=q)
        )
    if role in Role.values:
        profiles = profiles.filter(role=role)
    if department.isdigit():
        profiles = profiles.filter(department_id=department)

    paginator = Paginator(profiles.order_by("full_name"), 25)
    page_obj = paginator.get_page(request.GET.get("page"))

    return render(
        request,
        "accounts/user_list.html",
        {
            "page_obj": page_obj,
            "profiles": page_obj,
            "is_paginated": page_obj.has_other_pages(),
            "roles": Role.choices,
            "departments": Department.objects.filter(is_active=True),
            "q": q,
            "selected_role": role,
            "selected_department": department,
            "role_counts": [
                (label, Profile.objects.filter(role=value).count())
                for value, label in Role.choices
            ],
        },
    )


@admin_required
def user_edit_view(request, profile_pk):
    """Change another user's role, department, name or active flag."""
    profile = get_object_or_404(
        Profile.objects.select_related("user"), pk=profile_pk
    )
    if request.method == "POST":
        form = UserProfileAdminForm(request.POST, instance=profile)
        if form.is_valid():
            is_self = profile.user_id == request.user.pk
            if is_self and (
                form.cleaned_data["role"] != Role.ADMIN
                or not form.cleaned_data["is_active"]
            ):
                messages.error(
                    request,
                    "You cannot remove your own admin role or deactivate "
                    "yourself.",
                )
                return redirect("accounts:user_edit", profile_pk=profile.pk)
            old_role = Profile.objects.get(pk=profile.pk).role
            form.save()
            record_event(
                request.user,
                "user_updated",
                resource="profile",
                resource_id=profile.pk,
                details=(
                    f"{profile.email}: role {old_role} -> {profile.role}"
                ),
                severity="medium" if old_role != profile.role else "low",
                request=request,
            )
            messages.success(
                request, f"{profile.full_name or profile.email} updated."
            )
            return redirect("accounts:user_list")
    else:
        form = UserProfileAdminForm(instance=profile)
    return render(
        request,
        "accounts/user_edit.html",
        {"form": form, "target": profile},
    )


@admin_required
@require_POST
def user_deactivate_view(request, profile_pk):
    """Deactivate a user. Their history stays intact."""
    profile = get_object_or_404(
        Profile.objects.select_related("user"), pk=profile_pk
    )
    if profile.user_id == request.user.pk:
        messages.error(request, "You cannot deactivate yourself.")
        return redirect("accounts:user_list")
    user = profile.user
    user.is_active = False
    user.save(update_fields=["is_active"])
    record_event(
        request.user,
        "user_deactivated",
        resource="profile",
        resource_id=profile.pk,
        details=profile.email,
        severity="medium",
        request=request,
    )
    messages.success(
        request, f"{profile.full_name or profile.email} has been deactivated."
    )
    return redirect("accounts:user_list")
