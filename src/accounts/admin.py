"""Admin configuration for accounts app."""

import logging

from unfold.admin import ModelAdmin, StackedInline
from unfold.decorators import action, display

from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin

from .forms import CustomUserChangeForm, CustomUserCreationForm
from .models import CustomUser, Profile, Role

logger = logging.getLogger(__name__)


class ProfileInline(StackedInline):
    model = Profile
    can_delete = False
    fields = ("full_name", "role", "department", "phone_number")
    autocomplete_fields = ["department"]


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser
    inlines = [ProfileInline]
    list_display = [
        "display_user",
        "email",
        "display_role",
        "display_department",
        "display_active",
    ]
    list_filter = ["is_active", "is_staff", "is_superuser", "profile__role"]
    search_fields = [
        "username",
        "email",
        "first_name",
        "last_name",
        "profile__full_name",
    ]
    fieldsets = (
        (
            "Account",
            {
                "classes": ["tab"],
                "fields": (
                    "username",
                    "password",
                    "first_name",
                    "last_name",
                    "email",
                ),
            },
        ),
        (
            "Permissions",
            {
                "classes": ["tab"],
                "fields": ("is_active", "is_staff", "is_superuser"),
            },
        ),
        (
            "Activity",
            {
                "classes": ["tab"],
                "fields": ("last_login", "date_joined"),
            },
        ),
    )
    readonly_fields = ["last_login", "date_joined"]
    add_fieldsets = UserAdmin.add_fieldsets + (
        ("Additional Info", {"fields": ("email",)}),
    )
    actions = ["make_staff_role", "make_technician_role", "make_admin_role"]

    def get_queryset(self, request):
        return (
            super()
            .get_queryset(request)
            .select_related("profile", "profile__department")
        )

    @display(description="User", header=True, ordering="username")
    def display_user(self, obj):
        return obj.get_display_name(), obj.username

    @display(
        description="Role",
        label={
            Role.ADMIN: "danger",
            Role.TECHNICIAN: "warning",
            Role.STAFF: "info",
        },
    )
    def display_role(self, obj):
        profile = getattr(obj, "profile", None)
        return profile.role if profile else "-"

    @display(description="Department")
    def display_department(self, obj):
        profile = getattr(obj, "profile", None)
        if profile and profile.department:
            return profile.department.name
        return "-"

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.is_active

    def _set_role(self, request, queryset, role):
        from .profiles import ensure_profile

        count = 0
        for user in queryset:
            profile = ensure_profile(user)
            if profile.role != role:
                profile.role = role
                profile.save(update_fields=["role", "updated_at"])
                logger.info(
                    "%s set role of %s to %s via admin",
                    request.user.email,
                    user.email,
                    role,
                )
                count += 1
        messages.success(request, f"{count} user(s) updated.")

    @action(description="Set role: staff")
    def make_staff_role(self, request, queryset):
        self._set_role(request, queryset, Role.STAFF)

    @action(description="Set role: technician")
    def make_technician_role(self, request, queryset):
        self._set_role(request, queryset, Role.TECHNICIAN)

    @action(description="Set role: admin")
    def make_admin_role(self, request, queryset):
        self._set_role(request, queryset, Role.ADMIN)
