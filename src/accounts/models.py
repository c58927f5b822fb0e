"""User and profile models for AssetDesk."""

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.TextChoices):
    """Access tier of a profile."""

    ADMIN = "admin", "Administrator"
    TECHNICIAN = "technician", "Technician"
    STAFF = "staff", "Staff"


class CustomUser(AbstractUser):
    """Authenticated identity. Email is required and unique."""

    email = models.EmailField("email address", blank=False, unique=True)

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"

    @property
    def email_domain(self):
        """Return the lower-cased part of the email after the '@'."""
        _, _, domain = (self.email or "").rpartition("@")
        return domain.lower()

    def get_display_name(self):
        """Return the profile's full name, then full name, then username."""
        profile = getattr(self, "profile", None)
        if profile is not None and profile.full_name:
            return profile.full_name
        full = self.get_full_name()
        return full if full else self.username

    def __str__(self):
        return self.get_display_name()


class Profile(models.Model):
    """Application-level record of a user: role and department."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    full_name = models.CharField(max_length=200, blank=True)
    role = models.CharField(
        max_length=20, choices=Role.choices, default=Role.STAFF
    )
    department = models.ForeignKey(
        "assets.Department",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="profiles",
    )
    phone_number = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["full_name"]
        indexes = [
            models.Index(fields=["role"], name="idx_profile_role"),
        ]

    def __str__(self):
        return f"{self.full_name or self.user.username} ({self.role})"

    @property
    def email(self):
        return self.user.email

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @property
    def can_manage_assets(self):
        """Admins and technicians register, issue and return assets."""
        return self.role in (Role.ADMIN, Role.TECHNICIAN)
