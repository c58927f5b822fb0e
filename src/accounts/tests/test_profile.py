"""Tests for profile bootstrap and the self-service profile pages."""

import pytest

from django.contrib.auth import get_user_model
from django.urls import reverse

from accounts.models import Profile
from accounts.profiles import default_full_name, ensure_profile
from assets.factories import AssetIssueFactory

User = get_user_model()


@pytest.fixture
def bare_user(db):
    return User.objects.create_user(
        username="bare", email="nyasha.banda@cut.ac.zw", password="x"
    )


class TestEnsureProfile:
    def test_creates_staff_profile_by_default(self, bare_user):
        profile = ensure_profile(bare_user)
        assert profile.role == "staff"
        assert profile.full_name == "nyasha.banda"

    def test_metadata_name_wins(self, bare_user):
        profile = ensure_profile(bare_user, {"full_name": "Nyasha Banda"})
        assert profile.full_name == "Nyasha Banda"

    def test_is_idempotent(self, bare_user):
        first = ensure_profile(bare_user)
        second = ensure_profile(bare_user, {"full_name": "Other Name"})
        assert first.pk == second.pk
        assert second.full_name == "nyasha.banda"
        assert Profile.objects.filter(user=bare_user).count() == 1

    def test_configured_default_role(self, bare_user, settings):
        settings.DEFAULT_PROFILE_ROLE = "technician"
        assert ensure_profile(bare_user).role == "technician"

    def test_invalid_default_role_falls_back_to_staff(
        self, bare_user, settings
    ):
        settings.DEFAULT_PROFILE_ROLE = "superuser"
        assert ensure_profile(bare_user).role == "staff"

    def test_full_name_from_user_names(self, db):
        user = User(
            username="u",
            email="u@cut.ac.zw",
            first_name="Rumbi",
            last_name="Zvobgo",
        )
        assert default_full_name(user) == "Rumbi Zvobgo"


class TestProfileView:
    def test_shows_profile_and_holdings(
        self, staff_client, staff_user, issued_asset
    ):
        response = staff_client.get(reverse("accounts:profile"))
        assert response.status_code == 200
        assert response.context["profile"] == staff_user.profile
        assert list(response.context["active_issues"]) == [
            issued_asset.issues.get(status="active")
        ]

    def test_returned_issues_not_listed(self, staff_client, staff_user):
        AssetIssueFactory(issued_to=staff_user, status="returned")
        response = staff_client.get(reverse("accounts:profile"))
        assert list(response.context["active_issues"]) == []


class TestProfileEdit:
    def test_updates_own_profile(self, staff_client, staff_user, department):
        response = staff_client.post(
            reverse("accounts:profile_edit"),
            {
                "full_name": "Tendai M. Moyo",
                "phone_number": "+263 77 123 4567",
                "department": department.pk,
            },
        )
        assert response.status_code == 302
        staff_user.profile.refresh_from_db()
        assert staff_user.profile.full_name == "Tendai M. Moyo"
        assert staff_user.profile.department == department

    def test_role_cannot_be_self_assigned(self, staff_client, staff_user):
        staff_client.post(
            reverse("accounts:profile_edit"),
            {"full_name": "Tendai Moyo", "phone_number": "", "role": "admin"},
        )
        staff_user.profile.refresh_from_db()
        assert staff_user.profile.role == "staff"

    def test_invalid_phone_rejected(self, staff_client, staff_user):
        response = staff_client.post(
            reverse("accounts:profile_edit"),
            {"full_name": "Tendai Moyo", "phone_number": "call me"},
        )
        assert response.status_code == 200
        assert "phone_number" in response.context["form"].errors


class TestPasswordChange:
    def test_changes_password(self, staff_client, staff_user, password):
        response = staff_client.post(
            reverse("accounts:password_change"),
            {
                "old_password": password,
                "new_password1": "N3w-secret-pass!",
                "new_password2": "N3w-secret-pass!",
            },
        )
        assert response.status_code == 302
        staff_user.refresh_from_db()
        assert staff_user.check_password("N3w-secret-pass!")

    def test_oauth_only_user_redirected(self, client, db):
        user = User.objects.create_user(
            username="googler", email="googler@cut.ac.zw"
        )
        user.set_unusable_password()
        user.save()
        client.force_login(user)
        response = client.get(reverse("accounts:password_change"))
        assert response.status_code == 302
        assert response.url == reverse("accounts:profile")
