"""Tests for project-level views, context processors and seed data."""

import json
from unittest.mock import patch

import pytest

from django.contrib.auth.models import AnonymousUser
from django.core.management import call_command
from django.db import DatabaseError
from django.test import RequestFactory
from django.urls import reverse

from assetdesk.context_processors import site_settings, user_role
from assetdesk.views import ratelimited_view
from assets.models import Category


class TestHealthCheck:
    def test_ok(self, client, db):
        response = client.get(reverse("health_check"))
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "db": True, "cache": True}

    def test_database_down(self, client, db):
        with patch("assetdesk.views.connection") as mock_connection:
            mock_connection.ensure_connection.side_effect = DatabaseError(
                "gone"
            )
            response = client.get(reverse("health_check"))
        assert response.status_code == 503
        assert response.json()["db"] is False

    def test_cache_down_is_degraded(self, client, db):
        with patch("assetdesk.views.cache") as mock_cache:
            mock_cache.set.side_effect = ConnectionError("redis")
            response = client.get(reverse("health_check"))
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


class TestRatelimitedView:
    def test_429_with_retry_after(self):
        request = RequestFactory().get("/")
        response = ratelimited_view(request)
        assert response.status_code == 429
        assert response["Retry-After"] == "60"
        assert "error" in json.loads(response.content)


class TestContextProcessors:
    def test_site_settings(self, settings):
        settings.SITE_NAME = "AssetDesk"
        context = site_settings(RequestFactory().get("/"))
        assert context["SITE_NAME"] == "AssetDesk"
        assert context["INSTITUTION_EMAIL_DOMAIN"] == "cut.ac.zw"

    def test_anonymous(self):
        request = RequestFactory().get("/")
        request.user = AnonymousUser()
        assert user_role(request) == {
            "user_role": "anonymous",
            "can_manage": False,
            "navigation": [],
        }

    @pytest.mark.parametrize(
        "fixture,role,can_manage",
        [
            ("admin_user", "admin", True),
            ("technician_user", "technician", True),
            ("staff_user", "staff", False),
        ],
    )
    def test_signed_in(self, request, fixture, role, can_manage):
        user = request.getfixturevalue(fixture)
        http_request = RequestFactory().get("/")
        http_request.user = user
        context = user_role(http_request)
        assert context["user_role"] == role
        assert context["can_manage"] is can_manage
        assert context["navigation"][0]["label"] == "Dashboard"


class TestSeedCategories:
    def test_command_is_idempotent(self, db):
        call_command("seed_categories")
        call_command("seed_categories")
        projector = Category.objects.get(slug="projector")
        assert projector.code_prefix == "PROJ"
        assert Category.objects.filter(slug="projector").count() == 1
