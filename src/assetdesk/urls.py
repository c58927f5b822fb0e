"""URL configuration for the AssetDesk project."""

from django.contrib import admin
from django.urls import include, path

from assetdesk.views import health_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("accounts/", include("accounts.urls")),
    path("health/", health_check, name="health_check"),
    path("", include("assets.urls")),
]
