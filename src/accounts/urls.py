"""URL configuration for accounts app."""

from django.urls import path

from . import views

app_name = "accounts"

urlpatterns = [
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    path("oauth/google/", views.oauth_start_view, name="oauth_start"),
    path(
        "oauth/google/callback/",
        views.oauth_callback_view,
        name="oauth_callback",
    ),
    path("profile/", views.profile_view, name="profile"),
    path("profile/edit/", views.profile_edit_view, name="profile_edit"),
    path(
        "password/change/",
        views.password_change_view,
        name="password_change",
    ),
    # User management (admin)
    path("users/", views.user_list_view, name="user_list"),
    path(
        "users/<int:profile_pk>/edit/",
        views.user_edit_view,
        name="user_edit",
    ),
    path(
        "users/<int:profile_pk>/deactivate/",
        views.user_deactivate_view,
        name="user_deactivate",
    ),
]
