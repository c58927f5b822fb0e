"""Forms for the accounts app."""

import re

from django import forms
from django.contrib.auth.forms import UserChangeForm, UserCreationForm

from assets.models import Department

from .models import CustomUser, Profile, Role

PHONE_RE = re.compile(r"^[0-9\s\-\(\)\+]+$")


def _clean_phone(value):
    phone = (value or "").strip()
    if phone and not PHONE_RE.match(phone):
        raise forms.ValidationError(
            "Phone number may only contain digits, spaces, hyphens, "
            "parentheses, and +."
        )
    return phone


class CustomUserCreationForm(UserCreationForm):
    class Meta:
        model = CustomUser
        fields = ("username", "email", "first_name", "last_name")


class CustomUserChangeForm(UserChangeForm):
    class Meta:
        model = CustomUser
        fields = ("username", "email", "first_name", "last_name")


class ProfileEditForm(forms.ModelForm):
    """Fields a user may change on their own profile."""

    class Meta:
        model = Profile
        fields = ("full_name", "phone_number", "department")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["department"].queryset = Department.objects.filter(
            is_active=True
        )
        self.fields["full_name"].required = True

    def clean_phone_number(self):
        return _clean_phone(self.cleaned_data.get("phone_number"))


class UserProfileAdminForm(forms.ModelForm):
    """Admin edit of another user's role, department and name."""

    is_active = forms.BooleanField(required=False, label="Active")

    class Meta:
        model = Profile
        fields = ("full_name", "role", "department", "phone_number")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["department"].queryset = Department.objects.filter(
            is_active=True
        )
        self.fields["is_active"].initial = self.instance.user.is_active

    def clean_phone_number(self):
        return _clean_phone(self.cleaned_data.get("phone_number"))

    def clean_role(self):
        role = self.cleaned_data["role"]
        if role not in Role.values:
            raise forms.ValidationError("Unknown role.")
        return role

    def save(self, commit=True):
        profile = super().save(commit=commit)
        if commit:
            user = profile.user
            user.is_active = self.cleaned_data["is_active"]
            user.save(update_fields=["is_active"])
        return profile
