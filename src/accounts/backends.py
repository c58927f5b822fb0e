"""Authentication backend accepting an email address or a username."""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailOrUsernameBackend(ModelBackend):
    """Password sign-in by email (case-insensitive) or exact username.

    Accounts created by Google sign-in have no usable password and never
    authenticate here.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        if not username or password is None:
            return None

        username = username.strip()
        if "@" in username:
            users = User.objects.filter(email__iexact=username)
            if users.count() != 1:
                return None
            user = users.first()
        else:
            try:
                user = User.objects.get(username=username)
            except User.DoesNotExist:
                # Run the hasher anyway to keep timing uniform
                User().set_password(password)
                return None

        if not user.has_usable_password():
            return None
        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
