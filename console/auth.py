"""Authentication policies for the admin console.

The active policy is named by ``settings.CONSOLE_AUTH_POLICY`` so a test or
a deployment can swap it without touching the views.
"""
import functools
import logging

from django.conf import settings
from django.middleware.csrf import rotate_token
from django.utils.crypto import constant_time_compare
from django.utils.module_loading import import_string

from portal.errors import Unauthorized

logger = logging.getLogger(__name__)

SESSION_KEY = "console_admin"


class AdminAuthPolicy:
    def authenticate(self, username: str, password: str) -> bool:
        raise NotImplementedError

    def is_authenticated(self, request) -> bool:
        return bool(request.session.get(SESSION_KEY))

    def login(self, request, username: str) -> None:
        request.session.cycle_key()
        request.session[SESSION_KEY] = username
        rotate_token(request)

    def logout(self, request) -> None:
        request.session.flush()


class EnvCredentialPolicy(AdminAuthPolicy):
    """Single admin account configured through ``ADMIN_USERNAME`` / ``ADMIN_PASSWORD``."""

    def __init__(self, username=None, password=None):
        self.username = username if username is not None else getattr(settings, "ADMIN_USERNAME", "")
        self.password = password if password is not None else getattr(settings, "ADMIN_PASSWORD", "")

    def authenticate(self, username: str, password: str) -> bool:
        if not (self.username and self.password):
            logger.warning("Console login attempted but admin credentials are not configured")
            return False
        user_ok = constant_time_compare(username or "", self.username)
        pwd_ok = constant_time_compare(password or "", self.password)
        return user_ok and pwd_ok


def get_policy() -> AdminAuthPolicy:
    return import_string(settings.CONSOLE_AUTH_POLICY)()


def admin_required(view):
    """Raise ``Unauthorized`` unless the active policy accepts the request."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        if not get_policy().is_authenticated(request):
            raise Unauthorized()
        return view(request, *args, **kwargs)

    return wrapper
