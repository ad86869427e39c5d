"""
Session Gate: Anonymous -> Authenticating -> Authenticated(identity).

Credentials are checked by django.contrib.auth (hashed passwords in the user
table); only the state transitions and the role-bearing identity live here.
"""
import logging
from functools import wraps
from typing import NamedTuple, Optional

from django.contrib import auth
from django.contrib.auth.views import redirect_to_login
from django.core.exceptions import PermissionDenied
from django.db import models

from .exceptions import AuthError
from .models import Role

logger = logging.getLogger(__name__)

STATE_SESSION_KEY = 'gate_state'
DEFAULT_VIEW = 'landing'


class GateState(models.TextChoices):
    ANONYMOUS = 'anonymous', 'Anonymous'
    AUTHENTICATING = 'authenticating', 'Authenticating'
    AUTHENTICATED = 'authenticated', 'Authenticated'


class Identity(NamedTuple):
    name: str
    role: str

    @property
    def can_enter_data(self):
        return self.role in (Role.ADMIN, Role.OFFICER)

    @property
    def is_admin(self):
        return self.role == Role.ADMIN


def identity_for_user(user) -> Optional[Identity]:
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        name = getattr(getattr(user, 'profile', None), 'name', '') or user.get_username()
        return Identity(name=name, role=Role.ADMIN)
    profile = getattr(user, 'profile', None)
    if profile is None:
        return Identity(name=user.get_full_name() or user.get_username(), role=Role.VIEWER)
    return Identity(name=profile.name or user.get_username(), role=profile.role)


def current_identity(request) -> Optional[Identity]:
    return identity_for_user(getattr(request, 'user', None))


def gate_state(request):
    if current_identity(request) is not None:
        return GateState.AUTHENTICATED
    return GateState(request.session.get(STATE_SESSION_KEY, GateState.ANONYMOUS))


def submit_credentials(request, identifier, secret) -> Identity:
    """
    Authenticate ``identifier``/``secret`` and start a session.

    The identifier is matched case-sensitively and the secret exactly. On
    failure the gate falls back to Anonymous and AuthError is raised.
    """
    if not identifier or not secret:
        raise AuthError("Invalid credentials. Please try again.")

    request.session[STATE_SESSION_KEY] = GateState.AUTHENTICATING.value
    user = auth.authenticate(request, username=identifier, password=secret)
    # authenticate() อาจ match แบบไม่สนตัวพิมพ์ในบาง DB (เช่น MySQL) จึงเช็คซ้ำ
    if user is None or user.get_username() != identifier:
        request.session[STATE_SESSION_KEY] = GateState.ANONYMOUS.value
        logger.info("Failed login for %r", identifier)
        raise AuthError("Invalid credentials. Please try again.")

    auth.login(request, user)
    request.session[STATE_SESSION_KEY] = GateState.AUTHENTICATED.value
    identity = identity_for_user(user)
    logger.info("Login %s as %s", identifier, identity.role)
    return identity


def end_session(request):
    """Log out, drop everything held in the session, return the default view name."""
    auth.logout(request)
    return DEFAULT_VIEW


def role_required(*roles):
    """
    View decorator: anonymous users go to the login page, authenticated users
    whose role is not in ``roles`` get 403. No roles means any identity.
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            identity = current_identity(request)
            if identity is None:
                return redirect_to_login(request.get_full_path())
            if roles and identity.role not in roles:
                raise PermissionDenied(f"{identity.role} cannot access this page.")
            request.identity = identity
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator
