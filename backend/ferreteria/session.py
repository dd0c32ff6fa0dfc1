# Overview: Per-request session context resolved from the upstream identity header.

"""
Session context

The identity provider in front of this API authenticates the user and
forwards their id in the X-User-Id header. This module turns that id into an
explicit SessionContext carrying the user and role; handlers receive it on
flask.g and pass it on instead of reaching for global state.
"""

from __future__ import annotations

from dataclasses import dataclass

from .extensions import db
from .models import User
from .services.store_guard import store_read


USER_HEADER = "X-User-Id"


@dataclass(frozen=True)
class SessionContext:
    user: User
    role: str | None

    @property
    def user_id(self) -> int:
        return self.user.id


def resolve_session(raw_user_id: str | None) -> SessionContext | None:
    """
    Return the session for a header value, or None when it does not name an
    active user.
    """
    if not raw_user_id:
        return None
    try:
        user_id = int(raw_user_id.strip())
    except ValueError:
        return None

    with store_read("resolve session"):
        user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return SessionContext(user=user, role=user.role)
