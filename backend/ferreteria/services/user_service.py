# Overview: Service-layer operations for user profiles and roles.

"""
User profiles and roles

Credentials are owned by the identity provider; here a user is a name, an
email and a role. Removing a role keeps the profile (and its history in the
action log) but closes every screen to it.
"""

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..permissions import ROLES
from ..validation import ConflictError, ValidationError
from ferreteria.time_utils import utcnow
from .audit_service import log_action
from .store_guard import store_read, store_write


class UserNotFoundError(LookupError):
    pass


def _check_role(role: str | None) -> None:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")


def list_users() -> list[User]:
    with store_read("list users"):
        return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def count_users() -> int:
    with store_read("count users"):
        return db.session.query(User).count()


def get_user(user_id: int) -> User:
    with store_read("get user"):
        user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def create_user(*, full_name: str, email: str, role: str, actor_user_id: int | None) -> User:
    _check_role(role)
    email = email.strip().lower()
    with store_read("check email"):
        taken = db.session.query(User.id).filter(User.email == email).first() is not None
    if taken:
        raise ConflictError(f"Email already registered: {email}")

    user = User(full_name=full_name, email=email, role=role, is_active=True, created_at=utcnow())
    with store_write("create user"):
        db.session.add(user)
        db.session.flush()
        log_action(
            user_id=actor_user_id,
            action="Crear usuario",
            entity_type="user",
            entity_id=user.id,
            details={"email": email, "role": role},
        )
        db.session.commit()
    return user


def set_role(*, user_id: int, role: str, actor_user_id: int | None) -> User:
    _check_role(role)
    user = get_user(user_id)
    with store_write("set user role"):
        previous = user.role
        user.role = role
        log_action(
            user_id=actor_user_id,
            action="Cambiar rol",
            entity_type="user",
            entity_id=user.id,
            details={"from": previous, "to": role},
        )
        db.session.commit()
    return user


def remove_role(*, user_id: int, actor_user_id: int | None) -> User:
    user = get_user(user_id)
    if user.id == actor_user_id:
        raise ConflictError("Cannot remove your own role")
    with store_write("remove user role"):
        previous = user.role
        user.role = None
        log_action(
            user_id=actor_user_id,
            action="Eliminar rol",
            entity_type="user",
            entity_id=user.id,
            details={"from": previous},
        )
        db.session.commit()
    return user
