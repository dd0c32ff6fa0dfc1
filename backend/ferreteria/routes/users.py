# Overview: Flask API routes for user profiles and roles; parses input and returns JSON responses.

# backend/ferreteria/routes/users.py
"""
User management routes (manager only, through the "users" screen).

Creating a user here registers the profile and role; the identity provider
owns credentials.
"""
from flask import Blueprint, request, g

from ..decorators import require_session, require_screen
from ..permissions import screens_for
from ..responses import list_payload
from ..services.user_service import (
    UserNotFoundError,
    create_user,
    list_users,
    remove_role,
    set_role,
)
from ..validation import ConflictError, ValidationError

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def serialize_user(user) -> dict:
    row = user.to_dict()
    row["screens"] = [s["screen"] for s in screens_for(user.role)]
    return row


@users_bp.get("")
@require_session
@require_screen("users")
def users_list():
    return list_payload(serialize_user(u) for u in list_users())


@users_bp.post("")
@require_session
@require_screen("users")
def create_user_route():
    payload = request.get_json(silent=True) or {}
    full_name = (payload.get("full_name") or "").strip()
    email = (payload.get("email") or "").strip()
    if not full_name or not email:
        return {"error": "full_name and email are required"}, 400
    if "@" not in email:
        return {"error": "email must be a valid address"}, 400

    try:
        user = create_user(
            full_name=full_name,
            email=email,
            role=payload.get("role"),
            actor_user_id=g.session_context.user_id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return serialize_user(user), 201


@users_bp.patch("/<int:user_id>/role")
@require_session
@require_screen("users")
def change_role(user_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        user = set_role(user_id=user_id, role=payload.get("role"), actor_user_id=g.session_context.user_id)
    except UserNotFoundError:
        return {"error": "User not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    return serialize_user(user)


@users_bp.delete("/<int:user_id>/role")
@require_session
@require_screen("users")
def delete_role(user_id: int):
    try:
        user = remove_role(user_id=user_id, actor_user_id=g.session_context.user_id)
    except UserNotFoundError:
        return {"error": "User not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return serialize_user(user)
