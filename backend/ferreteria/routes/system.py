# Overview: Flask API routes for health and navigation; parses input and returns JSON responses.

# backend/ferreteria/routes/system.py
"""
System health and navigation endpoints.
"""

import time

from flask import Blueprint, g
from sqlalchemy import text

from ..decorators import require_session
from ..extensions import db
from ..permissions import UnknownScreenError, can_access, screens_for
from ..services.store_guard import store_read
from ferreteria.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Round-trip the store once.

    Raises ConnectivityError when it cannot be reached, which the app-wide
    handler turns into a 503.
    """
    start_time = time.time()
    with store_read("health check"):
        db.session.execute(text("SELECT 1"))
    elapsed_ms = (time.time() - start_time) * 1000
    return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}


@system_bp.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": to_utc_z(utcnow()),
        "database": check_database_health(),
    }


@system_bp.get("/api/screens")
@require_session
def my_screens():
    """Screens the current role may open, in navigation order."""
    context = g.session_context
    return {
        "user": context.user.to_dict(),
        "role": context.role,
        "screens": screens_for(context.role),
    }


@system_bp.get("/api/screens/<screen>")
@require_session
def screen_access(screen: str):
    """404 for a screen that does not exist, 403 when the role may not open it."""
    role = g.session_context.role
    try:
        allowed = can_access(role, screen)
    except UnknownScreenError:
        return {"error": "Screen not found", "screen": screen}, 404
    if not allowed:
        return {"error": "Access denied", "screen": screen, "role": role}, 403
    return {"screen": screen, "allowed": True}
