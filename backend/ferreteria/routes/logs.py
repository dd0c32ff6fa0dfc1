# Overview: Flask API routes for the action log; parses input and returns JSON responses.

# backend/ferreteria/routes/logs.py
from flask import Blueprint, request

from ..decorators import require_session, require_screen
from ..responses import list_payload
from ..services.audit_service import list_actions

logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.get("")
@require_session
@require_screen("logs")
def logs_list():
    """
    Query params (optional):
    - limit: int, 1..500 (default 100)
    - entity_type: e.g. "sale", "product"
    """
    limit = request.args.get("limit", default=100, type=int)
    entries = list_actions(limit=limit, entity_type=request.args.get("entity_type"))
    return list_payload(e.to_dict() for e in entries)
