# Overview: Flask API routes for alerts; parses input and returns JSON responses.

# backend/ferreteria/routes/alerts.py
from flask import Blueprint, request

from ..decorators import require_session, require_screen
from ..responses import list_payload
from ..services.alert_service import AlertNotFoundError, delete_alert, list_alerts, mark_read

alerts_bp = Blueprint("alerts", __name__, url_prefix="/api/alerts")


@alerts_bp.get("")
@require_session
@require_screen("alerts")
def alerts_list():
    unread_only = request.args.get("unread", "").lower() in ("1", "true", "yes")
    return list_payload(a.to_dict() for a in list_alerts(unread_only=unread_only))


@alerts_bp.patch("/<int:alert_id>/read")
@require_session
@require_screen("alerts")
def alert_read(alert_id: int):
    try:
        alert = mark_read(alert_id)
    except AlertNotFoundError:
        return {"error": "Alert not found"}, 404
    return alert.to_dict()


@alerts_bp.delete("/<int:alert_id>")
@require_session
@require_screen("alerts")
def alert_delete(alert_id: int):
    try:
        delete_alert(alert_id)
    except AlertNotFoundError:
        return {"error": "Alert not found"}, 404
    return {"deleted": alert_id}
