# Overview: Flask API routes for accounting records; parses input and returns JSON responses.

# backend/ferreteria/routes/accounting.py
from flask import Blueprint, request, g

from ..decorators import require_session, require_screen
from ..models import AccountingRecord
from ..responses import list_payload
from ..services.accounting_service import create_record, list_records, summary
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_accounting_record,
    validate_payload,
)

RECORD_POLICY = ModelValidationPolicy(
    writable_fields={"description", "amount_cents", "record_type", "category"},
    required_on_create={"amount_cents", "record_type"},
)

accounting_bp = Blueprint("accounting", __name__, url_prefix="/api/accounting")


@accounting_bp.get("")
@require_session
@require_screen("accounting")
def records_list():
    return list_payload(r.to_dict() for r in list_records())


@accounting_bp.get("/summary")
@require_session
@require_screen("accounting")
def records_summary():
    """Total income, total expense and balance, in cents."""
    return summary()


@accounting_bp.post("")
@require_session
@require_screen("accounting")
def create_record_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=AccountingRecord, payload=payload, policy=RECORD_POLICY, partial=False)
        enforce_rules_accounting_record(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    record = create_record(patch=patch, user_id=g.session_context.user_id)
    return record.to_dict(), 201
