# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/ferreteria/routes/sales.py
"""
Sales routes.

Posting errors (unknown product, bad quantity, insufficient stock, partial
adjustment) are SaleError subclasses and store failures are StoreError
subclasses; both are turned into JSON by the app-wide handlers so every
route reports them the same way.
"""
from flask import Blueprint, request, g

from ..decorators import require_session, require_screen
from ..models import Sale
from ..permissions import SALE_AUDITOR_ROLES
from ..responses import list_payload
from ..services.sales_service import (
    delete_sale,
    get_sale,
    list_sales,
    post_sale,
    update_sale_metadata,
)
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    coerce_int,
    enforce_rules_sale_metadata,
    validate_payload,
)

SALE_METADATA_POLICY = ModelValidationPolicy(
    writable_fields={"customer_name", "document_type"},
    required_on_create=set(),
)

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _include_user() -> bool:
    return g.session_context.role in SALE_AUDITOR_ROLES


@sales_bp.get("")
@require_session
@require_screen("sales")
def sales_list():
    """
    List sales, newest first.

    Query params (all optional):
    - customer: substring of the customer name, case-insensitive
    - product_id: int - sales that include this product
    - from / to: ISO-8601 date or datetime, inclusive
    """
    try:
        raw_product_id = request.args.get("product_id")
        product_id = coerce_int("product_id", raw_product_id) if raw_product_id else None
        sales = list_sales(
            customer=request.args.get("customer"),
            product_id=product_id,
            date_from=request.args.get("from"),
            date_to=request.args.get("to"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    include_user = _include_user()
    return list_payload(s.to_dict(include_user=include_user) for s in sales)


@sales_bp.post("")
@require_session
@require_screen("sales")
def create_sale():
    """
    Post a sale.

    Body:
    {
      "customer_name": str,
      "document_type": "boleta" | "factura" | "otro",
      "items": [{"product_id": int, "quantity": int}, ...]
    }
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    unknown = set(payload) - {"customer_name", "document_type", "items"}
    if unknown:
        return {"error": f"Field not allowed: {sorted(unknown)[0]}"}, 400

    try:
        sale = post_sale(
            customer_name=payload.get("customer_name"),
            document_type=payload.get("document_type"),
            items=payload.get("items"),
            user_id=g.session_context.user_id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    return sale.to_dict(include_user=_include_user()), 201


@sales_bp.get("/<int:sale_id>")
@require_session
@require_screen("sales")
def sale_detail(sale_id: int):
    return get_sale(sale_id).to_dict(include_user=_include_user())


@sales_bp.patch("/<int:sale_id>")
@require_session
@require_screen("sales")
def update_sale(sale_id: int):
    """Only customer_name and document_type of a posted sale can change."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_METADATA_POLICY, partial=True)
        enforce_rules_sale_metadata(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    sale = update_sale_metadata(sale_id=sale_id, patch=patch, user_id=g.session_context.user_id)
    return sale.to_dict(include_user=_include_user())


@sales_bp.delete("/<int:sale_id>")
@require_session
@require_screen("sales")
def remove_sale(sale_id: int):
    """Delete a sale permanently. Stock is left as it is."""
    delete_sale(sale_id=sale_id, user_id=g.session_context.user_id)
    return {"deleted": sale_id}
