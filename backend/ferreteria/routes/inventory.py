# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

# backend/ferreteria/routes/inventory.py
from flask import Blueprint, request, g

from ..decorators import require_session, require_screen
from ..models import InventoryMovement
from ..responses import list_payload
from ..services.inventory_service import inventory_overview, list_movements, register_entry
from ..services.products_service import ProductNotFoundError
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inventory_entry,
    validate_payload,
)
from .products import serialize_product

ENTRY_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "note"},
    required_on_create={"product_id", "quantity"},
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_session
@require_screen("inventory")
def inventory_list():
    products = inventory_overview(request.args.get("search"))
    return list_payload(serialize_product(p) for p in products)


@inventory_bp.post("/entries")
@require_session
@require_screen("inventory")
def create_entry():
    """
    Receive stock for one product.

    Body: {"product_id": int, "quantity": int > 0, "note": str?}
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=InventoryMovement, payload=payload, policy=ENTRY_POLICY, partial=False)
        enforce_rules_inventory_entry(patch)
        movement = register_entry(
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            note=patch.get("note"),
            user_id=g.session_context.user_id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ProductNotFoundError:
        return {"error": "Product not found"}, 404

    return {
        "movement": movement.to_dict(),
        "product": serialize_product(movement.product),
    }, 201


@inventory_bp.get("/movements")
@require_session
@require_screen("inventory")
def movements():
    product_id = request.args.get("product_id", type=int)
    rows = list_movements(product_id=product_id)
    return list_payload(m.to_dict() for m in rows)
