# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/ferreteria/routes/products.py
"""
Product catalog routes.

Every route runs under @require_session and the "products" screen gate.
Store failures propagate to the app-wide handlers.
"""
from flask import Blueprint, request, g

from ..decorators import require_session, require_screen
from ..models import Product
from ..responses import list_payload
from ..services.products_service import (
    ProductNotFoundError,
    create_product,
    delete_product,
    list_products as list_products_service,
    update_product,
)
from ..services.reporting_service import search_products, stock_level
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "sku", "description", "category",
        "price_cents", "cost_cents", "stock", "min_stock", "supplier_id",
    },
    required_on_create={"name", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def serialize_product(product: Product) -> dict:
    row = product.to_dict()
    row["stock_level"] = stock_level(product.stock, product.min_stock)
    return row


@products_bp.get("")
@require_session
@require_screen("products")
def list_products():
    """
    List products, newest first.

    Query params:
    - search: str (optional) - case-insensitive match on name or SKU
    """
    products = search_products(list_products_service(), request.args.get("search"))
    return list_payload(serialize_product(p) for p in products)


@products_bp.post("")
@require_session
@require_screen("products")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = create_product(patch=patch, user_id=g.session_context.user_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return serialize_product(created), 201


@products_bp.route("/<int:product_id>", methods=["PUT", "PATCH"])
@require_session
@require_screen("products")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = update_product(product_id=product_id, patch=patch, user_id=g.session_context.user_id)
    except ProductNotFoundError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return serialize_product(updated)


@products_bp.delete("/<int:product_id>")
@require_session
@require_screen("products")
def delete_product_route(product_id: int):
    try:
        delete_product(product_id=product_id, user_id=g.session_context.user_id)
    except ProductNotFoundError:
        return {"error": "Product not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"deleted": product_id}
