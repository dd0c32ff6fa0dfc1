# Overview: Flask API routes for suppliers; parses input and returns JSON responses.

# backend/ferreteria/routes/suppliers.py
from flask import Blueprint, request, g

from ..decorators import require_session, require_screen
from ..models import Supplier
from ..responses import list_payload
from ..services.supplier_service import (
    SupplierNotFoundError,
    create_supplier,
    delete_supplier,
    list_suppliers,
    update_supplier,
)
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_supplier,
    validate_payload,
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address"},
    required_on_create={"name"},
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_session
@require_screen("suppliers")
def suppliers_list():
    """
    Query params (optional):
    - name: substring of the supplier name
    - category: only suppliers with at least one product in this category
    """
    result = list_suppliers(
        name=request.args.get("name"),
        category=request.args.get("category"),
    )
    return list_payload(result["rows"], categories=result["categories"])


@suppliers_bp.post("")
@require_session
@require_screen("suppliers")
def create_supplier_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
        enforce_rules_supplier(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    supplier = create_supplier(patch=patch, user_id=g.session_context.user_id)
    return supplier.to_dict(), 201


@suppliers_bp.route("/<int:supplier_id>", methods=["PUT", "PATCH"])
@require_session
@require_screen("suppliers")
def update_supplier_route(supplier_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
        enforce_rules_supplier(patch)
        supplier = update_supplier(supplier_id=supplier_id, patch=patch, user_id=g.session_context.user_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except SupplierNotFoundError:
        return {"error": "Supplier not found"}, 404
    return supplier.to_dict()


@suppliers_bp.delete("/<int:supplier_id>")
@require_session
@require_screen("suppliers")
def delete_supplier_route(supplier_id: int):
    try:
        delete_supplier(supplier_id=supplier_id, user_id=g.session_context.user_id)
    except SupplierNotFoundError:
        return {"error": "Supplier not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"deleted": supplier_id}
