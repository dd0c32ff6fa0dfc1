# backend/ferreteria/services/products_service.py
"""
Products Service

The catalog is small, so reads return the whole table; screens filter the
snapshot with reporting_service. Every write appends an action log entry in
the same transaction.
"""
from __future__ import annotations

from ..extensions import db
from ..models import InventoryMovement, Product, Supplier
from ..validation import ConflictError, ValidationError
from .audit_service import log_action
from .store_guard import store_read, store_write
from ferreteria.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "name", "sku", "description", "category",
    "price_cents", "cost_cents", "stock", "min_stock", "supplier_id",
}


class ProductNotFoundError(LookupError):
    pass


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products() -> list[Product]:
    """
    Full current product table, newest first.

    Raises ConnectivityError when the store is unreachable, QueryError for
    any other store fault.
    """
    with store_read("list products"):
        return (
            db.session.query(Product)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )


def get_product(product_id: int) -> Product:
    with store_read("get product"):
        product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def _check_supplier(patch: dict) -> None:
    supplier_id = patch.get("supplier_id")
    if supplier_id is None:
        return
    with store_read("check supplier"):
        exists = db.session.get(Supplier, supplier_id) is not None
    if not exists:
        raise ValidationError("supplier_id does not exist")


def _check_sku_unique(sku: str | None, product_id: int | None = None) -> None:
    if not sku:
        return
    with store_read("check sku"):
        query = db.session.query(Product.id).filter(Product.sku == sku)
        if product_id is not None:
            query = query.filter(Product.id != product_id)
        taken = query.first() is not None
    if taken:
        raise ConflictError(f"SKU already exists: {sku}")


def create_product(*, patch: dict, user_id: int | None) -> Product:
    """
    Create product from a validated patch dict.

    Raises ConflictError if the SKU is taken, ValidationError if the supplier
    does not exist.
    """
    _check_supplier(patch)
    _check_sku_unique(patch.get("sku"))

    now = utcnow()
    product = Product(created_at=now, updated_at=now)
    apply_product_patch(product, patch)

    with store_write("create product"):
        db.session.add(product)
        db.session.flush()
        log_action(
            user_id=user_id,
            action="Crear producto",
            entity_type="product",
            entity_id=product.id,
            details=patch,
        )
        db.session.commit()
    return product


def update_product(*, product_id: int, patch: dict, user_id: int | None) -> Product:
    product = get_product(product_id)
    _check_supplier(patch)
    if "sku" in patch:
        _check_sku_unique(patch["sku"], product_id=product_id)

    with store_write("update product"):
        apply_product_patch(product, patch)
        product.updated_at = utcnow()
        log_action(
            user_id=user_id,
            action="Actualizar producto",
            entity_type="product",
            entity_id=product.id,
            details=patch,
        )
        db.session.commit()
    return product


def delete_product(*, product_id: int, user_id: int | None) -> None:
    """Raises ConflictError while inventory movements still reference the product."""
    product = get_product(product_id)
    with store_read("count product movements"):
        movements = (
            db.session.query(InventoryMovement.id)
            .filter(InventoryMovement.product_id == product_id)
            .count()
        )
    if movements:
        raise ConflictError(f"Product still has {movements} inventory movement(s)")

    with store_write("delete product"):
        log_action(
            user_id=user_id,
            action="Eliminar producto",
            entity_type="product",
            entity_id=product.id,
            details={"name": product.name},
        )
        db.session.delete(product)
        db.session.commit()
