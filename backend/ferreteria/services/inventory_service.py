# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/ferreteria/services/inventory_service.py
"""
Inventory Invariants

- Stock lives on Product.stock and is changed with relative updates
  (stock = stock + q), never by writing back a value read earlier.
- An entry movement row, its stock increase and its action log entry are
  written in one transaction.
- Movements are append-only.
"""

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import InventoryMovement, Product
from ferreteria.time_utils import utcnow
from .audit_service import log_action
from .products_service import get_product, list_products
from .reporting_service import search_products
from .store_guard import store_read, store_write


ENTRY = "entrada"


def inventory_overview(search: str | None = None) -> list[Product]:
    """Products whose name or SKU contains `search` (case-insensitive)."""
    return search_products(list_products(), search)


def register_entry(*, product_id: int, quantity: int, note: str | None, user_id: int | None) -> InventoryMovement:
    """
    Receive `quantity` units of a product.

    Raises ProductNotFoundError if the product does not exist.
    """
    product = get_product(product_id)

    with store_write("register inventory entry"):
        movement = InventoryMovement(
            product_id=product.id,
            movement_type=ENTRY,
            quantity=quantity,
            note=note,
            user_id=user_id,
            created_at=utcnow(),
        )
        db.session.add(movement)
        db.session.execute(
            update(Product)
            .where(Product.id == product.id)
            .values(stock=Product.stock + quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        db.session.flush()
        log_action(
            user_id=user_id,
            action="Entrada de inventario",
            entity_type="inventory_movement",
            entity_id=movement.id,
            details={"product_id": product.id, "quantity": quantity},
        )
        db.session.commit()
    return movement


def list_movements(*, product_id: int | None = None, limit: int = 200) -> list[InventoryMovement]:
    limit = max(1, min(limit, 500))
    with store_read("list inventory movements"):
        query = db.session.query(InventoryMovement)
        if product_id is not None:
            query = query.filter(InventoryMovement.product_id == product_id)
        return (
            query.order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
            .limit(limit)
            .all()
        )
