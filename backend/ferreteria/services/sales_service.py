"""
Sales Service - sale posting and the posted-sale lifecycle

Posting runs four steps strictly in order, each only after the previous one
succeeded:

    allocate number -> validate stock -> record sale -> adjust stock

Two stock adjustment strategies exist (config STOCK_ADJUSTMENT_MODE):

- "atomic": the number, the sale row and one conditional decrement per line
  (stock = stock - q WHERE stock >= q) share a single transaction. Any line
  that cannot be applied rolls the whole posting back. Stock cannot go
  negative, even against a concurrent post that passed validation on the
  same snapshot. Products left at or below their minimum get a low-stock
  alert in the same transaction.
- "per_line": the sale row is committed first, then every line is
  decremented and committed on its own. A failure part-way leaves the sale
  recorded and earlier lines applied, and is reported as
  PartialAdjustmentError. Each line raises its low-stock alert in its own
  commit. Two concurrent posts can both pass validation and drive stock
  negative.

Posted sales only ever change customer_name and document_type. Deleting a
sale removes the row and leaves stock as it is.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Iterable, Sequence

from flask import current_app
from sqlalchemy import update

from ..config import STOCK_ADJUSTMENT_MODES
from ..extensions import db
from ..models import Product, Sale
from ..validation import ValidationError, coerce_int, normalize_document_type
from ferreteria.time_utils import utcnow
from .alert_service import raise_low_stock_alert
from .audit_service import log_action
from .document_service import next_document_number
from .products_service import list_products
from .store_guard import store_read, store_write, PersistenceError, StoreError
from . import reporting_service


class SaleError(Exception):
    """Raised for sale operation errors."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class UnknownProductError(SaleError):
    pass


class InvalidQuantityError(SaleError):
    pass


class InsufficientStockError(SaleError):
    status_code = 409

    def __init__(self, product_name: str, details: dict | None = None):
        super().__init__(f"Stock insuficiente para {product_name}", details)
        self.product_name = product_name


class SaleNotFoundError(SaleError):
    status_code = 404


class PartialAdjustmentError(SaleError):
    """
    The sale is recorded but only some of its lines reached the catalog.

    Distinct from a clean failure: the catalog no longer matches the sale
    until someone corrects the pending lines.
    """
    status_code = 500

    def __init__(self, sale_id: int, sale_number: str, applied: list["SaleItem"], pending: list["SaleItem"]):
        super().__init__(
            f"Sale {sale_number} recorded but stock was only partially adjusted",
            details={
                "partial": True,
                "sale_id": sale_id,
                "sale_number": sale_number,
                "applied": [asdict(i) for i in applied],
                "pending": [asdict(i) for i in pending],
            },
        )
        self.sale_id = sale_id
        self.sale_number = sale_number
        self.applied = applied
        self.pending = pending


@dataclass(frozen=True)
class SaleItem:
    product_id: int
    quantity: Any  # checked by validate_stock


def parse_sale_items(raw: Any) -> list[SaleItem]:
    """
    Boundary parse of the items payload.

    Rejects shapes that are not a non-empty list of {product_id, quantity}
    objects. Quantity values are kept as given; validate_stock decides
    whether they are usable.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("items must be a non-empty list")

    items = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        unknown = set(entry) - {"product_id", "quantity"}
        if unknown:
            raise ValidationError(f"items[{index}] has unknown fields: {', '.join(sorted(unknown))}")
        if entry.get("product_id") in (None, ""):
            raise ValidationError(f"items[{index}].product_id is required")
        if "quantity" not in entry:
            raise ValidationError(f"items[{index}].quantity is required")
        items.append(SaleItem(
            product_id=coerce_int(f"items[{index}].product_id", entry["product_id"]),
            quantity=entry["quantity"],
        ))
    return items


def _catalog_by_id(catalog: Iterable[Product]) -> dict[int, Product]:
    return {p.id: p for p in catalog}


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_stock(items: Sequence[SaleItem], catalog: Iterable[Product]) -> None:
    """
    Check a proposed order against a catalog snapshot.

    Every product must exist and every quantity must be a positive integer.
    Lines for the same product are added up before comparing with stock.
    The snapshot is not locked, so a pass here is advisory.
    """
    by_id = _catalog_by_id(catalog)

    requested: dict[int, int] = {}
    for item in items:
        if item.product_id not in by_id:
            raise UnknownProductError(
                f"Producto no encontrado: {item.product_id}",
                details={"product_id": item.product_id},
            )
        if not _is_positive_int(item.quantity):
            raise InvalidQuantityError(
                "Cantidad debe ser un entero positivo",
                details={"product_id": item.product_id, "quantity": item.quantity},
            )
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    for product_id, quantity in requested.items():
        product = by_id[product_id]
        if product.stock < quantity:
            raise InsufficientStockError(
                product.name,
                details={
                    "product_id": product_id,
                    "requested_quantity": quantity,
                    "stock": product.stock,
                },
            )


def sale_total_cents(items: Sequence[SaleItem], catalog: Iterable[Product]) -> int:
    by_id = _catalog_by_id(catalog)
    return sum(by_id[i.product_id].price_cents * i.quantity for i in items)


def record_sale(
    *,
    customer_name: str,
    document_type: str,
    items: Sequence[SaleItem],
    catalog: Iterable[Product],
    document_number: str,
    user_id: int | None,
    now: datetime | None = None,
) -> Sale:
    """
    Add the sale row to the session, priced from the same snapshot that was
    validated. Flushes so a rejected insert fails here and stock is never
    touched for it; the caller commits.
    """
    by_id = _catalog_by_id(catalog)
    now = now or utcnow()

    sale = Sale(
        sale_number=document_number,
        customer_name=customer_name,
        document_type=document_type,
        items=[
            {
                "product_id": i.product_id,
                "quantity": i.quantity,
                "unit_price_cents": by_id[i.product_id].price_cents,
            }
            for i in items
        ],
        total_cents=sale_total_cents(items, by_id.values()),
        user_id=user_id,
        created_at=now,
        updated_at=now,
    )
    db.session.add(sale)
    db.session.flush()
    return sale


def _decrement_line(item: SaleItem, *, conditional: bool) -> int:
    """Relative stock decrement for one line; returns affected row count."""
    stmt = (
        update(Product)
        .where(Product.id == item.product_id)
        .values(stock=Product.stock - item.quantity)
        .execution_options(synchronize_session=False)
    )
    if conditional:
        stmt = stmt.where(Product.stock >= item.quantity)
    rowcount = db.session.execute(stmt).rowcount
    # loaded Product rows still carry the pre-update stock
    db.session.expire_all()
    return rowcount


def apply_stock_decrement(items: Sequence[SaleItem], *, mode: str, sale: Sale | None = None) -> None:
    """
    Decrement stock for every line.

    atomic: conditional updates inside the caller's transaction; raises
    InsufficientStockError on the first line that no longer fits. The caller
    rolls back.

    per_line: each line committed on its own together with its low-stock
    alert; raises PartialAdjustmentError (requires `sale`) on the first line
    that fails, leaving earlier lines applied.
    """
    if mode == "atomic":
        for item in items:
            if _decrement_line(item, conditional=True) != 1:
                product = db.session.get(Product, item.product_id)
                raise InsufficientStockError(
                    product.name if product else str(item.product_id),
                    details={
                        "product_id": item.product_id,
                        "requested_quantity": item.quantity,
                        "stock": product.stock if product else None,
                    },
                )
        return

    if mode != "per_line":
        raise ValueError(f"Unknown stock adjustment mode: {mode}")
    if sale is None:
        raise ValueError("per_line adjustment requires the recorded sale")

    # The error path must not touch the ORM: a rollback expires `sale` and
    # reloading it needs the store that just failed
    sale_id, sale_number = sale.id, sale.sale_number

    applied: list[SaleItem] = []
    for index, item in enumerate(items):
        try:
            with store_write(f"decrement stock for product {item.product_id}"):
                if _decrement_line(item, conditional=False) != 1:
                    raise PersistenceError(
                        "Product disappeared before its stock was adjusted",
                        details={"product_id": item.product_id},
                    )
                raise_low_stock_alert(db.session.get(Product, item.product_id))
                db.session.commit()
        except StoreError as exc:
            current_app.logger.warning(
                "Sale %s: stock adjustment stopped at line %d (%s)",
                sale_number, index + 1, exc,
            )
            raise PartialAdjustmentError(sale_id, sale_number, applied, list(items[index:])) from exc
        applied.append(item)


def post_sale(
    *,
    customer_name: str | None,
    document_type: str | None,
    items: Any,
    user_id: int | None,
    now: datetime | None = None,
    mode: str | None = None,
) -> Sale:
    """
    Post a sale: allocate number, validate stock, record sale, adjust stock.

    Input problems raise ValidationError before anything is read or written.
    """
    customer_name = (customer_name or "").strip()
    if not customer_name:
        raise ValidationError("customer_name is required")
    if len(customer_name) > 255:
        raise ValidationError("customer_name exceeds max length 255")
    document_type = normalize_document_type(document_type)
    parsed = parse_sale_items(items)

    mode = mode or current_app.config.get("STOCK_ADJUSTMENT_MODE", "atomic")
    if mode not in STOCK_ADJUSTMENT_MODES:
        raise ValueError(f"Unknown stock adjustment mode: {mode}")
    now = now or utcnow()

    catalog = list_products()

    with store_write("post sale"):
        document_number = next_document_number(now)
        validate_stock(parsed, catalog)
        sale = record_sale(
            customer_name=customer_name,
            document_type=document_type,
            items=parsed,
            catalog=catalog,
            document_number=document_number,
            user_id=user_id,
            now=now,
        )
        if mode == "atomic":
            apply_stock_decrement(parsed, mode="atomic")
            for product_id in {i.product_id for i in parsed}:
                raise_low_stock_alert(db.session.get(Product, product_id))
        log_action(
            user_id=user_id,
            action="Registrar venta",
            entity_type="sale",
            entity_id=sale.id,
            details={
                "sale_number": sale.sale_number,
                "items": sale.items,
                "total_cents": sale.total_cents,
            },
        )
        db.session.commit()

    if mode == "per_line":
        apply_stock_decrement(parsed, mode="per_line", sale=sale)

    current_app.logger.info(
        "Posted sale %s (%d lines, total_cents=%d, mode=%s)",
        sale.sale_number, len(parsed), sale.total_cents, mode,
    )
    return sale


def get_sale(sale_id: int) -> Sale:
    with store_read("get sale"):
        sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales(
    *,
    customer: str | None = None,
    product_id: int | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[Sale]:
    with store_read("list sales"):
        sales = (
            db.session.query(Sale)
            .order_by(Sale.created_at.desc(), Sale.id.desc())
            .all()
        )
    try:
        return reporting_service.filter_sales(
            sales,
            customer=customer,
            product_id=product_id,
            date_from=date_from,
            date_to=date_to,
        )
    except ValueError:
        raise ValidationError("from and to must be ISO-8601 dates")


def stored_items_total_cents(sale: Sale) -> int:
    return sum(i["unit_price_cents"] * i["quantity"] for i in (sale.items or []))


def update_sale_metadata(*, sale_id: int, patch: dict, user_id: int | None) -> Sale:
    """
    Change customer_name and/or document_type of a posted sale.

    The total is recomputed from the stored items at their posting prices,
    so it stays what it was. Stock is not touched.
    """
    sale = get_sale(sale_id)

    with store_write("update sale"):
        if "customer_name" in patch:
            sale.customer_name = patch["customer_name"]
        if "document_type" in patch:
            sale.document_type = patch["document_type"]
        sale.total_cents = stored_items_total_cents(sale)
        sale.updated_at = utcnow()
        log_action(
            user_id=user_id,
            action="Actualizar venta",
            entity_type="sale",
            entity_id=sale.id,
            details={k: patch[k] for k in ("customer_name", "document_type") if k in patch},
        )
        db.session.commit()
    return sale


def delete_sale(*, sale_id: int, user_id: int | None) -> None:
    """
    Permanently delete a sale.

    Stock is not restored. The log entry keeps the sale's items so a
    compensating inventory entry can be made by hand if the deletion was a
    reversal rather than a correction.
    """
    sale = get_sale(sale_id)

    with store_write("delete sale"):
        log_action(
            user_id=user_id,
            action="Eliminar venta",
            entity_type="sale",
            entity_id=sale.id,
            details={
                "sale_number": sale.sale_number,
                "items": sale.items,
                "total_cents": sale.total_cents,
            },
        )
        db.session.delete(sale)
        db.session.commit()
