# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Product, Supplier
from ..validation import ConflictError
from ferreteria.time_utils import utcnow
from .audit_service import log_action
from .reporting_service import filter_suppliers, product_categories
from .store_guard import store_read, store_write

SUPPLIER_MUTABLE_FIELDS = {"name", "email", "phone", "address"}


class SupplierNotFoundError(LookupError):
    pass


def list_suppliers(*, name: str | None = None, category: str | None = None) -> dict:
    """
    Suppliers filtered by name substring and by the category of the products
    they supply, each with the names of its products.
    """
    with store_read("list suppliers"):
        suppliers = db.session.query(Supplier).order_by(Supplier.name.asc(), Supplier.id.asc()).all()
        products = db.session.query(Product).all()

    names_by_supplier: dict[int, list[str]] = {}
    for p in products:
        if p.supplier_id is not None:
            names_by_supplier.setdefault(p.supplier_id, []).append(p.name)

    rows = []
    for supplier in filter_suppliers(suppliers, products, name=name, category=category):
        row = supplier.to_dict()
        row["product_names"] = sorted(names_by_supplier.get(supplier.id, []))
        rows.append(row)

    return {"rows": rows, "categories": product_categories(products)}


def get_supplier(supplier_id: int) -> Supplier:
    with store_read("get supplier"):
        supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise SupplierNotFoundError(supplier_id)
    return supplier


def create_supplier(*, patch: dict, user_id: int | None) -> Supplier:
    now = utcnow()
    supplier = Supplier(created_at=now, updated_at=now)
    for k, v in patch.items():
        if k in SUPPLIER_MUTABLE_FIELDS:
            setattr(supplier, k, v)

    with store_write("create supplier"):
        db.session.add(supplier)
        db.session.flush()
        log_action(
            user_id=user_id,
            action="Crear proveedor",
            entity_type="supplier",
            entity_id=supplier.id,
            details=patch,
        )
        db.session.commit()
    return supplier


def update_supplier(*, supplier_id: int, patch: dict, user_id: int | None) -> Supplier:
    supplier = get_supplier(supplier_id)
    with store_write("update supplier"):
        for k, v in patch.items():
            if k in SUPPLIER_MUTABLE_FIELDS:
                setattr(supplier, k, v)
        supplier.updated_at = utcnow()
        log_action(
            user_id=user_id,
            action="Actualizar proveedor",
            entity_type="supplier",
            entity_id=supplier.id,
            details=patch,
        )
        db.session.commit()
    return supplier


def delete_supplier(*, supplier_id: int, user_id: int | None) -> None:
    """Raises ConflictError while products still reference the supplier."""
    supplier = get_supplier(supplier_id)
    with store_read("count supplier products"):
        in_use = db.session.query(Product.id).filter(Product.supplier_id == supplier_id).count()
    if in_use:
        raise ConflictError(f"Supplier still has {in_use} product(s)")

    with store_write("delete supplier"):
        log_action(
            user_id=user_id,
            action="Eliminar proveedor",
            entity_type="supplier",
            entity_id=supplier.id,
            details={"name": supplier.name},
        )
        db.session.delete(supplier)
        db.session.commit()
