# Overview: Service-layer operations for alerts.

from __future__ import annotations

from ..extensions import db
from ..models import Alert, Product
from ferreteria.time_utils import utcnow
from .reporting_service import is_low_stock
from .store_guard import store_read, store_write


LOW_STOCK = "stock_bajo"


class AlertNotFoundError(LookupError):
    pass


def list_alerts(*, unread_only: bool = False) -> list[Alert]:
    with store_read("list alerts"):
        query = db.session.query(Alert)
        if unread_only:
            query = query.filter_by(is_read=False)
        return query.order_by(Alert.created_at.desc(), Alert.id.desc()).all()


def _get_alert(alert_id: int) -> Alert:
    with store_read("get alert"):
        alert = db.session.get(Alert, alert_id)
    if alert is None:
        raise AlertNotFoundError(alert_id)
    return alert


def mark_read(alert_id: int) -> Alert:
    alert = _get_alert(alert_id)
    with store_write("mark alert read"):
        alert.is_read = True
        db.session.commit()
    return alert


def delete_alert(alert_id: int) -> None:
    alert = _get_alert(alert_id)
    with store_write("delete alert"):
        db.session.delete(alert)
        db.session.commit()


def raise_low_stock_alert(product: Product) -> Alert | None:
    """
    Add an unread low-stock alert for a product at or below its minimum,
    unless one is already unread. Caller commits.
    """
    if not is_low_stock(product):
        return None

    existing = (
        db.session.query(Alert.id)
        .filter_by(alert_type=LOW_STOCK, product_id=product.id, is_read=False)
        .first()
    )
    if existing:
        return None

    alert = Alert(
        alert_type=LOW_STOCK,
        title=f"Stock bajo: {product.name}",
        message=f"{product.name} tiene {product.stock} unidades (mínimo {product.min_stock}).",
        product_id=product.id,
        created_at=utcnow(),
    )
    db.session.add(alert)
    return alert


def scan_low_stock(products: list[Product]) -> list[Alert]:
    with store_write("scan low stock"):
        raised = [a for a in (raise_low_stock_alert(p) for p in products) if a is not None]
        db.session.commit()
    return raised
