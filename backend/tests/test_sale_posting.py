"""
Sale posting: stock validation, recording, stock adjustment in both modes,
and the posted-sale lifecycle (metadata edit, delete).
"""

from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from ferreteria.extensions import db
from ferreteria.models import ActionLog, Alert, DocumentSequence, Product, Sale
from ferreteria.services import sales_service
from ferreteria.services.sales_service import (
    InsufficientStockError,
    InvalidQuantityError,
    PartialAdjustmentError,
    SaleItem,
    SaleNotFoundError,
    UnknownProductError,
    apply_stock_decrement,
    delete_sale,
    get_sale,
    post_sale,
    update_sale_metadata,
    validate_stock,
)
from ferreteria.services.store_guard import PersistenceError
from ferreteria.validation import ValidationError


DAY = datetime(2026, 10, 19, 15, 0)


def _catalog(*rows):
    return [SimpleNamespace(id=i, name=n, stock=s, price_cents=p) for i, n, s, p in rows]


def _lines(*pairs):
    return [{"product_id": pid, "quantity": q} for pid, q in pairs]


def _flaky_decrement(monkeypatch, fail_on_call):
    """Make the Nth stock decrement fail the way a dropped write would."""
    real = sales_service._decrement_line
    calls = {"n": 0}

    def flaky(item, *, conditional):
        calls["n"] += 1
        if calls["n"] == fail_on_call:
            raise OperationalError("UPDATE products SET stock=?", {}, Exception("disk I/O error"))
        return real(item, conditional=conditional)

    monkeypatch.setattr(sales_service, "_decrement_line", flaky)
    return calls


# =============================================================================
# STOCK VALIDATION
# =============================================================================


class TestValidateStock:
    CATALOG = _catalog((1, "Martillo", 5, 1000), (2, "Clavos", 3, 500))

    def test_order_that_fits_passes(self):
        validate_stock([SaleItem(1, 5), SaleItem(2, 3)], self.CATALOG)

    def test_failure_names_the_product(self):
        with pytest.raises(InsufficientStockError) as exc:
            validate_stock([SaleItem(1, 1), SaleItem(2, 4)], self.CATALOG)
        assert exc.value.product_name == "Clavos"
        assert str(exc.value) == "Stock insuficiente para Clavos"
        assert exc.value.details["stock"] == 3

    def test_repeated_lines_are_added_up(self):
        with pytest.raises(InsufficientStockError):
            validate_stock([SaleItem(1, 3), SaleItem(1, 3)], self.CATALOG)

    def test_unknown_product(self):
        with pytest.raises(UnknownProductError) as exc:
            validate_stock([SaleItem(99, 1)], self.CATALOG)
        assert exc.value.details == {"product_id": 99}

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True, None])
    def test_quantity_must_be_positive_integer(self, quantity):
        with pytest.raises(InvalidQuantityError):
            validate_stock([SaleItem(1, quantity)], self.CATALOG)


# =============================================================================
# POSTING
# =============================================================================


class TestPostSale:
    def test_records_sale_and_decrements_stock(self, db_session, make_product, reload_stock):
        p1 = make_product("Martillo", stock=5, price_cents=10)
        p2 = make_product("Clavos", stock=3, price_cents=5)

        sale = post_sale(
            customer_name="Ana Pérez",
            document_type="boleta",
            items=_lines((p1.id, 2), (p2.id, 1)),
            user_id=None,
            now=DAY,
        )

        assert sale.total_cents == 25
        assert sale.sale_number == "V-20261019-001"
        assert sale.items == [
            {"product_id": p1.id, "quantity": 2, "unit_price_cents": 10},
            {"product_id": p2.id, "quantity": 1, "unit_price_cents": 5},
        ]
        assert reload_stock(p1.id) == 3
        assert reload_stock(p2.id) == 2

    def test_posting_is_logged(self, db_session, users, make_product):
        product = make_product("Martillo", stock=5, price_cents=1000)
        cashier = users["cajero"]

        sale = post_sale(
            customer_name="Ana",
            document_type="factura",
            items=_lines((product.id, 1)),
            user_id=cashier.id,
        )

        entry = db_session.query(ActionLog).filter_by(action="Registrar venta").one()
        assert entry.user_id == cashier.id
        assert entry.entity_id == sale.id
        assert entry.details["sale_number"] == sale.sale_number

    def test_insufficient_stock_writes_nothing(self, db_session, make_product, reload_stock):
        product = make_product("Taladro", stock=1, price_cents=50000)

        with pytest.raises(InsufficientStockError):
            post_sale(customer_name="Ana", document_type="boleta", items=_lines((product.id, 2)), user_id=None)

        assert db_session.query(Sale).count() == 0
        assert db_session.query(ActionLog).count() == 0
        assert reload_stock(product.id) == 1

    @pytest.mark.parametrize(
        "customer_name,document_type,items",
        [
            ("", "boleta", [{"product_id": 1, "quantity": 1}]),
            ("   ", "boleta", [{"product_id": 1, "quantity": 1}]),
            ("Ana", "recibo", [{"product_id": 1, "quantity": 1}]),
            ("Ana", "boleta", []),
            ("Ana", "boleta", "1x martillo"),
            ("Ana", "boleta", [{"product_id": 1}]),
            ("Ana", "boleta", [{"product_id": 1, "quantity": 1, "price": 5}]),
        ],
    )
    def test_bad_input_is_rejected_before_any_read(self, db_session, customer_name, document_type, items):
        with pytest.raises(ValidationError):
            post_sale(customer_name=customer_name, document_type=document_type, items=items, user_id=None)
        assert db_session.query(Sale).count() == 0

    def test_document_type_is_normalized(self, db_session, make_product):
        product = make_product("Martillo", stock=5, price_cents=1000)
        sale = post_sale(customer_name="Ana", document_type=" Factura ", items=_lines((product.id, 1)), user_id=None)
        assert sale.document_type == "factura"

    def test_low_stock_alert_raised(self, db_session, make_product):
        product = make_product("Cemento", stock=12, price_cents=4500, min_stock=10)

        post_sale(customer_name="Obra", document_type="boleta", items=_lines((product.id, 3)), user_id=None)

        alert = db_session.query(Alert).one()
        assert alert.product_id == product.id
        assert alert.is_read is False


# =============================================================================
# ADJUSTMENT FAILURES
# =============================================================================


class TestAdjustmentFailure:
    def _three_products(self, make_product):
        return [make_product(name, stock=10, price_cents=100) for name in ("Pala", "Rastrillo", "Azadón")]

    def test_per_line_failure_reports_partial_adjustment(self, db_session, monkeypatch, make_product, reload_stock):
        a, b, c = self._three_products(make_product)
        _flaky_decrement(monkeypatch, fail_on_call=2)

        with pytest.raises(PartialAdjustmentError) as exc:
            post_sale(
                customer_name="Ana",
                document_type="boleta",
                items=_lines((a.id, 1), (b.id, 2), (c.id, 3)),
                user_id=None,
                now=DAY,
                mode="per_line",
            )

        err = exc.value
        assert err.details["partial"] is True
        assert [i["product_id"] for i in err.details["applied"]] == [a.id]
        assert [i["product_id"] for i in err.details["pending"]] == [b.id, c.id]

        # Completed lines applied exactly once, the rest untouched
        assert reload_stock(a.id) == 9
        assert reload_stock(b.id) == 10
        assert reload_stock(c.id) == 10

        # The posted sale is not lost
        sale = db_session.query(Sale).one()
        assert sale.sale_number == err.details["sale_number"] == "V-20261019-001"

    def test_per_line_failure_reported_while_store_stays_down(self, db_session, monkeypatch, make_product, reload_stock):
        a, b, c = self._three_products(make_product)
        real = sales_service._decrement_line
        calls = {"n": 0}

        def refuse(conn, cursor, statement, parameters, context, executemany):
            raise OperationalError(statement, parameters, Exception("server closed the connection"))

        def dropped_on_second_line(item, *, conditional):
            calls["n"] += 1
            if calls["n"] == 2:
                event.listen(db.engine, "before_cursor_execute", refuse)
                raise OperationalError("UPDATE products SET stock=?", {}, Exception("server closed the connection"))
            return real(item, conditional=conditional)

        monkeypatch.setattr(sales_service, "_decrement_line", dropped_on_second_line)

        try:
            with pytest.raises(PartialAdjustmentError) as exc:
                post_sale(
                    customer_name="Ana",
                    document_type="boleta",
                    items=_lines((a.id, 1), (b.id, 2), (c.id, 3)),
                    user_id=None,
                    now=DAY,
                    mode="per_line",
                )
        finally:
            if event.contains(db.engine, "before_cursor_execute", refuse):
                event.remove(db.engine, "before_cursor_execute", refuse)

        err = exc.value
        assert err.sale_number == err.details["sale_number"] == "V-20261019-001"
        assert err.details["sale_id"] == db_session.query(Sale.id).scalar()
        assert [i["product_id"] for i in err.details["applied"]] == [a.id]
        assert [i["product_id"] for i in err.details["pending"]] == [b.id, c.id]
        assert reload_stock(a.id) == 9

    def test_per_line_raises_low_stock_alert(self, db_session, make_product):
        product = make_product("Cemento", stock=12, price_cents=4500, min_stock=10)

        post_sale(
            customer_name="Obra",
            document_type="boleta",
            items=_lines((product.id, 3)),
            user_id=None,
            mode="per_line",
        )

        alert = db_session.query(Alert).one()
        assert alert.product_id == product.id
        assert alert.is_read is False

    def test_atomic_failure_applies_nothing(self, db_session, monkeypatch, make_product, reload_stock):
        a, b, c = self._three_products(make_product)
        _flaky_decrement(monkeypatch, fail_on_call=2)

        with pytest.raises(PersistenceError):
            post_sale(
                customer_name="Ana",
                document_type="boleta",
                items=_lines((a.id, 1), (b.id, 2), (c.id, 3)),
                user_id=None,
                mode="atomic",
            )

        assert [reload_stock(p.id) for p in (a, b, c)] == [10, 10, 10]
        assert db_session.query(Sale).count() == 0
        assert db_session.query(DocumentSequence).count() == 0


class TestStaleSnapshot:
    """Two posts validated against the same snapshot."""

    def _sell_out(self, make_product):
        product = make_product("Escalera", stock=3, price_cents=30000)
        stale = _catalog((product.id, product.name, product.stock, product.price_cents))
        first = post_sale(customer_name="Primero", document_type="boleta", items=_lines((product.id, 3)), user_id=None)
        return product, stale, first

    def test_atomic_rejects_second_post(self, db_session, make_product, reload_stock):
        product, stale, _first = self._sell_out(make_product)
        items = [SaleItem(product.id, 3)]

        validate_stock(items, stale)  # stale snapshot still says 3
        with pytest.raises(InsufficientStockError):
            apply_stock_decrement(items, mode="atomic")
        db_session.rollback()

        assert reload_stock(product.id) == 0

    def test_per_line_lets_stock_go_negative(self, db_session, make_product, reload_stock):
        product, stale, first = self._sell_out(make_product)
        items = [SaleItem(product.id, 3)]

        validate_stock(items, stale)
        apply_stock_decrement(items, mode="per_line", sale=first)

        assert reload_stock(product.id) == -3


# =============================================================================
# POSTED SALE LIFECYCLE
# =============================================================================


class TestPostedSale:
    @pytest.fixture
    def sale(self, db_session, make_product):
        product = make_product("Martillo", stock=10, price_cents=1000)
        return post_sale(customer_name="Ana", document_type="boleta", items=_lines((product.id, 2)), user_id=None)

    def test_edit_customer_keeps_total_and_items(self, db_session, sale):
        items_before = list(sale.items)

        updated = update_sale_metadata(sale_id=sale.id, patch={"customer_name": "Beatriz"}, user_id=None)

        assert updated.customer_name == "Beatriz"
        assert updated.total_cents == 2000
        assert updated.items == items_before

    def test_edit_ignores_later_price_changes(self, db_session, sale):
        product_id = sale.items[0]["product_id"]
        db_session.get(Product, product_id).price_cents = 9999
        db_session.commit()

        updated = update_sale_metadata(sale_id=sale.id, patch={"document_type": "factura"}, user_id=None)

        assert updated.document_type == "factura"
        assert updated.total_cents == 2000

    def test_delete_leaves_stock_alone(self, db_session, sale, reload_stock):
        product_id = sale.items[0]["product_id"]
        assert reload_stock(product_id) == 8

        delete_sale(sale_id=sale.id, user_id=None)

        assert reload_stock(product_id) == 8
        assert db_session.query(Sale).count() == 0

    def test_delete_logs_the_items(self, db_session, sale):
        sale_id, items = sale.id, list(sale.items)
        delete_sale(sale_id=sale_id, user_id=None)

        entry = db_session.query(ActionLog).filter_by(action="Eliminar venta").one()
        assert entry.entity_id == sale_id
        assert entry.details["items"] == items

    def test_missing_sale(self, db_session):
        with pytest.raises(SaleNotFoundError) as exc:
            get_sale(424242)
        assert exc.value.status_code == 404
