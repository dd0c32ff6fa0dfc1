"""Accounting records, alerts and the action log endpoints."""

from ferreteria.extensions import db
from ferreteria.models import Alert
from ferreteria.services.alert_service import raise_low_stock_alert


class TestAccounting:
    def test_create_and_summary(self, client, accountant_headers):
        for amount, kind in ((50000, "ingreso"), (12000, "Egreso"), (3000, "egreso")):
            resp = client.post(
                "/api/accounting",
                json={"description": "Movimiento", "amount_cents": amount, "record_type": kind},
                headers=accountant_headers,
            )
            assert resp.status_code == 201

        body = client.get("/api/accounting/summary", headers=accountant_headers).get_json()
        assert body == {"income_cents": 50000, "expense_cents": 15000, "balance_cents": 35000}

        listing = client.get("/api/accounting", headers=accountant_headers).get_json()
        assert listing["count"] == 3
        assert listing["items"][0]["amount_cents"] == 3000

    def test_rejects_non_positive_amount(self, client, accountant_headers):
        resp = client.post(
            "/api/accounting",
            json={"amount_cents": 0, "record_type": "ingreso"},
            headers=accountant_headers,
        )
        assert resp.status_code == 400

    def test_rejects_unknown_type(self, client, accountant_headers):
        resp = client.post(
            "/api/accounting",
            json={"amount_cents": 100, "record_type": "transferencia"},
            headers=accountant_headers,
        )
        assert resp.status_code == 400


class TestAlerts:
    def test_low_stock_alert_is_not_duplicated(self, db_session, make_product):
        product = make_product("Cemento", stock=3, min_stock=10)
        assert raise_low_stock_alert(product) is not None
        db_session.commit()
        assert raise_low_stock_alert(product) is None
        assert db_session.query(Alert).count() == 1

    def test_no_alert_above_minimum(self, db_session, make_product):
        product = make_product("Arena", stock=30, min_stock=10)
        assert raise_low_stock_alert(product) is None

    def test_list_mark_read_delete(self, client, db_session, warehouse_headers, make_product):
        product = make_product("Cemento", stock=3, min_stock=10)
        alert = raise_low_stock_alert(product)
        db.session.commit()

        body = client.get("/api/alerts?unread=true", headers=warehouse_headers).get_json()
        assert [a["id"] for a in body["items"]] == [alert.id]

        resp = client.patch(f"/api/alerts/{alert.id}/read", headers=warehouse_headers)
        assert resp.get_json()["is_read"] is True
        assert client.get("/api/alerts?unread=1", headers=warehouse_headers).get_json()["state"] == "empty"

        assert client.delete(f"/api/alerts/{alert.id}", headers=warehouse_headers).status_code == 200
        assert client.patch(f"/api/alerts/{alert.id}/read", headers=warehouse_headers).status_code == 404


class TestLogs:
    def test_manager_reads_log(self, client, manager_headers, warehouse_headers):
        client.post("/api/products", json={"name": "Martillo", "price_cents": 100}, headers=warehouse_headers)
        client.post("/api/suppliers", json={"name": "Aceros"}, headers=warehouse_headers)

        body = client.get("/api/logs", headers=manager_headers).get_json()
        assert [e["action"] for e in body["items"]] == ["Crear proveedor", "Crear producto"]
        assert body["items"][0]["user_name"] == "Usuario bodeguero"

        body = client.get("/api/logs?entity_type=product&limit=1", headers=manager_headers).get_json()
        assert body["count"] == 1
        assert body["items"][0]["entity_type"] == "product"

    def test_warehouse_keeper_cannot_read_log(self, client, warehouse_headers):
        assert client.get("/api/logs", headers=warehouse_headers).status_code == 403
