"""Pure filters and aggregates used by the list screens and the dashboard."""

from datetime import datetime

import pytest

from ferreteria.models import AccountingRecord, Product, Sale, Supplier
from ferreteria.services import reporting_service as rs


NOW = datetime(2026, 10, 19, 18, 0)


def _sale(customer, created_at, total_cents=1000, product_ids=(1,)):
    return Sale(
        customer_name=customer,
        created_at=created_at,
        total_cents=total_cents,
        items=[{"product_id": pid, "quantity": 1, "unit_price_cents": total_cents} for pid in product_ids],
    )


class TestStockLevel:
    @pytest.mark.parametrize(
        "stock,min_stock,level",
        [
            (0, 10, "critical"),
            (10, 10, "critical"),
            (11, 10, "low"),
            (20, 10, "low"),
            (21, 10, "normal"),
            (0, 0, "critical"),
            (1, 0, "normal"),
        ],
    )
    def test_thresholds(self, stock, min_stock, level):
        assert rs.stock_level(stock, min_stock) == level

    def test_categories(self):
        products = [Product(stock=s, min_stock=10) for s in (5, 15, 50, 60)]
        assert rs.stock_categories(products) == {"normal": 2, "low": 1, "critical": 1}


class TestFilterSales:
    SALES = [
        _sale("Ana Pérez", datetime(2026, 10, 19, 9, 0), product_ids=(1, 2)),
        _sale("Constructora Sur", datetime(2026, 10, 18, 23, 59), product_ids=(3,)),
        _sale("ana maría", datetime(2026, 10, 1, 12, 0), product_ids=(2,)),
    ]

    def test_customer_substring(self):
        result = rs.filter_sales(self.SALES, customer="ANA")
        assert [s.customer_name for s in result] == ["Ana Pérez", "ana maría"]

    def test_product(self):
        result = rs.filter_sales(self.SALES, product_id=2)
        assert len(result) == 2

    def test_bare_end_date_covers_whole_day(self):
        result = rs.filter_sales(self.SALES, date_from="2026-10-18", date_to="2026-10-18")
        assert [s.customer_name for s in result] == ["Constructora Sur"]

    def test_bad_date(self):
        with pytest.raises(ValueError):
            rs.filter_sales(self.SALES, date_from="19/10/2026")


class TestAggregates:
    def test_monthly_revenue_starts_on_the_first(self):
        sales = [
            _sale("a", datetime(2026, 10, 1, 0, 0), total_cents=500),
            _sale("b", datetime(2026, 9, 30, 23, 59), total_cents=700),
            _sale("c", datetime(2026, 10, 19, 10, 0), total_cents=300),
        ]
        assert rs.monthly_revenue_cents(sales, NOW) == 800

    def test_sales_by_day_covers_last_seven_days(self):
        sales = [
            _sale("a", datetime(2026, 10, 19, 8, 0), total_cents=100),
            _sale("b", datetime(2026, 10, 19, 9, 0), total_cents=200),
            _sale("c", datetime(2026, 10, 13, 9, 0), total_cents=50),
            _sale("d", datetime(2026, 10, 12, 9, 0), total_cents=999),
        ]
        days = rs.sales_by_day(sales, NOW)
        assert len(days) == 7
        assert days[0] == {"date": "2026-10-13", "count": 1, "amount_cents": 50}
        assert days[-1] == {"date": "2026-10-19", "count": 2, "amount_cents": 300}

    def test_accounting_summary(self):
        records = [
            AccountingRecord(amount_cents=1000, record_type="ingreso"),
            AccountingRecord(amount_cents=400, record_type="egreso"),
        ]
        assert rs.accounting_summary(records) == {
            "income_cents": 1000,
            "expense_cents": 400,
            "balance_cents": 600,
        }

    def test_dashboard_summary(self):
        products = [Product(stock=5, min_stock=10), Product(stock=50, min_stock=10)]
        sales = [_sale("a", datetime(2026, 10, 19, 8, 0), total_cents=1200)]

        summary = rs.dashboard_summary(products, sales, now=NOW, user_count=4)

        assert summary["stats"] == {
            "total_products": 2,
            "low_stock_products": 1,
            "total_sales": 1,
            "monthly_revenue_cents": 1200,
            "total_users": 4,
        }
        assert summary["stock_categories"] == {"normal": 1, "low": 0, "critical": 1}


class TestFilterSuppliers:
    def test_by_category(self):
        central = Supplier(id=1, name="Central")
        sur = Supplier(id=2, name="Aceros del Sur")
        products = [
            Product(name="Martillo", category="Herramientas", supplier_id=1),
            Product(name="Fierro", category="Construcción", supplier_id=2),
        ]
        assert rs.filter_suppliers([central, sur], products, category="Construcción") == [sur]
        assert rs.filter_suppliers([central, sur], products, name="SUR") == [sur]
        assert rs.filter_suppliers([central, sur], products) == [central, sur]
