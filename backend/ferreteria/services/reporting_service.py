# Overview: Pure filters and aggregates over already-loaded rows (dashboard and list screens).

"""
Every function here takes a snapshot (a list of rows already read from the
store) and returns a new value. Nothing touches the session, so the same
snapshot can be filtered several ways without re-reading.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Sequence

from ..models import Product, Sale, Supplier, AccountingRecord
from ferreteria.time_utils import parse_iso_datetime, start_of_month


STOCK_NORMAL = "normal"
STOCK_LOW = "low"
STOCK_CRITICAL = "critical"


def stock_level(stock: int, min_stock: int) -> str:
    """critical at or below the minimum, low up to twice the minimum, normal above."""
    if stock <= min_stock:
        return STOCK_CRITICAL
    if stock <= min_stock * 2:
        return STOCK_LOW
    return STOCK_NORMAL


def is_low_stock(product: Product) -> bool:
    return product.stock <= product.min_stock


def stock_categories(products: Iterable[Product]) -> dict[str, int]:
    counts = {STOCK_NORMAL: 0, STOCK_LOW: 0, STOCK_CRITICAL: 0}
    for product in products:
        counts[stock_level(product.stock, product.min_stock)] += 1
    return counts


def search_products(products: Sequence[Product], term: str | None) -> list[Product]:
    """Case-insensitive match on name or SKU."""
    if not term:
        return list(products)
    needle = term.strip().lower()
    return [
        p for p in products
        if needle in p.name.lower() or (p.sku and needle in p.sku.lower())
    ]


def _parse_bound(raw: str | None, *, end: bool) -> datetime | None:
    dt = parse_iso_datetime(raw)
    if dt is None:
        return None
    # A bare date as the upper bound covers that whole day
    if end and len(raw.strip()) == 10:
        return dt + timedelta(days=1) - timedelta(microseconds=1)
    return dt


def sale_contains_product(sale: Sale, product_id: int) -> bool:
    return any(item.get("product_id") == product_id for item in (sale.items or []))


def filter_sales(
    sales: Sequence[Sale],
    *,
    customer: str | None = None,
    product_id: int | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[Sale]:
    """
    Raises ValueError when a date bound is not ISO-8601.
    """
    start = _parse_bound(date_from, end=False)
    end = _parse_bound(date_to, end=True)
    needle = customer.strip().lower() if customer else None

    result = []
    for sale in sales:
        if needle and needle not in (sale.customer_name or "").lower():
            continue
        if product_id is not None and not sale_contains_product(sale, product_id):
            continue
        if start and sale.created_at < start:
            continue
        if end and sale.created_at > end:
            continue
        result.append(sale)
    return result


def filter_suppliers(
    suppliers: Sequence[Supplier],
    products: Sequence[Product],
    *,
    name: str | None = None,
    category: str | None = None,
) -> list[Supplier]:
    needle = name.strip().lower() if name else None
    supplying: set[int] | None = None
    if category:
        supplying = {
            p.supplier_id for p in products
            if p.supplier_id is not None and p.category == category
        }

    result = []
    for supplier in suppliers:
        if needle and needle not in (supplier.name or "").lower():
            continue
        if supplying is not None and supplier.id not in supplying:
            continue
        result.append(supplier)
    return result


def product_categories(products: Iterable[Product]) -> list[str]:
    return sorted({p.category for p in products if p.category})


def monthly_revenue_cents(sales: Iterable[Sale], now: datetime) -> int:
    month_start = start_of_month(now)
    return sum(s.total_cents or 0 for s in sales if s.created_at >= month_start)


def sales_by_day(sales: Iterable[Sale], now: datetime, days: int = 7) -> list[dict]:
    """Count and amount per calendar day for the last `days` days, oldest first."""
    today = now.date()
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    buckets = {day: {"count": 0, "amount_cents": 0} for day in window}

    for sale in sales:
        bucket = buckets.get(sale.created_at.date())
        if bucket is None:
            continue
        bucket["count"] += 1
        bucket["amount_cents"] += sale.total_cents or 0

    return [
        {"date": day.isoformat(), **buckets[day]}
        for day in window
    ]


def accounting_summary(records: Iterable[AccountingRecord]) -> dict:
    income = 0
    expense = 0
    for record in records:
        if record.record_type == "ingreso":
            income += record.amount_cents
        elif record.record_type == "egreso":
            expense += record.amount_cents
    return {
        "income_cents": income,
        "expense_cents": expense,
        "balance_cents": income - expense,
    }


def dashboard_summary(
    products: Sequence[Product],
    sales: Sequence[Sale],
    *,
    now: datetime,
    user_count: int = 0,
) -> dict:
    return {
        "stats": {
            "total_products": len(products),
            "low_stock_products": sum(1 for p in products if is_low_stock(p)),
            "total_sales": len(sales),
            "monthly_revenue_cents": monthly_revenue_cents(sales, now),
            "total_users": user_count,
        },
        "sales_by_day": sales_by_day(sales, now),
        "stock_categories": stock_categories(products),
    }
