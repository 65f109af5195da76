# sales figures for the admin report screen
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from db.database import Database
from db.models import OrderStatus
from db.products import ProductStore
from db.reports import ReportStore
from db.users import UserStore


@dataclass(frozen=True)
class ProductSales:
    product_id: int
    name: str
    units: int
    revenue: Decimal


@dataclass(frozen=True)
class CustomerSales:
    user_id: int
    username: str
    email: str
    order_count: int
    total_spent: Decimal


@dataclass(frozen=True)
class OrderSummary:
    order_id: int
    user_id: int
    username: str
    status: str
    total_price: Decimal
    payment_method: str
    created_at: datetime


@dataclass(frozen=True)
class SalesSummary:
    """
    Revenue and rankings only count orders that were not cancelled.
    `orders_by_status` always carries every status, zero-filled.
    """

    total_orders: int
    total_products: int
    total_customers: int
    total_revenue: Decimal
    orders_by_status: Dict[str, int]
    top_products: List[ProductSales] = field(default_factory=list)
    top_customers: List[CustomerSales] = field(default_factory=list)
    recent_orders: List[OrderSummary] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)


class ReportService:
    def __init__(self, database: Database) -> None:
        self.database = database

    async def summary(self, limit: int = 5) -> SalesSummary:
        async with self.database.connect() as conn:
            reports = ReportStore(conn)
            total_orders = await reports.count_orders()
            by_status = await reports.orders_by_status()
            settled = await reports.settled_order_totals()
            units = await reports.units_sold_by_price()
            recent = await reports.recent_orders(limit)
            total_products = await ProductStore(conn).count()
            total_customers = await UserStore(conn).count("customer")

        customers: Dict[int, dict] = {}
        revenue = Decimal("0")
        for user_id, username, email, total in settled:
            revenue += total
            entry = customers.setdefault(
                user_id,
                {"username": username, "email": email, "count": 0, "spent": Decimal("0")},
            )
            entry["count"] += 1
            entry["spent"] += total

        sold_units: Dict[int, int] = defaultdict(int)
        sold_revenue: Dict[int, Decimal] = defaultdict(Decimal)
        names: Dict[int, str] = {}
        for product_id, name, price, qty in units:
            names[product_id] = name
            sold_units[product_id] += qty
            sold_revenue[product_id] += price * qty

        top_products = sorted(
            (
                ProductSales(pid, names[pid], sold_units[pid], sold_revenue[pid])
                for pid in sold_units
            ),
            key=lambda p: (-p.units, -p.revenue, p.product_id),
        )[:limit]
        top_customers = sorted(
            (
                CustomerSales(uid, c["username"], c["email"], c["count"], c["spent"])
                for uid, c in customers.items()
            ),
            key=lambda c: (-c.total_spent, c.user_id),
        )[:limit]

        return SalesSummary(
            total_orders=total_orders,
            total_products=total_products,
            total_customers=total_customers,
            total_revenue=revenue,
            orders_by_status={s.value: by_status.get(s.value, 0) for s in OrderStatus},
            top_products=top_products,
            top_customers=top_customers,
            recent_orders=[OrderSummary(*row) for row in recent],
        )
