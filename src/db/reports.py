# read-only aggregate queries for the admin report
from __future__ import annotations

from typing import Dict, List, Tuple

import aiosqlite

from db.convert import to_datetime, to_decimal


class ReportStore:
    """
    Raw aggregate rows. Money columns are returned as Decimal; summing
    prices happens in python so stored decimal text is never turned into
    floats.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def _fetch_all(self, sql: str, params: tuple = ()) -> list:
        cur = await self.conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
        return rows

    async def count_orders(self) -> int:
        rows = await self._fetch_all("SELECT COUNT(*) FROM orders;")
        return int(rows[0][0])

    async def orders_by_status(self) -> Dict[str, int]:
        rows = await self._fetch_all(
            "SELECT status, COUNT(*) FROM orders GROUP BY status;"
        )
        return {row[0]: int(row[1]) for row in rows}

    async def settled_order_totals(self) -> List[Tuple[int, str, str, object]]:
        """(user_id, username, email, total_price) for every non-cancelled order."""
        rows = await self._fetch_all(
            """
            SELECT o.user_id, u.username, u.email, o.total_price
            FROM orders o
            JOIN users u ON u.id = o.user_id
            WHERE o.status != 'cancelled'
            ORDER BY o.id;
            """
        )
        return [(row[0], row[1], row[2], to_decimal(row[3])) for row in rows]

    async def units_sold_by_price(self) -> List[Tuple[int, str, object, int]]:
        """(product_id, name, unit_price, units) over non-cancelled orders."""
        rows = await self._fetch_all(
            """
            SELECT oi.product_id, p.name, oi.price, SUM(oi.quantity)
            FROM order_items oi
            JOIN orders o ON o.id = oi.order_id
            JOIN products p ON p.id = oi.product_id
            WHERE o.status != 'cancelled'
            GROUP BY oi.product_id, p.name, oi.price
            ORDER BY oi.product_id;
            """
        )
        return [(row[0], row[1], to_decimal(row[2]), int(row[3])) for row in rows]

    async def recent_orders(self, limit: int) -> List[tuple]:
        """(order_id, user_id, username, status, total, payment_method, created_at)."""
        rows = await self._fetch_all(
            """
            SELECT o.id, o.user_id, u.username, o.status, o.total_price,
                   o.payment_method, o.created_at
            FROM orders o
            JOIN users u ON u.id = o.user_id
            ORDER BY o.created_at DESC, o.id DESC
            LIMIT ?;
            """,
            (limit,),
        )
        return [
            (
                row[0],
                row[1],
                row[2],
                row[3],
                to_decimal(row[4]),
                row[5],
                to_datetime(row[6]),
            )
            for row in rows
        ]
