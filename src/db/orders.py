# order & order item persistence; orders are immutable apart from status
from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional

import aiosqlite

from db import models
from db.convert import now, placeholders, to_datetime, to_decimal

_ORDER_COLUMNS = (
    "id, user_id, status, total_price, payment_method, bank_name, created_at, updated_at"
)


def _row_to_item(row) -> models.OrderItem:
    return models.OrderItem(
        id=row["id"],
        order_id=row["order_id"],
        product_id=row["product_id"],
        quantity=int(row["quantity"]),
        price=to_decimal(row["price"]),
    )


def _row_to_order(row, items: List[models.OrderItem]) -> models.Order:
    return models.Order(
        id=row["id"],
        user_id=row["user_id"],
        status=models.OrderStatus(row["status"]),
        total_price=to_decimal(row["total_price"]),
        payment_method=models.PaymentMethod(row["payment_method"]),
        bank_name=row["bank_name"],
        created_at=to_datetime(row["created_at"]),
        updated_at=to_datetime(row["updated_at"]),
        items=tuple(items),
    )


class OrderStore:
    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def create(
        self,
        user_id: int,
        status: models.OrderStatus,
        total_price: Decimal,
        payment_method: models.PaymentMethod,
        bank_name: Optional[str] = None,
    ) -> models.Order:
        """Insert the order row and return it (without items) with its generated id."""
        ts = now()
        cur = await self.conn.execute(
            """
            INSERT INTO orders
                (user_id, status, total_price, payment_method, bank_name, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (
                user_id,
                status.value,
                str(total_price),
                payment_method.value,
                bank_name,
                ts,
                ts,
            ),
        )
        order_id = cur.lastrowid
        await cur.close()
        return models.Order(
            id=order_id,
            user_id=user_id,
            status=status,
            total_price=total_price,
            payment_method=payment_method,
            bank_name=bank_name,
            created_at=to_datetime(ts),
            updated_at=to_datetime(ts),
        )

    async def create_item(
        self, order_id: int, product_id: int, quantity: int, price: Decimal
    ) -> models.OrderItem:
        cur = await self.conn.execute(
            "INSERT INTO order_items (order_id, product_id, quantity, price) VALUES (?, ?, ?, ?);",
            (order_id, product_id, quantity, str(price)),
        )
        item_id = cur.lastrowid
        await cur.close()
        return models.OrderItem(
            id=item_id,
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            price=price,
        )

    async def find_items_by_order_id(self, order_id: int) -> List[models.OrderItem]:
        cur = await self.conn.execute(
            """
            SELECT id, order_id, product_id, quantity, price
            FROM order_items
            WHERE order_id = ?
            ORDER BY id;
            """,
            (order_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_item(row) for row in rows]

    async def _items_for(self, order_ids: List[int]) -> Dict[int, List[models.OrderItem]]:
        grouped: Dict[int, List[models.OrderItem]] = defaultdict(list)
        if not order_ids:
            return grouped
        cur = await self.conn.execute(
            f"""
            SELECT id, order_id, product_id, quantity, price
            FROM order_items
            WHERE order_id IN ({placeholders(order_ids)})
            ORDER BY id;
            """,
            tuple(order_ids),
        )
        rows = await cur.fetchall()
        await cur.close()
        for row in rows:
            grouped[row["order_id"]].append(_row_to_item(row))
        return grouped

    async def _fetch_orders(self, sql: str, params: tuple = ()) -> List[models.Order]:
        cur = await self.conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
        items = await self._items_for([row["id"] for row in rows])
        return [_row_to_order(row, items[row["id"]]) for row in rows]

    async def find_by_id(self, order_id: int) -> Optional[models.Order]:
        found = await self._fetch_orders(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = ?;", (order_id,)
        )
        return found[0] if found else None

    async def find_by_user(self, user_id: int) -> List[models.Order]:
        return await self._fetch_orders(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE user_id = ? ORDER BY created_at DESC, id DESC;",
            (user_id,),
        )

    async def find_all(
        self, status: Optional[models.OrderStatus] = None
    ) -> List[models.Order]:
        if status is None:
            return await self._fetch_orders(
                f"SELECT {_ORDER_COLUMNS} FROM orders ORDER BY created_at DESC, id DESC;"
            )
        return await self._fetch_orders(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE status = ? ORDER BY created_at DESC, id DESC;",
            (status.value,),
        )

    async def update_status(
        self,
        order_id: int,
        status: models.OrderStatus,
        expected: Optional[models.OrderStatus] = None,
    ) -> bool:
        """
        Persist only the status column.

        With `expected`, the update applies only while the stored status still
        equals it; False means another writer got there first.
        """
        sql = "UPDATE orders SET status = ?, updated_at = ? WHERE id = ?"
        params: tuple = (status.value, now(), order_id)
        if expected is not None:
            sql += " AND status = ?"
            params += (expected.value,)
        cur = await self.conn.execute(sql + ";", params)
        changed = cur.rowcount
        await cur.close()
        return changed == 1
