# cart & cart item persistence
from __future__ import annotations

from typing import List, Optional

import aiosqlite

from db import models
from db.convert import now, to_datetime


def _row_to_item(row) -> models.CartItem:
    return models.CartItem(
        id=row["id"],
        cart_id=row["cart_id"],
        product_id=row["product_id"],
        quantity=int(row["quantity"]),
    )


class CartStore:
    """Carts keyed by user id; at most one per user (find-or-create + UNIQUE)."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def find_basic(self, user_id: int) -> Optional[models.Cart]:
        """The cart row only, without items."""
        cur = await self.conn.execute(
            "SELECT id, user_id, created_at FROM carts WHERE user_id = ?;",
            (user_id,),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None
        return models.Cart(
            id=row["id"], user_id=row["user_id"], created_at=to_datetime(row["created_at"])
        )

    async def find_or_create(self, user_id: int) -> models.Cart:
        ts = now()
        cur = await self.conn.execute(
            """
            INSERT INTO carts (user_id, created_at, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT (user_id) DO NOTHING;
            """,
            (user_id, ts, ts),
        )
        await cur.close()
        return await self.find_basic(user_id)

    async def find_with_items(self, user_id: int) -> Optional[models.Cart]:
        cart = await self.find_basic(user_id)
        if cart is None:
            return None
        items = await self.list_items(cart.id)
        return models.Cart(
            id=cart.id, user_id=cart.user_id, created_at=cart.created_at, items=tuple(items)
        )

    async def list_items(self, cart_id: int) -> List[models.CartItem]:
        cur = await self.conn.execute(
            "SELECT id, cart_id, product_id, quantity FROM cart_items WHERE cart_id = ? ORDER BY id;",
            (cart_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_item(row) for row in rows]

    async def create_item(
        self, cart_id: int, product_id: int, quantity: int
    ) -> models.CartItem:
        cur = await self.conn.execute(
            "INSERT INTO cart_items (cart_id, product_id, quantity) VALUES (?, ?, ?);",
            (cart_id, product_id, quantity),
        )
        item_id = cur.lastrowid
        await cur.close()
        await self.conn.execute(
            "UPDATE carts SET updated_at = ? WHERE id = ?;", (now(), cart_id)
        )
        return models.CartItem(
            id=item_id, cart_id=cart_id, product_id=product_id, quantity=quantity
        )

    async def find_item(self, cart_item_id: int) -> Optional[models.CartItem]:
        cur = await self.conn.execute(
            "SELECT id, cart_id, product_id, quantity FROM cart_items WHERE id = ?;",
            (cart_item_id,),
        )
        row = await cur.fetchone()
        await cur.close()
        return _row_to_item(row) if row else None

    async def delete_item(self, cart_item_id: int) -> bool:
        cur = await self.conn.execute(
            "DELETE FROM cart_items WHERE id = ?;", (cart_item_id,)
        )
        changed = cur.rowcount
        await cur.close()
        return changed == 1

    async def clear_items(self, cart_id: int) -> int:
        """Delete every item in the cart. Stock is NOT restored here."""
        cur = await self.conn.execute(
            "DELETE FROM cart_items WHERE cart_id = ?;", (cart_id,)
        )
        removed = cur.rowcount
        await cur.close()
        return removed

    async def count_items(self, cart_id: int) -> int:
        cur = await self.conn.execute(
            "SELECT COUNT(*) FROM cart_items WHERE cart_id = ?;", (cart_id,)
        )
        row = await cur.fetchone()
        await cur.close()
        return int(row[0])
