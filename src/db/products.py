# product & category persistence; stock only ever moves through adjust_stock
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional

import aiosqlite

from db import models
from db.convert import now, placeholders, to_datetime, to_decimal

_PRODUCT_COLUMNS = (
    "id, category_id, name, description, price, stock, image_url, created_at, updated_at"
)


def _row_to_product(row) -> models.Product:
    return models.Product(
        id=row["id"],
        category_id=row["category_id"],
        name=row["name"],
        description=row["description"],
        price=to_decimal(row["price"]),
        stock=int(row["stock"]),
        image_url=row["image_url"],
        created_at=to_datetime(row["created_at"]),
        updated_at=to_datetime(row["updated_at"]),
    )


def _row_to_category(row) -> models.Category:
    return models.Category(
        id=row["id"], name=row["name"], description=row["description"]
    )


class ProductStore:
    """Product rows, bound to one connection (and so to its transaction)."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def _fetch_all(self, sql: str, params: tuple = ()) -> List[models.Product]:
        cur = await self.conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_product(row) for row in rows]

    async def get_by_id(self, product_id: int) -> Optional[models.Product]:
        found = await self._fetch_all(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?;", (product_id,)
        )
        return found[0] if found else None

    async def get_by_ids(self, product_ids: Iterable[int]) -> List[models.Product]:
        """Batch fetch in a single query. Missing ids are simply absent from the result."""
        ids = sorted(set(product_ids))
        if not ids:
            return []
        return await self._fetch_all(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id IN ({placeholders(ids)}) ORDER BY id;",
            tuple(ids),
        )

    async def adjust_stock(self, product_id: int, delta: int) -> bool:
        """
        Apply `stock = stock + delta` inside the storage engine.

        Returns False when the product does not exist or the result would be
        negative; nothing is written in that case.
        """
        cur = await self.conn.execute(
            """
            UPDATE products
            SET stock = stock + ?, updated_at = ?
            WHERE id = ? AND stock + ? >= 0;
            """,
            (delta, now(), product_id, delta),
        )
        changed = cur.rowcount
        await cur.close()
        return changed == 1

    async def list_all(self) -> List[models.Product]:
        return await self._fetch_all(
            f"SELECT {_PRODUCT_COLUMNS} FROM products ORDER BY id;"
        )

    async def _keyword(self, term: str) -> List[models.Product]:
        like = f"%{term}%"
        return await self._fetch_all(
            f"""
            SELECT {_PRODUCT_COLUMNS}
            FROM products
            WHERE LOWER(name) LIKE ? OR LOWER(description) LIKE ?
            ORDER BY id;
            """,
            (like, like),
        )

    async def search(self, query: str) -> List[models.Product]:
        """
        Case-insensitive catalog search.
        Rules:
        - Empty string: every product ordered by id.
        - Numeric only: exact id match, falling back to keyword search when
          no product has that id.
        - Multiple words: whole phrase first, then each word; de-duplicated.
        - Single word: keyword search over name/description.
        """
        phrase = (query or "").strip().lower()
        if not phrase:
            return await self.list_all()

        if phrase.isdigit():
            exact = await self.get_by_id(int(phrase))
            if exact is not None:
                return [exact]
            return await self._keyword(phrase)

        words = phrase.split()
        if len(words) == 1:
            return await self._keyword(phrase)

        results: List[models.Product] = []
        seen: set[int] = set()
        for term in dict.fromkeys([phrase, *words]):
            for product in await self._keyword(term):
                if product.id not in seen:
                    seen.add(product.id)
                    results.append(product)
        return results

    async def create(
        self,
        category_id: int,
        name: str,
        description: str,
        price: Decimal,
        stock: int,
        image_url: str = "",
    ) -> models.Product:
        ts = now()
        cur = await self.conn.execute(
            """
            INSERT INTO products
                (category_id, name, description, price, stock, image_url, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (category_id, name, description, str(price), stock, image_url, ts, ts),
        )
        product_id = cur.lastrowid
        await cur.close()
        return await self.get_by_id(product_id)

    async def update_price(self, product_id: int, price: Decimal) -> bool:
        cur = await self.conn.execute(
            "UPDATE products SET price = ?, updated_at = ? WHERE id = ?;",
            (str(price), now(), product_id),
        )
        changed = cur.rowcount
        await cur.close()
        return changed == 1

    async def count(self) -> int:
        cur = await self.conn.execute("SELECT COUNT(*) FROM products;")
        row = await cur.fetchone()
        await cur.close()
        return int(row[0])


class CategoryStore:
    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def get_by_id(self, category_id: int) -> Optional[models.Category]:
        cur = await self.conn.execute(
            "SELECT id, name, description FROM categories WHERE id = ?;",
            (category_id,),
        )
        row = await cur.fetchone()
        await cur.close()
        return _row_to_category(row) if row else None

    async def list_all(self) -> List[models.Category]:
        cur = await self.conn.execute(
            "SELECT id, name, description FROM categories ORDER BY name;"
        )
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_category(row) for row in rows]

    async def create(self, name: str, description: str) -> models.Category:
        cur = await self.conn.execute(
            "INSERT INTO categories (name, description) VALUES (?, ?);",
            (name, description),
        )
        category_id = cur.lastrowid
        await cur.close()
        return models.Category(id=category_id, name=name, description=description)
