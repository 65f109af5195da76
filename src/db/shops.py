# shop-owner requests and the shops created when an admin approves one
from __future__ import annotations

from typing import List, Optional

import aiosqlite

from db import models
from db.convert import now, to_datetime

_REQUEST_SELECT = """
    SELECT r.id, r.user_id, r.shop_name, r.description, r.status,
           r.rejection_reason, r.created_at, r.updated_at,
           COALESCE(u.username, '') AS username
    FROM shop_requests AS r
    LEFT JOIN users AS u ON u.id = r.user_id
"""

_SHOP_COLUMNS = (
    "id, user_id, request_id, shop_name, description, is_active, created_at, updated_at"
)


def _row_to_request(row) -> models.ShopRequest:
    return models.ShopRequest(
        id=row["id"],
        user_id=row["user_id"],
        shop_name=row["shop_name"],
        description=row["description"],
        status=models.ShopRequestStatus(row["status"]),
        rejection_reason=row["rejection_reason"],
        created_at=to_datetime(row["created_at"]),
        updated_at=to_datetime(row["updated_at"]),
        username=row["username"],
    )


def _row_to_shop(row) -> models.Shop:
    return models.Shop(
        id=row["id"],
        user_id=row["user_id"],
        request_id=row["request_id"],
        shop_name=row["shop_name"],
        description=row["description"],
        is_active=bool(row["is_active"]),
        created_at=to_datetime(row["created_at"]),
        updated_at=to_datetime(row["updated_at"]),
    )


class ShopRequestStore:
    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def _fetch(self, sql: str, params: tuple = ()) -> List[models.ShopRequest]:
        cur = await self.conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_request(row) for row in rows]

    async def create(
        self, user_id: int, shop_name: str, description: str
    ) -> models.ShopRequest:
        ts = now()
        cur = await self.conn.execute(
            """
            INSERT INTO shop_requests
                (user_id, shop_name, description, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (user_id, shop_name, description, models.ShopRequestStatus.PENDING.value, ts, ts),
        )
        request_id = cur.lastrowid
        await cur.close()
        return await self.find_by_id(request_id)

    async def find_by_id(self, request_id: int) -> Optional[models.ShopRequest]:
        found = await self._fetch(_REQUEST_SELECT + " WHERE r.id = ?;", (request_id,))
        return found[0] if found else None

    async def find_by_user(self, user_id: int) -> List[models.ShopRequest]:
        return await self._fetch(
            _REQUEST_SELECT + " WHERE r.user_id = ? ORDER BY r.created_at DESC, r.id DESC;",
            (user_id,),
        )

    async def find_all(
        self, status: Optional[models.ShopRequestStatus] = None
    ) -> List[models.ShopRequest]:
        if status is None:
            return await self._fetch(
                _REQUEST_SELECT + " ORDER BY r.created_at DESC, r.id DESC;"
            )
        return await self._fetch(
            _REQUEST_SELECT + " WHERE r.status = ? ORDER BY r.created_at DESC, r.id DESC;",
            (status.value,),
        )

    async def update_status(
        self,
        request_id: int,
        status: models.ShopRequestStatus,
        reason: str = "",
        expected: Optional[models.ShopRequestStatus] = None,
    ) -> bool:
        """Same contract as OrderStore.update_status: False if `expected` no longer holds."""
        sql = "UPDATE shop_requests SET status = ?, rejection_reason = ?, updated_at = ? WHERE id = ?"
        params: tuple = (status.value, reason, now(), request_id)
        if expected is not None:
            sql += " AND status = ?"
            params += (expected.value,)
        cur = await self.conn.execute(sql + ";", params)
        changed = cur.rowcount
        await cur.close()
        return changed == 1


class ShopStore:
    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def _fetch(self, sql: str, params: tuple = ()) -> List[models.Shop]:
        cur = await self.conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_shop(row) for row in rows]

    async def create(
        self,
        user_id: int,
        shop_name: str,
        description: str,
        request_id: Optional[int] = None,
    ) -> models.Shop:
        ts = now()
        cur = await self.conn.execute(
            """
            INSERT INTO shops
                (user_id, request_id, shop_name, description, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, 1, ?, ?);
            """,
            (user_id, request_id, shop_name, description, ts, ts),
        )
        shop_id = cur.lastrowid
        await cur.close()
        return await self.find_by_id(shop_id)

    async def find_by_id(self, shop_id: int) -> Optional[models.Shop]:
        found = await self._fetch(f"SELECT {_SHOP_COLUMNS} FROM shops WHERE id = ?;", (shop_id,))
        return found[0] if found else None

    async def find_by_user(self, user_id: int) -> List[models.Shop]:
        return await self._fetch(
            f"SELECT {_SHOP_COLUMNS} FROM shops WHERE user_id = ? ORDER BY id;", (user_id,)
        )

    async def list_all(self, active: Optional[bool] = None) -> List[models.Shop]:
        if active is None:
            return await self._fetch(f"SELECT {_SHOP_COLUMNS} FROM shops ORDER BY id;")
        return await self._fetch(
            f"SELECT {_SHOP_COLUMNS} FROM shops WHERE is_active = ? ORDER BY id;",
            (int(active),),
        )

    async def set_active(self, shop_id: int, active: bool) -> bool:
        cur = await self.conn.execute(
            "UPDATE shops SET is_active = ?, updated_at = ? WHERE id = ?;",
            (int(active), now(), shop_id),
        )
        changed = cur.rowcount
        await cur.close()
        return changed == 1
