# user accounts
from __future__ import annotations

from typing import Optional

import aiosqlite

from db import models
from db.convert import now, to_datetime

_USER_COLUMNS = "id, username, email, role, pwd_hash, pwd_salt, created_at"


def _row_to_user(row) -> models.User:
    return models.User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        role=row["role"],
        pwd_hash=row["pwd_hash"],
        pwd_salt=row["pwd_salt"],
        created_at=to_datetime(row["created_at"]),
    )


class UserStore:
    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def _fetch_one(self, sql: str, params: tuple) -> Optional[models.User]:
        cur = await self.conn.execute(sql, params)
        row = await cur.fetchone()
        await cur.close()
        return _row_to_user(row) if row else None

    async def find_by_id(self, user_id: int) -> Optional[models.User]:
        return await self._fetch_one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?;", (user_id,)
        )

    async def find_by_email(self, email: str) -> Optional[models.User]:
        return await self._fetch_one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE LOWER(email) = LOWER(?);",
            (email,),
        )

    async def exists(self, username: str, email: str) -> bool:
        """True if the username or the email is already registered."""
        cur = await self.conn.execute(
            "SELECT 1 FROM users WHERE username = ? OR LOWER(email) = LOWER(?) LIMIT 1;",
            (username, email),
        )
        row = await cur.fetchone()
        await cur.close()
        return row is not None

    async def create(
        self,
        username: str,
        email: str,
        pwd_hash: str,
        pwd_salt: str,
        role: models.Role = "customer",
    ) -> models.User:
        cur = await self.conn.execute(
            """
            INSERT INTO users (username, email, pwd_hash, pwd_salt, role, created_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (username, email, pwd_hash, pwd_salt, role, now()),
        )
        user_id = cur.lastrowid
        await cur.close()
        return await self.find_by_id(user_id)

    async def count(self, role: Optional[models.Role] = None) -> int:
        if role is None:
            cur = await self.conn.execute("SELECT COUNT(*) FROM users;")
        else:
            cur = await self.conn.execute(
                "SELECT COUNT(*) FROM users WHERE role = ?;", (role,)
            )
        row = await cur.fetchone()
        await cur.close()
        return int(row[0])
