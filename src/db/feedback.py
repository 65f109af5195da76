# product feedback; rows are written once and never edited
from __future__ import annotations

from typing import List, Optional

import aiosqlite

from db import models
from db.convert import now, to_datetime

_SELECT = """
    SELECT f.id, f.user_id, f.product_id, f.comment, f.rating, f.created_at,
           COALESCE(u.username, '') AS username
    FROM feedback AS f
    LEFT JOIN users AS u ON u.id = f.user_id
"""


def _row_to_feedback(row) -> models.Feedback:
    return models.Feedback(
        id=row["id"],
        user_id=row["user_id"],
        product_id=row["product_id"],
        comment=row["comment"],
        rating=int(row["rating"]),
        created_at=to_datetime(row["created_at"]),
        username=row["username"],
    )


class FeedbackStore:
    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def _fetch(self, sql: str, params: tuple = ()) -> List[models.Feedback]:
        cur = await self.conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_feedback(row) for row in rows]

    async def create(
        self, user_id: int, product_id: int, rating: int, comment: str
    ) -> models.Feedback:
        ts = now()
        cur = await self.conn.execute(
            """
            INSERT INTO feedback (user_id, product_id, comment, rating, created_at)
            VALUES (?, ?, ?, ?, ?);
            """,
            (user_id, product_id, comment, rating, ts),
        )
        feedback_id = cur.lastrowid
        await cur.close()
        return await self.find_by_id(feedback_id)

    async def find_by_id(self, feedback_id: int) -> Optional[models.Feedback]:
        found = await self._fetch(_SELECT + " WHERE f.id = ?;", (feedback_id,))
        return found[0] if found else None

    async def find_by_product(self, product_id: int) -> List[models.Feedback]:
        """Newest first."""
        return await self._fetch(
            _SELECT + " WHERE f.product_id = ? ORDER BY f.created_at DESC, f.id DESC;",
            (product_id,),
        )

    async def find_by_user(self, user_id: int) -> List[models.Feedback]:
        return await self._fetch(
            _SELECT + " WHERE f.user_id = ? ORDER BY f.created_at DESC, f.id DESC;",
            (user_id,),
        )

    async def find_all(self) -> List[models.Feedback]:
        return await self._fetch(_SELECT + " ORDER BY f.created_at DESC, f.id DESC;")
