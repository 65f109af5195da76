# manages connections and transactions, provides schema bootstrap for the db package
import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from sqlite3 import Row
from typing import AsyncIterator

import aiosqlite

from db.convert import now
from utils.config import Settings
from utils.errors import PersistenceError
from utils.logger import get_logger
from utils.security import hash_password

_logger = get_logger(__name__)

_HERE = Path(__file__).resolve().parent
SCHEMA_SCRIPT = _HERE / "tables.sql"
SEED_SCRIPT = _HERE / "seed-data.sql"

# (username, email, password, role)
DEMO_ACCOUNTS = [
    ("admin", "admin@medstore.local", "admin123", "admin"),
    ("jane", "jane@medstore.local", "customer123", "customer"),
]


class Database:
    """
    Owns the sqlite file location and hands out aiosqlite connections.

    Connections run in autocommit mode; `transaction()` is the only way to
    group several statements into one atomic unit. Any aiosqlite error that
    escapes a connection block is re-raised as PersistenceError.
    """

    def __init__(self, path: str, *, timeout: float = 30.0, seed_demo: bool = True):
        self.path = path
        self.timeout = timeout
        self.seed_demo = seed_demo
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.db_path, timeout=settings.db_timeout, seed_demo=settings.seed_demo
        )

    async def _init_db(self, conn: aiosqlite.Connection) -> None:
        _logger.info(f"Initializing database schema in {self.path}...")
        await conn.executescript(SCHEMA_SCRIPT.read_text())
        if not self.seed_demo:
            return
        _logger.info("Loading demo catalog and accounts...")
        await conn.executescript(SEED_SCRIPT.read_text())
        for username, email, pwd, role in DEMO_ACCOUNTS:
            digest, salt = hash_password(pwd)
            await conn.execute(
                """
                INSERT INTO users (username, email, pwd_hash, pwd_salt, role, created_at)
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (username, email, digest, salt, role, now()),
            )

    async def _table_exists(self, conn: aiosqlite.Connection, table_name: str) -> bool:
        cur = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?;",
            (table_name,),
        )
        row = await cur.fetchone()
        await cur.close()
        return row is not None

    async def _ensure_initialized(self, conn: aiosqlite.Connection) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if not self._initialized:
                if not await self._table_exists(conn, "products"):
                    await self._init_db(conn)
                elif not await self._table_exists(conn, "shops"):
                    # files created before feedback and shops existed
                    await conn.executescript(SCHEMA_SCRIPT.read_text())
                self._initialized = True

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection with foreign keys enabled, initializing the db on first use."""
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        try:
            conn = await aiosqlite.connect(
                self.path, timeout=self.timeout, isolation_level=None
            )
        except aiosqlite.Error as exc:
            raise PersistenceError(f"cannot open database {self.path}: {exc}") from exc

        conn.row_factory = Row
        try:
            await conn.execute("PRAGMA foreign_keys = ON;")
            await self._ensure_initialized(conn)
            yield conn
        except aiosqlite.Error as exc:
            _logger.exception("Storage failure")
            raise PersistenceError(f"database error: {exc}") from exc
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Yield a connection inside BEGIN IMMEDIATE.

        Commits when the block exits normally, rolls back on any exception.
        The write lock is taken up front, so concurrent transactions queue
        (up to `timeout` seconds) instead of interleaving.
        """
        async with self.connect() as conn:
            await conn.execute("BEGIN IMMEDIATE;")
            try:
                yield conn
            except BaseException as exc:
                try:
                    await conn.rollback()
                except aiosqlite.Error as rollback_exc:
                    _logger.error(f"Rollback failed: {rollback_exc}")
                    raise PersistenceError(
                        f"rollback failed: {rollback_exc}"
                    ) from exc
                raise
            await conn.commit()
