from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import aiomysql

from db.pool import DbPool
from db.tx import get_cursor, transaction


class BaseRepo:
    """
    Small SQL helpers shared by the concrete repositories.
    Repos hold no tournament rules; those live in formats/ and services/.
    """

    def __init__(self, db: DbPool) -> None:
        self._db = db

    @property
    def pool(self) -> aiomysql.Pool:
        return self._db.pool

    async def fetch_one(self, sql: str, params: Sequence[Any] | None = None) -> Mapping[str, Any] | None:
        async with get_cursor(self.pool, dict_rows=True) as cur:
            await cur.execute(sql, params or ())
            return await cur.fetchone()

    async def fetch_all(self, sql: str, params: Sequence[Any] | None = None) -> list[Mapping[str, Any]]:
        async with get_cursor(self.pool, dict_rows=True) as cur:
            await cur.execute(sql, params or ())
            rows = await cur.fetchall()
            return list(rows or [])

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> int:
        async with transaction(self.pool, dict_rows=False) as (_conn, cur):
            await cur.execute(sql, params or ())
            return cur.rowcount

    async def execute_many(self, sql: str, params_seq: Iterable[Sequence[Any]]) -> int:
        rows = list(params_seq)
        if not rows:
            return 0
        async with transaction(self.pool, dict_rows=False) as (_conn, cur):
            await cur.executemany(sql, rows)
            return cur.rowcount

    async def insert_returning_id(self, sql: str, params: Sequence[Any] | None = None) -> int:
        async with transaction(self.pool, dict_rows=False) as (_conn, cur):
            await cur.execute(sql, params or ())
            return int(cur.lastrowid)
