from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple

import aiomysql


@asynccontextmanager
async def get_cursor(
    pool: aiomysql.Pool, *, dict_rows: bool = True
) -> AsyncIterator[aiomysql.Cursor]:
    """
    Cursor for single statements (pool runs with autocommit).
    """
    cursor_cls = aiomysql.DictCursor if dict_rows else aiomysql.Cursor
    async with pool.acquire() as conn:
        async with conn.cursor(cursor_cls) as cur:
            yield cur


@asynccontextmanager
async def transaction(
    pool: aiomysql.Pool, *, dict_rows: bool = True
) -> AsyncIterator[Tuple[aiomysql.Connection, aiomysql.Cursor]]:
    """
    Commit on success, roll back on any exception.

        async with transaction(pool) as (conn, cur):
            await cur.execute("DELETE FROM tournament_match WHERE tournament_id=%s;", (tid,))
            await cur.executemany(insert_sql, rows)
    """
    cursor_cls = aiomysql.DictCursor if dict_rows else aiomysql.Cursor

    async with pool.acquire() as conn:
        await conn.begin()
        try:
            async with conn.cursor(cursor_cls) as cur:
                yield conn, cur
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
