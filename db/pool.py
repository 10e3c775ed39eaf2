from __future__ import annotations

import logging
from typing import Optional

import aiomysql

from config import MySqlConfig

log = logging.getLogger(__name__)


class DbPool:
    """
    Owns the aiomysql pool shared by every repository.
    Started once in setup, closed on shutdown.
    """

    def __init__(self) -> None:
        self._pool: Optional[aiomysql.Pool] = None

    @property
    def pool(self) -> aiomysql.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call await DbPool.start() first.")
        return self._pool

    async def start(self, cfg: MySqlConfig) -> None:
        if self._pool is not None:
            return

        self._pool = await aiomysql.create_pool(
            host=cfg.host,
            port=cfg.port,
            user=cfg.user,
            password=cfg.password,
            db=cfg.database,
            minsize=cfg.minsize,
            maxsize=cfg.maxsize,
            connect_timeout=cfg.connect_timeout,
            autocommit=True,
            charset="utf8mb4",
        )
        await self.ping()
        log.info("DB pool ready (%s@%s:%s/%s)", cfg.user, cfg.host, cfg.port, cfg.database)

    async def ping(self) -> None:
        async with self.pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1;")
                await cur.fetchone()

    async def close(self) -> None:
        if self._pool is None:
            return
        self._pool.close()
        await self._pool.wait_closed()
        self._pool = None
