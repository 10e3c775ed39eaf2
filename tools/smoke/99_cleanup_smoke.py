from __future__ import annotations

import os, sys

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import asyncio

from dotenv import load_dotenv

from config import load_db_config
from db.pool import DbPool
from db.tx import transaction


async def main() -> None:
    load_dotenv()

    run_id = os.getenv("SMOKE_RUN_ID")
    if not run_id:
        raise RuntimeError("Set SMOKE_RUN_ID to the run_id you want to clean up.")
    like = f"SMOKE\\_%\\_{run_id}%"

    db = DbPool()
    await db.start(load_db_config())

    # FK-safe order
    statements = [
        ("DELETE m FROM tournament_match m JOIN tournament t ON t.tournament_id=m.tournament_id WHERE t.name LIKE %s;", (like,)),
        ("DELETE r FROM tournament_registration r JOIN tournament t ON t.tournament_id=r.tournament_id WHERE t.name LIKE %s;", (like,)),
        ("DELETE FROM tournament WHERE name LIKE %s;", (like,)),
        ("DELETE FROM app_user WHERE display_name LIKE %s;", (like,)),
    ]

    async with transaction(db.pool, dict_rows=False) as (_conn, cur):
        for sql, params in statements:
            await cur.execute(sql, params)
            print(f"OK: {cur.rowcount} rows affected")

    await db.close()
    print(f"OK: cleanup done for run_id={run_id}")

if __name__ == "__main__":
    asyncio.run(main())
