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


async def main() -> None:
    load_dotenv()

    db = DbPool()
    await db.start(load_db_config())
    await db.ping()
    await db.close()

    print("OK: DB pool ping succeeded.")

if __name__ == "__main__":
    asyncio.run(main())
