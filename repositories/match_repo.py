from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence

from db.tx import transaction
from domain.enums import MatchStatus
from domain.models import Match, Score
from repositories.base_repo import BaseRepo

_INSERT_SQL = """
    INSERT INTO tournament_match
      (tournament_id, round_no, block, home_id, away_id,
       home_score, away_score, status, scheduled_at)
    VALUES
      (%s, %s, %s, %s, %s, %s, %s, %s, %s);
"""

_UPDATE_SQL = """
    UPDATE tournament_match
    SET home_id=%s,
        away_id=%s,
        home_score=%s,
        away_score=%s,
        status=%s,
        scheduled_at=%s,
        updated_at=NOW(6)
    WHERE match_id=%s;
"""


def _score(v: Any) -> Score:
    if v is None:
        return None
    f = float(v) if isinstance(v, (Decimal, int, float)) else float(str(v))
    return int(f) if f.is_integer() else f


def match_from_row(row: Mapping[str, Any]) -> Match:
    status = str(row.get("status") or MatchStatus.PLANNED.value).lower()
    return Match(
        match_id=int(row["match_id"]),
        tournament_id=int(row["tournament_id"]),
        round_no=int(row["round_no"]),
        block=int(row["block"]) if row.get("block") is not None else None,
        home_id=row.get("home_id"),
        away_id=row.get("away_id"),
        home_score=_score(row.get("home_score")),
        away_score=_score(row.get("away_score")),
        status=MatchStatus(status) if status in MatchStatus._value2member_map_ else MatchStatus.PLANNED,
        scheduled_at=row.get("scheduled_at"),
    )


def _insert_params(tournament_id: int, m: Match) -> tuple:
    return (
        tournament_id,
        m.round_no,
        m.block,
        m.home_id,
        m.away_id,
        m.home_score,
        m.away_score,
        m.status.value,
        m.scheduled_at,
    )


def _update_params(m: Match) -> tuple:
    return (m.home_id, m.away_id, m.home_score, m.away_score, m.status.value, m.scheduled_at, m.match_id)


class MatchRepo(BaseRepo):
    async def list_matches(self, *, tournament_id: int) -> list[Match]:
        rows = await self.fetch_all(
            """
            SELECT *
            FROM tournament_match
            WHERE tournament_id=%s
            ORDER BY round_no, block IS NULL, block, match_id;
            """,
            (tournament_id,),
        )
        return [match_from_row(r) for r in rows]

    async def get_match(self, *, match_id: int) -> Match | None:
        row = await self.fetch_one("SELECT * FROM tournament_match WHERE match_id=%s;", (match_id,))
        return match_from_row(row) if row else None

    async def count_matches(self, *, tournament_id: int) -> int:
        row = await self.fetch_one(
            "SELECT COUNT(*) AS n FROM tournament_match WHERE tournament_id=%s;",
            (tournament_id,),
        )
        return int(row["n"]) if row else 0

    async def insert_matches(self, *, tournament_id: int, matches: Sequence[Match]) -> int:
        return await self.execute_many(_INSERT_SQL, (_insert_params(tournament_id, m) for m in matches))

    async def update_matches(self, matches: Iterable[Match]) -> int:
        rows = []
        for m in matches:
            if m.match_id is None:
                raise ValueError(f"Cannot update unsaved match {m.code}.")
            rows.append(_update_params(m))
        return await self.execute_many(_UPDATE_SQL, rows)

    async def delete_matches(self, *, tournament_id: int) -> int:
        return await self.execute("DELETE FROM tournament_match WHERE tournament_id=%s;", (tournament_id,))

    async def replace_matches(self, *, tournament_id: int, matches: Sequence[Match]) -> int:
        """
        Delete every match of the tournament and insert the new set atomically.
        """
        async with transaction(self.pool, dict_rows=False) as (_conn, cur):
            await cur.execute("DELETE FROM tournament_match WHERE tournament_id=%s;", (tournament_id,))
            if matches:
                await cur.executemany(_INSERT_SQL, [_insert_params(tournament_id, m) for m in matches])
            return len(matches)
