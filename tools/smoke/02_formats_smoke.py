from __future__ import annotations

import os, sys
from uuid import uuid4

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import asyncio

from dotenv import load_dotenv

from config import load_db_config
from db.pool import DbPool
from domain.enums import Role
from repositories.match_repo import MatchRepo
from repositories.tournament_repo import TournamentRepo
from services.bracket_service import BracketService
from services.league_service import LeagueService
from services.swiss_service import SwissService
from services.tournament_service import TournamentService


async def _create_tournament(repo: TournamentRepo, *, name: str, discipline: str, fmt: str, players: int) -> int:
    tid = await repo.insert_returning_id(
        "INSERT INTO tournament (name, discipline, format, capacity) VALUES (%s, %s, %s, %s);",
        (name, discipline, fmt, 8),
    )
    for i in range(players):
        uid = await repo.insert_returning_id(
            "INSERT INTO app_user (display_name, email) VALUES (%s, %s);",
            (f"{name}_P{i + 1}", f"p{i + 1}@smoke.test"),
        )
        await repo.execute(
            """
            INSERT INTO tournament_registration (tournament_id, user_id, status, accepted_at)
            VALUES (%s, %s, 'accepted', NOW(6));
            """,
            (tid, uid),
        )
    return tid


async def main() -> None:
    load_dotenv()

    run_id = os.getenv("SMOKE_RUN_ID") or f"smk_{uuid4().hex[:10]}"

    db = DbPool()
    await db.start(load_db_config())

    t_repo = TournamentRepo(db)
    m_repo = MatchRepo(db)
    tournaments = TournamentService(t_repo, m_repo)
    leagues = LeagueService(tournaments, m_repo)
    brackets = BracketService(tournaments, m_repo)
    swiss = SwissService(tournaments, m_repo)
    role = Role.ORGANIZER

    league_id = await _create_tournament(t_repo, name=f"SMOKE_LEAGUE_{run_id}", discipline="football", fmt="league", players=5)
    fixtures = await leagues.generate_schedule(tournament_id=league_id, role=role, cycles=2)
    assert len(fixtures) == 20, len(fixtures)
    stored = await m_repo.list_matches(tournament_id=league_id)
    await leagues.record_score(tournament_id=league_id, match_id=int(stored[0].match_id), home_score=2, away_score=1, role=role)
    table = await leagues.table(tournament_id=league_id)
    assert table[0].points == 3

    ko_id = await _create_tournament(t_repo, name=f"SMOKE_KO_{run_id}", discipline="football", fmt="knockout", players=3)
    matches = await brackets.generate(tournament_id=ko_id, role=role)
    assert len(matches) == 3, len(matches)
    await brackets.randomize(tournament_id=ko_id, role=role, seed=7)

    swiss_id = await _create_tournament(t_repo, name=f"SMOKE_SWISS_{run_id}", discipline="chess", fmt="swiss_system", players=5)
    pairings = await swiss.next_round(tournament_id=swiss_id, role=role)
    assert len(pairings) == 3, len(pairings)
    standings = await swiss.standings(tournament_id=swiss_id)
    assert sum(s.points for s in standings) == 1

    await db.close()
    print(f"OK: formats smoke passed. run_id={run_id} league={league_id} knockout={ko_id} swiss={swiss_id}")

if __name__ == "__main__":
    asyncio.run(main())
