from __future__ import annotations

from dataclasses import replace
from typing import Any

import pytest

from services.bracket_service import BracketService
from services.league_service import LeagueService
from services.swiss_service import SwissService
from services.tournament_service import TournamentService


class FakeTournamentRepo:
    def __init__(self) -> None:
        self.tournaments: dict[int, dict[str, Any]] = {}
        self.registrations: dict[int, list[dict[str, Any]]] = {}

    def add(self, tournament_id: int, *, fmt: str, discipline: str = "football", capacity: int | None = None,
            people: list[str] | None = None) -> None:
        self.tournaments[tournament_id] = {
            "tournament_id": tournament_id,
            "name": f"Cup {tournament_id}",
            "discipline": discipline,
            "format": fmt,
            "capacity": capacity,
        }
        self.registrations[tournament_id] = [
            {"participant_id": i, "display_name": name} for i, name in enumerate(people or [], start=1)
        ]

    async def get_tournament(self, *, tournament_id: int):
        return self.tournaments.get(tournament_id)

    async def list_accepted_participants(self, *, tournament_id: int):
        return list(self.registrations.get(tournament_id, []))


class FakeMatchRepo:
    def __init__(self) -> None:
        self.rows: dict[int, Any] = {}
        self._next_id = 1

    def _store(self, tournament_id: int, m) -> None:
        row = replace(m, tournament_id=tournament_id, match_id=self._next_id)
        self.rows[row.match_id] = row
        self._next_id += 1

    async def list_matches(self, *, tournament_id: int):
        ms = [replace(m) for m in self.rows.values() if m.tournament_id == tournament_id]
        return sorted(ms, key=lambda m: (m.round_no, m.block if m.block is not None else 0, m.match_id))

    async def get_match(self, *, match_id: int):
        m = self.rows.get(match_id)
        return replace(m) if m else None

    async def count_matches(self, *, tournament_id: int) -> int:
        return sum(1 for m in self.rows.values() if m.tournament_id == tournament_id)

    async def insert_matches(self, *, tournament_id: int, matches) -> int:
        for m in matches:
            self._store(tournament_id, m)
        return len(matches)

    async def update_matches(self, matches) -> int:
        n = 0
        for m in matches:
            if m.match_id is None:
                raise ValueError("match_id is required for update")
            self.rows[m.match_id] = replace(m)
            n += 1
        return n

    async def delete_matches(self, *, tournament_id: int) -> int:
        doomed = [k for k, m in self.rows.items() if m.tournament_id == tournament_id]
        for k in doomed:
            del self.rows[k]
        return len(doomed)

    async def replace_matches(self, *, tournament_id: int, matches) -> int:
        await self.delete_matches(tournament_id=tournament_id)
        return await self.insert_matches(tournament_id=tournament_id, matches=matches)


@pytest.fixture
def tournament_repo() -> FakeTournamentRepo:
    return FakeTournamentRepo()


@pytest.fixture
def match_repo() -> FakeMatchRepo:
    return FakeMatchRepo()


@pytest.fixture
def tournaments(tournament_repo, match_repo) -> TournamentService:
    return TournamentService(tournament_repo, match_repo)


@pytest.fixture
def league(tournaments, match_repo) -> LeagueService:
    return LeagueService(tournaments, match_repo, default_interval_days=7)


@pytest.fixture
def brackets(tournaments, match_repo) -> BracketService:
    return BracketService(tournaments, match_repo, default_capacity=8)


@pytest.fixture
def swiss(tournaments, match_repo) -> SwissService:
    return SwissService(tournaments, match_repo)
