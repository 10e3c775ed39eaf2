from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from domain.enums import MatchStatus, Role, TournamentFormat
from domain.models import Match, Participant, Score, TableRow
from formats.errors import ScheduleAlreadyExists
from formats.round_robin import generate_fixtures, set_round_date
from formats.standings import compute_table
from repositories.match_repo import MatchRepo
from services.tournament_service import (
    ScoreValidationError,
    TournamentService,
    require_manager,
    validate_scores,
)

log = logging.getLogger(__name__)


class LeagueService:
    """
    League (round robin) tournaments: fixture generation, dates, scores and
    the table. Generation refuses when fixtures exist; reset is explicit.
    """

    def __init__(
        self,
        tournament_service: TournamentService,
        match_repo: MatchRepo,
        *,
        default_interval_days: int = 7,
    ) -> None:
        self._tournaments = tournament_service
        self._repo = match_repo
        self._interval_days = int(default_interval_days)

    async def table(self, *, tournament_id: int) -> list[TableRow]:
        participants, matches = await self.fixtures(tournament_id=tournament_id)
        return compute_table(participants, matches)

    async def fixtures(self, *, tournament_id: int) -> tuple[list[Participant], list[Match]]:
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.LEAGUE)
        participants = await self._tournaments.participants(tournament_id=tournament_id)
        matches = await self._repo.list_matches(tournament_id=tournament_id)
        return participants, matches

    async def generate_schedule(
        self,
        *,
        tournament_id: int,
        role: Role,
        cycles: int = 1,
        start: Optional[datetime] = None,
        interval_days: Optional[int] = None,
    ) -> list[Match]:
        require_manager(role)
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.LEAGUE)

        existing = await self._repo.count_matches(tournament_id=tournament_id)
        if existing:
            raise ScheduleAlreadyExists(
                f"Tournament {tournament_id} already has {existing} fixtures. Reset the schedule first."
            )

        ids = await self._tournaments.accepted_ids(tournament_id=tournament_id)
        fixtures = generate_fixtures(
            ids,
            cycles=cycles,
            start=start,
            interval_days=self._interval_days if interval_days is None else int(interval_days),
            tournament_id=tournament_id,
        )
        await self._repo.insert_matches(tournament_id=tournament_id, matches=fixtures)
        log.info("League %s: generated %s fixtures (%s cycle(s))", tournament_id, len(fixtures), cycles)
        return fixtures

    async def reset_schedule(self, *, tournament_id: int, role: Role) -> int:
        require_manager(role)
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.LEAGUE)
        deleted = await self._repo.delete_matches(tournament_id=tournament_id)
        log.info("League %s: schedule reset, %s fixtures deleted", tournament_id, deleted)
        return deleted

    async def set_round_date(self, *, tournament_id: int, role: Role, round_no: int, when: Optional[datetime]) -> int:
        require_manager(role)
        _participants, matches = await self.fixtures(tournament_id=tournament_id)
        changed = set_round_date(matches, int(round_no), when)
        if changed:
            await self._repo.update_matches(changed)
        return len(changed)

    async def clear_round_date(self, *, tournament_id: int, role: Role, round_no: int) -> int:
        return await self.set_round_date(tournament_id=tournament_id, role=role, round_no=round_no, when=None)

    async def record_score(
        self,
        *,
        tournament_id: int,
        match_id: int,
        home_score: Score,
        away_score: Score,
        role: Role,
    ) -> Match:
        require_manager(role)
        info = await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.LEAGUE)
        m = await self._tournaments.get_match(tournament_id=tournament_id, match_id=match_id)
        if m.home_id is None or m.away_id is None:
            raise ScoreValidationError("Rest-week entries cannot have a score.")
        validate_scores(info.discipline, home_score, away_score)

        updated = replace(
            m,
            home_score=home_score,
            away_score=away_score,
            status=MatchStatus.FINISHED if home_score is not None else MatchStatus.PLANNED,
        )
        await self._repo.update_matches([updated])
        return updated
