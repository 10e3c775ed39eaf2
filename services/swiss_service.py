from __future__ import annotations

import logging
from dataclasses import replace

from domain.enums import Discipline, MatchStatus, Role, TournamentFormat
from domain.models import Match, SwissRound, SwissStanding
from formats.swiss import build_rounds, compute_standings, generate_next_round, parse_chess_result
from repositories.match_repo import MatchRepo
from services.tournament_service import (
    ScoreValidationError,
    TournamentService,
    require_manager,
    validate_scores,
)

log = logging.getLogger(__name__)


class SwissService:
    """
    Swiss system tournaments. Each call to next_round appends one round;
    reset wipes every round so pairing can start over.
    """

    def __init__(self, tournament_service: TournamentService, match_repo: MatchRepo) -> None:
        self._tournaments = tournament_service
        self._repo = match_repo

    async def next_round(self, *, tournament_id: int, role: Role) -> list[Match]:
        require_manager(role)
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.SWISS)

        ids = await self._tournaments.accepted_ids(tournament_id=tournament_id)
        history = await self._repo.list_matches(tournament_id=tournament_id)
        unplayed = [m for m in history if m.home_id is not None and m.away_id is not None and not m.is_played]
        if unplayed:
            log.warning("Swiss %s: pairing next round with %s unplayed games", tournament_id, len(unplayed))

        pairings = generate_next_round(ids, history, tournament_id=tournament_id)
        await self._repo.insert_matches(tournament_id=tournament_id, matches=pairings)
        log.info("Swiss %s: round %s paired (%s boards)", tournament_id, pairings[0].round_no, len(pairings))
        return pairings

    async def reset(self, *, tournament_id: int, role: Role) -> int:
        require_manager(role)
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.SWISS)
        deleted = await self._repo.delete_matches(tournament_id=tournament_id)
        log.info("Swiss %s: reset, %s matches deleted", tournament_id, deleted)
        return deleted

    async def standings(self, *, tournament_id: int) -> list[SwissStanding]:
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.SWISS)
        participants = await self._tournaments.participants(tournament_id=tournament_id)
        matches = await self._repo.list_matches(tournament_id=tournament_id)
        return compute_standings(participants, matches)

    async def rounds(self, *, tournament_id: int) -> list[SwissRound]:
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.SWISS)
        participants = await self._tournaments.participants(tournament_id=tournament_id)
        matches = await self._repo.list_matches(tournament_id=tournament_id)
        return build_rounds(participants, matches)

    async def record_result(self, *, tournament_id: int, match_id: int, result: str, role: Role) -> Match:
        """
        result: "1-0", "0-1", "0.5-0.5", or empty to clear.
        """
        require_manager(role)
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.SWISS)
        m = await self._tournaments.get_match(tournament_id=tournament_id, match_id=match_id)
        if m.home_id is None or m.away_id is None:
            raise ScoreValidationError("A bye has a fixed result.")

        if (result or "").strip():
            try:
                home, away = parse_chess_result(result)
            except ValueError as e:
                raise ScoreValidationError(str(e)) from e
            validate_scores(Discipline.CHESS, home, away)
            updated = replace(m, home_score=home, away_score=away, status=MatchStatus.FINISHED)
        else:
            updated = replace(m, home_score=None, away_score=None, status=MatchStatus.PLANNED)

        await self._repo.update_matches([updated])
        return updated
