from __future__ import annotations

import logging
import random
from typing import Optional

from domain.enums import Role, TournamentFormat
from domain.models import Match, Participant, ParticipantId, Score
from formats.bracket import Bracket, generate_bracket
from repositories.match_repo import MatchRepo
from services.tournament_service import (
    TournamentService,
    require_manager,
    validate_scores,
)

log = logging.getLogger(__name__)


class BracketService:
    """
    Single elimination tournaments.

    Notes:
      - (Re)generation always deletes every match of the tournament and
        inserts a fresh bracket in one transaction.
      - Every edit rebuilds the tree from the rows as they are stored now,
        applies the change in memory and writes back only the changed rows.
    """

    def __init__(
        self,
        tournament_service: TournamentService,
        match_repo: MatchRepo,
        *,
        default_capacity: int = 16,
    ) -> None:
        self._tournaments = tournament_service
        self._repo = match_repo
        self._default_capacity = int(default_capacity)

    # -------------------------
    # Public API
    # -------------------------

    async def generate(self, *, tournament_id: int, role: Role, capacity: Optional[int] = None) -> list[Match]:
        require_manager(role)
        info = await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.KNOCKOUT)

        ids = await self._tournaments.accepted_ids(tournament_id=tournament_id)
        cap = capacity or info.capacity or max(self._default_capacity, len(ids))
        matches = generate_bracket(ids, cap, tournament_id=tournament_id)

        await self._repo.replace_matches(tournament_id=tournament_id, matches=matches)
        log.info("Bracket %s: generated %s matches for %s entrants", tournament_id, len(matches), len(ids))
        return matches

    async def matches(self, *, tournament_id: int) -> tuple[list[Participant], list[Match]]:
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.KNOCKOUT)
        participants = await self._tournaments.participants(tournament_id=tournament_id)
        matches = await self._repo.list_matches(tournament_id=tournament_id)
        return participants, matches

    async def record_score(
        self,
        *,
        tournament_id: int,
        match_id: int,
        home_score: Score,
        away_score: Score,
        role: Role,
    ) -> list[Match]:
        require_manager(role)
        info = await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.KNOCKOUT)
        validate_scores(info.discipline, home_score, away_score)

        m = await self._tournaments.get_match(tournament_id=tournament_id, match_id=match_id)
        tree = await self._tree(tournament_id)
        changed = tree.record_score(m.round_no, int(m.block or 0), home_score, away_score)
        return await self._save(tournament_id, changed)

    async def set_participants(
        self,
        *,
        tournament_id: int,
        match_id: int,
        home_id: Optional[ParticipantId],
        away_id: Optional[ParticipantId],
        role: Role,
    ) -> list[Match]:
        require_manager(role)
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.KNOCKOUT)

        m = await self._tournaments.get_match(tournament_id=tournament_id, match_id=match_id)
        accepted = await self._tournaments.accepted_ids(tournament_id=tournament_id)
        tree = await self._tree(tournament_id)
        changed = tree.set_participants(m.round_no, int(m.block or 0), home_id, away_id, accepted)
        return await self._save(tournament_id, changed)

    async def allowed_participants(self, *, tournament_id: int, match_id: int) -> list[Participant]:
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.KNOCKOUT)
        m = await self._tournaments.get_match(tournament_id=tournament_id, match_id=match_id)
        participants = await self._tournaments.participants(tournament_id=tournament_id)
        tree = await self._tree(tournament_id)
        allowed = tree.allowed_participants(m.round_no, int(m.block or 0), [p.participant_id for p in participants])
        by_id = {p.participant_id: p for p in participants}
        return [by_id[pid] for pid in allowed if pid in by_id]

    async def randomize(self, *, tournament_id: int, role: Role, seed: Optional[int] = None) -> list[Match]:
        require_manager(role)
        await self._tournaments.require_format(tournament_id=tournament_id, fmt=TournamentFormat.KNOCKOUT)

        accepted = await self._tournaments.accepted_ids(tournament_id=tournament_id)
        tree = await self._tree(tournament_id)
        changed = tree.reseed(accepted, random.Random(seed))
        return await self._save(tournament_id, changed)

    # -------------------------
    # Internals
    # -------------------------

    async def _tree(self, tournament_id: int) -> Bracket:
        return Bracket(await self._repo.list_matches(tournament_id=tournament_id))

    async def _save(self, tournament_id: int, changed: list[Match]) -> list[Match]:
        if changed:
            await self._repo.update_matches(changed)
        log.info("Bracket %s: %s matches updated", tournament_id, len(changed))
        return changed
