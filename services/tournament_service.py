from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.enums import Discipline, Role, TournamentFormat
from domain.models import Match, Participant, ParticipantId, Score, parse_match_code
from domain.names import participant_from_row
from repositories.match_repo import MatchRepo
from repositories.tournament_repo import TournamentRepo

CHESS_SCORES = (0, 0.5, 1)


class TournamentServiceError(Exception):
    pass


class TournamentNotFoundError(TournamentServiceError):
    pass


class MatchNotFoundError(TournamentServiceError):
    pass


class FormatMismatchError(TournamentServiceError):
    pass


class PermissionDeniedError(TournamentServiceError):
    pass


class ScoreValidationError(TournamentServiceError):
    pass


@dataclass(frozen=True)
class TournamentInfo:
    tournament_id: int
    name: str
    discipline: Discipline
    format: TournamentFormat
    capacity: Optional[int]


def require_manager(role: Role) -> None:
    if not Role(role).can_manage:
        raise PermissionDeniedError("Only an organizer or administrator can do that.")


def validate_scores(discipline: Discipline, home: Score, away: Score) -> None:
    """
    Both scores empty (clearing a result) or both set. Football takes
    non-negative integers, chess only 0, 0.5 or 1.
    """
    if home is None and away is None:
        return
    if home is None or away is None:
        raise ScoreValidationError("Enter both scores or neither.")
    for v in (home, away):
        if v < 0:
            raise ScoreValidationError("Scores cannot be negative.")
        if discipline == Discipline.CHESS and v not in CHESS_SCORES:
            raise ScoreValidationError("Chess scores must be 0, 0.5 or 1.")
        if discipline == Discipline.FOOTBALL and float(v) != int(v):
            raise ScoreValidationError("Football scores must be whole numbers.")
    if discipline == Discipline.CHESS and home + away != 1:
        raise ScoreValidationError("Chess results must add up to 1 (1-0, 0-1 or 0.5-0.5).")


class TournamentService:
    """
    Loads the tournament context every format service works from:
    the tournament itself, its accepted participants and its matches.
    """

    def __init__(self, tournament_repo: TournamentRepo, match_repo: MatchRepo) -> None:
        self._repo = tournament_repo
        self._matches = match_repo

    async def get_info(self, *, tournament_id: int) -> TournamentInfo:
        row = await self._repo.get_tournament(tournament_id=tournament_id)
        if not row:
            raise TournamentNotFoundError(f"Tournament not found: {tournament_id}")

        return TournamentInfo(
            tournament_id=int(row["tournament_id"]),
            name=str(row["name"]),
            discipline=Discipline(str(row["discipline"]).lower()),
            format=TournamentFormat(str(row["format"]).lower()),
            capacity=int(row["capacity"]) if row.get("capacity") is not None else None,
        )

    async def require_format(self, *, tournament_id: int, fmt: TournamentFormat) -> TournamentInfo:
        info = await self.get_info(tournament_id=tournament_id)
        if info.format != fmt:
            raise FormatMismatchError(
                f"Tournament {tournament_id} is a {info.format.value} tournament, not {fmt.value}."
            )
        return info

    async def participants(self, *, tournament_id: int) -> list[Participant]:
        rows = await self._repo.list_accepted_participants(tournament_id=tournament_id)
        return [participant_from_row(r) for r in rows]

    async def accepted_ids(self, *, tournament_id: int) -> list[ParticipantId]:
        return [p.participant_id for p in await self.participants(tournament_id=tournament_id)]

    async def matches(self, *, tournament_id: int) -> list[Match]:
        return await self._matches.list_matches(tournament_id=tournament_id)

    async def get_match(self, *, tournament_id: int, match_id: int) -> Match:
        m = await self._matches.get_match(match_id=match_id)
        if m is None or m.tournament_id != tournament_id:
            raise MatchNotFoundError(f"Match {match_id} not found in tournament {tournament_id}.")
        return m

    async def get_match_by_code(self, *, tournament_id: int, match_code: str) -> Match:
        """
        match_code examples: R1-01, R3-04 (round, 1-based position in round)
        """
        try:
            round_no, block = parse_match_code(match_code)
        except ValueError as e:
            raise MatchNotFoundError(str(e)) from e

        for m in await self.matches(tournament_id=tournament_id):
            if m.round_no == round_no and m.block == block:
                return m
        raise MatchNotFoundError(f"Match {match_code.upper()} not found in tournament {tournament_id}.")

    async def resolve_participant(self, *, tournament_id: int, raw: str | None) -> Optional[ParticipantId]:
        """
        Map user input (id or exact display name) to an accepted participant id.
        Empty input means "no participant".
        """
        text = (raw or "").strip()
        if not text:
            return None
        people = await self.participants(tournament_id=tournament_id)
        for p in people:
            if str(p.participant_id) == text:
                return p.participant_id
        for p in people:
            if p.name.casefold() == text.casefold():
                return p.participant_id
        raise TournamentServiceError(f"No accepted participant matches {text!r}.")
