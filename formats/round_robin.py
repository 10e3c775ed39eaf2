from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from domain.models import Match, ParticipantId
from formats.errors import InsufficientParticipants, InvalidParticipants

# Marker for the rest-week slot added to an odd field.
_BYE = object()


def _circle_rounds(ids: Sequence[ParticipantId]) -> list[list[tuple[object, object]]]:
    """
    One single round robin with the circle method. Returns, per round, the
    (home, away) pairs including pairs against the rest-week slot.
    """
    field: list[object] = list(ids)
    if len(field) % 2 == 1:
        field.append(_BYE)
    n = len(field)

    fixed, rest = field[0], field[1:]
    rounds: list[list[tuple[object, object]]] = []
    for r in range(n - 1):
        order = [fixed] + rest
        pairs = []
        for i in range(n // 2):
            a, b = order[i], order[n - 1 - i]
            pairs.append((a, b) if (r + i) % 2 == 0 else (b, a))
        rounds.append(pairs)
        rest = [rest[-1]] + rest[:-1]
    return rounds


def generate_fixtures(
    accepted_ids: Sequence[ParticipantId],
    cycles: int = 1,
    start: Optional[datetime] = None,
    interval_days: int = 7,
    *,
    tournament_id: Optional[int] = None,
) -> list[Match]:
    """
    League schedule. cycles=2 adds the return leg with home and away swapped.

    Rounds are numbered cycle-major; a dated schedule puts round r at
    start + (r - 1) * interval_days.
    """
    ids = list(accepted_ids)
    if any(pid is None for pid in ids):
        raise InvalidParticipants("Participant id must not be empty.")
    if len(set(ids)) != len(ids):
        raise InvalidParticipants("Duplicate participant ids in entrant list.")
    if len(ids) < 2:
        raise InsufficientParticipants("At least 2 accepted participants are required.")
    if cycles not in (1, 2):
        raise InvalidParticipants(f"cycles must be 1 or 2, got {cycles!r}")
    if interval_days < 0:
        raise InvalidParticipants("interval_days must not be negative")

    single = _circle_rounds(ids)
    per_cycle = len(single)

    fixtures: list[Match] = []
    for cycle in range(cycles):
        for r, pairs in enumerate(single):
            round_no = cycle * per_cycle + r + 1
            when = start + timedelta(days=(round_no - 1) * interval_days) if start is not None else None
            block = 0
            for home, away in pairs:
                if home is _BYE or away is _BYE:
                    continue
                if cycle == 1:
                    home, away = away, home
                fixtures.append(
                    Match(
                        tournament_id=tournament_id,
                        round_no=round_no,
                        block=block,
                        home_id=home,
                        away_id=away,
                        scheduled_at=when,
                    )
                )
                block += 1
    return fixtures


def resting_participants(participant_ids: Iterable[ParticipantId], round_matches: Iterable[Match]) -> list[ParticipantId]:
    present = set()
    for m in round_matches:
        if m.home_id is not None and m.away_id is not None:
            present.add(m.home_id)
            present.add(m.away_id)
    return [pid for pid in participant_ids if pid not in present]


def set_round_date(matches: Iterable[Match], round_no: int, when: Optional[datetime]) -> list[Match]:
    """
    Set (or clear, with None) the date of every fixture in one round.
    Returns updated copies of the fixtures whose date changed.
    """
    out = []
    for m in matches:
        if m.round_no != round_no or m.scheduled_at == when:
            continue
        out.append(replace(m, scheduled_at=when))
    return out
