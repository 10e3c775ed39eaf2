from __future__ import annotations

from typing import Iterable

from domain.models import Match, Participant, ParticipantId, TableRow


def _is_number(v: object) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def compute_table(participants: Iterable[Participant], matches: Iterable[Match]) -> list[TableRow]:
    """
    League table: 3 points for a win, 1 for a draw.

    Unplayed matches and matches referencing unknown participants are skipped.
    Order: points, goal difference, goals for (all desc), then name.
    """
    rows: dict[ParticipantId, TableRow] = {}
    for p in participants:
        if p.participant_id in rows:
            continue
        rows[p.participant_id] = TableRow(participant_id=p.participant_id, name=p.name)

    for m in matches:
        home = rows.get(m.home_id) if m.home_id is not None else None
        away = rows.get(m.away_id) if m.away_id is not None else None
        if home is None or away is None or home is away:
            continue
        hs, as_ = m.home_score, m.away_score
        if not _is_number(hs) or not _is_number(as_):
            continue

        home.played += 1
        away.played += 1
        home.goals_for += hs
        home.goals_against += as_
        away.goals_for += as_
        away.goals_against += hs

        if hs > as_:
            home.wins += 1
            home.points += 3
            away.losses += 1
        elif hs < as_:
            away.wins += 1
            away.points += 3
            home.losses += 1
        else:
            home.draws += 1
            away.draws += 1
            home.points += 1
            away.points += 1

    for r in rows.values():
        r.goal_diff = r.goals_for - r.goals_against

    return sorted(
        rows.values(),
        key=lambda r: (-r.points, -r.goal_diff, -r.goals_for, r.name.casefold(), r.name),
    )
