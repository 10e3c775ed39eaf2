from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from domain.enums import MatchStatus
from domain.models import (
    Match,
    Participant,
    ParticipantId,
    SwissPairing,
    SwissRound,
    SwissStanding,
    format_score,
    id_sort_key,
)
from formats.errors import NoValidPairing

log = logging.getLogger(__name__)

BYE_POINTS = 1.0

CHESS_RESULTS: dict[str, tuple[float, float]] = {
    "1-0": (1.0, 0.0),
    "0-1": (0.0, 1.0),
    "0.5-0.5": (0.5, 0.5),
    "½-½": (0.5, 0.5),
    "1/2-1/2": (0.5, 0.5),
}


def parse_chess_result(text: str) -> tuple[float, float]:
    key = (text or "").replace(" ", "").strip()
    if key not in CHESS_RESULTS:
        raise ValueError(f"Unknown chess result {text!r}; use 1-0, 0-1 or 0.5-0.5.")
    return CHESS_RESULTS[key]


def _bye_recipient(m: Match) -> Optional[ParticipantId]:
    if (m.home_id is None) == (m.away_id is None):
        return None
    if m.status != MatchStatus.FINISHED and not m.is_played:
        return None
    return m.home_id if m.home_id is not None else m.away_id


def swiss_scores(participant_ids: Iterable[ParticipantId], matches: Iterable[Match]) -> dict[ParticipantId, float]:
    """
    Cumulative points per participant. A played game gives each side its own
    score; a bye gives the present side one full point.
    """
    scores: dict[ParticipantId, float] = {pid: 0.0 for pid in participant_ids}
    for m in matches:
        bye_pid = _bye_recipient(m)
        if bye_pid is not None:
            if bye_pid in scores:
                scores[bye_pid] += BYE_POINTS
            continue
        if m.home_id is None or m.away_id is None or not m.is_played:
            continue
        if m.home_id in scores:
            scores[m.home_id] += float(m.home_score)
        if m.away_id in scores:
            scores[m.away_id] += float(m.away_score)
    return scores


def _ranked_pool(ids: Sequence[ParticipantId], scores: dict[ParticipantId, float]) -> list[ParticipantId]:
    groups: dict[float, list[ParticipantId]] = defaultdict(list)
    for pid in ids:
        groups[round(scores.get(pid, 0.0) * 2) / 2].append(pid)
    pool: list[ParticipantId] = []
    for score in sorted(groups, reverse=True):
        pool.extend(sorted(groups[score], key=id_sort_key))
    return pool


def generate_next_round(
    accepted_ids: Sequence[ParticipantId],
    history: Sequence[Match],
    *,
    tournament_id: Optional[int] = None,
) -> list[Match]:
    """
    Pair the next Swiss round.

    Score groups descending, ids ascending inside a group. An odd pool gives
    the lowest ranked player without a previous bye a 1-0 bye. Pairing goes
    top-down to the nearest player not met before, falling back to the next
    free player when every candidate is a rematch.
    """
    ids = list(dict.fromkeys(pid for pid in accepted_ids if pid is not None))
    if len(ids) < 2:
        raise NoValidPairing("Swiss pairing needs at least 2 accepted participants.")

    scores = swiss_scores(ids, history)
    pool = _ranked_pool(ids, scores)

    played: set[frozenset] = set()
    had_bye: set[ParticipantId] = set()
    for m in history:
        if m.home_id is not None and m.away_id is not None:
            played.add(frozenset((m.home_id, m.away_id)))
        bye_pid = _bye_recipient(m)
        if bye_pid is not None:
            had_bye.add(bye_pid)

    round_no = max((m.round_no for m in history), default=0) + 1

    bye_pid: Optional[ParticipantId] = None
    if len(pool) % 2 == 1:
        bye_pid = next((pid for pid in reversed(pool) if pid not in had_bye), pool[-1])
        pool.remove(bye_pid)

    pairs: list[tuple[ParticipantId, ParticipantId]] = []
    paired: set[ParticipantId] = set()
    for i, pid in enumerate(pool):
        if pid in paired:
            continue
        free = [other for other in pool[i + 1 :] if other not in paired]
        if not free:
            break
        opponent = next((o for o in free if frozenset((pid, o)) not in played), None)
        if opponent is None:
            opponent = free[0]
            log.info("Swiss round %s: rematch %r vs %r (no other option)", round_no, pid, opponent)
        paired.update((pid, opponent))
        pairs.append((pid, opponent))

    if not pairs:
        raise NoValidPairing("No pairing could be produced for the next round.")

    out: list[Match] = [
        Match(tournament_id=tournament_id, round_no=round_no, block=block, home_id=home, away_id=away)
        for block, (home, away) in enumerate(pairs)
    ]
    if bye_pid is not None:
        out.append(
            Match(
                tournament_id=tournament_id,
                round_no=round_no,
                block=len(pairs),
                home_id=bye_pid,
                away_id=None,
                home_score=1,
                away_score=0,
                status=MatchStatus.FINISHED,
            )
        )
    return out


def compute_standings(participants: Iterable[Participant], matches: Iterable[Match]) -> list[SwissStanding]:
    people: dict[ParticipantId, Participant] = {}
    for p in participants:
        people.setdefault(p.participant_id, p)
    scores = swiss_scores(people, matches)
    ordered = sorted(people.values(), key=lambda p: (-scores[p.participant_id], p.name.casefold(), p.name))
    return [
        SwissStanding(position=i, participant_id=p.participant_id, name=p.name, points=scores[p.participant_id])
        for i, p in enumerate(ordered, start=1)
    ]


def build_rounds(participants: Iterable[Participant], matches: Iterable[Match]) -> list[SwissRound]:
    names = {p.participant_id: p.name for p in participants}

    def name_of(pid: Optional[ParticipantId]) -> str:
        if pid is None:
            return "BYE"
        return names.get(pid, str(pid))

    by_round: dict[int, list[Match]] = defaultdict(list)
    for m in matches:
        by_round[int(m.round_no)].append(m)

    out: list[SwissRound] = []
    for round_no in sorted(by_round):
        ms = sorted(
            by_round[round_no],
            key=lambda m: (m.block is None, m.block if m.block is not None else 0, m.match_id or 0),
        )
        pairings = [
            SwissPairing(
                white=name_of(m.home_id),
                black=name_of(m.away_id),
                result=f"{format_score(m.home_score)}-{format_score(m.away_score)}" if m.is_played else None,
            )
            for m in ms
        ]
        out.append(SwissRound(round_no=round_no, pairings=pairings))
    return out
