from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from domain.enums import MatchStatus, Slot
from domain.models import Match, ParticipantId, Score, next_power_of_two
from formats.errors import BracketStateError, InsufficientParticipants, InvalidParticipants

log = logging.getLogger(__name__)

Position = tuple[int, int]


def bracket_size(entrants: int, capacity: int) -> int:
    """
    Number of round-1 slots: the next power of two that holds every entrant,
    bounded by the capacity (rounded up to a power of two).
    """
    if entrants < 2:
        raise InsufficientParticipants("At least 2 accepted participants are required.")
    if capacity < entrants:
        raise InvalidParticipants(f"{entrants} accepted participants exceed capacity {capacity}.")
    return min(next_power_of_two(entrants), next_power_of_two(capacity))


def round_count(size: int) -> int:
    return max(0, (size - 1).bit_length())


def _validate_ids(ids: Sequence[ParticipantId]) -> list[ParticipantId]:
    out = list(ids)
    if any(pid is None for pid in out):
        raise InvalidParticipants("Participant id must not be empty.")
    if len(set(out)) != len(out):
        raise InvalidParticipants("Duplicate participant ids in entrant list.")
    return out


def _round1_pairs(ids: Sequence[ParticipantId], size: int) -> list[tuple[Optional[ParticipantId], Optional[ParticipantId]]]:
    """
    Fill round-1 slots in the given order. Blocks that receive a bye are the
    trailing ones, one bye each, so no block is left without a participant.
    """
    blocks = size // 2
    full = max(0, len(ids) - blocks)
    pairs: list[tuple[Optional[ParticipantId], Optional[ParticipantId]]] = []
    i = 0
    for b in range(blocks):
        if b < full:
            pairs.append((ids[i], ids[i + 1]))
            i += 2
        elif i < len(ids):
            pairs.append((ids[i], None))
            i += 1
        else:
            pairs.append((None, None))
    return pairs


def _resolve_bye(m: Match) -> None:
    if m.home_id is not None and m.away_id is None:
        m.home_score, m.away_score = 1, 0
        m.status = MatchStatus.FINISHED
    elif m.away_id is not None and m.home_id is None:
        m.home_score, m.away_score = 0, 1
        m.status = MatchStatus.FINISHED


class Bracket:
    """
    In-memory single elimination tree indexed by (round, block).

    A match at (r, b) feeds (r + 1, b // 2): home slot when b is even, away
    slot when odd. Every mutating call returns the matches it changed so the
    caller can persist exactly those rows.
    """

    def __init__(self, matches: Iterable[Match]) -> None:
        self._by_pos: dict[Position, Match] = {}
        for m in matches:
            if m.block is None:
                raise BracketStateError(f"Bracket match in round {m.round_no} has no block.")
            pos = (int(m.round_no), int(m.block))
            if pos in self._by_pos:
                raise BracketStateError(f"Duplicate bracket position {pos}.")
            self._by_pos[pos] = replace(m)

        self.rounds = max((r for r, _ in self._by_pos), default=0)
        self._changed: dict[Position, Match] = {}

    # -------------------------
    # Lookup
    # -------------------------

    @property
    def size(self) -> int:
        return 2 * sum(1 for r, _ in self._by_pos if r == 1)

    def matches(self) -> list[Match]:
        return [self._by_pos[k] for k in sorted(self._by_pos)]

    def match(self, round_no: int, block: int) -> Match:
        m = self._by_pos.get((int(round_no), int(block)))
        if m is None:
            raise BracketStateError(f"No bracket match at round {round_no}, block {block}.")
        return m

    def find(self, match_id: int) -> Match:
        for m in self._by_pos.values():
            if m.match_id == match_id:
                return m
        raise BracketStateError(f"Match {match_id} is not part of this bracket.")

    def children(self, round_no: int, block: int) -> list[Match]:
        if round_no <= 1:
            return []
        out = []
        for b in (2 * block, 2 * block + 1):
            child = self._by_pos.get((round_no - 1, b))
            if child is not None:
                out.append(child)
        return out

    @property
    def champion_id(self) -> Optional[ParticipantId]:
        final = self._by_pos.get((self.rounds, 0))
        return final.winner_id if final else None

    def allowed_participants(
        self, round_no: int, block: int, accepted_ids: Sequence[ParticipantId]
    ) -> list[ParticipantId]:
        self.match(round_no, block)
        if round_no == 1:
            taken = set()
            for (r, b), m in self._by_pos.items():
                if r == 1 and b != block:
                    taken.update(pid for pid in (m.home_id, m.away_id) if pid is not None)
            return [pid for pid in accepted_ids if pid not in taken]

        out: list[ParticipantId] = []
        for child in self.children(round_no, block):
            for pid in (child.home_id, child.away_id):
                if pid is not None and pid not in out:
                    out.append(pid)
        return out

    # -------------------------
    # Mutations
    # -------------------------

    def propagate(self, round_no: int, block: int, winner: Optional[ParticipantId]) -> list[Match]:
        self._changed = {}
        self._walk_up(round_no, block, winner)
        return self._flush()

    def record_score(self, round_no: int, block: int, home_score: Score, away_score: Score) -> list[Match]:
        m = self.match(round_no, block)
        if m.home_id is None or m.away_id is None:
            raise BracketStateError(f"Match {m.code} does not have two participants yet.")

        self._changed = {}
        m.home_score = home_score
        m.away_score = away_score
        m.status = MatchStatus.FINISHED if m.is_played else MatchStatus.PLANNED
        self._mark(m)
        self._walk_up(round_no, block, m.winner_id)
        return self._flush()

    def set_participants(
        self,
        round_no: int,
        block: int,
        home_id: Optional[ParticipantId],
        away_id: Optional[ParticipantId],
        accepted_ids: Sequence[ParticipantId],
    ) -> list[Match]:
        if home_id is not None and home_id == away_id:
            raise BracketStateError("A participant cannot play against itself.")
        allowed = set(self.allowed_participants(round_no, block, accepted_ids))
        for pid in (home_id, away_id):
            if pid is not None and pid not in allowed:
                raise BracketStateError(f"Participant {pid!r} cannot be placed in round {round_no}, block {block}.")

        m = self.match(round_no, block)
        self._changed = {}
        self._walk_up(round_no, block, None)
        if (m.home_id, m.away_id) != (home_id, away_id):
            m.home_id, m.away_id = home_id, away_id
            m.clear_result()
            if round_no == 1:
                _resolve_bye(m)
            self._mark(m)
        self._walk_up(round_no, block, m.winner_id)
        return self._flush()

    def reseed(self, accepted_ids: Sequence[ParticipantId], rng: random.Random | None = None) -> list[Match]:
        """
        Shuffle entrants and reassign round-1 slots only. Higher rounds are
        cleared through propagation wherever a branch's winner changes.
        """
        ids = _validate_ids(accepted_ids)
        if len(ids) < 2:
            raise InsufficientParticipants("At least 2 accepted participants are required.")
        if len(ids) > self.size:
            raise InvalidParticipants(f"{len(ids)} accepted participants do not fit a bracket of {self.size}.")

        (rng or random.Random()).shuffle(ids)
        self._changed = {}
        for block, (home, away) in enumerate(_round1_pairs(ids, self.size)):
            m = self.match(1, block)
            if (m.home_id, m.away_id) != (home, away):
                m.home_id, m.away_id = home, away
                m.clear_result()
                _resolve_bye(m)
                self._mark(m)
            self._walk_up(1, block, m.winner_id)
        log.debug("Reseeded bracket of %s; %s matches changed", self.size, len(self._changed))
        return self._flush()

    # -------------------------
    # Internals
    # -------------------------

    def _mark(self, m: Match) -> None:
        self._changed[(m.round_no, int(m.block or 0))] = m

    def _flush(self) -> list[Match]:
        out = [self._changed[k] for k in sorted(self._changed)]
        self._changed = {}
        return out

    def _walk_up(self, round_no: int, block: int, winner: Optional[ParticipantId]) -> None:
        r, b, w = round_no, block, winner
        while r < self.rounds:
            parent = self._by_pos.get((r + 1, b // 2))
            if parent is None:
                break
            slot = Slot.HOME if b % 2 == 0 else Slot.AWAY
            if parent.participant(slot) == w:
                break
            parent.set_participant(slot, w)
            parent.clear_result()
            self._mark(parent)
            r, b, w = r + 1, b // 2, parent.winner_id


def generate_bracket(
    accepted_ids: Sequence[ParticipantId],
    capacity: int,
    *,
    tournament_id: Optional[int] = None,
) -> list[Match]:
    """
    Build every match of a fresh single elimination bracket.

    Round-1 byes are finished immediately and their winners are already
    placed in round 2.
    """
    ids = _validate_ids(accepted_ids)
    size = bracket_size(len(ids), int(capacity))
    rounds = round_count(size)

    matches: list[Match] = []
    for block, (home, away) in enumerate(_round1_pairs(ids, size)):
        m = Match(tournament_id=tournament_id, round_no=1, block=block, home_id=home, away_id=away)
        _resolve_bye(m)
        matches.append(m)

    for r in range(2, rounds + 1):
        for block in range(size >> r):
            matches.append(Match(tournament_id=tournament_id, round_no=r, block=block))

    tree = Bracket(matches)
    for m in tree.matches():
        if m.round_no == 1 and m.is_bye:
            tree.propagate(1, int(m.block or 0), m.winner_id)

    log.debug("Generated bracket: %s entrants, size %s, %s rounds", len(ids), size, rounds)
    return tree.matches()
