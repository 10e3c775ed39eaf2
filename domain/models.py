from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from domain.enums import MatchStatus, Slot

ParticipantId = Union[int, str]
Score = Optional[float]


def match_code(round_no: int, block: int) -> str:
    """
    Human friendly code for a match, e.g. round 2 block 0 => R2-01.
    """
    return f"R{int(round_no)}-{int(block) + 1:02d}"


def parse_match_code(code: str) -> tuple[int, int]:
    """
    Inverse of match_code: "R2-01" -> (2, 0). Raises ValueError on junk.
    """
    raw = (code or "").strip().upper()
    if not raw.startswith("R") or "-" not in raw:
        raise ValueError(f"Invalid match code: {code!r}")
    round_s, block_s = raw[1:].split("-", 1)
    round_no = int(round_s)
    block = int(block_s) - 1
    if round_no < 1 or block < 0:
        raise ValueError(f"Invalid match code: {code!r}")
    return round_no, block


def next_power_of_two(n: int) -> int:
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def id_sort_key(pid: ParticipantId) -> tuple[int, Any]:
    # ints sort numerically and before strings
    if isinstance(pid, int):
        return (0, pid)
    return (1, str(pid))


def format_score(value: Score) -> str:
    if value is None:
        return ""
    v = float(value)
    if v.is_integer():
        return str(int(v))
    return f"{v:g}"


@dataclass(frozen=True)
class Participant:
    participant_id: ParticipantId
    name: str


@dataclass
class Match:
    tournament_id: Optional[int] = None
    round_no: int = 1
    block: Optional[int] = None
    home_id: Optional[ParticipantId] = None
    away_id: Optional[ParticipantId] = None
    home_score: Score = None
    away_score: Score = None
    status: MatchStatus = MatchStatus.PLANNED
    scheduled_at: Optional[datetime] = None
    match_id: Optional[int] = None

    @property
    def code(self) -> str:
        return match_code(self.round_no, self.block or 0)

    @property
    def is_played(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @property
    def is_bye(self) -> bool:
        one_side = (self.home_id is None) != (self.away_id is None)
        return one_side and self.status == MatchStatus.FINISHED

    @property
    def winner_id(self) -> Optional[ParticipantId]:
        if self.is_bye:
            return self.home_id if self.home_id is not None else self.away_id
        if self.home_id is None or self.away_id is None or not self.is_played:
            return None
        if self.home_score > self.away_score:
            return self.home_id
        if self.away_score > self.home_score:
            return self.away_id
        return None

    def participant(self, slot: Slot) -> Optional[ParticipantId]:
        return self.home_id if slot == Slot.HOME else self.away_id

    def set_participant(self, slot: Slot, pid: Optional[ParticipantId]) -> None:
        if slot == Slot.HOME:
            self.home_id = pid
        else:
            self.away_id = pid

    def clear_result(self) -> None:
        self.home_score = None
        self.away_score = None
        self.status = MatchStatus.PLANNED


@dataclass
class TableRow:
    participant_id: ParticipantId
    name: str
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: float = 0
    goals_against: float = 0
    goal_diff: float = 0
    points: int = 0


@dataclass(frozen=True)
class SwissStanding:
    position: int
    participant_id: ParticipantId
    name: str
    points: float


@dataclass(frozen=True)
class SwissPairing:
    white: str
    black: str
    result: Optional[str] = None


@dataclass(frozen=True)
class SwissRound:
    round_no: int
    pairings: list[SwissPairing] = field(default_factory=list)
