from __future__ import annotations

from typing import Callable, Optional, Sequence

from domain.enums import MatchStatus
from domain.models import Match, Participant, ParticipantId, format_score
from renderers.paging import code_pages


def _pad(s: str, width: int) -> str:
    s = s or ""
    if len(s) > width:
        return s[: max(0, width - 1)] + "…" if width >= 2 else s[:width]
    return s + (" " * (width - len(s)))


def _round_title(round_no: int, rounds: int) -> str:
    left = rounds - round_no
    if left == 0:
        return "Final"
    if left == 1:
        return "Semi-finals"
    if left == 2:
        return "Quarter-finals"
    return f"Round {round_no}"


def _status_mark(m: Match, label: Callable[[Optional[ParticipantId]], str]) -> str:
    if m.is_bye:
        return "BYE"
    if m.status == MatchStatus.FINISHED:
        w = m.winner_id
        return f"✅ {label(w).strip()}" if w is not None else "✅"
    if m.home_id is not None and m.away_id is not None:
        return "⏳"
    return "•"


class BracketView:
    """
    Text bracket renderer for Discord (monospace).

    Empty round-1 sides print as BYE; empty later sides as "TBD" until the
    child match is decided.
    """

    def __init__(self, *, name_width: int = 20) -> None:
        self._name_width = int(name_width)

    def render(
        self,
        *,
        matches: Sequence[Match],
        participants: Sequence[Participant],
        title: str = "Bracket",
        max_lines: int = 55,
    ) -> list[str]:
        names = {p.participant_id: p.name for p in participants}
        ordered = sorted(matches, key=lambda m: (m.round_no, m.block or 0))
        rounds = max((m.round_no for m in ordered), default=0)

        def label(pid: Optional[ParticipantId], *, round_no: int = 1) -> str:
            if pid is None:
                return _pad("BYE" if round_no == 1 else "TBD", self._name_width)
            return _pad(names.get(pid, str(pid)), self._name_width)

        lines: list[str] = [f"=== {title} ===", ""]
        if not ordered:
            lines.append("(no bracket yet)")

        curr_round: Optional[int] = None
        for m in ordered:
            if curr_round != m.round_no:
                if curr_round is not None:
                    lines.append("")
                curr_round = m.round_no
                lines.append(f"-- {_round_title(m.round_no, rounds).upper()} --")

            home = label(m.home_id, round_no=m.round_no)
            away = label(m.away_id, round_no=m.round_no)
            score = f"{format_score(m.home_score)}-{format_score(m.away_score)}" if m.is_played and not m.is_bye else "   "
            lines.append(f"  {m.code}  {home} {score:^5} {away}  {_status_mark(m, label)}")

        # keep the end: finals matter most
        if len(lines) > max_lines:
            head = lines[:10]
            tail = lines[-(max_lines - 12) :]
            lines = head + ["...", ""] + tail

        return code_pages(lines)
