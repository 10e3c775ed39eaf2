from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Sequence

from domain.models import Match, Participant, TableRow, format_score
from formats.round_robin import resting_participants
from renderers.paging import code_block, code_pages


def _pad(s: str, width: int) -> str:
    s = s or ""
    if len(s) > width:
        return s[: max(0, width - 1)] + "…" if width >= 2 else s[:width]
    return s + (" " * (width - len(s)))


def _signed(v: float) -> str:
    txt = format_score(v)
    return f"+{txt}" if v > 0 else txt


@dataclass(frozen=True)
class TableOptions:
    max_rows: int = 20
    name_width: int = 20
    title: str = "Table"


class LeagueView:
    """
    Monospace league table and fixture list for Discord code blocks.
    """

    def render_table(self, rows: Sequence[TableRow], *, opts: TableOptions | None = None) -> str:
        o = opts or TableOptions()
        data = list(rows)[: o.max_rows]

        idx_w = 3
        name_w = max(o.name_width, min(28, max((len(r.name) for r in data), default=o.name_width)))
        num_w = 4
        goals_w = 7

        lines: list[str] = []
        lines.append(f"=== {o.title} ===")
        lines.append(
            f"{_pad('#', idx_w)} {_pad('Team', name_w)} "
            f"{_pad('M', num_w)} {_pad('Pkt', num_w)} {_pad('Z', num_w)} {_pad('R', num_w)} {_pad('P', num_w)} "
            f"{_pad('Goals', goals_w)} {_pad('GD', num_w)}"
        )
        lines.append("-" * (idx_w + 1 + name_w + 1 + (num_w + 1) * 5 + goals_w + 1 + num_w))

        for i, r in enumerate(data, start=1):
            goals = f"{format_score(r.goals_for)}:{format_score(r.goals_against)}"
            lines.append(
                f"{_pad(str(i), idx_w)} {_pad(r.name, name_w)} "
                f"{_pad(str(r.played), num_w)} {_pad(str(r.points), num_w)} "
                f"{_pad(str(r.wins), num_w)} {_pad(str(r.draws), num_w)} {_pad(str(r.losses), num_w)} "
                f"{_pad(goals, goals_w)} {_pad(_signed(r.goal_diff), num_w)}"
            )

        return code_block(lines)

    def render_fixtures(
        self,
        participants: Sequence[Participant],
        matches: Sequence[Match],
        *,
        title: str = "Fixtures",
        rounds: Sequence[int] | None = None,
        name_width: int = 18,
    ) -> list[str]:
        """One code block per Discord message; long schedules span several."""
        names = {p.participant_id: p.name for p in participants}
        by_round: dict[int, list[Match]] = defaultdict(list)
        for m in matches:
            by_round[m.round_no].append(m)

        lines: list[str] = [f"=== {title} ===", ""]
        if not by_round:
            lines.append("(no fixtures yet)")

        for round_no in sorted(by_round):
            if rounds is not None and round_no not in rounds:
                continue
            lines.append(f"Round {round_no}:")
            ms = sorted(by_round[round_no], key=lambda m: (m.block is None, m.block or 0))
            for m in ms:
                if m.home_id is None or m.away_id is None:
                    continue
                home = _pad(names.get(m.home_id, "?"), name_width)
                away = _pad(names.get(m.away_id, "?"), name_width)
                score = f"{format_score(m.home_score)}:{format_score(m.away_score)}" if m.is_played else " - "
                when = f"  {m.scheduled_at:%Y-%m-%d %H:%M}" if m.scheduled_at else ""
                lines.append(f"  {m.code}  {home} {score:^7} {away}{when}")

            if len(participants) % 2 == 1:
                resting = resting_participants([p.participant_id for p in participants], ms)
                if resting:
                    lines.append("  Rest: " + ", ".join(names[pid] for pid in resting))
            lines.append("")

        return code_pages(lines)
