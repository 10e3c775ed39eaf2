from __future__ import annotations

from typing import Optional, Sequence

from domain.models import SwissRound, SwissStanding, format_score
from renderers.paging import code_block, code_pages


def _pad(s: str, width: int) -> str:
    s = s or ""
    if len(s) > width:
        return s[: max(0, width - 1)] + "…" if width >= 2 else s[:width]
    return s + (" " * (width - len(s)))


class SwissView:
    def render_standings(self, rows: Sequence[SwissStanding], *, title: str = "Ranking", max_rows: int = 30) -> str:
        data = list(rows)[:max_rows]
        name_w = max(18, min(28, max((len(r.name) for r in data), default=18)))

        lines = [f"=== {title} ===", f"{_pad('#', 4)} {_pad('Player', name_w)} Pts", "-" * (4 + 1 + name_w + 4)]
        for r in data:
            lines.append(f"{_pad(str(r.position), 4)} {_pad(r.name, name_w)} {format_score(r.points)}")
        if not data:
            lines.append("(no players)")
        return code_block(lines)

    def render_rounds(
        self,
        rounds: Sequence[SwissRound],
        *,
        only_round: Optional[int] = None,
        name_width: int = 18,
    ) -> list[str]:
        lines: list[str] = []
        for rnd in rounds:
            if only_round is not None and rnd.round_no != only_round:
                continue
            lines.append(f"Round {rnd.round_no}:")
            if not rnd.pairings:
                lines.append("  (no pairings)")
            for board, p in enumerate(rnd.pairings, start=1):
                result = p.result or ("BYE" if p.black == "BYE" else "-")
                lines.append(f"  {board:>2}. {_pad(p.white, name_width)} vs {_pad(p.black, name_width)} {result}")
            lines.append("")
        if not lines:
            lines.append("(no rounds yet)")
        return code_pages(lines)
