from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import discord

from domain.models import Match, ParticipantId, format_score


@dataclass(frozen=True)
class EmbedTheme:
    primary: int = 0x1F8B4C   # pitch green
    success: int = 0x2ECC71
    warning: int = 0xF1C40F
    danger: int = 0xE74C3C
    neutral: int = 0x5865F2


class Embeds:
    """
    Shared embed styling for every tournament command.
    """

    def __init__(self, *, theme: EmbedTheme | None = None, footer: str = "Tournament organizer") -> None:
        self._theme = theme or EmbedTheme()
        self._footer = footer

    def base(
        self,
        *,
        title: str,
        description: str | None = None,
        color: int | None = None,
    ) -> discord.Embed:
        e = discord.Embed(
            title=title,
            description=description,
            color=color if color is not None else self._theme.primary,
        )
        e.set_footer(text=self._footer)
        return e

    def info(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.neutral)

    def success(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.success)

    def warning(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.warning)

    def error(self, *, title: str, description: str | None = None) -> discord.Embed:
        return self.base(title=title, description=description, color=self._theme.danger)

    def match_card(
        self,
        *,
        title: str,
        match: Match,
        names: Mapping[ParticipantId, str],
        note: str | None = None,
    ) -> discord.Embed:
        """
        One match as three inline fields: home, score, away.
        """
        def side(pid: ParticipantId | None) -> str:
            if pid is None:
                return "BYE" if match.round_no == 1 else "TBD"
            return names.get(pid, str(pid))

        score = f"{format_score(match.home_score)} : {format_score(match.away_score)}" if match.is_played else "-"
        e = self.success(title=title, description=f"`{match.code}`" + (f"\n{note}" if note else ""))
        e.add_field(name="Home", value=side(match.home_id), inline=True)
        e.add_field(name="Score", value=score, inline=True)
        e.add_field(name="Away", value=side(match.away_id), inline=True)
        if match.scheduled_at:
            e.add_field(name="Date", value=f"{match.scheduled_at:%Y-%m-%d %H:%M}", inline=False)
        return e
