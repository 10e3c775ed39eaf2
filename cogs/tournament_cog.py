from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from domain.enums import Role, TournamentFormat
from formats.errors import FormatError
from renderers.bracket_view import BracketView
from renderers.embeds import Embeds
from renderers.league_view import LeagueView, TableOptions
from renderers.swiss_view import SwissView
from services.bracket_service import BracketService
from services.league_service import LeagueService
from services.swiss_service import SwissService
from services.tournament_service import TournamentService, TournamentServiceError

log = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d")


def _parse_when(text: str | None) -> Optional[datetime]:
    raw = (text or "").strip()
    if not raw:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    raise ValueError(f"Date must look like 2025-03-01 or 2025-03-01 18:30, got {raw!r}.")


def role_for(user: discord.abc.User) -> Role:
    if isinstance(user, discord.Member):
        perms = user.guild_permissions
        if perms.administrator:
            return Role.ADMINISTRATOR
        if perms.manage_guild or perms.manage_channels:
            return Role.ORGANIZER
    return Role.PARTICIPANT


class TournamentCog(commands.Cog):
    tournament = app_commands.Group(name="tournament", description="League tables, brackets and Swiss pairings.")

    def __init__(
        self,
        bot: commands.Bot,
        *,
        tournament_service: TournamentService,
        league_service: LeagueService,
        bracket_service: BracketService,
        swiss_service: SwissService,
        embeds: Embeds,
        league_view: LeagueView,
        bracket_view: BracketView,
        swiss_view: SwissView,
    ) -> None:
        self.bot = bot
        self.tournaments = tournament_service
        self.leagues = league_service
        self.brackets = bracket_service
        self.swiss = swiss_service
        self.embeds = embeds
        self.league_view = league_view
        self.bracket_view = bracket_view
        self.swiss_view = swiss_view

    # -----------------------------
    # Helpers
    # -----------------------------

    async def _fail(self, interaction: discord.Interaction, title: str, ex: Exception) -> None:
        log.info("%s: %s", title, ex)
        await interaction.followup.send(embed=self.embeds.error(title=title, description=str(ex)))

    async def _send_pages(self, interaction: discord.Interaction, pages: list[str]) -> None:
        for n, page in enumerate(pages, start=1):
            try:
                await interaction.followup.send(content=page)
            except discord.HTTPException as ex:
                log.warning("Could not send page %d/%d: %s", n, len(pages), ex)
                await self._fail(interaction, "Could not display", ex)
                return

    async def _names(self, tournament_id: int) -> dict:
        return {p.participant_id: p.name for p in await self.tournaments.participants(tournament_id=tournament_id)}

    async def _guard_manager(self, interaction: discord.Interaction) -> bool:
        if role_for(interaction.user).can_manage:
            return True
        await interaction.response.send_message("Only organizers or administrators can do that.", ephemeral=True)
        return False

    # -----------------------------
    # League
    # -----------------------------

    @tournament.command(name="table", description="Show the league table.")
    async def table(self, interaction: discord.Interaction, tournament_id: int) -> None:
        await interaction.response.defer(ephemeral=False)
        try:
            info = await self.tournaments.get_info(tournament_id=tournament_id)
            rows = await self.leagues.table(tournament_id=tournament_id)
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Table unavailable", ex)
            return

        await interaction.followup.send(content=self.league_view.render_table(rows, opts=TableOptions(title=info.name)))

    @tournament.command(name="fixtures", description="Show league fixtures (optionally one round).")
    async def fixtures(self, interaction: discord.Interaction, tournament_id: int, round_no: Optional[int] = None) -> None:
        await interaction.response.defer(ephemeral=False)
        try:
            participants, matches = await self.leagues.fixtures(tournament_id=tournament_id)
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Fixtures unavailable", ex)
            return

        pages = self.league_view.render_fixtures(
            participants,
            matches,
            title=f"Tournament {tournament_id} fixtures",
            rounds=[round_no] if round_no is not None else None,
        )
        await self._send_pages(interaction, pages)

    @tournament.command(name="schedule", description="Generate the league schedule (round robin).")
    @app_commands.describe(
        cycles="1 = single round robin, 2 = home and away",
        start="First round date, e.g. 2025-03-01 18:30 (optional)",
        interval_days="Days between rounds",
    )
    @app_commands.choices(
        cycles=[
            app_commands.Choice(name="Single", value=1),
            app_commands.Choice(name="Home and away", value=2),
        ]
    )
    async def schedule(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        cycles: app_commands.Choice[int],
        start: Optional[str] = None,
        interval_days: Optional[app_commands.Range[int, 0, 60]] = None,
    ) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        try:
            fixtures = await self.leagues.generate_schedule(
                tournament_id=tournament_id,
                role=role_for(interaction.user),
                cycles=int(cycles.value),
                start=_parse_when(start),
                interval_days=interval_days,
            )
        except (ValueError, FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Schedule not generated", ex)
            return

        rounds = max((m.round_no for m in fixtures), default=0)
        await interaction.followup.send(
            embed=self.embeds.success(
                title="Schedule generated",
                description=f"**{len(fixtures)}** fixtures over **{rounds}** rounds for tournament `{tournament_id}`.",
            )
        )

    @tournament.command(name="round_date", description="Set or clear the date of every fixture in one round.")
    @app_commands.describe(when="e.g. 2025-03-01 18:30; leave empty to clear")
    async def round_date(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        round_no: app_commands.Range[int, 1, 200],
        when: Optional[str] = None,
    ) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=True)

        try:
            changed = await self.leagues.set_round_date(
                tournament_id=tournament_id,
                role=role_for(interaction.user),
                round_no=int(round_no),
                when=_parse_when(when),
            )
        except (ValueError, FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Date not changed", ex)
            return

        verb = "set" if when else "cleared"
        await interaction.followup.send(
            embed=self.embeds.success(title="Round dates updated", description=f"Date {verb} on {changed} fixtures of round {round_no}."),
            ephemeral=True,
        )

    @tournament.command(name="reset", description="Delete every match of a league or Swiss tournament.")
    async def reset(self, interaction: discord.Interaction, tournament_id: int) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        role = role_for(interaction.user)
        try:
            info = await self.tournaments.get_info(tournament_id=tournament_id)
            if info.format == TournamentFormat.SWISS:
                n = await self.swiss.reset(tournament_id=tournament_id, role=role)
            elif info.format == TournamentFormat.LEAGUE:
                n = await self.leagues.reset_schedule(tournament_id=tournament_id, role=role)
            else:
                await interaction.followup.send(
                    embed=self.embeds.warning(title="Use build_bracket", description="Knockout brackets are rebuilt with `/tournament build_bracket`.")
                )
                return
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Reset failed", ex)
            return

        await interaction.followup.send(embed=self.embeds.success(title="Reset", description=f"Deleted {n} matches of tournament `{tournament_id}`."))

    @tournament.command(name="score", description="Enter a score for a league or knockout match.")
    @app_commands.describe(match_code="Code shown in fixtures / bracket, e.g. R2-03")
    async def score(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        match_code: str,
        home_score: app_commands.Range[float, 0, 99],
        away_score: app_commands.Range[float, 0, 99],
    ) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        role = role_for(interaction.user)
        try:
            info = await self.tournaments.get_info(tournament_id=tournament_id)
            m = await self.tournaments.get_match_by_code(tournament_id=tournament_id, match_code=match_code)
            if info.format == TournamentFormat.KNOCKOUT:
                changed = await self.brackets.record_score(
                    tournament_id=tournament_id,
                    match_id=int(m.match_id),
                    home_score=float(home_score),
                    away_score=float(away_score),
                    role=role,
                )
                note = f"{len(changed)} bracket matches updated."
            else:
                await self.leagues.record_score(
                    tournament_id=tournament_id,
                    match_id=int(m.match_id),
                    home_score=float(home_score),
                    away_score=float(away_score),
                    role=role,
                )
                note = "League table updated."
            saved = await self.tournaments.get_match(tournament_id=tournament_id, match_id=int(m.match_id))
            names = await self._names(tournament_id)
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Score not saved", ex)
            return

        await interaction.followup.send(embed=self.embeds.match_card(title="Score saved", match=saved, names=names, note=note))

    # -----------------------------
    # Knockout
    # -----------------------------

    @tournament.command(name="bracket", description="Show the knockout bracket.")
    async def bracket(self, interaction: discord.Interaction, tournament_id: int) -> None:
        await interaction.response.defer(ephemeral=False)
        try:
            participants, matches = await self.brackets.matches(tournament_id=tournament_id)
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Bracket unavailable", ex)
            return

        if not matches:
            await interaction.followup.send(embed=self.embeds.warning(title="No bracket", description="No bracket generated yet."))
            return
        pages = self.bracket_view.render(matches=matches, participants=participants, title=f"Tournament {tournament_id}")
        await self._send_pages(interaction, pages)

    @tournament.command(name="build_bracket", description="(Re)build the knockout bracket from accepted participants.")
    async def build_bracket(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        capacity: Optional[app_commands.Range[int, 2, 256]] = None,
    ) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        try:
            matches = await self.brackets.generate(
                tournament_id=tournament_id,
                role=role_for(interaction.user),
                capacity=int(capacity) if capacity is not None else None,
            )
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Bracket error", ex)
            return

        first_round = sum(1 for m in matches if m.round_no == 1)
        await interaction.followup.send(
            embed=self.embeds.success(
                title="Bracket created",
                description=f"Bracket of **{first_round * 2}** built for tournament `{tournament_id}`.\nView: `/tournament bracket {tournament_id}`",
            )
        )

    @tournament.command(name="shuffle_bracket", description="Randomly redraw round 1 of the bracket.")
    async def shuffle_bracket(self, interaction: discord.Interaction, tournament_id: int) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        try:
            changed = await self.brackets.randomize(tournament_id=tournament_id, role=role_for(interaction.user))
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Shuffle failed", ex)
            return

        await interaction.followup.send(
            embed=self.embeds.success(title="Bracket shuffled", description=f"{len(changed)} matches updated in tournament `{tournament_id}`.")
        )

    @tournament.command(name="assign", description="Place participants in a bracket match by hand.")
    @app_commands.describe(home="Participant id or name (empty = none)", away="Participant id or name (empty = none)")
    async def assign(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        match_code: str,
        home: Optional[str] = None,
        away: Optional[str] = None,
    ) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        try:
            m = await self.tournaments.get_match_by_code(tournament_id=tournament_id, match_code=match_code)
            home_id = await self.tournaments.resolve_participant(tournament_id=tournament_id, raw=home)
            away_id = await self.tournaments.resolve_participant(tournament_id=tournament_id, raw=away)
            try:
                changed = await self.brackets.set_participants(
                    tournament_id=tournament_id,
                    match_id=int(m.match_id),
                    home_id=home_id,
                    away_id=away_id,
                    role=role_for(interaction.user),
                )
            except FormatError as ex:
                allowed = await self.brackets.allowed_participants(tournament_id=tournament_id, match_id=int(m.match_id))
                names = ", ".join(p.name for p in allowed) or "(nobody yet)"
                await self._fail(interaction, "Not allowed", ValueError(f"{ex}\nAllowed here: {names}"))
                return
        except TournamentServiceError as ex:
            await self._fail(interaction, "Assign failed", ex)
            return

        await interaction.followup.send(
            embed=self.embeds.success(title="Participants placed", description=f"`{match_code.upper()}` updated; {len(changed)} matches changed.")
        )

    # -----------------------------
    # Swiss
    # -----------------------------

    @tournament.command(name="swiss_next", description="Pair the next Swiss round.")
    async def swiss_next(self, interaction: discord.Interaction, tournament_id: int) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        try:
            pairings = await self.swiss.next_round(tournament_id=tournament_id, role=role_for(interaction.user))
            rounds = await self.swiss.rounds(tournament_id=tournament_id)
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Pairing failed", ex)
            return

        round_no = pairings[0].round_no
        await interaction.followup.send(embed=self.embeds.success(title=f"Round {round_no} paired", description=f"{len(pairings)} boards."))
        await self._send_pages(interaction, self.swiss_view.render_rounds(rounds, only_round=round_no))

    @tournament.command(name="swiss", description="Show the Swiss ranking and rounds.")
    async def swiss_view_cmd(self, interaction: discord.Interaction, tournament_id: int, round_no: Optional[int] = None) -> None:
        await interaction.response.defer(ephemeral=False)
        try:
            standings = await self.swiss.standings(tournament_id=tournament_id)
            rounds = await self.swiss.rounds(tournament_id=tournament_id)
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Swiss view unavailable", ex)
            return

        await interaction.followup.send(content=self.swiss_view.render_standings(standings))
        await self._send_pages(interaction, self.swiss_view.render_rounds(rounds, only_round=round_no))

    @tournament.command(name="result", description="Enter a chess result for a Swiss pairing.")
    @app_commands.describe(match_code="Round and board, e.g. R3-02")
    @app_commands.choices(
        result=[
            app_commands.Choice(name="1 - 0", value="1-0"),
            app_commands.Choice(name="0.5 - 0.5", value="0.5-0.5"),
            app_commands.Choice(name="0 - 1", value="0-1"),
            app_commands.Choice(name="clear", value=""),
        ]
    )
    async def result(
        self,
        interaction: discord.Interaction,
        tournament_id: int,
        match_code: str,
        result: app_commands.Choice[str],
    ) -> None:
        if not await self._guard_manager(interaction):
            return
        await interaction.response.defer(ephemeral=False)

        try:
            m = await self.tournaments.get_match_by_code(tournament_id=tournament_id, match_code=match_code)
            saved = await self.swiss.record_result(
                tournament_id=tournament_id,
                match_id=int(m.match_id),
                result=result.value,
                role=role_for(interaction.user),
            )
            names = await self._names(tournament_id)
        except (FormatError, TournamentServiceError) as ex:
            await self._fail(interaction, "Result not saved", ex)
            return

        await interaction.followup.send(embed=self.embeds.match_card(title="Result saved", match=saved, names=names))


async def setup(
    bot: commands.Bot,
    *,
    tournament_service: TournamentService,
    league_service: LeagueService,
    bracket_service: BracketService,
    swiss_service: SwissService,
    embeds: Embeds,
    league_view: LeagueView,
    bracket_view: BracketView,
    swiss_view: SwissView,
) -> None:
    await bot.add_cog(
        TournamentCog(
            bot,
            tournament_service=tournament_service,
            league_service=league_service,
            bracket_service=bracket_service,
            swiss_service=swiss_service,
            embeds=embeds,
            league_view=league_view,
            bracket_view=bracket_view,
            swiss_view=swiss_view,
        )
    )
