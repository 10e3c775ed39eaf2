from __future__ import annotations

import asyncio
import logging
import signal
from typing import Optional

import discord
from discord.ext import commands

from config import load_config
from db.pool import DbPool

from repositories.match_repo import MatchRepo
from repositories.tournament_repo import TournamentRepo

from services.bracket_service import BracketService
from services.league_service import LeagueService
from services.swiss_service import SwissService
from services.tournament_service import TournamentService

from renderers.embeds import Embeds
from renderers.bracket_view import BracketView
from renderers.league_view import LeagueView
from renderers.swiss_view import SwissView

from cogs.tournament_cog import setup as setup_tournament_cog


class TournamentBot(commands.Bot):
    def __init__(self) -> None:
        self.cfg = load_config()

        intents = discord.Intents.default()
        super().__init__(
            command_prefix=self.cfg.command_prefix,
            intents=intents,
            allowed_mentions=discord.AllowedMentions.none(),
        )

        self.db: Optional[DbPool] = None

    async def setup_hook(self) -> None:
        logging.info("Starting setup_hook...")

        # --- DB ---
        self.db = DbPool()
        await self.db.start(self.cfg.mysql)

        # --- Repos ---
        tournament_repo = TournamentRepo(self.db)
        match_repo = MatchRepo(self.db)

        # --- Services ---
        tournament_service = TournamentService(tournament_repo, match_repo)
        league_service = LeagueService(
            tournament_service,
            match_repo,
            default_interval_days=self.cfg.defaults.round_interval_days,
        )
        bracket_service = BracketService(
            tournament_service,
            match_repo,
            default_capacity=self.cfg.defaults.bracket_capacity,
        )
        swiss_service = SwissService(tournament_service, match_repo)

        # --- Cogs ---
        await setup_tournament_cog(
            self,
            tournament_service=tournament_service,
            league_service=league_service,
            bracket_service=bracket_service,
            swiss_service=swiss_service,
            embeds=Embeds(),
            league_view=LeagueView(),
            bracket_view=BracketView(),
            swiss_view=SwissView(),
        )

        # --- Slash sync ---
        if self.cfg.dev_guild_id:
            guild = discord.Object(id=self.cfg.dev_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logging.info("Slash commands synced to DEV guild %s", self.cfg.dev_guild_id)
        else:
            await self.tree.sync()
            logging.info("Slash commands synced globally")

        logging.info("setup_hook complete.")

    async def close(self) -> None:
        try:
            await super().close()
        finally:
            if self.db:
                await self.db.close()
                self.db = None


async def run_until_stopped(bot: commands.Bot, token: str, stop_event: asyncio.Event) -> None:
    """
    Run the bot until a stop is requested or it exits on its own.

    A failed login or connection re-raises here instead of leaving the
    process waiting for a signal.
    """
    runner = asyncio.create_task(bot.start(token))
    stopper = asyncio.create_task(stop_event.wait())
    try:
        await asyncio.wait({runner, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        await bot.close()
    await runner


async def _run_bot() -> None:
    cfg = load_config()

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bot = TournamentBot()

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _request_stop(*_args) -> None:
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop)
        except NotImplementedError:
            pass

    async with bot:
        await run_until_stopped(bot, cfg.token, stop_event)


def main() -> None:
    asyncio.run(_run_bot())


if __name__ == "__main__":
    main()
