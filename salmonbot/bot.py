"""Discord client that hosts the rotation scheduler."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging

import discord

from salmonbot.config import AppConfig, load_config
from salmonbot.data.assets import AssetFetcher
from salmonbot.data.splatoon_client import SplatoonClient, TransportError
from salmonbot.data.translations import TranslationTable
from salmonbot.logging_setup import configure_logging
from salmonbot.notify import DiscordNotifier
from salmonbot.rendering import Compositor
from salmonbot.scheduler import RetryPolicy, RotationScheduler

logger = logging.getLogger(__name__)


def load_translations(client: SplatoonClient) -> TranslationTable:
    """Fetch the locale table once; an unreachable source yields an empty table."""
    logger.info("Downloading translation table...")
    try:
        table = TranslationTable.from_locale(client.get_translations())
    except TransportError as exc:
        logger.error("Error downloading translation table, names will show as placeholders: %s", exc)
        return TranslationTable.empty()
    logger.info("Translation table loaded (%d stages, %d weapons)", len(table.stages), len(table.items))
    return table


class SalmonBot(discord.Client):
    """Logs in, then runs the rotation scheduler as a background task."""

    def __init__(self, config: AppConfig) -> None:
        intents = discord.Intents.none()
        intents.guilds = True
        super().__init__(intents=intents)
        self._config = config
        self._splatoon = SplatoonClient(
            schedule_url=config.feed.schedule_url,
            translation_url=config.feed.translation_url,
            timeout_seconds=config.feed.timeout_seconds,
        )
        self.scheduler: RotationScheduler | None = None
        self._scheduler_task: asyncio.Task | None = None

    def _build_scheduler(self, translations: TranslationTable) -> RotationScheduler:
        assets = self._config.assets
        scheduler_config = self._config.scheduler
        return RotationScheduler(
            client=self._splatoon,
            fetcher=AssetFetcher(self._splatoon, assets.scratch_dir),
            compositor=Compositor(
                asset_dir=assets.asset_dir,
                output_path=assets.output_path,
                background_override=self._config.discord.background_override,
            ),
            notifier=DiscordNotifier(self, self._config.discord.channel_id),
            translations=translations,
            retry_policy=RetryPolicy(
                base_seconds=scheduler_config.retry_base_seconds,
                max_seconds=scheduler_config.retry_max_seconds,
            ),
            fallback_recheck_seconds=scheduler_config.fallback_recheck_seconds,
            suppress_initial_notification=scheduler_config.suppress_initial_notification,
        )

    async def setup_hook(self) -> None:
        translations = await asyncio.to_thread(load_translations, self._splatoon)
        self.scheduler = self._build_scheduler(translations)
        self._scheduler_task = asyncio.create_task(self._run_scheduler(), name="rotation-scheduler")

    async def _run_scheduler(self) -> None:
        await self.wait_until_ready()
        if self.scheduler is None:
            return
        await self.scheduler.run()

    async def on_ready(self) -> None:
        logger.info("Logged in as %s", self.user)

    async def close(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()
        if self._scheduler_task is not None:
            self._scheduler_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._scheduler_task
            self._scheduler_task = None
        await super().close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Post Salmon Run rotation cards to Discord.")
    parser.add_argument("--config", default="config/config.yaml")
    parser.add_argument(
        "--suppress-initial",
        action="store_true",
        help="skip the announcement for the rotation already running at start-up",
    )
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.suppress_initial:
        config = config.with_suppressed_initial_notification()
    if not config.discord.token:
        raise SystemExit("DISCORD_TOKEN missing in environment")
    if not config.discord.channel_id:
        raise SystemExit("SCHEDULE_CHANNEL missing in environment")
    log_file = configure_logging(config.log)
    logger.info("Logging to %s", log_file)

    SalmonBot(config).run(config.discord.token, log_handler=None)
    return 0


__all__ = ["SalmonBot", "load_translations", "main"]
