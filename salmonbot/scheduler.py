"""Supervised loop that announces each Salmon Run rotation as it starts."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from pathlib import Path
from typing import Awaitable, Callable, Protocol

from salmonbot.data.assets import AssetFetcher
from salmonbot.data.schedule import ScheduleEntry, parse_schedule
from salmonbot.data.splatoon_client import SplatoonClient, TransportError
from salmonbot.data.translations import PLACEHOLDER_NAME, TranslationTable
from salmonbot.logic.selector import NoActiveEntry, select_active_entry
from salmonbot.notify.discord_notifier import DeliveryError
from salmonbot.notify.message import RotationMessage, format_rotation_message
from salmonbot.rendering import AssetLoadError, Compositor, RenderError, RenderSpec

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]


class Notifier(Protocol):
    async def send(self, message: RotationMessage, image_path: Path) -> object: ...


class SchedulerState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SELECTING = "selecting"
    RESOLVING = "resolving"
    RENDERING = "rendering"
    NOTIFYING = "notifying"
    SLEEPING = "sleeping"
    FAILED = "failed"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff for transient failures."""

    base_seconds: float
    max_seconds: float
    factor: float = 2.0

    def delay_seconds(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        try:
            delay = self.base_seconds * self.factor ** (attempt - 1)
        except OverflowError:
            return self.max_seconds
        return min(self.max_seconds, delay)


@dataclass(frozen=True)
class CycleResult:
    """Outcome of one completed fetch-to-notify pass."""

    entry: ScheduleEntry
    delay_ms: int
    notified: bool


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_sleep_ms(end_time: datetime, now: datetime) -> int:
    """Milliseconds from now until end_time, never negative."""
    return max(0, (end_time - now) // timedelta(milliseconds=1))


class RotationScheduler:
    """Fetch, render and announce rotations, sleeping until each one ends."""

    def __init__(
        self,
        client: SplatoonClient,
        fetcher: AssetFetcher,
        compositor: Compositor,
        notifier: Notifier,
        translations: TranslationTable,
        retry_policy: RetryPolicy,
        fallback_recheck_seconds: float,
        suppress_initial_notification: bool = False,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._fetcher = fetcher
        self._compositor = compositor
        self._notifier = notifier
        self._translations = translations
        self._retry_policy = retry_policy
        self._fallback_recheck_seconds = fallback_recheck_seconds
        self._suppress_initial_notification = suppress_initial_notification
        self._clock = clock
        self._sleep = sleep
        self._state = SchedulerState.IDLE
        self._stopped = False

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def translations(self) -> TranslationTable:
        return self._translations

    def replace_translations(self, table: TranslationTable) -> None:
        """Swap in a whole new translation table for subsequent cycles."""
        self._translations = table

    def stop(self) -> None:
        """Ask the loop to exit once the current step finishes."""
        self._stopped = True

    def _set_state(self, state: SchedulerState) -> None:
        if state is not self._state:
            logger.debug("Scheduler %s -> %s", self._state.value, state.value)
        self._state = state

    async def run_cycle(self, notify: bool = True) -> CycleResult:
        """Run one pass; with notify=False stop after selecting the rotation."""
        self._set_state(SchedulerState.FETCHING)
        logger.info("Fetching schedule...")
        document = await asyncio.to_thread(self._client.get_schedule)
        feed = parse_schedule(document)

        self._set_state(SchedulerState.SELECTING)
        entry = select_active_entry(feed, self._clock())
        if not notify:
            logger.info("Skipping announcement for rotation ending %s", entry.end_time.isoformat())
            return CycleResult(entry, compute_sleep_ms(entry.end_time, self._clock()), notified=False)

        self._set_state(SchedulerState.RESOLVING)
        table = self._translations
        stage_name = table.resolve_stage_name(entry.stage_id) or PLACEHOLDER_NAME
        item_names = [table.resolve_item_name(item_id) or PLACEHOLDER_NAME for item_id in entry.item_ids]
        logger.info("Downloading images...")
        stage_path, item_paths = await asyncio.to_thread(self._fetcher.fetch_entry_images, entry)

        self._set_state(SchedulerState.RENDERING)
        spec = RenderSpec(
            background_key=entry.category_id,
            stage_image_path=stage_path,
            item_image_paths=tuple(item_paths),
            label_text=stage_name,
        )
        image_path = await asyncio.to_thread(self._compositor.render, spec)

        self._set_state(SchedulerState.NOTIFYING)
        message = format_rotation_message(entry, stage_name, item_names, self._clock())
        notified = await self._deliver(message, image_path)

        return CycleResult(entry, compute_sleep_ms(entry.end_time, self._clock()), notified)

    async def _deliver(self, message: RotationMessage, image_path: Path) -> bool:
        for attempt in (1, 2):
            try:
                await self._notifier.send(message, image_path)
                return True
            except DeliveryError as exc:
                if attempt == 1:
                    logger.warning("Sending rotation card failed, retrying once: %s", exc)
                else:
                    logger.error("Sending rotation card failed again, giving up: %s", exc)
        return False

    async def run(self) -> None:
        """Loop until stop() is called; every iteration ends in a sleep."""
        first_cycle_pending = True
        failures = 0
        while not self._stopped:
            suppress = first_cycle_pending and self._suppress_initial_notification
            try:
                result = await self.run_cycle(notify=not suppress)
            except (TransportError, AssetLoadError) as exc:
                failures += 1
                self._set_state(SchedulerState.FAILED)
                delay_seconds = self._retry_policy.delay_seconds(failures)
                logger.warning("Cycle failed (%s), retry %d in %.0fs", exc, failures, delay_seconds)
            except (NoActiveEntry, RenderError) as exc:
                failures = 0
                self._set_state(SchedulerState.FAILED)
                delay_seconds = self._fallback_recheck_seconds
                logger.error("Cycle failed (%s), re-checking in %.0fs", exc, delay_seconds)
            except Exception:
                failures = 0
                self._set_state(SchedulerState.FAILED)
                delay_seconds = self._fallback_recheck_seconds
                logger.exception("Unexpected error in rotation cycle, re-checking in %.0fs", delay_seconds)
            else:
                first_cycle_pending = False
                failures = 0
                delay_seconds = result.delay_ms / 1000
                if result.delay_ms > 0:
                    logger.info("Next fetch will be in %.2f hours", delay_seconds / 3600)
                else:
                    logger.info("The scheduled end time has already passed, fetching schedule again...")

            if self._stopped:
                break
            self._set_state(SchedulerState.SLEEPING)
            await self._sleep(delay_seconds)

        self._set_state(SchedulerState.IDLE)


__all__ = [
    "CycleResult",
    "RetryPolicy",
    "RotationScheduler",
    "SchedulerState",
    "compute_sleep_ms",
    "utc_now",
]
