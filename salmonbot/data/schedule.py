"""Schedule feed records and parsing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any

from salmonbot.data.splatoon_client import TransportError

logger = logging.getLogger(__name__)

MAX_ITEMS = 4
FEED_PATH = ("data", "coopGroupingSchedule", "regularSchedules", "nodes")


class FeedFormatError(TransportError):
    """Raised when the schedule document does not have the expected shape."""


@dataclass(frozen=True)
class ImageRefs:
    """Remote image URLs for one rotation."""

    stage: str
    items: tuple[str, ...]


@dataclass(frozen=True)
class ScheduleEntry:
    """One Salmon Run rotation window."""

    start_time: datetime
    end_time: datetime
    category_id: str
    stage_id: str
    item_ids: tuple[str, ...]
    image_refs: ImageRefs

    def __post_init__(self) -> None:
        if self.start_time >= self.end_time:
            raise ValueError(f"Rotation starts at {self.start_time} but ends at {self.end_time}")
        if len(self.item_ids) > MAX_ITEMS:
            raise ValueError(f"Rotation has {len(self.item_ids)} items, at most {MAX_ITEMS} allowed")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z'."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp {value!r} has no UTC offset")
    return parsed


def _dig(document: Any, path: tuple[str, ...]) -> Any:
    node = document
    for key in path:
        if not isinstance(node, dict) or key not in node:
            raise FeedFormatError(f"Schedule document is missing '{'.'.join(path)}'")
        node = node[key]
    return node


def parse_entry(node: dict[str, Any]) -> ScheduleEntry:
    """Build a ScheduleEntry from one feed node."""
    try:
        setting = node["setting"]
        stage = setting["coopStage"]
        boss = setting.get("boss") or {}
        weapons = (setting.get("weapons") or [])[:MAX_ITEMS]
        return ScheduleEntry(
            start_time=parse_timestamp(node["startTime"]),
            end_time=parse_timestamp(node["endTime"]),
            category_id=boss.get("id") or "",
            stage_id=stage["id"],
            item_ids=tuple(weapon["__splatoon3ink_id"] for weapon in weapons),
            image_refs=ImageRefs(
                stage=stage["image"]["url"],
                items=tuple(weapon["image"]["url"] for weapon in weapons),
            ),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise FeedFormatError(f"Malformed schedule node: {exc}") from exc


def parse_schedule(document: dict[str, Any]) -> list[ScheduleEntry]:
    """Extract the ordered Salmon Run rotations from a schedules document.

    Malformed nodes are logged and skipped; only a missing or non-list node
    array fails the whole document.
    """
    nodes = _dig(document, FEED_PATH)
    if not isinstance(nodes, list):
        raise FeedFormatError("Schedule nodes must be a list")
    entries = []
    for index, node in enumerate(nodes):
        try:
            entries.append(parse_entry(node))
        except FeedFormatError as exc:
            logger.warning("Skipping schedule node %d: %s", index, exc)
    return entries


__all__ = [
    "FeedFormatError",
    "ImageRefs",
    "MAX_ITEMS",
    "ScheduleEntry",
    "parse_entry",
    "parse_schedule",
    "parse_timestamp",
]
