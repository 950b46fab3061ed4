"""Rotation announcement text."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from salmonbot.data.schedule import ScheduleEntry

TITLE = "새먼런 로테이션 변경!"
COLOR = 0xFFCC00
IMAGE_FILENAME = "currentSalmon.png"


@dataclass(frozen=True)
class RotationMessage:
    """Platform-neutral content of one rotation announcement."""

    title: str
    description: str
    color: int
    footer: str
    image_filename: str
    timestamp: datetime

    @property
    def image_url(self) -> str:
        return f"attachment://{self.image_filename}"


def discord_timestamp(moment: datetime, style: str = "F") -> str:
    """Format a datetime as a Discord <t:unix:style> marker."""
    return f"<t:{int(moment.timestamp())}:{style}>"


def format_rotation_message(
    entry: ScheduleEntry,
    stage_name: str,
    item_names: Sequence[str],
    now: datetime,
) -> RotationMessage:
    start = discord_timestamp(entry.start_time)
    end = discord_timestamp(entry.end_time)

    lines = [
        f"현재 스테이지는 **{stage_name}**!",
        f"**시작: {start}**",
        f"끝: {end}",
        "### 무기:",
    ]
    lines.extend(f"> - {name}" for name in item_names)

    return RotationMessage(
        title=TITLE,
        description="\n".join(lines) + "\n",
        color=COLOR,
        footer=f"시작: {start} 끝: {end}",
        image_filename=IMAGE_FILENAME,
        timestamp=now,
    )


__all__ = ["COLOR", "IMAGE_FILENAME", "RotationMessage", "TITLE", "discord_timestamp", "format_rotation_message"]
