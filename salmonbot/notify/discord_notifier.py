"""Delivers rotation announcements to a Discord channel."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import aiohttp
import discord

from salmonbot.notify.message import RotationMessage

logger = logging.getLogger(__name__)

NETWORK_ERRORS = (OSError, aiohttp.ClientError, asyncio.TimeoutError)


class DeliveryError(Exception):
    """Raised when an announcement could not be posted."""


def build_embed(message: RotationMessage) -> discord.Embed:
    """Turn a RotationMessage into a Discord embed referencing its attachment."""
    embed = discord.Embed(
        title=message.title,
        description=message.description,
        color=discord.Color(message.color),
        timestamp=message.timestamp,
    )
    embed.set_image(url=message.image_url)
    embed.set_footer(text=message.footer)
    return embed


class DiscordNotifier:
    """Post rotation cards with a logged-in discord.Client."""

    def __init__(self, client: discord.Client, channel_id: int) -> None:
        self._client = client
        self._channel_id = channel_id

    async def _resolve_channel(self) -> discord.abc.Messageable:
        channel = self._client.get_channel(self._channel_id)
        if channel is None:
            try:
                channel = await self._client.fetch_channel(self._channel_id)
            except (discord.HTTPException, *NETWORK_ERRORS) as exc:
                raise DeliveryError(f"Could not fetch channel {self._channel_id}: {exc}") from exc
        if not isinstance(channel, (discord.TextChannel, discord.Thread)):
            raise DeliveryError(f"Channel {self._channel_id} is not a text channel")
        return channel

    async def send(self, message: RotationMessage, image_path: Path) -> discord.Message:
        """Send the embed with the rendered card attached."""
        channel = await self._resolve_channel()
        attachment = discord.File(str(image_path), filename=message.image_filename)
        try:
            sent = await channel.send(embed=build_embed(message), file=attachment)
        except discord.Forbidden as exc:
            raise DeliveryError(f"Missing permissions to post in channel {self._channel_id}") from exc
        except discord.HTTPException as exc:
            raise DeliveryError(f"HTTP error posting to channel {self._channel_id}: {exc}") from exc
        except NETWORK_ERRORS as exc:
            raise DeliveryError(f"Network error posting to channel {self._channel_id}: {exc}") from exc
        finally:
            attachment.close()
        logger.info("Posted rotation card to channel %s (message %s)", self._channel_id, sent.id)
        return sent


__all__ = ["DeliveryError", "DiscordNotifier", "build_embed"]
