"""Rotation announcement formatting and delivery."""

from salmonbot.notify.discord_notifier import DeliveryError, DiscordNotifier, build_embed
from salmonbot.notify.message import RotationMessage, format_rotation_message

__all__ = ["DeliveryError", "DiscordNotifier", "RotationMessage", "build_embed", "format_rotation_message"]
