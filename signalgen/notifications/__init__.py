"""Outbound alerts for validated signals."""

from .base import NotificationFailed, Notifier
from .discord import DiscordNotifier, format_discord_message
from .dispatch import NotificationDispatcher

__all__ = [
    "NotificationFailed",
    "Notifier",
    "DiscordNotifier",
    "format_discord_message",
    "NotificationDispatcher",
]
