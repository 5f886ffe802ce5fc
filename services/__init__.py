"""
Services package for the Discord bot.

Services own the bot's state outside Discord: stored records and the
per-guild player registries.
"""

from .base import BaseService
from .player_registry import PlaybackQueue, PlayerRegistry
from .record_sync import RecordSyncService

__all__ = [
    "BaseService",
    "PlaybackQueue",
    "PlayerRegistry",
    "RecordSyncService",
]
