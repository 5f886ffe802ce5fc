"""
Per-guild voice connection and playback queue registries.

The playback engine (decoding, streaming) is not part of this bot; these
registries only record which guilds have a live voice client and which
songs are pending, which is what the voice gate and the music commands
need to decide what to do.
"""

from __future__ import annotations

import contextlib
from typing import Any

from utils.logging import get_logger
from utils.types import Song

logger = get_logger(__name__)


class PlaybackQueue:
    """Ordered pending songs for one guild. ``songs[0]`` is the current song."""

    def __init__(self, guild_id: int) -> None:
        self.guild_id = guild_id
        self.songs: list[Song] = []

    @property
    def current(self) -> Song | None:
        return self.songs[0] if self.songs else None

    def add(self, song: Song) -> int:
        """Append a song and return its position (0 = playing now)."""
        self.songs.append(song)
        return len(self.songs) - 1

    def skip(self) -> Song | None:
        """Drop the current song and return the one that now plays, if any."""
        if self.songs:
            self.songs.pop(0)
        return self.current

    def clear(self) -> int:
        removed = len(self.songs)
        self.songs.clear()
        return removed

    def __len__(self) -> int:
        return len(self.songs)

    def __repr__(self) -> str:
        return f"<PlaybackQueue guild={self.guild_id} songs={len(self.songs)}>"


class PlayerRegistry:
    """Guild id -> voice client, and guild id -> playback queue."""

    def __init__(self) -> None:
        self.voices: dict[int, Any] = {}
        self.queues: dict[int, PlaybackQueue] = {}

    def get_voice(self, guild_id: int) -> Any | None:
        return self.voices.get(guild_id)

    def set_voice(self, guild_id: int, voice_client: Any) -> None:
        self.voices[guild_id] = voice_client

    def remove_voice(self, guild_id: int) -> Any | None:
        return self.voices.pop(guild_id, None)

    def get_queue(self, guild_id: int) -> PlaybackQueue | None:
        return self.queues.get(guild_id)

    def create_queue(self, guild_id: int) -> PlaybackQueue:
        """Return the guild's queue, creating an empty one if needed."""
        queue = self.queues.get(guild_id)
        if queue is None:
            queue = self.queues[guild_id] = PlaybackQueue(guild_id)
        return queue

    def delete_queue(self, guild_id: int) -> PlaybackQueue | None:
        return self.queues.pop(guild_id, None)

    async def stop(self, guild_id: int) -> None:
        """Forget the queue and disconnect the voice client for a guild."""
        self.delete_queue(guild_id)
        voice_client = self.remove_voice(guild_id)
        if voice_client is None:
            return
        with contextlib.suppress(Exception):
            voice_client.stop()
        try:
            await voice_client.disconnect(force=True)
        except Exception as exc:
            logger.warning(
                "Voice disconnect failed: %s", exc, extra={"guild_id": str(guild_id)}
            )
