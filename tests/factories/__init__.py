"""
Test Factories Module

Centralized factory functions and fixtures for creating test objects.
Provides DRY utilities for Discord mocks, config fixtures, and DB seeding.
"""

from .config_factories import (
    make_config,
    make_minimal_config,
    temp_config_file,
)
from .db_factories import (
    count_rows,
    seed_guild,
    seed_user,
)
from .discord_factories import (
    FakeBot,
    FakeChannel,
    FakeGuild,
    FakeInteraction,
    FakeMember,
    FakeUser,
    FakeVoiceChannel,
    FakeVoiceClient,
    FakeVoiceState,
    make_guild,
    make_interaction,
    make_member,
    make_user,
    make_voice_channel,
    make_voice_interaction,
    make_voice_state,
)

__all__ = [
    "FakeBot",
    "FakeChannel",
    "FakeGuild",
    "FakeInteraction",
    "FakeMember",
    "FakeUser",
    "FakeVoiceChannel",
    "FakeVoiceClient",
    "FakeVoiceState",
    "count_rows",
    "make_config",
    "make_guild",
    "make_interaction",
    "make_member",
    "make_minimal_config",
    "make_user",
    "make_voice_channel",
    "make_voice_interaction",
    "make_voice_state",
    "seed_guild",
    "seed_user",
    "temp_config_file",
]
