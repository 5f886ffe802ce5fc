"""
Cog command tests.

Commands are invoked through ``Command.callback`` with a fake bot, so no
Discord connection is involved.
"""

import discord
import pytest

from cogs.events import LifecycleEvents
from cogs.music import MusicCommands
from cogs.settings import ProfileCommands, SettingsCommands
from tests.factories import (
    FakeBot,
    FakeChannel,
    FakeVoiceClient,
    count_rows,
    make_guild,
    make_interaction,
    make_member,
    make_voice_interaction,
)
from utils.types import Song


@pytest.fixture
def bot(records, locales):
    return FakeBot(records=records, locales=locales)


# ----------------------------------------------------------------------
# lifecycle events
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_guild_join_and_remove(bot) -> None:
    cog = LifecycleEvents(bot)
    guild = make_guild(guild_id=77)

    await cog.on_guild_join(guild)
    assert await count_rows("guilds", guild_id=77) == 1

    await cog.on_guild_remove(guild)
    assert await count_rows("guilds", guild_id=77) == 0


@pytest.mark.asyncio
async def test_member_remove_deletes_user(bot, records) -> None:
    guild = make_guild(guild_id=78)
    member = make_member(user_id=5, guild=guild)
    await records.get_user(5, 78)

    await LifecycleEvents(bot).on_member_remove(member)
    assert await count_rows("users", user_id=5, guild_id=78) == 0


# ----------------------------------------------------------------------
# music
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_join_connects_and_registers(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()

    await cog.join.callback(cog, interaction)

    voice = bot.players.get_voice(interaction.guild.id)
    assert voice is not None
    assert voice.channel is interaction.user.voice.channel
    assert bot.players.get_queue(interaction.guild.id) is not None
    assert interaction.sent[0]["content"].startswith(":white_check_mark:")


@pytest.mark.asyncio
async def test_join_blocked_without_speak(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()
    interaction.channel = FakeChannel(
        guild=interaction.guild,
        permissions={interaction.guild.me.id: discord.Permissions(connect=True)},
    )

    await cog.join.callback(cog, interaction)

    assert bot.players.get_voice(interaction.guild.id) is None
    content = interaction.sent[0]["content"]
    assert "* Speak" in content
    assert "Connect" not in content


@pytest.mark.asyncio
async def test_join_outside_guild(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_interaction(no_guild=True)

    await cog.join.callback(cog, interaction)

    assert "server" in interaction.sent[0]["content"]


@pytest.mark.asyncio
async def test_skip_on_last_song_points_to_stop(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()
    guild_id = interaction.guild.id
    bot.players.set_voice(guild_id, FakeVoiceClient(interaction.user.voice.channel))
    bot.players.create_queue(guild_id).add(Song("only", "u"))

    await cog.skip.callback(cog, interaction)

    assert len(bot.players.get_queue(guild_id)) == 1
    assert "`/music stop`" in interaction.sent[0]["content"]


@pytest.mark.asyncio
async def test_skip_advances_queue(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()
    guild_id = interaction.guild.id
    client = FakeVoiceClient(interaction.user.voice.channel)
    bot.players.set_voice(guild_id, client)
    queue = bot.players.create_queue(guild_id)
    queue.add(Song("first", "u1"))
    queue.add(Song("second", "u2"))

    await cog.skip.callback(cog, interaction)

    assert queue.current.title == "second"
    client.stop.assert_called_once()
    assert "second" in interaction.sent[0]["content"]


@pytest.mark.asyncio
async def test_stop_clears_player(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()
    guild_id = interaction.guild.id
    client = FakeVoiceClient(interaction.user.voice.channel)
    bot.players.set_voice(guild_id, client)
    bot.players.create_queue(guild_id).add(Song("only", "u"))

    await cog.stop.callback(cog, interaction)

    client.disconnect.assert_awaited_once_with(force=True)
    assert bot.players.get_queue(guild_id) is None


@pytest.mark.asyncio
async def test_stop_blocked_when_not_connected(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()

    await cog.stop.callback(cog, interaction)

    assert interaction.sent[0]["content"].startswith(":x: | ")


@pytest.mark.asyncio
async def test_stop_right_after_join(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()
    guild_id = interaction.guild.id

    await cog.join.callback(cog, interaction)
    client = bot.players.get_voice(guild_id)
    await cog.stop.callback(cog, interaction)

    client.disconnect.assert_awaited_once_with(force=True)
    assert bot.players.get_voice(guild_id) is None
    assert interaction.sent[-1]["content"].startswith(":white_check_mark:")


@pytest.mark.asyncio
async def test_skip_on_empty_queue(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()
    guild_id = interaction.guild.id
    client = FakeVoiceClient(interaction.user.voice.channel)
    bot.players.set_voice(guild_id, client)
    bot.players.create_queue(guild_id)

    await cog.skip.callback(cog, interaction)

    client.stop.assert_not_called()
    assert interaction.sent[0]["content"] == bot.locales.translate("en", "music:queue_empty")


@pytest.mark.asyncio
async def test_add_and_queue_listing(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()
    guild_id = interaction.guild.id
    bot.players.set_voice(guild_id, FakeVoiceClient(interaction.user.voice.channel))

    await cog.add.callback(cog, interaction, "Song A", None)
    assert bot.players.get_queue(guild_id).current.title == "Song A"

    listing = make_voice_interaction(guild=interaction.guild)
    await cog.queue.callback(cog, listing)
    embed = listing.sent[0]["embed"]
    assert "Song A" in embed.description


@pytest.mark.asyncio
async def test_queue_empty(bot) -> None:
    cog = MusicCommands(bot)
    interaction = make_voice_interaction()

    await cog.queue.callback(cog, interaction)

    assert interaction.sent[0]["content"] == "The queue is empty."


# ----------------------------------------------------------------------
# settings
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_language_requires_manage_guild(bot, records) -> None:
    cog = SettingsCommands(bot)
    interaction = make_interaction()
    interaction.channel = FakeChannel(
        guild=interaction.guild,
        permissions={interaction.user.id: discord.Permissions.none()},
    )

    await cog.language.callback(cog, interaction, "de")

    assert "Manage Server" in interaction.sent[0]["content"]
    guild = await records.get_guild(interaction.guild.id)
    assert guild.get("language") is None


@pytest.mark.asyncio
async def test_language_is_stored_and_used(bot, records) -> None:
    cog = SettingsCommands(bot)
    interaction = make_interaction()

    await cog.language.callback(cog, interaction, "DE")

    guild = await records.get_guild(interaction.guild.id)
    assert guild["language"] == "de"
    localize = await bot.localizer_for(interaction.guild.id)
    assert localize("misc:voice:not_in_voice") == bot.locales.translate(
        "de", "misc:voice:not_in_voice"
    )


@pytest.mark.asyncio
async def test_language_unknown(bot) -> None:
    cog = SettingsCommands(bot)
    interaction = make_interaction()

    await cog.language.callback(cog, interaction, "xx")

    assert "xx" in interaction.sent[0]["content"]
    assert "en" in interaction.sent[0]["content"]


@pytest.mark.asyncio
async def test_profile_reads_user_record(bot, records) -> None:
    cog = ProfileCommands(bot)
    interaction = make_interaction()
    await records.update_user(interaction.user.id, interaction.guild.id, {"xp": 12})

    await cog.profile.callback(cog, interaction)

    embed = interaction.sent[0]["embed"]
    assert embed.title == "Profile"
    assert [(f.name, f.value) for f in embed.fields] == [("xp", "12")]
