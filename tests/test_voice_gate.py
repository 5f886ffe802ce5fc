from unittest.mock import MagicMock

import pytest

from helpers.voice_gate import evaluate_voice, vc
from services.player_registry import PlayerRegistry
from tests.factories import (
    FakeVoiceClient,
    make_guild,
    make_voice_channel,
    make_voice_interaction,
    make_voice_state,
)
from utils.types import Blocked, Proceed, Song, VoiceBlock


def _reason(result):
    assert isinstance(result, Blocked)
    return result.reason


def test_not_in_voice_skips_registry_lookups(localize) -> None:
    interaction = make_voice_interaction(channel=None)
    players = MagicMock(spec=PlayerRegistry)

    result = evaluate_voice(
        interaction, localize, players, check_connection=True, check_queue=True
    )

    assert _reason(result) is VoiceBlock.NOT_IN_VOICE
    players.get_voice.assert_not_called()
    players.get_queue.assert_not_called()


def test_afk_precedes_deaf_checks(localize, players) -> None:
    guild = make_guild()
    afk = make_voice_channel(channel_id=1, guild=guild)
    guild.afk_channel = afk
    interaction = make_voice_interaction(guild=guild, channel=afk, self_deaf=True, deaf=True)

    assert _reason(evaluate_voice(interaction, localize, players)) is VoiceBlock.IN_AFK


def test_self_deaf_precedes_server_deaf(localize, players) -> None:
    interaction = make_voice_interaction(self_deaf=True, deaf=True)
    assert _reason(evaluate_voice(interaction, localize, players)) is VoiceBlock.SELF_DEAF


def test_server_deaf(localize, players) -> None:
    interaction = make_voice_interaction(deaf=True)
    assert _reason(evaluate_voice(interaction, localize, players)) is VoiceBlock.SERVER_DEAF


def test_bot_in_other_channel_via_registry(localize, players) -> None:
    interaction = make_voice_interaction()
    other = make_voice_channel(channel_id=2, guild=interaction.guild)
    players.set_voice(interaction.guild.id, FakeVoiceClient(other))

    assert _reason(evaluate_voice(interaction, localize, players)) is VoiceBlock.NOT_SAME_CHANNEL


def test_bot_in_other_channel_via_own_voice_state(localize, players) -> None:
    interaction = make_voice_interaction()
    other = make_voice_channel(channel_id=2, guild=interaction.guild)
    interaction.guild.me.voice = make_voice_state(channel=other)

    assert _reason(evaluate_voice(interaction, localize, players)) is VoiceBlock.NOT_SAME_CHANNEL


def test_no_connection(localize, players) -> None:
    interaction = make_voice_interaction()
    result = evaluate_voice(interaction, localize, players, check_connection=True)
    assert _reason(result) is VoiceBlock.NO_CONNECTION


def test_no_queue_blocks_but_empty_queue_proceeds(localize, players) -> None:
    interaction = make_voice_interaction()
    assert _reason(
        evaluate_voice(interaction, localize, players, check_queue=True)
    ) is VoiceBlock.NO_QUEUE

    players.create_queue(interaction.guild.id)
    result = evaluate_voice(
        interaction, localize, players, check_queue=True, check_last=True
    )
    assert isinstance(result, Proceed)


def test_last_song_mentions_stop_command(localize, players) -> None:
    interaction = make_voice_interaction()
    players.create_queue(interaction.guild.id).add(Song("Only One", "https://x/1"))

    result = evaluate_voice(
        interaction,
        localize,
        players,
        check_queue=True,
        check_last=True,
        stop_command="/music stop",
    )

    assert _reason(result) is VoiceBlock.LAST_SONG
    assert "`/music stop`" in result.message
    assert result.message.startswith(":x: | ")


def test_last_song_ignored_without_flag(localize, players) -> None:
    interaction = make_voice_interaction()
    players.create_queue(interaction.guild.id).add(Song("Only One", "https://x/1"))

    result = evaluate_voice(interaction, localize, players, check_queue=True)
    assert isinstance(result, Proceed)


def test_all_checks_pass(localize, players) -> None:
    interaction = make_voice_interaction()
    channel = interaction.user.voice.channel
    players.set_voice(interaction.guild.id, FakeVoiceClient(channel))
    queue = players.create_queue(interaction.guild.id)
    queue.add(Song("a", "u1"))
    queue.add(Song("b", "u2"))

    result = evaluate_voice(
        interaction,
        localize,
        players,
        check_connection=True,
        check_queue=True,
        check_last=True,
    )
    assert result
    assert isinstance(result, Proceed)


@pytest.mark.asyncio
async def test_vc_without_flags_sends_nothing(localize, players) -> None:
    interaction = make_voice_interaction()

    result = await vc(interaction, localize, players)

    assert result
    assert interaction.sent == []


@pytest.mark.asyncio
async def test_vc_blocked_replies_once(localize, players) -> None:
    interaction = make_voice_interaction(channel=None)

    result = await vc(interaction, localize, players)

    assert not result
    assert len(interaction.sent) == 1
    message = interaction.sent[0]
    assert message["content"] == ":x: | " + localize("misc:voice:not_in_voice")
    assert message["ephemeral"] is True


@pytest.mark.asyncio
async def test_vc_uses_followup_after_defer(localize, players) -> None:
    interaction = make_voice_interaction(deaf=True)
    await interaction.response.defer()

    await vc(interaction, localize, players)

    assert interaction.response._messages == []
    assert len(interaction.followup._messages) == 1
