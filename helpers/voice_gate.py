"""
Voice precondition gate for voice-dependent commands.

``evaluate_voice`` walks an ordered list of checks and stops at the first
failure; ``vc`` does the same and also tells the user why. Nothing is kept
between calls: every evaluation reads the member's current voice state and
the current registries.

Usage:
    result = await vc(interaction, localize, bot.players, check_queue=True, check_last=True)
    if not result:
        return
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from config.config_loader import DEFAULT_STOP_COMMAND, ConfigLoader
from helpers.replies import ERROR_EMOJI, reply, respond
from utils.log_context import get_interaction_extra
from utils.logging import get_logger
from utils.types import PROCEED, Blocked, GateResult, VoiceBlock

if TYPE_CHECKING:
    from helpers.locales import Localizer
    from services.player_registry import PlayerRegistry

logger = get_logger(__name__)


def _configured_stop_command() -> str:
    return str(ConfigLoader.section("music").get("stop_command") or DEFAULT_STOP_COMMAND)


def _blocked(reason: VoiceBlock, localize: Localizer, **substitutions: Any) -> Blocked:
    text = localize(f"misc:voice:{reason.value}", **substitutions)
    return Blocked(reason=reason, message=reply(text, ERROR_EMOJI))


def _own_voice_channel(guild: Any) -> Any | None:
    me = getattr(guild, "me", None)
    voice = getattr(me, "voice", None)
    return getattr(voice, "channel", None)


def bot_voice_channel(guild: Any, players: PlayerRegistry) -> Any | None:
    """The channel the bot sits in for this guild, if any."""
    voice_client = players.get_voice(guild.id)
    channel = getattr(voice_client, "channel", None)
    if channel is not None:
        return channel
    return _own_voice_channel(guild)


def has_voice_connection(guild: Any, players: PlayerRegistry) -> bool:
    """A registered voice client or the bot's own cached voice state both count."""
    return players.get_voice(guild.id) is not None or _own_voice_channel(guild) is not None


def evaluate_voice(
    interaction: Any,
    localize: Localizer,
    players: PlayerRegistry,
    *,
    check_connection: bool = False,
    check_queue: bool = False,
    check_last: bool = False,
    stop_command: str | None = None,
) -> GateResult:
    """
    Decide whether a voice command may run. Pure: sends nothing.

    Member checks come first (in voice, not AFK, not self/server deafened,
    same channel as the bot); the optional connection and queue checks
    follow. The registries are not consulted until the member checks pass.
    """
    member = interaction.user
    voice = getattr(member, "voice", None)
    channel = getattr(voice, "channel", None)

    if channel is None:
        return _blocked(VoiceBlock.NOT_IN_VOICE, localize)

    guild = interaction.guild
    afk_channel = getattr(guild, "afk_channel", None)
    if afk_channel is not None and channel.id == afk_channel.id:
        return _blocked(VoiceBlock.IN_AFK, localize)

    if voice.self_deaf:
        return _blocked(VoiceBlock.SELF_DEAF, localize)

    if voice.deaf:
        return _blocked(VoiceBlock.SERVER_DEAF, localize)

    current = bot_voice_channel(guild, players)
    if current is not None and current.id != channel.id:
        return _blocked(VoiceBlock.NOT_SAME_CHANNEL, localize)

    if check_connection and not has_voice_connection(guild, players):
        return _blocked(VoiceBlock.NO_CONNECTION, localize)

    if check_queue:
        queue = players.get_queue(guild.id)
        if queue is None:
            return _blocked(VoiceBlock.NO_QUEUE, localize)

        if check_last and len(queue.songs) == 1:
            command = stop_command or _configured_stop_command()
            return _blocked(VoiceBlock.LAST_SONG, localize, cmd=f"`{command}`")

    return PROCEED


async def vc(
    interaction: Any,
    localize: Localizer,
    players: PlayerRegistry,
    check_connection: bool = False,
    check_queue: bool = False,
    check_last: bool = False,
    *,
    stop_command: str | None = None,
) -> GateResult:
    """
    Run ``evaluate_voice`` and, when blocked, send the reason to the user.

    Returns the result either way; it is falsy when the command must stop.
    """
    result = evaluate_voice(
        interaction,
        localize,
        players,
        check_connection=check_connection,
        check_queue=check_queue,
        check_last=check_last,
        stop_command=stop_command,
    )
    if isinstance(result, Blocked):
        logger.info(
            "Voice gate blocked command: %s",
            result.reason.value,
            extra=get_interaction_extra(interaction, reason=result.reason.value),
        )
        await respond(interaction, result.message)
    return result
