"""
Reply and embed formatting helpers.

Every user-facing message goes through ``reply`` so it carries a status
glyph, and through ``respond`` so it is delivered the same way whether or
not the interaction has already been answered or deferred.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import discord

from config.config_loader import ConfigLoader, parse_hex_color
from utils.errors import FormatterError
from utils.log_context import get_interaction_extra
from utils.logging import get_logger

if TYPE_CHECKING:
    from discord import Embed, Interaction, Message

logger = get_logger(__name__)

ERROR_EMOJI = ":x:"
SUCCESS_EMOJI = ":white_check_mark:"
INFO_EMOJI = ":information_source:"

TIMESTAMP_STYLES = frozenset("tTdDfFR")


def reply(content: str, emoji: str) -> str:
    """Prefix ``content`` with a status glyph: ``":x: | Not in a voice channel"``."""
    return f"{emoji} | {content}"


def _parse_timestamp(timestamp: Any) -> datetime:
    if isinstance(timestamp, datetime):
        return timestamp
    if isinstance(timestamp, int | float) and not isinstance(timestamp, bool):
        try:
            return datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise FormatterError(f"time isn't parsable: {timestamp!r}") from exc
    if isinstance(timestamp, str):
        text = timestamp.strip()
        try:
            return datetime.fromtimestamp(float(text), tz=timezone.utc)
        except ValueError:
            pass
        except (OverflowError, OSError) as exc:
            raise FormatterError(f"time isn't parsable: {timestamp!r}") from exc
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise FormatterError(f"time isn't parsable: {timestamp!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise FormatterError(f"time isn't parsable: {timestamp!r}")


def format_time(timestamp: Any, style: str | None = "F") -> str:
    """
    Render a Discord timestamp tag such as ``<t:1700000000:F>``.

    Args:
        timestamp: A datetime, epoch seconds, or an ISO-8601 / numeric string.
        style: One of Discord's timestamp styles (t, T, d, D, f, F, R).

    Raises:
        FormatterError: When no timestamp is given or it cannot be parsed.
    """
    if timestamp is None or timestamp == "":
        raise FormatterError("time isn't provided (format_time)")
    style = style or "F"
    if style not in TIMESTAMP_STYLES:
        raise FormatterError(f"unknown timestamp style {style!r}")
    return discord.utils.format_dt(_parse_timestamp(timestamp), style)  # type: ignore[arg-type]


def build_embed(
    interaction: Any,
    embeds_config: Mapping[str, Any] | None = None,
) -> discord.Embed:
    """
    Return an embed pre-filled with the configured colour, author footer and timestamp.

    Raises:
        FormatterError: When no interaction is given.
    """
    if interaction is None:
        raise FormatterError("Expected interaction to be provided (embed)")

    cfg = ConfigLoader.section("embeds") if embeds_config is None else embeds_config
    embed = discord.Embed(color=parse_hex_color(cfg.get("hex_color")))

    if cfg.get("show_author"):
        user = getattr(interaction, "user", None)
        if user is not None:
            avatar = getattr(user, "display_avatar", None)
            embed.set_footer(text=str(user), icon_url=getattr(avatar, "url", None))

    if cfg.get("set_timestamp"):
        embed.timestamp = discord.utils.utcnow()

    return embed


async def respond(
    interaction: Interaction,
    content: str | None = None,
    *,
    embed: Embed | None = None,
    ephemeral: bool = True,
) -> Message | None:
    """
    Answer an interaction, using the followup webhook when it was already
    responded to or deferred.

    Returns:
        The followup message, or None for an initial response or a failed send.
    """
    kwargs: dict[str, Any] = {"ephemeral": ephemeral}
    if content:
        kwargs["content"] = content
    if embed:
        kwargs["embed"] = embed

    try:
        if interaction.response.is_done():
            return await interaction.followup.send(**kwargs)
        await interaction.response.send_message(**kwargs)
        return None
    except discord.NotFound:
        logger.warning("Interaction expired before response could be sent")
        return None
    except discord.HTTPException as e:
        logger.exception("Failed to send response: %s", e)
        return None


async def send_failure(interaction: Interaction, content: str) -> Message | None:
    return await respond(interaction, reply(content, ERROR_EMOJI))


async def send_success(
    interaction: Interaction, content: str, *, ephemeral: bool = True
) -> Message | None:
    return await respond(interaction, reply(content, SUCCESS_EMOJI), ephemeral=ephemeral)


async def report_command_error(bot: Any, interaction: Interaction, error: Exception) -> None:
    """Log an unexpected command failure and tell the user something went wrong."""
    logger.exception(
        "Error in command", exc_info=error, extra=get_interaction_extra(interaction)
    )
    localize = await bot.localizer_for(interaction.guild_id)
    await send_failure(interaction, localize("misc:unknown_error"))
