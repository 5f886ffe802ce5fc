"""
Utilities for building structured logging context from Discord objects.

Provides helper functions to extract guild_id, user_id, channel_id, etc.
from Discord.py objects for consistent logging across the bot.
"""

from typing import Any


def get_context_extra(
    ctx: Any = None,
    guild: Any = None,
    user: Any = None,
    channel: Any = None,
    **additional: Any,
) -> dict[str, Any]:
    """
    Build a structured logging extra dict from Discord objects.

    Examples:
        logger.info("Command executed", extra=get_context_extra(interaction, command_name="skip"))
        logger.info("Guild joined", extra=get_context_extra(guild=guild))
    """
    extra: dict[str, Any] = {}

    if ctx is not None:
        guild = guild or getattr(ctx, "guild", None)
        user = user or getattr(ctx, "user", None) or getattr(ctx, "author", None)
        channel = channel or getattr(ctx, "channel", None)

        command = getattr(ctx, "command", None)
        qualified_name = getattr(command, "qualified_name", None)
        if qualified_name:
            extra["command_name"] = qualified_name

    if guild is not None:
        extra["guild_id"] = str(guild.id)
    if user is not None:
        extra["user_id"] = str(user.id)
    if channel is not None:
        extra["channel_id"] = str(channel.id)

    extra.update(additional)

    return extra


def get_interaction_extra(interaction: Any, **additional: Any) -> dict[str, Any]:
    """Convenience wrapper for get_context_extra specifically for interactions."""
    return get_context_extra(ctx=interaction, **additional)
