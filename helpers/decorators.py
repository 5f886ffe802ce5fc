"""Reusable permission check decorators for Discord app commands."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from functools import wraps
from typing import TypeVar

import discord

from helpers.permissions_helper import (
    PermissionLike,
    bot_permissions,
    member_permissions,
)
from helpers.replies import send_failure
from utils.log_context import get_interaction_extra
from utils.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable])


def _resolve_bot(self) -> discord.Client | None:
    """Find the bot reference on a cog."""
    return getattr(self, "bot", None)


def require_channel_permissions(
    *,
    bot: Iterable[PermissionLike] = (),
    member: Iterable[PermissionLike] = (),
) -> Callable[[F], F]:
    """Decorator factory that stops a cog command when channel permissions are missing.

    The bot's permissions are checked first; the first failing side is
    reported to the user with the localized list of missing permissions.

    Example:
        @app_commands.command()
        @require_channel_permissions(bot=["connect", "speak"])
        async def join(self, interaction: discord.Interaction):
            ...
    """
    bot_required = tuple(bot)
    member_required = tuple(member)

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            client = _resolve_bot(self)
            if client is None or interaction.guild is None:
                logger.warning(
                    "Permission check failed for %s: no bot or guild", func.__qualname__
                )
                return None

            localize = await client.localizer_for(interaction.guild_id)
            message = None
            if bot_required:
                message = bot_permissions(bot_required, interaction, localize)
            if message is None and member_required:
                message = member_permissions(member_required, interaction, localize)

            if message is not None:
                logger.info(
                    "Blocked %s on missing channel permissions",
                    func.__qualname__,
                    extra=get_interaction_extra(interaction),
                )
                await send_failure(interaction, message)
                return None

            return await func(self, interaction, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def guild_only_reply() -> Callable[[F], F]:
    """Decorator that answers with a localized notice when used outside a guild."""

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            if interaction.guild is None:
                client = _resolve_bot(self)
                localize = await client.localizer_for(None)
                await send_failure(interaction, localize("misc:guild_only"))
                return None
            return await func(self, interaction, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
