"""
Lifecycle Events Cog

Keeps guild and user records in step with guild membership.
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from utils.errors import ServiceError
from utils.log_context import get_context_extra
from utils.logging import get_logger

if TYPE_CHECKING:
    from services.record_sync import RecordSyncService

logger = get_logger(__name__)


class LifecycleEvents(commands.Cog):
    """Creates records on guild join and removes them on guild or member removal."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def records(self) -> "RecordSyncService":
        records = getattr(self.bot, "records", None)
        if records is None:
            raise ServiceError("Bot services not initialized")
        return records

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info("Joined guild %s", guild.name, extra=get_context_extra(guild=guild))
        await self.records.get_guild(guild.id)

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info("Removed from guild %s", guild.name, extra=get_context_extra(guild=guild))
        await self.bot.players.stop(guild.id)
        await self.records.delete_guild(guild.id)

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        """Drop the member's record for the guild they left."""
        await self.records.remove_user(member.id, member.guild.id)


async def setup(bot: commands.Bot) -> None:
    """Set up the Lifecycle Events cog."""
    await bot.add_cog(LifecycleEvents(bot))
