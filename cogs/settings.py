"""
Settings Commands Cog

Per-guild language selection and the member profile view.
"""

import discord
from discord import app_commands
from discord.ext import commands

from helpers.decorators import guild_only_reply, require_channel_permissions
from helpers.replies import (
    build_embed,
    format_time,
    report_command_error,
    respond,
    send_failure,
    send_success,
)
from utils.log_context import get_interaction_extra
from utils.logging import get_logger

logger = get_logger(__name__)


class SettingsCommands(commands.GroupCog, name="settings"):
    """Guild settings stored in the guild record."""

    def __init__(self, bot: commands.Bot) -> None:
        super().__init__()
        self.bot = bot

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        await report_command_error(self.bot, interaction, error)

    @app_commands.command(name="language", description="Set the bot language for this server")
    @app_commands.describe(language="Language code, e.g. en or de")
    @guild_only_reply()
    @require_channel_permissions(member=["manage_guild"])
    async def language(self, interaction: discord.Interaction, language: str) -> None:
        locales = self.bot.locales
        language = language.strip().lower()

        if not locales.has_language(language):
            localize = await self.bot.localizer_for(interaction.guild_id)
            await send_failure(
                interaction,
                localize(
                    "settings:language_unknown",
                    language=language,
                    available=", ".join(locales.languages),
                ),
            )
            return

        await self.bot.records.update_guild(interaction.guild_id, {"language": language})
        logger.info(
            "Guild language set to %s",
            language,
            extra=get_interaction_extra(interaction),
        )

        localize = locales.get_localizer(language)
        await send_success(interaction, localize("settings:language_set", language=language))

    @language.autocomplete("language")
    async def language_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return [
            app_commands.Choice(name=lang, value=lang)
            for lang in self.bot.locales.languages
            if lang.startswith(current.lower())
        ][:25]


class ProfileCommands(commands.Cog):
    """Shows the invoking member's stored record."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        await report_command_error(self.bot, interaction, error)

    @app_commands.command(name="profile", description="Show your profile in this server")
    @guild_only_reply()
    async def profile(self, interaction: discord.Interaction) -> None:
        localize = await self.bot.localizer_for(interaction.guild_id)
        record = await self.bot.records.get_user(interaction.user.id, interaction.guild_id)
        if record is None:
            await send_failure(interaction, localize("settings:profile_unavailable"))
            return

        embed = build_embed(interaction)
        embed.title = localize("settings:profile_title")
        if record.created_at:
            embed.description = localize(
                "settings:profile_since", since=format_time(record.created_at, "R")
            )
        for key, value in sorted(record.data.items()):
            embed.add_field(name=key, value=str(value), inline=True)

        await respond(interaction, embed=embed)


async def setup(bot: commands.Bot) -> None:
    """Set up the Settings and Profile cogs."""
    await bot.add_cog(SettingsCommands(bot))
    await bot.add_cog(ProfileCommands(bot))
