"""
Music Commands Cog

Voice connection and queue commands. Every command that touches the
player runs the voice gate first; audio decoding is not handled here.
"""

import contextlib

import discord
from discord import app_commands
from discord.ext import commands

from helpers.decorators import guild_only_reply, require_channel_permissions
from helpers.replies import (
    build_embed,
    report_command_error,
    respond,
    send_success,
)
from helpers.voice_gate import vc
from utils.log_context import get_interaction_extra
from utils.logging import get_logger
from utils.types import Song

logger = get_logger(__name__)

QUEUE_PAGE_SIZE = 10


class MusicCommands(commands.GroupCog, name="music"):
    """Join, queue, skip, stop and leave."""

    def __init__(self, bot: commands.Bot) -> None:
        super().__init__()
        self.bot = bot

    @property
    def players(self):
        return self.bot.players

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        await report_command_error(self.bot, interaction, error)

    @app_commands.command(name="join", description="Join your voice channel")
    @guild_only_reply()
    @require_channel_permissions(bot=["connect", "speak"])
    async def join(self, interaction: discord.Interaction) -> None:
        localize = await self.bot.localizer_for(interaction.guild_id)
        if not await vc(interaction, localize, self.players):
            return

        channel = interaction.user.voice.channel
        if self.players.get_voice(interaction.guild.id) is None:
            voice_client = await channel.connect(self_deaf=True)
            self.players.set_voice(interaction.guild.id, voice_client)
            self.players.create_queue(interaction.guild.id)
            logger.info(
                "Connected to voice", extra=get_interaction_extra(interaction)
            )

        await send_success(
            interaction, localize("music:joined", channel=channel.mention), ephemeral=False
        )

    @app_commands.command(name="add", description="Add a song to the queue")
    @app_commands.describe(title="Song title", url="Link to the song")
    @guild_only_reply()
    async def add(
        self, interaction: discord.Interaction, title: str, url: str | None = None
    ) -> None:
        localize = await self.bot.localizer_for(interaction.guild_id)
        if not await vc(interaction, localize, self.players, check_connection=True):
            return

        queue = self.players.create_queue(interaction.guild.id)
        position = queue.add(Song(title=title, url=url or "", requested_by=interaction.user.id))
        await send_success(
            interaction,
            localize("music:queue_entry", position=position + 1, title=title),
            ephemeral=False,
        )

    @app_commands.command(name="queue", description="Show the queue")
    @guild_only_reply()
    async def queue(self, interaction: discord.Interaction) -> None:
        localize = await self.bot.localizer_for(interaction.guild_id)
        queue = self.players.get_queue(interaction.guild.id)
        if queue is None or not queue.songs:
            await respond(interaction, localize("music:queue_empty"))
            return

        lines = [
            localize("music:queue_entry", position=i + 1, title=song.title)
            for i, song in enumerate(queue.songs[:QUEUE_PAGE_SIZE])
        ]
        if len(queue) > QUEUE_PAGE_SIZE:
            lines.append(localize("music:queue_more", count=len(queue) - QUEUE_PAGE_SIZE))

        embed = build_embed(interaction)
        embed.title = localize("music:queue_title")
        embed.description = "\n".join(lines)
        await respond(interaction, embed=embed, ephemeral=False)

    @app_commands.command(name="skip", description="Skip the current song")
    @guild_only_reply()
    async def skip(self, interaction: discord.Interaction) -> None:
        localize = await self.bot.localizer_for(interaction.guild_id)
        if not await vc(
            interaction,
            localize,
            self.players,
            check_connection=True,
            check_queue=True,
            check_last=True,
        ):
            return

        guild_id = interaction.guild.id
        upcoming = self.players.get_queue(guild_id).skip()
        if upcoming is None:
            await respond(interaction, localize("music:queue_empty"))
            return

        voice_client = self.players.get_voice(guild_id)
        if voice_client is not None:
            with contextlib.suppress(Exception):
                voice_client.stop()

        await send_success(
            interaction, localize("music:skipped", title=upcoming.title), ephemeral=False
        )

    @app_commands.command(name="stop", description="Stop playback and clear the queue")
    @guild_only_reply()
    async def stop(self, interaction: discord.Interaction) -> None:
        localize = await self.bot.localizer_for(interaction.guild_id)
        if not await vc(
            interaction, localize, self.players, check_connection=True, check_queue=True
        ):
            return

        await self.players.stop(interaction.guild.id)
        await send_success(interaction, localize("music:stopped"), ephemeral=False)

    @app_commands.command(name="leave", description="Leave the voice channel")
    @guild_only_reply()
    async def leave(self, interaction: discord.Interaction) -> None:
        localize = await self.bot.localizer_for(interaction.guild_id)
        if not await vc(interaction, localize, self.players, check_connection=True):
            return

        guild = interaction.guild
        await self.players.stop(guild.id)
        # not tracked in the registry (e.g. after a restart)
        if guild.voice_client is not None:
            await guild.voice_client.disconnect(force=True)

        await send_success(interaction, localize("music:left"), ephemeral=False)


async def setup(bot: commands.Bot) -> None:
    """Set up the Music Commands cog."""
    await bot.add_cog(MusicCommands(bot))
