import asyncio
import os
import time

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.config_loader import ConfigLoader
from helpers.locales import LocaleManager, Localizer
from services.player_registry import PlayerRegistry
from services.record_sync import RecordSyncService
from utils.logging import get_logger

# Initialize logger
logger = get_logger(__name__)

# Load environment variables
load_dotenv()

# Load configuration using ConfigLoader
config = ConfigLoader.load_config()

# Configure intents - start from none and enable only what's required
intents = discord.Intents.none()
intents.guilds = True  # Guild join/leave, channels
intents.members = True  # Member removal cleans up user records
intents.voice_states = True  # Voice gate reads member and bot voice state

initial_extensions = [
    "cogs.events",
    "cogs.music",
    "cogs.settings",
]


class AuroraBot(commands.Bot):
    """Bot with the record store, player registries and locales attached."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)

        self.config = config
        self.start_time = time.monotonic()

        self.records = RecordSyncService()
        self.store = self.records.store
        self.players = PlayerRegistry()

        locales_cfg = ConfigLoader.section("locales")
        bot_cfg = ConfigLoader.section("bot")
        self.locales = LocaleManager(
            locales_cfg.get("path"),
            default_language=bot_cfg.get("default_language") or "en",
        )

    async def setup_hook(self) -> None:
        """Initialize services and locales, load cogs, and sync commands."""
        await self.records.initialize()
        self.locales.load()

        for ext in initial_extensions:
            try:
                await self.load_extension(ext)
                logger.info(f"Loaded extension: {ext}")
            except commands.ExtensionError as e:
                logger.exception(f"Failed to load extension {ext}", exc_info=e)
                raise

        try:
            await self.tree.sync()
            logger.info("All commands synced globally.")
        except discord.HTTPException as e:
            logger.exception("Failed to sync commands", exc_info=e)

        logger.info("Registered commands: ")
        for command in self.tree.walk_commands():
            logger.info(
                f"- Command: {command.qualified_name}, Description: {command.description}"
            )

    async def on_ready(self) -> None:
        """Called when the bot is ready."""
        if not self.user:
            logger.warning("Bot user is not initialized")
            return
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")

    async def localizer_for(self, guild_id: int | None) -> Localizer:
        """Bind the guild's stored language, or the default one."""
        language = None
        if guild_id:
            record = await self.records.get_guild(guild_id)
            if record is not None:
                language = record.get("language")
        return self.locales.get_localizer(language)

    @property
    def uptime(self) -> str:
        delta = int(time.monotonic() - self.start_time)
        hours, remainder = divmod(delta, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours}h {minutes}m {seconds}s"

    async def close(self) -> None:
        """Disconnect voice clients and shut services down before closing."""
        logger.info("Shutting down the bot.")

        if self.players.voices:
            await asyncio.gather(
                *(self.players.stop(guild_id) for guild_id in list(self.players.voices)),
                return_exceptions=True,
            )

        await self.records.shutdown()
        await super().close()


def main() -> None:
    token = os.getenv("DISCORD_TOKEN")
    if not token:
        logger.critical("DISCORD_TOKEN not found in environment variables.")
        raise ValueError("DISCORD_TOKEN not set.")

    bot = AuroraBot(command_prefix=commands.when_mentioned, intents=intents)
    bot.run(token, log_handler=None)


if __name__ == "__main__":
    main()
