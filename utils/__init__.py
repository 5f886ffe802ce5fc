"""
Utilities Package

Common utilities and helper functions for the Discord bot.
"""

from .errors import (
    BotError,
    ConfigError,
    DatabaseError,
    FormatterError,
    ServiceError,
    StoreUnavailableError,
)
from .logging import get_logger, setup_logging
from .types import (
    Blocked,
    GuildRecord,
    Proceed,
    SyncResult,
    SyncStatus,
    UserRecord,
    VoiceBlock,
)

__all__ = [
    "Blocked",
    "BotError",
    "ConfigError",
    "DatabaseError",
    "FormatterError",
    "GuildRecord",
    "Proceed",
    "ServiceError",
    "StoreUnavailableError",
    "SyncResult",
    "SyncStatus",
    "UserRecord",
    "VoiceBlock",
    "get_logger",
    "setup_logging",
]
