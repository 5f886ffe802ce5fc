"""
Custom exception classes for the Discord bot.

These provide a hierarchy of typed exceptions for better error handling.
"""


class BotError(Exception):
    """Base exception for bot-related errors."""

    pass


class ConfigError(BotError):
    """Exception raised for configuration-related errors."""

    pass


class DatabaseError(BotError):
    """Exception raised for database-related errors."""

    pass


class StoreUnavailableError(DatabaseError):
    """The record store could not complete an operation (locked, missing, corrupt)."""

    pass


class InvalidRecordError(DatabaseError):
    """Record data could not be encoded for storage."""

    pass


class ServiceError(BotError):
    """Exception raised for service-related errors."""

    pass


class FormatterError(BotError, ValueError):
    """Raised when a reply/embed/time formatter receives missing or unusable input."""

    pass
