"""
Base service class providing the shared lifecycle for all services.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from utils.logging import get_logger


class BaseService(ABC):
    """
    Abstract base class for all services in the bot.

    Provides a named logger and an idempotent initialize/shutdown lifecycle.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = get_logger(f"services.{name}")
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize the service. Ensures single initialization."""
        async with self._lock:
            if self._initialized:
                return

            self.logger.info("Initializing %s service", self.name)
            try:
                await self._initialize_impl()
                self._initialized = True
                self.logger.info("%s service initialized", self.name)
            except Exception as e:
                self.logger.exception(
                    "Failed to initialize %s service", self.name, exc_info=e
                )
                raise

    async def shutdown(self) -> None:
        """Shutdown the service and cleanup resources."""
        if not self._initialized:
            return

        self.logger.info("Shutting down %s service", self.name)
        try:
            await self._shutdown_impl()
        except Exception as e:
            self.logger.exception(
                "Error during %s service shutdown", self.name, exc_info=e
            )
        finally:
            self._initialized = False

    @abstractmethod
    async def _initialize_impl(self) -> None:
        """Subclass-specific initialization logic."""

    async def _shutdown_impl(self) -> None:
        """Subclass-specific shutdown logic. Override if needed."""

    def health_check(self) -> dict[str, Any]:
        return {
            "service": self.name,
            "initialized": self._initialized,
            "status": "healthy" if self._initialized else "not_initialized",
        }
