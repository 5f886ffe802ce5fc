"""
Type definitions and common data structures for the Discord bot.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple


@dataclass
class UserRecord:
    """Per-guild user record. Identity is the (user_id, guild_id) pair."""

    id: int
    user_id: str
    guild_id: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: int | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


@dataclass
class GuildRecord:
    """Per-guild settings record, keyed by guild_id."""

    id: int
    guild_id: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: int | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


class SyncStatus(Enum):
    """Outcome of a record synchronization call."""

    FOUND = "found"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    STORE_UNAVAILABLE = "store_unavailable"


_FAILED_STATUSES = frozenset(
    {SyncStatus.NOT_FOUND, SyncStatus.INVALID, SyncStatus.STORE_UNAVAILABLE}
)


@dataclass(frozen=True)
class SyncResult:
    """Explicit result of a record operation.

    Unlike the log-and-default helpers, callers can tell a missing record
    apart from an unreachable store and decide whether to retry.
    """

    status: SyncStatus
    record: UserRecord | GuildRecord | None = None
    count: int = 0
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status not in _FAILED_STATUSES

    def __bool__(self) -> bool:
        return self.ok


class VoiceBlock(str, Enum):
    """Reasons the voice gate can refuse a command, in evaluation order."""

    NOT_IN_VOICE = "not_in_voice"
    IN_AFK = "in_afk"
    SELF_DEAF = "self_deaf"
    SERVER_DEAF = "server_deaf"
    NOT_SAME_CHANNEL = "not_same_channel"
    NO_CONNECTION = "no_connection"
    NO_QUEUE = "no_queue"
    LAST_SONG = "last_song"


@dataclass(frozen=True)
class Proceed:
    """The command may run."""

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Blocked:
    """The command must stop; ``message`` is what the user is told."""

    reason: VoiceBlock
    message: str

    def __bool__(self) -> bool:
        return False


GateResult = Proceed | Blocked

PROCEED = Proceed()


class Song(NamedTuple):
    """A pending playback item."""

    title: str
    url: str
    requested_by: int | None = None
    duration: int | None = None


# Type aliases
GuildId = int
UserId = int
ChannelId = int
