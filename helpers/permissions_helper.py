"""Channel permission checks for the bot and the invoking member.

``bot_permissions`` and ``member_permissions`` return a localized message
listing what is missing, or None when nothing is. The caller decides
whether to stop; the helpers send nothing themselves.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import discord

from utils.logging import get_logger

if TYPE_CHECKING:
    from helpers.locales import Localizer

logger = get_logger(__name__)

PermissionLike = int | str | discord.Permissions

PERMISSION_FLAGS: dict[str, int] = dict(discord.Permissions.VALID_FLAGS)

# flag value -> symbolic name; aliases share a value, the first name wins
PERMISSION_NAMES: dict[int, str] = {}
for _name, _value in PERMISSION_FLAGS.items():
    PERMISSION_NAMES.setdefault(_value, _name)
del _name, _value


def _single_bits(value: int) -> list[int]:
    flags = []
    bit = 1
    while bit <= value:
        if value & bit:
            flags.append(bit)
        bit <<= 1
    return flags


def resolve_flags(permission: PermissionLike) -> list[int]:
    """
    Turn a flag value, a ``discord.Permissions`` attribute name or object
    into single-bit flags. Combined values are split, lowest bit first.
    """
    if isinstance(permission, discord.Permissions):
        return _single_bits(permission.value)
    if isinstance(permission, str):
        try:
            return [PERMISSION_FLAGS[permission]]
        except KeyError:
            raise ValueError(f"Unknown permission name: {permission!r}") from None
    if isinstance(permission, int) and not isinstance(permission, bool):
        if permission < 0:
            raise ValueError(f"Negative permission value: {permission!r}")
        return _single_bits(permission)
    raise TypeError(f"Unsupported permission value: {permission!r}")


def missing_permissions(
    required: Iterable[PermissionLike], granted: discord.Permissions
) -> list[int]:
    """Flags from ``required`` not covered by ``granted``, in the order requested."""
    missing: list[int] = []
    for permission in required:
        for flag in resolve_flags(permission):
            if granted.value & flag != flag and flag not in missing:
                missing.append(flag)
    return missing


def permission_label(flag: int, localize: Localizer) -> str:
    name = PERMISSION_NAMES.get(flag)
    if name is None:
        return hex(flag)
    key = f"permissions:{name}"
    label = localize(key)
    if label == key:
        return name.replace("_", " ").title()
    return label


def format_missing(missing: Iterable[int], localize: Localizer) -> str:
    return "\n".join(f"* {permission_label(flag, localize)}" for flag in missing)


def _channel_permissions(interaction: Any, actor: Any) -> discord.Permissions:
    return interaction.channel.permissions_for(actor)


def bot_permissions(
    required: Iterable[PermissionLike], interaction: Any, localize: Localizer
) -> str | None:
    """Message listing the permissions the bot lacks in the interaction channel, or None."""
    granted = _channel_permissions(interaction, interaction.guild.me)
    missing = missing_permissions(required, granted)
    if not missing:
        return None
    logger.debug(
        "Bot missing permissions %s in channel %s",
        [PERMISSION_NAMES.get(f, f) for f in missing],
        getattr(interaction.channel, "id", None),
    )
    return localize("misc:member_need_perms", perms=format_missing(missing, localize))


def member_permissions(
    required: Iterable[PermissionLike], interaction: Any, localize: Localizer
) -> str | None:
    """Message listing the permissions the invoking member lacks, or None."""
    granted = _channel_permissions(interaction, interaction.user)
    missing = missing_permissions(required, granted)
    if not missing:
        return None
    return localize("misc:user_need_perms", perms=format_missing(missing, localize))
