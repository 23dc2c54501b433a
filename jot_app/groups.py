"""Group name rules shared by the store and the CLI."""

from __future__ import annotations

import re

from .errors import InvalidName

DEFAULT_GROUP = "general"
REGISTRY_TABLE = "_group_names"

# Leading letter excludes the reserved "_" prefix.
GROUP_NAME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_]{0,62}")
SQLITE_RESERVED_PREFIX = "sqlite_"


def resolve_group(name: str | None) -> str:
    """Return ``name`` or the default group when it is empty."""

    return name or DEFAULT_GROUP


def validate_group_name(name: str | None) -> str:
    """Resolve the default and check the grammar, returning the usable name.

    Names are interpolated into table positions, so nothing reaches SQL
    without passing this check first.
    """

    group = resolve_group(name)
    if group.startswith("_"):
        raise InvalidName(f"group names starting with '_' are reserved: {group!r}")
    if not is_valid_group_name(group):
        raise InvalidName(
            f"invalid group name {group!r}: use a letter followed by up to 62 letters, digits or underscores"
        )
    return group


def is_valid_group_name(name: str) -> bool:
    if not name or GROUP_NAME_PATTERN.fullmatch(name) is None:
        return False
    # SQLite owns every sqlite_* object name.
    return not name.lower().startswith(SQLITE_RESERVED_PREFIX)


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


__all__ = [
    "DEFAULT_GROUP",
    "REGISTRY_TABLE",
    "GROUP_NAME_PATTERN",
    "resolve_group",
    "is_valid_group_name",
    "validate_group_name",
    "quote_identifier",
]
