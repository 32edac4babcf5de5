"""Naming utilities for code generation."""

from __future__ import annotations

import re
from functools import lru_cache

_SNAKE_TOKEN = re.compile(r"[a-z0-9]+|[A-Z][a-z0-9]*")


@lru_cache(maxsize=1024)
def to_upper_camel(value: str) -> str:
    """Convert a snake_case name to an UpperCamelCase identifier.

    Only the first letter of each segment is touched, so interior
    capitals survive. Empty segments contribute nothing.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_upper_camel("order_items")
        'OrderItems'
        >>> to_upper_camel("user__ID")
        'UserID'
    """
    return "".join(part[0].upper() + part[1:] for part in value.split("_") if part)


@lru_cache(maxsize=1024)
def to_snake(value: str) -> str:
    """Convert a mixed-case string to snake_case.

    Each run of lowercase letters/digits and each capital followed by
    lowercase letters/digits becomes one token. Anything else only
    separates tokens.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_snake("UserId")
        'user_id'
        >>> to_snake("ID")
        'i_d'
    """
    return "_".join(token.lower() for token in _SNAKE_TOKEN.findall(value))
