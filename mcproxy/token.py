"""Token kinds produced by the configuration scanner."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    PROTOCOL = auto()
    MLDV1 = auto()
    MLDV2 = auto()
    IGMPV1 = auto()
    IGMPV2 = auto()
    IGMPV3 = auto()
    PINSTANCE = auto()
    DOUBLE_DOT = auto()
    DOT = auto()
    ARROW = auto()
    UPSTREAM = auto()
    DOWNSTREAM = auto()
    OUT = auto()
    IN = auto()
    BLACKLIST = auto()
    WHITELIST = auto()
    RULE_MATCHING = auto()
    TABLE = auto()
    ALL = auto()
    FIRST = auto()
    MUTEX = auto()
    DISABLE = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    LEFT_BRACKET = auto()
    RIGHT_BRACKET = auto()
    RANGE = auto()
    SLASH = auto()
    STAR = auto()
    PIPE = auto()
    STRING = auto()
    NIL = auto()


# DISABLE has no printable name.
_UNNAMED = {TokenType.DISABLE}


def token_type_name(token_type: TokenType) -> str:
    """Return the display name of a token type, e.g. ``TT_STRING``."""
    if token_type in _UNNAMED:
        return ""
    return f"TT_{token_type.name}"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str = ""