"""Protocol versions, filter modes, record types and small formatting helpers."""

from __future__ import annotations

import socket
from enum import IntEnum


class GroupMemProtocol(IntEnum):
    """Group membership protocols, ordered from oldest to newest per family."""

    IGMPv1 = 1
    IGMPv2 = 2
    IGMPv3 = 4
    MLDv1 = 8
    MLDv2 = 16


class McFilter(IntEnum):
    EXCLUDE_MODE = 0
    INCLUDE_MODE = 1


class McastAddrRecordType(IntEnum):
    MODE_IS_INCLUDE = 1
    MODE_IS_EXCLUDE = 2
    CHANGE_TO_INCLUDE_MODE = 3
    CHANGE_TO_EXCLUDE_MODE = 4
    ALLOW_NEW_SOURCES = 5
    BLOCK_OLD_SOURCES = 6


_IPV4 = {GroupMemProtocol.IGMPv1, GroupMemProtocol.IGMPv2, GroupMemProtocol.IGMPv3}
_IPV6 = {GroupMemProtocol.MLDv1, GroupMemProtocol.MLDv2}
_NEWEST = {GroupMemProtocol.IGMPv3, GroupMemProtocol.MLDv2}


def is_ipv4(gmp: int) -> bool:
    return gmp in _IPV4


def is_ipv6(gmp: int) -> bool:
    return gmp in _IPV6


def is_older_or_equal_version(older: int, comp_to: int) -> bool:
    return older <= comp_to


def is_newest_version(gmp: int) -> bool:
    return gmp in _NEWEST


def get_addr_family(gmp: int) -> int:
    if is_ipv4(gmp):
        return socket.AF_INET
    if is_ipv6(gmp):
        return socket.AF_INET6
    return socket.AF_UNSPEC


def get_next_newer_version(gmp: GroupMemProtocol) -> GroupMemProtocol:
    if is_newest_version(gmp):
        return GroupMemProtocol(gmp)
    return GroupMemProtocol(gmp * 2)


def _name_of(enum_cls, value) -> str:
    try:
        return enum_cls(value).name
    except ValueError:
        return ""


def mc_filter_name(mf: int) -> str:
    return _name_of(McFilter, mf)


def group_mem_protocol_name(gmp: int) -> str:
    return _name_of(GroupMemProtocol, gmp)


def mcast_addr_record_type_name(art: int) -> str:
    return _name_of(McastAddrRecordType, art)


def seconds_to_string(sec: int) -> str:
    return f"{sec} sec"


def milliseconds_to_string(msec: int) -> str:
    return f"{msec} msec"


def indention(text: str) -> str:
    """Prefix every line with a tab; a final trailing newline gets none."""
    if text.endswith("\n"):
        return "\t" + text[:-1].replace("\n", "\n\t") + "\n"
    return "\t" + text.replace("\n", "\n\t")