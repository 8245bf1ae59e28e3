"""Recursive-descent parser for single configuration commands."""

from __future__ import annotations

import re
import socket
from enum import Enum, auto
from ipaddress import IPv4Address, IPv6Address, ip_address, ip_network
from typing import Optional, Union

from mcproxy.definitions import GroupMemProtocol, get_addr_family
from mcproxy.rules import (
    AddrMatch,
    AddrRange,
    GlobalTableSet,
    InstanceDefinition,
    InstDefSet,
    Interface,
    RuleAddr,
    RuleBox,
    RuleTable,
    RuleTableRef,
    SingleAddr,
    Table,
)
from mcproxy.scanner import Scanner
from mcproxy.token import Token, TokenType, token_type_name

Address = Union[IPv4Address, IPv6Address]

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_PROTOCOLS = {
    TokenType.MLDV1: GroupMemProtocol.MLDv1,
    TokenType.MLDV2: GroupMemProtocol.MLDv2,
    TokenType.IGMPV1: GroupMemProtocol.IGMPv1,
    TokenType.IGMPV2: GroupMemProtocol.IGMPv2,
    TokenType.IGMPV3: GroupMemProtocol.IGMPv3,
}

_ADDR_PIECES = {
    TokenType.DOT: ".",
    TokenType.DOUBLE_DOT: ":",
}


class ParserType(Enum):
    PROTOCOL = auto()
    INSTANCE_DEFINITION = auto()
    TABLE = auto()
    INTERFACE_RULE_BINDING = auto()


class ConfigError(ValueError):
    """Raised when a configuration command cannot be parsed."""


class ProxyDisabled(Exception):
    """Raised when the configuration disables the proxy."""


def _to_int(text: str) -> int:
    """Read a leading integer the way a C string-to-int conversion does."""
    found = _INT_PREFIX.match(text)
    if found is None:
        raise ValueError(f"{text!r} is not a number")
    value = int(found.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"{text!r} is out of range")
    return value


def _unspecified(addr_family: int) -> Address:
    return ip_address("::") if addr_family == socket.AF_INET6 else ip_address("0.0.0.0")


class Parser:
    """Parses one command, holding the current token of its scanner."""

    def __init__(self, current_line: int, cmd: str):
        self._scanner = Scanner(current_line, cmd)
        self.current_line = current_line
        self._token: Token = Token(TokenType.NIL)
        self._advance()

    def _advance(self) -> None:
        self._token = self._scanner.next_token()

    def _is(self, *types: TokenType) -> bool:
        return self._token.type in types

    def _error(self, detail: str) -> ConfigError:
        return ConfigError(f"failed to parse line {self.current_line} {detail}")

    def _unexpected(self, suffix: str = " in this context") -> ConfigError:
        return self._error(
            f"unknown token {token_type_name(self._token.type)} "
            f"with value {self._token.text}{suffix}"
        )

    def parser_type(self) -> ParserType:
        """Classify the command by its leading tokens."""
        kind = self._token.type
        if kind is TokenType.PROTOCOL:
            return ParserType.PROTOCOL
        if kind is TokenType.TABLE:
            return ParserType.TABLE
        if kind is TokenType.PINSTANCE:
            ahead = self._scanner.peek(1)
            if ahead.type in (TokenType.DOUBLE_DOT, TokenType.LEFT_BRACKET):
                return ParserType.INSTANCE_DEFINITION
            if ahead.type in (TokenType.UPSTREAM, TokenType.DOWNSTREAM):
                return ParserType.INTERFACE_RULE_BINDING
            raise self._error(
                f"unknown token {token_type_name(ahead.type)} with value {ahead.text}, "
                'expected ":" or "upstream" or "downstream"'
            )
        if kind is TokenType.DISABLE:
            raise ProxyDisabled("mcproxy is disabled")
        raise self._unexpected("")

    def parse_group_mem_proto(self) -> GroupMemProtocol:
        """Parse ``protocol <version>``."""
        if self.parser_type() is not ParserType.PROTOCOL:
            raise self._unexpected(', expected "protocol"')
        self._advance()
        result = _PROTOCOLS.get(self._token.type)
        if result is None:
            raise self._unexpected(
                ', expected "MLDV1" or "MLDv2" or "IGMPv1" or "IGMPv2" or "IGMPv3"'
            )
        self._advance()
        if not self._is(TokenType.NIL):
            raise self._unexpected("")
        return result

    def parse_instance_definition(self, ids: InstDefSet) -> None:
        """Parse ``pinstance name [(table)]: up... ==> down...`` into ``ids``."""
        if self.parser_type() is not ParserType.INSTANCE_DEFINITION:
            raise self._unexpected()
        self._advance()
        if not self._is(TokenType.STRING):
            raise self._unexpected()
        instance_name = self._token.text
        self._advance()

        table_number = 0
        user_selected_table_number = False
        if self._is(TokenType.LEFT_BRACKET):
            self._advance()
            if not self._is(TokenType.STRING):
                raise self._error(f"instance {instance_name} with unknown table number")
            try:
                table_number = _to_int(self._token.text)
            except ValueError:
                raise self._error(
                    f"table number: {self._token.text} is not a number"
                ) from None
            user_selected_table_number = True
            self._advance()
            if not self._is(TokenType.RIGHT_BRACKET):
                raise self._error(f"instance {instance_name} with unknown table number")
            self._advance()

        if not self._is(TokenType.DOUBLE_DOT):
            raise self._unexpected()
        self._advance()
        upstreams = self._interface_names()
        if not self._is(TokenType.ARROW):
            raise self._unexpected()
        self._advance()
        downstreams = self._interface_names()
        if not downstreams or not self._is(TokenType.NIL):
            raise self._unexpected()

        instance = InstanceDefinition(
            instance_name,
            upstreams,
            downstreams,
            table_number,
            user_selected_table_number,
        )
        if not ids.insert(instance):
            raise self._error(f"instance {instance_name} already exists")

    def _interface_names(self) -> list:
        interfaces = []
        while self._is(TokenType.STRING):
            interfaces.append(Interface(self._token.text))
            self._advance()
        return interfaces

    def parse_table(self, gts: GlobalTableSet, gmp: GroupMemProtocol) -> Table:
        """Parse a table definition or a reference to a table of ``gts``."""
        return self._parse_table(gts, gmp, inside_rule_box=False)

    def _parse_table(
        self, gts: GlobalTableSet, gmp: GroupMemProtocol, inside_rule_box: bool
    ) -> Table:
        terminator = TokenType.RIGHT_BRACKET if inside_rule_box else TokenType.NIL
        if self.parser_type() is not ParserType.TABLE:
            raise self._unexpected()
        self._advance()

        if self._scanner.peek(0).type is terminator:
            if not self._is(TokenType.STRING):
                raise self._unexpected()
            table_name = self._token.text
            if gts.get_table(table_name) is None:
                raise self._error(f"table {table_name} not found")
            self._advance()
            return Table("", [RuleTableRef(table_name, gts)])

        if not self._is(TokenType.STRING, TokenType.LEFT_BRACE):
            raise self._unexpected()

        table_name = ""
        if self._is(TokenType.STRING):
            table_name = self._token.text
            self._advance()
            if not self._is(TokenType.LEFT_BRACE):
                raise self._unexpected()
        self._advance()

        rule_boxes = []
        while (rule := self._parse_rule(gts, gmp)) is not None:
            rule_boxes.append(rule)
            self._advance()

        if self._is(TokenType.RIGHT_BRACE):
            self._advance()
            if self._is(terminator):
                return Table(table_name, rule_boxes)
        raise self._unexpected()

    def _parse_rule(self, gts: GlobalTableSet, gmp: GroupMemProtocol) -> Optional[RuleBox]:
        if not self._is(TokenType.STRING, TokenType.LEFT_BRACKET):
            return None
        if_name = ""
        if self._is(TokenType.STRING):
            if_name = self._token.text
            self._advance()
        if not self._is(TokenType.LEFT_BRACKET):
            raise self._unexpected()
        self._advance()

        if self._is(TokenType.TABLE):
            return RuleTable(self._parse_table(gts, gmp, inside_rule_box=True))

        group = self._parse_rule_part(gmp)
        if not self._is(TokenType.PIPE):
            raise self._unexpected()
        self._advance()
        source = self._parse_rule_part(gmp)
        if not self._is(TokenType.RIGHT_BRACKET):
            raise self._unexpected()
        return RuleAddr(if_name, group, source)

    def _parse_rule_part(self, gmp: GroupMemProtocol) -> AddrMatch:
        family = get_addr_family(gmp)
        addr_from = _unspecified(family)
        addr_to = _unspecified(family)
        part_end = (TokenType.RIGHT_BRACKET, TokenType.PIPE)

        if not self._is(TokenType.STRING, TokenType.STAR):
            raise self._unexpected()
        if self._is(TokenType.STRING):
            addr_from = self._get_addr(gmp)
        else:
            self._advance()

        if self._is(TokenType.SLASH):
            self._advance()
            if not self._is(TokenType.STRING):
                raise self._unexpected()
            try:
                prefix = _to_int(self._token.text)
                if prefix < 0 or prefix > addr_from.max_prefixlen:
                    raise ValueError("prefix out of range")
            except ValueError:
                raise self._error(
                    f"token {token_type_name(self._token.type)} with value "
                    f"{self._token.text} cant be converted to a prefix or subnet mask"
                ) from None
            network = ip_network(f"{addr_from}/{prefix}", strict=False)
            self._advance()
            if self._is(*part_end):
                return AddrRange(network.network_address, network.broadcast_address)
            raise self._unexpected()

        if self._is(*part_end):
            return SingleAddr(addr_from)

        if self._is(TokenType.RANGE):
            self._advance()
            if self._is(TokenType.STRING, TokenType.STAR):
                if self._is(TokenType.STRING):
                    addr_to = self._get_addr(gmp)
                else:
                    self._advance()
                if self._is(*part_end):
                    return AddrRange(addr_from, addr_to)
        raise self._unexpected()

    def _get_addr(self, gmp: GroupMemProtocol) -> Address:
        pieces = []
        while True:
            if self._is(TokenType.STRING):
                pieces.append(self._token.text)
            elif self._token.type in _ADDR_PIECES:
                pieces.append(_ADDR_PIECES[self._token.type])
            else:
                break
            self._advance()

        text = "".join(pieces)
        try:
            addr = ip_address(text)
        except ValueError:
            raise self._error(f"ip address: {text} is invalid") from None
        family = socket.AF_INET if addr.version == 4 else socket.AF_INET6
        if family != get_addr_family(gmp):
            raise self._error(f"ip address: {text} has a wrong IP version")
        return addr