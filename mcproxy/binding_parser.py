"""Parser for commands that bind filters or rule matching to interfaces."""

from __future__ import annotations

from mcproxy.definitions import GroupMemProtocol
from mcproxy.parser import ConfigError, Parser, ParserType, _to_int
from mcproxy.rules import (
    FilterType,
    GlobalTableSet,
    InstDefSet,
    Interface,
    InterfaceDirection,
    InterfaceType,
    RuleBinding,
    RuleMatchingType,
)
from mcproxy.token import TokenType

_INTERFACE_TYPES = {
    TokenType.UPSTREAM: InterfaceType.UPSTREAM,
    TokenType.DOWNSTREAM: InterfaceType.DOWNSTREAM,
}

_DIRECTIONS = {
    TokenType.IN: InterfaceDirection.IN,
    TokenType.OUT: InterfaceDirection.OUT,
}

_FILTER_TYPES = {
    TokenType.WHITELIST: FilterType.WHITELIST,
    TokenType.BLACKLIST: FilterType.BLACKLIST,
}

_RULE_MATCHING_TYPES = {
    TokenType.ALL: RuleMatchingType.ALL,
    TokenType.FIRST: RuleMatchingType.FIRST,
    TokenType.MUTEX: RuleMatchingType.MUTEX,
}


class BindingParser(Parser):
    """Parses ``pinstance <name> upstream|downstream <if> in|out ...`` commands."""

    def parse_interface_rule_binding(
        self, gts: GlobalTableSet, gmp: GroupMemProtocol, ids: InstDefSet
    ) -> None:
        """Parse a binding and attach it to the matching instance of ``ids``."""
        if self.parser_type() is not ParserType.INTERFACE_RULE_BINDING:
            raise self._unexpected()

        self._advance()
        if not self._is(TokenType.STRING):
            raise self._unexpected()
        instance_name = self._token.text
        if ids.find(instance_name) is None:
            raise self._error(f"proxy instance {instance_name} not defined")

        self._advance()
        interface_type = _INTERFACE_TYPES.get(self._token.type)
        if interface_type is None:
            raise self._unexpected()

        self._advance()
        if self._is(TokenType.STRING):
            if_name = self._token.text
        elif self._is(TokenType.STAR):
            if_name = "*"
        else:
            raise self._unexpected()

        self._advance()
        direction = _DIRECTIONS.get(self._token.type)
        if direction is None:
            raise self._unexpected()

        self._advance()
        if self._token.type in _FILTER_TYPES:
            self._parse_table_binding(
                instance_name, interface_type, if_name, direction, gts, gmp, ids
            )
        elif self._is(TokenType.RULE_MATCHING):
            self._parse_rule_match_binding(
                instance_name, interface_type, if_name, direction, ids
            )
        else:
            raise self._unexpected()

    def _parse_table_binding(
        self,
        instance_name: str,
        interface_type: InterfaceType,
        if_name: str,
        direction: InterfaceDirection,
        gts: GlobalTableSet,
        gmp: GroupMemProtocol,
        ids: InstDefSet,
    ) -> None:
        filter_type = _FILTER_TYPES.get(self._token.type)
        if filter_type is None:
            raise self._unexpected()

        self._advance()
        filter_table = self.parse_table(gts, gmp)
        if not self._is(TokenType.NIL):
            raise self._unexpected()

        instance = ids.find(instance_name)
        if instance is None:
            raise self._error(f"proxy instance {instance_name} not defined")

        binding = RuleBinding.filter(
            instance_name, interface_type, if_name, direction, filter_type, filter_table
        )

        interface = self._find_interface(instance, interface_type, if_name)

        if direction is InterfaceDirection.IN:
            if interface.input_filter is not None:
                raise self._error(f"input filter for interface {if_name} already defined")
            interface.input_filter = binding
        elif direction is InterfaceDirection.OUT:
            if interface.output_filter is not None:
                raise self._error(f"output filter for interface {if_name} already defined")
            interface.output_filter = binding
        else:
            raise self._error("rule direction not defined")

    def _find_interface(self, instance, interface_type: InterfaceType, if_name: str) -> Interface:
        if interface_type is InterfaceType.UPSTREAM:
            found = instance.find_upstream(if_name)
            if found is None:
                raise self._error(f"upstream interface {if_name} not defined")
            return found
        if interface_type is InterfaceType.DOWNSTREAM:
            found = instance.find_downstream(if_name)
            if found is None:
                raise self._error(f"downstream interface {if_name} not defined")
            return found
        raise self._error("interface type not defined")

    def _parse_rule_match_binding(
        self,
        instance_name: str,
        interface_type: InterfaceType,
        if_name: str,
        direction: InterfaceDirection,
        ids: InstDefSet,
    ) -> None:
        if not self._is(TokenType.RULE_MATCHING):
            raise self._unexpected()

        self._advance()
        rule_matching_type = _RULE_MATCHING_TYPES.get(self._token.type)
        if rule_matching_type is None:
            raise self._unexpected()

        timeout_ms = 0
        if rule_matching_type is RuleMatchingType.MUTEX:
            self._advance()
            if not self._is(TokenType.STRING):
                raise self._unexpected()
            try:
                timeout_ms = _to_int(self._token.text)
            except ValueError:
                raise self._unexpected() from None

        self._advance()
        if not self._is(TokenType.NIL):
            raise self._unexpected()

        instance = ids.find(instance_name)
        if instance is None:
            raise self._error(f"proxy instance {instance_name} not defined")

        instance.global_settings.append(
            RuleBinding.rule_matching(
                instance_name,
                interface_type,
                if_name,
                direction,
                rule_matching_type,
                timeout_ms,
            )
        )


__all__ = ["BindingParser", "ConfigError"]