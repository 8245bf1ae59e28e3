"""Filter rules, tables, rule bindings and proxy instance definitions."""

from __future__ import annotations

import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from functools import total_ordering
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Iterable, Iterator, Optional, Union

from mcproxy.definitions import indention

Address = Union[IPv4Address, IPv6Address]

_UNSPECIFIED = {
    socket.AF_INET: ip_address("0.0.0.0"),
    socket.AF_INET6: ip_address("::"),
}


def _addr_family(addr: Address) -> int:
    return socket.AF_INET if addr.version == 4 else socket.AF_INET6


def _ge(a: Address, b: Address) -> bool:
    return a.version == b.version and a >= b


def _le(a: Address, b: Address) -> bool:
    return a.version == b.version and a <= b


class RuleBindingType(Enum):
    FILTER = auto()
    RULE_MATCHING = auto()


class InterfaceType(Enum):
    UPSTREAM = auto()
    DOWNSTREAM = auto()


class InterfaceDirection(Enum):
    IN = auto()
    OUT = auto()
    WILDCARD = auto()


class FilterType(Enum):
    WHITELIST = auto()
    BLACKLIST = auto()
    UNDEFINED = auto()


class RuleMatchingType(Enum):
    ALL = auto()
    FIRST = auto()
    MUTEX = auto()
    UNDEFINED = auto()


class AddrMatch(ABC):
    """Something an address can be tested against."""

    @abstractmethod
    def match(self, addr: Address) -> bool:
        """Return whether ``addr`` is accepted."""

    def is_wildcard(self, addr: Address, addr_family: int) -> bool:
        """An unspecified address of the given family matches anything."""
        return addr == _UNSPECIFIED.get(addr_family)


class SingleAddr(AddrMatch):
    def __init__(self, addr: Address):
        self.addr = addr

    def match(self, addr: Address) -> bool:
        return addr == self.addr or self.is_wildcard(self.addr, _addr_family(addr))

    def __str__(self) -> str:
        return str(self.addr)


class AddrRange(AddrMatch):
    def __init__(self, start: Address, end: Address):
        self.start = start
        self.end = end

    def match(self, addr: Address) -> bool:
        family = _addr_family(addr)
        lower_ok = _ge(addr, self.start) or self.is_wildcard(self.start, family)
        upper_ok = _le(addr, self.end) or self.is_wildcard(self.end, family)
        return lower_ok and upper_ok

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


class RuleBox(ABC):
    """A rule that decides on an interface name, group and source."""

    @abstractmethod
    def match(self, if_name: str, gaddr: Address, saddr: Address) -> bool:
        """Return whether the triple is accepted by this rule."""


class RuleAddr(RuleBox):
    """Matches an interface name (empty for any) and group and source patterns."""

    def __init__(self, if_name: str, group: AddrMatch, source: AddrMatch):
        self.if_name = if_name
        self.group = group
        self.source = source

    def match(self, if_name: str, gaddr: Address, saddr: Address) -> bool:
        if self.if_name and self.if_name != if_name:
            return False
        return self.group.match(gaddr) and self.source.match(saddr)

    def __str__(self) -> str:
        return f"{self.if_name}({self.group} | {self.source})"


class Table:
    """A named list of rules; matches when any rule matches."""

    def __init__(self, name: str, rule_boxes: Iterable[RuleBox] = ()):
        self.name = name
        self.rule_boxes = list(rule_boxes)

    def match(self, if_name: str, gaddr: Address, saddr: Address) -> bool:
        return any(rule.match(if_name, gaddr, saddr) for rule in self.rule_boxes)

    def __lt__(self, other: "Table") -> bool:
        return self.name < other.name

    def __str__(self) -> str:
        lines = [f"table {self.name} {{"]
        lines.extend(indention(str(rule)) for rule in self.rule_boxes)
        lines.append("}")
        return "\n".join(lines)


class GlobalTableSet:
    """Tables addressable by name, kept in name order."""

    def __init__(self):
        self._tables: dict[str, Table] = {}

    def insert(self, table: Table) -> bool:
        """Add a table; return False if one of that name already exists."""
        if table.name in self._tables:
            return False
        self._tables[table.name] = table
        return True

    def get_table(self, name: str) -> Optional[Table]:
        return self._tables.get(name)

    def __iter__(self) -> Iterator[Table]:
        return (self._tables[name] for name in sorted(self._tables))

    def __len__(self) -> int:
        return len(self._tables)

    def __str__(self) -> str:
        return "\n".join(str(table) for table in self)


class RuleTable(RuleBox):
    """A rule that is an inline table."""

    def __init__(self, table: Table):
        self.table = table

    def match(self, if_name: str, gaddr: Address, saddr: Address) -> bool:
        return self.table.match(if_name, gaddr, saddr)

    def __str__(self) -> str:
        return str(self.table)


class RuleTableRef(RuleBox):
    """A rule that refers to a table of the global set by name."""

    def __init__(self, table_name: str, global_table_set: GlobalTableSet):
        self.table_name = table_name
        self.global_table_set = global_table_set

    def match(self, if_name: str, gaddr: Address, saddr: Address) -> bool:
        table = self.global_table_set.get_table(self.table_name)
        return table is not None and table.match(if_name, gaddr, saddr)

    def __str__(self) -> str:
        return f"(table {self.table_name})"


@dataclass
class RuleBinding:
    """Binds a filter table or a rule matching setting to an interface."""

    binding_type: RuleBindingType
    instance_name: str
    interface_type: InterfaceType
    if_name: str
    direction: InterfaceDirection
    filter_type: FilterType = FilterType.UNDEFINED
    table: Optional[Table] = None
    rule_matching_type: RuleMatchingType = RuleMatchingType.UNDEFINED
    timeout_ms: int = 0

    @staticmethod
    def filter(
        instance_name: str,
        interface_type: InterfaceType,
        if_name: str,
        direction: InterfaceDirection,
        filter_type: FilterType,
        table: Optional[Table],
    ) -> "RuleBinding":
        return RuleBinding(
            RuleBindingType.FILTER,
            instance_name,
            interface_type,
            if_name,
            direction,
            filter_type=filter_type,
            table=table,
        )

    @staticmethod
    def rule_matching(
        instance_name: str,
        interface_type: InterfaceType,
        if_name: str,
        direction: InterfaceDirection,
        rule_matching_type: RuleMatchingType,
        timeout_ms: int = 0,
    ) -> "RuleBinding":
        return RuleBinding(
            RuleBindingType.RULE_MATCHING,
            instance_name,
            interface_type,
            if_name,
            direction,
            rule_matching_type=rule_matching_type,
            timeout_ms=timeout_ms,
        )

    def match(self, if_name: str, saddr: Address, gaddr: Address) -> bool:
        if self.table is None:
            return False
        if self.filter_type is FilterType.BLACKLIST:
            return not self.table.match(if_name, saddr, gaddr)
        if self.filter_type is FilterType.WHITELIST:
            return self.table.match(if_name, saddr, gaddr)
        return False

    def _filter_string(self) -> str:
        names = {
            FilterType.BLACKLIST: "blacklist ",
            FilterType.WHITELIST: "whitelist ",
            FilterType.UNDEFINED: "* ",
        }
        table = str(self.table) if self.table is not None else "table ???"
        return names.get(self.filter_type, "??? ") + table

    def _rule_matching_string(self) -> str:
        kind = self.rule_matching_type
        if kind is RuleMatchingType.ALL:
            tail = "all "
        elif kind is RuleMatchingType.FIRST:
            tail = "first "
        elif kind is RuleMatchingType.MUTEX:
            tail = f"mutex {self.timeout_ms}"
        else:
            tail = "???"
        return "rulematching " + tail

    def __str__(self) -> str:
        itype = {
            InterfaceType.UPSTREAM: "upstream ",
            InterfaceType.DOWNSTREAM: "downstream ",
        }.get(self.interface_type, "??? ")
        direction = {
            InterfaceDirection.IN: "in ",
            InterfaceDirection.OUT: "out ",
            InterfaceDirection.WILDCARD: "* ",
        }.get(self.direction, "??? ")
        if self.binding_type is RuleBindingType.FILTER:
            body = self._filter_string()
        elif self.binding_type is RuleBindingType.RULE_MATCHING:
            body = self._rule_matching_string()
        else:
            body = "??? "
        return f"pinstance {self.instance_name} {itype}{self.if_name} {direction}{body}"


@total_ordering
class Interface:
    """A network interface of a proxy instance with optional filters."""

    def __init__(self, if_name: str):
        self.if_name = if_name
        self.output_filter: Optional[RuleBinding] = None
        self.input_filter: Optional[RuleBinding] = None

    @staticmethod
    def _match_filter(
        input_if_name: str, saddr: Address, gaddr: Address, rule: Optional[RuleBinding]
    ) -> bool:
        if rule is None:
            return True
        return rule.match(input_if_name, saddr, gaddr)

    def match_output_filter(self, input_if_name: str, saddr: Address, gaddr: Address) -> bool:
        return self._match_filter(input_if_name, saddr, gaddr, self.output_filter)

    def match_input_filter(self, input_if_name: str, saddr: Address, gaddr: Address) -> bool:
        return self._match_filter(input_if_name, saddr, gaddr, self.input_filter)

    def rule_binding_string(self) -> str:
        parts = [str(f) for f in (self.output_filter, self.input_filter) if f is not None]
        return "\n".join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Interface):
            return NotImplemented
        return self.if_name == other.if_name

    def __lt__(self, other: "Interface") -> bool:
        return self.if_name < other.if_name

    def __hash__(self) -> int:
        return hash(self.if_name)

    def __str__(self) -> str:
        return self.if_name


@dataclass
class InstanceDefinition:
    """A proxy instance: its upstreams, downstreams and global settings."""

    instance_name: str
    upstreams: list = field(default_factory=list)
    downstreams: list = field(default_factory=list)
    table_number: int = 0
    user_selected_table_number: bool = False
    global_settings: list = field(default_factory=list)

    def __post_init__(self):
        self.upstreams = list(self.upstreams)
        self.downstreams = list(self.downstreams)

    @staticmethod
    def _find(interfaces: list, if_name: str) -> Optional[Interface]:
        return next((i for i in interfaces if i.if_name == if_name), None)

    def find_upstream(self, if_name: str) -> Optional[Interface]:
        return self._find(self.upstreams, if_name)

    def find_downstream(self, if_name: str) -> Optional[Interface]:
        return self._find(self.downstreams, if_name)

    def instance_string(self) -> str:
        ups = "".join(f"{i} " for i in self.upstreams)
        downs = "".join(f"{i} " for i in self.downstreams)
        return f"pinstance {self.instance_name}: {ups}==> {downs}"

    def rule_binding_string(self) -> str:
        text = "\n".join(i.rule_binding_string() for i in self.upstreams)
        text += "".join("\n" + i.rule_binding_string() for i in self.downstreams)
        text += "".join("\n" + str(s) for s in self.global_settings)
        return text


class InstDefSet:
    """Instance definitions addressable by name, kept in name order."""

    def __init__(self):
        self._instances: dict[str, InstanceDefinition] = {}

    def insert(self, instance: InstanceDefinition) -> bool:
        """Add an instance; return False if one of that name already exists."""
        if instance.instance_name in self._instances:
            return False
        self._instances[instance.instance_name] = instance
        return True

    def find(self, instance_name: str) -> Optional[InstanceDefinition]:
        return self._instances.get(instance_name)

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[InstanceDefinition]:
        return (self._instances[name] for name in sorted(self._instances))

    def __str__(self) -> str:
        parts = []
        for instance in self:
            parts.append(instance.instance_string())
            parts.append(instance.rule_binding_string())
        return "\n".join(parts)