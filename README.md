# mcproxy

Building blocks for the configuration of a multicast proxy for IGMP (IPv4)
and MLD (IPv6):

- `mcproxy.scanner` turns a single configuration command into tokens,
- `mcproxy.parser` and `mcproxy.binding_parser` parse those commands,
- `mcproxy.rules` holds the model they build: address matches, rule
  tables, whitelists and blacklists, rule-matching settings and proxy
  instance definitions,
- `mcproxy.definitions` holds the protocol, filter mode and record type
  enumerations and a few helpers.

The package has no dependencies beyond the standard library.

## The command language

Each command is parsed on its own, without a trailing `;`. Keywords are
case-insensitive.

```
protocol IGMPv3
pinstance myproxy: eth0 ==> eth1 eth2
pinstance other(5): eth3 ==> eth4
table allowed { (239.1.1.0/24 | *) eth0(239.2.2.1 - 239.2.2.9 | 10.0.0.1) }
pinstance myproxy downstream eth1 out whitelist table allowed
pinstance myproxy upstream eth0 in rulematching mutex 10000
disable
```

Supported protocols are `IGMPv1`, `IGMPv2`, `IGMPv3`, `MLDv1` and `MLDv2`.
A rule is `[interface](group | source)` or `[interface](table ...)`.
Group and source may be a single address, a range (`a - b`), a prefix
(`a/len`) or the wildcard `*`; each end of a range may also be `*`.
Addresses must belong to the family of the chosen protocol.

## Parsing commands

```python
from ipaddress import ip_address

from mcproxy.binding_parser import BindingParser
from mcproxy.definitions import GroupMemProtocol
from mcproxy.parser import Parser
from mcproxy.rules import GlobalTableSet, InstDefSet

gmp = Parser(1, "protocol IGMPv3").parse_group_mem_proto()   # GroupMemProtocol.IGMPv3

instances = InstDefSet()
Parser(2, "pinstance myproxy: eth0 ==> eth1 eth2").parse_instance_definition(instances)

tables = GlobalTableSet()
table = Parser(3, "table allowed { (239.1.1.0/24 | *) }").parse_table(tables, gmp)
tables.insert(table)          # False if a table of that name already exists

BindingParser(4, "pinstance myproxy downstream eth1 out whitelist table allowed") \
    .parse_interface_rule_binding(tables, gmp, instances)
BindingParser(5, "pinstance myproxy upstream eth0 in rulematching mutex 10000") \
    .parse_interface_rule_binding(tables, gmp, instances)

eth1 = instances.find("myproxy").find_downstream("eth1")
eth1.match_output_filter("eth0", ip_address("239.1.1.5"), ip_address("10.0.0.1"))  # True
eth1.match_input_filter("eth0", ip_address("239.9.9.9"), ip_address("10.0.0.1"))   # True, no filter

print(instances)
print(tables)
```

`Parser.parser_type()` tells which kind of command was given. A filter
binding is stored on the interface it names; a rule-matching binding is
appended to the instance's `global_settings`. An interface without a filter
accepts everything; a whitelist accepts what its table matches and a
blacklist what it does not. The second address passed to a filter is checked
against the group part of each rule, the third against the source part.

Errors are raised as exceptions:

- `mcproxy.scanner.ScanError` for a character the scanner does not accept,
- `mcproxy.parser.ConfigError` for a command that cannot be parsed, a
  duplicate instance, an unknown table, instance or interface, a second
  filter in the same direction, or an address of the wrong family,
- `mcproxy.parser.ProxyDisabled` for the `disable` command.

## Scanning

```python
from mcproxy.scanner import Scanner

scanner = Scanner(1, "pinstance a: eth0 ==> eth1")
scanner.peek(1)        # Token(type=TokenType.DOUBLE_DOT, text='')
scanner.next_token()   # Token(type=TokenType.PINSTANCE, text='')
print(scanner)
```

Words that are not keywords, and text in double quotes, become `STRING`
tokens. `token_type_name` in `mcproxy.token` gives names such as `TT_STRING`.

## Protocol helpers

`mcproxy.definitions` provides `GroupMemProtocol`, `McFilter` and
`McastAddrRecordType`, together with `is_ipv4`, `is_ipv6`,
`is_older_or_equal_version`, `is_newest_version`, `get_addr_family`,
`get_next_newer_version`, the `*_name` functions, `seconds_to_string`,
`milliseconds_to_string` and `indention`.

## What this package does not do

It parses single commands only. It does not read configuration files, strip
`#` comments or split a script at `;`; the caller passes each command and its
line number. It does not look up or check the host's network interfaces,
assign virtual interface numbers, send or receive IGMP/MLD messages, or run a
proxy. It has no command-line program and no logging setup.

## Running the tests

The tests use pytest, listed in the `test` extra:

```
pip install -e .[test]
pytest
```