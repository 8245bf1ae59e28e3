from ipaddress import ip_address

import pytest

from mcproxy.definitions import GroupMemProtocol
from mcproxy.parser import ConfigError, Parser, ParserType, ProxyDisabled
from mcproxy.rules import GlobalTableSet, InstDefSet, RuleTableRef, Table

V4 = GroupMemProtocol.IGMPv3
V6 = GroupMemProtocol.MLDv2


def table_of(cmd, gmp=V4, gts=None):
    return Parser(1, cmd).parse_table(gts if gts is not None else GlobalTableSet(), gmp)


@pytest.mark.parametrize(
    "cmd, expected",
    [
        ("protocol IGMPv3", ParserType.PROTOCOL),
        ("table t { (*|*) }", ParserType.TABLE),
        ("pinstance p: a ==> b", ParserType.INSTANCE_DEFINITION),
        ("pinstance p(3): a ==> b", ParserType.INSTANCE_DEFINITION),
        ("pinstance p upstream a in rulematching all", ParserType.INTERFACE_RULE_BINDING),
        ("pinstance p downstream a out whitelist table t", ParserType.INTERFACE_RULE_BINDING),
    ],
)
def test_parser_type(cmd, expected):
    assert Parser(1, cmd).parser_type() is expected


def test_disable_raises():
    with pytest.raises(ProxyDisabled):
        Parser(1, "disable").parser_type()


def test_unknown_command_raises():
    with pytest.raises(ConfigError):
        Parser(4, "foo bar").parser_type()


def test_pinstance_bad_follower_raises():
    with pytest.raises(ConfigError):
        Parser(1, "pinstance p table").parser_type()


@pytest.mark.parametrize(
    "cmd, expected",
    [
        ("protocol MLDv1", GroupMemProtocol.MLDv1),
        ("protocol mldv2", GroupMemProtocol.MLDv2),
        ("protocol IGMPv1", GroupMemProtocol.IGMPv1),
        ("protocol IGMPv2", GroupMemProtocol.IGMPv2),
        ("protocol IGMPV3", GroupMemProtocol.IGMPv3),
    ],
)
def test_parse_group_mem_proto(cmd, expected):
    assert Parser(1, cmd).parse_group_mem_proto() is expected


@pytest.mark.parametrize("cmd", ["protocol foo", "protocol IGMPv3 extra", "protocol", "table x"])
def test_parse_group_mem_proto_errors(cmd):
    with pytest.raises(ConfigError):
        Parser(1, cmd).parse_group_mem_proto()


def test_parse_instance_definition():
    ids = InstDefSet()
    Parser(1, "pinstance myProxy: eth0 ==> eth1 eth2").parse_instance_definition(ids)
    inst = ids.find("myProxy")
    assert [i.if_name for i in inst.upstreams] == ["eth0"]
    assert [i.if_name for i in inst.downstreams] == ["eth1", "eth2"]
    assert inst.table_number == 0
    assert inst.user_selected_table_number is False


def test_parse_instance_definition_with_table_number():
    ids = InstDefSet()
    Parser(1, "pinstance p(5): a ==> b").parse_instance_definition(ids)
    inst = ids.find("p")
    assert inst.table_number == 5
    assert inst.user_selected_table_number is True


def test_instance_without_upstreams_allowed():
    ids = InstDefSet()
    Parser(1, "pinstance p: ==> b").parse_instance_definition(ids)
    assert ids.find("p").upstreams == []
    assert len(ids) == 1


@pytest.mark.parametrize(
    "cmd",
    [
        "pinstance p: a ==>",
        "pinstance p: a",
        "pinstance p(abc): a ==> b",
        "pinstance p(5: a ==> b",
        "pinstance p: a ==> b *",
    ],
)
def test_instance_definition_errors(cmd):
    with pytest.raises(ConfigError):
        Parser(1, cmd).parse_instance_definition(InstDefSet())


def test_duplicate_instance_raises():
    ids = InstDefSet()
    Parser(1, "pinstance p: a ==> b").parse_instance_definition(ids)
    with pytest.raises(ConfigError):
        Parser(2, "pinstance p: c ==> d").parse_instance_definition(ids)
    assert len(ids) == 1


def test_wildcard_table_matches_everything():
    table = table_of("table allways { (*|*) }")
    assert table.name == "allways"
    assert table.match("eth0", ip_address("239.1.2.3"), ip_address("10.0.0.1"))
    assert str(table) == "table allways {\n\t(0.0.0.0 | 0.0.0.0)\n}"


def test_range_with_interface():
    table = table_of("table t { eth0(239.0.0.1 - 239.0.0.9 | *) }")
    src = ip_address("1.2.3.4")
    assert table.match("eth0", ip_address("239.0.0.5"), src)
    assert not table.match("eth1", ip_address("239.0.0.5"), src)
    assert not table.match("eth0", ip_address("239.0.0.10"), src)


def test_single_address():
    table = table_of("table t { (239.0.0.1 | 10.0.0.1) }")
    assert table.match("x", ip_address("239.0.0.1"), ip_address("10.0.0.1"))
    assert not table.match("x", ip_address("239.0.0.1"), ip_address("10.0.0.2"))


def test_prefix_rule():
    table = table_of("table t { (239.1.0.0/16 | *) }")
    src = ip_address("1.1.1.1")
    assert table.match("x", ip_address("239.1.255.255"), src)
    assert table.match("x", ip_address("239.1.0.0"), src)
    assert not table.match("x", ip_address("239.2.0.0"), src)


def test_ipv6_table():
    table = table_of("table t6 { (FF05::1 | *) }", gmp=V6)
    assert table.match("x", ip_address("ff05::1"), ip_address("2001:db8::1"))
    assert not table.match("x", ip_address("ff05::2"), ip_address("2001:db8::1"))


def test_wrong_ip_version_raises():
    with pytest.raises(ConfigError):
        table_of("table t6 { (FF05::1 | *) }", gmp=V4)


@pytest.mark.parametrize(
    "cmd",
    [
        "table t { (999.1.1.1 | *) }",
        "table t { (239.0.0.0/33 | *) }",
        "table t { (239.0.0.0/abc | *) }",
        "table t { (* *) }",
        "table t { eth0 }",
        "table t { (*|*) } extra",
        "table t (*|*)",
    ],
)
def test_table_errors(cmd):
    with pytest.raises(ConfigError):
        table_of(cmd)


def test_table_reference():
    gts = GlobalTableSet()
    gts.insert(Table("t"))
    table = table_of("table t", gts=gts)
    assert table.name == ""
    assert len(table.rule_boxes) == 1
    assert isinstance(table.rule_boxes[0], RuleTableRef)
    assert table.rule_boxes[0].table_name == "t"


def test_unknown_table_reference_raises():
    with pytest.raises(ConfigError):
        table_of("table missing")


def test_nested_tables():
    gts = GlobalTableSet()
    gts.insert(table_of("table inner { (239.0.0.1 | *) }"))
    table = table_of("table outer { (table inner) (table { (239.0.0.2 | *) }) }", gts=gts)
    src = ip_address("1.1.1.1")
    assert len(table.rule_boxes) == 2
    assert table.match("x", ip_address("239.0.0.1"), src)
    assert table.match("x", ip_address("239.0.0.2"), src)
    assert not table.match("x", ip_address("239.0.0.3"), src)


def test_anonymous_table():
    table = table_of("table { (*|*) }")
    assert table.name == ""
    assert table.match("x", ip_address("239.0.0.1"), ip_address("1.1.1.1"))


def test_empty_table():
    table = table_of("table t { }")
    assert table.rule_boxes == []
    assert not table.match("x", ip_address("239.0.0.1"), ip_address("1.1.1.1"))