import pytest

from mcproxy.token import Token, TokenType, token_type_name


@pytest.mark.parametrize(
    "token_type, name",
    [
        (TokenType.STRING, "TT_STRING"),
        (TokenType.NIL, "TT_NIL"),
        (TokenType.DOUBLE_DOT, "TT_DOUBLE_DOT"),
        (TokenType.RULE_MATCHING, "TT_RULE_MATCHING"),
        (TokenType.RIGHT_BRACKET, "TT_RIGHT_BRACKET"),
    ],
)
def test_token_type_name(token_type, name):
    assert token_type_name(token_type) == name


def test_disable_has_no_name():
    assert token_type_name(TokenType.DISABLE) == ""


def test_names_are_unique_and_prefixed():
    names = [token_type_name(t) for t in TokenType if t is not TokenType.DISABLE]
    assert all(n.startswith("TT_") for n in names)
    assert len(set(names)) == len(names)


def test_token_default_text():
    assert Token(TokenType.ARROW).text == ""
    assert Token(TokenType.STRING, "eth0") == Token(TokenType.STRING, "eth0")
    assert Token(TokenType.STRING, "eth0") != Token(TokenType.STRING, "eth1")