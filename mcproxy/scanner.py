"""Tokeniser for a single configuration command."""

from __future__ import annotations

import string
from typing import Iterator

from mcproxy.token import Token, TokenType, token_type_name

_END = "\0"
_SPACES = frozenset(" \t\n\v\f\r")
_WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_")

_SYMBOLS = {
    ":": TokenType.DOUBLE_DOT,
    ".": TokenType.DOT,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    "(": TokenType.LEFT_BRACKET,
    ")": TokenType.RIGHT_BRACKET,
    "-": TokenType.RANGE,
    "/": TokenType.SLASH,
    "*": TokenType.STAR,
    "|": TokenType.PIPE,
}

_KEYWORDS = {
    "protocol": TokenType.PROTOCOL,
    "mldv1": TokenType.MLDV1,
    "mldv2": TokenType.MLDV2,
    "igmpv1": TokenType.IGMPV1,
    "igmpv2": TokenType.IGMPV2,
    "igmpv3": TokenType.IGMPV3,
    "pinstance": TokenType.PINSTANCE,
    "upstream": TokenType.UPSTREAM,
    "downstream": TokenType.DOWNSTREAM,
    "rulematching": TokenType.RULE_MATCHING,
    "out": TokenType.OUT,
    "in": TokenType.IN,
    "blacklist": TokenType.BLACKLIST,
    "whitelist": TokenType.WHITELIST,
    "table": TokenType.TABLE,
    "all": TokenType.ALL,
    "first": TokenType.FIRST,
    "mutex": TokenType.MUTEX,
    "disable": TokenType.DISABLE,
}

_NIL = Token(TokenType.NIL)


class ScanError(ValueError):
    """Raised when a command holds a character the scanner does not accept."""


class Scanner:
    """Splits one command into tokens up front and hands them out in order."""

    def __init__(self, current_line: int, cmd: str):
        self.current_line = current_line
        self.cmd = cmd
        self._pos = 0
        self._char = _END
        self._read_next_char()
        self._tokens = list(self._scan())
        self._token_pos = 0

    def next_token(self) -> Token:
        """Return the next token and advance; NIL once the tokens are used up."""
        if self._token_pos < len(self._tokens):
            token = self._tokens[self._token_pos]
            self._token_pos += 1
            return token
        return _NIL

    def peek(self, offset: int = 0) -> Token:
        """Return the token ``offset`` places ahead without consuming it."""
        index = self._token_pos + offset
        if 0 <= index < len(self._tokens):
            return self._tokens[index]
        return _NIL

    def _read_next_char(self) -> None:
        if self._pos < len(self.cmd):
            self._char = self.cmd[self._pos]
            self._pos += 1
        else:
            self._char = _END

    def _scan(self) -> Iterator[Token]:
        while (token := self._read_token()).type is not TokenType.NIL:
            yield token

    def _read_token(self) -> Token:
        while self._char in _SPACES:
            self._read_next_char()

        ch = self._char
        if ch == _END:
            return _NIL

        if ch in _SYMBOLS:
            self._read_next_char()
            return Token(_SYMBOLS[ch])

        if ch == "=":
            self._read_next_char()
            if self._char == "=":
                self._read_next_char()
                if self._char == ">":
                    self._read_next_char()
                    return Token(TokenType.ARROW)
            return _NIL

        if ch == '"':
            self._read_next_char()
            chars = []
            while self._char not in (_END, '"'):
                chars.append(self._char)
                self._read_next_char()
            self._read_next_char()
            return Token(TokenType.STRING, "".join(chars))

        if ch in _WORD_CHARS:
            chars = []
            while self._char in _WORD_CHARS:
                chars.append(self._char)
                self._read_next_char()
            word = "".join(chars)
            keyword = _KEYWORDS.get(word.lower())
            return Token(keyword) if keyword is not None else Token(TokenType.STRING, word)

        raise ScanError(
            f"failed to scan config file. Unsupported char <{ch}> "
            f"in line {self.current_line} and position {self._pos}"
        )

    def __str__(self) -> str:
        parts = ["##-- scanner --##\n", f"{self.current_line}: {self.cmd}\n", " ==> "]
        for i, token in enumerate(self._tokens, start=1):
            if i % 5 == 0:
                parts.append("\n")
            parts.append(token_type_name(token.type))
            parts.append(f"({token.text}) " if token.text else " ")
        return "".join(parts)