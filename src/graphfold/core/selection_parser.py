"""
Parser for the field-selection strings used by federation directives.

Grammar::

    selection_set := field+
    field         := NAME ( "{" selection_set "}" )?

Fields are separated by whitespace; commas are ignored, as everywhere in
GraphQL. Arguments, aliases and fragments are not part of the language.
"""

import re
from dataclasses import dataclass
from enum import Enum

from .errors import ErrorContext, SelectionParseError
from .ir import FieldSelection, SelectionSet

_NAME_START = re.compile(r"[_A-Za-z]")
_NAME_CONTINUE = re.compile(r"[_0-9A-Za-z]")


class TokenType(Enum):
    """Token types in a selection string."""

    NAME = "NAME"
    LBRACE = "{"
    RBRACE = "}"
    EOF = "EOF"


@dataclass
class Token:
    """A single token with its 1-indexed source position."""

    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.value!r}, {self.line}:{self.column})"


class SelectionLexer:
    """Converts a selection string into a list of tokens."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def error(self, message: str, line: int, column: int) -> SelectionParseError:
        return SelectionParseError(
            message, ErrorContext(source=self.text, line=line, column=column)
        )

    def tokenize(self) -> list[Token]:
        while (char := self.current_char()) is not None:
            if char.isspace() or char == ",":
                self.advance()
            elif char in "{}":
                token_type = TokenType.LBRACE if char == "{" else TokenType.RBRACE
                self.tokens.append(Token(token_type, char, self.line, self.column))
                self.advance()
            elif _NAME_START.match(char):
                self.tokens.append(self._read_name())
            else:
                raise self.error(f"Unexpected character {char!r}", self.line, self.column)

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.column))
        return self.tokens

    def _read_name(self) -> Token:
        line, column, start = self.line, self.column, self.pos
        while (char := self.current_char()) is not None and _NAME_CONTINUE.match(char):
            self.advance()
        return Token(TokenType.NAME, self.text[start : self.pos], line, column)


class SelectionParser:
    """Recursive-descent parser over the token stream."""

    def __init__(self, text: str, tokens: list[Token]):
        self.text = text
        self.tokens = tokens
        self.pos = 0

    def current(self) -> Token:
        return self.tokens[self.pos]

    def error(self, message: str, token: Token) -> SelectionParseError:
        return SelectionParseError(
            message, ErrorContext(source=self.text, line=token.line, column=token.column)
        )

    def parse(self) -> SelectionSet:
        if self.current().type == TokenType.EOF:
            raise self.error("Selection is empty", self.current())

        selections = self.parse_selections(parent=None)

        token = self.current()
        if token.type == TokenType.RBRACE:
            raise self.error("Unbalanced braces: unexpected '}'", token)
        return SelectionSet(selections=selections)

    def parse_selections(self, parent: Token | None) -> tuple[FieldSelection, ...]:
        selections: list[FieldSelection] = []

        while True:
            token = self.current()
            if token.type == TokenType.NAME:
                self.pos += 1
                selections.append(self.parse_field(token))
            elif token.type == TokenType.LBRACE:
                raise self.error("Expected a field name before '{'", token)
            else:
                break

        if parent is not None:
            token = self.current()
            if token.type == TokenType.EOF:
                raise self.error(
                    f"Unbalanced braces: expected '}}' to close '{parent.value}'", token
                )
            if not selections:
                raise self.error(f"Empty selection for field '{parent.value}'", token)
        return tuple(selections)

    def parse_field(self, name: Token) -> FieldSelection:
        if self.current().type != TokenType.LBRACE:
            return FieldSelection(name=name.value)

        self.pos += 1
        nested = self.parse_selections(parent=name)

        # consume the closing '}'
        self.pos += 1
        return FieldSelection(name=name.value, selections=nested)


def parse_selections(source: str) -> SelectionSet:
    """
    Parse a selection string such as ``"sku upc color { id value }"``.

    Args:
        source: The ``fields`` argument of a federation directive

    Returns:
        The parsed selection set

    Raises:
        SelectionParseError: On unbalanced braces, empty groups, empty input,
            or characters that cannot start or continue a field name
    """
    tokens = SelectionLexer(source).tokenize()
    return SelectionParser(source, tokens).parse()
