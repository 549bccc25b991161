"""
Token definitions for the Gizmo lexer.

This module defines all token types recognized by the Gizmo language:
keywords, operators, delimiters, literals and the structural newline and
end-of-input markers.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from gizmo.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types in Gizmo."""

    # End of input
    EOF = auto()
    NEWLINE = auto()

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENTIFIER = auto()

    # Declaration keywords
    FRAME = auto()
    FRAMES = auto()
    NUM = auto()
    TEXT = auto()

    # Generator keywords
    PATTERN = auto()
    ANIMATE = auto()
    EVOLVE = auto()
    USING = auto()
    FROM = auto()

    # Control flow keywords
    IF = auto()
    THEN = auto()
    ELSIF = auto()
    ELSE = auto()
    END = auto()
    REPEAT = auto()
    TIMES = auto()
    DO = auto()
    RETURN = auto()

    # Events
    WHEN = auto()
    CLICKED = auto()
    IDLE = auto()

    # Logical keywords and boolean literals
    AND = auto()
    OR = auto()
    NOT = auto()
    TRUE = auto()
    FALSE = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    CARET = auto()
    ASSIGN = auto()
    EQ = auto()
    NE = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    QUESTION = auto()
    COLON = auto()

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    SEMICOLON = auto()


@dataclass(slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The literal value (number, string, identifier name) or lexeme text
        location: Source location of this token
    """

    type: TokenType
    value: Any
    location: SourceLocation

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self.type == other.type and self.value == other.value
        if isinstance(other, TokenType):
            return self.type == other
        return NotImplemented

    @property
    def is_literal(self) -> bool:
        """Check if this token represents a literal value."""
        return self.type in {
            TokenType.NUMBER,
            TokenType.STRING,
            TokenType.TRUE,
            TokenType.FALSE,
        }

    @property
    def is_keyword(self) -> bool:
        """Check if this token is a reserved word."""
        return self.type in KEYWORD_TYPES

    def describe(self) -> str:
        """Human readable form used in parser messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.NEWLINE:
            return "newline"
        if self.type == TokenType.NUMBER:
            number = self.value
            if float(number).is_integer():
                return f"number '{int(number)}'"
            return f"number '{number}'"
        if self.type == TokenType.STRING:
            return f'string "{self.value}"'
        if self.type == TokenType.IDENTIFIER:
            return f"identifier '{self.value}'"
        return f"'{self.value}'"


KEYWORDS: dict[str, TokenType] = {
    "frame": TokenType.FRAME,
    "frames": TokenType.FRAMES,
    "num": TokenType.NUM,
    "text": TokenType.TEXT,
    "pattern": TokenType.PATTERN,
    "animate": TokenType.ANIMATE,
    "evolve": TokenType.EVOLVE,
    "using": TokenType.USING,
    "from": TokenType.FROM,
    "if": TokenType.IF,
    "then": TokenType.THEN,
    "elsif": TokenType.ELSIF,
    "else": TokenType.ELSE,
    "end": TokenType.END,
    "repeat": TokenType.REPEAT,
    "times": TokenType.TIMES,
    "do": TokenType.DO,
    "return": TokenType.RETURN,
    "when": TokenType.WHEN,
    "clicked": TokenType.CLICKED,
    "idle": TokenType.IDLE,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

KEYWORD_TYPES = frozenset(KEYWORDS.values())

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "^": TokenType.CARET,
    "=": TokenType.ASSIGN,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}

DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
}

ESCAPE_SEQUENCES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
}
