"""
Gizmo Lexer (Tokenizer).

Transforms Gizmo source code into a stream of tokens. Newlines are
significant and emitted as tokens; ``//`` comments and horizontal
whitespace are discarded.
"""

import string
from typing import Iterator, Optional

from gizmo.compiler.tokens import (
    DOUBLE_CHAR_TOKENS,
    ESCAPE_SEQUENCES,
    KEYWORDS,
    SINGLE_CHAR_TOKENS,
    Token,
    TokenType,
)
from gizmo.utils.errors import LexerError, SourceLocation

IDENT_START = frozenset(string.ascii_letters + "_")
IDENT_CHARS = IDENT_START | frozenset(string.digits)
DIGITS = frozenset(string.digits)


class Lexer:
    """
    Tokenizer for Gizmo source code.

    The lexer supports:
    - Identifiers and the reserved keyword table
    - Numeric literals (integer part, optional fraction), always floats
    - Double-quoted string literals with escapes
    - Single-line comments starting with //
    - One- and two-character operators

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The Gizmo source code to tokenize
            filename: Optional filename for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

        # Track the start of the current line for error reporting
        self._line_start = 0

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        peek_pos = self.pos + 1
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self.pos,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        """Extract the current line of source for error messages."""
        end = self.source.find("\n", self._line_start)
        if end == -1:
            end = len(self.source)
        return self.source[self._line_start:end]

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
            self._line_start = self.pos
        else:
            self.column += 1

        return char

    def _error(self, message: str, location: Optional[SourceLocation] = None) -> LexerError:
        return LexerError(message, location or self._location(), self._current_line_text())

    def _skip_whitespace(self) -> None:
        """Skip whitespace characters except newlines."""
        while self._current_char is not None and self._current_char in " \t\r":
            self._advance()

    def _skip_comment(self) -> bool:
        """Skip a // comment up to (not including) the newline.

        Returns True if a comment was skipped.
        """
        if self._current_char == "/" and self._peek_char == "/":
            while self._current_char is not None and self._current_char != "\n":
                self._advance()
            return True
        return False

    def _read_string(self) -> Token:
        """
        Read a double-quoted string literal.

        Strings may span lines. Only the escapes in ESCAPE_SEQUENCES are
        accepted.
        """
        start_loc = self._location()
        start_line_text = self._current_line_text()
        self._advance()  # opening quote

        value_chars: list[str] = []
        while True:
            char = self._current_char
            if char is None:
                raise LexerError("Unterminated string literal", start_loc, start_line_text)

            if char == '"':
                self._advance()
                break

            if char == "\\":
                escape_loc = self._location()
                self._advance()
                if self._current_char is None:
                    raise LexerError("Unterminated string literal", start_loc, start_line_text)
                escaped = ESCAPE_SEQUENCES.get(self._current_char)
                if escaped is None:
                    raise self._error(
                        f"Invalid escape sequence: \\{self._current_char}", escape_loc
                    )
                value_chars.append(escaped)
                self._advance()
            else:
                value_chars.append(self._advance())

        return Token(TokenType.STRING, "".join(value_chars), start_loc)

    def _read_number(self) -> Token:
        """
        Read a numeric literal.

        The decimal point is only consumed when a digit follows it, so
        ``3.`` lexes as the number 3 followed by an (invalid) dot.
        """
        start_loc = self._location()
        num_chars: list[str] = []

        while self._current_char is not None and self._current_char in DIGITS:
            num_chars.append(self._advance())

        if self._current_char == "." and (
            self._peek_char is not None and self._peek_char in DIGITS
        ):
            num_chars.append(self._advance())
            while self._current_char is not None and self._current_char in DIGITS:
                num_chars.append(self._advance())

        return Token(TokenType.NUMBER, float("".join(num_chars)), start_loc)

    def _read_identifier_or_keyword(self) -> Token:
        """
        Read an identifier or keyword.

        Identifiers start with a letter or underscore and contain
        letters, digits, and underscores.
        """
        start_loc = self._location()
        chars: list[str] = []

        while self._current_char is not None and self._current_char in IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)
        token_type = KEYWORDS.get(name)
        if token_type is not None:
            return Token(token_type, name, start_loc)
        return Token(TokenType.IDENTIFIER, name, start_loc)

    def _read_operator(self) -> Optional[Token]:
        """Read a one- or two-character operator or delimiter."""
        start_loc = self._location()
        char = self._current_char
        if char is None:
            return None

        if self._peek_char is not None:
            two = char + self._peek_char
            token_type = DOUBLE_CHAR_TOKENS.get(two)
            if token_type is not None:
                self._advance()
                self._advance()
                return Token(token_type, two, start_loc)

        token_type = SINGLE_CHAR_TOKENS.get(char)
        if token_type is not None:
            self._advance()
            return Token(token_type, char, start_loc)

        return None

    def _next_token(self) -> Token:
        """Extract the next token from the source."""
        while True:
            self._skip_whitespace()
            if self._skip_comment():
                continue
            break

        char = self._current_char
        if char is None:
            return Token(TokenType.EOF, None, self._location())

        if char == "\n":
            loc = self._location()
            self._advance()
            return Token(TokenType.NEWLINE, "\n", loc)

        if char == '"':
            return self._read_string()

        if char in DIGITS:
            return self._read_number()

        if char in IDENT_START:
            return self._read_identifier_or_keyword()

        op_token = self._read_operator()
        if op_token is not None:
            return op_token

        if char == "!":
            raise self._error("Unexpected character: '!' (did you mean '!='?)")
        raise self._error(f"Unexpected character: {char!r}")

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source code.

        Returns:
            A list of all tokens ending with exactly one EOF token.
        """
        self.tokens = []
        self.pos = 0
        self.line = 1
        self.column = 1
        self._line_start = 0

        while True:
            token = self._next_token()
            self.tokens.append(token)
            if token.type == TokenType.EOF:
                break

        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens (re-tokenizes if necessary)."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: Gizmo source code
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
