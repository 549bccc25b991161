"""
Gizmo Parser.

A recursive-descent parser with precedence climbing for binary operators.
Produces an immutable ``Program`` from the token stream. Any syntax error
aborts parsing immediately; there is no error recovery.
"""

from typing import Optional

from gizmo.compiler.ast_nodes import (
    AnimateGenerator,
    ArrayLiteral,
    Assignment,
    BinaryExpression,
    BinaryOperator,
    BooleanLiteral,
    CallExpression,
    ConditionalExpression,
    DeclaredType,
    ElsifClause,
    EventKind,
    EvolveGenerator,
    Expression,
    ExpressionStatement,
    Identifier,
    IfStatement,
    IndexExpression,
    NumberLiteral,
    PatternGenerator,
    Program,
    RepeatStatement,
    ReturnStatement,
    Statement,
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
    VarDeclaration,
    WhenStatement,
)
from gizmo.compiler.lexer import Lexer
from gizmo.compiler.tokens import Token, TokenType
from gizmo.utils.errors import ParserError


class Precedence:
    """Binary operator precedence levels (ternary sits below all of them)."""

    NONE = 0
    OR = 1              # or
    AND = 2             # and
    EQUALITY = 3        # == !=
    COMPARISON = 4      # < > <= >=
    ADDITIVE = 5        # + -
    MULTIPLICATIVE = 6  # * / %
    POWER = 7           # ^


PRECEDENCE_MAP: dict[TokenType, int] = {
    TokenType.OR: Precedence.OR,
    TokenType.AND: Precedence.AND,
    TokenType.EQ: Precedence.EQUALITY,
    TokenType.NE: Precedence.EQUALITY,
    TokenType.LT: Precedence.COMPARISON,
    TokenType.GT: Precedence.COMPARISON,
    TokenType.LE: Precedence.COMPARISON,
    TokenType.GE: Precedence.COMPARISON,
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.SLASH: Precedence.MULTIPLICATIVE,
    TokenType.PERCENT: Precedence.MULTIPLICATIVE,
    TokenType.CARET: Precedence.POWER,
}

BINARY_OP_MAP: dict[TokenType, BinaryOperator] = {
    TokenType.OR: BinaryOperator.OR,
    TokenType.AND: BinaryOperator.AND,
    TokenType.EQ: BinaryOperator.EQ,
    TokenType.NE: BinaryOperator.NE,
    TokenType.LT: BinaryOperator.LT,
    TokenType.GT: BinaryOperator.GT,
    TokenType.LE: BinaryOperator.LE,
    TokenType.GE: BinaryOperator.GE,
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
    TokenType.CARET: BinaryOperator.POW,
}

RIGHT_ASSOCIATIVE = frozenset({TokenType.CARET})

DECLARATION_TYPES: dict[TokenType, DeclaredType] = {
    TokenType.FRAME: DeclaredType.FRAME,
    TokenType.FRAMES: DeclaredType.FRAMES,
    TokenType.NUM: DeclaredType.NUM,
    TokenType.TEXT: DeclaredType.TEXT,
}

_STATEMENT_SEPARATORS = (TokenType.NEWLINE, TokenType.SEMICOLON)


class Parser:
    """
    Recursive descent parser for Gizmo.

    Usage:
        parser = Parser(tokens, source=source)
        program = parser.parse()
    """

    def __init__(
        self,
        tokens: list[Token],
        source: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> None:
        """
        Initialize the parser.

        Args:
            tokens: Token list ending with EOF, as produced by the lexer
            source: Original source text, used to quote lines in errors
            filename: Optional filename for error reporting
        """
        self.tokens = tokens
        self.pos = 0
        self._source_lines = source.splitlines() if source is not None else None
        self._filename = filename

    # -------------------------------------------------------------------------
    # Token navigation
    # -------------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 1) -> Token:
        """Peek at a token ahead of the current position."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _is_at_end(self) -> bool:
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _expect(self, token_type: TokenType, expected: str) -> Token:
        """Consume current token if it matches, else raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(expected)

    def _error(self, expected: str) -> ParserError:
        """Build an "Expected X, found Y" error at the current token."""
        token = self._current
        found = token.describe()
        return ParserError(
            f"Expected {expected}, found {found}",
            token.location,
            self._line_text(token),
            expected=expected,
            found=found,
        )

    def _line_text(self, token: Token) -> Optional[str]:
        if self._source_lines is None or token.location is None:
            return None
        index = token.location.line - 1
        if 0 <= index < len(self._source_lines):
            return self._source_lines[index]
        return None

    def _skip_newlines(self) -> None:
        """Skip any newline tokens."""
        while self._match(TokenType.NEWLINE):
            pass

    def _skip_separators(self) -> None:
        """Skip newlines and optional semicolons between statements."""
        while self._match(*_STATEMENT_SEPARATORS):
            pass

    # -------------------------------------------------------------------------
    # Program and statements
    # -------------------------------------------------------------------------

    def parse(self) -> Program:
        """Parse the whole token stream into a Program."""
        start = self._current.location
        statements: list[Statement] = []

        self._skip_separators()
        while not self._is_at_end():
            statements.append(self._parse_statement())
            self._skip_separators()

        return Program(tuple(statements), location=start)

    def _parse_block(self, *terminators: TokenType) -> tuple[Statement, ...]:
        """Parse statements until one of the terminator tokens (not consumed)."""
        statements: list[Statement] = []
        self._skip_separators()
        while not self._check(*terminators) and not self._is_at_end():
            statements.append(self._parse_statement())
            self._skip_separators()
        return tuple(statements)

    def _parse_statement(self) -> Statement:
        token = self._current

        if token.type in DECLARATION_TYPES:
            return self._parse_declaration()
        if token.type == TokenType.IF:
            return self._parse_if()
        if token.type == TokenType.REPEAT:
            return self._parse_repeat()
        if token.type == TokenType.WHEN:
            return self._parse_when()
        if token.type == TokenType.RETURN:
            self._advance()
            return ReturnStatement(self._parse_expression(), location=token.location)
        if token.type == TokenType.IDENTIFIER and self._peek().type == TokenType.ASSIGN:
            self._advance()
            self._advance()
            return Assignment(token.value, self._parse_expression(), location=token.location)

        expression = self._parse_expression()
        return ExpressionStatement(expression, location=token.location)

    def _parse_declaration(self) -> VarDeclaration:
        type_token = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "variable name")
        self._expect(TokenType.ASSIGN, "'='")
        value = self._parse_expression()
        return VarDeclaration(
            DECLARATION_TYPES[type_token.type],
            name.value,
            value,
            location=type_token.location,
        )

    def _parse_if(self) -> IfStatement:
        """
        Parse an if statement.

            if cond then ... (elsif cond then ...)* (else ...)? end
        """
        if_token = self._advance()
        condition = self._parse_expression()
        self._expect(TokenType.THEN, "'then'")
        branch_end = (TokenType.ELSIF, TokenType.ELSE, TokenType.END)
        then_body = self._parse_block(*branch_end)

        elsif_clauses: list[ElsifClause] = []
        while self._check(TokenType.ELSIF):
            elsif_token = self._advance()
            elsif_condition = self._parse_expression()
            self._expect(TokenType.THEN, "'then'")
            body = self._parse_block(*branch_end)
            elsif_clauses.append(
                ElsifClause(elsif_condition, body, location=elsif_token.location)
            )

        else_body = None
        if self._match(TokenType.ELSE):
            else_body = self._parse_block(TokenType.END)

        self._expect(TokenType.END, "'end'")
        return IfStatement(
            condition,
            then_body,
            tuple(elsif_clauses),
            else_body,
            location=if_token.location,
        )

    def _parse_repeat(self) -> RepeatStatement:
        repeat_token = self._advance()
        count = self._parse_expression()
        self._expect(TokenType.TIMES, "'times'")
        self._expect(TokenType.DO, "'do'")
        body = self._parse_block(TokenType.END)
        self._expect(TokenType.END, "'end'")
        return RepeatStatement(count, body, location=repeat_token.location)

    def _parse_when(self) -> WhenStatement:
        """
        Parse an event handler.

            when clicked do ... end
            when idle > expr do ... end
        """
        when_token = self._advance()
        threshold: Optional[Expression] = None

        if self._match(TokenType.CLICKED):
            event = EventKind.CLICKED
        elif self._match(TokenType.IDLE):
            event = EventKind.IDLE
            self._expect(TokenType.GT, "'>'")
            threshold = self._parse_expression()
        else:
            raise self._error("'clicked' or 'idle'")

        self._expect(TokenType.DO, "'do'")
        body = self._parse_block(TokenType.END)
        self._expect(TokenType.END, "'end'")
        return WhenStatement(event, body, threshold, location=when_token.location)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def _parse_expression(self) -> Expression:
        return self._parse_ternary()

    def _parse_ternary(self) -> Expression:
        """Parse ``cond ? a : b`` (right-associative)."""
        condition = self._parse_binary(Precedence.OR)
        if self._check(TokenType.QUESTION):
            question = self._advance()
            then_expr = self._parse_ternary()
            self._expect(TokenType.COLON, "':'")
            else_expr = self._parse_ternary()
            return ConditionalExpression(
                condition, then_expr, else_expr, location=question.location
            )
        return condition

    def _parse_binary(self, min_precedence: int) -> Expression:
        """Precedence climbing over PRECEDENCE_MAP."""
        left = self._parse_unary()

        while True:
            op_token = self._current
            precedence = PRECEDENCE_MAP.get(op_token.type, Precedence.NONE)
            if precedence == Precedence.NONE or precedence < min_precedence:
                break
            self._advance()

            if op_token.type in RIGHT_ASSOCIATIVE:
                right = self._parse_binary(precedence)
            else:
                right = self._parse_binary(precedence + 1)

            left = BinaryExpression(
                left, BINARY_OP_MAP[op_token.type], right, location=op_token.location
            )

        return left

    def _parse_unary(self) -> Expression:
        token = self._current
        if self._match(TokenType.MINUS):
            return UnaryExpression(UnaryOperator.NEG, self._parse_unary(), location=token.location)
        if self._match(TokenType.NOT):
            return UnaryExpression(UnaryOperator.NOT, self._parse_unary(), location=token.location)
        return self._parse_postfix()

    def _parse_postfix(self) -> Expression:
        expr = self._parse_primary()

        while True:
            if self._check(TokenType.LPAREN):
                if not isinstance(expr, Identifier):
                    raise ParserError(
                        "Can only call functions",
                        self._current.location,
                        self._line_text(self._current),
                    )
                self._advance()
                arguments = self._parse_arguments(TokenType.RPAREN, "')'")
                expr = CallExpression(expr.name, arguments, location=expr.location)
            elif self._check(TokenType.LBRACKET):
                bracket = self._advance()
                self._skip_newlines()
                index = self._parse_expression()
                self._skip_newlines()
                self._expect(TokenType.RBRACKET, "']'")
                expr = IndexExpression(expr, index, location=bracket.location)
            else:
                break

        return expr

    def _parse_arguments(self, closing: TokenType, closing_text: str) -> tuple[Expression, ...]:
        """Parse a comma separated list up to ``closing``; trailing comma allowed."""
        items: list[Expression] = []
        self._skip_newlines()
        while not self._check(closing):
            items.append(self._parse_expression())
            self._skip_newlines()
            if not self._match(TokenType.COMMA):
                break
            self._skip_newlines()
        self._skip_newlines()
        self._expect(closing, closing_text)
        return tuple(items)

    def _parse_primary(self) -> Expression:
        token = self._current

        if token.type == TokenType.NUMBER:
            self._advance()
            return NumberLiteral(token.value, location=token.location)

        if token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(token.value, location=token.location)

        if token.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return BooleanLiteral(token.type == TokenType.TRUE, location=token.location)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(token.value, location=token.location)

        if token.type == TokenType.LPAREN:
            self._advance()
            self._skip_newlines()
            expr = self._parse_expression()
            self._skip_newlines()
            self._expect(TokenType.RPAREN, "')'")
            return expr

        if token.type == TokenType.LBRACKET:
            self._advance()
            elements = self._parse_arguments(TokenType.RBRACKET, "']'")
            return ArrayLiteral(elements, location=token.location)

        if token.type in (TokenType.PATTERN, TokenType.ANIMATE, TokenType.EVOLVE):
            return self._parse_generator()

        raise self._error("expression")

    def _parse_generator(self) -> Expression:
        """
        Parse one of the three generator forms.

            pattern(W, H) { body }
            animate(W, H) using NAME { body }
            evolve(W, H) from NAME { body }
        """
        keyword = self._advance()
        self._expect(TokenType.LPAREN, "'('")
        width = self._parse_expression()
        self._expect(TokenType.COMMA, "','")
        height = self._parse_expression()
        self._expect(TokenType.RPAREN, "')'")

        binding: Optional[str] = None
        if keyword.type == TokenType.ANIMATE:
            self._expect(TokenType.USING, "'using'")
            binding = self._expect(TokenType.IDENTIFIER, "time variable name").value
        elif keyword.type == TokenType.EVOLVE:
            self._expect(TokenType.FROM, "'from'")
            binding = self._expect(TokenType.IDENTIFIER, "previous frame name").value

        self._expect(TokenType.LBRACE, "'{'")
        body = self._parse_block(TokenType.RBRACE)
        self._expect(TokenType.RBRACE, "'}'")

        if keyword.type == TokenType.ANIMATE:
            return AnimateGenerator(width, height, binding, body, location=keyword.location)
        if keyword.type == TokenType.EVOLVE:
            return EvolveGenerator(width, height, binding, body, location=keyword.location)
        return PatternGenerator(width, height, body, location=keyword.location)


def parse(source: str, filename: Optional[str] = None) -> Program:
    """
    Convenience function to lex and parse source code.

    Args:
        source: Gizmo source code
        filename: Optional filename for error reporting

    Returns:
        The parsed Program
    """
    tokens = Lexer(source, filename).tokenize()
    return Parser(tokens, source=source, filename=filename).parse()
