"""
Abstract Syntax Tree (AST) node definitions for Gizmo.

This module defines all AST node types representing the structure of a
Gizmo program after parsing. Each node is immutable and carries source
location information for error reporting. Locations are excluded from
equality, so parsing the same text twice yields equal trees.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from gizmo.utils.errors import SourceLocation


class ASTNode(ABC):
    """Base class for all AST nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Implement the ``visit_*`` methods for the node types you care about
    (the interpreter and the language server's symbol collector both do).
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


class Expression(ASTNode):
    """Base class for expressions."""

    pass


class Statement(ASTNode):
    """Base class for statements."""

    pass


def _location() -> Any:
    return field(default=None, compare=False, repr=False)


# -----------------------------------------------------------------------------
# Operators
# -----------------------------------------------------------------------------


class BinaryOperator(Enum):
    """Binary operator types, valued by their source spelling."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"

    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="

    AND = "and"
    OR = "or"


class UnaryOperator(Enum):
    """Unary operator types."""

    NEG = "-"
    NOT = "not"


class DeclaredType(Enum):
    """The four declaration keywords."""

    FRAME = "frame"
    FRAMES = "frames"
    NUM = "num"
    TEXT = "text"


class EventKind(Enum):
    """Events a ``when`` block can react to."""

    CLICKED = "clicked"
    IDLE = "idle"


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NumberLiteral(Expression):
    """A numeric literal. All numbers are floats."""

    value: float
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_number_literal(self)


@dataclass(frozen=True, slots=True)
class StringLiteral(Expression):
    """A double-quoted string literal with escapes already resolved."""

    value: str
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_string_literal(self)


@dataclass(frozen=True, slots=True)
class BooleanLiteral(Expression):
    """``true`` or ``false``."""

    value: bool
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_boolean_literal(self)


@dataclass(frozen=True, slots=True)
class Identifier(Expression):
    """A variable reference."""

    name: str
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_identifier(self)


@dataclass(frozen=True, slots=True)
class ArrayLiteral(Expression):
    """
    An array literal.

    Example:
        [1, 0, 1]
        [frame_a, frame_b]
    """

    elements: tuple[Expression, ...]
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_array_literal(self)


@dataclass(frozen=True, slots=True)
class CallExpression(Expression):
    """
    A call to a named function. Only identifiers can be called.

    Example:
        count_neighbors(prev, row, col)
    """

    name: str
    arguments: tuple[Expression, ...]
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_call_expression(self)


@dataclass(frozen=True, slots=True)
class BinaryExpression(Expression):
    """
    A binary operation expression.

    Example:
        row + col, a and b, x ^ 2
    """

    left: Expression
    operator: BinaryOperator
    right: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary_expression(self)


@dataclass(frozen=True, slots=True)
class UnaryExpression(Expression):
    """
    A unary operation expression.

    Example:
        -x, not alive
    """

    operator: UnaryOperator
    operand: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_unary_expression(self)


@dataclass(frozen=True, slots=True)
class IndexExpression(Expression):
    """
    Postfix indexing.

    Example:
        frames[2], sprite[0]
    """

    target: Expression
    index: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_index_expression(self)


@dataclass(frozen=True, slots=True)
class ConditionalExpression(Expression):
    """
    Ternary conditional.

    Example:
        row > 4 ? 1 : 0
    """

    condition: Expression
    then_expr: Expression
    else_expr: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_conditional_expression(self)


@dataclass(frozen=True, slots=True)
class PatternGenerator(Expression):
    """
    A static per-pixel generator.

    Example:
        pattern(8, 8) { return row == col }
    """

    width: Expression
    height: Expression
    body: tuple[Statement, ...]
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_pattern_generator(self)


@dataclass(frozen=True, slots=True)
class AnimateGenerator(Expression):
    """
    A time-driven generator. ``time_var`` is bound to the clock in ms.

    Example:
        animate(16, 16) using t { return sin(t / 100 + col) > 0 }
    """

    width: Expression
    height: Expression
    time_var: str
    body: tuple[Statement, ...]
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_animate_generator(self)


@dataclass(frozen=True, slots=True)
class EvolveGenerator(Expression):
    """
    A cellular-automaton generator reading the previous generation.

    Example:
        evolve(32, 32) from board { num n = count_neighbors(board, row, col) ... }
    """

    width: Expression
    height: Expression
    prev_var: str
    body: tuple[Statement, ...]
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_evolve_generator(self)


GeneratorExpression = (PatternGenerator, AnimateGenerator, EvolveGenerator)


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VarDeclaration(Statement):
    """
    A typed variable declaration.

    Example:
        frame heart = pattern(8, 8) { ... }
        num speed = 120
    """

    var_type: DeclaredType
    name: str
    value: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_var_declaration(self)


@dataclass(frozen=True, slots=True)
class Assignment(Statement):
    """Rebinding an existing variable: ``name = value``."""

    name: str
    value: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_assignment(self)


@dataclass(frozen=True, slots=True)
class ExpressionStatement(Statement):
    """An expression evaluated for its effect (or as a generator's pixel value)."""

    expression: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expression_statement(self)


@dataclass(frozen=True, slots=True)
class ElsifClause:
    """One ``elsif cond then ...`` branch."""

    condition: Expression
    body: tuple[Statement, ...]
    location: Optional[SourceLocation] = _location()


@dataclass(frozen=True, slots=True)
class IfStatement(Statement):
    """
    Conditional statement.

    Example:
        if n == 3 then
            return true
        elsif n == 2 then
            return alive
        else
            return false
        end
    """

    condition: Expression
    then_body: tuple[Statement, ...]
    elsif_clauses: tuple[ElsifClause, ...] = ()
    else_body: Optional[tuple[Statement, ...]] = None
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_if_statement(self)


@dataclass(frozen=True, slots=True)
class RepeatStatement(Statement):
    """``repeat count times do ... end``."""

    count: Expression
    body: tuple[Statement, ...]
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_repeat_statement(self)


@dataclass(frozen=True, slots=True)
class WhenStatement(Statement):
    """
    Deferred event handler registration.

    Example:
        when clicked do ... end
        when idle > 5000 do ... end
    """

    event: EventKind
    body: tuple[Statement, ...]
    threshold: Optional[Expression] = None
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_when_statement(self)


@dataclass(frozen=True, slots=True)
class ReturnStatement(Statement):
    """``return value``."""

    value: Expression
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_return_statement(self)


@dataclass(frozen=True, slots=True)
class Program(ASTNode):
    """The root node: all top-level statements of a script."""

    statements: tuple[Statement, ...]
    location: Optional[SourceLocation] = _location()

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_program(self)
