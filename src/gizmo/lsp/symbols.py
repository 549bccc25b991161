"""
Symbol collection for the Gizmo LSP.

Walks a parsed program and records what an editor needs: declared
variables with their declared type, generator bindings, event handlers,
and which animation calls the script makes.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from gizmo.compiler.ast_nodes import (
    AnimateGenerator,
    ArrayLiteral,
    Assignment,
    ASTVisitor,
    BinaryExpression,
    BooleanLiteral,
    CallExpression,
    ConditionalExpression,
    EventKind,
    EvolveGenerator,
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
    VarDeclaration,
    WhenStatement,
)
from gizmo.utils.errors import SourceLocation


class SymbolKind(Enum):
    """Kind of symbol in a Gizmo script."""

    VARIABLE = auto()
    BINDING = auto()  # time / previous-frame names and row, col
    HANDLER = auto()


@dataclass
class Symbol:
    """A named thing defined in a document."""

    name: str
    kind: SymbolKind
    type_info: str
    line: int  # 0-indexed
    character: int  # 0-indexed


@dataclass
class SymbolTable:
    """Everything collected from one program."""

    symbols: list[Symbol] = field(default_factory=list)
    calls: set[str] = field(default_factory=set)

    def variables(self) -> list[Symbol]:
        seen: dict[str, Symbol] = {}
        for symbol in self.symbols:
            if symbol.kind is not SymbolKind.HANDLER:
                seen.setdefault(symbol.name, symbol)
        return list(seen.values())

    def handlers(self) -> list[Symbol]:
        return [symbol for symbol in self.symbols if symbol.kind is SymbolKind.HANDLER]


class SymbolCollector(ASTVisitor):
    """Collects symbols by visiting every node of a program."""

    def __init__(self) -> None:
        self.table = SymbolTable()

    def collect(self, program: Program) -> SymbolTable:
        self.visit(program)
        return self.table

    def _add(self, name: str, kind: SymbolKind, type_info: str, location: Optional[SourceLocation]) -> None:
        line = location.line - 1 if location else 0
        character = location.column - 1 if location else 0
        self.table.symbols.append(Symbol(name, kind, type_info, line, character))

    def _visit_body(self, body: tuple[Statement, ...]) -> None:
        for statement in body:
            self.visit(statement)

    # Statements

    def visit_program(self, node: Program) -> None:
        self._visit_body(node.statements)

    def visit_var_declaration(self, node: VarDeclaration) -> None:
        self._add(node.name, SymbolKind.VARIABLE, node.var_type.value, node.location)
        self.visit(node.value)

    def visit_assignment(self, node: Assignment) -> None:
        self.visit(node.value)

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        self.visit(node.expression)

    def visit_if_statement(self, node: IfStatement) -> None:
        self.visit(node.condition)
        self._visit_body(node.then_body)
        for clause in node.elsif_clauses:
            self.visit(clause.condition)
            self._visit_body(clause.body)
        if node.else_body is not None:
            self._visit_body(node.else_body)

    def visit_repeat_statement(self, node: RepeatStatement) -> None:
        self.visit(node.count)
        self._visit_body(node.body)

    def visit_when_statement(self, node: WhenStatement) -> None:
        label = "when clicked" if node.event is EventKind.CLICKED else "when idle"
        self._add(label, SymbolKind.HANDLER, "event handler", node.location)
        if node.threshold is not None:
            self.visit(node.threshold)
        self._visit_body(node.body)

    def visit_return_statement(self, node: ReturnStatement) -> None:
        self.visit(node.value)

    # Expressions

    def visit_number_literal(self, node: NumberLiteral) -> None:
        pass

    def visit_string_literal(self, node: StringLiteral) -> None:
        pass

    def visit_boolean_literal(self, node: BooleanLiteral) -> None:
        pass

    def visit_identifier(self, node: Identifier) -> None:
        pass

    def visit_array_literal(self, node: ArrayLiteral) -> None:
        for element in node.elements:
            self.visit(element)

    def visit_call_expression(self, node: CallExpression) -> None:
        self.table.calls.add(node.name)
        for argument in node.arguments:
            self.visit(argument)

    def visit_binary_expression(self, node: BinaryExpression) -> None:
        self.visit(node.left)
        self.visit(node.right)

    def visit_unary_expression(self, node: UnaryExpression) -> None:
        self.visit(node.operand)

    def visit_index_expression(self, node: IndexExpression) -> None:
        self.visit(node.target)
        self.visit(node.index)

    def visit_conditional_expression(self, node: ConditionalExpression) -> None:
        self.visit(node.condition)
        self.visit(node.then_expr)
        self.visit(node.else_expr)

    def _visit_generator(self, node, binding: Optional[str], binding_type: str) -> None:
        self.visit(node.width)
        self.visit(node.height)
        self._add("row", SymbolKind.BINDING, "num", node.location)
        self._add("col", SymbolKind.BINDING, "num", node.location)
        if binding is not None:
            self._add(binding, SymbolKind.BINDING, binding_type, node.location)
        self._visit_body(node.body)

    def visit_pattern_generator(self, node: PatternGenerator) -> None:
        self._visit_generator(node, None, "")

    def visit_animate_generator(self, node: AnimateGenerator) -> None:
        self._visit_generator(node, node.time_var, "num")

    def visit_evolve_generator(self, node: EvolveGenerator) -> None:
        self._visit_generator(node, node.prev_var, "frame")


def collect_symbols(program: Program) -> SymbolTable:
    """Convenience function returning the symbol table of ``program``."""
    return SymbolCollector().collect(program)
