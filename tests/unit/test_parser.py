"""
Unit tests for the Gizmo parser.

Tests cover:
- Declarations, assignments and expression statements
- Operator precedence and associativity
- Control flow: if/elsif/else, repeat, when
- Generators
- Error messages
"""

import pytest

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
    EventKind,
    EvolveGenerator,
    ExpressionStatement,
    Identifier,
    IfStatement,
    IndexExpression,
    NumberLiteral,
    PatternGenerator,
    RepeatStatement,
    ReturnStatement,
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
    VarDeclaration,
    WhenStatement,
)
from gizmo.compiler.parser import parse as parse_source
from gizmo.utils.errors import ParserError


def expr(parse, source):
    """Parse a single expression statement and return its expression."""
    statement = parse(source).statements[0]
    assert isinstance(statement, ExpressionStatement)
    return statement.expression


class TestStatements:
    """Tests for simple statements."""

    @pytest.mark.parametrize(
        "keyword,declared",
        [
            ("num", DeclaredType.NUM),
            ("text", DeclaredType.TEXT),
            ("frame", DeclaredType.FRAME),
            ("frames", DeclaredType.FRAMES),
        ],
    )
    def test_declaration(self, parse, keyword, declared):
        stmt = parse(f"{keyword} x = 1").statements[0]
        assert isinstance(stmt, VarDeclaration)
        assert stmt.var_type is declared
        assert stmt.name == "x"
        assert stmt.value == NumberLiteral(1.0)

    def test_assignment(self, parse):
        stmt = parse("x = y").statements[0]
        assert isinstance(stmt, Assignment)
        assert stmt.name == "x"
        assert stmt.value == Identifier("y")

    def test_equality_is_not_assignment(self, parse):
        stmt = parse("x == y").statements[0]
        assert isinstance(stmt, ExpressionStatement)

    def test_return(self, parse):
        stmt = parse("return 1").statements[0]
        assert isinstance(stmt, ReturnStatement)

    def test_semicolons_and_blank_lines_separate(self, parse):
        program = parse("\n\nnum a = 1; num b = 2;\n\n  c = 3\n")
        assert len(program.statements) == 3

    def test_locations_are_recorded(self, parse):
        stmt = parse("\n  num x = 1").statements[0]
        assert stmt.location.line == 2
        assert stmt.location.column == 3

    def test_locations_do_not_affect_equality(self):
        assert parse_source("a + 1") == parse_source("\n\n   a + 1")


class TestExpressions:
    """Tests for expression parsing and precedence."""

    def test_literals(self, parse):
        assert expr(parse, '"hi"') == StringLiteral("hi")
        assert expr(parse, "true") == BooleanLiteral(True)

    def test_multiplication_binds_tighter(self, parse):
        node = expr(parse, "1 + 2 * 3")
        assert node.operator is BinaryOperator.ADD
        assert node.right.operator is BinaryOperator.MUL

    def test_left_associative_subtraction(self, parse):
        node = expr(parse, "1 - 2 - 3")
        assert node.operator is BinaryOperator.SUB
        assert isinstance(node.left, BinaryExpression)
        assert node.right == NumberLiteral(3.0)

    def test_power_is_right_associative(self, parse):
        node = expr(parse, "2 ^ 3 ^ 2")
        assert node.operator is BinaryOperator.POW
        assert node.left == NumberLiteral(2.0)
        assert node.right.operator is BinaryOperator.POW

    def test_unary_binds_tighter_than_power(self, parse):
        node = expr(parse, "-2 ^ 2")
        assert node.operator is BinaryOperator.POW
        assert isinstance(node.left, UnaryExpression)
        assert node.left.operator is UnaryOperator.NEG

    def test_logical_precedence(self, parse):
        node = expr(parse, "a or b and not c")
        assert node.operator is BinaryOperator.OR
        assert node.right.operator is BinaryOperator.AND
        assert node.right.right.operator is UnaryOperator.NOT

    def test_comparison_below_arithmetic(self, parse):
        node = expr(parse, "a + 1 < b * 2")
        assert node.operator is BinaryOperator.LT

    def test_ternary_is_right_associative(self, parse):
        node = expr(parse, "a ? 1 : b ? 2 : 3")
        assert isinstance(node, ConditionalExpression)
        assert isinstance(node.else_expr, ConditionalExpression)

    def test_grouping(self, parse):
        node = expr(parse, "(1 + 2) * 3")
        assert node.operator is BinaryOperator.MUL
        assert node.left.operator is BinaryOperator.ADD

    def test_call_and_index(self, parse):
        node = expr(parse, "rotate(f)[0]")
        assert isinstance(node, IndexExpression)
        assert node.target == CallExpression("rotate", (Identifier("f"),))

    def test_call_with_trailing_comma_and_newlines(self, parse):
        node = expr(parse, "max(\n  1,\n  2,\n)")
        assert isinstance(node, CallExpression)
        assert len(node.arguments) == 2

    def test_nested_array(self, parse):
        node = expr(parse, "[[1, 0], [0, 1]]")
        assert isinstance(node, ArrayLiteral)
        assert all(isinstance(element, ArrayLiteral) for element in node.elements)

    def test_empty_array(self, parse):
        assert expr(parse, "[]") == ArrayLiteral(())


class TestControlFlow:
    """Tests for block statements."""

    def test_if_elsif_else(self, parse):
        stmt = parse(
            "if a then\n  x = 1\nelsif b then\n  x = 2\nelsif c then\n  x = 3\nelse\n  x = 4\nend"
        ).statements[0]
        assert isinstance(stmt, IfStatement)
        assert len(stmt.then_body) == 1
        assert len(stmt.elsif_clauses) == 2
        assert stmt.else_body is not None

    def test_if_without_else(self, parse):
        stmt = parse("if a then x = 1 end").statements[0]
        assert stmt.else_body is None
        assert stmt.elsif_clauses == ()

    def test_repeat(self, parse):
        stmt = parse("repeat 3 times do\n  x = x + 1\nend").statements[0]
        assert isinstance(stmt, RepeatStatement)
        assert stmt.count == NumberLiteral(3.0)
        assert len(stmt.body) == 1

    def test_when_clicked(self, parse):
        stmt = parse("when clicked do\n  stop()\nend").statements[0]
        assert isinstance(stmt, WhenStatement)
        assert stmt.event is EventKind.CLICKED
        assert stmt.threshold is None

    def test_when_idle(self, parse):
        stmt = parse("when idle > 5000 do\nend").statements[0]
        assert stmt.event is EventKind.IDLE
        assert stmt.threshold == NumberLiteral(5000.0)
        assert stmt.body == ()


class TestGenerators:
    """Tests for pattern, animate and evolve."""

    def test_pattern(self, parse):
        node = expr(parse, "pattern(8, 8) { return row == col }")
        assert isinstance(node, PatternGenerator)
        assert node.width == NumberLiteral(8.0)
        assert isinstance(node.body[0], ReturnStatement)

    def test_animate_binding(self, parse):
        node = expr(parse, "animate(4, 4) using t {\n  sin(t) > 0\n}")
        assert isinstance(node, AnimateGenerator)
        assert node.time_var == "t"

    def test_evolve_binding(self, parse):
        node = expr(parse, "evolve(4, 4) from prev {\n  return true\n}")
        assert isinstance(node, EvolveGenerator)
        assert node.prev_var == "prev"

    def test_generator_as_declaration_value(self, parse):
        stmt = parse("frame f = pattern(2, 2) { true }").statements[0]
        assert isinstance(stmt.value, PatternGenerator)


class TestParserErrors:
    """Tests for syntax errors."""

    def test_missing_end(self, parse):
        with pytest.raises(ParserError) as exc_info:
            parse("if a then\n  x = 1\n")
        assert exc_info.value.expected == "'end'"
        assert exc_info.value.found == "end of input"

    def test_missing_then(self, parse):
        with pytest.raises(ParserError, match="Expected 'then', found identifier 'x'"):
            parse("if a x = 1 end")

    def test_declaration_needs_name(self, parse):
        with pytest.raises(ParserError, match="Expected variable name, found number '3'"):
            parse("num 3 = 1")

    def test_call_on_non_identifier(self, parse):
        with pytest.raises(ParserError, match="Can only call functions"):
            parse("f(1)(2)")

    def test_animate_requires_using(self, parse):
        with pytest.raises(ParserError, match="Expected 'using'"):
            parse("animate(2, 2) { true }")

    def test_bad_when_event(self, parse):
        with pytest.raises(ParserError, match="'clicked' or 'idle'"):
            parse("when pressed do end")

    def test_error_location_and_source_line(self, parse):
        with pytest.raises(ParserError) as exc_info:
            parse("num a = 1\nnum b = )")
        error = exc_info.value
        assert error.location.line == 2
        assert error.location.column == 9
        assert error.source_line == "num b = )"

    def test_parsing_is_deterministic(self):
        source = "frames fs = [pattern(2, 2) { row == col }]\nloop(fs)\n"
        assert parse_source(source) == parse_source(source)
