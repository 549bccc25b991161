"""
Pytest configuration and shared fixtures for Gizmo tests.
"""

import pytest

from gizmo.compiler.ast_nodes import Program
from gizmo.compiler.lexer import Lexer
from gizmo.compiler.parser import Parser
from gizmo.compiler.tokens import Token
from gizmo.runtime.frame import Frame
from gizmo.runtime.interpreter import Interpreter, InterpreterConfig

# Fixed clock and seed so runs are reproducible
DETERMINISTIC = InterpreterConfig(start_time_ms=0.0, seed=0)


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.gzmo") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def parser_factory(lexer_factory):
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str) -> Parser:
        lexer = lexer_factory(source)
        tokens = lexer.tokenize()
        return Parser(tokens, source=source, filename="test.gzmo")

    return _create_parser


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        lexer = lexer_factory(source)
        return lexer.tokenize()

    return _tokenize


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse source code into AST."""

    def _parse(source: str) -> Program:
        parser = parser_factory(source)
        return parser.parse()

    return _parse


@pytest.fixture
def interpreter_factory():
    """Factory fixture for interpreters with a fixed clock and seed."""

    def _create_interpreter(**overrides) -> Interpreter:
        settings = {"start_time_ms": 0.0, "seed": 0}
        settings.update(overrides)
        return Interpreter(InterpreterConfig(**settings))

    return _create_interpreter


@pytest.fixture
def run(interpreter_factory):
    """Fixture to execute source code and return the interpreter."""

    def _run(source: str, **overrides) -> Interpreter:
        interpreter = interpreter_factory(**overrides)
        interpreter.run_source(source, "test.gzmo")
        return interpreter

    return _run


@pytest.fixture
def global_value():
    """Fixture to read a global variable from an interpreter."""

    def _get(interpreter: Interpreter, name: str):
        return interpreter.environment.get(0, name)

    return _get


@pytest.fixture
def make_frame():
    """Build a frame from strings of '#' (on) and '.' (off)."""

    def _make(*rows: str) -> Frame:
        return Frame.from_rows([[char == "#" for char in row] for row in rows])

    return _make
