"""
Diagnostic generation for the Gizmo LSP.

This module converts lexer, parser and runtime errors into LSP diagnostic
messages for display in editors.
"""

import logging
from typing import Optional

from lsprotocol import types

from gizmo.compiler.ast_nodes import Program
from gizmo.compiler.lexer import Lexer
from gizmo.compiler.parser import Parser
from gizmo.lsp.symbols import collect_symbols
from gizmo.runtime.interpreter import Interpreter, InterpreterConfig
from gizmo.utils.errors import (
    ExecutionTimeoutError,
    GizmoError,
    GizmoRuntimeError,
    LexerError,
    ParserError,
)

logger = logging.getLogger("gizmo-lsp")

# Budget for executing a document while checking it
DEFAULT_TIME_LIMIT_MS = 2000.0


class DiagnosticProvider:
    """
    Generates LSP diagnostics from Gizmo source code.

    Runs the lexer and parser and, when those succeed, executes the script
    once in a throwaway interpreter to surface runtime failures.
    """

    def __init__(
        self,
        source: str,
        uri: str,
        execute: bool = True,
        time_limit_ms: Optional[float] = DEFAULT_TIME_LIMIT_MS,
    ) -> None:
        """
        Initialize the diagnostic provider.

        Args:
            source: The Gizmo source code to analyze
            uri: The document URI for location information
            execute: Also run the script to report runtime errors
            time_limit_ms: Stop executing after this long (None for no limit)
        """
        self.source = source
        self.uri = uri
        self.execute = execute
        # Fixed clock and seed so the same document always yields the same diagnostics
        self.config = InterpreterConfig(start_time_ms=0.0, seed=0, time_limit_ms=time_limit_ms)
        self.program: Optional[Program] = None
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects
        """
        self._diagnostics = []
        self.program = None

        # Phase 1: Lexer and parser errors
        try:
            tokens = Lexer(self.source, filename=self.uri).tokenize()
            self.program = Parser(tokens, source=self.source, filename=self.uri).parse()
        except (LexerError, ParserError) as e:
            self._add_gizmo_error(e, types.DiagnosticSeverity.Error)
            return self._diagnostics

        # Phase 2: Nothing will ever be displayed
        symbols = collect_symbols(self.program)
        if not symbols.calls & {"play", "loop", "play_speed", "loop_speed"}:
            self._add_general_error(
                "Script never calls play() or loop(); hosts will show their default image",
                0,
                0,
                types.DiagnosticSeverity.Information,
            )

        # Phase 3: Runtime errors
        if self.execute:
            interpreter = Interpreter(self.config, source=self.source)
            try:
                interpreter.execute(self.program)
            except ExecutionTimeoutError as e:
                self._add_gizmo_error(e, types.DiagnosticSeverity.Warning)
            except GizmoRuntimeError as e:
                self._add_gizmo_error(e, types.DiagnosticSeverity.Error)
            logger.debug("Executed %s: %d handler(s)", self.uri, len(interpreter.event_handlers))

        return self._diagnostics

    def _add_gizmo_error(self, error: GizmoError, severity: types.DiagnosticSeverity) -> None:
        """
        Add a Gizmo error as an LSP diagnostic.

        Args:
            error: The Gizmo error
            severity: The diagnostic severity
        """
        line = 0
        character = 0

        if error.location:
            line = max(0, error.location.line - 1)  # Convert to 0-indexed
            character = max(0, error.location.column - 1)

        # Underline up to the end of the offending token
        end_character = character + 1
        if error.source_line:
            rest_of_line = error.source_line[character:]
            for i, c in enumerate(rest_of_line):
                if c.isspace() or c in "()[]{},:;":
                    end_character = character + max(1, i)
                    break
            else:
                end_character = character + max(1, len(rest_of_line))

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=line, character=end_character),
                ),
                message=f"{error.kind}: {error.message}",
                severity=severity,
                source="gizmo",
            )
        )

    def _add_general_error(
        self,
        message: str,
        line: int,
        character: int,
        severity: types.DiagnosticSeverity,
    ) -> None:
        """
        Add a message that is not tied to an exception.

        Args:
            message: Error message
            line: 0-indexed line number
            character: 0-indexed character position
            severity: Diagnostic severity
        """
        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=line, character=character + 1),
                ),
                message=message,
                severity=severity,
                source="gizmo",
            )
        )


def get_diagnostics_for_document(
    source: str,
    uri: str,
    execute: bool = True,
    time_limit_ms: Optional[float] = DEFAULT_TIME_LIMIT_MS,
) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        source: The Gizmo source code
        uri: The document URI
        execute: Also run the script to report runtime errors
        time_limit_ms: Stop executing after this long (None for no limit)

    Returns:
        List of LSP diagnostics
    """
    return DiagnosticProvider(source, uri, execute, time_limit_ms).get_diagnostics()
