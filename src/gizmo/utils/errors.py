"""
Error types and source location tracking for Gizmo.

Every failure the language can produce is a subclass of ``GizmoError``.
Front-end failures (``LexerError``, ``ParserError``) always carry a location;
runtime failures get the location of the failing statement attached by the
interpreter when they are raised without one.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        offset: 0-indexed character offset from start of source
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class GizmoError(Exception):
    """Base exception for all Gizmo errors."""

    kind = "error"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(message)

    def __str__(self) -> str:
        return self._format_message()

    def with_location(
        self, location: Optional[SourceLocation], source_line: Optional[str] = None
    ) -> "GizmoError":
        """Attach a location if the error does not have one yet."""
        if self.location is None and location is not None:
            self.location = location
            self.source_line = source_line
        return self

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        parts.append(f"{self.kind}: {self.message}")

        if self.source_line and self.location:
            parts.append(f"\n    {self.source_line}")
            # Caret under the error column
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"\n{padding}^")

        return " ".join(parts) if not self.source_line else parts[0] + " " + "".join(parts[1:])


class LexerError(GizmoError):
    """Raised when the lexer encounters an invalid character or literal."""

    kind = "Lexical error"


class ParserError(GizmoError):
    """Raised when the parser encounters a syntax error."""

    kind = "Parse error"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        expected: Optional[str] = None,
        found: Optional[str] = None,
    ) -> None:
        super().__init__(message, location, source_line)
        self.expected = expected
        self.found = found


class GizmoRuntimeError(GizmoError):
    """Raised for failures while executing a program."""

    kind = "Runtime error"


class TypeMismatchError(GizmoRuntimeError):
    """Raised when a value has the wrong type for an operation."""

    kind = "Type error"


class IndexOutOfBoundsError(GizmoRuntimeError):
    """Raised when indexing a frame or frame sequence out of range."""

    kind = "Index error"


class DivisionByZeroError(GizmoRuntimeError):
    """Raised on division or modulo by exactly zero."""

    kind = "Runtime error"

    def __init__(self, location: Optional[SourceLocation] = None) -> None:
        super().__init__("Division by zero", location)


class InvalidFrameError(GizmoRuntimeError):
    """Raised when a frame would be built from empty or ragged rows."""

    kind = "Invalid frame"


class UndefinedVariableError(GizmoRuntimeError):
    """Raised when reading or assigning a name that is not bound."""

    kind = "Undefined variable"

    def __init__(self, name: str, location: Optional[SourceLocation] = None) -> None:
        super().__init__(f"'{name}' is not defined", location)
        self.name = name


class UndefinedFunctionError(GizmoRuntimeError):
    """Raised when calling a name that is neither a builtin nor an animation call."""

    kind = "Undefined function"

    def __init__(self, name: str, location: Optional[SourceLocation] = None) -> None:
        super().__init__(f"'{name}' is not a known function", location)
        self.name = name


class ArgumentError(GizmoRuntimeError):
    """Raised when a builtin is called with the wrong number or kind of arguments."""

    kind = "Argument error"


class ExecutionTimeoutError(GizmoRuntimeError):
    """Raised when a run exceeds the interpreter's configured time limit."""

    kind = "Timeout"

    def __init__(self, limit_ms: float, location: Optional[SourceLocation] = None) -> None:
        super().__init__(f"Script did not finish within {limit_ms:g} ms", location)
        self.limit_ms = limit_ms
