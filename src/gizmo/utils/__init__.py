"""Shared utilities for Gizmo."""

from gizmo.utils.errors import (
    ArgumentError,
    DivisionByZeroError,
    ExecutionTimeoutError,
    GizmoError,
    GizmoRuntimeError,
    IndexOutOfBoundsError,
    InvalidFrameError,
    LexerError,
    ParserError,
    SourceLocation,
    TypeMismatchError,
    UndefinedFunctionError,
    UndefinedVariableError,
)

__all__ = [
    "ArgumentError",
    "DivisionByZeroError",
    "ExecutionTimeoutError",
    "GizmoError",
    "GizmoRuntimeError",
    "IndexOutOfBoundsError",
    "InvalidFrameError",
    "LexerError",
    "ParserError",
    "SourceLocation",
    "TypeMismatchError",
    "UndefinedFunctionError",
    "UndefinedVariableError",
]
