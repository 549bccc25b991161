"""
Gizmo runtime: values, frames, scopes, builtins and the interpreter.
"""

from gizmo.runtime.animation import AnimationState
from gizmo.runtime.builtins import BUILTINS, BuiltinRegistry, set_seed
from gizmo.runtime.environment import GLOBAL_SCOPE, Environment
from gizmo.runtime.frame import Frame
from gizmo.runtime.interpreter import (
    ANIMATION_CALLS,
    ExecResult,
    Flow,
    Interpreter,
    InterpreterConfig,
    run,
)
from gizmo.runtime.values import Value, is_truthy, to_display, to_number, type_name, values_equal

__all__ = [
    "ANIMATION_CALLS",
    "AnimationState",
    "BUILTINS",
    "BuiltinRegistry",
    "Environment",
    "ExecResult",
    "Flow",
    "Frame",
    "GLOBAL_SCOPE",
    "Interpreter",
    "InterpreterConfig",
    "Value",
    "is_truthy",
    "run",
    "set_seed",
    "to_display",
    "to_number",
    "type_name",
    "values_equal",
]
