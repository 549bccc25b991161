"""
Gizmo runtime values and coercion rules.

Values are plain Python objects:

    Number  -> float
    String  -> str
    Boolean -> bool
    Frame   -> gizmo.runtime.frame.Frame
    Frames  -> tuple[Frame, ...]

Nothing in the interpreter mutates a value that a binding can still see,
so sharing these objects between bindings behaves like copying them.
"""

from __future__ import annotations

import re
import sys
from typing import Union

from gizmo.runtime.frame import Frame
from gizmo.utils.errors import TypeMismatchError

Frames = tuple[Frame, ...]
Value = Union[float, str, bool, Frame, Frames]

EPSILON = sys.float_info.epsilon

# Decimal, exponent, inf and nan forms; no surrounding whitespace or underscores
NUMBER_TEXT = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


def is_number(value: Value) -> bool:
    # bool is an int subclass; keep it out of the numeric variant
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_frames(value: Value) -> bool:
    return isinstance(value, tuple)


def type_name(value: Value) -> str:
    """Name of the value's variant as shown in error messages."""
    if isinstance(value, bool):
        return "Boolean"
    if is_number(value):
        return "Number"
    if isinstance(value, str):
        return "String"
    if isinstance(value, Frame):
        return "Frame"
    if is_frames(value):
        return "Frames"
    return type(value).__name__


def to_number(value: Value) -> float:
    """
    Coerce a value to a float.

    Raises:
        TypeMismatchError: for non-numeric strings, frames and frame sequences
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        if NUMBER_TEXT.fullmatch(value) is None:
            raise TypeMismatchError(f"Cannot convert string '{value}' to number")
        return float(value)
    raise TypeMismatchError(f"Cannot convert {type_name(value)} to number")


def is_truthy(value: Value) -> bool:
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0.0
    if isinstance(value, str):
        return value != ""
    if isinstance(value, Frame):
        return True
    if is_frames(value):
        return len(value) > 0
    return True


def values_equal(left: Value, right: Value) -> bool:
    """Structural equality. Values of different variants are never equal."""
    if type_name(left) != type_name(right):
        return False
    if is_number(left):
        return abs(float(left) - float(right)) < EPSILON or float(left) == float(right)
    return left == right


def _format_number(number: float) -> str:
    if number == int(number) and abs(number) < 1e16:
        return str(int(number))
    return repr(float(number))


def to_display(value: Value) -> str:
    """Text form used by ``text`` declarations and the command line."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        number = float(value)
        if number != number or number in (float("inf"), float("-inf")):
            return repr(number)
        return _format_number(number)
    if isinstance(value, str):
        return value
    if isinstance(value, Frame):
        return f"Frame({value.width}x{value.height})"
    if is_frames(value):
        return f"Frames[{len(value)}]"
    return str(value)


def as_frames(value: Value, context: str) -> Frames:
    """Accept a Frame (wrapped into a one-element sequence) or a Frames value."""
    if isinstance(value, Frame):
        return (value,)
    if is_frames(value):
        return value
    raise TypeMismatchError(f"{context} expects Frame or Frames, got {type_name(value)}")
