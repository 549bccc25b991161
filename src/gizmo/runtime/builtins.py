"""
Gizmo builtin functions.

Every builtin is a pure function of its arguments: frames passed in are
copied before being modified, so callers never observe a change to a value
they still hold. Arity and argument types are checked before the function
body runs and reported as ``ArgumentError``.

Provides:
- Math: sin, cos, tan, atan2, sqrt, floor, ceil, round, abs, min, max, random
- Pixels: count_neighbors, get_pixel, set_pixel
- Frames: flip, rotate, place_sprite, create_frame, last_frame, frame_count,
  width, height
"""

from __future__ import annotations

import math as _math
import random as _random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional

import numpy as np

from gizmo.runtime.frame import Frame
from gizmo.runtime.values import Frames, Value, is_frames, is_truthy, to_number, type_name
from gizmo.utils.errors import (
    ArgumentError,
    GizmoRuntimeError,
    IndexOutOfBoundsError,
    TypeMismatchError,
)

# Canvas used by the three-argument form of place_sprite
SPRITE_CANVAS_SIZE = 128

# Global random generator
_rng = _random.Random()


def set_seed(seed: Optional[int]) -> None:
    """Set random seed for reproducibility (None reseeds from the OS)."""
    _rng.seed(seed)


@dataclass(frozen=True, slots=True)
class Builtin:
    """A registered builtin: name, accepted argument counts and implementation."""

    name: str
    min_args: int
    max_args: int
    function: Callable[[Sequence[Value]], Value]
    signature: str = ""

    def __call__(self, args: Sequence[Value]) -> Value:
        if not self.min_args <= len(args) <= self.max_args:
            if self.min_args == self.max_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            raise ArgumentError(
                f"{self.name}() takes {expected} argument(s), got {len(args)}"
            )
        return self.function(args)


class BuiltinRegistry:
    """Name to builtin table used by the interpreter."""

    def __init__(self) -> None:
        self._builtins: dict[str, Builtin] = {}

    def register(
        self, name: str, min_args: int, max_args: Optional[int] = None, signature: str = ""
    ) -> Callable[[Callable[[Sequence[Value]], Value]], Callable[[Sequence[Value]], Value]]:
        """Decorator registering ``function`` under ``name``."""

        def decorator(function: Callable[[Sequence[Value]], Value]) -> Callable[[Sequence[Value]], Value]:
            upper = min_args if max_args is None else max_args
            self._builtins[name] = Builtin(name, min_args, upper, function, signature or f"{name}()")
            return function

        return decorator

    def get(self, name: str) -> Optional[Builtin]:
        return self._builtins.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._builtins

    def names(self) -> list[str]:
        return sorted(self._builtins)

    def signatures(self) -> dict[str, str]:
        return {name: builtin.signature for name, builtin in sorted(self._builtins.items())}


BUILTINS = BuiltinRegistry()


# =============================================================================
# Argument helpers
# =============================================================================


def _number(args: Sequence[Value], index: int, function: str) -> float:
    try:
        return to_number(args[index])
    except TypeMismatchError as exc:
        raise ArgumentError(f"{function}() argument {index + 1}: {exc.message}") from None


def _integer(args: Sequence[Value], index: int, function: str) -> int:
    number = _number(args, index, function)
    if not _math.isfinite(number):
        raise ArgumentError(f"{function}() argument {index + 1} must be finite")
    return int(number)


def _frame(args: Sequence[Value], index: int, function: str) -> Frame:
    value = args[index]
    if not isinstance(value, Frame):
        raise ArgumentError(
            f"{function}() argument {index + 1} must be a Frame, got {type_name(value)}"
        )
    return value


def _frames(args: Sequence[Value], index: int, function: str) -> Frames:
    value = args[index]
    if not is_frames(value):
        raise ArgumentError(
            f"{function}() argument {index + 1} must be Frames, got {type_name(value)}"
        )
    return value


# =============================================================================
# Math
# =============================================================================


@BUILTINS.register("sin", 1, signature="sin(x)")
def _sin(args: Sequence[Value]) -> Value:
    return float(np.sin(_number(args, 0, "sin")))


@BUILTINS.register("cos", 1, signature="cos(x)")
def _cos(args: Sequence[Value]) -> Value:
    return float(np.cos(_number(args, 0, "cos")))


@BUILTINS.register("tan", 1, signature="tan(x)")
def _tan(args: Sequence[Value]) -> Value:
    return float(np.tan(_number(args, 0, "tan")))


@BUILTINS.register("atan2", 2, signature="atan2(y, x)")
def _atan2(args: Sequence[Value]) -> Value:
    return float(np.arctan2(_number(args, 0, "atan2"), _number(args, 1, "atan2")))


@BUILTINS.register("sqrt", 1, signature="sqrt(x)")
def _sqrt(args: Sequence[Value]) -> Value:
    x = _number(args, 0, "sqrt")
    if x < 0:
        raise GizmoRuntimeError("Cannot take square root of negative number")
    return float(np.sqrt(x))


@BUILTINS.register("floor", 1, signature="floor(x)")
def _floor(args: Sequence[Value]) -> Value:
    return float(np.floor(_number(args, 0, "floor")))


@BUILTINS.register("ceil", 1, signature="ceil(x)")
def _ceil(args: Sequence[Value]) -> Value:
    return float(np.ceil(_number(args, 0, "ceil")))


@BUILTINS.register("round", 1, signature="round(x)")
def _round(args: Sequence[Value]) -> Value:
    # Halves round away from zero
    x = _number(args, 0, "round")
    return float(np.copysign(np.floor(abs(x) + 0.5), x))


@BUILTINS.register("abs", 1, signature="abs(x)")
def _abs(args: Sequence[Value]) -> Value:
    return abs(_number(args, 0, "abs"))


@BUILTINS.register("min", 2, signature="min(a, b)")
def _min(args: Sequence[Value]) -> Value:
    return min(_number(args, 0, "min"), _number(args, 1, "min"))


@BUILTINS.register("max", 2, signature="max(a, b)")
def _max(args: Sequence[Value]) -> Value:
    return max(_number(args, 0, "max"), _number(args, 1, "max"))


@BUILTINS.register("random", 0, signature="random()")
def _random_value(args: Sequence[Value]) -> Value:
    return _rng.random()


# =============================================================================
# Pixels
# =============================================================================


@BUILTINS.register("count_neighbors", 3, signature="count_neighbors(frame, row, col)")
def _count_neighbors(args: Sequence[Value]) -> Value:
    frame = _frame(args, 0, "count_neighbors")
    row = _integer(args, 1, "count_neighbors")
    col = _integer(args, 2, "count_neighbors")
    return float(frame.count_neighbors(row, col))


@BUILTINS.register("get_pixel", 3, signature="get_pixel(frame, row, col)")
def _get_pixel(args: Sequence[Value]) -> Value:
    frame = _frame(args, 0, "get_pixel")
    row = _integer(args, 1, "get_pixel")
    col = _integer(args, 2, "get_pixel")
    return 1.0 if frame.get_pixel(row, col) else 0.0


@BUILTINS.register("set_pixel", 4, signature="set_pixel(frame, row, col, on)")
def _set_pixel(args: Sequence[Value]) -> Value:
    frame = _frame(args, 0, "set_pixel").copy()
    row = _integer(args, 1, "set_pixel")
    col = _integer(args, 2, "set_pixel")
    frame.set_pixel(row, col, is_truthy(args[3]))
    return frame


# =============================================================================
# Frames
# =============================================================================


@BUILTINS.register("flip", 1, signature="flip(frame)")
def _flip(args: Sequence[Value]) -> Value:
    frame = _frame(args, 0, "flip").copy()
    frame.flip()
    return frame


@BUILTINS.register("rotate", 1, signature="rotate(frame)")
def _rotate(args: Sequence[Value]) -> Value:
    return _frame(args, 0, "rotate").rotate_90()


@BUILTINS.register("place_sprite", 3, 4, signature="place_sprite(dest, sprite, x, y)")
def _place_sprite(args: Sequence[Value]) -> Value:
    if len(args) == 3:
        canvas = Frame.blank(SPRITE_CANVAS_SIZE, SPRITE_CANVAS_SIZE)
        sprite = _frame(args, 0, "place_sprite")
        offset = 1
    else:
        canvas = _frame(args, 0, "place_sprite").copy()
        sprite = _frame(args, 1, "place_sprite")
        offset = 2
    x = _integer(args, offset, "place_sprite")
    y = _integer(args, offset + 1, "place_sprite")
    canvas.place_sprite(sprite, x, y)
    return canvas


@BUILTINS.register("create_frame", 2, signature="create_frame(width, height)")
def _create_frame(args: Sequence[Value]) -> Value:
    width = _integer(args, 0, "create_frame")
    height = _integer(args, 1, "create_frame")
    if width < 0 or height < 0:
        raise ArgumentError("create_frame() size must not be negative")
    return Frame.blank(width, height)


@BUILTINS.register("last_frame", 1, signature="last_frame(frames)")
def _last_frame(args: Sequence[Value]) -> Value:
    frames = _frames(args, 0, "last_frame")
    if not frames:
        raise IndexOutOfBoundsError("last_frame() of an empty Frames value")
    return frames[-1]


@BUILTINS.register("frame_count", 1, signature="frame_count(frames)")
def _frame_count(args: Sequence[Value]) -> Value:
    return float(len(_frames(args, 0, "frame_count")))


@BUILTINS.register("width", 1, signature="width(frame)")
def _width(args: Sequence[Value]) -> Value:
    return float(_frame(args, 0, "width").width)


@BUILTINS.register("height", 1, signature="height(frame)")
def _height(args: Sequence[Value]) -> Value:
    return float(_frame(args, 0, "height").height)
