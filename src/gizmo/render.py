"""
Text rendering for Gizmo frames.

Hosts decide how pixels become something visible. This module provides
what the command line needs: character renderings, nearest-neighbour
scaling and the fallback image shown when a script produces nothing.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from gizmo.runtime.frame import Frame
from gizmo.runtime.interpreter import Interpreter

DEFAULT_CANVAS_SIZE = 128


@dataclass(frozen=True, slots=True)
class FrameRenderer:
    """
    Render frames as text, one line per row.

    Example:
        FrameRenderer.ascii().render(frame)
        FrameRenderer.blocks().render(frame)
    """

    on: str = "#"
    off: str = "."

    @classmethod
    def ascii(cls) -> FrameRenderer:
        return cls("#", ".")

    @classmethod
    def blocks(cls) -> FrameRenderer:
        return cls("█", " ")

    @classmethod
    def named(cls, style: str) -> FrameRenderer:
        if style == "blocks":
            return cls.blocks()
        if style == "ascii":
            return cls.ascii()
        raise ValueError(f"Unknown render style: {style}")

    def render(self, frame: Frame) -> str:
        return "\n".join(
            "".join(self.on if pixel else self.off for pixel in row) for row in frame.rows
        )


def scale_frame(frame: Frame, width: int, height: int) -> Frame:
    """
    Resample ``frame`` to ``width`` x ``height`` with nearest-neighbour
    sampling (each target pixel reads the source pixel it maps onto).
    """
    if width <= 0 or height <= 0:
        raise ValueError("Target size must be positive")
    if frame.width == 0 or frame.height == 0:
        return Frame.blank(width, height)

    rows = (np.arange(height) * frame.height // height).astype(int)
    cols = (np.arange(width) * frame.width // width).astype(int)
    return Frame(frame.pixels[np.ix_(rows, cols)])


def default_smiley() -> Frame:
    """The 128x128 face shown when a script produces no frames."""
    pixels = np.zeros((DEFAULT_CANVAS_SIZE, DEFAULT_CANVAS_SIZE), dtype=bool)

    # Eyes
    pixels[50:59, 50:59] = True
    pixels[50:59, 70:79] = True

    # Smile
    pixels[75, 55:74] = True
    pixels[80, 55:74] = True
    for step in range(4):
        pixels[76 + step, 55 + step] = True
        pixels[76 + step, 73 - step] = True

    return Frame(pixels)


def collect_frames(interpreter: Interpreter) -> tuple[list[Frame], int]:
    """
    Frames a host should display after running a script, with their duration.

    Falls back to the interpreter's current frame, then to ``default_smiley``.
    """
    frames = interpreter.get_animation_frames()
    duration = interpreter.get_frame_duration_ms()
    if frames:
        return frames, duration

    current = interpreter.get_current_frame()
    if current is not None:
        return [current], duration
    return [default_smiley()], duration
