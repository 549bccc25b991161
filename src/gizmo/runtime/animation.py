"""
Gizmo animation playback state.

An ``AnimationState`` is created when a script calls ``play``/``loop``
(or their ``_speed`` variants) and is advanced only when the host calls
``update`` with the current clock value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from gizmo.runtime.frame import Frame

DEFAULT_FRAME_DURATION_MS = 100
MIN_FRAME_DURATION_MS = 1
MAX_FRAME_DURATION_MS = 10000


def clamp_duration(
    duration_ms: float,
    minimum: int = MIN_FRAME_DURATION_MS,
    maximum: int = MAX_FRAME_DURATION_MS,
) -> int:
    """Clamp a per-frame duration into ``[minimum, maximum]`` milliseconds."""
    if duration_ms != duration_ms:  # NaN
        return minimum
    return int(max(minimum, min(maximum, duration_ms)))


@dataclass(slots=True)
class AnimationState:
    """
    Playback of a frame sequence.

    Attributes:
        frames: the frames being played
        loop: wrap to the first frame after the last one
        frame_duration: milliseconds each frame stays on screen
        current_frame: index into ``frames``
        last_frame_time: clock value (ms) of the last advance
        playing: False once the script called ``stop``
    """

    frames: tuple[Frame, ...]
    loop: bool = False
    frame_duration: int = DEFAULT_FRAME_DURATION_MS
    current_frame: int = 0
    last_frame_time: float = 0.0
    playing: bool = True

    def update(self, current_time: float) -> None:
        """Advance by one frame if at least ``frame_duration`` ms have passed."""
        if not self.playing or not self.frames:
            return
        if current_time - self.last_frame_time < self.frame_duration:
            return

        self.last_frame_time = current_time
        next_frame = self.current_frame + 1
        if next_frame >= len(self.frames):
            next_frame = 0 if self.loop else len(self.frames) - 1
        self.current_frame = next_frame

    def current(self) -> Optional[Frame]:
        if not self.frames:
            return None
        return self.frames[self.current_frame]

    def is_finished(self) -> bool:
        """True once a non-looping animation shows its last frame."""
        return not self.loop and self.current_frame >= len(self.frames) - 1
