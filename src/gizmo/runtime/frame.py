"""
Gizmo Frame - a monochrome pixel raster.

A Frame is a rectangular grid of booleans stored row-major in a numpy
array of shape ``(height, width)``. Operations that the language treats
as pure (``rotate_90``, ``copy``, ``row``) return new frames; ``flip``,
``set_pixel`` and ``place_sprite`` modify the frame they are called on.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np

from gizmo.utils.errors import IndexOutOfBoundsError, InvalidFrameError

# Moore neighbourhood offsets (row, col), excluding the centre cell
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
)


class Frame:
    """
    A boolean pixel raster.

    Invariants:
        - every row has exactly ``width`` pixels
        - ``height`` equals the number of rows

    Construct frames with ``Frame.from_rows`` (validated) or
    ``Frame.blank`` (all pixels off).
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        array = np.array(pixels, dtype=bool, copy=True)
        if array.ndim != 2:
            raise InvalidFrameError(f"Frame data must be two-dimensional, got {array.ndim} dimensions")
        self._pixels = array

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]]) -> Frame:
        """
        Build a frame from a list of rows of truthy/falsy pixels.

        Raises:
            InvalidFrameError: if there are no rows or the rows differ in length
        """
        if len(rows) == 0:
            raise InvalidFrameError("Frame must have at least one row")

        width = len(rows[0])
        for index, row in enumerate(rows):
            if len(row) != width:
                raise InvalidFrameError(
                    f"Row {index} has {len(row)} pixels, expected {width}"
                )

        return cls(np.array([[bool(pixel) for pixel in row] for row in rows], dtype=bool).reshape(len(rows), width))

    @classmethod
    def blank(cls, width: int, height: int) -> Frame:
        """Create a frame with every pixel off. Zero sizes are allowed."""
        try:
            pixels = np.zeros((max(height, 0), max(width, 0)), dtype=bool)
        except (ValueError, OverflowError, MemoryError) as e:
            raise InvalidFrameError(f"Cannot allocate a {width}x{height} frame") from e
        return cls(pixels)

    @classmethod
    def stack(cls, frames: Iterable[Frame]) -> Frame:
        """Stack frames of equal width vertically into one frame."""
        parts = [frame._pixels for frame in frames]
        if not parts:
            raise InvalidFrameError("Frame must have at least one row")
        widths = {part.shape[1] for part in parts}
        if len(widths) != 1:
            raise InvalidFrameError("Cannot stack rows of different widths")
        return cls(np.vstack(parts))

    # -------------------------------------------------------------------------
    # Shape and access
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the underlying ``(height, width)`` bool array."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    @property
    def rows(self) -> list[list[bool]]:
        """The raster as nested Python lists, row-major."""
        return self._pixels.tolist()

    def count_on(self) -> int:
        """Number of pixels that are on."""
        return int(np.count_nonzero(self._pixels))

    def copy(self) -> Frame:
        return Frame(self._pixels)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def _check_bounds(self, row: int, col: int) -> None:
        if not self.in_bounds(row, col):
            raise IndexOutOfBoundsError(
                f"Pixel ({row}, {col}) is outside a {self.width}x{self.height} frame"
            )

    def get_pixel(self, row: int, col: int) -> bool:
        self._check_bounds(row, col)
        return bool(self._pixels[row, col])

    def set_pixel(self, row: int, col: int, value: bool) -> None:
        self._check_bounds(row, col)
        self._pixels[row, col] = bool(value)

    def row(self, index: int) -> Frame:
        """Return row ``index`` as a one-row frame."""
        if not 0 <= index < self.height:
            raise IndexOutOfBoundsError(
                f"Row index {index} out of range for frame with {self.height} rows"
            )
        return Frame(self._pixels[index:index + 1, :])

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def count_neighbors(self, row: int, col: int) -> int:
        """
        Count the on cells among the 8 Moore neighbours of (row, col).

        Cells outside the grid count as off; there is no wraparound. The
        centre cell itself must be inside the frame.
        """
        self._check_bounds(row, col)
        count = 0
        for d_row, d_col in NEIGHBOR_OFFSETS:
            r, c = row + d_row, col + d_col
            if 0 <= r < self.height and 0 <= c < self.width and self._pixels[r, c]:
                count += 1
        return count

    def rotate_90(self) -> Frame:
        """Return a copy rotated 90 degrees clockwise (width and height swap)."""
        return Frame(np.rot90(self._pixels, k=-1))

    def flip(self) -> None:
        """Invert every pixel in place."""
        np.logical_not(self._pixels, out=self._pixels)

    def place_sprite(self, sprite: Frame, x: int, y: int) -> None:
        """
        OR the sprite onto this frame with its top-left corner at column
        ``x``, row ``y``. Pixels are only ever turned on; anything landing
        outside this frame is clipped.
        """
        row_start = max(y, 0)
        col_start = max(x, 0)
        row_end = min(y + sprite.height, self.height)
        col_end = min(x + sprite.width, self.width)
        if row_start >= row_end or col_start >= col_end:
            return

        source = sprite._pixels[row_start - y:row_end - y, col_start - x:col_end - x]
        self._pixels[row_start:row_end, col_start:col_end] |= source

    # -------------------------------------------------------------------------
    # Dunder methods
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and bool(
            np.array_equal(self._pixels, other._pixels)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Frame({self.width}x{self.height})"
