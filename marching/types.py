"""
Type definitions for the marching module.

This module defines the core data structures shared by every phase of the
pipeline: the RGB image, the binary sample grid, column ranges and the
per-thread task record.

Axis convention: an Image of size (x, y) is backed by a uint8 array of shape
(x, y, 3). The buffer is row-major with x as the major axis, so pixel (i, j)
is ``pixels[i, j]``. "Columns" are indices along y; work is partitioned by
column ranges.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

import numpy as np

if TYPE_CHECKING:
    from .config import MarchingConfig
    from .templates import ContourTemplateSet


@dataclass
class Image:
    """An RGB raster.

    Attributes:
        pixels: uint8 array of shape (x, y, 3).
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if not isinstance(self.pixels, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(self.pixels).__name__}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3:
            raise ValueError(
                f"Image pixels must have shape (x, y, 3), got {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Image pixels must be uint8, got {self.pixels.dtype}")
        if self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise ValueError("Image is empty")

    @classmethod
    def blank(cls, x: int, y: int) -> Image:
        """Allocate an uninitialized image of size (x, y)."""
        return cls(pixels=np.empty((x, y, 3), dtype=np.uint8))

    @classmethod
    def filled(cls, x: int, y: int, rgb: tuple[int, int, int]) -> Image:
        """Allocate an image of size (x, y) with every pixel set to ``rgb``."""
        pixels = np.empty((x, y, 3), dtype=np.uint8)
        pixels[:, :] = rgb
        return cls(pixels=pixels)

    @property
    def x(self) -> int:
        return self.pixels.shape[0]

    @property
    def y(self) -> int:
        return self.pixels.shape[1]

    @property
    def size(self) -> tuple[int, int]:
        """(x, y) dimensions."""
        return self.x, self.y

    def copy(self) -> Image:
        return Image(pixels=self.pixels.copy())


@dataclass
class Grid:
    """Binary sample grid of shape (p + 1, q + 1).

    Row p and column q are boundary cells sampled from the image's last row
    and last column. Cell [p, q] is always 0.
    """

    cells: np.ndarray

    @classmethod
    def allocate(cls, p: int, q: int) -> Grid:
        return cls(cells=np.zeros((p + 1, q + 1), dtype=np.uint8))

    @property
    def p(self) -> int:
        return self.cells.shape[0] - 1

    @property
    def q(self) -> int:
        return self.cells.shape[1] - 1

    @property
    def shape(self) -> tuple[int, int]:
        return self.cells.shape


@dataclass(frozen=True)
class ColumnRange:
    """Half-open range of columns [start, stop)."""

    start: int
    stop: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.stop < self.start:
            raise ValueError(f"Invalid column range [{self.start}, {self.stop})")

    def __len__(self) -> int:
        return self.stop - self.start

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.stop))

    def overlaps(self, other: ColumnRange) -> bool:
        return self.start < other.stop and other.start < self.stop

    def as_slice(self, scale: int = 1) -> slice:
        """Slice over the same range, optionally scaled from grid to pixel columns."""
        return slice(self.start * scale, self.stop * scale)


class WorkingImage:
    """Handle to the image every phase currently works on.

    A rescaled target can be staged before the worker threads start. It is
    promoted to the current image exactly once, by the barrier action that
    ends the rescale phase. Promotion drops the handle's reference to the
    source buffer; nothing reads it after that barrier.
    """

    def __init__(self, image: Image) -> None:
        self._current = image
        self._staged: Image | None = None
        self._promoted = False

    @property
    def current(self) -> Image:
        return self._current

    @property
    def staged(self) -> Image | None:
        return self._staged

    @property
    def promoted(self) -> bool:
        return self._promoted

    def stage(self, target: Image) -> None:
        if self._staged is not None or self._promoted:
            raise RuntimeError("A replacement image was already staged")
        self._staged = target

    def promote(self) -> None:
        """Adopt the staged image as current. No-op when nothing is staged."""
        if self._staged is None:
            return
        self._current, self._staged = self._staged, None
        self._promoted = True


@dataclass(frozen=True)
class SharedState:
    """Read handles every task shares. None of these fields are reassigned."""

    handle: WorkingImage
    grid: Grid
    templates: ContourTemplateSet
    barrier: threading.Barrier
    config: MarchingConfig
    rescale: bool


@dataclass(frozen=True)
class ThreadTask:
    """Ownership record for one worker thread.

    Attributes:
        index: Task index in [0, thread_count).
        thread_count: Number of workers in the run.
        shared: Handles shared read-only with every other task.
        phase_seconds: Wall time per finished phase, filled by the worker.
    """

    index: int
    thread_count: int
    shared: SharedState = field(repr=False)
    phase_seconds: dict[str, float] = field(default_factory=dict, compare=False)

    @property
    def is_last(self) -> bool:
        """The last task owns the boundary row and column of the grid."""
        return self.index == self.thread_count - 1
