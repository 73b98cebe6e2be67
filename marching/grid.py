"""
Grid sampling: step 1 of marching squares.

Builds a (p + 1) x (q + 1) binary grid with p = x // step_x and
q = y // step_y. Interior point (i, j) reads pixel (i * step_x, j * step_y);
a point is 1 when its luminance (r + g + b) // 3 is at or below sigma.

The last row and column have no sample point one step further, so they read
the image's true last row and last column instead. Only the task owning
the final column range writes them, and cell [p, q] is always 0.
"""

import numpy as np

from .types import ColumnRange, Grid, Image


def grid_shape(x: int, y: int, step_x: int, step_y: int) -> tuple[int, int]:
    """Shape (p + 1, q + 1) of the grid for an image of size (x, y)."""
    if step_x <= 0 or step_y <= 0:
        raise ValueError(f"grid step must be positive, got ({step_x}, {step_y})")
    return x // step_x + 1, y // step_y + 1


def allocate_grid(image_size: tuple[int, int], step_x: int, step_y: int) -> Grid:
    rows, cols = grid_shape(image_size[0], image_size[1], step_x, step_y)
    return Grid.allocate(rows - 1, cols - 1)


def luminance(pixels: np.ndarray) -> np.ndarray:
    """Unweighted channel mean with integer division, as uint8-range ints."""
    return pixels.sum(axis=-1, dtype=np.uint16) // 3


def threshold(pixels: np.ndarray, sigma: int) -> np.ndarray:
    """1 where luminance <= sigma (darker or equal), else 0."""
    return (luminance(pixels) <= sigma).astype(np.uint8)


def sample_grid(
    image: Image,
    grid: Grid,
    columns: ColumnRange,
    sigma: int,
    step_x: int,
    step_y: int,
    owns_boundary: bool = False,
) -> None:
    """Sample grid columns [columns.start, columns.stop) of rows [0, p).

    When `owns_boundary` is set, also fill boundary column q, boundary row p
    and force cell [p, q] to 0.

    Raises:
        ValueError: If the grid shape does not match the image and step, or
            the column range reaches past column q.
    """
    p, q = grid.p, grid.q
    if grid.shape != grid_shape(image.x, image.y, step_x, step_y):
        raise ValueError(
            f"Grid shape {grid.shape} does not match image {image.size} "
            f"with step ({step_x}, {step_y})"
        )
    if columns.stop > q:
        raise ValueError(f"Column range [{columns.start}, {columns.stop}) exceeds q={q}")

    pixels = image.pixels
    if len(columns):
        points = pixels[
            0:p * step_x:step_x,
            columns.start * step_y:columns.stop * step_y:step_y,
        ]
        grid.cells[:p, columns.start:columns.stop] = threshold(points, sigma)

    if owns_boundary:
        # last sample points have no neighbor one step further: use the
        # image's last column (for column q) and last row (for row p)
        grid.cells[:p, q] = threshold(pixels[0:p * step_x:step_x, image.y - 1], sigma)
        grid.cells[p, :q] = threshold(pixels[image.x - 1, 0:q * step_y:step_y], sigma)
        grid.cells[p, q] = 0
