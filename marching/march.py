"""
Marching: step 2 of marching squares.

Every grid cell (i, j) with i < p gets a 4-bit code from its corners:

    code = 8 * g[i, j] + 4 * g[i, j + 1] + 2 * g[i + 1, j + 1] + 1 * g[i + 1, j]

and the template for that code is copied over the image block with origin
(i * step_x, j * step_y). Blocks tile the image without overlap, so a task
marching its own column range writes only its own pixels. Reading column
j + 1 crosses into the next task's range, which is why marching starts only
after every task has finished sampling.
"""

import numpy as np

from .templates import MAX_CODE, ContourTemplateSet
from .types import ColumnRange, Grid, Image


def cell_codes(grid: Grid, columns: ColumnRange) -> np.ndarray:
    """Configuration codes of cells [0, p) x [columns.start, columns.stop).

    Returns:
        int array of shape (p, len(columns)).

    Raises:
        ValueError: If the range reaches past column q, or a code falls
            outside [0, 15] (the grid holds something other than 0/1).
    """
    p, q = grid.p, grid.q
    if columns.stop > q:
        raise ValueError(f"Column range [{columns.start}, {columns.stop}) exceeds q={q}")

    cells = grid.cells[:, columns.start:columns.stop + 1].astype(np.intp)
    top, bottom = cells[:p], cells[1:p + 1]
    codes = 8 * top[:, :-1] + 4 * top[:, 1:] + 2 * bottom[:, 1:] + bottom[:, :-1]

    if codes.size and (codes.min() < 0 or codes.max() > MAX_CODE):
        raise ValueError(
            f"Contour codes out of range [0, {MAX_CODE}]: "
            f"min={codes.min()}, max={codes.max()}"
        )
    return codes


def march_cells(
    image: Image,
    grid: Grid,
    templates: ContourTemplateSet,
    columns: ColumnRange,
    step_x: int,
    step_y: int,
) -> np.ndarray:
    """Stamp the templates for grid columns [columns.start, columns.stop).

    Writes pixels [0, p * step_x) x [start * step_y, stop * step_y) of the
    image, in place. Templates are assumed to be (step_x, step_y); the
    orchestrator checks that once before any thread starts.

    Returns:
        The codes of the marched cells, shape (p, len(columns)).
    """
    codes = cell_codes(grid, columns)
    p, n = codes.shape
    if codes.size == 0:
        return codes

    # (p, n, step_x, step_y, 3) -> (p * step_x, n * step_y, 3)
    blocks = templates.stack[codes]
    tiles = blocks.transpose(0, 2, 1, 3, 4).reshape(p * step_x, n * step_y, 3)
    image.pixels[:p * step_x, columns.as_slice(step_y)] = tiles
    return codes

