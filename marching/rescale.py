"""
Bicubic downscaling of oversized images.

The rescale runs at most once per run, before sampling, and only when the
source exceeds the configured bounds on either axis. The output is always
exactly (max_x, max_y).

Each output pixel (i, j) maps to normalized coordinates
u = i / (out_x - 1), v = j / (out_y - 1) and samples the source with a
Catmull-Rom kernel over a 4x4 neighborhood. Source indices are clamped to
the image edges. All arithmetic is float32 and the result is clamped to
[0, 255] and truncated to uint8.

The work is split by output column: every call fills one ColumnRange of
the target and reads the source only.
"""

import numpy as np

from .types import ColumnRange, Image

# Neighborhood offsets around the truncated source coordinate
_TAPS = np.arange(-1, 3)

# Output rows processed per gather, bounds the float32 temporaries
_ROW_CHUNK = 256


def needs_rescale(image: Image, max_x: int, max_y: int) -> bool:
    """True if the image exceeds max_x along x or max_y along y."""
    return image.x > max_x or image.y > max_y


def cubic_hermite(a, b, c, d, t):
    """Catmull-Rom cubic through b (t=0) and c (t=1), shaped by a and d."""
    ca = -a / 2 + (3 * b) / 2 - (3 * c) / 2 + d / 2
    cb = a - (5 * b) / 2 + 2 * c - d / 2
    cc = -a / 2 + c / 2
    return ca * t * t * t + cb * t * t + cc * t + b


def source_taps(
    indices: np.ndarray,
    out_len: int,
    src_len: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Map output indices along one axis to source neighborhoods.

    Args:
        indices: Output indices along the axis.
        out_len: Output length along the axis (at least 2).
        src_len: Source length along the axis.

    Returns:
        Tuple of:
        - (len(indices), 4) int array of edge-clamped source indices
        - (len(indices),) float32 fractional offsets
    """
    norm = indices.astype(np.float32) / np.float32(out_len - 1)
    coord = norm * np.float32(src_len) - np.float32(0.5)
    # truncation toward zero for the base index, floor for the fraction
    base = np.trunc(coord).astype(np.intp)
    frac = (coord - np.floor(coord)).astype(np.float32)
    taps = np.clip(base[:, None] + _TAPS[None, :], 0, src_len - 1)
    return taps, frac


def sample_bicubic(image: Image, u: float, v: float) -> tuple[int, int, int]:
    """Bicubic sample of one pixel at normalized coordinates (u, v).

    Reference for a single point; rescale_columns computes the same values
    for whole column blocks at once.
    """
    x = np.float32(u) * np.float32(image.x) - np.float32(0.5)
    y = np.float32(v) * np.float32(image.y) - np.float32(0.5)
    x_frac = np.float32(x - np.floor(x))
    y_frac = np.float32(y - np.floor(y))
    rows = np.clip(int(x) + _TAPS, 0, image.x - 1)
    cols = np.clip(int(y) + _TAPS, 0, image.y - 1)

    patch = image.pixels[np.ix_(rows, cols)].astype(np.float32)
    along_x = [cubic_hermite(*patch[:, n], x_frac) for n in range(4)]
    value = cubic_hermite(*along_x, y_frac)
    r, g, b = np.clip(value, 0, 255).astype(np.uint8)
    return int(r), int(g), int(b)


def rescale_columns(source: Image, target: Image, columns: ColumnRange) -> None:
    """Fill target columns [columns.start, columns.stop) from the source.

    Only the given target columns are written; the source is never written.
    """
    if len(columns) == 0:
        return

    row_taps, row_frac = source_taps(np.arange(target.x), target.x, source.x)
    col_taps, col_frac = source_taps(
        np.arange(columns.start, columns.stop), target.y, source.y
    )
    col_weight = col_frac[None, :, None]
    out = target.pixels[:, columns.as_slice()]

    for r0 in range(0, target.x, _ROW_CHUNK):
        r1 = min(r0 + _ROW_CHUNK, target.x)
        rows = row_taps[r0:r1]
        row_weight = row_frac[r0:r1, None, None]

        # interpolate along x for each of the 4 y taps, then along y
        along_x = []
        for n in range(4):
            taps = [
                source.pixels[np.ix_(rows[:, m], col_taps[:, n])].astype(np.float32)
                for m in range(4)
            ]
            along_x.append(cubic_hermite(*taps, row_weight))
        value = cubic_hermite(*along_x, col_weight)

        np.clip(value, 0, 255, out=value)
        out[r0:r1] = value.astype(np.uint8)


def rescale_image(source: Image, max_x: int, max_y: int) -> Image:
    """Single-threaded convenience: rescale the whole image to (max_x, max_y)."""
    target = Image.blank(max_x, max_y)
    rescale_columns(source, target, ColumnRange(0, max_y))
    return target
