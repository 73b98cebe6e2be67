"""
Image file decode/encode.

Thin wrapper around OpenCV. Files are read as 8-bit color and converted from
OpenCV's BGR order to RGB. The file's width becomes the image's x axis
and its height the y axis, so arrays are transposed on the way in and out.
PPM (P6) is the canonical format for inputs, outputs and contour templates.
"""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from marching.types import Image

logger = logging.getLogger(__name__)


def load_image(path: str | Path) -> Image:
    """Read an image file into an RGB Image.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If OpenCV cannot decode the file.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Image not found: {file_path}")

    bgr = cv2.imread(str(file_path), cv2.IMREAD_COLOR)
    if bgr is None:
        raise ValueError(f"Could not decode image: {file_path}")

    rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
    # (rows, cols) -> (width, height)
    pixels = np.ascontiguousarray(rgb.transpose(1, 0, 2), dtype=np.uint8)
    logger.debug("Loaded %s (%dx%d)", file_path, pixels.shape[0], pixels.shape[1])
    return Image(pixels=pixels)


def save_image(image: Image, path: str | Path) -> None:
    """Write an Image to disk; the format follows the file extension.

    Raises:
        ValueError: If OpenCV cannot encode the image to that path.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    rows = np.ascontiguousarray(image.pixels.transpose(1, 0, 2))
    bgr = cv2.cvtColor(rows, cv2.COLOR_RGB2BGR)
    try:
        written = cv2.imwrite(str(file_path), bgr)
    except cv2.error as exc:
        raise ValueError(f"Could not write image: {file_path}: {exc}") from exc
    if not written:
        raise ValueError(f"Could not write image: {file_path}")
    logger.debug("Wrote %s (%dx%d)", file_path, image.x, image.y)
