#!/usr/bin/env python3
"""
Render the 16 marching-squares contour templates.

Writes ``<code>.ppm`` for every configuration code into a directory, using
the same corner convention as the marcher:

    8 = top-left, 4 = top-right, 2 = bottom-right, 1 = bottom-left

Each template is a step_x x step_y block with a single line (two for the
saddle codes 5 and 10) joining the midpoints of the cell edges the contour
crosses.

Usage:
    msq-make-contours contours/
    msq-make-contours contours/ --step 16
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import cv2
import numpy as np

from config import (
    CONTOUR_BACKGROUND,
    CONTOUR_CONFIG_COUNT,
    CONTOUR_DIR,
    CONTOUR_LINE_COLOR,
    GRID_STEP,
)
from image_io import save_image
from logging_utils import add_logging_args, configure_logging
from marching.templates import template_path
from marching.types import Image

logger = logging.getLogger(__name__)

# Edge midpoints crossed by the contour, per code. T/R/B/L = top, right,
# bottom, left edge of the cell in (x, y) array order: top is the x = 0 side,
# left the y = 0 side. Saved files are transposed, so "top" is the left edge
# of a template file.
SEGMENTS: dict[int, list[tuple[str, str]]] = {
    0: [],
    1: [("L", "B")],
    2: [("B", "R")],
    3: [("L", "R")],
    4: [("T", "R")],
    5: [("L", "T"), ("B", "R")],
    6: [("T", "B")],
    7: [("L", "T")],
    8: [("L", "T")],
    9: [("T", "B")],
    10: [("T", "R"), ("L", "B")],
    11: [("T", "R")],
    12: [("L", "R")],
    13: [("B", "R")],
    14: [("L", "B")],
    15: [],
}


def _midpoints(step_x: int, step_y: int) -> dict[str, tuple[int, int]]:
    # cv2 points are (column, row) = (y, x)
    return {
        "T": (step_y // 2, 0),
        "B": (step_y // 2, step_x - 1),
        "L": (0, step_x // 2),
        "R": (step_y - 1, step_x // 2),
    }


def render_contour_template(code: int, step_x: int, step_y: int) -> Image:
    """Draw the template for one configuration code."""
    if code not in SEGMENTS:
        raise ValueError(f"Contour code must be in [0, {CONTOUR_CONFIG_COUNT - 1}], got {code}")

    canvas = np.empty((step_x, step_y, 3), dtype=np.uint8)
    canvas[:, :] = CONTOUR_BACKGROUND
    points = _midpoints(step_x, step_y)
    for start, end in SEGMENTS[code]:
        cv2.line(canvas, points[start], points[end], CONTOUR_LINE_COLOR, thickness=1)
    return Image(pixels=canvas)


def render_contour_templates(step_x: int = GRID_STEP, step_y: int = GRID_STEP) -> list[Image]:
    """Draw all 16 templates, in code order."""
    if step_x < 2 or step_y < 2:
        raise ValueError(f"Template size must be at least 2x2, got {step_x}x{step_y}")
    return [
        render_contour_template(code, step_x, step_y)
        for code in range(CONTOUR_CONFIG_COUNT)
    ]


def write_contour_templates(
    directory: str | Path,
    step_x: int = GRID_STEP,
    step_y: int = GRID_STEP,
) -> list[Path]:
    """Render the templates and write them as ``<directory>/<code>.ppm``."""
    paths = []
    for code, image in enumerate(render_contour_templates(step_x, step_y)):
        path = template_path(directory, code)
        save_image(image, path)
        paths.append(path)
    logger.info("Wrote %d contour templates (%dx%d) to %s", len(paths), step_x, step_y, directory)
    return paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="msq-make-contours",
        description="Render the 16 marching-squares contour templates",
    )
    add_logging_args(parser)
    parser.add_argument(
        "directory",
        nargs="?",
        default=CONTOUR_DIR,
        help=f"Output directory (default: {CONTOUR_DIR})",
    )
    parser.add_argument(
        "--step",
        type=int,
        default=GRID_STEP,
        help=f"Template size in pixels, same on both axes (default: {GRID_STEP})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    try:
        write_contour_templates(args.directory, args.step, args.step)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
