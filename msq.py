#!/usr/bin/env python3
"""
Marching-squares contour extraction CLI.

Usage:
    msq <in_file> <out_file> <thread_count>
    msq input.ppm output.ppm 4 --sigma 180
    msq input.ppm output.ppm 8 --contours-dir assets/contours -v

Exit codes:
    0  success
    1  usage error, unreadable input, broken contour templates or failed
       allocation
    3  a worker thread could not be started or failed

No output file is written unless every phase completed.
"""

from __future__ import annotations

import argparse
import logging
import sys

from config import (
    CONTOUR_DIR,
    EXIT_OK,
    EXIT_THREAD_FAILURE,
    EXIT_USAGE,
    GRID_STEP,
    RESCALE_X,
    RESCALE_Y,
    SIGMA,
)
from image_io import load_image, save_image
from logging_utils import add_logging_args, configure_logging
from marching import (
    ContourTemplateSet,
    MarchingConfig,
    PipelineAbortedError,
    run_marching_squares,
)

logger = logging.getLogger(__name__)


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with EXIT_USAGE."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="msq",
        description="Extract iso-contours from an image with marching squares",
    )
    add_logging_args(parser)
    parser.add_argument("in_file", help="Input image (PPM)")
    parser.add_argument("out_file", help="Output image (PPM)")
    parser.add_argument(
        "thread_count",
        type=_positive_int,
        help="Number of worker threads",
    )
    parser.add_argument(
        "--step",
        type=_positive_int,
        default=GRID_STEP,
        help=f"Grid step in pixels, same on both axes (default: {GRID_STEP})",
    )
    parser.add_argument(
        "--sigma",
        type=int,
        default=SIGMA,
        help=f"Luminance threshold 0-255; darker or equal is inside (default: {SIGMA})",
    )
    parser.add_argument(
        "--max-x",
        type=_positive_int,
        default=RESCALE_X,
        help=f"Rescale images larger than this along x (default: {RESCALE_X})",
    )
    parser.add_argument(
        "--max-y",
        type=_positive_int,
        default=RESCALE_Y,
        help=f"Rescale images larger than this along y (default: {RESCALE_Y})",
    )
    parser.add_argument(
        "--contours-dir",
        default=CONTOUR_DIR,
        help=f"Directory with contour templates 0.ppm .. 15.ppm (default: {CONTOUR_DIR})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    config = MarchingConfig(
        step_x=args.step,
        step_y=args.step,
        sigma=args.sigma,
        max_x=args.max_x,
        max_y=args.max_y,
        contour_dir=args.contours_dir,
    )
    try:
        config.validate()
        templates = ContourTemplateSet.load(config.contour_dir, config.step_x, config.step_y)
        image = load_image(args.in_file)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    try:
        result = run_marching_squares(image, templates, config, args.thread_count)
    except MemoryError:
        logger.error("Unable to allocate memory")
        return EXIT_USAGE
    except PipelineAbortedError as exc:
        logger.error("%s", exc)
        return EXIT_THREAD_FAILURE

    try:
        save_image(result.image, args.out_file)
    except ValueError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    logger.info(
        "Wrote %dx%d contour image to %s", result.image.x, result.image.y, args.out_file
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
