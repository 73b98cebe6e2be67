"""
Contour template set.

Each of the 16 marching-squares configurations maps to a small pre-rendered
image that is stamped into the output for every grid cell with that
configuration. Templates are loaded once, before any worker starts, and are
read-only afterwards.

Code convention (shared with march.cell_codes and make_contours.py):
    8 = top-left corner, 4 = top-right, 2 = bottom-right, 1 = bottom-left
where "top" is the lower x index and "left" the lower y index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np

from config import CONTOUR_CONFIG_COUNT, CONTOUR_FILE_TEMPLATE

from .types import Image

logger = logging.getLogger(__name__)

MAX_CODE = CONTOUR_CONFIG_COUNT - 1


def template_path(directory: str | Path, code: int) -> Path:
    """Path of the template file for a configuration code."""
    return Path(directory) / CONTOUR_FILE_TEMPLATE.format(code=code)


def _read_only(pixels: np.ndarray) -> np.ndarray:
    frozen = np.array(pixels, dtype=np.uint8, copy=True)
    frozen.flags.writeable = False
    return frozen


@dataclass(frozen=True)
class ContourTemplateSet:
    """The 16 contour templates, indexed by configuration code.

    Attributes:
        stack: Read-only uint8 array of shape (16, step_x, step_y, 3);
               stack[code] is the template for that code.
    """

    stack: np.ndarray

    def __post_init__(self) -> None:
        if self.stack.ndim != 4 or self.stack.shape[0] != CONTOUR_CONFIG_COUNT:
            raise ValueError(
                f"Expected {CONTOUR_CONFIG_COUNT} templates stacked as "
                f"(16, step_x, step_y, 3), got shape {self.stack.shape}"
            )
        if self.stack.shape[3] != 3:
            raise ValueError(f"Templates must be RGB, got shape {self.stack.shape}")
        if self.stack.flags.writeable:
            object.__setattr__(self, "stack", _read_only(self.stack))

    @classmethod
    def from_images(cls, images: list[Image]) -> ContourTemplateSet:
        """Build a set from 16 equally sized images, in code order."""
        if len(images) != CONTOUR_CONFIG_COUNT:
            raise ValueError(
                f"Expected {CONTOUR_CONFIG_COUNT} templates, got {len(images)}"
            )
        sizes = {image.size for image in images}
        if len(sizes) != 1:
            raise ValueError(f"Templates differ in size: {sorted(sizes)}")
        return cls(stack=np.stack([image.pixels for image in images]))

    @classmethod
    def load(
        cls,
        directory: str | Path,
        step_x: int,
        step_y: int,
        loader: Callable[[Path], Image] | None = None,
    ) -> ContourTemplateSet:
        """Load templates 0..15 from `directory`.

        Every template must be exactly (step_x, step_y) pixels. Any missing,
        unreadable or wrongly sized file fails the whole load.

        Args:
            directory: Directory containing ``<code>.ppm`` files.
            step_x: Required template size along x.
            step_y: Required template size along y.
            loader: Function reading one image file. Defaults to
                    image_io.load_image.

        Raises:
            FileNotFoundError: If the directory or a template file is missing.
            ValueError: If a template cannot be decoded or has the wrong size.
        """
        if loader is None:
            from image_io import load_image as loader

        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Contour template directory not found: {directory}")

        images = []
        for code in range(CONTOUR_CONFIG_COUNT):
            path = template_path(directory, code)
            image = loader(path)
            if image.size != (step_x, step_y):
                raise ValueError(
                    f"Template {path} is {image.x}x{image.y}, "
                    f"expected {step_x}x{step_y}"
                )
            images.append(image)

        logger.debug("Loaded %d contour templates from %s", len(images), directory)
        return cls.from_images(images)

    @property
    def step(self) -> tuple[int, int]:
        """(step_x, step_y) size of every template."""
        return self.stack.shape[1], self.stack.shape[2]

    def lookup(self, code: int) -> np.ndarray:
        """Return the read-only template pixels for a configuration code.

        Raises:
            ValueError: If code is outside [0, 15].
        """
        if not 0 <= code <= MAX_CODE:
            raise ValueError(f"Contour code must be in [0, {MAX_CODE}], got {code}")
        return self.stack[code]

    def __len__(self) -> int:
        return self.stack.shape[0]
