"""
Configuration for the marching-squares pipeline.

All phases are parameterized through MarchingConfig so a run is fully
described by one immutable object. Defaults come from the top-level config
module.
"""

from dataclasses import dataclass, field

from config import (
    GRID_STEP,
    SIGMA,
    RESCALE_X,
    RESCALE_Y,
    CONTOUR_DIR,
)

from .types import Grid, Image


@dataclass(frozen=True)
class MarchingConfig:
    """Configuration for a marching-squares run.

    Attributes:
        step_x: Distance between sample points along x. Templates must be
                exactly step_x pixels along x.
        step_y: Distance between sample points along y.
        sigma: Luminance threshold; points at or below it are "inside".
        max_x: Images with more than max_x pixels along x are rescaled.
        max_y: Images with more than max_y pixels along y are rescaled.
        contour_dir: Directory holding the 16 template images.
    """

    step_x: int = GRID_STEP
    step_y: int = GRID_STEP
    sigma: int = SIGMA
    max_x: int = RESCALE_X
    max_y: int = RESCALE_Y
    contour_dir: str = CONTOUR_DIR

    @classmethod
    def from_step(cls, step: int = GRID_STEP, **kwargs) -> "MarchingConfig":
        """Build a config with the same step on both axes."""
        return cls(step_x=step, step_y=step, **kwargs)

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        for name in ("step_x", "step_y", "sigma", "max_x", "max_y"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be an int, got {value!r}")

        if self.step_x <= 0 or self.step_y <= 0:
            raise ValueError(
                f"grid step must be positive, got ({self.step_x}, {self.step_y})"
            )

        if not 0 <= self.sigma <= 255:
            raise ValueError(f"sigma must be within [0, 255], got {self.sigma}")

        # u = i / (max_x - 1) needs at least two output pixels per axis
        if self.max_x < 2 or self.max_y < 2:
            raise ValueError(
                f"rescale bounds must be at least 2, got ({self.max_x}, {self.max_y})"
            )
        if self.max_x < self.step_x or self.max_y < self.step_y:
            raise ValueError(
                f"rescale bounds ({self.max_x}, {self.max_y}) are smaller than "
                f"the grid step ({self.step_x}, {self.step_y})"
            )

        if not self.contour_dir:
            raise ValueError("contour_dir must not be empty")


@dataclass
class MarchingResult:
    """Result of a marching-squares run.

    Attributes:
        image: Output image with contour templates stamped in. Its size is
               the working size: (max_x, max_y) if the input was rescaled,
               the input size otherwise.
        grid: The sampled binary grid.
        rescaled: Whether the input went through the bicubic rescale.
        thread_count: Number of worker threads used.
        elapsed_seconds: Wall time of the threaded part of the run.
        phase_seconds: Slowest worker's wall time per phase.
    """

    image: Image
    grid: Grid
    rescaled: bool
    thread_count: int
    elapsed_seconds: float = 0.0
    phase_seconds: dict[str, float] = field(default_factory=dict)

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size
