"""
Marching-squares contour extraction.

This module turns a raster image into an image of iso-contour fragments:
oversized inputs are first downscaled with bicubic interpolation, then a
binary grid is sampled against a luminance threshold, and finally each grid
cell is replaced by one of 16 pre-rendered contour templates.

Key components:
- types: Image, Grid, ColumnRange, WorkingImage and the per-thread ThreadTask
- config: MarchingConfig dataclass and MarchingResult
- templates: ContourTemplateSet (load once, read-only lookup by code)
- rescale: Bicubic rescale of a column range
- grid: Grid sampling including the boundary row and column
- march: Cell codes and template stamping
- partition: Disjoint column ranges per worker
- orchestrator: Worker threads, barriers and failure handling

The main entry point is `run_marching_squares()`, which returns a
`MarchingResult` holding the output image and the sampled grid.
"""

from .types import ColumnRange, Grid, Image, ThreadTask, WorkingImage
from .config import MarchingConfig, MarchingResult
from .templates import ContourTemplateSet, template_path
from .partition import partition, partition_range
from .rescale import needs_rescale, rescale_columns, rescale_image, sample_bicubic
from .grid import allocate_grid, grid_shape, sample_grid
from .march import cell_codes, march_cells
from .orchestrator import PipelineAbortedError, ThreadOrchestrator, run_marching_squares

__all__ = [
    # Data model
    "ColumnRange",
    "Grid",
    "Image",
    "ThreadTask",
    "WorkingImage",
    # Config and results
    "MarchingConfig",
    "MarchingResult",
    # Templates
    "ContourTemplateSet",
    "template_path",
    # Phases
    "partition",
    "partition_range",
    "needs_rescale",
    "rescale_columns",
    "rescale_image",
    "sample_bicubic",
    "allocate_grid",
    "grid_shape",
    "sample_grid",
    "cell_codes",
    "march_cells",
    # Orchestration
    "PipelineAbortedError",
    "ThreadOrchestrator",
    "run_marching_squares",
]
