"""
Thread orchestration for the marching-squares pipeline.

A run spawns a fixed number of worker threads. Each worker executes the
same phases over its own column range and waits on a shared barrier after
each one:

    R (only if the image is oversized): rescale target pixel columns
    S: sample grid columns (the last worker also fills the boundary cells)
    M: march the same grid columns, stamping templates into the image

Within a phase every worker writes a disjoint set of cells and pixels, so
no locks are used. The barrier orders the phases: nothing is sampled before
the rescaled image is complete, and nothing is marched before the whole
grid is sampled, because marching column j reads column j + 1.

The barrier action promotes the staged rescaled image to the current one.
It runs in exactly one thread, after all workers arrive and before any is
released.

If a worker raises, it aborts the barrier so the others stop waiting, and
the run fails as a whole with PipelineAbortedError, or with the worker's
MemoryError when a buffer could not be allocated. No partial image is
returned.
"""

from __future__ import annotations

import functools
import logging
import threading
import time

from .config import MarchingConfig, MarchingResult
from .grid import allocate_grid, sample_grid
from .march import march_cells
from .partition import partition_range
from .rescale import needs_rescale, rescale_columns
from .templates import ContourTemplateSet
from .types import Image, SharedState, ThreadTask, WorkingImage

logger = logging.getLogger(__name__)

PHASE_RESCALE = "rescale"
PHASE_SAMPLE = "sample"
PHASE_MARCH = "march"


class PipelineAbortedError(RuntimeError):
    """A worker thread failed to start or failed mid-run."""


def _adopt_staged(handle: WorkingImage) -> None:
    """Barrier action: promote the rescaled image once all workers wrote it."""
    if handle.staged is None:
        return
    handle.promote()
    logger.debug("Adopted rescaled %dx%d image, source buffer released", *handle.current.size)


def _timed(task: ThreadTask, phase: str, started: float) -> float:
    now = time.perf_counter()
    task.phase_seconds[phase] = now - started
    logger.debug("Worker %d finished %s in %.3fs", task.index, phase, now - started)
    return now


def run_task(task: ThreadTask) -> None:
    """Run every phase for one task. Called in the task's own thread."""
    shared = task.shared
    config = shared.config
    barrier = shared.barrier
    started = time.perf_counter()

    if shared.rescale:
        source = shared.handle.current
        target = shared.handle.staged
        pixel_columns = partition_range(target.y, task.thread_count, task.index)
        rescale_columns(source, target, pixel_columns)
        started = _timed(task, PHASE_RESCALE, started)
        barrier.wait()

    # re-read the handle: after the rescale barrier it points at the target
    image = shared.handle.current
    grid = shared.grid
    columns = partition_range(grid.q, task.thread_count, task.index)

    sample_grid(
        image, grid, columns, config.sigma, config.step_x, config.step_y,
        owns_boundary=task.is_last,
    )
    started = _timed(task, PHASE_SAMPLE, started)
    barrier.wait()

    march_cells(image, grid, shared.templates, columns, config.step_x, config.step_y)
    _timed(task, PHASE_MARCH, started)
    barrier.wait()


class ThreadOrchestrator:
    """Runs the pipeline on one image with a fixed number of threads.

    Not reusable: each run spawns and joins its own threads.

    Attributes:
        templates: Loaded contour template set (read-only).
        config: Run configuration.
        thread_count: Number of worker threads.
    """

    def __init__(
        self,
        templates: ContourTemplateSet,
        config: MarchingConfig | None = None,
        thread_count: int = 1,
    ) -> None:
        config = config or MarchingConfig()
        config.validate()
        if (
            not isinstance(thread_count, int)
            or isinstance(thread_count, bool)
            or thread_count <= 0
        ):
            raise ValueError(f"thread_count must be a positive int, got {thread_count!r}")
        if templates.step != (config.step_x, config.step_y):
            raise ValueError(
                f"Contour templates are {templates.step[0]}x{templates.step[1]}, "
                f"grid step is {config.step_x}x{config.step_y}"
            )
        self.templates = templates
        self.config = config
        self.thread_count = thread_count

    def _worker(self, task: ThreadTask, errors: list[BaseException]) -> None:
        try:
            run_task(task)
        except threading.BrokenBarrierError as exc:
            # another worker failed first; its error is the one reported
            errors.append(exc)
        except Exception as exc:
            logger.exception("Worker %d failed", task.index)
            errors.append(exc)
            task.shared.barrier.abort()

    def run(self, image: Image) -> MarchingResult:
        """Extract contours from `image`.

        The input image is never modified.

        Raises:
            MemoryError: If a buffer cannot be allocated.
            PipelineAbortedError: If a thread cannot be started or a worker
                fails.
        """
        config = self.config
        rescale = needs_rescale(image, config.max_x, config.max_y)

        if rescale:
            handle = WorkingImage(image)
            handle.stage(Image.blank(config.max_x, config.max_y))
            working_size = (config.max_x, config.max_y)
        else:
            handle = WorkingImage(image.copy())
            working_size = image.size

        grid = allocate_grid(working_size, config.step_x, config.step_y)
        barrier = threading.Barrier(
            self.thread_count, action=functools.partial(_adopt_staged, handle)
        )
        shared = SharedState(
            handle=handle,
            grid=grid,
            templates=self.templates,
            barrier=barrier,
            config=config,
            rescale=rescale,
        )
        tasks = [
            ThreadTask(index=k, thread_count=self.thread_count, shared=shared)
            for k in range(self.thread_count)
        ]

        logger.info(
            "Marching %dx%d image%s with %d thread(s), step %dx%d, sigma %d",
            image.x, image.y,
            f" (rescaled to {working_size[0]}x{working_size[1]})" if rescale else "",
            self.thread_count, config.step_x, config.step_y, config.sigma,
        )

        errors: list[BaseException] = []
        threads: list[threading.Thread] = []
        started = time.perf_counter()

        for task in tasks:
            thread = threading.Thread(
                target=self._worker,
                args=(task, errors),
                name=f"marching-{task.index}",
            )
            try:
                thread.start()
            except RuntimeError as exc:
                logger.error("Could not start worker %d: %s", task.index, exc)
                barrier.abort()
                for running in threads:
                    running.join()
                raise PipelineAbortedError(
                    f"Could not start worker thread {task.index}"
                ) from exc
            threads.append(thread)

        for thread in threads:
            thread.join()
        elapsed = time.perf_counter() - started

        if errors:
            root = next(
                (e for e in errors if not isinstance(e, threading.BrokenBarrierError)),
                errors[0],
            )
            if isinstance(root, MemoryError):
                # allocation failures keep their own type, wherever they happen
                raise root
            raise PipelineAbortedError(f"Worker failed: {root}") from root

        if rescale and not handle.promoted:
            raise PipelineAbortedError("Rescaled image was never adopted")

        phase_seconds: dict[str, float] = {}
        for task in tasks:
            for phase, seconds in task.phase_seconds.items():
                phase_seconds[phase] = max(phase_seconds.get(phase, 0.0), seconds)

        logger.info("Marching finished in %.3fs", elapsed)
        return MarchingResult(
            image=handle.current,
            grid=grid,
            rescaled=rescale,
            thread_count=self.thread_count,
            elapsed_seconds=elapsed,
            phase_seconds=phase_seconds,
        )


def run_marching_squares(
    image: Image,
    templates: ContourTemplateSet,
    config: MarchingConfig | None = None,
    thread_count: int = 1,
) -> MarchingResult:
    """Run the full pipeline on an image.

    Function API around ThreadOrchestrator, mirroring its arguments.
    """
    return ThreadOrchestrator(templates, config, thread_count).run(image)
