"""Pytest configuration: fast by default.

Slow tests (full-size 2048x2048 rescales) are skipped unless --slow is passed.
Run the full suite:   pytest --slow
Run fast tests only:  pytest          (default)
"""
import numpy as np
import pytest

from make_contours import render_contour_templates, write_contour_templates
from marching import ContourTemplateSet, Image, MarchingConfig


def pytest_addoption(parser):
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests that rescale full-size images",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--slow"):
        return  # run everything
    skip_slow = pytest.mark.skip(reason="slow test skipped, pass --slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(scope="session")
def templates():
    """The canonical 8x8 template set, rendered in memory."""
    return ContourTemplateSet.from_images(render_contour_templates(8, 8))


@pytest.fixture(scope="session")
def coded_templates():
    """8x8 templates filled with a flat color that encodes the code (R = code)."""
    images = [Image.filled(8, 8, (code, 100, 200)) for code in range(16)]
    return ContourTemplateSet.from_images(images)


@pytest.fixture
def contour_dir(tmp_path):
    """A directory holding the canonical 8x8 templates as PPM files."""
    directory = tmp_path / "contours"
    write_contour_templates(directory, 8, 8)
    return directory


@pytest.fixture
def small_config(contour_dir):
    """Default step and sigma, with small rescale bounds for fast tests."""
    return MarchingConfig(max_x=64, max_y=64, contour_dir=str(contour_dir))


@pytest.fixture
def random_image():
    """Deterministic random image factory."""
    def _make(x, y, seed=0):
        rng = np.random.default_rng(seed)
        return Image(pixels=rng.integers(0, 256, (x, y, 3), dtype=np.uint8))
    return _make
