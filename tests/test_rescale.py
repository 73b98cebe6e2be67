"""Tests for the bicubic rescale phase."""

import numpy as np
import pytest

from marching import ColumnRange, Image, needs_rescale, rescale_columns, rescale_image, sample_bicubic
from marching.partition import partition
from marching.rescale import cubic_hermite, source_taps


class TestNeedsRescale:
    """Rescale triggers iff either dimension exceeds its bound."""

    @pytest.mark.parametrize(
        "size, expected",
        [
            ((2048, 2048), False),
            ((100, 100), False),
            ((2049, 2048), True),
            ((2048, 2049), True),
            ((4096, 2048), True),
            ((2048, 4096), True),
            ((1, 5000), True),
        ],
    )
    def test_trigger(self, size, expected):
        image = Image(pixels=np.zeros((size[0], size[1], 3), dtype=np.uint8))
        assert needs_rescale(image, 2048, 2048) is expected

    def test_bounds_checked_per_axis(self):
        image = Image.filled(30, 10, (0, 0, 0))
        assert needs_rescale(image, 20, 40)
        assert not needs_rescale(image, 40, 20)


class TestCubicHermite:
    """The Catmull-Rom kernel."""

    def test_interpolates_endpoints(self):
        assert cubic_hermite(1.0, 2.0, 5.0, 3.0, 0.0) == 2.0
        assert cubic_hermite(1.0, 2.0, 5.0, 3.0, 1.0) == pytest.approx(5.0)

    def test_reproduces_linear_data(self):
        # Catmull-Rom is exact on straight lines
        for t in (0.0, 0.25, 0.5, 0.75):
            assert cubic_hermite(0.0, 10.0, 20.0, 30.0, t) == pytest.approx(10.0 + 10.0 * t)

    def test_stays_float32(self):
        a, b, c, d = (np.float32(v) for v in (1, 2, 3, 4))
        assert cubic_hermite(a, b, c, d, np.float32(0.5)).dtype == np.float32


class TestSourceTaps:
    """Mapping of output indices to clamped source neighborhoods."""

    def test_first_output_clamps_to_edge(self):
        taps, frac = source_taps(np.array([0]), out_len=4, src_len=8)
        # coord = 0 * 8 - 0.5 = -0.5: truncated base 0, fraction 0.5
        assert taps.tolist() == [[0, 0, 1, 2]]
        assert frac[0] == pytest.approx(0.5)

    def test_last_output_clamps_to_edge(self):
        taps, _ = source_taps(np.array([3]), out_len=4, src_len=8)
        # coord = 1 * 8 - 0.5 = 7.5: base 7, neighbors clamped to 7
        assert taps.tolist() == [[6, 7, 7, 7]]

    def test_indices_always_valid(self):
        taps, frac = source_taps(np.arange(64), out_len=64, src_len=10)
        assert taps.min() >= 0 and taps.max() <= 9
        assert (frac >= 0).all() and (frac < 1).all()


class TestRescaleColumns:
    """Tests for rescale_columns and rescale_image."""

    def test_output_has_exact_target_size(self, random_image):
        out = rescale_image(random_image(100, 37), 16, 24)
        assert out.size == (16, 24)
        assert out.pixels.dtype == np.uint8

    def test_uniform_image_stays_uniform(self):
        source = Image.filled(40, 50, (12, 130, 250))
        out = rescale_image(source, 16, 16)
        assert (out.pixels == np.array([12, 130, 250], dtype=np.uint8)).all()

    def test_values_clamped_to_byte_range(self):
        # a checkerboard overshoots with Catmull-Rom; results must stay bytes
        checker = (np.indices((40, 40)).sum(axis=0) % 2 * 255).astype(np.uint8)
        source = Image(pixels=np.repeat(checker[:, :, None], 3, axis=2))
        out = rescale_image(source, 17, 13)
        assert out.pixels.min() >= 0 and out.pixels.max() <= 255

    def test_source_is_not_modified(self, random_image):
        source = random_image(30, 30)
        before = source.pixels.copy()
        rescale_image(source, 8, 8)
        assert np.array_equal(source.pixels, before)

    def test_writes_only_assigned_columns(self, random_image):
        source = random_image(50, 50)
        target = Image.filled(20, 20, (1, 2, 3))
        rescale_columns(source, target, ColumnRange(5, 9))
        untouched = np.concatenate([target.pixels[:, :5], target.pixels[:, 9:]], axis=1)
        assert (untouched == np.array([1, 2, 3], dtype=np.uint8)).all()

    def test_empty_range_is_noop(self, random_image):
        target = Image.filled(8, 8, (9, 9, 9))
        rescale_columns(random_image(20, 20), target, ColumnRange(3, 3))
        assert (target.pixels == 9).all()

    @pytest.mark.parametrize("count", [2, 3, 5])
    def test_column_split_matches_single_pass(self, random_image, count):
        source = random_image(90, 70, seed=11)
        whole = rescale_image(source, 33, 29)
        split = Image.blank(33, 29)
        for columns in partition(29, count):
            rescale_columns(source, split, columns)
        assert np.array_equal(whole.pixels, split.pixels)

    def test_matches_single_point_sampler(self, random_image):
        source = random_image(45, 31, seed=5)
        out = rescale_image(source, 12, 9)
        for i in (0, 5, 11):
            for j in (0, 4, 8):
                u = np.float32(i) / np.float32(11)
                v = np.float32(j) / np.float32(8)
                assert sample_bicubic(source, u, v) == tuple(int(c) for c in out.pixels[i, j])

    def test_corners_map_to_source_corners_on_flat_regions(self):
        source = Image.filled(64, 64, (50, 50, 50))
        source.pixels[:8, :8] = (200, 10, 90)
        out = rescale_image(source, 16, 16)
        assert tuple(out.pixels[0, 0]) == (200, 10, 90)
        assert tuple(out.pixels[15, 15]) == (50, 50, 50)
