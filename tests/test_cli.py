"""Tests for the msq command-line interface."""

import cv2
import numpy as np
import pytest

import make_contours
import msq
from config import EXIT_OK, EXIT_THREAD_FAILURE, EXIT_USAGE
from image_io import load_image, save_image
from marching import Image, PipelineAbortedError
from marching import orchestrator as orchestrator_module


@pytest.fixture
def input_file(tmp_path):
    image = Image.filled(32, 40, (240, 240, 240))
    image.pixels[8:24, 8:30] = (10, 10, 10)
    path = tmp_path / "in.ppm"
    save_image(image, path)
    return path


def _run(args, contour_dir):
    return msq.main([*map(str, args), "--contours-dir", str(contour_dir), "-q"])


class TestMsqMain:
    """Tests for msq.main."""

    def test_success_writes_output(self, tmp_path, input_file, contour_dir):
        out = tmp_path / "out.ppm"
        assert _run([input_file, out, 2], contour_dir) == EXIT_OK
        result = load_image(out)
        assert result.size == (32, 40)

    def test_output_identical_across_thread_counts(self, tmp_path, input_file, contour_dir):
        outputs = []
        for count in (1, 2, 4, 8):
            out = tmp_path / f"out{count}.ppm"
            assert _run([input_file, out, count], contour_dir) == EXIT_OK
            outputs.append(out.read_bytes())
        assert all(data == outputs[0] for data in outputs)

    def test_rescale_bounds_from_flags(self, tmp_path, input_file, contour_dir):
        out = tmp_path / "out.ppm"
        code = _run([input_file, out, 3, "--max-x", 16, "--max-y", 24], contour_dir)
        assert code == EXIT_OK
        assert load_image(out).size == (16, 24)

    def test_max_x_bounds_file_width(self, tmp_path, contour_dir):
        # 40 wide, 32 high on disk
        path = tmp_path / "wide.ppm"
        cv2.imwrite(str(path), np.full((32, 40, 3), 200, dtype=np.uint8))
        out = tmp_path / "out.ppm"
        code = _run([path, out, 2, "--max-x", 16, "--max-y", 24], contour_dir)
        assert code == EXIT_OK
        height, width = cv2.imread(str(out)).shape[:2]
        assert (width, height) == (16, 24)

    def test_width_within_bounds_is_not_rescaled(self, tmp_path, contour_dir):
        # 40 wide, 16 high: only the height is compared against --max-y
        path = tmp_path / "wide.ppm"
        cv2.imwrite(str(path), np.full((16, 40, 3), 200, dtype=np.uint8))
        out = tmp_path / "out.ppm"
        code = _run([path, out, 2, "--max-x", 40, "--max-y", 24], contour_dir)
        assert code == EXIT_OK
        assert cv2.imread(str(out)).shape[:2] == (16, 40)

    def test_missing_arguments_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            msq.main(["in.ppm", "out.ppm"])
        assert excinfo.value.code == EXIT_USAGE
        assert "usage" in capsys.readouterr().err

    @pytest.mark.parametrize("count", ["0", "-2", "four"])
    def test_invalid_thread_count_is_usage_error(self, count):
        with pytest.raises(SystemExit) as excinfo:
            msq.main(["in.ppm", "out.ppm", count])
        assert excinfo.value.code == EXIT_USAGE

    def test_missing_input(self, tmp_path, contour_dir):
        out = tmp_path / "out.ppm"
        assert _run([tmp_path / "missing.ppm", out, 2], contour_dir) == EXIT_USAGE
        assert not out.exists()

    def test_missing_templates(self, tmp_path, input_file):
        out = tmp_path / "out.ppm"
        assert _run([input_file, out, 2], tmp_path / "no-contours") == EXIT_USAGE
        assert not out.exists()

    def test_template_size_mismatch(self, tmp_path, input_file, contour_dir):
        out = tmp_path / "out.ppm"
        assert _run([input_file, out, 2, "--step", 4], contour_dir) == EXIT_USAGE
        assert not out.exists()

    def test_invalid_sigma(self, tmp_path, input_file, contour_dir):
        out = tmp_path / "out.ppm"
        assert _run([input_file, out, 2, "--sigma", 300], contour_dir) == EXIT_USAGE

    def test_worker_failure_writes_nothing(self, tmp_path, input_file, contour_dir, monkeypatch):
        def aborted(*args, **kwargs):
            raise PipelineAbortedError("Worker failed: boom")

        monkeypatch.setattr(msq, "run_marching_squares", aborted)
        out = tmp_path / "out.ppm"
        assert _run([input_file, out, 2], contour_dir) == EXIT_THREAD_FAILURE
        assert not out.exists()

    def test_allocation_failure(self, tmp_path, input_file, contour_dir, monkeypatch):
        def no_memory(*args, **kwargs):
            raise MemoryError

        monkeypatch.setattr(msq, "run_marching_squares", no_memory)
        out = tmp_path / "out.ppm"
        assert _run([input_file, out, 2], contour_dir) == EXIT_USAGE
        assert not out.exists()

    def test_worker_allocation_failure(self, tmp_path, contour_dir, monkeypatch):
        def no_memory(source, target, columns):
            raise MemoryError("cannot allocate")

        monkeypatch.setattr(orchestrator_module, "rescale_columns", no_memory)
        path = tmp_path / "big.ppm"
        save_image(Image.filled(100, 100, (50, 50, 50)), path)
        out = tmp_path / "out.ppm"
        code = _run([path, out, 2, "--max-x", 64, "--max-y", 64], contour_dir)
        assert code == EXIT_USAGE
        assert not out.exists()

    def test_dark_region_produces_contour_pixels(self, tmp_path, input_file, contour_dir):
        out = tmp_path / "out.ppm"
        _run([input_file, out, 2], contour_dir)
        pixels = load_image(out).pixels
        # the stamped area is white template background plus black contour lines
        stamped = pixels[:32, :40]
        assert set(np.unique(stamped).tolist()) <= {0, 255}
        assert (stamped == 0).any()


class TestMakeContoursMain:
    """Tests for make_contours.main."""

    def test_writes_full_set(self, tmp_path):
        directory = tmp_path / "set"
        assert make_contours.main([str(directory), "--step", "8", "-q"]) == 0
        assert sorted(p.name for p in directory.iterdir()) == sorted(
            f"{code}.ppm" for code in range(16)
        )

    def test_rendered_set_drives_msq(self, tmp_path, input_file):
        directory = tmp_path / "set"
        make_contours.main([str(directory), "-q"])
        out = tmp_path / "out.ppm"
        assert _run([input_file, out, 4], directory) == EXIT_OK

    def test_too_small_step_fails(self, tmp_path):
        assert make_contours.main([str(tmp_path / "set"), "--step", "1", "-q"]) == 1
