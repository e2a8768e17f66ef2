"""Tests for image I/O, logging and diagnostics helpers."""

import logging

import numpy as np
import pytest

from quilter import draw_seams, load_texture, save_image, setup_logging, visualize_results
from quilter.config import (
    validate_patch_geometry,
    validate_path_cost_weight,
    validate_tolerance,
    validate_workers,
)
from quilter.exceptions import InvalidConfigurationError


class TestImageIO:
    """Pillow-backed loading and saving."""

    def test_save_then_load(self, tmp_path, random_texture):
        path = tmp_path / "nested" / "texture.png"
        save_image(random_texture, str(path))

        loaded = load_texture(str(path))
        np.testing.assert_array_equal(loaded, random_texture)

    def test_save_clips_float_images(self, tmp_path):
        path = tmp_path / "float.png"
        image = np.full((4, 4, 3), 300.0)
        image[0, 0] = -5.0
        save_image(image, str(path))

        loaded = load_texture(str(path))
        assert loaded[1, 1, 0] == 255
        assert loaded[0, 0, 0] == 0

    def test_grayscale_loads_as_rgb(self, tmp_path):
        path = tmp_path / "gray.png"
        save_image(np.full((5, 6), 77, dtype=np.uint8), str(path))

        loaded = load_texture(str(path))
        assert loaded.shape == (5, 6, 3)
        assert np.all(loaded == 77)

    def test_grayscale_flag_returns_luminance_plane(self, tmp_path):
        path = tmp_path / "red.png"
        image = np.zeros((5, 6, 3), dtype=np.uint8)
        image[..., 0] = 255
        save_image(image, str(path))

        loaded = load_texture(str(path), grayscale=True)
        assert loaded.shape == (5, 6)
        assert loaded.dtype == np.uint8
        # ITU-R 601-2 luma of pure red
        assert np.all(loaded == 76)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError):
            load_texture(str(tmp_path / "missing.png"))


class TestDiagnostics:
    """Seam overlays and comparison figures."""

    def test_draw_seams(self):
        canvas = np.zeros((10, 10, 3), dtype=np.uint8)
        seam = np.array([(4, y) for y in range(10)], dtype=np.int32)

        overlay = draw_seams(canvas, [seam], color=(255, 0, 0))

        assert overlay.shape == (10, 10, 3)
        assert np.all(overlay[:, 4] == (255, 0, 0))
        assert np.all(overlay[:, 0] == 0)
        assert np.all(canvas == 0)

    def test_draw_seams_on_grayscale(self):
        overlay = draw_seams(np.zeros((6, 6), dtype=np.uint8),
                             [np.array([(0, 2), (5, 2)], dtype=np.int32)], color=(0, 255, 0))
        assert overlay.shape == (6, 6, 3)
        assert np.all(overlay[2] == (0, 255, 0))

    def test_visualize_results(self, tmp_path, random_texture):
        save_path = tmp_path / "figs" / "comparison.png"
        img = visualize_results(random_texture, random_texture, title="Check", save_path=str(save_path))

        assert img.ndim == 3 and img.shape[2] == 3
        assert img.dtype == np.uint8
        assert save_path.exists()


class TestLogging:

    def test_setup_logging_is_idempotent(self):
        logger = setup_logging("DEBUG", name="quilter.test")
        setup_logging("WARNING", name="quilter.test")

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING


class TestConfigValidation:
    """Validation helpers in quilter.config."""

    def test_patch_geometry_returns_step(self):
        assert validate_patch_geometry(36, 6) == 30
        assert validate_patch_geometry(np.int64(10), 2) == 8

    @pytest.mark.parametrize("patch_size, overlap_size", [
        (10, 10), (10, 0), (-1, 1), (10.0, 2), (10, True),
    ])
    def test_bad_geometry(self, patch_size, overlap_size):
        with pytest.raises(InvalidConfigurationError):
            validate_patch_geometry(patch_size, overlap_size)

    def test_ranges(self):
        validate_path_cost_weight(0.0)
        validate_path_cost_weight(1)
        validate_tolerance(0)
        validate_workers(4)

        with pytest.raises(InvalidConfigurationError):
            validate_path_cost_weight(-0.01)
        with pytest.raises(InvalidConfigurationError):
            validate_tolerance("0.1")
        with pytest.raises(InvalidConfigurationError):
            validate_workers(1.5)
