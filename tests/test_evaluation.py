"""Tests for quality metrics."""

import numpy as np
import pytest

from quilter.evaluation import (
    compute_histogram_distance,
    compute_ssim_patches,
    evaluate_texture_quality,
)


class TestMetrics:

    def test_ssim_of_identical_solid_images(self, solid_texture):
        score = compute_ssim_patches(solid_texture, solid_texture.copy(), patch_size=16, rng=0)
        assert score == pytest.approx(1.0)

    def test_ssim_too_small(self):
        tiny = np.zeros((5, 5, 3), dtype=np.uint8)
        assert compute_ssim_patches(tiny, tiny) == 0.0

    def test_ssim_is_seeded(self, random_texture):
        other = np.roll(random_texture, 5, axis=1)
        a = compute_ssim_patches(random_texture, other, patch_size=16, rng=3)
        b = compute_ssim_patches(random_texture, other, patch_size=16, rng=3)
        assert a == b

    def test_histogram_distance(self, random_texture, solid_texture):
        assert compute_histogram_distance(random_texture, random_texture) == pytest.approx(0.0)
        assert compute_histogram_distance(random_texture, solid_texture) > 0.5

    def test_evaluate_texture_quality_keys(self, random_texture):
        results = evaluate_texture_quality(random_texture, random_texture)

        assert set(results) == {'ssim', 'histogram_distance', 'edge_consistency', 'overall_score'}
        assert results['edge_consistency'] == pytest.approx(1.0)
        assert results['histogram_distance'] == pytest.approx(0.0)
