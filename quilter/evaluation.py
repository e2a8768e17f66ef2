"""
Quality metrics comparing a quilted canvas with its source texture.
"""

import logging

import cv2
import numpy as np
from skimage.metrics import structural_similarity as ssim

logger = logging.getLogger(__name__)


def _as_channels(image):
    return image[:, :, None] if image.ndim == 2 else image


def compute_ssim_patches(original, synthesized, patch_size=64, num_patches=20, rng=None):
    """
    Compute SSIM between random patches from original and synthesized textures.

    Parameters:
    -----------
    original : ndarray
        Source texture
    synthesized : ndarray
        Quilted canvas
    patch_size : int
        Size of patches to compare
    num_patches : int
        Number of random patch pairs to sample
    rng : int or Generator, optional
        Random source for patch positions

    Returns:
    --------
    float
        Average SSIM value (0.0 when the images are too small to compare)
    """
    rng = np.random.default_rng(rng)
    original = _as_channels(original)
    synthesized = _as_channels(synthesized)
    h_orig, w_orig = original.shape[:2]
    h_synth, w_synth = synthesized.shape[:2]

    patch_size = min(patch_size, h_orig, w_orig, h_synth, w_synth)
    if patch_size < 7:  # smallest window SSIM accepts
        return 0.0
    win_size = min(7, patch_size if patch_size % 2 else patch_size - 1)

    ssim_values = []
    for _ in range(num_patches):
        i_orig = rng.integers(0, h_orig - patch_size + 1)
        j_orig = rng.integers(0, w_orig - patch_size + 1)
        patch_orig = original[i_orig:i_orig + patch_size, j_orig:j_orig + patch_size]

        i_synth = rng.integers(0, h_synth - patch_size + 1)
        j_synth = rng.integers(0, w_synth - patch_size + 1)
        patch_synth = synthesized[i_synth:i_synth + patch_size, j_synth:j_synth + patch_size]

        channel_ssims = [
            ssim(patch_orig[:, :, c], patch_synth[:, :, c], data_range=255, win_size=win_size)
            for c in range(original.shape[2])
        ]
        ssim_values.append(np.mean(channel_ssims))

    return float(np.mean(ssim_values))


def compute_histogram_distance(original, synthesized, bins=64):
    """
    Compute the chi-square distance between per-channel color histograms.

    Returns:
    --------
    float
        Average histogram distance across channels (0 for identical histograms)
    """
    original = np.ascontiguousarray(_as_channels(original), dtype=np.uint8)
    synthesized = np.ascontiguousarray(_as_channels(synthesized), dtype=np.uint8)

    distances = []
    for c in range(original.shape[2]):
        hist_orig = cv2.calcHist([original], [c], None, [bins], [0, 256]).flatten()
        hist_synth = cv2.calcHist([synthesized], [c], None, [bins], [0, 256]).flatten()

        hist_orig = hist_orig / hist_orig.sum()
        hist_synth = hist_synth / hist_synth.sum()

        distance = 0.5 * np.sum((hist_orig - hist_synth) ** 2 / (hist_orig + hist_synth + 1e-10))
        distances.append(distance)

    return float(np.mean(distances))


def _edge_density(image):
    image = np.clip(image, 0, 255).astype(np.uint8)
    gray = image if image.ndim == 2 else cv2.cvtColor(image[:, :, :3], cv2.COLOR_RGB2GRAY)
    edges = cv2.Canny(gray, 50, 150)
    return np.count_nonzero(edges) / edges.size


def evaluate_texture_quality(original, synthesized):
    """
    Evaluate how well a quilted canvas preserves the source texture.

    Returns:
    --------
    dict
        'ssim', 'histogram_distance', 'edge_consistency' and 'overall_score'
    """
    ssim_score = compute_ssim_patches(original, synthesized)
    hist_distance = compute_histogram_distance(original, synthesized)
    edge_consistency = 1.0 - abs(_edge_density(original) - _edge_density(synthesized))

    results = {
        'ssim': ssim_score,
        'histogram_distance': hist_distance,
        'edge_consistency': edge_consistency,
        'overall_score': (ssim_score + edge_consistency) / 2 - hist_distance / 10,
    }
    logger.info("SSIM %.4f, histogram distance %.4f, edge consistency %.4f",
                ssim_score, hist_distance, edge_consistency)
    return results
