"""
Utility functions for the quilter package.

This module provides helper functions for loading and saving textures,
configuring the package logger, and rendering synthesis diagnostics.
"""

import logging
import os
from typing import Optional, Sequence, Tuple

import cv2
import matplotlib.pyplot as plt
import numpy as np
from PIL import Image

from .config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL, name: str = "quilter") -> logging.Logger:
    """
    Configure and return a logger for the package.

    Args:
        level: Logging level name ('DEBUG', 'INFO', ...)
        name: Logger name; 'quilter' covers every module of the package

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def load_texture(path: str, grayscale: bool = False) -> np.ndarray:
    """Reads a source texture for quilting.

    Palette, alpha and 16-bit images are flattened to 8-bit RGB, or to a
    single luminance plane with ``grayscale=True``. The synthesizer accepts
    both (H, W, 3) and (H, W) arrays.

    Raises:
        ValueError: If the file is missing or not a readable image.
    """
    mode = 'L' if grayscale else 'RGB'
    try:
        with Image.open(path) as image:
            if image.mode != mode:
                image = image.convert(mode)
            return np.array(image)
    except OSError as e:
        raise ValueError(f"Could not load texture from {path}: {e}") from e


def save_image(image: np.ndarray, path: str):
    """Writes a quilt (or any 8-bit preview) to ``path``, creating parent directories.

    Float and wide integer arrays are clipped into [0, 255] first; 2-D arrays
    are written as grayscale.

    Raises:
        ValueError: If Pillow cannot encode the array or write the file.
    """
    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    try:
        dir_path = os.path.dirname(path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)
        Image.fromarray(image).save(path)
    except (OSError, ValueError) as e:
        raise ValueError(f"Could not save image to {path}: {e}") from e


def _figure_to_array(fig) -> np.ndarray:
    fig.canvas.draw()
    # RGBA buffer; drop alpha
    img = np.asarray(fig.canvas.buffer_rgba())[:, :, :3].copy()
    plt.close(fig) # Close the figure to free memory
    return img


def visualize_results(original_texture: np.ndarray, synthesized_texture: np.ndarray,
                      title: Optional[str] = None, save_path: Optional[str] = None) -> np.ndarray:
    """Visualizes source and synthesized textures side-by-side using Matplotlib.

    Args:
        original_texture: The source texture.
        synthesized_texture: The quilted canvas.
        title: Optional title for the entire visualization.
        save_path: Optional path to save the visualization image.

    Returns:
        A NumPy array representing the visualization image (RGB).
    """
    fig = plt.figure(figsize=(12, 6))

    plt.subplot(1, 2, 1)
    plt.imshow(original_texture, cmap='gray' if original_texture.ndim == 2 else None)
    plt.title('Source Texture')
    plt.axis('off')

    plt.subplot(1, 2, 2)
    plt.imshow(synthesized_texture, cmap='gray' if synthesized_texture.ndim == 2 else None)
    plt.title(f'Quilted Texture ({synthesized_texture.shape[1]}x{synthesized_texture.shape[0]})')
    plt.axis('off')

    if title:
        plt.suptitle(title, fontsize=16)

    plt.tight_layout()

    if save_path:
        save_dir = os.path.dirname(save_path)
        if save_dir:
            os.makedirs(save_dir, exist_ok=True)
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return _figure_to_array(fig)


def draw_seams(canvas: np.ndarray, seams: Sequence[np.ndarray],
               color: Tuple[int, int, int] = (255, 0, 0), thickness: int = 1) -> np.ndarray:
    """Overlays seam paths on a copy of the canvas.

    Args:
        canvas: Synthesized canvas (H, W, 3) or (H, W).
        seams: Arrays of (x, y) canvas points, as recorded in
            ``QuiltSynthesizer.seams``.
        color: RGB color of the seam lines.
        thickness: Line thickness in pixels.

    Returns:
        An RGB uint8 image with the seams drawn on top.
    """
    overlay = canvas
    if overlay.dtype != np.uint8:
        overlay = np.clip(overlay, 0, 255).astype(np.uint8)
    if overlay.ndim == 2:
        overlay = cv2.cvtColor(overlay, cv2.COLOR_GRAY2RGB)
    else:
        overlay = overlay[:, :, :3].copy()

    for seam in seams:
        if len(seam) < 2:
            continue
        pts = np.asarray(seam, dtype=np.int32).reshape(-1, 1, 2)
        cv2.polylines(overlay, [pts], False, color, thickness)
    return overlay
