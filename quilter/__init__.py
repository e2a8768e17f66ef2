"""Image Quilting for Texture Synthesis.

This package implements the Efros & Freeman Image Quilting algorithm:
square patches sampled from a small source texture are stitched into a
larger canvas along minimum-error seams.

Core classes and functions are exposed for use.
"""

__version__ = '0.2.0'

# Core classes for quilting
from .quilting import QuiltSynthesizer, compute_output_grid
from .seam import SeamPathFinder

from .exceptions import (
    QuiltingError,
    InvalidDimensionError,
    InvalidConfigurationError,
    InvalidSurfaceError,
    OutputSizeWarning
)

# Utility functions
from .utils import (
    load_texture,
    save_image,
    visualize_results,
    draw_seams,
    setup_logging
)

# Public API exposed by `from quilter import *`
__all__ = [
    'QuiltSynthesizer',
    'SeamPathFinder',
    'compute_output_grid',
    'QuiltingError',
    'InvalidDimensionError',
    'InvalidConfigurationError',
    'InvalidSurfaceError',
    'OutputSizeWarning',
    'load_texture',
    'save_image',
    'visualize_results',
    'draw_seams',
    'setup_logging'
]
