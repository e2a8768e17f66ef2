"""
Configuration constants for the quilter package.

Default synthesis parameters live here together with the validation helpers
used by :class:`quilter.quilting.QuiltSynthesizer` before a run starts.

Constants:
    DEFAULT_PATCH_SIZE: Side of the square patches, in pixels
    DEFAULT_OVERLAP_SIZE: Width of the band shared by neighbouring patches
    DEFAULT_TOLERANCE: Fraction above the best overlap error still accepted
    DEFAULT_PATH_COST_WEIGHT: Weight of the seam cost in candidate ranking
    SUPPORTED_IMAGE_FORMATS: File extensions picked up by batch processing
    LOG_LEVEL: Default level of the package logger
"""

from numbers import Integral
from typing import Tuple

from .exceptions import InvalidConfigurationError

# ========== Patch Settings ==========
DEFAULT_PATCH_SIZE: int = 36
"""Side of the square patches in pixels"""

DEFAULT_OVERLAP_SIZE: int = 6
"""Overlap band width in pixels (must stay below the patch size)"""

# ========== Sampling Settings ==========
DEFAULT_TOLERANCE: float = 0.1
"""Candidates up to 10% above the best overlap error are sampled"""

DEFAULT_PATH_COST_WEIGHT: float = 0.0
"""Blend between overlap SSD and seam cost; stored but not applied yet"""

DEFAULT_WORKERS: int = 1
"""Number of processes scanning candidate patches"""

# ========== File Settings ==========
SUPPORTED_IMAGE_FORMATS: Tuple[str, ...] = (
    ".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".gif"
)
"""Image extensions recognised by the batch script"""

# ========== Logging Settings ==========
LOG_LEVEL: str = "INFO"
"""Logging level: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'"""


def validate_patch_geometry(patch_size: int, overlap_size: int) -> int:
    """
    Validate patch and overlap sizes and return the placement step.

    Args:
        patch_size: Side of the square patches
        overlap_size: Width of the overlap band

    Returns:
        int: Distance between the origins of neighbouring patches

    Raises:
        InvalidConfigurationError: If either size is not a positive integer
            or the overlap does not fit inside a patch

    Example:
        >>> validate_patch_geometry(36, 6)
        30
    """
    if not isinstance(patch_size, Integral) or isinstance(patch_size, bool):
        raise InvalidConfigurationError(
            f"Patch size must be an integer, got {type(patch_size).__name__}"
        )
    if not isinstance(overlap_size, Integral) or isinstance(overlap_size, bool):
        raise InvalidConfigurationError(
            f"Overlap size must be an integer, got {type(overlap_size).__name__}"
        )
    if patch_size <= 0:
        raise InvalidConfigurationError(f"Patch size must be positive, got {patch_size}")
    if overlap_size <= 0:
        raise InvalidConfigurationError(f"Overlap size must be positive, got {overlap_size}")

    step = patch_size - overlap_size
    if step <= 0:
        raise InvalidConfigurationError(
            f"Overlap size {overlap_size} must be smaller than patch size {patch_size}"
        )
    return step


def validate_path_cost_weight(weight: float) -> None:
    """
    Validate that the path cost weight lies in [0, 1].

    Raises:
        InvalidConfigurationError: If weight is not numeric or out of range
    """
    if not isinstance(weight, (int, float)) or isinstance(weight, bool):
        raise InvalidConfigurationError(
            f"Path cost weight must be numeric, got {type(weight).__name__}"
        )
    if not 0 <= weight <= 1:
        raise InvalidConfigurationError(f"Path cost weight must be in range [0, 1], got {weight}")


def validate_tolerance(tolerance: float) -> None:
    """Validate the sampling tolerance (non-negative fraction)."""
    if not isinstance(tolerance, (int, float)) or isinstance(tolerance, bool):
        raise InvalidConfigurationError(
            f"Tolerance must be numeric, got {type(tolerance).__name__}"
        )
    if tolerance < 0:
        raise InvalidConfigurationError(f"Tolerance must be non-negative, got {tolerance}")


def validate_workers(workers: int) -> None:
    if not isinstance(workers, Integral) or isinstance(workers, bool) or workers < 1:
        raise InvalidConfigurationError(f"Workers must be a positive integer, got {workers!r}")
