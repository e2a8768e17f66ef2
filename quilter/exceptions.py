"""Errors and warnings raised by the quilting pipeline."""


class QuiltingError(ValueError):
    """Base class for every error raised by the quilter package."""


class InvalidDimensionError(QuiltingError):
    """The requested output is smaller than a single patch."""


class InvalidConfigurationError(QuiltingError):
    """Patch, overlap or sampling parameters cannot produce a valid quilt."""


class InvalidSurfaceError(QuiltingError):
    """An error surface handed to the seam finder is malformed."""


class OutputSizeWarning(UserWarning):
    """The requested output size was rounded to the nearest patch grid."""
