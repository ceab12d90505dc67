"""Geras: shrink PDFs by orchestrating qpdf and Ghostscript."""

from .errors import (
    AssemblyError, CompressionError, InvalidInputError, LaunchFailedError,
    MissingBinaryError, MissingResourcesError, NoImagesProducedError,
    ProcessFailedError, Termination, format_error,
)
from .options import (
    CleanupOptions, LossyOptions, LossyPreset, RasterizeOptions, Strategy,
)
from .service import CompressionResult, compress, default_output_path, submit

__version__ = "1.0.0"

__all__ = [
    "AssemblyError",
    "CleanupOptions",
    "CompressionError",
    "CompressionResult",
    "InvalidInputError",
    "LaunchFailedError",
    "LossyOptions",
    "LossyPreset",
    "MissingBinaryError",
    "MissingResourcesError",
    "NoImagesProducedError",
    "ProcessFailedError",
    "RasterizeOptions",
    "Strategy",
    "Termination",
    "compress",
    "default_output_path",
    "format_error",
    "submit",
]
