"""Error taxonomy for the conversion pipeline.

Batch-level errors (output root creation, discovery, no input files) abort a run
before any job is dispatched. Per-job errors are recorded by the scheduler and the
first one is raised once every job has finished.
"""

from pathlib import Path
from typing import Optional


class ConversionError(Exception):
    """Base class for all conversion failures."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.path = path


class ConversionIOError(ConversionError, OSError):
    """File or directory read, write or creation failure."""


class NoInputFilesError(ConversionError):
    """Discovery found no eligible image files."""

    def __init__(self, message: str = "No supported image files found in input directory", path: Optional[Path] = None):
        super().__init__(message, path)


class UnsupportedFormatError(ConversionError):
    """File extension is not one of the supported image formats."""


class DecodeError(ConversionError):
    """Input bytes could not be decoded as the expected image format."""


class EncodeError(ConversionError):
    """WebP encoding failed."""
