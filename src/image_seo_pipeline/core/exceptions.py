"""Custom exceptions for the image SEO pipeline."""

from __future__ import annotations

from typing import List, Optional


class ImageSeoPipelineError(Exception):
    """Base exception for all pipeline errors."""


class ConfigurationError(ImageSeoPipelineError):
    """Error raised for invalid configuration options."""


class UnsupportedFormatError(ImageSeoPipelineError):
    """Error raised when an image media type is neither JPEG nor PNG."""


class CompressionError(ImageSeoPipelineError):
    """Error raised when the codec fails to re-encode an image."""


class ImageProcessingError(ImageSeoPipelineError):
    """Error raised when processing a single image fails.

    Carries the display name of the image so the batch can report it.
    """

    def __init__(self, message: str, original_name: str = "") -> None:
        super().__init__(message)
        self.original_name = original_name


class PackagingError(ImageSeoPipelineError):
    """Error raised when an archive cannot be created at all."""


class UploadValidationError(ImageSeoPipelineError):
    """Error raised when uploaded files violate the intake contract."""

    def __init__(self, message: str, invalid_files: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.invalid_files = list(invalid_files or [])


class StorageError(ImageSeoPipelineError):
    """Error raised for S3 related failures."""
