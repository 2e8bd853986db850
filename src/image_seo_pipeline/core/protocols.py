"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol, Union

from .models import EncodingProfile, ProcessedImage, ProcessingFailure, SourceImage

ItemOutcome = Union[ProcessedImage, ProcessingFailure]


class S3ClientProtocol(Protocol):
    """Protocol for S3 client operations."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...

    def get_paginator(self, operation_name: str) -> Any:
        """Get paginator for S3 operations."""
        ...


class CodecProtocol(Protocol):
    """Protocol for the image codec capability."""

    def encode(self, image_bytes: bytes, profile: EncodingProfile) -> bytes:
        """Re-encode image bytes under the given profile."""
        ...


class VisionClientProtocol(Protocol):
    """Protocol for a vision-capable text generation capability."""

    def describe_image(self, image_bytes: bytes, mime_type: str, prompt: str) -> str:
        """Return the model's text reply for an inline image and a prompt."""
        ...


class LoggerProtocol(Protocol):
    """
    Protocol for structured logging operations.

    The optional second argument is a LogContext, not a %-format argument,
    so a plain logging.Logger does not satisfy it; wrap one in a
    StructuredLogger instead.
    """

    def debug(
        self, message: str, context: Optional[Any] = None, **kwargs: Any
    ) -> None:
        """Log debug message."""
        ...

    def info(
        self, message: str, context: Optional[Any] = None, **kwargs: Any
    ) -> None:
        """Log info message."""
        ...

    def warning(
        self, message: str, context: Optional[Any] = None, **kwargs: Any
    ) -> None:
        """Log warning message."""
        ...

    def error(
        self, message: str, context: Optional[Any] = None, **kwargs: Any
    ) -> None:
        """Log error message."""
        ...


class ProcessingService(ABC):
    """Abstract service for processing images."""

    @abstractmethod
    def process_image(self, image: SourceImage, keyword: str) -> ProcessedImage:
        """Process a single image."""
        ...

