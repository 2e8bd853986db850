"""Shared data models for the image SEO pipeline."""

import base64
import os
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exceptions import ConfigurationError, UnsupportedFormatError

# Near-lossless rather than lossless; kept at the value the service has always used.
JPEG_QUALITY = 95
PNG_COMPRESSION_LEVEL = 9

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
PROCESSOR_CHOICES = ("serial", "multithread", "asyncio")


class ImageFormat(str, Enum):
    """Normalized image formats the pipeline can encode."""

    JPEG = "jpeg"
    PNG = "png"

    @classmethod
    def from_media_type(cls, media_type: str) -> "ImageFormat":
        """Map a declared media type such as ``image/jpg`` onto a format."""
        subtype = (media_type or "").strip().lower().split("/")[-1]
        if subtype == "jpg":
            subtype = "jpeg"
        try:
            return cls(subtype)
        except ValueError:
            raise UnsupportedFormatError(
                "Only JPEG and PNG formats are supported"
            ) from None

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else "png"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"


class EncodingProfile(BaseModel):
    """Quality parameters applied when re-encoding one format."""

    model_config = ConfigDict(frozen=True)

    image_format: ImageFormat
    pil_format: str
    save_options: Dict[str, Any] = Field(default_factory=dict)


ENCODING_PROFILES: Mapping[ImageFormat, EncodingProfile] = MappingProxyType(
    {
        ImageFormat.JPEG: EncodingProfile(
            image_format=ImageFormat.JPEG,
            pil_format="JPEG",
            save_options={
                "quality": JPEG_QUALITY,
                "optimize": True,
                "progressive": True,
            },
        ),
        ImageFormat.PNG: EncodingProfile(
            image_format=ImageFormat.PNG,
            pil_format="PNG",
            save_options={
                "compress_level": PNG_COMPRESSION_LEVEL,
                "optimize": True,
            },
        ),
    }
)


class SourceImage(BaseModel):
    """An uploaded image entering the pipeline."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    media_type: str
    original_name: str
    size: int = 0

    @model_validator(mode="before")
    @classmethod
    def _default_size(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("size"):
            values = dict(values)
            values["size"] = len(values.get("data") or b"")
        return values


class ProcessedImage(BaseModel):
    """Result of successfully processing a single image."""

    original_name: str
    optimized_name: str
    encoded_data: bytes
    description: str
    keyword: str
    original_size: int
    encoded_size: int
    compression_ratio: str

    def to_response(self, include_data: bool = True) -> Dict[str, Any]:
        """Render the image the way the compress endpoint returns it."""
        response: Dict[str, Any] = {
            "originalName": self.original_name,
            "optimizedName": self.optimized_name,
            "aiDescription": self.description,
            "secondaryKeyword": self.keyword,
            "originalSize": self.original_size,
            "compressedSize": self.encoded_size,
            "compressionRatio": self.compression_ratio,
        }
        if include_data:
            response["compressedBuffer"] = base64.b64encode(
                self.encoded_data
            ).decode("ascii")
        return response


class ProcessingFailure(BaseModel):
    """A single image that could not be processed."""

    original_name: str
    error: str


class BatchResult(BaseModel):
    """Aggregated outcome of one batch invocation."""

    processed: List[ProcessedImage] = Field(default_factory=list)
    failures: List[ProcessingFailure] = Field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return len(self.processed)

    @property
    def total_failed(self) -> int:
        return len(self.failures)

    @property
    def success(self) -> bool:
        return not self.failures

    def to_response(self, include_data: bool = True) -> Dict[str, Any]:
        """Render the batch in the partial-failure response shape."""
        return {
            "success": self.success,
            "totalProcessed": self.total_processed,
            "totalFailed": self.total_failed,
            "images": [img.to_response(include_data) for img in self.processed],
            "errors": [
                {"file": failure.original_name, "error": failure.error}
                for failure in self.failures
            ]
            or None,
        }


class WorkItem(BaseModel):
    """Represents one image paired with the keyword it will be named after."""

    index: int
    image: SourceImage
    keyword: str


class PipelineConfig(BaseModel):
    """Configuration for the processing pipeline."""

    openai_api_key: Optional[str] = None
    vision_model: str = "gpt-4o-mini"
    vision_timeout: float = 30.0
    vision_max_tokens: int = 50
    vision_temperature: float = 0.7
    processor: str = "serial"
    max_workers: Optional[int] = None
    describe_concurrency: int = 4
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    debug: bool = False

    @model_validator(mode="after")
    def _check_values(self) -> "PipelineConfig":
        if self.processor not in PROCESSOR_CHOICES:
            raise ConfigurationError(
                f"Unknown processor '{self.processor}', "
                f"expected one of {', '.join(PROCESSOR_CHOICES)}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError("max_workers must be a positive integer")
        if self.describe_concurrency < 1:
            raise ConfigurationError("describe_concurrency must be a positive integer")
        return self

    @property
    def vision_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls, **overrides: Any) -> "PipelineConfig":
        """
        Build a configuration from environment variables.

        Environment Variables:
            OPENAI_API_KEY: Enables vision descriptions when set
            IMAGE_SEO_VISION_MODEL: Chat model used for descriptions
            IMAGE_SEO_VISION_TIMEOUT: Seconds before a description call gives up
            IMAGE_SEO_PROCESSOR: serial, multithread or asyncio
            IMAGE_SEO_MAX_WORKERS: Worker pool bound
            IMAGE_SEO_DESCRIBE_CONCURRENCY: Concurrent description calls
        """
        values: Dict[str, Any] = {}
        env_map = {
            "openai_api_key": "OPENAI_API_KEY",
            "vision_model": "IMAGE_SEO_VISION_MODEL",
            "vision_timeout": "IMAGE_SEO_VISION_TIMEOUT",
            "processor": "IMAGE_SEO_PROCESSOR",
            "max_workers": "IMAGE_SEO_MAX_WORKERS",
            "describe_concurrency": "IMAGE_SEO_DESCRIBE_CONCURRENCY",
        }
        for field_name, env_name in env_map.items():
            env_value = os.getenv(env_name)
            if env_value:
                values[field_name] = env_value
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ConfigurationError:
            raise
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
