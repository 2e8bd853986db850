"""Core utilities and shared components for the image SEO pipeline."""

from .archive import (
    ArchiveEntry,
    ArchiveStream,
    DownloadPayload,
    archive_headers,
    archive_processed_images,
    build_archive,
    prepare_download,
    write_archive,
)
from .exceptions import (
    ImageSeoPipelineError,
    CompressionError,
    ConfigurationError,
    ImageProcessingError,
    PackagingError,
    StorageError,
    UnsupportedFormatError,
    UploadValidationError,
)
from .filenames import normalize_description, normalize_keyword, synthesize_filename
from .logging_config import get_logger, set_log_level, setup_logger
from .models import (
    ENCODING_PROFILES,
    BatchResult,
    EncodingProfile,
    ImageFormat,
    PipelineConfig,
    ProcessedImage,
    ProcessingFailure,
    SourceImage,
    WorkItem,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveStream",
    "DownloadPayload",
    "archive_headers",
    "archive_processed_images",
    "build_archive",
    "prepare_download",
    "write_archive",
    "ImageSeoPipelineError",
    "CompressionError",
    "ConfigurationError",
    "ImageProcessingError",
    "PackagingError",
    "StorageError",
    "UnsupportedFormatError",
    "UploadValidationError",
    "normalize_description",
    "normalize_keyword",
    "synthesize_filename",
    "get_logger",
    "set_log_level",
    "setup_logger",
    "ENCODING_PROFILES",
    "BatchResult",
    "EncodingProfile",
    "ImageFormat",
    "PipelineConfig",
    "ProcessedImage",
    "ProcessingFailure",
    "SourceImage",
    "WorkItem",
]
