"""Testing utilities and fakes for the image SEO pipeline."""

from .fakes import (
    FakeCodec,
    FakeLogger,
    FakeS3Client,
    FakeVisionClient,
    S3Bucket,
    S3Object,
    create_source_image,
    create_test_image,
    setup_test_s3_environment,
)

__all__ = [
    "FakeCodec",
    "FakeLogger",
    "FakeS3Client",
    "FakeVisionClient",
    "S3Bucket",
    "S3Object",
    "create_source_image",
    "create_test_image",
    "setup_test_s3_environment",
]
