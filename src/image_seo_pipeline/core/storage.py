"""S3 asset store: source images in, processed images and archives out."""

from typing import List, Optional, Sequence

from .archive import content_type_for
from .error_handling import retry_s3_operation, with_error_handling
from .models import ProcessedImage, SourceImage
from .protocols import LoggerProtocol, S3ClientProtocol
from .uploads import IMAGE_SUFFIXES, guess_media_type


def join_key(prefix: str, name: str) -> str:
    """Join an S3 prefix and an object name with exactly one slash."""
    if not prefix:
        return name
    return f"{prefix.rstrip('/')}/{name}"


class S3AssetStore:
    """Reads source images from and publishes results to S3."""

    def __init__(self, s3_client: S3ClientProtocol, logger: LoggerProtocol):
        self._s3_client = s3_client
        self._logger = logger

    @retry_s3_operation()
    @with_error_handling
    def list_images(self, bucket: str, prefix: str = "") -> List[str]:
        """List JPEG and PNG keys under a prefix."""
        list_prefix = prefix
        if prefix and not prefix.endswith("/"):
            list_prefix = prefix + "/"

        self._logger.debug(f"Listing images in s3://{bucket}/{list_prefix}")
        keys = []
        paginator = self._s3_client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=list_prefix):
            for obj in page.get("Contents", []):
                key = obj["Key"]
                if key.lower().endswith(IMAGE_SUFFIXES) and not key.endswith("/"):
                    keys.append(key)

        self._logger.info(f"Found {len(keys)} images in s3://{bucket}/{list_prefix}")
        return keys

    @retry_s3_operation()
    @with_error_handling
    def load_image(self, bucket: str, key: str) -> SourceImage:
        """Download one object as a SourceImage named after its key's basename."""
        self._logger.debug(f"Downloading s3://{bucket}/{key}")
        response = self._s3_client.get_object(Bucket=bucket, Key=key)
        data = response["Body"].read()
        name = key.rsplit("/", 1)[-1]
        media_type = response.get("ContentType") or ""
        if not media_type.startswith("image/"):
            media_type = guess_media_type(name)
        return SourceImage(
            data=data,
            media_type=media_type,
            original_name=name,
            size=len(data),
        )

    def load_images(self, bucket: str, keys: Sequence[str]) -> List[SourceImage]:
        return [self.load_image(bucket, key) for key in keys]

    @retry_s3_operation()
    @with_error_handling
    def put_bytes(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        """Upload raw bytes and return the key written."""
        self._logger.debug(f"Uploading s3://{bucket}/{key}")
        self._s3_client.put_object(
            Bucket=bucket, Key=key, Body=data, ContentType=content_type
        )
        return key

    def upload_processed(
        self, bucket: str, images: Sequence[ProcessedImage], prefix: str = ""
    ) -> List[str]:
        """Upload each processed image under its optimized name."""
        keys = []
        for image in images:
            keys.append(
                self.put_bytes(
                    bucket,
                    join_key(prefix, image.optimized_name),
                    image.encoded_data,
                    content_type_for(image.optimized_name),
                )
            )
        self._logger.info(f"Uploaded {len(keys)} images to s3://{bucket}/{prefix}")
        return keys

    def upload_archive(
        self, bucket: str, data: bytes, key: str, prefix: Optional[str] = ""
    ) -> str:
        """Upload a finished ZIP archive."""
        return self.put_bytes(bucket, join_key(prefix or "", key), data, "application/zip")
