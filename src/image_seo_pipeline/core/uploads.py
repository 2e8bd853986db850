"""Upload intake: turns local files into validated SourceImages."""

import mimetypes
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from .exceptions import UploadValidationError
from .logging_config import get_logger
from .models import MAX_UPLOAD_BYTES, SourceImage

ACCEPTED_MEDIA_TYPES = ("image/jpeg", "image/jpg", "image/png")
IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


def guess_media_type(name: str) -> str:
    """Media type implied by a filename, ``application/octet-stream`` if unknown."""
    media_type, _ = mimetypes.guess_type(name)
    return media_type or "application/octet-stream"


def validate_uploads(
    images: Sequence[SourceImage], max_bytes: int = MAX_UPLOAD_BYTES
) -> None:
    """
    Enforce the intake contract before images reach the pipeline.

    Raises:
        UploadValidationError: If there are no images, an image has an
            unsupported media type, or an image exceeds ``max_bytes``
    """
    if not images:
        raise UploadValidationError("No images provided")

    invalid = [
        img.original_name
        for img in images
        if img.media_type.lower() not in ACCEPTED_MEDIA_TYPES
    ]
    if invalid:
        raise UploadValidationError(
            "Only JPEG and PNG images are supported", invalid_files=invalid
        )

    oversized = [img.original_name for img in images if img.size > max_bytes]
    if oversized:
        limit_mb = max_bytes // (1024 * 1024)
        raise UploadValidationError(
            f"File size exceeds {limit_mb}MB limit", invalid_files=oversized
        )


def expand_paths(paths: Iterable[Union[str, Path]]) -> List[Path]:
    """Expand directories into the image files they contain, sorted by name."""
    files: List[Path] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            files.extend(
                sorted(
                    p
                    for p in path.iterdir()
                    if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
                )
            )
        else:
            files.append(path)
    return files


def load_local_images(
    paths: Iterable[Union[str, Path]], max_bytes: int = MAX_UPLOAD_BYTES
) -> List[SourceImage]:
    """
    Read image files from disk and validate them as one upload.

    Args:
        paths: Files or directories of images
        max_bytes: Per-image size cap

    Returns:
        SourceImages in the order the files were given
    """
    logger = get_logger("uploads")
    images = []
    for path in expand_paths(paths):
        data = path.read_bytes()
        images.append(
            SourceImage(
                data=data,
                media_type=guess_media_type(path.name),
                original_name=path.name,
                size=len(data),
            )
        )
    logger.debug(f"Loaded {len(images)} local images")
    validate_uploads(images, max_bytes)
    return images
