"""Service implementations for the image SEO pipeline."""

import time
from typing import Callable, List, Optional, Sequence, Union

from .error_handling import BatchOperationContextManager, with_error_handling
from .exceptions import CompressionError, ImageProcessingError
from .filenames import synthesize_filename
from .image_utils import detect_mime_type
from .logging_config import get_logger
from .models import (
    ENCODING_PROFILES,
    BatchResult,
    ImageFormat,
    ProcessedImage,
    ProcessingFailure,
    SourceImage,
    WorkItem,
)
from .observability import LogContext, MetricsCollector, timed_stage
from .protocols import (
    CodecProtocol,
    ItemOutcome,
    LoggerProtocol,
    ProcessingService,
    VisionClientProtocol,
)

FALLBACK_UNCONFIGURED = "product image"
FALLBACK_FAILED = "product image description"
DEFAULT_KEYWORD = "image"

DESCRIPTION_PROMPT = (
    "Provide a brief, detailed description of this image in 10-15 words. "
    "Focus on the main subject, colors, and key visual elements. "
    "Return only the description, no additional text."
)

BatchProcessFunction = Callable[
    [List[WorkItem], Callable[[WorkItem], ItemOutcome]], List[ItemOutcome]
]


class Encoder:
    """Re-encodes one image under its format's encoding profile."""

    def __init__(self, codec: CodecProtocol):
        self._codec = codec

    def encode(self, image_bytes: bytes, image_format: ImageFormat) -> bytes:
        """
        Encode image bytes as ``image_format``.

        Raises:
            CompressionError: If the codec fails for any reason
        """
        profile = ENCODING_PROFILES[image_format]
        try:
            return self._codec.encode(image_bytes, profile)
        except Exception as e:
            raise CompressionError(f"Failed to compress image: {e}") from e


class Describer:
    """Produces a short description of an image, degrading to a fixed phrase."""

    def __init__(
        self,
        vision_client: Optional[VisionClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._vision_client = vision_client
        self._logger = logger or get_logger("describer")

    @property
    def configured(self) -> bool:
        return self._vision_client is not None

    def describe(self, image_bytes: bytes) -> str:
        """Return a 10-15 word description, or a fallback phrase. Never raises."""
        if self._vision_client is None:
            self._logger.warning("Vision capability not configured, using fallback description")
            return FALLBACK_UNCONFIGURED

        try:
            mime_type = detect_mime_type(image_bytes)
            description = self._vision_client.describe_image(
                image_bytes, mime_type, DESCRIPTION_PROMPT
            ).strip()
            if not description:
                raise ValueError("blank description")
            return description
        except Exception as e:  # noqa: BLE001
            self._logger.warning(f"Image description failed, using fallback description: {e}")
            return FALLBACK_FAILED


def compression_ratio(original_size: int, encoded_size: int) -> str:
    """Percentage size reduction with two decimals; negative when the image grew."""
    if original_size <= 0:
        return "0.00"
    return f"{(original_size - encoded_size) / original_size * 100:.2f}"


class ImageProcessingService(ProcessingService):
    """Encodes, describes and renames a single image."""

    def __init__(
        self,
        encoder: Encoder,
        describer: Describer,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._encoder = encoder
        self._describer = describer
        self._logger = logger
        self._metrics_collector = metrics_collector

    def process_image(self, image: SourceImage, keyword: str) -> ProcessedImage:
        """
        Process one image into a ProcessedImage.

        Raises:
            ImageProcessingError: If any stage fails; carries the image's name
        """
        correlation_id = f"img_{image.original_name}_{int(time.time() * 1000)}"
        log_context = LogContext(
            correlation_id=correlation_id,
            operation="process_image",
            component="image_processing_service",
        ).with_metadata(original_name=image.original_name, keyword=keyword)
        start_time = time.time()

        try:
            image_format = ImageFormat.from_media_type(image.media_type)

            self._logger.debug("Encoding image", log_context.with_operation("encode"))
            with timed_stage("encode", self._metrics_collector, format=image_format.value):
                encoded = self._encoder.encode(image.data, image_format)

            self._logger.debug("Describing image", log_context.with_operation("describe"))
            with timed_stage("describe", self._metrics_collector):
                description = self._describer.describe(image.data)

            optimized_name = synthesize_filename(
                keyword, description, image_format.extension
            )
        except Exception as e:
            self._logger.error(
                "Image processing failed", log_context.with_metadata(error=str(e))
            )
            raise ImageProcessingError(
                str(e) or "Failed to process image", original_name=image.original_name
            ) from e

        result = ProcessedImage(
            original_name=image.original_name,
            optimized_name=optimized_name,
            encoded_data=encoded,
            description=description,
            keyword=keyword,
            original_size=image.size,
            encoded_size=len(encoded),
            compression_ratio=compression_ratio(image.size, len(encoded)),
        )

        self._logger.info(
            "Successfully processed image",
            log_context.with_metadata(
                optimized_name=optimized_name,
                compression_ratio=result.compression_ratio,
                processing_time_ms=round((time.time() - start_time) * 1000, 1),
            ),
        )
        return result


def resolve_keywords(keywords: Union[str, Sequence[str], None]) -> List[str]:
    """Turn a newline-delimited string, or a list, into a keyword list."""
    if keywords is None:
        return []
    if isinstance(keywords, str):
        return [line.strip() for line in keywords.split("\n") if line.strip()]
    return list(keywords)


def keyword_for(index: int, keywords: Sequence[str]) -> str:
    """Keyword for the image at ``index``; short lists stretch their first entry."""
    if index < len(keywords) and keywords[index]:
        return keywords[index]
    if keywords and keywords[0]:
        return keywords[0]
    return DEFAULT_KEYWORD


def create_work_items(
    images: Sequence[SourceImage], keywords: Union[str, Sequence[str], None]
) -> List[WorkItem]:
    """Pair every image with the keyword it will be named after."""
    keyword_list = resolve_keywords(keywords)
    return [
        WorkItem(index=i, image=image, keyword=keyword_for(i, keyword_list))
        for i, image in enumerate(images)
    ]


class BatchOrchestrator:
    """Drives the item processor over a batch, isolating per-item failures."""

    def __init__(
        self,
        processing_service: ProcessingService,
        process_batch_fn: BatchProcessFunction,
        logger: LoggerProtocol,
    ):
        self._processing_service = processing_service
        self._process_batch_fn = process_batch_fn
        self._logger = logger

    def process_item(self, item: WorkItem) -> ItemOutcome:
        """Process one work item, converting any failure into data."""
        try:
            return self._processing_service.process_image(item.image, item.keyword)
        except ImageProcessingError as e:
            return ProcessingFailure(
                original_name=e.original_name or item.image.original_name,
                error=str(e) or "Unknown error",
            )
        except Exception as e:  # noqa: BLE001
            return ProcessingFailure(
                original_name=item.image.original_name, error=str(e) or "Unknown error"
            )

    @with_error_handling
    def process_batch(
        self,
        images: Sequence[SourceImage],
        keywords: Union[str, Sequence[str], None],
    ) -> BatchResult:
        """
        Process every image, never letting one failure abort the batch.

        Args:
            images: Images in the order the caller supplied them
            keywords: Newline-delimited string or list of keywords

        Returns:
            BatchResult with successes in input order and itemized failures
        """
        work_items = create_work_items(images, keywords)
        result = BatchResult()
        if not work_items:
            self._logger.info("No images to process")
            return result

        self._logger.info(f"Processing {len(work_items)} images")
        with BatchOperationContextManager(
            operation_name=f"Image batch of {len(work_items)}"
        ) as batch_manager:
            outcomes = self._process_batch_fn(work_items, self.process_item)
            for outcome in outcomes:
                if isinstance(outcome, ProcessingFailure):
                    result.failures.append(outcome)
                    batch_manager.add_error(outcome.error, outcome.original_name)
                else:
                    result.processed.append(outcome)

        self._logger.info(
            f"Batch finished: {result.total_processed} processed, "
            f"{result.total_failed} failed"
        )
        return result
