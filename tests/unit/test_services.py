"""Unit tests for service implementations."""

import logging

import pytest
from unittest.mock import Mock

from image_seo_pipeline.core.exceptions import CompressionError, ImageProcessingError
from image_seo_pipeline.core.models import ImageFormat, ProcessingFailure
from image_seo_pipeline.core.observability import MetricsCollector
from image_seo_pipeline.core.services import (
    DEFAULT_KEYWORD,
    DESCRIPTION_PROMPT,
    FALLBACK_FAILED,
    FALLBACK_UNCONFIGURED,
    BatchOrchestrator,
    Describer,
    Encoder,
    ImageProcessingService,
    compression_ratio,
    create_work_items,
    keyword_for,
    resolve_keywords,
)
from image_seo_pipeline.processors import serial_process_batch
from image_seo_pipeline.testing.fakes import (
    FakeCodec,
    FakeLogger,
    FakeVisionClient,
    create_source_image,
    create_test_image,
)


def _service(codec=None, vision_client=None, logger=None, metrics_collector=None):
    logger = logger or FakeLogger()
    return ImageProcessingService(
        Encoder(codec or FakeCodec()),
        Describer(vision_client, logger),
        logger,
        metrics_collector,
    )


class TestEncoder:
    """Tests for Encoder."""

    def test_uses_profile_for_format(self):
        codec = FakeCodec(output=b"encoded")
        encoder = Encoder(codec)

        assert encoder.encode(b"raw", ImageFormat.PNG) == b"encoded"
        assert codec.calls[0].image_format is ImageFormat.PNG

    def test_codec_failure_becomes_compression_error(self):
        codec = FakeCodec()
        codec.fail_on.append(b"raw")

        with pytest.raises(CompressionError, match="Failed to compress image"):
            Encoder(codec).encode(b"raw", ImageFormat.JPEG)


class TestDescriber:
    """Tests for Describer."""

    def test_unconfigured_returns_fallback(self):
        logger = FakeLogger()
        describer = Describer(None, logger)

        assert describer.configured is False
        assert describer.describe(b"anything") == "product image"
        assert FALLBACK_UNCONFIGURED == "product image"
        assert len(logger.get_logs("WARNING")) == 1

    def test_returns_trimmed_reply(self):
        vision = FakeVisionClient(reply="  stylish blue athletic shoes \n")
        describer = Describer(vision, FakeLogger())

        assert describer.describe(create_test_image()) == "stylish blue athletic shoes"

    def test_sends_prompt_and_detected_mime_type(self):
        vision = FakeVisionClient()
        png = create_test_image(image_format="PNG")

        Describer(vision, FakeLogger()).describe(png)

        call = vision.calls[0]
        assert call["image_bytes"] == png
        assert call["mime_type"] == "image/png"
        assert call["prompt"] == DESCRIPTION_PROMPT
        assert "10-15 words" in call["prompt"]

    def test_failure_returns_fallback(self):
        logger = FakeLogger()
        vision = FakeVisionClient(error=TimeoutError("request timed out"))

        assert Describer(vision, logger).describe(b"bytes") == "product image description"
        assert FALLBACK_FAILED == "product image description"
        assert "request timed out" in logger.get_logs("WARNING")[0]["message"]

    def test_blank_reply_returns_failure_fallback(self):
        vision = FakeVisionClient(reply="   ")
        assert Describer(vision, FakeLogger()).describe(b"bytes") == FALLBACK_FAILED


class TestCompressionRatio:
    """Tests for compression_ratio."""

    @pytest.mark.parametrize(
        "original,encoded,expected",
        [
            (1_000_000, 500_000, "50.00"),
            (3, 2, "33.33"),
            (100, 100, "0.00"),
            (100, 150, "-50.00"),
            (0, 10, "0.00"),
        ],
    )
    def test_ratio(self, original, encoded, expected):
        assert compression_ratio(original, encoded) == expected


class TestImageProcessingService:
    """Tests for ImageProcessingService."""

    def test_process_image_success(self):
        vision = FakeVisionClient(reply="stylish blue athletic shoes")
        image = create_source_image("IMG_0042.JPG", data=b"x" * 1_000_000)
        service = _service(codec=FakeCodec(output=b"y" * 500_000), vision_client=vision)

        result = service.process_image(image, "Blue Shoes")

        assert result.original_name == "IMG_0042.JPG"
        assert result.optimized_name == "blue-shoes-stylish-blue-athletic-shoes.jpg"
        assert result.description == "stylish blue athletic shoes"
        assert result.keyword == "Blue Shoes"
        assert result.original_size == 1_000_000
        assert result.encoded_size == 500_000
        assert result.compression_ratio == "50.00"

    def test_png_keeps_png_extension(self):
        image = create_source_image("banner.png", "image/png")
        result = _service().process_image(image, "sale")
        assert result.optimized_name == "sale-product-image.png"

    def test_unconfigured_vision_still_succeeds(self):
        result = _service().process_image(create_source_image("a.jpg"), "Red Dress")
        assert result.optimized_name == "red-dress-product-image.jpg"

    def test_unsupported_format_raises_with_name(self):
        image = create_source_image("anim.gif", "image/gif", data=b"GIF89a")

        with pytest.raises(ImageProcessingError, match="Only JPEG and PNG") as exc_info:
            _service().process_image(image, "kw")
        assert exc_info.value.original_name == "anim.gif"

    def test_codec_failure_raises_with_name(self):
        codec = FakeCodec()
        image = create_source_image("broken.jpg", data=b"broken")
        codec.fail_on.append(b"broken")

        with pytest.raises(ImageProcessingError, match="Failed to compress image") as exc_info:
            _service(codec=codec).process_image(image, "kw")
        assert exc_info.value.original_name == "broken.jpg"

    def test_success_is_logged_with_context(self):
        logger = FakeLogger()
        _service(logger=logger).process_image(create_source_image("a.jpg"), "kw")

        info_logs = logger.get_logs("INFO")
        assert info_logs[-1]["message"] == "Successfully processed image"
        assert info_logs[-1]["original_name"] == "a.jpg"
        assert info_logs[-1]["optimized_name"] == "kw-product-image.jpg"
        assert "processing_time_ms" in info_logs[-1]

    def test_success_with_plain_stdlib_logger(self):
        """Test success logging passes no keyword arguments a stdlib logger rejects."""
        stdlib_logger = logging.getLogger("image-seo-pipeline.test-plain-logger")
        stdlib_logger.setLevel(logging.CRITICAL)

        result = _service(logger=stdlib_logger).process_image(
            create_source_image("a.jpg"), "kw"
        )

        assert result.optimized_name == "kw-product-image.jpg"

    def test_stage_metrics_recorded(self):
        metrics = MetricsCollector()
        _service(metrics_collector=metrics).process_image(create_source_image(), "kw")

        assert len(metrics.get_metrics("encode")) == 1
        assert len(metrics.get_metrics("describe")) == 1
        assert metrics.get_metrics("encode")[0].metadata == {"format": "jpeg"}


class TestKeywords:
    """Tests for keyword resolution."""

    def test_resolve_newline_delimited(self):
        assert resolve_keywords("red\n\n  blue \n") == ["red", "blue"]

    def test_resolve_none(self):
        assert resolve_keywords(None) == []

    def test_resolve_list_kept(self):
        assert resolve_keywords(["a", "", "b"]) == ["a", "", "b"]

    def test_keyword_for_matching_index(self):
        assert keyword_for(1, ["red", "blue"]) == "blue"

    def test_keyword_for_stretches_first(self):
        assert keyword_for(2, ["red"]) == "red"

    def test_keyword_for_empty_entry_falls_back_to_first(self):
        assert keyword_for(1, ["red", ""]) == "red"

    def test_keyword_for_default(self):
        assert keyword_for(0, []) == DEFAULT_KEYWORD == "image"

    def test_create_work_items(self):
        images = [create_source_image(f"{i}.jpg", data=b"x") for i in range(3)]
        items = create_work_items(images, "red\nblue")

        assert [item.index for item in items] == [0, 1, 2]
        assert [item.keyword for item in items] == ["red", "blue", "red"]
        assert items[2].image is images[2]


class TestBatchOrchestrator:
    """Tests for BatchOrchestrator."""

    def _orchestrator(self, codec=None, vision_client=None):
        logger = FakeLogger()
        return BatchOrchestrator(
            processing_service=_service(codec, vision_client, logger),
            process_batch_fn=serial_process_batch,
            logger=logger,
        )

    def test_single_keyword_applies_to_every_image(self):
        images = [create_source_image(f"{i}.jpg", data=b"x" * 10) for i in range(3)]

        result = self._orchestrator().process_batch(images, "red")

        assert result.success is True
        assert [img.keyword for img in result.processed] == ["red", "red", "red"]
        assert all(img.optimized_name.startswith("red-") for img in result.processed)

    def test_one_failure_does_not_abort_the_batch(self):
        codec = FakeCodec()
        codec.fail_on.append(b"corrupt")
        images = [
            create_source_image("one.jpg", data=b"good one"),
            create_source_image("two.jpg", data=b"corrupt"),
            create_source_image("three.png", "image/png", data=b"good three"),
        ]

        result = self._orchestrator(codec=codec).process_batch(images, "kw")

        assert result.success is False
        assert result.total_processed == 2
        assert result.total_failed == 1
        assert [img.original_name for img in result.processed] == ["one.jpg", "three.png"]
        assert result.failures[0].original_name == "two.jpg"
        assert "Failed to compress image" in result.failures[0].error

    def test_empty_batch(self):
        result = self._orchestrator().process_batch([], "kw")
        assert result.processed == []
        assert result.failures == []
        assert result.success is True

    def test_process_item_converts_unexpected_errors(self):
        service = Mock()
        service.process_image.side_effect = RuntimeError("kaput")
        orchestrator = BatchOrchestrator(service, serial_process_batch, FakeLogger())
        item = create_work_items([create_source_image("a.jpg", data=b"x")], "kw")[0]

        outcome = orchestrator.process_item(item)

        assert outcome == ProcessingFailure(original_name="a.jpg", error="kaput")

    def test_description_used_in_every_name(self):
        vision = FakeVisionClient(reply="Red dress on a hanger")
        images = [create_source_image(f"{i}.jpg", data=b"x" * 10) for i in range(2)]

        result = self._orchestrator(vision_client=vision).process_batch(
            images, ["Summer Sale", "Evening Wear"]
        )

        assert [img.optimized_name for img in result.processed] == [
            "summer-sale-red-dress-on-a-hanger.jpg",
            "evening-wear-red-dress-on-a-hanger.jpg",
        ]
