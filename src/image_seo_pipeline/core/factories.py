"""Factory classes for creating configured service instances."""

from typing import Any, Optional

import boto3

from ..processors import get_batch_processor
from .image_utils import PillowCodec
from .models import PipelineConfig
from .observability import LogLevel, MetricsCollector, create_logger
from .protocols import CodecProtocol, LoggerProtocol, S3ClientProtocol, VisionClientProtocol
from .services import BatchOrchestrator, Describer, Encoder, ImageProcessingService
from .storage import S3AssetStore
from .vision import OpenAIVisionClient


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, debug: bool = False) -> LoggerProtocol:
        """Create a configured structured logger."""
        return create_logger(name, LogLevel.DEBUG if debug else LogLevel.INFO)


class VisionClientFactory:
    """Factory for the optional vision capability."""

    @staticmethod
    def create_vision_client(config: PipelineConfig) -> Optional[VisionClientProtocol]:
        """Create an OpenAI vision client, or None when no API key is configured."""
        if not config.vision_enabled:
            return None
        return OpenAIVisionClient(
            api_key=config.openai_api_key,
            model=config.vision_model,
            timeout=config.vision_timeout,
            max_tokens=config.vision_max_tokens,
            temperature=config.vision_temperature,
        )


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(**kwargs: Any) -> S3ClientProtocol:
        """Create S3 client with optional configuration."""
        session = boto3.Session()
        return session.client("s3", **kwargs)  # type: ignore


class ProcessingPipelineFactory:
    """Factory for creating the complete processing pipeline."""

    @staticmethod
    def create_pipeline(
        config: Optional[PipelineConfig] = None,
        codec: Optional[CodecProtocol] = None,
        vision_client: Optional[VisionClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> BatchOrchestrator:
        """
        Create a fully configured batch orchestrator.

        Collaborators that are not passed in are built from ``config``;
        when no vision client can be built the describer runs unconfigured.
        """
        if config is None:
            config = PipelineConfig.from_env()

        if logger is None:
            logger = LoggerFactory.create_logger("pipeline", debug=config.debug)

        if codec is None:
            codec = PillowCodec()

        if vision_client is None:
            vision_client = VisionClientFactory.create_vision_client(config)

        encoder = Encoder(codec)
        describer = Describer(vision_client, logger)
        processing_service = ImageProcessingService(
            encoder, describer, logger, metrics_collector
        )

        return BatchOrchestrator(
            processing_service=processing_service,
            process_batch_fn=get_batch_processor(config),
            logger=logger,
        )

    @staticmethod
    def create_asset_store(
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> S3AssetStore:
        """Create an S3 asset store, building a boto3 client if none is given."""
        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client()
        if logger is None:
            logger = LoggerFactory.create_logger("storage")
        return S3AssetStore(s3_client, logger)
