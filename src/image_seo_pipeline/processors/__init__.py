"""Batch processors with different concurrency strategies."""

from functools import partial

from ..core.exceptions import ConfigurationError
from ..core.models import PipelineConfig
from .serial import process_batch as serial_process_batch
from .multithread import process_batch as multithread_process_batch
from .asyncio_processor import process_batch as asyncio_process_batch


def get_batch_processor(config: PipelineConfig):
    """Select the batch processing function named by ``config.processor``."""
    if config.processor == "serial":
        return serial_process_batch
    if config.processor == "multithread":
        return partial(multithread_process_batch, max_workers=config.max_workers)
    if config.processor == "asyncio":
        return partial(asyncio_process_batch, concurrency=config.describe_concurrency)
    raise ConfigurationError(f"Unknown processor: {config.processor}")


__all__ = [
    "get_batch_processor",
    "serial_process_batch",
    "multithread_process_batch",
    "asyncio_process_batch",
]
