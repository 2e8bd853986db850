"""AsyncIO processor implementation - bounded concurrency with asyncio."""

import asyncio
from typing import List

from ..core.models import WorkItem
from ..core.protocols import ItemOutcome
from .common import ProcessItemFunction, run_item


async def process_batch_async(
    batch: List[WorkItem], process_item: ProcessItemFunction, concurrency: int = 4
) -> List[ItemOutcome]:
    """Process work items in worker threads, at most ``concurrency`` at a time."""
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def bounded(item: WorkItem) -> ItemOutcome:
        async with semaphore:
            return await asyncio.to_thread(run_item, process_item, item)

    # gather preserves the order of its arguments
    return list(await asyncio.gather(*(bounded(item) for item in batch)))


def process_batch(
    batch: List[WorkItem], process_item: ProcessItemFunction, concurrency: int = 4
) -> List[ItemOutcome]:
    """
    Process a batch of images using asyncio.

    Args:
        batch: List of work items to process
        process_item: Callable turning one work item into an outcome
        concurrency: Maximum number of items in flight

    Returns:
        List of outcomes in input order
    """
    if not batch:
        return []
    return asyncio.run(process_batch_async(batch, process_item, concurrency))
