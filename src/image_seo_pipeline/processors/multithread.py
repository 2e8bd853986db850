"""Multithreaded processor implementation - uses a bounded thread pool."""

import os
from typing import List, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..core.models import WorkItem
from ..core.protocols import ItemOutcome
from .common import ProcessItemFunction, run_item


def process_batch(
    batch: List[WorkItem],
    process_item: ProcessItemFunction,
    max_workers: Optional[int] = None,
) -> List[ItemOutcome]:
    """
    Process a batch of images using a thread pool.

    Encoding releases the GIL inside Pillow and description calls wait on
    the network, so threads overlap both.

    Args:
        batch: List of work items to process
        process_item: Callable turning one work item into an outcome
        max_workers: Pool bound (defaults to the CPU count)

    Returns:
        List of outcomes in input order
    """
    if not batch:
        return []

    workers = max(1, min(max_workers or os.cpu_count() or 1, len(batch)))
    results: List[Optional[ItemOutcome]] = [None] * len(batch)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_position = {
            executor.submit(run_item, process_item, item): position
            for position, item in enumerate(batch)
        }

        for future in as_completed(future_to_position):
            results[future_to_position[future]] = future.result()

    return results  # type: ignore[return-value]
