"""Serial processor implementation - processes images one by one."""

from typing import List

from ..core.models import WorkItem
from ..core.protocols import ItemOutcome
from .common import ProcessItemFunction, run_item


def process_batch(
    batch: List[WorkItem], process_item: ProcessItemFunction
) -> List[ItemOutcome]:
    """
    Processes a batch of images serially, one by one, in the current thread.

    Args:
        batch: A list of `WorkItem` objects to process.
        process_item: Callable turning one `WorkItem` into an outcome.

    Returns:
        A list of outcomes, one for each work item, in input order.
    """
    results = []

    for item in batch:
        results.append(run_item(process_item, item))

    return results
