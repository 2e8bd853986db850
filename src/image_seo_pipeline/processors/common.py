"""Common functions shared across all processor implementations."""

from typing import Callable

from ..core.logging_config import get_logger
from ..core.models import ProcessingFailure, WorkItem
from ..core.protocols import ItemOutcome

ProcessItemFunction = Callable[[WorkItem], ItemOutcome]


def run_item(process_item: ProcessItemFunction, item: WorkItem) -> ItemOutcome:
    """
    Run ``process_item`` for one work item without letting it raise.

    ``process_item`` is expected to report failures as ProcessingFailure
    itself; anything that still escapes is converted here so sibling
    items are never affected.
    """
    try:
        return process_item(item)
    except Exception as e:  # noqa: BLE001
        get_logger("processor").error(
            f"[{item.image.original_name}] Unexpected error: {e}", exc_info=True
        )
        return ProcessingFailure(
            original_name=item.image.original_name, error=str(e) or "Unknown error"
        )

