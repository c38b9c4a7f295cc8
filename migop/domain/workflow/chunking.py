"""Chunked cooperative processing.

Long per-item loops run in bounded slices and hand control back to the event
loop between slices, so state changes, status events and resets are observed
while a large document is being analyzed or transformed.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Iterable, List, Optional, TypeVar

from migop.domain.errors import MigopError


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ChunkedProcessingCancelled(MigopError):
    """Processing stopped because the caller asked to cancel."""

    def __init__(self, processed: int, total: int):
        self.processed = processed
        self.total = total
        super().__init__(
            f"Processing cancelled after {processed} of {total} items",
            details={"processed": processed, "total": total},
        )


async def chunked_for_each(
    items: Iterable[T],
    processor: Callable[[T], Any],
    *,
    max_items_per_slice: int = 25,
    max_millis_per_slice: float = 40.0,
    on_progress: Optional[Callable[[int, int], None]] = None,
    progress_every: int = 5,
    on_complete: Optional[Callable[[List[R]], None]] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> List[R]:
    """
    Apply processor to every item, yielding to the event loop between slices.

    A slice ends after ``max_items_per_slice`` items or once it has run for
    ``max_millis_per_slice`` milliseconds, whichever comes first. Items are
    processed exactly once, in input order. ``processor`` may return an
    awaitable.

    Args:
        items: Items to process
        processor: Called once per item; its results are collected in order
        max_items_per_slice: Upper bound on items per slice
        max_millis_per_slice: Upper bound on wall time per slice
        on_progress: Called with (processed, total) every ``progress_every``
            items and after the last one
        progress_every: Progress reporting interval
        on_complete: Called with the collected results when all are done
        is_cancelled: Checked before every slice

    Returns:
        Results in input order

    Raises:
        ChunkedProcessingCancelled: is_cancelled returned True
        ValueError: Slice bounds are not positive
    """
    if max_items_per_slice < 1:
        raise ValueError("max_items_per_slice must be at least 1")
    if max_millis_per_slice <= 0:
        raise ValueError("max_millis_per_slice must be positive")
    if progress_every < 1:
        raise ValueError("progress_every must be at least 1")

    pending = list(items)
    total = len(pending)
    results: List[R] = []
    index = 0
    slices = 0

    while index < total:
        if is_cancelled is not None and is_cancelled():
            raise ChunkedProcessingCancelled(index, total)

        slice_started = time.perf_counter()
        in_slice = 0
        while index < total:
            result = processor(pending[index])
            if inspect.isawaitable(result):
                result = await result
            results.append(result)
            index += 1
            in_slice += 1

            if on_progress is not None and (index % progress_every == 0 or index == total):
                on_progress(index, total)

            if in_slice >= max_items_per_slice:
                break
            if (time.perf_counter() - slice_started) * 1000 >= max_millis_per_slice:
                break

        slices += 1
        if index < total:
            await asyncio.sleep(0)

    logger.debug(f"Processed {total} items in {slices} slices")
    if on_complete is not None:
        on_complete(results)
    return results
