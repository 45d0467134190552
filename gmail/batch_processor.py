"""
Chunked batch execution with per-item fallback.

Gmail may reject a whole group of calls because of one bad member (a
malformed or already deleted message). Items are processed in chunks; when
a chunk fails, its items are retried one at a time so the bad item can be
told apart from the rest.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, Tuple, TypeVar

from core.config import DEFAULT_BATCH_SIZE
from gmail.models import BatchFailure, BatchResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

FAILED_ID_DISPLAY_LENGTH = 16


class ChunkPartiallyFailed(Exception):
    """
    Raised by a chunk operation when some items succeeded and some failed.

    Carries the completed results so the batch processor only retries the
    items that actually failed.
    """

    def __init__(self, completed: List[Tuple[T, U]], failed: List[Tuple[T, Exception]]):
        self.completed = completed
        self.failed = failed
        first_error = failed[0][1] if failed else None
        super().__init__(
            f"{len(failed)} of {len(completed) + len(failed)} items failed: {first_error}"
        )


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def fan_out(
    chunk: Sequence[T], item_fn: Callable[[T], Awaitable[U]]
) -> List[U]:
    """
    Run item_fn for every item concurrently and wait for all of them.

    Raises:
        ChunkPartiallyFailed: If any item raised.
    """
    outcomes = await asyncio.gather(
        *(item_fn(item) for item in chunk), return_exceptions=True
    )
    completed = []
    failed = []
    for item, outcome in zip(chunk, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            failed.append((item, outcome))
        else:
            completed.append((item, outcome))
    if failed:
        raise ChunkPartiallyFailed(completed, failed)
    return [result for _, result in completed]


async def _retry_individually(
    items: Sequence[T],
    process_fn: Callable[[List[T]], Awaitable[List[U]]],
    result: BatchResult,
) -> None:
    for item in items:
        try:
            result.successes.extend(await process_fn([item]))
        except Exception as e:
            error = e
            if isinstance(e, ChunkPartiallyFailed) and e.failed:
                error = e.failed[0][1]
            logger.warning(
                f"Batch item {str(item)[:FAILED_ID_DISPLAY_LENGTH]} failed: {error}"
            )
            result.failures.append(BatchFailure(item=item, error=error))


async def process_batches(
    items: Sequence[T],
    process_fn: Callable[[List[T]], Awaitable[List[U]]],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> BatchResult:
    """
    Apply process_fn to items in consecutive chunks of at most batch_size.

    A chunk that raises is retried one item at a time. When the chunk reports
    a partial outcome, the completed results are kept and only the failed
    items are retried. Every item ends up in exactly one of result.successes
    or result.failures.
    """
    result = BatchResult()
    chunks = chunked(items, batch_size)
    logger.info(f"Processing {len(items)} items in {len(chunks)} chunks of up to {batch_size}")

    for index, chunk in enumerate(chunks, 1):
        try:
            result.successes.extend(await process_fn(chunk))
        except ChunkPartiallyFailed as e:
            logger.warning(
                f"Chunk {index}/{len(chunks)} partially failed, retrying {len(e.failed)} items individually: {e}"
            )
            result.successes.extend(outcome for _, outcome in e.completed)
            await _retry_individually([item for item, _ in e.failed], process_fn, result)
        except Exception as e:
            logger.warning(
                f"Chunk {index}/{len(chunks)} failed, retrying {len(chunk)} items individually: {e}"
            )
            await _retry_individually(chunk, process_fn, result)

    return result


def format_batch_summary(
    result: BatchResult, title: str, success_label: str, failure_label: str
) -> str:
    """
    Render a batch outcome, e.g.

        Batch delete operation complete.
        Successfully deleted: 48 messages
        Failed to delete: 2 messages
    """
    lines = [title, f"{success_label}: {result.success_count} messages"]
    if result.has_failures:
        lines.append(f"{failure_label}: {result.failure_count} messages")
        lines.append("")
        lines.append("Failed message IDs:")
        for failure in result.failures:
            item_id = str(failure.item)[:FAILED_ID_DISPLAY_LENGTH]
            lines.append(f"- {item_id}... ({failure.message})")
    return "\n".join(lines)
