"""
Unit tests for chunked batch execution and per-item fallback.
"""

import pytest

from core.errors import RemoteCallFailed
from gmail.batch_processor import (
    ChunkPartiallyFailed,
    chunked,
    fan_out,
    format_batch_summary,
    process_batches,
)
from gmail.models import BatchFailure, BatchResult


class RecordingOperation:
    """Chunk operation that records every call and can reject chosen chunks."""

    def __init__(self, reject_chunk_starting_with=None, bad_items=()):
        self.calls = []
        self.reject_chunk_starting_with = reject_chunk_starting_with
        self.bad_items = set(bad_items)

    async def __call__(self, chunk):
        self.calls.append(list(chunk))
        if len(chunk) > 1 and chunk[0] == self.reject_chunk_starting_with:
            raise RuntimeError("batch endpoint rejected the chunk")
        if any(item in self.bad_items for item in chunk):
            raise RemoteCallFailed(404, "Requested entity was not found.")
        return [f"ok:{item}" for item in chunk]


def test_chunked_preserves_order():
    """Chunks keep input order with a short last chunk."""
    assert chunked(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]


def test_chunked_rejects_non_positive_size():
    """A batch size below one is refused."""
    with pytest.raises(ValueError):
        chunked([1, 2], 0)


@pytest.mark.asyncio
async def test_all_good_issues_one_call_per_chunk():
    """Healthy chunks need one call each."""
    items = [f"m{i}" for i in range(120)]
    operation = RecordingOperation()

    result = await process_batches(items, operation, batch_size=50)

    assert [len(call) for call in operation.calls] == [50, 50, 20]
    assert result.success_count == 120
    assert result.failure_count == 0
    assert result.successes == [f"ok:{item}" for item in items]


@pytest.mark.asyncio
async def test_rejected_middle_chunk_falls_back_per_item():
    """Only the rejected chunk is retried item by item."""
    items = [f"m{i}" for i in range(120)]
    operation = RecordingOperation(reject_chunk_starting_with="m50")

    result = await process_batches(items, operation, batch_size=50)

    chunk_calls = [call for call in operation.calls if len(call) > 1]
    singleton_calls = [call for call in operation.calls if len(call) == 1]
    assert [len(call) for call in chunk_calls] == [50, 50, 20]
    assert singleton_calls == [[f"m{i}"] for i in range(50, 100)]
    assert result.success_count == 120
    assert result.failure_count == 0


@pytest.mark.asyncio
async def test_every_item_accounted_for_exactly_once():
    """Each item ends up in successes or failures, never both."""
    items = [f"m{i}" for i in range(120)]
    operation = RecordingOperation(bad_items={"m7", "m61", "m119"})

    result = await process_batches(items, operation, batch_size=50)

    failed = [failure.item for failure in result.failures]
    succeeded = [s.removeprefix("ok:") for s in result.successes]
    assert sorted(failed) == ["m119", "m61", "m7"]
    assert sorted(succeeded + failed) == sorted(items)
    assert not set(succeeded) & set(failed)
    assert all(isinstance(f.error, RemoteCallFailed) for f in result.failures)


@pytest.mark.asyncio
async def test_partial_chunk_keeps_successes_and_retries_only_failures():
    """A partly failed chunk retries only its failed items."""
    calls = []

    async def modify(item):
        calls.append(item)
        if item == "bad":
            raise RemoteCallFailed(400, "Invalid id")
        return item

    result = await process_batches(
        ["a", "bad", "b"], lambda chunk: fan_out(chunk, modify), batch_size=3
    )

    assert calls == ["a", "bad", "b", "bad"]
    assert sorted(result.successes) == ["a", "b"]
    assert [f.item for f in result.failures] == ["bad"]
    assert str(result.failures[0].error) == "Invalid id (HTTP 400)"


@pytest.mark.asyncio
async def test_fan_out_waits_for_all_and_reports_partial_outcome():
    """fan_out collects every outcome before reporting failures."""
    async def work(item):
        if item % 2:
            raise ValueError(f"odd {item}")
        return item * 10

    with pytest.raises(ChunkPartiallyFailed) as exc_info:
        await fan_out([0, 1, 2, 3], work)

    assert exc_info.value.completed == [(0, 0), (2, 20)]
    assert [item for item, _ in exc_info.value.failed] == [1, 3]


@pytest.mark.asyncio
async def test_fan_out_all_good_keeps_input_order():
    """Results come back in input order."""
    async def work(item):
        return item.upper()

    assert await fan_out(["a", "b", "c"], work) == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_empty_input():
    """No items means no calls."""
    operation = RecordingOperation()
    result = await process_batches([], operation, batch_size=50)
    assert operation.calls == []
    assert result.success_count == 0


def test_summary_without_failures():
    """A clean batch has no failure section."""
    result = BatchResult(successes=["a", "b"])
    summary = format_batch_summary(
        result, "Batch delete operation complete.", "Successfully deleted", "Failed to delete"
    )
    assert summary == "Batch delete operation complete.\nSuccessfully deleted: 2 messages"


def test_summary_truncates_failed_ids():
    """Failed IDs are shortened to 16 characters."""
    result = BatchResult(
        successes=["a"],
        failures=[
            BatchFailure(
                item="18c1f0a2b3c4d5e6f7a8b9", error=RemoteCallFailed(404, "Not Found")
            )
        ],
    )
    summary = format_batch_summary(
        result,
        "Batch label modification complete.",
        "Successfully processed",
        "Failed to process",
    )

    assert "Successfully processed: 1 messages" in summary
    assert "Failed to process: 1 messages" in summary
    assert "Failed message IDs:" in summary
    assert "- 18c1f0a2b3c4d5e6... (Not Found (HTTP 404))" in summary
