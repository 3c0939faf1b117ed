"""
Test suite for batch scheduling.

Tests grouping, throttling, ordering and per-item failure isolation.
"""

import asyncio

import pytest

from relayer.core.outcome import BatchItemStatus
from relayer.core.transaction import SubmissionResult, TransactionStatus
from relayer.engine.scheduler import BatchScheduler, split_groups
from relayer.errors import ConfirmationTimeout, NonceUnavailable


def ok(index: int) -> SubmissionResult:
    return SubmissionResult(transaction_id=f"tx{index}", status=TransactionStatus.SUCCESS)


class TestSplitGroups:
    def test_consecutive_groups(self):
        assert split_groups([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert split_groups([], 4) == []

    def test_group_size_must_be_positive(self):
        with pytest.raises(ValueError):
            split_groups([1], 0)


class TestBatchScheduler:
    """Tests for BatchScheduler.run."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count,expected_groups", [(1, 1), (4, 1), (5, 2), (9, 3)])
    async def test_group_count(self, recording_sleep, count, expected_groups):
        scheduler = BatchScheduler(sleep=recording_sleep)

        async def worker(i):
            return ok(i)

        outcome = await scheduler.run(list(range(count)), worker, group_size=4, group_delay=1.0)

        assert outcome.groups == expected_groups
        assert len(outcome) == count
        # Delay between groups only, never after the last one
        assert recording_sleep.calls == [1.0] * (expected_groups - 1)

    @pytest.mark.asyncio
    async def test_groups_run_sequentially_with_bounded_concurrency(self, recording_sleep):
        scheduler = BatchScheduler(sleep=recording_sleep)
        running = 0
        peak = 0

        async def worker(i):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0)
            running -= 1
            return ok(i)

        await scheduler.run(list(range(10)), worker, group_size=4, group_delay=1.0)

        assert peak == 4

    @pytest.mark.asyncio
    async def test_order_preserved_regardless_of_completion(self, recording_sleep):
        scheduler = BatchScheduler(sleep=recording_sleep)

        async def worker(i):
            # Later items finish first
            for _ in range(10 - i):
                await asyncio.sleep(0)
            return ok(i)

        outcome = await scheduler.run(list(range(6)), worker, group_size=3, group_delay=0)

        assert [item.transaction_id for item in outcome] == [f"tx{i}" for i in range(6)]
        assert [item.item_key for item in outcome] == [str(i) for i in range(6)]

    @pytest.mark.asyncio
    async def test_failure_isolated_to_its_item(self, recording_sleep):
        scheduler = BatchScheduler(sleep=recording_sleep)
        seen = []

        async def worker(i):
            seen.append(i)
            if i == 2:
                raise NonceUnavailable("gateway down")
            return ok(i)

        outcome = await scheduler.run([0, 1, 2, 3, 4], worker, group_size=4, group_delay=1.0)

        assert sorted(seen) == [0, 1, 2, 3, 4]
        assert outcome[2].status == BatchItemStatus.FAILED
        assert outcome[2].error == "gateway down"
        assert outcome.succeeded == 4
        assert outcome.all_succeeded is False

    @pytest.mark.asyncio
    async def test_confirmation_timeout_is_unknown(self, recording_sleep):
        scheduler = BatchScheduler(sleep=recording_sleep)

        async def worker(i):
            if i == 1:
                raise ConfirmationTimeout("still pending", transaction_id="txpending", ticks=20)
            return ok(i)

        outcome = await scheduler.run([0, 1], worker, group_size=4, group_delay=1.0)

        assert outcome[1].status == BatchItemStatus.UNKNOWN
        assert outcome[1].transaction_id == "txpending"

    @pytest.mark.asyncio
    async def test_ledger_fail_recorded(self, recording_sleep):
        scheduler = BatchScheduler(sleep=recording_sleep)

        async def worker(i):
            return SubmissionResult(transaction_id="txf", status=TransactionStatus.FAIL)

        outcome = await scheduler.run(["a"], worker, group_size=4, group_delay=0, key=lambda x: x)

        assert outcome[0].status == BatchItemStatus.FAIL
        assert outcome[0].item_key == "a"
        assert outcome.to_dict()["summary"]["fail"] == 1

    @pytest.mark.asyncio
    async def test_empty_batch(self, recording_sleep):
        outcome = await BatchScheduler(sleep=recording_sleep).run([], None, group_size=4, group_delay=1)

        assert len(outcome) == 0
        assert outcome.groups == 0
        assert recording_sleep.calls == []
