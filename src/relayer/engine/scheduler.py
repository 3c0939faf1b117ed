"""
Batch Scheduler - runs many transfers in throttled concurrent groups.

Items are split into consecutive groups of at most ``group_size``. A group
runs concurrently and the next one starts ``group_delay`` seconds after it
finished, which bounds the burst rate against the gateway.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

import structlog

from relayer.core.outcome import BatchItemOutcome, BatchItemStatus, BatchOutcome
from relayer.core.transaction import SubmissionResult
from relayer.errors import ConfirmationTimeout

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
Worker = Callable[[T], Awaitable[SubmissionResult]]


def split_groups(items: Sequence[T], group_size: int) -> List[List[T]]:
    """Split items into consecutive groups of at most ``group_size``."""
    if group_size < 1:
        raise ValueError("group_size must be at least 1")
    return [list(items[i:i + group_size]) for i in range(0, len(items), group_size)]


class BatchScheduler:
    """
    Runs a worker over a batch and records one outcome per item.

    A failing item never affects its siblings: every exception is captured
    in the item's outcome slot and the batch carries on.
    """

    def __init__(self, sleep: Sleep = asyncio.sleep):
        self._sleep = sleep

    async def run(
        self,
        items: Sequence[T],
        worker: Worker,
        group_size: int,
        group_delay: float,
        key: Optional[Callable[[T], Any]] = None,
    ) -> BatchOutcome:
        """
        Run a batch.

        Args:
            items: Items to process, in order
            worker: Coroutine function processing one item
            group_size: Maximum concurrently running items
            group_delay: Seconds to wait between groups
            key: Function giving an item's key for its outcome (default: index)

        Returns:
            BatchOutcome with one entry per item, in input order
        """
        groups = split_groups(items, group_size)
        outcome = BatchOutcome(groups=len(groups))
        index = 0

        for number, group in enumerate(groups, start=1):
            if number > 1 and group_delay > 0:
                await self._sleep(group_delay)

            logger.info("batch_group_started", group=number, groups=len(groups), size=len(group))
            results = await asyncio.gather(
                *(worker(item) for item in group),
                return_exceptions=True,
            )

            for item, result in zip(group, results):
                item_key = str(key(item)) if key else str(index)
                outcome.items.append(self._item_outcome(item_key, result))
                index += 1

            logger.info(
                "batch_group_finished",
                group=number,
                succeeded=sum(1 for r in results if isinstance(r, SubmissionResult) and r.is_success),
            )

        logger.info(
            "batch_finished",
            items=len(outcome),
            groups=outcome.groups,
            succeeded=outcome.succeeded,
        )
        return outcome

    def _item_outcome(self, item_key: str, result: Any) -> BatchItemOutcome:
        if isinstance(result, ConfirmationTimeout):
            return BatchItemOutcome.from_error(item_key, result, status=BatchItemStatus.UNKNOWN)
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.warning("batch_item_failed", item=item_key, error=str(result), error_type=type(result).__name__)
            return BatchItemOutcome.from_error(item_key, result)
        return BatchItemOutcome.from_result(item_key, result)
