"""
Confirmation Poller - waits for broadcast transactions to settle.

Finality on the ledger is eventual, so confirmation is a bounded polling
loop: every tick waits one interval, then queries the transaction status.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from relayer.config import RelayerConfig, get_config
from relayer.core.transaction import SubmissionResult, TransactionStatus
from relayer.errors import ConfirmationTimeout
from relayer.node.interface import LedgerInterface, NodeConnectionError, STATUS_FAIL, STATUS_SUCCESS

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ConfirmationTracker:
    """
    State machine for one transaction.

    PENDING moves to SUCCESS or FAIL on the matching ledger code and to
    UNKNOWN once ``max_retries`` observations passed without one.
    """

    def __init__(self, transaction_id: str, max_retries: int):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.transaction_id = transaction_id
        self.max_retries = max_retries
        self.state = TransactionStatus.PENDING
        self.ticks = 0

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def observe(self, code: Optional[str]) -> TransactionStatus:
        """Record one status query; ``None`` stands for a failed query."""
        if self.is_terminal:
            raise RuntimeError(f"Transaction {self.transaction_id} already {self.state.value}")

        self.ticks += 1
        if code == STATUS_SUCCESS:
            self.state = TransactionStatus.SUCCESS
        elif code == STATUS_FAIL:
            self.state = TransactionStatus.FAIL
        elif self.ticks >= self.max_retries:
            self.state = TransactionStatus.UNKNOWN
        return self.state


class ConfirmationPoller:
    """Polls the ledger until a transaction settles or the retry budget runs out."""

    def __init__(
        self,
        node: LedgerInterface,
        max_retries: Optional[int] = None,
        interval: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        config: Optional[RelayerConfig] = None,
    ):
        """
        Initialize the poller.

        Args:
            node: Ledger to query
            max_retries: Status queries before giving up (config default: 20)
            interval: Seconds to wait before each query (config default: 5)
            sleep: Awaitable sleep, replaceable for deterministic tests
            config: Relayer configuration
        """
        config = config or get_config()
        self.node = node
        self.max_retries = max_retries if max_retries is not None else config.confirmation_max_retries
        self.interval = interval if interval is not None else config.confirmation_interval_seconds
        self._sleep = sleep

    async def wait(self, transaction_id: str, address: Optional[str] = None) -> SubmissionResult:
        """
        Wait for a transaction to reach a terminal state.

        Args:
            transaction_id: Hash of the broadcast transaction
            address: Sender, for error context

        Returns:
            SubmissionResult with status SUCCESS or FAIL

        Raises:
            ConfirmationTimeout: If no terminal status was seen within the budget
        """
        tracker = ConfirmationTracker(transaction_id, self.max_retries)

        while not tracker.is_terminal:
            await self._sleep(self.interval)

            try:
                code = await self.node.get_status(transaction_id)
            except NodeConnectionError as e:
                logger.warning(
                    "tx_status_query_failed",
                    tx_hash=transaction_id,
                    tick=tracker.ticks + 1,
                    error=str(e),
                )
                code = None

            tracker.observe(code)

        if tracker.state == TransactionStatus.UNKNOWN:
            logger.warning("tx_confirmation_timeout", tx_hash=transaction_id, ticks=tracker.ticks)
            raise ConfirmationTimeout(
                f"Transaction {transaction_id} not settled after {tracker.ticks} status checks",
                transaction_id=transaction_id,
                ticks=tracker.ticks,
                address=address,
            )

        logger.info(
            "tx_settled",
            tx_hash=transaction_id,
            status=tracker.state.value,
            ticks=tracker.ticks,
        )
        return SubmissionResult(
            transaction_id=transaction_id,
            status=tracker.state,
            ticks=tracker.ticks,
        )
