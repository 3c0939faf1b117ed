"""
Nonce Sequencer - assigns account nonces to outgoing transactions.

Keeps a per-address cache of the next nonce so that successive transactions
from one sender can be broadcast without waiting for the previous one to be
reflected in the account state.
"""

import asyncio
import heapq
from typing import Dict, List, Optional

import structlog

from relayer.errors import NonceUnavailable
from relayer.node.interface import LedgerInterface

logger = structlog.get_logger(__name__)


class NonceSequencer:
    """
    Per-sender monotonic nonce counter.

    The first acquire for an address (or the first after ``invalidate``)
    syncs the cache from the ledger. Read-and-increment is guarded by one
    lock per address, so concurrent callers for the same sender never get
    the same nonce while different senders never wait on each other.

    A reserved nonce that never reached the ledger is handed back with
    ``release``. Released nonces are reissued lowest first, before the
    counter advances.
    """

    def __init__(self, node: LedgerInterface):
        """
        Initialize the sequencer.

        Args:
            node: Ledger used as the authoritative nonce source
        """
        self.node = node
        self._next: Dict[str, int] = {}
        self._released: Dict[str, List[int]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, address: str) -> asyncio.Lock:
        lock = self._locks.get(address)
        if lock is None:
            lock = self._locks[address] = asyncio.Lock()
        return lock

    async def acquire(self, address: str) -> int:
        """
        Reserve the next nonce for an address.

        Args:
            address: Sender address

        Returns:
            Nonce to put on the sender's next transaction

        Raises:
            NonceUnavailable: If the ledger nonce could not be fetched
        """
        async with self._lock_for(address):
            if address not in self._next:
                try:
                    fetched = await self.node.get_account_nonce(address)
                except Exception as e:
                    logger.warning("nonce_fetch_failed", address=address, error=str(e))
                    raise NonceUnavailable(
                        f"Unable to fetch nonce for {address}: {e}",
                        address=address,
                    ) from e

                if fetched < 0:
                    raise NonceUnavailable(
                        f"Ledger returned invalid nonce {fetched} for {address}",
                        address=address,
                    )

                self._next[address] = fetched
                logger.debug("nonce_synced", address=address, nonce=fetched)

            released = self._released.get(address)
            if released:
                return heapq.heappop(released)

            nonce = self._next[address]
            self._next[address] = nonce + 1
            return nonce

    def release(self, address: str, nonce: int) -> None:
        """
        Hand back a reserved nonce that was never broadcast.

        When it is the latest reservation the counter steps back; otherwise
        later nonces are still outstanding and it is kept for reuse, so it
        is never issued twice.
        """
        if address not in self._next or nonce >= self._next[address]:
            return

        released = self._released.setdefault(address, [])
        if nonce in released:
            return
        heapq.heappush(released, nonce)

        # Collapse released nonces sitting at the top of the counter
        while self._next[address] - 1 in released:
            top = self._next[address] - 1
            released.remove(top)
            self._next[address] = top
        heapq.heapify(released)

        logger.info("nonce_released", address=address, nonce=nonce, next_nonce=self._next[address])

    def invalidate(self, address: str) -> None:
        """Drop the cached nonce so the next acquire re-syncs from the ledger."""
        self._released.pop(address, None)
        if self._next.pop(address, None) is not None:
            logger.info("nonce_invalidated", address=address)

    def peek(self, address: str) -> Optional[int]:
        """Get the next nonce ``acquire`` would return, without reserving it."""
        released = self._released.get(address)
        if released:
            return released[0]
        return self._next.get(address)

    @property
    def tracked_addresses(self) -> List[str]:
        return list(self._next)
