"""
Whitelist interface.

Whitelisted wallets skip the usage fee. The relayer only reads the list
and reports activity; managing it is the store's business.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set

import structlog

logger = structlog.get_logger(__name__)


class WhitelistInterface(ABC):
    """
    Abstract whitelist and user-activity store.

    Implement this to plug in any backing store.
    """

    @abstractmethod
    async def is_whitelisted(self, address: str) -> bool:
        """Check whether an address is exempt from the usage fee."""
        pass

    @abstractmethod
    async def record_activity(self, address: str) -> None:
        """Record that an address was served by the relayer."""
        pass


class StaticWhitelist(WhitelistInterface):
    """In-memory whitelist, typically seeded from configuration."""

    def __init__(self, addresses: Optional[Iterable[str]] = None):
        self._addresses: Set[str] = set(addresses or ())
        self.activity: List[str] = []

    async def is_whitelisted(self, address: str) -> bool:
        return address in self._addresses

    async def record_activity(self, address: str) -> None:
        self.activity.append(address)
        logger.debug("user_activity_recorded", address=address)

    def add(self, address: str) -> None:
        self._addresses.add(address)

    def remove(self, address: str) -> None:
        self._addresses.discard(address)

    def __contains__(self, address: str) -> bool:
        return address in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)
