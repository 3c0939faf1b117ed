"""
Token metadata lookup.

Resolves token decimals from the MultiversX API, with a time-to-live cache
so repeated transfers of the same token do not hit the API.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

import httpx
import structlog

from relayer.config import RelayerConfig, get_config
from relayer.errors import TokenMetadataUnavailable

logger = structlog.get_logger(__name__)


class TokenMetadataInterface(ABC):
    """Source of token decimals."""

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def get_decimals(self, token_identifier: str) -> int:
        """
        Get the number of decimals of a token.

        Args:
            token_identifier: Token ticker (e.g. "REWARD-cf6eac") or collection

        Returns:
            Number of decimals

        Raises:
            TokenMetadataUnavailable: If the decimals cannot be resolved
        """
        pass


class ApiTokenMetadata(TokenMetadataInterface):
    """
    Token metadata backed by the MultiversX API.

    Fungible tokens are looked up under ``/tokens``; SFT and Meta-ESDT
    collections fall back to ``/collections`` (decimals default to 0 there).
    """

    def __init__(
        self,
        config: Optional[RelayerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or get_config()
        self.base_url = self.config.api_url
        self.ttl_seconds = self.config.token_decimals_ttl_seconds
        self._transport = transport
        self._clock = clock
        self._client: Optional[httpx.AsyncClient] = None
        self._cache: Dict[str, Tuple[int, float]] = {}

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.config.http_timeout_seconds,
                transport=self._transport,
            )

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _cached(self, token_identifier: str) -> Optional[int]:
        entry = self._cache.get(token_identifier)
        if entry is None:
            return None
        decimals, expires_at = entry
        if self._clock() >= expires_at:
            del self._cache[token_identifier]
            return None
        return decimals

    async def get_decimals(self, token_identifier: str) -> int:
        """Get token decimals, using the cache when fresh."""
        if not token_identifier:
            raise TokenMetadataUnavailable("Token identifier is required")

        cached = self._cached(token_identifier)
        if cached is not None:
            return cached

        if not self._client:
            await self.connect()

        decimals = await self._fetch(f"/tokens/{token_identifier}", token_identifier)
        if decimals is None:
            decimals = await self._fetch(f"/collections/{token_identifier}", token_identifier, default=0)
        if decimals is None:
            raise TokenMetadataUnavailable(f"Unknown token {token_identifier}")

        self._cache[token_identifier] = (decimals, self._clock() + self.ttl_seconds)
        logger.debug("token_decimals_cached", token=token_identifier, decimals=decimals)
        return decimals

    async def _fetch(
        self,
        path: str,
        token_identifier: str,
        default: Optional[int] = None,
    ) -> Optional[int]:
        try:
            response = await self._client.get(path)
        except httpx.RequestError as e:
            logger.error("token_metadata_request_error", token=token_identifier, error=str(e))
            raise TokenMetadataUnavailable(
                f"Unable to retrieve decimals for {token_identifier}: {e}"
            )

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            raise TokenMetadataUnavailable(
                f"Unable to retrieve decimals for {token_identifier}: {response.text}"
            )

        decimals = response.json().get("decimals", default)
        if not isinstance(decimals, int):
            raise TokenMetadataUnavailable(f"Invalid token data received for {token_identifier}")
        return decimals

    def clear_cache(self) -> None:
        self._cache.clear()
