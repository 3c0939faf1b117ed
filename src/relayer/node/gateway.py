"""
MultiversX proxy gateway adapter for ledger integration.

Provides ledger access via the gateway REST API.
"""

from typing import Any, Optional

import httpx
import structlog

from relayer.config import RelayerConfig, get_config
from relayer.core.transaction import TransactionRecord
from relayer.node.interface import (
    LedgerInterface,
    NodeConnectionError,
    TransactionSubmitError,
    STATUS_FAIL,
    STATUS_PENDING,
    STATUS_SUCCESS,
)

logger = structlog.get_logger(__name__)


# Gateway status strings mapped onto the normalized codes
_STATUS_MAP = {
    "success": STATUS_SUCCESS,
    "executed": STATUS_SUCCESS,
    "fail": STATUS_FAIL,
    "invalid": STATUS_FAIL,
}


class GatewayAdapter(LedgerInterface):
    """
    MultiversX proxy gateway adapter.

    Implements the LedgerInterface using the gateway's REST API.
    """

    def __init__(
        self,
        config: Optional[RelayerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the gateway adapter.

        Args:
            config: Relayer configuration. Uses global config if not provided.
            transport: Optional httpx transport (used by tests)
        """
        self.config = config or get_config()
        self.base_url = self.config.gateway_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> dict:
        """Get request headers."""
        return {
            "Content-Type": "application/json",
            "User-Agent": self.config.client_name,
        }

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.config.http_timeout_seconds,
            transport=self._transport,
        )
        logger.info("gateway_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("gateway_disconnected")

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> Any:
        """Make a gateway request and return its ``data`` member."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("gateway_request_error", path=path, error=str(e))
            raise NodeConnectionError(f"Gateway request failed: {e}")

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            error_msg = _error_message(response)
            logger.error(
                "gateway_request_failed",
                path=path,
                status=response.status_code,
                error=error_msg,
            )
            raise NodeConnectionError(f"Gateway API error: {error_msg}")

        return response.json().get("data")

    async def get_account_nonce(self, address: str) -> int:
        """Get the account nonce from the gateway."""
        data = await self._request("GET", f"/address/{address}/nonce")

        if data is None or "nonce" not in data:
            raise NodeConnectionError(f"No nonce returned for {address}")

        nonce = int(data["nonce"])
        logger.debug("account_nonce_fetched", address=address[:20] + "...", nonce=nonce)
        return nonce

    async def broadcast(self, record: TransactionRecord) -> str:
        """Send a signed transaction."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.post(
                "/transaction/send",
                json=record.to_gateway_dict(),
            )
        except httpx.RequestError as e:
            raise NodeConnectionError(f"Transaction send request failed: {e}")

        if response.status_code != 200:
            error_msg = _error_message(response)
            logger.error("tx_send_failed", sender=record.sender, nonce=record.nonce, error=error_msg)
            raise TransactionSubmitError(
                f"Transaction submission failed: {error_msg}",
                error_code=_error_code(response),
            )

        tx_hash = response.json()["data"]["txHash"]
        logger.info("tx_sent", tx_hash=tx_hash, nonce=record.nonce)
        return tx_hash

    async def get_status(self, transaction_id: str) -> str:
        """Get the normalized transaction status."""
        data = await self._request("GET", f"/transaction/{transaction_id}/status")

        if not data:
            return STATUS_PENDING

        return _STATUS_MAP.get(str(data.get("status", "")).lower(), STATUS_PENDING)

    async def get_transaction(self, transaction_id: str) -> Optional[dict]:
        """Get transaction details."""
        data = await self._request(
            "GET",
            f"/transaction/{transaction_id}",
            params={"withResults": "true"},
        )

        if not data:
            return None

        return data.get("transaction")


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error") or response.text
    except (ValueError, AttributeError):
        return response.text


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        return response.json().get("code")
    except (ValueError, AttributeError):
        return None
