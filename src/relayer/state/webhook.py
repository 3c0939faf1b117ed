"""
Webhook notifier for whitelist changes.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import structlog

from relayer.config import RelayerConfig, get_config

logger = structlog.get_logger(__name__)

EVENT_WHITELIST_ADD = "addToWhitelist"
EVENT_WHITELIST_REMOVE = "removeFromWhitelist"


class WebhookNotifier:
    """
    Posts labeled whitelist updates to an external webhook.

    Each update is sent as ``{"type", "payload", "timestamp"}``. Delivery is
    retried up to ``retries`` times; the last error is raised.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        retries: Optional[int] = None,
        config: Optional[RelayerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or get_config()
        self.url = url if url is not None else config.whitelist_webhook_url
        self.retries = max(1, retries if retries is not None else config.webhook_retries)
        self.timeout = config.http_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def send(self, event_type: str, payload: Dict[str, Any]) -> None:
        """
        Send one update.

        Args:
            event_type: Update label, e.g. ``addToWhitelist``
            payload: JSON-serializable update body

        Raises:
            httpx.HTTPError: If every attempt failed
        """
        if not self.enabled:
            logger.debug("webhook_disabled", event_type=event_type)
            return

        body = {
            "type": event_type,
            "payload": payload,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(1, self.retries + 1):
                try:
                    response = await client.post(self.url, json=body)
                    response.raise_for_status()
                    logger.info("webhook_sent", event_type=event_type, attempt=attempt)
                    return
                except httpx.HTTPError as e:
                    logger.warning(
                        "webhook_retry",
                        event_type=event_type,
                        attempt=attempt,
                        retries=self.retries,
                        error=str(e),
                    )
                    if attempt == self.retries:
                        raise
