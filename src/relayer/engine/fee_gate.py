"""
Usage Fee Gate - collects the usage fee before a request is served.
"""

from typing import Optional

import structlog

from relayer.config import RelayerConfig, get_config
from relayer.core.intent import TransferIntent
from relayer.core.transaction import TransactionStatus
from relayer.errors import RelayerError, UsageFeeRejected
from relayer.state.whitelist import WhitelistInterface
from relayer.tx.pipeline import TransferPipeline
from relayer.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)


class UsageFeeGate:
    """
    Fail-closed gate in front of every request.

    Unless the fee is disabled or the sender is whitelisted, a fungible
    transfer of the configured fee to the treasury must reach SUCCESS
    before the request proceeds. The fee draws its nonce from the same
    sequencer as the request that follows it.
    """

    def __init__(
        self,
        pipeline: TransferPipeline,
        whitelist: WhitelistInterface,
        config: Optional[RelayerConfig] = None,
    ):
        self.pipeline = pipeline
        self.whitelist = whitelist
        self.config = config or get_config()

    def fee_intent(self, sender: str) -> TransferIntent:
        """Build the fee transfer for a sender."""
        return TransferIntent.fungible(
            sender=sender,
            receiver=self.config.treasury_address,
            amount=str(self.config.usage_fee_amount),
            token_identifier=self.config.usage_fee_token,
        )

    async def admit(self, sender: str, signer: TransactionSigner) -> Optional[str]:
        """
        Charge the usage fee for a sender.

        Args:
            sender: Address the request is made from
            signer: Signing capability of the sender

        Returns:
            Fee transaction hash, or None when no fee was due

        Raises:
            UsageFeeRejected: If the fee was not collected
        """
        if not self.config.usage_fee_enabled:
            return None

        if await self.whitelist.is_whitelisted(sender):
            logger.info("usage_fee_waived", address=sender)
            return None

        try:
            result = await self.pipeline.execute(self.fee_intent(sender), signer)
        except RelayerError as e:
            logger.warning("usage_fee_failed", address=sender, error=str(e), tx_hash=e.transaction_id)
            raise UsageFeeRejected(
                f"Usage fee not collected: {e}",
                address=sender,
                transaction_id=e.transaction_id,
            ) from e

        if result.status != TransactionStatus.SUCCESS:
            logger.warning("usage_fee_rejected", address=sender, tx_hash=result.transaction_id)
            raise UsageFeeRejected(
                f"Usage fee transaction {result.transaction_id} ended with status {result.status.value}",
                address=sender,
                transaction_id=result.transaction_id,
            )

        logger.info("usage_fee_collected", address=sender, tx_hash=result.transaction_id)
        return result.transaction_id
