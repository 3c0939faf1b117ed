"""
Submitter - signs and broadcasts transaction records.
"""

import inspect

import structlog

from relayer.core.transaction import TransactionRecord
from relayer.errors import BroadcastFailure, SignatureFailure
from relayer.node.interface import LedgerInterface, NodeConnectionError, TransactionSubmitError
from relayer.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)


class Submitter:
    """
    Signs a record once and broadcasts it once.

    A rejected broadcast is terminal for that record: resubmitting with the
    same nonce is ambiguous and choosing a new nonce is the caller's call.
    """

    def __init__(self, node: LedgerInterface):
        self.node = node

    async def submit(self, record: TransactionRecord, signer: TransactionSigner) -> str:
        """
        Sign and broadcast a transaction record.

        Args:
            record: Unsigned transaction record
            signer: Signing capability of the record's sender

        Returns:
            Transaction hash

        Raises:
            SignatureFailure: If signing fails
            BroadcastFailure: If the ledger rejects or cannot take the record
        """
        signed = await self._sign(record, signer)

        try:
            tx_hash = await self.node.broadcast(signed)
        except TransactionSubmitError as e:
            logger.error("tx_broadcast_rejected", sender=record.sender, nonce=record.nonce, error=str(e))
            raise BroadcastFailure(
                str(e),
                address=record.sender,
                error_code=e.error_code,
            ) from e
        except NodeConnectionError as e:
            logger.error("tx_broadcast_unreachable", sender=record.sender, nonce=record.nonce, error=str(e))
            raise BroadcastFailure(str(e), address=record.sender) from e

        logger.info("tx_broadcast", sender=record.sender, nonce=record.nonce, tx_hash=tx_hash)
        return tx_hash

    async def _sign(self, record: TransactionRecord, signer: TransactionSigner) -> TransactionRecord:
        if record.is_signed:
            raise SignatureFailure(
                f"Transaction {record.sender}#{record.nonce} is already signed",
                address=record.sender,
            )

        try:
            signed = signer.sign(record)
            if inspect.isawaitable(signed):
                signed = await signed
        except Exception as e:
            logger.error("tx_sign_failed", sender=record.sender, nonce=record.nonce, error=str(e))
            raise SignatureFailure(f"Signing failed: {e}", address=record.sender) from e

        if not isinstance(signed, TransactionRecord) or not signed.is_signed:
            raise SignatureFailure("Signer returned an unsigned record", address=record.sender)
        if signed.nonce != record.nonce or signed.sender != record.sender:
            raise SignatureFailure("Signer altered the transaction record", address=record.sender)

        return signed
