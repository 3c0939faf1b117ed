"""
Transfer Pipeline - the acquire, build, submit, confirm chain for one intent.
"""

import structlog

from relayer.core.intent import TransferIntent
from relayer.core.transaction import SubmissionResult
from relayer.errors import InvalidIntent
from relayer.tx.builder import TransferBuilder
from relayer.tx.nonce import NonceSequencer
from relayer.tx.poller import ConfirmationPoller
from relayer.tx.signer import TransactionSigner
from relayer.tx.submitter import Submitter

logger = structlog.get_logger(__name__)


class TransferPipeline:
    """
    Runs one transfer intent end to end.

    The intent is validated and its token decimals resolved before a nonce
    is reserved, so a malformed intent never consumes one. A nonce whose
    record was never accepted by the ledger (signing or broadcast failed)
    is released back to the sequencer.
    """

    def __init__(
        self,
        sequencer: NonceSequencer,
        builder: TransferBuilder,
        submitter: Submitter,
        poller: ConfirmationPoller,
    ):
        self.sequencer = sequencer
        self.builder = builder
        self.submitter = submitter
        self.poller = poller

    async def execute(self, intent: TransferIntent, signer: TransactionSigner) -> SubmissionResult:
        """
        Execute a transfer and wait for it to settle.

        Args:
            intent: Transfer to perform
            signer: Signing capability of ``intent.sender``

        Returns:
            SubmissionResult with status SUCCESS or FAIL

        Raises:
            RelayerError: First error encountered along the chain
        """
        if signer.address != intent.sender:
            raise InvalidIntent(
                f"Signer address {signer.address} does not match sender {intent.sender}",
                address=intent.sender,
            )

        prepared = await self.builder.prepare(intent)

        nonce = await self.sequencer.acquire(intent.sender)
        log = logger.bind(sender=intent.sender, nonce=nonce, kind=intent.kind.value)

        try:
            record = self.builder.assemble(prepared, nonce)
            tx_hash = await self.submitter.submit(record, signer)
        except Exception as e:
            log.warning("transfer_not_broadcast", error=str(e), error_type=type(e).__name__)
            self.sequencer.release(intent.sender, nonce)
            raise

        log.info("transfer_broadcast", tx_hash=tx_hash)
        return await self.poller.wait(tx_hash, address=intent.sender)
