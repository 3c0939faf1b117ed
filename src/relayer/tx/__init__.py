"""
Transaction Layer.

Nonce sequencing, record building, signing, broadcast and confirmation.
"""

from relayer.tx.builder import TransferBuilder
from relayer.tx.nonce import NonceSequencer
from relayer.tx.pipeline import TransferPipeline
from relayer.tx.poller import ConfirmationPoller, ConfirmationTracker
from relayer.tx.signer import TransactionSigner
from relayer.tx.submitter import Submitter

__all__ = [
    "TransferBuilder",
    "NonceSequencer",
    "TransferPipeline",
    "ConfirmationPoller",
    "ConfirmationTracker",
    "TransactionSigner",
    "Submitter",
]
