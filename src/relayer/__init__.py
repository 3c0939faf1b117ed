"""
MultiversX Relayer

Relays EGLD, ESDT, NFT and SFT transfers and contract-call airdrops onto the
MultiversX network, with per-sender nonce sequencing, throttled batching,
an optional usage fee and bounded confirmation polling.
"""

__version__ = "0.1.0"

from relayer.core.intent import OwnerStat, TransferIntent, TransferKind
from relayer.core.outcome import BatchItemStatus, BatchOutcome
from relayer.core.relay import Relay
from relayer.core.transaction import SubmissionResult, TransactionRecord, TransactionStatus

__all__ = [
    "Relay",
    "OwnerStat",
    "TransferIntent",
    "TransferKind",
    "BatchItemStatus",
    "BatchOutcome",
    "SubmissionResult",
    "TransactionRecord",
    "TransactionStatus",
]
