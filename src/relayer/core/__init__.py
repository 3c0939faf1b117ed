"""
Core relayer components.

This module contains the transfer data model and the Relay orchestrator
exposing one operation per transfer kind plus batch distribution.
"""

from relayer.core.intent import OwnerStat, TransferIntent, TransferKind
from relayer.core.outcome import BatchItemOutcome, BatchItemStatus, BatchOutcome
from relayer.core.transaction import SubmissionResult, TransactionRecord, TransactionStatus

__all__ = [
    "OwnerStat",
    "TransferIntent",
    "TransferKind",
    "BatchItemOutcome",
    "BatchItemStatus",
    "BatchOutcome",
    "SubmissionResult",
    "TransactionRecord",
    "TransactionStatus",
]
