"""
Batch outcome model.

Collects one entry per batch item, in input order, so partial failure is a
value callers can inspect rather than a log line.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from relayer.core.transaction import SubmissionResult, TransactionStatus


class BatchItemStatus(str, Enum):
    """Status of a single batch item."""
    SUCCESS = "success"     # Ledger reported success
    FAIL = "fail"           # Ledger reported failure
    UNKNOWN = "unknown"     # Broadcast, confirmation timed out
    FAILED = "failed"       # Raised before a ledger verdict


_FROM_TRANSACTION_STATUS = {
    TransactionStatus.SUCCESS: BatchItemStatus.SUCCESS,
    TransactionStatus.FAIL: BatchItemStatus.FAIL,
    TransactionStatus.UNKNOWN: BatchItemStatus.UNKNOWN,
    TransactionStatus.PENDING: BatchItemStatus.UNKNOWN,
}


@dataclass
class BatchItemOutcome:
    """Outcome of one batch item."""

    item_key: str
    status: BatchItemStatus
    transaction_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, item_key: str, result: SubmissionResult) -> "BatchItemOutcome":
        """Create an outcome from a completed submission."""
        return cls(
            item_key=item_key,
            status=_FROM_TRANSACTION_STATUS[result.status],
            transaction_id=result.transaction_id,
        )

    @classmethod
    def from_error(
        cls,
        item_key: str,
        error: BaseException,
        status: BatchItemStatus = BatchItemStatus.FAILED,
    ) -> "BatchItemOutcome":
        """Create an outcome from an exception raised by the worker."""
        return cls(
            item_key=item_key,
            status=status,
            transaction_id=getattr(error, "transaction_id", None),
            error=str(error) or type(error).__name__,
        )

    def to_dict(self) -> dict:
        return {
            "item_key": self.item_key,
            "status": self.status.value,
            "transaction_id": self.transaction_id,
            "error": self.error,
        }


@dataclass
class BatchOutcome:
    """
    Ordered outcomes of a batch run.

    Attributes:
        items: One entry per input item, in input order
        groups: Number of concurrency groups that were run
        fee_transaction_id: Usage fee paid for the batch, if any
    """

    items: List[BatchItemOutcome] = field(default_factory=list)
    groups: int = 0
    fee_transaction_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> BatchItemOutcome:
        return self.items[index]

    def __iter__(self) -> Iterator[BatchItemOutcome]:
        return iter(self.items)

    def count(self, status: BatchItemStatus) -> int:
        """Count items with the given status."""
        return sum(1 for item in self.items if item.status == status)

    @property
    def succeeded(self) -> int:
        return self.count(BatchItemStatus.SUCCESS)

    @property
    def all_succeeded(self) -> bool:
        return self.succeeded == len(self.items)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "groups": self.groups,
            "fee_transaction_id": self.fee_transaction_id,
            "summary": {status.value: self.count(status) for status in BatchItemStatus},
            "items": [item.to_dict() for item in self.items],
        }
