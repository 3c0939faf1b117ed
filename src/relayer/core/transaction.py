"""
Transaction models.

A TransactionRecord is the signable form of a transfer intent; a
SubmissionResult is what the relayer reports back once the ledger has
(or has not) settled it.
"""

import base64
import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class TransactionStatus(str, Enum):
    """Settlement status of a submitted transaction."""
    PENDING = "pending"     # Broadcast, no terminal ledger status yet
    SUCCESS = "success"     # Ledger reported success
    FAIL = "fail"           # Ledger reported failure
    UNKNOWN = "unknown"     # Retry budget exhausted without a terminal status

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


@dataclass(frozen=True)
class TransactionRecord:
    """
    A transaction ready for signing.

    Records are immutable: signing produces a new record via
    ``with_signature`` and a signature can be attached only once.
    """

    sender: str
    receiver: str
    nonce: int
    value: str
    gas_limit: int
    chain_id: str
    data: str = ""
    gas_price: int = 1_000_000_000
    version: int = 1
    signature: Optional[str] = None

    @property
    def is_signed(self) -> bool:
        return self.signature is not None

    def with_signature(self, signature: str) -> "TransactionRecord":
        """Return a copy of this record carrying the given signature."""
        if self.is_signed:
            raise ValueError(
                f"Transaction {self.sender}#{self.nonce} is already signed"
            )
        if not signature:
            raise ValueError("Signature must not be empty")
        return replace(self, signature=signature)

    def _fields(self) -> dict:
        fields = {
            "nonce": self.nonce,
            "value": self.value,
            "receiver": self.receiver,
            "sender": self.sender,
            "gasPrice": self.gas_price,
            "gasLimit": self.gas_limit,
        }
        if self.data:
            fields["data"] = base64.b64encode(self.data.encode()).decode()
        fields["chainID"] = self.chain_id
        fields["version"] = self.version
        return fields

    def signing_payload(self) -> bytes:
        """Canonical serialized form a signer signs."""
        return json.dumps(self._fields(), separators=(",", ":")).encode()

    def to_gateway_dict(self) -> dict:
        """JSON body accepted by the gateway's send endpoint."""
        fields = self._fields()
        if self.signature:
            fields["signature"] = self.signature
        return fields


@dataclass(frozen=True)
class SubmissionResult:
    """
    Outcome of one submit-and-confirm run.

    Attributes:
        transaction_id: Hash returned by the ledger on broadcast
        status: Settlement status
        fee_transaction_id: Hash of the usage fee paid for this request, if any
        ticks: Status queries consumed while confirming
    """

    transaction_id: str
    status: TransactionStatus
    fee_transaction_id: Optional[str] = None
    ticks: int = 0

    @property
    def is_success(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "transaction_id": self.transaction_id,
            "status": self.status.value,
            "fee_transaction_id": self.fee_transaction_id,
            "ticks": self.ticks,
        }
