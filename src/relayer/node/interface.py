"""
Abstract interface for MultiversX ledger integration.

Defines the contract for ledger access that all node adapters must implement.
"""

from abc import ABC, abstractmethod
from typing import Optional

from relayer.core.transaction import TransactionRecord


# Normalized status codes returned by get_status
STATUS_PENDING = "pending"
STATUS_SUCCESS = "success"
STATUS_FAIL = "fail"


class LedgerInterface(ABC):
    """
    Abstract interface for ledger access.

    This interface defines all ledger operations needed by the relayer:
    - Account nonce queries
    - Transaction broadcast
    - Transaction status monitoring
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the gateway.

        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the gateway."""
        pass

    @abstractmethod
    async def get_account_nonce(self, address: str) -> int:
        """
        Get the current nonce of an account.

        Args:
            address: Bech32 encoded address

        Returns:
            Nonce the next transaction of this account must carry

        Raises:
            NodeConnectionError: If the ledger cannot be reached
        """
        pass

    @abstractmethod
    async def broadcast(self, record: TransactionRecord) -> str:
        """
        Broadcast a signed transaction.

        Args:
            record: Signed transaction record

        Returns:
            Transaction hash

        Raises:
            TransactionSubmitError: If the ledger rejects the transaction
            NodeConnectionError: If the ledger cannot be reached
        """
        pass

    @abstractmethod
    async def get_status(self, transaction_id: str) -> str:
        """
        Get the normalized status of a transaction.

        Args:
            transaction_id: Transaction hash

        Returns:
            One of "pending", "success" or "fail"
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[dict]:
        """
        Get transaction details by hash.

        Args:
            transaction_id: Transaction hash

        Returns:
            Transaction details if found, None otherwise
        """
        pass


class NodeConnectionError(Exception):
    """Raised when the gateway cannot be reached or answers with an error."""
    pass


class TransactionSubmitError(Exception):
    """Raised when transaction submission is rejected."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
