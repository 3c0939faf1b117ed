"""
Error taxonomy for the relayer.

Every error carries the context needed for manual reconciliation against
the ledger: the address involved and, once one exists, the transaction hash.
"""

from typing import Optional


class RelayerError(Exception):
    """Base class for all relayer errors."""

    retryable = False

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.address = address
        self.transaction_id = transaction_id

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "error": type(self).__name__,
            "message": str(self),
            "address": self.address,
            "transaction_id": self.transaction_id,
            "retryable": self.retryable,
        }


class NonceUnavailable(RelayerError):
    """Raised when the account nonce cannot be fetched from the ledger."""

    retryable = True


class InvalidIntent(RelayerError):
    """Raised when a transfer intent is missing fields required by its kind."""


class TokenMetadataUnavailable(RelayerError):
    """Raised when token decimals cannot be resolved."""

    retryable = True


class SignatureFailure(RelayerError):
    """Raised when the signer fails to sign a transaction record."""


class BroadcastFailure(RelayerError):
    """Raised when the ledger rejects a signed transaction."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        transaction_id: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message, address=address, transaction_id=transaction_id)
        self.error_code = error_code


class ConfirmationTimeout(RelayerError):
    """
    Raised when a transaction did not reach a terminal state in time.

    The transaction may still land: callers should query it again by
    transaction hash rather than resubmit.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        transaction_id: str,
        ticks: int = 0,
        address: Optional[str] = None,
    ):
        super().__init__(message, address=address, transaction_id=transaction_id)
        self.ticks = ticks


class UsageFeeRejected(RelayerError):
    """Raised when the usage fee could not be collected; the request must not proceed."""


class WhitelistError(RelayerError):
    """Raised on invalid whitelist changes (duplicate or missing entries)."""
