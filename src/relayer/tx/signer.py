"""
Transaction Signer - signing capability interface.

Key material and the signing algorithm live outside the relayer; a signer
is handed in per request by whoever holds the wallet.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Union

from relayer.core.transaction import TransactionRecord


class TransactionSigner(ABC):
    """
    Signing capability for one wallet.

    Implementations sign ``record.signing_payload()`` and return
    ``record.with_signature(signature_hex)``. ``sign`` may be a plain or a
    coroutine function.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Bech32 address of the wallet this signer holds."""
        pass

    @abstractmethod
    def sign(
        self,
        record: TransactionRecord,
    ) -> Union[TransactionRecord, Awaitable[TransactionRecord]]:
        """
        Sign a transaction record.

        Args:
            record: Unsigned transaction record

        Returns:
            The signed record
        """
        pass
