"""
Transfer Intent model.

Represents a single client-submitted transfer, before a nonce is assigned.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

from relayer.errors import InvalidIntent


class TransferKind(str, Enum):
    """Kind of asset movement requested."""
    NATIVE = "native"                  # EGLD transfer
    FUNGIBLE = "fungible"              # ESDT transfer
    NON_FUNGIBLE = "non_fungible"      # NFT transfer (quantity 1)
    SEMI_FUNGIBLE = "semi_fungible"    # SFT / Meta-ESDT transfer
    CONTRACT_CALL = "contract_call"    # Smart contract call (e.g. mint airdrop)


@dataclass(frozen=True)
class TransferIntent:
    """
    A validated request to move value from a sender to a receiver.

    Attributes:
        kind: Kind of transfer
        sender: Bech32 address of the sending account
        receiver: Bech32 address of the recipient (the contract for calls)
        amount: Human amount as a decimal string; for contract calls the
            requested quantity
        token_identifier: Token ticker or collection identifier
        token_nonce: Nonce of the NFT/SFT within its collection
        contract_endpoint: Endpoint invoked by a contract call
        contract_args: Positional endpoint arguments
    """

    kind: TransferKind
    sender: str
    receiver: str
    amount: str = "0"

    token_identifier: Optional[str] = None
    token_nonce: Optional[int] = None

    contract_endpoint: Optional[str] = None
    contract_args: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Normalize enum and argument types."""
        if isinstance(self.kind, str) and not isinstance(self.kind, TransferKind):
            try:
                kind = TransferKind(self.kind)
            except ValueError:
                raise InvalidIntent(f"Unknown transfer kind: {self.kind!r}", address=self.sender)
            object.__setattr__(self, "kind", kind)
        if not isinstance(self.amount, str):
            object.__setattr__(self, "amount", str(self.amount))
        if not isinstance(self.contract_args, tuple):
            object.__setattr__(self, "contract_args", tuple(self.contract_args))

    @classmethod
    def native(cls, sender: str, receiver: str, amount: str) -> "TransferIntent":
        """Create an EGLD transfer intent."""
        return cls(TransferKind.NATIVE, sender, receiver, amount)

    @classmethod
    def fungible(
        cls,
        sender: str,
        receiver: str,
        amount: str,
        token_identifier: str,
    ) -> "TransferIntent":
        """Create an ESDT transfer intent."""
        return cls(
            TransferKind.FUNGIBLE,
            sender,
            receiver,
            amount,
            token_identifier=token_identifier,
        )

    @classmethod
    def non_fungible(
        cls,
        sender: str,
        receiver: str,
        token_identifier: str,
        token_nonce: int,
    ) -> "TransferIntent":
        """Create an NFT transfer intent."""
        return cls(
            TransferKind.NON_FUNGIBLE,
            sender,
            receiver,
            "1",
            token_identifier=token_identifier,
            token_nonce=token_nonce,
        )

    @classmethod
    def semi_fungible(
        cls,
        sender: str,
        receiver: str,
        amount: str,
        token_identifier: str,
        token_nonce: int,
    ) -> "TransferIntent":
        """Create an SFT transfer intent."""
        return cls(
            TransferKind.SEMI_FUNGIBLE,
            sender,
            receiver,
            amount,
            token_identifier=token_identifier,
            token_nonce=token_nonce,
        )

    @classmethod
    def contract_call(
        cls,
        sender: str,
        contract: str,
        endpoint: str,
        args: Tuple[Any, ...] = (),
        quantity: int = 1,
    ) -> "TransferIntent":
        """Create a contract call intent."""
        return cls(
            TransferKind.CONTRACT_CALL,
            sender,
            contract,
            str(quantity),
            contract_endpoint=endpoint,
            contract_args=tuple(args),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "sender": self.sender,
            "receiver": self.receiver,
            "amount": self.amount,
            "token_identifier": self.token_identifier,
            "token_nonce": self.token_nonce,
            "contract_endpoint": self.contract_endpoint,
            "contract_args": [str(a) for a in self.contract_args],
        }


@dataclass(frozen=True)
class OwnerStat:
    """Holder entry for a reward distribution."""

    owner: str
    tokens_count: int = 1
