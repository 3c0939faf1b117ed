"""
Transfer Builder - turns transfer intents into signable transaction records.

Handles amount scaling, built-in function call data and gas limits for
every transfer kind.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from relayer.config import RelayerConfig, get_config
from relayer.core.intent import TransferIntent, TransferKind
from relayer.core.transaction import TransactionRecord
from relayer.errors import InvalidIntent
from relayer.node.tokens import TokenMetadataInterface
from relayer.tx.encoding import (
    build_call_data,
    is_address,
    parse_amount,
    to_blockchain_value,
    whole_units,
)

logger = structlog.get_logger(__name__)

ESDT_TRANSFER = "ESDTTransfer"
ESDT_NFT_TRANSFER = "ESDTNFTTransfer"


@dataclass(frozen=True)
class PreparedTransfer:
    """A validated intent with every field of its record resolved except the nonce."""

    intent: TransferIntent
    receiver: str
    gas_limit: int
    value: str = "0"
    data: str = ""


class TransferBuilder:
    """
    Builds transaction records from transfer intents.

    Building is split in two steps. ``prepare`` validates the intent and
    resolves token decimals, and is the only step that can fail on a bad
    intent or an unknown token. ``assemble`` stamps a nonce on the result.
    """

    def __init__(
        self,
        tokens: TokenMetadataInterface,
        config: Optional[RelayerConfig] = None,
    ):
        """
        Initialize the transfer builder.

        Args:
            tokens: Token metadata source for decimal scaling
            config: Relayer configuration
        """
        self.tokens = tokens
        self.config = config or get_config()

    async def build(self, intent: TransferIntent, nonce: int) -> TransactionRecord:
        """
        Build a transaction record for an intent.

        Args:
            intent: The transfer to perform
            nonce: Nonce assigned to the sender

        Returns:
            Unsigned transaction record

        Raises:
            InvalidIntent: If fields required by the intent's kind are missing
        """
        return self.assemble(await self.prepare(intent), nonce)

    async def prepare(self, intent: TransferIntent) -> PreparedTransfer:
        """
        Validate an intent and resolve everything its record needs but the nonce.

        Raises:
            InvalidIntent: If the intent is malformed
            TokenMetadataUnavailable: If token decimals cannot be resolved
        """
        self._validate(intent)

        if intent.kind == TransferKind.NATIVE:
            return self._native(intent)
        if intent.kind == TransferKind.FUNGIBLE:
            return await self._fungible(intent)
        if intent.kind == TransferKind.NON_FUNGIBLE:
            return self._non_fungible(intent)
        if intent.kind == TransferKind.SEMI_FUNGIBLE:
            return await self._semi_fungible(intent)
        return self._contract_call(intent)

    def assemble(self, prepared: PreparedTransfer, nonce: int) -> TransactionRecord:
        """Create the unsigned record for a prepared transfer."""
        intent = prepared.intent
        if nonce < 0:
            raise InvalidIntent(f"Invalid nonce {nonce}", address=intent.sender)

        record = TransactionRecord(
            sender=intent.sender,
            receiver=prepared.receiver,
            nonce=nonce,
            value=prepared.value,
            data=prepared.data,
            gas_limit=min(prepared.gas_limit, self.config.max_gas_limit),
            gas_price=self.config.gas_price,
            chain_id=self.config.chain_id,
        )

        logger.debug(
            "transaction_built",
            kind=intent.kind.value,
            sender=intent.sender,
            nonce=nonce,
            gas_limit=record.gas_limit,
        )
        return record

    def _validate(self, intent: TransferIntent) -> None:
        for role, address in (("sender", intent.sender), ("receiver", intent.receiver)):
            if not is_address(address):
                raise InvalidIntent(f"Invalid {role} address: {address!r}", address=intent.sender)

        if intent.kind in (TransferKind.FUNGIBLE, TransferKind.NON_FUNGIBLE, TransferKind.SEMI_FUNGIBLE):
            if not intent.token_identifier:
                raise InvalidIntent(
                    f"token_identifier is required for {intent.kind.value} transfers",
                    address=intent.sender,
                )

        if intent.kind in (TransferKind.NON_FUNGIBLE, TransferKind.SEMI_FUNGIBLE):
            if intent.token_nonce is None:
                raise InvalidIntent(
                    f"token_nonce is required for {intent.kind.value} transfers",
                    address=intent.sender,
                )
            if intent.token_nonce < 0:
                raise InvalidIntent(f"Invalid token nonce {intent.token_nonce}", address=intent.sender)

        if intent.kind == TransferKind.CONTRACT_CALL and not intent.contract_endpoint:
            raise InvalidIntent("contract_endpoint is required for contract calls", address=intent.sender)

        amount = parse_amount(intent.amount)
        if amount <= 0:
            raise InvalidIntent(f"Amount must be positive: {intent.amount!r}", address=intent.sender)

        if intent.kind == TransferKind.NON_FUNGIBLE and amount != 1:
            raise InvalidIntent("NFT transfers move exactly one unit", address=intent.sender)

        if intent.kind == TransferKind.CONTRACT_CALL and amount != amount.to_integral_value():
            raise InvalidIntent(f"Quantity must be a whole number: {intent.amount!r}", address=intent.sender)

    def _scaled(self, intent: TransferIntent, decimals: int) -> str:
        value = to_blockchain_value(intent.amount, decimals)
        if value == "0":
            raise InvalidIntent(
                f"Amount {intent.amount} is below the precision of {decimals} decimals",
                address=intent.sender,
            )
        return value

    def _native(self, intent: TransferIntent) -> PreparedTransfer:
        return PreparedTransfer(
            intent,
            receiver=intent.receiver,
            gas_limit=self.config.default_gas_limit,
            value=self._scaled(intent, self.config.native_decimals),
        )

    async def _fungible(self, intent: TransferIntent) -> PreparedTransfer:
        decimals = await self.tokens.get_decimals(intent.token_identifier)
        value = self._scaled(intent, decimals)
        return PreparedTransfer(
            intent,
            receiver=intent.receiver,
            gas_limit=self.config.default_gas_limit,
            data=build_call_data(ESDT_TRANSFER, intent.token_identifier, int(value)),
        )

    def _nft_data(self, intent: TransferIntent, quantity: int) -> str:
        # NFT/SFT transfers are sent to self; the recipient travels in the data
        return build_call_data(
            ESDT_NFT_TRANSFER,
            intent.token_identifier,
            intent.token_nonce,
            quantity,
            intent.receiver,
        )

    def _non_fungible(self, intent: TransferIntent) -> PreparedTransfer:
        return PreparedTransfer(
            intent,
            receiver=intent.sender,
            gas_limit=self.config.nft_gas_limit,
            data=self._nft_data(intent, 1),
        )

    async def _semi_fungible(self, intent: TransferIntent) -> PreparedTransfer:
        decimals = await self.tokens.get_decimals(intent.token_identifier)
        quantity = int(self._scaled(intent, decimals))
        return PreparedTransfer(
            intent,
            receiver=intent.sender,
            gas_limit=self.config.sft_gas_limit + whole_units(intent.amount) * self.config.sft_gas_per_unit,
            data=self._nft_data(intent, quantity),
        )

    def _contract_call(self, intent: TransferIntent) -> PreparedTransfer:
        return PreparedTransfer(
            intent,
            receiver=intent.receiver,
            gas_limit=self.config.nft_gas_limit + whole_units(intent.amount) * self.config.mint_gas_per_unit,
            data=build_call_data(intent.contract_endpoint, *intent.contract_args),
        )
