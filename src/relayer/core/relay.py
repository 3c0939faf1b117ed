"""
Main Relay orchestrator.

Coordinates the fee gate, nonce sequencing, transaction building,
submission and confirmation behind one operation per transfer kind.
"""

from dataclasses import replace
from typing import Any, List, Optional, Sequence

import structlog

from relayer.config import RelayerConfig, get_config
from relayer.core.intent import OwnerStat, TransferIntent
from relayer.core.outcome import BatchOutcome
from relayer.core.transaction import SubmissionResult
from relayer.engine.fee_gate import UsageFeeGate
from relayer.engine.scheduler import BatchScheduler
from relayer.errors import InvalidIntent
from relayer.node.interface import LedgerInterface
from relayer.node.tokens import TokenMetadataInterface
from relayer.state.whitelist import StaticWhitelist, WhitelistInterface
from relayer.tx.builder import TransferBuilder
from relayer.tx.encoding import parse_amount
from relayer.tx.nonce import NonceSequencer
from relayer.tx.pipeline import TransferPipeline
from relayer.tx.poller import ConfirmationPoller
from relayer.tx.signer import TransactionSigner
from relayer.tx.submitter import Submitter

logger = structlog.get_logger(__name__)


class Relay:
    """
    Main relay orchestrator.

    Every request first passes the usage fee gate, then runs the
    acquire, build, submit, confirm pipeline. Batches pay the fee once and
    run their items through the batch scheduler.

    Usage:
        ```python
        relay = Relay(node=GatewayAdapter(), tokens=ApiTokenMetadata(), whitelist=db)
        await relay.initialize()
        result = await relay.transfer_native(signer, "erd1...", "0.5")
        ```
    """

    def __init__(
        self,
        node: LedgerInterface,
        tokens: TokenMetadataInterface,
        whitelist: Optional[WhitelistInterface] = None,
        config: Optional[RelayerConfig] = None,
        sequencer: Optional[NonceSequencer] = None,
        poller: Optional[ConfirmationPoller] = None,
        scheduler: Optional[BatchScheduler] = None,
    ):
        """
        Initialize the relay.

        Args:
            node: Ledger interface
            tokens: Token metadata source
            whitelist: Fee exemption and activity store (static list from config if not provided)
            config: Relayer configuration
            sequencer: Shared nonce sequencer (created if not provided)
            poller: Confirmation poller (created from config if not provided)
            scheduler: Batch scheduler (created if not provided)
        """
        self.config = config or get_config()
        self.node = node
        self.tokens = tokens
        if whitelist is None:
            whitelist = StaticWhitelist(self.config.whitelisted_addresses)
        self.whitelist = whitelist

        self.sequencer = sequencer or NonceSequencer(node)
        self.pipeline = TransferPipeline(
            sequencer=self.sequencer,
            builder=TransferBuilder(tokens, self.config),
            submitter=Submitter(node),
            poller=poller or ConfirmationPoller(node, config=self.config),
        )
        self.fee_gate = UsageFeeGate(self.pipeline, whitelist, self.config)
        self.scheduler = scheduler or BatchScheduler()

    async def initialize(self) -> None:
        """Connect the ledger and token metadata clients."""
        await self.node.connect()
        await self.tokens.connect()
        logger.info("relay_initialized", chain_id=self.config.chain_id)

    async def shutdown(self) -> None:
        """Close the ledger and token metadata clients."""
        await self.tokens.disconnect()
        await self.node.disconnect()
        logger.info("relay_shutdown")

    async def __aenter__(self) -> "Relay":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    # Single operations

    async def execute(self, intent: TransferIntent, signer: TransactionSigner) -> SubmissionResult:
        """
        Gate and run one transfer intent.

        Args:
            intent: Transfer to perform
            signer: Signing capability of the intent's sender

        Returns:
            SubmissionResult, carrying the usage fee hash when one was paid

        Raises:
            RelayerError: First error encountered, UsageFeeRejected included
        """
        fee_tx = await self.fee_gate.admit(intent.sender, signer)
        await self.whitelist.record_activity(intent.sender)

        result = await self.pipeline.execute(intent, signer)
        return replace(result, fee_transaction_id=fee_tx)

    async def transfer_native(
        self,
        signer: TransactionSigner,
        receiver: str,
        amount: str,
    ) -> SubmissionResult:
        """Send EGLD."""
        return await self.execute(TransferIntent.native(signer.address, receiver, amount), signer)

    async def transfer_fungible(
        self,
        signer: TransactionSigner,
        receiver: str,
        amount: str,
        token_identifier: str,
    ) -> SubmissionResult:
        """Send an ESDT token."""
        intent = TransferIntent.fungible(signer.address, receiver, amount, token_identifier)
        return await self.execute(intent, signer)

    async def transfer_non_fungible(
        self,
        signer: TransactionSigner,
        receiver: str,
        token_identifier: str,
        token_nonce: int,
    ) -> SubmissionResult:
        """Send one NFT."""
        intent = TransferIntent.non_fungible(signer.address, receiver, token_identifier, token_nonce)
        return await self.execute(intent, signer)

    async def transfer_semi_fungible(
        self,
        signer: TransactionSigner,
        receiver: str,
        amount: str,
        token_identifier: str,
        token_nonce: int,
    ) -> SubmissionResult:
        """Send an SFT or Meta-ESDT quantity."""
        intent = TransferIntent.semi_fungible(
            signer.address, receiver, amount, token_identifier, token_nonce
        )
        return await self.execute(intent, signer)

    async def call_contract(
        self,
        signer: TransactionSigner,
        contract: str,
        endpoint: str,
        args: Sequence[Any] = (),
        quantity: int = 1,
    ) -> SubmissionResult:
        """
        Call a smart contract endpoint.

        ``quantity`` scales the gas limit for mint-style endpoints.
        """
        intent = TransferIntent.contract_call(signer.address, contract, endpoint, tuple(args), quantity)
        return await self.execute(intent, signer)

    async def mint_airdrop(
        self,
        signer: TransactionSigner,
        contract: str,
        endpoint: str,
        receiver: str,
        quantity: int,
    ) -> SubmissionResult:
        """Mint ``quantity`` NFTs from a contract straight to ``receiver``."""
        return await self.call_contract(signer, contract, endpoint, (receiver, quantity), quantity)

    # Batch operations

    async def run_batch(
        self,
        intents: Sequence[TransferIntent],
        signer: TransactionSigner,
        group_size: Optional[int] = None,
        group_delay: Optional[float] = None,
    ) -> BatchOutcome:
        """
        Run many intents from one sender in throttled groups.

        The usage fee is charged once for the whole batch. Per-item errors are
        recorded in the outcome; only a rejected fee fails the call.

        Args:
            intents: Transfers to perform, all from the signer's address
            signer: Signing capability of the sender
            group_size: Concurrent items per group (config default: 4)
            group_delay: Seconds between groups (config default: 1)

        Returns:
            BatchOutcome with one entry per intent, keyed by receiver
        """
        for intent in intents:
            if intent.sender != signer.address:
                raise InvalidIntent(
                    f"Batch intent sender {intent.sender} does not match signer {signer.address}",
                    address=intent.sender,
                )

        if group_size is None:
            group_size = self.config.batch_group_size
        if group_delay is None:
            group_delay = self.config.batch_group_delay_seconds
        if group_size < 1 or group_delay < 0:
            raise InvalidIntent(f"Invalid batch grouping: size {group_size}, delay {group_delay}")

        if not intents:
            return BatchOutcome()

        fee_tx = await self.fee_gate.admit(signer.address, signer)
        await self.whitelist.record_activity(signer.address)

        logger.info("batch_started", sender=signer.address, items=len(intents))

        async def worker(intent: TransferIntent) -> SubmissionResult:
            return await self.pipeline.execute(intent, signer)

        outcome = await self.scheduler.run(
            intents,
            worker,
            group_size=group_size,
            group_delay=group_delay,
            key=lambda intent: intent.receiver,
        )
        outcome.fee_transaction_id = fee_tx
        return outcome

    async def distribute_rewards(
        self,
        signer: TransactionSigner,
        owners: Sequence[OwnerStat],
        token_identifier: str,
        base_amount: str,
        multiply: bool = False,
        group_size: Optional[int] = None,
        group_delay: Optional[float] = None,
    ) -> BatchOutcome:
        """
        Distribute a fungible reward to NFT holders.

        Each owner receives ``base_amount``, or ``base_amount * tokens_count``
        when ``multiply`` is set.
        """
        base = parse_amount(base_amount)
        intents: List[TransferIntent] = []
        for stat in owners:
            if stat.tokens_count < 1:
                raise InvalidIntent(f"Invalid tokens count for {stat.owner}: {stat.tokens_count}")
            amount = base * stat.tokens_count if multiply else base
            intents.append(
                TransferIntent.fungible(signer.address, stat.owner, str(amount), token_identifier)
            )

        logger.info(
            "reward_distribution",
            token=token_identifier,
            owners=len(intents),
            multiply=multiply,
        )
        return await self.run_batch(intents, signer, group_size=group_size, group_delay=group_delay)
