"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
from typing import Dict, List, Optional, Union

import pytest

from relayer.config import NetworkType, RelayerConfig
from relayer.core.transaction import TransactionRecord
from relayer.node.interface import LedgerInterface, TransactionSubmitError, STATUS_SUCCESS
from relayer.node.tokens import TokenMetadataInterface
from relayer.errors import TokenMetadataUnavailable
from relayer.tx.signer import TransactionSigner


# ============================================================================
# Test Addresses
# ============================================================================

ALICE = "erd1qyu5wthldzr8wx5c9ucg8kjagg0jfs53s8nr3zpz3hypefsdd8ssycr6th"
ALICE_HEX = "0139472eff6886771a982f3083da5d421f24c29181e63888228dc81ca60d69e1"
BOB = "erd1spyavw0956vq68xj8y4tenjpq2wd5a9p2c6j8gsz7ztyrnpxrruqzu66jx"
BOB_HEX = "8049d639e5a6980d1cd2392abcce41029cda74a1563523a202f09641cc2618f8"
CAROL = "erd1k2s324ww2g0yj38qn2ch2jwctdy8mnfxep94q9arncc6xecg3xaq6mjse8"
TREASURY = "erd158k2c3aserjmwnyxzpln24xukl2fsvlk9x46xae4dxl5xds79g6sdz37qn"


def generate_test_tx_hash(index: int = 0) -> str:
    """Generate a deterministic test transaction hash."""
    base = "abcd1234" * 8  # 64 chars
    return base[:60] + f"{index:04d}"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> RelayerConfig:
    """Create a test configuration."""
    return RelayerConfig(
        network=NetworkType.DEVNET,
        confirmation_max_retries=5,
        confirmation_interval_seconds=0,
        batch_group_size=4,
        batch_group_delay_seconds=1.0,
        usage_fee_enabled=False,
        treasury_address=TREASURY,
        database_url="sqlite+aiosqlite:///:memory:",
        log_level="DEBUG",
    )


@pytest.fixture
def fee_config(test_config) -> RelayerConfig:
    """Test configuration with the usage fee switched on."""
    return test_config.model_copy(update={"usage_fee_enabled": True})


# ============================================================================
# Mock Ledger
# ============================================================================

class MockLedger(LedgerInterface):
    """
    In-memory ledger for testing.

    Broadcast records are kept in order. Status answers come from
    ``statuses`` (a list is consumed one answer per query, its last entry
    repeating), falling back to ``default_status``. Each nonce in
    ``reject_nonces`` is rejected once; a reused sender nonce is always
    rejected.
    """

    def __init__(self, default_status: str = STATUS_SUCCESS):
        self.nonces: Dict[str, int] = {}
        self.broadcasts: List[TransactionRecord] = []
        self.statuses: Dict[str, Union[str, List[Union[str, Exception]]]] = {}
        self.status_calls: Dict[str, int] = {}
        self.default_status = default_status
        self.nonce_calls = 0
        self.nonce_error: Optional[Exception] = None
        self.reject_nonces: set = set()
        self.used_nonces: set = set()
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def get_account_nonce(self, address: str) -> int:
        self.nonce_calls += 1
        await asyncio.sleep(0)
        if self.nonce_error:
            raise self.nonce_error
        return self.nonces.get(address, 0)

    async def broadcast(self, record: TransactionRecord) -> str:
        await asyncio.sleep(0)
        if record.nonce in self.reject_nonces:
            self.reject_nonces.discard(record.nonce)
            raise TransactionSubmitError("insufficient funds", error_code="bad_request")
        if (record.sender, record.nonce) in self.used_nonces:
            raise TransactionSubmitError("nonce already used", error_code="bad_request")
        self.used_nonces.add((record.sender, record.nonce))
        self.broadcasts.append(record)
        return generate_test_tx_hash(len(self.broadcasts))

    async def get_status(self, transaction_id: str) -> str:
        self.status_calls[transaction_id] = self.status_calls.get(transaction_id, 0) + 1
        await asyncio.sleep(0)

        answer = self.statuses.get(transaction_id, self.default_status)
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def get_transaction(self, transaction_id: str) -> Optional[dict]:
        for index, record in enumerate(self.broadcasts, start=1):
            if generate_test_tx_hash(index) == transaction_id:
                return record.to_gateway_dict()
        return None

    def tx_hash_for(self, index: int) -> str:
        """Hash the mock assigns to the ``index``-th broadcast (1-based)."""
        return generate_test_tx_hash(index)


@pytest.fixture
def mock_ledger() -> MockLedger:
    """Create a mock ledger."""
    return MockLedger()


# ============================================================================
# Token Metadata and Signers
# ============================================================================

class StaticTokenMetadata(TokenMetadataInterface):
    """Token metadata from a fixed table."""

    def __init__(self, decimals: Optional[Dict[str, int]] = None):
        self.decimals = decimals or {}
        self.lookups: List[str] = []

    async def get_decimals(self, token_identifier: str) -> int:
        self.lookups.append(token_identifier)
        if token_identifier not in self.decimals:
            raise TokenMetadataUnavailable(f"Unknown token {token_identifier}")
        return self.decimals[token_identifier]


@pytest.fixture
def token_metadata() -> StaticTokenMetadata:
    return StaticTokenMetadata({
        "REWARD-cf6eac": 18,
        "USDC-c76f1f": 6,
        "TWO-abcdef": 2,
        "SFT-123456": 0,
        "META-a1b2c3": 4,
    })


class FakeSigner(TransactionSigner):
    """Signer producing a deterministic fake signature."""

    def __init__(self, address: str = ALICE, fail: bool = False):
        self._address = address
        self.fail = fail
        self.signed: List[TransactionRecord] = []

    @property
    def address(self) -> str:
        return self._address

    def sign(self, record: TransactionRecord) -> TransactionRecord:
        if self.fail:
            raise RuntimeError("hardware wallet unavailable")
        self.signed.append(record)
        return record.with_signature(f"{record.nonce:0128x}")


class AsyncFakeSigner(FakeSigner):
    """Signer whose ``sign`` is a coroutine."""

    async def sign(self, record: TransactionRecord) -> TransactionRecord:
        await asyncio.sleep(0)
        return super().sign(record)


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner(ALICE)


# ============================================================================
# Sleep
# ============================================================================

class RecordingSleep:
    """Awaitable sleep that records requested delays without waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()

