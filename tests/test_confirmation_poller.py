"""
Test suite for confirmation polling.

Tests the Pending -> Success/Fail/Unknown state machine with an injected
sleep, so no real time passes.
"""

import pytest

from relayer.core.transaction import TransactionStatus
from relayer.errors import ConfirmationTimeout
from relayer.node.interface import NodeConnectionError, STATUS_FAIL, STATUS_PENDING, STATUS_SUCCESS
from relayer.tx.poller import ConfirmationPoller, ConfirmationTracker

from conftest import ALICE

TX = "ab" * 32


# ============================================================================
# State Machine
# ============================================================================

class TestConfirmationTracker:
    """Tests for the tracker transitions."""

    def test_starts_pending(self):
        tracker = ConfirmationTracker(TX, max_retries=3)
        assert tracker.state == TransactionStatus.PENDING
        assert tracker.is_terminal is False

    def test_success_and_fail_are_terminal(self):
        success = ConfirmationTracker(TX, max_retries=3)
        assert success.observe(STATUS_SUCCESS) == TransactionStatus.SUCCESS

        fail = ConfirmationTracker(TX, max_retries=3)
        assert fail.observe(STATUS_FAIL) == TransactionStatus.FAIL

    def test_pending_until_budget_exhausted(self):
        tracker = ConfirmationTracker(TX, max_retries=3)

        assert tracker.observe(STATUS_PENDING) == TransactionStatus.PENDING
        assert tracker.observe(None) == TransactionStatus.PENDING
        assert tracker.observe("received") == TransactionStatus.UNKNOWN
        assert tracker.ticks == 3

    def test_terminal_tracker_rejects_observations(self):
        tracker = ConfirmationTracker(TX, max_retries=3)
        tracker.observe(STATUS_SUCCESS)

        with pytest.raises(RuntimeError):
            tracker.observe(STATUS_FAIL)

    def test_budget_must_be_positive(self):
        with pytest.raises(ValueError):
            ConfirmationTracker(TX, max_retries=0)


# ============================================================================
# Poller
# ============================================================================

class TestConfirmationPoller:
    """Tests for ConfirmationPoller.wait."""

    @pytest.mark.asyncio
    async def test_stops_on_first_terminal_status(self, mock_ledger, recording_sleep, test_config):
        mock_ledger.statuses[TX] = [STATUS_PENDING, STATUS_SUCCESS]
        poller = ConfirmationPoller(
            mock_ledger, max_retries=20, interval=5, sleep=recording_sleep, config=test_config
        )

        result = await poller.wait(TX)

        assert result.status == TransactionStatus.SUCCESS
        assert result.ticks == 2
        assert mock_ledger.status_calls[TX] == 2
        assert recording_sleep.calls == [5, 5]

    @pytest.mark.asyncio
    async def test_fail_status_is_returned(self, mock_ledger, recording_sleep, test_config):
        mock_ledger.statuses[TX] = STATUS_FAIL
        poller = ConfirmationPoller(mock_ledger, sleep=recording_sleep, config=test_config)

        result = await poller.wait(TX)

        assert result.status == TransactionStatus.FAIL
        assert result.is_success is False

    @pytest.mark.asyncio
    async def test_timeout_after_max_retries(self, mock_ledger, recording_sleep, test_config):
        mock_ledger.statuses[TX] = STATUS_PENDING
        poller = ConfirmationPoller(
            mock_ledger, max_retries=3, interval=1, sleep=recording_sleep, config=test_config
        )

        with pytest.raises(ConfirmationTimeout) as exc_info:
            await poller.wait(TX, address=ALICE)

        assert exc_info.value.transaction_id == TX
        assert exc_info.value.ticks == 3
        assert exc_info.value.address == ALICE
        assert mock_ledger.status_calls[TX] == 3
        assert len(recording_sleep.calls) == 3

    @pytest.mark.asyncio
    async def test_transport_errors_consume_retries(self, mock_ledger, recording_sleep, test_config):
        mock_ledger.statuses[TX] = [NodeConnectionError("timeout"), STATUS_SUCCESS]
        poller = ConfirmationPoller(
            mock_ledger, max_retries=3, interval=1, sleep=recording_sleep, config=test_config
        )

        result = await poller.wait(TX)

        assert result.status == TransactionStatus.SUCCESS
        assert result.ticks == 2

    @pytest.mark.asyncio
    async def test_defaults_come_from_config(self, mock_ledger, test_config):
        poller = ConfirmationPoller(mock_ledger, config=test_config)

        assert poller.max_retries == test_config.confirmation_max_retries
        assert poller.interval == test_config.confirmation_interval_seconds
