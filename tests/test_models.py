"""
Test suite for the data model and error taxonomy.
"""

import json

import pytest

from relayer.core.intent import TransferIntent, TransferKind
from relayer.core.outcome import BatchItemOutcome, BatchItemStatus, BatchOutcome
from relayer.core.transaction import SubmissionResult, TransactionRecord, TransactionStatus
from relayer.errors import BroadcastFailure, ConfirmationTimeout, InvalidIntent, NonceUnavailable

from conftest import ALICE, BOB


class TestTransferIntent:
    def test_kind_normalized_from_string(self):
        intent = TransferIntent("native", ALICE, BOB, 5)

        assert intent.kind is TransferKind.NATIVE
        assert intent.amount == "5"

    def test_unknown_kind_is_invalid_intent(self):
        with pytest.raises(InvalidIntent, match="teleport"):
            TransferIntent("teleport", ALICE, BOB, "1")

    def test_immutable(self):
        intent = TransferIntent.native(ALICE, BOB, "1")
        with pytest.raises(AttributeError):
            intent.amount = "2"

    def test_non_fungible_amount_is_one(self):
        assert TransferIntent.non_fungible(ALICE, BOB, "NFT-abc123", 3).amount == "1"

    def test_contract_call_args_are_tuple(self):
        intent = TransferIntent.contract_call(ALICE, BOB, "mint", args=[BOB, 2], quantity=2)

        assert intent.contract_args == (BOB, 2)
        assert intent.to_dict()["contract_args"] == [BOB, "2"]


class TestTransactionRecord:
    def make(self, **kwargs) -> TransactionRecord:
        fields = dict(sender=ALICE, receiver=BOB, nonce=1, value="0", gas_limit=500_000, chain_id="D")
        fields.update(kwargs)
        return TransactionRecord(**fields)

    def test_signing_payload_field_order(self):
        payload = json.loads(self.make(data="ping").signing_payload())

        assert list(payload) == [
            "nonce", "value", "receiver", "sender", "gasPrice", "gasLimit", "data", "chainID", "version",
        ]
        assert payload["data"] == "cGluZw=="

    def test_empty_data_omitted(self):
        assert "data" not in json.loads(self.make().signing_payload())

    def test_signature_attached_once(self):
        signed = self.make().with_signature("aa")

        assert signed.is_signed
        assert signed.to_gateway_dict()["signature"] == "aa"
        with pytest.raises(ValueError):
            signed.with_signature("bb")

    def test_empty_signature_rejected(self):
        with pytest.raises(ValueError):
            self.make().with_signature("")


class TestOutcomes:
    def test_status_terminality(self):
        assert TransactionStatus.SUCCESS.is_terminal
        assert TransactionStatus.UNKNOWN.is_terminal
        assert not TransactionStatus.PENDING.is_terminal

    def test_batch_outcome_summary(self):
        outcome = BatchOutcome(items=[
            BatchItemOutcome.from_result("a", SubmissionResult("tx1", TransactionStatus.SUCCESS)),
            BatchItemOutcome.from_error("b", NonceUnavailable("down", address=ALICE)),
            BatchItemOutcome.from_error(
                "c",
                ConfirmationTimeout("slow", transaction_id="tx3"),
                status=BatchItemStatus.UNKNOWN,
            ),
        ], groups=1)

        data = outcome.to_dict()
        assert data["summary"] == {"success": 1, "fail": 0, "unknown": 1, "failed": 1}
        assert data["items"][2]["transaction_id"] == "tx3"
        assert outcome.all_succeeded is False


class TestErrors:
    def test_error_context(self):
        error = BroadcastFailure("rejected", address=ALICE, error_code="bad_request")

        assert error.to_dict() == {
            "error": "BroadcastFailure",
            "message": "rejected",
            "address": ALICE,
            "transaction_id": None,
            "retryable": False,
        }
        assert error.error_code == "bad_request"

    def test_retryable_flags(self):
        assert NonceUnavailable("x").retryable
        assert ConfirmationTimeout("x", transaction_id="t").retryable
        assert not InvalidIntent("x").retryable
