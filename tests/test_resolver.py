"""Unit tests for the resolver chain against a mocked StorageGateway."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from rollup_api.hash_codec import DecodeError, InvalidLengthError
from rollup_api.models import AggregatedActionType
from rollup_api.resolver import SchemaInconsistencyError, TransactionResolver
from rollup_api.schemas import L1Receipt, L1Status, L2Receipt, L2Status
from rollup_api.storage import StorageGateway

HASH = "0x" + "cd" * 32
CREATED_AT = datetime(2024, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def storage():
    """A gateway where every source is empty."""
    gateway = Mock(spec=StorageGateway)
    gateway.find_priority_op_by_hash.return_value = None
    gateway.find_aggregated_operation.return_value = None
    gateway.find_executed_tx_by_hash.return_value = None
    gateway.pending_pool_contains.return_value = False
    gateway.find_pending_tx_by_hash.return_value = None
    return gateway


def priority_op(block_number=100):
    return SimpleNamespace(
        eth_block=500,
        block_number=block_number,
        priority_op_serialid=9,
        operation={"type": "Deposit"},
        created_at=CREATED_AT,
    )


def executed_tx(success=True, verified=False, fail_reason=None, block_number=100):
    return SimpleNamespace(
        block_number=block_number,
        success=success,
        verified=verified,
        fail_reason=fail_reason,
        tx={"type": "Transfer"},
        eth_sign_data=None,
        created_at=CREATED_AT,
    )


@pytest.mark.parametrize("raw_hash", ["0x" + "00" * 31, "00" * 33, "", "0x"])
def test_wrong_length_fails_before_storage_access(storage, raw_hash):
    resolver = TransactionResolver(storage)

    with pytest.raises(InvalidLengthError):
        resolver.resolve_receipt(raw_hash)
    with pytest.raises(InvalidLengthError):
        resolver.resolve_data(raw_hash)

    assert storage.mock_calls == []


def test_malformed_hex_fails_before_storage_access(storage):
    resolver = TransactionResolver(storage)

    with pytest.raises(DecodeError):
        resolver.resolve_receipt("0x" + "g" * 64)
    assert storage.mock_calls == []


def test_unknown_hash_queries_each_source_once(storage):
    resolver = TransactionResolver(storage)

    assert resolver.resolve_receipt(HASH) is None
    storage.find_priority_op_by_hash.assert_called_once_with(bytes.fromhex("cd" * 32))
    storage.find_executed_tx_by_hash.assert_called_once()
    storage.pending_pool_contains.assert_called_once()
    storage.find_aggregated_operation.assert_not_called()

    assert resolver.resolve_data(HASH) is None
    storage.find_pending_tx_by_hash.assert_called_once()


@pytest.mark.parametrize("confirmed,expected", [
    (False, L1Status.COMMITTED),
    (True, L1Status.FINALIZED),
])
def test_priority_op_status(storage, confirmed, expected):
    storage.find_priority_op_by_hash.return_value = priority_op(block_number=100)
    storage.find_aggregated_operation.return_value = SimpleNamespace(confirmed=confirmed)

    receipt = TransactionResolver(storage).resolve_receipt(HASH)

    assert isinstance(receipt, L1Receipt)
    assert receipt.status == expected
    assert receipt.rollup_block == 100
    assert receipt.eth_block == 500
    assert receipt.id == 9
    storage.find_aggregated_operation.assert_called_once_with(
        100, AggregatedActionType.EXECUTE_BLOCKS
    )


def test_priority_op_hit_skips_l2_sources(storage):
    storage.find_priority_op_by_hash.return_value = priority_op()
    storage.find_executed_tx_by_hash.return_value = executed_tx()

    data = TransactionResolver(storage).resolve_data(HASH)

    assert data.status == L2Status.COMMITTED
    assert data.eth_signature is None
    assert data.fail_reason is None
    storage.find_executed_tx_by_hash.assert_not_called()
    storage.find_pending_tx_by_hash.assert_not_called()


@pytest.mark.parametrize("verified", [False, True])
def test_failed_tx_is_rejected_without_finality_lookup(storage, verified):
    storage.find_executed_tx_by_hash.return_value = executed_tx(
        success=False, verified=verified, fail_reason="Nonce mismatch"
    )

    receipt = TransactionResolver(storage).resolve_receipt(HASH)

    assert isinstance(receipt, L2Receipt)
    assert receipt.status == L2Status.REJECTED
    assert receipt.fail_reason == "Nonce mismatch"
    assert receipt.rollup_block == 100
    storage.find_aggregated_operation.assert_not_called()


def test_verified_tx_is_finalized_without_finality_lookup(storage):
    storage.find_executed_tx_by_hash.return_value = executed_tx(verified=True)

    receipt = TransactionResolver(storage).resolve_receipt(HASH)

    assert receipt.status == L2Status.FINALIZED
    storage.find_aggregated_operation.assert_not_called()


def test_unverified_tx_uses_finality_oracle(storage):
    storage.find_executed_tx_by_hash.return_value = executed_tx(verified=False)
    resolver = TransactionResolver(storage)

    assert resolver.resolve_receipt(HASH).status == L2Status.COMMITTED

    storage.find_aggregated_operation.return_value = SimpleNamespace(confirmed=True)
    assert resolver.resolve_receipt(HASH).status == L2Status.FINALIZED


def test_executed_record_takes_precedence_over_pending(storage):
    storage.find_executed_tx_by_hash.return_value = executed_tx()
    storage.pending_pool_contains.return_value = True
    storage.find_pending_tx_by_hash.return_value = SimpleNamespace(
        tx={"type": "Transfer"}, eth_sign_data=None, created_at=CREATED_AT
    )
    resolver = TransactionResolver(storage)

    assert resolver.resolve_receipt(HASH).status == L2Status.COMMITTED
    assert resolver.resolve_data(HASH).block_number == 100
    storage.pending_pool_contains.assert_not_called()
    storage.find_pending_tx_by_hash.assert_not_called()


def test_pending_tx_data(storage):
    storage.find_pending_tx_by_hash.return_value = SimpleNamespace(
        tx={"type": "Transfer"},
        eth_sign_data={"signature": {"type": "EIP1271Signature", "signature": "0x0102"}},
        created_at=CREATED_AT,
    )

    data = TransactionResolver(storage).resolve_data(HASH)

    assert data.status == L2Status.QUEUED
    assert data.block_number is None
    assert data.fail_reason is None
    assert data.eth_signature == "0x0102"
    assert data.tx_hash == HASH


def test_executed_tx_without_block_fails_loudly(storage):
    storage.find_executed_tx_by_hash.return_value = executed_tx(block_number=None)

    with pytest.raises(SchemaInconsistencyError):
        TransactionResolver(storage).resolve_receipt(HASH)


def test_storage_errors_propagate(storage):
    storage.find_priority_op_by_hash.side_effect = RuntimeError("connection reset")

    with pytest.raises(RuntimeError, match="connection reset"):
        TransactionResolver(storage).resolve_receipt(HASH)
    storage.find_executed_tx_by_hash.assert_not_called()


def test_finality_error_on_priority_op_propagates(storage):
    storage.find_priority_op_by_hash.return_value = priority_op()
    storage.find_aggregated_operation.side_effect = RuntimeError("connection reset")

    with pytest.raises(RuntimeError, match="connection reset"):
        TransactionResolver(storage).resolve_receipt(HASH)
    storage.find_executed_tx_by_hash.assert_not_called()
    storage.pending_pool_contains.assert_not_called()


def test_finality_error_on_executed_tx_propagates(storage):
    storage.find_executed_tx_by_hash.return_value = executed_tx(verified=False)
    storage.find_aggregated_operation.side_effect = RuntimeError("connection reset")

    with pytest.raises(RuntimeError, match="connection reset"):
        TransactionResolver(storage).resolve_data(HASH)
    storage.find_pending_tx_by_hash.assert_not_called()


def test_naive_created_at_is_treated_as_utc(storage):
    tx = executed_tx()
    tx.created_at = datetime(2024, 3, 1, 12, 0, 0)
    storage.find_executed_tx_by_hash.return_value = tx

    data = TransactionResolver(storage).resolve_data(HASH)

    assert data.created_at == datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
