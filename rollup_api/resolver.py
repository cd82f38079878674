"""
Transaction status resolution.

A transaction hash is ambiguous: it may be the base-chain hash of a priority
operation (L1) or the hash of a rollup transaction (L2). Resolvers are tried
in a fixed order and the first one that finds the hash wins; results from
different sources are never merged.

Statuses are derived from stored facts on every call and never persisted, so
a transaction moves from committed to finalized as soon as the covering
`ExecuteBlocks` operation is confirmed on the base chain.
"""

import logging
from typing import Optional

from rollup_api.hash_codec import decode_tx_hash, encode_hex
from rollup_api.models import AggregatedActionType
from rollup_api.schemas import (
    L1Receipt,
    L1Status,
    L2Receipt,
    L2Status,
    Receipt,
    TransactionData,
)
from rollup_api.signature import decode_stored_signature
from rollup_api.storage import StorageGateway

logger = logging.getLogger(__name__)


class SchemaInconsistencyError(RuntimeError):
    """Stored data violates an invariant the resolvers rely on."""


def _require_block(record, tx_hash: bytes) -> int:
    if record.block_number is None:
        raise SchemaInconsistencyError(
            f"Executed record {encode_hex(tx_hash)} has no block number"
        )
    return record.block_number


class FinalityOracle:
    """Answers whether a rollup block's execution is confirmed on the base chain."""

    def __init__(self, storage: StorageGateway):
        self.storage = storage

    def is_block_finalized(self, block_number: int) -> bool:
        operation = self.storage.find_aggregated_operation(
            block_number, AggregatedActionType.EXECUTE_BLOCKS
        )
        # No aggregated operation yet means the block is simply not finalized.
        return operation is not None and bool(operation.confirmed)


class L1Resolver:
    """Looks up executed priority operations by their base-chain hash."""

    def __init__(self, storage: StorageGateway, finality: FinalityOracle):
        self.storage = storage
        self.finality = finality

    def _lookup(self, eth_hash: bytes):
        op = self.storage.find_priority_op_by_hash(eth_hash)
        if op is None:
            return None
        block_number = _require_block(op, eth_hash)
        if self.finality.is_block_finalized(block_number):
            status = L1Status.FINALIZED
        else:
            status = L1Status.COMMITTED
        return op, block_number, status

    def receipt(self, eth_hash: bytes) -> Optional[L1Receipt]:
        found = self._lookup(eth_hash)
        if found is None:
            return None
        op, block_number, status = found
        return L1Receipt(
            status=status,
            eth_block=op.eth_block,
            rollup_block=block_number,
            id=op.priority_op_serialid,
        )

    def data(self, eth_hash: bytes) -> Optional[TransactionData]:
        found = self._lookup(eth_hash)
        if found is None:
            return None
        op, block_number, status = found
        # Priority operations are never co-signed on the base chain.
        return TransactionData(
            tx_hash=encode_hex(eth_hash),
            block_number=block_number,
            op=op.operation,
            status=L2Status.from_l1(status),
            fail_reason=None,
            created_at=op.created_at,
            eth_signature=None,
        )


class L2Resolver:
    """
    Looks up rollup transactions: executed transactions first, then the
    pending pool. An executed record takes precedence over a pool entry
    that has not been pruned yet.
    """

    def __init__(self, storage: StorageGateway, finality: FinalityOracle):
        self.storage = storage
        self.finality = finality

    def _executed_status(self, tx) -> L2Status:
        """
        Derive the status of an executed transaction.

        Failed transactions are rejected and never finalized. A successful one
        is finalized when either the record is already marked `verified` or
        the `ExecuteBlocks` operation covering its block is confirmed; the
        flag lags behind the confirmation, so both facts are consulted.
        """
        if not tx.success:
            return L2Status.REJECTED
        # `verified` is monotonic, so a verified record needs no finality lookup.
        if tx.verified or self.finality.is_block_finalized(tx.block_number):
            return L2Status.FINALIZED
        return L2Status.COMMITTED

    def receipt(self, tx_hash: bytes) -> Optional[L2Receipt]:
        tx = self.storage.find_executed_tx_by_hash(tx_hash)
        if tx is not None:
            block_number = _require_block(tx, tx_hash)
            return L2Receipt(
                tx_hash=encode_hex(tx_hash),
                rollup_block=block_number,
                status=self._executed_status(tx),
                fail_reason=tx.fail_reason,
            )

        if self.storage.pending_pool_contains(tx_hash):
            return L2Receipt(
                tx_hash=encode_hex(tx_hash),
                rollup_block=None,
                status=L2Status.QUEUED,
                fail_reason=None,
            )
        return None

    def data(self, tx_hash: bytes) -> Optional[TransactionData]:
        tx = self.storage.find_executed_tx_by_hash(tx_hash)
        if tx is not None:
            block_number = _require_block(tx, tx_hash)
            return TransactionData(
                tx_hash=encode_hex(tx_hash),
                block_number=block_number,
                op=tx.tx,
                status=self._executed_status(tx),
                fail_reason=tx.fail_reason,
                created_at=tx.created_at,
                eth_signature=decode_stored_signature(tx.eth_sign_data),
            )

        pending = self.storage.find_pending_tx_by_hash(tx_hash)
        if pending is not None:
            return TransactionData(
                tx_hash=encode_hex(tx_hash),
                block_number=None,
                op=pending.tx,
                status=L2Status.QUEUED,
                fail_reason=None,
                created_at=pending.created_at,
                eth_signature=decode_stored_signature(pending.eth_sign_data),
            )
        return None


class TransactionResolver:
    """
    Entry point for the `/transaction` endpoints.

    Both operations decode the hash before touching storage, then walk the
    resolver chain (L1 first, L2 second) and return the first hit.
    """

    def __init__(self, storage: StorageGateway):
        finality = FinalityOracle(storage)
        self.resolvers = [
            L1Resolver(storage, finality),
            L2Resolver(storage, finality),
        ]

    def resolve_receipt(self, raw_hash: str) -> Optional[Receipt]:
        tx_hash = decode_tx_hash(raw_hash)
        for resolver in self.resolvers:
            receipt = resolver.receipt(tx_hash)
            if receipt is not None:
                logger.debug("Resolved receipt for %s via %s", raw_hash, type(resolver).__name__)
                return receipt
        logger.debug("No receipt found for %s", raw_hash)
        return None

    def resolve_data(self, raw_hash: str) -> Optional[TransactionData]:
        tx_hash = decode_tx_hash(raw_hash)
        for resolver in self.resolvers:
            data = resolver.data(tx_hash)
            if data is not None:
                logger.debug("Resolved data for %s via %s", raw_hash, type(resolver).__name__)
                return data
        logger.debug("No transaction data found for %s", raw_hash)
        return None
