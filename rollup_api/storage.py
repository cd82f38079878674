"""
Read-only storage access used by the transaction resolvers.

Every method issues exactly one query. Errors raised by SQLAlchemy are not
caught here; retry policy belongs to the caller's transport layer.
"""

from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from rollup_api.models import (
    AggregatedOperation,
    ExecutedPriorityOperation,
    ExecutedTransaction,
    MempoolTransaction,
)


class StorageGateway:
    """Thin query layer over a single request-scoped session."""

    def __init__(self, db: Session):
        self.db = db

    def find_priority_op_by_hash(self, eth_hash: bytes) -> Optional[ExecutedPriorityOperation]:
        return self.db.query(ExecutedPriorityOperation).filter(
            ExecutedPriorityOperation.eth_hash == eth_hash
        ).first()

    def find_aggregated_operation(
        self, block_number: int, action_type: str
    ) -> Optional[AggregatedOperation]:
        """Find the aggregated action of the given type whose block range covers `block_number`."""
        return self.db.query(AggregatedOperation).filter(
            and_(
                AggregatedOperation.action_type == action_type,
                AggregatedOperation.from_block <= block_number,
                AggregatedOperation.to_block >= block_number,
            )
        ).order_by(AggregatedOperation.id.desc()).first()

    def find_executed_tx_by_hash(self, tx_hash: bytes) -> Optional[ExecutedTransaction]:
        # The same L2 hash can be executed more than once if an earlier attempt
        # failed; the most recent execution is authoritative.
        return self.db.query(ExecutedTransaction).filter(
            ExecutedTransaction.tx_hash == tx_hash
        ).order_by(ExecutedTransaction.id.desc()).first()

    def pending_pool_contains(self, tx_hash: bytes) -> bool:
        query = self.db.query(MempoolTransaction.id).filter(
            MempoolTransaction.tx_hash == tx_hash
        )
        return self.db.query(query.exists()).scalar()

    def find_pending_tx_by_hash(self, tx_hash: bytes) -> Optional[MempoolTransaction]:
        return self.db.query(MempoolTransaction).filter(
            MempoolTransaction.tx_hash == tx_hash
        ).first()
