from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.sql import func

from rollup_api.database import Base


class AggregatedActionType:
    """Kinds of batched base-chain actions recorded in `aggregate_operations`."""
    COMMIT_BLOCKS = "CommitBlocks"
    CREATE_PROOF_BLOCKS = "CreateProofBlocks"
    PUBLISH_PROOF_BLOCKS_ONCHAIN = "PublishProofBlocksOnchain"
    EXECUTE_BLOCKS = "ExecuteBlocks"


class ExecutedPriorityOperation(Base):
    """
    A priority operation that was submitted on the base chain and has been
    included in a rollup block.

    Rows are written once by the block executor and never updated.
    """
    __tablename__ = "executed_priority_operations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    eth_hash = Column(LargeBinary(32), nullable=False)
    eth_block = Column(BigInteger, nullable=False)
    block_number = Column(BigInteger, nullable=False)
    priority_op_serialid = Column(BigInteger, nullable=False, unique=True)
    operation = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_executed_priority_operations_eth_hash", "eth_hash"),
    )


class ExecutedTransaction(Base):
    """
    An L2 transaction that was executed in a rollup block, successfully or not.

    `verified` only ever moves from False to True as blocks get finalized.
    `fail_reason` is set iff `success` is False.
    """
    __tablename__ = "executed_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(LargeBinary(32), nullable=False)
    block_number = Column(BigInteger, nullable=False)
    success = Column(Boolean, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    fail_reason = Column(Text, nullable=True)
    tx = Column(JSON, nullable=False)
    eth_sign_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_executed_transactions_tx_hash", "tx_hash"),
    )


class MempoolTransaction(Base):
    """An accepted L2 transaction waiting to be included in a block."""
    __tablename__ = "mempool_txs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(LargeBinary(32), nullable=False, unique=True)
    tx = Column(JSON, nullable=False)
    eth_sign_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AggregatedOperation(Base):
    """
    A batched base-chain action covering the inclusive block range
    [from_block, to_block]. `confirmed` turns True once the action's
    base-chain transaction is confirmed.
    """
    __tablename__ = "aggregate_operations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action_type = Column(String(32), nullable=False)
    from_block = Column(BigInteger, nullable=False)
    to_block = Column(BigInteger, nullable=False)
    confirmed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_aggregate_operations_range", "action_type", "from_block", "to_block"),
    )
