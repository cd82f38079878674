from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from rollup_api.hash_codec import decode_hex


class L1Status(str, Enum):
    # Priority operations are only observed once included in a block,
    # so there is no pending/queued state here.
    COMMITTED = "committed"
    FINALIZED = "finalized"


class L2Status(str, Enum):
    QUEUED = "queued"
    COMMITTED = "committed"
    FINALIZED = "finalized"
    REJECTED = "rejected"

    @classmethod
    def from_l1(cls, status: L1Status) -> "L2Status":
        if status is L1Status.FINALIZED:
            return cls.FINALIZED
        return cls.COMMITTED


class EthereumSignature(BaseModel):
    """Recoverable ECDSA signature stored in its packed 65-byte `r || s || v` form."""
    type: Literal["EthereumSignature"]
    signature: bytes

    @field_validator("signature", mode="before")
    @classmethod
    def decode_signature(cls, v):
        if isinstance(v, str):
            v = decode_hex(v)
        if len(v) != 65:
            raise ValueError("packed ethereum signature must be exactly 65 bytes")
        return v

    def serialize_packed(self) -> bytes:
        return self.signature


class EIP1271Signature(BaseModel):
    """Contract-based signature; the payload is opaque to the API."""
    type: Literal["EIP1271Signature"]
    signature: bytes

    @field_validator("signature", mode="before")
    @classmethod
    def decode_signature(cls, v):
        if isinstance(v, str):
            v = decode_hex(v)
        return v


TxEthSignature = Annotated[
    Union[EthereumSignature, EIP1271Signature],
    Field(discriminator="type"),
]


class EthSignData(BaseModel):
    """Base-chain co-signature attached to an L2 transaction, as stored in JSON columns."""
    signature: TxEthSignature
    message: Optional[Any] = None


class L1Receipt(BaseModel):
    status: L1Status
    eth_block: int = Field(..., description="Base-chain block the priority operation was emitted in")
    rollup_block: Optional[int] = Field(None, description="Rollup block including the operation")
    id: int = Field(..., description="Priority operation serial id")


class L2Receipt(BaseModel):
    tx_hash: str
    rollup_block: Optional[int] = None
    status: L2Status
    fail_reason: Optional[str] = None


# Serialized without a discriminator: L1 receipts carry `eth_block` and `id`,
# L2 receipts carry `tx_hash`. The field sets never overlap on required keys.
Receipt = Union[L1Receipt, L2Receipt]


class TransactionData(BaseModel):
    tx_hash: str
    block_number: Optional[int] = None
    op: Any = Field(..., description="Operation payload as stored by the executor")
    status: L2Status
    fail_reason: Optional[str] = None
    created_at: datetime
    eth_signature: Optional[str] = Field(None, description="0x-prefixed base-chain co-signature")

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite drops the offset on read; stored timestamps are always UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
