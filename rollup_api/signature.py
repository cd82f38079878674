from typing import Optional

from rollup_api.hash_codec import encode_hex
from rollup_api.schemas import EIP1271Signature, EthereumSignature, EthSignData


def encode_signature(sign_data: EthSignData) -> str:
    """
    Render a base-chain co-signature as a 0x-prefixed lowercase hex string.

    Ethereum signatures are rendered in their packed form, EIP-1271
    signatures as their raw payload.
    """
    signature = sign_data.signature
    if isinstance(signature, EthereumSignature):
        return encode_hex(signature.serialize_packed())
    if isinstance(signature, EIP1271Signature):
        return encode_hex(signature.signature)
    raise TypeError(f"Unsupported signature type: {type(signature).__name__}")


def decode_stored_signature(raw) -> Optional[str]:
    """Parse an `eth_sign_data` JSON column value and encode its signature, if any."""
    if raw is None:
        return None
    return encode_signature(EthSignData.model_validate(raw))
