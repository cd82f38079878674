"""
Hex decoding of user-supplied transaction hashes.

Both `0x`-prefixed and bare hex strings are accepted. Transaction identifiers
must decode to exactly 32 bytes.
"""

import string

TX_HASH_LENGTH = 32


class HashDecodeError(ValueError):
    """Base class for malformed transaction hash input."""


class DecodeError(HashDecodeError):
    """The input is not valid hex (bad characters or odd length)."""


class InvalidLengthError(HashDecodeError):
    """The input decoded fine but is not a 32-byte identifier."""


def decode_hex(value: str) -> bytes:
    """
    Decode a hex string with an optional `0x` prefix.

    Raises:
        DecodeError: If the remainder is not valid hex
    """
    if value.startswith("0x"):
        value = value[2:]
    # bytes.fromhex tolerates whitespace between pairs, we don't.
    if any(c not in string.hexdigits for c in value):
        raise DecodeError("Invalid hex string: non-hexadecimal character found")
    if len(value) % 2:
        raise DecodeError("Invalid hex string: odd number of digits")
    return bytes.fromhex(value)


def decode_tx_hash(value: str) -> bytes:
    """
    Decode a transaction identifier.

    Raises:
        DecodeError: If the input is not valid hex
        InvalidLengthError: If the decoded value is not 32 bytes long
    """
    raw = decode_hex(value)
    if len(raw) != TX_HASH_LENGTH:
        raise InvalidLengthError(
            f"Incorrect tx_hash length: expected {TX_HASH_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def encode_hex(value: bytes) -> str:
    return "0x" + value.hex()
