"""
Opaque cryptographic primitives.

- ``keccak256``: collision-resistant hash, ``bytes -> 32-byte digest``
- ``recover_signer``: EIP-191 signature recovery, ``(message, sig) -> address``
- ``sign_message``: the witness side of ``recover_signer``

The rest of the package only relies on the contracts stated here, never on
curve details.
"""

from __future__ import annotations

from typing import Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak

from .config import HASH_OUTPUT_BYTES, SIGNATURE_BYTES

UINT256_MAX = 2**256 - 1


def keccak256(data: bytes) -> bytes:
    """
    Hash ``data`` with keccak256.

    Args:
        data: Bytes to hash

    Returns:
        32-byte digest

    Raises:
        TypeError: If data is not bytes
    """
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"data must be bytes, got {type(data)}")
    return keccak(bytes(data))


def keccak256_hex(data: bytes) -> str:
    """keccak256 as a lowercase ``0x``-prefixed hex string."""
    return "0x" + keccak256(data).hex()


def int_to_bytes32(value: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"value must be int, got {type(value)}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError("value does not fit in 256 bits")
    return value.to_bytes(HASH_OUTPUT_BYTES, "big")


def bytes32_to_int(value: bytes) -> int:
    if len(value) != HASH_OUTPUT_BYTES:
        raise ValueError(f"expected {HASH_OUTPUT_BYTES} bytes, got {len(value)}")
    return int.from_bytes(value, "big")


def to_bytes32(value: Union[int, bytes, bytearray, str]) -> bytes:
    """Coerce a uint256, 32 raw bytes or a hex string into 32 bytes."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != HASH_OUTPUT_BYTES:
            raise ValueError(f"expected {HASH_OUTPUT_BYTES} bytes, got {len(value)}")
        return bytes(value)
    if isinstance(value, str):
        text = value[2:] if value.lower().startswith("0x") else value
        return int_to_bytes32(int(text, 16))
    return int_to_bytes32(value)


def recover_signer(message: str, signature: bytes) -> str:
    """
    Recover the address that signed ``message`` as an EIP-191 personal
    message.

    Args:
        message: Text payload that was signed
        signature: 65-byte ``r || s || v`` signature

    Returns:
        Lowercase ``0x``-prefixed address

    Raises:
        ValueError: If the signature is malformed or unrecoverable
    """
    if not isinstance(signature, (bytes, bytearray)):
        raise ValueError("signature must be bytes")
    if len(signature) != SIGNATURE_BYTES:
        raise ValueError(
            f"signature must be {SIGNATURE_BYTES} bytes, got {len(signature)}"
        )
    try:
        address = Account.recover_message(
            encode_defunct(text=message), signature=bytes(signature)
        )
    except Exception as exc:
        raise ValueError(f"unrecoverable signature: {exc}") from exc
    return address.lower()


def sign_message(message: str, private_key: Union[str, bytes]) -> bytes:
    """Sign ``message`` as an EIP-191 personal message, return 65 bytes."""
    signed = Account.sign_message(encode_defunct(text=message), private_key)
    return bytes(signed.signature)


def address_of(private_key: Union[str, bytes]) -> str:
    """Lowercase address controlled by ``private_key``."""
    return Account.from_key(private_key).address.lower()
