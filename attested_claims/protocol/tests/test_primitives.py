import pytest

from attested_claims.protocol import primitives
from attested_claims.protocol.tests.helpers import FOREIGN_KEY, WITNESS_KEYS


def test_keccak256_empty_vector():
    assert primitives.keccak256(b"").hex() == (
        "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    )


def test_keccak256_rejects_text():
    with pytest.raises(TypeError):
        primitives.keccak256("abc")


def test_keccak256_hex_prefix():
    digest = primitives.keccak256_hex(b"abc")
    assert digest.startswith("0x")
    assert len(digest) == 66
    assert digest == digest.lower()


def test_int_bytes32_conversion():
    assert primitives.int_to_bytes32(1) == b"\x00" * 31 + b"\x01"
    assert primitives.bytes32_to_int(primitives.int_to_bytes32(12345)) == 12345


@pytest.mark.parametrize("value", [-1, 2**256])
def test_int_to_bytes32_out_of_range(value):
    with pytest.raises(ValueError):
        primitives.int_to_bytes32(value)


def test_int_to_bytes32_rejects_bool():
    with pytest.raises(TypeError):
        primitives.int_to_bytes32(True)


def test_to_bytes32_accepts_hex_and_bytes():
    raw = b"\x07" * 32
    assert primitives.to_bytes32(raw) == raw
    assert primitives.to_bytes32("0x" + raw.hex()) == raw
    with pytest.raises(ValueError):
        primitives.to_bytes32(b"\x07" * 31)


def test_sign_and_recover():
    key = WITNESS_KEYS[0]
    signature = primitives.sign_message("hello", key)
    assert len(signature) == 65
    assert primitives.recover_signer("hello", signature) == primitives.address_of(key)


def test_recover_other_message_gives_other_address():
    signature = primitives.sign_message("hello", FOREIGN_KEY)
    assert primitives.recover_signer("hullo", signature) != primitives.address_of(
        FOREIGN_KEY
    )


def test_recover_rejects_wrong_length():
    with pytest.raises(ValueError, match="65 bytes"):
        primitives.recover_signer("hello", b"\x01" * 64)


def test_recover_rejects_invalid_v():
    signature = bytearray(primitives.sign_message("hello", WITNESS_KEYS[1]))
    signature[64] = 5
    with pytest.raises(ValueError):
        primitives.recover_signer("hello", bytes(signature))


def test_address_is_lowercase():
    address = primitives.address_of(WITNESS_KEYS[2])
    assert address == address.lower()
    assert address.startswith("0x") and len(address) == 42
