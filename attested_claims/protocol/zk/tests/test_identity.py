import pytest

from attested_claims.protocol.primitives import bytes32_to_int, int_to_bytes32, keccak256
from attested_claims.protocol.zk.identity import (
    MemberIdentity,
    identity_commitment,
    nullifier_hash_for,
)


def test_commitment_formula():
    expected = bytes32_to_int(keccak256(int_to_bytes32(3) + int_to_bytes32(4)))
    assert identity_commitment(3, 4) == expected
    assert MemberIdentity(3, 4).commitment == expected


def test_nullifier_hash_formula():
    expected = bytes32_to_int(keccak256(int_to_bytes32(42) + int_to_bytes32(3)))
    assert nullifier_hash_for(42, 3) == expected
    assert MemberIdentity(3, 4).nullifier_hash(42) == expected


def test_nullifier_hash_is_scoped():
    identity = MemberIdentity.generate(seed=b"alice")
    assert identity.nullifier_hash(1) != identity.nullifier_hash(2)


def test_seeded_generation_is_deterministic():
    assert MemberIdentity.generate(seed=b"alice") == MemberIdentity.generate(
        seed=b"alice"
    )
    assert MemberIdentity.generate(seed=b"alice") != MemberIdentity.generate(
        seed=b"bob"
    )


def test_random_generation():
    first = MemberIdentity.generate()
    second = MemberIdentity.generate()
    assert first != second
    assert first.nullifier != first.trapdoor


@pytest.mark.parametrize("nullifier,trapdoor", [(-1, 1), (1, 2**256)])
def test_secrets_must_fit_32_bytes(nullifier, trapdoor):
    with pytest.raises(ValueError):
        MemberIdentity(nullifier, trapdoor)
