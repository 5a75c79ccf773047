from __future__ import annotations

import cbor2

from ..primitives import int_to_bytes32, keccak256, to_bytes32
from .interfaces import MembershipProofVerifier


def mock_proof_for(
    merkle_root: bytes, signal: int, nullifier_hash: int, external_nullifier: int
) -> bytes:
    """The only proof ``MockMembershipVerifier`` accepts for these inputs."""
    public_inputs = [
        to_bytes32(merkle_root),
        int_to_bytes32(signal),
        int_to_bytes32(nullifier_hash),
        int_to_bytes32(external_nullifier),
    ]
    return keccak256(cbor2.dumps({"adapter": "mock", "v": 1, "inputs": public_inputs}))


class MockMembershipVerifier(MembershipProofVerifier):
    """
    Verifier that accepts a digest of the public inputs as proof.

    Notes:
    - Intended for tests of the bridge's bookkeeping (dapps, nullifiers,
      roots) independently of any proving system.
    - It does NOT provide any cryptographic security.
    """

    _BACKEND_NAME = "MockMembershipVerifier"
    _BACKEND_VERSION = "0.1.0"

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    @property
    def backend_version(self) -> str:
        return self._BACKEND_VERSION

    def verify(
        self,
        merkle_root: bytes,
        signal: int,
        nullifier_hash: int,
        external_nullifier: int,
        proof: bytes,
    ) -> bool:
        try:
            expected = mock_proof_for(
                merkle_root, signal, nullifier_hash, external_nullifier
            )
        except (ValueError, TypeError):
            return False
        return isinstance(proof, (bytes, bytearray)) and bytes(proof) == expected
