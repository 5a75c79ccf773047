"""
Transparent membership proofs.

Reference backend that checks the same relation a membership circuit
proves, but on openly disclosed witness values:

- ``commitment = keccak256(nullifier || trapdoor)`` is a leaf under ``root``
- ``nullifier_hash = keccak256(external_nullifier || nullifier)``
- the proof is bound to ``signal`` and ``external_nullifier``

It provides NO anonymity (the proof reveals the member's secrets) and
exists so that the claim -> group -> membership pipeline can run end to end
without a SNARK toolchain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import cbor2

from ..config import (
    HASH_OUTPUT_BYTES,
    MAX_MEMBERSHIP_PROOF_BYTES,
    TRANSPARENT_PROOF_VERSION,
)
from ..exceptions import SchemaError
from ..merkle import AuthPath, IncrementalMerkleTree, hash_leaf, verify_path
from ..primitives import bytes32_to_int, int_to_bytes32, keccak256, to_bytes32
from .identity import MemberIdentity, identity_commitment, nullifier_hash_for
from .interfaces import MembershipProofVerifier


@dataclass(frozen=True)
class FullMembershipProof:
    """Public inputs plus proof bytes, as submitted to the verifier."""

    merkle_root: bytes
    signal: int
    nullifier_hash: int
    external_nullifier: int
    proof: bytes


def signal_binding(signal: int, external_nullifier: int, nullifier: int) -> bytes:
    """Ties a proof to one signal within one scope."""
    return keccak256(
        int_to_bytes32(signal)
        + int_to_bytes32(external_nullifier)
        + int_to_bytes32(nullifier)
    )


def _require_bytes32(value: Any, field: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)) or len(value) != HASH_OUTPUT_BYTES:
        raise SchemaError(f"{field} must be {HASH_OUTPUT_BYTES} bytes")
    return bytes(value)


def encode_transparent_proof(
    nullifier: int, trapdoor: int, path: AuthPath, binding: bytes
) -> bytes:
    payload = {
        "v": TRANSPARENT_PROOF_VERSION,
        "nullifier": int_to_bytes32(nullifier),
        "trapdoor": int_to_bytes32(trapdoor),
        "path": [[sibling, is_left] for sibling, is_left in path],
        "binding": binding,
    }
    return cbor2.dumps(payload)


def decode_transparent_proof(blob: bytes) -> Dict[str, Any]:
    """
    Raises:
        SchemaError: If the blob is not a well-formed transparent proof
    """
    if not isinstance(blob, (bytes, bytearray)):
        raise SchemaError("proof must be bytes")
    if len(blob) > MAX_MEMBERSHIP_PROOF_BYTES:
        raise SchemaError("proof too large")
    try:
        payload = cbor2.loads(bytes(blob))
    except (cbor2.CBORDecodeError, ValueError) as exc:
        raise SchemaError(f"proof is not valid CBOR: {exc}") from exc
    if not isinstance(payload, dict):
        raise SchemaError("proof payload must be a dict")
    if payload.get("v") != TRANSPARENT_PROOF_VERSION:
        raise SchemaError("unsupported proof version")

    raw_path = payload.get("path")
    if not isinstance(raw_path, list):
        raise SchemaError("path must be a list")
    path: List[Tuple[bytes, bool]] = []
    for idx, entry in enumerate(raw_path):
        if not isinstance(entry, list) or len(entry) != 2:
            raise SchemaError(f"path[{idx}] must be [sibling, is_left]")
        sibling, is_left = entry
        if not isinstance(is_left, bool):
            raise SchemaError(f"path[{idx}].is_left must be bool")
        path.append((_require_bytes32(sibling, f"path[{idx}].sibling"), is_left))

    nullifier = _require_bytes32(payload.get("nullifier"), "nullifier")
    trapdoor = _require_bytes32(payload.get("trapdoor"), "trapdoor")
    return {
        "nullifier": bytes32_to_int(nullifier),
        "trapdoor": bytes32_to_int(trapdoor),
        "path": path,
        "binding": _require_bytes32(payload.get("binding"), "binding"),
    }


def build_transparent_proof(
    identity: MemberIdentity,
    tree: IncrementalMerkleTree,
    external_nullifier: int,
    signal: int,
) -> FullMembershipProof:
    """
    Prove that ``identity`` is a member of ``tree``.

    Raises:
        ValueError: If the identity's commitment is not a leaf of the tree
    """
    index = tree.index_of(identity.commitment)
    if index < 0:
        raise ValueError("identity commitment is not a member of the tree")
    path = tree.auth_path(index)
    binding = signal_binding(signal, external_nullifier, identity.nullifier)
    return FullMembershipProof(
        merkle_root=tree.root,
        signal=signal,
        nullifier_hash=identity.nullifier_hash(external_nullifier),
        external_nullifier=external_nullifier,
        proof=encode_transparent_proof(
            identity.nullifier, identity.trapdoor, path, binding
        ),
    )


class TransparentMembershipVerifier(MembershipProofVerifier):
    """Verifier for proofs built by ``build_transparent_proof``."""

    _BACKEND_NAME = "TransparentMembershipVerifier"
    _BACKEND_VERSION = "1.0.0"

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
            decoded = decode_transparent_proof(proof)
            root = to_bytes32(merkle_root)

            commitment = identity_commitment(decoded["nullifier"], decoded["trapdoor"])
            leaf = hash_leaf(int_to_bytes32(commitment))
            if not verify_path(leaf, decoded["path"], root):
                return False

            expected = nullifier_hash_for(external_nullifier, decoded["nullifier"])
            if expected != nullifier_hash:
                return False

            binding = signal_binding(signal, external_nullifier, decoded["nullifier"])
            return binding == decoded["binding"]
        except (SchemaError, ValueError, TypeError):
            return False
