"""
Codecs for proofs and registry state.

- Proofs: JSON in the witness SDK shape (``claimInfo`` / ``signedClaim``)
- Registry state: versioned CBOR snapshot (epochs, groups, consumed claim
  identifiers, dapps and their spent nullifiers)
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Union

import cbor2

from .config import MAX_STATE_BYTES, STATE_VERSION
from .epochs import Clock
from .exceptions import GroupError, InvalidEpochConfig, SchemaError
from .primitives import bytes32_to_int, int_to_bytes32
from .registry import ClaimRegistry
from .types import Epoch, Proof, normalize_hex
from .zk.interfaces import MembershipProofVerifier


# ============================================================================
# PROOFS
# ============================================================================


def load_proof_json(text: Union[str, bytes]) -> Proof:
    """
    Raises:
        SchemaError: If the document is not a proof
    """
    try:
        data = json.loads(text)
    except (ValueError, TypeError) as exc:
        raise SchemaError(f"proof is not valid JSON: {exc}") from exc
    return Proof.from_dict(data)


def dump_proof_json(proof: Proof, indent: Optional[int] = 2) -> str:
    return json.dumps(proof.to_dict(), indent=indent)


# ============================================================================
# REGISTRY STATE
# ============================================================================


def _require(payload: Dict[str, Any], key: str, expected: type) -> Any:
    value = payload.get(key)
    if not isinstance(value, expected):
        raise SchemaError(f"state field {key!r} must be {expected.__name__}")
    return value


def dump_state(registry: ClaimRegistry) -> bytes:
    """Snapshot a registry as CBOR."""
    bridge = registry.bridge
    payload = {
        "v": STATE_VERSION,
        "owner": registry.owner,
        "address": registry.address,
        "epoch_duration_s": registry.epochs.epoch_duration_s,
        "epochs": [epoch.to_dict() for epoch in registry.epochs.epochs],
        "groups": [
            {
                "provider": group.provider,
                "depth": group.depth,
                "leaves": group.tree.leaves,
            }
            for group in bridge.groups
        ],
        "merkelized": list(bridge.merkelized_identifiers),
        "dapps": [
            {
                "id": dapp.dapp_id,
                "nullifiers": [
                    int_to_bytes32(n) for n in sorted(dapp.consumed_nullifiers)
                ],
            }
            for dapp in bridge.dapps
        ],
    }
    return cbor2.dumps(payload)


def load_state(
    blob: bytes,
    *,
    verifier: Optional[MembershipProofVerifier] = None,
    clock: Optional[Clock] = None,
) -> ClaimRegistry:
    """
    Rebuild a registry from ``dump_state`` output.

    Raises:
        SchemaError: If the snapshot is malformed or of another version
    """
    if not isinstance(blob, (bytes, bytearray)):
        raise SchemaError("state blob must be bytes")
    if len(blob) > MAX_STATE_BYTES:
        raise SchemaError("state too large")
    try:
        payload = cbor2.loads(bytes(blob))
    except (cbor2.CBORDecodeError, ValueError) as exc:
        raise SchemaError(f"state is not valid CBOR: {exc}") from exc
    if not isinstance(payload, dict):
        raise SchemaError("state payload must be a dict")
    if payload.get("v") != STATE_VERSION:
        raise SchemaError("unsupported state version")

    registry = ClaimRegistry(
        _require(payload, "owner", str),
        address=_require(payload, "address", str),
        verifier=verifier,
        clock=clock,
        epoch_duration_s=_require(payload, "epoch_duration_s", int),
    )

    epochs = [Epoch.from_dict(e) for e in _require(payload, "epochs", list)]
    try:
        registry.epochs.restore(epochs)
    except InvalidEpochConfig as exc:
        raise SchemaError(f"invalid epoch state: {exc}") from exc

    groups = []
    for entry in _require(payload, "groups", list):
        if not isinstance(entry, dict):
            raise SchemaError("group entry must be a dict")
        groups.append(
            (
                _require(entry, "provider", str),
                _require(entry, "depth", int),
                _require(entry, "leaves", list),
            )
        )

    dapps = []
    for entry in _require(payload, "dapps", list):
        if not isinstance(entry, dict):
            raise SchemaError("dapp entry must be a dict")
        try:
            nullifiers = [
                bytes32_to_int(n) for n in _require(entry, "nullifiers", list)
            ]
        except (ValueError, TypeError) as exc:
            raise SchemaError(f"invalid nullifier: {exc}") from exc
        dapps.append((_require(entry, "id", int), nullifiers))

    merkelized = [
        normalize_hex(entry, "merkelized")
        for entry in _require(payload, "merkelized", list)
    ]

    try:
        registry.bridge.restore(groups, merkelized, dapps)
    except (ValueError, TypeError, GroupError) as exc:
        raise SchemaError(f"invalid group state: {exc}") from exc
    return registry
