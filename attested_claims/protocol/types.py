"""
Common types for claim attestation.

This module provides:
1. Witness / Epoch - the committee that attests claims
2. ClaimInfo / CompleteClaimData / SignedClaim / Proof - the claim artifacts
3. MembershipAssertion - the result of a successful membership proof

Compatibility Layer:
- ``Proof.from_dict`` accepts the camelCase JSON shape produced by the
  witness SDK (``claimInfo``, ``signedClaim``, ``timestampS``...)
- ``Proof.to_dict`` emits the same shape, signatures as ``0x`` hex
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .config import ADDRESS_BYTES
from .exceptions import SchemaError


def normalize_hex(value: Any, field_name: str) -> str:
    """
    Return ``value`` as a lowercase ``0x``-prefixed hex string.

    Raises:
        SchemaError: If the value is not a hex string or bytes
    """
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if not isinstance(value, str):
        raise SchemaError(f"{field_name} must be a hex string, got {type(value)}")
    text = value.lower()
    if not text.startswith("0x"):
        text = "0x" + text
    try:
        bytes.fromhex(text[2:])
    except ValueError as exc:
        raise SchemaError(f"{field_name} is not valid hex: {value!r}") from exc
    return text


def signature_to_bytes(value: Any) -> bytes:
    """Accept raw bytes or a hex string, return raw signature bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        text = value[2:] if value.lower().startswith("0x") else value
        try:
            return bytes.fromhex(text)
        except ValueError as exc:
            raise SchemaError(f"signature is not valid hex: {value!r}") from exc
    raise SchemaError(f"signature must be bytes or hex, got {type(value)}")


def _require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{field_name} must be int, got {type(value)}")
    return value


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise SchemaError(f"{field_name} must be str, got {type(value)}")
    return value


# ============================================================================
# WITNESSES AND EPOCHS
# ============================================================================


@dataclass(frozen=True)
class Witness:
    """
    A witness that attests claims.

    Attributes:
        identity_key: EVM address the witness signs with (stored lowercase)
        service_endpoint: URI the witness is reachable at
    """

    identity_key: str
    service_endpoint: str

    def __post_init__(self) -> None:
        identity_key = normalize_hex(self.identity_key, "identity_key")
        if len(identity_key) != 2 + 2 * ADDRESS_BYTES:
            raise SchemaError(
                f"identity_key must be a {ADDRESS_BYTES}-byte address, "
                f"got {self.identity_key!r}"
            )
        object.__setattr__(self, "identity_key", identity_key)
        _require_str(self.service_endpoint, "service_endpoint")

    def to_dict(self) -> Dict[str, str]:
        return {"addr": self.identity_key, "host": self.service_endpoint}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Witness":
        if not isinstance(data, dict):
            raise SchemaError("witness must be a mapping")
        identity_key = data.get("identity_key", data.get("addr"))
        endpoint = data.get("service_endpoint", data.get("host", ""))
        if identity_key is None:
            raise SchemaError("witness is missing 'addr'")
        return cls(identity_key=identity_key, service_endpoint=endpoint)


@dataclass(frozen=True)
class Epoch:
    """
    An immutable witness committee valid for a bounded time window.

    Witness order is significant: witness selection draws from this
    sequence by index.
    """

    id: int
    witnesses: Tuple[Witness, ...]
    minimum_witnesses_for_claim_creation: int
    timestamp_start: int
    timestamp_end: int

    @property
    def next_epoch_timestamp(self) -> int:
        return self.timestamp_end

    def covers(self, timestamp_s: int) -> bool:
        """True when ``timestamp_s`` falls inside ``[start, end)``."""
        return self.timestamp_start <= timestamp_s < self.timestamp_end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "witnesses": [w.to_dict() for w in self.witnesses],
            "minimumWitnessesForClaimCreation": (
                self.minimum_witnesses_for_claim_creation
            ),
            "timestampStart": self.timestamp_start,
            "timestampEnd": self.timestamp_end,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Epoch":
        if not isinstance(data, dict):
            raise SchemaError("epoch must be a mapping")
        witnesses = data.get("witnesses")
        if not isinstance(witnesses, list):
            raise SchemaError("epoch witnesses must be a list")
        return cls(
            id=_require_int(data.get("id"), "id"),
            witnesses=tuple(Witness.from_dict(w) for w in witnesses),
            minimum_witnesses_for_claim_creation=_require_int(
                data.get("minimumWitnessesForClaimCreation"),
                "minimumWitnessesForClaimCreation",
            ),
            timestamp_start=_require_int(data.get("timestampStart"), "timestampStart"),
            timestamp_end=_require_int(data.get("timestampEnd"), "timestampEnd"),
        )


# ============================================================================
# CLAIMS
# ============================================================================


@dataclass(frozen=True)
class ClaimInfo:
    """
    What a claim is about.

    Attributes:
        provider: Tag of the data source / template (e.g. "http")
        parameters: Canonical serialized extraction parameters
        context: Caller-defined payload, usually JSON embedding
            ``extractedParameters`` and ``providerHash``
    """

    provider: str
    parameters: str
    context: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "provider": self.provider,
            "parameters": self.parameters,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClaimInfo":
        if not isinstance(data, dict):
            raise SchemaError("claimInfo must be a mapping")
        return cls(
            provider=_require_str(data.get("provider"), "provider"),
            parameters=_require_str(data.get("parameters"), "parameters"),
            context=_require_str(data.get("context", ""), "context"),
        )


@dataclass(frozen=True)
class CompleteClaimData:
    """The attested fields of a claim; witnesses sign these."""

    identifier: str
    owner: str
    epoch: int
    timestamp_s: int

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "identifier", normalize_hex(self.identifier, "identifier")
        )
        object.__setattr__(self, "owner", normalize_hex(self.owner, "owner"))
        _require_int(self.epoch, "epoch")
        _require_int(self.timestamp_s, "timestamp_s")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "owner": self.owner,
            "epoch": self.epoch,
            "timestampS": self.timestamp_s,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompleteClaimData":
        if not isinstance(data, dict):
            raise SchemaError("claim must be a mapping")
        return cls(
            identifier=data.get("identifier"),
            owner=data.get("owner"),
            epoch=data.get("epoch"),
            timestamp_s=data.get("timestampS", data.get("timestamp_s")),
        )


@dataclass
class SignedClaim:
    """
    A claim plus one signature per selected witness, in selection order.
    """

    claim: CompleteClaimData
    signatures: List[bytes] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim": self.claim.to_dict(),
            "signatures": ["0x" + sig.hex() for sig in self.signatures],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignedClaim":
        if not isinstance(data, dict):
            raise SchemaError("signedClaim must be a mapping")
        signatures = data.get("signatures", [])
        if not isinstance(signatures, list):
            raise SchemaError("signatures must be a list")
        return cls(
            claim=CompleteClaimData.from_dict(data.get("claim")),
            signatures=[signature_to_bytes(sig) for sig in signatures],
        )


@dataclass
class Proof:
    """
    Everything needed to verify a claim: the claim info the identifier is
    derived from and the witness-signed claim.
    """

    claim_info: ClaimInfo
    signed_claim: SignedClaim

    @property
    def identifier(self) -> str:
        return self.signed_claim.claim.identifier

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claimInfo": self.claim_info.to_dict(),
            "signedClaim": self.signed_claim.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proof":
        """
        Build a proof from the SDK JSON shape.

        Raises:
            SchemaError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise SchemaError("proof must be a mapping")
        return cls(
            claim_info=ClaimInfo.from_dict(data.get("claimInfo")),
            signed_claim=SignedClaim.from_dict(data.get("signedClaim")),
        )


# ============================================================================
# MEMBERSHIP
# ============================================================================


@dataclass(frozen=True)
class MembershipAssertion:
    """
    Validated output of an anonymous membership proof.

    Reports what was proven, never who proved it.
    """

    group_id: int
    signal: int
    nullifier_hash: int
    external_nullifier: int
    dapp_id: int
    merkle_root: Optional[bytes] = None
