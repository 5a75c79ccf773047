"""Public API for the claim attestation protocol."""
from __future__ import annotations

from .claims import (
    create_sign_data,
    extract_field_from_context,
    get_provider_from_proof,
    hash_claim_info,
    sign_claim,
    verify_proof,
)
from .epochs import EpochRegistry, select_witnesses_for_claim
from .exceptions import ClaimProtocolError
from .groups import Dapp, Group, GroupBridge, group_id_for_provider
from .registry import ClaimRegistry
from .serialization import dump_proof_json, dump_state, load_proof_json, load_state
from .types import (
    ClaimInfo,
    CompleteClaimData,
    Epoch,
    MembershipAssertion,
    Proof,
    SignedClaim,
    Witness,
)

__all__ = [
    "ClaimRegistry",
    "EpochRegistry",
    "GroupBridge",
    "Group",
    "Dapp",
    "ClaimProtocolError",
    "Witness",
    "Epoch",
    "ClaimInfo",
    "CompleteClaimData",
    "SignedClaim",
    "Proof",
    "MembershipAssertion",
    "hash_claim_info",
    "create_sign_data",
    "sign_claim",
    "verify_proof",
    "extract_field_from_context",
    "get_provider_from_proof",
    "select_witnesses_for_claim",
    "group_id_for_provider",
    "load_proof_json",
    "dump_proof_json",
    "load_state",
    "dump_state",
]
