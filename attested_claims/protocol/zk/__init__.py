"""Membership proof verifier backends."""

from .factory import get_membership_verifier
from .feature_flags import backend_override, get_backend_type, set_backend_type
from .identity import MemberIdentity, identity_commitment, nullifier_hash_for
from .interfaces import MembershipProofVerifier
from .mock import MockMembershipVerifier, mock_proof_for
from .transparent import (
    FullMembershipProof,
    TransparentMembershipVerifier,
    build_transparent_proof,
)

__all__ = [
    "get_membership_verifier",
    "backend_override",
    "get_backend_type",
    "set_backend_type",
    "MemberIdentity",
    "identity_commitment",
    "nullifier_hash_for",
    "MembershipProofVerifier",
    "MockMembershipVerifier",
    "mock_proof_for",
    "FullMembershipProof",
    "TransparentMembershipVerifier",
    "build_transparent_proof",
]
