"""
Custom exceptions for the claim attestation protocol.

Every failure a caller can observe is one of these classes. None of them is
transient: retrying with the same inputs yields the same outcome.
"""


class ClaimProtocolError(Exception):
    """Base exception for claim protocol errors."""

    pass


class ConfigurationError(ClaimProtocolError, ValueError):
    """Configuration error."""

    pass


class SchemaError(ClaimProtocolError):
    """Serialized input does not match the expected schema."""

    pass


class NotAuthorized(ClaimProtocolError):
    """Caller is not allowed to run an administrative operation."""

    pass


# ============================================================================
# EPOCHS
# ============================================================================


class InvalidEpochConfig(ClaimProtocolError):
    """Empty or duplicate witness list, or threshold above committee size."""

    pass


class EpochNotFound(ClaimProtocolError):
    """Epoch does not exist or does not cover the claim timestamp."""

    pass


# ============================================================================
# CLAIM VERIFICATION
# ============================================================================


class ClaimVerificationError(ClaimProtocolError):
    """A signed claim failed verification."""

    pass


class IdentifierMismatch(ClaimVerificationError):
    """Claim identifier does not match the hash of the claim info."""

    pass


class NoSignatures(ClaimVerificationError):
    """Signed claim carries no signatures."""

    pass


class SignatureCountMismatch(ClaimVerificationError):
    """Number of signatures differs from the number of selected witnesses."""

    pass


class SignatureNotAppropriate(ClaimVerificationError):
    """Signature does not recover to the expected witness."""

    pass


# ============================================================================
# GROUPS
# ============================================================================


class GroupError(ClaimProtocolError):
    """Group lifecycle error."""

    pass


class GroupAlreadyExists(GroupError):
    pass


class GroupNotFound(GroupError):
    pass


class InvalidGroupConfig(GroupError):
    """Merkle depth out of the supported range."""

    pass


class GroupFull(GroupError):
    """Merkle tree has no free leaf left."""

    pass


class UserAlreadyMerkelized(GroupError):
    """Claim identifier was already inserted into a group."""

    pass


# ============================================================================
# DAPPS AND MEMBERSHIP PROOFS
# ============================================================================


class DappAlreadyExists(ClaimProtocolError):
    pass


class DappNotFound(ClaimProtocolError):
    pass


class MembershipError(ClaimProtocolError):
    """Membership proof was rejected."""

    pass


class InvalidMembershipProof(MembershipError):
    pass


class NullifierAlreadyConsumed(MembershipError):
    """Nullifier hash was already used within this dapp scope."""

    pass
