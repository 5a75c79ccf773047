"""
Member identities for provider groups.

A member holds two secrets (nullifier, trapdoor). Only the commitment to
them is inserted into a group; the nullifier hash for a scope is the
one-time tag a membership proof spends.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional

from ..primitives import bytes32_to_int, int_to_bytes32, keccak256


def identity_commitment(nullifier: int, trapdoor: int) -> int:
    """``keccak256(nullifier || trapdoor)`` as uint256."""
    return bytes32_to_int(
        keccak256(int_to_bytes32(nullifier) + int_to_bytes32(trapdoor))
    )


def nullifier_hash_for(external_nullifier: int, nullifier: int) -> int:
    """``keccak256(external_nullifier || nullifier)`` as uint256."""
    return bytes32_to_int(
        keccak256(int_to_bytes32(external_nullifier) + int_to_bytes32(nullifier))
    )


@dataclass(frozen=True)
class MemberIdentity:
    """
    Secret identity of a group member.

    Example:
        >>> identity = MemberIdentity.generate(seed=b"alice")
        >>> leaf = identity.commitment
        >>> tag = identity.nullifier_hash(external_nullifier=42)
    """

    nullifier: int
    trapdoor: int

    def __post_init__(self) -> None:
        # both secrets must fit a 32-byte field
        int_to_bytes32(self.nullifier)
        int_to_bytes32(self.trapdoor)

    @classmethod
    def generate(cls, seed: Optional[bytes] = None) -> "MemberIdentity":
        """
        Create an identity from fresh randomness, or deterministically from
        ``seed`` (tests and recovery).
        """
        if seed is None:
            return cls(
                nullifier=bytes32_to_int(secrets.token_bytes(32)),
                trapdoor=bytes32_to_int(secrets.token_bytes(32)),
            )
        return cls(
            nullifier=bytes32_to_int(keccak256(seed + b"nullifier")),
            trapdoor=bytes32_to_int(keccak256(seed + b"trapdoor")),
        )

    @property
    def commitment(self) -> int:
        return identity_commitment(self.nullifier, self.trapdoor)

    def nullifier_hash(self, external_nullifier: int) -> int:
        return nullifier_hash_for(external_nullifier, self.nullifier)
