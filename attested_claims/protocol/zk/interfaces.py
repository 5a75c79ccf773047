"""
Interface of the zero-knowledge membership verifier.

The proving system itself lives outside this package; the bridge only asks
a verifier for a verdict on already-produced artifacts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class MembershipProofVerifier(ABC):
    """
    Verifies that the prover knows the secret behind a leaf of the tree
    with root ``merkle_root``, that ``nullifier_hash`` was derived from that
    secret and ``external_nullifier``, and that the proof commits to
    ``signal``.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    @property
    @abstractmethod
    def backend_version(self) -> str:
        ...

    @abstractmethod
    def verify(
        self,
        merkle_root: bytes,
        signal: int,
        nullifier_hash: int,
        external_nullifier: int,
        proof: bytes,
    ) -> bool:
        """
        Return True only for a valid proof. Must not raise on malformed
        input; malformed proofs are simply invalid.
        """
        ...
