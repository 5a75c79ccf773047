"""
Registry facade.

The single entry point external callers use. It owns the epoch registry and
the group bridge, resolves authorization for administrative operations and
linearizes every operation behind one lock, so concurrent callers always
observe complete operations only.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Tuple, Union

from .claims import extract_field_from_context, get_provider_from_proof, verify_proof
from .config import DEFAULT_EPOCH_DURATION_S, REGISTRY_ADMIN_ID
from .epochs import Clock, EpochRegistry, WitnessLike
from .exceptions import NotAuthorized
from .groups import Dapp, Group, GroupBridge, GroupRef
from .types import Epoch, MembershipAssertion, Proof, Witness
from .zk.factory import get_membership_verifier
from .zk.interfaces import MembershipProofVerifier

logger = logging.getLogger(__name__)


class ClaimRegistry:
    """
    Claim verification and group membership behind one owner.

    Example:
        >>> registry = ClaimRegistry(owner="0xowner")
        >>> registry.add_epoch("0xowner", witnesses, 5)
        >>> registry.verify_proof(proof)
        >>> registry.merkelize_user(proof, identity.commitment)
    """

    def __init__(
        self,
        owner: str,
        *,
        address: str = REGISTRY_ADMIN_ID,
        verifier: Optional[MembershipProofVerifier] = None,
        clock: Optional[Clock] = None,
        epoch_duration_s: int = DEFAULT_EPOCH_DURATION_S,
    ) -> None:
        if not isinstance(owner, str) or not owner:
            raise ValueError("owner must be a non-empty string")
        self._owner = owner.lower()
        self._address = address
        self._lock = threading.RLock()
        self._epochs = EpochRegistry(epoch_duration_s=epoch_duration_s, clock=clock)
        self._bridge = GroupBridge(
            self._epochs,
            verifier if verifier is not None else get_membership_verifier(),
            admin=address,
        )
        logger.debug(
            "[REGISTRY] created with owner %s, verifier %s",
            self._owner,
            self._bridge.verifier.backend_name,
        )

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def address(self) -> str:
        return self._address

    @property
    def epochs(self) -> EpochRegistry:
        return self._epochs

    @property
    def bridge(self) -> GroupBridge:
        return self._bridge

    def _require_owner(self, caller: str) -> None:
        if not isinstance(caller, str) or caller.lower() != self._owner:
            raise NotAuthorized(f"caller {caller!r} is not the owner")

    # ------------------------------------------------------------------
    # Epochs
    # ------------------------------------------------------------------

    @property
    def current_epoch(self) -> int:
        with self._lock:
            return self._epochs.current_epoch

    def add_epoch(
        self,
        caller: str,
        witnesses: Iterable[WitnessLike],
        minimum_witnesses_for_claim_creation: int,
    ) -> Epoch:
        with self._lock:
            self._require_owner(caller)
            return self._epochs.add_epoch(
                witnesses, minimum_witnesses_for_claim_creation
            )

    def fetch_epoch(self, epoch_id: int = 0) -> Epoch:
        with self._lock:
            return self._epochs.fetch_epoch(epoch_id)

    def fetch_witnesses_for_claim(
        self, epoch_id: int, claim_identifier: str, timestamp_s: int
    ) -> Tuple[Witness, ...]:
        with self._lock:
            return self._epochs.fetch_witnesses_for_claim(
                epoch_id, claim_identifier, timestamp_s
            )

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def verify_proof(self, proof: Proof) -> Tuple[Witness, ...]:
        with self._lock:
            return verify_proof(proof, self._epochs)

    @staticmethod
    def extract_field_from_context(context: str, key: str) -> str:
        """Pure helper; reads no registry state, so no lock is taken."""
        return extract_field_from_context(context, key)

    @staticmethod
    def get_provider_from_proof(proof: Proof) -> str:
        """Pure helper; reads no registry state, so no lock is taken."""
        return get_provider_from_proof(proof)

    # ------------------------------------------------------------------
    # Groups and dapps
    # ------------------------------------------------------------------

    def create_group(self, caller: str, provider: str, merkle_depth: int) -> Group:
        with self._lock:
            self._require_owner(caller)
            return self._bridge.create_group(provider, merkle_depth)

    def merkelize_user(
        self, proof: Proof, member_commitment: Union[int, bytes]
    ) -> Tuple[int, int]:
        with self._lock:
            return self._bridge.merkelize_user(proof, member_commitment)

    def create_dapp(self, caller: str, dapp_id: int) -> Dapp:
        with self._lock:
            self._require_owner(caller)
            return self._bridge.create_dapp(dapp_id)

    def verify_merkel_identity(
        self,
        group_ref: GroupRef,
        merkle_root: Union[int, bytes],
        signal: int,
        nullifier_hash: int,
        external_nullifier: int,
        dapp_id: int,
        proof: bytes,
    ) -> MembershipAssertion:
        with self._lock:
            return self._bridge.verify_merkel_identity(
                group_ref,
                merkle_root,
                signal,
                nullifier_hash,
                external_nullifier,
                dapp_id,
                proof,
            )

    def group_exists(self, group_ref: GroupRef) -> bool:
        with self._lock:
            return self._bridge.group_exists(group_ref)

    def get_group(self, group_ref: GroupRef) -> Group:
        with self._lock:
            return self._bridge.get_group(group_ref)

    def dapp_exists(self, dapp_id: int) -> bool:
        with self._lock:
            return self._bridge.dapp_exists(dapp_id)

    def is_merkelized(self, identifier: str) -> bool:
        with self._lock:
            return self._bridge.is_merkelized(identifier)
