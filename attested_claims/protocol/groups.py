"""
Group & credential bridge.

Turns verified claims into anonymous group membership:

- one group per provider, id = ``uint256(keccak256(provider))``
- each claim identifier can be merkelized into a group exactly once, so one
  attested fact mints at most one membership
- membership proofs are scoped to a dapp (the external nullifier) and each
  nullifier hash can be spent once per dapp

State machine per provider group: NonExistent -> Created -> members
inserted over time. Every operation validates fully before mutating; the
bridge itself is not thread-safe, ``ClaimRegistry`` serializes access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Set, Tuple, Union

from .claims import verify_proof
from .config import DEFAULT_MERKLE_DEPTH, MAX_MERKLE_DEPTH, MIN_MERKLE_DEPTH
from .epochs import EpochRegistry
from .exceptions import (
    DappAlreadyExists,
    DappNotFound,
    GroupAlreadyExists,
    GroupFull,
    GroupNotFound,
    InvalidGroupConfig,
    InvalidMembershipProof,
    NullifierAlreadyConsumed,
    SchemaError,
    UserAlreadyMerkelized,
)
from .merkle import IncrementalMerkleTree
from .primitives import bytes32_to_int, keccak256, to_bytes32
from .types import MembershipAssertion, Proof
from .zk.interfaces import MembershipProofVerifier

logger = logging.getLogger(__name__)

GroupRef = Union[int, str]


def group_id_for_provider(provider: str) -> int:
    """
    Deterministic group id of a provider.

    The full 256-bit digest is kept, so distinct providers only share a
    group id on a keccak256 collision.
    """
    if not isinstance(provider, str):
        raise TypeError(f"provider must be str, got {type(provider)}")
    return bytes32_to_int(keccak256(provider.encode("utf-8")))


def _validate_depth(merkle_depth: int) -> None:
    if isinstance(merkle_depth, bool) or not isinstance(merkle_depth, int):
        raise InvalidGroupConfig("merkle depth must be an int")
    if not MIN_MERKLE_DEPTH <= merkle_depth <= MAX_MERKLE_DEPTH:
        raise InvalidGroupConfig(
            f"merkle depth must be within [{MIN_MERKLE_DEPTH}, "
            f"{MAX_MERKLE_DEPTH}], got {merkle_depth}"
        )


@dataclass
class Group:
    """
    Provider-scoped membership group.

    ``admin`` is a one-way reference to the identity allowed to add
    members; the administrator keeps no pointer back.
    """

    group_id: int
    provider: str
    tree: IncrementalMerkleTree
    admin: str

    @property
    def root(self) -> bytes:
        return self.tree.root

    @property
    def depth(self) -> int:
        return self.tree.depth

    @property
    def size(self) -> int:
        return self.tree.size


@dataclass
class Dapp:
    """External nullifier scope and the nullifier hashes spent in it."""

    dapp_id: int
    consumed_nullifiers: Set[int] = field(default_factory=set)


class GroupBridge:
    """
    Usage:
        bridge = GroupBridge(epochs, verifier, admin="0xregistry")
        group_id, index = bridge.merkelize_user(proof, identity.commitment)
        bridge.create_dapp(dapp_id)
        assertion = bridge.verify_merkel_identity(
            provider, root, signal, nullifier_hash, dapp_id, dapp_id, proof_bytes
        )
    """

    def __init__(
        self,
        epochs: EpochRegistry,
        verifier: MembershipProofVerifier,
        admin: str,
    ) -> None:
        self._epochs = epochs
        self._verifier = verifier
        self._admin = admin
        self._groups: Dict[int, Group] = {}
        self._dapps: Dict[int, Dapp] = {}
        self._merkelized: Set[str] = set()

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def verifier(self) -> MembershipProofVerifier:
        return self._verifier

    @property
    def groups(self) -> Tuple[Group, ...]:
        return tuple(self._groups.values())

    @property
    def dapps(self) -> Tuple[Dapp, ...]:
        return tuple(self._dapps.values())

    @property
    def merkelized_identifiers(self) -> Tuple[str, ...]:
        return tuple(sorted(self._merkelized))

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def resolve_group_id(self, group_ref: GroupRef) -> int:
        """A provider name maps to its derived id; an int is taken as is."""
        if isinstance(group_ref, str):
            return group_id_for_provider(group_ref)
        if isinstance(group_ref, bool) or not isinstance(group_ref, int):
            raise GroupNotFound(f"invalid group reference {group_ref!r}")
        return group_ref

    def group_exists(self, group_ref: GroupRef) -> bool:
        try:
            return self.resolve_group_id(group_ref) in self._groups
        except GroupNotFound:
            return False

    def get_group(self, group_ref: GroupRef) -> Group:
        group_id = self.resolve_group_id(group_ref)
        group = self._groups.get(group_id)
        if group is None:
            raise GroupNotFound(f"group {group_id} does not exist")
        return group

    def create_group(self, provider: str, merkle_depth: int) -> Group:
        """
        Create the group of ``provider`` with an empty tree.

        Raises:
            GroupAlreadyExists: If the provider already has a group
            InvalidGroupConfig: If the depth is unsupported
        """
        group_id = group_id_for_provider(provider)
        if group_id in self._groups:
            raise GroupAlreadyExists(f"group for provider {provider!r} already exists")
        _validate_depth(merkle_depth)

        group = Group(
            group_id=group_id,
            provider=provider,
            tree=IncrementalMerkleTree(merkle_depth),
            admin=self._admin,
        )
        self._groups[group_id] = group
        logger.info(
            "[GROUP] created group %d for provider %r (depth %d)",
            group_id,
            provider,
            merkle_depth,
        )
        return group

    def is_merkelized(self, identifier: str) -> bool:
        return identifier.lower() in self._merkelized

    def merkelize_user(
        self, proof: Proof, member_commitment: Union[int, bytes]
    ) -> Tuple[int, int]:
        """
        Insert ``member_commitment`` into the provider group of a verified
        claim. The group is created on demand.

        Returns:
            (group_id, leaf_index)

        Raises:
            ClaimVerificationError / EpochNotFound: Proof did not verify
            UserAlreadyMerkelized: Claim identifier was already used
            GroupFull: Provider group has no free leaf
            SchemaError: Commitment does not fit in 256 bits
        """
        verify_proof(proof, self._epochs)

        identifier = proof.identifier
        if identifier in self._merkelized:
            raise UserAlreadyMerkelized(f"claim {identifier} was already merkelized")

        try:
            leaf = to_bytes32(member_commitment)
        except (ValueError, TypeError) as exc:
            raise SchemaError(f"invalid member commitment: {exc}") from exc

        provider = proof.claim_info.provider
        group = self._groups.get(group_id_for_provider(provider))
        if group is not None and group.tree.is_full:
            raise GroupFull(f"group {group.group_id} is full")
        if group is None:
            group = self.create_group(provider, DEFAULT_MERKLE_DEPTH)

        index = group.tree.insert(leaf)
        self._merkelized.add(identifier)
        logger.info(
            "[GROUP] merkelized claim %s into group %d at leaf %d",
            identifier,
            group.group_id,
            index,
        )
        return group.group_id, index

    # ------------------------------------------------------------------
    # Dapps and membership proofs
    # ------------------------------------------------------------------

    def dapp_exists(self, dapp_id: int) -> bool:
        return dapp_id in self._dapps

    def create_dapp(self, dapp_id: int) -> Dapp:
        """
        Raises:
            DappAlreadyExists: If the id is taken
        """
        if isinstance(dapp_id, bool) or not isinstance(dapp_id, int) or dapp_id < 0:
            raise SchemaError(f"dapp id must be a non-negative int, got {dapp_id!r}")
        if dapp_id in self._dapps:
            raise DappAlreadyExists(f"Dapp Already Exists: {dapp_id}")
        dapp = Dapp(dapp_id=dapp_id)
        self._dapps[dapp_id] = dapp
        logger.info("[DAPP] created dapp %d", dapp_id)
        return dapp

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
        """
        Verify an anonymous membership proof for a dapp and spend its
        nullifier.

        Args:
            group_ref: Group id or provider name
            merkle_root: Root the proof was generated against
            signal: Message the member endorses
            nullifier_hash: One-time tag for this member in this scope
            external_nullifier: Proof scope, must equal ``dapp_id``
            dapp_id: Registered dapp the proof is presented to
            proof: Opaque proof bytes for the verifier backend

        Raises:
            DappNotFound: Dapp is not registered
            GroupNotFound: Group does not exist
            NullifierAlreadyConsumed: Nullifier already spent in this dapp
            InvalidMembershipProof: Wrong scope, stale root or bad proof
        """
        dapp = self._dapps.get(dapp_id)
        if dapp is None:
            raise DappNotFound(f"Dapp Not Created: {dapp_id}")
        group = self.get_group(group_ref)

        if nullifier_hash in dapp.consumed_nullifiers:
            raise NullifierAlreadyConsumed(
                f"nullifier hash already used in dapp {dapp_id}"
            )
        if external_nullifier != dapp_id:
            raise InvalidMembershipProof(
                f"external nullifier {external_nullifier} is not the scope "
                f"of dapp {dapp_id}"
            )
        try:
            root = to_bytes32(merkle_root)
        except (ValueError, TypeError) as exc:
            raise InvalidMembershipProof(f"invalid merkle root: {exc}") from exc
        if root != group.root:
            raise InvalidMembershipProof(
                f"merkle root is not the current root of group {group.group_id}"
            )
        if not self._verifier.verify(
            root, signal, nullifier_hash, external_nullifier, proof
        ):
            raise InvalidMembershipProof("membership proof rejected by verifier")

        dapp.consumed_nullifiers.add(nullifier_hash)
        logger.info(
            "[MEMBERSHIP] verified proof for group %d in dapp %d",
            group.group_id,
            dapp_id,
        )
        return MembershipAssertion(
            group_id=group.group_id,
            signal=signal,
            nullifier_hash=nullifier_hash,
            external_nullifier=external_nullifier,
            dapp_id=dapp_id,
            merkle_root=root,
        )

    # ------------------------------------------------------------------
    # Snapshot restore
    # ------------------------------------------------------------------

    def restore(
        self,
        groups: Iterable[Tuple[str, int, Iterable[bytes]]],
        merkelized: Iterable[str],
        dapps: Iterable[Tuple[int, Iterable[int]]],
    ) -> None:
        """
        Rebuild bridge state from ``(provider, depth, leaves)`` groups,
        consumed claim identifiers and ``(dapp_id, nullifiers)`` dapps.
        """
        rebuilt_groups: Dict[int, Group] = {}
        for provider, depth, leaves in groups:
            _validate_depth(depth)
            tree = IncrementalMerkleTree(depth)
            for leaf in leaves:
                tree.insert(leaf)
            group_id = group_id_for_provider(provider)
            rebuilt_groups[group_id] = Group(
                group_id=group_id, provider=provider, tree=tree, admin=self._admin
            )

        rebuilt_dapps: Dict[int, Dapp] = {}
        for dapp_id, nullifiers in dapps:
            rebuilt_dapps[dapp_id] = Dapp(
                dapp_id=dapp_id, consumed_nullifiers=set(nullifiers)
            )

        self._groups = rebuilt_groups
        self._dapps = rebuilt_dapps
        self._merkelized = {identifier.lower() for identifier in merkelized}
