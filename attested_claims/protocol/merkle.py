"""
Fixed-depth incremental Merkle tree for provider groups.
Uses SHA-256 with domain separation for leaf/node hashing.

Empty positions hold precomputed "zero" subtree hashes, so an empty tree of
any depth has a deterministic root and inserting a leaf touches exactly
``depth`` nodes.
"""

from __future__ import annotations

import hashlib
from typing import Dict, List, Tuple, Union

from .config import MERKLE_DOMAIN_SEPARATORS
from .primitives import to_bytes32

AuthPath = List[Tuple[bytes, bool]]


def hash_leaf(
    leaf_data: bytes,
    domain_sep: bytes = MERKLE_DOMAIN_SEPARATORS["merkle_leaf"],
) -> bytes:
    """
    Hash a Merkle tree leaf with domain separation.

    Args:
        leaf_data: Leaf content (a 32-byte member commitment)
        domain_sep: Domain separator

    Returns:
        32-byte SHA-256 hash
    """
    return hashlib.sha256(domain_sep + leaf_data).digest()


def hash_node(left: bytes, right: bytes) -> bytes:
    """
    Hash two Merkle node hashes.

    Note:
        Uses fixed left||right ordering (no sorting).
        Domain separation applied.
    """
    domain_sep = MERKLE_DOMAIN_SEPARATORS["merkle_node"]
    return hashlib.sha256(domain_sep + left + right).digest()


def zero_hashes(depth: int) -> List[bytes]:
    """
    Roots of empty subtrees, indexed by height (0 = empty leaf).

    Returns ``depth + 1`` hashes; the last one is the root of an empty tree.
    """
    zeros = [hashlib.sha256(MERKLE_DOMAIN_SEPARATORS["merkle_zero"]).digest()]
    for _ in range(depth):
        zeros.append(hash_node(zeros[-1], zeros[-1]))
    return zeros


def verify_path(leaf_hash: bytes, path: AuthPath, root: bytes) -> bool:
    """
    Verify a Merkle authentication path.

    Args:
        leaf_hash: Hash of the leaf (32 bytes)
        path: Authentication path [(sibling, is_left), ...], leaf to root
        root: Expected root hash (32 bytes)

    Returns:
        True if path is valid, False otherwise
    """
    current = leaf_hash

    for sibling, is_left in path:
        if is_left:
            # Sibling is on left, current on right
            current = hash_node(sibling, current)
        else:
            # Sibling is on right, current on left
            current = hash_node(current, sibling)

    return current == root


class IncrementalMerkleTree:
    """
    Append-only Merkle tree of fixed depth.

    Leaves are member commitments (uint256 or 32 bytes). Only non-empty
    nodes are stored.

    Example:
        tree = IncrementalMerkleTree(depth=20)
        index = tree.insert(commitment)
        path = tree.auth_path(index)
        assert verify_path(hash_leaf(to_bytes32(commitment)), path, tree.root)
    """

    def __init__(self, depth: int) -> None:
        if not isinstance(depth, int) or isinstance(depth, bool) or depth < 1:
            raise ValueError(f"depth must be a positive int, got {depth!r}")
        self._depth = depth
        self._zeros = zero_hashes(depth)
        self._levels: List[Dict[int, bytes]] = [{} for _ in range(depth + 1)]
        self._leaves: List[bytes] = []

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def capacity(self) -> int:
        return 1 << self._depth

    @property
    def size(self) -> int:
        return len(self._leaves)

    @property
    def is_full(self) -> bool:
        return self.size >= self.capacity

    @property
    def leaves(self) -> List[bytes]:
        """Inserted commitments, in insertion order."""
        return list(self._leaves)

    @property
    def root(self) -> bytes:
        return self._levels[self._depth].get(0, self._zeros[self._depth])

    def _node(self, level: int, position: int) -> bytes:
        return self._levels[level].get(position, self._zeros[level])

    def insert(self, commitment: Union[int, bytes]) -> int:
        """
        Append a commitment as the next leaf.

        Returns:
            Index of the new leaf

        Raises:
            ValueError: If the tree is full or the commitment is not 256-bit
        """
        if self.is_full:
            raise ValueError(f"tree of depth {self._depth} is full")
        leaf = to_bytes32(commitment)
        index = len(self._leaves)
        self._leaves.append(leaf)

        current = hash_leaf(leaf)
        position = index
        self._levels[0][position] = current
        for level in range(self._depth):
            if position % 2 == 0:
                current = hash_node(current, self._node(level, position + 1))
            else:
                current = hash_node(self._node(level, position - 1), current)
            position //= 2
            self._levels[level + 1][position] = current
        return index

    def index_of(self, commitment: Union[int, bytes]) -> int:
        """Index of the first leaf equal to ``commitment``, or -1."""
        leaf = to_bytes32(commitment)
        try:
            return self._leaves.index(leaf)
        except ValueError:
            return -1

    def auth_path(self, index: int) -> AuthPath:
        """
        Authentication path for the leaf at ``index``.

        Raises:
            IndexError: If no leaf exists at ``index``
        """
        if index < 0 or index >= len(self._leaves):
            raise IndexError(f"no leaf at index {index}")
        path: AuthPath = []
        position = index
        for level in range(self._depth):
            if position % 2 == 0:
                path.append((self._node(level, position + 1), False))
            else:
                path.append((self._node(level, position - 1), True))
            position //= 2
        return path
