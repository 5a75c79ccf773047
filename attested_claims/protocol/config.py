"""
Protocol configuration for claim attestation and group membership.

All values here are part of the wire contract: witnesses, off-chain
verifiers and this package must agree on them bit for bit.
"""

# ============================================================================
# HASH FUNCTIONS
# ============================================================================

# Claim identifiers, witness selection seeds and group ids all use keccak256
HASH_FUNCTION = "keccak256"
HASH_OUTPUT_BYTES = 32

# Separator between the fields of every hashed or signed text payload
FIELD_SEPARATOR = "\n"

# EIP-191 personal message signatures (65 bytes: r || s || v)
SIGNATURE_SCHEME = "eip191"
SIGNATURE_BYTES = 65

# Witness identity keys are EVM addresses
ADDRESS_BYTES = 20

# ============================================================================
# EPOCHS
# ============================================================================

# Validity window of a freshly added epoch
DEFAULT_EPOCH_DURATION_S = 24 * 60 * 60

# Epoch id 0 is reserved: fetch_epoch(0) means "the current epoch"
CURRENT_EPOCH_ALIAS = 0

# Bytes of big-endian draw counter appended to the selection seed
SELECTION_COUNTER_BYTES = 4

# ============================================================================
# GROUPS
# ============================================================================

MIN_MERKLE_DEPTH = 1
MAX_MERKLE_DEPTH = 32

# Depth used when merkelize_user creates a provider group on demand
DEFAULT_MERKLE_DEPTH = 20

# Administrator recorded on every group the registry creates
REGISTRY_ADMIN_ID = "attested-claims-registry"

# Domain separators for Merkle hashing
MERKLE_DOMAIN_SEPARATORS = {
    "merkle_leaf": b"ATTESTED_CLAIMS_MERKLE_LEAF_V1",
    "merkle_node": b"ATTESTED_CLAIMS_MERKLE_NODE_V1",
    "merkle_zero": b"ATTESTED_CLAIMS_MERKLE_ZERO_V1",
}

# ============================================================================
# SERIALIZATION
# ============================================================================

SERIALIZATION_FORMAT = "CBOR"
STATE_VERSION = 1
TRANSPARENT_PROOF_VERSION = 1

MAX_STATE_BYTES = 64 * 1024 * 1024
MAX_MEMBERSHIP_PROOF_BYTES = 16 * 1024

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert HASH_FUNCTION == "keccak256", "Invalid hash function"
    assert HASH_OUTPUT_BYTES == 32, "keccak256 digests are 32 bytes"
    assert SIGNATURE_SCHEME == "eip191", "Invalid signature scheme"
    assert DEFAULT_EPOCH_DURATION_S > 0, "Epoch duration must be positive"
    assert 1 <= MIN_MERKLE_DEPTH <= MAX_MERKLE_DEPTH, "Invalid depth bounds"
    assert (
        MIN_MERKLE_DEPTH <= DEFAULT_MERKLE_DEPTH <= MAX_MERKLE_DEPTH
    ), "Default depth out of bounds"
    assert SELECTION_COUNTER_BYTES in (4, 8, 32), "Invalid counter width"
    assert len(set(MERKLE_DOMAIN_SEPARATORS.values())) == len(
        MERKLE_DOMAIN_SEPARATORS
    ), "Domain separators must be distinct"

    return True


# Auto-validate on import
validate_config()
