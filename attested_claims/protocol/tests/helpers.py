"""
Shared fixtures-as-functions for protocol tests.

Witness keys are fixed so that selection and signatures are reproducible
across runs.
"""

from typing import Dict, List, Optional

from attested_claims.protocol.claims import hash_claim_info, sign_claim
from attested_claims.protocol.primitives import address_of
from attested_claims.protocol.types import (
    ClaimInfo,
    CompleteClaimData,
    Proof,
    SignedClaim,
)

NOW = 1_700_000_000
OWNER = "0x" + "11" * 20
CLAIM_OWNER = "0x" + "22" * 20

WITNESS_KEYS: List[str] = ["0x" + format(i, "064x") for i in range(1, 6)]
FOREIGN_KEY = "0x" + format(0xBEEF, "064x")

KEYS_BY_ADDRESS: Dict[str, str] = {address_of(key): key for key in WITNESS_KEYS}


def fixed_clock() -> int:
    return NOW


def witness_dicts(keys: Optional[List[str]] = None) -> List[dict]:
    keys = WITNESS_KEYS if keys is None else keys
    return [
        {"addr": address_of(key), "host": f"wss://witness-{i}.example"}
        for i, key in enumerate(keys)
    ]


def make_claim_info(
    provider: str = "http", username: str = "alice", context: Optional[str] = None
) -> ClaimInfo:
    parameters = (
        '{"method":"GET","url":"https://example.com/users/' + username + '"}'
    )
    if context is None:
        context = (
            '{"extractedParameters":{"username":"' + username + '"},'
            '"providerHash":"0x' + "ab" * 32 + '"}'
        )
    return ClaimInfo(provider=provider, parameters=parameters, context=context)


def make_proof(
    epochs,
    claim_info: Optional[ClaimInfo] = None,
    *,
    epoch_id: Optional[int] = None,
    timestamp_s: int = NOW + 60,
    owner: str = CLAIM_OWNER,
) -> Proof:
    """
    Build a proof signed by exactly the witnesses selected for it.

    ``epochs`` is anything exposing ``current_epoch`` and
    ``fetch_witnesses_for_claim`` (an ``EpochRegistry`` or ``ClaimRegistry``).
    """
    claim_info = claim_info or make_claim_info()
    epoch_id = epochs.current_epoch if epoch_id is None else epoch_id
    claim = CompleteClaimData(
        identifier=hash_claim_info(claim_info),
        owner=owner,
        epoch=epoch_id,
        timestamp_s=timestamp_s,
    )
    selected = epochs.fetch_witnesses_for_claim(
        epoch_id, claim.identifier, timestamp_s
    )
    signatures = [
        sign_claim(claim, KEYS_BY_ADDRESS[witness.identity_key])
        for witness in selected
    ]
    return Proof(claim_info=claim_info, signed_claim=SignedClaim(claim, signatures))


def with_signatures(proof: Proof, signatures: List[bytes]) -> Proof:
    return Proof(
        claim_info=proof.claim_info,
        signed_claim=SignedClaim(proof.signed_claim.claim, list(signatures)),
    )
