"""
Claim verification.

A claim is verified when, in order:
1. its identifier equals ``hash_claim_info(claim_info)``
2. its epoch exists and covers the claim timestamp
3. it carries one signature per witness selected for it
4. signature ``i`` recovers to selected witness ``i``

Verification is a pure gate: nothing is recorded, callers decide what to
do with a verified claim.
"""

from __future__ import annotations

import logging
from typing import Tuple

from .config import FIELD_SEPARATOR
from .epochs import EpochRegistry, select_witnesses_for_claim
from .exceptions import (
    EpochNotFound,
    IdentifierMismatch,
    NoSignatures,
    SignatureCountMismatch,
    SignatureNotAppropriate,
)
from .primitives import keccak256_hex, recover_signer, sign_message
from .types import ClaimInfo, CompleteClaimData, Proof, Witness

logger = logging.getLogger(__name__)


def hash_claim_info(claim_info: ClaimInfo) -> str:
    """
    Canonical claim identifier.

    ``keccak256(utf8(provider + "\\n" + parameters + "\\n" + context))`` as
    lowercase ``0x`` hex. Witnesses compute the same value independently to
    know what they are attesting to.
    """
    payload = FIELD_SEPARATOR.join(
        [claim_info.provider, claim_info.parameters, claim_info.context]
    )
    return keccak256_hex(payload.encode("utf-8"))


def create_sign_data(claim: CompleteClaimData) -> str:
    """
    Text payload witnesses sign for a claim.

    ``identifier \\n owner \\n timestampS \\n epoch``, hex fields lowercase.
    """
    return FIELD_SEPARATOR.join(
        [claim.identifier, claim.owner, str(claim.timestamp_s), str(claim.epoch)]
    )


def sign_claim(claim: CompleteClaimData, private_key) -> bytes:
    """Witness-side signature over ``create_sign_data(claim)``."""
    return sign_message(create_sign_data(claim), private_key)


def recover_signer_of_claim(claim: CompleteClaimData, signature: bytes) -> str:
    return recover_signer(create_sign_data(claim), signature)


def verify_proof(proof: Proof, epochs: EpochRegistry) -> Tuple[Witness, ...]:
    """
    Verify a claim proof against the witness committee of its epoch.

    Args:
        proof: Claim info plus signed claim
        epochs: Registry holding the claim's epoch

    Returns:
        The witnesses that attested the claim, in signature order

    Raises:
        IdentifierMismatch: Identifier is not the hash of the claim info
        EpochNotFound: Epoch missing or not covering ``timestamp_s``
        NoSignatures: No signature supplied
        SignatureCountMismatch: Signature count != selected witness count
        SignatureNotAppropriate: A signature does not recover to the
            witness selected for its position
    """
    claim = proof.signed_claim.claim
    signatures = proof.signed_claim.signatures

    identifier = hash_claim_info(proof.claim_info)
    if identifier != claim.identifier:
        raise IdentifierMismatch(
            f"claim identifier {claim.identifier} does not match "
            f"claim info hash {identifier}"
        )

    # epoch 0 would alias the current epoch, which a claim never refers to
    if claim.epoch < 1:
        raise EpochNotFound(f"epoch {claim.epoch} does not exist")
    epoch = epochs.fetch_epoch(claim.epoch)
    if not epoch.covers(claim.timestamp_s):
        raise EpochNotFound(
            f"epoch {epoch.id} is valid for [{epoch.timestamp_start}, "
            f"{epoch.timestamp_end}), claim timestamp is {claim.timestamp_s}"
        )

    expected = select_witnesses_for_claim(epoch, claim.identifier, claim.timestamp_s)

    if not signatures:
        raise NoSignatures("No signatures")
    if len(signatures) != len(expected):
        raise SignatureCountMismatch(
            "Number of signatures not equal to number of witnesses: "
            f"got {len(signatures)}, expected {len(expected)}"
        )

    sign_data = create_sign_data(claim)
    for position, (signature, witness) in enumerate(zip(signatures, expected)):
        try:
            signer = recover_signer(sign_data, signature)
        except ValueError as exc:
            raise SignatureNotAppropriate(
                f"Signature not appropriate at position {position}: {exc}"
            ) from exc
        if signer != witness.identity_key:
            raise SignatureNotAppropriate(
                f"Signature not appropriate at position {position}: "
                f"recovered {signer}, expected {witness.identity_key}"
            )

    logger.debug(
        "[CLAIM] verified %s in epoch %d with %d signatures",
        claim.identifier,
        epoch.id,
        len(expected),
    )
    return expected


def extract_field_from_context(context: str, key: str) -> str:
    """
    Extract a string field from a serialized context by substring scan.

    This is not a JSON parser. The context format is caller-defined and
    never schema-validated, so the lookup is a plain scan:

    - ``key`` is the full prefix to look for, e.g. ``'"providerHash":"'``.
      A bare name (``"providerHash"``) is expanded to that form.
    - The value is everything after the first occurrence of the prefix up
      to the next unescaped ``"``; escape sequences are kept verbatim.
    - A missing prefix, an empty key or a value without a closing quote
      yields ``""``.

    Example:
        >>> extract_field_from_context('{"a":"x","b":"y"}', '"b":"')
        'y'
    """
    if not context or not key:
        return ""
    if not key.startswith('"'):
        key = f'"{key}":"'

    start = context.find(key)
    if start < 0:
        return ""
    start += len(key)

    position = start
    while position < len(context):
        char = context[position]
        if char == "\\":
            position += 2
            continue
        if char == '"':
            return context[start:position]
        position += 1
    return ""


def get_provider_from_proof(proof: Proof) -> str:
    return proof.claim_info.provider
