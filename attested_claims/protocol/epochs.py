"""
Epoch & witness registry.

Stores the append-only list of witness committees and deterministically
selects which witnesses must attest a given claim.

Witness selection is a pure function of ``(epoch, identifier, timestamp)``:
any off-chain implementation that follows ``select_witnesses_for_claim``
step by step derives the same witnesses in the same order, which is what
lets a claimant know whose signatures to collect and lets the verifier
match signatures by position.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .config import (
    CURRENT_EPOCH_ALIAS,
    DEFAULT_EPOCH_DURATION_S,
    FIELD_SEPARATOR,
    SELECTION_COUNTER_BYTES,
)
from .exceptions import EpochNotFound, InvalidEpochConfig, SchemaError
from .primitives import keccak256
from .types import Epoch, Witness, normalize_hex

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
WitnessLike = Union[Witness, dict]


def _system_clock() -> int:
    return int(time.time())


# ============================================================================
# WITNESS SELECTION
# ============================================================================


def selection_seed(epoch_id: int, claim_identifier: str, timestamp_s: int) -> bytes:
    """
    Seed of the selection stream.

    ``keccak256(utf8(identifier + "\\n" + epoch_id + "\\n" + timestamp_s))``
    with the identifier as lowercase ``0x`` hex and integers in decimal.
    """
    identifier = normalize_hex(claim_identifier, "claim_identifier")
    payload = FIELD_SEPARATOR.join([identifier, str(epoch_id), str(timestamp_s)])
    return keccak256(payload.encode("utf-8"))


def selection_draw(seed: bytes, counter: int) -> int:
    """Draw ``counter`` of the stream: ``keccak256(seed || uint32_be(counter))``."""
    digest = keccak256(seed + counter.to_bytes(SELECTION_COUNTER_BYTES, "big"))
    return int.from_bytes(digest, "big")


def select_witnesses_for_claim(
    epoch: Epoch, claim_identifier: str, timestamp_s: int
) -> Tuple[Witness, ...]:
    """
    Select the ordered witness subset that must sign a claim.

    Args:
        epoch: Epoch the claim belongs to
        claim_identifier: Claim identifier (32-byte hex)
        timestamp_s: Claim creation time

    Returns:
        ``epoch.minimum_witnesses_for_claim_creation`` distinct witnesses

    Algorithm:
        - seed = selection_seed(epoch.id, identifier, timestamp_s)
        - for draw i = 0, 1, ...: index = selection_draw(seed, i) % remaining
        - take working[index], then swap-remove it (move the last witness
          into its slot and shrink the working list)
    """
    seed = selection_seed(epoch.id, claim_identifier, timestamp_s)
    working: List[Witness] = list(epoch.witnesses)
    selected: List[Witness] = []

    for counter in range(epoch.minimum_witnesses_for_claim_creation):
        index = selection_draw(seed, counter) % len(working)
        selected.append(working[index])
        working[index] = working[-1]
        working.pop()

    return tuple(selected)


# ============================================================================
# REGISTRY
# ============================================================================


def _coerce_witnesses(witnesses: Iterable[WitnessLike]) -> Tuple[Witness, ...]:
    if witnesses is None or isinstance(witnesses, (str, bytes)):
        raise InvalidEpochConfig("witnesses must be a sequence of witnesses")
    coerced: List[Witness] = []
    for witness in witnesses:
        if isinstance(witness, Witness):
            coerced.append(witness)
            continue
        try:
            coerced.append(Witness.from_dict(witness))
        except SchemaError as exc:
            raise InvalidEpochConfig(f"invalid witness: {exc}") from exc
    return tuple(coerced)


def validate_epoch_config(
    witnesses: Sequence[Witness], minimum_witnesses_for_claim_creation: int
) -> None:
    """
    Raises:
        InvalidEpochConfig: Empty list, duplicate identity keys, or a
            threshold outside ``[1, len(witnesses)]``
    """
    if not witnesses:
        raise InvalidEpochConfig("epoch needs at least one witness")

    seen = set()
    for witness in witnesses:
        if witness.identity_key in seen:
            raise InvalidEpochConfig(
                f"duplicate witness identity key {witness.identity_key}"
            )
        seen.add(witness.identity_key)

    minimum = minimum_witnesses_for_claim_creation
    if isinstance(minimum, bool) or not isinstance(minimum, int):
        raise InvalidEpochConfig("minimum witnesses must be an int")
    if minimum < 1:
        raise InvalidEpochConfig("minimum witnesses must be at least 1")
    if minimum > len(witnesses):
        raise InvalidEpochConfig(
            f"minimum witnesses ({minimum}) exceeds committee size "
            f"({len(witnesses)})"
        )


class EpochRegistry:
    """
    Append-only list of epochs.

    Usage:
        registry = EpochRegistry()
        epoch = registry.add_epoch(witnesses, 5)
        current = registry.fetch_epoch(0)
        selected = registry.fetch_witnesses_for_claim(epoch.id, identifier, ts)

    Ownership checks are the caller's job (see ``ClaimRegistry``).
    """

    def __init__(
        self,
        *,
        epoch_duration_s: int = DEFAULT_EPOCH_DURATION_S,
        clock: Optional[Clock] = None,
    ) -> None:
        if epoch_duration_s <= 0:
            raise InvalidEpochConfig("epoch duration must be positive")
        self._epoch_duration_s = epoch_duration_s
        self._clock = clock or _system_clock
        self._epochs: List[Epoch] = []

    @property
    def epoch_duration_s(self) -> int:
        return self._epoch_duration_s

    @property
    def current_epoch(self) -> int:
        """Id of the most recent epoch, 0 when none exists."""
        return self._epochs[-1].id if self._epochs else 0

    @property
    def epochs(self) -> Tuple[Epoch, ...]:
        return tuple(self._epochs)

    def add_epoch(
        self,
        witnesses: Iterable[WitnessLike],
        minimum_witnesses_for_claim_creation: int,
    ) -> Epoch:
        """
        Append a new epoch starting now.

        Returns:
            The new epoch (id = previous id + 1)

        Raises:
            InvalidEpochConfig: If the committee is invalid
        """
        committee = _coerce_witnesses(witnesses)
        validate_epoch_config(committee, minimum_witnesses_for_claim_creation)

        now = int(self._clock())
        epoch = Epoch(
            id=self.current_epoch + 1,
            witnesses=committee,
            minimum_witnesses_for_claim_creation=minimum_witnesses_for_claim_creation,
            timestamp_start=now,
            timestamp_end=now + self._epoch_duration_s,
        )
        self._epochs.append(epoch)
        logger.info(
            "[EPOCH] added epoch %d: %d witnesses, threshold %d, valid [%d, %d)",
            epoch.id,
            len(committee),
            minimum_witnesses_for_claim_creation,
            epoch.timestamp_start,
            epoch.timestamp_end,
        )
        return epoch

    def fetch_epoch(self, epoch_id: int) -> Epoch:
        """
        Args:
            epoch_id: Epoch id, or 0 for the current epoch

        Raises:
            EpochNotFound: If no such epoch exists
        """
        if isinstance(epoch_id, bool) or not isinstance(epoch_id, int):
            raise EpochNotFound(f"invalid epoch id {epoch_id!r}")
        if epoch_id == CURRENT_EPOCH_ALIAS:
            if not self._epochs:
                raise EpochNotFound("no epoch has been added yet")
            return self._epochs[-1]
        # ids are dense and start at 1
        if epoch_id < 1 or epoch_id > len(self._epochs):
            raise EpochNotFound(f"epoch {epoch_id} does not exist")
        return self._epochs[epoch_id - 1]

    def fetch_witnesses_for_claim(
        self, epoch_id: int, claim_identifier: str, timestamp_s: int
    ) -> Tuple[Witness, ...]:
        epoch = self.fetch_epoch(epoch_id)
        return select_witnesses_for_claim(epoch, claim_identifier, timestamp_s)

    def restore(self, epochs: Sequence[Epoch]) -> None:
        """
        Replace the epoch list with a previously saved one.

        Raises:
            InvalidEpochConfig: If ids are not 1..n or an epoch is invalid
        """
        for expected_id, epoch in enumerate(epochs, start=1):
            if epoch.id != expected_id:
                raise InvalidEpochConfig(
                    f"epoch ids must be consecutive from 1, got {epoch.id}"
                )
            validate_epoch_config(
                epoch.witnesses, epoch.minimum_witnesses_for_claim_creation
            )
        self._epochs = list(epochs)
