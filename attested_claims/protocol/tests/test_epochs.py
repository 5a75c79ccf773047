"""
Unit tests for the epoch registry and witness selection.
"""

import pytest

from attested_claims.protocol import epochs as epochs_module
from attested_claims.protocol.epochs import (
    EpochRegistry,
    select_witnesses_for_claim,
    selection_draw,
    selection_seed,
)
from attested_claims.protocol.exceptions import EpochNotFound, InvalidEpochConfig
from attested_claims.protocol.primitives import keccak256
from attested_claims.protocol.tests.helpers import NOW, fixed_clock, witness_dicts

IDENTIFIER = "0x" + "5a" * 32


@pytest.fixture
def registry():
    return EpochRegistry(clock=fixed_clock)


class TestWitnessSelection:
    """Test deterministic witness selection."""

    def _epoch(self, registry, minimum):
        return registry.add_epoch(witness_dicts(), minimum)

    def test_seed_layout(self):
        expected = keccak256(f"{IDENTIFIER}\n3\n1234".encode("utf-8"))
        assert selection_seed(3, IDENTIFIER, 1234) == expected

    def test_seed_normalizes_identifier_case(self):
        assert selection_seed(1, IDENTIFIER.upper().replace("0X", "0x"), 5) == (
            selection_seed(1, IDENTIFIER, 5)
        )

    def test_draw_appends_big_endian_counter(self):
        seed = b"\x01" * 32
        digest = keccak256(seed + (7).to_bytes(4, "big"))
        assert selection_draw(seed, 7) == int.from_bytes(digest, "big")

    def test_selection_follows_swap_remove(self, registry):
        epoch = self._epoch(registry, 3)
        seed = selection_seed(epoch.id, IDENTIFIER, NOW)
        working = list(epoch.witnesses)
        expected = []
        for counter in range(3):
            index = selection_draw(seed, counter) % len(working)
            expected.append(working[index])
            working[index] = working[-1]
            working.pop()
        assert select_witnesses_for_claim(epoch, IDENTIFIER, NOW) == tuple(expected)

    def test_selection_is_deterministic(self, registry):
        epoch = self._epoch(registry, 3)
        first = select_witnesses_for_claim(epoch, IDENTIFIER, NOW)
        second = select_witnesses_for_claim(epoch, IDENTIFIER, NOW)
        assert first == second

    @pytest.mark.parametrize("minimum", [1, 2, 3, 4, 5])
    def test_selection_size_and_distinctness(self, registry, minimum):
        epoch = self._epoch(registry, minimum)
        selected = select_witnesses_for_claim(epoch, IDENTIFIER, NOW)
        assert len(selected) == minimum
        assert len(set(selected)) == minimum
        assert set(selected) <= set(epoch.witnesses)

    def test_selection_depends_on_timestamp(self, registry):
        epoch = self._epoch(registry, 5)
        orders = {
            select_witnesses_for_claim(epoch, IDENTIFIER, NOW + offset)
            for offset in range(10)
        }
        assert len(orders) > 1

    def test_selection_does_not_mutate_epoch(self, registry):
        epoch = self._epoch(registry, 4)
        before = epoch.witnesses
        select_witnesses_for_claim(epoch, IDENTIFIER, NOW)
        assert epoch.witnesses == before
        assert registry.fetch_epoch(epoch.id).witnesses == before


class TestEpochRegistry:
    """Test epoch lifecycle."""

    def test_empty_registry(self, registry):
        assert registry.current_epoch == 0
        with pytest.raises(EpochNotFound):
            registry.fetch_epoch(0)

    def test_add_epoch_assigns_sequential_ids(self, registry):
        first = registry.add_epoch(witness_dicts(), 2)
        second = registry.add_epoch(witness_dicts()[:3], 3)
        assert (first.id, second.id) == (1, 2)
        assert registry.current_epoch == 2
        assert len(registry.epochs) == 2

    def test_epoch_window(self):
        registry = EpochRegistry(epoch_duration_s=3600, clock=fixed_clock)
        epoch = registry.add_epoch(witness_dicts(), 1)
        assert epoch.timestamp_start == NOW
        assert epoch.timestamp_end == NOW + 3600

    def test_fetch_current_alias(self, registry):
        registry.add_epoch(witness_dicts(), 1)
        latest = registry.add_epoch(witness_dicts(), 2)
        assert registry.fetch_epoch(0) == latest
        assert registry.fetch_epoch(1).minimum_witnesses_for_claim_creation == 1

    @pytest.mark.parametrize("epoch_id", [2, -1, "1", None, False])
    def test_fetch_unknown(self, registry, epoch_id):
        registry.add_epoch(witness_dicts(), 1)
        with pytest.raises(EpochNotFound):
            registry.fetch_epoch(epoch_id)

    def test_fetch_witnesses_for_claim(self, registry):
        epoch = registry.add_epoch(witness_dicts(), 3)
        assert registry.fetch_witnesses_for_claim(1, IDENTIFIER, NOW) == (
            select_witnesses_for_claim(epoch, IDENTIFIER, NOW)
        )

    def test_witness_objects_and_dicts_are_equivalent(self, registry):
        epoch = registry.add_epoch(witness_dicts(), 1)
        again = registry.add_epoch(list(epoch.witnesses), 1)
        assert again.witnesses == epoch.witnesses

    def test_non_positive_duration(self):
        with pytest.raises(InvalidEpochConfig):
            EpochRegistry(epoch_duration_s=0)

    def test_system_clock_default(self, monkeypatch):
        monkeypatch.setattr(epochs_module.time, "time", lambda: 42.9)
        epoch = EpochRegistry().add_epoch(witness_dicts(), 1)
        assert epoch.timestamp_start == 42


class TestEpochValidation:
    """Invalid committees are rejected without side effects."""

    def _assert_rejected(self, registry, witnesses, minimum):
        with pytest.raises(InvalidEpochConfig):
            registry.add_epoch(witnesses, minimum)
        assert registry.current_epoch == 0

    def test_empty_witnesses(self, registry):
        self._assert_rejected(registry, [], 1)

    def test_duplicate_identity_key(self, registry):
        witnesses = witness_dicts()[:2]
        duplicate = dict(witnesses[0])
        duplicate["addr"] = "0x" + duplicate["addr"][2:].upper()
        self._assert_rejected(registry, witnesses + [duplicate], 1)

    @pytest.mark.parametrize("minimum", [0, -3, 6, True, "2", None])
    def test_bad_minimum(self, registry, minimum):
        self._assert_rejected(registry, witness_dicts(), minimum)

    def test_malformed_witness(self, registry):
        self._assert_rejected(registry, [{"addr": "0xnothex", "host": "h"}], 1)

    @pytest.mark.parametrize("addr", ["", "0x", "0x" + "ab" * 19, "0x" + "ab" * 32])
    def test_witness_key_must_be_an_address(self, registry, addr):
        self._assert_rejected(registry, [{"addr": addr, "host": "x"}], 1)

    def test_witnesses_not_a_sequence(self, registry):
        self._assert_rejected(registry, "0xabc", 1)

    def test_restore_requires_consecutive_ids(self, registry):
        source = EpochRegistry(clock=fixed_clock)
        source.add_epoch(witness_dicts(), 1)
        second = source.add_epoch(witness_dicts(), 2)
        with pytest.raises(InvalidEpochConfig):
            registry.restore([second])
        registry.restore(list(source.epochs))
        assert registry.current_epoch == 2
