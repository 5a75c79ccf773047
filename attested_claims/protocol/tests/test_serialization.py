"""
Unit tests for proof JSON and registry state snapshots.
"""

import json

import cbor2
import pytest

from attested_claims.protocol import ClaimRegistry
from attested_claims.protocol.exceptions import (
    NullifierAlreadyConsumed,
    SchemaError,
    UserAlreadyMerkelized,
)
from attested_claims.protocol.serialization import (
    dump_proof_json,
    dump_state,
    load_proof_json,
    load_state,
)
from attested_claims.protocol.tests.helpers import (
    OWNER,
    fixed_clock,
    make_claim_info,
    make_proof,
    witness_dicts,
)
from attested_claims.protocol.zk.mock import MockMembershipVerifier, mock_proof_for


@pytest.fixture
def registry():
    registry = ClaimRegistry(OWNER, verifier=MockMembershipVerifier(), clock=fixed_clock)
    registry.add_epoch(OWNER, witness_dicts(), 3)
    return registry


class TestProofJson:
    def test_round_trip_still_verifies(self, registry):
        proof = make_proof(registry)
        text = dump_proof_json(proof)
        assert json.loads(text)["signedClaim"]["claim"]["timestampS"] == (
            proof.signed_claim.claim.timestamp_s
        )
        registry.verify_proof(load_proof_json(text))

    def test_invalid_json(self):
        with pytest.raises(SchemaError):
            load_proof_json("{not json")

    def test_wrong_shape(self):
        with pytest.raises(SchemaError):
            load_proof_json("[]")
        with pytest.raises(SchemaError):
            load_proof_json('{"claimInfo": {}}')

    def test_bad_signature_hex(self, registry):
        data = make_proof(registry).to_dict()
        data["signedClaim"]["signatures"] = ["0xzz"]
        with pytest.raises(SchemaError):
            load_proof_json(json.dumps(data))


class TestStateSnapshot:
    def _populate(self, registry):
        alice = make_proof(registry, make_claim_info(username="alice"))
        registry.merkelize_user(alice, 11)
        registry.merkelize_user(make_proof(registry, make_claim_info(username="bob")), 12)
        registry.create_group(OWNER, "github-cred", 4)
        registry.create_dapp(OWNER, 9)
        group = registry.get_group("http")
        registry.verify_merkel_identity(
            "http", group.root, 1, 555, 9, 9, mock_proof_for(group.root, 1, 555, 9)
        )
        return alice

    def test_round_trip(self, registry):
        alice = self._populate(registry)
        restored = load_state(
            dump_state(registry), verifier=MockMembershipVerifier(), clock=fixed_clock
        )

        assert restored.owner == registry.owner
        assert restored.address == registry.address
        assert restored.fetch_epoch(1) == registry.fetch_epoch(1)
        assert restored.get_group("http").root == registry.get_group("http").root
        assert restored.get_group("github-cred").depth == 4
        assert restored.dapp_exists(9)
        assert restored.is_merkelized(alice.identifier)

        with pytest.raises(UserAlreadyMerkelized):
            restored.merkelize_user(alice, 13)
        group = restored.get_group("http")
        with pytest.raises(NullifierAlreadyConsumed):
            restored.verify_merkel_identity(
                "http", group.root, 1, 555, 9, 9, mock_proof_for(group.root, 1, 555, 9)
            )

    def test_empty_registry(self):
        registry = ClaimRegistry(OWNER, epoch_duration_s=60)
        restored = load_state(dump_state(registry))
        assert restored.current_epoch == 0
        assert restored.epochs.epoch_duration_s == 60

    @pytest.mark.parametrize("blob", [b"", b"\xff\x00garbage", "text"])
    def test_garbage(self, blob):
        with pytest.raises(SchemaError):
            load_state(blob)

    def test_wrong_version(self, registry):
        payload = cbor2.loads(dump_state(registry))
        payload["v"] = 99
        with pytest.raises(SchemaError, match="version"):
            load_state(cbor2.dumps(payload))

    def test_missing_field(self, registry):
        payload = cbor2.loads(dump_state(registry))
        del payload["groups"]
        with pytest.raises(SchemaError, match="groups"):
            load_state(cbor2.dumps(payload))

    def test_invalid_group_depth(self, registry):
        self._populate(registry)
        payload = cbor2.loads(dump_state(registry))
        payload["groups"][0]["depth"] = 0
        with pytest.raises(SchemaError):
            load_state(cbor2.dumps(payload))

    def test_non_consecutive_epochs(self, registry):
        payload = cbor2.loads(dump_state(registry))
        payload["epochs"][0]["id"] = 5
        with pytest.raises(SchemaError):
            load_state(cbor2.dumps(payload))

    @pytest.mark.parametrize("entry", [1, None, "0xnothex"])
    def test_malformed_merkelized_entry(self, registry, entry):
        payload = cbor2.loads(dump_state(registry))
        payload["merkelized"] = [entry]
        with pytest.raises(SchemaError, match="merkelized"):
            load_state(cbor2.dumps(payload))

    def test_malformed_witness_address(self, registry):
        payload = cbor2.loads(dump_state(registry))
        payload["epochs"][0]["witnesses"][0]["addr"] = "0x"
        with pytest.raises(SchemaError, match="address"):
            load_state(cbor2.dumps(payload))
