"""
Unit tests for configuration module.

Tests configuration parameters and their import-time validation.
"""

import pytest

from attested_claims.protocol import config


class TestConfigParameters:
    """Test configuration parameters are set correctly."""

    def test_hash_function(self):
        assert config.HASH_FUNCTION == "keccak256"
        assert config.HASH_OUTPUT_BYTES == 32

    def test_field_separator(self):
        assert config.FIELD_SEPARATOR == "\n"

    def test_signature_scheme(self):
        assert config.SIGNATURE_SCHEME == "eip191"
        assert config.SIGNATURE_BYTES == 65

    def test_epoch_defaults(self):
        assert config.DEFAULT_EPOCH_DURATION_S == 86400
        assert config.CURRENT_EPOCH_ALIAS == 0
        assert config.SELECTION_COUNTER_BYTES == 4

    def test_merkle_depth_bounds(self):
        assert config.MIN_MERKLE_DEPTH == 1
        assert config.MAX_MERKLE_DEPTH == 32
        assert (
            config.MIN_MERKLE_DEPTH
            <= config.DEFAULT_MERKLE_DEPTH
            <= config.MAX_MERKLE_DEPTH
        )

    def test_domain_separators_distinct(self):
        values = list(config.MERKLE_DOMAIN_SEPARATORS.values())
        assert len(set(values)) == len(values)
        assert all(isinstance(v, bytes) for v in values)


class TestConfigValidation:
    """Test validate_config()."""

    def test_valid_config(self):
        assert config.validate_config() is True

    def test_invalid_hash_function(self, monkeypatch):
        monkeypatch.setattr(config, "HASH_FUNCTION", "sha256")
        with pytest.raises(AssertionError, match="Invalid hash function"):
            config.validate_config()

    def test_invalid_default_depth(self, monkeypatch):
        monkeypatch.setattr(config, "DEFAULT_MERKLE_DEPTH", 64)
        with pytest.raises(AssertionError, match="Default depth"):
            config.validate_config()

    def test_duplicate_domain_separators(self, monkeypatch):
        monkeypatch.setattr(
            config,
            "MERKLE_DOMAIN_SEPARATORS",
            {"merkle_leaf": b"X", "merkle_node": b"X", "merkle_zero": b"Z"},
        )
        with pytest.raises(AssertionError, match="distinct"):
            config.validate_config()
