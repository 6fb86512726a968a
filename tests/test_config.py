"""Tests for circuit parameters and strategy configuration (config.py)."""

import logging

import pytest

from zkgcm.config import AesParams, CircuitConfig, require_length, require_non_negative
from zkgcm.log import setup_logger


class TestAesParams:
    @pytest.mark.parametrize("key_bits, nk, nr", [(128, 4, 10), (192, 6, 12), (256, 8, 14)])
    def test_shapes(self, key_bits, nk, nr):
        params = AesParams.from_key_bits(key_bits)
        assert (params.nk, params.nr) == (nk, nr)
        assert params.key_len == key_bits // 8

    @pytest.mark.parametrize("key_bits", [0, 64, 512, 129])
    def test_invalid(self, key_bits):
        with pytest.raises(ValueError, match="128, 192, or 256"):
            AesParams.from_key_bits(key_bits)


class TestCircuitConfig:
    def test_defaults(self):
        config = CircuitConfig()
        assert (config.sbox, config.gf128, config.counter) == ("lookup", "packed", "packed")

    @pytest.mark.parametrize("field, value", [
        ("sbox", "table"),
        ("gf128", "karatsuba"),
        ("counter", "carry-save"),
    ])
    def test_invalid_choice(self, field, value):
        with pytest.raises(ValueError, match=field):
            CircuitConfig(**{field: value})

    def test_hashable(self):
        assert hash(CircuitConfig()) == hash(CircuitConfig())

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ZKGCM_SBOX", "Algebraic")
        monkeypatch.setenv("ZKGCM_GF128", "bitwise")
        monkeypatch.delenv("ZKGCM_COUNTER", raising=False)
        assert CircuitConfig.from_env() == CircuitConfig(sbox="algebraic", gf128="bitwise")

    def test_from_env_invalid(self, monkeypatch):
        monkeypatch.setenv("ZKGCM_COUNTER", "fast")
        with pytest.raises(ValueError, match="counter"):
            CircuitConfig.from_env()


class TestRequire:
    def test_length(self):
        require_length("IV", b"x" * 12, 12)
        with pytest.raises(ValueError, match="IV must be exactly 12 bytes, got 3"):
            require_length("IV", b"abc", 12)

    @pytest.mark.parametrize("value", [-1, 1.5, "3"])
    def test_non_negative(self, value):
        with pytest.raises(ValueError, match="text_len"):
            require_non_negative("text_len", value)


class TestLogger:
    def test_setup_is_idempotent(self):
        logger = setup_logger("zkgcm.test", level=logging.DEBUG)
        handlers = list(logger.handlers)
        assert setup_logger("zkgcm.test") is logger
        assert logger.handlers == handlers
        assert logger.level == logging.DEBUG
