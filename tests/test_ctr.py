"""Tests for the CTR-mode circuits (ctr.py)."""

import os

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from zkgcm import CircuitConfig, CtrDecrypt, CtrEncrypt
from zkgcm.reference import ctr_keystream_xor


def ref_ctr(key, counter, text):
    """CTR with the ``cryptography`` library (128-bit counter arithmetic)."""
    return Cipher(algorithms.AES(key), modes.CTR(counter)).encryptor().update(text)


class TestCtrEncrypt:
    @pytest.fixture(scope="class")
    def circuit(self):
        return CtrEncrypt(key_bits=128, text_len=37)

    def test_matches_library(self, circuit):
        key, text = os.urandom(16), os.urandom(37)
        counter = os.urandom(12) + b"\x00\x00\x00\x01"
        assert circuit.encrypt(key, counter, text) == ref_ctr(key, counter, text)

    def test_counter_wraps_within_32_bits(self, circuit):
        # The library carries into byte 11; inc32 must not.
        key, text = os.urandom(16), os.urandom(37)
        counter = b"\x11" * 12 + b"\xff\xff\xff\xff"
        out = circuit.encrypt(key, counter, text)
        assert out == ctr_keystream_xor(key, counter, text)
        assert out[16:32] == ref_ctr(key, b"\x11" * 12 + bytes(4), text[16:32])

    def test_decrypt_inverts(self, circuit):
        key, counter, text = os.urandom(16), os.urandom(16), os.urandom(37)
        decryptor = CtrDecrypt(key_bits=128, text_len=37)
        assert decryptor.decrypt(key, counter, circuit.encrypt(key, counter, text)) == text

    def test_partial_block_uses_prefix(self, circuit):
        # 37 bytes: two full blocks and five bytes of a third.
        assert len(circuit.circuit.outputs["out"]) == 37

    def test_wrong_text_length(self, circuit):
        with pytest.raises(ValueError, match="Text must be exactly 37 bytes"):
            circuit.encrypt(os.urandom(16), os.urandom(16), b"short")


class TestCtrShapes:
    def test_empty_text(self):
        circuit = CtrEncrypt(key_bits=128, text_len=0)
        assert circuit.encrypt(os.urandom(16), os.urandom(16), b"") == b""

    def test_aes256_ripple_counter(self):
        circuit = CtrEncrypt(key_bits=256, text_len=20, config=CircuitConfig(counter="ripple"))
        key, text = os.urandom(32), os.urandom(20)
        counter = bytes(12) + b"\x00\x00\x01\xff"
        assert circuit.encrypt(key, counter, text) == ref_ctr(key, counter, text)

    def test_negative_text_length(self):
        with pytest.raises(ValueError, match="text_len"):
            CtrEncrypt(text_len=-1)
