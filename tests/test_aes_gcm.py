"""Tests for the AES-GCM circuits (gcm.py).

Validates correctness against NIST SP 800-38D test vectors and the
``cryptography`` reference library, and checks that the ``valid`` bit
catches every tampered ciphertext, AAD or tag.
"""

import os

import numpy as np
import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from zkgcm import CircuitConfig, GcmDecrypt, GcmEncrypt, UnsatisfiedConstraintError
from zkgcm import gcm_decrypt, gcm_encrypt
from zkgcm.reference import gcm_decrypt_reference, gcm_encrypt_reference


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def ref_encrypt(key, iv, pt, aad=b""):
    """Encrypt with the ``cryptography`` library; returns (ct, tag)."""
    blob = AESGCM(key).encrypt(iv, pt, aad if aad else None)
    return blob[:-16], blob[-16:]


def flip_bit(data: bytes, position: int) -> bytes:
    out = bytearray(data)
    out[position // 8] ^= 1 << (position % 8)
    return bytes(out)


@pytest.fixture(scope="module")
def encryptor():
    return GcmEncrypt(key_bits=256, iv_len=12, text_len=32, aad_len=16)


@pytest.fixture(scope="module")
def decryptor():
    return GcmDecrypt(key_bits=256, iv_len=12, text_len=32, aad_len=16)


# ---------------------------------------------------------------------------
# NIST SP 800-38D test vectors
# ---------------------------------------------------------------------------

class TestNistVectors:
    def test_case_1_empty(self):
        circuit = GcmEncrypt(key_bits=128, iv_len=12, text_len=0, aad_len=0)
        ct, tag = circuit.encrypt(b"", bytes(16), bytes(12))
        assert ct == b""
        assert tag.hex() == "58e2fccefa7e3061367f1d57a4e7455a"

    def test_case_2_one_block(self):
        circuit = GcmEncrypt(key_bits=128, iv_len=12, text_len=16, aad_len=0)
        ct, tag = circuit.encrypt(bytes(16), bytes(16), bytes(12))
        assert ct.hex() == "0388dace60b6a392f328c2b971b2fe78"
        assert tag.hex() == "ab6e47d42cec13bdf53a67b21257bddf"

    def test_case_1_decrypts(self):
        circuit = GcmDecrypt(key_bits=128, iv_len=12, text_len=0, aad_len=0)
        tag = bytes.fromhex("58e2fccefa7e3061367f1d57a4e7455a")
        assert circuit.decrypt(b"", bytes(16), bytes(12), b"", tag) == (b"", 1)


# ---------------------------------------------------------------------------
# AES-256, 12-byte IV, 32-byte plaintext, 16-byte AAD
# ---------------------------------------------------------------------------

class TestAesGcm256:
    def test_matches_library(self, encryptor):
        key, iv, aad, pt = os.urandom(32), os.urandom(12), os.urandom(16), os.urandom(32)
        assert encryptor.encrypt(pt, key, iv, aad) == ref_encrypt(key, iv, pt, aad)

    def test_round_trip(self, encryptor, decryptor):
        key, iv, aad, pt = os.urandom(32), os.urandom(12), os.urandom(16), os.urandom(32)
        ct, tag = encryptor.encrypt(pt, key, iv, aad)
        assert decryptor.decrypt(ct, key, iv, aad, tag) == (pt, 1)

    def test_library_ciphertext_decrypts(self, decryptor):
        key, iv, aad, pt = os.urandom(32), os.urandom(12), os.urandom(16), os.urandom(32)
        ct, tag = ref_encrypt(key, iv, pt, aad)
        assert decryptor.decrypt(ct, key, iv, aad, tag) == (pt, 1)

    def test_wrong_key_is_invalid(self, encryptor, decryptor):
        key, iv, aad, pt = os.urandom(32), os.urandom(12), os.urandom(16), os.urandom(32)
        ct, tag = encryptor.encrypt(pt, key, iv, aad)
        plaintext, valid = decryptor.decrypt(ct, flip_bit(key, 0), iv, aad, tag)
        assert valid == 0
        assert plaintext != pt

    def test_witnesses_check(self, encryptor):
        witness = encryptor.circuit.solve({
            "plaintext": os.urandom(32),
            "key": os.urandom(32),
            "iv": os.urandom(12),
            "aad": os.urandom(16),
        })
        assert encryptor.circuit.check(witness.values)

    def test_gate_breakdown(self, encryptor):
        by_scope = encryptor.stats()["by_scope"]
        for label in ("sbox", "mix_columns", "add_round_key", "key_schedule", "gf128_mul", "tag"):
            assert by_scope[label] > 0
        # The 12-byte IV path has a constant counter: no increment gates.
        assert "counter" not in by_scope


# ---------------------------------------------------------------------------
# Tag check
# ---------------------------------------------------------------------------

class TestTagSensitivity:
    """Any single-bit change to ciphertext, AAD or tag clears ``valid``."""

    KEY = bytes(range(16))
    IV = bytes.fromhex("cafebabefacedbaddecaf888")
    AAD = b"header!!"
    PLAINTEXT = b"sixteen byte msg"

    @pytest.fixture(scope="class")
    def sealed(self):
        return ref_encrypt(self.KEY, self.IV, self.PLAINTEXT, self.AAD)

    @pytest.fixture(scope="class")
    def circuit(self):
        return GcmDecrypt(key_bits=128, iv_len=12, text_len=16, aad_len=8)

    def test_untampered_is_valid(self, circuit, sealed):
        ct, tag = sealed
        assert circuit.decrypt(ct, self.KEY, self.IV, self.AAD, tag) == (self.PLAINTEXT, 1)

    @pytest.mark.parametrize("position", [0, 61, 127])
    def test_ciphertext_flip(self, circuit, sealed, position):
        ct, tag = sealed
        _, valid = circuit.decrypt(flip_bit(ct, position), self.KEY, self.IV, self.AAD, tag)
        assert valid == 0

    @pytest.mark.parametrize("position", [0, 63])
    def test_aad_flip(self, circuit, sealed, position):
        ct, tag = sealed
        _, valid = circuit.decrypt(ct, self.KEY, self.IV, flip_bit(self.AAD, position), tag)
        assert valid == 0

    @pytest.mark.parametrize("position", [0, 8, 100, 127])
    def test_tag_flip(self, circuit, sealed, position):
        ct, tag = sealed
        plaintext, valid = circuit.decrypt(ct, self.KEY, self.IV, self.AAD, flip_bit(tag, position))
        assert valid == 0
        assert plaintext == self.PLAINTEXT

    @pytest.mark.slow
    def test_random_flips(self, circuit, sealed):
        ct, tag = sealed
        rng = np.random.default_rng(38)
        pieces = {"ct": ct, "aad": self.AAD, "tag": tag}
        for name, data in pieces.items():
            for position in rng.choice(len(data) * 8, size=40, replace=False):
                tampered = dict(pieces, **{name: flip_bit(data, int(position))})
                _, valid = circuit.decrypt(
                    tampered["ct"], self.KEY, self.IV, tampered["aad"], tampered["tag"]
                )
                assert valid == 0, (name, int(position))

    def test_out_of_range_tag_byte(self, circuit, sealed):
        ct, tag = sealed
        with pytest.raises(UnsatisfiedConstraintError, match="range_check"):
            circuit.circuit.solve({
                "ciphertext": ct,
                "key": self.KEY,
                "iv": self.IV,
                "aad": self.AAD,
                "tag": [256] + list(tag[1:]),
            })

    def test_valid_bit_cannot_be_forged(self, circuit, sealed):
        ct, tag = sealed
        witness = circuit.circuit.solve({
            "ciphertext": ct, "key": self.KEY, "iv": self.IV, "aad": self.AAD,
            "tag": flip_bit(tag, 5),
        })
        assert witness.output("valid") == [0]
        # The last allocated wire is the is-nonzero flag of the tag difference.
        values = list(witness.values)
        values[-1] = 0
        assert not circuit.circuit.check(values)


# ---------------------------------------------------------------------------
# Non-standard IV lengths and gadget strategies
# ---------------------------------------------------------------------------

class TestOtherShapes:
    def test_8_byte_iv_round_trip(self, encryptor):
        key, iv, aad, pt = os.urandom(32), os.urandom(8), os.urandom(16), os.urandom(32)
        short_iv = GcmEncrypt(256, iv_len=8, text_len=32, aad_len=16)
        ct, tag = short_iv.encrypt(pt, key, iv, aad)
        assert (ct, tag) == ref_encrypt(key, iv, pt, aad)
        assert GcmDecrypt(256, iv_len=8, text_len=32, aad_len=16).decrypt(ct, key, iv, aad, tag) == (pt, 1)
        # J0 comes from GHASH over the IV: one product for the IV block, one for its length.
        assert short_iv.stats()["by_scope"]["gf128_mul"] > encryptor.stats()["by_scope"]["gf128_mul"]

    def test_baseline_strategies(self):
        config = CircuitConfig(sbox="algebraic", gf128="bitwise", counter="ripple")
        key, iv, aad, pt = os.urandom(16), os.urandom(8), os.urandom(5), os.urandom(20)
        circuit = GcmEncrypt(128, iv_len=8, text_len=20, aad_len=5, config=config)
        assert circuit.encrypt(pt, key, iv, aad) == ref_encrypt(key, iv, pt, aad)
        assert circuit.stats()["by_scope"]["counter"] > 0

    def test_aes192(self):
        key, iv, pt = os.urandom(24), os.urandom(12), os.urandom(7)
        circuit = GcmEncrypt(192, iv_len=12, text_len=7, aad_len=0)
        assert circuit.encrypt(pt, key, iv) == ref_encrypt(key, iv, pt)

    def test_aad_only(self):
        key, iv, aad = os.urandom(16), os.urandom(12), os.urandom(20)
        ct, tag = GcmEncrypt(128, iv_len=12, text_len=0, aad_len=20).encrypt(b"", key, iv, aad)
        assert (ct, tag) == ref_encrypt(key, iv, b"", aad)


# ---------------------------------------------------------------------------
# One-shot helpers and the native model
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_round_trip(self):
        key, iv, pt = os.urandom(16), os.urandom(12), b"Hello, circuit!"
        ct, tag = gcm_encrypt(key, iv, pt, b"hdr")
        assert (ct, tag) == gcm_encrypt_reference(key, iv, pt, b"hdr")
        assert gcm_decrypt(key, iv, ct, tag, b"hdr") == (pt, 1)
        assert gcm_decrypt(key, iv, ct, flip_bit(tag, 3), b"hdr")[1] == 0

    def test_reference_matches_library(self):
        for iv_len in (8, 12, 16, 60):
            key, iv, aad, pt = os.urandom(32), os.urandom(iv_len), os.urandom(9), os.urandom(40)
            ct, tag = gcm_encrypt_reference(key, iv, pt, aad)
            assert (ct, tag) == ref_encrypt(key, iv, pt, aad)
            assert gcm_decrypt_reference(key, iv, ct, tag, aad) == (pt, 1)
            assert gcm_decrypt_reference(key, iv, ct, flip_bit(tag, 0), aad) == (pt, 0)


# ---------------------------------------------------------------------------
# Inputs and validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_visibility(self, decryptor):
        public = {name: flag for name, (_, _, flag) in decryptor.circuit.inputs.items()}
        assert public == {
            "ciphertext": True, "key": False, "iv": True, "aad": True, "tag": True,
        }

    @pytest.mark.parametrize("iv_len", [0, -4])
    def test_bad_iv_length(self, iv_len):
        with pytest.raises(ValueError, match="IV length"):
            GcmEncrypt(128, iv_len=iv_len)

    def test_bad_key_size(self):
        with pytest.raises(ValueError, match="128, 192, or 256"):
            gcm_encrypt(bytes(10), bytes(12), b"")

    def test_wrong_key_length(self, encryptor):
        with pytest.raises(ValueError, match="Key must be exactly 32 bytes"):
            encryptor.encrypt(bytes(32), bytes(16), bytes(12), bytes(16))

    def test_wrong_iv_length(self, encryptor):
        with pytest.raises(ValueError, match="IV must be exactly 12 bytes"):
            encryptor.encrypt(bytes(32), bytes(32), bytes(8), bytes(16))

    def test_wrong_plaintext_length(self, encryptor):
        with pytest.raises(ValueError, match="Plaintext must be exactly 32 bytes"):
            encryptor.encrypt(bytes(31), bytes(32), bytes(12), bytes(16))

    def test_wrong_aad_length(self, decryptor):
        with pytest.raises(ValueError, match="AAD must be exactly 16 bytes"):
            decryptor.decrypt(bytes(32), bytes(32), bytes(12), b"", bytes(16))

    def test_wrong_tag_length(self):
        with pytest.raises(ValueError, match="Tag must be exactly 16 bytes"):
            gcm_decrypt(bytes(16), bytes(12), b"", bytes(15))
