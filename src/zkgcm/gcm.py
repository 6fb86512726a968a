"""AES-GCM authenticated encryption as a constraint graph.

Implements NIST SP 800-38D for lengths fixed when the circuit is built:

  - H = AES_K(0^128), the GHASH subkey.
  - J0 = IV || 0^31 || 1 for 12-byte IVs; otherwise
    J0 = GHASH_H(pad(IV) || 0^64 || [len(IV)]_64), which costs one extra
    GF(2^128) product per IV block plus one for the length block.
  - CTR encryption starting at inc32(J0).
  - T = GHASH_H(pad(A) || pad(C) || [len(A)]_64 || [len(C)]_64) XOR AES_K(J0).

Decryption never aborts: the circuit outputs the plaintext together with
a ``valid`` bit that is 1 exactly when the supplied tag matches.  A caller
that requires authenticity asserts ``valid == 1`` itself.
"""

import logging
from functools import lru_cache
from typing import Optional

from .cipher import encrypt_block
from .circuit import Circuit
from .config import AesParams, CircuitConfig, require_length, require_non_negative
from .counter import increment_counter
from .ctr import ctr_crypt
from .ghash import (
    block_to_element,
    element_to_block,
    ghash,
    ghash_input_blocks,
    length_block,
)
from .key_schedule import expand_key
from .primitives import (
    chunks,
    const_bytes,
    from_bits,
    input_bytes,
    is_zero,
    output_bytes,
    xor_bits,
    zero_pad,
)
from .sbox import get_sbox

logger = logging.getLogger(__name__)

_STANDARD_IV_LEN = 12
TAG_LEN = 16


class _GcmCircuit:
    """Shared construction for :class:`GcmEncrypt` and :class:`GcmDecrypt`.

    Args:
        key_bits: 128, 192 or 256.
        iv_len:   IV length in bytes (12 takes the direct J0 path).
        text_len: Plaintext/ciphertext length in bytes.
        aad_len:  Additional authenticated data length in bytes.
        config:   Gadget strategies.

    Raises:
        ValueError: If any parameter is out of range.
    """

    def __init__(
        self,
        key_bits: int = 256,
        iv_len: int = _STANDARD_IV_LEN,
        text_len: int = 0,
        aad_len: int = 0,
        config: Optional[CircuitConfig] = None,
    ) -> None:
        self.params = AesParams.from_key_bits(key_bits)
        if not isinstance(iv_len, int) or iv_len <= 0:
            raise ValueError(f"IV length must be a positive integer, got {iv_len!r}")
        require_non_negative("text_len", text_len)
        require_non_negative("aad_len", aad_len)
        self.iv_len = iv_len
        self.text_len = text_len
        self.aad_len = aad_len
        self.config = config or CircuitConfig()
        self._sub_byte = get_sbox(self.config.sbox)
        self.circuit = Circuit(
            f"{type(self).__name__}(AES-{key_bits}, iv_len={iv_len}, "
            f"text_len={text_len}, aad_len={aad_len})"
        )
        self._build(self.circuit)
        logger.info("Built %r with %s", self.circuit, self.config)
        logger.debug("Gate breakdown: %s", self.circuit.stats()["by_scope"])

    def _build(self, cs: Circuit) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def _encrypt_block(self, cs: Circuit, block: list, words: list) -> list:
        return encrypt_block(cs, block, words, self.params.nr, self._sub_byte)

    def _setup(self, cs: Circuit, key: list, iv: list) -> tuple:
        """Expand the key and derive H and J0."""
        words = expand_key(cs, key, self.params, self._sub_byte)
        h = block_to_element(self._encrypt_block(cs, const_bytes(bytes(16)), words))
        if self.iv_len == _STANDARD_IV_LEN:
            j0 = iv + const_bytes(b"\x00\x00\x00\x01")
        else:
            iv_blocks = chunks(zero_pad(iv)) + [length_block(0, self.iv_len)]
            j0 = element_to_block(ghash(cs, h, iv_blocks, self.config.gf128))
        return words, h, j0

    def _ctr(self, cs: Circuit, text: list, j0: list, words: list) -> list:
        if not text:
            return []
        first = increment_counter(cs, j0, self.config.counter)
        return ctr_crypt(
            cs, text, first, words, self.params.nr, self._sub_byte, self.config.counter
        )

    def _tag(self, cs: Circuit, h: list, j0: list, words: list, aad: list, ciphertext: list) -> list:
        s = ghash(cs, h, ghash_input_blocks(aad, ciphertext), self.config.gf128)
        mask = self._encrypt_block(cs, j0, words)
        with cs.scope("tag"):
            return xor_bits(cs, element_to_block(s), mask)

    def _declare_common(self, cs: Circuit) -> tuple:
        key = input_bytes(cs, "key", self.params.key_len)
        iv = input_bytes(cs, "iv", self.iv_len, public=True)
        aad = input_bytes(cs, "aad", self.aad_len, public=True)
        return key, iv, aad

    def _check_common(self, key: bytes, iv: bytes, aad: bytes) -> None:
        require_length("Key", key, self.params.key_len)
        require_length("IV", iv, self.iv_len)
        require_length("AAD", aad, self.aad_len)

    def stats(self) -> dict:
        return self.circuit.stats()


class GcmEncrypt(_GcmCircuit):
    """AES-GCM encryption circuit.

    Inputs ``plaintext``, ``key``, ``iv``, ``aad``; outputs ``ciphertext``
    and ``tag``.
    """

    def _build(self, cs: Circuit) -> None:
        plaintext = input_bytes(cs, "plaintext", self.text_len)
        key, iv, aad = self._declare_common(cs)
        words, h, j0 = self._setup(cs, key, iv)
        ciphertext = self._ctr(cs, plaintext, j0, words)
        tag = self._tag(cs, h, j0, words, aad, ciphertext)
        output_bytes(cs, "ciphertext", ciphertext)
        output_bytes(cs, "tag", tag)

    def encrypt(self, plaintext: bytes, key: bytes, iv: bytes, aad: bytes = b"") -> tuple:
        """Solve for concrete values and return ``(ciphertext, tag)``."""
        require_length("Plaintext", plaintext, self.text_len)
        self._check_common(key, iv, aad)
        witness = self.circuit.solve(
            {"plaintext": plaintext, "key": key, "iv": iv, "aad": aad}
        )
        return witness.output_bytes("ciphertext"), witness.output_bytes("tag")


class GcmDecrypt(_GcmCircuit):
    """AES-GCM decryption circuit.

    Inputs ``ciphertext``, ``key``, ``iv``, ``aad``, ``tag``; outputs
    ``plaintext`` and the single-bit ``valid``.
    """

    def _build(self, cs: Circuit) -> None:
        ciphertext = input_bytes(cs, "ciphertext", self.text_len, public=True)
        key, iv, aad = self._declare_common(cs)
        tag = input_bytes(cs, "tag", TAG_LEN, public=True)
        words, h, j0 = self._setup(cs, key, iv)
        plaintext = self._ctr(cs, ciphertext, j0, words)
        expected = self._tag(cs, h, j0, words, aad, ciphertext)
        with cs.scope("tag_check"):
            # Both tags as 128-bit integers; equal iff their difference is zero.
            packed_expected = from_bits(cs, [bit for byte in expected for bit in byte])
            packed_tag = from_bits(cs, [bit for byte in tag for bit in byte])
            valid = is_zero(cs, cs.sub(packed_expected, packed_tag))
        output_bytes(cs, "plaintext", plaintext)
        cs.output("valid", [valid])

    def decrypt(self, ciphertext: bytes, key: bytes, iv: bytes, aad: bytes, tag: bytes) -> tuple:
        """Solve for concrete values and return ``(plaintext, valid)``.

        ``valid`` is 1 when *tag* authenticates *ciphertext* and *aad*,
        0 otherwise; the plaintext is produced either way.
        """
        require_length("Ciphertext", ciphertext, self.text_len)
        require_length("Tag", tag, TAG_LEN)
        self._check_common(key, iv, aad)
        witness = self.circuit.solve(
            {"ciphertext": ciphertext, "key": key, "iv": iv, "aad": aad, "tag": tag}
        )
        return witness.output_bytes("plaintext"), witness.output("valid")[0]


# ---------------------------------------------------------------------------
# One-shot helpers
# ---------------------------------------------------------------------------

@lru_cache(maxsize=8)
def _encryptor(key_bits, iv_len, text_len, aad_len, config) -> GcmEncrypt:
    return GcmEncrypt(key_bits, iv_len, text_len, aad_len, config)


@lru_cache(maxsize=8)
def _decryptor(key_bits, iv_len, text_len, aad_len, config) -> GcmDecrypt:
    return GcmDecrypt(key_bits, iv_len, text_len, aad_len, config)


def gcm_encrypt(
    key: bytes,
    iv: bytes,
    plaintext: bytes,
    aad: bytes = b"",
    config: Optional[CircuitConfig] = None,
) -> tuple:
    """Encrypt through a circuit sized for these inputs; return ``(ciphertext, tag)``.

    Circuits are cached per parameter set, so repeated calls with the same
    lengths reuse one constraint graph.

    Raises:
        ValueError: If the key size or IV length is invalid.
    """
    circuit = _encryptor(len(key) * 8, len(iv), len(plaintext), len(aad), config or CircuitConfig())
    return circuit.encrypt(plaintext, key, iv, aad)


def gcm_decrypt(
    key: bytes,
    iv: bytes,
    ciphertext: bytes,
    tag: bytes,
    aad: bytes = b"",
    config: Optional[CircuitConfig] = None,
) -> tuple:
    """Decrypt through a circuit sized for these inputs; return ``(plaintext, valid)``.

    Raises:
        ValueError: If the key size, IV or tag length is invalid.
    """
    require_length("Tag", tag, TAG_LEN)
    circuit = _decryptor(len(key) * 8, len(iv), len(ciphertext), len(aad), config or CircuitConfig())
    return circuit.decrypt(ciphertext, key, iv, aad, tag)
