"""CTR-mode keystream generation (NIST SP 800-38A Section 6.5).

``C_i = P_i XOR AES_K(CB_i)`` with ``CB_1`` the supplied initial counter
block and ``CB_{i+1} = inc32(CB_i)``.  The final partial block uses only
the leading keystream bytes it needs.  Encryption and decryption are the
same circuit.
"""

import logging
from typing import Optional

from .cipher import encrypt_block
from .circuit import Circuit
from .config import AesParams, CircuitConfig, require_length, require_non_negative
from .counter import increment_counter
from .key_schedule import expand_key
from .primitives import chunks, input_bytes, output_bytes, xor_bits
from .sbox import get_sbox

logger = logging.getLogger(__name__)


def ctr_crypt(
    cs: Circuit,
    text: list,
    initial_counter: list,
    words: list,
    nr: int,
    sub_byte,
    counter_strategy: str = "packed",
) -> list:
    """XOR *text* (a list of bytes) with the keystream from *initial_counter*."""
    out = []
    counter = initial_counter
    for i, chunk in enumerate(chunks(text)):
        if i:
            counter = increment_counter(cs, counter, counter_strategy)
        keystream = encrypt_block(cs, counter, words, nr, sub_byte)
        with cs.scope("ctr_xor"):
            out.extend(xor_bits(cs, chunk, keystream[: len(chunk)]))
    return out


class CtrEncrypt:
    """CTR circuit: inputs ``key``, ``counter`` and ``text``, output ``out``.

    Args:
        key_bits: 128, 192 or 256.
        text_len: Length of the text in bytes, fixed at construction.
        config:   Gadget strategies.
    """

    def __init__(
        self, key_bits: int = 256, text_len: int = 16, config: Optional[CircuitConfig] = None
    ) -> None:
        require_non_negative("text_len", text_len)
        self.params = AesParams.from_key_bits(key_bits)
        self.text_len = text_len
        self.config = config or CircuitConfig()
        self.circuit = Circuit(f"{type(self).__name__}(AES-{key_bits}, text_len={text_len})")
        cs = self.circuit
        sub_byte = get_sbox(self.config.sbox)

        key = input_bytes(cs, "key", self.params.key_len)
        counter = input_bytes(cs, "counter", 16)
        text = input_bytes(cs, "text", text_len)
        words = expand_key(cs, key, self.params, sub_byte)
        out = ctr_crypt(cs, text, counter, words, self.params.nr, sub_byte, self.config.counter)
        output_bytes(cs, "out", out)
        logger.info("Built %r with %s", cs, self.config)

    def apply(self, key: bytes, counter: bytes, text: bytes) -> bytes:
        require_length("Key", key, self.params.key_len)
        require_length("Counter block", counter, 16)
        require_length("Text", text, self.text_len)
        witness = self.circuit.solve({"key": key, "counter": counter, "text": text})
        return witness.output_bytes("out")

    encrypt = apply


class CtrDecrypt(CtrEncrypt):
    """Same graph as :class:`CtrEncrypt`; CTR mode is its own inverse."""

    decrypt = CtrEncrypt.apply
