"""AES block encryption as a constraint graph (FIPS-197 Section 5.1).

Only the forward cipher exists: GCM never decrypts a block, it only
encrypts counter blocks and the zero block.
"""

import logging
from typing import Optional

from .circuit import Circuit
from .config import AesParams, CircuitConfig, require_length
from .key_schedule import expand_key, round_key
from .primitives import input_bytes, output_bytes, xor_bits
from .sbox import get_sbox, mix_columns, shift_rows, sub_bytes

logger = logging.getLogger(__name__)


def add_round_key(cs: Circuit, state: list, key: list) -> list:
    with cs.scope("add_round_key"):
        return xor_bits(cs, state, key)


def encrypt_block(cs: Circuit, block: list, words: list, nr: int, sub_byte) -> list:
    """Encrypt a 16-byte block with an expanded key.

    Round 0 is AddRoundKey only; rounds 1..Nr-1 apply SubBytes, ShiftRows,
    MixColumns and AddRoundKey; round Nr omits MixColumns.
    """
    if len(block) != 16:
        raise ValueError(f"Block must be 16 bytes, got {len(block)}")
    state = add_round_key(cs, block, round_key(words, 0))
    for rnd in range(1, nr + 1):
        state = shift_rows(sub_bytes(cs, state, sub_byte))
        if rnd < nr:
            state = mix_columns(cs, state)
        state = add_round_key(cs, state, round_key(words, rnd))
    return state


class EncryptBlock:
    """Standalone AES circuit: inputs ``key`` and ``block``, output ``out``.

    Args:
        key_bits: 128, 192 or 256.
        config:   Gadget strategies (default :class:`CircuitConfig`).
    """

    def __init__(self, key_bits: int = 256, config: Optional[CircuitConfig] = None) -> None:
        self.params = AesParams.from_key_bits(key_bits)
        self.config = config or CircuitConfig()
        self.circuit = Circuit(f"EncryptBlock(AES-{key_bits})")
        cs = self.circuit
        sub_byte = get_sbox(self.config.sbox)

        key = input_bytes(cs, "key", self.params.key_len)
        block = input_bytes(cs, "block", 16)
        words = expand_key(cs, key, self.params, sub_byte)
        output_bytes(cs, "out", encrypt_block(cs, block, words, self.params.nr, sub_byte))
        logger.info("Built %r with %s", cs, self.config)

    def encrypt(self, key: bytes, block: bytes) -> bytes:
        """Solve the circuit for concrete *key* and *block*; return the ciphertext."""
        require_length("Key", key, self.params.key_len)
        require_length("Block", block, 16)
        witness = self.circuit.solve({"key": key, "block": block})
        return witness.output_bytes("out")
