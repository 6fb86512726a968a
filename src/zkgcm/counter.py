"""32-bit counter increment for CTR mode (NIST SP 800-38D ``inc32``).

Bytes 12..15 of the counter block hold a big-endian integer that is
incremented modulo 2^32; bytes 0..11 pass through untouched.  Both
strategies compute the same function:

``ripple``
    Half-adder chain, ``out_i = b_i ^ carry_i`` and
    ``carry_{i+1} = b_i & carry_i``: two gates per bit.

``packed``
    Recompose the 32 bits into one field element, add one, and
    decompose into 33 bits, discarding the carry: 34 gates.
"""

from .circuit import Circuit
from .primitives import and_bit, from_bits, to_bits, xor


def _low_bits(block: list) -> list:
    # Bit p of the big-endian 32-bit integer lives in byte 15 - p // 8.
    return [block[15 - p // 8][p % 8] for p in range(32)]


def _with_low_bits(block: list, bits: list) -> list:
    low = [[bits[8 * (15 - b) + j] for j in range(8)] for b in range(12, 16)]
    return block[:12] + low


def _increment_ripple(cs: Circuit, bits: list) -> list:
    out = []
    carry = 1
    for bit in bits:
        out.append(xor(cs, bit, carry))
        carry = and_bit(cs, bit, carry)
    return out


def _increment_packed(cs: Circuit, bits: list) -> list:
    return to_bits(cs, cs.add(from_bits(cs, bits), 1), 33)[:32]


COUNTER_STRATEGIES = {
    "ripple": _increment_ripple,
    "packed": _increment_packed,
}


def increment_counter(cs: Circuit, block: list, strategy: str = "packed") -> list:
    """Return a new counter block with its low 32 bits incremented mod 2^32."""
    if len(block) != 16:
        raise ValueError(f"Counter block must be 16 bytes, got {len(block)}")
    try:
        increment = COUNTER_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown counter strategy {strategy!r}; expected one of {sorted(COUNTER_STRATEGIES)}"
        ) from None
    with cs.scope("counter"):
        return _with_low_bits(block, increment(cs, _low_bits(block)))


def inc32(counter: bytes) -> bytes:
    """Increment the least-significant 32 bits of a 128-bit counter block."""
    n = int.from_bytes(counter, "big")
    lower32 = ((n & 0xFFFFFFFF) + 1) & 0xFFFFFFFF
    return ((n & ~0xFFFFFFFF) | lower32).to_bytes(16, "big")
