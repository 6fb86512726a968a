"""Field and bit primitives shared by every gadget.

Bytes are lists of 8 bit signals, least-significant bit first.  A bit is
any signal constrained to {0, 1}: an input bit produced by
:func:`to_bits`, the output of :func:`xor`, or a constant 0/1.
"""

from .circuit import P, Circuit, LinearCombination, Signal, UnsatisfiedConstraintError, is_constant


def to_bits(cs: Circuit, x: Signal, n: int) -> list:
    """Decompose *x* into *n* bits and constrain the recomposition.

    Any value that is not representable in *n* bits (for example a "byte"
    of 256, or ``x + 2**n`` supplied in place of ``x``) has no satisfying
    witness.  *n* must stay below the field's bit length so that the
    binary representation is unique.
    """
    if not 0 < n < P.bit_length():
        raise ValueError(f"Bit width must be in 1..{P.bit_length() - 1}, got {n}")
    if is_constant(x):
        x %= P
        if x >> n:
            raise UnsatisfiedConstraintError(None, f"constant does not fit in {n} bits")
        return [(x >> i) & 1 for i in range(n)]
    bits = cs.witness_many(n, lambda v: [(v >> i) & 1 for i in range(n)], x)
    for bit in bits:
        cs.assert_bool(bit)
    cs.assert_equal(from_bits(cs, bits), x)
    return bits


def from_bits(cs: Circuit, bits: list) -> Signal:
    """Exact linear recomposition ``sum(bit_i * 2**i)``; creates no gate."""
    return cs.linear((bit, 1 << i) for i, bit in enumerate(bits))


def not_bit(cs: Circuit, x: Signal) -> Signal:
    return cs.sub(1, x)


def and_bit(cs: Circuit, x: Signal, y: Signal) -> Signal:
    return cs.mul(x, y)


def xor(cs: Circuit, a: Signal, b: Signal) -> Signal:
    """XOR of two bits: one gate ``2a * b = a + b - out``."""
    if is_constant(a):
        return b if a % P == 0 else cs.sub(1, b)
    if is_constant(b):
        return a if b % P == 0 else cs.sub(1, a)
    out = cs.witness(lambda u, v: u ^ v, a, b)
    cs.gate(cs.scale(a, 2), b, cs.sub(cs.add(a, b), out))
    return out


def xor_bits(cs: Circuit, a: list, b: list) -> list:
    """Bitwise XOR of two equally sized bit (or byte) lists."""
    if len(a) != len(b):
        raise ValueError(f"Cannot XOR {len(a)} bits with {len(b)} bits")
    if a and isinstance(a[0], list):
        return [xor_bits(cs, x, y) for x, y in zip(a, b)]
    return [xor(cs, x, y) for x, y in zip(a, b)]


def xor_many(cs: Circuit, bits: list) -> Signal:
    """Parity of many bits.

    Up to four non-constant terms are chained through :func:`xor`; longer
    lists are summed and the sum decomposed, the parity being its least
    significant bit.  The sum never exceeds the number of terms, so the
    decomposition width is ``len(terms).bit_length()``.
    """
    constant = 0
    signals = []
    for bit in bits:
        if isinstance(bit, LinearCombination):
            signals.append(bit)
        else:
            constant ^= bit & 1
    if len(signals) <= 4:
        acc = constant
        for bit in signals:
            acc = xor(cs, acc, bit)
        return acc
    parity = to_bits(cs, cs.sum(signals), len(signals).bit_length())[0]
    return not_bit(cs, parity) if constant else parity


def is_zero(cs: Circuit, x: Signal) -> Signal:
    """Return a bit that is 1 iff *x* is zero (two gates)."""
    if is_constant(x):
        return int(x % P == 0)
    inverse = cs.witness(lambda v: pow(v, P - 2, P), x)
    nonzero = cs.witness(lambda v: int(v != 0), x)
    cs.gate(nonzero, x, x)
    cs.gate(x, inverse, nonzero)
    return not_bit(cs, nonzero)


# ---------------------------------------------------------------------------
# Bytes
# ---------------------------------------------------------------------------

def input_bytes(cs: Circuit, name: str, length: int, *, public: bool = False) -> list:
    """Declare a byte-array input, range-checking every element to 0..255."""
    with cs.scope("range_check"):
        return [to_bits(cs, x, 8) for x in cs.input(name, length, public=public)]


def const_bytes(data) -> list:
    """Constant bytes as bit lists; they fold away in every gadget."""
    return [[(v >> i) & 1 for i in range(8)] for v in data]


def output_bytes(cs: Circuit, name: str, data: list) -> None:
    """Expose byte signals as the output group *name* (one value per byte)."""
    cs.output(name, [from_bits(cs, byte) for byte in data])


def zero_pad(data: list, multiple: int = 16) -> list:
    """Zero-pad a byte list to the next multiple of *multiple* bytes."""
    rem = len(data) % multiple
    return data if rem == 0 else data + const_bytes(bytes(multiple - rem))


def chunks(data: list, size: int = 16) -> list:
    return [data[i: i + size] for i in range(0, len(data), size)]
