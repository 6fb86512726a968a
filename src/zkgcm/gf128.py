"""Native GF(2^128) arithmetic for AES-GCM GHASH computation.

This is the plain-integer reference model the constraint gadgets in
:mod:`zkgcm.ghash` are checked against.

Elements are 128-bit integers where the most significant bit (bit 127)
corresponds to the coefficient of x^0, consistent with NIST SP 800-38D.

The field uses the irreducible polynomial:
    f(x) = x^128 + x^7 + x^2 + x + 1

In the MSB-first bit ordering used by GCM, the reduction constant R
encodes x^7 + x^2 + x + 1 with x^0 at bit 127:
    R = 0xE1000000000000000000000000000000

Two multipliers are provided and must agree on every input:
:func:`gf128_mul` (bit-serial, Algorithm 1 of SP 800-38D) and
:func:`gf128_mul_table` (4-bit windowed carry-less product in natural bit
order, followed by a folding reduction).
"""

# Reduction polynomial R for GF(2^128) in GCM bit ordering.
# Represents x^0 + x^1 + x^2 + x^7 at bit positions 127, 126, 125, 120.
_GCM_POLY = 0xE1000000000000000000000000000000

_MASK128 = (1 << 128) - 1

# Multiplicative identity: element "1" = x^0 has bit 127 set.
GF128_ONE = 1 << 127


def gf128_mul(x: int, y: int) -> int:
    """Multiply two GF(2^128) elements x and y using the GCM field.

    Implements Algorithm 1 from NIST SP 800-38D, Section 6.3.
    Iterates over the bits of y from MSB (x^0 coefficient) to LSB (x^127).

    Args:
        x: First GF(2^128) element as a 128-bit integer.
        y: Second GF(2^128) element as a 128-bit integer.

    Returns:
        The product x * y in GF(2^128).
    """
    z = 0
    v = x
    for i in range(128):
        if y & (1 << (127 - i)):
            z ^= v
        if v & 1:
            v = (v >> 1) ^ _GCM_POLY
        else:
            v >>= 1
    return z


def _reverse128(v: int) -> int:
    return int(f"{v:0128b}"[::-1], 2)


def _clmul_windowed(a: int, b: int) -> int:
    """Carry-less product of natural-order polynomials, 4 bits of b per step."""
    table = [0] * 16
    for w in range(1, 16):
        table[w] = table[w & (w - 1)] ^ (a << ((w & -w).bit_length() - 1))
    z = 0
    for shift in range(124, -4, -4):
        z = (z << 4) ^ table[(b >> shift) & 0xF]
    return z


def _fold(z: int) -> int:
    """Reduce a natural-order polynomial using x^128 = x^7 + x^2 + x + 1."""
    while z >> 128:
        high = z >> 128
        z = (z & _MASK128) ^ high ^ (high << 1) ^ (high << 2) ^ (high << 7)
    return z


def gf128_mul_table(x: int, y: int) -> int:
    """Multiply two GF(2^128) elements with a 4-bit windowed table.

    Same field and bit ordering as :func:`gf128_mul`; the operands are
    bit-reversed into natural order, multiplied carry-lessly and folded.
    """
    return _reverse128(_fold(_clmul_windowed(_reverse128(x), _reverse128(y))))


def ghash_native(h: int, blocks: list, mul=gf128_mul) -> int:
    """Compute GHASH sequentially: ``Y_i = (Y_{i-1} XOR X_i) * H``, ``Y_0 = 0``.

    Args:
        h:      Hash subkey H = AES_K(0^128) as a 128-bit integer.
        blocks: List of 128-bit integer GHASH input blocks.
        mul:    Field multiplier (either of the two in this module).

    Returns:
        GHASH_H(blocks) as a 128-bit integer.
    """
    y = 0
    for x in blocks:
        y = mul(y ^ x, h)
    return y
