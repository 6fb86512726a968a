"""GF(2^8) gadgets: SubBytes, ShiftRows and MixColumns.

Two interchangeable S-box strategies share the ``sub_byte(cs, byte)``
interface and agree on all 256 inputs:

``lookup``
    The table written as a multilinear polynomial in the eight input
    bits.  Splitting the input into nibbles, the polynomial is
    ``sum_U m_hi(U) * (sum_S c[S, U] * m_lo(S))`` where ``m_lo``/``m_hi``
    are the 16 monomials of each nibble.  Cost: 11 + 11 monomial gates,
    15 products and an 8-bit range check on the output.

``algebraic``
    The Rijndael definition: the GF(2^8) inverse ``y`` of ``x`` is
    supplied as a witness and constrained by ``x * y = 1`` (``y = 0`` when
    ``x = 0``), followed by the affine map with constant 0x63.

Both reduce modulo the AES polynomial x^8 + x^4 + x^3 + x + 1.
"""

import numpy as np

from .circuit import Circuit, is_constant
from .primitives import const_bytes, from_bits, is_zero, not_bit, to_bits, xor_many

SBOX = bytes([
    0x63, 0x7c, 0x77, 0x7b, 0xf2, 0x6b, 0x6f, 0xc5,
    0x30, 0x01, 0x67, 0x2b, 0xfe, 0xd7, 0xab, 0x76,
    0xca, 0x82, 0xc9, 0x7d, 0xfa, 0x59, 0x47, 0xf0,
    0xad, 0xd4, 0xa2, 0xaf, 0x9c, 0xa4, 0x72, 0xc0,
    0xb7, 0xfd, 0x93, 0x26, 0x36, 0x3f, 0xf7, 0xcc,
    0x34, 0xa5, 0xe5, 0xf1, 0x71, 0xd8, 0x31, 0x15,
    0x04, 0xc7, 0x23, 0xc3, 0x18, 0x96, 0x05, 0x9a,
    0x07, 0x12, 0x80, 0xe2, 0xeb, 0x27, 0xb2, 0x75,
    0x09, 0x83, 0x2c, 0x1a, 0x1b, 0x6e, 0x5a, 0xa0,
    0x52, 0x3b, 0xd6, 0xb3, 0x29, 0xe3, 0x2f, 0x84,
    0x53, 0xd1, 0x00, 0xed, 0x20, 0xfc, 0xb1, 0x5b,
    0x6a, 0xcb, 0xbe, 0x39, 0x4a, 0x4c, 0x58, 0xcf,
    0xd0, 0xef, 0xaa, 0xfb, 0x43, 0x4d, 0x33, 0x85,
    0x45, 0xf9, 0x02, 0x7f, 0x50, 0x3c, 0x9f, 0xa8,
    0x51, 0xa3, 0x40, 0x8f, 0x92, 0x9d, 0x38, 0xf5,
    0xbc, 0xb6, 0xda, 0x21, 0x10, 0xff, 0xf3, 0xd2,
    0xcd, 0x0c, 0x13, 0xec, 0x5f, 0x97, 0x44, 0x17,
    0xc4, 0xa7, 0x7e, 0x3d, 0x64, 0x5d, 0x19, 0x73,
    0x60, 0x81, 0x4f, 0xdc, 0x22, 0x2a, 0x90, 0x88,
    0x46, 0xee, 0xb8, 0x14, 0xde, 0x5e, 0x0b, 0xdb,
    0xe0, 0x32, 0x3a, 0x0a, 0x49, 0x06, 0x24, 0x5c,
    0xc2, 0xd3, 0xac, 0x62, 0x91, 0x95, 0xe4, 0x79,
    0xe7, 0xc8, 0x37, 0x6d, 0x8d, 0xd5, 0x4e, 0xa9,
    0x6c, 0x56, 0xf4, 0xea, 0x65, 0x7a, 0xae, 0x08,
    0xba, 0x78, 0x25, 0x2e, 0x1c, 0xa6, 0xb4, 0xc6,
    0xe8, 0xdd, 0x74, 0x1f, 0x4b, 0xbd, 0x8b, 0x8a,
    0x70, 0x3e, 0xb5, 0x66, 0x48, 0x03, 0xf6, 0x0e,
    0x61, 0x35, 0x57, 0xb9, 0x86, 0xc1, 0x1d, 0x9e,
    0xe1, 0xf8, 0x98, 0x11, 0x69, 0xd9, 0x8e, 0x94,
    0x9b, 0x1e, 0x87, 0xe9, 0xce, 0x55, 0x28, 0xdf,
    0x8c, 0xa1, 0x89, 0x0d, 0xbf, 0xe6, 0x42, 0x68,
    0x41, 0x99, 0x2d, 0x0f, 0xb0, 0x54, 0xbb, 0x16,
])

_AES_POLY = 0x11B
_AFFINE_CONSTANT = 0x63

# MixColumns matrix, rows of output coefficients.
_MIX = ((2, 3, 1, 1), (1, 2, 3, 1), (1, 1, 2, 3), (3, 1, 1, 2))


# ---------------------------------------------------------------------------
# Native GF(2^8) arithmetic
# ---------------------------------------------------------------------------

def gf256_mul_native(a: int, b: int) -> int:
    """Multiply two bytes in GF(2^8) modulo x^8 + x^4 + x^3 + x + 1."""
    p = 0
    for _ in range(8):
        if b & 1:
            p ^= a
        a <<= 1
        if a & 0x100:
            a ^= _AES_POLY
        b >>= 1
    return p


def gf256_inverse(x: int) -> int:
    """Multiplicative inverse ``x^254``; maps 0 to 0."""
    result, base, e = 1, x, 254
    while e:
        if e & 1:
            result = gf256_mul_native(result, base)
        base = gf256_mul_native(base, base)
        e >>= 1
    return result if x else 0


def _rotl8(x: int, n: int) -> int:
    return ((x << n) | (x >> (8 - n))) & 0xFF


def sbox_value(x: int) -> int:
    """Rijndael S-box from its algebraic definition (inverse then affine)."""
    y = gf256_inverse(x)
    return y ^ _rotl8(y, 1) ^ _rotl8(y, 2) ^ _rotl8(y, 3) ^ _rotl8(y, 4) ^ _AFFINE_CONSTANT


_INVERSE = [gf256_inverse(x) for x in range(256)]


def _reduce_power(k: int) -> int:
    """x^k modulo the AES polynomial, as a byte."""
    v = 1 << k
    for bit in range(14, 7, -1):
        if (v >> bit) & 1:
            v ^= _AES_POLY << (bit - 8)
    return v


# _POWER_MASKS[k]: bits set in x^k mod the AES polynomial, k = 0..14.
_POWER_MASKS = [_reduce_power(k) for k in range(15)]

# _CONST_MASKS[m][j]: m * x^j, the image of input bit j under multiplication by m.
_CONST_MASKS = {m: [gf256_mul_native(m, 1 << j) for j in range(8)] for m in (1, 2, 3)}


def _multilinear_coefficients(table: bytes) -> list:
    """Mobius transform: coefficients c[M] with table[x] = sum_{M subset of x} c[M]."""
    coef = np.array(list(table), dtype=np.int64)
    index = np.arange(len(coef))
    for bit in range(8):
        upper = index[((index >> bit) & 1).astype(bool)]
        coef[upper] -= coef[upper ^ (1 << bit)]
    return [int(v) for v in coef]


_LOOKUP_COEFFICIENTS = _multilinear_coefficients(SBOX)


# ---------------------------------------------------------------------------
# Gadgets
# ---------------------------------------------------------------------------

def _constant_value(byte: list):
    if all(is_constant(bit) for bit in byte):
        return sum((bit & 1) << i for i, bit in enumerate(byte))
    return None


def gf256_mul(cs: Circuit, a: list, b: list) -> list:
    """GF(2^8) product of two bytes: 64 AND terms, 8 parity gadgets."""
    routed = [[] for _ in range(8)]
    for i in range(8):
        for j in range(8):
            term = cs.mul(a[i], b[j])
            mask = _POWER_MASKS[i + j]
            for t in range(8):
                if (mask >> t) & 1:
                    routed[t].append(term)
    return [xor_many(cs, terms) for terms in routed]


def _monomials(cs: Circuit, bits: list) -> list:
    # mono[s] is the product of bits[i] for every i in the subset s.
    mono = [1] * 16
    for s in range(1, 16):
        top = s.bit_length() - 1
        mono[s] = cs.mul(mono[s ^ (1 << top)], bits[top])
    return mono


def sub_byte_lookup(cs: Circuit, byte: list) -> list:
    value = _constant_value(byte)
    if value is not None:
        return const_bytes([SBOX[value]])[0]
    with cs.scope("sbox"):
        low = _monomials(cs, byte[:4])
        high = _monomials(cs, byte[4:])
        terms = []
        for u in range(16):
            partial = cs.linear((low[s], _LOOKUP_COEFFICIENTS[s | (u << 4)]) for s in range(16))
            terms.append(cs.mul(high[u], partial))
        return to_bits(cs, cs.sum(terms), 8)


def _affine(cs: Circuit, y: list) -> list:
    return [
        xor_many(cs, [
            y[i], y[(i + 4) % 8], y[(i + 5) % 8], y[(i + 6) % 8], y[(i + 7) % 8],
            (_AFFINE_CONSTANT >> i) & 1,
        ])
        for i in range(8)
    ]


def sub_byte_algebraic(cs: Circuit, byte: list) -> list:
    value = _constant_value(byte)
    if value is not None:
        return const_bytes([SBOX[value]])[0]
    with cs.scope("sbox"):
        x = from_bits(cs, byte)
        inverse = cs.witness_many(8, lambda v: [(_INVERSE[v & 0xFF] >> i) & 1 for i in range(8)], x)
        for bit in inverse:
            cs.assert_bool(bit)
        product = gf256_mul(cs, byte, inverse)
        zero = is_zero(cs, x)
        # x * y == 1 when x != 0; y == 0 when x == 0.
        cs.assert_equal(product[0], not_bit(cs, zero))
        for bit in product[1:]:
            cs.assert_zero(bit)
        cs.gate(zero, from_bits(cs, inverse), 0)
        return _affine(cs, inverse)


SBOX_STRATEGIES = {
    "lookup": sub_byte_lookup,
    "algebraic": sub_byte_algebraic,
}


def get_sbox(name: str):
    """Return the ``sub_byte(cs, byte)`` gadget registered as *name*."""
    try:
        return SBOX_STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown S-box strategy {name!r}; expected one of {sorted(SBOX_STRATEGIES)}"
        ) from None


def sub_bytes(cs: Circuit, state: list, sub_byte) -> list:
    return [sub_byte(cs, byte) for byte in state]


def shift_rows(state: list) -> list:
    """Row r rotates left by r; pure rewiring of the column-major state."""
    return [state[row + 4 * ((col + row) % 4)] for col in range(4) for row in range(4)]


def mix_columns(cs: Circuit, state: list) -> list:
    """Multiply every column by the fixed MixColumns matrix over GF(2^8).

    Multiplication by a constant is GF(2)-linear, so each output bit is
    the parity of a fixed subset of the column's 32 input bits.
    """
    out = []
    with cs.scope("mix_columns"):
        for col in range(4):
            column = state[4 * col: 4 * col + 4]
            for row in range(4):
                out.append([
                    xor_many(cs, [
                        column[k][j]
                        for k in range(4)
                        for j in range(8)
                        if (_CONST_MASKS[_MIX[row][k]][j] >> t) & 1
                    ])
                    for t in range(8)
                ])
    return out
