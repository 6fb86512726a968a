"""GHASH as a constraint graph.

A GF(2^128) element is a list of 128 bits where index ``i`` is the
coefficient of ``x^i``; ``x^0`` is the most significant bit of byte 0,
the reflected order of NIST SP 800-38D.

Multiplication is split into a carry-less product (255 coefficient
parities ``d_k``) and a fixed GF(2)-linear reduction modulo
x^128 + x^7 + x^2 + x + 1.  The reduction matrix is precomputed, so every
output bit is one parity gadget over the product terms routed to it.
Two strategies build the carry-less product:

``bitwise`` (baseline)
    One gate per AND term ``a_i * b_j``: 16384 gates before reduction.

``packed`` (optimized)
    Both operands are cut into eight 16-bit limbs, each packed into one
    field element with 8 bits per coefficient (``A_u = sum a_{16u+t} 2^{8t}``).
    An integer product ``A_u * B_v`` then holds 31 coefficient sums in
    base 256.  Products of equal limb degree ``d = u + v`` are added
    (every digit stays below 129, so nothing carries) and the 248-bit sum
    is decomposed; the parity of each digit is its lowest bit.  Cost:
    64 products plus 15 decompositions.
"""

from .circuit import Circuit
from .primitives import chunks, const_bytes, to_bits, xor_bits, xor_many, zero_pad

_LIMB_BITS = 16
_LIMBS = 128 // _LIMB_BITS
_DIGIT_BITS = 8
_DIGITS = 2 * _LIMB_BITS - 1


def _reduction_masks() -> list:
    """masks[k] = x^k mod f(x) in natural bit order, for k = 0..254."""
    masks = []
    v = 1
    for _ in range(255):
        masks.append(v)
        v <<= 1
        if v >> 128:
            v ^= (1 << 128) | 0x87
    return masks


_REDUCTION = _reduction_masks()


def block_to_element(block: list) -> list:
    """16 bytes (LSB-first bits) to 128 coefficients in GCM order."""
    return [block[i // 8][7 - i % 8] for i in range(128)]


def element_to_block(element: list) -> list:
    return [[element[8 * b + 7 - j] for j in range(8)] for b in range(16)]


def _reduce(cs: Circuit, by_degree: list) -> list:
    routed = [[] for _ in range(128)]
    for k, terms in enumerate(by_degree):
        if not terms:
            continue
        mask = _REDUCTION[k]
        for t in range(128):
            if (mask >> t) & 1:
                routed[t].extend(terms)
    return [xor_many(cs, terms) for terms in routed]


def _mul_bitwise(cs: Circuit, a: list, b: list) -> list:
    by_degree = [[] for _ in range(255)]
    for i in range(128):
        for j in range(128):
            by_degree[i + j].append(cs.mul(a[i], b[j]))
    return _reduce(cs, by_degree)


def _pack(cs: Circuit, bits: list) -> list:
    return [
        cs.linear(
            (bits[_LIMB_BITS * u + t], 1 << (_DIGIT_BITS * t)) for t in range(_LIMB_BITS)
        )
        for u in range(_LIMBS)
    ]


def _mul_packed(cs: Circuit, a: list, b: list) -> list:
    limbs_a = _pack(cs, a)
    limbs_b = _pack(cs, b)
    by_degree = [[] for _ in range(255)]
    for d in range(2 * _LIMBS - 1):
        low, high = max(0, d - _LIMBS + 1), min(d, _LIMBS - 1)
        packed = cs.sum(cs.mul(limbs_a[u], limbs_b[d - u]) for u in range(low, high + 1))
        digits = to_bits(cs, packed, _DIGIT_BITS * _DIGITS)
        for t in range(_DIGITS):
            by_degree[_LIMB_BITS * d + t].append(digits[_DIGIT_BITS * t])
    return _reduce(cs, by_degree)


GF128_STRATEGIES = {
    "bitwise": _mul_bitwise,
    "packed": _mul_packed,
}


def gf128_mul_bits(cs: Circuit, a: list, b: list, strategy: str = "packed") -> list:
    """Product of two 128-bit elements; the result is always 128 bits."""
    if len(a) != 128 or len(b) != 128:
        raise ValueError(f"GF(2^128) operands must be 128 bits, got {len(a)} and {len(b)}")
    try:
        multiply = GF128_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown GF(2^128) strategy {strategy!r}; expected one of {sorted(GF128_STRATEGIES)}"
        ) from None
    with cs.scope("gf128_mul"):
        return multiply(cs, a, b)


def ghash(cs: Circuit, h: list, blocks: list, strategy: str = "packed") -> list:
    """Fold 16-byte *blocks* into ``acc = (acc ^ block) * H`` from ``acc = 0``.

    Returns the accumulator as a GF(2^128) element.
    """
    acc = [0] * 128
    for block in blocks:
        with cs.scope("ghash"):
            x = xor_bits(cs, acc, block_to_element(block))
        acc = gf128_mul_bits(cs, x, h, strategy)
    return acc


def length_block(*lengths: int) -> list:
    """Constant block of 64-bit big-endian bit lengths for byte *lengths*."""
    return const_bytes(b"".join((8 * n).to_bytes(8, "big") for n in lengths))


def ghash_input_blocks(aad: list, text: list) -> list:
    """pad(AAD) || pad(text) || [bitlen(AAD)]_64 || [bitlen(text)]_64."""
    return chunks(zero_pad(aad)) + chunks(zero_pad(text)) + [length_block(len(aad), len(text))]
