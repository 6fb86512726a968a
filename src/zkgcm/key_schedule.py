"""AES key expansion (FIPS-197 Section 5.2).

Words are lists of 4 bytes, most significant byte first.  The schedule
is computed once per key inside a circuit and every block encryption
under that key reads its round keys from the same expanded words.
"""

from .circuit import Circuit
from .config import AesParams
from .primitives import const_bytes, xor_bits
from .sbox import SBOX

RCON = (0x01, 0x02, 0x04, 0x08, 0x10, 0x20, 0x40, 0x80, 0x1b, 0x36)


def rot_word(word: list) -> list:
    return word[1:] + word[:1]


def sub_word(cs: Circuit, word: list, sub_byte) -> list:
    return [sub_byte(cs, byte) for byte in word]


def expand_key(cs: Circuit, key: list, params: AesParams, sub_byte) -> list:
    """Expand a key of ``4 * Nk`` bytes into ``4 * (Nr + 1)`` words."""
    nk, nr = params.nk, params.nr
    if len(key) != 4 * nk:
        raise ValueError(f"AES-{params.key_bits} key must be {4 * nk} bytes, got {len(key)}")
    words = [key[4 * i: 4 * i + 4] for i in range(nk)]
    with cs.scope("key_schedule"):
        for i in range(nk, 4 * (nr + 1)):
            temp = words[i - 1]
            if i % nk == 0:
                temp = sub_word(cs, rot_word(temp), sub_byte)
                rcon = const_bytes([RCON[i // nk - 1]])[0]
                temp = [xor_bits(cs, temp[0], rcon)] + temp[1:]
            elif nk > 6 and i % nk == 4:
                temp = sub_word(cs, temp, sub_byte)
            words.append(xor_bits(cs, words[i - nk], temp))
    return words


def round_key(words: list, rnd: int) -> list:
    """The 16 bytes of round key *rnd* (column-major, one word per column)."""
    return [byte for word in words[4 * rnd: 4 * rnd + 4] for byte in word]


def expand_key_native(key: bytes) -> list:
    """Plain-integer key expansion; returns the words as ``bytes``."""
    params = AesParams.from_key_bits(len(key) * 8)
    nk = params.nk
    words = [list(key[4 * i: 4 * i + 4]) for i in range(nk)]
    for i in range(nk, 4 * (params.nr + 1)):
        temp = list(words[i - 1])
        if i % nk == 0:
            temp = [SBOX[b] for b in rot_word(temp)]
            temp[0] ^= RCON[i // nk - 1]
        elif nk > 6 and i % nk == 4:
            temp = [SBOX[b] for b in temp]
        words.append([a ^ b for a, b in zip(words[i - nk], temp)])
    return [bytes(word) for word in words]
