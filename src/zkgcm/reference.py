"""Native AES-GCM golden model.

Computes the values a solved circuit must reproduce, using:
  - the AES block cipher from the ``cryptography`` library;
  - the plain-integer GF(2^128) arithmetic of :mod:`zkgcm.gf128`;
  - the plain-integer ``inc32`` of :mod:`zkgcm.counter`.

Unlike the ``cryptography`` AEAD API this model accepts any non-empty IV
length, and its decryption reports the tag check as a value instead of
raising, matching the circuit's contract.
"""

import hmac

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .counter import inc32
from .gf128 import ghash_native


def aes_encrypt_block(key: bytes, block: bytes) -> bytes:
    """Compute AES_K(block) – a single block encryption used as a PRF.

    Implemented via CTR mode with *block* as the initial counter and
    all-zero plaintext, so that:
        output = AES_K(block) XOR 0^128 = AES_K(block)
    """
    cipher = Cipher(algorithms.AES(key), modes.CTR(block))
    enc = cipher.encryptor()
    return enc.update(b"\x00" * 16)


def _bytes_to_int(b: bytes) -> int:
    return int.from_bytes(b, "big")


def _int_to_bytes(n: int, length: int = 16) -> bytes:
    return n.to_bytes(length, "big")


def _pad16(data: bytes) -> bytes:
    """Zero-pad *data* to the next multiple of 16 bytes."""
    rem = len(data) % 16
    return data if rem == 0 else data + b"\x00" * (16 - rem)


def _blocks(data: bytes) -> list:
    padded = _pad16(data)
    return [_bytes_to_int(padded[i: i + 16]) for i in range(0, len(padded), 16)]


def build_ghash_blocks(aad: bytes, ciphertext: bytes) -> list:
    """Assemble the GHASH input sequence per NIST SP 800-38D Section 7.1.

    Returns a list of 128-bit integers:
        pad(AAD) || pad(C) || [len(AAD)*8 as u64] || [len(C)*8 as u64]
    """
    len_block = (len(aad) * 8).to_bytes(8, "big") + (len(ciphertext) * 8).to_bytes(8, "big")
    return _blocks(aad) + _blocks(ciphertext) + [_bytes_to_int(len_block)]


def derive_j0(h: int, iv: bytes) -> bytes:
    """Pre-counter block J0 for any IV length."""
    if len(iv) == 12:
        return iv + b"\x00\x00\x00\x01"
    len_block = bytes(8) + (len(iv) * 8).to_bytes(8, "big")
    return _int_to_bytes(ghash_native(h, _blocks(iv) + [_bytes_to_int(len_block)]))


def ctr_keystream_xor(key: bytes, counter: bytes, text: bytes) -> bytes:
    out = bytearray()
    for i in range(0, len(text), 16):
        ks = aes_encrypt_block(key, counter)
        out.extend(a ^ b for a, b in zip(text[i: i + 16], ks))
        counter = inc32(counter)
    return bytes(out)


def _tag(key: bytes, h: int, j0: bytes, aad: bytes, ciphertext: bytes) -> bytes:
    s = ghash_native(h, build_ghash_blocks(aad, ciphertext))
    return _int_to_bytes(s ^ _bytes_to_int(aes_encrypt_block(key, j0)))


def gcm_encrypt_reference(key: bytes, iv: bytes, plaintext: bytes, aad: bytes = b"") -> tuple:
    """Return ``(ciphertext, tag)``."""
    if not iv:
        raise ValueError("IV must not be empty")
    h = _bytes_to_int(aes_encrypt_block(key, bytes(16)))
    j0 = derive_j0(h, iv)
    ciphertext = ctr_keystream_xor(key, inc32(j0), plaintext)
    return ciphertext, _tag(key, h, j0, aad, ciphertext)


def gcm_decrypt_reference(
    key: bytes, iv: bytes, ciphertext: bytes, tag: bytes, aad: bytes = b""
) -> tuple:
    """Return ``(plaintext, valid)`` with ``valid`` in {0, 1}."""
    if not iv:
        raise ValueError("IV must not be empty")
    h = _bytes_to_int(aes_encrypt_block(key, bytes(16)))
    j0 = derive_j0(h, iv)
    plaintext = ctr_keystream_xor(key, inc32(j0), ciphertext)
    return plaintext, int(hmac.compare_digest(_tag(key, h, j0, aad, ciphertext), tag))
