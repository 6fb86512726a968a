#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
zkgcm: Usage Example
--------------------
This script walks through the main entry points of zkgcm:
1. Circuit Construction: one AES-256-GCM encrypt and decrypt graph per shape.
2. Witness Solving: concrete key/IV/AAD/plaintext in, ciphertext and tag out.
3. Tag Verification: the decrypt circuit reports a valid bit instead of aborting.
4. Constraint Accounting: gate counts for every combination of gadget strategies.

Strategies can be preselected through ZKGCM_SBOX, ZKGCM_GF128 and ZKGCM_COUNTER.

Usage:
    python3 examples/basic_usage.py
"""

import itertools
import os

from zkgcm import CircuitConfig, GcmDecrypt, GcmEncrypt
from zkgcm.config import COUNTER_CHOICES, GF128_CHOICES, SBOX_CHOICES
from zkgcm.log import setup_logger

logger = setup_logger()

KEY_BITS = 256
IV_LEN = 12
TEXT = b"Proof that this ciphertext is honest."
AAD = b"record-header-v1"


def report_decryption(valid: int, plaintext: bytes, label: str):
    print(f"\n  [{label}]")
    if valid:
        print(f"    ✅ Tag accepted. Plaintext: {plaintext!r}")
    else:
        print("    ⛔ Tag rejected (valid = 0).")


def main():
    config = CircuitConfig.from_env()

    # 1. Build circuits
    print("--- [1] Building circuits ---")
    enc = GcmEncrypt(KEY_BITS, IV_LEN, len(TEXT), len(AAD), config)
    dec = GcmDecrypt(KEY_BITS, IV_LEN, len(TEXT), len(AAD), config)
    print(f"    {enc.circuit}")
    print(f"    {dec.circuit}")

    # 2. Encrypt
    print("\n--- [2] Encrypting ---")
    key, iv = os.urandom(KEY_BITS // 8), os.urandom(IV_LEN)
    ciphertext, tag = enc.encrypt(TEXT, key, iv, AAD)
    print(f"    Ciphertext: {ciphertext.hex()}")
    print(f"    Tag:        {tag.hex()}")

    # 3. Decrypt
    print("\n--- [3] Decrypting ---")
    plaintext, valid = dec.decrypt(ciphertext, key, iv, AAD, tag)
    report_decryption(valid, plaintext, "Correct tag")
    forged = bytes([tag[0] ^ 1]) + tag[1:]
    plaintext, valid = dec.decrypt(ciphertext, key, iv, AAD, forged)
    report_decryption(valid, plaintext, "Forged tag")

    # 4. Compare strategies
    print("\n--- [4] Constraint counts (encrypt) ---")
    print(f"    {'sbox':<10} {'gf128':<8} {'counter':<8} {'gates':>9} {'wires':>9}")
    for sbox, gf128, counter in itertools.product(SBOX_CHOICES, GF128_CHOICES, COUNTER_CHOICES):
        variant = CircuitConfig(sbox=sbox, gf128=gf128, counter=counter)
        stats = GcmEncrypt(KEY_BITS, IV_LEN, len(TEXT), len(AAD), variant).stats()
        print(f"    {sbox:<10} {gf128:<8} {counter:<8} {stats['gates']:>9} {stats['wires']:>9}")

    logger.info("Done.")


if __name__ == "__main__":
    main()
