"""Circuit parameters and strategy configuration."""

import os
from dataclasses import dataclass

SBOX_CHOICES = ("lookup", "algebraic")
GF128_CHOICES = ("packed", "bitwise")
COUNTER_CHOICES = ("packed", "ripple")

# key_bits -> (Nk, Nr)
_AES_SHAPES = {128: (4, 10), 192: (6, 12), 256: (8, 14)}


@dataclass(frozen=True)
class AesParams:
    """AES shape derived from the key size.

    Attributes:
        key_bits: 128, 192 or 256.
        nk:       Key length in 32-bit words (4, 6 or 8).
        nr:       Number of rounds (10, 12 or 14).
    """

    key_bits: int
    nk: int
    nr: int

    @classmethod
    def from_key_bits(cls, key_bits: int) -> "AesParams":
        if key_bits not in _AES_SHAPES:
            raise ValueError(f"Key size must be 128, 192, or 256 bits, got {key_bits}")
        nk, nr = _AES_SHAPES[key_bits]
        return cls(key_bits=key_bits, nk=nk, nr=nr)

    @property
    def key_len(self) -> int:
        """Key length in bytes."""
        return 4 * self.nk


@dataclass(frozen=True)
class CircuitConfig:
    """Gadget strategies; every choice yields the same function.

    Attributes:
        sbox:    ``"lookup"`` (multilinear table) or ``"algebraic"``
                 (witnessed GF(2^8) inverse plus affine map).
        gf128:   ``"packed"`` (limb-packed field products) or ``"bitwise"``
                 (one gate per AND term).
        counter: ``"packed"`` (one 33-bit decomposition) or ``"ripple"``
                 (half-adder carry chain).
    """

    sbox: str = "lookup"
    gf128: str = "packed"
    counter: str = "packed"

    def __post_init__(self) -> None:
        if self.sbox not in SBOX_CHOICES:
            raise ValueError(f"sbox must be one of {SBOX_CHOICES}, got {self.sbox!r}")
        if self.gf128 not in GF128_CHOICES:
            raise ValueError(f"gf128 must be one of {GF128_CHOICES}, got {self.gf128!r}")
        if self.counter not in COUNTER_CHOICES:
            raise ValueError(f"counter must be one of {COUNTER_CHOICES}, got {self.counter!r}")

    @classmethod
    def from_env(cls) -> "CircuitConfig":
        """Read ``ZKGCM_SBOX``, ``ZKGCM_GF128`` and ``ZKGCM_COUNTER``."""
        defaults = cls()
        return cls(
            sbox=os.getenv("ZKGCM_SBOX", defaults.sbox).lower(),
            gf128=os.getenv("ZKGCM_GF128", defaults.gf128).lower(),
            counter=os.getenv("ZKGCM_COUNTER", defaults.counter).lower(),
        )


def require_length(label: str, data, length: int) -> None:
    """Raise :exc:`ValueError` unless ``len(data) == length``."""
    if len(data) != length:
        raise ValueError(f"{label} must be exactly {length} bytes, got {len(data)}")


def require_non_negative(label: str, value: int) -> None:
    if not isinstance(value, int) or value < 0:
        raise ValueError(f"{label} must be a non-negative integer, got {value!r}")
