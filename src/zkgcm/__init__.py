"""zkgcm – AES-GCM as a fixed constraint graph for zero-knowledge proofs.

Public API re-exports for convenience:

    from zkgcm import GcmEncrypt, GcmDecrypt, EncryptBlock, CtrEncrypt
    from zkgcm import Circuit, CircuitConfig
    from zkgcm import gcm_encrypt, gcm_decrypt
"""

from .cipher import EncryptBlock
from .circuit import Circuit, UnsatisfiedConstraintError, Witness
from .config import AesParams, CircuitConfig
from .ctr import CtrDecrypt, CtrEncrypt
from .gcm import GcmDecrypt, GcmEncrypt, gcm_decrypt, gcm_encrypt
from .gf128 import GF128_ONE, gf128_mul, gf128_mul_table

__all__ = [
    # Builders
    "EncryptBlock",
    "CtrEncrypt",
    "CtrDecrypt",
    "GcmEncrypt",
    "GcmDecrypt",
    "gcm_encrypt",
    "gcm_decrypt",
    # Constraint system
    "Circuit",
    "Witness",
    "UnsatisfiedConstraintError",
    # Configuration
    "AesParams",
    "CircuitConfig",
    # GF(2^128)
    "gf128_mul",
    "gf128_mul_table",
    "GF128_ONE",
]
