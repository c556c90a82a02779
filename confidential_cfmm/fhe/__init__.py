"""
Ciphertext primitive layer.

- `CiphertextBackend`: the interface the pool and token ledger compute through.
- `PlaintextBackend`: in-process simulation of the co-processor.
- `reencrypt` / `capability`: disclosure under a requester key, gated by a
  BLS12-381 capability signature.
"""

from .backend import CiphertextBackend
from .capability import ReencryptionSignature, sign_permit, verify_permit
from .plaintext import PlaintextBackend
from .reencrypt import ReencryptionError, ReencryptionKeypair, open_reencrypted, reencrypt_value
from .types import INT32_MAX, INT32_MIN, EncryptedAmount, EncryptedBool, wrap_int32

__all__ = [
    "CiphertextBackend",
    "PlaintextBackend",
    "EncryptedAmount",
    "EncryptedBool",
    "INT32_MAX",
    "INT32_MIN",
    "wrap_int32",
    "ReencryptionError",
    "ReencryptionKeypair",
    "ReencryptionSignature",
    "open_reencrypted",
    "reencrypt_value",
    "sign_permit",
    "verify_permit",
]
