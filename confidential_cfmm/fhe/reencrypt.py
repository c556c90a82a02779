"""
Re-encryption of a 32-bit plaintext under a requester's public key.

Scheme: hashed ElGamal over the BLS12-381 G1 group (py_ecc).

    r          <- random scalar
    R           = r * G1
    S           = r * PK
    km          = SHA256( domain_sep("reencrypt") || R || S )
    masked      = int32_be(value) XOR km[0:4]
    tag         = HMAC-SHA256(km[4:], R || masked)[0:16]
    ciphertext  = R (48 bytes) || masked (4 bytes) || tag (16 bytes)

The holder of `sk` (with `PK = sk * G1`) recomputes `S = sk * R` and unmasks.
Public keys use the same 48-byte compressed encoding as BLS pubkeys, so a
requester may reuse any BLS12-381 keypair.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Optional

from py_ecc.bls import G2Basic
from py_ecc.bls.g2_primitives import G1_to_pubkey, pubkey_to_G1
from py_ecc.optimized_bls12_381 import G1, curve_order, multiply

from ..state.canonical import domain_sep_bytes
from .types import wrap_int32


PUBKEY_NBYTES = 48
_MASK_NBYTES = 4
_TAG_NBYTES = 16
REENCRYPTED_NBYTES = PUBKEY_NBYTES + _MASK_NBYTES + _TAG_NBYTES

_KDF_DOMAIN = domain_sep_bytes("reencrypt", version=1)


class ReencryptionError(ValueError):
    """Raised when a re-encrypted payload cannot be opened with the given key."""


def _random_scalar() -> int:
    return secrets.randbelow(curve_order - 1) + 1


def _key_material(r_bytes: bytes, shared_bytes: bytes) -> bytes:
    return hashlib.sha256(_KDF_DOMAIN + r_bytes + shared_bytes).digest()


def _tag(km: bytes, body: bytes) -> bytes:
    return hmac.new(km[_MASK_NBYTES:], body, hashlib.sha256).digest()[:_TAG_NBYTES]


def validate_public_key(public_key: bytes) -> None:
    if not isinstance(public_key, (bytes, bytearray)):
        raise TypeError("public_key must be bytes")
    if len(public_key) != PUBKEY_NBYTES:
        raise ValueError(f"public_key must be {PUBKEY_NBYTES} bytes")
    if not G2Basic.KeyValidate(bytes(public_key)):
        raise ValueError("public_key is not a valid BLS12-381 G1 point")


def reencrypt_value(value: int, public_key: bytes, *, ephemeral: Optional[int] = None) -> bytes:
    """Encrypt a plaintext int32 under `public_key`."""
    validate_public_key(public_key)
    r = _random_scalar() if ephemeral is None else ephemeral
    if not (0 < r < curve_order):
        raise ValueError("ephemeral scalar out of range")

    r_bytes = bytes(G1_to_pubkey(multiply(G1, r)))
    shared = multiply(pubkey_to_G1(bytes(public_key)), r)
    km = _key_material(r_bytes, bytes(G1_to_pubkey(shared)))

    plain = wrap_int32(value).to_bytes(_MASK_NBYTES, "big", signed=True)
    masked = bytes(p ^ k for p, k in zip(plain, km[:_MASK_NBYTES]))
    return r_bytes + masked + _tag(km, r_bytes + masked)


def open_reencrypted(payload: bytes, secret_key: int) -> int:
    """Recover the plaintext int32 from `reencrypt_value` output."""
    if not isinstance(payload, (bytes, bytearray)) or len(payload) != REENCRYPTED_NBYTES:
        raise ReencryptionError(f"payload must be {REENCRYPTED_NBYTES} bytes")
    payload = bytes(payload)
    r_bytes = payload[:PUBKEY_NBYTES]
    masked = payload[PUBKEY_NBYTES:PUBKEY_NBYTES + _MASK_NBYTES]
    tag = payload[PUBKEY_NBYTES + _MASK_NBYTES:]

    try:
        r_point = pubkey_to_G1(r_bytes)
    except Exception as exc:
        raise ReencryptionError("malformed ephemeral point") from exc
    km = _key_material(r_bytes, bytes(G1_to_pubkey(multiply(r_point, secret_key))))
    if not hmac.compare_digest(tag, _tag(km, r_bytes + masked)):
        raise ReencryptionError("authentication tag mismatch (wrong key or corrupted payload)")

    plain = bytes(m ^ k for m, k in zip(masked, km[:_MASK_NBYTES]))
    return int.from_bytes(plain, "big", signed=True)


@dataclass(frozen=True)
class ReencryptionKeypair:
    """Requester-side keypair used to receive disclosed values."""

    secret_key: int
    public_key: bytes

    def __repr__(self) -> str:
        return f"ReencryptionKeypair(public_key=0x{self.public_key.hex()[:16]}...)"

    @classmethod
    def generate(cls, seed: Optional[bytes] = None) -> "ReencryptionKeypair":
        if seed is None:
            sk = _random_scalar()
        else:
            digest = hashlib.sha256(domain_sep_bytes("reencrypt_keygen") + bytes(seed)).digest()
            sk = int.from_bytes(digest, "big") % (curve_order - 1) + 1
        return cls(secret_key=sk, public_key=bytes(G1_to_pubkey(multiply(G1, sk))))

    def decrypt(self, payload: bytes) -> int:
        return open_reencrypted(payload, self.secret_key)
