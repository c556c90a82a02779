"""
Re-encryption capability signatures (BLS12-381, py_ecc G2Basic).

A requester authorizes re-encryption of a contract's values under one of its
public keys by signing:

    SHA256( domain_sep(f"reencrypt_permit:{chain_id}", v1)
            || canonical_json({"public_key": <0x hex>, "verifying_contract": <address>}) )

with its wallet signing key. The verifier additionally checks that the signer's
public key derives to the transaction sender (see `state.accounts.address_from_pubkey`).

Freshness / replay handling is not part of this layer.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Optional, Tuple

from py_ecc.bls import G2Basic

from ..state.accounts import Address, address_from_pubkey, canonical_address
from ..state.canonical import canonical_json_bytes, domain_sep_bytes


SIGNER_NBYTES = 48
SIGNATURE_NBYTES = 96


@dataclass(frozen=True)
class ReencryptionSignature:
    signer: bytes
    signature: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.signer, (bytes, bytearray)) or len(self.signer) != SIGNER_NBYTES:
            raise ValueError(f"signer must be {SIGNER_NBYTES} bytes")
        if not isinstance(self.signature, (bytes, bytearray)) or len(self.signature) != SIGNATURE_NBYTES:
            raise ValueError(f"signature must be {SIGNATURE_NBYTES} bytes")

    @property
    def signer_address(self) -> Address:
        return address_from_pubkey(bytes(self.signer))


def permit_message(*, chain_id: str, verifying_contract: Address, public_key: bytes) -> bytes:
    payload = canonical_json_bytes(
        {
            "public_key": "0x" + bytes(public_key).hex(),
            "verifying_contract": canonical_address(verifying_contract, name="verifying_contract"),
        }
    )
    msg = domain_sep_bytes(f"reencrypt_permit:{chain_id}", version=1) + payload
    return hashlib.sha256(msg).digest()


def sign_permit(
    secret_key: int,
    *,
    chain_id: str,
    verifying_contract: Address,
    public_key: bytes,
) -> ReencryptionSignature:
    msg = permit_message(chain_id=chain_id, verifying_contract=verifying_contract, public_key=public_key)
    return ReencryptionSignature(
        signer=bytes(G2Basic.SkToPk(secret_key)),
        signature=bytes(G2Basic.Sign(secret_key, msg)),
    )


def verify_permit(
    permit: ReencryptionSignature,
    *,
    sender: Address,
    chain_id: str,
    verifying_contract: Address,
    public_key: bytes,
) -> Tuple[bool, Optional[str]]:
    """
    Check that `permit` authorizes re-encryption under `public_key` for
    `verifying_contract`, signed by `sender`.

    Returns (ok, error).
    """
    if not isinstance(permit, ReencryptionSignature):
        return False, "signature must be a ReencryptionSignature"
    try:
        if permit.signer_address != canonical_address(sender, name="sender"):
            return False, "signer does not match transaction sender"
        msg = permit_message(chain_id=chain_id, verifying_contract=verifying_contract, public_key=public_key)
        ok = bool(G2Basic.Verify(bytes(permit.signer), msg, bytes(permit.signature)))
    except Exception as exc:
        return False, f"signature verification error: {exc}"
    if not ok:
        return False, "invalid re-encryption signature"
    return True, None
