"""
Disclosure gate: owner-only re-encryption of pool state.

Two independent checks run on every request:

1. the transaction sender is the pool owner (identity from the runtime, not
   from the signature);
2. the capability signature authorizes re-encryption under `public_key` for
   this contract, signed by the sender's wallet key.

Ownership is never cached across calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import Unauthorized
from ..fhe.backend import CiphertextBackend
from ..fhe.capability import ReencryptionSignature, verify_permit
from ..fhe.reencrypt import validate_public_key
from ..fhe.types import EncryptedAmount
from ..state.accounts import Address

if TYPE_CHECKING:
    from ..integration.runtime import CallContext


def require_owner(ctx: "CallContext", owner: Address) -> None:
    if ctx.sender != owner:
        raise Unauthorized("caller is not the pool owner")


class DisclosureGate:
    """Authorizes a disclosure request, then re-encrypts values for it."""

    def __init__(self, backend: CiphertextBackend) -> None:
        self._backend = backend

    def authorize(
        self,
        ctx: "CallContext",
        owner: Address,
        public_key: bytes,
        signature: ReencryptionSignature,
    ) -> "Disclosure":
        require_owner(ctx, owner)
        validate_public_key(public_key)
        ok, err = verify_permit(
            signature,
            sender=ctx.sender,
            chain_id=ctx.chain_id,
            verifying_contract=ctx.contract,
            public_key=public_key,
        )
        if not ok:
            raise Unauthorized(err or "re-encryption capability rejected")
        return Disclosure(self._backend, bytes(public_key))


class Disclosure:
    """An authorized re-encryption target, valid for the current call only."""

    def __init__(self, backend: CiphertextBackend, public_key: bytes) -> None:
        self._backend = backend
        self._public_key = public_key

    def reveal(self, ct: EncryptedAmount) -> bytes:
        return self._backend.reencrypt(ct, self._public_key)
