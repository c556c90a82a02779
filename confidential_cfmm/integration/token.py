"""
Confidential token ledger (encrypted balances and allowances).

Simulates the per-asset token the pool trades. All amounts are ciphertexts over
the runtime's backend. Transfers are oblivious: an unaffordable or negative
transfer moves zero instead of aborting, and the moved amount is returned so the
caller can decide (the pool treats any shortfall as a hard abort).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from ..errors import InvalidAmount, Overflow, Unauthorized
from ..fhe.capability import ReencryptionSignature, verify_permit
from ..fhe.reencrypt import validate_public_key
from ..fhe.types import EncryptedAmount, EncryptedBool
from ..state.accounts import Address, canonical_address
from .runtime import CallContext


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSnapshot:
    balances: Tuple[Tuple[Address, EncryptedAmount], ...]
    allowances: Tuple[Tuple[Tuple[Address, Address], EncryptedAmount], ...]
    total_supply: EncryptedAmount


class ConfidentialToken:
    def __init__(self, ctx: CallContext, *, name: str, symbol: str) -> None:
        if not name or not symbol:
            raise ValueError("name and symbol must be non-empty")
        self.address = ctx.contract
        self.owner = ctx.sender
        self.name = name
        self.symbol = symbol
        self._backend = ctx.backend
        self._balances: Dict[Address, EncryptedAmount] = {}
        self._allowances: Dict[Tuple[Address, Address], EncryptedAmount] = {}
        self._total_supply = self._backend.zero()

    def __repr__(self) -> str:
        return f"ConfidentialToken({self.symbol} at {self.address})"

    # -- runtime hooks ------------------------------------------------------

    def snapshot(self) -> TokenSnapshot:
        return TokenSnapshot(
            balances=tuple(self._balances.items()),
            allowances=tuple(self._allowances.items()),
            total_supply=self._total_supply,
        )

    def restore(self, snap: TokenSnapshot) -> None:
        self._balances = dict(snap.balances)
        self._allowances = dict(snap.allowances)
        self._total_supply = snap.total_supply

    # -- internals ----------------------------------------------------------

    def _balance(self, account: Address) -> EncryptedAmount:
        bal = self._balances.get(account)
        return self._backend.zero() if bal is None else bal

    def _allowance(self, owner: Address, spender: Address) -> EncryptedAmount:
        allowed = self._allowances.get((owner, spender))
        return self._backend.zero() if allowed is None else allowed

    def _move(self, src: Address, dst: Address, amount: EncryptedAmount, ok: EncryptedBool) -> EncryptedAmount:
        be = self._backend
        moved = be.select(ok, amount, be.zero())
        # Self-transfers are a no-op on the balance table.
        if src != dst:
            self._balances[src] = be.sub(self._balance(src), moved)
            self._balances[dst] = be.add(self._balance(dst), moved)
        return moved

    def _can_debit(self, src: Address, amount: EncryptedAmount) -> EncryptedBool:
        be = self._backend
        return be.and_(be.ge(amount, 0), be.le(amount, self._balance(src)))

    def _authorize_read(self, ctx: CallContext, public_key: bytes, signature: ReencryptionSignature) -> None:
        validate_public_key(public_key)
        ok, err = verify_permit(
            signature,
            sender=ctx.sender,
            chain_id=ctx.chain_id,
            verifying_contract=self.address,
            public_key=public_key,
        )
        if not ok:
            raise Unauthorized(err or "re-encryption capability rejected")

    # -- entry points -------------------------------------------------------

    def mint(self, ctx: CallContext, amount: EncryptedAmount) -> None:
        """Owner-only: credit `amount` to the owner's balance."""
        if ctx.sender != self.owner:
            raise Unauthorized("only the token owner can mint")
        be = self._backend
        new_supply = be.add(self._total_supply, amount)
        new_balance = be.add(self._balance(self.owner), amount)
        be.require_true(be.ge(amount, 0), InvalidAmount)
        be.require_true(be.and_(be.ge(new_supply, self._total_supply), be.ge(new_balance, 0)), Overflow)
        self._total_supply = new_supply
        self._balances[self.owner] = new_balance
        ctx.emit("Mint", to=self.owner)

    def approve(self, ctx: CallContext, spender: Address, amount: EncryptedAmount) -> None:
        if not isinstance(amount, EncryptedAmount):
            raise TypeError("amount must be an EncryptedAmount")
        spender = canonical_address(spender, name="spender")
        self._allowances[(ctx.sender, spender)] = amount
        ctx.emit("Approval", owner=ctx.sender, spender=spender)

    def transfer(self, ctx: CallContext, to: Address, amount: EncryptedAmount) -> EncryptedAmount:
        """Move `amount` from the sender to `to`; returns the amount actually moved."""
        to = canonical_address(to, name="to")
        moved = self._move(ctx.sender, to, amount, self._can_debit(ctx.sender, amount))
        ctx.emit("Transfer", source=ctx.sender, to=to)
        return moved

    def transfer_from(self, ctx: CallContext, owner: Address, to: Address, amount: EncryptedAmount) -> EncryptedAmount:
        """Move `amount` from `owner` to `to` against the sender's allowance."""
        be = self._backend
        owner = canonical_address(owner, name="owner")
        to = canonical_address(to, name="to")
        allowed = self._allowance(owner, ctx.sender)
        ok = be.and_(self._can_debit(owner, amount), be.le(amount, allowed))
        moved = self._move(owner, to, amount, ok)
        self._allowances[(owner, ctx.sender)] = be.sub(allowed, moved)
        ctx.emit("Transfer", source=owner, to=to)
        return moved

    def balance_of(self, ctx: CallContext, public_key: bytes, signature: ReencryptionSignature) -> bytes:
        """The sender's balance, re-encrypted under `public_key`."""
        self._authorize_read(ctx, public_key, signature)
        return self._backend.reencrypt(self._balance(ctx.sender), public_key)

    def allowance(self, ctx: CallContext, spender: Address, public_key: bytes, signature: ReencryptionSignature) -> bytes:
        """The sender's allowance for `spender`, re-encrypted under `public_key`."""
        spender = canonical_address(spender, name="spender")
        self._authorize_read(ctx, public_key, signature)
        return self._backend.reencrypt(self._allowance(ctx.sender, spender), public_key)

    # -- simulation-only ----------------------------------------------------

    def balance_handle(self, account: Address) -> EncryptedAmount:
        """Ciphertext handle of `account`'s balance (no plaintext; used by pool-side checks and tests)."""
        return self._balance(canonical_address(account))
