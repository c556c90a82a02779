"""
Confidential constant-product pool (two assets).

Entry points (all take the runtime `CallContext` first):

- `add_liquidity(amount_a, amount_b)`
- `swap(direction, amount_in) -> net_out`
- `withdraw_fee(to)`                                  (owner only)
- `get_reserve_a / get_reserve_b / get_constant_product / get_fee_balances`
  (owner only, re-encrypted under the requester's key)

Each state-changing call follows the same shape: pull funds, plan the
transition, make payouts, enforce every predicate at a single commit point,
then write the new `PoolState`. Atomicity across the token ledgers comes from
the runtime, which rolls back every contract when a call aborts.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple, Union

from ..errors import TransferFailed
from ..fhe.capability import ReencryptionSignature
from ..fhe.types import EncryptedAmount, EncryptedBool
from ..integration.runtime import CallContext
from ..integration.token import ConfidentialToken
from ..state.accounts import Address, canonical_address
from ..state.pool import PoolState, SwapDirection, initial_pool_state, pool_state_root
from .config import PoolConfig
from .disclosure import DisclosureGate, require_owner
from .fees import credit_fee, drain_fees
from .oblivious import CommitGuard
from .reserves import Direction, constant_product, plan_add_liquidity, plan_swap


logger = logging.getLogger(__name__)


class ConfidentialCFMM:
    def __init__(
        self,
        ctx: CallContext,
        token_a: ConfidentialToken,
        token_b: ConfidentialToken,
        config: Optional[PoolConfig] = None,
    ) -> None:
        if token_a.address == token_b.address:
            raise ValueError("token_a and token_b must be distinct")
        self.address = ctx.contract
        self.token_a = token_a
        self.token_b = token_b
        self.config = config or PoolConfig()
        self._backend = ctx.backend
        self._gate = DisclosureGate(self._backend)
        self._state = initial_pool_state(self._backend, ctx.sender)

    def __repr__(self) -> str:
        return f"ConfidentialCFMM({self.token_a.symbol}/{self.token_b.symbol} at {self.address})"

    # -- runtime hooks ------------------------------------------------------

    def snapshot(self) -> PoolState:
        return self._state

    def restore(self, snap: PoolState) -> None:
        self._state = snap

    @property
    def owner(self) -> Address:
        return self._state.owner

    @property
    def state(self) -> PoolState:
        return self._state

    def state_root(self) -> str:
        return pool_state_root(self._state)

    # -- internals ----------------------------------------------------------

    def _guard(self) -> CommitGuard:
        return CommitGuard(self._backend)

    def _direction(self, direction: Union[SwapDirection, EncryptedBool]) -> Direction:
        if isinstance(direction, EncryptedBool):
            if not self.config.confidential_direction:
                raise TypeError("encrypted swap direction requires PoolConfig.confidential_direction")
            return direction
        if not isinstance(direction, SwapDirection):
            raise TypeError(f"direction must be SwapDirection, got {type(direction).__name__}")
        if self.config.confidential_direction:
            return self._backend.encrypt_bool(direction is SwapDirection.A_TO_B)
        return direction

    def _pull(self, ctx: CallContext, token: ConfidentialToken, amount: EncryptedAmount) -> EncryptedAmount:
        return token.transfer_from(ctx.subcall(token.address), ctx.sender, self.address, amount)

    def _pay(self, ctx: CallContext, token: ConfidentialToken, to: Address, amount: EncryptedAmount) -> EncryptedAmount:
        return token.transfer(ctx.subcall(token.address), to, amount)

    @staticmethod
    def _require_amount(name: str, value: EncryptedAmount) -> None:
        if not isinstance(value, EncryptedAmount):
            raise TypeError(f"{name} must be an EncryptedAmount")

    # -- reserve engine -----------------------------------------------------

    def add_liquidity(self, ctx: CallContext, amount_a: EncryptedAmount, amount_b: EncryptedAmount) -> None:
        self._require_amount("amount_a", amount_a)
        self._require_amount("amount_b", amount_b)
        be = self._backend
        guard = self._guard()

        pulled_a = self._pull(ctx, self.token_a, amount_a)
        pulled_b = self._pull(ctx, self.token_b, amount_b)
        guard.require(TransferFailed, be.and_(be.eq(pulled_a, amount_a), be.eq(pulled_b, amount_b)))

        reserves = plan_add_liquidity(be, self._state.reserves, amount_a, amount_b, guard)

        guard.enforce(coalesce=self.config.coalesce_aborts)
        self._state = replace(self._state, reserves=reserves)
        ctx.emit("LiquidityAdded", provider=ctx.sender)
        logger.info("add_liquidity committed pool=%s provider=%s", self.address, ctx.sender)

    def swap(
        self,
        ctx: CallContext,
        direction: Union[SwapDirection, EncryptedBool],
        amount_in: EncryptedAmount,
    ) -> EncryptedAmount:
        """Exact-in swap; returns the net output credited to the caller."""
        self._require_amount("amount_in", amount_in)
        direction = self._direction(direction)
        be = self._backend
        guard = self._guard()

        if isinstance(direction, EncryptedBool):
            zero = be.zero()
            want_a = be.select(direction, amount_in, zero)
            want_b = be.select(direction, zero, amount_in)
            pulled_a = self._pull(ctx, self.token_a, want_a)
            pulled_b = self._pull(ctx, self.token_b, want_b)
            pull_ok = be.and_(be.eq(pulled_a, want_a), be.eq(pulled_b, want_b))
        else:
            token_in = self.token_a if direction is SwapDirection.A_TO_B else self.token_b
            pull_ok = be.eq(self._pull(ctx, token_in, amount_in), amount_in)
        guard.require(TransferFailed, pull_ok)

        plan = plan_swap(be, self._state.reserves, direction, amount_in, guard)
        fees = credit_fee(be, self._state.fees, direction, plan.fee, guard)

        if isinstance(direction, EncryptedBool):
            zero = be.zero()
            pay_a = be.select(direction, zero, plan.net_out)
            pay_b = be.select(direction, plan.net_out, zero)
            paid_a = self._pay(ctx, self.token_a, ctx.sender, pay_a)
            paid_b = self._pay(ctx, self.token_b, ctx.sender, pay_b)
            pay_ok = be.and_(be.eq(paid_a, pay_a), be.eq(paid_b, pay_b))
        else:
            token_out = self.token_b if direction is SwapDirection.A_TO_B else self.token_a
            pay_ok = be.eq(self._pay(ctx, token_out, ctx.sender, plan.net_out), plan.net_out)
        guard.require(TransferFailed, pay_ok)

        guard.enforce(coalesce=self.config.coalesce_aborts)
        self._state = replace(self._state, reserves=plan.reserves, fees=fees)

        public_direction = direction.value if isinstance(direction, SwapDirection) else None
        ctx.emit("Swap", trader=ctx.sender, direction=public_direction)
        logger.info("swap committed pool=%s trader=%s direction=%s", self.address, ctx.sender, public_direction or "<encrypted>")
        return plan.net_out

    # -- fee ledger ---------------------------------------------------------

    def withdraw_fee(self, ctx: CallContext, to: Address) -> None:
        require_owner(ctx, self._state.owner)
        to = canonical_address(to, name="to")
        if to == self.address:
            raise ValueError("fees cannot be withdrawn to the pool itself")
        be = self._backend
        guard = self._guard()

        payout, zeroed = drain_fees(be, self._state.fees, guard)
        paid_a = self._pay(ctx, self.token_a, to, payout.fee_a)
        paid_b = self._pay(ctx, self.token_b, to, payout.fee_b)
        guard.require(TransferFailed, be.and_(be.eq(paid_a, payout.fee_a), be.eq(paid_b, payout.fee_b)))

        guard.enforce(coalesce=self.config.coalesce_aborts)
        self._state = replace(self._state, fees=zeroed)
        ctx.emit("FeesWithdrawn", to=to)
        logger.info("withdraw_fee committed pool=%s to=%s", self.address, to)

    # -- disclosure gate ----------------------------------------------------

    def get_reserve_a(self, ctx: CallContext, public_key: bytes, signature: ReencryptionSignature) -> bytes:
        disclosure = self._gate.authorize(ctx, self._state.owner, public_key, signature)
        return disclosure.reveal(self._state.reserves.reserve_a)

    def get_reserve_b(self, ctx: CallContext, public_key: bytes, signature: ReencryptionSignature) -> bytes:
        disclosure = self._gate.authorize(ctx, self._state.owner, public_key, signature)
        return disclosure.reveal(self._state.reserves.reserve_b)

    def get_constant_product(self, ctx: CallContext, public_key: bytes, signature: ReencryptionSignature) -> bytes:
        disclosure = self._gate.authorize(ctx, self._state.owner, public_key, signature)
        # Recomputed on every call; there is no stored k.
        return disclosure.reveal(constant_product(self._backend, self._state.reserves))

    def get_fee_balances(
        self, ctx: CallContext, public_key: bytes, signature: ReencryptionSignature
    ) -> Tuple[bytes, bytes]:
        disclosure = self._gate.authorize(ctx, self._state.owner, public_key, signature)
        return disclosure.reveal(self._state.fees.fee_a), disclosure.reveal(self._state.fees.fee_b)
