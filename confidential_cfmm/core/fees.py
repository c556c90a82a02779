"""
Fee ledger: two encrypted counters, one per asset.

Credits come only from swaps (the skimmed fee of the output asset); the only
debit is a withdrawal, which zeroes both counters. Balances stay non-negative by
construction: a credited fee is `floor(gross_out / 20)` of a positive
`gross_out`, and a withdrawal never subtracts.
"""

from __future__ import annotations

from typing import Tuple

from ..errors import NothingToWithdraw, Overflow
from ..fhe.backend import CiphertextBackend
from ..fhe.types import EncryptedAmount, EncryptedBool
from ..state.pool import FeeBalances, SwapDirection
from .oblivious import CommitGuard, add_no_wrap
from .reserves import Direction


def credit_fee(
    backend: CiphertextBackend,
    fees: FeeBalances,
    direction: Direction,
    fee: EncryptedAmount,
    guard: CommitGuard,
) -> FeeBalances:
    """Credit `fee` to the output asset of `direction`."""
    if isinstance(direction, EncryptedBool):
        zero = backend.zero()
        # A -> B pays out B, so the fee accrues to fee_b.
        fee_a, a_ok = add_no_wrap(backend, fees.fee_a, backend.select(direction, zero, fee))
        fee_b, b_ok = add_no_wrap(backend, fees.fee_b, backend.select(direction, fee, zero))
        guard.require(Overflow, backend.and_(a_ok, b_ok))
        return FeeBalances(fee_a=fee_a, fee_b=fee_b)

    if direction is SwapDirection.A_TO_B:
        fee_b, ok = add_no_wrap(backend, fees.fee_b, fee)
        guard.require(Overflow, ok)
        return FeeBalances(fee_a=fees.fee_a, fee_b=fee_b)
    if direction is SwapDirection.B_TO_A:
        fee_a, ok = add_no_wrap(backend, fees.fee_a, fee)
        guard.require(Overflow, ok)
        return FeeBalances(fee_a=fee_a, fee_b=fees.fee_b)
    raise TypeError(f"direction must be SwapDirection or EncryptedBool, got {type(direction).__name__}")


def drain_fees(
    backend: CiphertextBackend,
    fees: FeeBalances,
    guard: CommitGuard,
) -> Tuple[FeeBalances, FeeBalances]:
    """Return (payout, zeroed balances); requires at least one non-zero balance."""
    guard.require(NothingToWithdraw, backend.or_(backend.gt(fees.fee_a, 0), backend.gt(fees.fee_b, 0)))
    return fees, FeeBalances(fee_a=backend.zero(), fee_b=backend.zero())
