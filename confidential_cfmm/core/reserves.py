"""
Reserve engine: oblivious constant-product transitions.

Both planners are pure with respect to pool state: they compute the post-state
reserves and register their predicates on a `CommitGuard`, and the caller
commits only after `CommitGuard.enforce()` passes.

Swap (exact-in, fee skimmed from the output):

    reserve_in'  = reserve_in + amount_in
    reserve_out' = floor(reserve_in * reserve_out / reserve_in')
    gross_out    = reserve_out - reserve_out'
    fee          = floor(gross_out / FEE_DIVISOR)
    net_out      = gross_out - fee

The output reserve drops by the full `gross_out`; the fee is carved out of what
the trader receives, so `reserve_in' * reserve_out'` equals the pre-swap `k` up
to the single floor division.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from ..errors import InsufficientLiquidity, InvalidAmount, Overflow
from ..fhe.backend import CiphertextBackend
from ..fhe.types import EncryptedAmount, EncryptedBool
from ..state.pool import ReservePair, SwapDirection
from .oblivious import CommitGuard, add_no_wrap, is_positive, mul_no_wrap


# 5% of the gross output, truncated. Protocol constant.
FEE_DIVISOR = 20

Direction = Union[SwapDirection, EncryptedBool]


@dataclass(frozen=True)
class SwapPlan:
    reserves: ReservePair
    amount_in: EncryptedAmount
    gross_out: EncryptedAmount
    fee: EncryptedAmount
    net_out: EncryptedAmount
    direction: Direction


def _orient(backend: CiphertextBackend, reserves: ReservePair, direction: Direction) -> Tuple[EncryptedAmount, EncryptedAmount]:
    """(reserve_in, reserve_out) for `direction`."""
    if isinstance(direction, EncryptedBool):
        # true = A -> B
        return (
            backend.select(direction, reserves.reserve_a, reserves.reserve_b),
            backend.select(direction, reserves.reserve_b, reserves.reserve_a),
        )
    if direction is SwapDirection.A_TO_B:
        return reserves.reserve_a, reserves.reserve_b
    if direction is SwapDirection.B_TO_A:
        return reserves.reserve_b, reserves.reserve_a
    raise TypeError(f"direction must be SwapDirection or EncryptedBool, got {type(direction).__name__}")


def _reorient(
    backend: CiphertextBackend,
    direction: Direction,
    new_in: EncryptedAmount,
    new_out: EncryptedAmount,
) -> ReservePair:
    if isinstance(direction, EncryptedBool):
        return ReservePair(
            reserve_a=backend.select(direction, new_in, new_out),
            reserve_b=backend.select(direction, new_out, new_in),
        )
    if direction is SwapDirection.A_TO_B:
        return ReservePair(reserve_a=new_in, reserve_b=new_out)
    return ReservePair(reserve_a=new_out, reserve_b=new_in)


def plan_add_liquidity(
    backend: CiphertextBackend,
    reserves: ReservePair,
    amount_a: EncryptedAmount,
    amount_b: EncryptedAmount,
    guard: CommitGuard,
) -> ReservePair:
    """
    Unconditional additive top-up of both reserves (no ratio rebalancing).

    Stricter than a per-reserve bound: the new product `reserve_a * reserve_b`
    must also fit the signed 32-bit range, otherwise every later swap quote and
    `get_constant_product` would wrap. `(100000, 100000)` is rejected with
    `Overflow` even though each reserve alone fits.
    """
    guard.require(InvalidAmount, backend.and_(is_positive(backend, amount_a), is_positive(backend, amount_b)))

    new_a, a_ok = add_no_wrap(backend, reserves.reserve_a, amount_a)
    new_b, b_ok = add_no_wrap(backend, reserves.reserve_b, amount_b)
    # k must stay representable: it is disclosed as a ciphertext and feeds every swap quote.
    _k, k_ok = mul_no_wrap(backend, new_a, new_b)
    guard.require(Overflow, backend.all_of(a_ok, b_ok, k_ok))

    return ReservePair(reserve_a=new_a, reserve_b=new_b)


def plan_swap(
    backend: CiphertextBackend,
    reserves: ReservePair,
    direction: Direction,
    amount_in: EncryptedAmount,
    guard: CommitGuard,
) -> SwapPlan:
    reserve_in, reserve_out = _orient(backend, reserves, direction)

    guard.require(InvalidAmount, is_positive(backend, amount_in))

    new_in, in_ok = add_no_wrap(backend, reserve_in, amount_in)
    guard.require(Overflow, in_ok)

    k = backend.mul(reserve_in, reserve_out)
    new_out = backend.div(k, new_in)
    gross_out = backend.sub(reserve_out, new_out)
    guard.require(
        InsufficientLiquidity,
        backend.and_(is_positive(backend, new_out), is_positive(backend, gross_out)),
    )

    fee = backend.div(gross_out, FEE_DIVISOR)
    net_out = backend.sub(gross_out, fee)

    return SwapPlan(
        reserves=_reorient(backend, direction, new_in, new_out),
        amount_in=amount_in,
        gross_out=gross_out,
        fee=fee,
        net_out=net_out,
        direction=direction,
    )


def constant_product(backend: CiphertextBackend, reserves: ReservePair) -> EncryptedAmount:
    return backend.mul(reserves.reserve_a, reserves.reserve_b)
