"""
Confidential CFMM reference kernel (plain integers).

This is the computation every ciphertext result must match bit-for-bit:

    reserve_in'  = reserve_in + amount_in
    reserve_out' = floor(reserve_in * reserve_out / reserve_in')
    gross_out    = reserve_out - reserve_out'
    fee          = floor(gross_out / 20)
    net_out      = gross_out - fee

All values live in the signed 32-bit range. The kernel raises
`ReferenceRejection` with one of the `REASON_*` tags where the pool aborts.
"""

from __future__ import annotations

from dataclasses import dataclass


INT32_MAX = (1 << 31) - 1

FEE_DIVISOR = 20

REASON_INVALID_AMOUNT = "invalid_amount"
REASON_OVERFLOW = "overflow"
REASON_INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"


class ReferenceRejection(ValueError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_reserve(name: str, value: int) -> None:
    _require_int(name, value)
    if not (0 <= value <= INT32_MAX):
        raise ValueError(f"{name} must be in [0, {INT32_MAX}]")


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    gross_out: int
    fee: int
    net_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class LiquidityQuote:
    new_reserve_a: int
    new_reserve_b: int
    k_after: int


def compute_fee(gross_out: int) -> int:
    """`fee = floor(gross_out / 20)`."""
    _require_int("gross_out", gross_out)
    if gross_out < 0:
        raise ValueError("gross_out must be non-negative")
    return gross_out // FEE_DIVISOR


def quote_swap(*, reserve_in: int, reserve_out: int, amount_in: int) -> SwapQuote:
    _require_reserve("reserve_in", reserve_in)
    _require_reserve("reserve_out", reserve_out)
    _require_int("amount_in", amount_in)

    if amount_in <= 0:
        raise ReferenceRejection(REASON_INVALID_AMOUNT)

    new_reserve_in = reserve_in + amount_in
    if new_reserve_in > INT32_MAX:
        raise ReferenceRejection(REASON_OVERFLOW)

    k_before = reserve_in * reserve_out
    new_reserve_out = k_before // new_reserve_in
    gross_out = reserve_out - new_reserve_out
    if new_reserve_out <= 0 or gross_out <= 0:
        raise ReferenceRejection(REASON_INSUFFICIENT_LIQUIDITY)

    fee = compute_fee(gross_out)
    return SwapQuote(
        amount_in=amount_in,
        gross_out=gross_out,
        fee=fee,
        net_out=gross_out - fee,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=new_reserve_in * new_reserve_out,
    )


def quote_add_liquidity(*, reserve_a: int, reserve_b: int, amount_a: int, amount_b: int) -> LiquidityQuote:
    _require_reserve("reserve_a", reserve_a)
    _require_reserve("reserve_b", reserve_b)
    _require_int("amount_a", amount_a)
    _require_int("amount_b", amount_b)

    if amount_a <= 0 or amount_b <= 0:
        raise ReferenceRejection(REASON_INVALID_AMOUNT)

    new_a = reserve_a + amount_a
    new_b = reserve_b + amount_b
    if new_a > INT32_MAX or new_b > INT32_MAX or new_a * new_b > INT32_MAX:
        raise ReferenceRejection(REASON_OVERFLOW)

    return LiquidityQuote(new_reserve_a=new_a, new_reserve_b=new_b, k_after=new_a * new_b)
