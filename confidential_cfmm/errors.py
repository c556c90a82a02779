"""Exception types for aborted pool and ledger calls.

Every abort is a `TransactionAborted`; the runtime restores all contract state
when one propagates out of a call. Subclasses name the business rule that
failed. Under `PoolConfig.coalesce_aborts` the pool raises the bare base class
so the reason stays undisclosed.
"""

from __future__ import annotations


class TransactionAborted(Exception):
    """Raised when a call must be rolled back in full."""


class InvalidAmount(TransactionAborted):
    """An input amount is zero or negative."""


class Overflow(TransactionAborted):
    """A reserve, the constant product, or a fee balance would leave the signed 32-bit range."""


class InsufficientLiquidity(TransactionAborted):
    """A swap output or resulting reserve would be non-positive."""


class Unauthorized(TransactionAborted):
    """Owner-only call by another sender, or an invalid re-encryption capability."""


class NothingToWithdraw(TransactionAborted):
    """Fee withdrawal requested while both fee balances are zero."""


class TransferFailed(TransactionAborted):
    """The token ledger moved less than the requested amount."""


ABORT_ORDER: tuple[type[TransactionAborted], ...] = (
    InvalidAmount,
    Overflow,
    InsufficientLiquidity,
    NothingToWithdraw,
    TransferFailed,
)
