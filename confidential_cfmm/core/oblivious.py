"""Shared oblivious predicates and the commit-point abort helper.

Every business rule is expressed as an `EncryptedBool`. Nothing here branches on
a plaintext: predicates are collected per abort category in a `CommitGuard` and
only turned into aborts by `CommitGuard.enforce()`, after every predicate of the
call has been computed and before any state is written.
"""

from __future__ import annotations

from typing import Dict, Tuple, Type

from ..errors import ABORT_ORDER, TransactionAborted
from ..fhe.backend import CiphertextBackend
from ..fhe.types import EncryptedAmount, EncryptedBool


def is_positive(backend: CiphertextBackend, x: EncryptedAmount) -> EncryptedBool:
    return backend.gt(x, 0)


def add_no_wrap(
    backend: CiphertextBackend, a: EncryptedAmount, b: EncryptedAmount
) -> Tuple[EncryptedAmount, EncryptedBool]:
    """`a + b` and a predicate that the sum did not wrap.

    Valid for `b >= 0`: a wrapped sum is always smaller than `a`. Callers pair
    it with a sign check on `b`.
    """
    total = backend.add(a, b)
    return total, backend.ge(total, a)


def mul_no_wrap(
    backend: CiphertextBackend, a: EncryptedAmount, b: EncryptedAmount
) -> Tuple[EncryptedAmount, EncryptedBool]:
    """`a * b` and a predicate that the product fits the signed 32-bit range.

    Valid for `a > 0, b >= 0`. Costs one ciphertext division.
    """
    product = backend.mul(a, b)
    fits = backend.and_(backend.ge(product, 0), backend.eq(backend.div(product, a), b))
    return product, fits


class CommitGuard:
    """Collects predicates per abort category for a single call."""

    def __init__(self, backend: CiphertextBackend) -> None:
        self._backend = backend
        self._checks: Dict[Type[TransactionAborted], EncryptedBool] = {}

    def require(self, error: Type[TransactionAborted], cond: EncryptedBool) -> None:
        if error not in ABORT_ORDER:
            raise ValueError(f"{error.__name__} is not an oblivious abort category")
        prev = self._checks.get(error)
        self._checks[error] = cond if prev is None else self._backend.and_(prev, cond)

    def enforce(self, *, coalesce: bool = False) -> None:
        """Abort unless every collected predicate holds.

        One `require_true` per category in `ABORT_ORDER`, or a single combined
        `require_true` raising a bare `TransactionAborted` when `coalesce` is set.
        """
        ordered = [(err, self._checks[err]) for err in ABORT_ORDER if err in self._checks]
        if not ordered:
            return
        if coalesce:
            self._backend.require_true(self._backend.all_of(*(c for _, c in ordered)), TransactionAborted)
            return
        for err, cond in ordered:
            self._backend.require_true(cond, err)
