"""Interface of the ciphertext primitive layer.

The pool and the token ledger only ever talk to a `CiphertextBackend`. An
implementation must keep every primitive data-oblivious: no primitive may raise
or otherwise behave differently depending on a plaintext, with the single
exception of `require_true`, which is the only channel through which a secret
predicate becomes observable (as an abort of the whole call).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Type

from .types import EncryptedAmount, EncryptedBool, Operand


class CiphertextBackend(ABC):
    """Homomorphic primitives over encrypted signed 32-bit integers."""

    # -- encryption ---------------------------------------------------------

    @abstractmethod
    def encrypt(self, value: int) -> EncryptedAmount:
        """Encrypt a plaintext int (wrapped into the signed 32-bit range)."""

    @abstractmethod
    def encrypt_bool(self, value: bool) -> EncryptedBool:
        """Encrypt a plaintext bool."""

    # -- arithmetic ---------------------------------------------------------

    @abstractmethod
    def add(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount: ...

    @abstractmethod
    def sub(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount: ...

    @abstractmethod
    def mul(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount: ...

    @abstractmethod
    def div(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount:
        """Floor division. A zero denominator yields -1 instead of failing."""

    # -- comparison ---------------------------------------------------------

    @abstractmethod
    def lt(self, a: EncryptedAmount, b: Operand) -> EncryptedBool: ...

    @abstractmethod
    def le(self, a: EncryptedAmount, b: Operand) -> EncryptedBool: ...

    @abstractmethod
    def gt(self, a: EncryptedAmount, b: Operand) -> EncryptedBool: ...

    @abstractmethod
    def ge(self, a: EncryptedAmount, b: Operand) -> EncryptedBool: ...

    @abstractmethod
    def eq(self, a: EncryptedAmount, b: Operand) -> EncryptedBool: ...

    # -- boolean ------------------------------------------------------------

    @abstractmethod
    def and_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool: ...

    @abstractmethod
    def or_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool: ...

    @abstractmethod
    def not_(self, a: EncryptedBool) -> EncryptedBool: ...

    # -- control ------------------------------------------------------------

    @abstractmethod
    def select(self, cond: EncryptedBool, a: EncryptedAmount, b: EncryptedAmount) -> EncryptedAmount:
        """Return `a` if `cond` else `b`, without revealing which."""

    @abstractmethod
    def require_true(self, cond: EncryptedBool, error: Optional[Type[Exception]] = None) -> None:
        """Abort the current call (raise `error`) unless `cond` decrypts to true."""

    # -- disclosure ---------------------------------------------------------

    @abstractmethod
    def reencrypt(self, ct: EncryptedAmount, public_key: bytes) -> bytes:
        """Re-encrypt `ct` so that only the holder of `public_key` can decrypt it."""

    # -- convenience --------------------------------------------------------

    def all_of(self, *conds: EncryptedBool) -> EncryptedBool:
        """Fold `and_` over one or more predicates."""
        if not conds:
            raise ValueError("all_of requires at least one predicate")
        acc = conds[0]
        for cond in conds[1:]:
            acc = self.and_(acc, cond)
        return acc

    def zero(self) -> EncryptedAmount:
        return self.encrypt(0)
