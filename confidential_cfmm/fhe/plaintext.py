"""
Simulation backend for the ciphertext primitive layer.

`PlaintextBackend` stands in for the encryption co-processor during local
development and tests. Plaintexts live in a private handle table; callers only
ever see opaque handles. Semantics match the on-chain primitives:

- integers are signed 32-bit with two's-complement wrap-around,
- division is floor division, and a zero denominator yields -1,
- `require_true` is the only primitive that can raise on a secret value.

Re-encryption is real (see `reencrypt.py`), so disclosed values can only be
read by the holder of the requester's secret key.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Dict, Optional, Tuple, Type, Union

from ..errors import TransactionAborted
from ..state.canonical import domain_sep_bytes, encode_uvarint
from .backend import CiphertextBackend
from .reencrypt import reencrypt_value
from .types import EncryptedAmount, EncryptedBool, Operand, wrap_int32


_KIND_INT = "int32"
_KIND_BOOL = "bool"

_HANDLE_DOMAIN = domain_sep_bytes("ciphertext_handle", version=1)


class PlaintextBackend(CiphertextBackend):
    """
    In-memory handle table keyed by opaque handles.

    The table only grows. Handles minted inside a call that later aborts stay
    resolvable; nothing references them once the runtime restores its
    snapshots, and for a simulation the leak is bounded by the test run.
    """

    def __init__(self, *, handle_salt: Optional[bytes] = None) -> None:
        self._salt = secrets.token_bytes(32) if handle_salt is None else bytes(handle_salt)
        self._counter = 0
        self._table: Dict[str, Tuple[str, int]] = {}
        # Cost counters for the two expensive primitives (ciphertext-denominator
        # division and re-encryption).
        self.reencrypt_count = 0
        self.div_count = 0

    # -- handle table -------------------------------------------------------

    def _new_handle(self, kind: str, value: int) -> str:
        self._counter += 1
        handle = "0x" + hashlib.sha256(_HANDLE_DOMAIN + self._salt + encode_uvarint(self._counter)).hexdigest()
        self._table[handle] = (kind, value)
        return handle

    def _int(self, value: int) -> EncryptedAmount:
        return EncryptedAmount(self._new_handle(_KIND_INT, wrap_int32(value)))

    def _bool(self, value: bool) -> EncryptedBool:
        return EncryptedBool(self._new_handle(_KIND_BOOL, 1 if value else 0))

    def _load_int(self, ct: EncryptedAmount) -> int:
        if not isinstance(ct, EncryptedAmount):
            raise TypeError(f"expected EncryptedAmount, got {type(ct).__name__}")
        entry = self._table.get(ct.handle)
        if entry is None:
            raise KeyError(f"unknown ciphertext handle: {ct.handle}")
        kind, value = entry
        if kind != _KIND_INT:
            raise TypeError("handle does not reference an int32 ciphertext")
        return value

    def _load_bool(self, ct: EncryptedBool) -> bool:
        if not isinstance(ct, EncryptedBool):
            raise TypeError(f"expected EncryptedBool, got {type(ct).__name__}")
        entry = self._table.get(ct.handle)
        if entry is None:
            raise KeyError(f"unknown ciphertext handle: {ct.handle}")
        kind, value = entry
        if kind != _KIND_BOOL:
            raise TypeError("handle does not reference a bool ciphertext")
        return value == 1

    def _operand(self, b: Operand) -> int:
        if isinstance(b, EncryptedAmount):
            return self._load_int(b)
        if isinstance(b, int) and not isinstance(b, bool):
            return wrap_int32(b)
        raise TypeError(f"operand must be EncryptedAmount or int, got {type(b).__name__}")

    # -- encryption ---------------------------------------------------------

    def encrypt(self, value: int) -> EncryptedAmount:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("value must be an int")
        return self._int(value)

    def encrypt_bool(self, value: bool) -> EncryptedBool:
        if not isinstance(value, bool):
            raise TypeError("value must be a bool")
        return self._bool(value)

    # -- arithmetic ---------------------------------------------------------

    def add(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount:
        return self._int(self._load_int(a) + self._operand(b))

    def sub(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount:
        return self._int(self._load_int(a) - self._operand(b))

    def mul(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount:
        return self._int(self._load_int(a) * self._operand(b))

    def div(self, a: EncryptedAmount, b: Operand) -> EncryptedAmount:
        if isinstance(b, EncryptedAmount):
            self.div_count += 1
        num = self._load_int(a)
        den = self._operand(b)
        if den == 0:
            return self._int(-1)
        return self._int(num // den)

    # -- comparison ---------------------------------------------------------

    def lt(self, a: EncryptedAmount, b: Operand) -> EncryptedBool:
        return self._bool(self._load_int(a) < self._operand(b))

    def le(self, a: EncryptedAmount, b: Operand) -> EncryptedBool:
        return self._bool(self._load_int(a) <= self._operand(b))

    def gt(self, a: EncryptedAmount, b: Operand) -> EncryptedBool:
        return self._bool(self._load_int(a) > self._operand(b))

    def ge(self, a: EncryptedAmount, b: Operand) -> EncryptedBool:
        return self._bool(self._load_int(a) >= self._operand(b))

    def eq(self, a: EncryptedAmount, b: Operand) -> EncryptedBool:
        return self._bool(self._load_int(a) == self._operand(b))

    # -- boolean ------------------------------------------------------------

    def and_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool:
        x, y = self._load_bool(a), self._load_bool(b)
        return self._bool(x and y)

    def or_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool:
        x, y = self._load_bool(a), self._load_bool(b)
        return self._bool(x or y)

    def not_(self, a: EncryptedBool) -> EncryptedBool:
        return self._bool(not self._load_bool(a))

    # -- control ------------------------------------------------------------

    def select(self, cond: EncryptedBool, a: EncryptedAmount, b: EncryptedAmount) -> EncryptedAmount:
        c = self._load_bool(cond)
        va = self._load_int(a)
        vb = self._load_int(b)
        return self._int(va if c else vb)

    def require_true(self, cond: EncryptedBool, error: Optional[Type[Exception]] = None) -> None:
        if not self._load_bool(cond):
            raise (error or TransactionAborted)("require_true failed")

    # -- disclosure ---------------------------------------------------------

    def reencrypt(self, ct: EncryptedAmount, public_key: bytes) -> bytes:
        self.reencrypt_count += 1
        return reencrypt_value(self._load_int(ct), public_key)

    # -- simulation-only ----------------------------------------------------

    def debug_decrypt(self, ct: Union[EncryptedAmount, EncryptedBool]) -> Union[int, bool]:
        """Read a plaintext directly. Simulation only; a real co-processor has no equivalent."""
        if isinstance(ct, EncryptedBool):
            return self._load_bool(ct)
        return self._load_int(ct)

    def handle_count(self) -> int:
        return len(self._table)
