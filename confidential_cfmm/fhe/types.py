"""Ciphertext handle types for the primitive layer.

Handles are opaque: they carry no plaintext, only a reference into the
co-processor's ciphertext store. Two kinds exist:

- `EncryptedAmount`: a signed 32-bit integer.
- `EncryptedBool`: the result of a comparison or boolean combination.

Mixing kinds is a programming error and raises `TypeError` in the backend.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union


INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
UINT32_MOD = 1 << 32

HANDLE_NBYTES = 32

_HANDLE_RE = re.compile(r"^0x[0-9a-f]{64}$")


def wrap_int32(value: int) -> int:
    """Two's-complement wrap of an arbitrary int into the signed 32-bit range."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError("value must be an int")
    return ((value - INT32_MIN) % UINT32_MOD) + INT32_MIN


def _require_handle(handle: str) -> None:
    if not isinstance(handle, str) or not _HANDLE_RE.fullmatch(handle):
        raise ValueError("handle must be a lowercase 0x-prefixed 32-byte hex string")


@dataclass(frozen=True)
class EncryptedAmount:
    handle: str

    def __post_init__(self) -> None:
        _require_handle(self.handle)

    def __repr__(self) -> str:
        return f"EncryptedAmount({self.handle[:10]}...)"


@dataclass(frozen=True)
class EncryptedBool:
    handle: str

    def __post_init__(self) -> None:
        _require_handle(self.handle)

    def __repr__(self) -> str:
        return f"EncryptedBool({self.handle[:10]}...)"


# Right-hand operand of arithmetic/comparison primitives: ciphertext or small scalar.
Operand = Union[EncryptedAmount, int]
