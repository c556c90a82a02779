"""
Persisted pool state.

Layout per pool instance: reserve_a, reserve_b, fee_a, fee_b (one ciphertext
handle each) and the owner address. All containers are frozen dataclasses;
transitions build a new `PoolState` via `dataclasses.replace()`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..fhe.backend import CiphertextBackend
from ..fhe.types import EncryptedAmount
from .accounts import Address, canonical_address
from .canonical import domain_sep_bytes, encode_bytes, hex_to_bytes_fixed, sha256_hex


POOL_STATE_ROOT_VERSION = 1


@unique
class SwapDirection(Enum):
    A_TO_B = "A_TO_B"
    B_TO_A = "B_TO_A"


@dataclass(frozen=True)
class ReservePair:
    reserve_a: EncryptedAmount
    reserve_b: EncryptedAmount


@dataclass(frozen=True)
class FeeBalances:
    fee_a: EncryptedAmount
    fee_b: EncryptedAmount


@dataclass(frozen=True)
class PoolState:
    reserves: ReservePair
    fees: FeeBalances
    owner: Address


def initial_pool_state(backend: CiphertextBackend, owner: Address) -> PoolState:
    """Empty pool: every counter is an encryption of zero."""
    return PoolState(
        reserves=ReservePair(reserve_a=backend.zero(), reserve_b=backend.zero()),
        fees=FeeBalances(fee_a=backend.zero(), fee_b=backend.zero()),
        owner=canonical_address(owner, name="owner"),
    )


def pool_state_root(state: PoolState) -> str:
    """
    Commitment over the persisted layout (handles + owner).

    Changes whenever any counter is rewritten, even to an equal plaintext,
    because every primitive result is a fresh handle.
    """
    buf = bytearray(domain_sep_bytes("pool_state_root", version=POOL_STATE_ROOT_VERSION))
    for ct in (
        state.reserves.reserve_a,
        state.reserves.reserve_b,
        state.fees.fee_a,
        state.fees.fee_b,
    ):
        buf += encode_bytes(hex_to_bytes_fixed(ct.handle, nbytes=32, name="handle"))
    buf += encode_bytes(hex_to_bytes_fixed(state.owner, nbytes=20, name="owner"))
    return sha256_hex(bytes(buf))
