"""
Persisted state and canonical encodings for the confidential pool
"""

from .accounts import Address, ZERO_ADDRESS, address_from_pubkey, canonical_address, contract_address
from .pool import FeeBalances, PoolState, ReservePair, SwapDirection, initial_pool_state, pool_state_root

__all__ = [
    "Address",
    "ZERO_ADDRESS",
    "address_from_pubkey",
    "canonical_address",
    "contract_address",
    "FeeBalances",
    "PoolState",
    "ReservePair",
    "SwapDirection",
    "initial_pool_state",
    "pool_state_root",
]
