"""
Client-side helpers for pool users
"""

from .client import PoolSession, Wallet, decrypt, encrypt_amount

__all__ = [
    "PoolSession",
    "Wallet",
    "decrypt",
    "encrypt_amount",
]
