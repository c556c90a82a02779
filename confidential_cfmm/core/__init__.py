"""
Core pool algorithms: reserve engine, fee ledger, disclosure gate
"""

from .config import PoolConfig
from .disclosure import Disclosure, DisclosureGate, require_owner
from .fees import credit_fee, drain_fees
from .oblivious import CommitGuard, add_no_wrap, is_positive, mul_no_wrap
from .pool import ConfidentialCFMM
from .reserves import FEE_DIVISOR, SwapPlan, constant_product, plan_add_liquidity, plan_swap

__all__ = [
    "PoolConfig",
    "Disclosure",
    "DisclosureGate",
    "require_owner",
    "credit_fee",
    "drain_fees",
    "CommitGuard",
    "add_no_wrap",
    "is_positive",
    "mul_no_wrap",
    "ConfidentialCFMM",
    "FEE_DIVISOR",
    "SwapPlan",
    "constant_product",
    "plan_add_liquidity",
    "plan_swap",
]
