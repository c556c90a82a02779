"""
Simulated collaborators: transaction runtime and confidential token ledger
"""

from .runtime import DEFAULT_CHAIN_ID, CallContext, Event, Runtime
from .token import ConfidentialToken

__all__ = [
    "DEFAULT_CHAIN_ID",
    "CallContext",
    "Event",
    "Runtime",
    "ConfidentialToken",
]
