"""
Reference Python kernels.

These modules are designed to be:
- deterministic (integer-only),
- easy to audit (explicit intermediate variables),
- small surface-area (pure functions, typed results).
"""
