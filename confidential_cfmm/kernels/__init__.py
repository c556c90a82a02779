"""
Kernel layer.

`confidential_cfmm/kernels/python/` holds plain-integer reference kernels that
spell out, step by step, what the ciphertext pipeline computes. The pool is
parity-tested against them.
"""
