"""
Account addresses.

Address = str  # 0x-prefixed 20-byte lowercase hex

- Wallet addresses derive from a BLS12-381 signing pubkey (48 bytes).
- Contract addresses derive from (deployer, deployment nonce).
"""

from __future__ import annotations

import hashlib

from .canonical import canonical_hex_fixed_allow_0x, domain_sep_bytes, encode_uvarint, hex_to_bytes_fixed


Address = str

ADDRESS_NBYTES = 20
PUBKEY_NBYTES = 48

ZERO_ADDRESS: Address = "0x" + "00" * ADDRESS_NBYTES


def canonical_address(value: str, *, name: str = "address") -> Address:
    return canonical_hex_fixed_allow_0x(value, nbytes=ADDRESS_NBYTES, name=name)


def address_from_pubkey(pubkey: bytes) -> Address:
    if not isinstance(pubkey, (bytes, bytearray)) or len(pubkey) != PUBKEY_NBYTES:
        raise ValueError(f"pubkey must be {PUBKEY_NBYTES} bytes")
    digest = hashlib.sha256(domain_sep_bytes("address") + bytes(pubkey)).digest()
    return "0x" + digest[-ADDRESS_NBYTES:].hex()


def contract_address(deployer: Address, nonce: int) -> Address:
    deployer_b = hex_to_bytes_fixed(canonical_address(deployer, name="deployer"), nbytes=ADDRESS_NBYTES, name="deployer")
    digest = hashlib.sha256(domain_sep_bytes("contract_address") + deployer_b + encode_uvarint(nonce)).digest()
    return "0x" + digest[-ADDRESS_NBYTES:].hex()
