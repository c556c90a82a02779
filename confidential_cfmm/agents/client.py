"""
Client-side helpers: wallets, capability signing and pool workflows.

A `Wallet` holds two keys derived from one seed:

- a BLS12-381 signing key; its pubkey determines the wallet address and signs
  re-encryption capabilities,
- a viewing keypair that disclosed values are re-encrypted under.

`PoolSession` bundles the multi-step workflows a pool user runs (approve then
add liquidity, approve then swap, read back re-encrypted values).
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from py_ecc.bls import G2Basic

from ..core.pool import ConfidentialCFMM
from ..fhe.backend import CiphertextBackend
from ..fhe.capability import ReencryptionSignature, sign_permit
from ..fhe.reencrypt import ReencryptionKeypair
from ..fhe.types import INT32_MAX, INT32_MIN, EncryptedAmount
from ..integration.runtime import Runtime
from ..integration.token import ConfidentialToken
from ..state.accounts import Address, address_from_pubkey, canonical_address
from ..state.canonical import domain_sep_bytes
from ..state.pool import SwapDirection


logger = logging.getLogger(__name__)


def encrypt_amount(backend: CiphertextBackend, value: int) -> EncryptedAmount:
    """Encrypt a client-side input amount."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError("value must be an int")
    if not (INT32_MIN <= value <= INT32_MAX):
        raise ValueError("value must fit the signed 32-bit range")
    return backend.encrypt(value)


def decrypt(keypair: ReencryptionKeypair, reencrypted: bytes) -> int:
    return keypair.decrypt(reencrypted)


@dataclass(frozen=True)
class Wallet:
    signing_key: int
    pubkey: bytes
    viewing: ReencryptionKeypair

    def __repr__(self) -> str:
        return f"Wallet({self.address})"

    @property
    def address(self) -> Address:
        return address_from_pubkey(self.pubkey)

    @classmethod
    def from_seed(cls, seed: bytes) -> "Wallet":
        """Deterministic wallet; `seed` must be at least 32 bytes (BLS KeyGen requirement)."""
        if not isinstance(seed, (bytes, bytearray)) or len(seed) < 32:
            raise ValueError("seed must be at least 32 bytes")
        sk = G2Basic.KeyGen(bytes(seed))
        viewing_seed = hashlib.sha256(domain_sep_bytes("wallet_viewing_key") + bytes(seed)).digest()
        return cls(
            signing_key=sk,
            pubkey=bytes(G2Basic.SkToPk(sk)),
            viewing=ReencryptionKeypair.generate(viewing_seed),
        )

    def sign_reencryption(
        self,
        *,
        chain_id: str,
        contract: Address,
        public_key: Optional[bytes] = None,
    ) -> ReencryptionSignature:
        """Capability for `contract` to re-encrypt under `public_key` (default: own viewing key)."""
        pk = self.viewing.public_key if public_key is None else public_key
        return sign_permit(self.signing_key, chain_id=chain_id, verifying_contract=contract, public_key=pk)


class PoolSession:
    """A wallet's view of one pool deployed on a runtime."""

    def __init__(self, runtime: Runtime, pool: ConfidentialCFMM, wallet: Wallet) -> None:
        self.runtime = runtime
        self.pool = pool
        self.wallet = wallet

    @property
    def address(self) -> Address:
        return self.wallet.address

    def encrypt(self, value: int) -> EncryptedAmount:
        return encrypt_amount(self.runtime.backend, value)

    def _amount(self, value: Union[int, EncryptedAmount]) -> EncryptedAmount:
        return value if isinstance(value, EncryptedAmount) else self.encrypt(value)

    def _permit(self, contract: Address) -> Tuple[bytes, ReencryptionSignature]:
        pk = self.wallet.viewing.public_key
        return pk, self.wallet.sign_reencryption(chain_id=self.runtime.chain_id, contract=contract, public_key=pk)

    def _token(self, asset: str) -> ConfidentialToken:
        if asset == "A":
            return self.pool.token_a
        if asset == "B":
            return self.pool.token_b
        raise ValueError("asset must be 'A' or 'B'")

    # -- token ledger -------------------------------------------------------

    def mint(self, asset: str, amount: Union[int, EncryptedAmount]) -> None:
        token = self._token(asset)
        self.runtime.transact(self.address, token.mint, self._amount(amount))

    def approve(self, asset: str, amount: Union[int, EncryptedAmount]) -> None:
        token = self._token(asset)
        self.runtime.transact(self.address, token.approve, self.pool.address, self._amount(amount))

    def balance(self, asset: str) -> int:
        token = self._token(asset)
        pk, permit = self._permit(token.address)
        payload = self.runtime.call(self.address, token.balance_of, pk, permit)
        return decrypt(self.wallet.viewing, payload)

    def allowance(self, asset: str, spender: Optional[Address] = None) -> int:
        token = self._token(asset)
        spender = self.pool.address if spender is None else canonical_address(spender, name="spender")
        pk, permit = self._permit(token.address)
        payload = self.runtime.call(self.address, token.allowance, spender, pk, permit)
        return decrypt(self.wallet.viewing, payload)

    # -- pool workflows -----------------------------------------------------

    def add_liquidity(self, amount_a: Union[int, EncryptedAmount], amount_b: Union[int, EncryptedAmount]) -> None:
        ct_a, ct_b = self._amount(amount_a), self._amount(amount_b)
        self.approve("A", ct_a)
        self.approve("B", ct_b)
        self.runtime.transact(self.address, self.pool.add_liquidity, ct_a, ct_b)
        logger.debug("session %s added liquidity to %s", self.address, self.pool.address)

    def swap(
        self,
        direction: SwapDirection,
        amount_in: Union[int, EncryptedAmount],
        *,
        hide_direction: bool = False,
    ) -> EncryptedAmount:
        """
        Approve and swap. With `hide_direction`, the direction is sent encrypted
        and the same allowance is granted on both tokens, so neither the approval
        nor the call reveals which asset goes in. Both allowances are reset to an
        encrypted zero afterwards, whether or not the swap commits, so the unused
        token is not left with a standing approval.
        """
        ct_in = self._amount(amount_in)
        if not hide_direction:
            self.approve("A" if direction is SwapDirection.A_TO_B else "B", ct_in)
            return self.runtime.transact(self.address, self.pool.swap, direction, ct_in)

        self.approve("A", ct_in)
        self.approve("B", ct_in)
        enc_dir = self.runtime.backend.encrypt_bool(direction is SwapDirection.A_TO_B)
        try:
            return self.runtime.transact(self.address, self.pool.swap, enc_dir, ct_in)
        finally:
            self.approve("A", self.encrypt(0))
            self.approve("B", self.encrypt(0))

    def withdraw_fee(self, to: Optional[Address] = None) -> None:
        self.runtime.transact(self.address, self.pool.withdraw_fee, self.address if to is None else to)

    # -- disclosure ---------------------------------------------------------

    def reserves(self) -> Tuple[int, int]:
        pk, permit = self._permit(self.pool.address)
        a = self.runtime.call(self.address, self.pool.get_reserve_a, pk, permit)
        b = self.runtime.call(self.address, self.pool.get_reserve_b, pk, permit)
        return decrypt(self.wallet.viewing, a), decrypt(self.wallet.viewing, b)

    def constant_product(self) -> int:
        pk, permit = self._permit(self.pool.address)
        return decrypt(self.wallet.viewing, self.runtime.call(self.address, self.pool.get_constant_product, pk, permit))

    def fee_balances(self) -> Tuple[int, int]:
        pk, permit = self._permit(self.pool.address)
        fee_a, fee_b = self.runtime.call(self.address, self.pool.get_fee_balances, pk, permit)
        return decrypt(self.wallet.viewing, fee_a), decrypt(self.wallet.viewing, fee_b)
