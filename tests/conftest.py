from __future__ import annotations

from typing import Callable, Optional, Tuple

import pytest

from confidential_cfmm.core.config import PoolConfig
from confidential_cfmm.core.pool import ConfidentialCFMM
from confidential_cfmm.fhe.plaintext import PlaintextBackend
from confidential_cfmm.fhe.types import EncryptedAmount
from confidential_cfmm.integration.runtime import Runtime
from confidential_cfmm.integration.token import ConfidentialToken
from confidential_cfmm.state.accounts import Address
from confidential_cfmm.state.pool import SwapDirection


OWNER: Address = "0x" + "0a" * 20
ALICE: Address = "0x" + "a1" * 20
BOB: Address = "0x" + "b0" * 20


class PoolHarness:
    """Drives a pool through the runtime with plain addresses; reads plaintexts via debug_decrypt."""

    def __init__(self, runtime: Runtime, pool: ConfidentialCFMM) -> None:
        self.runtime = runtime
        self.backend: PlaintextBackend = runtime.backend
        self.pool = pool

    def enc(self, value: int) -> EncryptedAmount:
        return self.backend.encrypt(value)

    def dec(self, ct) -> int:
        return self.backend.debug_decrypt(ct)

    def token(self, asset: str) -> ConfidentialToken:
        return {"A": self.pool.token_a, "B": self.pool.token_b}[asset]

    def fund(self, user: Address, amount_a: int = 0, amount_b: int = 0) -> None:
        for asset, amount in (("A", amount_a), ("B", amount_b)):
            if amount:
                token = self.token(asset)
                self.runtime.transact(token.owner, token.mint, self.enc(amount))
                if user != token.owner:
                    self.runtime.transact(token.owner, token.transfer, user, self.enc(amount))

    def approve(self, user: Address, asset: str, amount: int) -> None:
        token = self.token(asset)
        self.runtime.transact(user, token.approve, self.pool.address, self.enc(amount))

    def add_liquidity(self, user: Address, amount_a: int, amount_b: int, *, fund: bool = True) -> None:
        if fund:
            self.fund(user, max(amount_a, 0), max(amount_b, 0))
        self.approve(user, "A", amount_a)
        self.approve(user, "B", amount_b)
        self.runtime.transact(user, self.pool.add_liquidity, self.enc(amount_a), self.enc(amount_b))

    def swap(self, user: Address, direction: SwapDirection, amount_in: int, *, fund: bool = True) -> int:
        asset_in = "A" if direction is SwapDirection.A_TO_B else "B"
        if fund and amount_in > 0:
            self.fund(user, **{f"amount_{asset_in.lower()}": amount_in})
        self.approve(user, asset_in, amount_in)
        net_out = self.runtime.transact(user, self.pool.swap, direction, self.enc(amount_in))
        return self.dec(net_out)

    def reserves(self) -> Tuple[int, int]:
        r = self.pool.state.reserves
        return self.dec(r.reserve_a), self.dec(r.reserve_b)

    def fees(self) -> Tuple[int, int]:
        f = self.pool.state.fees
        return self.dec(f.fee_a), self.dec(f.fee_b)

    def balance(self, asset: str, account: Address) -> int:
        return self.dec(self.token(asset).balance_handle(account))

    def pool_balances(self) -> Tuple[int, int]:
        return self.balance("A", self.pool.address), self.balance("B", self.pool.address)


def deploy_pool(
    runtime: Runtime,
    *,
    owner: Address = OWNER,
    config: Optional[PoolConfig] = None,
) -> ConfidentialCFMM:
    token_a = runtime.deploy(owner, lambda ctx: ConfidentialToken(ctx, name="Token A", symbol="TKA"))
    token_b = runtime.deploy(owner, lambda ctx: ConfidentialToken(ctx, name="Token B", symbol="TKB"))
    return runtime.deploy(owner, lambda ctx: ConfidentialCFMM(ctx, token_a, token_b, config))


@pytest.fixture
def backend() -> PlaintextBackend:
    return PlaintextBackend(handle_salt=b"\x00" * 32)


@pytest.fixture
def runtime(backend: PlaintextBackend) -> Runtime:
    return Runtime(backend)


@pytest.fixture
def make_harness() -> Callable[..., PoolHarness]:
    def _make(config: Optional[PoolConfig] = None) -> PoolHarness:
        rt = Runtime(PlaintextBackend())
        return PoolHarness(rt, deploy_pool(rt, config=config))

    return _make


@pytest.fixture
def harness(runtime: Runtime) -> PoolHarness:
    return PoolHarness(runtime, deploy_pool(runtime))


@pytest.fixture
def seeded(harness: PoolHarness) -> PoolHarness:
    """Pool holding the reference liquidity (10000 A, 1000 B)."""
    harness.add_liquidity(ALICE, 10000, 1000)
    return harness
