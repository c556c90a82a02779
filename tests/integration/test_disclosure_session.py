# [TESTER] v1

from __future__ import annotations

import pytest

pytest.importorskip("py_ecc")

from conftest import deploy_pool

from confidential_cfmm.agents.client import PoolSession, Wallet, decrypt, encrypt_amount
from confidential_cfmm.core.config import PoolConfig
from confidential_cfmm.errors import Unauthorized
from confidential_cfmm.fhe.plaintext import PlaintextBackend
from confidential_cfmm.fhe.reencrypt import ReencryptionKeypair
from confidential_cfmm.integration.runtime import Runtime
from confidential_cfmm.state.pool import SwapDirection


@pytest.fixture(scope="module")
def owner_wallet():
    return Wallet.from_seed(b"\x01" * 32)


@pytest.fixture(scope="module")
def trader_wallet():
    return Wallet.from_seed(b"\x02" * 32)


@pytest.fixture
def sessions(owner_wallet, trader_wallet):
    rt = Runtime(PlaintextBackend(), chain_id="confidential-cfmm-test")
    pool = deploy_pool(rt, owner=owner_wallet.address)
    owner = PoolSession(rt, pool, owner_wallet)
    trader = PoolSession(rt, pool, trader_wallet)

    owner.mint("A", 10000)
    owner.mint("B", 1000)
    owner.add_liquidity(10000, 1000)
    return owner, trader


def _fund_trader(owner: PoolSession, trader: PoolSession, asset: str, amount: int) -> None:
    token = owner._token(asset)
    owner.mint(asset, amount)
    owner.runtime.transact(owner.address, token.transfer, trader.address, owner.encrypt(amount))


class TestWallet:
    def test_from_seed_is_deterministic(self, owner_wallet):
        again = Wallet.from_seed(b"\x01" * 32)
        assert again.address == owner_wallet.address
        assert again.viewing.public_key == owner_wallet.viewing.public_key
        assert owner_wallet.address.startswith("0x") and len(owner_wallet.address) == 42

    def test_short_seed_is_rejected(self):
        with pytest.raises(ValueError):
            Wallet.from_seed(b"\x01" * 16)

    def test_repr_hides_keys(self, owner_wallet):
        assert str(owner_wallet.signing_key) not in repr(owner_wallet)

    def test_encrypt_amount_range(self):
        backend = PlaintextBackend()
        assert backend.debug_decrypt(encrypt_amount(backend, 5)) == 5
        with pytest.raises(ValueError):
            encrypt_amount(backend, 2**31)
        with pytest.raises(TypeError):
            encrypt_amount(backend, True)


class TestDisclosureGate:
    def test_owner_reads_reserves_product_and_fees(self, sessions):
        owner, trader = sessions
        _fund_trader(owner, trader, "A", 1000)
        net = trader.swap(SwapDirection.A_TO_B, 1000)
        assert owner.runtime.backend.debug_decrypt(net) == 87

        backend = owner.runtime.backend
        before = backend.reencrypt_count
        assert owner.reserves() == (11000, 909)
        assert owner.constant_product() == 11000 * 909
        assert owner.fee_balances() == (0, 4)
        assert backend.reencrypt_count - before == 5

    def test_non_owner_is_rejected(self, sessions):
        owner, trader = sessions
        pk, permit = trader._permit(owner.pool.address)
        for getter in (
            owner.pool.get_reserve_a,
            owner.pool.get_reserve_b,
            owner.pool.get_constant_product,
            owner.pool.get_fee_balances,
        ):
            with pytest.raises(Unauthorized):
                owner.runtime.call(trader.address, getter, pk, permit)

    def test_permit_for_another_contract_is_rejected(self, sessions):
        owner, _ = sessions
        pk, permit = owner._permit(owner.pool.token_a.address)
        with pytest.raises(Unauthorized):
            owner.runtime.call(owner.address, owner.pool.get_reserve_a, pk, permit)

    def test_permit_signed_by_someone_else_is_rejected(self, sessions):
        owner, trader = sessions
        pk = owner.wallet.viewing.public_key
        permit = trader.wallet.sign_reencryption(
            chain_id=owner.runtime.chain_id, contract=owner.pool.address, public_key=pk
        )
        with pytest.raises(Unauthorized):
            owner.runtime.call(owner.address, owner.pool.get_reserve_a, pk, permit)

    def test_disclosed_value_is_bound_to_requester_key(self, sessions):
        owner, _ = sessions
        outsider = ReencryptionKeypair.generate(b"outsider")
        payload = owner.runtime.call(owner.address, owner.pool.get_reserve_b, *owner._permit(owner.pool.address))
        assert decrypt(owner.wallet.viewing, payload) == 1000
        with pytest.raises(ValueError):
            decrypt(outsider, payload)


class TestPoolSession:
    def test_token_balance_and_allowance(self, sessions):
        owner, trader = sessions
        _fund_trader(owner, trader, "B", 20)
        trader.swap(SwapDirection.B_TO_A, 20)
        assert trader.balance("A") == 188
        assert trader.allowance("B") == 0

    def test_owner_withdraws_fees(self, sessions):
        owner, trader = sessions
        _fund_trader(owner, trader, "A", 1000)
        trader.swap(SwapDirection.A_TO_B, 1000)
        owner.withdraw_fee()
        backend = owner.runtime.backend
        assert backend.debug_decrypt(owner.pool.token_b.balance_handle(owner.address)) == 4
        fees = owner.pool.state.fees
        assert (backend.debug_decrypt(fees.fee_a), backend.debug_decrypt(fees.fee_b)) == (0, 0)

    def test_hidden_direction_swap(self, owner_wallet, trader_wallet):
        rt = Runtime(PlaintextBackend())
        pool = deploy_pool(rt, owner=owner_wallet.address, config=PoolConfig(confidential_direction=True))
        owner = PoolSession(rt, pool, owner_wallet)
        trader = PoolSession(rt, pool, trader_wallet)
        owner.mint("A", 10000)
        owner.mint("B", 1000)
        owner.add_liquidity(10000, 1000)
        _fund_trader(owner, trader, "B", 20)

        net = trader.swap(SwapDirection.B_TO_A, 20, hide_direction=True)
        assert rt.backend.debug_decrypt(net) == 188
        state = pool.state
        assert (rt.backend.debug_decrypt(state.reserves.reserve_a), rt.backend.debug_decrypt(state.reserves.reserve_b)) == (
            9803,
            1020,
        )
        assert trader.allowance("A") == 0
        assert trader.allowance("B") == 0
