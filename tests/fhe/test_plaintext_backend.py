# [TESTER] v1

from __future__ import annotations

import importlib.util

import pytest

from conftest import ALICE

from confidential_cfmm.errors import InvalidAmount, TransactionAborted
from confidential_cfmm.fhe.plaintext import PlaintextBackend
from confidential_cfmm.fhe.types import INT32_MAX, INT32_MIN, EncryptedAmount, EncryptedBool, wrap_int32


class TestWrapInt32:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, 0),
            (INT32_MAX, INT32_MAX),
            (INT32_MAX + 1, INT32_MIN),
            (INT32_MIN - 1, INT32_MAX),
            (1 << 32, 0),
            (-1, -1),
        ],
    )
    def test_wrap(self, value, expected):
        assert wrap_int32(value) == expected

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            wrap_int32(True)


class TestHandles:
    def test_handle_format_is_enforced(self):
        with pytest.raises(ValueError):
            EncryptedAmount("0x1234")
        with pytest.raises(ValueError):
            EncryptedBool("0x" + "AB" * 32)

    def test_handles_are_fresh_per_result(self, backend):
        a = backend.encrypt(5)
        b = backend.encrypt(5)
        assert a != b
        assert backend.debug_decrypt(a) == backend.debug_decrypt(b) == 5

    def test_same_salt_gives_same_handle_sequence(self):
        x = PlaintextBackend(handle_salt=b"s" * 32)
        y = PlaintextBackend(handle_salt=b"s" * 32)
        assert x.encrypt(1) == y.encrypt(99)

    def test_handle_repr_hides_plaintext(self, backend):
        ct = backend.encrypt(123456)
        assert "123456" not in repr(ct)

    def test_handles_from_an_aborted_call_stay_resolvable(self, harness):
        before = harness.backend.handle_count()
        with pytest.raises(InvalidAmount):
            harness.add_liquidity(ALICE, 0, 5)
        assert harness.backend.handle_count() > before
        assert harness.reserves() == (0, 0)

    def test_unknown_handle(self, backend):
        with pytest.raises(KeyError):
            backend.add(EncryptedAmount("0x" + "00" * 32), 1)

    def test_kind_mixing_is_a_type_error(self, backend):
        flag = backend.encrypt_bool(True)
        amount = backend.encrypt(1)
        with pytest.raises(TypeError):
            backend.add(amount, flag)
        with pytest.raises(TypeError):
            backend.and_(flag, amount)
        with pytest.raises(TypeError):
            backend.add(amount, True)


class TestArithmetic:
    def test_add_sub_mul_wrap(self, backend):
        ct = backend.encrypt(INT32_MAX)
        assert backend.debug_decrypt(backend.add(ct, 1)) == INT32_MIN
        assert backend.debug_decrypt(backend.sub(backend.encrypt(INT32_MIN), 1)) == INT32_MAX
        assert backend.debug_decrypt(backend.mul(backend.encrypt(65536), backend.encrypt(65536))) == 0

    def test_floor_division(self, backend):
        assert backend.debug_decrypt(backend.div(backend.encrypt(7), 2)) == 3
        assert backend.debug_decrypt(backend.div(backend.encrypt(-7), 2)) == -4
        assert backend.debug_decrypt(backend.div(backend.encrypt(7), backend.encrypt(-2))) == -4

    def test_division_by_encrypted_zero_yields_minus_one(self, backend):
        assert backend.debug_decrypt(backend.div(backend.encrypt(42), backend.encrypt(0))) == -1
        assert backend.debug_decrypt(backend.div(backend.encrypt(0), 0)) == -1

    def test_div_count_tracks_ciphertext_denominators_only(self, backend):
        before = backend.div_count
        backend.div(backend.encrypt(10), 3)
        backend.div(backend.encrypt(10), backend.encrypt(3))
        assert backend.div_count - before == 1

    def test_comparisons(self, backend):
        a, b = backend.encrypt(3), backend.encrypt(5)
        assert [backend.debug_decrypt(op(a, b)) for op in (backend.lt, backend.le, backend.gt, backend.ge, backend.eq)] == [
            True,
            True,
            False,
            False,
            False,
        ]
        assert backend.debug_decrypt(backend.eq(a, 3)) is True


class TestBooleanAndControl:
    def test_boolean_ops(self, backend):
        t, f = backend.encrypt_bool(True), backend.encrypt_bool(False)
        assert backend.debug_decrypt(backend.and_(t, f)) is False
        assert backend.debug_decrypt(backend.or_(t, f)) is True
        assert backend.debug_decrypt(backend.not_(f)) is True
        assert backend.debug_decrypt(backend.all_of(t, t, t)) is True
        assert backend.debug_decrypt(backend.all_of(t, f, t)) is False

    def test_all_of_requires_a_predicate(self, backend):
        with pytest.raises(ValueError):
            backend.all_of()

    def test_select(self, backend):
        a, b = backend.encrypt(1), backend.encrypt(2)
        assert backend.debug_decrypt(backend.select(backend.encrypt_bool(True), a, b)) == 1
        assert backend.debug_decrypt(backend.select(backend.encrypt_bool(False), a, b)) == 2

    def test_require_true(self, backend):
        backend.require_true(backend.encrypt_bool(True))
        with pytest.raises(TransactionAborted):
            backend.require_true(backend.encrypt_bool(False))
        with pytest.raises(InvalidAmount):
            backend.require_true(backend.encrypt_bool(False), InvalidAmount)


class TestWrapProperties:
    def test_add_matches_wrapped_integer_sum(self):
        if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
            pytest.skip("hypothesis not installed")
        from hypothesis import given, settings
        import hypothesis.strategies as st

        backend = PlaintextBackend()
        int32 = st.integers(min_value=INT32_MIN, max_value=INT32_MAX)

        @settings(max_examples=200, deadline=None)
        @given(int32, int32)
        def check(a, b):
            ca, cb = backend.encrypt(a), backend.encrypt(b)
            assert backend.debug_decrypt(backend.add(ca, cb)) == wrap_int32(a + b)
            assert backend.debug_decrypt(backend.mul(ca, cb)) == wrap_int32(a * b)
            expected_div = -1 if b == 0 else wrap_int32(a // b)
            assert backend.debug_decrypt(backend.div(ca, cb)) == expected_div

        check()
