"""
Тесты для Fixed64x64 (арифметика 64.64)

Проверяет:
1. Конструкторы и конверсию
2. Truncation toward zero во всех делениях
3. Проверку диапазона (FixedOverflowError)
4. Точность sqrt / log2 / ln / exp2 / exp
5. Области определения (DomainError)
"""

import math

import pytest

from src.core.math import (
    HALF,
    ONE,
    ONE_RAW,
    TWO,
    ZERO,
    DomainError,
    Fixed64x64,
    FixedOverflowError,
    div_trunc,
)
from src.core.math.fixed_point import LN2_Q128, MAX_RAW, MIN_RAW

ULP = 1 / ONE_RAW


def fx(value: str) -> Fixed64x64:
    return Fixed64x64.from_decimal(value)


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestConstruction:
    def test_from_int(self):
        assert Fixed64x64.from_int(3).raw == 3 * ONE_RAW
        assert Fixed64x64.from_int(-2).raw == -2 * ONE_RAW

    def test_from_fraction_truncates_toward_zero(self):
        assert Fixed64x64.from_fraction(1, 3).raw == ONE_RAW // 3
        assert Fixed64x64.from_fraction(-1, 3).raw == -(ONE_RAW // 3)
        assert Fixed64x64.from_fraction(1, -3).raw == -(ONE_RAW // 3)

    def test_from_decimal_is_exact_for_binary_fractions(self):
        assert fx("0.5") == HALF
        assert fx("-2.25").raw == -(9 * ONE_RAW // 4)
        assert fx("1e1") == Fixed64x64.from_int(10)

    def test_to_int_truncates(self):
        assert fx("2.75").to_int() == 2
        assert fx("-2.75").to_int() == -2

    def test_mul_int(self):
        assert fx("0.5").mul_int(10**18) == 5 * 10**17
        assert fx("-0.5").mul_int(3) == -1

    def test_range_check(self):
        Fixed64x64(MAX_RAW)
        Fixed64x64(MIN_RAW)
        with pytest.raises(FixedOverflowError):
            Fixed64x64(MAX_RAW + 1)
        with pytest.raises(FixedOverflowError):
            Fixed64x64(MIN_RAW - 1)

    def test_overflow_is_overflow_error(self):
        assert issubclass(FixedOverflowError, OverflowError)
        assert issubclass(DomainError, ValueError)

    def test_immutable(self):
        value = Fixed64x64.from_int(1)
        with pytest.raises(AttributeError):
            value.raw = 5  # type: ignore[misc]


# =============================================================================
# ARITHMETIC
# =============================================================================


class TestArithmetic:
    def test_add_sub(self):
        assert ONE + ONE == TWO
        assert TWO - ONE == ONE
        assert -ONE + ONE == ZERO

    def test_mul(self):
        assert fx("1.5") * fx("2") == fx("3")
        assert fx("-1.5") * fx("2") == fx("-3")

    def test_div(self):
        assert Fixed64x64.from_int(3) / TWO == fx("1.5")
        assert (ONE / Fixed64x64.from_int(3)).raw == ONE_RAW // 3
        assert (-ONE / Fixed64x64.from_int(3)).raw == -(ONE_RAW // 3)

    def test_div_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            ONE / ZERO
        with pytest.raises(ZeroDivisionError):
            div_trunc(1, 0)

    def test_mul_overflow(self):
        big = Fixed64x64.from_int(2**62)
        with pytest.raises(FixedOverflowError):
            big * big

    def test_add_overflow(self):
        with pytest.raises(FixedOverflowError):
            Fixed64x64(MAX_RAW) + Fixed64x64(1)

    def test_comparisons_and_abs(self):
        assert -ONE < ZERO < ONE
        assert abs(-TWO) == TWO
        assert (-ONE).is_negative()
        assert not ZERO.is_negative()

    def test_div_trunc_signs(self):
        assert div_trunc(7, 2) == 3
        assert div_trunc(-7, 2) == -3
        assert div_trunc(7, -2) == -3
        assert div_trunc(-7, -2) == 3


# =============================================================================
# TRANSCENDENTAL
# =============================================================================


class TestTranscendental:
    @pytest.mark.parametrize("value", ["0.25", "2", "10", "12345.678"])
    def test_sqrt(self, value):
        assert float(fx(value).sqrt()) == pytest.approx(math.sqrt(float(value)), abs=1e-12)

    def test_sqrt_exact_squares(self):
        assert Fixed64x64.from_int(9).sqrt() == Fixed64x64.from_int(3)

    def test_sqrt_negative(self):
        with pytest.raises(DomainError):
            (-ONE).sqrt()

    @pytest.mark.parametrize("value", [1, 2, 8, 1024])
    def test_log2_powers_of_two_are_exact(self, value):
        assert Fixed64x64.from_int(value).log2() == Fixed64x64.from_int(int(math.log2(value)))

    @pytest.mark.parametrize("value", ["0.001", "0.3", "3", "1000000"])
    def test_log2_and_ln(self, value):
        x = fx(value)
        assert float(x.log2()) == pytest.approx(math.log2(float(value)), abs=1e-12)
        assert float(x.ln()) == pytest.approx(math.log(float(value)), abs=1e-12)

    @pytest.mark.parametrize("value", [ZERO, -ONE])
    def test_log_domain(self, value):
        with pytest.raises(DomainError):
            value.log2()
        with pytest.raises(DomainError):
            value.ln()

    def test_ln2_constant(self):
        assert LN2_Q128 / 2**128 == pytest.approx(math.log(2), abs=1e-16)

    @pytest.mark.parametrize("value", ["-10.5", "-1", "0", "0.5", "3.3", "20"])
    def test_exp2(self, value):
        expected = 2 ** float(value)
        assert float(fx(value).exp2()) == pytest.approx(expected, rel=1e-14, abs=ULP * 4)

    def test_exp2_of_integers_is_exact(self):
        assert Fixed64x64.from_int(5).exp2() == Fixed64x64.from_int(32)
        assert Fixed64x64.from_int(-1).exp2() == HALF

    def test_exp2_limits(self):
        assert fx("-64.5").exp2() == ZERO
        with pytest.raises(DomainError):
            Fixed64x64.from_int(64).exp2()
        with pytest.raises(FixedOverflowError):
            fx("63.5").exp2()

    @pytest.mark.parametrize("value", ["-20", "-1", "0", "1", "5.5"])
    def test_exp(self, value):
        expected = math.exp(float(value))
        assert float(fx(value).exp()) == pytest.approx(expected, rel=1e-14, abs=ULP * 4)

    def test_exp_domain(self):
        with pytest.raises(DomainError):
            Fixed64x64.from_int(50).exp()

    def test_deterministic(self):
        x = fx("0.123456789")
        assert x.ln() == fx("0.123456789").ln()
        assert x.exp().raw == x.exp().raw
