"""
Fixed64x64 — знаковая арифметика с фиксированной точкой 64.64

Модуль обеспечивает детерминированную арифметику для всех расчётов кривой:
- Значение хранится как целое raw в диапазоне [-2^127, 2^127 - 1]
- Реальное число = raw / 2^64
- Каждая операция проверяет диапазон результата (FixedOverflowError)
- ln/log2/sqrt/exp вне области определения → DomainError

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Никаких float в вычислениях: только целочисленная арифметика Python
2. Деление (включая масштабирование при умножении) — truncation toward zero
3. Константы (ln 2, 2^(2^-i)) вычисляются целочисленно при импорте
4. Одинаковые входы → побитово одинаковые результаты
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Final

# =============================================================================
# ДИАПАЗОН И МАСШТАБ
# =============================================================================

FRACTION_BITS: Final[int] = 64

# 1.0 в формате 64.64
ONE_RAW: Final[int] = 1 << FRACTION_BITS

MAX_RAW: Final[int] = (1 << 127) - 1
MIN_RAW: Final[int] = -(1 << 127)

# exp2 определена для x < 64; при x < -64 результат меньше 1 ulp
EXP2_INPUT_LIMIT_RAW: Final[int] = 64 << FRACTION_BITS


# =============================================================================
# EXCEPTIONS
# =============================================================================


class FixedOverflowError(OverflowError):
    """Результат операции не представим в формате 64.64."""


class DomainError(ValueError):
    """Аргумент вне области определения функции (ln, sqrt, exp, inverse CDF)."""


# =============================================================================
# ЦЕЛОЧИСЛЕННЫЕ ПРИМИТИВЫ
# =============================================================================


def div_trunc(numerator: int, denominator: int) -> int:
    """
    Целочисленное деление с округлением к нулю.

    Python `//` округляет к -inf; для отрицательных значений это даёт
    расхождение в 1 ulp, поэтому знак обрабатывается отдельно.

    Raises:
        ZeroDivisionError: Если denominator == 0
    """
    if denominator == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def _check_raw(raw: int) -> int:
    if raw < MIN_RAW or raw > MAX_RAW:
        raise FixedOverflowError(f"value {raw} is outside the 64.64 range")
    return raw


def _ln2_q128() -> int:
    """ln 2 в формате Q128: ряд ln 2 = sum 1 / (k * 2^k)."""
    guard = 16
    scale = 1 << (128 + guard)
    total = 0
    k = 1
    while True:
        term = scale // (k << k)
        if term == 0:
            break
        total += term
        k += 1
    return total >> guard


def _exp2_factors_q128() -> tuple[int, ...]:
    """2^(2^-i) для i = 1..64 в формате Q128 (цепочка целочисленных sqrt)."""
    factors = []
    value = 2 << 128
    for _ in range(FRACTION_BITS):
        value = math.isqrt(value << 128)
        factors.append(value)
    return tuple(factors)


LN2_Q128: Final[int] = _ln2_q128()
LOG2E_Q128: Final[int] = (1 << 256) // LN2_Q128
_EXP2_FACTORS: Final[tuple[int, ...]] = _exp2_factors_q128()


# =============================================================================
# FIXED64X64
# =============================================================================


@dataclass(frozen=True, order=True)
class Fixed64x64:
    """
    Число с фиксированной точкой 64.64.

    Immutable value object: все операции возвращают новый экземпляр,
    диапазон проверяется в конструкторе.

    Examples:
        >>> Fixed64x64.from_int(3) / Fixed64x64.from_int(2)
        Fixed64x64(raw=27670116110564327424)
        >>> Fixed64x64.from_int(8).log2() == Fixed64x64.from_int(3)
        True
    """

    raw: int

    def __post_init__(self) -> None:
        _check_raw(self.raw)

    # -------------------------------------------------------------------------
    # Конструкторы
    # -------------------------------------------------------------------------

    @classmethod
    def from_int(cls, value: int) -> "Fixed64x64":
        return cls(value << FRACTION_BITS)

    @classmethod
    def from_fraction(cls, numerator: int, denominator: int) -> "Fixed64x64":
        """numerator / denominator с округлением к нулю."""
        return cls(div_trunc(numerator << FRACTION_BITS, denominator))

    @classmethod
    def from_decimal(cls, text: str) -> "Fixed64x64":
        """
        Точная конверсия десятичной записи (например, '-3.969683028665376e+01').

        Decimal даёт точную рациональную дробь, поэтому константы
        аппроксимаций не проходят через float.
        """
        numerator, denominator = Decimal(text).as_integer_ratio()
        return cls.from_fraction(numerator, denominator)

    # -------------------------------------------------------------------------
    # Конверсия
    # -------------------------------------------------------------------------

    def to_int(self) -> int:
        """Целая часть (truncation toward zero)."""
        return div_trunc(self.raw, ONE_RAW)

    def mul_int(self, value: int) -> int:
        """self * value как целое (truncation toward zero)."""
        return div_trunc(self.raw * value, ONE_RAW)

    def __float__(self) -> float:
        return self.raw / ONE_RAW

    # -------------------------------------------------------------------------
    # Арифметика
    # -------------------------------------------------------------------------

    def __add__(self, other: "Fixed64x64") -> "Fixed64x64":
        return Fixed64x64(self.raw + other.raw)

    def __sub__(self, other: "Fixed64x64") -> "Fixed64x64":
        return Fixed64x64(self.raw - other.raw)

    def __mul__(self, other: "Fixed64x64") -> "Fixed64x64":
        return Fixed64x64(div_trunc(self.raw * other.raw, ONE_RAW))

    def __truediv__(self, other: "Fixed64x64") -> "Fixed64x64":
        return Fixed64x64(div_trunc(self.raw << FRACTION_BITS, other.raw))

    def __neg__(self) -> "Fixed64x64":
        return Fixed64x64(-self.raw)

    def __abs__(self) -> "Fixed64x64":
        return Fixed64x64(abs(self.raw))

    def is_negative(self) -> bool:
        return self.raw < 0

    # -------------------------------------------------------------------------
    # Трансцендентные функции
    # -------------------------------------------------------------------------

    def sqrt(self) -> "Fixed64x64":
        """
        Квадратный корень (округление вниз).

        Raises:
            DomainError: Если значение отрицательное
        """
        if self.raw < 0:
            raise DomainError(f"sqrt of negative value {float(self)}")
        return Fixed64x64(math.isqrt(self.raw << FRACTION_BITS))

    def log2(self) -> "Fixed64x64":
        """
        Двоичный логарифм.

        Алгоритм: целая часть = позиция старшего бита, дробная часть —
        64 итерации возведения нормализованной мантиссы в квадрат.

        Raises:
            DomainError: Если значение <= 0
        """
        if self.raw <= 0:
            raise DomainError(f"log2 of non-positive value {float(self)}")

        msb = self.raw.bit_length() - 1
        result = (msb - FRACTION_BITS) << FRACTION_BITS

        # Мантисса в [1, 2) с 127 дробными битами
        mantissa = self.raw << (127 - msb)
        bit = 1 << (FRACTION_BITS - 1)
        while bit > 0:
            squared = mantissa * mantissa
            carry = squared >> 255
            mantissa = squared >> (127 + carry)
            result += bit * carry
            bit >>= 1

        return Fixed64x64(result)

    def ln(self) -> "Fixed64x64":
        """
        Натуральный логарифм: ln(x) = log2(x) * ln(2).

        Raises:
            DomainError: Если значение <= 0
        """
        return Fixed64x64(div_trunc(self.log2().raw * LN2_Q128, 1 << 128))

    def exp2(self) -> "Fixed64x64":
        """
        2^x.

        Целая часть — сдвиг, дробная — произведение множителей 2^(2^-i)
        для каждого установленного бита.

        Raises:
            DomainError: Если x >= 64
            FixedOverflowError: Если результат не помещается в 64.64
        """
        if self.raw >= EXP2_INPUT_LIMIT_RAW:
            raise DomainError(f"exp2 input {float(self)} is too large")
        if self.raw < -EXP2_INPUT_LIMIT_RAW:
            return ZERO

        integer = self.raw >> FRACTION_BITS
        fraction = self.raw - (integer << FRACTION_BITS)

        result = 1 << 128
        for index, factor in enumerate(_EXP2_FACTORS):
            if fraction & (1 << (FRACTION_BITS - 1 - index)):
                result = (result * factor) >> 128

        shift = 128 - FRACTION_BITS - integer
        if shift >= 0:
            return Fixed64x64(result >> shift)
        return Fixed64x64(result << -shift)

    def exp(self) -> "Fixed64x64":
        """
        e^x = 2^(x * log2(e)).

        Raises:
            DomainError: Если x * log2(e) >= 64
            FixedOverflowError: Если результат не помещается в 64.64
        """
        return Fixed64x64(div_trunc(self.raw * LOG2E_Q128, 1 << 128)).exp2()


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

ZERO: Final[Fixed64x64] = Fixed64x64(0)
ONE: Final[Fixed64x64] = Fixed64x64(ONE_RAW)
HALF: Final[Fixed64x64] = Fixed64x64(ONE_RAW >> 1)
TWO: Final[Fixed64x64] = Fixed64x64(ONE_RAW << 1)
