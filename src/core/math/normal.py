"""
Normal Approximation — стандартное нормальное распределение в 64.64

Модуль предоставляет детерминированные аппроксимации:
- cdf(x): Φ(x) через erf по Abramowitz–Stegun 7.1.26
  (max abs error erf ≤ 1.5e-7 → error Φ ≤ 7.5e-8)
- inverse_cdf(p): Φ⁻¹(p) по рациональной аппроксимации Acklam
  (max relative error ≤ 1.15e-9)

Обе функции — чистые функции входного Fixed64x64: они вызываются внутри
проверки инварианта, и результат должен воспроизводиться побитово.
"""

from typing import Final, Sequence

from src.core.math.fixed_point import (
    HALF,
    ONE,
    TWO,
    ZERO,
    DomainError,
    Fixed64x64,
)

# =============================================================================
# КОНСТАНТЫ CDF (Abramowitz–Stegun 7.1.26)
# =============================================================================

CDF_MAX_ABS_ERROR: Final[float] = 7.5e-8

_SQRT2: Final[Fixed64x64] = TWO.sqrt()
_ERF_P: Final[Fixed64x64] = Fixed64x64.from_decimal("0.3275911")

# a1..a5 (порядок для Horner: от старшей степени к младшей)
_ERF_A: Final[tuple[Fixed64x64, ...]] = tuple(
    Fixed64x64.from_decimal(c)
    for c in (
        "1.061405429",
        "-1.453152027",
        "1.421413741",
        "-0.284496736",
        "0.254829592",
    )
)

# =============================================================================
# КОНСТАНТЫ INVERSE CDF (Acklam)
# =============================================================================

INVERSE_CDF_MAX_REL_ERROR: Final[float] = 1.15e-9

_P_LOW: Final[Fixed64x64] = Fixed64x64.from_decimal("0.02425")
_P_HIGH: Final[Fixed64x64] = ONE - _P_LOW


def _constants(*values: str) -> tuple[Fixed64x64, ...]:
    return tuple(Fixed64x64.from_decimal(v) for v in values)


_ICDF_A = _constants(
    "-3.969683028665376e+01",
    "2.209460984245205e+02",
    "-2.759285104469687e+02",
    "1.383577518672690e+02",
    "-3.066479806614716e+01",
    "2.506628277459239e+00",
)
_ICDF_B = _constants(
    "-5.447609879822406e+01",
    "1.615858368580409e+02",
    "-1.556989798598866e+02",
    "6.680131188771972e+01",
    "-1.328068155288572e+01",
    "1",
)
_ICDF_C = _constants(
    "-7.784894002430293e-03",
    "-3.223964580411365e-01",
    "-2.400758277161838e+00",
    "-2.549732539343734e+00",
    "4.374664141464968e+00",
    "2.938163982698783e+00",
)
_ICDF_D = _constants(
    "7.784695709041462e-03",
    "3.224671290700398e-01",
    "2.445134137142996e+00",
    "3.754408661907416e+00",
    "1",
)


# =============================================================================
# HELPERS
# =============================================================================


def _horner(coefficients: Sequence[Fixed64x64], x: Fixed64x64) -> Fixed64x64:
    """Полином по схеме Горнера; coefficients от старшей степени к младшей."""
    result = coefficients[0]
    for coefficient in coefficients[1:]:
        result = result * x + coefficient
    return result


def _tail(p: Fixed64x64) -> Fixed64x64:
    """Хвостовая ветка Acklam для p < P_LOW (знак — отрицательный квантиль)."""
    q = (-(TWO * p.ln())).sqrt()
    return _horner(_ICDF_C, q) / _horner(_ICDF_D, q)


# =============================================================================
# PUBLIC API
# =============================================================================


def cdf(x: Fixed64x64) -> Fixed64x64:
    """
    Функция распределения стандартного нормального закона Φ(x).

    Φ(x) = (1 + erf(x / √2)) / 2, erf(z) ≈ 1 − t·P(t)·e^(−z²), t = 1 / (1 + p·z)

    Args:
        x: Аргумент в формате 64.64

    Returns:
        Φ(x) в [0, 1]

    Examples:
        >>> abs(float(cdf(ZERO)) - 0.5) < 1e-8
        True
    """
    z = abs(x) / _SQRT2
    t = ONE / (ONE + _ERF_P * z)
    poly = _horner(_ERF_A, t) * t
    erf = ONE - poly * (-(z * z)).exp()
    if x.is_negative():
        erf = -erf
    return HALF * (ONE + erf)


def inverse_cdf(p: Fixed64x64) -> Fixed64x64:
    """
    Квантиль стандартного нормального закона Φ⁻¹(p).

    Три области Acklam:
    - p < 0.02425: нижний хвост через sqrt(−2 ln p)
    - 0.02425 <= p <= 0.97575: рациональная функция от (p − 0.5)²
    - p > 0.97575: верхний хвост по симметрии

    Args:
        p: Вероятность в открытом интервале (0, 1)

    Returns:
        x такой, что Φ(x) ≈ p

    Raises:
        DomainError: Если p <= 0 или p >= 1
    """
    if p <= ZERO or p >= ONE:
        raise DomainError(f"inverse_cdf is defined on (0, 1), got {float(p)}")

    if p < _P_LOW:
        return _tail(p)
    if p > _P_HIGH:
        return -_tail(ONE - p)

    q = p - HALF
    r = q * q
    return _horner(_ICDF_A, r) * q / _horner(_ICDF_B, r)
