"""
Units — централизованный модуль конверсии единиц

Единственный допустимый способ преобразований между:
- wei (целые token units и liquidity units, 1e18 = 1.0)
- Fixed64x64 (безразмерные значения кривой)
- sigma в basis-point шкале (10_000 = 100% годовой волатильности)
- tau в секундах → годы

ЗАПРЕЩЕНО смешивать единицы без явного конвертера из этого модуля.
"""

from typing import Final

from src.core.math.fixed_point import Fixed64x64


# =============================================================================
# ШКАЛЫ
# =============================================================================

# 1.0 в wei: token amounts, liquidity, strike, delta
PRECISION: Final[int] = 10**18

# Шкала sigma и fee multiplier (gamma)
PERCENTAGE: Final[int] = 10**4

# Секунд в году (365.2425 дня)
YEAR: Final[int] = 31_556_952


# =============================================================================
# КОНВЕРТЕРЫ
# =============================================================================


def wei_to_x64(amount: int) -> Fixed64x64:
    """
    Конверсия: wei → 64.64

    Args:
        amount: Значение в wei (может быть отрицательным для разностей)

    Returns:
        amount / PRECISION в формате 64.64
    """
    return Fixed64x64.from_fraction(amount, PRECISION)


def x64_to_wei(value: Fixed64x64) -> int:
    """
    Конверсия: 64.64 → wei (truncation toward zero)

    Args:
        value: Значение в формате 64.64

    Returns:
        value * PRECISION как целое
    """
    return value.mul_int(PRECISION)


def percentage_to_x64(value: int) -> Fixed64x64:
    """sigma или gamma в PERCENTAGE-шкале → 64.64."""
    return Fixed64x64.from_fraction(value, PERCENTAGE)


def seconds_to_years(seconds: int) -> Fixed64x64:
    """tau в секундах → годы в формате 64.64."""
    return Fixed64x64.from_fraction(seconds, YEAR)


def per_liquidity(amount: int, liquidity: int) -> int:
    """
    Конверсия: абсолютный резерв → резерв на 1.0 ликвидности (wei).

    Raises:
        ZeroDivisionError: Если liquidity == 0
    """
    return amount * PRECISION // liquidity


def scale_by_liquidity(amount_per_liquidity: int, liquidity: int) -> int:
    """Конверсия: резерв на 1.0 ликвидности → абсолютный резерв (wei)."""
    return amount_per_liquidity * liquidity // PRECISION
