"""
Replication Curve — торговая кривая, реплицирующая covered call

Для калибровки (K, σ, τ) и нормализованного резерва risky x ∈ [0, 1]
(risky на 1.0 ликвидности) стабильный резерв:

    y(x) = K · Φ(Φ⁻¹(1 − x) − σ√τ) + k

Обратная функция:

    x(y) = 1 − Φ(Φ⁻¹((y − k) / K) + σ√τ)

Инвариант пула:

    k = y_actual − y(x_actual)   (при k = 0 в формуле кривой)

k измеряется в stable units на 1.0 ликвидности и вычисляется при текущем τ.
Свопы сдвигают кривую на текущий k, поэтому k не убывает (комиссия его
увеличивает), а время (уменьшение τ) меняет только форму кривой.
"""

from src.core.math.fixed_point import ONE, ZERO, DomainError, Fixed64x64
from src.core.math.normal import cdf, inverse_cdf
from src.core.math.units import (
    PRECISION,
    percentage_to_x64,
    seconds_to_years,
    wei_to_x64,
    x64_to_wei,
)


def proportional_volatility(sigma: int, tau: int) -> Fixed64x64:
    """
    σ√τ — волатильность, приведённая к оставшемуся сроку.

    Args:
        sigma: Годовая волатильность в PERCENTAGE-шкале (10_000 = 100%)
        tau: Оставшееся время до экспирации (секунды, >= 0)

    Returns:
        sigma * sqrt(tau / YEAR) в формате 64.64
    """
    if tau < 0:
        raise DomainError(f"tau must be non-negative, got {tau}")
    return percentage_to_x64(sigma) * seconds_to_years(tau).sqrt()


def stable_given_risky_x64(
    risky: Fixed64x64,
    strike: Fixed64x64,
    volatility: Fixed64x64,
    invariant_last: Fixed64x64 = ZERO,
) -> Fixed64x64:
    """y(x) в формате 64.64; границы x = 0 и x = 1 обрабатываются точно."""
    if risky < ZERO or risky > ONE:
        raise DomainError(f"risky per liquidity must be in [0, 1], got {float(risky)}")

    if risky == ZERO:
        return strike + invariant_last
    if risky == ONE:
        return invariant_last

    return strike * cdf(inverse_cdf(ONE - risky) - volatility) + invariant_last


def risky_given_stable_x64(
    stable: Fixed64x64,
    strike: Fixed64x64,
    volatility: Fixed64x64,
    invariant_last: Fixed64x64 = ZERO,
) -> Fixed64x64:
    """x(y) в формате 64.64."""
    ratio = (stable - invariant_last) / strike
    if ratio < ZERO or ratio > ONE:
        raise DomainError(
            f"stable per liquidity shifted by invariant must be in [0, K], ratio {float(ratio)}"
        )

    if ratio == ZERO:
        return ONE
    if ratio == ONE:
        return ZERO

    return ONE - cdf(inverse_cdf(ratio) + volatility)


def get_stable_given_risky(
    risky_per_liquidity: int,
    strike: int,
    sigma: int,
    tau: int,
    invariant_last: Fixed64x64 = ZERO,
) -> int:
    """
    Стабильный резерв на 1.0 ликвидности для заданного risky резерва.

    Args:
        risky_per_liquidity: Risky на 1.0 ликвидности (wei, 0..PRECISION)
        strike: Strike в stable wei за 1.0 risky
        sigma: Волатильность в PERCENTAGE-шкале
        tau: Оставшееся время (секунды)
        invariant_last: Текущий инвариант пула (сдвиг кривой)

    Returns:
        Stable на 1.0 ликвидности (wei, truncation toward zero)

    Raises:
        DomainError: Если risky вне [0, PRECISION] или результат отрицательный
    """
    stable = stable_given_risky_x64(
        wei_to_x64(risky_per_liquidity),
        wei_to_x64(strike),
        proportional_volatility(sigma, tau),
        invariant_last,
    )
    if stable.is_negative():
        raise DomainError(f"stable reserve below zero: {float(stable)}")
    return x64_to_wei(stable)


def get_risky_given_stable(
    stable_per_liquidity: int,
    strike: int,
    sigma: int,
    tau: int,
    invariant_last: Fixed64x64 = ZERO,
) -> int:
    """
    Risky резерв на 1.0 ликвидности для заданного stable резерва.

    Raises:
        DomainError: Если (stable − k) / strike вне [0, 1]
    """
    risky = risky_given_stable_x64(
        wei_to_x64(stable_per_liquidity),
        wei_to_x64(strike),
        proportional_volatility(sigma, tau),
        invariant_last,
    )
    return x64_to_wei(risky)


def solve_risky_given_stable(
    stable_per_liquidity: int,
    strike: int,
    sigma: int,
    tau: int,
    invariant_last: Fixed64x64 = ZERO,
) -> int:
    """
    Наименьший risky x (wei на 1.0 ликвидности), для которого y(x) + k <= stable.

    Аналитическая x(y) и прямая y(x) построены на приближениях Φ и Φ⁻¹ и не
    являются точно взаимно обратными. Инвариант проверяется по прямой кривой,
    поэтому ответ уточняется бисекцией по y(x), начиная с аналитической оценки.
    Результат гарантированно удовлетворяет y(x) + k <= stable.

    Raises:
        DomainError: Если (stable − k) / strike вне [0, 1]
    """
    target = wei_to_x64(stable_per_liquidity)
    strike_x64 = wei_to_x64(strike)
    volatility = proportional_volatility(sigma, tau)

    def below(risky: int) -> bool:
        curve = stable_given_risky_x64(wei_to_x64(risky), strike_x64, volatility, invariant_last)
        return curve <= target

    guess = x64_to_wei(risky_given_stable_x64(target, strike_x64, volatility, invariant_last))
    if below(0):
        return 0

    # lo не удовлетворяет условию, hi удовлетворяет
    lo, hi = 0, PRECISION
    if 0 < guess < PRECISION:
        if below(guess):
            hi = guess
        else:
            lo = guess
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if below(mid):
            hi = mid
        else:
            lo = mid
    return hi


def calc_invariant(
    risky_per_liquidity: int,
    stable_per_liquidity: int,
    strike: int,
    sigma: int,
    tau: int,
) -> Fixed64x64:
    """
    Инвариант k = y_actual − y(x_actual).

    Returns:
        k в stable units на 1.0 ликвидности (64.64)
    """
    curve = stable_given_risky_x64(
        wei_to_x64(risky_per_liquidity),
        wei_to_x64(strike),
        proportional_volatility(sigma, tau),
    )
    return wei_to_x64(stable_per_liquidity) - curve
