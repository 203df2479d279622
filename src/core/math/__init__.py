"""
Core math modules для replication AMM

Математические примитивы с фиксированной точкой и гарантией воспроизводимости.
"""

# Fixed-point 64.64
from src.core.math.fixed_point import (
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

# Normal distribution
from src.core.math.normal import (
    CDF_MAX_ABS_ERROR,
    INVERSE_CDF_MAX_REL_ERROR,
    cdf,
    inverse_cdf,
)

# Units
from src.core.math.units import (
    PERCENTAGE,
    PRECISION,
    YEAR,
    per_liquidity,
    percentage_to_x64,
    scale_by_liquidity,
    seconds_to_years,
    wei_to_x64,
    x64_to_wei,
)

# Replication curve
from src.core.math.replication import (
    calc_invariant,
    get_risky_given_stable,
    get_stable_given_risky,
    proportional_volatility,
    risky_given_stable_x64,
    solve_risky_given_stable,
    stable_given_risky_x64,
)

__all__ = [
    # Fixed point: Types
    "Fixed64x64",
    # Fixed point: Constants
    "HALF",
    "ONE",
    "ONE_RAW",
    "TWO",
    "ZERO",
    # Fixed point: Exceptions
    "DomainError",
    "FixedOverflowError",
    # Fixed point: Functions
    "div_trunc",
    # Normal: Constants
    "CDF_MAX_ABS_ERROR",
    "INVERSE_CDF_MAX_REL_ERROR",
    # Normal: Functions
    "cdf",
    "inverse_cdf",
    # Units: Constants
    "PERCENTAGE",
    "PRECISION",
    "YEAR",
    # Units: Functions
    "per_liquidity",
    "percentage_to_x64",
    "scale_by_liquidity",
    "seconds_to_years",
    "wei_to_x64",
    "x64_to_wei",
    # Replication: Functions
    "calc_invariant",
    "get_risky_given_stable",
    "get_stable_given_risky",
    "proportional_volatility",
    "risky_given_stable_x64",
    "solve_risky_given_stable",
    "stable_given_risky_x64",
]
