"""
Engine Config — параметры движка пулов

Значения по умолчанию совпадают с константами протокола:
- MIN_LIQUIDITY = 1000 (сжигается при create)
- GAMMA = 9985 / 10_000 (комиссия 0.15%)
- GRACE_PERIOD = 120 s (свопы после maturity)
"""

from dataclasses import dataclass
from typing import Final

from src.core.math.fixed_point import ONE_RAW
from src.core.math.units import PERCENTAGE

MIN_LIQUIDITY: Final[int] = 1000
GAMMA: Final[int] = 9985
GRACE_PERIOD: Final[int] = 120

# 1e-8 в 64.64
INVARIANT_TOLERANCE_RAW: Final[int] = ONE_RAW // 10**8


@dataclass(frozen=True)
class EngineConfig:
    """Конфигурация PoolEngine.

    - min_liquidity: ликвидность, сжигаемая при create
    - gamma: доля входа после комиссии (PERCENTAGE-шкала)
    - grace_period: сколько секунд после maturity разрешены свопы
    - invariant_tolerance_raw: допустимое падение k (raw 64.64)
    - min_sigma / max_sigma: допустимая волатильность (PERCENTAGE-шкала)
    - validate_events: проверять payload событий по engine_event.json
    """

    min_liquidity: int = MIN_LIQUIDITY
    gamma: int = GAMMA
    grace_period: int = GRACE_PERIOD
    invariant_tolerance_raw: int = INVARIANT_TOLERANCE_RAW
    min_sigma: int = 1
    max_sigma: int = 10 * PERCENTAGE  # 1000%
    validate_events: bool = False

    def __post_init__(self) -> None:
        if self.min_liquidity < 0:
            raise ValueError(f"min_liquidity must be >= 0, got {self.min_liquidity}")
        if not 0 < self.gamma <= PERCENTAGE:
            raise ValueError(f"gamma must be in (0, {PERCENTAGE}], got {self.gamma}")
        if self.grace_period < 0:
            raise ValueError(f"grace_period must be >= 0, got {self.grace_period}")
        if self.invariant_tolerance_raw < 0:
            raise ValueError(
                f"invariant_tolerance_raw must be >= 0, got {self.invariant_tolerance_raw}"
            )
        if not 0 < self.min_sigma <= self.max_sigma:
            raise ValueError(
                f"sigma bounds must satisfy 0 < min_sigma <= max_sigma, "
                f"got [{self.min_sigma}, {self.max_sigma}]"
            )
