"""
Reserve — резервы пула

Immutable Pydantic модель агрегатного состояния пула:
- reserve_risky / reserve_stable: токены пула (wei)
- liquidity: все LP units пула (включая сожжённый минимум и float)
- float_liquidity: часть liquidity, доступная для заимствования
- debt: ликвидность, изъятая из резервов заёмщиками и подлежащая возврату

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. float_liquidity <= liquidity
2. Все поля неотрицательные
3. Пропорциональные дельты округляются вниз (в пользу пула)
"""

from pydantic import Field, model_validator

from src.core.domain.ledger_entry import LedgerEntry
from src.core.errors import (
    InsufficientDebtError,
    InsufficientFloatError,
    InsufficientLiquidityError,
)
from src.core.math.units import per_liquidity


class Reserve(LedgerEntry):
    """Резервы пула. Все изменения создают новый экземпляр."""

    reserve_risky: int = Field(..., ge=0, description="Risky в пуле (wei)")
    reserve_stable: int = Field(..., ge=0, description="Stable в пуле (wei)")
    liquidity: int = Field(..., ge=0, description="Общая ликвидность пула")
    float_liquidity: int = Field(default=0, ge=0, description="Ликвидность для займов")
    debt: int = Field(default=0, ge=0, description="Заимствованная ликвидность")
    block_timestamp: int = Field(..., ge=0, description="Время последнего изменения")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _float_within_liquidity(self) -> "Reserve":
        if self.float_liquidity > self.liquidity:
            raise ValueError(
                f"float_liquidity {self.float_liquidity} exceeds liquidity {self.liquidity}"
            )
        return self

    # -------------------------------------------------------------------------
    # Расчёты
    # -------------------------------------------------------------------------

    def amounts_for(self, delta_liquidity: int) -> tuple[int, int]:
        """
        Пропорциональные токены для delta_liquidity.

        delta_risky = delta_liquidity * reserve_risky / liquidity (вниз)
        delta_stable = delta_liquidity * reserve_stable / liquidity (вниз)
        """
        delta_risky = delta_liquidity * self.reserve_risky // self.liquidity
        delta_stable = delta_liquidity * self.reserve_stable // self.liquidity
        return delta_risky, delta_stable

    def per_liquidity(self) -> tuple[int, int]:
        """Резервы на 1.0 ликвидности (wei)."""
        return (
            per_liquidity(self.reserve_risky, self.liquidity),
            per_liquidity(self.reserve_stable, self.liquidity),
        )

    # -------------------------------------------------------------------------
    # Переходы
    # -------------------------------------------------------------------------

    def allocate(
        self, delta_risky: int, delta_stable: int, delta_liquidity: int, timestamp: int
    ) -> "Reserve":
        return self._evolve({
            "reserve_risky": self.reserve_risky + delta_risky,
            "reserve_stable": self.reserve_stable + delta_stable,
            "liquidity": self.liquidity + delta_liquidity,
            "block_timestamp": timestamp,
        })

    def remove(
        self, delta_risky: int, delta_stable: int, delta_liquidity: int, timestamp: int
    ) -> "Reserve":
        """
        Изъятие ликвидности из пула.

        Raises:
            InsufficientLiquidityError: Если после изъятия float превысит liquidity
        """
        available = self.liquidity - self.float_liquidity
        if delta_liquidity > available:
            raise InsufficientLiquidityError(delta_liquidity, available)
        return self._evolve({
            "reserve_risky": self.reserve_risky - delta_risky,
            "reserve_stable": self.reserve_stable - delta_stable,
            "liquidity": self.liquidity - delta_liquidity,
            "block_timestamp": timestamp,
        })

    def swap(
        self, risky_for_stable: bool, delta_in: int, delta_out: int, timestamp: int
    ) -> "Reserve":
        """Вход добавляется к одной стороне целиком (с комиссией), выход вычитается из другой."""
        if risky_for_stable:
            update = {
                "reserve_risky": self.reserve_risky + delta_in,
                "reserve_stable": self.reserve_stable - delta_out,
            }
        else:
            update = {
                "reserve_risky": self.reserve_risky - delta_out,
                "reserve_stable": self.reserve_stable + delta_in,
            }
        update["block_timestamp"] = timestamp
        return self._evolve(update)

    def add_float(self, delta_liquidity: int) -> "Reserve":
        return self._evolve({"float_liquidity": self.float_liquidity + delta_liquidity})

    def remove_float(self, delta_liquidity: int) -> "Reserve":
        """
        Raises:
            InsufficientFloatError: Если незаимствованного float недостаточно
        """
        if delta_liquidity > self.float_liquidity:
            raise InsufficientFloatError(delta_liquidity, self.float_liquidity)
        return self._evolve({"float_liquidity": self.float_liquidity - delta_liquidity})

    def borrow_float(self, delta_liquidity: int) -> "Reserve":
        """
        float → debt.

        Raises:
            InsufficientFloatError: Если float меньше delta_liquidity
        """
        if delta_liquidity > self.float_liquidity:
            raise InsufficientFloatError(delta_liquidity, self.float_liquidity)
        return self._evolve({
            "float_liquidity": self.float_liquidity - delta_liquidity,
            "debt": self.debt + delta_liquidity,
        })

    def repay_float(self, delta_liquidity: int) -> "Reserve":
        """
        debt → float.

        Raises:
            InsufficientDebtError: Если долг пула меньше delta_liquidity
        """
        if delta_liquidity > self.debt:
            raise InsufficientDebtError(delta_liquidity, self.debt)
        return self._evolve({
            "float_liquidity": self.float_liquidity + delta_liquidity,
            "debt": self.debt - delta_liquidity,
        })
