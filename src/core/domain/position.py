"""
Position — позиция владельца в пуле

Immutable Pydantic модель, ключ в ledger — (owner, pool_id).

Поля:
- liquidity: собственная ликвидность (LP units)
- float_liquidity: ликвидность, выданная в float для заёмщиков
- risky_collateral / stable_collateral: залог открытого займа

Позиция создаётся лениво при первом обращении; нулевая позиция
эквивалентна отсутствию.
"""

from pydantic import Field

from src.core.domain.ledger_entry import LedgerEntry
from src.core.errors import (
    InsufficientCollateralError,
    InsufficientFloatError,
    InsufficientLiquidityError,
)


class Position(LedgerEntry):
    """
    Позиция в пуле.

    Immutable модель (frozen=True) для предотвращения случайных изменений.
    Все изменения позиции должны создавать новый экземпляр.
    """

    liquidity: int = Field(default=0, ge=0, description="Собственная ликвидность")
    float_liquidity: int = Field(default=0, ge=0, description="Ликвидность в float")
    risky_collateral: int = Field(default=0, ge=0, description="Risky залог займа")
    stable_collateral: int = Field(default=0, ge=0, description="Stable залог займа")

    model_config = {"frozen": True}

    @property
    def has_debt(self) -> bool:
        return self.risky_collateral > 0 or self.stable_collateral > 0

    def is_empty(self) -> bool:
        return not (self.liquidity or self.float_liquidity or self.has_debt)

    # -------------------------------------------------------------------------
    # Ликвидность
    # -------------------------------------------------------------------------

    def allocate(self, delta_liquidity: int) -> "Position":
        return self._evolve({"liquidity": self.liquidity + delta_liquidity})

    def remove(self, delta_liquidity: int) -> "Position":
        """
        Raises:
            InsufficientLiquidityError: Если liquidity < delta_liquidity
        """
        if delta_liquidity > self.liquidity:
            raise InsufficientLiquidityError(delta_liquidity, self.liquidity)
        return self._evolve({"liquidity": self.liquidity - delta_liquidity})

    # -------------------------------------------------------------------------
    # Float
    # -------------------------------------------------------------------------

    def supply(self, delta_liquidity: int) -> "Position":
        """liquidity → float."""
        if delta_liquidity > self.liquidity:
            raise InsufficientLiquidityError(delta_liquidity, self.liquidity)
        return self._evolve({
            "liquidity": self.liquidity - delta_liquidity,
            "float_liquidity": self.float_liquidity + delta_liquidity,
        })

    def claim(self, delta_liquidity: int) -> "Position":
        """float → liquidity."""
        if delta_liquidity > self.float_liquidity:
            raise InsufficientFloatError(delta_liquidity, self.float_liquidity)
        return self._evolve({
            "liquidity": self.liquidity + delta_liquidity,
            "float_liquidity": self.float_liquidity - delta_liquidity,
        })

    # -------------------------------------------------------------------------
    # Займы
    # -------------------------------------------------------------------------

    def borrow(self, risky_collateral: int, stable_collateral: int) -> "Position":
        return self._evolve({
            "risky_collateral": self.risky_collateral + risky_collateral,
            "stable_collateral": self.stable_collateral + stable_collateral,
        })

    def repay(self, risky_collateral: int, stable_collateral: int) -> "Position":
        """
        Raises:
            InsufficientCollateralError: Если залога меньше запрошенного
        """
        if (
            risky_collateral > self.risky_collateral
            or stable_collateral > self.stable_collateral
        ):
            raise InsufficientCollateralError(
                (risky_collateral, stable_collateral),
                (self.risky_collateral, self.stable_collateral),
            )
        return self._evolve({
            "risky_collateral": self.risky_collateral - risky_collateral,
            "stable_collateral": self.stable_collateral - stable_collateral,
        })
