"""
Margin — внутренний кошелёк владельца

Балансы risky/stable, хранимые движком. Используются как источник
оплаты и получатель выплат без внешних transfer.
"""

from pydantic import Field

from src.core.domain.ledger_entry import LedgerEntry
from src.core.errors import MarginUnderflowError


class Margin(LedgerEntry):
    """Внутренние балансы владельца (не зависят от пула)."""

    balance_risky: int = Field(default=0, ge=0, description="Risky на margin (wei)")
    balance_stable: int = Field(default=0, ge=0, description="Stable на margin (wei)")

    model_config = {"frozen": True}

    def deposit(self, delta_risky: int, delta_stable: int) -> "Margin":
        return self._evolve({
            "balance_risky": self.balance_risky + delta_risky,
            "balance_stable": self.balance_stable + delta_stable,
        })

    def withdraw(self, delta_risky: int, delta_stable: int) -> "Margin":
        """
        Raises:
            MarginUnderflowError: Если любого из балансов недостаточно
        """
        if delta_risky > self.balance_risky or delta_stable > self.balance_stable:
            raise MarginUnderflowError(
                (delta_risky, delta_stable),
                (self.balance_risky, self.balance_stable),
            )
        return self._evolve({
            "balance_risky": self.balance_risky - delta_risky,
            "balance_stable": self.balance_stable - delta_stable,
        })
