"""
Calibration — параметры кривой пула

Immutable Pydantic модель (strike, sigma, maturity) + last_timestamp.
Тройка (strike, sigma, maturity) неизменна после create; last_timestamp
только растёт (обновляется на каждом swap) и определяет оставшийся срок
опциона tau = max(maturity − last_timestamp, 0).
"""

from pydantic import Field

from src.core.domain.ledger_entry import LedgerEntry


class Calibration(LedgerEntry):
    """
    Калибровка пула.

    Immutable модель (frozen=True). Обновление last_timestamp создаёт
    новый экземпляр.
    """

    strike: int = Field(..., gt=0, description="Strike в stable wei за 1.0 risky")
    sigma: int = Field(..., gt=0, description="Годовая волатильность (10_000 = 100%)")
    maturity: int = Field(..., ge=0, description="Экспирация (unix seconds)")
    last_timestamp: int = Field(..., ge=0, description="Время последнего swap (unix seconds)")

    model_config = {"frozen": True}

    def tau(self) -> int:
        """Оставшееся время до экспирации в секундах (0 после экспирации)."""
        return max(self.maturity - self.last_timestamp, 0)

    def is_expired(self, now: int) -> bool:
        """True если now строго позже maturity."""
        return now > self.maturity

    def with_timestamp(self, now: int) -> "Calibration":
        """
        Продвижение last_timestamp (монотонно).

        Если now меньше текущего last_timestamp (часы хоста не монотонны),
        значение не уменьшается.
        """
        if now <= self.last_timestamp:
            return self
        return self._evolve({"last_timestamp": now})
