"""
Engine Events — события, публикуемые после успешного commit

Каждое событие — immutable Pydantic модель с общими полями sender и timestamp.
to_payload() возвращает JSON-совместимый dict с полем "event" (имя события),
который проверяется схемой contracts/schema/engine_event.json.
"""

from typing import Any, ClassVar, Dict

from pydantic import BaseModel, Field


class EngineEvent(BaseModel):
    """Базовое событие движка."""

    name: ClassVar[str] = "EngineEvent"

    sender: str = Field(..., min_length=1, description="Адрес вызывающего")
    timestamp: int = Field(..., ge=0, description="Время операции (unix seconds)")

    model_config = {"frozen": True}

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json")
        payload["event"] = self.name
        return payload


# =============================================================================
# LIFECYCLE / MARGIN
# =============================================================================


class PoolCreated(EngineEvent):
    name: ClassVar[str] = "PoolCreated"

    pool_id: str
    strike: int = Field(..., gt=0)
    sigma: int = Field(..., gt=0)
    maturity: int = Field(..., ge=0)
    delta_risky: int = Field(..., ge=0)
    delta_stable: int = Field(..., ge=0)
    delta_liquidity: int = Field(..., gt=0)


class MarginDeposited(EngineEvent):
    name: ClassVar[str] = "MarginDeposited"

    recipient: str
    delta_risky: int = Field(..., ge=0)
    delta_stable: int = Field(..., ge=0)


class MarginWithdrawn(EngineEvent):
    name: ClassVar[str] = "MarginWithdrawn"

    recipient: str
    delta_risky: int = Field(..., ge=0)
    delta_stable: int = Field(..., ge=0)


# =============================================================================
# LIQUIDITY
# =============================================================================


class LiquidityAllocated(EngineEvent):
    name: ClassVar[str] = "LiquidityAllocated"

    pool_id: str
    recipient: str
    delta_liquidity: int = Field(..., gt=0)
    delta_risky: int = Field(..., ge=0)
    delta_stable: int = Field(..., ge=0)
    from_margin: bool


class LiquidityRemoved(EngineEvent):
    name: ClassVar[str] = "LiquidityRemoved"

    pool_id: str
    delta_liquidity: int = Field(..., gt=0)
    delta_risky: int = Field(..., ge=0)
    delta_stable: int = Field(..., ge=0)


class Swapped(EngineEvent):
    name: ClassVar[str] = "Swapped"

    pool_id: str
    risky_for_stable: bool
    delta_in: int = Field(..., gt=0)
    delta_out: int = Field(..., gt=0)
    from_margin: bool


# =============================================================================
# FLOAT / LENDING
# =============================================================================


class LiquiditySupplied(EngineEvent):
    name: ClassVar[str] = "LiquiditySupplied"

    pool_id: str
    delta_liquidity: int = Field(..., gt=0)


class LiquidityClaimed(EngineEvent):
    name: ClassVar[str] = "LiquidityClaimed"

    pool_id: str
    delta_liquidity: int = Field(..., gt=0)


class _Settlement(EngineEvent):
    """Общие поля borrow/repay: залог и разница, урегулированная с вызывающим."""

    pool_id: str
    recipient: str
    delta_liquidity: int = Field(..., gt=0)
    risky_collateral: int = Field(..., ge=0)
    stable_collateral: int = Field(..., ge=0)
    risky_deficit: int = Field(..., ge=0)
    stable_deficit: int = Field(..., ge=0)
    risky_surplus: int = Field(..., ge=0)
    stable_surplus: int = Field(..., ge=0)
    from_margin: bool


class Borrowed(_Settlement):
    name: ClassVar[str] = "Borrowed"


class Repaid(_Settlement):
    name: ClassVar[str] = "Repaid"


EVENT_TYPES: tuple[type[EngineEvent], ...] = (
    PoolCreated,
    MarginDeposited,
    MarginWithdrawn,
    LiquidityAllocated,
    LiquidityRemoved,
    Swapped,
    LiquiditySupplied,
    LiquidityClaimed,
    Borrowed,
    Repaid,
)
