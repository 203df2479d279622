"""
Domain models and value objects.

Ledger entries of the engine (Calibration, Reserve, Position, Margin),
pool identifiers and published events.
"""

from src.core.domain.calibration import Calibration
from src.core.domain.events import (
    EVENT_TYPES,
    Borrowed,
    EngineEvent,
    LiquidityAllocated,
    LiquidityClaimed,
    LiquidityRemoved,
    LiquiditySupplied,
    MarginDeposited,
    MarginWithdrawn,
    PoolCreated,
    Repaid,
    Swapped,
)
from src.core.domain.identifiers import POOL_ID_PATTERN, compute_pool_id, is_pool_id
from src.core.domain.ledger_entry import LedgerEntry
from src.core.domain.margin import Margin
from src.core.domain.position import Position
from src.core.domain.reserve import Reserve

__all__ = [
    # Ledger models
    "LedgerEntry",
    "Calibration",
    "Reserve",
    "Position",
    "Margin",
    # Identifiers
    "POOL_ID_PATTERN",
    "compute_pool_id",
    "is_pool_id",
    # Events
    "EVENT_TYPES",
    "EngineEvent",
    "PoolCreated",
    "MarginDeposited",
    "MarginWithdrawn",
    "LiquidityAllocated",
    "LiquidityRemoved",
    "Swapped",
    "LiquiditySupplied",
    "LiquidityClaimed",
    "Borrowed",
    "Repaid",
]
