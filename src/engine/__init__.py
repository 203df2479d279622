"""
Pool engine: state machine над ledger пулов и её коллабораторы
(токены, часы, callback протоколы, execution lock).
"""

from src.engine.callbacks import (
    AllocateCallback,
    BorrowCallback,
    Caller,
    CreateCallback,
    DepositCallback,
    RepayCallback,
    SwapCallback,
)
from src.engine.clock import Clock, ManualClock, SystemClock
from src.engine.config import (
    GAMMA,
    GRACE_PERIOD,
    INVARIANT_TOLERANCE_RAW,
    MIN_LIQUIDITY,
    EngineConfig,
)
from src.engine.lock import ExecutionLock
from src.engine.pool_engine import Listener, PoolEngine
from src.engine.token import InMemoryToken, Token

__all__ = [
    # Engine
    "PoolEngine",
    "Listener",
    "ExecutionLock",
    # Config
    "EngineConfig",
    "MIN_LIQUIDITY",
    "GAMMA",
    "GRACE_PERIOD",
    "INVARIANT_TOLERANCE_RAW",
    # Collaborators
    "Token",
    "InMemoryToken",
    "Clock",
    "SystemClock",
    "ManualClock",
    # Callback protocols
    "Caller",
    "CreateCallback",
    "DepositCallback",
    "AllocateCallback",
    "SwapCallback",
    "BorrowCallback",
    "RepayCallback",
]
