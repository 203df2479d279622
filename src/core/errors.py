"""
Engine Errors — таксономия ошибок пула

Все ошибки фатальны для вызвавшей операции: транзакция откатывается целиком,
автоматических повторов нет, ни одна ошибка не понижается до warning.

Группы:
- Lifecycle: PoolDuplicateError, UninitializedError
- Degenerate parameters: CalibrationError, ZeroDeltasError, ZeroLiquidityError,
  DeltaInError, DeltaOutError
- Balance verification: RiskyBalanceError, StableBalanceError, TransferError
- Expiry: PoolExpiredError
- Curve safety: InvariantError
- Ledger underflow: MarginUnderflowError, InsufficientLiquidityError,
  InsufficientFloatError, InsufficientCollateralError, InsufficientDebtError
- Execution: ReentrancyError
"""

from typing import Any


class EngineError(Exception):
    """Базовая ошибка движка."""

    code: str = "ENGINE_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# --- Lifecycle ---


class PoolDuplicateError(EngineError):
    code = "POOL_DUPLICATE"

    def __init__(self, pool_id: str) -> None:
        self.pool_id = pool_id
        super().__init__(f"Pool already exists: {pool_id}")


class UninitializedError(EngineError):
    code = "UNINITIALIZED"

    def __init__(self, pool_id: str) -> None:
        self.pool_id = pool_id
        super().__init__(f"Pool is not initialized: {pool_id}")


# --- Degenerate parameters ---


class CalibrationError(EngineError):
    code = "CALIBRATION"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid calibration: {reason}")


class ZeroDeltasError(EngineError):
    code = "ZERO_DELTAS"

    def __init__(self, delta_risky: int, delta_stable: int) -> None:
        self.delta_risky = delta_risky
        self.delta_stable = delta_stable
        super().__init__(
            f"Zero token delta: risky={delta_risky}, stable={delta_stable}"
        )


class ZeroLiquidityError(EngineError):
    code = "ZERO_LIQUIDITY"

    def __init__(self, delta_liquidity: int = 0) -> None:
        self.delta_liquidity = delta_liquidity
        super().__init__(f"Liquidity amount is too small: {delta_liquidity}")


class DeltaInError(EngineError):
    code = "DELTA_IN"

    def __init__(self) -> None:
        super().__init__("Swap input amount is zero")


class DeltaOutError(EngineError):
    code = "DELTA_OUT"

    def __init__(self, delta_out: int, reason: str = "") -> None:
        self.delta_out = delta_out
        message = f"Swap output amount is not positive: {delta_out}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


# --- Balance verification ---


class _BalanceError(EngineError):
    token: str = ""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Not enough {self.token}: expected balance >= {expected}, got {actual}"
        )


class RiskyBalanceError(_BalanceError):
    code = "RISKY_BALANCE"
    token = "risky"


class StableBalanceError(_BalanceError):
    code = "STABLE_BALANCE"
    token = "stable"


class TransferError(EngineError):
    code = "TRANSFER"

    def __init__(self, token: str, recipient: str, amount: int) -> None:
        self.token = token
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Transfer of {amount} {token} to {recipient} failed")


# --- Expiry ---


class PoolExpiredError(EngineError):
    code = "POOL_EXPIRED"

    def __init__(self, pool_id: str, now: int, deadline: int) -> None:
        self.pool_id = pool_id
        self.now = now
        self.deadline = deadline
        super().__init__(f"Pool {pool_id} expired: now={now} > deadline={deadline}")


# --- Curve safety ---


class InvariantError(EngineError):
    code = "INVARIANT"

    def __init__(self, before: Any, after: Any) -> None:
        self.before = before
        self.after = after
        super().__init__(
            f"Invariant decreased: before={float(before):.18g}, after={float(after):.18g}"
        )


# --- Ledger underflow ---


class MarginUnderflowError(EngineError):
    code = "MARGIN_UNDERFLOW"

    def __init__(self, requested: tuple[int, int], available: tuple[int, int]) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient margin: requested (risky={requested[0]}, stable={requested[1]}), "
            f"available (risky={available[0]}, stable={available[1]})"
        )


class InsufficientLiquidityError(EngineError):
    code = "INSUFFICIENT_LIQUIDITY"

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient liquidity: requested {requested}, available {available}")


class InsufficientFloatError(EngineError):
    code = "INSUFFICIENT_FLOAT"

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient float: requested {requested}, available {available}")


class InsufficientCollateralError(EngineError):
    code = "INSUFFICIENT_COLLATERAL"

    def __init__(self, requested: tuple[int, int], available: tuple[int, int]) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient collateral: requested (risky={requested[0]}, stable={requested[1]}), "
            f"available (risky={available[0]}, stable={available[1]})"
        )


class InsufficientDebtError(EngineError):
    code = "INSUFFICIENT_DEBT"

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f"Repay exceeds pool debt: requested {requested}, debt {available}")


# --- Execution ---


class ReentrancyError(EngineError):
    code = "REENTRANCY"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Engine is locked, cannot enter {operation}")
