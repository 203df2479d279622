"""
Pool Engine — движок replication AMM пулов

Владеет ledger-картами (calibrations, reserves, positions, margins) и
выполняет десять изменяющих операций:

    create / deposit / withdraw / allocate / remove / swap /
    supply / claim / borrow / repay

Порядок каждой изменяющей операции:
1. Захват ExecutionLock (ReentrancyError при повторном входе)
2. Транзакция: снимок ledger-карт и балансов токенов, откат при любой ошибке
3. Расчёт дельт по ReplicationCurve, подготовка новых записей ledger
4. Выплаты и запрос токенов через callback вызывающего с проверкой балансов
5. Commit записей ledger
6. После освобождения замка: публикация событий подписчикам

Views (invariant_of, get_*_given_*, accessors, snapshot) не берут замок и
видят последнее зафиксированное состояние.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from src.core.contracts import EngineEventValidator
from src.core.domain.calibration import Calibration
from src.core.domain.events import (
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
from src.core.domain.identifiers import compute_pool_id
from src.core.domain.margin import Margin
from src.core.domain.position import Position
from src.core.domain.reserve import Reserve
from src.core.errors import (
    CalibrationError,
    DeltaInError,
    DeltaOutError,
    InvariantError,
    PoolDuplicateError,
    PoolExpiredError,
    RiskyBalanceError,
    StableBalanceError,
    TransferError,
    UninitializedError,
    ZeroDeltasError,
    ZeroLiquidityError,
)
from src.core.math.fixed_point import ZERO, DomainError, Fixed64x64
from src.core.math.replication import (
    calc_invariant,
    get_risky_given_stable,
    get_stable_given_risky,
    solve_risky_given_stable,
)
from src.core.math.units import PERCENTAGE, PRECISION, per_liquidity, scale_by_liquidity
from src.engine.clock import Clock, SystemClock
from src.engine.config import EngineConfig
from src.engine.lock import ExecutionLock
from src.engine.token import Token

logger = logging.getLogger(__name__)

Listener = Callable[[EngineEvent], None]
PositionKey = Tuple[str, str]


def _entrypoint(operation: str):
    """Изменяющая операция: замок → транзакция → публикация событий."""

    def decorator(method):
        @functools.wraps(method)
        def wrapper(self: "PoolEngine", *args, **kwargs):
            with self._lock.hold(operation):
                logger.debug("%s: enter %s", self.address, operation)
                with self._transaction(operation):
                    result = method(self, *args, **kwargs)
                events, self._pending = self._pending, []
            self._publish(events)
            return result

        return wrapper

    return decorator


def _require_non_negative(**amounts: int) -> None:
    for name, value in amounts.items():
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")


class PoolEngine:
    """
    Движок пулов для пары токенов (risky, stable).

    Args:
        address: Адрес движка (держатель резервов и margin)
        risky: Risky токен
        stable: Stable токен
        config: Параметры движка (по умолчанию EngineConfig())
        clock: Источник времени (по умолчанию SystemClock())
    """

    def __init__(
        self,
        address: str,
        risky: Token,
        stable: Token,
        config: Optional[EngineConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.address = address
        self.risky = risky
        self.stable = stable
        self.config = config or EngineConfig()
        self.clock = clock or SystemClock()

        self._lock = ExecutionLock()
        self._calibrations: Dict[str, Calibration] = {}
        self._reserves: Dict[str, Reserve] = {}
        self._positions: Dict[PositionKey, Position] = {}
        self._margins: Dict[str, Margin] = {}

        self._listeners: List[Listener] = []
        self._pending: List[EngineEvent] = []
        self._event_validator = EngineEventValidator() if self.config.validate_events else None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @_entrypoint("create")
    def create(
        self,
        caller: Any,
        strike: int,
        sigma: int,
        maturity: int,
        delta: int,
        delta_liquidity: int,
        data: bytes = b"",
    ) -> Tuple[str, int, int]:
        """
        Создание пула с начальной ликвидностью.

        Args:
            caller: Вызывающий с create_callback
            strike: Strike (stable wei за 1.0 risky)
            sigma: Волатильность (PERCENTAGE-шкала)
            maturity: Экспирация (unix seconds)
            delta: Дельта опциона (wei, 0 < delta < PRECISION); risky на 1.0 L = 1 − delta
            delta_liquidity: Начальная ликвидность (часть сжигается)
            data: Непрозрачные данные для callback

        Returns:
            (pool_id, delta_risky, delta_stable)
        """
        cfg = self.config
        now = self.clock.now()

        if min(strike, sigma, maturity) < 0:
            raise CalibrationError("calibration parameters must be non-negative")
        pool_id = compute_pool_id(self.address, strike, sigma, maturity)
        if pool_id in self._calibrations:
            raise PoolDuplicateError(pool_id)
        if strike == 0:
            raise CalibrationError("strike is zero")
        if not cfg.min_sigma <= sigma <= cfg.max_sigma:
            raise CalibrationError(f"sigma {sigma} outside [{cfg.min_sigma}, {cfg.max_sigma}]")
        if maturity <= now:
            raise CalibrationError(f"maturity {maturity} is not after now {now}")
        if not 0 < delta < PRECISION:
            raise CalibrationError(f"delta {delta} outside (0, {PRECISION})")
        if delta_liquidity <= cfg.min_liquidity:
            raise ZeroLiquidityError(delta_liquidity)

        calibration = Calibration(strike=strike, sigma=sigma, maturity=maturity, last_timestamp=now)
        risky_pl = PRECISION - delta
        stable_pl = get_stable_given_risky(risky_pl, strike, sigma, calibration.tau())
        delta_risky = scale_by_liquidity(risky_pl, delta_liquidity)
        delta_stable = scale_by_liquidity(stable_pl, delta_liquidity)
        if delta_risky == 0 or delta_stable == 0:
            raise ZeroDeltasError(delta_risky, delta_stable)

        reserve = Reserve(
            reserve_risky=delta_risky,
            reserve_stable=delta_stable,
            liquidity=delta_liquidity,
            block_timestamp=now,
        )
        key = (caller.address, pool_id)
        position = self._position_of(*key).allocate(delta_liquidity - cfg.min_liquidity)

        self._request_and_verify(caller.create_callback, delta_risky, delta_stable, data)

        self._calibrations[pool_id] = calibration
        self._reserves[pool_id] = reserve
        self._positions[key] = position
        self._emit(
            PoolCreated(
                sender=caller.address,
                timestamp=now,
                pool_id=pool_id,
                strike=strike,
                sigma=sigma,
                maturity=maturity,
                delta_risky=delta_risky,
                delta_stable=delta_stable,
                delta_liquidity=delta_liquidity,
            )
        )
        return pool_id, delta_risky, delta_stable

    # =========================================================================
    # MARGIN
    # =========================================================================

    @_entrypoint("deposit")
    def deposit(
        self,
        caller: Any,
        recipient: str,
        delta_risky: int,
        delta_stable: int,
        data: bytes = b"",
    ) -> None:
        _require_non_negative(delta_risky=delta_risky, delta_stable=delta_stable)
        if delta_risky == 0 and delta_stable == 0:
            raise ZeroDeltasError(delta_risky, delta_stable)

        margin = self._margin_of(recipient).deposit(delta_risky, delta_stable)
        self._request_and_verify(caller.deposit_callback, delta_risky, delta_stable, data)

        self._margins[recipient] = margin
        self._emit(
            MarginDeposited(
                sender=caller.address,
                timestamp=self.clock.now(),
                recipient=recipient,
                delta_risky=delta_risky,
                delta_stable=delta_stable,
            )
        )

    @_entrypoint("withdraw")
    def withdraw(
        self,
        caller: Any,
        recipient: str,
        delta_risky: int,
        delta_stable: int,
    ) -> None:
        _require_non_negative(delta_risky=delta_risky, delta_stable=delta_stable)
        if delta_risky == 0 and delta_stable == 0:
            raise ZeroDeltasError(delta_risky, delta_stable)

        margin = self._margin_of(caller.address).withdraw(delta_risky, delta_stable)
        self._pay(self.risky, recipient, delta_risky)
        self._pay(self.stable, recipient, delta_stable)

        self._margins[caller.address] = margin
        self._emit(
            MarginWithdrawn(
                sender=caller.address,
                timestamp=self.clock.now(),
                recipient=recipient,
                delta_risky=delta_risky,
                delta_stable=delta_stable,
            )
        )

    # =========================================================================
    # LIQUIDITY
    # =========================================================================

    @_entrypoint("allocate")
    def allocate(
        self,
        caller: Any,
        pool_id: str,
        recipient: str,
        delta_liquidity: int,
        from_margin: bool = False,
        data: bytes = b"",
    ) -> Tuple[int, int]:
        """
        Добавление ликвидности в пул пропорционально текущим резервам.

        Returns:
            (delta_risky, delta_stable), округлённые вниз
        """
        _require_non_negative(delta_liquidity=delta_liquidity)
        calibration, reserve = self._require_pool(pool_id)
        now = self.clock.now()
        if calibration.is_expired(now):
            raise PoolExpiredError(pool_id, now, calibration.maturity)

        delta_risky, delta_stable = reserve.amounts_for(delta_liquidity)
        if delta_risky == 0 or delta_stable == 0:
            raise ZeroDeltasError(delta_risky, delta_stable)

        invariant_before = self._invariant(calibration, reserve)
        next_reserve = reserve.allocate(delta_risky, delta_stable, delta_liquidity, now)
        key = (recipient, pool_id)
        position = self._position_of(*key).allocate(delta_liquidity)

        margins: Dict[str, Margin] = {}
        if from_margin:
            margins[caller.address] = self._margin_of(caller.address).withdraw(
                delta_risky, delta_stable
            )
        else:
            self._request_and_verify(caller.allocate_callback, delta_risky, delta_stable, data)

        self._check_invariant(calibration, invariant_before, next_reserve)

        self._reserves[pool_id] = next_reserve
        self._positions[key] = position
        self._margins.update(margins)
        self._emit(
            LiquidityAllocated(
                sender=caller.address,
                timestamp=now,
                pool_id=pool_id,
                recipient=recipient,
                delta_liquidity=delta_liquidity,
                delta_risky=delta_risky,
                delta_stable=delta_stable,
                from_margin=from_margin,
            )
        )
        return delta_risky, delta_stable

    @_entrypoint("remove")
    def remove(self, caller: Any, pool_id: str, delta_liquidity: int) -> Tuple[int, int]:
        """
        Изъятие ликвидности; токены зачисляются на margin вызывающего.

        Returns:
            (delta_risky, delta_stable), округлённые вниз
        """
        _require_non_negative(delta_liquidity=delta_liquidity)
        if delta_liquidity == 0:
            raise ZeroLiquidityError(delta_liquidity)
        calibration, reserve = self._require_pool(pool_id)
        now = self.clock.now()

        key = (caller.address, pool_id)
        position = self._position_of(*key).remove(delta_liquidity)
        delta_risky, delta_stable = reserve.amounts_for(delta_liquidity)

        invariant_before = self._invariant(calibration, reserve)
        next_reserve = reserve.remove(delta_risky, delta_stable, delta_liquidity, now)
        margin = self._margin_of(caller.address).deposit(delta_risky, delta_stable)
        self._check_invariant(calibration, invariant_before, next_reserve)

        self._reserves[pool_id] = next_reserve
        self._positions[key] = position
        self._margins[caller.address] = margin
        self._emit(
            LiquidityRemoved(
                sender=caller.address,
                timestamp=now,
                pool_id=pool_id,
                delta_liquidity=delta_liquidity,
                delta_risky=delta_risky,
                delta_stable=delta_stable,
            )
        )
        return delta_risky, delta_stable

    # =========================================================================
    # SWAP
    # =========================================================================

    @_entrypoint("swap")
    def swap(
        self,
        caller: Any,
        pool_id: str,
        risky_for_stable: bool,
        delta_in: int,
        from_margin: bool = False,
        data: bytes = b"",
    ) -> int:
        """
        Обмен по кривой пула.

        Вход после комиссии (gamma) определяет новый резерв входной стороны,
        выходная сторона берётся из кривой, сдвинутой на текущий инвариант.
        В резерв зачисляется весь delta_in: комиссия остаётся в пуле и
        увеличивает k.

        Returns:
            delta_out
        """
        _require_non_negative(delta_in=delta_in)
        if delta_in == 0:
            raise DeltaInError()
        calibration, reserve = self._require_pool(pool_id)
        now = self.clock.now()
        deadline = calibration.maturity + self.config.grace_period
        if now > deadline:
            raise PoolExpiredError(pool_id, now, deadline)

        calibration = calibration.with_timestamp(now)
        strike, sigma, tau = calibration.strike, calibration.sigma, calibration.tau()
        invariant_before = self._invariant(calibration, reserve)
        delta_in_with_fee = delta_in * self.config.gamma // PERCENTAGE
        liquidity = reserve.liquidity

        try:
            if risky_for_stable:
                next_risky_pl = per_liquidity(reserve.reserve_risky + delta_in_with_fee, liquidity)
                next_stable_pl = get_stable_given_risky(
                    next_risky_pl, strike, sigma, tau, invariant_before
                )
                delta_out = reserve.reserve_stable - _scale_up(next_stable_pl, liquidity)
            else:
                next_stable_pl = per_liquidity(reserve.reserve_stable + delta_in_with_fee, liquidity)
                next_risky_pl = solve_risky_given_stable(
                    next_stable_pl, strike, sigma, tau, invariant_before
                )
                delta_out = reserve.reserve_risky - _scale_up(next_risky_pl, liquidity)
        except DomainError as e:
            # вход выводит резерв за пределы кривой
            raise DeltaOutError(0, str(e)) from e
        if delta_out <= 0:
            raise DeltaOutError(delta_out)

        next_reserve = reserve.swap(risky_for_stable, delta_in, delta_out, now)
        self._check_invariant(calibration, invariant_before, next_reserve)

        token_in, token_out = (
            (self.risky, self.stable) if risky_for_stable else (self.stable, self.risky)
        )
        self._pay(token_out, caller.address, delta_out)

        requested = (delta_in, 0) if risky_for_stable else (0, delta_in)
        margins: Dict[str, Margin] = {}
        if from_margin:
            margins[caller.address] = self._margin_of(caller.address).withdraw(*requested)
        else:
            self._request_and_verify(caller.swap_callback, *requested, data)

        self._calibrations[pool_id] = calibration
        self._reserves[pool_id] = next_reserve
        self._margins.update(margins)
        logger.debug(
            "swap %s: %s in=%d out=%d (%s)",
            pool_id,
            "risky→stable" if risky_for_stable else "stable→risky",
            delta_in,
            delta_out,
            token_in.symbol,
        )
        self._emit(
            Swapped(
                sender=caller.address,
                timestamp=now,
                pool_id=pool_id,
                risky_for_stable=risky_for_stable,
                delta_in=delta_in,
                delta_out=delta_out,
                from_margin=from_margin,
            )
        )
        return delta_out

    # =========================================================================
    # FLOAT / LENDING
    # =========================================================================

    @_entrypoint("supply")
    def supply(self, caller: Any, pool_id: str, delta_liquidity: int) -> None:
        """Перевод собственной ликвидности в float (доступна для займов)."""
        _require_non_negative(delta_liquidity=delta_liquidity)
        if delta_liquidity == 0:
            raise ZeroLiquidityError(delta_liquidity)
        _, reserve = self._require_pool(pool_id)

        key = (caller.address, pool_id)
        position = self._position_of(*key).supply(delta_liquidity)
        next_reserve = reserve.add_float(delta_liquidity)

        self._positions[key] = position
        self._reserves[pool_id] = next_reserve
        self._emit(
            LiquiditySupplied(
                sender=caller.address,
                timestamp=self.clock.now(),
                pool_id=pool_id,
                delta_liquidity=delta_liquidity,
            )
        )

    @_entrypoint("claim")
    def claim(self, caller: Any, pool_id: str, delta_liquidity: int) -> None:
        """Возврат ликвидности из float; заимствованная часть недоступна."""
        _require_non_negative(delta_liquidity=delta_liquidity)
        if delta_liquidity == 0:
            raise ZeroLiquidityError(delta_liquidity)
        _, reserve = self._require_pool(pool_id)

        key = (caller.address, pool_id)
        position = self._position_of(*key).claim(delta_liquidity)
        next_reserve = reserve.remove_float(delta_liquidity)

        self._positions[key] = position
        self._reserves[pool_id] = next_reserve
        self._emit(
            LiquidityClaimed(
                sender=caller.address,
                timestamp=self.clock.now(),
                pool_id=pool_id,
                delta_liquidity=delta_liquidity,
            )
        )

    @_entrypoint("borrow")
    def borrow(
        self,
        caller: Any,
        pool_id: str,
        risky_collateral: int,
        stable_collateral: int,
        from_margin: bool = False,
        data: bytes = b"",
    ) -> None:
        """
        Заём float ликвидности под залог.

        delta_liquidity = risky_collateral + stable_collateral * PRECISION / strike.
        Ликвидность изымается из резервов; разница между залогом и изъятыми
        токенами урегулируется с вызывающим по каждому токену: излишек
        выплачивается, недостача запрашивается.
        """
        _require_non_negative(risky_collateral=risky_collateral, stable_collateral=stable_collateral)
        calibration, reserve = self._require_pool(pool_id)
        delta_liquidity = self._liquidity_for(calibration, risky_collateral, stable_collateral)
        if delta_liquidity == 0:
            raise ZeroLiquidityError(delta_liquidity)
        now = self.clock.now()
        if calibration.is_expired(now):
            raise PoolExpiredError(pool_id, now, calibration.maturity)

        invariant_before = self._invariant(calibration, reserve)
        delta_risky, delta_stable = reserve.amounts_for(delta_liquidity)
        next_reserve = reserve.borrow_float(delta_liquidity).remove(
            delta_risky, delta_stable, delta_liquidity, now
        )
        key = (caller.address, pool_id)
        position = self._position_of(*key).borrow(risky_collateral, stable_collateral)

        deficit = (
            max(risky_collateral - delta_risky, 0),
            max(stable_collateral - delta_stable, 0),
        )
        surplus = (
            max(delta_risky - risky_collateral, 0),
            max(delta_stable - stable_collateral, 0),
        )
        margins = self._settle(caller, caller.address, deficit, surplus, from_margin, "borrow_callback", data)
        self._check_invariant(calibration, invariant_before, next_reserve)

        self._reserves[pool_id] = next_reserve
        self._positions[key] = position
        self._margins.update(margins)
        self._emit(
            Borrowed(
                sender=caller.address,
                timestamp=now,
                pool_id=pool_id,
                recipient=caller.address,
                delta_liquidity=delta_liquidity,
                risky_collateral=risky_collateral,
                stable_collateral=stable_collateral,
                risky_deficit=deficit[0],
                stable_deficit=deficit[1],
                risky_surplus=surplus[0],
                stable_surplus=surplus[1],
                from_margin=from_margin,
            )
        )

    @_entrypoint("repay")
    def repay(
        self,
        caller: Any,
        pool_id: str,
        recipient: str,
        risky_collateral: int,
        stable_collateral: int,
        from_margin: bool = False,
        data: bytes = b"",
    ) -> None:
        """
        Погашение займа: ликвидность возвращается в резервы, долг — во float.

        До экспирации погашается позиция вызывающего. После экспирации
        погашается позиция recipient (любой может закрыть просроченный заём),
        и излишек залога выплачивается ему же.
        """
        _require_non_negative(risky_collateral=risky_collateral, stable_collateral=stable_collateral)
        calibration, reserve = self._require_pool(pool_id)
        delta_liquidity = self._liquidity_for(calibration, risky_collateral, stable_collateral)
        if delta_liquidity == 0:
            raise ZeroLiquidityError(delta_liquidity)
        now = self.clock.now()
        owner = recipient if calibration.is_expired(now) else caller.address

        key = (owner, pool_id)
        position = self._position_of(*key).repay(risky_collateral, stable_collateral)
        invariant_before = self._invariant(calibration, reserve)
        delta_risky, delta_stable = reserve.amounts_for(delta_liquidity)
        next_reserve = reserve.allocate(
            delta_risky, delta_stable, delta_liquidity, now
        ).repay_float(delta_liquidity)

        deficit = (
            max(delta_risky - risky_collateral, 0),
            max(delta_stable - stable_collateral, 0),
        )
        surplus = (
            max(risky_collateral - delta_risky, 0),
            max(stable_collateral - delta_stable, 0),
        )
        margins = self._settle(caller, owner, deficit, surplus, from_margin, "repay_callback", data)
        self._check_invariant(calibration, invariant_before, next_reserve)

        self._reserves[pool_id] = next_reserve
        self._positions[key] = position
        self._margins.update(margins)
        self._emit(
            Repaid(
                sender=caller.address,
                timestamp=now,
                pool_id=pool_id,
                recipient=owner,
                delta_liquidity=delta_liquidity,
                risky_collateral=risky_collateral,
                stable_collateral=stable_collateral,
                risky_deficit=deficit[0],
                stable_deficit=deficit[1],
                risky_surplus=surplus[0],
                stable_surplus=surplus[1],
                from_margin=from_margin,
            )
        )

    # =========================================================================
    # VIEWS
    # =========================================================================

    def invariant_of(self, pool_id: str) -> Fixed64x64:
        """Текущий инвариант k пула при tau от last_timestamp."""
        calibration, reserve = self._require_pool(pool_id)
        return self._invariant(calibration, reserve)

    def get_stable_given_risky(self, pool_id: str, risky_per_liquidity: int) -> int:
        calibration, reserve = self._require_pool(pool_id)
        return get_stable_given_risky(
            risky_per_liquidity,
            calibration.strike,
            calibration.sigma,
            calibration.tau(),
            self._invariant(calibration, reserve),
        )

    def get_risky_given_stable(self, pool_id: str, stable_per_liquidity: int) -> int:
        calibration, reserve = self._require_pool(pool_id)
        return get_risky_given_stable(
            stable_per_liquidity,
            calibration.strike,
            calibration.sigma,
            calibration.tau(),
            self._invariant(calibration, reserve),
        )

    def calibration(self, pool_id: str) -> Calibration:
        return self._require_pool(pool_id)[0]

    def reserve(self, pool_id: str) -> Reserve:
        return self._require_pool(pool_id)[1]

    def position(self, owner: str, pool_id: str) -> Position:
        return self._position_of(owner, pool_id)

    def margin(self, owner: str) -> Margin:
        return self._margin_of(owner)

    def pool_ids(self) -> List[str]:
        return list(self._calibrations)

    def snapshot(self, pool_id: str) -> Dict[str, Any]:
        """JSON-совместимый снимок пула (contracts/schema/pool_snapshot.json)."""
        calibration, reserve = self._require_pool(pool_id)
        invariant = self._invariant(calibration, reserve)
        return {
            "pool_id": pool_id,
            "engine": self.address,
            "timestamp": self.clock.now(),
            "tau": calibration.tau(),
            "calibration": calibration.model_dump(),
            "reserve": reserve.model_dump(),
            "invariant": {"raw": invariant.raw, "value": float(invariant)},
        }

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Подписка на события.

        Returns:
            Функция отписки
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _require_pool(self, pool_id: str) -> Tuple[Calibration, Reserve]:
        try:
            return self._calibrations[pool_id], self._reserves[pool_id]
        except KeyError:
            raise UninitializedError(pool_id) from None

    def _position_of(self, owner: str, pool_id: str) -> Position:
        return self._positions.get((owner, pool_id), Position())

    def _margin_of(self, owner: str) -> Margin:
        return self._margins.get(owner, Margin())

    @staticmethod
    def _liquidity_for(calibration: Calibration, risky: int, stable: int) -> int:
        return risky + stable * PRECISION // calibration.strike

    @staticmethod
    def _invariant(calibration: Calibration, reserve: Reserve) -> Fixed64x64:
        if reserve.liquidity == 0:
            return ZERO
        risky_pl, stable_pl = reserve.per_liquidity()
        return calc_invariant(
            risky_pl, stable_pl, calibration.strike, calibration.sigma, calibration.tau()
        )

    def _check_invariant(
        self, calibration: Calibration, before: Fixed64x64, reserve: Reserve
    ) -> None:
        after = self._invariant(calibration, reserve)
        if (before - after).raw > self.config.invariant_tolerance_raw:
            raise InvariantError(before, after)

    def _balances(self) -> Tuple[int, int]:
        return self.risky.balance_of(self.address), self.stable.balance_of(self.address)

    def _request_and_verify(
        self,
        callback: Callable[[int, int, bytes], None],
        delta_risky: int,
        delta_stable: int,
        data: bytes,
    ) -> None:
        """Запрос токенов через callback и проверка прироста балансов движка."""
        risky_before, stable_before = self._balances()
        callback(delta_risky, delta_stable, data)
        risky_after, stable_after = self._balances()
        if risky_after < risky_before + delta_risky:
            raise RiskyBalanceError(risky_before + delta_risky, risky_after)
        if stable_after < stable_before + delta_stable:
            raise StableBalanceError(stable_before + delta_stable, stable_after)

    def _pay(self, token: Token, recipient: str, amount: int) -> None:
        """Перевод с адреса движка с проверкой фактического списания."""
        if amount == 0:
            return
        if recipient == self.address:
            raise ValueError(f"recipient must not be the engine itself: {recipient}")
        before = token.balance_of(self.address)
        if not token.transfer(self.address, recipient, amount):
            raise TransferError(token.symbol, recipient, amount)
        if token.balance_of(self.address) != before - amount:
            raise TransferError(token.symbol, recipient, amount)

    def _settle(
        self,
        caller: Any,
        payee: str,
        deficit: Tuple[int, int],
        surplus: Tuple[int, int],
        from_margin: bool,
        callback_name: str,
        data: bytes,
    ) -> Dict[str, Margin]:
        """
        Урегулирование borrow/repay.

        Returns:
            Новые записи margin для commit (пусто, если margin не участвует)
        """
        margins: Dict[str, Margin] = {}
        if from_margin:
            margins[caller.address] = self._margin_of(caller.address).withdraw(*deficit)
            payee_margin = margins.get(payee, self._margin_of(payee))
            margins[payee] = payee_margin.deposit(*surplus)
            return margins

        self._pay(self.risky, payee, surplus[0])
        self._pay(self.stable, payee, surplus[1])
        if deficit != (0, 0):
            self._request_and_verify(getattr(caller, callback_name), *deficit, data)
        return margins

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        """Снимок ledger и балансов токенов; откат при любой ошибке."""
        saved = (
            dict(self._calibrations),
            dict(self._reserves),
            dict(self._positions),
            dict(self._margins),
        )
        risky_state = self.risky.snapshot()
        stable_state = self.stable.snapshot()
        try:
            yield
        except Exception as e:
            self._calibrations, self._reserves, self._positions, self._margins = saved
            self.risky.restore(risky_state)
            self.stable.restore(stable_state)
            self._pending = []
            logger.debug(
                "%s: %s aborted (%s)", self.address, operation, getattr(e, "code", type(e).__name__)
            )
            raise

    def _emit(self, event: EngineEvent) -> None:
        self._pending.append(event)

    def _publish(self, events: List[EngineEvent]) -> None:
        for event in events:
            payload = event.to_payload()
            if self._event_validator is not None:
                self._event_validator.validate(payload)
            logger.info("%s %s", event.name, payload)
            for listener in list(self._listeners):
                listener(event)


def _scale_up(amount_per_liquidity: int, liquidity: int) -> int:
    """Резерв на 1.0 ликвидности → абсолютный резерв, округление вверх."""
    return -(-amount_per_liquidity * liquidity // PRECISION)
