"""
Тесты ExecutionLock и атомарности операций PoolEngine

- Повторный вход из callback отклоняется с ReentrancyError
- Ошибка внутри операции откатывает ledger и балансы токенов
- После ошибки замок освобождён
- Views внутри callback видят зафиксированное состояние
"""

import pytest

from src.core.errors import ReentrancyError, RiskyBalanceError
from src.core.math import PRECISION
from src.engine import ExecutionLock
from tests.conftest import ENGINE, ROUTER


class TestExecutionLock:
    def test_hold_and_release(self):
        lock = ExecutionLock()
        with lock.hold("swap"):
            assert lock.locked
            assert lock.holder == "swap"
        assert not lock.locked
        assert lock.holder is None

    def test_nested_hold_rejected(self):
        lock = ExecutionLock()
        with lock.hold("swap"):
            with pytest.raises(ReentrancyError) as exc_info:
                with lock.hold("deposit"):
                    pass
            assert lock.holder == "swap"
        assert exc_info.value.operation == "deposit"
        assert exc_info.value.code == "REENTRANCY"

    def test_released_after_error(self):
        lock = ExecutionLock()
        with pytest.raises(RuntimeError):
            with lock.hold("swap"):
                raise RuntimeError("boom")
        assert not lock.locked


class TestReentrancy:
    def test_reentrant_call_rejected(self, engine, router, pool, risky, stable, events):
        reserve = engine.reserve(pool)
        balances = (risky.balance_of(ROUTER), stable.balance_of(ROUTER))
        emitted = len(events)
        router.reenter = lambda: engine.deposit(router, ROUTER, 1, 1)

        with pytest.raises(ReentrancyError):
            engine.swap(router, pool, True, 10**16)

        assert engine.reserve(pool) == reserve
        assert (risky.balance_of(ROUTER), stable.balance_of(ROUTER)) == balances
        assert len(events) == emitted

    @pytest.mark.parametrize("operation", ["allocate", "remove", "create"])
    def test_every_operation_is_guarded(self, engine, router, pool, operation):
        calls = {
            "allocate": lambda: engine.allocate(router, pool, ROUTER, PRECISION),
            "remove": lambda: engine.remove(router, pool, 1),
            "create": lambda: engine.create(router, 1, 1, 2 * 10**9, 1, 10**6),
        }
        router.reenter = calls[operation]
        with pytest.raises(ReentrancyError, match=operation):
            engine.deposit(router, ROUTER, 1, 1)

    def test_lock_released_after_failure(self, engine, router, pool):
        router.reenter = lambda: engine.remove(router, pool, 1)
        with pytest.raises(ReentrancyError):
            engine.allocate(router, pool, ROUTER, PRECISION)

        router.reenter = None
        engine.allocate(router, pool, ROUTER, PRECISION)
        assert engine.reserve(pool).liquidity == 2 * PRECISION

    def test_views_inside_callback(self, engine, router, pool):
        seen = []
        router.reenter = lambda: seen.append(
            (engine.reserve(pool), engine.position(ROUTER, pool), engine.invariant_of(pool))
        )
        before = (engine.reserve(pool), engine.position(ROUTER, pool))

        engine.allocate(router, pool, ROUTER, PRECISION)

        reserve, position, _ = seen[0]
        assert (reserve, position) == before
        assert engine.reserve(pool) != reserve


class TestAtomicity:
    def test_failed_operation_leaves_no_trace(self, engine, router, pool, risky, stable, events):
        engine.deposit(router, ROUTER, 10, 10)
        state = (
            engine.reserve(pool),
            engine.position(ROUTER, pool),
            engine.margin(ROUTER),
            risky.balance_of(ENGINE),
            stable.balance_of(ENGINE),
        )
        emitted = len(events)
        router.mode = "none"

        with pytest.raises(RiskyBalanceError):
            engine.allocate(router, pool, ROUTER, PRECISION)

        assert state == (
            engine.reserve(pool),
            engine.position(ROUTER, pool),
            engine.margin(ROUTER),
            risky.balance_of(ENGINE),
            stable.balance_of(ENGINE),
        )
        assert len(events) == emitted

    def test_listener_sees_committed_state(self, engine, router, pool):
        seen = []
        engine.subscribe(lambda event: seen.append(engine.reserve(pool).liquidity))
        engine.allocate(router, pool, ROUTER, PRECISION)
        assert seen == [2 * PRECISION]

    def test_listener_may_call_engine(self, engine, router, pool):
        results = []

        def on_event(event):
            if event.name == "MarginDeposited":
                engine.withdraw(router, ROUTER, 1, 0)
                results.append(engine.margin(ROUTER).balance_risky)

        engine.subscribe(on_event)
        engine.deposit(router, ROUTER, 5, 0)
        assert results == [4]
