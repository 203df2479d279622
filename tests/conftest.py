"""
Общие fixtures: токены, управляемые часы, движок и вызывающий контракт (Router)
"""

from typing import Callable, List, Optional

import pytest

from src.core.domain import EngineEvent
from src.core.math import PRECISION
from src.engine import EngineConfig, InMemoryToken, ManualClock, PoolEngine

ENGINE = "0xengine"
ROUTER = "0xrouter"
ALICE = "0xalice"
BOB = "0xbob"

START = 1_700_000_000
STRIKE = 1000 * PRECISION
SIGMA = 10_000
TAU = 31_536_000
MATURITY = START + TAU
DELTA = PRECISION // 2

INITIAL_BALANCE = 10**30


class Router:
    """
    Тестовый вызывающий контракт.

    В каждом callback переводит движку запрошенные токены со своего баланса.
    mode управляет поведением:
    - "pay": переводит ровно запрошенное
    - "short_risky" / "short_stable": недоплачивает 1 wei соответствующего токена
    - "none": ничего не переводит
    reenter: если задан, вызывается внутри callback до перевода
    """

    def __init__(self, address: str, engine: PoolEngine):
        self.address = address
        self.engine = engine
        self.mode = "pay"
        self.reenter: Optional[Callable[[], None]] = None
        self.calls: List[tuple] = []

    def _callback(self, name: str, delta_risky: int, delta_stable: int, data: bytes) -> None:
        self.calls.append((name, delta_risky, delta_stable, data))
        if self.reenter is not None:
            self.reenter()
        if self.mode == "none":
            return
        if self.mode == "short_risky":
            delta_risky -= 1
        if self.mode == "short_stable":
            delta_stable -= 1
        if delta_risky > 0:
            assert self.engine.risky.transfer(self.address, self.engine.address, delta_risky)
        if delta_stable > 0:
            assert self.engine.stable.transfer(self.address, self.engine.address, delta_stable)

    def create_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None:
        self._callback("create", delta_risky, delta_stable, data)

    def deposit_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None:
        self._callback("deposit", delta_risky, delta_stable, data)

    def allocate_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None:
        self._callback("allocate", delta_risky, delta_stable, data)

    def swap_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None:
        self._callback("swap", delta_risky, delta_stable, data)

    def borrow_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None:
        self._callback("borrow", delta_risky, delta_stable, data)

    def repay_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None:
        self._callback("repay", delta_risky, delta_stable, data)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def risky() -> InMemoryToken:
    return InMemoryToken("RISKY")


@pytest.fixture
def stable() -> InMemoryToken:
    return InMemoryToken("STABLE")


@pytest.fixture
def engine(risky: InMemoryToken, stable: InMemoryToken, clock: ManualClock) -> PoolEngine:
    return PoolEngine(ENGINE, risky, stable, EngineConfig(validate_events=True), clock)


@pytest.fixture
def events(engine: PoolEngine) -> List[EngineEvent]:
    received: List[EngineEvent] = []
    engine.subscribe(received.append)
    return received


def _funded_router(address: str, engine: PoolEngine) -> Router:
    router = Router(address, engine)
    engine.risky.mint(address, INITIAL_BALANCE)
    engine.stable.mint(address, INITIAL_BALANCE)
    return router


@pytest.fixture
def router(engine: PoolEngine) -> Router:
    return _funded_router(ROUTER, engine)


@pytest.fixture
def alice(engine: PoolEngine) -> Router:
    return _funded_router(ALICE, engine)


@pytest.fixture
def pool(engine: PoolEngine, router: Router) -> str:
    """Пул strike=1000, σ=100%, τ=1 год, delta=0.5, L=1.0."""
    pool_id, _, _ = engine.create(router, STRIKE, SIGMA, MATURITY, DELTA, PRECISION)
    return pool_id
