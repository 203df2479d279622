"""
Тесты коллабораторов движка: EngineConfig, часы, InMemoryToken
"""

import pytest

from src.engine import (
    GAMMA,
    GRACE_PERIOD,
    MIN_LIQUIDITY,
    EngineConfig,
    InMemoryToken,
    ManualClock,
    SystemClock,
)


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert (config.min_liquidity, config.gamma, config.grace_period) == (
            MIN_LIQUIDITY,
            GAMMA,
            GRACE_PERIOD,
        )
        assert config.validate_events is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_liquidity": -1},
            {"gamma": 0},
            {"gamma": 10_001},
            {"grace_period": -1},
            {"invariant_tolerance_raw": -1},
            {"min_sigma": 0},
            {"min_sigma": 10, "max_sigma": 5},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_frozen(self):
        config = EngineConfig()
        with pytest.raises(AttributeError):
            config.gamma = 1


class TestClocks:
    def test_manual_clock(self):
        clock = ManualClock(100)
        assert clock.now() == 100
        assert clock.advance(5) == 105
        clock.set(50)
        assert clock.now() == 50

    @pytest.mark.parametrize("action", ["start", "advance", "set"])
    def test_manual_clock_rejects_negative(self, action):
        with pytest.raises(ValueError):
            if action == "start":
                ManualClock(-1)
            elif action == "advance":
                ManualClock().advance(-1)
            else:
                ManualClock().set(-1)

    def test_system_clock(self):
        now = SystemClock().now()
        assert isinstance(now, int)
        assert now > 1_600_000_000


class TestInMemoryToken:
    def test_transfer(self):
        token = InMemoryToken("RISKY")
        token.mint("0xa", 10)
        assert token.transfer("0xa", "0xb", 4)
        assert (token.balance_of("0xa"), token.balance_of("0xb")) == (6, 4)
        assert token.total_supply() == 10

    def test_insufficient_balance_returns_false(self):
        token = InMemoryToken("RISKY")
        token.mint("0xa", 1)
        assert not token.transfer("0xa", "0xb", 2)
        assert token.balance_of("0xa") == 1

    def test_snapshot_restore(self):
        token = InMemoryToken("STABLE")
        token.mint("0xa", 5)
        state = token.snapshot()
        token.transfer("0xa", "0xb", 5)
        token.restore(state)
        assert (token.balance_of("0xa"), token.balance_of("0xb")) == (5, 0)

    def test_negative_mint(self):
        with pytest.raises(ValueError):
            InMemoryToken("RISKY").mint("0xa", -1)
