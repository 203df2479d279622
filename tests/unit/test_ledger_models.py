"""
Тесты для ledger моделей: Calibration, Reserve, Position, Margin, идентификаторы

Проверяет:
1. Валидацию Pydantic (отрицательные значения запрещены)
2. Immutability (frozen=True)
3. Переходы и ошибки underflow
"""

import pytest
from pydantic import ValidationError

from src.core.domain import (
    Calibration,
    Margin,
    Position,
    Reserve,
    compute_pool_id,
    is_pool_id,
)
from src.core.errors import (
    InsufficientCollateralError,
    InsufficientDebtError,
    InsufficientFloatError,
    InsufficientLiquidityError,
    MarginUnderflowError,
)


# =============================================================================
# CALIBRATION
# =============================================================================


class TestCalibration:
    @pytest.fixture
    def calibration(self) -> Calibration:
        return Calibration(strike=1000, sigma=10_000, maturity=1_000, last_timestamp=400)

    def test_tau(self, calibration):
        assert calibration.tau() == 600
        assert calibration.with_timestamp(1_500).tau() == 0

    def test_expiry_is_strict(self, calibration):
        assert not calibration.is_expired(1_000)
        assert calibration.is_expired(1_001)

    def test_timestamp_only_moves_forward(self, calibration):
        assert calibration.with_timestamp(500).last_timestamp == 500
        assert calibration.with_timestamp(300) is calibration

    def test_frozen(self, calibration):
        with pytest.raises(ValidationError):
            calibration.strike = 1

    def test_zero_strike_rejected(self):
        with pytest.raises(ValidationError):
            Calibration(strike=0, sigma=1, maturity=1, last_timestamp=0)


# =============================================================================
# RESERVE
# =============================================================================


class TestReserve:
    @pytest.fixture
    def reserve(self) -> Reserve:
        return Reserve(reserve_risky=500, reserve_stable=1_587, liquidity=1_000, block_timestamp=1)

    def test_amounts_round_down(self, reserve):
        assert reserve.amounts_for(3) == (1, 4)
        assert reserve.amounts_for(0) == (0, 0)

    def test_per_liquidity(self, reserve):
        assert reserve.per_liquidity() == (5 * 10**17, 1_587 * 10**15)

    def test_allocate_and_remove(self, reserve):
        allocated = reserve.allocate(50, 158, 100, 7)
        assert (allocated.reserve_risky, allocated.reserve_stable, allocated.liquidity) == (
            550,
            1_745,
            1_100,
        )
        assert allocated.block_timestamp == 7
        removed = allocated.remove(50, 158, 100, 8)
        assert removed.model_dump(exclude={"block_timestamp"}) == reserve.model_dump(
            exclude={"block_timestamp"}
        )

    def test_remove_cannot_touch_float(self, reserve):
        with_float = reserve.add_float(900)
        with pytest.raises(InsufficientLiquidityError):
            with_float.remove(1, 1, 101, 2)

    def test_swap(self, reserve):
        swapped = reserve.swap(True, 10, 20, 3)
        assert (swapped.reserve_risky, swapped.reserve_stable) == (510, 1_567)
        swapped = reserve.swap(False, 10, 20, 3)
        assert (swapped.reserve_risky, swapped.reserve_stable) == (480, 1_597)

    def test_float_lifecycle(self, reserve):
        reserve = reserve.add_float(100).borrow_float(60)
        assert (reserve.float_liquidity, reserve.debt) == (40, 60)
        with pytest.raises(InsufficientFloatError):
            reserve.remove_float(41)
        with pytest.raises(InsufficientFloatError):
            reserve.borrow_float(41)
        reserve = reserve.repay_float(60)
        assert (reserve.float_liquidity, reserve.debt) == (100, 0)
        with pytest.raises(InsufficientDebtError):
            reserve.repay_float(1)

    def test_negative_values_rejected(self, reserve):
        with pytest.raises(ValidationError):
            reserve.swap(True, 1, 10_000, 2)


# =============================================================================
# POSITION
# =============================================================================


class TestPosition:
    def test_default_is_empty(self):
        assert Position().is_empty()
        assert not Position().has_debt

    def test_allocate_remove(self):
        position = Position().allocate(10)
        assert position.remove(4).liquidity == 6
        with pytest.raises(InsufficientLiquidityError):
            position.remove(11)

    def test_supply_claim(self):
        position = Position(liquidity=10).supply(7)
        assert (position.liquidity, position.float_liquidity) == (3, 7)
        with pytest.raises(InsufficientLiquidityError):
            position.supply(4)
        with pytest.raises(InsufficientFloatError):
            position.claim(8)
        assert position.claim(7) == Position(liquidity=10)

    def test_borrow_repay(self):
        position = Position().borrow(5, 3)
        assert position.has_debt
        with pytest.raises(InsufficientCollateralError):
            position.repay(6, 0)
        assert position.repay(5, 3).is_empty()

    def test_frozen(self):
        with pytest.raises(ValidationError):
            Position().liquidity = 1


# =============================================================================
# MARGIN
# =============================================================================


class TestMargin:
    def test_deposit_withdraw(self):
        margin = Margin().deposit(10, 20)
        assert margin.withdraw(10, 5) == Margin(balance_risky=0, balance_stable=15)

    def test_underflow(self):
        with pytest.raises(MarginUnderflowError) as exc_info:
            Margin(balance_risky=1, balance_stable=1).withdraw(0, 2)
        assert exc_info.value.requested == (0, 2)
        assert exc_info.value.code == "MARGIN_UNDERFLOW"


# =============================================================================
# IDENTIFIERS
# =============================================================================


class TestPoolId:
    def test_deterministic_and_formatted(self):
        pool_id = compute_pool_id("0xengine", 1000, 10_000, 5)
        assert pool_id == compute_pool_id("0xengine", 1000, 10_000, 5)
        assert is_pool_id(pool_id)

    def test_depends_on_every_parameter(self):
        base = compute_pool_id("0xengine", 1000, 10_000, 5)
        assert base != compute_pool_id("0xother", 1000, 10_000, 5)
        assert base != compute_pool_id("0xengine", 1001, 10_000, 5)
        assert base != compute_pool_id("0xengine", 1000, 10_001, 5)
        assert base != compute_pool_id("0xengine", 1000, 10_000, 6)

    def test_not_a_pool_id(self):
        assert not is_pool_id("0x1234")
