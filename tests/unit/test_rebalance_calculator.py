"""Тесты для Rebalance Calculator.

Coverage:
- Взвешенный target аллокации (пустой пул, одна стратегия, смесь, floor)
- Решение о перемещении (оба направления, строгий порог 500 bps)
- Валидация входов
"""

import pytest

from src.core.domain.strategy import Strategy
from src.core.errors import InputError
from src.rebalance.calculator import (
    DEFAULT_TARGET_BPS,
    REBALANCE_THRESHOLD_BPS,
    TARGET_BPS_BY_STRATEGY,
    RebalanceDirection,
    compute_target_allocation,
    decide,
    target_allocation_from_weights,
)


class TestTargetAllocation:
    """Взвешенный target во вторичный источник."""

    def test_policy_table(self):
        assert TARGET_BPS_BY_STRATEGY[Strategy.CONSERVATIVE] == 2000
        assert TARGET_BPS_BY_STRATEGY[Strategy.BALANCED] == 5000
        assert TARGET_BPS_BY_STRATEGY[Strategy.AGGRESSIVE] == 8000
        assert DEFAULT_TARGET_BPS == 2000
        assert REBALANCE_THRESHOLD_BPS == 500

    def test_empty_pool_uses_default(self):
        assert compute_target_allocation(0, 0, 0) == 2000

    def test_single_conservative(self):
        assert compute_target_allocation(100, 0, 0) == 2000

    def test_single_aggressive(self):
        assert compute_target_allocation(0, 0, 7) == 8000

    def test_balanced_and_aggressive(self):
        assert compute_target_allocation(0, 100, 100) == 6500

    def test_floor_division(self):
        # (5*2000 + 1*5000 + 1*8000) / 7 = 3285.71...
        assert compute_target_allocation(5, 1, 1) == 3285

    def test_weighted_by_share_count(self):
        # (3*2000 + 1*5000) / 4 = 2750
        assert compute_target_allocation(3, 1, 0) == 2750

    def test_negative_weight_rejected(self):
        with pytest.raises(InputError):
            compute_target_allocation(-1, 0, 0)

    def test_from_mapping(self):
        weights = {Strategy.BALANCED: 100, Strategy.AGGRESSIVE: 100}
        assert target_allocation_from_weights(weights) == 6500
        assert target_allocation_from_weights({}) == DEFAULT_TARGET_BPS


class TestDecide:
    """Решение о перемещении капитала."""

    def test_over_exposed_moves_to_primary(self):
        """550 из 1000 при target 30% → вернуть 250 в primary."""
        decision = decide(1000, 550, 3000)

        assert decision.needed
        assert decision.direction == RebalanceDirection.TO_PRIMARY
        assert decision.amount == 250
        assert decision.current_bps == 5500
        assert decision.target_bps == 3000

    def test_within_threshold_no_action(self):
        """5200 bps при target 5000: отклонение 200 bps < 500 → без действия."""
        decision = decide(1000, 520, 5000)

        assert not decision.needed
        assert decision.direction == RebalanceDirection.NONE
        assert decision.amount == 0

    def test_same_position_against_lower_target(self):
        """5200 bps при target 3000: отклонение 2200 bps → вернуть 220 в primary."""
        decision = decide(1000, 520, 3000)

        assert decision.needed
        assert decision.direction == RebalanceDirection.TO_PRIMARY
        assert decision.amount == 220
        assert decision.current_bps == 5200

    def test_under_exposed_moves_to_secondary(self):
        decision = decide(1000, 240, 3000)

        assert decision.needed
        assert decision.direction == RebalanceDirection.TO_SECONDARY
        assert decision.amount == 60

    def test_exact_threshold_over_does_not_trigger(self):
        """Ровно +500 bps — порог строгий."""
        assert not decide(1000, 350, 3000).needed

    def test_exact_threshold_under_does_not_trigger(self):
        """Ровно -500 bps — порог строгий."""
        assert not decide(1000, 250, 3000).needed

    def test_just_over_threshold_triggers(self):
        assert decide(10_000, 3501, 3000).needed
        assert decide(10_000, 2499, 3000).needed

    def test_empty_pool_no_action(self):
        decision = decide(0, 0, 5000)

        assert not decision.needed
        assert decision.current_bps == 0

    def test_all_capital_in_primary(self):
        decision = decide(10_000_000, 0, 2000)

        assert decision.direction == RebalanceDirection.TO_SECONDARY
        assert decision.amount == 2_000_000

    def test_current_bps_floor(self):
        # 1 / 3 = 3333.33 bps
        decision = decide(3, 1, 3333)
        assert decision.current_bps == 3333
        assert not decision.needed

    def test_negative_values_rejected(self):
        with pytest.raises(InputError):
            decide(-1, 0, 3000)
        with pytest.raises(InputError):
            decide(1000, -1, 3000)

    def test_target_above_100_percent_rejected(self):
        with pytest.raises(InputError) as exc_info:
            decide(1000, 0, 10_001)
        assert exc_info.value.reason == "target_out_of_range"

    def test_decision_is_immutable(self):
        decision = decide(1000, 550, 3000)
        with pytest.raises(AttributeError):
            decision.amount = 0
