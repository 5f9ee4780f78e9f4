"""
Rebalance Calculator — Взвешенный target и решение о перемещении капитала

Stateless, без side-effects. Вызывается ShareLedger на каждом действии участника.

ФОРМУЛЫ:
    target_bps = (wC * 2000 + wB * 5000 + wA * 8000) // (wC + wB + wA)
    current_bps = secondary_value * 10000 // total_assets
    target_amount = total_assets * target_bps // 10000

    current_bps - target_bps > 500  → TO_PRIMARY,   amount = secondary_value - target_amount
    target_bps - current_bps > 500  → TO_SECONDARY, amount = target_amount - secondary_value

Порог строгий: отклонение ровно 500 bps не вызывает перемещения (hysteresis).
Все деления — floor, результат bit-exact.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final, Mapping

from src.core.domain.strategy import Strategy
from src.core.domain.units import BPS_DENOMINATOR
from src.core.errors import InputError
from src.core.math.fixed_point import mul_div, validate_non_negative_int


# =============================================================================
# POLICY TABLE
# =============================================================================

# Целевая доля во вторичном источнике по стратегии (bps)
TARGET_BPS_BY_STRATEGY: Final[Mapping[Strategy, int]] = {
    Strategy.CONSERVATIVE: 2000,
    Strategy.BALANCED: 5000,
    Strategy.AGGRESSIVE: 8000,
}

# Target пустого пула
DEFAULT_TARGET_BPS: Final[int] = 2000

# Порог отклонения для перемещения (bps, строгое сравнение)
REBALANCE_THRESHOLD_BPS: Final[int] = 500


# =============================================================================
# RESULT
# =============================================================================


class RebalanceDirection(str, Enum):
    """Направление перемещения капитала."""

    NONE = "NONE"
    TO_PRIMARY = "TO_PRIMARY"
    TO_SECONDARY = "TO_SECONDARY"


@dataclass(frozen=True)
class RebalanceDecision:
    """Результат оценки rebalance."""

    needed: bool
    direction: RebalanceDirection
    amount: int

    # Диагностика
    current_bps: int
    target_bps: int


def _no_action(current_bps: int, target_bps: int) -> RebalanceDecision:
    return RebalanceDecision(
        needed=False,
        direction=RebalanceDirection.NONE,
        amount=0,
        current_bps=current_bps,
        target_bps=target_bps,
    )


# =============================================================================
# TARGET ALLOCATION
# =============================================================================


def compute_target_allocation(w_conservative: int, w_balanced: int, w_aggressive: int) -> int:
    """
    Взвешенный по shares target аллокации во вторичный источник.

    Args:
        w_conservative: Shares участников CONSERVATIVE
        w_balanced: Shares участников BALANCED
        w_aggressive: Shares участников AGGRESSIVE

    Returns:
        Target в basis points; DEFAULT_TARGET_BPS если все веса нулевые

    Raises:
        InputError: Если какой-либо вес отрицательный

    Examples:
        >>> compute_target_allocation(0, 0, 0)
        2000
        >>> compute_target_allocation(0, 100, 100)
        6500
    """
    validate_non_negative_int(w_conservative, "w_conservative")
    validate_non_negative_int(w_balanced, "w_balanced")
    validate_non_negative_int(w_aggressive, "w_aggressive")

    total = w_conservative + w_balanced + w_aggressive
    if total == 0:
        return DEFAULT_TARGET_BPS

    weighted = (
        w_conservative * TARGET_BPS_BY_STRATEGY[Strategy.CONSERVATIVE]
        + w_balanced * TARGET_BPS_BY_STRATEGY[Strategy.BALANCED]
        + w_aggressive * TARGET_BPS_BY_STRATEGY[Strategy.AGGRESSIVE]
    )
    return weighted // total


def target_allocation_from_weights(weights: Mapping[Strategy, int]) -> int:
    """
    compute_target_allocation для mapping {Strategy: weight}.

    Отсутствующие стратегии считаются нулевыми.
    """
    return compute_target_allocation(
        weights.get(Strategy.CONSERVATIVE, 0),
        weights.get(Strategy.BALANCED, 0),
        weights.get(Strategy.AGGRESSIVE, 0),
    )


# =============================================================================
# DECISION
# =============================================================================


def decide(total_assets: int, current_secondary_value: int, target_bps: int) -> RebalanceDecision:
    """
    Решение о перемещении капитала между источниками доходности.

    Args:
        total_assets: Суммарная стоимость активов пула
        current_secondary_value: Стоимость во вторичном источнике
        target_bps: Целевая доля во вторичном источнике (bps)

    Returns:
        RebalanceDecision (needed=False если отклонение в пределах порога)

    Raises:
        InputError: Если значения отрицательные или target_bps > 10000

    Examples:
        >>> d = decide(1000, 550, 3000)
        >>> (d.direction.value, d.amount)
        ('TO_PRIMARY', 250)
        >>> decide(1000, 520, 5000).needed
        False
        >>> d = decide(1000, 520, 3000)
        >>> (d.direction.value, d.amount)
        ('TO_PRIMARY', 220)
    """
    validate_non_negative_int(total_assets, "total_assets")
    validate_non_negative_int(current_secondary_value, "current_secondary_value")
    validate_non_negative_int(target_bps, "target_bps")
    if target_bps > BPS_DENOMINATOR:
        raise InputError(
            f"target_bps must be <= {BPS_DENOMINATOR}, got {target_bps}",
            reason="target_out_of_range",
        )

    if total_assets == 0:
        return _no_action(0, target_bps)

    current_bps = mul_div(current_secondary_value, BPS_DENOMINATOR, total_assets)
    target_amount = mul_div(total_assets, target_bps, BPS_DENOMINATOR)

    # Перекос во вторичный источник
    if current_bps - target_bps > REBALANCE_THRESHOLD_BPS:
        return RebalanceDecision(
            needed=True,
            direction=RebalanceDirection.TO_PRIMARY,
            amount=current_secondary_value - target_amount,
            current_bps=current_bps,
            target_bps=target_bps,
        )

    # Недовложение во вторичный источник
    if target_bps - current_bps > REBALANCE_THRESHOLD_BPS:
        return RebalanceDecision(
            needed=True,
            direction=RebalanceDirection.TO_SECONDARY,
            amount=target_amount - current_secondary_value,
            current_bps=current_bps,
            target_bps=target_bps,
        )

    return _no_action(current_bps, target_bps)
