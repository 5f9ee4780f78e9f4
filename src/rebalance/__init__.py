"""Rebalance — stateless расчёт целевой аллокации и решения о перемещении капитала.

- Взвешенный по shares target во вторичный источник доходности
- Hysteresis-порог 500 bps (строгий)
"""

from .calculator import (
    DEFAULT_TARGET_BPS,
    REBALANCE_THRESHOLD_BPS,
    TARGET_BPS_BY_STRATEGY,
    RebalanceDecision,
    RebalanceDirection,
    compute_target_allocation,
    decide,
    target_allocation_from_weights,
)

__all__ = [
    "DEFAULT_TARGET_BPS",
    "REBALANCE_THRESHOLD_BPS",
    "TARGET_BPS_BY_STRATEGY",
    "RebalanceDecision",
    "RebalanceDirection",
    "compute_target_allocation",
    "decide",
    "target_allocation_from_weights",
]
