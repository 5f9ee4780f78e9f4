"""Scoring — одноразовые очки за завершённые epoch.

- ROI относительно entry_price участника, штраф за drawdown epoch
- Множитель стратегии: CONSERVATIVE 1.0x, BALANCED 1.3x, AGGRESSIVE 1.6x
"""

from .engine import (
    MULTIPLIER_BY_STRATEGY,
    MULTIPLIER_DENOMINATOR,
    EpochScoringEngine,
    EpochSnapshotReader,
    compute_points,
    points_breakdown,
)

__all__ = [
    "MULTIPLIER_BY_STRATEGY",
    "MULTIPLIER_DENOMINATOR",
    "EpochScoringEngine",
    "EpochSnapshotReader",
    "compute_points",
    "points_breakdown",
]
