"""
Claim — Модели начисления очков за epoch

- ClaimRecord: запись об одноразовом начислении (emit при claim)
- PointsBreakdown: разложение расчёта для front-end (roi, drawdown, multiplier)
"""

from pydantic import BaseModel, Field

from .strategy import Strategy


class ClaimRecord(BaseModel):
    """
    Запись о claim очков за epoch.

    Immutable, append-only история EpochScoringEngine.
    """

    participant: str = Field(..., min_length=1, description="Идентификатор участника")
    epoch_index: int = Field(..., ge=0, description="Номер epoch")
    strategy: Strategy = Field(..., description="Стратегия из entry участника")
    points: int = Field(..., ge=0, description="Начисленные очки (fixed-point)")
    cumulative_points: int = Field(
        ..., ge=0, description="Накопленные очки участника после claim"
    )

    model_config = {"frozen": True}


class PointsBreakdown(BaseModel):
    """Промежуточные величины расчёта очков (все fixed-point)."""

    roi: int = Field(..., ge=0, description="Доходность за epoch относительно entry_price")
    drawdown: int = Field(..., ge=0, description="Просадка peak → low")
    multiplier: int = Field(..., gt=0, description="Множитель стратегии (x10)")
    points: int = Field(..., ge=0, description="Итоговые очки")

    model_config = {"frozen": True}
