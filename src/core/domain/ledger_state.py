"""
LedgerState — Модели агрегатного состояния и событий ShareLedger

- LedgerSnapshot: read-only снапшот агрегатов для front-end и внешнего хранения
- LedgerEvent: append-only журнал событий ledger

Совместимость с JSON Schema (contracts/schema/ledger_snapshot.json).
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .strategy import Strategy


# =============================================================================
# ENUMS
# =============================================================================


class LedgerEventKind(str, Enum):
    """Тип события ledger."""

    JOINED = "JOINED"
    EXITED = "EXITED"
    STRATEGY_CHANGED = "STRATEGY_CHANGED"
    HEARTBEAT = "HEARTBEAT"
    EPOCH_FINALIZED = "EPOCH_FINALIZED"
    EPOCH_BOOTSTRAPPED = "EPOCH_BOOTSTRAPPED"
    REBALANCED = "REBALANCED"


# =============================================================================
# EVENT
# =============================================================================


class LedgerEvent(BaseModel):
    """Событие ledger (аналог emitted event)."""

    kind: LedgerEventKind = Field(..., description="Тип события")
    epoch_index: int = Field(..., ge=0, description="Live epoch на момент события")
    participant: str | None = Field(None, description="Участник (None для системных событий)")
    amount: int | None = Field(None, ge=0, description="Сумма в базовой единице пула")
    shares: int | None = Field(None, ge=0, description="Количество shares")
    price: int | None = Field(None, ge=0, description="Share price (fixed-point)")
    strategy: Strategy | None = Field(None, description="Стратегия участника")
    details: str = Field(default="", description="Текстовая диагностика")

    model_config = {"frozen": True}


# =============================================================================
# SNAPSHOT
# =============================================================================


class LedgerSnapshot(BaseModel):
    """
    Снапшот агрегатного состояния ShareLedger.

    Инвариант: weight_conservative + weight_balanced + weight_aggressive == total_shares
    """

    total_assets: int = Field(..., ge=0, description="Стоимость активов пула")
    secondary_value: int = Field(..., ge=0, description="Стоимость во вторичном источнике")
    total_shares: int = Field(..., ge=0, description="Суммарные shares")
    share_price: int = Field(..., ge=0, description="Share price (fixed-point)")

    weight_conservative: int = Field(..., ge=0, description="Shares в CONSERVATIVE")
    weight_balanced: int = Field(..., ge=0, description="Shares в BALANCED")
    weight_aggressive: int = Field(..., ge=0, description="Shares в AGGRESSIVE")
    target_allocation_bps: int = Field(
        ..., ge=0, le=10_000, description="Взвешенный target во вторичный источник (bps)"
    )

    current_epoch: int = Field(..., ge=0, description="Live epoch")
    last_finalized_epoch: int = Field(..., ge=0, description="Граница финализации")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_weight_sum(self) -> "LedgerSnapshot":
        """Сумма весов равна total_shares."""
        weights = self.weight_conservative + self.weight_balanced + self.weight_aggressive
        if weights != self.total_shares:
            raise ValueError(
                f"weight sum {weights} does not match total_shares {self.total_shares}"
            )
        return self
