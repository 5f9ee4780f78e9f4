"""
Epoch — Модели epoch-снапшотов

Immutable Pydantic модели:
- EpochRecord: цена на старте/финише epoch, peak/low за время жизни, флаг финализации
- ParticipantEpochEntry: позиция участника при первом касании в epoch (якорь scoring)

Неустановленные цены хранятся как None, а не 0 (0 — легальная цена).
Все изменения создают новый экземпляр (model_copy).
"""

from pydantic import BaseModel, Field, model_validator

from .strategy import Strategy


# =============================================================================
# EPOCH RECORD
# =============================================================================


class EpochRecord(BaseModel):
    """
    Снапшот одной epoch.

    Lifecycle:
    - создаётся лениво при первом касании
    - peak/low обновляются на каждом взаимодействии, пока epoch live
    - финализируется ровно один раз (end_price фиксируется)
    """

    epoch_index: int = Field(..., ge=0, description="Номер epoch от genesis")
    start_price: int | None = Field(
        None, ge=0, description="Share price на старте (None если epoch не bootstrap)"
    )
    end_price: int | None = Field(
        None, ge=0, description="Share price на момент финализации"
    )
    peak: int | None = Field(None, ge=0, description="Максимальная share price за epoch")
    low: int | None = Field(None, ge=0, description="Минимальная share price за epoch")
    finalized: bool = Field(default=False, description="Epoch заморожена")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_consistency(self) -> "EpochRecord":
        """Финализированная epoch обязана иметь end_price; peak не ниже low."""
        if self.finalized and self.end_price is None:
            raise ValueError(f"finalized epoch {self.epoch_index} has no end_price")
        if not self.finalized and self.end_price is not None:
            raise ValueError(f"live epoch {self.epoch_index} cannot carry end_price")
        if self.peak is not None and self.low is not None and self.peak < self.low:
            raise ValueError(f"peak {self.peak} below low {self.low}")
        return self

    @property
    def is_bootstrapped(self) -> bool:
        """Стартовая цена зафиксирована."""
        return self.start_price is not None

    def observe_price(self, price: int) -> "EpochRecord":
        """
        Обновление peak/low новой ценой.

        Args:
            price: Текущая share price (fixed-point)

        Returns:
            Новый EpochRecord (исходный не меняется)
        """
        peak = price if self.peak is None else max(self.peak, price)
        low = price if self.low is None else min(self.low, price)
        return self.model_copy(update={"peak": peak, "low": low})

    def bootstrap(self, price: int) -> "EpochRecord":
        """start_price = peak = low = price."""
        return self.model_copy(update={"start_price": price, "peak": price, "low": price})

    def finalize(self, price: int) -> "EpochRecord":
        """Заморозка epoch с end_price = price."""
        return self.model_copy(update={"end_price": price, "finalized": True})


# =============================================================================
# PARTICIPANT ENTRY
# =============================================================================


class ParticipantEpochEntry(BaseModel):
    """
    Позиция участника при первом взаимодействии в epoch.

    Пишется один раз на пару (participant, epoch_index) и далее не меняется.
    """

    participant: str = Field(..., min_length=1, description="Идентификатор участника")
    epoch_index: int = Field(..., ge=0, description="Номер epoch")
    shares: int = Field(..., ge=0, description="Shares после операции регистрации")
    entry_price: int = Field(..., ge=0, description="Share price при регистрации")
    strategy: Strategy = Field(..., description="Стратегия на момент регистрации")

    model_config = {"frozen": True}
