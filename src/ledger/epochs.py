"""
Epochs — Часы epoch и таблицы epoch-снапшотов

Экспорт:
- EpochClock: номер epoch по времени от genesis
- ManualClock: управляемый источник времени (симуляции, backtest)
- EpochBook: единственный writer epoch-таблицы и таблицы participant entries

Sweep (finalize_stale):
    end = min(current, last_finalized_epoch + max_catchup)
    для каждой epoch в [last_finalized_epoch, end), ещё не финализированной:
        end_price = текущая share price, finalized = True
    last_finalized_epoch = end

Catch-up ограничен max_catchup epoch за вызов: ledger, простаивавший годами,
догоняет за несколько вызовов. Таблицы растут неограниченно и не компактируются.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from src.core.domain.epoch import EpochRecord, ParticipantEpochEntry
from src.core.domain.strategy import Strategy
from src.core.domain.units import EPOCH_DURATION_SEC, MAX_EPOCH_CATCHUP

from .journal import UndoJournal

logger = logging.getLogger(__name__)


# =============================================================================
# CLOCKS
# =============================================================================


@dataclass(frozen=True)
class EpochClock:
    """
    Отображение времени (unix seconds) в номер epoch.

    epoch = (now - genesis_time) // epoch_duration_sec, время до genesis → epoch 0
    """

    genesis_time: int
    epoch_duration_sec: int = EPOCH_DURATION_SEC

    def __post_init__(self):
        if self.epoch_duration_sec <= 0:
            raise ValueError(
                f"epoch_duration_sec must be positive, got {self.epoch_duration_sec}"
            )

    def epoch_at(self, now: int) -> int:
        if now <= self.genesis_time:
            return 0
        return (now - self.genesis_time) // self.epoch_duration_sec

    def epoch_start(self, epoch_index: int) -> int:
        """Время начала epoch (unix seconds)."""
        return self.genesis_time + epoch_index * self.epoch_duration_sec

    def epoch_end(self, epoch_index: int) -> int:
        """Время окончания epoch (= начало следующей)."""
        return self.epoch_start(epoch_index + 1)


class ManualClock:
    """Источник времени, который двигается только явно."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"time only moves forward, got {seconds}")
        self.now += seconds
        return self.now


# =============================================================================
# SWEEP RESULT
# =============================================================================


@dataclass(frozen=True)
class SweepResult:
    """Результат sweep устаревших epoch."""

    finalized_epochs: Tuple[int, ...]
    last_finalized_epoch: int
    current_epoch: int
    bootstrapped: bool

    @property
    def caught_up(self) -> bool:
        return self.last_finalized_epoch >= self.current_epoch


# =============================================================================
# EPOCH BOOK
# =============================================================================


class EpochBook:
    """
    Epoch-таблица и таблица participant entries.

    Все записи идут через UndoJournal владельца (ShareLedger).
    """

    def __init__(self, journal: UndoJournal, max_catchup: int = MAX_EPOCH_CATCHUP):
        if max_catchup <= 0:
            raise ValueError(f"max_catchup must be positive, got {max_catchup}")
        self._journal = journal
        self.max_catchup = max_catchup
        self._records: Dict[int, EpochRecord] = {}
        self._entries: Dict[Tuple[str, int], ParticipantEpochEntry] = {}
        self.last_finalized_epoch = 0

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def record(self, epoch_index: int) -> EpochRecord:
        """Запись epoch; для нетронутой epoch — пустая live-запись."""
        record = self._records.get(epoch_index)
        if record is None:
            return EpochRecord(epoch_index=epoch_index)
        return record

    def entry(self, participant: str, epoch_index: int) -> Optional[ParticipantEpochEntry]:
        return self._entries.get((participant, epoch_index))

    def is_registered(self, participant: str, epoch_index: int) -> bool:
        return (participant, epoch_index) in self._entries

    def epochs_behind(self, current_epoch: int) -> int:
        return max(current_epoch - self.last_finalized_epoch, 0)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def finalize_stale(self, current_epoch: int, price: int, pool_non_empty: bool) -> SweepResult:
        """
        Финализация устаревших epoch и bootstrap текущей.

        Args:
            current_epoch: Live epoch по часам
            price: Текущая share price (fixed-point)
            pool_non_empty: total_shares > 0

        Returns:
            SweepResult со списком финализированных epoch
        """
        start = self.last_finalized_epoch
        end = min(current_epoch, start + self.max_catchup)

        finalized = []
        for epoch_index in range(start, end):
            record = self.record(epoch_index)
            if record.finalized:
                continue
            self._journal.set_item(self._records, epoch_index, record.finalize(price))
            finalized.append(epoch_index)

        if end > start:
            self._journal.set_attr(self, "last_finalized_epoch", end)

        if finalized:
            logger.info(
                f"Finalized epochs {finalized[0]}..{finalized[-1]} at price={price}, "
                f"behind={self.epochs_behind(current_epoch)}"
            )

        # Bootstrap текущей epoch
        bootstrapped = False
        live = self.record(current_epoch)
        if not live.finalized and not live.is_bootstrapped and pool_non_empty:
            self._journal.set_item(self._records, current_epoch, live.bootstrap(price))
            bootstrapped = True
            logger.debug(f"Bootstrapped epoch {current_epoch} at price={price}")

        result = SweepResult(
            finalized_epochs=tuple(finalized),
            last_finalized_epoch=self.last_finalized_epoch,
            current_epoch=current_epoch,
            bootstrapped=bootstrapped,
        )
        if not result.caught_up:
            logger.warning(
                f"Epoch catch-up capped at {self.max_catchup}: "
                f"last_finalized={result.last_finalized_epoch}, current={current_epoch}"
            )
        return result

    def observe_price(self, current_epoch: int, price: int) -> EpochRecord:
        """Обновление peak/low live epoch; финализированная запись не меняется."""
        record = self.record(current_epoch)
        if record.finalized:
            logger.warning(f"Price observation for finalized epoch {current_epoch} ignored")
            return record
        record = record.observe_price(price)
        self._journal.set_item(self._records, current_epoch, record)
        return record

    def register(
        self,
        participant: str,
        epoch_index: int,
        shares: int,
        entry_price: int,
        strategy: Strategy,
    ) -> bool:
        """
        Идемпотентная регистрация участника в epoch.

        Returns:
            True если entry создана этим вызовом, False если уже существовала
        """
        if self.is_registered(participant, epoch_index):
            return False
        entry = ParticipantEpochEntry(
            participant=participant,
            epoch_index=epoch_index,
            shares=shares,
            entry_price=entry_price,
            strategy=strategy,
        )
        self._journal.set_item(self._entries, (participant, epoch_index), entry)
        return True
