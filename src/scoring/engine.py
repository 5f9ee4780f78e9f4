"""
Epoch Scoring Engine — Одноразовое начисление очков за завершённые epoch

Читает финализированные epoch-записи и participant entries через read-интерфейс
ShareLedger; сам ledger не мутирует. Владеет только claim-состоянием.

ФОРМУЛЫ (fixed-point, floor):
    roi        = (end_price - entry_price) * SCALE // entry_price
    drawdown   = (peak - low) * SCALE // peak            если peak > low, иначе 0
    points     = roi * multiplier * (SCALE - drawdown) // (10 * SCALE)

    end_price <= entry_price → 0 очков (убыток не штрафуется сверх нуля)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. claimed[(participant, epoch)] — односторонний флаг, никогда не сбрасывается
2. Флаг claimed ставится ДО расчёта очков
3. cumulative_points монотонно не убывает
4. preview_points никогда не бросает исключение
"""

import logging
from typing import Dict, Final, Iterable, List, Mapping, Optional, Protocol, Tuple

from src.core.domain.claim import ClaimRecord, PointsBreakdown
from src.core.domain.epoch import EpochRecord, ParticipantEpochEntry
from src.core.domain.strategy import Strategy
from src.core.domain.units import SCALE
from src.core.errors import InputError, StateError
from src.ledger.journal import UndoJournal

logger = logging.getLogger(__name__)


# =============================================================================
# POLICY TABLE
# =============================================================================

# Множитель очков по стратегии (x10)
MULTIPLIER_BY_STRATEGY: Final[Mapping[Strategy, int]] = {
    Strategy.CONSERVATIVE: 10,
    Strategy.BALANCED: 13,
    Strategy.AGGRESSIVE: 16,
}

# Знаменатель множителя
MULTIPLIER_DENOMINATOR: Final[int] = 10

# Причины отказа claim, сообщаемые как InputError (остальные: StateError)
_INPUT_REASONS: Final[frozenset] = frozenset({"invalid_participant", "not_an_integer"})


# =============================================================================
# READ INTERFACE
# =============================================================================


class EpochSnapshotReader(Protocol):
    """Read-интерфейс ledger, необходимый для scoring."""

    def current_epoch(self) -> int: ...

    def epoch_record(self, epoch_index: int) -> EpochRecord: ...

    def participant_entry(
        self, participant: str, epoch_index: int
    ) -> Optional[ParticipantEpochEntry]: ...


# =============================================================================
# PURE CALCULATION
# =============================================================================


def points_breakdown(entry: ParticipantEpochEntry, record: EpochRecord) -> PointsBreakdown:
    """
    Расчёт очков участника за epoch.

    Args:
        entry: Entry участника (entry_price, strategy)
        record: Финализированная запись epoch (end_price, peak, low)

    Returns:
        PointsBreakdown; нулевой roi/points если end_price <= entry_price
    """
    multiplier = MULTIPLIER_BY_STRATEGY[entry.strategy]
    end_price = record.end_price

    if end_price is None or entry.entry_price == 0 or end_price <= entry.entry_price:
        return PointsBreakdown(roi=0, drawdown=0, multiplier=multiplier, points=0)

    roi = (end_price - entry.entry_price) * SCALE // entry.entry_price

    drawdown = 0
    peak, low = record.peak, record.low
    if peak is not None and low is not None and peak > low:
        drawdown = (peak - low) * SCALE // peak

    points = roi * multiplier * (SCALE - drawdown) // (MULTIPLIER_DENOMINATOR * SCALE)
    return PointsBreakdown(roi=roi, drawdown=drawdown, multiplier=multiplier, points=points)


def compute_points(entry: ParticipantEpochEntry, record: EpochRecord) -> int:
    """Только итоговые очки из points_breakdown."""
    return points_breakdown(entry, record).points


# =============================================================================
# ENGINE
# =============================================================================


class EpochScoringEngine:
    """
    Claim очков за завершённые epoch.

    Единственный writer claim-состояния: флагов claimed, накопленных очков,
    глобального счётчика и истории ClaimRecord.
    """

    def __init__(self, ledger: EpochSnapshotReader):
        """
        Args:
            ledger: read-интерфейс ShareLedger
        """
        self._ledger = ledger
        self._journal = UndoJournal()
        self._claimed: Dict[Tuple[str, int], bool] = {}
        self._cumulative: Dict[str, int] = {}
        self.total_points_distributed = 0
        self.claim_history: List[ClaimRecord] = []

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def is_claimed(self, participant: str, epoch_index: int) -> bool:
        return self._claimed.get((participant, epoch_index), False)

    def cumulative_points_of(self, participant: str) -> int:
        return self._cumulative.get(participant, 0)

    def claimable(self, participant: str, epoch_index: int) -> bool:
        """True если claim_points(participant, epoch_index) пройдёт."""
        return self._disqualification(participant, epoch_index) is None

    def preview_points(self, participant: str, epoch_index: int) -> int:
        """
        Оценка очков без изменения состояния.

        Returns:
            Очки, которые дал бы claim; 0 для любого дисквалифицирующего условия
        """
        if self._disqualification(participant, epoch_index) is not None:
            return 0
        entry = self._ledger.participant_entry(participant, epoch_index)
        return compute_points(entry, self._ledger.epoch_record(epoch_index))

    # -------------------------------------------------------------------------
    # Claim
    # -------------------------------------------------------------------------

    def claim_points(self, participant: str, epoch_index: int) -> ClaimRecord:
        """
        Одноразовый claim очков за epoch.

        Raises:
            InputError: participant не строка или epoch_index не int
            StateError: уже заклеймлено, epoch не завершена, epoch не финализирована,
                участник не зарегистрирован или зарегистрирован с нулём shares
        """
        failure = self._disqualification(participant, epoch_index)
        if failure is not None:
            reason, message = failure
            logger.warning(f"Claim rejected: participant={participant}, epoch={epoch_index}, {reason}")
            if reason in _INPUT_REASONS:
                raise InputError(message, reason=reason)
            raise StateError(message, reason=reason)

        with self._journal.transaction():
            # Флаг ставится до расчёта
            self._journal.set_item(self._claimed, (participant, epoch_index), True)

            entry = self._ledger.participant_entry(participant, epoch_index)
            record = self._ledger.epoch_record(epoch_index)
            breakdown = points_breakdown(entry, record)

            cumulative = self.cumulative_points_of(participant) + breakdown.points
            self._journal.set_item(self._cumulative, participant, cumulative)
            self._journal.set_attr(
                self, "total_points_distributed", self.total_points_distributed + breakdown.points
            )

            claim = ClaimRecord(
                participant=participant,
                epoch_index=epoch_index,
                strategy=entry.strategy,
                points=breakdown.points,
                cumulative_points=cumulative,
            )
            self._journal.append(self.claim_history, claim)

        logger.info(
            f"Claim: participant={participant}, epoch={epoch_index}, "
            f"points={breakdown.points}, roi={breakdown.roi}, drawdown={breakdown.drawdown}, "
            f"cumulative={cumulative}"
        )
        return claim

    def claim_many(self, participant: str, epoch_indices: Iterable[int]) -> List[ClaimRecord]:
        """
        Claim по списку epoch; недоступные для claim epoch пропускаются.

        Returns:
            ClaimRecord для каждой успешно заклеймленной epoch (в порядке запроса)
        """
        claims = []
        for epoch_index in epoch_indices:
            if not self.claimable(participant, epoch_index):
                logger.debug(f"Skip claim: participant={participant}, epoch={epoch_index}")
                continue
            claims.append(self.claim_points(participant, epoch_index))
        return claims

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _disqualification(self, participant: str, epoch_index: int) -> Optional[Tuple[str, str]]:
        """Первое нарушенное условие claim как (reason, message), либо None."""
        if not isinstance(participant, str) or not participant:
            return (
                "invalid_participant",
                f"participant must be a non-empty string, got {participant!r}",
            )
        if isinstance(epoch_index, bool) or not isinstance(epoch_index, int):
            return "not_an_integer", f"epoch_index must be int, got {type(epoch_index).__name__}"

        if self.is_claimed(participant, epoch_index):
            return "already_claimed", f"epoch {epoch_index} already claimed by {participant}"

        current = self._ledger.current_epoch()
        if epoch_index < 0 or epoch_index >= current:
            return (
                "epoch_not_ended",
                f"epoch {epoch_index} has not ended (live epoch {current})",
            )

        if not self._ledger.epoch_record(epoch_index).finalized:
            return "epoch_not_finalized", f"epoch {epoch_index} is not finalized yet"

        entry = self._ledger.participant_entry(participant, epoch_index)
        if entry is None or entry.shares == 0:
            return (
                "not_registered",
                f"participant {participant} has no registered position in epoch {epoch_index}",
            )
        return None
