"""
ShareLedger — Учёт shares пула, стратегий участников и жизненного цикла epoch

Каждая операция участника (join / exit / change_strategy / heartbeat) выполняет
строго по порядку:
    1. sweep устаревших epoch (финализация + bootstrap live epoch)
    2. обновление peak/low live epoch ценой после sweep, до мутации
    3. запрошенная мутация
    4. регистрация участника в live epoch (идемпотентно)
    5. rebalance check

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. sum(share_balance) == total_shares
2. weight[CONSERVATIVE] + weight[BALANCED] + weight[AGGRESSIVE] == total_shares
3. share_price == SCALE при total_shares == 0
4. Провалившаяся операция не оставляет изменений ни в ledger, ни в CapitalManager
   (UndoJournal + компенсирующие вызовы)
5. Ни одно агрегатное вычисление не итерирует участников: веса — running sums
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from src.capital.manager import CapitalManager, CapitalManagerBinding
from src.core.domain.epoch import EpochRecord, ParticipantEpochEntry
from src.core.domain.ledger_state import LedgerEvent, LedgerEventKind, LedgerSnapshot
from src.core.domain.strategy import Strategy
from src.core.domain.units import (
    EPOCH_DURATION_SEC,
    MAX_EPOCH_CATCHUP,
    MIN_DEPOSIT,
    compute_share_price,
)
from src.core.errors import InputError, InvariantViolation, StateError
from src.core.math.fixed_point import (
    mul_div,
    safe_mul_div,
    validate_int,
    validate_positive_int,
)
from src.rebalance.calculator import (
    RebalanceDecision,
    RebalanceDirection,
    decide,
    target_allocation_from_weights,
)

from .epochs import EpochBook, EpochClock, SweepResult
from .journal import UndoJournal

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class LedgerConfig:
    """
    Конфигурация ShareLedger (неизменна после создания).

    genesis_time=None → genesis = время создания ledger по clock.
    """

    min_deposit: int = MIN_DEPOSIT
    epoch_duration_sec: int = EPOCH_DURATION_SEC
    max_epoch_catchup: int = MAX_EPOCH_CATCHUP
    genesis_time: Optional[int] = None

    def __post_init__(self):
        if self.min_deposit <= 0:
            raise ValueError(f"min_deposit must be positive, got {self.min_deposit}")
        if self.epoch_duration_sec <= 0:
            raise ValueError(
                f"epoch_duration_sec must be positive, got {self.epoch_duration_sec}"
            )
        if self.max_epoch_catchup <= 0:
            raise ValueError(
                f"max_epoch_catchup must be positive, got {self.max_epoch_catchup}"
            )


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class LedgerActionResult:
    """Результат операции участника."""

    action: LedgerEventKind
    participant: str
    epoch_index: int

    # Учёт
    shares_delta: int  # minted (join) / burned (exit), иначе 0
    amount: int  # депозит (join) / выплата (exit), иначе 0
    balance_after: int
    strategy: Optional[Strategy]
    share_price: int  # цена после sweep, до мутации

    # Epoch lifecycle
    sweep: SweepResult
    registered: bool

    # Капитал
    rebalance: RebalanceDecision


def _default_clock() -> int:
    return int(time.time())


# =============================================================================
# SHARE LEDGER
# =============================================================================


class ShareLedger:
    """
    Ledger shares пула.

    Единственный writer агрегатного состояния: балансов, весов стратегий,
    epoch-таблиц. EpochScoringEngine и RebalanceCalculator только читают.
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        capital_manager: Optional[CapitalManager] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            config: конфигурация (default LedgerConfig())
            capital_manager: custody-слой; можно привязать позже bind_capital_manager()
            clock: источник времени, unix seconds (default time.time)
        """
        self.config = config or LedgerConfig()
        self._now = clock or _default_clock

        genesis = self.config.genesis_time
        if genesis is None:
            genesis = self._now()
        self.clock = EpochClock(genesis, self.config.epoch_duration_sec)

        self._binding = CapitalManagerBinding(capital_manager)
        self._journal = UndoJournal()
        self._epochs = EpochBook(self._journal, self.config.max_epoch_catchup)

        self._total_shares = 0
        self._balances: Dict[str, int] = {}
        self._strategies: Dict[str, Strategy] = {}
        self._weights: Dict[Strategy, int] = {strategy: 0 for strategy in Strategy}
        self.events: list[LedgerEvent] = []

        logger.info(
            f"ShareLedger initialized: genesis={genesis}, "
            f"epoch_duration={self.config.epoch_duration_sec}s, "
            f"min_deposit={self.config.min_deposit}"
        )

    def bind_capital_manager(self, manager: CapitalManager) -> None:
        """
        Однократная привязка custody-слоя.

        Raises:
            StateError: Если manager уже привязан
        """
        self._binding.bind(manager)

    # =========================================================================
    # READ SURFACE
    # =========================================================================

    @property
    def capital_manager(self) -> CapitalManager:
        return self._binding.get()

    @property
    def total_shares(self) -> int:
        return self._total_shares

    @property
    def last_finalized_epoch(self) -> int:
        return self._epochs.last_finalized_epoch

    def total_assets(self) -> int:
        return self._binding.get().total_value()

    def share_price(self) -> int:
        """Share price (fixed-point); SCALE для пустого пула."""
        if self._total_shares == 0:
            return compute_share_price(0, 0)
        return compute_share_price(self.total_assets(), self._total_shares)

    def balance_of(self, participant: str) -> int:
        return self._balances.get(participant, 0)

    def strategy_of(self, participant: str) -> Optional[Strategy]:
        return self._strategies.get(participant)

    def weight_sum(self, strategy: Strategy) -> int:
        return self._weights[Strategy(strategy)]

    def target_allocation_bps(self) -> int:
        return target_allocation_from_weights(self._weights)

    def current_epoch(self) -> int:
        return self.clock.epoch_at(self._now())

    def epochs_behind(self) -> int:
        """Сколько epoch ещё ожидают финализации."""
        return self._epochs.epochs_behind(self.current_epoch())

    def epoch_record(self, epoch_index: int) -> EpochRecord:
        """Запись epoch (frozen или live); пустая запись для нетронутой epoch."""
        return self._epochs.record(epoch_index)

    def participant_entry(
        self, participant: str, epoch_index: int
    ) -> Optional[ParticipantEpochEntry]:
        return self._epochs.entry(participant, epoch_index)

    def preview_join(self, amount: int) -> int:
        """Shares, которые join(amount) выпустил бы сейчас; 0 если join не пройдёт."""
        if isinstance(amount, bool) or not isinstance(amount, int):
            return 0
        if amount < self.config.min_deposit or not self._binding.is_bound:
            return 0
        if self._total_shares == 0:
            return amount
        return safe_mul_div(amount, self._total_shares, self.total_assets(), fallback=0)

    def preview_exit(self, shares: int) -> int:
        """Выплата за exit(shares) сейчас; 0 для невалидного запроса."""
        if isinstance(shares, bool) or not isinstance(shares, int):
            return 0
        if shares <= 0 or shares > self._total_shares or not self._binding.is_bound:
            return 0
        return mul_div(shares, self.total_assets(), self._total_shares)

    def snapshot(self) -> LedgerSnapshot:
        """Снапшот агрегатов (совместим с контрактом ledger_snapshot)."""
        manager = self._binding.get()
        return LedgerSnapshot(
            total_assets=manager.total_value(),
            secondary_value=manager.secondary_destination_value(),
            total_shares=self._total_shares,
            share_price=self.share_price(),
            weight_conservative=self._weights[Strategy.CONSERVATIVE],
            weight_balanced=self._weights[Strategy.BALANCED],
            weight_aggressive=self._weights[Strategy.AGGRESSIVE],
            target_allocation_bps=self.target_allocation_bps(),
            current_epoch=self.current_epoch(),
            last_finalized_epoch=self.last_finalized_epoch,
        )

    # =========================================================================
    # PARTICIPANT OPERATIONS
    # =========================================================================

    def join(self, participant: str, amount: int, strategy: Strategy) -> LedgerActionResult:
        """
        Депозит в пул с выбором стратегии.

        shares = amount для пустого пула, иначе amount * total_shares // total_assets
        (total_assets до перевода депозита).

        Raises:
            InputError: amount ниже min_deposit, неизвестная стратегия
            InvariantViolation: shares округляются до нуля
            StateError: CapitalManager не привязан
        """
        self._validate_participant(participant)
        validate_int(amount, "amount")
        strategy = self._coerce_strategy(strategy)
        if amount < self.config.min_deposit:
            logger.warning(
                f"Join rejected: participant={participant}, amount={amount} "
                f"< min_deposit={self.config.min_deposit}"
            )
            raise InputError(
                f"amount {amount} below minimum deposit {self.config.min_deposit}",
                reason="amount_below_minimum",
            )
        manager = self._binding.get()

        with self._journal.transaction():
            sweep, price, epoch = self._begin_action()

            total_assets_before = manager.total_value()
            shares = self._shares_for_deposit(amount, total_assets_before)

            old_balance = self.balance_of(participant)
            new_balance = old_balance + shares
            self._remove_weight(participant)
            self._journal.set_item(self._balances, participant, new_balance)
            self._journal.set_item(self._strategies, participant, strategy)
            self._add_weight(strategy, new_balance)
            self._journal.set_attr(self, "_total_shares", self._total_shares + shares)

            manager.deploy(amount)
            self._journal.compensate(lambda: manager.release(amount))

            registered = self._register(participant, epoch)
            self._emit(
                LedgerEventKind.JOINED,
                epoch,
                participant=participant,
                amount=amount,
                shares=shares,
                price=price,
                strategy=strategy,
            )
            decision = self._rebalance_check(manager, epoch)

        logger.info(
            f"Join: participant={participant}, amount={amount}, shares={shares}, "
            f"strategy={strategy.value}, price={price}, epoch={epoch}"
        )
        return LedgerActionResult(
            action=LedgerEventKind.JOINED,
            participant=participant,
            epoch_index=epoch,
            shares_delta=shares,
            amount=amount,
            balance_after=new_balance,
            strategy=strategy,
            share_price=price,
            sweep=sweep,
            registered=registered,
            rebalance=decision,
        )

    def exit(self, participant: str, shares: int) -> LedgerActionResult:
        """
        Погашение shares с выплатой shares * total_assets // total_shares.

        Полный exit снимает участника со всех стратегий и не регистрирует entry.

        Raises:
            InputError: shares <= 0
            StateError: нет позиции или shares больше баланса
        """
        self._validate_participant(participant)
        validate_positive_int(shares, "shares", reason="zero_shares")
        balance = self._require_position(participant)
        if shares > balance:
            logger.warning(
                f"Exit rejected: participant={participant}, shares={shares} > balance={balance}"
            )
            raise StateError(
                f"insufficient balance: requested {shares}, held {balance}",
                reason="insufficient_balance",
            )
        manager = self._binding.get()

        with self._journal.transaction():
            sweep, price, epoch = self._begin_action()

            total_assets_before = manager.total_value()
            payout = mul_div(shares, total_assets_before, self._total_shares)

            strategy = self._strategies[participant]
            remaining = balance - shares
            self._remove_weight(participant)
            self._journal.set_attr(self, "_total_shares", self._total_shares - shares)

            registered = False
            if remaining > 0:
                self._journal.set_item(self._balances, participant, remaining)
                self._add_weight(strategy, remaining)
            else:
                self._journal.delete_item(self._balances, participant)
                self._journal.delete_item(self._strategies, participant)

            manager.release(payout)
            self._journal.compensate(lambda: manager.deploy(payout))

            if remaining > 0:
                registered = self._register(participant, epoch)
            self._emit(
                LedgerEventKind.EXITED,
                epoch,
                participant=participant,
                amount=payout,
                shares=shares,
                price=price,
                strategy=strategy,
            )
            decision = self._rebalance_check(manager, epoch)

        logger.info(
            f"Exit: participant={participant}, shares={shares}, payout={payout}, "
            f"remaining={remaining}, price={price}, epoch={epoch}"
        )
        return LedgerActionResult(
            action=LedgerEventKind.EXITED,
            participant=participant,
            epoch_index=epoch,
            shares_delta=shares,
            amount=payout,
            balance_after=remaining,
            strategy=strategy if remaining > 0 else None,
            share_price=price,
            sweep=sweep,
            registered=registered,
            rebalance=decision,
        )

    def change_strategy(self, participant: str, new_strategy: Strategy) -> LedgerActionResult:
        """
        Перенос всего веса участника в другую стратегию.

        Капитал не перемещается напрямую: аллокация следует только за взвешенным target.

        Raises:
            StateError: нет позиции
            InputError: стратегия совпадает с текущей
        """
        self._validate_participant(participant)
        new_strategy = self._coerce_strategy(new_strategy)
        balance = self._require_position(participant)
        old_strategy = self._strategies[participant]
        if new_strategy == old_strategy:
            raise InputError(
                f"participant {participant} already uses {new_strategy.value}",
                reason="same_strategy",
            )
        manager = self._binding.get()

        with self._journal.transaction():
            sweep, price, epoch = self._begin_action()

            self._remove_weight(participant)
            self._journal.set_item(self._strategies, participant, new_strategy)
            self._add_weight(new_strategy, balance)

            registered = self._register(participant, epoch)
            self._emit(
                LedgerEventKind.STRATEGY_CHANGED,
                epoch,
                participant=participant,
                shares=balance,
                price=price,
                strategy=new_strategy,
                details=f"{old_strategy.value} -> {new_strategy.value}",
            )
            decision = self._rebalance_check(manager, epoch)

        logger.info(
            f"Strategy change: participant={participant}, "
            f"{old_strategy.value} → {new_strategy.value}, shares={balance}"
        )
        return LedgerActionResult(
            action=LedgerEventKind.STRATEGY_CHANGED,
            participant=participant,
            epoch_index=epoch,
            shares_delta=0,
            amount=0,
            balance_after=balance,
            strategy=new_strategy,
            share_price=price,
            sweep=sweep,
            registered=registered,
            rebalance=decision,
        )

    def heartbeat(self, participant: str) -> LedgerActionResult:
        """
        Sweep / peak-low / регистрация / rebalance без изменения баланса.

        Raises:
            StateError: нет позиции
        """
        self._validate_participant(participant)
        balance = self._require_position(participant)
        manager = self._binding.get()

        with self._journal.transaction():
            sweep, price, epoch = self._begin_action()
            registered = self._register(participant, epoch)
            self._emit(
                LedgerEventKind.HEARTBEAT,
                epoch,
                participant=participant,
                shares=balance,
                price=price,
                strategy=self._strategies[participant],
            )
            decision = self._rebalance_check(manager, epoch)

        logger.debug(
            f"Heartbeat: participant={participant}, epoch={epoch}, registered={registered}"
        )
        return LedgerActionResult(
            action=LedgerEventKind.HEARTBEAT,
            participant=participant,
            epoch_index=epoch,
            shares_delta=0,
            amount=0,
            balance_after=balance,
            strategy=self._strategies[participant],
            share_price=price,
            sweep=sweep,
            registered=registered,
            rebalance=decision,
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _begin_action(self) -> Tuple[SweepResult, int, int]:
        """Шаги 1-2: sweep и обновление peak/low. Возвращает (sweep, price, epoch)."""
        epoch = self.current_epoch()
        price = self.share_price()

        sweep = self._epochs.finalize_stale(epoch, price, self._total_shares > 0)
        for finalized in sweep.finalized_epochs:
            self._emit(
                LedgerEventKind.EPOCH_FINALIZED,
                finalized,
                price=price,
                details=f"swept at live epoch {epoch}",
            )
        if sweep.bootstrapped:
            self._emit(LedgerEventKind.EPOCH_BOOTSTRAPPED, epoch, price=price)

        self._epochs.observe_price(epoch, price)
        return sweep, price, epoch

    def _shares_for_deposit(self, amount: int, total_assets_before: int) -> int:
        if self._total_shares == 0:
            shares = amount
        elif total_assets_before == 0:
            raise InvariantViolation(
                f"pool holds {self._total_shares} shares but no assets, cannot price deposit",
                reason="unpriceable_pool",
            )
        else:
            shares = mul_div(amount, self._total_shares, total_assets_before)

        if shares == 0:
            raise InvariantViolation(
                f"deposit {amount} resolves to zero shares "
                f"(total_assets={total_assets_before}, total_shares={self._total_shares})",
                reason="zero_shares_minted",
            )
        return shares

    def _register(self, participant: str, epoch: int) -> bool:
        return self._epochs.register(
            participant=participant,
            epoch_index=epoch,
            shares=self._balances[participant],
            entry_price=self.share_price(),
            strategy=self._strategies[participant],
        )

    def _remove_weight(self, participant: str) -> None:
        balance = self._balances.get(participant, 0)
        if balance == 0:
            return
        strategy = self._strategies[participant]
        self._journal.set_item(self._weights, strategy, self._weights[strategy] - balance)

    def _add_weight(self, strategy: Strategy, shares: int) -> None:
        self._journal.set_item(self._weights, strategy, self._weights[strategy] + shares)

    def _rebalance_check(self, manager: CapitalManager, epoch: int) -> RebalanceDecision:
        """Шаг 5: сравнение текущей аллокации с взвешенным target."""
        decision = decide(
            manager.total_value(),
            manager.secondary_destination_value(),
            self.target_allocation_bps(),
        )
        if not decision.needed:
            logger.debug(
                f"Rebalance not needed: current={decision.current_bps}bps, "
                f"target={decision.target_bps}bps"
            )
            return decision

        amount = decision.amount
        if decision.direction == RebalanceDirection.TO_SECONDARY:
            manager.shift_to_secondary(amount)
            self._journal.compensate(lambda: manager.shift_to_primary(amount))
        else:
            manager.shift_to_primary(amount)
            self._journal.compensate(lambda: manager.shift_to_secondary(amount))

        self._emit(
            LedgerEventKind.REBALANCED,
            epoch,
            amount=decision.amount,
            details=(
                f"{decision.direction.value}: current={decision.current_bps}bps, "
                f"target={decision.target_bps}bps"
            ),
        )
        logger.info(
            f"Rebalance: {decision.direction.value} amount={decision.amount}, "
            f"current={decision.current_bps}bps, target={decision.target_bps}bps"
        )
        return decision

    def _emit(self, kind: LedgerEventKind, epoch: int, **fields) -> None:
        self._journal.append(self.events, LedgerEvent(kind=kind, epoch_index=epoch, **fields))

    def _require_position(self, participant: str) -> int:
        balance = self.balance_of(participant)
        if balance == 0:
            raise StateError(
                f"participant {participant} holds no position", reason="no_position"
            )
        return balance

    @staticmethod
    def _validate_participant(participant: str) -> None:
        if not isinstance(participant, str) or not participant:
            raise InputError(
                f"participant must be a non-empty string, got {participant!r}",
                reason="invalid_participant",
            )

    @staticmethod
    def _coerce_strategy(strategy: Strategy) -> Strategy:
        try:
            return Strategy(strategy)
        except ValueError:
            raise InputError(f"unknown strategy {strategy!r}", reason="unknown_strategy")
