"""
Capital Manager — Контракт custody/execution слоя и его in-memory реализация

ShareLedger не владеет капиталом: стоимость активов и перемещения между
источниками доходности делегируются CapitalManager.

Экспорт:
- CapitalManager: Protocol, потребляемый ShareLedger
- CapitalManagerBinding: write-once ячейка привязки ledger → manager
- InMemoryCapitalManager: два источника (primary/secondary) для симуляций и тестов

Все суммы — неотрицательные int в базовой единице пула.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from src.core.errors import InsufficientCapitalError, StateError
from src.core.math.fixed_point import validate_non_negative_int

logger = logging.getLogger(__name__)


# =============================================================================
# CONTRACT
# =============================================================================


@runtime_checkable
class CapitalManager(Protocol):
    """
    Контракт custody-слоя.

    Вызовы синхронные; ошибка любого вызова проваливает всю операцию ledger.
    """

    def total_value(self) -> int:
        """Суммарная стоимость капитала (primary + secondary)."""
        ...

    def secondary_destination_value(self) -> int:
        """Стоимость капитала во вторичном источнике доходности."""
        ...

    def deploy(self, amount: int) -> None:
        """Принять и разместить новый капитал."""
        ...

    def release(self, amount: int) -> None:
        """Вернуть капитал ledger для выплаты участнику."""
        ...

    def shift_to_secondary(self, amount: int) -> None:
        """Переместить капитал primary → secondary."""
        ...

    def shift_to_primary(self, amount: int) -> None:
        """Переместить капитал secondary → primary."""
        ...


# =============================================================================
# BINDING
# =============================================================================


class CapitalManagerBinding:
    """
    Write-once ссылка на CapitalManager.

    Привязка выполняется ровно один раз и далее неизменна.
    """

    def __init__(self, manager: Optional[CapitalManager] = None):
        self._manager: Optional[CapitalManager] = None
        if manager is not None:
            self.bind(manager)

    @property
    def is_bound(self) -> bool:
        return self._manager is not None

    def bind(self, manager: CapitalManager) -> None:
        """
        Привязка manager.

        Raises:
            StateError: Если manager уже привязан
            TypeError: Если объект не реализует CapitalManager
        """
        if self._manager is not None:
            raise StateError("capital manager already bound", reason="manager_already_bound")
        if not isinstance(manager, CapitalManager):
            raise TypeError(f"{type(manager).__name__} does not implement CapitalManager")
        self._manager = manager
        logger.info(f"Capital manager bound: {type(manager).__name__}")

    def get(self) -> CapitalManager:
        """
        Привязанный manager.

        Raises:
            StateError: Если manager ещё не привязан
        """
        if self._manager is None:
            raise StateError("capital manager is not bound", reason="manager_not_bound")
        return self._manager


# =============================================================================
# IN-MEMORY IMPLEMENTATION
# =============================================================================


class InMemoryCapitalManager:
    """
    Custody с двумя источниками доходности в памяти.

    Новый капитал размещается в primary; выплаты берутся из primary.
    Доходность/убыток симулируются через accrue() / realize_loss().
    """

    def __init__(self, primary: int = 0, secondary: int = 0):
        validate_non_negative_int(primary, "primary")
        validate_non_negative_int(secondary, "secondary")
        self.primary = primary
        self.secondary = secondary
        self.released_total = 0

    def total_value(self) -> int:
        return self.primary + self.secondary

    def secondary_destination_value(self) -> int:
        return self.secondary

    def deploy(self, amount: int) -> None:
        validate_non_negative_int(amount, "amount")
        self.primary += amount
        logger.debug(f"Deployed {amount} to primary (primary={self.primary})")

    def release(self, amount: int) -> None:
        """
        Выплата из primary; недостаток покрывается из secondary.

        Raises:
            InsufficientCapitalError: Если суммарного капитала не хватает
        """
        validate_non_negative_int(amount, "amount")
        if amount > self.total_value():
            raise InsufficientCapitalError(
                f"cannot release {amount}: total value {self.total_value()}",
                reason="insufficient_capital",
            )
        from_primary = min(amount, self.primary)
        self.primary -= from_primary
        self.secondary -= amount - from_primary
        self.released_total += amount
        logger.debug(f"Released {amount} (primary={self.primary}, secondary={self.secondary})")

    def shift_to_secondary(self, amount: int) -> None:
        validate_non_negative_int(amount, "amount")
        if amount > self.primary:
            raise InsufficientCapitalError(
                f"cannot shift {amount} to secondary: primary holds {self.primary}",
                reason="insufficient_primary",
            )
        self.primary -= amount
        self.secondary += amount
        logger.info(f"Shifted {amount} primary → secondary")

    def shift_to_primary(self, amount: int) -> None:
        validate_non_negative_int(amount, "amount")
        if amount > self.secondary:
            raise InsufficientCapitalError(
                f"cannot shift {amount} to primary: secondary holds {self.secondary}",
                reason="insufficient_secondary",
            )
        self.secondary -= amount
        self.primary += amount
        logger.info(f"Shifted {amount} secondary → primary")

    def accrue(self, primary: int = 0, secondary: int = 0) -> None:
        """Начисление доходности в источники (симуляция роста share price)."""
        validate_non_negative_int(primary, "primary")
        validate_non_negative_int(secondary, "secondary")
        self.primary += primary
        self.secondary += secondary

    def realize_loss(self, primary: int = 0, secondary: int = 0) -> None:
        """
        Списание убытка из источников (симуляция падения share price).

        Raises:
            InsufficientCapitalError: Если убыток больше баланса источника
        """
        validate_non_negative_int(primary, "primary")
        validate_non_negative_int(secondary, "secondary")
        if primary > self.primary or secondary > self.secondary:
            raise InsufficientCapitalError(
                f"loss ({primary}, {secondary}) exceeds balances "
                f"({self.primary}, {self.secondary})",
                reason="loss_exceeds_balance",
            )
        self.primary -= primary
        self.secondary -= secondary
