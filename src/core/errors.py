"""
Errors — Таксономия ошибок ledger/scoring

Все ошибки — нарушения предусловий, не транзиентные сбои:
- InputError: невалидный ввод (сумма ниже минимума, 0 shares, no-op смена стратегии)
- StateError: невалидное состояние (нет позиции, epoch не завершена, уже заклеймлено)
- InvariantViolation: вычисление привело бы к нарушению инварианта (mint 0 shares)

Retry-модели нет: повтор того же вызова в том же состоянии даст ту же ошибку.
Любая ошибка фатальна для вызова — частичные изменения откатываются.
"""


class PoolLedgerError(Exception):
    """
    Базовая ошибка пула.

    Attributes:
        reason: машиночитаемый код причины (например, 'amount_below_minimum')
    """

    def __init__(self, message: str, reason: str = "unspecified"):
        super().__init__(message)
        self.reason = reason


class InputError(PoolLedgerError, ValueError):
    """Невалидные входные параметры операции."""

    pass


class StateError(PoolLedgerError):
    """Операция недопустима в текущем состоянии ledger / scoring."""

    pass


class InsufficientCapitalError(StateError):
    """CapitalManager не может выдать/переместить запрошенную сумму."""

    pass


class InvariantViolation(PoolLedgerError):
    """
    Результат вычисления нарушил бы инвариант учёта.

    Пример: join, при котором shares округляются до нуля, — вместо
    бесплатного депозита в пользу остальных участников операция отклоняется.
    """

    pass
