"""
Undo Journal — атомарность операций ledger

Каждая запись состояния внутри transaction() сопровождается undo-действием.
При исключении undo-действия выполняются в обратном порядке, затем исключение
пробрасывается дальше. Стоимость отката пропорциональна числу записей вызова,
а не размеру ledger.

Вызовы внешних сервисов (CapitalManager) регистрируются через compensate():
при откате выполняется обратный вызов.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, MutableMapping

logger = logging.getLogger(__name__)

_MISSING = object()


class UndoJournal:
    """Журнал отмены для одной активной транзакции (вложенные сливаются во внешнюю)."""

    def __init__(self):
        self._undo: List[Callable[[], None]] = []
        self._depth = 0

    @property
    def active(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Транзакция: либо все записи применены, либо ни одна.

        Вложенная transaction() не создаёт точку отката: откатывается
        только внешняя транзакция целиком.
        """
        self._depth += 1
        try:
            yield
        except Exception:
            if self._depth == 1:
                self._rollback()
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._undo.clear()

    def set_item(self, mapping: MutableMapping[Any, Any], key: Any, value: Any) -> None:
        """mapping[key] = value с запоминанием прежнего значения."""
        previous = mapping.get(key, _MISSING)

        def undo() -> None:
            if previous is _MISSING:
                mapping.pop(key, None)
            else:
                mapping[key] = previous

        self._record(undo)
        mapping[key] = value

    def delete_item(self, mapping: MutableMapping[Any, Any], key: Any) -> None:
        """del mapping[key] (если ключ есть) с запоминанием значения."""
        if key not in mapping:
            return
        previous = mapping[key]

        def undo() -> None:
            mapping[key] = previous

        self._record(undo)
        del mapping[key]

    def set_attr(self, obj: Any, name: str, value: Any) -> None:
        """setattr(obj, name, value) с запоминанием прежнего значения."""
        previous = getattr(obj, name)

        def undo() -> None:
            setattr(obj, name, previous)

        self._record(undo)
        setattr(obj, name, value)

    def append(self, items: List[Any], item: Any) -> None:
        """items.append(item) с undo через pop."""
        self._record(items.pop)
        items.append(item)

    def compensate(self, undo: Callable[[], None]) -> None:
        """
        Регистрация компенсирующего действия для уже выполненного внешнего вызова.

        Вызывается сразу после успешного вызова (например, deploy → release).
        """
        self._record(undo)

    def _record(self, undo: Callable[[], None]) -> None:
        if self.active:
            self._undo.append(undo)

    def _rollback(self) -> None:
        while self._undo:
            undo = self._undo.pop()
            try:
                undo()
            except Exception:
                # Остальные undo-действия всё равно выполняются
                logger.exception(f"Undo action failed during rollback: {undo!r}")
