"""
Tests for UndoJournal

Покрывает:
- Откат записей dict / атрибутов / списков при исключении
- Commit при успешном выходе
- Вложенные транзакции сливаются во внешнюю
- Записи вне транзакции не журналируются
"""

import pytest

from src.ledger.journal import UndoJournal


class _Box:
    def __init__(self):
        self.value = 1


class TestUndoJournal:
    """Атомарность записей."""

    def test_commit_keeps_writes(self):
        journal = UndoJournal()
        data = {"a": 1}
        box = _Box()
        events = []

        with journal.transaction():
            journal.set_item(data, "a", 2)
            journal.set_item(data, "b", 3)
            journal.set_attr(box, "value", 5)
            journal.append(events, "joined")

        assert data == {"a": 2, "b": 3}
        assert box.value == 5
        assert events == ["joined"]
        assert not journal.active

    def test_rollback_restores_everything(self):
        journal = UndoJournal()
        data = {"a": 1, "gone": 9}
        box = _Box()
        events = ["old"]

        with pytest.raises(RuntimeError):
            with journal.transaction():
                journal.set_item(data, "a", 2)
                journal.set_item(data, "new", 3)
                journal.delete_item(data, "gone")
                journal.set_attr(box, "value", 7)
                journal.append(events, "joined")
                raise RuntimeError("boom")

        assert data == {"a": 1, "gone": 9}
        assert box.value == 1
        assert events == ["old"]

    def test_repeated_writes_to_same_key(self):
        journal = UndoJournal()
        data = {"a": 1}

        with pytest.raises(ValueError):
            with journal.transaction():
                journal.set_item(data, "a", 2)
                journal.set_item(data, "a", 3)
                raise ValueError()

        assert data == {"a": 1}

    def test_delete_missing_key_is_noop(self):
        journal = UndoJournal()
        data = {}

        with journal.transaction():
            journal.delete_item(data, "absent")

        assert data == {}

    def test_nested_transaction_rolls_back_with_outer(self):
        journal = UndoJournal()
        data = {"a": 1}

        with pytest.raises(RuntimeError):
            with journal.transaction():
                journal.set_item(data, "a", 2)
                with journal.transaction():
                    journal.set_item(data, "b", 5)
                raise RuntimeError("outer failure")

        assert data == {"a": 1}

    def test_inner_failure_rolls_back_outer(self):
        journal = UndoJournal()
        data = {"a": 1}

        with pytest.raises(RuntimeError):
            with journal.transaction():
                journal.set_item(data, "a", 2)
                with journal.transaction():
                    journal.set_item(data, "a", 3)
                    raise RuntimeError("inner failure")

        assert data == {"a": 1}
        assert not journal.active

    def test_writes_outside_transaction_not_recorded(self):
        journal = UndoJournal()
        data = {}
        journal.set_item(data, "a", 1)

        with pytest.raises(RuntimeError):
            with journal.transaction():
                journal.set_item(data, "b", 2)
                raise RuntimeError()

        assert data == {"a": 1}

    def test_journal_reusable_after_rollback(self):
        journal = UndoJournal()
        data = {}

        with pytest.raises(RuntimeError):
            with journal.transaction():
                journal.set_item(data, "a", 1)
                raise RuntimeError()

        with journal.transaction():
            journal.set_item(data, "b", 2)

        assert data == {"b": 2}

    def test_compensation_runs_on_rollback(self):
        journal = UndoJournal()
        calls = []

        with pytest.raises(RuntimeError):
            with journal.transaction():
                calls.append("deploy")
                journal.compensate(lambda: calls.append("release"))
                raise RuntimeError()

        assert calls == ["deploy", "release"]

    def test_compensation_skipped_on_commit(self):
        journal = UndoJournal()
        calls = []

        with journal.transaction():
            journal.compensate(lambda: calls.append("release"))

        assert calls == []

    def test_failing_undo_does_not_stop_rollback(self):
        journal = UndoJournal()
        data = {"a": 1}

        def broken_undo():
            raise ValueError("venue offline")

        with pytest.raises(RuntimeError):
            with journal.transaction():
                journal.set_item(data, "a", 2)
                journal.compensate(broken_undo)
                raise RuntimeError("original failure")

        assert data == {"a": 1}
        assert not journal.active
