"""
Tests for Capital Manager

Покрывает:
- InMemoryCapitalManager (deploy / release / shift / accrue / realize_loss)
- CapitalManagerBinding (write-once привязка)
- Соответствие Protocol CapitalManager
"""

import pytest

from src.capital import CapitalManager, CapitalManagerBinding, InMemoryCapitalManager
from src.core.errors import InputError, InsufficientCapitalError, StateError


class TestInMemoryCapitalManager:
    """In-memory custody."""

    def test_implements_protocol(self):
        assert isinstance(InMemoryCapitalManager(), CapitalManager)

    def test_deploy_goes_to_primary(self):
        manager = InMemoryCapitalManager()
        manager.deploy(10_000_000)

        assert manager.primary == 10_000_000
        assert manager.secondary == 0
        assert manager.total_value() == 10_000_000

    def test_release_primary_first(self):
        manager = InMemoryCapitalManager(primary=100, secondary=50)
        manager.release(120)

        assert manager.primary == 0
        assert manager.secondary == 30
        assert manager.released_total == 120

    def test_release_overdraft(self):
        manager = InMemoryCapitalManager(primary=100, secondary=50)
        with pytest.raises(InsufficientCapitalError) as exc_info:
            manager.release(151)

        assert exc_info.value.reason == "insufficient_capital"
        assert manager.total_value() == 150
        assert manager.released_total == 0

    def test_shift_to_secondary(self):
        manager = InMemoryCapitalManager(primary=100)
        manager.shift_to_secondary(40)

        assert manager.primary == 60
        assert manager.secondary_destination_value() == 40
        assert manager.total_value() == 100

    def test_shift_to_primary(self):
        manager = InMemoryCapitalManager(primary=10, secondary=40)
        manager.shift_to_primary(25)

        assert manager.primary == 35
        assert manager.secondary == 15

    def test_shift_insufficient(self):
        manager = InMemoryCapitalManager(primary=10, secondary=10)

        with pytest.raises(InsufficientCapitalError) as exc_info:
            manager.shift_to_secondary(11)
        assert exc_info.value.reason == "insufficient_primary"

        with pytest.raises(InsufficientCapitalError) as exc_info:
            manager.shift_to_primary(11)
        assert exc_info.value.reason == "insufficient_secondary"

    def test_accrue_and_loss(self):
        manager = InMemoryCapitalManager(primary=100, secondary=100)
        manager.accrue(primary=5, secondary=10)
        manager.realize_loss(secondary=30)

        assert manager.primary == 105
        assert manager.secondary == 80

    def test_loss_exceeding_balance(self):
        manager = InMemoryCapitalManager(primary=10)
        with pytest.raises(InsufficientCapitalError) as exc_info:
            manager.realize_loss(primary=11)
        assert exc_info.value.reason == "loss_exceeds_balance"

    def test_insufficient_capital_is_state_error(self):
        with pytest.raises(StateError):
            InMemoryCapitalManager().release(1)

    def test_negative_amount_rejected(self):
        manager = InMemoryCapitalManager()
        with pytest.raises(InputError):
            manager.deploy(-1)
        with pytest.raises(InputError):
            InMemoryCapitalManager(primary=-5)


class TestCapitalManagerBinding:
    """Write-once привязка."""

    def test_unbound(self):
        binding = CapitalManagerBinding()

        assert not binding.is_bound
        with pytest.raises(StateError) as exc_info:
            binding.get()
        assert exc_info.value.reason == "manager_not_bound"

    def test_bind_once(self):
        manager = InMemoryCapitalManager()
        binding = CapitalManagerBinding()
        binding.bind(manager)

        assert binding.is_bound
        assert binding.get() is manager

    def test_rebind_rejected(self):
        binding = CapitalManagerBinding(InMemoryCapitalManager())
        with pytest.raises(StateError) as exc_info:
            binding.bind(InMemoryCapitalManager())
        assert exc_info.value.reason == "manager_already_bound"

    def test_non_manager_rejected(self):
        binding = CapitalManagerBinding()
        with pytest.raises(TypeError):
            binding.bind(object())
        assert not binding.is_bound
