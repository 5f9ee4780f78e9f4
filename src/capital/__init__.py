"""Capital — контракт custody-слоя пула.

- CapitalManager protocol (потребляется ShareLedger)
- Write-once привязка ledger → manager
- In-memory реализация с двумя источниками доходности
"""

from .manager import (
    CapitalManager,
    CapitalManagerBinding,
    InMemoryCapitalManager,
)

__all__ = [
    "CapitalManager",
    "CapitalManagerBinding",
    "InMemoryCapitalManager",
]
