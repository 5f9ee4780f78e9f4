"""Ledger — учёт shares пула и жизненный цикл epoch.

- ShareLedger: join / exit / change_strategy / heartbeat
- EpochBook: epoch-таблица и participant entries (append-only)
- Ленивая финализация epoch с ограниченным catch-up
"""

from .epochs import EpochBook, EpochClock, ManualClock, SweepResult
from .journal import UndoJournal
from .share_ledger import LedgerActionResult, LedgerConfig, ShareLedger

__all__ = [
    "EpochBook",
    "EpochClock",
    "ManualClock",
    "SweepResult",
    "UndoJournal",
    "LedgerActionResult",
    "LedgerConfig",
    "ShareLedger",
]
