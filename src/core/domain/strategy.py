"""
Strategy — Риск-профиль участника пула

Один enum на два policy-измерения:
- target аллокации во вторичный источник доходности (src.rebalance.calculator)
- multiplier очков за epoch (src.scoring.engine)

Таблицы соответствия живут рядом со своими потребителями, здесь только теги.
"""

from enum import Enum


class Strategy(str, Enum):
    """Риск-профиль (tier) участника."""

    CONSERVATIVE = "CONSERVATIVE"
    BALANCED = "BALANCED"
    AGGRESSIVE = "AGGRESSIVE"
