"""
Units — Фиксированная точка, basis points и константы пула

Единственный допустимый способ представления:
- share price (fixed-point, 1.0 == SCALE)
- долей аллокации (basis points, 1.0 == BPS_DENOMINATOR)
- сумм и shares (целые числа в базовой единице пула)

ЗАПРЕЩЕНО смешивать float и fixed-point: все значения — int, все деления — floor.
"""

from typing import Final


# =============================================================================
# FIXED-POINT
# =============================================================================

# 1.0 в fixed-point представлении
SCALE: Final[int] = 10**18

# 100% в basis points
BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# ПАРАМЕТРЫ ПУЛА
# =============================================================================

# Минимальный депозит (защита от dust-атак на share price)
MIN_DEPOSIT: Final[int] = 1_000_000

# Длительность epoch (30 дней, секунды)
EPOCH_DURATION_SEC: Final[int] = 30 * 24 * 60 * 60

# Максимум epoch, финализируемых за один вызов (ограничение стоимости catch-up)
MAX_EPOCH_CATCHUP: Final[int] = 12


# =============================================================================
# КОНВЕРТЕРЫ
# =============================================================================


def to_fixed(numerator: int, denominator: int = 1) -> int:
    """
    Рациональное число → fixed-point.

    Args:
        numerator: Числитель
        denominator: Знаменатель (> 0)

    Returns:
        numerator * SCALE // denominator

    Examples:
        >>> to_fixed(13, 10) == 13 * 10**17
        True
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return numerator * SCALE // denominator


def bps_to_fixed(bps: int) -> int:
    """Basis points → fixed-point доля (5000 bps → 0.5 * SCALE)."""
    return bps * SCALE // BPS_DENOMINATOR


def compute_share_price(total_assets: int, total_shares: int) -> int:
    """
    Цена одной share в fixed-point.

    Args:
        total_assets: Суммарная стоимость активов пула
        total_shares: Суммарное количество shares

    Returns:
        total_assets * SCALE // total_shares, либо SCALE для пустого пула
    """
    if total_shares == 0:
        return SCALE
    return total_assets * SCALE // total_shares
