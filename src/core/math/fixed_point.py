"""
Fixed Point — Целочисленные примитивы учёта

Модуль обеспечивает детерминированную арифметику для ledger и scoring:
- mul_div с floor-округлением (bit-exact между реализациями)
- Безопасное деление с fallback для нулевого знаменателя
- Валидация целочисленных входов (тип, знак)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Только int: float никогда не попадает в учёт (bool тоже отклоняется)
2. Все деления — floor, округление всегда в пользу пула
3. Python int не переполняется, промежуточные произведения точные
"""

from src.core.errors import InputError


# =============================================================================
# АРИФМЕТИКА
# =============================================================================


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    floor(a * b / denominator) без промежуточной потери точности.

    Args:
        a: Первый множитель (>= 0)
        b: Второй множитель (>= 0)
        denominator: Делитель (> 0)

    Returns:
        a * b // denominator

    Raises:
        ZeroDivisionError: Если denominator == 0

    Examples:
        >>> mul_div(1000, 3000, 10_000)
        300
        >>> mul_div(7, 1, 2)
        3
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    return a * b // denominator


def safe_mul_div(a: int, b: int, denominator: int, fallback: int = 0) -> int:
    """
    mul_div с fallback вместо ZeroDivisionError.

    Используется в read-only preview, которые не должны падать.
    """
    if denominator == 0:
        return fallback
    return a * b // denominator


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_int(value: int, name: str) -> None:
    """
    Валидация, что значение — целое число (не bool, не float).

    Raises:
        InputError: Если value не int
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputError(
            f"{name} must be an integer amount, got {type(value).__name__}",
            reason="not_an_integer",
        )


def validate_non_negative_int(value: int, name: str) -> None:
    """
    Валидация, что значение — неотрицательное целое.

    Raises:
        InputError: Если value не int или value < 0
    """
    validate_int(value, name)
    if value < 0:
        raise InputError(f"{name} must be non-negative, got {value}", reason="negative_amount")


def validate_positive_int(value: int, name: str, reason: str = "non_positive_amount") -> None:
    """
    Валидация, что значение — строго положительное целое.

    Raises:
        InputError: Если value не int или value <= 0
    """
    validate_int(value, name)
    if value <= 0:
        raise InputError(f"{name} must be positive, got {value}", reason=reason)
