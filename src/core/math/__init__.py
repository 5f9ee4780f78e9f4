"""
Core math modules

Целочисленные примитивы fixed-point учёта с гарантией детерминизма.
"""

from src.core.math.fixed_point import (
    mul_div,
    safe_mul_div,
    validate_int,
    validate_non_negative_int,
    validate_positive_int,
)

__all__ = [
    # Arithmetic
    "mul_div",
    "safe_mul_div",
    # Validation
    "validate_int",
    "validate_non_negative_int",
    "validate_positive_int",
]
