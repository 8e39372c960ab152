"""
Core math modules для MCR Pricing

Целочисленная fixed-point арифметика с гарантией отсутствия переполнения.
"""

from mcrpricing.core.math.fixed_point import (
    # Scale constants
    DECIMALS,
    RATE_SCALE,
    RATIO_SCALE,
    UINT256_MAX,
    WAD,
    # Exceptions
    FixedPointOverflow,
    # Checked arithmetic
    ceil_div,
    checked_add,
    checked_mul,
    checked_pow,
    checked_sub,
    is_uint256,
    mul_div,
    # Conversion
    from_wad,
    to_wad,
    # Validation
    validate_non_negative_int,
    validate_positive_int,
)

__all__ = [
    # Scale constants
    "DECIMALS",
    "RATE_SCALE",
    "RATIO_SCALE",
    "UINT256_MAX",
    "WAD",
    # Exceptions
    "FixedPointOverflow",
    # Checked arithmetic
    "ceil_div",
    "checked_add",
    "checked_mul",
    "checked_pow",
    "checked_sub",
    "is_uint256",
    "mul_div",
    # Conversion
    "from_wad",
    "to_wad",
    # Validation
    "validate_non_negative_int",
    "validate_positive_int",
]
