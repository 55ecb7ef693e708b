"""
Core math modules

Целочисленная арифметика с контролем переполнения и расчёт vesting.
"""

# Fixed Point
from src.core.math.fixed_point import (
    BPS_DENOMINATOR,
    U64_MAX,
    bps_of,
    checked_add,
    checked_sub,
    clamp,
    is_u64,
    mul_div,
    validate_fee_rate,
    validate_u64,
)

# Vesting
from src.core.math.vesting import (
    WithdrawalQuote,
    linear_vested,
    quote_withdrawal,
)

__all__ = [
    # Fixed Point — Constants
    "BPS_DENOMINATOR",
    "U64_MAX",
    # Fixed Point — Functions
    "bps_of",
    "checked_add",
    "checked_sub",
    "clamp",
    "is_u64",
    "mul_div",
    "validate_fee_rate",
    "validate_u64",
    # Vesting
    "WithdrawalQuote",
    "linear_vested",
    "quote_withdrawal",
]
