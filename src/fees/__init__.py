"""Fee Policy — выбор и расчёт комиссии операции."""

from .policy import (
    FeeDecision,
    FeeMode,
    FeePolicy,
    FlatFee,
    NoFee,
    ProportionalFee,
    is_fee_due,
)

__all__ = [
    "FeeDecision",
    "FeeMode",
    "FeePolicy",
    "FlatFee",
    "NoFee",
    "ProportionalFee",
    "is_fee_due",
]
